"""
Shared pytest fixtures for the SOS relay tests.
"""
import pytest

from alert_log import AlertLog
from dispatch import SEQUENTIAL
from tests.fakes import FakeGateway


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "logs.json"


@pytest.fixture
def alert_log(log_path):
    return AlertLog(str(log_path))


@pytest.fixture
def valid_payload():
    return {
        "name": "Ann",
        "surname": "Lee",
        "coordinates": "1.0,2.0",
        "callMeAt": "+27000",
        "emergencyType": "Send an ambulance",
        "contacts": ["+27111"],
    }


@pytest.fixture
def client(gateway, alert_log):
    """Flask test client wired to the fake gateway and a temporary log."""
    from app import app

    saved = {key: app.config[key] for key in ("MESSAGING_GATEWAY", "ALERT_LOG", "DISPATCH_POLICY")}
    app.config.update(
        TESTING=True,
        MESSAGING_GATEWAY=gateway,
        ALERT_LOG=alert_log,
        DISPATCH_POLICY=SEQUENTIAL,
    )
    with app.test_client() as test_client:
        yield test_client
    app.config.update(saved)
