"""
Tests for the messaging gateways.
"""
from unittest.mock import Mock, patch

import pytest

import messaging
from messaging import ConsoleGateway, TwilioGateway, build_gateway


def _twilio_client(sid="SM123"):
    client = Mock()
    client.messages.create.return_value = Mock(sid=sid)
    return client


def test_whatsapp_addresses():
    client = _twilio_client()
    gateway = TwilioGateway("AC1", "token", "+14155238886", channel="whatsapp", client=client)

    assert gateway.send("+27111", "help") == "SM123"
    client.messages.create.assert_called_once_with(
        from_="whatsapp:+14155238886", to="whatsapp:+27111", body="help"
    )


def test_sms_addresses_unchanged():
    client = _twilio_client()
    gateway = TwilioGateway("AC1", "token", "+15550000", channel="sms", client=client)
    gateway.send("+27111", "help")

    client.messages.create.assert_called_once_with(from_="+15550000", to="+27111", body="help")


def test_twilio_errors_propagate():
    client = Mock()
    client.messages.create.side_effect = RuntimeError("21211 invalid 'To' number")
    gateway = TwilioGateway("AC1", "token", "+1", client=client)

    with pytest.raises(RuntimeError, match="invalid"):
        gateway.send("bogus", "help")


def test_console_gateway_returns_sid():
    assert ConsoleGateway().send("+27111", "help").startswith("console-")


def test_build_gateway_without_credentials():
    with patch.object(messaging.config, "TWILIO_ACCOUNT_SID", None), \
            patch.object(messaging.config, "TWILIO_AUTH_TOKEN", None):
        assert isinstance(build_gateway(), ConsoleGateway)


def test_build_gateway_with_credentials():
    with patch.object(messaging.config, "TWILIO_ACCOUNT_SID", "AC1"), \
            patch.object(messaging.config, "TWILIO_AUTH_TOKEN", "token"), \
            patch.object(messaging, "Client") as client_cls:
        gateway = build_gateway()

    assert isinstance(gateway, TwilioGateway)
    client_cls.assert_called_once_with("AC1", "token")
