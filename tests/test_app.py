"""
HTTP tests for the Flask endpoints.
"""
import json

from tests.fakes import FakeGateway


def test_index(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "SOS API is running" in response.get_data(as_text=True)


def test_sos_success(client, valid_payload, alert_log):
    response = client.post("/sos", json=valid_payload)

    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "SOS sent successfully"
    assert len(body["results"]) == 1
    result = body["results"][0]
    assert result["number"] == "+27111"
    assert result["status"] == "sent"
    assert result["sid"]
    assert len(alert_log.entries()) == 1


def test_sos_empty_contacts(client, valid_payload, gateway, log_path):
    valid_payload["contacts"] = []
    response = client.post("/sos", json=valid_payload)

    assert response.status_code == 400
    assert "contacts" in response.get_json()["error"].lower()
    assert gateway.sent == []
    assert not log_path.exists()


def test_sos_gateway_failure_still_200(client, valid_payload):
    from app import app

    app.config["MESSAGING_GATEWAY"] = FakeGateway(failing={"+27111"})
    response = client.post("/sos", json=valid_payload)

    assert response.status_code == 200
    result = response.get_json()["results"][0]
    assert result["number"] == "+27111"
    assert result["status"] == "failed"
    assert result["error"]
    assert "sid" not in result


def test_sos_results_positional(client, valid_payload, gateway):
    gateway.failing = {"+2"}
    valid_payload["contacts"] = ["+1", "+2", "+3"]
    response = client.post("/sos", json=valid_payload)

    results = response.get_json()["results"]
    assert [r["number"] for r in results] == ["+1", "+2", "+3"]
    assert [r["status"] for r in results] == ["sent", "failed", "sent"]


def test_sos_not_json(client, gateway):
    response = client.post("/sos", data="name=Ann", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object"
    assert gateway.sent == []


def test_sos_malformed_json(client):
    response = client.post("/sos", data="{not json", content_type="application/json")
    assert response.status_code == 400


def test_sos_appends_to_existing_log(client, valid_payload, log_path):
    log_path.write_text(json.dumps([{"timestamp": "earlier"}]), encoding="utf-8")
    client.post("/sos", json=valid_payload)

    logs = json.loads(log_path.read_text(encoding="utf-8"))
    assert len(logs) == 2
    assert logs[0] == {"timestamp": "earlier"}
    assert logs[1]["name"] == "Ann"


def test_sos_corrupt_log_recovers(client, valid_payload, log_path):
    log_path.write_text("[{broken", encoding="utf-8")
    response = client.post("/sos", json=valid_payload)

    assert response.status_code == 200
    logs = json.loads(log_path.read_text(encoding="utf-8"))
    assert len(logs) == 1
    assert len(list(log_path.parent.glob("logs.json.corrupt-*"))) == 1


def test_sos_log_with_invalid_bytes_recovers(client, valid_payload, log_path, gateway):
    log_path.write_bytes(b'[{"name": "\xff\xfe"}]')
    response = client.post("/sos", json=valid_payload)

    assert response.status_code == 200
    assert response.get_json()["results"][0]["status"] == "sent"
    assert len(gateway.sent) == 1
    logs = json.loads(log_path.read_text(encoding="utf-8"))
    assert [e["name"] for e in logs] == ["Ann"]
    backups = list(log_path.parent.glob("logs.json.corrupt-*"))
    assert len(backups) == 1
    assert backups[0].read_bytes() == b'[{"name": "\xff\xfe"}]'


def test_logs_newest_first(client, valid_payload):
    for name in ("First", "Second", "Third"):
        valid_payload["name"] = name
        client.post("/sos", json=valid_payload)

    response = client.get("/logs")
    assert response.status_code == 200
    assert [e["name"] for e in response.get_json()] == ["Third", "Second", "First"]

    response = client.get("/logs?limit=2")
    assert [e["name"] for e in response.get_json()] == ["Third", "Second"]


def test_logs_empty(client):
    response = client.get("/logs")
    assert response.get_json() == []


def test_logs_bad_limit(client):
    assert client.get("/logs?limit=abc").status_code == 400
    assert client.get("/logs?limit=-1").status_code == 400


def test_cors_header(client):
    response = client.get("/", headers={"Origin": "http://example.com"})
    assert response.headers.get("Access-Control-Allow-Origin") == "*"
