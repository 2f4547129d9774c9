import pytest
from fastapi.testclient import TestClient

from src.intake.api.dependencies import get_intake_service, get_status_gateway
from src.intake.domain.errors import GatewayError
from src.config import get_settings
from src.main import create_app

PHONE = "5569999089202"


class RecordingService:
    def __init__(self):
        self.calls = []

    async def handle(self, identity, text, message_id=None):
        self.calls.append((identity, text, message_id))


class StatusGateway:
    def __init__(self, fail=False):
        self.fail = fail

    async def connection_state(self):
        if self.fail:
            raise GatewayError("down")
        return {"instance": {"instanceName": "DATA-RO", "state": "open"}}


def upsert(text=None, *, jid=f"{PHONE}@s.whatsapp.net", from_me=False, event="messages.upsert", message=None):
    if message is None:
        message = {"conversation": text}
    return {
        "event": event,
        "instance": "DATA-RO",
        "data": {
            "key": {"remoteJid": jid, "fromMe": from_me, "id": "3EB0C767D26A"},
            "pushName": "Maria",
            "message": message,
            "messageType": "conversation",
        },
    }


@pytest.fixture
def recorder():
    return RecordingService()


@pytest.fixture
def client(sqlite_settings, recorder):
    app = create_app(sqlite_settings)
    app.dependency_overrides[get_intake_service] = lambda: recorder
    app.dependency_overrides[get_settings] = lambda: sqlite_settings
    app.dependency_overrides[get_status_gateway] = lambda: StatusGateway()
    with TestClient(app) as c:
        yield c


def test_text_message_is_handed_to_the_dialogue(client, recorder):
    r = client.post("/api/evolution/webhook", json=upsert("Porto Velho"))
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert recorder.calls == [(PHONE, "Porto Velho", "3EB0C767D26A")]


def test_extended_text_message(client, recorder):
    client.post("/api/evolution/webhook", json=upsert(message={"extendedTextMessage": {"text": "menu"}}))
    assert recorder.calls == [(PHONE, "menu", "3EB0C767D26A")]


@pytest.mark.parametrize("payload", [
    upsert("oi", from_me=True),
    upsert("oi", jid="120363025246125486@g.us"),
    upsert("oi", jid="status@broadcast"),
    upsert("oi", event="connection.update"),
    upsert(message={"imageMessage": {"url": "https://mmg.whatsapp.net/x"}}),
    upsert(message={"conversation": ""}),
    {"event": "messages.upsert"},
    {},
])
def test_noise_is_acknowledged_and_dropped(client, recorder, payload):
    r = client.post("/api/evolution/webhook", json=payload)
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert recorder.calls == []


def test_invalid_json_is_acknowledged(client, recorder):
    r = client.post("/api/evolution/webhook", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 200
    assert recorder.calls == []


def test_webhook_liveness(client):
    body = client.get("/api/evolution/webhook").json()
    assert body["status"] == "ok"
    assert body["instance"] == "DATA-RO"
    assert "timestamp" in body


def test_status_reports_connection(client):
    body = client.get("/api/evolution/status").json()
    assert body["chatbot"] == "online"
    assert body["evolution_api"]["connection"]["instance"]["state"] == "open"


def test_status_when_evolution_is_unreachable(client):
    client.app.dependency_overrides[get_status_gateway] = lambda: StatusGateway(fail=True)
    body = client.get("/api/evolution/status").json()
    assert body["evolution_api"]["connection"] == "error - unable to reach Evolution API"


def test_db_health(client):
    r = client.get("/_health/db")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_service_missing_maps_to_503(sqlite_settings):
    app = create_app(sqlite_settings)
    # no lifespan -> nothing wired on app.state
    r = TestClient(app).post("/api/evolution/webhook", json=upsert("oi"))
    assert r.status_code == 503
    assert r.json()["code"] == "service_unavailable"


def test_end_to_end_with_real_wiring(sqlite_settings, monkeypatch):
    sent = []

    async def fake_send(self, identity, text):
        sent.append((identity, text))
        return True

    monkeypatch.setattr("src.intake.infrastructure.evolution_gateway.EvolutionGateway.send", fake_send)
    app = create_app(sqlite_settings)
    with TestClient(app) as c:
        c.post("/api/evolution/webhook", json=upsert("oi"))
        c.post("/api/evolution/webhook", json=upsert("oi"))  # same provider id: dropped
    assert len(sent) == 1
    assert sent[0][0] == PHONE
    assert "ProviDATA" in sent[0][1]
