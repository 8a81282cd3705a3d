import pytest
from fastapi.testclient import TestClient

from messenger_pulse.config.constants import DEFAULT_PRESET_MESSAGE
from messenger_pulse.main import create_app
from tests.conftest import graph_error, real_graph


@pytest.fixture
def make_client(settings, inbox_factory, metrics):
    def factory(responder=None):
        inbox, _ = inbox_factory(responder)
        app = create_app(settings=settings, inbox_service=inbox, metrics=metrics)
        return TestClient(app)

    return factory


@pytest.fixture
def client(make_client):
    with make_client() as client:
        yield client


@pytest.fixture
def logged_in(client):
    response = client.post("/api/v1/auth/login", json={})
    assert response.status_code == 200
    return client


def ids(response):
    return [view["conversation"]["id"] for view in response.json()["conversations"]]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["authenticated"] is False


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_session_before_login(client):
    assert client.get("/api/v1/auth/session").json() == {
        "authenticated": False,
        "page_id": None,
        "page_name": None,
        "mock": False,
    }


def test_demo_login_returns_conversations(client):
    response = client.post("/api/v1/auth/login", json={})

    body = response.json()
    assert response.status_code == 200
    assert body["session"]["mock"] is True
    assert body["conversations_error"] is None
    assert len(body["conversations"]) == 5
    first = body["conversations"][0]
    assert first["conversation"]["partner_name"] == "Maria Ionescu"
    assert first["is_overdue"] is False


def test_list_filters(logged_in):
    assert ids(logged_in.get("/api/v1/conversations")) == ["c2", "c5", "c3", "c1", "c4"]
    assert ids(logged_in.get("/api/v1/conversations", params={"overdue_only": "true"})) == ["c5", "c1", "c4"]
    assert ids(logged_in.get("/api/v1/conversations", params={"q": "ion"})) == ["c2", "c1", "c4"]


def test_get_unknown_conversation_is_404(logged_in):
    response = logged_in.get("/api/v1/conversations/nope")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_send_message(logged_in):
    response = logged_in.post("/api/v1/conversations/c3/messages", json={"text": "Talk soon!"})

    body = response.json()
    assert response.status_code == 201
    assert body["message"]["delivery_status"] == "sent"
    assert body["conversation"]["status"] == "waiting_for_partner"


def test_send_requires_login(client):
    response = client.post("/api/v1/conversations/c1/messages", json={"text": "Hi"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"


def test_send_rejects_empty_text(logged_in):
    response = logged_in.post("/api/v1/conversations/c1/messages", json={"text": ""})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_recipient_unavailable_maps_to_422(make_client):
    responder = real_graph(send=lambda request: graph_error("Not available", 551))
    with make_client(responder) as client:
        client.post("/api/v1/auth/login", json={"access_token": "real-token"})
        response = client.post("/api/v1/conversations/t1/messages", json={"text": "Hi"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "RECIPIENT_UNAVAILABLE"
    assert "551" in response.json()["error"]["message"]


def test_invalid_token_is_401(make_client):
    with make_client(lambda request: graph_error("Invalid OAuth access token.", 190)) as client:
        response = client.post("/api/v1/auth/login", json={"access_token": "bad"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_INVALID"


def test_follow_up_draft(logged_in, fake_genai):
    response = logged_in.post("/api/v1/conversations/c1/follow-up")

    assert response.status_code == 200
    assert response.json() == {"conversation_id": "c1", "text": fake_genai.text}


def test_stats(logged_in):
    body = logged_in.get("/api/v1/stats").json()

    assert body["total"] == 5
    assert body["overdue"] == 3
    assert body["awaiting_reply"] == 1


def test_preset_message_lifecycle(client):
    assert client.get("/api/v1/settings/preset-message").json()["text"] == DEFAULT_PRESET_MESSAGE

    client.put("/api/v1/settings/preset-message", json={"text": "Still interested?"})
    assert client.get("/api/v1/settings/preset-message").json()["text"] == "Still interested?"

    response = client.delete("/api/v1/settings/preset-message")
    assert response.json()["text"] == DEFAULT_PRESET_MESSAGE


def test_logout(logged_in):
    assert logged_in.post("/api/v1/auth/logout").status_code == 204
    assert logged_in.get("/api/v1/auth/session").json()["authenticated"] is False


def test_metrics_endpoint(logged_in):
    logged_in.post("/api/v1/conversations/c3/messages", json={"text": "Hi"})

    response = logged_in.get("/metrics")

    assert response.status_code == 200
    assert "messenger_pulse_messages_sent_total" in response.text
