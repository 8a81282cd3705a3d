import json
from types import SimpleNamespace
from typing import Callable, List

import httpx
import pytest

from messenger_pulse.config.settings import Settings
from messenger_pulse.core.ai.followup import FollowUpGenerator
from messenger_pulse.core.graph.client import GraphClient
from messenger_pulse.services.credential_store import CredentialStore
from messenger_pulse.services.inbox_service import InboxService
from messenger_pulse.utils.metrics import MetricsCollector

PAGE_ID = "PAGE"
GRAPH_ROOT = "https://graph.facebook.com/v19.0"


class FakeSleep:
    """Records requested waits instead of sleeping."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingHandler:
    """MockTransport handler that keeps every request it served."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


def graph_error(message: str, code: int, status_code: int = 400) -> httpx.Response:
    return httpx.Response(status_code, json={"error": {"message": message, "code": code, "type": "OAuthException"}})


def thread_payload(thread_id: str, partner_id: str = "U1", partner_name: str = "Ana"):
    return {
        "id": thread_id,
        "updated_time": "2024-05-01T10:05:00+0000",
        "participants": {"data": [
            {"id": PAGE_ID, "name": "Shop"},
            {"id": partner_id, "name": partner_name},
        ]},
        "messages": {"data": [
            {
                "id": f"{thread_id}_m2",
                "message": "Hello back",
                "created_time": "2024-05-01T10:05:00+0000",
                "from": {"id": PAGE_ID, "name": "Shop"},
            },
            {
                "id": f"{thread_id}_m1",
                "message": "Hi",
                "created_time": "2024-05-01T10:00:00+0000",
                "from": {"id": partner_id, "name": partner_name},
            },
        ]},
    }


def real_graph(threads=None, conversations_error=None, send=None):
    """Route Graph calls by path for a real (non-mock) token."""
    threads = threads if threads is not None else [thread_payload("t1")]

    def respond(request):
        path = request.url.path
        if path.endswith("/me/messages"):
            return send(request) if send else httpx.Response(200, json={"message_id": "mid.1"})
        if path.endswith("/conversations"):
            if conversations_error:
                return conversations_error()
            return httpx.Response(200, json={"data": threads})
        if path.endswith("/me"):
            return httpx.Response(200, json={"id": PAGE_ID, "name": "Shop"})
        raise AssertionError(f"Unexpected path {path}")

    return respond


def request_json(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        RETRY_BUDGET=2,
        MOCK_LOGIN_DELAY_MS=0,
        MOCK_CONVERSATIONS_DELAY_MS=0,
        MOCK_SEND_DELAY_MS=0,
        CREDENTIAL_STORE_PATH=str(tmp_path / "storage.json"),
        GEMINI_API_KEY=None,
    )


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def make_graph_client(settings, fake_sleep, metrics):
    """Build a GraphClient whose HTTP traffic goes to ``responder``."""

    def factory(responder=None, **overrides):
        if responder is None:
            def responder(request):
                raise AssertionError(f"Unexpected network call: {request.url}")
        handler = RecordingHandler(responder)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = GraphClient(
            settings.model_copy(update=overrides) if overrides else settings,
            http_client=http_client,
            sleep=fake_sleep,
            metrics=metrics,
        )
        return client, handler

    return factory


class FakeGenAIClient:
    """Stands in for a ``google.genai.Client``."""

    def __init__(self, text="Hi Ana, just checking in!", error=None):
        self.text = text
        self.error = error
        self.prompts: List[str] = []
        self.model_names: List[str] = []
        self.aio = SimpleNamespace(models=SimpleNamespace(generate_content=self._generate_content))

    async def _generate_content(self, model, contents):
        self.model_names.append(model)
        self.prompts.append(contents)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def fake_genai() -> FakeGenAIClient:
    return FakeGenAIClient()


@pytest.fixture
def inbox_factory(settings, make_graph_client, metrics, fake_genai):
    """Build an InboxService over a mocked Graph API and a temp credential store."""

    def factory(responder=None, genai_client=None, clock=None):
        client, handler = make_graph_client(responder)
        service = InboxService(
            graph_client=client,
            credential_store=CredentialStore(settings.CREDENTIAL_STORE_PATH),
            follow_up_generator=FollowUpGenerator(
                api_key=None,
                metrics=metrics,
                client=genai_client if genai_client is not None else fake_genai,
            ),
            overdue_threshold_hours=settings.OVERDUE_THRESHOLD_HOURS,
            **({"clock": clock} if clock else {}),
        )
        return service, handler

    return factory
