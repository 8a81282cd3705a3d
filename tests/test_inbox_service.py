import httpx
import pytest

from messenger_pulse.config.constants import DEFAULT_PRESET_MESSAGE, MOCK_PAGE_ID, MOCK_PAGE_NAME
from messenger_pulse.core.exceptions import RecipientUnavailableError, TokenInvalidError
from messenger_pulse.models.session import PageSession
from messenger_pulse.models.types import ConversationStatus, DeliveryStatus, MessageSender
from messenger_pulse.services.credential_store import CredentialStore
from messenger_pulse.services.exceptions import (
    MissingPartnerError,
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)
from messenger_pulse.utils.date_utils import start_of_day_ms
from tests.conftest import PAGE_ID, graph_error, real_graph, thread_payload


async def test_login_without_token_starts_demo_session(inbox_factory, settings):
    inbox, handler = inbox_factory()

    result = await inbox.login()

    assert result.session.page_id == MOCK_PAGE_ID
    assert result.session.page_name == MOCK_PAGE_NAME
    assert result.conversations_error is None
    assert len(result.conversations) == 5
    assert handler.requests == []
    assert CredentialStore(settings.CREDENTIAL_STORE_PATH).load() == result.session


async def test_login_uses_resolved_page_identity(inbox_factory):
    inbox, handler = inbox_factory(real_graph())

    result = await inbox.login("  real-token  ")

    assert result.session.page_id == PAGE_ID
    assert result.session.access_token == "real-token"
    assert handler.requests[1].url.path == f"/v19.0/{PAGE_ID}/conversations"
    assert result.conversations[0].partner_name == "Ana"


async def test_login_with_invalid_token_stores_nothing(inbox_factory, settings):
    inbox, _ = inbox_factory(lambda request: graph_error("Invalid OAuth access token.", 190))

    with pytest.raises(TokenInvalidError):
        await inbox.login("bad-token")

    assert inbox.session is None
    assert CredentialStore(settings.CREDENTIAL_STORE_PATH).load() is None


async def test_login_with_blank_token_is_rejected(inbox_factory):
    inbox, _ = inbox_factory()

    with pytest.raises(ValidationError):
        await inbox.login("   ")


async def test_login_degrades_when_conversations_fail(inbox_factory):
    inbox, _ = inbox_factory(real_graph(
        conversations_error=lambda: graph_error("(#100) Missing permission", 100)
    ))

    result = await inbox.login("real-token")

    assert inbox.is_authenticated
    assert result.conversations == []
    assert result.conversations_error == "Facebook API Error: (#100) Missing permission"


async def test_login_keeps_messages_dated_before_epoch(inbox_factory):
    thread = thread_payload("t1")
    thread["messages"]["data"][1]["created_time"] = "1969-12-31T23:00:00+0000"
    inbox, _ = inbox_factory(real_graph(threads=[thread]))

    result = await inbox.login("real-token")

    assert result.conversations_error is None
    assert result.conversations[0].messages[0].timestamp == 0


async def test_login_degrades_on_unexpected_load_error(inbox_factory, settings, monkeypatch):
    inbox, _ = inbox_factory(real_graph())

    async def broken_fetch(page_id, access_token):
        raise RuntimeError("transform exploded")

    monkeypatch.setattr(inbox.graph_client, "fetch_conversations", broken_fetch)

    result = await inbox.login("real-token")

    assert inbox.is_authenticated
    assert result.conversations == []
    assert "transform exploded" in result.conversations_error
    assert CredentialStore(settings.CREDENTIAL_STORE_PATH).load() == result.session


async def test_refresh_requires_a_token(inbox_factory):
    inbox, _ = inbox_factory()

    with pytest.raises(NotAuthenticatedError):
        await inbox.refresh()


async def test_refresh_revalidates_identity_and_reloads(inbox_factory):
    inbox, handler = inbox_factory(real_graph())
    await inbox.login("real-token")

    conversations = await inbox.refresh()

    me_calls = [r for r in handler.requests if r.url.path.endswith("/me")]
    assert len(me_calls) == 2
    assert [c.id for c in conversations] == ["t1"]


async def test_logout_clears_state_and_storage(inbox_factory, settings):
    inbox, _ = inbox_factory()
    await inbox.login()

    inbox.logout()

    assert inbox.session is None
    assert inbox.list_conversations() == []
    assert CredentialStore(settings.CREDENTIAL_STORE_PATH).load() is None


async def test_restore_reloads_persisted_session(inbox_factory):
    first, _ = inbox_factory()
    session = (await first.login()).session

    second, _ = inbox_factory()
    restored = await second.restore()

    assert restored.access_token == session.access_token
    assert len(second.list_conversations()) == 5


async def test_restore_keeps_session_when_refresh_fails(inbox_factory, settings):
    CredentialStore(settings.CREDENTIAL_STORE_PATH).save(
        PageSession(access_token="real-token", page_id=PAGE_ID, page_name="Shop")
    )
    inbox, _ = inbox_factory(lambda request: httpx.Response(503))

    restored = await inbox.restore()

    assert restored is not None
    assert restored.access_token == "real-token"
    assert inbox.list_conversations() == []


async def test_conversations_sorted_newest_first(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    assert [c.id for c in inbox.list_conversations()] == ["c2", "c5", "c3", "c1", "c4"]


async def test_overdue_filter(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    assert [c.id for c in inbox.list_conversations(overdue_only=True)] == ["c5", "c1", "c4"]


async def test_search_ranks_name_matches_before_content_matches(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    assert [c.id for c in inbox.list_conversations(search="ION")] == ["c2", "c1", "c4"]
    assert [c.id for c in inbox.list_conversations(search="stock")] == ["c5"]
    assert inbox.list_conversations(search="nobody-matches") == []


async def test_stats(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    stats = inbox.stats()
    day_start = start_of_day_ms(inbox.clock())
    expected_today = sum(
        1 for c in inbox.list_conversations() for m in c.messages if m.timestamp >= day_start
    )

    assert stats.total == 5
    assert stats.overdue == 3
    assert stats.responded == 4
    assert stats.awaiting_reply == 1
    assert stats.today_messages == expected_today


async def test_get_conversation_unknown_id(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    with pytest.raises(NotFoundError):
        inbox.get_conversation("nope")


async def test_send_marks_message_sent(inbox_factory):
    inbox, _ = inbox_factory()
    await inbox.login()

    message = await inbox.send_message("c3", "Sure, talk soon!")

    conversation = inbox.get_conversation("c3")
    assert message.delivery_status == DeliveryStatus.SENT
    assert message.sender == MessageSender.ME
    assert conversation.messages[-1] == message
    assert conversation.status == ConversationStatus.WAITING_FOR_PARTNER


async def test_send_is_pending_while_in_flight_and_failed_after_error(inbox_factory):
    observed = []

    def send(request):
        observed.append(inbox.get_conversation("t1").messages[-1].delivery_status)
        return graph_error("This person isn't available right now.", 551)

    inbox, _ = inbox_factory(real_graph(send=send))
    await inbox.login("real-token")

    with pytest.raises(RecipientUnavailableError):
        await inbox.send_message("t1", "Hello?")

    last = inbox.get_conversation("t1").messages[-1]
    assert observed == [DeliveryStatus.PENDING]
    assert last.text == "Hello?"
    assert last.delivery_status == DeliveryStatus.FAILED


async def test_send_without_partner_appends_nothing(inbox_factory):
    orphan = {
        "id": "t2",
        "participants": {"data": [{"id": PAGE_ID}]},
        "messages": {"data": [
            {"id": "m1", "message": "Hi", "created_time": "2024-05-01T10:00:00+0000", "from": {"id": PAGE_ID}},
        ]},
    }
    inbox, handler = inbox_factory(real_graph(threads=[orphan]))
    await inbox.login("real-token")
    requests_before = len(handler.requests)

    with pytest.raises(MissingPartnerError):
        await inbox.send_message("t2", "Hello")

    assert len(inbox.get_conversation("t2").messages) == 1
    assert len(handler.requests) == requests_before


async def test_send_validation(inbox_factory):
    inbox, _ = inbox_factory()

    with pytest.raises(NotAuthenticatedError):
        await inbox.send_message("c1", "Hello")

    await inbox.login()
    with pytest.raises(ValidationError):
        await inbox.send_message("c1", "   ")
    with pytest.raises(NotFoundError):
        await inbox.send_message("missing", "Hello")


async def test_draft_follow_up_uses_conversation_history(inbox_factory, fake_genai):
    inbox, _ = inbox_factory()
    await inbox.login()

    text = await inbox.draft_follow_up("c1")

    assert text == fake_genai.text
    assert "Ion Popescu: Hello, how much does the service cost?" in fake_genai.prompts[0]


def test_preset_message_set_and_reset(inbox_factory):
    inbox, _ = inbox_factory()

    assert inbox.get_preset_message() == DEFAULT_PRESET_MESSAGE
    assert inbox.set_preset_message("Still there?") == "Still there?"
    assert inbox.get_preset_message() == "Still there?"
    assert inbox.reset_preset_message() == DEFAULT_PRESET_MESSAGE

    with pytest.raises(ValidationError):
        inbox.set_preset_message("")
