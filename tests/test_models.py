from messenger_pulse.models.conversation import Conversation, Message
from messenger_pulse.models.graph import GraphError, GraphUser, decode_graph_payload
from messenger_pulse.models.types import ConversationStatus, DeliveryStatus, MessageSender
from messenger_pulse.utils.date_utils import MS_PER_HOUR, parse_graph_timestamp

NOW = 1_700_000_000_000


def conversation(*messages):
    return Conversation(
        id="c1",
        partner_id="U1",
        partner_name="Ana Pop",
        avatar_url="https://example.com/a.png",
        messages=list(messages),
    )


def message(sender, hours_ago, text="hello", message_id="m1"):
    return Message(id=message_id, sender=sender, text=text, timestamp=NOW - int(hours_ago * MS_PER_HOUR))


def test_overdue_when_page_waited_at_least_threshold():
    assert conversation(message(MessageSender.ME, 24)).is_overdue(NOW)
    assert not conversation(message(MessageSender.ME, 23.9)).is_overdue(NOW)


def test_not_overdue_when_partner_wrote_last():
    assert not conversation(message(MessageSender.PARTNER, 100)).is_overdue(NOW)


def test_empty_conversation_is_not_overdue():
    assert not conversation().is_overdue(NOW)


def test_custom_threshold():
    assert conversation(message(MessageSender.ME, 2)).is_overdue(NOW, threshold_hours=1)


def test_with_message_rederives_status():
    updated = conversation(message(MessageSender.PARTNER, 3)).with_message(
        message(MessageSender.ME, 0, message_id="m2")
    )

    assert updated.status == ConversationStatus.WAITING_FOR_PARTNER
    assert len(updated.messages) == 2


def test_with_replaced_message_swaps_by_id():
    original = message(MessageSender.ME, 0).with_delivery_status(DeliveryStatus.PENDING)
    updated = conversation(original).with_replaced_message(
        original.with_delivery_status(DeliveryStatus.FAILED)
    )

    assert updated.messages[0].delivery_status == DeliveryStatus.FAILED


def test_search_helpers_ignore_case():
    convo = conversation(message(MessageSender.PARTNER, 1, text="Is it in STOCK?"))

    assert convo.matches_name("ana")
    assert convo.matches_content("stock")
    assert not convo.matches_content("price")


def test_decode_graph_error_payload():
    decoded = decode_graph_payload({"error": {"message": "Bad token", "code": 190}}, GraphUser)

    assert isinstance(decoded, GraphError)
    assert decoded.code == 190
    assert decoded.message == "Bad token"


def test_decode_graph_success_payload():
    decoded = decode_graph_payload({"id": "1", "name": "Shop"}, GraphUser)

    assert decoded == GraphUser(id="1", name="Shop")


def test_parse_graph_timestamp_formats():
    expected = 1714557600000
    assert parse_graph_timestamp("2024-05-01T10:00:00+0000") == expected
    assert parse_graph_timestamp("2024-05-01T10:00:00Z") == expected
    assert parse_graph_timestamp("2024-05-01T12:00:00+02:00") == expected
