"""
Graph thread to Conversation transformation.

Pure functions: no I/O and no clock access. Output preserves the order of
the input threads; display ordering belongs to the inbox service.
"""

from typing import Iterable, List, Optional, Union
from urllib.parse import quote

from messenger_pulse.config.constants import (
    ATTACHMENT_PLACEHOLDER_TEXT,
    AVATAR_URL_TEMPLATE,
    FALLBACK_PARTNER_NAME,
)
from messenger_pulse.models.conversation import Conversation, Message, derive_status
from messenger_pulse.models.graph import GraphMessage, GraphParticipant, GraphThread
from messenger_pulse.models.types import MessageSender
from messenger_pulse.utils.date_utils import parse_graph_timestamp
from messenger_pulse.utils.logger import get_logger

logger = get_logger(__name__)

RawThread = Union[GraphThread, dict]


def avatar_url_for(name: str) -> str:
    """Deterministic generated avatar for a display name."""
    return AVATAR_URL_TEMPLATE.format(name=quote(name, safe=""))


def resolve_partner(thread: GraphThread, page_id: str) -> Optional[GraphParticipant]:
    """
    Find the counterparty of a thread.

    The first participant whose id differs from the page wins. When the
    participant list yields nobody, the sender of the first message not
    written by the page is used instead.
    """
    for participant in thread.participants:
        if participant.id and participant.id != page_id:
            return participant

    for message in thread.messages:
        sender = message.sender
        if sender is not None and sender.id and sender.id != page_id:
            return sender

    return None


def classify_sender(message: GraphMessage, page_id: str) -> MessageSender:
    # Anything that is not the page counts as the partner.
    if message.sender is not None and message.sender.id == page_id:
        return MessageSender.ME
    return MessageSender.PARTNER


def _parse_timestamp(message: GraphMessage, thread_id: str) -> int:
    try:
        timestamp = parse_graph_timestamp(message.created_time)
    except ValueError:
        timestamp = -1

    if timestamp < 0:
        logger.warning(
            "Message has no usable created_time",
            thread_id=thread_id,
            message_id=message.id,
            created_time=message.created_time
        )
        return 0
    return timestamp


def transform_message(message: GraphMessage, page_id: str, thread_id: str = "") -> Message:
    return Message(
        id=message.id,
        sender=classify_sender(message, page_id),
        text=message.message or ATTACHMENT_PLACEHOLDER_TEXT,
        timestamp=_parse_timestamp(message, thread_id),
    )


def transform_thread(thread: RawThread, page_id: str) -> Conversation:
    """
    Map one thread into a normalized Conversation.

    ``thread`` is normally a decoded ``GraphThread``. A raw dict is validated
    first, with the same per-message tolerance the decoder applies.
    """
    if not isinstance(thread, GraphThread):
        thread = GraphThread.model_validate(thread)

    partner = resolve_partner(thread, page_id)
    partner_name = (partner.name if partner else None) or FALLBACK_PARTNER_NAME
    partner_id = partner.id if partner else None

    # Graph returns newest first
    messages = [transform_message(m, page_id, thread.id) for m in reversed(thread.messages)]

    return Conversation(
        id=thread.id,
        partner_id=partner_id,
        partner_name=partner_name,
        avatar_url=avatar_url_for(partner_name),
        messages=messages,
        status=derive_status(messages),
    )


def transform_threads(threads: Iterable[RawThread], page_id: str) -> List[Conversation]:
    """Transform accumulated threads, keeping their order."""
    conversations = [transform_thread(thread, page_id) for thread in threads]

    unresolved = sum(1 for c in conversations if c.partner_id is None)
    if unresolved:
        logger.warning(
            "Conversations without a resolvable partner",
            count=unresolved,
            page_id=page_id
        )

    return conversations
