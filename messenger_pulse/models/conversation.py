"""
Normalized conversation model.

Conversations and messages are immutable; every change produces a new
object so that the inbox state can be swapped as a whole.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from messenger_pulse.config.constants import OVERDUE_THRESHOLD_HOURS
from messenger_pulse.models.types import (
    ConversationId, ConversationStatus, DeliveryStatus, MessageId, MessageSender, Psid
)
from messenger_pulse.utils.date_utils import MS_PER_HOUR, now_ms


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Message(_FrozenModel):
    """A single message, ordered by ``timestamp`` (epoch millis)."""

    id: MessageId
    sender: MessageSender
    text: str
    timestamp: int = Field(..., ge=0)
    delivery_status: DeliveryStatus = DeliveryStatus.DELIVERED

    def with_delivery_status(self, status: DeliveryStatus) -> "Message":
        return self.model_copy(update={"delivery_status": status})


def derive_status(messages: List[Message]) -> ConversationStatus:
    """
    Derive the reply state from the chronologically last message.

    Returns ``waiting_for_partner`` when the page wrote last,
    ``waiting_for_me`` when anyone else did and ``active`` for an empty thread.
    """
    if not messages:
        return ConversationStatus.ACTIVE
    if messages[-1].sender == MessageSender.ME:
        return ConversationStatus.WAITING_FOR_PARTNER
    return ConversationStatus.WAITING_FOR_ME


class Conversation(_FrozenModel):
    """A two-party thread between the page and one partner."""

    id: ConversationId
    partner_id: Optional[Psid] = None
    partner_name: str
    avatar_url: str
    messages: List[Message] = Field(default_factory=list)
    status: ConversationStatus = ConversationStatus.ACTIVE

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    @property
    def last_message_at(self) -> int:
        last = self.last_message
        return last.timestamp if last else 0

    def is_overdue(
            self,
            reference_ms: Optional[int] = None,
            threshold_hours: float = OVERDUE_THRESHOLD_HOURS
    ) -> bool:
        """True when the page wrote last and has waited at least ``threshold_hours``."""
        last = self.last_message
        if last is None or last.sender != MessageSender.ME:
            return False
        reference = now_ms() if reference_ms is None else reference_ms
        return reference - last.timestamp >= threshold_hours * MS_PER_HOUR

    def matches_name(self, term: str) -> bool:
        return term.lower() in self.partner_name.lower()

    def matches_content(self, term: str) -> bool:
        needle = term.lower()
        return any(needle in message.text.lower() for message in self.messages)

    def with_message(self, message: Message) -> "Conversation":
        """Return a copy with ``message`` appended and the status re-derived."""
        messages = [*self.messages, message]
        return self.model_copy(update={"messages": messages, "status": derive_status(messages)})

    def with_replaced_message(self, message: Message) -> "Conversation":
        """Return a copy where the message sharing ``message.id`` is swapped in."""
        messages = [message if m.id == message.id else m for m in self.messages]
        return self.model_copy(update={"messages": messages})


class DashboardStats(_FrozenModel):
    """Inbox counters shown next to the conversation list."""

    total: int = 0
    overdue: int = 0
    responded: int = 0
    awaiting_reply: int = 0
    today_messages: int = 0
