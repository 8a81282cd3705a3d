"""
Models package: normalized inbox models and typed Graph API payloads.
"""

from messenger_pulse.models.types import (
    MessageSender,
    ConversationStatus,
    DeliveryStatus,
)
from messenger_pulse.models.conversation import (
    Message,
    Conversation,
    DashboardStats,
    derive_status,
)
from messenger_pulse.models.session import PageIdentity, PageSession
from messenger_pulse.models.graph import (
    GraphError,
    GraphErrorBody,
    GraphUser,
    GraphThread,
    GraphThreadPage,
    GraphSendResult,
    decode_graph_payload,
)

__all__ = [
    "MessageSender",
    "ConversationStatus",
    "DeliveryStatus",
    "Message",
    "Conversation",
    "DashboardStats",
    "derive_status",
    "PageIdentity",
    "PageSession",
    "GraphError",
    "GraphErrorBody",
    "GraphUser",
    "GraphThread",
    "GraphThreadPage",
    "GraphSendResult",
    "decode_graph_payload",
]
