"""
Common type definitions and enums used across the application.
"""

from enum import Enum


class MessageSender(str, Enum):
    """Which side of a two-party thread wrote a message"""
    ME = "me"
    PARTNER = "partner"


class ConversationStatus(str, Enum):
    """Reply state of a conversation, derived from its last message"""
    ACTIVE = "active"
    WAITING_FOR_PARTNER = "waiting_for_partner"
    WAITING_FOR_ME = "waiting_for_me"


class DeliveryStatus(str, Enum):
    """Local delivery state of a message"""
    DELIVERED = "delivered"
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


PageId = str
ConversationId = str
MessageId = str
Psid = str
