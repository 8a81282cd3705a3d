"""
Canned inbox used in mock mode.

Timestamps are relative to the moment the dataset is built so the overdue
highlighting always shows the same mix of conversations.
"""

from typing import List, Optional

from messenger_pulse.config.constants import MOCK_PAGE_ID, MOCK_PAGE_DETAILS_NAME
from messenger_pulse.models.conversation import Conversation, Message, derive_status
from messenger_pulse.models.session import PageIdentity
from messenger_pulse.models.types import MessageSender
from messenger_pulse.utils.date_utils import hours_ago_ms, now_ms

MOCK_PAGE_IDENTITY = PageIdentity(id=MOCK_PAGE_ID, name=MOCK_PAGE_DETAILS_NAME)

# (conversation id, partner id, partner name, avatar seed, [(message id, sender, text, hours ago)])
_MOCK_THREADS = [
    ("c1", "mock_p1", "Ion Popescu", "ion", [
        ("m1", MessageSender.PARTNER, "Hello, how much does the service cost?", 48),
        ("m2", MessageSender.ME, "Hi Ion, the price is 200 RON.", 47),
    ]),
    ("c2", "mock_p2", "Maria Ionescu", "maria", [
        ("m3", MessageSender.PARTNER, "Do you deliver to Cluj?", 5),
        ("m4", MessageSender.ME, "Yes, we deliver anywhere in the country.", 2),
    ]),
    ("c3", "mock_p3", "Andrei Radu", "andrei", [
        ("m5", MessageSender.ME, "Here are the details you asked for.", 30),
        ("m6", MessageSender.PARTNER, "Thanks, I'll call you back.", 29),
    ]),
    ("c4", "mock_p4", "Elena Dumitrescu", "elena", [
        ("m7", MessageSender.PARTNER, "I'd like to make a reservation.", 100),
        ("m8", MessageSender.ME, "Sure, for what date?", 99),
    ]),
    ("c5", "mock_p5", "George Marin", "george", [
        ("m9", MessageSender.PARTNER, "Do you have it in stock?", 26),
        ("m10", MessageSender.ME, "Not right now, but we restock next week.", 25),
    ]),
]


def build_mock_conversations(reference_ms: Optional[int] = None) -> List[Conversation]:
    """Build the mock dataset relative to ``reference_ms`` (default: now)."""
    reference = now_ms() if reference_ms is None else reference_ms

    conversations = []
    for conversation_id, partner_id, partner_name, seed, raw_messages in _MOCK_THREADS:
        messages = [
            Message(
                id=message_id,
                sender=sender,
                text=text,
                timestamp=hours_ago_ms(hours, reference),
            )
            for message_id, sender, text, hours in raw_messages
        ]
        conversations.append(Conversation(
            id=conversation_id,
            partner_id=partner_id,
            partner_name=partner_name,
            avatar_url=f"https://picsum.photos/seed/{seed}/200/200",
            messages=messages,
            status=derive_status(messages),
        ))

    return conversations
