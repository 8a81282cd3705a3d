"""
Graph API integration: retrying transport, thread transformation, mock data
and the client that ties them together.
"""

from messenger_pulse.core.graph.client import GraphClient
from messenger_pulse.core.graph.retry import RetryPolicy, fetch_with_retry
from messenger_pulse.core.graph.transformer import transform_thread, transform_threads
from messenger_pulse.core.graph.mock_data import build_mock_conversations, MOCK_PAGE_IDENTITY

__all__ = [
    "GraphClient",
    "RetryPolicy",
    "fetch_with_retry",
    "transform_thread",
    "transform_threads",
    "build_mock_conversations",
    "MOCK_PAGE_IDENTITY",
]
