"""
Metrics collection for MessengerPulse.

Prometheus collectors live on a dedicated registry so that several
collectors (for instance one per test) never clash on metric names.
"""

from typing import Optional, Tuple

from prometheus_client import (
    Counter, Histogram, Info,
    CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
)

from messenger_pulse.config.constants import SERVICE_NAME, SERVICE_VERSION
from messenger_pulse.utils.logger import get_logger

logger = get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection.

    Tracks Graph API traffic, retries, outbound messages and AI drafts.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._setup_prometheus_metrics()

        logger.debug("Metrics collector initialized", service=SERVICE_NAME)

    def _setup_prometheus_metrics(self) -> None:
        """Setup Prometheus metrics collectors."""
        self.graph_requests = Counter(
            'messenger_pulse_graph_requests_total',
            'Graph API requests by operation and outcome',
            ['operation', 'outcome'],
            registry=self.registry
        )

        self.graph_request_duration = Histogram(
            'messenger_pulse_graph_request_duration_seconds',
            'Graph API request duration including retries',
            ['operation'],
            registry=self.registry
        )

        self.graph_retries = Counter(
            'messenger_pulse_graph_retries_total',
            'Transient Graph API failures that were retried',
            ['reason'],
            registry=self.registry
        )

        self.conversation_pages = Counter(
            'messenger_pulse_conversation_pages_total',
            'Conversation pages fetched',
            ['outcome'],
            registry=self.registry
        )

        self.messages_sent = Counter(
            'messenger_pulse_messages_sent_total',
            'Outbound messages by outcome',
            ['outcome'],
            registry=self.registry
        )

        self.follow_up_drafts = Counter(
            'messenger_pulse_follow_up_drafts_total',
            'AI follow-up drafts by outcome',
            ['outcome'],
            registry=self.registry
        )

        self.service_info = Info(
            'messenger_pulse_info',
            'Service information',
            registry=self.registry
        )
        self.service_info.info({
            'version': SERVICE_VERSION,
            'service': SERVICE_NAME
        })

    def record_graph_request(self, operation: str, outcome: str, duration: float) -> None:
        """Record one Graph API call (all of its attempts)."""
        self.graph_requests.labels(operation=operation, outcome=outcome).inc()
        self.graph_request_duration.labels(operation=operation).observe(duration)

    def record_retry(self, reason: str) -> None:
        self.graph_retries.labels(reason=reason).inc()

    def record_conversation_page(self, outcome: str) -> None:
        self.conversation_pages.labels(outcome=outcome).inc()

    def record_message_sent(self, success: bool) -> None:
        self.messages_sent.labels(outcome="success" if success else "failure").inc()

    def record_follow_up(self, outcome: str) -> None:
        self.follow_up_drafts.labels(outcome=outcome).inc()

    def render(self) -> Tuple[bytes, str]:
        """Return the exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
