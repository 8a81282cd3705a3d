"""
Facebook Graph API client for page identity, conversation listing and the
Send API.

Tokens carrying the mock prefix never reach the network: the client answers
from the canned dataset after a simulated delay.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from messenger_pulse.config.constants import (
    CONVERSATION_FIELDS_TEMPLATE,
    GRAPH_ERROR_RECIPIENT_UNAVAILABLE,
    MESSAGING_TYPE_RESPONSE,
    MOCK_PAGE_ID,
    MOCK_PAGE_NAME,
)
from messenger_pulse.config.settings import Settings
from messenger_pulse.core.exceptions import (
    ConversationFetchError,
    GraphAPIError,
    GraphTransportError,
    RecipientUnavailableError,
    SendMessageError,
    TokenInvalidError,
)
from messenger_pulse.core.graph.mock_data import MOCK_PAGE_IDENTITY, build_mock_conversations
from messenger_pulse.core.graph.retry import RetryPolicy, fetch_with_retry
from messenger_pulse.core.graph.transformer import transform_threads
from messenger_pulse.models.conversation import Conversation
from messenger_pulse.models.graph import (
    GraphError,
    GraphSendResult,
    GraphThread,
    GraphThreadPage,
    GraphUser,
    decode_graph_payload,
)
from messenger_pulse.models.session import PageIdentity, PageSession
from messenger_pulse.utils.date_utils import now_ms
from messenger_pulse.utils.logger import get_logger
from messenger_pulse.utils.metrics import MetricsCollector

SleepFunc = Callable[[float], Awaitable[Any]]


class GraphClient:
    """Async client for the subset of the Graph API the inbox needs."""

    def __init__(
            self,
            settings: Settings,
            http_client: Optional[httpx.AsyncClient] = None,
            sleep: SleepFunc = asyncio.sleep,
            metrics: Optional[MetricsCollector] = None
    ):
        self.settings = settings
        self.base_url = settings.graph_api_url
        self.retry_policy = RetryPolicy.from_settings(settings)
        self.sleep = sleep
        self.metrics = metrics
        self.logger = get_logger(self.__class__.__name__)

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            headers={"User-Agent": "MessengerPulse/1.0 GraphClient"}
        )

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    def is_mock_token(self, access_token: str) -> bool:
        return self.settings.is_mock_token(access_token)

    async def _simulate_delay(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await self.sleep(delay_ms / 1000)

    async def _request(
            self,
            method: str,
            url: str,
            operation: str,
            success_model: Type[BaseModel],
            **request_kwargs: Any
    ):
        """
        Run a retried request and decode the body.

        Returns:
            An instance of ``success_model`` or a ``GraphError``

        Raises:
            GraphTransportError: When the retry budget is exhausted
            GraphAPIError: When the body is neither JSON nor a known shape
        """
        response = await fetch_with_retry(
            self.http_client,
            method,
            url,
            policy=self.retry_policy,
            operation=operation,
            sleep=self.sleep,
            metrics=self.metrics,
            **request_kwargs
        )

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphAPIError(
                message=f"Graph API returned a non-JSON body (HTTP {response.status_code})",
                error_code="GRAPH_INVALID_RESPONSE"
            ) from e

        try:
            return decode_graph_payload(payload, success_model)
        except PydanticValidationError as e:
            raise GraphAPIError(
                message=f"Unexpected Graph API response for {operation}",
                error_code="GRAPH_INVALID_RESPONSE"
            ) from e

    async def get_page_details(self, access_token: str) -> PageIdentity:
        """
        Resolve the canonical identity behind an access token.

        Raises:
            TokenInvalidError: If Graph rejects the token
            GraphTransportError: If the API cannot be reached
        """
        if self.is_mock_token(access_token):
            return MOCK_PAGE_IDENTITY

        result = await self._request(
            "GET",
            f"{self.base_url}/me",
            operation="page_details",
            success_model=GraphUser,
            params={"fields": "id,name", "access_token": access_token}
        )

        if isinstance(result, GraphError):
            self.logger.warning(
                "Access token rejected",
                code=result.code,
                error=result.message
            )
            raise TokenInvalidError(result.message, code=result.code)

        self.logger.info("Resolved page identity", page_id=result.id, page_name=result.name)
        return PageIdentity(id=result.id, name=result.name)

    async def simulate_login(self) -> PageSession:
        """Produce a demo session after the simulated login delay."""
        await self._simulate_delay(self.settings.MOCK_LOGIN_DELAY_MS)
        return PageSession(
            access_token=f"{self.settings.MOCK_TOKEN_PREFIX}access_token_{now_ms()}",
            page_id=MOCK_PAGE_ID,
            page_name=MOCK_PAGE_NAME,
        )

    def _conversations_params(self, access_token: str) -> Dict[str, Any]:
        return {
            "fields": CONVERSATION_FIELDS_TEMPLATE.format(
                messages_per_thread=self.settings.MESSAGES_PER_THREAD
            ),
            "limit": self.settings.THREADS_PER_PAGE,
            "access_token": access_token,
        }

    async def fetch_conversations(self, page_id: str, access_token: str) -> List[Conversation]:
        """
        List the page's conversations, following cursor pagination.

        At most ``MAX_CONVERSATION_PAGES`` pages are requested. A failure on
        the first page is raised; a failure on a later page ends pagination
        and the threads gathered so far are returned.

        Raises:
            ConversationFetchError: If the first page carries a Graph error
            GraphTransportError: If the first page cannot be fetched
        """
        if self.is_mock_token(access_token):
            await self._simulate_delay(self.settings.MOCK_CONVERSATIONS_DELAY_MS)
            return build_mock_conversations()

        threads: List[GraphThread] = []
        max_pages = self.settings.MAX_CONVERSATION_PAGES
        # paging.next already embeds fields, limit and the token
        url: Optional[str] = f"{self.base_url}/{page_id}/conversations"
        params: Optional[Dict[str, Any]] = self._conversations_params(access_token)
        pages = 0

        while url and pages < max_pages:
            page_number = pages + 1
            try:
                result = await self._request(
                    "GET",
                    url,
                    operation="conversations",
                    success_model=GraphThreadPage,
                    params=params
                )
            except (GraphTransportError, GraphAPIError) as e:
                self._record_page("failed")
                if page_number == 1:
                    raise
                self._log_partial(page_number, len(threads), str(e))
                break

            if isinstance(result, GraphError):
                self._record_page("failed")
                if page_number == 1:
                    raise ConversationFetchError(result.message, code=result.code)
                self._log_partial(page_number, len(threads), result.message)
                break

            self._record_page("ok")
            threads.extend(result.data)
            pages = page_number
            url = result.next_url
            params = None

        if url and pages >= max_pages:
            self.logger.info(
                "Conversation page cap reached",
                page_id=page_id,
                max_pages=max_pages,
                threads=len(threads)
            )

        self.logger.info(
            "Fetched conversations",
            page_id=page_id,
            pages=pages,
            threads=len(threads)
        )
        return transform_threads(threads, page_id)

    def _record_page(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_conversation_page(outcome)

    def _log_partial(self, page_number: int, collected: int, error: str) -> None:
        self.logger.warning(
            "Conversation page failed, returning partial result",
            page=page_number,
            threads_collected=collected,
            error=error
        )

    async def send_message(self, recipient_id: str, text: str, access_token: str) -> bool:
        """
        Send a text reply through the Send API.

        Raises:
            RecipientUnavailableError: On Graph error 551
            SendMessageError: On any other Graph error
            GraphTransportError: If the API cannot be reached
        """
        if self.is_mock_token(access_token):
            await self._simulate_delay(self.settings.MOCK_SEND_DELAY_MS)
            self._record_sent(True)
            return True

        body = {
            "recipient": {"id": recipient_id},
            "message": {"text": text},
            "messaging_type": MESSAGING_TYPE_RESPONSE,
        }

        try:
            result = await self._request(
                "POST",
                f"{self.base_url}/me/messages",
                operation="send_message",
                success_model=GraphSendResult,
                params={"access_token": access_token},
                json=body
            )
        except (GraphTransportError, GraphAPIError):
            self._record_sent(False)
            raise

        if isinstance(result, GraphError):
            self._record_sent(False)
            self.logger.warning(
                "Send API rejected message",
                recipient_id=recipient_id,
                code=result.code,
                error=result.message
            )
            if result.code == GRAPH_ERROR_RECIPIENT_UNAVAILABLE:
                raise RecipientUnavailableError(result.message, code=result.code)
            raise SendMessageError(result.message, code=result.code)

        self._record_sent(True)
        self.logger.info(
            "Message sent",
            recipient_id=recipient_id,
            message_id=result.message_id
        )
        return True

    def _record_sent(self, success: bool) -> None:
        if self.metrics:
            self.metrics.record_message_sent(success)
