"""
Core exceptions for the Graph API integration.

Transport failures (network errors, 5xx after the retry budget) and
provider-level application errors (JSON ``error`` objects) are kept apart:
the former are retried, the latter never are.
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone

from messenger_pulse.config.constants import (
    ErrorCategory, HTTP_STATUS_CODES, RECIPIENT_UNAVAILABLE_MESSAGE
)


class CoreError(Exception):
    """Base exception for all core errors."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    status_code: Optional[int] = None

    def __init__(
            self,
            message: str,
            error_code: Optional[str] = None,
            details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }

    def http_status(self) -> int:
        """HTTP status used when the error reaches the API layer."""
        return self.status_code or HTTP_STATUS_CODES[self.category]


class GraphTransportError(CoreError):
    """Raised when a Graph request keeps failing at the transport level."""

    category = ErrorCategory.NETWORK

    def __init__(
            self,
            operation: str,
            message: str,
            status_code: Optional[int] = None,
            attempts: int = 1
    ):
        super().__init__(
            message=f"Graph API {operation} failed after {attempts} attempt(s): {message}",
            error_code="GRAPH_TRANSPORT_ERROR",
            details={
                "operation": operation,
                "status_code": status_code,
                "attempts": attempts
            }
        )
        self.operation = operation
        self.upstream_status = status_code
        self.attempts = attempts


class GraphAPIError(CoreError):
    """Raised when a Graph response carries an ``error`` object."""

    category = ErrorCategory.EXTERNAL

    def __init__(
            self,
            message: str,
            code: Optional[int] = None,
            error_code: Optional[str] = None,
            provider_message: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code or "GRAPH_API_ERROR",
            details={"provider_code": code, "provider_message": provider_message or message}
        )
        self.code = code
        self.provider_message = provider_message or message


class TokenInvalidError(GraphAPIError):
    """Raised when the access token cannot be resolved to a page identity."""

    category = ErrorCategory.AUTHENTICATION

    def __init__(self, provider_message: str, code: Optional[int] = None):
        super().__init__(
            message=provider_message,
            code=code,
            error_code="TOKEN_INVALID",
            provider_message=provider_message
        )


class ConversationFetchError(GraphAPIError):
    """Raised when the conversation listing fails on its first page."""

    def __init__(self, provider_message: str, code: Optional[int] = None):
        super().__init__(
            message=f"Facebook API Error: {provider_message}",
            code=code,
            error_code="CONVERSATION_FETCH_ERROR",
            provider_message=provider_message
        )


class SendMessageError(GraphAPIError):
    """Raised when the Send API rejects an outbound message."""

    def __init__(
            self,
            provider_message: str,
            code: Optional[int] = None,
            message: Optional[str] = None,
            error_code: str = "SEND_MESSAGE_ERROR"
    ):
        super().__init__(
            message=message or f"Facebook Send API Error: (#{code}) {provider_message}",
            code=code,
            error_code=error_code,
            provider_message=provider_message
        )


class RecipientUnavailableError(SendMessageError):
    """Raised for Send API error 551: the person cannot be reached right now."""

    category = ErrorCategory.VALIDATION
    status_code = 422

    def __init__(self, provider_message: str, code: Optional[int] = 551):
        super().__init__(
            provider_message=provider_message,
            code=code,
            message=RECIPIENT_UNAVAILABLE_MESSAGE,
            error_code="RECIPIENT_UNAVAILABLE"
        )
