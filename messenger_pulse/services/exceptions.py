"""Service layer exceptions"""

from typing import Optional

from messenger_pulse.config.constants import ErrorCategory
from messenger_pulse.core.exceptions import CoreError


class ServiceError(CoreError):
    """Base exception for service layer errors"""

    def __init__(
            self,
            message: str,
            original_error: Optional[Exception] = None,
            error_code: Optional[str] = None,
            details: Optional[dict] = None
    ):
        super().__init__(message, error_code=error_code or "SERVICE_ERROR", details=details)
        self.original_error = original_error


class ValidationError(ServiceError):
    """Exception for input validation failures"""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details={"field": field})
        self.field = field
        self.value = value


class NotAuthenticatedError(ServiceError):
    """Exception raised when an operation needs a page session and none exists"""

    category = ErrorCategory.AUTHENTICATION

    def __init__(self, message: str = "Not logged in to a Facebook Page"):
        super().__init__(message, error_code="NOT_AUTHENTICATED")


class NotFoundError(ServiceError):
    """Exception for resource not found errors"""

    category = ErrorCategory.NOT_FOUND

    def __init__(
            self,
            message: str,
            resource_type: Optional[str] = None,
            resource_id: Optional[str] = None
    ):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class MissingPartnerError(ServiceError):
    """Exception raised when a conversation has no addressable partner"""

    category = ErrorCategory.CONFLICT

    def __init__(self, conversation_id: str):
        super().__init__(
            f"Conversation {conversation_id} has no partner id; cannot send",
            error_code="MISSING_PARTNER",
            details={"conversation_id": conversation_id}
        )
        self.conversation_id = conversation_id
