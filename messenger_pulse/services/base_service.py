"""
Base Service Class

Abstract base class for services providing structured logging and
error handling helpers.
"""

from abc import ABC
from typing import Dict, Any, Optional
from datetime import datetime, timezone

import structlog

from messenger_pulse.core.exceptions import CoreError
from messenger_pulse.services.exceptions import ServiceError

SENSITIVE_FIELDS = ("token", "secret", "key", "password", "credential", "authorization")


class BaseService(ABC):
    """Abstract base class for all services"""

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)
        self.service_name = self.__class__.__name__

    def log_operation(
            self,
            operation: str,
            page_id: Optional[str] = None,
            **kwargs
    ) -> None:
        """Log service operation with standard fields"""
        log_data = {
            "service": self.service_name,
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **self._sanitize_log_data(kwargs)
        }

        if page_id:
            log_data["page_id"] = page_id

        self.logger.info("Service operation", **log_data)

    def handle_service_error(
            self,
            error: Exception,
            operation: str,
            **context
    ) -> CoreError:
        """
        Log a failed operation and return the error to raise

        Errors from the known hierarchy are returned as-is; anything else
        is wrapped in a ServiceError.
        """
        error_context = {
            "service": self.service_name,
            "operation": operation,
            "error_type": type(error).__name__,
            "error_message": str(error),
            **self._sanitize_log_data(context)
        }

        self.logger.error("Service operation failed", **error_context)

        if isinstance(error, CoreError):
            return error

        return ServiceError(
            f"{operation} failed: {str(error)}",
            original_error=error
        )

    def _sanitize_log_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Remove sensitive data from log entries"""
        sanitized = {}
        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_log_data(value)
            else:
                sanitized[key] = value

        return sanitized
