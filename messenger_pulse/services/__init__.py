"""
Service layer: inbox controller and session persistence.
"""

from messenger_pulse.services.base_service import BaseService
from messenger_pulse.services.credential_store import CredentialStore
from messenger_pulse.services.inbox_service import InboxService, InboxState, LoginResult
from messenger_pulse.services.exceptions import (
    ServiceError,
    ValidationError,
    NotAuthenticatedError,
    NotFoundError,
    MissingPartnerError,
)

__all__ = [
    "BaseService",
    "CredentialStore",
    "InboxService",
    "InboxState",
    "LoginResult",
    "ServiceError",
    "ValidationError",
    "NotAuthenticatedError",
    "NotFoundError",
    "MissingPartnerError",
]
