"""
Application constants and enumerations.

This module defines all constant values, enumerations, and
defaults used throughout MessengerPulse.
"""

from enum import Enum

# Service Information
SERVICE_NAME = "messenger-pulse"
API_VERSION = "v1"
SERVICE_VERSION = "1.0.0"
SERVICE_DESCRIPTION = "Messenger inbox for Facebook Pages"

# API Configuration
API_PREFIX = f"/api/{API_VERSION}"

# Graph API
GRAPH_API_BASE_URL = "https://graph.facebook.com"
GRAPH_API_VERSION = "v19.0"
CONVERSATION_FIELDS_TEMPLATE = (
    "participants,updated_time,"
    "messages.limit({messages_per_thread}){{message,created_time,from,to}}"
)
MESSAGING_TYPE_RESPONSE = "RESPONSE"

# Graph error code for "this person isn't available right now"
GRAPH_ERROR_RECIPIENT_UNAVAILABLE = 551

# Pagination defaults
DEFAULT_MAX_PAGES = 6
DEFAULT_THREADS_PER_PAGE = 50
DEFAULT_MESSAGES_PER_THREAD = 50

# Retry defaults (delays in milliseconds)
DEFAULT_RETRY_BUDGET = 5
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_BACKOFF_MULTIPLIER = 1.5

# Mock mode
MOCK_TOKEN_PREFIX = "mock_"
MOCK_PAGE_ID = "1000123456789"
MOCK_PAGE_NAME = "Demo Shop"
MOCK_PAGE_DETAILS_NAME = "Demo Shop (Mock)"
MOCK_LOGIN_DELAY_MS = 2000
MOCK_CONVERSATIONS_DELAY_MS = 1200
MOCK_SEND_DELAY_MS = 800

# Conversation presentation
FALLBACK_PARTNER_NAME = "Facebook User"
ATTACHMENT_PLACEHOLDER_TEXT = "[Media/Attachment]"
AVATAR_URL_TEMPLATE = "https://ui-avatars.com/api/?name={name}&background=random&color=fff"
OVERDUE_THRESHOLD_HOURS = 24

DEFAULT_PRESET_MESSAGE = (
    "Hi! We haven't heard back from you. Are you still interested in the offer?"
)

# Persistence
CREDENTIAL_STORAGE_KEY = "auth_data"
DEFAULT_CREDENTIAL_STORE_PATH = ".messenger_pulse/storage.json"

# Follow-up generation
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
FOLLOW_UP_SELF_SPEAKER = "Me (Page)"
FOLLOW_UP_MISSING_KEY_TEXT = (
    "AI drafting is not configured. Set GEMINI_API_KEY to enable follow-up suggestions."
)
FOLLOW_UP_EMPTY_TEXT = "Could not generate a message."
FOLLOW_UP_ERROR_TEXT = "Error while generating the message. Check that a valid API key is configured."

RECIPIENT_UNAVAILABLE_MESSAGE = (
    "This person is not available right now (#551). "
    "Check the page permissions or whether the user has contacted you recently."
)


# Error Categories
class ErrorCategory(str, Enum):
    """Error categorization for monitoring."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"
    EXTERNAL = "external"
    NETWORK = "network"


# HTTP Status Code Mappings
HTTP_STATUS_CODES = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INTERNAL: 500,
    ErrorCategory.EXTERNAL: 502,
    ErrorCategory.NETWORK: 503,
}
