"""
Configuration package for MessengerPulse.

This package provides centralized configuration management with
environment-based settings, validation, and constants.
"""

from messenger_pulse.config.settings import get_settings, reload_settings, Settings
from messenger_pulse.config.constants import (
    SERVICE_NAME,
    SERVICE_VERSION,
    API_VERSION,
    API_PREFIX,
    MOCK_TOKEN_PREFIX,
    CREDENTIAL_STORAGE_KEY,
)

__all__ = [
    "get_settings",
    "reload_settings",
    "Settings",
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "API_VERSION",
    "API_PREFIX",
    "MOCK_TOKEN_PREFIX",
    "CREDENTIAL_STORAGE_KEY",
]
