"""
HTTP API: routers are aggregated under the versioned prefix.
"""

from fastapi import APIRouter

from messenger_pulse.api.routes import (
    auth_router,
    conversation_router,
    stats_router,
    settings_router,
)
from messenger_pulse.config.constants import API_PREFIX

api_router = APIRouter(prefix=API_PREFIX)

api_router.include_router(auth_router)
api_router.include_router(conversation_router)
api_router.include_router(stats_router)
api_router.include_router(settings_router)

__all__ = ["api_router"]
