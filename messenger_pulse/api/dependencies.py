"""
FastAPI dependency providers.

Long-lived components are created in the application lifespan and kept on
``app.state`` and handed to the routes from there.
"""

from fastapi import Request

from messenger_pulse.services.inbox_service import InboxService


def get_inbox_service(request: Request) -> InboxService:
    return request.app.state.inbox_service
