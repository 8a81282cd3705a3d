"""
Inbox API Routes

REST endpoints for the page session, conversations, dashboard counters and
the preset follow-up message.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from messenger_pulse.api.dependencies import get_inbox_service
from messenger_pulse.api.schemas import (
    ConversationListResponse,
    ConversationView,
    FollowUpResponse,
    LoginResponse,
    PresetMessageRequest,
    PresetMessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionResponse,
    TokenRequest,
)
from messenger_pulse.models.conversation import Conversation, DashboardStats
from messenger_pulse.services.inbox_service import InboxService

InboxDep = Annotated[InboxService, Depends(get_inbox_service)]

auth_router = APIRouter(prefix="/auth", tags=["auth"])
conversation_router = APIRouter(prefix="/conversations", tags=["conversations"])
stats_router = APIRouter(prefix="/stats", tags=["stats"])
settings_router = APIRouter(prefix="/settings", tags=["settings"])


def _views(inbox: InboxService, conversations: List[Conversation]) -> List[ConversationView]:
    return [
        ConversationView(conversation=c, is_overdue=inbox.is_overdue(c))
        for c in conversations
    ]


@auth_router.post(
    "/login",
    response_model=LoginResponse,
    response_model_by_alias=False,
    summary="Log in to a Facebook Page",
    description="Validate a page access token, or start a demo session when none is given"
)
async def login(request: TokenRequest, inbox: InboxDep) -> LoginResponse:
    result = await inbox.login(request.access_token)
    return LoginResponse(
        session=SessionResponse.from_session(result.session),
        conversations=_views(inbox, result.conversations),
        conversations_error=result.conversations_error,
    )


@auth_router.post(
    "/refresh",
    response_model=ConversationListResponse,
    response_model_by_alias=False,
    summary="Re-validate the token and reload conversations"
)
async def refresh(request: TokenRequest, inbox: InboxDep) -> ConversationListResponse:
    conversations = await inbox.refresh(request.access_token)
    return ConversationListResponse(
        conversations=_views(inbox, conversations),
        total=len(conversations),
    )


@auth_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
async def logout(inbox: InboxDep) -> None:
    inbox.logout()


@auth_router.get("/session", response_model=SessionResponse, summary="Current session")
async def get_session(inbox: InboxDep) -> SessionResponse:
    return SessionResponse.from_session(inbox.session)


@conversation_router.get(
    "",
    response_model=ConversationListResponse,
    response_model_by_alias=False,
    summary="List conversations",
    description="Newest first; optionally only overdue ones or those matching a search term"
)
async def list_conversations(
        inbox: InboxDep,
        overdue_only: bool = False,
        q: Annotated[Optional[str], Query(max_length=200)] = None
) -> ConversationListResponse:
    conversations = inbox.list_conversations(overdue_only=overdue_only, search=q)
    return ConversationListResponse(
        conversations=_views(inbox, conversations),
        total=len(conversations),
    )


@conversation_router.get(
    "/{conversation_id}",
    response_model=ConversationView,
    response_model_by_alias=False,
    summary="Get one conversation"
)
async def get_conversation(conversation_id: str, inbox: InboxDep) -> ConversationView:
    conversation = inbox.get_conversation(conversation_id)
    return ConversationView(conversation=conversation, is_overdue=inbox.is_overdue(conversation))


@conversation_router.post(
    "/{conversation_id}/messages",
    response_model=SendMessageResponse,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
    summary="Send a reply"
)
async def send_message(
        conversation_id: str,
        request: SendMessageRequest,
        inbox: InboxDep
) -> SendMessageResponse:
    message = await inbox.send_message(conversation_id, request.text)
    return SendMessageResponse(
        message=message,
        conversation=inbox.get_conversation(conversation_id),
    )


@conversation_router.post(
    "/{conversation_id}/follow-up",
    response_model=FollowUpResponse,
    summary="Draft a follow-up with AI"
)
async def draft_follow_up(conversation_id: str, inbox: InboxDep) -> FollowUpResponse:
    text = await inbox.draft_follow_up(conversation_id)
    return FollowUpResponse(conversation_id=conversation_id, text=text)


@stats_router.get(
    "",
    response_model=DashboardStats,
    response_model_by_alias=False,
    summary="Dashboard counters"
)
async def get_stats(inbox: InboxDep) -> DashboardStats:
    return inbox.stats()


@settings_router.get("/preset-message", response_model=PresetMessageResponse)
async def get_preset_message(inbox: InboxDep) -> PresetMessageResponse:
    return PresetMessageResponse(text=inbox.get_preset_message())


@settings_router.put("/preset-message", response_model=PresetMessageResponse)
async def set_preset_message(
        request: PresetMessageRequest,
        inbox: InboxDep
) -> PresetMessageResponse:
    return PresetMessageResponse(text=inbox.set_preset_message(request.text))


@settings_router.delete("/preset-message", response_model=PresetMessageResponse)
async def reset_preset_message(inbox: InboxDep) -> PresetMessageResponse:
    return PresetMessageResponse(text=inbox.reset_preset_message())
