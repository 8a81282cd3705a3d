"""
Request and response models for the HTTP API.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from messenger_pulse.models.conversation import Conversation, Message
from messenger_pulse.models.session import PageSession


class TokenRequest(BaseModel):
    """Body of login and refresh; omit the token for a demo session."""

    access_token: Optional[str] = Field(None, description="Facebook Page access token")


class SendMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000, description="Message text")


class PresetMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Preset follow-up text")


class SessionResponse(BaseModel):
    authenticated: bool
    page_id: Optional[str] = None
    page_name: Optional[str] = None
    mock: bool = False

    @classmethod
    def from_session(cls, session: Optional[PageSession]) -> "SessionResponse":
        if session is None:
            return cls(authenticated=False)
        return cls(
            authenticated=True,
            page_id=session.page_id,
            page_name=session.page_name,
            mock=session.is_mock(),
        )


class ConversationView(BaseModel):
    """A conversation plus the read-time overdue flag."""

    conversation: Conversation
    is_overdue: bool


class ConversationListResponse(BaseModel):
    conversations: List[ConversationView]
    total: int


class LoginResponse(BaseModel):
    session: SessionResponse
    conversations: List[ConversationView] = Field(default_factory=list)
    conversations_error: Optional[str] = None


class SendMessageResponse(BaseModel):
    message: Message
    conversation: Conversation


class FollowUpResponse(BaseModel):
    conversation_id: str
    text: str


class PresetMessageResponse(BaseModel):
    text: str
