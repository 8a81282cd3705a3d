"""
Inbox Service

Owns the page session, the current conversation list and the preset
follow-up text. State is an immutable ``InboxState`` swapped as a whole on
every transition; the session is persisted through the credential store
whenever it changes.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from messenger_pulse.config.constants import DEFAULT_PRESET_MESSAGE, OVERDUE_THRESHOLD_HOURS
from messenger_pulse.core.ai.followup import FollowUpGenerator
from messenger_pulse.core.exceptions import CoreError
from messenger_pulse.core.graph.client import GraphClient
from messenger_pulse.models.conversation import Conversation, DashboardStats, Message
from messenger_pulse.models.session import PageSession
from messenger_pulse.models.types import ConversationStatus, DeliveryStatus, MessageSender
from messenger_pulse.services.base_service import BaseService
from messenger_pulse.services.credential_store import CredentialStore
from messenger_pulse.services.exceptions import (
    MissingPartnerError,
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)
from messenger_pulse.utils.date_utils import now_ms, start_of_day_ms


@dataclass(frozen=True)
class InboxState:
    session: Optional[PageSession] = None
    conversations: Tuple[Conversation, ...] = ()
    preset_message: str = DEFAULT_PRESET_MESSAGE


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a login; a failed initial load is reported, not raised."""

    session: PageSession
    conversations: List[Conversation] = field(default_factory=list)
    conversations_error: Optional[str] = None


class InboxService(BaseService):
    """Controller for the page inbox"""

    def __init__(
            self,
            graph_client: GraphClient,
            credential_store: CredentialStore,
            follow_up_generator: FollowUpGenerator,
            overdue_threshold_hours: float = OVERDUE_THRESHOLD_HOURS,
            clock: Callable[[], int] = now_ms
    ):
        super().__init__()
        self.graph_client = graph_client
        self.credential_store = credential_store
        self.follow_up_generator = follow_up_generator
        self.overdue_threshold_hours = overdue_threshold_hours
        self.clock = clock
        self._state = InboxState()

    @property
    def state(self) -> InboxState:
        return self._state

    @property
    def session(self) -> Optional[PageSession]:
        return self._state.session

    @property
    def is_authenticated(self) -> bool:
        return self._state.session is not None

    def _require_session(self) -> PageSession:
        session = self._state.session
        if session is None:
            raise NotAuthenticatedError()
        return session

    def _set_session(self, session: PageSession) -> None:
        self._state = replace(self._state, session=session)
        self.credential_store.save(session)

    def _set_conversations(self, conversations: List[Conversation]) -> None:
        self._state = replace(self._state, conversations=tuple(conversations))

    # Session lifecycle

    async def restore(self) -> Optional[PageSession]:
        """
        Load a persisted session and refresh it in the background of startup.

        A failing refresh is logged; the restored session stays active.
        """
        session = self.credential_store.load()
        if session is None:
            self.logger.info("No persisted session")
            return None

        self._state = replace(self._state, session=session)
        self.log_operation("restore_session", page_id=session.page_id)

        try:
            await self.refresh()
        except CoreError as e:
            self.logger.warning(
                "Silent refresh of restored session failed",
                page_id=session.page_id,
                error_code=e.error_code,
                error=e.message
            )

        return self._state.session

    async def login(self, access_token: Optional[str] = None) -> LoginResult:
        """
        Authenticate against a page, or start a demo session without a token.

        The stored page id and name always come from the identity Graph
        reports for the token.

        Raises:
            ValidationError: If a blank token is given
            TokenInvalidError: If the token is rejected
        """
        if access_token is None:
            session = await self.graph_client.simulate_login()
        else:
            token = access_token.strip()
            if not token:
                raise ValidationError("Access token must not be blank", field="access_token")
            identity = await self.graph_client.get_page_details(token)
            session = PageSession.from_identity(token, identity)

        self._set_session(session)
        self.log_operation(
            "login",
            page_id=session.page_id,
            page_name=session.page_name,
            mock=session.is_mock()
        )

        try:
            conversations = await self.graph_client.fetch_conversations(
                session.page_id, session.access_token
            )
        except Exception as e:
            error = self.handle_service_error(e, "initial_load", page_id=session.page_id)
            self.logger.warning(
                "Starting with an empty inbox",
                page_id=session.page_id,
                error_code=error.error_code
            )
            self._set_conversations([])
            return LoginResult(session=session, conversations=[], conversations_error=error.message)

        self._set_conversations(conversations)
        return LoginResult(session=session, conversations=self.list_conversations())

    async def refresh(self, access_token: Optional[str] = None) -> List[Conversation]:
        """
        Re-validate the token, replace the session and reload conversations.

        Raises:
            NotAuthenticatedError: If no token is given and none is stored
        """
        token = (access_token or "").strip()
        if not token:
            token = self._require_session().access_token

        try:
            identity = await self.graph_client.get_page_details(token)
            session = PageSession.from_identity(token, identity)
            self._set_session(session)

            conversations = await self.graph_client.fetch_conversations(
                session.page_id, session.access_token
            )
        except Exception as e:
            raise self.handle_service_error(e, "refresh")

        self._set_conversations(conversations)
        self.log_operation(
            "refresh",
            page_id=session.page_id,
            conversations=len(conversations)
        )
        return self.list_conversations()

    def logout(self) -> None:
        page_id = self._state.session.page_id if self._state.session else None
        self._state = replace(self._state, session=None, conversations=())
        self.credential_store.clear()
        self.log_operation("logout", page_id=page_id)

    # Queries

    def list_conversations(
            self,
            overdue_only: bool = False,
            search: Optional[str] = None
    ) -> List[Conversation]:
        """
        Conversations newest first, optionally filtered.

        Search is case-insensitive: partner-name matches come first, then
        conversations matching only on message text.
        """
        conversations = sorted(
            self._state.conversations,
            key=lambda c: c.last_message_at,
            reverse=True
        )

        if overdue_only:
            reference = self.clock()
            conversations = [
                c for c in conversations
                if c.is_overdue(reference, self.overdue_threshold_hours)
            ]

        term = (search or "").strip()
        if term:
            by_name = [c for c in conversations if c.matches_name(term)]
            by_content = [
                c for c in conversations
                if not c.matches_name(term) and c.matches_content(term)
            ]
            conversations = by_name + by_content

        return conversations

    def get_conversation(self, conversation_id: str) -> Conversation:
        for conversation in self._state.conversations:
            if conversation.id == conversation_id:
                return conversation
        raise NotFoundError(
            f"Conversation {conversation_id} not found",
            resource_type="conversation",
            resource_id=conversation_id
        )

    def is_overdue(self, conversation: Conversation) -> bool:
        return conversation.is_overdue(self.clock(), self.overdue_threshold_hours)

    def stats(self) -> DashboardStats:
        reference = self.clock()
        day_start = start_of_day_ms(reference)
        conversations = self._state.conversations

        return DashboardStats(
            total=len(conversations),
            overdue=sum(
                1 for c in conversations
                if c.is_overdue(reference, self.overdue_threshold_hours)
            ),
            responded=sum(
                1 for c in conversations if c.status == ConversationStatus.WAITING_FOR_PARTNER
            ),
            awaiting_reply=sum(
                1 for c in conversations if c.status == ConversationStatus.WAITING_FOR_ME
            ),
            today_messages=sum(
                1 for c in conversations for m in c.messages if m.timestamp >= day_start
            ),
        )

    # Commands

    def _replace_conversation(self, conversation: Conversation) -> None:
        self._state = replace(
            self._state,
            conversations=tuple(
                conversation if c.id == conversation.id else c
                for c in self._state.conversations
            )
        )

    def _mark_delivery(self, conversation_id: str, message: Message, status: DeliveryStatus) -> Message:
        updated = message.with_delivery_status(status)
        # The conversation may be gone after a concurrent refresh or logout
        for conversation in self._state.conversations:
            if conversation.id == conversation_id:
                self._replace_conversation(conversation.with_replaced_message(updated))
                break
        return updated

    async def send_message(self, conversation_id: str, text: str) -> Message:
        """
        Send a reply, appending it optimistically before the network call.

        The appended message ends up ``sent`` or ``failed``; on failure the
        provider error is re-raised after marking.

        Raises:
            NotAuthenticatedError: Without a session
            NotFoundError: For an unknown conversation
            ValidationError: For blank text
            MissingPartnerError: When the partner id is unknown
        """
        session = self._require_session()
        conversation = self.get_conversation(conversation_id)

        if not text or not text.strip():
            raise ValidationError("Message text must not be blank", field="text")
        if not conversation.partner_id:
            raise MissingPartnerError(conversation_id)

        pending = Message(
            id=f"local_{uuid.uuid4().hex}",
            sender=MessageSender.ME,
            text=text,
            timestamp=self.clock(),
            delivery_status=DeliveryStatus.PENDING,
        )
        self._replace_conversation(conversation.with_message(pending))

        try:
            await self.graph_client.send_message(
                conversation.partner_id, text, session.access_token
            )
        except Exception as e:
            self._mark_delivery(conversation_id, pending, DeliveryStatus.FAILED)
            raise self.handle_service_error(
                e,
                "send_message",
                conversation_id=conversation_id,
                recipient_id=conversation.partner_id
            )

        sent = self._mark_delivery(conversation_id, pending, DeliveryStatus.SENT)
        self.log_operation(
            "send_message",
            page_id=session.page_id,
            conversation_id=conversation_id
        )
        return sent

    async def draft_follow_up(self, conversation_id: str) -> str:
        conversation = self.get_conversation(conversation_id)
        return await self.follow_up_generator.generate(
            conversation.partner_name, conversation.messages
        )

    # Preset message

    def get_preset_message(self) -> str:
        return self._state.preset_message

    def set_preset_message(self, text: str) -> str:
        if not text or not text.strip():
            raise ValidationError("Preset message must not be blank", field="text")
        self._state = replace(self._state, preset_message=text)
        return text

    def reset_preset_message(self) -> str:
        self._state = replace(self._state, preset_message=DEFAULT_PRESET_MESSAGE)
        return DEFAULT_PRESET_MESSAGE
