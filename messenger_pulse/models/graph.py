"""
Typed Graph API payloads.

Provider responses are decoded at the boundary into either the expected
success model or a ``GraphError``; untyped dictionaries never travel past
the transformer.
"""

from typing import Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from messenger_pulse.utils.logger import get_logger

logger = get_logger(__name__)


class GraphModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GraphErrorBody(GraphModel):
    """The ``error`` object Graph attaches to failed calls."""

    message: str = "Unknown Graph API error"
    code: Optional[int] = None
    type: Optional[str] = None
    error_subcode: Optional[int] = None
    fbtrace_id: Optional[str] = None


class GraphError(GraphModel):
    """Tagged failure variant of a decoded Graph response."""

    kind: Literal["error"] = "error"
    error: GraphErrorBody

    @property
    def code(self) -> Optional[int]:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message


class GraphUser(GraphModel):
    """Response of ``/me?fields=id,name``."""

    id: str
    name: str = ""


class GraphParticipant(GraphModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


def _unwrap_data(value: Any) -> List[Dict[str, Any]]:
    """Accept ``{"data": [...]}`` or a bare list; drop entries that are not objects."""
    if isinstance(value, dict):
        value = value.get("data")
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _valid_entries(value: Any, model: Type[GraphModel], edge: str) -> List[Any]:
    """
    Validate edge entries one by one, skipping the ones that do not fit.

    A single malformed message or thread must not cost the whole page.
    """
    entries = []
    for item in _unwrap_data(value):
        try:
            entries.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed Graph entry",
                edge=edge,
                entry_id=item.get("id"),
                errors=e.error_count()
            )
    return entries


class GraphMessage(GraphModel):
    id: str
    message: Optional[str] = None
    created_time: Optional[str] = None
    sender: Optional[GraphParticipant] = Field(default=None, alias="from")
    to: List[GraphParticipant] = Field(default_factory=list)

    @field_validator("sender", mode="before")
    @classmethod
    def drop_malformed_sender(cls, v):
        return v if isinstance(v, dict) else None

    @field_validator("to", mode="before")
    @classmethod
    def unwrap_recipients(cls, v):
        return _unwrap_data(v)


class GraphThread(GraphModel):
    """One conversation thread as returned by ``/{page}/conversations``."""

    id: str
    updated_time: Optional[str] = None
    participants: List[GraphParticipant] = Field(default_factory=list)
    messages: List[GraphMessage] = Field(default_factory=list)

    @field_validator("participants", mode="before")
    @classmethod
    def unwrap_participants(cls, v):
        return _unwrap_data(v)

    @field_validator("messages", mode="before")
    @classmethod
    def keep_valid_messages(cls, v):
        return _valid_entries(v, GraphMessage, "messages")


class GraphPaging(GraphModel):
    next: Optional[str] = None


class GraphThreadPage(GraphModel):
    data: List[GraphThread] = Field(default_factory=list)
    paging: Optional[GraphPaging] = None

    @field_validator("data", mode="before")
    @classmethod
    def keep_valid_threads(cls, v):
        return _valid_entries(v if isinstance(v, list) else [], GraphThread, "conversations")

    @property
    def next_url(self) -> Optional[str]:
        return self.paging.next if self.paging and self.paging.next else None


class GraphSendResult(GraphModel):
    recipient_id: Optional[str] = None
    message_id: Optional[str] = None


SuccessT = TypeVar("SuccessT", bound=BaseModel)


def decode_graph_payload(
        payload: Any,
        success_model: Type[SuccessT]
) -> Union[SuccessT, GraphError]:
    """
    Decode a JSON payload into ``success_model`` or a ``GraphError``.

    Raises:
        pydantic.ValidationError: If the payload matches neither shape
    """
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return GraphError.model_validate({"error": payload["error"]})
    return success_model.model_validate(payload)
