"""
Page credential record.

Replaced wholesale on login and refresh and persisted as JSON between
restarts. A token carrying the mock prefix selects simulated mode.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from messenger_pulse.config.constants import MOCK_TOKEN_PREFIX
from messenger_pulse.models.types import PageId


class PageIdentity(BaseModel):
    """Canonical page id and name as reported by the Graph API."""

    model_config = ConfigDict(frozen=True)

    id: PageId
    name: str


class PageSession(BaseModel):
    """Authenticated page credential."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    access_token: str = Field(..., min_length=1)
    page_id: PageId
    page_name: str

    def is_mock(self, prefix: str = MOCK_TOKEN_PREFIX) -> bool:
        return self.access_token.startswith(prefix)

    @classmethod
    def from_identity(cls, access_token: str, identity: PageIdentity) -> "PageSession":
        return cls(access_token=access_token, page_id=identity.id, page_name=identity.name)
