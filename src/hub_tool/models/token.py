"""Models for personal access tokens."""

from __future__ import annotations

import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr

from .common import HubStr


class AccessToken(BaseModel):
    """A personal access token.

    The Hub only returns ``secret`` in the response to the create call.  It
    is a `~pydantic.SecretStr` so that it never shows up in reprs or logs;
    callers that must show it once use ``get_secret_value()``.
    """

    uuid: UUID
    description: str = ""
    created_at: datetime.datetime | None = None
    last_used: datetime.datetime | None = None
    is_active: bool = True
    scopes: list[str] = Field(default_factory=list)
    client_id: str = ""
    generated_by: str = ""
    creator_ip: str = ""
    creator_user_agent: str = ""
    secret: Annotated[
        SecretStr | None,
        Field(
            title="Secret",
            description="Token value, present only right after creation.",
        ),
    ] = None


class HubTokenResult(BaseModel):
    uuid: str
    client_id: HubStr = ""
    creator_ip: HubStr = ""
    creator_ua: HubStr = ""
    created_at: datetime.datetime | None = None
    last_used: datetime.datetime | None = None
    generated_by: HubStr = ""
    is_active: bool = True
    token: HubStr = ""
    token_label: HubStr = ""
    scopes: list[str] | None = None

    def to_access_token(self) -> AccessToken:
        return AccessToken(
            uuid=UUID(self.uuid),
            description=self.token_label,
            created_at=self.created_at,
            last_used=self.last_used,
            is_active=self.is_active,
            scopes=self.scopes or [],
            client_id=self.client_id,
            generated_by=self.generated_by,
            creator_ip=self.creator_ip,
            creator_user_agent=self.creator_ua,
            secret=SecretStr(self.token) if self.token else None,
        )
