"""Models for user credentials and the session derived from them."""

from __future__ import annotations

from typing import Annotated, Protocol

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class Credentials(BaseModel):
    """Everything a credential store holds for one user."""

    username: Annotated[
        str,
        Field(title="Username", examples=["fbooth"]),
    ] = ""

    password: Annotated[
        SecretStr | None,
        Field(
            title="Password",
            description="Password or personal access token.",
            examples=["hunter2"],
        ),
    ] = None

    access_token: Annotated[
        SecretStr | None,
        Field(title="Access token", description="Bearer token."),
    ] = None

    refresh_token: Annotated[
        SecretStr | None,
        Field(
            title="Refresh token",
            description="Refresh token issued by a second-factor login.",
        ),
    ] = None


class Session(BaseModel):
    """The bearer credential for one process invocation.

    Frozen: a refreshed login yields a new `Session` rather than changing
    this one.
    """

    model_config = ConfigDict(frozen=True)

    username: str = ""
    access_token: SecretStr = SecretStr("")
    refresh_token: SecretStr = SecretStr("")

    @property
    def token(self) -> str:
        return self.access_token.get_secret_value()


class CredentialStore(Protocol):
    """Where credentials live between invocations."""

    def get(self) -> Credentials: ...

    def store(self, credentials: Credentials) -> None: ...

    def erase(self) -> None: ...
