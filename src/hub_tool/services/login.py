"""Obtain a session, from the credential store or by logging in."""

from __future__ import annotations

import os

import structlog
from pydantic import SecretStr

from ..config import ClientConfig
from ..exceptions import AuthenticationError
from ..models.credentials import CredentialStore, Credentials, Session
from ..storage.auth import AuthSession, token_expired
from .prompt import Prompter

USERNAME_ENV = "DOCKER_USERNAME"
PASSWORD_ENV = "DOCKER_PASSWORD"


class LoginService:
    """Provides the once-per-invocation login step.

    The credential store is only read and written through its protocol;
    how it persists anything is not this class's concern.
    """

    def __init__(
        self,
        config: ClientConfig,
        auth: AuthSession,
        store: CredentialStore,
        prompter: Prompter,
    ) -> None:
        self._config = config
        self._auth = auth
        self._store = store
        self._prompter = prompter
        self._logger = structlog.get_logger(__name__)

    async def login(self, username: str, password: str) -> Session:
        """Log in, prompting for a second factor if needed, and remember
        the result in the credential store.
        """
        session = await self._auth.login(
            username, password, self._prompter.code_prompt()
        )
        self._store.store(
            Credentials(
                username=username,
                password=SecretStr(password),
                access_token=session.access_token,
                refresh_token=session.refresh_token,
            )
        )
        return session

    async def interactive_login(self, username: str | None = None) -> Session:
        """Log in with whatever the user supplies.

        The username comes from the argument, then ``DOCKER_USERNAME``, then
        a prompt; the password from ``DOCKER_PASSWORD``, then a prompt.
        """
        username = username or os.getenv(USERNAME_ENV, "")
        if not username:
            username = await self._prompter.ask("Username: ")
        password = os.getenv(PASSWORD_ENV, "")
        if not password:
            password = await self._prompter.ask_secret("Password: ")
        if not username or not password:
            raise AuthenticationError("username and password required")
        return await self.login(username, password)

    async def ensure_session(self) -> Session:
        """Return a usable session, logging in only if the cached token is
        missing or about to expire.

        Raises
        ------
        AuthenticationError
            Nothing usable is in the credential store.  No request is made.
        """
        creds = self._store.get()
        if not creds.username:
            raise AuthenticationError(
                "You need to be logged in to Docker Hub to use this tool"
            )
        token = ""
        if creds.access_token:
            token = creds.access_token.get_secret_value()
        if token and not token_expired(token, self._config.expiry_leeway):
            self._logger.debug(f"Reusing cached token for '{creds.username}'")
            return Session(
                username=creds.username,
                access_token=SecretStr(token),
                refresh_token=creds.refresh_token or SecretStr(""),
            )
        if not creds.password or not creds.password.get_secret_value():
            raise AuthenticationError(
                f"Token for '{creds.username}' expired and no password stored"
            )
        self._logger.debug(f"Token for '{creds.username}' expired")
        return await self.login(
            creds.username, creds.password.get_secret_value()
        )

    def logout(self) -> None:
        self._store.erase()
