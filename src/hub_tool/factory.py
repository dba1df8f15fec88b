"""Component factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from typing import Self

import httpx
import structlog
from structlog.stdlib import BoundLogger

from .config import ClientConfig
from .models.credentials import CredentialStore, Credentials, Session
from .services.login import LoginService
from .services.prompt import LineReader, Prompter
from .storage.auth import AuthSession
from .storage.http import HubHTTPClient
from .storage.hub import HubClient
from .storage.pagination import ResourceFetcher
from .storage.ratelimit import RateLimitProbe


class Factory:
    """Build client components around one shared HTTP client.

    Parameters
    ----------
    config
        Client configuration.
    http_client
        HTTP client used for every request.
    logger
        Logger to use for messages.
    owns_client
        Whether `aclose` should close ``http_client``.
    """

    @classmethod
    @asynccontextmanager
    async def standalone(
        cls,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> AsyncIterator[Self]:
        """Async context manager for client components.

        Parameters
        ----------
        config
            Client configuration.
        http_client
            HTTP client to use.  If not given, one is created and closed on
            exit.  The test suite passes one with a mock transport.

        Yields
        ------
        Factory
            Newly-created factory. Must be used as a context manager.
        """
        log_level = logging.DEBUG if config.debug else logging.INFO
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(log_level)
        )
        logger = structlog.get_logger(__name__)
        owns_client = http_client is None
        client = http_client or httpx.AsyncClient()
        factory = cls(config, client, logger, owns_client=owns_client)
        async with aclosing(factory):  # type: ignore[type-var]
            yield factory

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient,
        logger: BoundLogger,
        *,
        owns_client: bool = False,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._logger = logger
        self._owns_client = owns_client
        self._http = HubHTTPClient(config, http_client)
        self.cancel = asyncio.Event()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    def create_auth_session(self) -> AuthSession:
        return AuthSession(self._http)

    def create_prompter(
        self,
        reader: LineReader = input,
        secret_reader: LineReader | None = None,
    ) -> Prompter:
        if secret_reader is None:
            return Prompter(reader, cancel=self.cancel)
        return Prompter(reader, secret_reader, cancel=self.cancel)

    def create_login_service(
        self, store: CredentialStore, prompter: Prompter | None = None
    ) -> LoginService:
        return LoginService(
            self._config,
            self.create_auth_session(),
            store,
            prompter or self.create_prompter(),
        )

    def create_hub_client(self, session: Session) -> HubClient:
        return HubClient(self._http, session, self.cancel)

    def create_resource_fetcher(self, session: Session) -> ResourceFetcher:
        return ResourceFetcher(self._http, session)

    def create_rate_limit_probe(
        self, credentials: Credentials | None = None
    ) -> RateLimitProbe:
        return RateLimitProbe(self._http, credentials)
