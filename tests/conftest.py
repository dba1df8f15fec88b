"""Test fixtures for the Docker Hub client."""

from __future__ import annotations

import base64
import json
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any, TypeAlias

import httpx
import jwt
import pytest
import pytest_asyncio
import yaml

from hub_tool.config import ClientConfig, HubInstance
from hub_tool.factory import Factory
from hub_tool.models.credentials import Credentials, Session
from hub_tool.storage.hub import HubClient

API_URL = "https://hub.example.com"
REGISTRY_HOST = "registry.example.com"
TOKEN_URL = "https://auth.example.com/token?service=registry.example.com"
PROBE_URL = (
    f"https://{REGISTRY_HOST}/v2/ratelimitpreview/test/manifests/latest"
)

Handler: TypeAlias = Callable[
    [httpx.Request], httpx.Response | Awaitable[httpx.Response]
]


def make_token(expires_in: int | None) -> str:
    """Unsigned-key JWT as the Hub would issue it."""
    claims: dict[str, Any] = {"sub": "someone"}
    if expires_in is not None:
        claims["exp"] = int(time.time()) + expires_in
    return jwt.encode(
        claims, "a-test-signing-key-that-is-long-enough", algorithm="HS256"
    )


def basic_password(request: httpx.Request) -> str | None:
    """Return the password of a basic auth header, if any."""
    header = request.headers.get("authorization", "")
    if not header.startswith("Basic "):
        return None
    decoded = base64.b64decode(header[len("Basic ") :]).decode()
    return decoded.split(":", 1)[1]


def _route(url: httpx.URL) -> str:
    return f"{url.scheme}://{url.host}{url.path}"


def page(
    results: list[dict[str, Any]], count: int, next_url: str | None = None
) -> dict[str, Any]:
    return {
        "count": count,
        "next": next_url,
        "previous": None,
        "results": results,
    }


class MockHub:
    """Route table standing in for the Hub, the registry, and its auth."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        handler: Handler | None = None,
        *,
        status: int = 200,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Register a response for ``method`` on ``url`` (query ignored).

        Either pass a handler, or a canned status, JSON body and headers.
        """
        key = (method, _route(httpx.URL(url)))
        if handler is None:

            def handler(_: httpx.Request) -> httpx.Response:
                if body is None:
                    return httpx.Response(status, headers=headers)
                return httpx.Response(status, json=body, headers=headers)

        self._routes[key] = handler

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, _route(request.url))
        handler = self._routes.get(key)
        if handler is None:
            return httpx.Response(
                404, json={"detail": f"no route for {key[0]} {key[1]}"}
            )
        response = handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def requested(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path == path
        ]


@pytest.fixture
def config() -> ClientConfig:
    """Config pointing at the mock Hub."""
    return ClientConfig(
        instance=HubInstance(
            api_base_url=API_URL, registry_host=REGISTRY_HOST, official=False
        ),
        rate_limit_token_url=TOKEN_URL,
        rate_limit_probe_url=PROBE_URL,
        user_agent="hub-tool/test",
        debug=True,
    )


@pytest.fixture
def mock_hub() -> MockHub:
    return MockHub()


@pytest_asyncio.fixture
async def factory(
    config: ClientConfig, mock_hub: MockHub
) -> AsyncIterator[Factory]:
    """Factory whose HTTP client talks to the mock Hub."""
    transport = httpx.MockTransport(mock_hub.handle)
    async with httpx.AsyncClient(transport=transport) as client:
        async with Factory.standalone(config, http_client=client) as f:
            yield f


@pytest.fixture
def session() -> Session:
    return Session(username="fbooth", access_token=make_token(3600))


@pytest.fixture
def hub_client(factory: Factory, session: Session) -> HubClient:
    return factory.create_hub_client(session)


class MemoryCredentialStore:
    """Credential store that keeps everything in memory."""

    def __init__(self, credentials: Credentials | None = None) -> None:
        self.credentials = credentials or Credentials()
        self.stored: list[Credentials] = []

    def get(self) -> Credentials:
        return self.credentials

    def store(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.stored.append(credentials)

    def erase(self) -> None:
        self.credentials = Credentials()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """YAML configuration file."""
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump(
            {
                "page_size": 25,
                "expiry_leeway": "90s",
                "debug": True,
            }
        )
    )
    return path


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)
