"""Thin request layer shared by every Hub component."""

from typing import Any

import httpx
import structlog

from ..config import ClientConfig
from ..exceptions import classify_response


class HubHTTPClient:
    """Send requests to the Hub with the standard headers.

    Every non-2xx response from `request` is turned into a `HubError` by
    `classify_response`.  Transport errors from httpx propagate unchanged.

    Headers are set per request rather than on the shared
    `httpx.AsyncClient`, so the bearer token of one caller is never visible
    to another.
    """

    def __init__(
        self, config: ClientConfig, http_client: httpx.AsyncClient
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._url = config.instance.api_base_url
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def url(self, path: str) -> str:
        return f"{self._url}{path}"

    def _headers(
        self, token: str | None, extra: dict[str, str] | None
    ) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": self._config.user_agent,
        }
        if token:
            headers["authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    async def raw_request(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | None = None,
    ) -> httpx.Response:
        """Send a request and return the response whatever its status."""
        self._logger.debug(f"HTTP {method} on: {url}")
        return await self._http_client.request(
            method,
            url,
            params=params,
            json=json,
            headers=self._headers(token, headers),
            auth=auth,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request, raising the classified error on failure."""
        r = await self.raw_request(
            method, url, token=token, params=params, json=json
        )
        if not r.is_success:
            self._logger.debug(
                f"bad status code {r.status_code} {r.reason_phrase}",
                method=method,
                url=url,
            )
            raise classify_response(r)
        return r

    async def get_json(
        self,
        url: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        r = await self.request("GET", url, token=token, params=params)
        return r.json()
