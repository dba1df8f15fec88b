"""Query the registry for the caller's current pull rate limits."""

from __future__ import annotations

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..exceptions import AuthenticationError, HubError, RateLimitParseError
from ..models.credentials import Credentials
from ..models.ratelimits import UNKNOWN, RateLimits
from .http import HubHTTPClient

LIMIT_HEADER = "Ratelimit-Limit"
REMAINING_HEADER = "Ratelimit-Remaining"
SOURCE_HEADER = "docker-Ratelimit-Source"


class _RegistryToken(BaseModel):
    token: str


def parse_limit_header(header: str, value: str) -> tuple[int, int]:
    """Split ``"<count>;w=<window-seconds>"`` into ``(count, window)``."""
    parts = value.split(";")
    if len(parts) != 2:
        raise RateLimitParseError(header, value)
    window = parts[1].split("=")
    if len(window) != 2:
        raise RateLimitParseError(header, value)
    try:
        return int(parts[0].strip()), int(window[1].strip())
    except ValueError:
        raise RateLimitParseError(header, value) from None


class RateLimitProbe:
    """Obtain a registry token by any means available and read the limits.

    The token is requested, in order: anonymously, with the password, with
    the refresh token, and with the access token.  The first rung that
    works is used; failures of earlier rungs are only logged.  This works
    without an interactive login.

    Parameters
    ----------
    http
        Request layer.  Only its headers and config are used; the probe
        talks to the registry hosts, not the Hub API.
    credentials
        Whatever the credential store has for the user, if anything.
    """

    def __init__(
        self, http: HubHTTPClient, credentials: Credentials | None = None
    ) -> None:
        self._http = http
        self._config = http.config
        self._credentials = credentials or Credentials()
        self._logger = structlog.get_logger(__name__)

    def _ladder(self) -> list[tuple[str, httpx.Auth | None]]:
        creds = self._credentials
        rungs: list[tuple[str, httpx.Auth | None]] = [("anonymous", None)]
        for name, secret in (
            ("password", creds.password),
            ("refresh token", creds.refresh_token),
            ("access token", creds.access_token),
        ):
            if creds.username and secret and secret.get_secret_value():
                auth = httpx.BasicAuth(
                    creds.username, secret.get_secret_value()
                )
                rungs.append((name, auth))
        return rungs

    async def _get_token(self, auth: httpx.Auth | None) -> str:
        r = await self._http.raw_request(
            "GET", self._config.rate_limit_token_url, auth=auth
        )
        if r.status_code != httpx.codes.OK:
            raise AuthenticationError("unable to get authorization token")
        return _RegistryToken.model_validate_json(r.content).token

    async def get_token(self) -> str:
        """Walk the ladder and return the first token obtained.

        Raises
        ------
        AuthenticationError
            Every rung failed.  The last rung's error is the cause.
        """
        last_error: Exception | None = None
        for name, auth in self._ladder():
            try:
                token = await self._get_token(auth)
            except (HubError, httpx.HTTPError, ValidationError) as e:
                self._logger.debug(
                    f"Could not get registry token ({name})", error=str(e)
                )
                last_error = e
                continue
            self._logger.debug(f"Got registry token ({name})")
            return token
        raise AuthenticationError(
            "unable to get authorization token"
        ) from last_error

    async def probe(self) -> RateLimits:
        """Return the current rate limits.

        Missing headers are not an error: every numeric field is then
        `~hub_tool.models.ratelimits.UNKNOWN`.

        Raises
        ------
        RateLimitParseError
            A header was present but malformed.
        """
        token = await self.get_token()
        r = await self._http.raw_request(
            "HEAD", self._config.rate_limit_probe_url, token=token
        )
        limit_header = r.headers.get(LIMIT_HEADER, "")
        remaining_header = r.headers.get(REMAINING_HEADER, "")
        source = r.headers.get(SOURCE_HEADER, "")
        if not limit_header or not remaining_header:
            self._logger.debug("Registry sent no rate limit headers")
            return RateLimits(
                limit=UNKNOWN,
                limit_window=UNKNOWN,
                remaining=UNKNOWN,
                remaining_window=UNKNOWN,
                source=source,
            )
        limit, limit_window = parse_limit_header(LIMIT_HEADER, limit_header)
        remaining, remaining_window = parse_limit_header(
            REMAINING_HEADER, remaining_header
        )
        return RateLimits(
            limit=limit,
            limit_window=limit_window,
            remaining=remaining,
            remaining_window=remaining_window,
            source=source,
        )
