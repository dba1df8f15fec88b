"""Password and second-factor login against the Hub."""

from __future__ import annotations

import datetime
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeAlias

import httpx
import jwt
import structlog
from pydantic import BaseModel, SecretStr, ValidationError

from ..exceptions import (
    LoginError,
    StatusError,
    TwoFactorError,
    classify_response,
    extract_message,
)
from ..models.common import HubStr
from ..models.credentials import Session
from .http import HubHTTPClient

LOGIN_PATH = "/v2/users/login?refresh_token=true"
TWO_FACTOR_LOGIN_PATH = "/v2/users/2fa-login?refresh_token=true"
SECOND_FACTOR_DETAIL = (
    "Require secondary authentication on MFA enabled account"
)
DEFAULT_LEEWAY = datetime.timedelta(minutes=1)

CodePrompt: TypeAlias = Callable[[], Awaitable[str]]


class AuthState(Enum):
    """Where a login attempt currently stands."""

    UNAUTHENTICATED = "unauthenticated"
    SUBMITTED = "submitted"
    TWO_FACTOR_REQUIRED = "two_factor_required"
    CODE_SUBMITTED = "code_submitted"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class _TokenResponse(BaseModel):
    detail: HubStr = ""
    token: str
    refresh_token: HubStr = ""


class _TwoFactorResponse(BaseModel):
    detail: HubStr = ""
    login_2fa_token: HubStr = ""


def token_expired(
    token: str,
    leeway: datetime.timedelta = DEFAULT_LEEWAY,
    now: datetime.datetime | None = None,
) -> bool:
    """Decide whether a cached bearer token should be thrown away.

    The signature is not checked; only the ``exp`` claim matters.  A token
    that cannot be decoded counts as expired, so the caller logs in again.
    A token with no ``exp`` claim never expires.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return True
    exp = claims.get("exp")
    if exp is None:
        return False
    try:
        expiry = datetime.datetime.fromtimestamp(float(exp), tz=datetime.UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return True
    if now is None:
        now = datetime.datetime.now(tz=datetime.UTC)
    return expiry < now + leeway


class AuthSession:
    """Run the Hub login protocol, including the second-factor challenge.

    A network failure is not retried here; it propagates to the caller,
    which decides whether to prompt again.

    Parameters
    ----------
    http
        Request layer pointed at the Hub API.
    """

    def __init__(self, http: HubHTTPClient) -> None:
        self._http = http
        self._logger = structlog.get_logger(__name__)
        self.state = AuthState.UNAUTHENTICATED

    async def login(
        self, username: str, password: str, code_prompt: CodePrompt
    ) -> Session:
        """Log in and return a new `Session`.

        Parameters
        ----------
        username
            Hub username.
        password
            Password or personal access token.
        code_prompt
            Awaited for the six-digit code only if the account has second
            factor authentication enabled.  It may raise
            `~hub_tool.exceptions.OperationCancelledError`.

        Raises
        ------
        LoginError
            The Hub rejected the credentials.
        TwoFactorError
            The Hub rejected the second-factor code.
        HubError
            Any other failure, as classified from the response.
        """
        self.state = AuthState.SUBMITTED
        try:
            session = await self._login(username, password, code_prompt)
        except BaseException:
            self.state = AuthState.FAILED
            raise
        self.state = AuthState.AUTHENTICATED
        self._logger.info(f"Authenticated '{username}' to Docker Hub")
        return session

    async def _login(
        self, username: str, password: str, code_prompt: CodePrompt
    ) -> Session:
        r = await self._http.raw_request(
            "POST",
            self._http.url(LOGIN_PATH),
            json={"username": username, "password": password},
        )
        if r.status_code == httpx.codes.OK:
            creds = self._parse_token(r)
            return Session(
                username=username,
                access_token=SecretStr(creds.token),
            )
        if r.status_code == httpx.codes.UNAUTHORIZED:
            try:
                challenge = _TwoFactorResponse.model_validate_json(r.content)
            except ValidationError:
                raise classify_response(r) from None
            if challenge.detail != SECOND_FACTOR_DETAIL:
                raise LoginError(
                    challenge.detail or extract_message(r) or r.reason_phrase
                )
            self.state = AuthState.TWO_FACTOR_REQUIRED
            self._logger.debug("Second factor required")
            return await self._second_factor(
                username, challenge.login_2fa_token, code_prompt
            )
        raise classify_response(r)

    async def _second_factor(
        self, username: str, challenge_token: str, code_prompt: CodePrompt
    ) -> Session:
        code = await code_prompt()
        self.state = AuthState.CODE_SUBMITTED
        r = await self._http.raw_request(
            "POST",
            self._http.url(TWO_FACTOR_LOGIN_PATH),
            json={"code": code, "login_2fa_token": challenge_token},
        )
        if r.status_code != httpx.codes.OK:
            message = extract_message(r) or r.text or r.reason_phrase
            raise TwoFactorError(r.status_code, message)
        creds = self._parse_token(r)
        return Session(
            username=username,
            access_token=SecretStr(creds.token),
            refresh_token=SecretStr(creds.refresh_token),
        )

    def _parse_token(self, r: httpx.Response) -> _TokenResponse:
        try:
            return _TokenResponse.model_validate_json(r.content)
        except ValidationError:
            raise StatusError(
                r.status_code, "login response did not contain a token"
            ) from None
