"""Client for the Docker Hub management API."""

from __future__ import annotations

import asyncio

import structlog

from ..exceptions import AuthenticationError
from ..models.account import (
    Account,
    Consumption,
    HubOrgInfoResponse,
    HubPlanResponse,
    HubUserResponse,
    Plan,
)
from ..models.credentials import Session
from ..models.organization import Organization
from ..models.page import FetchResult
from ..models.repository import (
    HubRepositoryResult,
    HubTagResult,
    Repository,
    RepositoryOrdering,
    Tag,
    TagOrdering,
    repository_path,
)
from ..models.token import AccessToken, HubTokenResult
from .http import HubHTTPClient
from .organizations import OrganizationAggregator
from .pagination import ResourceFetcher
from .tasks import gather_or_raise

REPOSITORIES_PATH = "/v2/repositories/"
TAGS_PATH = "/v2/repositories/{repo}/tags/"
TAG_PATH = "/v2/repositories/{repo}/tags/{tag}/"
TOKENS_PATH = "/v2/api_tokens"
TOKEN_PATH = "/v2/api_tokens/{uuid}"
USER_PATH = "/v2/user/"
ORG_INFO_PATH = "/v2/orgs/{org}"
PLAN_PATH = "/api/billing/v4/accounts/{id}/hub-plan"


class HubClient:
    """Authenticated operations against the Hub.

    A client is bound to one `Session` for its lifetime.  Logging in again
    produces a new session; use `with_session` to get a client for it.

    Parameters
    ----------
    http
        Request layer pointed at the Hub API.
    session
        Session providing the bearer token and the default account name.
    cancel
        Cancellation event observed by organization aggregation unless a
        call passes its own.
    """

    def __init__(
        self,
        http: HubHTTPClient,
        session: Session,
        cancel: asyncio.Event | None = None,
    ) -> None:
        if not session.token:
            raise AuthenticationError("no access token in session")
        self._http = http
        self._session = session
        self._cancel = cancel
        self._fetcher = ResourceFetcher(http, session)
        self.organizations = OrganizationAggregator(
            http, self._fetcher, cancel
        )
        self._logger = structlog.get_logger(__name__)

    @property
    def session(self) -> Session:
        return self._session

    def with_session(self, session: Session) -> HubClient:
        return HubClient(self._http, session, self._cancel)

    async def _send(
        self, method: str, path: str, json: object = None
    ) -> object:
        r = await self._http.request(
            method, self._http.url(path), token=self._session.token, json=json
        )
        if not r.content:
            return None
        return r.json()

    # Repositories

    async def get_repositories(
        self,
        account: str | None = None,
        *,
        exhaustive: bool = False,
        ordering: RepositoryOrdering = RepositoryOrdering.LAST_UPDATED,
    ) -> FetchResult[Repository]:
        """List repositories of an account (the session user by default)."""
        account = account or self._session.username
        url = self._http.url(f"{REPOSITORIES_PATH}{account}")
        result = await self._fetcher.fetch_all(
            url,
            HubRepositoryResult,
            exhaustive=exhaustive,
            params={"ordering": ordering.value},
        )
        return FetchResult(
            items=[r.to_repository() for r in result.items],
            count=result.count,
        )

    async def create_repository(
        self, repository: str, description: str = "", *, private: bool = False
    ) -> Repository:
        namespace, _, name = repository.rpartition("/")
        body = {
            "registry": "docker",
            "namespace": namespace or self._session.username,
            "name": name,
            "description": description,
            "is_private": private,
        }
        data = await self._send("POST", REPOSITORIES_PATH, body)
        self._logger.info(f"Created repository {repository}")
        return HubRepositoryResult.model_validate(data).to_repository()

    async def remove_repository(self, repository: str) -> None:
        """Delete ``account/name``."""
        await self._send("DELETE", f"{REPOSITORIES_PATH}{repository}/")
        self._logger.info(f"Deleted repository {repository}")

    # Tags

    async def get_tags(
        self,
        repository: str,
        *,
        exhaustive: bool = False,
        ordering: TagOrdering | None = None,
    ) -> FetchResult[Tag]:
        repo = repository_path(repository)
        url = self._http.url(TAGS_PATH.format(repo=repo))
        params = {"ordering": ordering.value} if ordering else None
        result = await self._fetcher.fetch_all(
            url, HubTagResult, exhaustive=exhaustive, params=params
        )
        return FetchResult(
            items=[t.to_tag(repository) for t in result.items],
            count=result.count,
        )

    async def remove_tag(self, repository: str, tag: str) -> None:
        repo = repository_path(repository)
        await self._send("DELETE", TAG_PATH.format(repo=repo, tag=tag))
        self._logger.info(f"Deleted tag {repository}:{tag}")

    # Personal access tokens

    async def create_token(self, description: str) -> AccessToken:
        """Create a token.  The result is the only time its secret is seen."""
        data = await self._send(
            "POST", TOKENS_PATH, {"token_label": description}
        )
        token = HubTokenResult.model_validate(data).to_access_token()
        self._logger.info(f"Created access token {token.uuid}")
        return token

    async def get_tokens(
        self, *, exhaustive: bool = False
    ) -> FetchResult[AccessToken]:
        result = await self._fetcher.fetch_all(
            self._http.url(TOKENS_PATH), HubTokenResult, exhaustive=exhaustive
        )
        return FetchResult(
            items=[t.to_access_token() for t in result.items],
            count=result.count,
        )

    async def get_token(self, uuid: str) -> AccessToken:
        data = await self._send("GET", TOKEN_PATH.format(uuid=uuid))
        return HubTokenResult.model_validate(data).to_access_token()

    async def update_token(
        self, uuid: str, description: str = "", *, is_active: bool
    ) -> AccessToken:
        """Change a token's description (if given) and whether it is active."""
        body: dict[str, object] = {"is_active": is_active}
        if description:
            body["token_label"] = description
        data = await self._send("PATCH", TOKEN_PATH.format(uuid=uuid), body)
        return HubTokenResult.model_validate(data).to_access_token()

    async def remove_token(self, uuid: str) -> None:
        await self._send("DELETE", TOKEN_PATH.format(uuid=uuid))
        self._logger.info(f"Deleted access token {uuid}")

    # Accounts

    async def get_user_info(self) -> Account:
        data = await self._send("GET", USER_PATH)
        return HubUserResponse.model_validate(data).to_account()

    async def get_organization_info(self, organization: str) -> Account:
        data = await self._send("GET", ORG_INFO_PATH.format(org=organization))
        return HubOrgInfoResponse.model_validate(data).to_account()

    async def get_hub_plan(self, account_id: str) -> Plan:
        data = await self._send("GET", PLAN_PATH.format(id=account_id))
        return HubPlanResponse.model_validate(data).to_plan()

    async def get_organizations(
        self, cancel: asyncio.Event | None = None
    ) -> list[Organization]:
        return await self.organizations.fetch_organizations(cancel)

    async def _private_repository_count(self, account: str) -> int:
        repos = await self.get_repositories(account, exhaustive=True)
        return len([r for r in repos.items if r.is_private])

    async def get_org_consumption(self, organization: str) -> Consumption:
        """Seats, teams, and private repositories used by an organization."""
        seats, teams, private = await gather_or_raise(
            self.organizations.members_count(organization),
            self.organizations.teams_count(organization),
            self._private_repository_count(organization),
        )
        return Consumption(
            seats=seats, teams=teams, private_repositories=private
        )

    async def get_user_consumption(self, user: str) -> Consumption:
        private = await self._private_repository_count(user)
        return Consumption(seats=1, teams=0, private_repositories=private)
