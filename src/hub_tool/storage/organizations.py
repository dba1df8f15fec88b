"""Organizations, with their teams and members filled in concurrently."""

from __future__ import annotations

import asyncio

import structlog
from pydantic import TypeAdapter

from ..models.organization import (
    HubGroupResult,
    HubMemberResult,
    HubOrganizationResult,
    Member,
    Organization,
    Team,
    role_for,
)
from .http import HubHTTPClient
from .pagination import ResourceFetcher
from .tasks import gather_or_raise, race_cancellation

ORGANIZATIONS_PATH = "/v2/user/orgs/"
GROUPS_PATH = "/v2/orgs/{org}/groups/"
MEMBERS_PATH = "/v2/orgs/{org}/members/"
TEAM_MEMBERS_PATH = "/v2/orgs/{org}/groups/{team}/members/"

_member_list = TypeAdapter(list[HubMemberResult])


class OrganizationAggregator:
    """Build complete organizations out of several dependent fetches.

    Every organization on a page fans out into a teams fetch and a members
    fetch; every team in turn fans out into a team-members fetch.  All of
    them run at once, with no cap.  The first failure anywhere aborts the
    whole aggregation, and nothing fetched so far is returned.

    Parameters
    ----------
    http
        Request layer pointed at the Hub API.
    fetcher
        Paginated fetcher carrying the session's bearer token.
    cancel
        Default cancellation event for `fetch_organizations`.
    """

    def __init__(
        self,
        http: HubHTTPClient,
        fetcher: ResourceFetcher,
        cancel: asyncio.Event | None = None,
    ) -> None:
        self._http = http
        self._fetcher = fetcher
        self._cancel = cancel
        self._logger = structlog.get_logger(__name__)

    async def fetch_organizations(
        self, cancel: asyncio.Event | None = None
    ) -> list[Organization]:
        """Return every organization the user belongs to, sorted by name.

        Parameters
        ----------
        cancel
            If set before the aggregation completes, in-flight fetches are
            abandoned and `~hub_tool.exceptions.OperationCancelledError` is
            raised.  Defaults to the event given at construction.
        """
        if cancel is None:
            cancel = self._cancel
        return await race_cancellation(self._fetch_organizations(), cancel)

    async def _fetch_organizations(self) -> list[Organization]:
        url = self._http.url(ORGANIZATIONS_PATH)
        params = {"page_size": self._fetcher.page_size, "page": 1}
        page = await self._fetcher.fetch_page(
            url, HubOrganizationResult, params
        )
        organizations: list[Organization] = []
        while True:
            organizations.extend(
                await gather_or_raise(
                    *(self._populate(res) for res in page.results)
                )
            )
            if not page.next:
                break
            page = await self._fetcher.fetch_page(
                page.next, HubOrganizationResult
            )
        # Completion order is arbitrary; sort for stable output.
        organizations.sort(key=lambda o: o.namespace)
        self._logger.debug(f"Found {len(organizations)} organizations")
        return organizations

    async def _populate(self, result: HubOrganizationResult) -> Organization:
        teams, members = await gather_or_raise(
            self.fetch_teams(result.orgname),
            self.fetch_members(result.orgname),
        )
        return Organization(
            namespace=result.orgname,
            full_name=result.full_name,
            role=role_for(teams),
            teams=teams,
            members=members,
        )

    async def fetch_teams(self, organization: str) -> list[Team]:
        """Return all teams of an organization, each with its members."""
        url = self._http.url(GROUPS_PATH.format(org=organization))
        params = {"page_size": self._fetcher.page_size, "page": 1}
        page = await self._fetcher.fetch_page(url, HubGroupResult, params)
        teams: list[Team] = []
        while True:
            teams.extend(
                await gather_or_raise(
                    *(self._team(organization, g) for g in page.results)
                )
            )
            if not page.next:
                break
            page = await self._fetcher.fetch_page(page.next, HubGroupResult)
        teams.sort(key=lambda t: t.name)
        return teams

    async def _team(self, organization: str, group: HubGroupResult) -> Team:
        members = await self.fetch_team_members(organization, group.name)
        return Team(
            name=group.name, description=group.description, members=members
        )

    async def fetch_members(self, organization: str) -> list[Member]:
        """Return all members of an organization."""
        url = self._http.url(MEMBERS_PATH.format(org=organization))
        result = await self._fetcher.fetch_all(
            url, HubMemberResult, exhaustive=True
        )
        return [m.to_member() for m in result.items]

    async def fetch_team_members(
        self, organization: str, team: str
    ) -> list[Member]:
        """Return the members of one team.  This endpoint is not paginated."""
        url = self._http.url(
            TEAM_MEMBERS_PATH.format(org=organization, team=team)
        )
        data = await self._fetcher.get_json(url)
        return [m.to_member() for m in _member_list.validate_python(data)]

    async def members_count(self, organization: str) -> int:
        url = self._http.url(MEMBERS_PATH.format(org=organization))
        return await self._fetcher.count(url)

    async def teams_count(self, organization: str) -> int:
        url = self._http.url(GROUPS_PATH.format(org=organization))
        return await self._fetcher.count(url)
