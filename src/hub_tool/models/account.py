"""Models for accounts, plans, and consumption."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

from .common import HubStr


class Account(BaseModel):
    """A user or organization."""

    id: str = ""
    name: str
    full_name: str = ""
    location: str = ""
    company: str = ""
    joined: datetime.datetime | None = None


class HubUserResponse(BaseModel):
    id: HubStr = ""
    username: str
    full_name: HubStr = ""
    location: HubStr = ""
    company: HubStr = ""
    gravatar_email: HubStr = ""
    gravatar_url: HubStr = ""
    is_staff: bool = False
    is_admin: bool = False
    profile_url: HubStr = ""
    date_joined: datetime.datetime | None = None
    type: HubStr = ""

    def to_account(self) -> Account:
        return Account(
            id=self.id,
            name=self.username,
            full_name=self.full_name,
            location=self.location,
            company=self.company,
            joined=self.date_joined,
        )


class HubOrgInfoResponse(BaseModel):
    id: HubStr = ""
    orgname: str
    full_name: HubStr = ""
    location: HubStr = ""
    company: HubStr = ""
    gravatar_email: HubStr = ""
    gravatar_url: HubStr = ""
    profile_url: HubStr = ""
    date_joined: datetime.datetime | None = None
    type: HubStr = ""

    def to_account(self) -> Account:
        return Account(
            id=self.id,
            name=self.orgname,
            full_name=self.full_name,
            location=self.location,
            company=self.company,
            joined=self.date_joined,
        )


class PlanLimits(BaseModel):
    seats: int = 0
    private_repos: int = 0
    teams: int = 0
    collaborators: int = 0
    parallel_builds: int = 0


class Plan(BaseModel):
    """Current Hub plan of an account.

    ``name`` is the raw plan name from the billing API, such as ``team``.
    """

    name: str
    limits: PlanLimits = Field(default_factory=PlanLimits)


class HubPlanResponse(BaseModel):
    name: str
    legacy: bool = False
    seats: int = 0
    private_repos: int = 0
    teams: int = 0
    collaborators: int = 0
    parallel_builds: int = 0
    duration: HubStr = ""

    def to_plan(self) -> Plan:
        return Plan(
            name=self.name,
            limits=PlanLimits(
                seats=self.seats,
                private_repos=self.private_repos,
                teams=self.teams,
                collaborators=self.collaborators,
                parallel_builds=self.parallel_builds,
            ),
        )


class Consumption(BaseModel):
    """What an account currently uses against its plan limits."""

    seats: int = 0
    private_repositories: int = 0
    teams: int = 0
