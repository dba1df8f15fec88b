"""Models for organizations, teams, and members."""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from .common import HubStr

OWNERS_TEAM = "owners"


class OrganizationRole(Enum):
    """Role of the logged-in user within an organization.

    The Hub does not report this; it is derived from team membership.
    """

    OWNER = "Owner"
    MEMBER = "Member"


class Member(BaseModel):
    """A user who belongs to an organization or team."""

    username: str
    full_name: HubStr = ""


class Team(BaseModel):
    """A team (the Hub calls these "groups") within an organization."""

    name: str
    description: HubStr = ""
    members: list[Member] = Field(default_factory=list)


class Organization(BaseModel):
    """A fully-populated organization.

    Instances are only built once teams and members are both known.
    """

    namespace: Annotated[
        str, Field(title="Namespace", description="Organization name.")
    ]
    full_name: HubStr = ""
    role: OrganizationRole = OrganizationRole.MEMBER
    teams: list[Team] = Field(default_factory=list)
    members: list[Member] = Field(default_factory=list)


def role_for(teams: list[Team]) -> OrganizationRole:
    """Owner if any team is literally named ``owners``."""
    for team in teams:
        if team.name == OWNERS_TEAM:
            return OrganizationRole.OWNER
    return OrganizationRole.MEMBER


class HubOrganizationResult(BaseModel):
    """Organization as returned by ``/v2/user/orgs/``."""

    orgname: str
    full_name: HubStr = ""
    company: HubStr = ""
    location: HubStr = ""
    type: HubStr = ""
    date_joined: datetime.datetime | None = None
    gravatar_email: HubStr = ""
    gravatar_url: HubStr = ""
    profile_url: HubStr = ""
    id: HubStr = ""


class HubGroupResult(BaseModel):
    """Team as returned by ``/v2/orgs/{org}/groups/``."""

    name: str
    description: HubStr = ""
    id: int = 0


class HubMemberResult(BaseModel):
    """Member as returned by the members endpoints."""

    username: str
    full_name: HubStr = ""
    company: HubStr = ""
    location: HubStr = ""
    type: HubStr = ""
    date_joined: datetime.datetime | None = None
    id: HubStr = ""
    gravatar_url: HubStr = ""
    profile_url: HubStr = ""

    def to_member(self) -> Member:
        return Member(username=self.username, full_name=self.full_name)
