"""Models for repositories and their tags."""

from __future__ import annotations

import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .common import HubStr


class RepositoryOrdering(Enum):
    """Server-side sort orders accepted by the repository list API."""

    LAST_UPDATED = "last_updated"
    NAME = "name"


class TagOrdering(Enum):
    """Server-side sort orders accepted by the tag list API."""

    LAST_UPDATED = "last_updated"
    NAME = "name"


class Repository(BaseModel):
    """A repository.  ``name`` is ``namespace/name``."""

    name: str
    description: str = ""
    last_updated: datetime.datetime | None = None
    pull_count: int = 0
    star_count: int = 0
    is_private: bool = False


class HubRepositoryResult(BaseModel):
    name: str
    namespace: str
    pull_count: int = 0
    star_count: int = 0
    repository_type: HubStr = ""
    can_edit: bool = False
    description: HubStr = ""
    is_automated: bool = False
    is_migrated: bool = False
    is_private: bool = False
    last_updated: datetime.datetime | None = None
    status: int = 0
    user: HubStr = ""

    def to_repository(self) -> Repository:
        return Repository(
            name=f"{self.namespace}/{self.name}",
            description=self.description,
            last_updated=self.last_updated,
            pull_count=self.pull_count,
            star_count=self.star_count,
            is_private=self.is_private,
        )


class TagImage(BaseModel):
    """Metadata of one platform manifest behind a tag."""

    digest: HubStr = ""
    architecture: HubStr = ""
    os: HubStr = ""
    variant: HubStr = ""
    size: int = 0
    status: HubStr = ""
    expires: datetime.datetime | None = None
    last_pulled: datetime.datetime | None = None
    last_pushed: datetime.datetime | None = None


class Tag(BaseModel):
    """A tag.  ``name`` is ``repository:tag``."""

    name: str
    full_size: int = 0
    last_updated: datetime.datetime | None = None
    last_updater_username: str = ""
    images: list[TagImage] = Field(default_factory=list)
    status: str = ""
    expires: datetime.datetime | None = None
    last_pulled: datetime.datetime | None = None
    last_pushed: datetime.datetime | None = None


class HubTagResult(BaseModel):
    creator: int = 0
    id: int = 0
    name: str
    image_id: HubStr = ""
    last_updated: datetime.datetime | None = None
    last_updater: int = 0
    last_updater_username: HubStr = ""
    images: list[TagImage] | None = None
    repository: int = 0
    full_size: int = 0
    v2: bool = False
    tag_status: HubStr = ""
    tag_expires: datetime.datetime | None = None
    tag_last_pulled: datetime.datetime | None = None
    tag_last_pushed: datetime.datetime | None = None

    def to_tag(self, repository: str) -> Tag:
        return Tag(
            name=f"{repository}:{self.name}",
            full_size=self.full_size,
            last_updated=self.last_updated,
            last_updater_username=self.last_updater_username,
            images=self.images or [],
            status=self.tag_status,
            expires=self.tag_expires,
            last_pulled=self.tag_last_pulled,
            last_pushed=self.tag_last_pushed,
        )


def repository_path(name: str) -> str:
    """Normalize a repository reference to the Hub path form.

    ``alpine`` becomes ``library/alpine``; a leading ``docker.io/`` and any
    ``:tag`` or ``@digest`` suffix are dropped.
    """
    ref = name.split("@", 1)[0]
    slash = ref.rfind("/")
    colon = ref.rfind(":")
    if colon > slash:
        ref = ref[:colon]
    for prefix in ("docker.io/", "index.docker.io/", "registry-1.docker.io/"):
        if ref.startswith(prefix):
            ref = ref[len(prefix) :]
            break
    if not ref:
        raise ValueError(f"Invalid repository reference '{name}'")
    if "/" not in ref:
        ref = f"library/{ref}"
    return ref.lower()
