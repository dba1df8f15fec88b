"""Models for the paginated list envelope shared by all Hub list APIs."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a list endpoint.

    ``next`` and ``previous`` are opaque locators issued by the server.  They
    are followed as-is and never taken apart.
    """

    count: int = 0
    next: str | None = None
    previous: str | None = None
    results: list[T] = Field(default_factory=list)

    @field_validator("next", "previous", mode="before")
    @classmethod
    def _empty_is_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("results", mode="before")
    @classmethod
    def _null_is_empty(cls, v: list | None) -> list:
        return v or []


@dataclass
class FetchResult(Generic[T]):
    """Items collected by a (possibly partial) paginated fetch.

    ``count`` is the total reported by the server, which may exceed
    ``len(items)`` when the fetch stopped after the first page.
    """

    items: list[T] = field(default_factory=list)
    count: int = 0

    @property
    def truncated(self) -> bool:
        return len(self.items) < self.count
