"""Model for rate-limit status."""

from pydantic import BaseModel

UNKNOWN = -1


class RateLimits(BaseModel):
    """Pull rate limits as reported by the registry.

    Each numeric field is `UNKNOWN` when the registry did not report it.
    Windows are in seconds.
    """

    limit: int = UNKNOWN
    limit_window: int = UNKNOWN
    remaining: int = UNKNOWN
    remaining_window: int = UNKNOWN
    source: str = ""

    @property
    def known(self) -> bool:
        return self.limit != UNKNOWN and self.remaining != UNKNOWN
