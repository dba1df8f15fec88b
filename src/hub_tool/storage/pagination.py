"""Fetch paginated Hub collections."""

from __future__ import annotations

from typing import Any, TypeVar

import structlog

from ..models.credentials import Session
from ..models.page import FetchResult, Page
from .http import HubHTTPClient

T = TypeVar("T")


class ResourceFetcher:
    """Walk the ``{count, next, previous, results}`` envelope.

    Pages are only ever followed forward through ``next``, one at a time,
    since each continuation locator comes from the previous response.  A
    server that keeps returning the same ``next`` will keep this looping;
    there is no cycle detection.

    Parameters
    ----------
    http
        Request layer pointed at the Hub API.
    session
        Session whose bearer token authenticates every request.
    """

    def __init__(self, http: HubHTTPClient, session: Session) -> None:
        self._http = http
        self._token = session.token
        self._page_size = http.config.page_size
        self._logger = structlog.get_logger(__name__)

    @property
    def page_size(self) -> int:
        return self._page_size

    async def fetch_page(
        self,
        url: str,
        item_type: type[T],
        params: dict[str, Any] | None = None,
    ) -> Page[T]:
        """Fetch and decode one page."""
        data = await self._http.get_json(url, token=self._token, params=params)
        return Page[item_type].model_validate(data)  # type: ignore[valid-type]

    async def fetch_all(
        self,
        url: str,
        item_type: type[T],
        *,
        exhaustive: bool,
        params: dict[str, Any] | None = None,
    ) -> FetchResult[T]:
        """Fetch the first page, and the rest too if ``exhaustive``.

        Parameters
        ----------
        url
            First page URL, without paging parameters.
        item_type
            Model each entry of ``results`` is decoded into.
        exhaustive
            Follow ``next`` until the server stops returning one.
        params
            Extra query parameters (ordering, filters) for the first page.
            They are passed through untouched; later pages carry whatever
            the server put in ``next``.

        Returns
        -------
        FetchResult
            Items in server order, and the total ``count`` reported with
            the first page.
        """
        first = {**(params or {}), "page_size": self._page_size, "page": 1}
        page = await self.fetch_page(url, item_type, first)
        result = FetchResult(items=list(page.results), count=page.count)
        next_page = page.next
        while exhaustive and next_page:
            self._logger.debug(
                f"Requesting items {len(result.items) + 1}-"
                f"{len(result.items) + self._page_size} of {result.count}"
            )
            page = await self.fetch_page(next_page, item_type)
            result.items.extend(page.results)
            next_page = page.next
        self._logger.debug(
            f"Fetched {len(result.items)} of {result.count} items from {url}"
        )
        return result

    async def get_json(
        self, url: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Fetch a single, unpaginated resource."""
        return await self._http.get_json(url, token=self._token, params=params)

    async def count(
        self, url: str, params: dict[str, Any] | None = None
    ) -> int:
        """Return the collection size without fetching its items."""
        query = {**(params or {}), "page_size": 1, "page": 1}
        page = await self.fetch_page(url, dict, query)
        return page.count
