"""Cursor pagination over Relay-style connections (``nodes`` + ``pageInfo``).

Pages are requested strictly one after another. Whenever the server claims
another page, the cursor it hands back must be non-empty and different from the
one just used; anything else is a :class:`PaginationError` instead of a loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .client import GraphQLClient
from .errors import PaginationError, ProtocolError, TransportError

logger = logging.getLogger(__name__)


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class Page(BaseModel):
    nodes: list[dict[str, Any]]
    page_info: PageInfo

    @property
    def has_next_page(self) -> bool:
        return self.page_info.has_next_page

    @property
    def next_cursor(self) -> str | None:
        """Cursor to pass as ``after`` for the following page, None on the last page."""
        return self.page_info.end_cursor if self.page_info.has_next_page else None


def next_page_cursor(previous: str | None, page_info: PageInfo) -> str | None:
    """Return the cursor for the next request, or None when pagination is done."""
    if not page_info.has_next_page:
        return None
    cursor = page_info.end_cursor or ""
    if not cursor:
        raise PaginationError("hasNextPage is true but endCursor is empty")
    if cursor == previous:
        raise PaginationError(f"endCursor did not advance (still {cursor!r})")
    return cursor


class Paginator:
    """Walks one connection field of a query that accepts ``$first`` and ``$after``."""

    def __init__(
        self,
        client: GraphQLClient,
        query: str,
        connection: str,
        *,
        page_size: int | None = None,
    ) -> None:
        self.client = client
        self.query = query
        self.connection = connection
        self.page_size = page_size or client.settings.fetch_all_page_size

    async def fetch_page(
        self,
        variables: Mapping[str, Any] | None = None,
        *,
        first: int | None = None,
        after: str | None = None,
        timeout: float | None = None,
    ) -> Page:
        page_vars: dict[str, Any] = {**(variables or {}), "first": first or self.page_size}
        if after:
            page_vars["after"] = after
        data = await self.client.execute(self.query, page_vars, timeout=timeout)
        envelope = data.get(self.connection)
        if not isinstance(envelope, dict):
            raise ProtocolError([f"response is missing the {self.connection!r} connection"])
        return Page(
            nodes=list(envelope.get("nodes") or []),
            page_info=PageInfo.model_validate(envelope.get("pageInfo") or {}),
        )

    async def iter_all(
        self, variables: Mapping[str, Any] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield every node in server order, one page request at a time."""
        cursor: str | None = None
        pages = 0
        while True:
            page = await self.fetch_page(variables, after=cursor)
            pages += 1
            for node in page.nodes:
                yield node
            cursor = next_page_cursor(cursor, page.page_info)
            if cursor is None:
                logger.debug("Fetched %d page(s) of %s", pages, self.connection)
                return

    async def fetch_all(
        self, variables: Mapping[str, Any] | None = None, *, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """Collect every node, bounded by one overall deadline."""
        deadline = timeout if timeout is not None else self.client.settings.fetch_all_timeout

        async def _collect() -> list[dict[str, Any]]:
            return [node async for node in self.iter_all(variables)]

        try:
            return await asyncio.wait_for(_collect(), timeout=deadline)
        except TimeoutError as exc:
            raise TransportError(
                f"fetching all {self.connection} timed out after {deadline:g}s"
            ) from exc
