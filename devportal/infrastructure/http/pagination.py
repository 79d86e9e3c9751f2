"""Aggregation of server-paginated collections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from devportal.app.config import DEFAULT_PAGE_SIZE
from devportal.infrastructure.observability.logging import get_logger, log_context

logger = get_logger(__name__)

Record = dict[str, Any]


@dataclass(frozen=True)
class PageRequest:
    """Parameters identifying one page of a listing."""

    page_size: int
    page_number: int = 1
    sort: str = "name=asc"

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.page_number < 1:
            raise ValueError("page_number starts at 1")

    def as_params(self) -> dict[str, str]:
        return {
            "pageSize": str(self.page_size),
            "pageNumber": str(self.page_number),
            "sort": self.sort,
        }


PageFetcher = Callable[[PageRequest], list[Record]]


class Paginator:
    """Fetches every page of a collection and concatenates them in order.

    A page holding exactly ``page_size`` records means another page may
    follow; the first shorter page (possibly empty) ends the collection.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, sort: str = "name=asc") -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.sort = sort

    def fetch_all(
        self,
        page_fetcher: PageFetcher,
        page_size: int | None = None,
        sort: str | None = None,
    ) -> list[Record]:
        size = self.page_size if page_size is None else page_size
        records: list[Record] = []
        page_number = 1
        while True:
            page = PageRequest(
                page_size=size, page_number=page_number, sort=sort or self.sort)
            with log_context(page=page_number, page_size=size):
                batch = list(page_fetcher(page))
                logger.debug("Fetched %d records", len(batch))
            records.extend(batch)
            if len(batch) < size:
                return records
            page_number += 1


__all__ = ["PageFetcher", "PageRequest", "Paginator", "Record"]
