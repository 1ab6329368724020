"""
Page-boundary discovery.

amoCRM list endpoints do not report a total count, so the number of pages is
found by probing: "does page N have data?". Both finders assume the answer is
monotonic (once a page is empty, every later page is empty) and return the
last non-empty page, or 0 when page 1 is already empty.

Algorithm:
1. Probe page 1.
2. Exponential growth: probe 2, 4, 8, ... (clamped to the ceiling) until a
   page comes back empty. The last full page and the first empty page now
   bracket the boundary.
3. Search the bracket:
   - SequentialBoundaryFinder: binary search, one probe in flight.
   - ConcurrentBoundaryFinder: ternary partitioning, two probes in flight per
     round. Fewer sequential round trips, up to twice as many requests.

If the ceiling itself has data the ceiling is returned as-is: the collection
has *at least* that many pages.

The collection must not change while a search runs; if it does, the result
is a plausible approximation rather than an exact count.

Example:
    checker = client.pagination.create_leads_page_checker(LeadsFilter(pipeline_id=42))
    total = await client.pagination.find_total_pages(checker)
    for page in range(1, total + 1):
        leads = await client.leads.list(LeadsFilter(pipeline_id=42, page=page, limit=250))
"""

import asyncio
import dataclasses
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Tuple

from .errors import PaginationError, ProbeError, SearchCancelledError
from .filters import CompaniesFilter, ContactsFilter, LeadsFilter, TasksFilter
from .models import Links

if TYPE_CHECKING:
    from .client import AmoCRMClient

logger = logging.getLogger(__name__)

# Answers "does this page have data?"
Probe = Callable[[int], Awaitable[bool]]
LinksFetcher = Callable[[int], Awaitable[Links]]

DEFAULT_MAX_PAGE = 100000

# Windows this narrow are scanned page by page instead of partitioned
LINEAR_SCAN_WIDTH = 3


class CancelToken:
    """Caller-side cancellation for a page search.

    Cancel explicitly with `cancel()`, or give a `timeout` in seconds. The
    finders sample the token between probes; a probe already in flight is
    allowed to finish.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = False
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled or self.expired

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SearchCancelledError("cancelled")
        if self.expired:
            raise SearchCancelledError("deadline exceeded")


def normalize_ceiling(ceiling: int) -> int:
    return ceiling if ceiling > 0 else DEFAULT_MAX_PAGE


def _check(cancel: Optional[CancelToken]) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()


async def _probe(probe: Probe, page: int) -> bool:
    try:
        return bool(await probe(page))
    except PaginationError:
        raise
    except Exception as e:
        raise ProbeError(page, e) from e


class BoundaryFinder:
    """Shared page-1 check and exponential growth; subclasses search the bracket."""

    async def find(self, probe: Probe, ceiling: int = 0, cancel: Optional[CancelToken] = None) -> int:
        """Return the last page for which `probe` reports data (0 if none).

        `ceiling` bounds the highest page ever probed; values <= 0 mean
        DEFAULT_MAX_PAGE. Raises ProbeError if a probe fails and
        SearchCancelledError if `cancel` fires.
        """
        ceiling = normalize_ceiling(ceiling)
        _check(cancel)

        if not await _probe(probe, 1):
            return 0

        last_full, first_empty = await self._grow(probe, ceiling, cancel)
        if first_empty is None:
            logger.warning(
                f"Page ceiling {ceiling} reached without finding an empty page; "
                f"returning {ceiling} as the page count"
            )
            return ceiling

        logger.debug(f"Boundary bracketed between pages {last_full} and {first_empty}")
        last_page = await self._search(probe, last_full + 1, first_empty - 1, last_full, cancel)
        logger.debug(f"Last page with data: {last_page}")
        return last_page

    async def _grow(
        self, probe: Probe, ceiling: int, cancel: Optional[CancelToken]
    ) -> Tuple[int, Optional[int]]:
        """Double the page index until a probe comes back empty.

        Returns (last page with data, first empty page), the latter None
        when every probe up to and including the ceiling had data.
        Each target depends on the previous answer, so this stays sequential.
        """
        page = 1
        while page < ceiling:
            _check(cancel)
            next_page = min(page * 2, ceiling)
            if not await _probe(probe, next_page):
                return page, next_page
            page = next_page
        return page, None

    async def _search(
        self, probe: Probe, left: int, right: int, best: int, cancel: Optional[CancelToken]
    ) -> int:
        raise NotImplementedError


class SequentialBoundaryFinder(BoundaryFinder):
    """Exponential growth then binary search. One probe at a time."""

    async def _search(self, probe, left, right, best, cancel):
        while left <= right:
            _check(cancel)
            mid = left + (right - left) // 2
            if await _probe(probe, mid):
                best = mid
                left = mid + 1
            else:
                right = mid - 1
        return best


class ConcurrentBoundaryFinder(BoundaryFinder):
    """Exponential growth then ternary partitioning with two probes per round.

    The probe is called concurrently, so it (and the transport behind it)
    must tolerate overlapping calls.
    """

    async def _probe_pair(self, probe: Probe, first: int, second: int) -> Tuple[bool, bool]:
        # Both probes resolve before either answer is used
        results = await asyncio.gather(
            _probe(probe, first), _probe(probe, second), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results[0], results[1]

    async def _search(self, probe, left, right, best, cancel):
        while left <= right:
            _check(cancel)

            if right - left <= LINEAR_SCAN_WIDTH:
                for page in range(right, left - 1, -1):
                    if await _probe(probe, page):
                        return page
                return best

            width = right - left
            mid1 = left + width // 3
            mid2 = left + 2 * width // 3
            mid1_has_data, mid2_has_data = await self._probe_pair(probe, mid1, mid2)

            if mid2_has_data:
                best = mid2
                left = mid2 + 1
            elif mid1_has_data:
                best = mid1
                left = mid1 + 1
                right = mid2 - 1
            else:
                right = mid1 - 1

        return best


async def find_total_pages(probe: Probe, max_page: int = 0, cancel: Optional[CancelToken] = None) -> int:
    return await SequentialBoundaryFinder().find(probe, max_page, cancel)


async def find_total_pages_concurrent(
    probe: Probe, max_page: int = 0, cancel: Optional[CancelToken] = None
) -> int:
    return await ConcurrentBoundaryFinder().find(probe, max_page, cancel)


class PaginationService:
    """Page counting for the client's list endpoints."""

    def __init__(self, client: "AmoCRMClient"):
        self.client = client
        self.sequential = SequentialBoundaryFinder()
        self.concurrent = ConcurrentBoundaryFinder()

    async def find_total_pages(
        self, checker: Probe, max_page: int = 0, cancel: Optional[CancelToken] = None
    ) -> int:
        return await self.sequential.find(checker, max_page, cancel)

    async def find_total_pages_concurrent(
        self, checker: Probe, max_page: int = 0, cancel: Optional[CancelToken] = None
    ) -> int:
        return await self.concurrent.find(checker, max_page, cancel)

    @staticmethod
    def create_page_checker(fetcher: LinksFetcher) -> Probe:
        """Build a probe from any listing call that returns pagination links.

        A page has data when its response links back to itself; empty pages
        come back as 204 No Content and carry no links at all.

        Example:
            async def fetch(page):
                response = await client.contacts.list_with_response(ContactsFilter(page=page, limit=1))
                return response.links

            checker = client.pagination.create_page_checker(fetch)
        """
        async def checker(page: int) -> bool:
            links = await fetcher(page)
            return links.has_self()

        return checker

    def _entity_checker(self, service, filter, default_filter) -> Probe:
        base = filter if filter is not None else default_filter

        async def fetch_links(page: int) -> Links:
            # Single-item pages: only the links matter
            page_filter = dataclasses.replace(base, limit=1, page=page)
            response = await service.list_with_response(page_filter)
            return response.links

        return self.create_page_checker(fetch_links)

    def create_contacts_page_checker(self, filter: Optional[ContactsFilter] = None) -> Probe:
        return self._entity_checker(self.client.contacts, filter, ContactsFilter())

    def create_leads_page_checker(self, filter: Optional[LeadsFilter] = None) -> Probe:
        return self._entity_checker(self.client.leads, filter, LeadsFilter())

    def create_companies_page_checker(self, filter: Optional[CompaniesFilter] = None) -> Probe:
        return self._entity_checker(self.client.companies, filter, CompaniesFilter())

    def create_tasks_page_checker(self, filter: Optional[TasksFilter] = None) -> Probe:
        return self._entity_checker(self.client.tasks, filter, TasksFilter())
