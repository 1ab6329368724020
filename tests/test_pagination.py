"""
Page-Boundary Discovery Tests
Tests SequentialBoundaryFinder, ConcurrentBoundaryFinder and CancelToken
against in-memory probes with a known number of pages.
"""
import asyncio
import logging
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from amocrm.errors import ProbeError, SearchCancelledError
from amocrm.pagination import (
    DEFAULT_MAX_PAGE,
    CancelToken,
    ConcurrentBoundaryFinder,
    SequentialBoundaryFinder,
    find_total_pages,
    find_total_pages_concurrent,
)


class FakeProbe:
    """Reports data for pages 1..total and records every call."""

    def __init__(self, total, fail_on=(), on_call=None):
        self.total = total
        self.fail_on = set(fail_on)
        self.on_call = on_call
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, page):
        self.calls.append(page)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so concurrent probes overlap
            await asyncio.sleep(0)
            if self.on_call:
                self.on_call(page)
            if page in self.fail_on:
                raise RuntimeError(f"boom on page {page}")
            return page <= self.total
        finally:
            self.in_flight -= 1


FINDERS = [SequentialBoundaryFinder, ConcurrentBoundaryFinder]


class TestFindsBoundary:
    """Both finders return the last page that has data"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    @pytest.mark.parametrize("total", [0, 1, 2, 3, 10, 100, 500, 1000])
    async def test_known_totals(self, finder_cls, total):
        probe = FakeProbe(total)
        assert await finder_cls().find(probe) == total

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_empty_collection_probes_only_page_one(self, finder_cls):
        probe = FakeProbe(0)
        assert await finder_cls().find(probe) == 0
        assert probe.calls == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_single_page(self, finder_cls):
        """One page: page 1 full, page 2 empty, nothing else to search"""
        probe = FakeProbe(1)
        assert await finder_cls().find(probe) == 1
        assert probe.calls == [1, 2]

    @pytest.mark.asyncio
    async def test_finders_agree_on_every_small_total(self):
        for total in range(0, 130):
            sequential = await SequentialBoundaryFinder().find(FakeProbe(total))
            concurrent = await ConcurrentBoundaryFinder().find(FakeProbe(total))
            assert sequential == concurrent == total

    @pytest.mark.asyncio
    async def test_module_level_helpers(self):
        assert await find_total_pages(FakeProbe(42)) == 42
        assert await find_total_pages_concurrent(FakeProbe(42)) == 42

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_repeat_search_gives_same_answer(self, finder_cls):
        first = FakeProbe(77)
        second = FakeProbe(77)
        assert await finder_cls().find(first) == await finder_cls().find(second) == 77
        assert first.calls == second.calls

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_finder_instance_is_reusable(self, finder_cls):
        finder = finder_cls()
        assert await finder.find(FakeProbe(5)) == 5
        assert await finder.find(FakeProbe(300)) == 300


class TestSequentialCallCount:
    """Sequential search stays logarithmic in the page count"""

    @pytest.mark.asyncio
    async def test_ten_pages(self):
        probe = FakeProbe(10)
        await SequentialBoundaryFinder().find(probe)
        # 1, 2, 4, 8, 16 then binary search over 9..15
        assert probe.calls[:5] == [1, 2, 4, 8, 16]
        assert len(probe.calls) == 8

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total,reference", [(100, 13), (500, 18), (1000, 20)])
    async def test_large_totals(self, total, reference):
        probe = FakeProbe(total)
        assert await SequentialBoundaryFinder().find(probe) == total
        assert len(probe.calls) <= reference + 5

    @pytest.mark.asyncio
    async def test_one_probe_at_a_time(self):
        probe = FakeProbe(1000)
        await SequentialBoundaryFinder().find(probe)
        assert probe.max_in_flight == 1


class TestConcurrentSearch:
    """Ternary partitioning with two probes in flight"""

    @pytest.mark.asyncio
    async def test_two_probes_in_flight(self):
        probe = FakeProbe(500)
        assert await ConcurrentBoundaryFinder().find(probe) == 500
        assert probe.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_never_more_than_two_in_flight(self):
        for total in (7, 64, 333, 1000):
            probe = FakeProbe(total)
            await ConcurrentBoundaryFinder().find(probe)
            assert probe.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_growth_phase_is_sequential(self):
        probe = FakeProbe(500)
        await ConcurrentBoundaryFinder().find(probe)
        assert probe.calls[:10] == [1, 2, 4, 8, 16, 32, 64, 128, 256, 512]


class TestCeiling:
    """The ceiling bounds every probe"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_saturated_ceiling_is_returned(self, finder_cls, caplog):
        probe = FakeProbe(1000)
        with caplog.at_level(logging.WARNING, logger="amocrm.pagination"):
            assert await finder_cls().find(probe, ceiling=100) == 100
        assert max(probe.calls) == 100
        assert "ceiling" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_empty_ceiling_page_searches_below_it(self, finder_cls):
        probe = FakeProbe(70)
        assert await finder_cls().find(probe, ceiling=100) == 70
        assert max(probe.calls) == 100

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_boundary_just_below_ceiling(self, finder_cls):
        assert await finder_cls().find(FakeProbe(99), ceiling=100) == 99

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_ceiling_of_one(self, finder_cls):
        probe = FakeProbe(5)
        assert await finder_cls().find(probe, ceiling=1) == 1
        assert probe.calls == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    @pytest.mark.parametrize("ceiling", [0, -5])
    async def test_non_positive_ceiling_uses_default(self, finder_cls, ceiling):
        probe = FakeProbe(DEFAULT_MAX_PAGE + 10)
        assert await finder_cls().find(probe, ceiling=ceiling) == DEFAULT_MAX_PAGE
        assert max(probe.calls) == DEFAULT_MAX_PAGE


class TestProbeErrors:
    """A failed probe aborts the search with the page that failed"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_error_on_first_page(self, finder_cls):
        probe = FakeProbe(10, fail_on={1})
        with pytest.raises(ProbeError) as exc_info:
            await finder_cls().find(probe)
        assert exc_info.value.page == 1
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert probe.calls == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_error_during_growth(self, finder_cls):
        probe = FakeProbe(10, fail_on={4})
        with pytest.raises(ProbeError) as exc_info:
            await finder_cls().find(probe)
        assert exc_info.value.page == 4
        assert "failed to check page 4" in str(exc_info.value)
        assert "boom on page 4" in str(exc_info.value.cause)
        assert probe.calls == [1, 2, 4]

    @pytest.mark.asyncio
    async def test_error_during_binary_search(self):
        # 1..8 full, 16 empty, then the first binary probe is page 12
        probe = FakeProbe(10, fail_on={12})
        with pytest.raises(ProbeError) as exc_info:
            await SequentialBoundaryFinder().find(probe)
        assert exc_info.value.page == 12

    @pytest.mark.asyncio
    async def test_concurrent_error_waits_for_both_probes(self):
        # Bracket 257..511: the first pair is 341 and 426
        probe = FakeProbe(500, fail_on={426})
        with pytest.raises(ProbeError) as exc_info:
            await ConcurrentBoundaryFinder().find(probe)
        assert exc_info.value.page == 426
        assert 341 in probe.calls
        assert probe.in_flight == 0

    @pytest.mark.asyncio
    async def test_concurrent_reports_lower_page_when_both_fail(self):
        probe = FakeProbe(500, fail_on={341, 426})
        with pytest.raises(ProbeError) as exc_info:
            await ConcurrentBoundaryFinder().find(probe)
        assert exc_info.value.page == 341


class TestCancellation:
    """CancelToken stops a search between probes"""

    def test_token_states(self):
        token = CancelToken()
        assert not token.cancelled
        token.cancel()
        assert token.cancelled
        assert CancelToken(timeout=0).cancelled
        assert not CancelToken(timeout=60).cancelled

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_cancelled_before_start(self, finder_cls):
        token = CancelToken()
        token.cancel()
        probe = FakeProbe(10)
        with pytest.raises(SearchCancelledError) as exc_info:
            await finder_cls().find(probe, cancel=token)
        assert exc_info.value.reason == "cancelled"
        assert probe.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_expired_deadline(self, finder_cls):
        probe = FakeProbe(10)
        with pytest.raises(SearchCancelledError) as exc_info:
            await finder_cls().find(probe, cancel=CancelToken(timeout=0))
        assert exc_info.value.reason == "deadline exceeded"
        assert "deadline exceeded" in str(exc_info.value)
        assert probe.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("finder_cls", FINDERS)
    async def test_cancelled_during_growth(self, finder_cls):
        token = CancelToken()

        def cancel_at_eight(page):
            if page == 8:
                token.cancel()

        probe = FakeProbe(1000, on_call=cancel_at_eight)
        with pytest.raises(SearchCancelledError):
            await finder_cls().find(probe, cancel=token)
        assert probe.calls == [1, 2, 4, 8]

    @pytest.mark.asyncio
    async def test_cancelled_during_binary_search(self):
        token = CancelToken()

        def cancel_at_twelve(page):
            if page == 12:
                token.cancel()

        probe = FakeProbe(10, on_call=cancel_at_twelve)
        with pytest.raises(SearchCancelledError):
            await SequentialBoundaryFinder().find(probe, cancel=token)
        assert probe.calls[-1] == 12

    @pytest.mark.asyncio
    async def test_cancelled_during_ternary_round_finishes_the_pair(self):
        token = CancelToken()

        def cancel_at_first_pair(page):
            if page == 341:
                token.cancel()

        probe = FakeProbe(500, on_call=cancel_at_first_pair)
        with pytest.raises(SearchCancelledError):
            await ConcurrentBoundaryFinder().find(probe, cancel=token)
        assert 426 in probe.calls
        assert probe.in_flight == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self):
        started = asyncio.Event()

        async def hanging_probe(page):
            started.set()
            await asyncio.Event().wait()
            return True

        task = asyncio.ensure_future(SequentialBoundaryFinder().find(hanging_probe))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
