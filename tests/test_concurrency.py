"""Unit tests for the bounded async worker pool."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from utils.concurrency import collect_concurrent, map_concurrent


class ActivityRecorder:
    """Async worker that records call counts and peak concurrency."""

    def __init__(self, fail_on=(), none_on=()):
        self.calls = []
        self.active = 0
        self.peak = 0
        self.fail_on = set(fail_on)
        self.none_on = set(none_on)

    async def __call__(self, item, index):
        self.calls.append(index)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            # Later items finish first so completion order differs from input order
            await asyncio.sleep(0.001 * (10 - index % 10))
            if index in self.fail_on:
                raise RuntimeError(f"boom {index}")
            if index in self.none_on:
                return None
            return item * 2
        finally:
            self.active -= 1


class TestMapConcurrent:
    """Test index-stable concurrent mapping."""

    @pytest.mark.parametrize("n,limit", [(0, 1), (1, 1), (5, 1), (10, 3), (7, 20)])
    def test_every_item_called_once(self, n, limit):
        """Test each item is processed once and results keep input order."""
        recorder = ActivityRecorder()
        results = asyncio.run(map_concurrent(list(range(n)), limit, recorder))

        assert sorted(recorder.calls) == list(range(n))
        assert results == [i * 2 for i in range(n)]

    @pytest.mark.parametrize("n,limit", [(10, 1), (10, 3), (4, 8)])
    def test_limit_respected(self, n, limit):
        """Test no more than limit workers run at once."""
        recorder = ActivityRecorder()
        asyncio.run(map_concurrent(list(range(n)), limit, recorder))
        assert recorder.peak <= min(limit, n)

    def test_limit_reached_when_possible(self):
        """Test the pool fills up to the limit."""
        recorder = ActivityRecorder()
        asyncio.run(map_concurrent(list(range(12)), 4, recorder))
        assert recorder.peak == 4

    def test_failure_isolated_and_position_kept(self):
        """Test a failing item leaves None in its slot and the rest still run."""
        recorder = ActivityRecorder(fail_on={2})
        results = asyncio.run(map_concurrent(list(range(5)), 2, recorder))

        assert sorted(recorder.calls) == [0, 1, 2, 3, 4]
        assert results == [0, 2, None, 6, 8]

    def test_sync_worker_supported(self):
        """Test plain functions work as workers."""
        results = asyncio.run(map_concurrent(["a", "b"], 2, lambda item, index: f"{index}{item}"))
        assert results == ["0a", "1b"]

    def test_invalid_limit(self):
        """Test a limit below one is rejected."""
        with pytest.raises(ValueError):
            asyncio.run(map_concurrent([1, 2], 0, ActivityRecorder()))


class TestCollectConcurrent:
    """Test compacted concurrent collection."""

    def test_drops_failures_and_none(self):
        """Test failed and None results are left out."""
        recorder = ActivityRecorder(fail_on={1}, none_on={3})
        results = asyncio.run(collect_concurrent(list(range(6)), 3, recorder))

        assert sorted(recorder.calls) == list(range(6))
        assert sorted(results) == [0, 4, 8, 10]

    def test_all_failures_yield_empty(self):
        """Test all items failing gives an empty list."""
        recorder = ActivityRecorder(fail_on=set(range(4)))
        assert asyncio.run(collect_concurrent(list(range(4)), 2, recorder)) == []
