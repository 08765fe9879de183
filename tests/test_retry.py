"""
Tests for the retry and fallback engines.
"""

from __future__ import annotations

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from sendcrypto.retry import NoEndpointsError, fallback, only_mainnet, retry_n_times, shuffled


def failing_then(value, failures: int) -> AsyncMock:
    """AsyncMock that raises for the first `failures` calls, then returns value."""
    errors = [RuntimeError(f"failure {i + 1}") for i in range(failures)]
    return AsyncMock(side_effect=[*errors, value])


class TestRetryNTimes:
    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self) -> None:
        op = AsyncMock(return_value=42)
        assert await retry_n_times(op, 3) == 42
        assert op.await_count == 1

    @pytest.mark.asyncio
    async def test_last_attempt_succeeds(self) -> None:
        """N-1 failures followed by a success returns the success."""
        op = failing_then("ok", 4)
        assert await retry_n_times(op, 5) == "ok"
        assert op.await_count == 5

    @pytest.mark.asyncio
    async def test_all_attempts_fail_raises_last_error(self) -> None:
        errors = [ValueError("one"), ValueError("two"), ValueError("three")]
        op = AsyncMock(side_effect=errors)
        with pytest.raises(ValueError) as exc_info:
            await retry_n_times(op, 3)
        assert exc_info.value is errors[2]
        assert op.await_count == 3

    @pytest.mark.asyncio
    async def test_never_exceeds_max_attempts(self) -> None:
        op = AsyncMock(side_effect=RuntimeError("down"))
        with pytest.raises(RuntimeError):
            await retry_n_times(op, 4)
        assert op.await_count == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [-1, 0, 1])
    async def test_non_positive_or_one_means_single_attempt(self, max_attempts: int) -> None:
        op = AsyncMock(side_effect=RuntimeError("down"))
        with pytest.raises(RuntimeError):
            await retry_n_times(op, max_attempts)
        assert op.await_count == 1

    @pytest.mark.asyncio
    async def test_delay_between_attempts(self) -> None:
        op = failing_then("ok", 2)
        loop = asyncio.get_running_loop()
        start = loop.time()
        assert await retry_n_times(op, 3, delay=0.02) == "ok"
        assert loop.time() - start >= 0.03

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self) -> None:
        op = AsyncMock(side_effect=asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await retry_n_times(op, 5)
        assert op.await_count == 1


class TestFallback:
    @pytest.mark.asyncio
    async def test_returns_first_success(self) -> None:
        ops = [AsyncMock(return_value="a"), AsyncMock(return_value="b")]
        assert await fallback(ops) == "a"
        ops[1].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stops_after_first_success(self) -> None:
        """K failures then a success: nothing after index K+1 is invoked."""
        ops = [
            AsyncMock(side_effect=RuntimeError("first")),
            AsyncMock(side_effect=RuntimeError("second")),
            AsyncMock(return_value="third"),
            AsyncMock(return_value="fourth"),
            AsyncMock(return_value="fifth"),
        ]
        assert await fallback(ops) == "third"
        for op in ops[:3]:
            assert op.await_count == 1
        ops[3].assert_not_awaited()
        ops[4].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_fail_raises_last_error(self) -> None:
        errors = [RuntimeError("first"), KeyError("second"), ValueError("last")]
        ops = [AsyncMock(side_effect=e) for e in errors]
        with pytest.raises(ValueError) as exc_info:
            await fallback(ops)
        assert exc_info.value is errors[2]

    @pytest.mark.asyncio
    async def test_empty_list(self) -> None:
        with pytest.raises(NoEndpointsError, match="No endpoints configured"):
            await fallback([])

    @pytest.mark.asyncio
    async def test_none_entries_are_skipped(self) -> None:
        ops = [None, AsyncMock(side_effect=RuntimeError("down")), None, AsyncMock(return_value=7)]
        assert await fallback(ops) == 7

    @pytest.mark.asyncio
    async def test_only_none_entries(self) -> None:
        with pytest.raises(NoEndpointsError):
            await fallback([None, None])

    @pytest.mark.asyncio
    async def test_operations_run_sequentially(self) -> None:
        running = 0
        max_running = 0

        async def op() -> None:
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.001)
            running -= 1
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            await fallback([op, op, op])
        assert max_running == 1

    @pytest.mark.asyncio
    async def test_retry_inside_fallback(self) -> None:
        """Retry is the inner loop per provider, fallback the outer loop."""
        first = AsyncMock(side_effect=RuntimeError("down"))
        second = failing_then("ok", 1)
        ops = [lambda: retry_n_times(first, 3), lambda: retry_n_times(second, 3)]
        assert await fallback(ops) == "ok"
        assert first.await_count == 3
        assert second.await_count == 2


class TestHelpers:
    def test_only_mainnet(self) -> None:
        op = AsyncMock()
        assert only_mainnet(op, testnet=False) == [op]
        assert only_mainnet(op, testnet=True) == []

    def test_shuffled_returns_copy(self) -> None:
        items = list(range(20))
        result = shuffled(items, random.Random(1))
        assert sorted(result) == items
        assert items == list(range(20))

    def test_shuffled_is_deterministic_with_seed(self) -> None:
        items = list(range(20))
        assert shuffled(items, random.Random(7)) == shuffled(items, random.Random(7))
