"""Tests for continuation schedulers."""
from __future__ import annotations

import asyncio

import pytest

from qtimeit.scheduler import LoopScheduler, Trampoline, get_scheduler


class TestTrampoline:
    """Test the local run queue."""

    def test_post_when_idle_runs_now(self) -> None:
        """Posting to an idle trampoline runs the callback before returning."""
        trampoline = Trampoline()
        calls = []

        trampoline.post(lambda: calls.append(1))

        assert calls == [1]
        assert len(trampoline) == 0
        assert trampoline.running is False

    def test_nested_post_runs_after_current(self) -> None:
        """Callbacks posted while draining run after the current one returns."""
        trampoline = Trampoline()
        order = []

        def first() -> None:
            trampoline.post(lambda: order.append("second"))
            order.append("first")

        trampoline.post(first)

        assert order == ["first", "second"]

    def test_deep_chain_does_not_recurse(self) -> None:
        """A long chain of re-posts completes without hitting the recursion limit."""
        trampoline = Trampoline()
        remaining = [50_000]

        def step() -> None:
            remaining[0] -= 1
            if remaining[0]:
                trampoline.post(step)

        trampoline.post(step)

        assert remaining[0] == 0

    def test_exception_propagates(self) -> None:
        """Errors propagate to the poster and reset the running flag."""
        trampoline = Trampoline()

        def fail() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            trampoline.post(fail)

        assert trampoline.running is False


class TestGetScheduler:
    """Test scheduler selection."""

    def test_no_loop_gives_trampoline(self) -> None:
        """Outside an event loop a Trampoline is used."""
        assert isinstance(get_scheduler(), Trampoline)

    def test_running_loop_gives_loop_scheduler(self) -> None:
        """Inside an event loop callbacks go through call_soon."""
        async def main() -> list:
            scheduler = get_scheduler()
            assert isinstance(scheduler, LoopScheduler)
            calls = []
            scheduler.post(lambda: calls.append(1))
            assert calls == []
            await asyncio.sleep(0)
            return calls

        assert asyncio.run(main()) == [1]
