"""Tests for the raw measurement loops."""
from __future__ import annotations

import pytest

from qtimeit.exceptions import ContinuationError
from qtimeit.loops import (
    BATCH_SIZE,
    CALLS_PER_CHECK,
    ChainedLoop,
    LoopRun,
    batch_count,
    run_counted,
    run_until,
)
from qtimeit.scheduler import Trampoline

from fixtures.clocks import FAKE_STEP, FakeClock, RecordingScheduler


class Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1

    def cb(self, done) -> None:
        self.calls += 1
        done()


class TestRunCounted:
    """Test the fixed-count loop."""

    @pytest.mark.parametrize("count,expected", [(1, 5), (5, 5), (6, 10), (1000, 1000)])
    def test_rounds_up_to_batches(self, fake_clock, count: int, expected: int) -> None:
        """Count is rounded up to whole batches."""
        counter = Counter()

        run = run_counted(counter, count, fake_clock)

        assert run.call_count == expected
        assert counter.calls == expected
        assert run.checks == 0

    def test_two_clock_reads(self, fake_clock) -> None:
        """Timed region is bracketed by exactly two reads."""
        run = run_counted(Counter(), 100, fake_clock)

        assert fake_clock.reads == 2
        assert run.wallclock == FAKE_STEP

    def test_batch_count(self) -> None:
        """batch_count is a ceiling division."""
        assert batch_count(0) == 0
        assert batch_count(1) == 1
        assert batch_count(BATCH_SIZE) == 1
        assert batch_count(BATCH_SIZE + 1) == 2


class TestRunUntil:
    """Test the deadline loop."""

    def test_stops_at_deadline(self, fake_clock) -> None:
        """Loop checks every CALLS_PER_CHECK calls and stops at the deadline."""
        counter = Counter()

        run = run_until(counter, 8 * FAKE_STEP, fake_clock)

        assert run.call_count == 8 * CALLS_PER_CHECK
        assert counter.calls == run.call_count
        assert run.checks == 7
        assert run.wallclock == 8 * FAKE_STEP

    def test_zero_duration_runs_one_check(self, fake_clock) -> None:
        """A deadline already reached still makes one group of calls."""
        run = run_until(Counter(), 0.0, fake_clock)

        assert run == LoopRun(CALLS_PER_CHECK, FAKE_STEP, 0)


class TestChainedLoop:
    """Test the chained-callback driver."""

    def _run(self, fn, count, **kwargs):
        results = []
        kwargs.setdefault("clock", FakeClock())
        kwargs.setdefault("scheduler", Trampoline())
        loop = ChainedLoop(
            fn,
            count,
            on_finish=lambda err, run: results.append((err, run)),
            **kwargs,
        )
        loop.start()
        return loop, results

    def test_counted_inline(self) -> None:
        """Inline continuations make exactly count calls."""
        counter = Counter()

        loop, results = self._run(counter.cb, 1000)

        assert loop.finished
        assert counter.calls == 1000
        assert len(results) == 1
        err, run = results[0]
        assert err is None
        assert run.call_count == 1000
        assert run.wallclock == FAKE_STEP

    def test_deep_chain_within_recursion_limit(self) -> None:
        """A long inline chain completes without recursion errors."""
        counter = Counter()

        _, results = self._run(counter.cb, 100_000)

        assert results[0][1].call_count == 100_000

    def test_yields_every_depth_limit(self) -> None:
        """The driver posts to the scheduler after depth_limit iterations."""
        scheduler = RecordingScheduler()
        counter = Counter()

        loop, results = self._run(counter.cb, 250, scheduler=scheduler, depth_limit=100)

        assert counter.calls == 100
        assert not results
        scheduler.drain()

        assert counter.calls == 250
        assert scheduler.post_count == 2
        assert results[0][1].call_count == 250

    def test_deferred_continuations(self) -> None:
        """Continuations fired later resume the chain one call at a time."""
        pending = []

        def fn(done) -> None:
            pending.append(done)

        loop, results = self._run(fn, 3)

        for expected in (1, 2, 3):
            assert loop.call_count == expected
            pending.pop()()

        assert results[0][1].call_count == 3

    def test_error_argument_stops_chain(self) -> None:
        """An error passed to the continuation stops the chain."""
        calls = []

        def fn(done) -> None:
            calls.append(1)
            done(ValueError("bad") if len(calls) == 7 else None)

        _, results = self._run(fn, 100)

        err, run = results[0]
        assert isinstance(err, ValueError)
        assert run.call_count == 7
        assert len(calls) == 7

    def test_raised_error_stops_chain(self) -> None:
        """An exception raised by the candidate is passed to on_finish."""
        def fn(done) -> None:
            raise KeyError("missing")

        _, results = self._run(fn, 10)

        err, run = results[0]
        assert isinstance(err, KeyError)
        assert run.call_count == 1

    def test_double_continuation(self) -> None:
        """Calling the continuation twice is reported as ContinuationError."""
        def fn(done) -> None:
            done()
            done()

        _, results = self._run(fn, 10, name="twice")

        err, run = results[0]
        assert isinstance(err, ContinuationError)
        assert err.candidate == "twice"
        assert err.call_index == 1

    def test_late_double_continuation_raises(self) -> None:
        """A second call after the chain moved on raises to the caller."""
        pending = []

        def fn(done) -> None:
            pending.append(done)

        self._run(fn, 2)
        first = pending[0]
        first()

        with pytest.raises(ContinuationError):
            first()
