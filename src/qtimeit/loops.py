"""
Measurement Loops

The raw timed loops. Nothing here corrects for overhead; callers subtract
the calibrated constants from the returned wall time.

This module provides:
- LoopRun: call count, raw wall time and extra clock reads of one loop
- run_counted(): batched loop for a fixed call count
- run_until(): batched loop that stops at a deadline
- ChainedLoop: chained-callback driver for asynchronous candidates
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import repeat
from typing import Any, Callable, Final, Optional

from qtimeit.clock import Clock
from qtimeit.exceptions import ContinuationError
from qtimeit.scheduler import Scheduler

logger = logging.getLogger(__name__)

# Calls per unrolled loop body. The calibrated loop overhead is only valid
# for this batch size.
BATCH_SIZE: Final[int] = 5

# Batches between deadline checks in run_until.
DEADLINE_CHECK_BATCHES: Final[int] = 4

CALLS_PER_CHECK: Final[int] = BATCH_SIZE * DEADLINE_CHECK_BATCHES


@dataclass(frozen=True)
class LoopRun:
    """Raw result of one timed loop.

    Attributes:
        call_count: Number of candidate invocations.
        wallclock: Seconds between the first and last clock read.
        checks: Clock reads made inside the timed region.
    """

    call_count: int
    wallclock: float
    checks: int = 0


def batch_count(count: int) -> int:
    """Number of batches needed to make at least count calls."""
    return -(-count // BATCH_SIZE)


def run_counted(fn: Callable[[], Any], count: int, clock: Clock) -> LoopRun:
    """Call fn at least count times in a tight loop.

    The count is rounded up to a whole number of batches.

    Args:
        fn: Synchronous candidate.
        count: Minimum number of calls.
        clock: Clock to time with.

    Returns:
        LoopRun for the loop.
    """
    nbatches = batch_count(count)
    now = clock.now
    t1 = now()
    for _ in repeat(None, nbatches):
        fn()
        fn()
        fn()
        fn()
        fn()
    t2 = now()
    return LoopRun(nbatches * BATCH_SIZE, t2 - t1)


def run_until(fn: Callable[[], Any], duration: float, clock: Clock) -> LoopRun:
    """Call fn in a tight loop until duration seconds have passed.

    The deadline is checked every DEADLINE_CHECK_BATCHES batches, so the
    overrun is bounded by CALLS_PER_CHECK calls. Each check beyond the
    last is one extra clock read inside the timed region; callers subtract
    those as timer overhead. The loop overhead calibrated on run_counted is
    applied per call here too, so the outer group loop of each check is
    left in the corrected time. That bias is one loop step per
    CALLS_PER_CHECK calls.

    Args:
        fn: Synchronous candidate.
        duration: Seconds to run for.
        clock: Clock to time with.

    Returns:
        LoopRun for the loop; checks excludes the final read.
    """
    now = clock.now
    t1 = now()
    deadline = t1 + duration
    checks = 0
    while True:
        for _ in repeat(None, DEADLINE_CHECK_BATCHES):
            fn()
            fn()
            fn()
            fn()
            fn()
        checks += 1
        t2 = now()
        if t2 >= deadline:
            break
    return LoopRun(checks * CALLS_PER_CHECK, t2 - t1, checks - 1)


class ChainedLoop:
    """Chained-callback driver for asynchronous candidates.

    Invocation n+1 starts only after invocation n has called its
    continuation. Continuations that fire inline are handled by the driver's
    own loop instead of by recursion; after ``depth_limit`` consecutive
    iterations the next one is posted to the scheduler so the event loop
    gets a turn.

    An error passed to a continuation, or raised by the candidate, stops the
    chain and is handed to ``on_finish``.

    Example:
        ```python
        def on_finish(err, run):
            print(run.call_count, run.wallclock)

        ChainedLoop(fn, 1000, clock=clock, scheduler=Trampoline(),
                    on_finish=on_finish).start()
        ```
    """

    def __init__(
        self,
        fn: Callable[[Callable[..., None]], Any],
        count: int,
        *,
        clock: Clock,
        scheduler: Scheduler,
        on_finish: Callable[[Optional[BaseException], LoopRun], None],
        depth_limit: int = 100,
        name: str = "candidate",
    ) -> None:
        """Initialize the driver.

        Args:
            fn: Callback-style candidate ``fn(done)``.
            count: Number of calls to make.
            clock: Clock to time with.
            scheduler: Where to post the next iteration once the depth
                budget is exhausted.
            on_finish: Called once with ``(err, LoopRun)``.
            depth_limit: Iterations between yields to the scheduler.
            name: Candidate name for errors.
        """
        self._fn = fn
        self._count = count
        self._clock = clock
        self._scheduler = scheduler
        self._on_finish = on_finish
        self._depth_limit = max(1, depth_limit)
        self.name = name

        self.call_count = 0
        self._depth = 0
        self._t1 = 0.0
        self._pending = False
        self._inline = False
        self._finished = False

    @property
    def finished(self) -> bool:
        """Whether on_finish has been called."""
        return self._finished

    def start(self) -> None:
        """Record the start time and launch the first invocation."""
        self._t1 = self._clock.now()
        self._pump()

    def _exhausted(self) -> bool:
        return self.call_count >= self._count

    def _pump(self) -> None:
        while not self._finished:
            if self._exhausted():
                self._finish(None)
                return
            if self._depth >= self._depth_limit:
                self._depth = 0
                self._scheduler.post(self._pump)
                return

            self._depth += 1
            self.call_count += 1
            self._pending = True
            self._inline = True
            try:
                self._fn(self._continuation(self.call_count))
            except Exception as exc:
                if self._finished:
                    raise
                self._finish(exc)
                return
            finally:
                self._inline = False
            if self._pending:
                # resumed by the continuation
                return

    def _continuation(self, index: int) -> Callable[..., None]:
        called = False

        def done(err: Optional[BaseException] = None, *args: Any) -> None:
            nonlocal called
            if called:
                raise ContinuationError(self.name, index)
            called = True
            self._complete(err)

        return done

    def _complete(self, err: Optional[BaseException]) -> None:
        if self._finished:
            return
        self._pending = False
        if err is not None:
            self._finish(err)
        elif not self._inline:
            self._pump()

    def _finish(self, err: Optional[BaseException]) -> None:
        self._finished = True
        t2 = self._clock.now()
        if err is not None:
            logger.debug("Chained run of '%s' stopped after %d calls: %r",
                         self.name, self.call_count, err)
        self._on_finish(err, LoopRun(self.call_count, t2 - self._t1))
