"""
Measurement Engine

Runs a candidate a number of times (or for a duration) and returns the
overhead-corrected elapsed time.

This module provides:
- Sample: Result of one timed run
- TimingEngine: timeit() / atimeit() and loop-count calibration
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from qtimeit.candidate import CandidateLike, as_candidate
from qtimeit.clock import Clock
from qtimeit.config import TimeitConfig, get_config
from qtimeit.device import make_clock
from qtimeit.exceptions import InvalidCandidateError, TimeitError
from qtimeit.loopcount import calibrate_loop_count, calibrate_loop_count_cb, is_count
from qtimeit.loops import ChainedLoop, LoopRun, run_counted, run_until
from qtimeit.overhead import Calibration, OverheadModel
from qtimeit.reporting import Label, Reporter
from qtimeit.scheduler import Scheduler, get_scheduler

logger = logging.getLogger(__name__)

TimedCallback = Callable[[Optional[BaseException], int, float, float], None]


@dataclass(frozen=True)
class Sample:
    """Result of one timed run.

    Attributes:
        call_count: Number of candidate calls made.
        elapsed: Overhead-corrected seconds. May be negative when the
            candidate costs less than the measurement noise.
        wallclock: Raw seconds between the start and end clock reads.
    """

    call_count: int
    elapsed: float
    wallclock: float

    @classmethod
    def zero(cls) -> "Sample":
        """Sample of a run that made no calls."""
        return cls(0, 0.0, 0.0)

    @property
    def rate(self) -> float:
        """Calls per second, or 0.0 if elapsed is not positive."""
        if self.elapsed <= 0:
            return 0.0
        return self.call_count / self.elapsed

    def to_dict(self) -> dict[str, Any]:
        """Convert sample to dictionary."""
        return {
            "call_count": self.call_count,
            "elapsed": self.elapsed,
            "wallclock": self.wallclock,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sample":
        """Create sample from dictionary."""
        return cls(
            call_count=data["call_count"],
            elapsed=data["elapsed"],
            wallclock=data["wallclock"],
        )


def _as_exception(err: Any) -> BaseException:
    if isinstance(err, BaseException):
        return err
    return TimeitError(f"Candidate reported an error: {err!r}", context={"error": repr(err)})


class TimingEngine:
    """Micro-benchmark timing engine.

    Synchronous candidates run in a batched tight loop. Candidates given
    together with a completion callback run through the chained-callback
    driver, one invocation after another.

    The engine shares a Calibration object; the overhead constants are
    measured on first use and subtracted from every run afterwards.

    Example:
        ```python
        engine = TimingEngine()

        sample = engine.timeit(1_000_000, lambda: None)
        sample = engine.timeit(0.5, my_function, "half a second of")

        def done(err, calls, elapsed, wallclock):
            print(calls / elapsed)

        engine.timeit(10_000, lambda cb: cb(), callback=done)
        ```
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        calibration: Optional[Calibration] = None,
        config: Optional[TimeitConfig] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        """Initialize engine.

        Args:
            clock: Clock to time with. Defaults to the calibration's clock,
                or the best available clock.
            calibration: Shared overhead calibration.
            config: Settings. Defaults to the calibration's config or
                get_config().
            reporter: Report line writer.
        """
        if config is None:
            config = calibration.config if calibration is not None else get_config()
        if clock is None:
            clock = calibration.clock if calibration is not None else make_clock(config.sync_cuda)
        self.config = config
        self.clock = clock
        self.calibration = calibration or Calibration(clock, config)
        self.reporter = reporter or Reporter(verbose=config.verbose)

    @property
    def overhead(self) -> OverheadModel:
        """Current overhead model."""
        return self.calibration.model

    def ensure_calibrated(self) -> OverheadModel:
        """Calibrate the synchronous overhead constants if not done yet."""
        return self.calibration.ensure()

    def timeit(
        self,
        target: float,
        fn: CandidateLike,
        label: Label = None,
        callback: Optional[TimedCallback] = None,
    ) -> Optional[Sample]:
        """Time a candidate.

        Args:
            target: int call count, or float duration in seconds.
            fn: Candidate, callable, or statement string.
            label: Report message, or ReportMode.SILENT.
            callback: Selects the asynchronous path; called with
                ``(err, call_count, elapsed, wallclock)``.

        Returns:
            Sample on the synchronous path, None on the asynchronous path.

        Raises:
            InvalidTargetError: If target is neither a count nor a duration.
            InvalidCandidateError: If fn cannot run on the selected path.
        """
        if callback is not None:
            self._timeit_cb(target, fn, label, callback)
            return None

        counted = is_count(target)
        candidate = as_candidate(fn)
        if candidate.is_async:
            raise InvalidCandidateError(
                f"Asynchronous candidate '{candidate.name}' needs a callback or atimeit()",
                candidate=candidate.name,
                kind=candidate.kind.value,
            )
        if target <= 0:
            return Sample.zero()

        model = self.calibration.ensure()
        call = candidate.fn

        # one untimed call moves first-call setup out of the timed region
        call()

        if counted:
            run = run_counted(call, int(target), self.clock)
        else:
            run = run_until(call, target, self.clock)

        sample = Sample(run.call_count, model.correct(run), run.wallclock)
        logger.debug(
            "Timed '%s': %d calls, %.6f s corrected, %.6f s wall",
            candidate.name, sample.call_count, sample.elapsed, sample.wallclock,
        )
        self.reporter.report_run(candidate.name, sample.call_count, sample.elapsed, label)
        return sample

    def _timeit_cb(
        self,
        target: float,
        fn: CandidateLike,
        label: Label,
        callback: TimedCallback,
    ) -> None:
        is_count(target)
        candidate = as_candidate(fn, asynchronous=True)
        if target <= 0:
            callback(None, 0, 0.0, 0.0)
            return

        call = candidate.as_callback()
        scheduler = get_scheduler()

        def calibrated(err: Optional[BaseException], model: OverheadModel) -> None:
            if err is not None:
                callback(err, 0, 0.0, 0.0)
                return

            def timed(err: Optional[BaseException], run: LoopRun) -> None:
                elapsed = model.correct_cb(run)
                if err is not None:
                    callback(err, run.call_count, elapsed, run.wallclock)
                    return
                logger.debug(
                    "Timed '%s' with callbacks: %d calls, %.6f s corrected, %.6f s wall",
                    candidate.name, run.call_count, elapsed, run.wallclock,
                )
                self.reporter.report_run(candidate.name, run.call_count, elapsed, label)
                callback(None, run.call_count, elapsed, run.wallclock)

            def resolved(err: Optional[BaseException], count: int) -> None:
                if err is not None:
                    callback(err, 0, 0.0, 0.0)
                    return

                def primed(err: Optional[BaseException], run: LoopRun) -> None:
                    if err is not None:
                        callback(err, 0, 0.0, 0.0)
                        return
                    self._chain(call, count, scheduler, timed, candidate.name)

                # two chained untimed calls move first-call setup out of the timed region
                self._chain(call, 2, scheduler, primed, candidate.name)

            self._count_cb(target, call, scheduler, resolved, candidate.name)

        self.calibration.ensure_cb(scheduler, calibrated)

    async def atimeit(
        self,
        target: float,
        fn: CandidateLike,
        label: Label = None,
    ) -> Sample:
        """Time a candidate on the asynchronous path from a coroutine.

        Args:
            target: int call count, or float duration in seconds.
            fn: Callback-style or ``async def`` candidate.
            label: Report message, or ReportMode.SILENT.

        Returns:
            Sample of the run.

        Raises:
            Exception: The error the candidate reported, if any.
        """
        future: asyncio.Future[Sample] = asyncio.get_running_loop().create_future()

        def done(err: Optional[BaseException], call_count: int, elapsed: float, wallclock: float) -> None:
            if future.done():
                return
            if err is not None:
                future.set_exception(_as_exception(err))
            else:
                future.set_result(Sample(call_count, elapsed, wallclock))

        self.timeit(target, fn, label, callback=done)
        return await future

    def calibrate_loop_count(self, target: float, fn: CandidateLike) -> int:
        """Resolve a target into a call count for a synchronous candidate.

        While the overhead is being calibrated, a duration is resolved from
        a single trial.

        Args:
            target: int call count, or float duration in seconds.
            fn: Synchronous candidate.

        Returns:
            Call count.
        """
        candidate = as_candidate(fn)
        if candidate.is_async:
            raise InvalidCandidateError(
                f"Asynchronous candidate '{candidate.name}' needs calibrate_loop_count_cb()",
                candidate=candidate.name,
                kind=candidate.kind.value,
            )
        call = candidate.fn
        return calibrate_loop_count(
            target,
            lambda count: run_counted(call, count, self.clock),
            self._min_trial(),
        )

    def calibrate_loop_count_cb(
        self,
        target: float,
        fn: CandidateLike,
        callback: Callable[[Optional[BaseException], int], None],
    ) -> None:
        """Resolve a target into a call count through the callback path.

        Args:
            target: int call count, or float duration in seconds.
            fn: Callback-style or ``async def`` candidate.
            callback: Called with ``(err, count)``.
        """
        if is_count(target):
            callback(None, int(target))
            return
        candidate = as_candidate(fn, asynchronous=True)
        self._count_cb(target, candidate.as_callback(), get_scheduler(), callback, candidate.name)

    async def acalibrate_loop_count(self, target: float, fn: CandidateLike) -> int:
        """Coroutine form of calibrate_loop_count_cb()."""
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

        def done(err: Optional[BaseException], count: int) -> None:
            if future.done():
                return
            if err is not None:
                future.set_exception(_as_exception(err))
            else:
                future.set_result(count)

        self.calibrate_loop_count_cb(target, fn, done)
        return await future

    def _min_trial(self) -> float:
        if self.calibration.calibrating:
            return 0.0
        return self.config.min_trial_duration

    def _count_cb(
        self,
        target: float,
        call: Callable[..., Any],
        scheduler: Scheduler,
        callback: Callable[[Optional[BaseException], int], None],
        name: str,
    ) -> None:
        calibrate_loop_count_cb(
            target,
            lambda count, done: self._chain(call, count, scheduler, done, name),
            callback,
            self._min_trial(),
        )

    def _chain(
        self,
        call: Callable[..., Any],
        count: int,
        scheduler: Scheduler,
        on_finish: Callable[[Optional[BaseException], LoopRun], None],
        name: str = "candidate",
    ) -> None:
        ChainedLoop(
            call,
            count,
            clock=self.clock,
            scheduler=scheduler,
            on_finish=on_finish,
            depth_limit=self.config.async_depth_limit,
            name=name,
        ).start()
