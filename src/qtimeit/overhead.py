"""
Overhead Calibration

Measures, once per Calibration object, the fixed cost of the measurement
apparatus so that it can be subtracted from every timed run:

- timer_overhead: seconds per clock read
- loop_overhead: seconds per million no-op calls through the counted loop
- loop_overhead_cb: seconds per million no-op calls through the
  chained-callback driver

The loop constants are estimated over several rounds. Each round measures
the residual left by the current estimate and moves the estimate by that
residual with weight 1/(k+1), i.e. the estimate is the running mean of the
per-round measurements.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from itertools import repeat
from typing import Callable, Optional

from qtimeit.clock import Clock, default_clock
from qtimeit.config import TimeitConfig, get_config
from qtimeit.loops import ChainedLoop, LoopRun, run_counted
from qtimeit.scheduler import Scheduler

logger = logging.getLogger(__name__)

TIMER_WARMUP_READS = 2000

OverheadCallback = Callable[[Optional[BaseException], "OverheadModel"], None]


def _noop() -> None:
    pass


def _noop_cb(done: Callable[..., None]) -> None:
    done()


@dataclass(frozen=True)
class OverheadModel:
    """Calibrated overhead constants.

    Attributes:
        timer_overhead: Seconds per clock read.
        loop_overhead: Seconds per million synchronous calls.
        loop_overhead_cb: Seconds per million chained-callback calls.
        residuals: Per-round residual seconds of the sync estimate.
        residuals_cb: Per-round residual seconds of the callback estimate.
    """

    timer_overhead: float = 0.0
    loop_overhead: float = 0.0
    loop_overhead_cb: float = 0.0
    residuals: tuple[float, ...] = field(default=(), compare=False)
    residuals_cb: tuple[float, ...] = field(default=(), compare=False)

    @classmethod
    def zero(cls) -> "OverheadModel":
        """Model that corrects nothing, used while calibrating."""
        return cls()

    def correct(self, run: LoopRun) -> float:
        """Overhead-corrected elapsed seconds of a counted or deadline loop."""
        return (
            run.wallclock
            - self.timer_overhead
            - self.loop_overhead * run.call_count * 0.000001
            - self.timer_overhead * run.checks
        )

    def correct_cb(self, run: LoopRun) -> float:
        """Overhead-corrected elapsed seconds of a chained-callback loop."""
        return (
            run.wallclock
            - self.timer_overhead
            - self.loop_overhead_cb * run.call_count * 0.000001
            - self.timer_overhead * run.checks
        )

    def to_dict(self) -> dict[str, float]:
        """Convert constants to dictionary."""
        return {
            "timer_overhead": self.timer_overhead,
            "loop_overhead": self.loop_overhead,
            "loop_overhead_cb": self.loop_overhead_cb,
        }


class _RunningMean:
    """Loop overhead estimator fed one no-op run per round."""

    def __init__(self, timer_overhead: float) -> None:
        self.timer_overhead = timer_overhead
        self.estimate = 0.0
        self.residuals: list[float] = []

    def update(self, run: LoopRun) -> None:
        residual = (
            run.wallclock
            - self.timer_overhead
            - self.estimate * run.call_count * 0.000001
        )
        self.residuals.append(residual)
        rounds = len(self.residuals)
        self.estimate += residual * 1e6 / run.call_count / rounds


class Calibration:
    """One-shot holder of the overhead model.

    Synchronous calibration runs at most once, under a lock, on the first
    ``ensure()``. Callback calibration runs at most once on the first
    ``ensure_cb()``; callers arriving while it is in progress are resumed
    when it finishes.

    While the synchronous part runs, ``calibrating`` is True and ``model`` is
    the zero model, so timed runs made in the meantime skip overhead
    subtraction instead of recursing into calibration. While the callback
    part runs, ``calibrating_cb`` is True and ``model`` keeps the measured
    synchronous constants with ``loop_overhead_cb`` still zero.

    Example:
        ```python
        calibration = Calibration()
        model = calibration.ensure()
        print(f"clock read: {model.timer_overhead * 1e9:.1f} ns")
        ```
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        config: Optional[TimeitConfig] = None,
        model: Optional[OverheadModel] = None,
    ) -> None:
        """Initialize calibration.

        Args:
            clock: Clock to calibrate. Defaults to the process clock.
            config: Calibration settings. Defaults to get_config().
            model: Known constants; skips calibration entirely.
        """
        self.clock = clock or default_clock()
        self.config = config or get_config()
        self._model = model
        self._lock = threading.Lock()
        self.calibrating = False
        self.calibrated = model is not None
        self.calibrated_cb = model is not None
        self.calibrating_cb = False
        self._cb_waiters: list[OverheadCallback] = []

    @property
    def model(self) -> OverheadModel:
        """Current constants; the zero model while the synchronous part runs."""
        if self.calibrating or self._model is None:
            return OverheadModel.zero()
        return self._model

    def ensure(self) -> OverheadModel:
        """Calibrate the synchronous constants if not done yet.

        Returns:
            Current model.
        """
        if self.calibrated or self.calibrating:
            return self.model
        with self._lock:
            if not self.calibrated:
                self._calibrate_sync()
        return self.model

    def ensure_cb(self, scheduler: Scheduler, callback: OverheadCallback) -> None:
        """Calibrate the callback constant if not done yet.

        The callback runs with ``(err, model)``, inline when nothing needs
        to be measured, otherwise once the calibration chain finishes.

        Args:
            scheduler: Scheduler for the calibration chain.
            callback: Completion callback.
        """
        self.ensure()
        if self.calibrated_cb:
            callback(None, self.model)
            return
        if self.calibrating_cb:
            self._cb_waiters.append(callback)
            return
        if self.calibrating:
            callback(None, self.model)
            return
        self.calibrating_cb = True
        self._cb_waiters.append(callback)
        self._calibrate_cb(scheduler)

    def _calibrate_sync(self) -> None:
        cfg = self.config
        clock = self.clock
        now = clock.now
        self.calibrating = True
        try:
            for _ in repeat(None, TIMER_WARMUP_READS):
                now()
            if cfg.warmup_loops:
                run_counted(_noop, cfg.warmup_loops, clock)

            t1 = now()
            for _ in repeat(None, cfg.timer_reads):
                now()
            t2 = now()
            timer_overhead = (t2 - t1) / (cfg.timer_reads + 1)

            estimator = _RunningMean(timer_overhead)
            for _ in range(cfg.calibration_rounds):
                estimator.update(run_counted(_noop, cfg.calibration_loops, clock))

            self._model = OverheadModel(
                timer_overhead=timer_overhead,
                loop_overhead=estimator.estimate,
                residuals=tuple(estimator.residuals),
            )
            self.calibrated = True
        finally:
            self.calibrating = False

        logger.debug(
            "Calibrated timer overhead %.3g s/read, loop overhead %.4g s/1M calls "
            "(residuals %s)",
            timer_overhead,
            estimator.estimate,
            ["%.3g" % r for r in estimator.residuals],
        )

    def _calibrate_cb(self, scheduler: Scheduler) -> None:
        cfg = self.config
        model = self._model or OverheadModel.zero()
        estimator = _RunningMean(model.timer_overhead)
        rounds_left = [cfg.calibration_rounds]

        def launch(count: int, on_finish: Callable[[Optional[BaseException], LoopRun], None]) -> None:
            ChainedLoop(
                _noop_cb,
                count,
                clock=self.clock,
                scheduler=scheduler,
                on_finish=on_finish,
                depth_limit=cfg.async_depth_limit,
                name="calibration",
            ).start()

        def warmed_up(err: Optional[BaseException], run: LoopRun) -> None:
            if err is not None:
                finished(err)
            else:
                launch(cfg.calibration_loops_cb, round_done)

        def round_done(err: Optional[BaseException], run: LoopRun) -> None:
            if err is not None:
                finished(err)
                return
            estimator.update(run)
            rounds_left[0] -= 1
            if rounds_left[0] > 0:
                launch(cfg.calibration_loops_cb, round_done)
            else:
                finished(None)

        def finished(err: Optional[BaseException]) -> None:
            self.calibrating_cb = False
            if err is None:
                self._model = replace(
                    model,
                    loop_overhead_cb=estimator.estimate,
                    residuals_cb=tuple(estimator.residuals),
                )
                self.calibrated_cb = True
                logger.debug(
                    "Calibrated callback loop overhead %.4g s/1M calls",
                    estimator.estimate,
                )
            waiters, self._cb_waiters = self._cb_waiters, []
            for waiter in waiters:
                waiter(err, self.model)

        launch(min(cfg.warmup_loops, cfg.calibration_loops_cb) or 1, warmed_up)
