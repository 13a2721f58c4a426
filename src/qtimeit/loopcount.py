"""
Loop-Count Calibration

Converts a target into a call count. An ``int`` target already is a call
count. A ``float`` target is a duration in seconds: short trial runs grow
geometrically until one takes at least ``min_trial`` seconds, then the count
is extrapolated linearly from that trial.
"""
from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Callable, Optional

from qtimeit.exceptions import InvalidTargetError
from qtimeit.loops import LoopRun

logger = logging.getLogger(__name__)

MIN_GROWTH = 2.0
MAX_GROWTH = 10.0

Measure = Callable[[int], LoopRun]
MeasureCb = Callable[[int, Callable[[Optional[BaseException], LoopRun], None]], None]


def is_count(target: Any) -> bool:
    """Whether target denotes a call count.

    Args:
        target: Loop target.

    Returns:
        True for ints, False for float durations.

    Raises:
        InvalidTargetError: For bools, NaN, infinities and non-numbers.
    """
    if isinstance(target, bool) or not isinstance(target, Real):
        raise InvalidTargetError(target)
    if isinstance(target, int):
        return True
    if not math.isfinite(target):
        raise InvalidTargetError(target)
    return False


def next_trial_count(count: int, wallclock: float, min_trial: float) -> int:
    """Grow a trial count toward min_trial seconds.

    The growth factor is the ratio of desired to observed duration, clamped
    to [MIN_GROWTH, MAX_GROWTH].
    """
    if wallclock > 0:
        growth = min(max(min_trial / wallclock, MIN_GROWTH), MAX_GROWTH)
    else:
        growth = MAX_GROWTH
    return max(count + 1, int(math.ceil(count * growth)))


def extrapolate(run: LoopRun, target: float) -> int:
    """Call count expected to take target seconds, from a trial run."""
    if run.wallclock <= 0:
        return max(1, run.call_count)
    return max(1, int(round(run.call_count * target / run.wallclock)))


def calibrate_loop_count(
    target: float,
    measure: Measure,
    min_trial: float = 0.02,
) -> int:
    """Resolve a target into a call count.

    Args:
        target: int call count, or float duration in seconds.
        measure: Runs the candidate for a count and returns the raw LoopRun.
        min_trial: Shortest trial to extrapolate from, in seconds.

    Returns:
        Call count, at least 1 for duration targets.

    Raises:
        InvalidTargetError: If target is neither a count nor a duration.
    """
    if is_count(target):
        return int(target)

    count = 1
    while True:
        run = measure(count)
        logger.debug("Trial of %d calls took %.6f s", run.call_count, run.wallclock)
        if run.wallclock >= min_trial:
            break
        count = next_trial_count(run.call_count, run.wallclock, min_trial)

    loops = extrapolate(run, target)
    logger.debug("Calibrated %d loops for %.4f s", loops, target)
    return loops


def calibrate_loop_count_cb(
    target: float,
    measure: MeasureCb,
    callback: Callable[[Optional[BaseException], int], None],
    min_trial: float = 0.02,
) -> None:
    """Resolve a target into a call count, driving trials through callbacks.

    Args:
        target: int call count, or float duration in seconds.
        measure: ``measure(count, done)`` runs the candidate and calls
            ``done(err, LoopRun)``.
        callback: Called with ``(err, count)``.
        min_trial: Shortest trial to extrapolate from, in seconds.

    Raises:
        InvalidTargetError: If target is neither a count nor a duration.
    """
    if is_count(target):
        callback(None, int(target))
        return

    def trial_done(err: Optional[BaseException], run: LoopRun) -> None:
        if err is not None:
            callback(err, 0)
            return
        logger.debug("Callback trial of %d calls took %.6f s", run.call_count, run.wallclock)
        if run.wallclock >= min_trial:
            loops = extrapolate(run, target)
            logger.debug("Calibrated %d callback loops for %.4f s", loops, target)
            callback(None, loops)
        else:
            measure(next_trial_count(run.call_count, run.wallclock, min_trial), trial_done)

    measure(1, trial_done)
