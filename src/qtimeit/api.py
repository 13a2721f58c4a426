"""qtimeit Module-Level API.

Convenience functions on a process-wide default engine:
- timeit() / atimeit() - Time one candidate
- bench() / abench() - Benchmark a mapping of candidates over a budget
- runit() - Benchmark one candidate for a fixed number of runs
- get_engine() - The default engine (calibrated on first use)
"""
from __future__ import annotations

import threading
from typing import Mapping, Optional

from qtimeit.benchmark.harness import BenchmarkHarness
from qtimeit.benchmark.stats import Digest
from qtimeit.candidate import CandidateLike
from qtimeit.config import get_config, on_configure
from qtimeit.engine import Sample, TimedCallback, TimingEngine
from qtimeit.reporting import Label

# Module-level default engine
_engine: Optional[TimingEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> TimingEngine:
    """Get or create the process-wide default engine.

    The engine's overhead calibration runs once, on its first timed run.

    Returns:
        Default TimingEngine.
    """
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = TimingEngine(config=get_config())
    return _engine


def reset_engine() -> None:
    """Drop the default engine; the next use builds and calibrates a new one."""
    global _engine
    with _engine_lock:
        _engine = None


on_configure(reset_engine)


def timeit(
    target: float,
    fn: CandidateLike,
    label: Label = None,
    callback: Optional[TimedCallback] = None,
) -> Optional[Sample]:
    """Time a candidate on the default engine.

    Args:
        target: int call count, or float duration in seconds.
        fn: Candidate, callable, or statement string.
        label: Report message, or ReportMode.SILENT.
        callback: Selects the asynchronous path; called with
            ``(err, call_count, elapsed, wallclock)``.

    Returns:
        Sample on the synchronous path, None on the asynchronous path.

    Example:
        >>> import qtimeit
        >>> sample = qtimeit.timeit(1_000_000, "x = 1 + 1")
        >>> sample = qtimeit.timeit(0.25, lambda: sorted(range(100)), qtimeit.SILENT)
    """
    return get_engine().timeit(target, fn, label, callback)


async def atimeit(target: float, fn: CandidateLike, label: Label = None) -> Sample:
    """Time an asynchronous candidate on the default engine."""
    return await get_engine().atimeit(target, fn, label)


def bench(
    candidates: Mapping[str, CandidateLike],
    budget: Optional[float] = None,
    loops: Optional[float] = None,
    repeats: Optional[int] = None,
    items_per_call: float = 1,
    label: Label = None,
) -> dict[str, Digest]:
    """Benchmark synchronous candidates one after another.

    Args:
        candidates: Mapping of name to candidate.
        budget: Seconds per candidate. Defaults to config.bench_budget.
        loops: Target of every run. Calibrated per candidate if None.
        repeats: Exact number of runs per candidate instead of a budget.
        items_per_call: Items processed per call.
        label: Digest report label, or ReportMode.SILENT.

    Returns:
        Mapping of name to Digest, in input order.

    Example:
        >>> import qtimeit
        >>> digests = qtimeit.bench({
        ...     "list": lambda: list(range(10)),
        ...     "comprehension": lambda: [i for i in range(10)],
        ... }, budget=1.0)
    """
    harness = BenchmarkHarness(get_engine())
    return {
        name: harness.run(
            fn,
            name=name,
            budget=budget,
            loops=loops,
            repeats=repeats,
            items_per_call=items_per_call,
            label=label,
        )
        for name, fn in candidates.items()
    }


async def abench(
    candidates: Mapping[str, CandidateLike],
    budget: Optional[float] = None,
    loops: Optional[float] = None,
    repeats: Optional[int] = None,
    items_per_call: float = 1,
    label: Label = None,
) -> dict[str, Digest]:
    """Benchmark asynchronous candidates one after another.

    Plain callables are treated as callback-style ``fn(done)``. Arguments
    are as for bench().
    """
    harness = BenchmarkHarness(get_engine())
    digests: dict[str, Digest] = {}
    for name, fn in candidates.items():
        digests[name] = await harness.arun(
            fn,
            name=name,
            budget=budget,
            loops=loops,
            repeats=repeats,
            items_per_call=items_per_call,
            label=label,
        )
    return digests


def runit(
    repeats: int,
    loops: float,
    items_per_call: float,
    name: str,
    fn: CandidateLike,
) -> Digest:
    """Benchmark a candidate for a fixed number of runs.

    Args:
        repeats: Number of timed runs.
        loops: Target of every run (count or seconds).
        items_per_call: Items processed per call.
        name: Report name.
        fn: Synchronous candidate.

    Returns:
        Digest of the runs; item rates are reported unless not verbose.
    """
    harness = BenchmarkHarness(get_engine())
    return harness.run(fn, name=name, loops=loops, repeats=repeats, items_per_call=items_per_call)
