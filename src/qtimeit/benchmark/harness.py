"""
Benchmark Harness

Repeats timed runs of a candidate over a wall-clock budget and reduces the
samples to a Digest.
"""
from __future__ import annotations

import logging
from typing import Optional

from qtimeit.benchmark.stats import Digest, summarize
from qtimeit.candidate import Candidate, CandidateLike, as_candidate
from qtimeit.config import TimeitConfig
from qtimeit.engine import Sample, TimingEngine
from qtimeit.enums import SILENT
from qtimeit.exceptions import ConfigError, InvalidCandidateError
from qtimeit.loopcount import is_count
from qtimeit.reporting import Label, Reporter

logger = logging.getLogger(__name__)


class BenchmarkHarness:
    """Harness for benchmarking candidates over a time budget.

    Each candidate gets a loop count calibrated to a slice of the budget,
    then silent timed runs at that count are repeated until the runs have
    used up the budget (or a fixed number of times).

    Example:
        ```python
        harness = BenchmarkHarness(TimingEngine())

        digest = harness.run(lambda: sorted(data), name="sorted", budget=2.0)
        print(f"{digest.avg:.0f} calls/sec over {digest.run_count} runs")
        ```
    """

    def __init__(
        self,
        engine: Optional[TimingEngine] = None,
        config: Optional[TimeitConfig] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        """Initialize benchmark harness.

        Args:
            engine: Measurement engine. Created from config if None.
            config: Benchmark settings. Defaults to the engine's config.
            reporter: Digest report writer. Defaults to the engine's.
        """
        self.engine = engine or TimingEngine(config=config)
        self.config = config or self.engine.config
        self.reporter = reporter or self.engine.reporter

    def run(
        self,
        fn: CandidateLike,
        name: Optional[str] = None,
        budget: Optional[float] = None,
        loops: Optional[float] = None,
        repeats: Optional[int] = None,
        items_per_call: float = 1,
        label: Label = None,
    ) -> Digest:
        """Benchmark a synchronous candidate.

        Args:
            fn: Candidate, callable, or statement string.
            name: Report name.
            budget: Seconds to spend on the candidate. Defaults to
                config.bench_budget.
            loops: Positive target of every run (count or seconds).
                Calibrated to ``budget * bench_run_fraction`` seconds if None.
            repeats: Exact number of runs instead of a time budget.
            items_per_call: Items processed per call, scales all rates.
            label: Digest report label, or ReportMode.SILENT.

        Returns:
            Digest of the collected samples.
        """
        candidate = as_candidate(fn, name=name)
        if candidate.is_async:
            raise InvalidCandidateError(
                f"Asynchronous candidate '{candidate.name}' needs arun()",
                candidate=candidate.name,
                kind=candidate.kind.value,
            )
        budget = self._budget(budget)
        self._check_loops(loops)
        self.engine.ensure_calibrated()
        if loops is None:
            loops = self.engine.calibrate_loop_count(
                budget * self.config.bench_run_fraction, candidate
            )

        clock = self.engine.clock
        samples: list[Sample] = []
        spent = 0.0
        start = clock.now()
        while self._more(samples, spent, budget, repeats):
            t1 = clock.now()
            sample = self.engine.timeit(loops, candidate, SILENT)
            spent += clock.now() - t1
            samples.append(sample)  # type: ignore[arg-type]
        return self._finish(candidate, samples, clock.now() - start, items_per_call, label)

    async def arun(
        self,
        fn: CandidateLike,
        name: Optional[str] = None,
        budget: Optional[float] = None,
        loops: Optional[float] = None,
        repeats: Optional[int] = None,
        items_per_call: float = 1,
        label: Label = None,
    ) -> Digest:
        """Benchmark a candidate from a coroutine.

        Plain callables are treated as callback-style ``fn(done)``;
        pass a SyncCandidate to benchmark a synchronous function here.
        Arguments are as for run().

        Returns:
            Digest of the collected samples.
        """
        candidate = as_candidate(fn, asynchronous=True, name=name)
        budget = self._budget(budget)
        self._check_loops(loops)
        self.engine.ensure_calibrated()
        if loops is None:
            slice_target = budget * self.config.bench_run_fraction
            if candidate.is_async:
                loops = await self.engine.acalibrate_loop_count(slice_target, candidate)
            else:
                loops = self.engine.calibrate_loop_count(slice_target, candidate)

        clock = self.engine.clock
        samples: list[Sample] = []
        spent = 0.0
        start = clock.now()
        while self._more(samples, spent, budget, repeats):
            t1 = clock.now()
            if candidate.is_async:
                sample = await self.engine.atimeit(loops, candidate, SILENT)
            else:
                sample = self.engine.timeit(loops, candidate, SILENT)  # type: ignore[assignment]
            spent += clock.now() - t1
            samples.append(sample)
        return self._finish(candidate, samples, clock.now() - start, items_per_call, label)

    def _budget(self, budget: Optional[float]) -> float:
        if budget is None:
            return self.config.bench_budget
        if budget <= 0:
            raise ConfigError(
                "Benchmark budget must be positive",
                config_key="budget",
                expected="> 0",
                got=budget,
            )
        return budget

    @staticmethod
    def _check_loops(loops: Optional[float]) -> None:
        if loops is None:
            return
        is_count(loops)
        if loops <= 0:
            raise ConfigError(
                "Loops per run must be positive",
                config_key="loops",
                expected="> 0",
                got=loops,
            )

    @staticmethod
    def _more(
        samples: list[Sample],
        spent: float,
        budget: float,
        repeats: Optional[int],
    ) -> bool:
        if repeats is not None:
            return len(samples) < repeats
        return spent < budget

    def _finish(
        self,
        candidate: Candidate,
        samples: list[Sample],
        duration: float,
        items_per_call: float,
        label: Label,
    ) -> Digest:
        digest = summarize(samples, candidate.name, duration, items_per_call)
        logger.debug(
            "Benchmarked '%s': %d runs, avg %.2f/s over %.3f s",
            digest.name, digest.run_count, digest.avg, digest.duration,
        )
        self.reporter.report_digest(digest, label)
        return digest
