"""
Candidate Comparison

Provides head-to-head comparison of alternative implementations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from qtimeit.benchmark.harness import BenchmarkHarness
from qtimeit.benchmark.stats import Digest
from qtimeit.candidate import CandidateLike


@dataclass(frozen=True)
class ComparisonResult:
    """Result of comparing two candidates.

    Attributes:
        baseline: Digest of the baseline candidate.
        candidate: Digest of the candidate under test.
        speedup: Throughput ratio candidate.avg / baseline.avg.
        winner: "baseline", "candidate", or "tie".
    """

    baseline: Digest
    candidate: Digest
    speedup: float
    winner: str

    def summary(self) -> str:
        """Generate summary string.

        Returns:
            Human-readable summary.
        """
        lines = [
            f"Baseline:  {self.baseline.avg:.2f} / sec ({self.baseline.name})",
            f"Candidate: {self.candidate.avg:.2f} / sec ({self.candidate.name})",
            f"Speedup:   {self.speedup:.2f}x",
            f"Winner:    {self.winner}",
        ]
        return "\n".join(lines)


def pick_winner(speedup: float, min_speedup: float = 1.05) -> str:
    """Name the winner of a comparison.

    Args:
        speedup: candidate / baseline throughput.
        min_speedup: Ratio either side must exceed to win.

    Returns:
        "candidate", "baseline", or "tie".
    """
    if speedup >= min_speedup:
        return "candidate"
    if speedup <= 1 / min_speedup:
        return "baseline"
    return "tie"


def compare(
    baseline_fn: CandidateLike,
    candidate_fn: CandidateLike,
    harness: Optional[BenchmarkHarness] = None,
    budget: Optional[float] = None,
    min_speedup: float = 1.05,
) -> ComparisonResult:
    """Compare two synchronous implementations.

    Runs both candidates through the benchmark harness, baseline first,
    and compares their aggregate throughput.

    Args:
        baseline_fn: Baseline implementation.
        candidate_fn: Implementation under test.
        harness: Benchmark harness (a new one if None).
        budget: Seconds per candidate.
        min_speedup: Ratio needed to declare a winner.

    Returns:
        ComparisonResult with both digests.

    Example:
        ```python
        result = compare(lambda: sorted(data), lambda: my_sort(data))
        print(result.summary())
        ```
    """
    if min_speedup < 1:
        raise ValueError("min_speedup must be at least 1")
    harness = harness or BenchmarkHarness()

    baseline = harness.run(baseline_fn, name="baseline", budget=budget)
    candidate = harness.run(candidate_fn, name="candidate", budget=budget)

    if baseline.avg > 0:
        speedup = candidate.avg / baseline.avg
    else:
        speedup = float("inf")

    return ComparisonResult(
        baseline=baseline,
        candidate=candidate,
        speedup=speedup,
        winner=pick_winner(speedup, min_speedup),
    )


def find_fastest(digests: Mapping[str, Digest]) -> tuple[str, Digest]:
    """Find the candidate with the highest aggregate throughput.

    Args:
        digests: Mapping of candidate name to digest.

    Returns:
        Tuple of (name, digest) for the fastest candidate.

    Raises:
        ValueError: If digests is empty.
    """
    if not digests:
        raise ValueError("Cannot pick the fastest of no candidates")
    fastest = max(digests, key=lambda k: digests[k].avg)
    return fastest, digests[fastest]
