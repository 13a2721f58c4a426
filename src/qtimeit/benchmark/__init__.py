"""
qtimeit Benchmark Module

Provides the benchmark harness and throughput digests.
"""
from qtimeit.benchmark.harness import BenchmarkHarness
from qtimeit.benchmark.stats import (
    Digest,
    sample_rate,
    summarize,
)
from qtimeit.benchmark.comparison import (
    ComparisonResult,
    compare,
    find_fastest,
)

__all__ = [
    # Harness
    "BenchmarkHarness",
    # Stats
    "Digest",
    "sample_rate",
    "summarize",
    # Comparison
    "ComparisonResult",
    "compare",
    "find_fastest",
]
