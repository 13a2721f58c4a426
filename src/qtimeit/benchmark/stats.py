"""
Sample Reduction

Reduces the samples of one benchmarked candidate to a Digest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from qtimeit.engine import Sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Digest:
    """Throughput summary of one benchmarked candidate.

    Rates are items per second, where each call processes
    ``items_per_call`` items.

    Attributes:
        name: Candidate name.
        min: Lowest per-sample rate.
        max: Highest per-sample rate.
        avg: Aggregate rate, total_count / total_elapsed.
        total_count: Calls summed over the positive samples.
        total_elapsed: Corrected seconds summed over the positive samples.
        run_count: Number of samples taken.
        noise_count: Samples left out because elapsed was not positive.
        duration: Wall seconds spanning all runs.
        items_per_call: Items processed per call.
    """

    name: str
    min: float
    max: float
    avg: float
    total_count: int
    total_elapsed: float
    run_count: int
    noise_count: int
    duration: float
    items_per_call: float = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert digest to dictionary."""
        return {
            "name": self.name,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "total_count": self.total_count,
            "total_elapsed": self.total_elapsed,
            "run_count": self.run_count,
            "noise_count": self.noise_count,
            "duration": self.duration,
            "items_per_call": self.items_per_call,
        }


def sample_rate(sample: Sample, items_per_call: float = 1) -> float:
    """Items per second of one sample.

    Raises:
        ValueError: If the sample's elapsed time is not positive.
    """
    if sample.elapsed <= 0:
        raise ValueError("Cannot compute the rate of a non-positive sample")
    return sample.call_count * items_per_call / sample.elapsed


def summarize(
    samples: Sequence[Sample],
    name: str = "",
    duration: float = 0.0,
    items_per_call: float = 1,
) -> Digest:
    """Reduce samples to a Digest.

    Samples whose corrected elapsed time is not positive are measurement
    noise: they are counted in ``noise_count`` and otherwise ignored.
    ``avg`` weights samples by their elapsed time, it is not a mean of the
    per-sample rates.

    Args:
        samples: Samples of one candidate.
        name: Candidate name.
        duration: Wall seconds spanning all runs.
        items_per_call: Items processed per call.

    Returns:
        Digest; all rates are 0.0 when no sample is positive.
    """
    positive = [s for s in samples if s.elapsed > 0]
    noise_count = len(samples) - len(positive)
    if noise_count:
        logger.warning(
            "%s: %d of %d samples had non-positive elapsed time (noise)",
            name or "candidate", noise_count, len(samples),
        )

    total_count = sum(s.call_count for s in positive)
    total_elapsed = sum(s.elapsed for s in positive)

    if positive:
        rates = [sample_rate(s, items_per_call) for s in positive]
        rate_min = min(rates)
        rate_max = max(rates)
        rate_avg = total_count * items_per_call / total_elapsed
    else:
        rate_min = rate_max = rate_avg = 0.0

    return Digest(
        name=name,
        min=rate_min,
        max=rate_max,
        avg=rate_avg,
        total_count=total_count,
        total_elapsed=total_elapsed,
        run_count=len(samples),
        noise_count=noise_count,
        duration=duration,
        items_per_call=items_per_call,
    )
