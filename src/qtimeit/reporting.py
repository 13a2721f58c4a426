"""
Run Reporting

Human-readable lines for timed runs and benchmark digests.
"""
from __future__ import annotations

import math
import sys
from typing import TYPE_CHECKING, Optional, TextIO, Union

from qtimeit.enums import ReportMode

if TYPE_CHECKING:
    from qtimeit.benchmark.stats import Digest

Label = Union[str, ReportMode, None]


def format_float(value: float, decimals: int) -> str:
    """Format a float with a fixed number of decimals.

    Rounds half away from zero, so ``format_float(0.01357, 3) == "0.014"``
    and ``format_float(-2.5, 0) == "-3"``.

    Args:
        value: Value to format.
        decimals: Digits after the decimal point.

    Returns:
        Formatted string.
    """
    if not math.isfinite(value):
        return str(value)
    sign = ""
    if value < 0:
        sign = "-"
        value = -value
    digits = str(int(value * 10 ** decimals + 0.5))
    if decimals == 0:
        return sign + digits
    digits = digits.rjust(decimals + 1, "0")
    return sign + digits[:-decimals] + "." + digits[-decimals:]


def format_run(name: str, nloops: int, duration: float, msg: Optional[str] = None) -> str:
    """Format the report line of one timed run.

    Example:
        ``loop "noop": 1000000 loops in 0.0321 sec: 31152647.98 / sec, 0.000032 ms each``
    """
    prefix = f"{msg} " if msg else ""
    rate = nloops / duration if duration else 0.0
    each = duration / nloops * 1000 if nloops else 0.0
    return (
        f'{prefix}"{name}": {nloops} loops in {format_float(duration, 4)} sec: '
        f"{format_float(rate, 2)} / sec, {format_float(each, 6)} ms each"
    )


def format_digest(digest: "Digest") -> list[str]:
    """Format the summary lines of a benchmark digest."""
    return [
        digest.name,
        f"Total runtime {format_float(digest.total_elapsed, 3)} "
        f"of {format_float(digest.duration, 3)} elapsed",
        f"item rate min-max-avg {format_float(digest.min, 2)} "
        f"{format_float(digest.max, 2)} {format_float(digest.avg, 2)}",
    ]


class Reporter:
    """Writes report lines to a text stream.

    Args:
        stream: Output stream. Defaults to sys.stdout at write time.
        verbose: Whether unlabeled runs are reported.
    """

    def __init__(self, stream: Optional[TextIO] = None, verbose: bool = True) -> None:
        self.stream = stream
        self.verbose = verbose

    def enabled(self, label: Label) -> bool:
        """Whether a run with this label is reported."""
        if label is ReportMode.SILENT:
            return False
        if label is ReportMode.VERBOSE or isinstance(label, str):
            return True
        return self.verbose

    def write(self, line: str) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(line + "\n")

    def report_run(self, name: str, nloops: int, duration: float, label: Label = None) -> None:
        """Report one timed run unless silent."""
        if not self.enabled(label):
            return
        msg = label if isinstance(label, str) and not isinstance(label, ReportMode) else None
        self.write(format_run(name, nloops, duration, msg))

    def report_digest(self, digest: "Digest", label: Label = None) -> None:
        """Report a benchmark digest unless silent."""
        if not self.enabled(label):
            return
        for line in format_digest(digest):
            self.write(line)


def reportit(name: str, nloops: int, duration: float, msg: Optional[str] = None) -> None:
    """Print the report line of a timed run to stdout."""
    Reporter().write(format_run(name, nloops, duration, msg))
