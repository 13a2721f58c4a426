"""
Monotonic Clock

Fractional-second wall-time source used for every timed region.

This module provides:
- Clock: monotonic clock with an optional device synchronizer
- fptime(): read the process default clock
"""
from __future__ import annotations

import time
from typing import Callable, Final, Optional

# Candidate stdlib sources, finest expected resolution first.
_SOURCES: Final[tuple[str, ...]] = ("perf_counter", "monotonic", "time")


class Clock:
    """Monotonic wall-time source with fractional-second resolution.

    The default source is ``time.perf_counter``. A ``synchronize`` hook, when
    given, runs before every read so that queued device work (e.g. CUDA
    kernels) is finished before the time is taken.

    Example:
        ```python
        clock = Clock()
        t1 = clock.now()
        work()
        print(f"{clock.now() - t1:.6f} sec")
        ```
    """

    def __init__(
        self,
        source: Optional[Callable[[], float]] = None,
        synchronize: Optional[Callable[[], None]] = None,
        name: str = "perf_counter",
    ) -> None:
        """Initialize clock.

        Args:
            source: Callable returning seconds. Defaults to time.perf_counter.
            synchronize: Optional hook run before each read.
            name: Name of the underlying stdlib clock, for resolution lookup.
        """
        self._source = source if source is not None else time.perf_counter
        self._synchronize = synchronize
        self.name = name
        if synchronize is None:
            self.now = self._source  # type: ignore[method-assign]

    def now(self) -> float:
        """Read the clock.

        Returns:
            Current time in seconds. Never decreases between reads.
        """
        self._synchronize()  # type: ignore[misc]
        return self._source()

    @property
    def resolution(self) -> float:
        """Resolution of the underlying stdlib clock in seconds."""
        try:
            return time.get_clock_info(self.name).resolution
        except ValueError:
            return 0.0

    @property
    def synchronized(self) -> bool:
        """Whether reads are preceded by a device synchronization."""
        return self._synchronize is not None

    @classmethod
    def best_available(
        cls,
        synchronize: Optional[Callable[[], None]] = None,
    ) -> "Clock":
        """Create a clock on the finest monotonic stdlib source.

        Falls back to a coarser source when no monotonic one is present;
        callers must then tolerate larger noise.

        Args:
            synchronize: Optional hook run before each read.

        Returns:
            Clock on the selected source.
        """
        best_name = None
        best_resolution = float("inf")
        for name in _SOURCES:
            info = time.get_clock_info(name)
            if info.monotonic and info.resolution < best_resolution:
                best_name = name
                best_resolution = info.resolution
        if best_name is None:
            best_name = _SOURCES[-1]
        return cls(getattr(time, best_name), synchronize=synchronize, name=best_name)

    def __repr__(self) -> str:
        return f"Clock(name={self.name!r}, synchronized={self.synchronized})"


_default_clock = Clock()


def default_clock() -> Clock:
    """Get the process default clock."""
    return _default_clock


def fptime() -> float:
    """Read the default clock as floating-point seconds."""
    return _default_clock.now()
