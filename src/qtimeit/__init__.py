"""
qtimeit - Self-Calibrating Micro-Benchmark Timer

Measures the per-call cost of a function by running it many times and
subtracting the measured overhead of the clock, the timing loop and the
callback dispatch.

Main APIs:
- qtimeit.timeit(): Time a candidate for a call count or a duration
- qtimeit.atimeit(): Same, for asynchronous candidates, from a coroutine
- qtimeit.bench(): Benchmark several candidates over a time budget
- qtimeit.runit(): Benchmark one candidate for a fixed number of runs
- qtimeit.fptime(): Read the monotonic clock
"""

__version__ = "0.1.0"

from qtimeit.api import (
    abench,
    atimeit,
    bench,
    get_engine,
    reset_engine,
    runit,
    timeit,
)
from qtimeit.benchmark import (
    BenchmarkHarness,
    ComparisonResult,
    Digest,
    compare,
    summarize,
)
from qtimeit.candidate import (
    CallbackCandidate,
    Candidate,
    CoroutineCandidate,
    SyncCandidate,
    as_candidate,
    make_function,
)
from qtimeit.clock import Clock, fptime
from qtimeit.config import (
    TimeitConfig,
    configure,
    get_config,
    load_config,
)
from qtimeit.engine import Sample, TimingEngine
from qtimeit.enums import SILENT, CandidateKind, ReportMode
from qtimeit.exceptions import (
    ConfigError,
    ContinuationError,
    InvalidCandidateError,
    InvalidTargetError,
    TimeitError,
)
from qtimeit.overhead import Calibration, OverheadModel
from qtimeit.reporting import Reporter, format_float, reportit

__all__ = [
    "__version__",
    # API
    "abench",
    "atimeit",
    "bench",
    "get_engine",
    "reset_engine",
    "runit",
    "timeit",
    # Benchmark
    "BenchmarkHarness",
    "ComparisonResult",
    "Digest",
    "compare",
    "summarize",
    # Candidates
    "CallbackCandidate",
    "Candidate",
    "CoroutineCandidate",
    "SyncCandidate",
    "as_candidate",
    "make_function",
    # Clock
    "Clock",
    "fptime",
    # Config
    "TimeitConfig",
    "configure",
    "get_config",
    "load_config",
    # Engine
    "Sample",
    "TimingEngine",
    "Calibration",
    "OverheadModel",
    # Enums
    "SILENT",
    "CandidateKind",
    "ReportMode",
    # Exceptions
    "ConfigError",
    "ContinuationError",
    "InvalidCandidateError",
    "InvalidTargetError",
    "TimeitError",
    # Reporting
    "Reporter",
    "format_float",
    "reportit",
]
