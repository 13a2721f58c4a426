"""
qtimeit Enumerations

All enums inherit from (str, Enum) for JSON serialization compatibility.

This module provides:
- CandidateKind: Shape of a candidate function (sync, callback, coroutine)
- ReportMode: Whether a timed run prints a report line
"""
from __future__ import annotations

from enum import Enum, unique


@unique
class CandidateKind(str, Enum):
    """Shape of a candidate function.

    Members:
        SYNC: ``fn()`` returns when done
        CALLBACK: ``fn(done)`` calls ``done(err=None)`` exactly once
        COROUTINE: ``async def fn()``
    """

    SYNC = "sync"
    CALLBACK = "callback"
    COROUTINE = "coroutine"


@unique
class ReportMode(str, Enum):
    """Reporting mode of a timed run.

    Pass ``ReportMode.SILENT`` as the label to suppress the report line.
    Internal runs (calibration, harness repetitions) are always silent.

    Members:
        SILENT: No report line
        VERBOSE: One report line per run
    """

    SILENT = "silent"
    VERBOSE = "verbose"


SILENT = ReportMode.SILENT
