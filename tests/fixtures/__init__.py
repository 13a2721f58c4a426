"""
qtimeit Test Fixtures

Reusable test fixtures for qtimeit tests.
"""
from fixtures.clocks import (
    FAKE_STEP,
    FakeClock,
    RecordingScheduler,
)

__all__ = [
    # Clocks
    "FAKE_STEP",
    "FakeClock",
    "RecordingScheduler",
]
