"""
PyTest Configuration for qtimeit Tests

Provides fixtures, markers, and test setup.
"""
import io
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests directory to path for fixtures
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from qtimeit.clock import Clock  # noqa: E402
from qtimeit.config import TimeitConfig  # noqa: E402
from qtimeit.engine import TimingEngine  # noqa: E402
from qtimeit.overhead import Calibration, OverheadModel  # noqa: E402
from qtimeit.reporting import Reporter  # noqa: E402

from fixtures.clocks import FakeClock  # noqa: E402

# Small calibration workload so the suite stays fast.
TEST_CONFIG = TimeitConfig(
    bench_budget=0.5,
    min_trial_duration=0.01,
    calibration_rounds=4,
    calibration_loops=200_000,
    calibration_loops_cb=20_000,
    warmup_loops=20_000,
    verbose=False,
)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "timing: mark test as sensitive to machine load")


@pytest.fixture
def test_config() -> TimeitConfig:
    """Fast calibration settings."""
    return TEST_CONFIG


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock advancing 2**-10 s per read."""
    return FakeClock()


@pytest.fixture
def report_stream() -> io.StringIO:
    """Captures report lines."""
    return io.StringIO()


@pytest.fixture
def fake_engine(fake_clock: FakeClock, report_stream: io.StringIO) -> TimingEngine:
    """Engine on a fake clock with a zero overhead model (never calibrates)."""
    calibration = Calibration(fake_clock, TEST_CONFIG, model=OverheadModel.zero())
    return TimingEngine(
        clock=fake_clock,
        calibration=calibration,
        reporter=Reporter(report_stream, verbose=False),
    )


@pytest.fixture
def raw_engine(report_stream: io.StringIO) -> TimingEngine:
    """Engine on the real clock with a zero overhead model."""
    clock = Clock()
    calibration = Calibration(clock, TEST_CONFIG, model=OverheadModel.zero())
    return TimingEngine(
        clock=clock,
        calibration=calibration,
        reporter=Reporter(report_stream, verbose=False),
    )


@pytest.fixture(scope="session")
def calibrated_engine() -> TimingEngine:
    """Engine on the real clock with its sync overhead calibrated once."""
    engine = TimingEngine(
        clock=Clock(),
        config=TEST_CONFIG,
        reporter=Reporter(io.StringIO(), verbose=False),
    )
    engine.ensure_calibrated()
    return engine
