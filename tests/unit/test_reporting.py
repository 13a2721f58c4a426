"""Tests for report formatting."""
from __future__ import annotations

import io

import pytest

from qtimeit.benchmark.stats import Digest
from qtimeit.enums import ReportMode
from qtimeit.reporting import Reporter, format_digest, format_float, format_run, reportit


class TestFormatFloat:
    """Test fixed-decimal formatting."""

    @pytest.mark.parametrize(
        "value,decimals,expected",
        [
            (0.01357, 3, "0.014"),
            (1.5, 0, "2"),
            (-2.5, 0, "-3"),
            (0.0, 4, "0.0000"),
            (123.456, 2, "123.46"),
            (0.000032, 6, "0.000032"),
            (-0.25, 1, "-0.3"),
            (7, 2, "7.00"),
        ],
    )
    def test_values(self, value: float, decimals: int, expected: str) -> None:
        assert format_float(value, decimals) == expected

    def test_non_finite(self) -> None:
        assert format_float(float("inf"), 2) == "inf"
        assert format_float(float("nan"), 2) == "nan"


class TestFormatRun:
    """Test the run report line."""

    def test_with_message(self) -> None:
        line = format_run("noop", 1000, 0.5, "loop")

        assert line == 'loop "noop": 1000 loops in 0.5000 sec: 2000.00 / sec, 0.500000 ms each'

    def test_without_message(self) -> None:
        line = format_run("noop", 4, 2.0)

        assert line == '"noop": 4 loops in 2.0000 sec: 2.00 / sec, 500.000000 ms each'

    def test_zero_duration(self) -> None:
        """Zero runs do not divide by zero."""
        assert "0 loops" in format_run("none", 0, 0.0)


class TestReporter:
    """Test report writing and silencing."""

    def test_enabled(self) -> None:
        quiet = Reporter(verbose=False)
        loud = Reporter(verbose=True)

        assert not quiet.enabled(None)
        assert quiet.enabled("msg")
        assert quiet.enabled(ReportMode.VERBOSE)
        assert loud.enabled(None)
        assert not loud.enabled(ReportMode.SILENT)

    def test_report_run(self) -> None:
        stream = io.StringIO()

        Reporter(stream).report_run("f", 10, 1.0, "timing")

        assert stream.getvalue() == 'timing "f": 10 loops in 1.0000 sec: 10.00 / sec, 100.000000 ms each\n'

    def test_verbose_mode_is_not_a_message(self) -> None:
        """ReportMode members are str values but never printed as the message."""
        stream = io.StringIO()

        Reporter(stream).report_run("f", 10, 1.0, ReportMode.VERBOSE)

        assert stream.getvalue().startswith('"f": 10 loops')

    def test_report_digest(self) -> None:
        stream = io.StringIO()
        digest = Digest("sorted", 10.0, 30.0, 20.0, 100, 5.0, 4, 0, 6.0)

        Reporter(stream).report_digest(digest)

        assert stream.getvalue().splitlines() == format_digest(digest)
        assert format_digest(digest) == [
            "sorted",
            "Total runtime 5.000 of 6.000 elapsed",
            "item rate min-max-avg 10.00 30.00 20.00",
        ]

    def test_reportit_prints(self, capsys) -> None:
        reportit("f", 2, 1.0)

        assert capsys.readouterr().out == '"f": 2 loops in 1.0000 sec: 2.00 / sec, 500.000000 ms each\n'
