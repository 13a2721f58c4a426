"""
Test suite for qtimeit Enumerations

Tests CandidateKind and ReportMode.
"""
import json

import pytest


class TestCandidateKind:
    """Test CandidateKind enumeration."""

    def test_values(self):
        """Kinds have stable string values."""
        from qtimeit.enums import CandidateKind

        assert CandidateKind.SYNC.value == "sync"
        assert CandidateKind.CALLBACK.value == "callback"
        assert CandidateKind.COROUTINE.value == "coroutine"

    def test_json_serializable(self):
        """str mixin makes kinds JSON serializable."""
        from qtimeit.enums import CandidateKind

        assert json.dumps(CandidateKind.CALLBACK) == '"callback"'

    def test_from_string(self):
        from qtimeit.enums import CandidateKind

        assert CandidateKind("coroutine") is CandidateKind.COROUTINE


class TestReportMode:
    """Test ReportMode enumeration."""

    def test_silent_sentinel(self):
        """SILENT is the ReportMode member."""
        from qtimeit.enums import SILENT, ReportMode

        assert SILENT is ReportMode.SILENT

    def test_invalid_value(self):
        from qtimeit.enums import ReportMode

        with pytest.raises(ValueError):
            ReportMode("loud")
