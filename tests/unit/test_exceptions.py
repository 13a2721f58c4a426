"""Exception Hierarchy Tests for qtimeit."""
from __future__ import annotations

import pytest


class TestExceptionHierarchy:
    """Tests for exception class hierarchy."""

    def test_base_exception_exists(self) -> None:
        """TimeitError base class exists."""
        from qtimeit.exceptions import TimeitError

        assert issubclass(TimeitError, Exception)

    def test_invalid_target_error(self) -> None:
        """InvalidTargetError is a TimeitError and a ValueError."""
        from qtimeit.exceptions import InvalidTargetError, TimeitError

        assert issubclass(InvalidTargetError, TimeitError)
        assert issubclass(InvalidTargetError, ValueError)

        err = InvalidTargetError(float("nan"))
        assert "nan" in str(err)
        assert err.context == {"target": "nan"}

    def test_invalid_candidate_error(self) -> None:
        """InvalidCandidateError is a TimeitError and a TypeError."""
        from qtimeit.exceptions import InvalidCandidateError, TimeitError

        assert issubclass(InvalidCandidateError, TimeitError)
        assert issubclass(InvalidCandidateError, TypeError)

        err = InvalidCandidateError("needs a loop", candidate="f", kind="coroutine")
        assert err.candidate == "f"
        assert err.kind == "coroutine"

    def test_continuation_error(self) -> None:
        """ContinuationError names the candidate and the call."""
        from qtimeit.exceptions import ContinuationError, TimeitError

        assert issubclass(ContinuationError, TimeitError)

        err = ContinuationError("cb", 7)
        assert "cb" in str(err)
        assert "call 7" in str(err)

    def test_config_error(self) -> None:
        """ConfigError carries key, expected and actual value."""
        from qtimeit.exceptions import ConfigError, TimeitError

        assert issubclass(ConfigError, TimeitError)

        err = ConfigError("bad", config_key="bench_budget", expected="> 0", got=-1)
        assert err.context == {"config_key": "bench_budget", "expected": "> 0", "got": -1}


class TestExceptionBehavior:
    """Tests for exception behavior."""

    def test_catch_all_qtimeit_errors(self) -> None:
        """All qtimeit errors can be caught with TimeitError."""
        from qtimeit.exceptions import (
            ConfigError,
            ContinuationError,
            InvalidCandidateError,
            InvalidTargetError,
            TimeitError,
        )

        errors = [
            InvalidTargetError("x"),
            InvalidCandidateError("not callable"),
            ContinuationError("f", 1),
            ConfigError("bad"),
        ]

        for err in errors:
            with pytest.raises(TimeitError):
                raise err

    def test_repr_includes_context(self) -> None:
        from qtimeit.exceptions import TimeitError

        assert repr(TimeitError("plain")) == "TimeitError('plain')"
        assert "context=" in repr(TimeitError("with", context={"a": 1}))

    def test_custom_target_message(self) -> None:
        from qtimeit.exceptions import InvalidTargetError

        err = InvalidTargetError(None, message="no target")

        assert str(err) == "no target"
        assert err.target is None
