"""
qtimeit Exception Hierarchy

Custom exceptions for qtimeit error handling.

Degenerate inputs (zero or negative call counts) and measurement noise
(negative corrected elapsed time) are not errors and never raise.
"""
from __future__ import annotations

from typing import Any, Optional


class TimeitError(Exception):
    """Base exception for all qtimeit errors.

    All qtimeit-specific exceptions inherit from this class,
    allowing users to catch all qtimeit errors with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        context: Optional dict of additional context for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize TimeitError.

        Args:
            message: Error message.
            context: Optional context dict.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        ctx_str = f", context={self.context}" if self.context else ""
        return f"{self.__class__.__name__}({self.message!r}{ctx_str})"


class InvalidTargetError(TimeitError, ValueError):
    """Raised when a loop target is neither a call count nor a duration.

    Call counts are ``int``; durations are ``float`` seconds. Booleans,
    NaN, infinities and non-numeric values are rejected.

    Attributes:
        target: The rejected target value.
    """

    def __init__(
        self,
        target: Any,
        *,
        message: Optional[str] = None,
    ) -> None:
        """Initialize InvalidTargetError.

        Args:
            target: The rejected target.
            message: Optional custom message.
        """
        self.target = target

        if message is None:
            message = (
                f"Invalid loop target {target!r}: expected an int call count "
                f"or a finite float duration in seconds"
            )

        super().__init__(message, context={"target": repr(target)})


class InvalidCandidateError(TimeitError, TypeError):
    """Raised when a candidate cannot be run on the requested path.

    This typically occurs when:
    - The candidate is not callable and not a statement string
    - An asynchronous candidate is passed to the synchronous path
    - A coroutine candidate is run without a running event loop

    Attributes:
        candidate: Name of the offending candidate.
        kind: Candidate kind ("sync", "callback", "coroutine").
    """

    def __init__(
        self,
        message: str,
        *,
        candidate: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> None:
        """Initialize InvalidCandidateError.

        Args:
            message: Error message.
            candidate: Candidate name.
            kind: Candidate kind.
        """
        self.candidate = candidate
        self.kind = kind

        super().__init__(
            message,
            context={"candidate": candidate, "kind": kind},
        )


class ContinuationError(TimeitError):
    """Raised when a callback candidate completes the same call twice.

    Every invocation of a callback candidate must call its continuation
    exactly once; a second call would corrupt the call count.

    Attributes:
        candidate: Name of the offending candidate.
        call_index: 1-based index of the invocation that completed twice.
    """

    def __init__(
        self,
        candidate: str,
        call_index: int,
    ) -> None:
        """Initialize ContinuationError.

        Args:
            candidate: Candidate name.
            call_index: Invocation index.
        """
        self.candidate = candidate
        self.call_index = call_index

        super().__init__(
            f"Continuation of '{candidate}' invoked more than once "
            f"(call {call_index})",
            context={"candidate": candidate, "call_index": call_index},
        )


class ConfigError(TimeitError, ValueError):
    """Raised when qtimeit configuration is invalid.

    Attributes:
        config_key: The configuration key with the error.
        expected: Expected value or type.
        got: Actual value received.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[Any] = None,
        got: Optional[Any] = None,
    ) -> None:
        """Initialize ConfigError.

        Args:
            message: Error message.
            config_key: The configuration key with the error.
            expected: Expected value or type.
            got: Actual value received.
        """
        self.config_key = config_key
        self.expected = expected
        self.got = got

        super().__init__(
            message,
            context={
                "config_key": config_key,
                "expected": expected,
                "got": got,
            },
        )
