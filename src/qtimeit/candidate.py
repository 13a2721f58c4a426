"""
Candidate Functions

A candidate is the routine being measured. It comes in three shapes:

- SyncCandidate: ``fn()`` returns when done.
- CallbackCandidate: ``fn(done)`` calls ``done()`` (or ``done(err)``)
  exactly once when finished, possibly later from the event loop.
- CoroutineCandidate: ``async def fn()``; run as a task on the running loop.

The shape is chosen once at the call site. Plain callables are coerced by
``as_candidate``; statement strings are compiled into synchronous functions.
"""
from __future__ import annotations

import asyncio
import inspect
import textwrap
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Union

from qtimeit.enums import CandidateKind
from qtimeit.exceptions import InvalidCandidateError

Done = Callable[..., None]

_TEMPLATE = """\
def __candidate():
{body}
"""


def make_function(source: str, namespace: Optional[dict[str, Any]] = None) -> Callable[[], None]:
    """Compile a statement string into a zero-argument function.

    Args:
        source: Python statements; empty or ``";"`` means a no-op.
        namespace: Globals for the compiled function.

    Returns:
        Function executing the statements.

    Raises:
        SyntaxError: If the statements do not compile.
    """
    body = source.strip().strip(";").strip() or "pass"
    code = compile(
        _TEMPLATE.format(body=textwrap.indent(body, "    ")),
        "<candidate>",
        "exec",
    )
    scope: dict[str, Any] = dict(namespace) if namespace else {}
    exec(code, scope)
    return scope["__candidate"]


@dataclass(frozen=True)
class Candidate:
    """Base for the tagged candidate variants.

    Attributes:
        fn: The callable being measured.
        name: Name used in reports.
    """

    fn: Callable[..., Any]
    name: str

    kind = CandidateKind.SYNC

    @property
    def is_async(self) -> bool:
        """Whether this candidate runs on the asynchronous path."""
        return self.kind is not CandidateKind.SYNC

    def as_callback(self) -> Callable[[Done], None]:
        """Get a ``fn(done)`` form for the chained-callback driver."""
        raise InvalidCandidateError(
            f"Candidate '{self.name}' cannot be driven by callbacks",
            candidate=self.name,
            kind=self.kind.value,
        )


@dataclass(frozen=True)
class SyncCandidate(Candidate):
    """Synchronous candidate: ``fn()``."""

    kind = CandidateKind.SYNC

    def as_callback(self) -> Callable[[Done], None]:
        fn = self.fn

        def call(done: Done) -> None:
            fn()
            done()

        return call


@dataclass(frozen=True)
class CallbackCandidate(Candidate):
    """Asynchronous candidate invoked with a continuation: ``fn(done)``."""

    kind = CandidateKind.CALLBACK

    def as_callback(self) -> Callable[[Done], None]:
        return self.fn


@dataclass(frozen=True)
class CoroutineCandidate(Candidate):
    """Asynchronous candidate defined with ``async def``.

    Each invocation runs as a task on the running event loop; the task's
    exception, if any, is passed to the continuation.
    """

    kind = CandidateKind.COROUTINE

    def as_callback(self) -> Callable[[Done], None]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise InvalidCandidateError(
                f"Coroutine candidate '{self.name}' requires a running event loop",
                candidate=self.name,
                kind=self.kind.value,
            ) from None
        coro_fn = self.fn

        def finished(task: "asyncio.Task[Any]", done: Done) -> None:
            if task.cancelled():
                done(asyncio.CancelledError())
            else:
                done(task.exception())

        def call(done: Done) -> None:
            task = loop.create_task(coro_fn())
            task.add_done_callback(lambda t: finished(t, done))

        return call


CandidateLike = Union[Candidate, Callable[..., Any], str]


def candidate_name(fn: Any) -> str:
    """Get a report name for a callable or statement string."""
    if isinstance(fn, str):
        return fn
    return getattr(fn, "__name__", None) or getattr(fn, "__qualname__", None) or repr(fn)


def as_candidate(
    fn: CandidateLike,
    asynchronous: bool = False,
    name: Optional[str] = None,
) -> Candidate:
    """Coerce a callable or statement string into a tagged candidate.

    ``async def`` functions always become CoroutineCandidate. Other callables
    become CallbackCandidate on the asynchronous path and SyncCandidate on the
    synchronous path.

    Args:
        fn: Candidate, callable, or statement string.
        asynchronous: Whether the caller requested the asynchronous path.
        name: Optional report name override.

    Returns:
        Tagged candidate.

    Raises:
        InvalidCandidateError: If fn is neither callable nor a string.
    """
    if isinstance(fn, Candidate):
        return replace(fn, name=name) if name else fn
    label = name or candidate_name(fn)
    if isinstance(fn, str):
        return SyncCandidate(make_function(fn), label)
    if not callable(fn):
        raise InvalidCandidateError(
            f"Candidate {fn!r} is not callable",
            candidate=label,
        )
    if inspect.iscoroutinefunction(fn):
        return CoroutineCandidate(fn, label)
    if asynchronous:
        return CallbackCandidate(fn, label)
    return SyncCandidate(fn, label)
