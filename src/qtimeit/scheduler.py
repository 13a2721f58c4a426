"""
Continuation Schedulers

Where the chained-callback driver posts its next iteration once its depth
budget is exhausted.

This module provides:
- Trampoline: local run queue, used when no event loop is running
- LoopScheduler: posts to a running asyncio loop with call_soon
- get_scheduler(): pick one for the current context
"""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Deque, Protocol


class Scheduler(Protocol):
    """Something that runs posted callbacks later, in order."""

    def post(self, fn: Callable[[], None]) -> None:
        """Queue fn to run after the current callback returns."""
        ...


class Trampoline:
    """Run queue drained by whoever posts first.

    A post made while the queue is being drained is appended and runs after
    the current callback returns. A post made while idle drains the queue
    before returning, so a run whose continuations all fire inline completes
    before the outermost post returns.

    Example:
        ```python
        trampoline = Trampoline()
        trampoline.post(lambda: print("runs now"))
        ```
    """

    def __init__(self) -> None:
        """Initialize an idle trampoline."""
        self._queue: Deque[Callable[[], None]] = deque()
        self._running = False

    @property
    def running(self) -> bool:
        """Whether the queue is currently being drained."""
        return self._running

    def __len__(self) -> int:
        return len(self._queue)

    def post(self, fn: Callable[[], None]) -> None:
        """Queue fn, draining the queue if idle.

        Args:
            fn: Callback to run.
        """
        self._queue.append(fn)
        if not self._running:
            self.run()

    def run(self) -> None:
        """Drain the queue. Exceptions propagate and leave the rest queued."""
        self._running = True
        try:
            while self._queue:
                self._queue.popleft()()
        finally:
            self._running = False


class LoopScheduler:
    """Posts callbacks to an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        """Initialize with a loop.

        Args:
            loop: Event loop receiving posted callbacks.
        """
        self.loop = loop

    def post(self, fn: Callable[[], None]) -> None:
        """Schedule fn at the back of the loop's ready queue."""
        self.loop.call_soon(fn)


def get_scheduler() -> Scheduler:
    """Get a scheduler for the current context.

    Returns:
        LoopScheduler on the running asyncio loop, or a new Trampoline
        when no loop is running.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return Trampoline()
    return LoopScheduler(loop)
