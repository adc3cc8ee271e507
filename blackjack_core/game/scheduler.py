"""Schedulers that pace the dealer's staged draws.

A scheduler only decides *when* a continuation runs. What the continuation
does is fixed by the engine, so swapping schedulers or delays never changes
the cards drawn or the settlement.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Continuation = Callable[[], None]


class Scheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Continuation) -> None:
        ...


class ImmediateScheduler:
    """Run every continuation at once, ignoring the delay."""

    def call_later(self, delay: float, callback: Continuation) -> None:
        callback()


class ManualScheduler:
    """
    Queue continuations until the caller runs them.

    Useful for tests and for drivers that advance the dealer on their own
    clock (one step per animation frame, for example).
    """

    def __init__(self) -> None:
        self._pending: deque[tuple[float, Continuation]] = deque()

    def call_later(self, delay: float, callback: Continuation) -> None:
        self._pending.append((delay, callback))

    @property
    def pending(self) -> int:
        """Return the number of queued continuations."""
        return len(self._pending)

    def run_next(self) -> bool:
        """
        Run the oldest queued continuation.

        Returns:
            True if a continuation ran
        """
        if not self._pending:
            return False
        _, callback = self._pending.popleft()
        callback()
        return True

    def run_all(self, limit: int = 1000) -> int:
        """Run continuations, including newly queued ones, until none remain."""
        ran = 0
        while self._pending and ran < limit:
            self.run_next()
            ran += 1
        return ran

    def clear(self) -> None:
        self._pending.clear()


class AsyncioScheduler:
    """
    Run continuations on an asyncio event loop after a real delay.

    A continuation that raises is logged, kept on ``failure`` and re-raised
    into the loop's exception handler; ``check()`` raises it again for the
    driver awaiting the round.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self.failure: Exception | None = None

    def call_later(self, delay: float, callback: Continuation) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(max(delay, 0.0), self._run, callback)
        logger.debug("Scheduled dealer step in %.3fs", delay)

    def _run(self, callback: Continuation) -> None:
        try:
            callback()
        except Exception as exc:
            logger.error("Scheduled dealer step failed: %s", exc)
            if self.failure is None:
                self.failure = exc
            raise

    def check(self) -> None:
        """Re-raise the first continuation failure, if any."""
        if self.failure is not None:
            raise self.failure
