from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Optional, Set, TypeVar

from mobile.app.errors import ClientError

logger = logging.getLogger("core.activation")

T = TypeVar("T")


class ScreenState(str, Enum):
    """Lifecycle of one screen activation."""

    START = "start"
    DECODING = "decoding"
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    ROLE_MISMATCH = "role_mismatch"
    REJECTED = "rejected"
    AUTHORIZED = "authorized"
    ACTIVE = "active"
    LOGGED_OUT = "logged_out"


class ScreenRetired(ClientError):
    """The screen was deactivated while a fetch was in flight; its result is dropped."""


class ActivationScope:
    """Owns the tasks started by one screen activation.

    Closing the scope cancels whatever is still in flight, and results that
    arrive after the close are discarded instead of being applied to a retired view.
    """

    def __init__(self, name: str = "screen") -> None:
        self.name = name
        self._tasks: Set[asyncio.Future[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, awaitable: Awaitable[T]) -> T:
        if self._closed:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ScreenRetired(f"{self.name} is no longer active")

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                raise ScreenRetired(f"{self.name} was deactivated") from None
            raise
        finally:
            self._tasks.discard(task)

        if self._closed:
            logger.debug("Discarding late result for %s", self.name)
            raise ScreenRetired(f"{self.name} was deactivated")
        return result

    def close(self, reason: Optional[str] = None) -> None:
        if self._closed:
            return
        self._closed = True
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug("Cancelled %d in-flight task(s) for %s (%s)", len(pending), self.name, reason or "closed")
