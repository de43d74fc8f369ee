from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")

CANCELLED_MESSAGE = "Agent execution cancelled"


class AgentCancelledError(Exception):
    """Raised inside an execution once its cancellation token fires."""

    def __init__(self, message: str = CANCELLED_MESSAGE) -> None:
        super().__init__(message)


class CancellationToken:
    """Cooperative cancellation handle for one execution.

    The token is only observed at explicit checkpoints: ``raise_if_cancelled``
    at the top of each loop iteration and ``race`` around the provider call.
    Work that does not go through either (a running tool) is not interrupted.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AgentCancelledError()

    async def race(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        If cancellation wins, the pending awaitable is cancelled and
        AgentCancelledError is raised.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise AgentCancelledError()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work in done:
            return work.result()

        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise AgentCancelledError()
