"""Queue of requests waiting for a token refresh to finish."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from .telemetry import get_logger

if TYPE_CHECKING:
    import httpx

    from .models import RequestSpec

Replay = Callable[["RequestSpec"], Awaitable["httpx.Response"]]


@dataclass
class QueuedRequest:
    """A request parked until the refresh settles, and its pending result."""

    request: RequestSpec
    future: asyncio.Future[httpx.Response]

    def resolve(self, response: httpx.Response) -> None:
        # The caller may have cancelled its await; nothing left to settle then.
        if not self.future.done():
            self.future.set_result(response)

    def reject(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class RequestQueue:
    """FIFO of requests captured while a refresh is in flight.

    Every queued request is settled exactly once, by ``resolve_all`` or by
    ``reject_all``.
    """

    def __init__(self) -> None:
        self._tasks: list[QueuedRequest] = []
        self._logger = get_logger("queue")

    def enqueue(self, request: RequestSpec) -> asyncio.Future[httpx.Response]:
        """Park a request; the returned future settles when the queue drains."""
        future: asyncio.Future[httpx.Response] = asyncio.get_running_loop().create_future()
        self._tasks.append(QueuedRequest(request, future))
        self._logger.debug(
            "Request queued",
            method=request.method,
            url=request.url,
            queue_size=len(self._tasks),
        )
        return future

    async def resolve_all(self, replay: Replay) -> None:
        """Replay the current batch in insertion order, one at a time.

        The live queue is emptied before the first replay so requests
        arriving meanwhile form the next batch. Requests whose caller has
        gone away are not replayed. If the drain itself is cancelled, the
        unsettled rest of the batch goes back to the front of the queue.
        """
        tasks = list(self._tasks)
        self.clear()
        self._logger.info("Replaying queued requests", count=len(tasks))

        try:
            for task in tasks:
                if task.future.done():
                    continue
                try:
                    response = await replay(task.request.as_retry())
                except Exception as e:
                    task.reject(e)
                else:
                    task.resolve(response)
        except asyncio.CancelledError:
            self._tasks[:0] = [task for task in tasks if not task.future.done()]
            raise

    def reject_all(self, error: BaseException) -> None:
        """Fail every queued request with ``error``."""
        if self._tasks:
            self._logger.info("Rejecting queued requests", count=len(self._tasks), error=str(error))
        for task in self._tasks:
            task.reject(error)
        self.clear()

    def clear(self) -> None:
        """Drop queued requests without settling them."""
        self._tasks = []

    @property
    def size(self) -> int:
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def describe(self) -> list[dict[str, str]]:
        """Method and URL of each queued request, for debugging."""
        return [
            {"method": task.request.method.upper(), "url": task.request.url}
            for task in self._tasks
        ]

    def pending(self) -> list[QueuedRequest]:
        """Snapshot of the queued records."""
        return list(self._tasks)
