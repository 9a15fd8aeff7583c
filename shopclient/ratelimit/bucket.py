"""Token bucket admission control for outbound storefront requests.

A bucket admits at most ``max_requests_per_interval`` tasks per refill
interval and keeps at most ``max_concurrency`` of them running at once.
Everything else waits in a FIFO queue. The limiter never fails a task
for lack of capacity; it only delays it.
"""

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Set, TypeVar

from shopclient.core.logging import get_logger
from shopclient.exceptions import RateLimiterClosedError
from shopclient.ratelimit.models import DEFAULT_OPTIONS, QueuedTask, RateLimitOptions

logger = get_logger(__name__)

T = TypeVar("T")


class TokenBucket:
    """Interval-refilled token bucket with bounded concurrency.

    Design:
    - Tokens are hard-reset to capacity on every refill tick (not added),
      so a burst of up to ``max_requests_per_interval`` is allowed and
      exhausted tokens stay unusable until the next tick.
    - Admission is FIFO by enqueue order; completion order is not
      guaranteed once ``max_concurrency > 1``.
    - The refill task starts lazily on the first ``schedule`` and runs
      until ``aclose()``.
    - A caller cancelled while still queued is skipped at admission time
      without consuming a token. Admitted tasks run to completion.

    Usage:
        bucket = TokenBucket(RateLimitOptions(max_requests_per_interval=5))
        response = await bucket.schedule(lambda: client.get(url))
        ...
        await bucket.aclose()
    """

    def __init__(self, options: Optional[RateLimitOptions] = None, name: str = "global"):
        """Initialize the bucket.

        Args:
            options: Bucket settings (clamped to minimums)
            name: Scope label used in logs and status output
        """
        self.name = name
        self._options = (options or DEFAULT_OPTIONS).clamped()
        self._tokens = self._options.max_requests_per_interval
        self._in_flight = 0
        self._queue: Deque[QueuedTask] = deque()
        self._refill_task: Optional[asyncio.Task] = None
        self._runners: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def options(self) -> RateLimitOptions:
        return self._options

    @property
    def tokens(self) -> int:
        return self._tokens

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def queued(self) -> int:
        return len(self._queue)

    @property
    def closed(self) -> bool:
        return self._closed

    def configure(
        self,
        max_requests_per_interval: Optional[int] = None,
        interval: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        """Merge partial options into the live bucket.

        Consumed tokens and in-flight tasks are untouched; new values take
        effect on the next drain or refill.
        """
        self._options = self._options.merged(
            max_requests_per_interval=max_requests_per_interval,
            interval=interval,
            max_concurrency=max_concurrency,
        )
        logger.debug(f"Rate limiter '{self.name}' configured: {self._options}")

    async def schedule(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` once the bucket admits it.

        Args:
            fn: Zero-argument callable returning an awaitable

        Returns:
            Whatever ``fn`` returns; its exceptions propagate unchanged

        Raises:
            RateLimiterClosedError: If the bucket is closed before admission
        """
        if self._closed:
            raise RateLimiterClosedError(self.name)

        loop = asyncio.get_running_loop()
        self._ensure_refill_started(loop)

        future: "asyncio.Future[Any]" = loop.create_future()
        self._queue.append(QueuedTask(fn=fn, future=future))
        self._drain()
        return await future

    def _ensure_refill_started(self, loop: asyncio.AbstractEventLoop) -> None:
        task = self._refill_task
        if task is not None and not task.done() and task.get_loop() is loop:
            return
        self._refill_task = loop.create_task(self._refill_loop())

    async def _refill_loop(self) -> None:
        while True:
            await asyncio.sleep(self._options.interval)
            self._tokens = self._options.max_requests_per_interval
            self._drain()

    def _drain(self) -> None:
        while (
            self._queue
            and self._in_flight < self._options.max_concurrency
            and self._tokens > 0
        ):
            task = self._queue.popleft()
            if task.future.done():
                # Caller gave up while queued.
                continue
            self._tokens -= 1
            self._in_flight += 1
            runner = asyncio.ensure_future(self._run(task))
            self._runners.add(runner)
            runner.add_done_callback(self._runners.discard)

        if self._queue:
            logger.debug(
                f"Rate limiter '{self.name}': {len(self._queue)} queued, "
                f"{self._in_flight} in flight, {self._tokens} tokens"
            )

    async def _run(self, task: QueuedTask) -> None:
        try:
            result = await task.fn()
        except asyncio.CancelledError:
            if not task.future.done():
                task.future.cancel()
            raise
        except Exception as e:
            if not task.future.done():
                task.future.set_exception(e)
        else:
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._in_flight -= 1
            # Continue draining on the next loop turn, not recursively.
            asyncio.get_running_loop().call_soon(self._drain)

    def snapshot(self) -> dict:
        """Get current bucket state.

        Returns:
            Dictionary with options and live counters
        """
        return {
            "name": self.name,
            "max_requests_per_interval": self._options.max_requests_per_interval,
            "interval": self._options.interval,
            "max_concurrency": self._options.max_concurrency,
            "tokens": self._tokens,
            "in_flight": self._in_flight,
            "queued": len(self._queue),
        }

    async def aclose(self) -> None:
        """Stop the refill task and fail every task still waiting for admission."""
        self._closed = True

        task = self._refill_task
        self._refill_task = None
        # A refill task from another (finished) loop is simply dropped.
        if task is not None and not task.done() and task.get_loop() is asyncio.get_running_loop():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        while self._queue:
            queued = self._queue.popleft()
            if not queued.future.done():
                queued.future.set_exception(RateLimiterClosedError(self.name))
