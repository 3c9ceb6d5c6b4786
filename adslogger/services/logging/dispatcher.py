"""
Notification Dispatcher

Fans notifications out to one asyncio queue per variable. A single worker
per queue runs the pipeline, so events of one variable are processed in
arrival order while different variables proceed concurrently.

submit() may be called from any thread (the ADS client delivers
notifications on its own callback thread).
"""

import asyncio
from typing import Callable

from adslogger.common.logging_setup import get_service_logger

from .pipeline import NotificationEvent

logger = get_service_logger("logging.dispatcher")


class NotificationDispatcher:
    """
    Per-variable single-consumer queues.

    The handler is blocking (file I/O) and runs in the loop's default
    executor.
    """

    def __init__(
        self,
        handler: Callable[[NotificationEvent], bool],
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._handler = handler
        self._loop = loop
        self._queues: dict[str, asyncio.Queue] = {}
        self._workers: dict[str, asyncio.Task] = {}
        self._accepting = False
        self._closed = False
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._accepting

    @property
    def pending(self) -> int:
        return sum(q.qsize() for q in self._queues.values())

    def start(self) -> None:
        """Bind to the running loop and start accepting events"""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._accepting = True
        self._closed = False
        logger.debug("Dispatcher started")

    def submit(self, event: NotificationEvent) -> None:
        """Queue an event; thread-safe"""
        if not self._accepting or self._loop is None or self._loop.is_closed():
            self.dropped += 1
            logger.debug(f"Dispatcher not running, dropping event for {event.symbol_path}")
            return
        self._loop.call_soon_threadsafe(self._enqueue, event)

    def _enqueue(self, event: NotificationEvent) -> None:
        if self._closed:
            self.dropped += 1
            return

        key = event.symbol_path.casefold()
        queue = self._queues.get(key)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[key] = queue
            self._workers[key] = asyncio.create_task(
                self._worker(key, queue),
                name=f"dispatcher:{event.symbol_path}",
            )
        queue.put_nowait(event)

    async def _worker(self, key: str, queue: asyncio.Queue) -> None:
        loop = asyncio.get_running_loop()
        while True:
            event = await queue.get()
            try:
                await loop.run_in_executor(None, self._handler, event)
            except Exception as e:
                logger.error(f"Error processing notification for {event.symbol_path}: {e}")
            finally:
                queue.task_done()

    async def stop(self) -> None:
        """Stop accepting events, drain every queue, then stop the workers"""
        self._accepting = False

        # Let pending call_soon_threadsafe callbacks run before draining
        await asyncio.sleep(0)

        for queue in list(self._queues.values()):
            await queue.join()

        for task in self._workers.values():
            task.cancel()
        for task in self._workers.values():
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._closed = True
        self._workers.clear()
        self._queues.clear()
        logger.debug("Dispatcher stopped")
