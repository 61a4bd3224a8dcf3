import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable

from loggers import get_logger
from src.core.events.base import DomainEvent

logger = get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class InMemoryEventBus:
    """
    In-process publish/subscribe bus.

    ``publish`` only enqueues, so callers never wait on subscribers. A consumer
    task started with ``start()`` delivers each event to every handler
    registered under its ``event_name``. Handler failures are logged and do not
    affect other handlers or the publisher.
    """

    def __init__(self, max_queue_size: int = 1000):
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=max_queue_size)
        self._consumer: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)
        logger.debug(
            "Handler subscribed to %s (%s total)",
            event_name,
            len(self._handlers[event_name]),
        )

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Handler unsubscribed from %s", event_name)

    def handler_count(self, event_name: str) -> int:
        return len(self._handlers.get(event_name, []))

    def clear(self) -> None:
        self._handlers.clear()

    def publish(self, event: DomainEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Event queue full, dropping %s [%s]", event.event_name, event.event_id
            )

    async def dispatch(self, event: DomainEvent) -> None:
        """Deliver one event to its handlers right away."""
        handlers = list(self._handlers.get(event.event_name, []))
        if not handlers:
            logger.debug("Event %s published but no handlers", event.event_name)
            return

        results = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    "Error processing event %s [%s]: %s",
                    event.event_name,
                    event.event_id,
                    result,
                    exc_info=result,
                )

    async def drain(self) -> None:
        """Deliver everything currently queued."""
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self.dispatch(event)
            finally:
                self._queue.task_done()

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.dispatch(event)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self.is_running:
            return
        self._consumer = asyncio.create_task(self._consume(), name="event-bus-consumer")
        logger.info("Event bus consumer started.")

    async def stop(self) -> None:
        if self._consumer is None:
            await self.drain()
            return

        await self._queue.join()
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass
        self._consumer = None
        logger.info("Event bus consumer stopped.")
