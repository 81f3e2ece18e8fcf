"""Base adapter interface (subscribe/publish, start/stop) and queued outbound delivery."""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from collections.abc import Callable

from loguru import logger

from syncbot.core.errors import BridgeFatalError
from syncbot.events import MessageOut

ReportFn = Callable[[str], None]
FatalFn = Callable[[BaseException], None]


class AdapterBase(ABC):
    """Interface for platform adapters. Receive outbound events from the bus, start/stop."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier ('discord' or 'groupme')."""
        ...

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this adapter wants the event. Override for filtering."""
        return False

    def push_event(self, source: str, evt: object) -> None:
        """Handle event. Override to process. May queue for async handling."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Start the adapter (connect, register handlers)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter (disconnect, cleanup)."""
        ...


class QueuedAdapter(AdapterBase):
    """Adapter that delivers MessageOut for its platform from a queue, one at a time.

    A failed delivery is reported through ``report`` (the troubleshooting
    channel). A failed delivery of a troubleshooting report is unrecoverable
    and goes to ``on_fatal``.
    """

    def __init__(self, *, report: ReportFn | None = None, on_fatal: FatalFn | None = None) -> None:
        self._queue: asyncio.Queue[MessageOut] = asyncio.Queue()
        self._report = report
        self._on_fatal = on_fatal
        self._consumer_task: asyncio.Task | None = None

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, MessageOut) and evt.target_origin == self.name

    def push_event(self, source: str, evt: object) -> None:
        """Queue MessageOut for delivery."""
        if isinstance(evt, MessageOut):
            self._queue.put_nowait(evt)

    @abstractmethod
    async def _deliver(self, evt: MessageOut) -> None:
        """Send one message to the platform. Raise on failure."""
        ...

    def _handle_failure(self, evt: MessageOut, exc: Exception) -> None:
        if evt.raw.get("troubleshooting"):
            logger.critical("{}: troubleshooting report could not be delivered: {}", self.name, exc)
            if self._on_fatal:
                self._on_fatal(
                    BridgeFatalError(
                        "troubleshooting channel unreachable",
                        code="troubleshooting_send_failed",
                        original_error=exc,
                    )
                )
            return
        logger.exception("{} send failed: {}", self.name, exc)
        if self._report:
            self._report(f"Failed to send message to {self.name}: {exc}")

    async def _queue_consumer(self, delay: float = 0.25) -> None:
        """Background consumer: pop from queue, deliver with delay."""
        while True:
            evt = await self._queue.get()
            try:
                await self._deliver(evt)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._handle_failure(evt, exc)
            finally:
                self._queue.task_done()
            await asyncio.sleep(delay)

    def _start_consumer(self) -> None:
        self._consumer_task = asyncio.create_task(self._queue_consumer())

    async def _stop_consumer(self, drain_timeout: float = 5.0) -> None:
        """Give queued messages (e.g. shutdown announcement) a chance to go out, then stop."""
        if self._consumer_task is None:
            return
        if not self._consumer_task.done():
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("{}: {} outbound messages dropped on stop", self.name, self._queue.qsize())
        self._consumer_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._consumer_task
        self._consumer_task = None
