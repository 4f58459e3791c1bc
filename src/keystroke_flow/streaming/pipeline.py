"""Async event stream serialising edit events into a :class:`SampleBuffer`."""

from __future__ import annotations

import asyncio
import time
from typing import Callable

import structlog

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.analysis.models import StateSnapshot
from keystroke_flow.models import KeystrokeEvent

logger = structlog.get_logger(__name__)


class EventStream:
    """In-process single-writer actor in front of a :class:`SampleBuffer`.

    Any number of producers may :meth:`publish` concurrently; one consumer
    loop pushes events into the buffer in arrival order, so the buffer only
    ever sees one writer.  After each push the current snapshot is handed to
    the registered observers.
    """

    def __init__(self, buffer: SampleBuffer, maxsize: int = 10_000) -> None:
        self._buffer = buffer
        self._queue: asyncio.Queue[KeystrokeEvent] = asyncio.Queue(maxsize=maxsize)
        self._observers: list[Callable[[StateSnapshot], None]] = []
        self._running = False
        self._processed_total = 0
        self._dropped_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_observer(self, fn: Callable[[StateSnapshot], None]) -> None:
        """Register a callback that receives the snapshot after every push."""
        self._observers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, event: KeystrokeEvent) -> None:
        """Enqueue an event for the buffer."""
        await self._queue.put(event)

    async def publish_batch(self, events: list[KeystrokeEvent]) -> None:
        for e in events:
            await self._queue.put(e)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the consumer loop (run as a background task)."""
        self._running = True
        logger.info("event_stream.started", observers=len(self._observers))

        last_stats_time = time.monotonic()

        while self._running:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                self._buffer.push(event)
            except Exception as exc:
                self._dropped_total += 1
                logger.error("event_stream.push_error", timestamp=event.timestamp, error=str(exc))
            else:
                self._processed_total += 1
                snapshot = self._buffer.get_state()
                for observer in self._observers:
                    try:
                        observer(snapshot)
                    except Exception as exc:
                        logger.error(
                            "event_stream.observer_error",
                            observer=getattr(observer, "__qualname__", repr(observer)),
                            error=str(exc),
                        )
            finally:
                self._queue.task_done()

            # Periodic stats every 60 seconds
            now = time.monotonic()
            if now - last_stats_time >= 60:
                logger.info(
                    "event_stream.stats",
                    processed_total=self._processed_total,
                    dropped_total=self._dropped_total,
                    queue_pending=self._queue.qsize(),
                    state=self._buffer.get_state().state.value,
                )
                last_stats_time = now

    async def join(self) -> None:
        """Wait until every queued event has been pushed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Gracefully stop the consumer loop."""
        self._running = False
        logger.info("event_stream.stopped", processed_total=self._processed_total)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed(self) -> int:
        return self._processed_total
