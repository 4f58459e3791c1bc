"""Record scheduler — periodic keystroke-dynamics extraction.

Architecture
~~~~~~~~~~~~
The ``RecordScheduler`` runs as a background task next to the
:class:`EventStream`.  Every ``record_interval_seconds`` it:

1. Reads all samples from the :class:`SampleBuffer` (copies, never the
   live window).
2. Skips samples it has already converted on a previous run.
3. Runs the keystroke-dynamics adapter over the rest.
4. Appends successful :class:`TimingRecord` objects to its in-memory list.

Samples that do not contain the target phrase are logged and skipped; they
never affect the buffer or the classifier.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.config import get_settings
from keystroke_flow.dynamics.adapter import extract_records
from keystroke_flow.dynamics.models import TimingRecord

logger = structlog.get_logger(__name__)


class RecordScheduler:
    """Background service that periodically turns samples into timing records.

    Integration::

        scheduler = RecordScheduler(buffer)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        interval_seconds: float | None = None,
        subject: int | None = None,
        session_index: int | None = None,
    ) -> None:
        settings = get_settings()
        self._buffer = buffer
        self._interval = interval_seconds or settings.record_interval_seconds
        self._subject = settings.record_subject if subject is None else subject
        self._session_index = settings.record_session_index if session_index is None else session_index
        self._running = False
        self._task: asyncio.Task | None = None
        self._records: list[TimingRecord] = []
        self._converted_samples = 0

        self._stats: dict[str, Any] = {
            "last_run": None,
            "total_runs": 0,
            "last_records_count": 0,
            "total_records": 0,
        }

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Start the periodic extraction loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("record_scheduler.started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("record_scheduler.stopped", total_records=len(self._records))

    @property
    def stats(self) -> dict[str, Any]:
        return dict(self._stats)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def records(self) -> list[TimingRecord]:
        return list(self._records)

    # ── Main loop ─────────────────────────────────────────────

    async def _run_loop(self) -> None:
        while self._running:
            try:
                self.run_once()
            except Exception:
                logger.exception("record_scheduler.run_error")

            await asyncio.sleep(self._interval)

    def run_once(self) -> list[TimingRecord]:
        """Convert closed samples not seen before; return the new records.

        The open sample is still growing and is left for a later run, once
        a context switch has archived it.
        """
        closed = self._buffer.get_all_samples()[: self._buffer.closed_samples]
        fresh = closed[self._converted_samples :]

        new = extract_records(
            fresh,
            self._subject,
            self._session_index,
            first_rep=len(self._records) + 1,
        )
        self._records.extend(new)
        self._converted_samples = len(closed)

        self._stats["last_run"] = datetime.now(UTC).isoformat()
        self._stats["total_runs"] += 1
        self._stats["last_records_count"] = len(new)
        self._stats["total_records"] = len(self._records)
        return new
