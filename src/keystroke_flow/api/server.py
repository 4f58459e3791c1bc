"""FastAPI application — event ingestion plus state and record export.

This module wires together the in-memory pipeline:
- One :class:`SampleBuffer` per process (single session)
- The :class:`EventStream` actor serialising pushes into it
- The :class:`RecordScheduler` extracting timing records periodically
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Query

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.api.schemas import IngestResponse, RecordsResponse, SamplesResponse
from keystroke_flow.config import get_settings
from keystroke_flow.models import KeystrokeEvent
from keystroke_flow.scheduler.service import RecordScheduler
from keystroke_flow.streaming.pipeline import EventStream

logger = structlog.get_logger(__name__)

# ── Shared state (initialised in lifespan) ────────────────────

_buffer: SampleBuffer | None = None
_stream: EventStream | None = None
_stream_task: asyncio.Task | None = None
_record_scheduler: RecordScheduler | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hooks."""
    global _buffer, _stream, _stream_task, _record_scheduler

    settings = get_settings()

    _buffer = SampleBuffer(settings)
    _stream = EventStream(_buffer, maxsize=settings.stream_queue_size)
    _stream_task = asyncio.create_task(_stream.start())

    _record_scheduler = RecordScheduler(_buffer)
    await _record_scheduler.start()

    logger.info("server.started", port=settings.api_port)

    yield  # ← application runs

    # Shutdown
    await _record_scheduler.stop()
    await _stream.stop()
    _stream_task.cancel()
    logger.info("server.stopped")


app = FastAPI(
    title="Keystroke Flow API",
    description="Behavioural flow-state estimation and keystroke-dynamics export.",
    version="0.1.0",
    lifespan=lifespan,
)


def _require_stream() -> EventStream:
    if _stream is None:
        raise HTTPException(503, "Event stream not ready.")
    return _stream


def _require_buffer() -> SampleBuffer:
    if _buffer is None:
        raise HTTPException(503, "Sample buffer not ready.")
    return _buffer


# ── Health ────────────────────────────────────────────────────


@app.get("/health", tags=["system"])
async def health():
    return {
        "status": "ok",
        "stream_pending": _stream.pending if _stream else 0,
        "scheduler_running": _record_scheduler.is_running if _record_scheduler else False,
    }


# ── Ingestion ─────────────────────────────────────────────────


@app.post("/events", status_code=202, response_model=IngestResponse, tags=["events"])
async def ingest_event(event: KeystrokeEvent):
    """Queue a single edit event for the sample buffer."""
    await _require_stream().publish(event)
    return IngestResponse(count=1)


@app.post("/events/batch", status_code=202, response_model=IngestResponse, tags=["events"])
async def ingest_batch(
    events: list[KeystrokeEvent],
    wait: bool = Query(False, description="Return only after every queued event is pushed."),
):
    """Queue many events at once, in order."""
    stream = _require_stream()
    await stream.publish_batch(events)
    if wait:
        await stream.join()
    return IngestResponse(count=len(events))


# ── State & samples ───────────────────────────────────────────


@app.get("/state", tags=["state"])
async def get_state():
    """Last computed state snapshot (camelCase keys)."""
    return _require_buffer().get_state().model_dump(mode="json", by_alias=True)


@app.get("/samples", response_model=SamplesResponse, tags=["state"])
async def get_samples():
    buffer = _require_buffer()
    return SamplesResponse(
        closed=buffer.closed_samples,
        open_size=buffer.size(),
        samples=buffer.get_all_samples(),
    )


# ── Timing records ────────────────────────────────────────────


@app.get("/records", response_model=RecordsResponse, tags=["records"])
async def get_records():
    if _record_scheduler is None:
        raise HTTPException(503, "Record scheduler not ready.")
    records = _record_scheduler.records
    return RecordsResponse(
        count=len(records),
        records=[r.to_row() for r in records],
        stats=_record_scheduler.stats,
    )


@app.post("/records/extract", response_model=RecordsResponse, tags=["records"])
async def extract_records_now():
    """Run one extraction pass immediately instead of waiting for the timer."""
    if _record_scheduler is None:
        raise HTTPException(503, "Record scheduler not ready.")
    new = _record_scheduler.run_once()
    return RecordsResponse(
        count=len(new),
        records=[r.to_row() for r in new],
        stats=_record_scheduler.stats,
    )
