"""Sample buffer — segments an event stream and decides when to reclassify.

The :class:`SampleBuffer` owns the open sample (a bounded rolling window)
and the list of closed samples.  Classification is batched: it runs on a
context switch, on the periodic re-baseline and (throttled) on capacity
overflow, never on every keystroke.  Between those triggers
:meth:`SampleBuffer.get_state` returns the last computed snapshot.

Single writer only: concurrent :meth:`push` calls must be serialised by the
caller (see :class:`keystroke_flow.streaming.pipeline.EventStream`).
"""

from __future__ import annotations

from collections import deque

import structlog

from keystroke_flow.analysis.classifier import next_state
from keystroke_flow.analysis.models import StateSnapshot, create_initial_state
from keystroke_flow.config import Settings, get_settings
from keystroke_flow.models import KeystrokeEvent

logger = structlog.get_logger(__name__)

Sample = tuple[KeystrokeEvent, ...]


class SampleBuffer:
    """Rolling buffer of edit events with integrated flow classification.

    Parameters
    ----------
    settings : Settings | None
        Window sizes and rate thresholds.  Defaults to :func:`get_settings`.
    initial_state : StateSnapshot | None
        Snapshot to start from (FOCUSED by default).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        initial_state: StateSnapshot | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._buffer: deque[KeystrokeEvent] = deque()
        self._samples: list[Sample] = []
        self._state = initial_state or create_initial_state()
        self._overflow_pushes = 0

    # ── Producer side ─────────────────────────────────────────

    def push(self, event: KeystrokeEvent) -> None:
        """Append an event, archiving / re-baselining / evicting as needed."""
        settings = self._settings
        prev = self.peek()
        start_ts = self._buffer[0].timestamp if self._buffer else None

        # A long gap means the user left and came back: close the episode.
        if prev is not None and event.timestamp - prev.timestamp >= settings.context_switch_window_ms:
            self._samples.append(tuple(self._buffer))
            logger.debug(
                "sample_buffer.context_switch",
                gap_ms=event.timestamp - prev.timestamp,
                archived_events=len(self._buffer),
                samples=len(self._samples),
            )
            self.update_state()
            self.clear()
            start_ts = None

        self._buffer.append(event)

        # Periodic re-baseline: classify and drop the raw sample, no archive.
        if start_ts is not None and event.timestamp - start_ts >= settings.max_length_for_analysis_ms:
            logger.debug("sample_buffer.rebaseline", events=len(self._buffer))
            self.update_state()
            self.clear()

        if len(self._buffer) > settings.max_window_size:
            self._buffer.popleft()
            if self._overflow_pushes % settings.eviction_recompute_every == 0:
                self.update_state()
            self._overflow_pushes += 1

    # ── Classification ────────────────────────────────────────

    def update_state(self) -> StateSnapshot:
        """Reclassify against the open sample and return the new snapshot."""
        previous = self._state
        self._state = next_state(previous, tuple(self._buffer), settings=self._settings)
        if self._state.state is not previous.state:
            logger.info(
                "sample_buffer.state_changed",
                previous=previous.state.value,
                state=self._state.state.value,
                events=self._state.features.events,
                events_per_min=round(self._state.features.events_per_min, 1),
            )
        return self._state

    # ── Readers ───────────────────────────────────────────────

    def get_state(self) -> StateSnapshot:
        """Last computed snapshot (stale between recompute triggers)."""
        return self._state

    def get_buffer(self) -> list[KeystrokeEvent]:
        return list(self._buffer)

    def get_buffer_as_string(self) -> str:
        return "".join(e.text for e in self._buffer)

    def get_all_samples(self) -> list[list[KeystrokeEvent]]:
        """Closed samples plus the open sample if it is non-empty."""
        samples = [list(s) for s in self._samples]
        if self._buffer:
            samples.append(list(self._buffer))
        return samples

    def peek(self) -> KeystrokeEvent | None:
        return self._buffer[-1] if self._buffer else None

    def size(self) -> int:
        return len(self._buffer)

    @property
    def closed_samples(self) -> int:
        return len(self._samples)

    # ── Internals ─────────────────────────────────────────────

    def clear(self) -> None:
        """Drop the open sample and reset the overflow throttle."""
        self._buffer.clear()
        self._overflow_pushes = 0
