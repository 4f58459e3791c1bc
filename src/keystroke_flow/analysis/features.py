"""Feature engineering — friction, rhythm and pause statistics per sample.

This module transforms an ordered sample of :class:`KeystrokeEvent` objects
into a :class:`FeatureVector` suitable for the flow classifier.

Key responsibilities
--------------------
1. **Editing friction** — inserted / deleted totals, net progress,
   delete ratio and churn.
2. **Typing rhythm** — burst fraction and the gap-count rate.
3. **Pause analysis** — medium pauses, breaks and their median length.
4. **Anomaly filter** — optional removal of paste / bulk-delete events.

Every function is pure and total: empty samples and zero durations give
neutral values instead of raising.
"""

from __future__ import annotations

import statistics
from typing import Sequence

from keystroke_flow.analysis.models import FeatureVector
from keystroke_flow.models import KeystrokeEvent

# ── Constants ─────────────────────────────────────────────────

BURST_MAX_MS = 200  # 0 < dt <= 200 ms is fluent typing
PAUSE_MIN_MS = 2_000  # medium pause lower bound, also the gap-count cut-off
DEFAULT_BREAK_WINDOW_MS = 2_000

_MS_PER_MINUTE = 60_000


# ── Anomaly filter ───────────────────────────────────────────


def clean_anomalies(events: Sequence[KeystrokeEvent]) -> list[KeystrokeEvent]:
    """Drop events that add or delete more than one character.

    These are most likely pastes or bulk deletes, not keystrokes.
    """
    return [e for e in events if e.deleted_chars <= 1 and len(e.text) <= 1]


# ── Session metrics ──────────────────────────────────────────


def total_duration(events: Sequence[KeystrokeEvent]) -> int:
    """Milliseconds between the first and last event (0 if fewer than two)."""
    if not events:
        return 0
    return events[-1].timestamp - events[0].timestamp


def _minutes(events: Sequence[KeystrokeEvent]) -> float:
    return total_duration(events) / _MS_PER_MINUTE


def events_per_minute(events: Sequence[KeystrokeEvent]) -> float:
    minutes = _minutes(events)
    if minutes <= 0:
        return 0.0
    return len(events) / minutes


def bursts_per_minute(events: Sequence[KeystrokeEvent]) -> float:
    """Rate of *gap* events (dt >= 2 s) per minute.

    Despite the name this counts slow events, not fast ones; it is the
    pause-burst rate and is distinct from :func:`burst_fraction`.
    """
    minutes = _minutes(events)
    if minutes <= 0:
        return 0.0
    gaps = sum(1 for e in events if e.delta_time >= PAUSE_MIN_MS)
    return gaps / minutes


def burst_fraction(events: Sequence[KeystrokeEvent]) -> float:
    """Fraction of events with ``0 < dt <= 200 ms``."""
    if not events:
        return 0.0
    fast = sum(1 for e in events if 0 < e.delta_time <= BURST_MAX_MS)
    return fast / len(events)


# ── Editing friction ─────────────────────────────────────────


def total_inserted(events: Sequence[KeystrokeEvent]) -> int:
    return sum(len(e.text) for e in events)


def total_deleted(events: Sequence[KeystrokeEvent]) -> int:
    return sum(e.deleted_chars for e in events)


def net_progress(events: Sequence[KeystrokeEvent]) -> int:
    return max(0, total_inserted(events) - total_deleted(events))


def delete_ratio(events: Sequence[KeystrokeEvent]) -> float:
    """``del / max(1, ins)``.

    0.0 means no deletions, 0.3 means 30% as much deleted as inserted,
    anything >= 1.0 means at least as much deleted as inserted.
    """
    return total_deleted(events) / max(1, total_inserted(events))


def churn(events: Sequence[KeystrokeEvent]) -> float:
    """``(ins + del) / max(1, net)``.

    Around 1 most activity becomes progress; above 5 there is a lot of
    effort for little progress.
    """
    ins = total_inserted(events)
    dels = total_deleted(events)
    return (ins + dels) / max(1, max(0, ins - dels))


def friction_metrics(events: Sequence[KeystrokeEvent]) -> dict[str, float]:
    """Compute all friction metrics in one pass."""
    ins = total_inserted(events)
    dels = total_deleted(events)
    net = max(0, ins - dels)
    return {
        "ins": ins,
        "del": dels,
        "net": net,
        "delete_ratio": dels / max(1, ins),
        "churn": (ins + dels) / max(1, net),
    }


# ── Pause & break analysis ───────────────────────────────────


def pause_fraction(
    events: Sequence[KeystrokeEvent],
    min_pause_ms: int = PAUSE_MIN_MS,
    max_pause_ms: int = DEFAULT_BREAK_WINDOW_MS,
) -> float:
    """Share of the sample's duration spent in medium pauses."""
    duration = total_duration(events)
    if duration <= 0:
        return 0.0
    paused = sum(e.delta_time for e in events if min_pause_ms <= e.delta_time <= max_pause_ms)
    return paused / duration


def break_count(events: Sequence[KeystrokeEvent], break_ms: int = DEFAULT_BREAK_WINDOW_MS) -> int:
    return sum(1 for e in events if e.delta_time > break_ms)


def breaks_per_minute(events: Sequence[KeystrokeEvent], break_ms: int = DEFAULT_BREAK_WINDOW_MS) -> float:
    minutes = _minutes(events)
    if minutes <= 0:
        return 0.0
    return break_count(events, break_ms) / minutes


def median_break_ms(events: Sequence[KeystrokeEvent], break_ms: int = DEFAULT_BREAK_WINDOW_MS) -> float:
    """Median length of gaps longer than ``break_ms`` (0 when there are none)."""
    durations = [e.delta_time for e in events if e.delta_time > break_ms]
    if not durations:
        return 0.0
    return float(statistics.median(durations))


# ── Compute all features ─────────────────────────────────────


def compute_features(
    events: Sequence[KeystrokeEvent],
    *,
    break_window_ms: int = DEFAULT_BREAK_WINDOW_MS,
    drop_anomalies: bool = False,
) -> FeatureVector:
    """Build a :class:`FeatureVector` from one sample.

    Parameters
    ----------
    events
        Ordered events of a single sample.
    break_window_ms
        Gaps longer than this count as breaks; medium pauses are the gaps
        between 2 s and this value.
    drop_anomalies
        Apply :func:`clean_anomalies` first.  Off by default so paste and
        bulk-delete events still count towards friction.
    """
    if drop_anomalies:
        events = clean_anomalies(events)
    if not events:
        return FeatureVector()

    friction = friction_metrics(events)

    return FeatureVector(
        duration_ms=total_duration(events),
        events=len(events),
        events_per_min=events_per_minute(events),
        inserted=friction["ins"],
        deleted=friction["del"],
        net=friction["net"],
        delete_ratio=friction["delete_ratio"],
        churn=friction["churn"],
        burst_fraction=burst_fraction(events),
        bursts_per_min=bursts_per_minute(events),
        pause_fraction=pause_fraction(events, max_pause_ms=break_window_ms),
        breaks=break_count(events, break_window_ms),
        breaks_per_min=breaks_per_minute(events, break_window_ms),
        median_break_ms=median_break_ms(events, break_window_ms),
        # Trend fields need several samples; a single sample stays neutral.
        pause_trend_slope=0.0,
        struggle_share=0.0,
    )
