"""Keystroke-dynamics adapter — reconstruct key timings and emit CMU records.

Edit events only carry a coarse ``delta_time`` chain, not key-down / key-up
pairs.  This module rebuilds a consistent timeline from the deltas,
estimates hold times from the local rhythm, finds the benchmark phrase
``.tie5Roanl`` + Return in the typed stream and emits a :class:`TimingRecord`.

Unlike the classification path this one is allowed to fail: each failure kind
is a distinct :class:`KeystrokeDynamicsError` subclass.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Iterable, Sequence

import structlog

from keystroke_flow.dynamics.errors import (
    InsufficientDataError,
    KeystrokeDynamicsError,
    LabelMismatchError,
    SequenceNotFoundError,
    UnsupportedCharacterError,
)
from keystroke_flow.dynamics.models import TARGET_CHARS, TARGET_LABELS, TimingRecord
from keystroke_flow.models import KeystrokeEvent

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

HOLD_MIN_MS = 30.0
HOLD_MAX_MS = 250.0
HOLD_GAP_FACTOR = 0.9
DEFAULT_DELTA_MS = 120.0  # used when a sample has no positive delta at all

_DIGIT_WORDS = ("zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine")


@dataclass(frozen=True)
class TimedKey:
    char: str
    down: float
    up: float


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def char_to_label(ch: str) -> str:
    """Map a typed character to its benchmark key label.

    Raises :class:`UnsupportedCharacterError` for anything outside
    ``a-z``, ``A-Z``, ``0-9``, ``.`` and newline.
    """
    if ch == ".":
        return "period"
    if ch == "\n":
        return "Return"
    if len(ch) == 1 and "A" <= ch <= "Z":
        return f"Shift.{ch.lower()}"
    if len(ch) == 1 and "a" <= ch <= "z":
        return ch
    if len(ch) == 1 and "0" <= ch <= "9":
        return _DIGIT_WORDS[int(ch)]
    raise UnsupportedCharacterError(f"Unsupported character for CMU mapping: {ch!r}")


def reconstruct_down_up(events: Sequence[KeystrokeEvent]) -> list[TimedKey]:
    """Rebuild key-down / key-up times for every event.

    Down times accumulate ``delta_time`` from the first timestamp rather than
    trusting each raw timestamp.  Hold time is
    ``clamp(0.9 * min(prev_gap, next_gap), 30, 250)``, where a missing or
    zero gap falls back to the sample's median positive delta.
    """
    if not events:
        return []

    downs: list[float] = [float(events[0].timestamp)]
    for e in events[1:]:
        downs.append(downs[-1] + e.delta_time)

    positive = [e.delta_time for e in events if e.delta_time > 0]
    med = float(statistics.median(positive)) if positive else DEFAULT_DELTA_MS

    timed: list[TimedKey] = []
    last = len(events) - 1
    for i, e in enumerate(events):
        prev_gap = e.delta_time if i > 0 else med
        next_gap = events[i + 1].delta_time if i < last else med
        neighbour = min(prev_gap if prev_gap > 0 else med, next_gap if next_gap > 0 else med)
        hold = _clamp(HOLD_GAP_FACTOR * neighbour, HOLD_MIN_MS, HOLD_MAX_MS)
        timed.append(TimedKey(char=e.text, down=downs[i], up=downs[i] + hold))
    return timed


def extract_target_subsequence(
    timed: Sequence[TimedKey],
    events: Sequence[KeystrokeEvent],
) -> list[TimedKey]:
    """First in-order (not necessarily contiguous) match of the target phrase.

    Deletion events are skipped entirely.
    """
    typed = sum(1 for e in events if not e.is_deletion)
    if typed < len(TARGET_CHARS):
        raise InsufficientDataError(
            f"Sample has {typed} typed characters; the target needs {len(TARGET_CHARS)}."
        )

    picked: list[TimedKey] = []
    for e, t in zip(events, timed):
        if len(picked) == len(TARGET_CHARS):
            break
        if e.is_deletion:
            continue
        if t.char == TARGET_CHARS[len(picked)]:
            picked.append(t)

    if len(picked) != len(TARGET_CHARS):
        raise SequenceNotFoundError(
            f"Could not find the CMU fixed-string subsequence "
            f"(matched {len(picked)} of {len(TARGET_CHARS)} keys)."
        )
    return picked


def keystrokes_to_timing_record(
    events: Sequence[KeystrokeEvent],
    subject: int,
    session_index: int,
    rep: int,
) -> TimingRecord:
    """Convert one sample into a CMU trial row.

    Raises
    ------
    InsufficientDataError
        Fewer typed characters than the phrase length.
    SequenceNotFoundError
        The phrase is not an in-order subsequence of the typed characters.
    UnsupportedCharacterError
        A matched character has no benchmark label.
    LabelMismatchError
        The mapped labels differ from the canonical label sequence.
    """
    timed = reconstruct_down_up(events)
    seq = extract_target_subsequence(timed, events)

    labels = [char_to_label(k.char) for k in seq]
    for k, (got, expected) in enumerate(zip(labels, TARGET_LABELS)):
        if got != expected:
            raise LabelMismatchError(
                f"Matched text, but CMU label mismatch at {k}: got {got}, expected {expected}"
            )

    row: dict[str, float | int] = {"subject": subject, "sessionIndex": session_index, "rep": rep}
    for key, label in zip(seq, TARGET_LABELS):
        row[f"H.{label}"] = key.up - key.down
    for i in range(len(TARGET_LABELS) - 1):
        a, b = TARGET_LABELS[i], TARGET_LABELS[i + 1]
        row[f"DD.{a}.{b}"] = seq[i + 1].down - seq[i].down
        row[f"UD.{a}.{b}"] = seq[i + 1].down - seq[i].up

    return TimingRecord.model_validate(row)


def extract_records(
    samples: Iterable[Sequence[KeystrokeEvent]],
    subject: int,
    session_index: int,
    *,
    first_rep: int = 1,
) -> list[TimingRecord]:
    """Run the adapter over many samples, skipping the ones that fail.

    Successful records get consecutive ``rep`` numbers starting at
    ``first_rep``.
    """
    records: list[TimingRecord] = []
    skipped = 0
    for sample in samples:
        try:
            record = keystrokes_to_timing_record(
                sample, subject, session_index, first_rep + len(records)
            )
        except KeystrokeDynamicsError as exc:
            skipped += 1
            logger.debug(
                "dynamics.sample_skipped",
                reason=type(exc).__name__,
                error=str(exc),
                events=len(sample),
            )
            continue
        records.append(record)

    logger.info("dynamics.records_extracted", records=len(records), skipped=skipped)
    return records
