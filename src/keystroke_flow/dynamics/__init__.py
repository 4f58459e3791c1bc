"""Keystroke dynamics — CMU benchmark-compatible timing records."""

from keystroke_flow.dynamics.adapter import extract_records, keystrokes_to_timing_record
from keystroke_flow.dynamics.errors import (
    InsufficientDataError,
    KeystrokeDynamicsError,
    LabelMismatchError,
    SequenceNotFoundError,
    UnsupportedCharacterError,
)
from keystroke_flow.dynamics.models import TARGET_CHARS, TARGET_LABELS, TimingRecord

__all__ = [
    "InsufficientDataError",
    "KeystrokeDynamicsError",
    "LabelMismatchError",
    "SequenceNotFoundError",
    "TARGET_CHARS",
    "TARGET_LABELS",
    "TimingRecord",
    "UnsupportedCharacterError",
    "extract_records",
    "keystrokes_to_timing_record",
]
