"""Shared Pydantic models used across the pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# ── Enums ─────────────────────────────────────────────────────


class FlowState(str, Enum):
    """Behavioural state inferred from a sample of edit events.

    ``FOCUSED`` is the initial state and the fallback when no other state
    qualifies; it is never entered through a threshold of its own.
    """

    FOCUSED = "FOCUSED"
    FLOW = "FLOW"
    IDLE = "IDLE"
    THRASHING = "THRASHING"
    FATIGUED = "FATIGUED"


# ── Data transfer objects ─────────────────────────────────────


class KeystrokeEvent(BaseModel):
    """A single text-edit event forwarded by the host editor.

    An empty ``text`` denotes a pure deletion (backspace).  Multi-character
    ``text`` or ``deleted_chars > 1`` usually means a paste or a bulk delete
    rather than a keystroke.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: int = Field(..., ge=0, description="Wall-clock time of the edit in ms.")
    delta_time: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("delta_time", "deltaTime"),
        description="Milliseconds since the previous event (0 for the first).",
    )
    text: str = ""
    deleted_chars: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("deleted_chars", "deletedChars"),
        serialization_alias="deletedChars",
    )
    source_id: str = Field(
        "",
        validation_alias=AliasChoices("source_id", "sourceId", "fileName"),
        serialization_alias="sourceId",
    )

    @property
    def is_deletion(self) -> bool:
        """True for backspace / delete events that produce no typed character."""
        return self.text == "" or self.deleted_chars > 0
