"""Pydantic models for the flow-state analysis subsystem.

These models represent:
- The feature vector derived from one sample of edit events
- Per-state confidence scores
- The state snapshot fed back into the classifier for hysteresis
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from keystroke_flow.models import FlowState

_VALUE_OBJECT = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ── Features ─────────────────────────────────────────────────


class FeatureVector(BaseModel):
    """Aggregate features over a single sample.

    Serialises with camelCase keys (``durationMs``, ``deleteRatio``, ``del``)
    so downstream consumers see the same names regardless of language.
    """

    model_config = _VALUE_OBJECT

    # ── Session
    duration_ms: int = 0
    events: int = 0
    events_per_min: float = 0.0

    # ── Editing friction
    inserted: int = Field(0, alias="ins")
    deleted: int = Field(0, alias="del")
    net: int = 0
    delete_ratio: float = 0.0  # del / max(1, ins)
    churn: float = 1.0  # (ins + del) / max(1, net)

    # ── Rhythm
    burst_fraction: float = 0.0  # share of events with 0 < dt <= 200 ms
    bursts_per_min: float = 0.0  # events with dt >= 2 s, per minute

    # ── Pauses & breaks
    pause_fraction: float = 0.0
    breaks: int = 0
    breaks_per_min: float = 0.0
    median_break_ms: float = 0.0

    # ── Multi-sample trend (reserved, not derived from a single sample)
    pause_trend_slope: float = 0.0
    struggle_share: float = 0.0


# ── Scores & snapshot ────────────────────────────────────────


class StateScores(BaseModel):
    """Confidence in [0, 1] for each of the five states."""

    model_config = _VALUE_OBJECT

    focused: float = Field(1.0, ge=0.0, le=1.0)
    flow: float = Field(0.0, ge=0.0, le=1.0)
    idle: float = Field(0.0, ge=0.0, le=1.0)
    thrashing: float = Field(0.0, ge=0.0, le=1.0)
    fatigued: float = Field(0.0, ge=0.0, le=1.0)

    def for_state(self, state: FlowState) -> float:
        return getattr(self, state.value.lower())

    def as_dict(self) -> dict[FlowState, float]:
        return {state: self.for_state(state) for state in FlowState}


class StateSnapshot(BaseModel):
    """Classifier output: the chosen state, all scores and the features behind them.

    Immutable.  The previous snapshot is the only state carried between
    classifier calls.
    """

    model_config = _VALUE_OBJECT

    state: FlowState = FlowState.FOCUSED
    scores: StateScores = Field(default_factory=StateScores)
    features: FeatureVector = Field(default_factory=FeatureVector)


def create_initial_state() -> StateSnapshot:
    """Return the starting snapshot: FOCUSED with neutral scores and features."""
    return StateSnapshot()
