"""Flow classifier — rate-based state scoring with enter/exit hysteresis.

This module maps a :class:`FeatureVector` (and the previous
:class:`StateSnapshot`) to a new snapshot.

Design principles
-----------------
- **Pure & total**: the same inputs always give the same snapshot, and no
  input can make it raise.  Every sub-term and every score is clamped to
  [0, 1].
- **Rate-based**: scores are driven by events-per-minute relative to the
  configured normal / fast / smash / slow rates.
- **Sticky**: a non-FOCUSED state is kept while its score stays above a lower
  exit threshold, so the state does not flicker between samples.
- **FOCUSED is residual**: it is what remains when nothing else qualifies.

=========  ================================================  =============
State      Key signals                                       Enter / exit
=========  ================================================  =============
Fatigued   rate below normal, few bursts, pauses, churn ↑    0.75 / 0.55
Thrashing  rate above smash (keyboard mashing only)          0.70 / 0.50
Idle       breaks per minute, long breaks, pauses            0.65 / 0.45
Flow       rate above normal, many bursts, few pauses        0.70 / 0.50
=========  ================================================  =============
"""

from __future__ import annotations

from typing import Sequence

import structlog

from keystroke_flow.analysis.features import compute_features
from keystroke_flow.analysis.models import FeatureVector, StateScores, StateSnapshot
from keystroke_flow.config import Settings, get_settings
from keystroke_flow.models import FlowState, KeystrokeEvent

logger = structlog.get_logger(__name__)

# ── Hysteresis thresholds ────────────────────────────────────

ENTER_THRESHOLD: dict[FlowState, float] = {
    FlowState.FLOW: 0.70,
    FlowState.THRASHING: 0.70,
    FlowState.IDLE: 0.65,
    FlowState.FATIGUED: 0.75,
}

EXIT_THRESHOLD: dict[FlowState, float] = {
    FlowState.FLOW: 0.50,
    FlowState.THRASHING: 0.50,
    FlowState.IDLE: 0.45,
    FlowState.FATIGUED: 0.55,
}

# Rarer / higher-impact states first.  FOCUSED is the fallback, not a candidate.
STATE_PRIORITY: tuple[FlowState, ...] = (
    FlowState.FATIGUED,
    FlowState.THRASHING,
    FlowState.IDLE,
    FlowState.FLOW,
)


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _ramp(x: float, lo: float, hi: float) -> float:
    """Linear 0→1 ramp between ``lo`` and ``hi``, clamped."""
    span = hi - lo
    if span <= 0:
        return 1.0 if x >= hi else 0.0
    return clamp01((x - lo) / span)


# ── Score calculators ────────────────────────────────────────


def score_flow(f: FeatureVector, settings: Settings) -> float:
    """Fast sustained typing: high rate, many bursts, few pauses, low churn.

    The weights deliberately sum above 1; the final clamp caps the score.
    """
    if f.events == 0:
        return 0.0
    speed = _ramp(f.events_per_min, settings.normal_rate, settings.fast_rate)
    burst = _ramp(f.burst_fraction, 0.35, 0.70)
    low_pause = clamp01(1 - f.pause_fraction / 0.20)
    low_churn = clamp01(1 - f.churn / 2.5)
    return clamp01(0.60 * speed + 0.30 * burst + 0.20 * low_pause + 0.15 * low_churn)


def score_thrashing(f: FeatureVector, settings: Settings) -> float:
    """Zero unless the rate exceeds the smash rate; reaches 1 at twice that."""
    smash = settings.smash_rate
    if f.events_per_min <= smash:
        return 0.0
    return _ramp(f.events_per_min, smash, 2 * smash)


def score_idle(f: FeatureVector, settings: Settings) -> float:
    """Stop-start rhythm, independent of raw speed."""
    breaks = clamp01(f.breaks_per_min / 3.0)  # 3 breaks/min → strong
    median = clamp01(f.median_break_ms / 12_000)  # 12 s median → strong
    pause = clamp01(f.pause_fraction / 0.30)
    return clamp01(0.45 * breaks + 0.35 * median + 0.20 * pause)


def score_fatigued(f: FeatureVector, settings: Settings) -> float:
    """A slowing, increasingly error-prone session."""
    if f.events == 0:
        return 0.0
    slowdown = 0.0
    if f.events_per_min > 0:
        slowdown = clamp01(
            (settings.normal_rate - f.events_per_min)
            / max(1e-9, settings.normal_rate - settings.slow_rate)
        )
    low_burst = clamp01(1 - f.burst_fraction / 0.35)
    pause = clamp01(f.pause_fraction / 0.30)
    churn_rise = clamp01((f.churn - 1) / 2.0)
    return clamp01(0.40 * slowdown + 0.20 * low_burst + 0.20 * pause + 0.20 * churn_rise)


def score_states(f: FeatureVector, settings: Settings | None = None) -> StateScores:
    """Score all five states for a feature vector."""
    settings = settings or get_settings()
    flow = score_flow(f, settings)
    thrashing = score_thrashing(f, settings)
    idle = score_idle(f, settings)
    fatigued = score_fatigued(f, settings)
    return StateScores(
        flow=flow,
        thrashing=thrashing,
        idle=idle,
        fatigued=fatigued,
        focused=clamp01(1 - max(flow, thrashing, idle, fatigued)),
    )


# ── Transition ───────────────────────────────────────────────


def classify(
    previous: StateSnapshot,
    features: FeatureVector,
    settings: Settings | None = None,
) -> StateSnapshot:
    """Pick the next state for precomputed features.

    Order of precedence:

    1. Thrashing at full score overrides everything.
    2. A non-FOCUSED previous state is kept while its score >= exit threshold.
    3. The first state in :data:`STATE_PRIORITY` whose score >= enter threshold.
    4. FOCUSED.
    """
    scores = score_states(features, settings)

    if scores.thrashing >= 1.0:
        if previous.state is not FlowState.THRASHING:
            logger.debug(
                "classifier.thrashing_override",
                previous=previous.state.value,
                events_per_min=round(features.events_per_min, 1),
            )
        return StateSnapshot(state=FlowState.THRASHING, scores=scores, features=features)

    if previous.state is not FlowState.FOCUSED:
        if scores.for_state(previous.state) >= EXIT_THRESHOLD[previous.state]:
            return StateSnapshot(state=previous.state, scores=scores, features=features)

    for state in STATE_PRIORITY:
        if scores.for_state(state) >= ENTER_THRESHOLD[state]:
            return StateSnapshot(state=state, scores=scores, features=features)

    return StateSnapshot(state=FlowState.FOCUSED, scores=scores, features=features)


def next_state(
    previous: StateSnapshot,
    events: Sequence[KeystrokeEvent],
    *,
    settings: Settings | None = None,
) -> StateSnapshot:
    """Compute features for ``events`` and classify them against ``previous``.

    This is the primary entry point used by the sample buffer.
    """
    settings = settings or get_settings()
    features = compute_features(
        events,
        break_window_ms=settings.break_window_ms,
        drop_anomalies=settings.filter_anomalies,
    )
    return classify(previous, features, settings)
