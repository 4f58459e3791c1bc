"""Flow-state analysis — segmentation, features and hysteresis classification.

This package turns a raw stream of edit events into a behavioural state
estimate (FOCUSED, FLOW, IDLE, THRASHING, FATIGUED).

Architecture
------------
1. **Sample buffer** (`buffer.py`)
   - Gap detection closes a sample after a context switch
   - Periodic re-baseline on a timer
   - Rolling capacity with FIFO eviction
   - Decides when reclassification is worth doing

2. **Feature engineering** (`features.py`)
   - Editing friction (delete ratio, churn)
   - Typing rhythm (bursts)
   - Pause / break statistics
   - Optional anomaly filter for pastes and bulk deletes

3. **Classifier** (`classifier.py`)
   - Rate-based per-state scores clamped to [0, 1]
   - Thrashing override for keyboard mashing
   - Enter / exit hysteresis with a fixed priority order

The classification path never raises: missing data gives neutral scores.
"""

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.analysis.classifier import classify, next_state, score_states
from keystroke_flow.analysis.features import clean_anomalies, compute_features
from keystroke_flow.analysis.models import (
    FeatureVector,
    StateScores,
    StateSnapshot,
    create_initial_state,
)

__all__ = [
    "FeatureVector",
    "SampleBuffer",
    "StateScores",
    "StateSnapshot",
    "classify",
    "clean_anomalies",
    "compute_features",
    "create_initial_state",
    "next_state",
    "score_states",
]
