"""Analysis helpers — pandas-based utilities for research workflows."""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from keystroke_flow.analysis.models import StateSnapshot
from keystroke_flow.dynamics.models import TimingRecord


def records_to_dataframe(records: Sequence[TimingRecord]) -> pd.DataFrame:
    """Load timing records into a :class:`pandas.DataFrame`.

    Columns follow the CMU benchmark layout, so the frame can be
    concatenated with the published dataset directly.
    """
    return pd.DataFrame([r.to_row() for r in records], columns=TimingRecord.columns())


def snapshots_to_dataframe(snapshots: Sequence[StateSnapshot]) -> pd.DataFrame:
    """One row per snapshot: the state, its five scores and the key features."""
    records = [
        {
            "state": s.state.value,
            **{f"score_{k}": v for k, v in s.scores.model_dump().items()},
            "events": s.features.events,
            "duration_ms": s.features.duration_ms,
            "events_per_min": s.features.events_per_min,
            "churn": s.features.churn,
            "burst_fraction": s.features.burst_fraction,
            "pause_fraction": s.features.pause_fraction,
        }
        for s in snapshots
    ]
    return pd.DataFrame(records)


def compute_summary(df: pd.DataFrame) -> dict[str, Any]:
    """Return per-column summary statistics for the timing columns.

    Only ``H.*``, ``DD.*`` and ``UD.*`` columns are summarised.
    """
    timing_cols = [c for c in df.columns if c.split(".", 1)[0] in ("H", "DD", "UD")]
    if df.empty or not timing_cols:
        return {"count": 0}

    summary: dict[str, Any] = {"count": int(len(df))}
    for col in timing_cols:
        summary[col] = {
            "mean": round(float(df[col].mean()), 2),
            "std": round(float(df[col].std()), 2) if len(df) > 1 else 0.0,
            "min": float(df[col].min()),
            "max": float(df[col].max()),
            "median": float(df[col].median()),
        }
    return summary


def state_distribution(df: pd.DataFrame) -> dict[str, float]:
    """Share of snapshots spent in each state (from :func:`snapshots_to_dataframe`)."""
    if df.empty or "state" not in df.columns:
        return {}
    return {str(k): float(v) for k, v in df["state"].value_counts(normalize=True).items()}
