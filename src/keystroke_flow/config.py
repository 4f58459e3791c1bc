"""Centralised settings for the keystroke-flow pipeline, loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All tunables for segmentation, scoring and export.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``KEYSTROKE_FLOW_`` namespace (stripped automatically by
    *pydantic-settings*), e.g. ``KEYSTROKE_FLOW_SMASH_RATE=120``.
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYSTROKE_FLOW_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Segmentation (milliseconds) ───────────────────────────
    context_switch_window_ms: int = Field(10_000, gt=0)  # gap that starts a new sample
    break_window_ms: int = Field(2_000, ge=0)  # gaps above this count as breaks
    max_length_for_analysis_ms: int = Field(1_000, gt=0)  # periodic re-baseline
    max_window_size: int = Field(100, gt=0)  # rolling buffer capacity (events)
    eviction_recompute_every: int = Field(10, ge=1)  # 1 = recompute on every overflow

    # ── Typing-rate thresholds (events per minute) ────────────
    normal_rate: float = Field(50.0, gt=0)
    fast_rate: float = Field(70.0, gt=0)
    smash_rate: float = Field(100.0, gt=0)
    slow_rate: float = Field(20.0, ge=0)

    # ── Feature extraction ────────────────────────────────────
    filter_anomalies: bool = False  # drop paste / bulk-delete events before scoring

    # ── Keystroke-dynamics records ────────────────────────────
    record_interval_seconds: float = Field(30.0, gt=0)
    record_subject: int = 0
    record_session_index: int = 1

    # ── API server ────────────────────────────────────────────
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    stream_queue_size: int = 10_000

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
