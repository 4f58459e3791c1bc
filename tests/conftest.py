"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Callable

import pytest

from keystroke_flow.config import Settings
from keystroke_flow.models import KeystrokeEvent

PHRASE = ".tie5Roanl\n"


def _typed(text: str, start: int = 1_000, gap: int = 100, source_id: str = "test.py") -> list[KeystrokeEvent]:
    """One single-character insert per char, ``gap`` ms apart (first delta 0)."""
    return [
        KeystrokeEvent(
            timestamp=start + i * gap,
            delta_time=0 if i == 0 else gap,
            text=ch,
            source_id=source_id,
        )
        for i, ch in enumerate(text)
    ]


@pytest.fixture
def settings() -> Settings:
    """Default tunables, isolated from any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def episode_settings() -> Settings:
    """Settings where only context switches end a sample."""
    return Settings(
        _env_file=None,
        max_length_for_analysis_ms=10**9,
        max_window_size=10_000,
        eviction_recompute_every=1,
    )


@pytest.fixture
def typed() -> Callable[..., list[KeystrokeEvent]]:
    return _typed


@pytest.fixture
def phrase_events() -> list[KeystrokeEvent]:
    """The benchmark phrase typed with uniform 100 ms gaps."""
    return _typed(PHRASE)
