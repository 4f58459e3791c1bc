"""Request / response models for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from keystroke_flow.models import KeystrokeEvent


class IngestResponse(BaseModel):
    count: int
    queued: bool = True


class SamplesResponse(BaseModel):
    closed: int
    open_size: int
    samples: list[list[KeystrokeEvent]]


class RecordsResponse(BaseModel):
    count: int
    records: list[dict[str, Any]]
    stats: dict[str, Any] = {}
