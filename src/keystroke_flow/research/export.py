"""Data import / export utilities for offline keystroke-dynamics work."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, Sequence

import structlog

from keystroke_flow.analysis.models import StateSnapshot
from keystroke_flow.dynamics.models import TimingRecord
from keystroke_flow.models import KeystrokeEvent

logger = structlog.get_logger(__name__)


def read_events_jsonl(path: str | Path) -> list[KeystrokeEvent]:
    """Load edit events from a JSON-lines file (one event object per line).

    Blank lines are ignored; a malformed line raises
    :class:`pydantic.ValidationError` with the offending content.
    """
    events: list[KeystrokeEvent] = []
    with Path(path).open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                events.append(KeystrokeEvent.model_validate_json(line))
    logger.info("export.events_read", path=str(path), events=len(events))
    return events


def export_records_csv(records: Sequence[TimingRecord], output_path: str | Path) -> Path:
    """Write timing records to a CSV file in CMU column order.

    The header is written even when ``records`` is empty.  Returns the
    resolved output path.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    columns = TimingRecord.columns()
    with output.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for r in records:
            writer.writerow(r.to_row())

    logger.info("export.csv_written", path=str(output), rows=len(records))
    return output


def export_records_json(records: Sequence[TimingRecord], output_path: str | Path) -> Path:
    """Write timing records to a JSON array keyed by CMU column names."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8") as f:
        json.dump([r.to_row() for r in records], f, indent=2)

    logger.info("export.json_written", path=str(output), rows=len(records))
    return output


def export_snapshots_jsonl(snapshots: Iterable[StateSnapshot], output_path: str | Path) -> Path:
    """Write state snapshots as JSON lines with camelCase keys."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with output.open("w", encoding="utf-8") as f:
        for s in snapshots:
            f.write(s.model_dump_json(by_alias=True) + "\n")
            count += 1

    logger.info("export.jsonl_written", path=str(output), rows=count)
    return output
