"""Tests for the command-line entrypoint."""

import csv
import json

import pytest

from keystroke_flow import main as cli
from keystroke_flow.dynamics.models import TimingRecord

PHRASE = ".tie5Roanl\n"


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep the CLI from reconfiguring structlog for the rest of the session."""
    calls: list[str] = []
    monkeypatch.setattr(cli, "setup_logging", calls.append)
    return calls


@pytest.fixture
def events_file(tmp_path):
    """The phrase at 100 ms gaps, then a long gap and a few more keys."""
    lines = [
        {"timestamp": 1_000 + i * 100, "delta_time": 0 if i == 0 else 100, "text": ch, "sourceId": "a.py"}
        for i, ch in enumerate(PHRASE)
    ]
    lines += [
        {"timestamp": 60_000 + i * 100, "delta_time": 0 if i == 0 else 100, "text": ch, "sourceId": "b.py"}
        for i, ch in enumerate("abc")
    ]
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n", encoding="utf-8")
    return path


def test_export_records_csv(events_file, tmp_path, capsys, no_logging_setup):
    out = tmp_path / "records.csv"
    cli.main(["export-records", str(events_file), "--out", str(out), "--subject", "9"])

    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["subject"] == "9"
    assert float(rows[0]["DD.period.t"]) == pytest.approx(100)
    assert "1 records written" in capsys.readouterr().out
    assert no_logging_setup == ["INFO"]


def test_export_records_json(events_file, tmp_path):
    out = tmp_path / "records.json"
    cli.main(["export-records", str(events_file), "--out", str(out), "--format", "json"])

    data = json.loads(out.read_text(encoding="utf-8"))
    assert len(data) == 1
    assert list(data[0]) == TimingRecord.columns()


def test_replay_prints_final_snapshot(events_file, tmp_path, capsys):
    snapshots = tmp_path / "snapshots.jsonl"
    cli.main(["replay", str(events_file), "--snapshots-out", str(snapshots)])

    out = capsys.readouterr().out
    final = json.loads(out[out.index("{"):])
    assert final["state"] in {"FOCUSED", "FLOW", "IDLE", "THRASHING", "FATIGUED"}
    assert set(final["scores"]) == {"focused", "flow", "idle", "thrashing", "fatigued"}
    assert snapshots.exists()


def test_replay_returns_buffer(events_file, episode_settings):
    buffer = cli.replay(str(events_file), settings=episode_settings)
    assert buffer.closed_samples == 1
    assert buffer.get_buffer_as_string() == "abc"


def test_no_command_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 1
    assert "keystroke-flow" in capsys.readouterr().out
