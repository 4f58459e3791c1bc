"""Application entrypoint — start the API server or run one-off commands."""

from __future__ import annotations

import argparse
import json
import sys

import uvicorn

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.analysis.models import StateSnapshot
from keystroke_flow.config import Settings, get_settings
from keystroke_flow.dynamics.adapter import extract_records
from keystroke_flow.logger import setup_logging
from keystroke_flow.research.export import (
    export_records_csv,
    export_records_json,
    export_snapshots_jsonl,
    read_events_jsonl,
)


def replay(
    path: str,
    snapshots_out: str | None = None,
    settings: Settings | None = None,
) -> SampleBuffer:
    """Push every event of a JSON-lines file through a fresh buffer.

    Prints one line per state change and returns the buffer.
    """
    buffer = SampleBuffer(settings or get_settings())
    snapshots: list[StateSnapshot] = []
    last = buffer.get_state()
    for event in read_events_jsonl(path):
        buffer.push(event)
        current = buffer.get_state()
        if current is not last:
            snapshots.append(current)
            if current.state is not last.state:
                print(f"{event.timestamp}\t{last.state.value} -> {current.state.value}")
            last = current

    if snapshots_out:
        export_snapshots_jsonl(snapshots, snapshots_out)
    return buffer


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="keystroke-flow",
        description="Flow-state estimation and keystroke-dynamics export from edit events.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── replay ────────────────────────────────────────────────
    replay_parser = sub.add_parser("replay", help="Classify a recorded event log (JSON lines).")
    replay_parser.add_argument("events", help="Path to a .jsonl file of edit events.")
    replay_parser.add_argument("--snapshots-out", default=None, help="Write snapshots as JSON lines.")

    # ── export-records ────────────────────────────────────────
    export_parser = sub.add_parser("export-records", help="Extract CMU timing records from an event log.")
    export_parser.add_argument("events", help="Path to a .jsonl file of edit events.")
    export_parser.add_argument("--out", required=True)
    export_parser.add_argument("--format", choices=("csv", "json"), default="csv")
    export_parser.add_argument("--subject", type=int, default=None)
    export_parser.add_argument("--session-index", type=int, default=None)

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "keystroke_flow.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "replay":
        buffer = replay(args.events, args.snapshots_out)
        print(json.dumps(buffer.get_state().model_dump(mode="json", by_alias=True), indent=2))
    elif args.command == "export-records":
        # Offline export keeps whole episodes: only context switches split samples.
        episodes = settings.model_copy(
            update={"max_length_for_analysis_ms": sys.maxsize, "max_window_size": sys.maxsize}
        )
        buffer = replay(args.events, settings=episodes)
        records = extract_records(
            buffer.get_all_samples(),
            settings.record_subject if args.subject is None else args.subject,
            settings.record_session_index if args.session_index is None else args.session_index,
        )
        writer = export_records_csv if args.format == "csv" else export_records_json
        output = writer(records, args.out)
        print(f"{len(records)} records written to {output}")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
