#!/usr/bin/env python3
"""Publish one document-change event to Kafka for local testing."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notifier.adapters.kafka_runtime import publish_document_change_event  # noqa: E402
from notifier.config import load_env_file  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    before = load_document(args.before_file)
    after = load_document(args.after_file)
    if args.kind == "created" and after is None:
        raise SystemExit("--after-file is required for created events.")
    if args.kind == "updated" and (before is None or after is None):
        raise SystemExit("--before-file and --after-file are required for updated events.")

    metadata = publish_document_change_event(
        args.collection,
        args.document_id,
        args.kind,
        before=before,
        after=after,
        topic=args.topic,
    )

    print("[PUBLISHED]")
    print(f"topic={metadata['topic']}")
    print(f"partition={metadata['partition']}")
    print(f"offset={metadata['offset']}")
    print(f"event_id={metadata['event_id']}")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish one document-change event for Kafka testing."
    )
    parser.add_argument("--collection", required=True, help="e.g. orders, groomingBookings.")
    parser.add_argument("--document-id", required=True, help="Id of the changed document.")
    parser.add_argument("--kind", choices=("created", "updated"), required=True)
    parser.add_argument(
        "--before-file",
        type=Path,
        default=None,
        help="JSON file with the document before the change (updated events).",
    )
    parser.add_argument(
        "--after-file",
        type=Path,
        default=None,
        help="JSON file with the document after the change.",
    )
    parser.add_argument(
        "--topic",
        default=None,
        help="Override Kafka topic (defaults to KAFKA_TOPIC_DOCUMENT_CHANGES).",
    )
    return parser.parse_args()


def load_document(path: Path | None) -> dict[str, Any] | None:
    if path is None:
        return None
    with path.open("r", encoding="utf-8") as handle:
        document = json.load(handle)
    if not isinstance(document, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    return document


if __name__ == "__main__":
    sys.exit(main())
