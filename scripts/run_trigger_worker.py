#!/usr/bin/env python3
"""Run the Kafka trigger worker.

This worker consumes document-change events (`documents.changes` by default),
runs the notification triggers against Firestore and sends email via Mailgun.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notifier.adapters.kafka_runtime import run_trigger_worker_forever  # noqa: E402
from notifier.application.context import load_dependencies  # noqa: E402
from notifier.config import load_env_file  # noqa: E402


def main() -> int:
    args = parse_args()
    load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    return run_trigger_worker_forever(load_dependencies())


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run Kafka consumer loop for document-change notifications."
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level.")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
