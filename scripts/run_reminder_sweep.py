#!/usr/bin/env python3
"""Send 30-minute appointment reminders, once or every few minutes."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notifier.application.context import load_dependencies  # noqa: E402
from notifier.application.reminders import send_appointment_reminders  # noqa: E402
from notifier.config import load_env_file  # noqa: E402


def main() -> int:
    args = parse_args()
    load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    deps = load_dependencies()

    print(f"[SWEEP START] interval_seconds={args.interval_seconds} once={args.once}")
    try:
        while True:
            summary = send_appointment_reminders(deps)
            print(
                f"[RESULT] checked={summary['checked']} due={len(summary['due'])} "
                f"reminded={len(summary['reminded'])}"
            )
            if args.once:
                return 0
            time.sleep(args.interval_seconds)
    except KeyboardInterrupt:
        print("[SWEEP STOP] received keyboard interrupt")
        return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the appointment reminder sweep.")
    parser.add_argument("--interval-seconds", type=float, default=300.0)
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
