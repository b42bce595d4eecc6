#!/usr/bin/env python3
"""Change the status of one or more orders/bookings in Firestore.

The write fires the notification triggers; this script never sends email.

Examples:
  scripts/set_status.py --collection orders --status confirmed abc123
  scripts/set_status.py --collection orders --status dispatched abc123 \
      --courier-company BlueDart --tracking-number BD123
  scripts/set_status.py --collection groomingBookings --status completed b1 b2 b3
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

from notifier.adapters.document_store import FirestoreStore  # noqa: E402
from notifier.application.status_driver import bulk_set_status, set_status  # noqa: E402
from notifier.config import load_env_file, load_firestore_config  # noqa: E402
from notifier.errors import (  # noqa: E402
    CourierDetailsRequired,
    InvalidStatusError,
    InvalidTransitionError,
    RecordNotFoundError,
)


def main() -> int:
    args = parse_args()
    load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    store = FirestoreStore.from_config(load_firestore_config())

    extra = None
    if args.courier_company or args.tracking_number:
        extra = {
            "courierDetails": {
                "company": args.courier_company,
                "trackingNumber": args.tracking_number,
            }
        }

    if len(args.record_ids) == 1:
        try:
            fields = set_status(store, args.collection, args.record_ids[0], args.status, extra)
        except (
            CourierDetailsRequired,
            InvalidStatusError,
            InvalidTransitionError,
            RecordNotFoundError,
        ) as exc:
            print(f"[REJECTED] {exc}")
            return 1
        print(f"[UPDATED] {args.collection}/{args.record_ids[0]} fields={sorted(fields)}")
        return 0

    summary = bulk_set_status(store, args.collection, args.record_ids, args.status, extra)
    print("[BULK]")
    print(f"requested={summary['requested']}")
    print(f"updated={','.join(summary['updated']) or '-'}")
    print(f"skipped={','.join(summary['skipped']) or '-'}")
    print(f"failed={summary['failed']}")
    return 0 if summary["failed"] == 0 else 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set order or booking status.")
    parser.add_argument("--collection", required=True)
    parser.add_argument("--status", required=True)
    parser.add_argument("--courier-company", default=None)
    parser.add_argument("--tracking-number", default=None)
    parser.add_argument("record_ids", nargs="+", help="One or more document ids.")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
