#!/usr/bin/env python3
"""Run the notification triggers locally without Kafka, Firestore or Mailgun.

An in-memory document store fires the triggers on every write, the same way
the hosted store does, and emails are printed (or only recorded with
`--quiet`). The demo walks one order and one grooming booking through their
status progressions using the operator status driver.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notifier.adapters.document_store import InMemoryDocumentStore  # noqa: E402
from notifier.adapters.fake_senders import RecordingSender, send_email_via_console  # noqa: E402
from notifier.application.context import Dependencies  # noqa: E402
from notifier.application.process import bind_triggers  # noqa: E402
from notifier.application.status_driver import set_status  # noqa: E402
from notifier.domain.transitions import GROOMING_BOOKINGS, ORDERS  # noqa: E402

SEED: dict[str, dict[str, dict[str, Any]]] = {
    "products": {
        "prod-1": {"name": "Chicken Jerky Treats", "images": [], "price": 250},
        "prod-2": {"name": "Rope Toy", "images": [], "price": 100},
    },
    "groomingCenters": {"center-1": {"name": "Happy Paws", "email": "center@example.com"}},
}


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    recorder = RecordingSender()
    store = InMemoryDocumentStore(SEED)
    deps = Dependencies(
        store=store,
        send_email=recorder if args.quiet else _print_and_record(recorder),
        business_email=args.business_email,
    )
    bind_triggers(store, deps, on_result=_print_result)

    store.set(
        ORDERS,
        "abc123",
        {
            "status": "pending",
            "userEmail": args.email,
            "userName": "Demo Customer",
            "items": [
                {"productId": "prod-1", "name": "Chicken Jerky Treats", "price": 250, "quantity": 2},
                {"productId": "prod-2", "name": "Rope Toy", "price": 100, "quantity": 1},
                {"productId": "", "name": "Unknown", "price": 0, "quantity": 1},
            ],
            "subtotal": 600,
            "totalAmount": 600,
        },
    )
    set_status(store, ORDERS, "abc123", "confirmed")
    set_status(
        store,
        ORDERS,
        "abc123",
        "dispatched",
        {"courierDetails": {"company": "BlueDart", "trackingNumber": "BD123456"}},
    )
    set_status(store, ORDERS, "abc123", "delivered")

    store.set(
        GROOMING_BOOKINGS,
        "booking-1",
        {
            "status": "pending",
            "userEmail": args.email,
            "userName": "Demo Customer",
            "centerId": "center-1",
            "centerName": "Happy Paws",
            "petName": "Bruno",
            "date": "2026-11-02",
            "time": "10:00",
            "selectedServices": ["Bath", "Nail Trim"],
            "totalCost": 900,
        },
    )
    for status in ("confirmed", "arrived", "completed"):
        set_status(store, GROOMING_BOOKINGS, "booking-1", status)

    print("")
    print("[SUMMARY]")
    print(f"emails_sent={len(recorder.sent)}")
    print(f"review_requests={len(store.documents('reviewRequests'))}")
    print(f"scheduled_emails={len(store.documents('scheduledEmails'))}")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Walk an order and a booking through their statuses in memory."
    )
    parser.add_argument("--email", default="customer@example.com", help="Customer email.")
    parser.add_argument("--business-email", default="orders@petzify.com")
    parser.add_argument("--quiet", action="store_true", help="Record emails without printing.")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def _print_and_record(recorder: RecordingSender):
    def send(*, to_email: str, subject: str, html: str, cc: str | None = None) -> Any:
        send_email_via_console(to_email=to_email, subject=subject, html=html, cc=cc)
        return recorder(to_email=to_email, subject=subject, html=html, cc=cc)

    return send


def _print_result(processing: dict[str, Any]) -> None:
    result = processing["trigger_result"]
    if result["status"] == "skipped":
        return
    print(
        f"[RESULT] {processing['collection']}/{processing['document_id']} "
        f"trigger={result['trigger']} status={result['status']} "
        f"sends={len(result['sends'])} reason={result['reason']}"
    )


if __name__ == "__main__":
    sys.exit(main())
