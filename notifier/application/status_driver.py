"""Operator status changes for orders and bookings.

The driver only writes. Notifications for the new status are sent by the
trigger layer when it observes the write, so a status change can never send
an email twice.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Iterable, Mapping

from ..adapters.payload import parse_courier_details
from ..domain.transitions import ORDERS, allowed_statuses, can_transition
from ..errors import (
    CourierDetailsRequired,
    InvalidStatusError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from .context import utc_now

logger = logging.getLogger(__name__)


def set_status(
    store: Any,
    collection: str,
    record_id: str,
    new_status: str,
    extra: Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Move one record to `new_status`; returns the fields written.

    Raises `InvalidStatusError`, `RecordNotFoundError`,
    `InvalidTransitionError` or `CourierDetailsRequired` before any write.
    """
    if new_status not in allowed_statuses(collection):
        raise InvalidStatusError(f"{new_status!r} is not a valid status for {collection}")

    current = store.get(collection, record_id)
    if current is None:
        raise RecordNotFoundError(collection, record_id)
    current_status = current.get("status")
    if not can_transition(collection, current_status, new_status):
        raise InvalidTransitionError(collection, current_status, new_status)

    timestamp = now or utc_now()
    fields: dict[str, Any] = {"status": new_status, "updatedAt": timestamp}
    if collection == ORDERS and new_status == "dispatched":
        courier = parse_courier_details((extra or {}).get("courierDetails"))
        if courier is None:
            raise CourierDetailsRequired(
                f"Order {record_id} needs courier company and tracking number to dispatch"
            )
        fields["courierDetails"] = {
            "company": courier.company,
            "trackingNumber": courier.tracking_number,
        }
    if new_status == "cancelled":
        fields["cancellationDate"] = timestamp

    store.update(collection, record_id, fields)
    logger.info("%s/%s: %s -> %s", collection, record_id, current_status, new_status)
    return fields


def bulk_set_status(
    store: Any,
    collection: str,
    record_ids: Iterable[str],
    new_status: str,
    extra: Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Apply `set_status` to each id.

    Records whose current status cannot move to `new_status` are skipped;
    any other per-record error is counted as a failure and the batch carries on.
    """
    requested = list(record_ids)
    updated: list[str] = []
    skipped: list[str] = []
    failed = 0
    for record_id in requested:
        try:
            set_status(store, collection, record_id, new_status, extra, now=now)
        except InvalidTransitionError:
            skipped.append(record_id)
        except InvalidStatusError:
            raise
        except Exception as exc:
            logger.error("%s/%s: status change failed: %s", collection, record_id, exc)
            failed += 1
        else:
            updated.append(record_id)

    return {
        "requested": len(requested),
        "updated": updated,
        "skipped": skipped,
        "failed": failed,
    }
