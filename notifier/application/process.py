"""Application orchestration for document-change events.

Mental model refresher:
- Application layer coordinates use-case flow across domain modules.
- In this project it:
  1) picks the trigger handler for (collection, change kind)
  2) runs it with the shared `Dependencies`
  3) returns one result the transport layer can log
- `bind_triggers` wires the same dispatch to an in-memory document store so
  local runs see triggers fire on every write.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable

from ..domain.transitions import (
    APPOINTMENTS,
    BOARDING_BOOKINGS,
    GROOMING_BOOKINGS,
    ORDERS,
    PRESCRIPTIONS,
)
from ..types import ChangeEvent, DocumentDict, TriggerResult
from . import triggers
from .context import Dependencies

_CREATED_HANDLERS: dict[str, Callable[..., TriggerResult]] = {
    ORDERS: triggers.on_order_created,
    APPOINTMENTS: triggers.on_appointment_created,
    PRESCRIPTIONS: triggers.on_prescription_created,
    GROOMING_BOOKINGS: partial(triggers.on_booking_created, collection=GROOMING_BOOKINGS),
    BOARDING_BOOKINGS: partial(triggers.on_booking_created, collection=BOARDING_BOOKINGS),
}

_UPDATED_HANDLERS: dict[str, Callable[..., TriggerResult]] = {
    ORDERS: triggers.on_order_updated,
    APPOINTMENTS: triggers.on_appointment_updated,
    GROOMING_BOOKINGS: partial(triggers.on_booking_updated, collection=GROOMING_BOOKINGS),
    BOARDING_BOOKINGS: partial(triggers.on_booking_updated, collection=BOARDING_BOOKINGS),
}


def process_document_event(event: ChangeEvent, deps: Dependencies) -> dict[str, Any]:
    """Execute the trigger use-case for one normalized change event."""
    collection = event["collection"]
    document_id = event["document_id"]
    kind = event["kind"]

    if kind == "created":
        handler = _CREATED_HANDLERS.get(collection)
        result = handler(document_id, event["after"], deps) if handler else None
    elif kind == "updated":
        handler = _UPDATED_HANDLERS.get(collection)
        result = (
            handler(document_id, event["before"], event["after"], deps) if handler else None
        )
    else:
        result = None

    return {
        "event_id": event.get("event_id"),
        "collection": collection,
        "document_id": document_id,
        "kind": kind,
        "handled": result is not None,
        "trigger_result": result,
    }


def bind_triggers(
    store: Any,
    deps: Dependencies,
    on_result: Callable[[dict[str, Any]], None] | None = None,
) -> None:
    """Run the trigger layer after every write to an in-memory store."""

    def listener(
        collection: str,
        document_id: str,
        before: DocumentDict | None,
        after: DocumentDict | None,
    ) -> None:
        if after is None:
            return
        event: ChangeEvent = {
            "event_id": None,
            "collection": collection,
            "document_id": document_id,
            "kind": "created" if before is None else "updated",
            "before": before,
            "after": after,
        }
        processing = process_document_event(event, deps)
        if on_result is not None and processing["handled"]:
            on_result(processing)

    store.add_listener(listener)
