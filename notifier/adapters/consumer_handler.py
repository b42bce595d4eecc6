"""Consumer-handler adapter functions (Kafka-like flow without Kafka).

Mental model refresher:
- This is the controller-like entrypoint for document-change processing.
- Real Kafka code (kafka_runtime) calls this after polling a record.
- Flow:
  record -> parse adapter -> trigger dispatch -> commit/reject decision
- This module owns transport lifecycle behavior (parse errors, commit callbacks),
  not notification rules.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from ..application.context import Dependencies
from ..application.process import process_document_event
from ..types import DocumentDict
from .payload import parse_change_event

Record = Mapping[str, Any]
CommitFn = Callable[[Record], None]
RejectFn = Callable[[Record, str], None]


def handle_message(
    record: Record,
    *,
    deps: Dependencies,
    commit: CommitFn,
    reject: RejectFn | None = None,
) -> dict[str, Any]:
    """Handle one incoming record and decide commit/reject.

    Commit policy:
    - Unparsable records are rejected (dead-lettered by the runtime).
    - Every parsed record is committed after dispatch, whatever the trigger
      outcome. Duplicate sends are prevented by guard fields, not redelivery.
    """
    try:
        payload = _get_record_payload(record)
        event = parse_change_event(payload)
    except Exception as exc:
        error = f"parse_failed: {exc}"
        if reject is not None:
            reject(record, error)
        return {
            "status": "parse_failed",
            "record_meta": _record_meta(record),
            "event": None,
            "processing": None,
            "should_commit": False,
            "error": error,
        }

    processing = process_document_event(event, deps)
    commit(record)

    trigger_result = processing["trigger_result"]
    error = None
    if not processing["handled"]:
        status = "ignored_and_committed"
    else:
        status = "processed_and_committed"
        if trigger_result["status"] == "failed":
            error = trigger_result["reason"]

    return {
        "status": status,
        "record_meta": _record_meta(record),
        "event": event,
        "processing": processing,
        "should_commit": True,
        "error": error,
    }


def handle_batch(
    records: Sequence[Record],
    *,
    deps: Dependencies,
    commit: CommitFn,
    reject: RejectFn | None = None,
) -> list[dict[str, Any]]:
    """Handle a batch of records sequentially using `handle_message`."""
    return [
        handle_message(record, deps=deps, commit=commit, reject=reject) for record in records
    ]


def _get_record_payload(record: Record) -> DocumentDict:
    payload = record.get("value")
    if not isinstance(payload, dict):
        raise ValueError("record.value must be a dict payload")
    return payload


def _record_meta(record: Record) -> dict[str, Any]:
    return {
        "topic": record.get("topic"),
        "partition": record.get("partition"),
        "offset": record.get("offset"),
    }
