"""Petzify order, booking and appointment email notifications."""

from .channels import (
    Dependencies,
    FirestoreStore,
    InMemoryDocumentStore,
    RecordingSender,
    bind_triggers,
    bulk_set_status,
    handle_batch,
    handle_message,
    make_mailgun_sender,
    parse_change_event,
    process_document_event,
    publish_document_change_event,
    run_trigger_worker_forever,
    send_appointment_reminders,
    send_email_via_console,
    send_email_via_mailgun,
    send_message,
    set_status,
)

__all__ = [
    "Dependencies",
    "FirestoreStore",
    "InMemoryDocumentStore",
    "RecordingSender",
    "bind_triggers",
    "bulk_set_status",
    "handle_batch",
    "handle_message",
    "make_mailgun_sender",
    "parse_change_event",
    "process_document_event",
    "publish_document_change_event",
    "run_trigger_worker_forever",
    "send_appointment_reminders",
    "send_email_via_console",
    "send_email_via_mailgun",
    "send_message",
    "set_status",
]
