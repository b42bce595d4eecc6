"""Compatibility facade for the notifier's public functions.

Module layout by abstraction layer:
- adapters: payload mapping, document stores, senders and transports
- domain: records, status rules, templates and message content
- application: trigger handlers, status driver and reminder sweep
"""

from .adapters.consumer_handler import handle_batch, handle_message
from .adapters.document_store import FirestoreStore, InMemoryDocumentStore
from .adapters.fake_senders import RecordingSender, send_email_via_console
from .adapters.kafka_runtime import publish_document_change_event, run_trigger_worker_forever
from .adapters.payload import parse_change_event
from .adapters.real_senders import make_mailgun_sender, send_email_via_mailgun
from .application.context import Dependencies
from .application.process import bind_triggers, process_document_event
from .application.reminders import send_appointment_reminders
from .application.status_driver import bulk_set_status, set_status
from .domain.email import send_message

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
