"""Adapter layer: payload mapping, document stores, senders and transports."""

from .consumer_handler import handle_batch, handle_message
from .document_store import FirestoreStore, InMemoryDocumentStore
from .fake_senders import RecordingSender, send_email_via_console
from .kafka_runtime import publish_document_change_event, run_trigger_worker_forever
from .payload import parse_change_event
from .real_senders import (
    make_mailgun_sender,
    make_mailgun_template_sender,
    send_email_via_mailgun,
    send_template_email_via_mailgun,
)

__all__ = [
    "FirestoreStore",
    "InMemoryDocumentStore",
    "RecordingSender",
    "handle_batch",
    "handle_message",
    "make_mailgun_sender",
    "make_mailgun_template_sender",
    "parse_change_event",
    "publish_document_change_event",
    "run_trigger_worker_forever",
    "send_email_via_console",
    "send_email_via_mailgun",
    "send_template_email_via_mailgun",
]
