"""Collaborators shared by the trigger handlers, the driver and the sweep."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import Any, Callable

from ..config import (
    DEFAULT_SITE_URL,
    appointment_timezone,
    load_firestore_config,
    load_mail_config,
    public_site_url,
)
from ..types import SendEmailFn


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class Dependencies:
    """Everything a handler needs besides the event itself.

    `store` is any object with the document store operations
    (`InMemoryDocumentStore` or `FirestoreStore`).
    """

    store: Any
    send_email: SendEmailFn
    business_email: str
    site_url: str = DEFAULT_SITE_URL
    clock: Callable[[], datetime] = field(default=utc_now)
    local_timezone: tzinfo = UTC

    def now(self) -> datetime:
        return self.clock()

    def review_url(self, booking_id: str) -> str:
        return f"{self.site_url.rstrip('/')}/bookings/rate/{booking_id}"


def load_dependencies(store: Any | None = None) -> Dependencies:
    """Production wiring: Mailgun sender, Firestore store, environment settings.

    Raises `ConfigurationError` before anything is sent when a required
    value is missing.
    """
    from ..adapters.document_store import FirestoreStore
    from ..adapters.real_senders import make_mailgun_sender

    mail_config = load_mail_config()
    if store is None:
        store = FirestoreStore.from_config(load_firestore_config())
    return Dependencies(
        store=store,
        send_email=make_mailgun_sender(mail_config),
        business_email=mail_config.business_email,
        site_url=public_site_url(),
        local_timezone=appointment_timezone(),
    )
