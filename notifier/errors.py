"""Exception types raised across the notifier package."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A required environment value is missing or malformed."""


class MailTransportError(RuntimeError):
    """The mail provider rejected or failed to accept a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocumentStoreError(RuntimeError):
    """A document store request failed."""


class RecordNotFoundError(LookupError):
    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class InvalidStatusError(ValueError):
    pass


class InvalidTransitionError(ValueError):
    def __init__(self, collection: str, current: str | None, target: str) -> None:
        super().__init__(f"{collection}: cannot move from {current!r} to {target!r}")
        self.collection = collection
        self.current = current
        self.target = target


class CourierDetailsRequired(ValueError):
    """Dispatching an order needs courier company and tracking number first."""
