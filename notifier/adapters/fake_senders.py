"""Fake sender adapters for local smoke tests.

Mental model refresher:
- This is outbound adapter code.
- In production, this is where provider API calls live (see real_senders).
- Domain code calls these through injected functions; domain does not know which
  provider implementation is underneath.
"""

from __future__ import annotations

from typing import Any


def send_email_via_console(
    *, to_email: str, subject: str, html: str, cc: str | None = None
) -> dict[str, Any]:
    print("[EMAIL]")
    print(f"to={to_email}")
    if cc:
        print(f"cc={cc}")
    print(f"subject={subject}")
    print(f"html_chars={len(html)}")
    return {"id": "<console>", "message": "Printed"}


class RecordingSender:
    """Keeps every message in `sent`; raises for addresses listed in `fail_for`."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_for = set(fail_for or ())

    def __call__(
        self, *, to_email: str, subject: str, html: str, cc: str | None = None
    ) -> dict[str, Any]:
        if to_email in self.fail_for:
            raise RuntimeError(f"mail provider rejected {to_email}")
        message = {"to_email": to_email, "subject": subject, "html": html, "cc": cc}
        self.sent.append(message)
        return {"id": f"<recorded-{len(self.sent)}>", "message": "Queued"}

    def to(self, address: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message["to_email"] == address]
