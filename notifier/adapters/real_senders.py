"""Real provider adapters for production-like sending.

Mental model refresher:
- This module is an outbound adapter.
- It integrates with Mailgun using a `MailConfig` built once at startup
  (see `notifier.config.load_mail_config`) and passed in explicitly.
- Domain/application code only sees simple callable sender functions, made
  with `make_mailgun_sender` / `make_mailgun_template_sender`.
"""

from __future__ import annotations

import base64
from functools import partial
import json
from typing import Any, Mapping
import urllib.error
import urllib.parse
import urllib.request

from ..config import MailConfig
from ..errors import MailTransportError
from ..types import SendEmailFn, SendTemplateEmailFn


def send_email_via_mailgun(
    config: MailConfig,
    *,
    to_email: str,
    subject: str,
    html: str,
    cc: str | None = None,
) -> dict[str, Any]:
    """Send one HTML email via the Mailgun REST API; returns Mailgun's response."""
    fields = {"from": config.from_email, "to": to_email, "subject": subject, "html": html}
    if cc:
        fields["cc"] = cc
    return _post_message(config, fields)


def send_template_email_via_mailgun(
    config: MailConfig,
    *,
    to_email: str,
    subject: str,
    template: str,
    variables: Mapping[str, Any] | None = None,
    cc: str | None = None,
) -> dict[str, Any]:
    """Send a message rendered by a Mailgun-stored template."""
    fields = {
        "from": config.from_email,
        "to": to_email,
        "subject": subject,
        "template": template,
        "h:X-Mailgun-Variables": json.dumps(dict(variables or {}), separators=(",", ":")),
    }
    if cc:
        fields["cc"] = cc
    return _post_message(config, fields)


def make_mailgun_sender(config: MailConfig) -> SendEmailFn:
    return partial(send_email_via_mailgun, config)


def make_mailgun_template_sender(config: MailConfig) -> SendTemplateEmailFn:
    return partial(send_template_email_via_mailgun, config)


def _post_message(config: MailConfig, fields: Mapping[str, str]) -> dict[str, Any]:
    encoded_domain = urllib.parse.quote(config.domain, safe="")
    endpoint = f"{config.base_url}/v3/{encoded_domain}/messages"
    payload = urllib.parse.urlencode(fields).encode("utf-8")

    request = urllib.request.Request(endpoint, data=payload, method="POST")
    request.add_header("Authorization", _basic_auth_header("api", config.api_key))
    request.add_header("Content-Type", "application/x-www-form-urlencoded")

    try:
        with urllib.request.urlopen(request, timeout=config.timeout_seconds) as response:
            status = int(response.getcode())
            if status < 200 or status >= 300:
                raise MailTransportError(
                    f"Mailgun email send failed with status {status}", status_code=status
                )
            body = response.read()
    except urllib.error.HTTPError as exc:
        details = exc.read().decode("utf-8", errors="replace")
        raise MailTransportError(
            f"Mailgun email send failed HTTP {exc.code}: {details[:300]}",
            status_code=exc.code,
        ) from exc
    except urllib.error.URLError as exc:
        raise MailTransportError(f"Mailgun email send failed: {exc.reason}") from exc

    return _parse_response(body)


def _parse_response(body: bytes) -> dict[str, Any]:
    text = body.decode("utf-8", errors="replace") if body else ""
    try:
        parsed = json.loads(text) if text else {}
    except ValueError:
        return {"message": text}
    return parsed if isinstance(parsed, dict) else {"message": parsed}


def _basic_auth_header(username: str, password: str) -> str:
    token = f"{username}:{password}".encode("utf-8")
    encoded = base64.b64encode(token).decode("ascii")
    return f"Basic {encoded}"
