"""Environment-variable configuration.

Every value is read from the process environment. Required values raise
`ConfigurationError` on first use, before any provider call is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError

DEFAULT_SITE_URL = "https://petzify.com"


@dataclass(frozen=True)
class MailConfig:
    api_key: str
    domain: str
    from_email: str
    business_email: str
    base_url: str = "https://api.mailgun.net"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class FirestoreConfig:
    project_id: str
    database: str = "(default)"


def load_mail_config() -> MailConfig:
    """Read Mailgun credentials and the operator recipient address."""
    return MailConfig(
        api_key=_required_env("MAILGUN_API_KEY"),
        domain=_required_env("MAILGUN_DOMAIN"),
        from_email=_required_env("MAILGUN_FROM_EMAIL"),
        business_email=_required_env("BUSINESS_EMAIL"),
        base_url=os.getenv("MAILGUN_API_BASE_URL", "https://api.mailgun.net").rstrip("/"),
        timeout_seconds=_env_float("MAILGUN_TIMEOUT_SECONDS", 10.0),
    )


def load_firestore_config() -> FirestoreConfig:
    """Project and database; credentials come from Application Default Credentials."""
    return FirestoreConfig(
        project_id=_required_env("FIRESTORE_PROJECT_ID"),
        database=os.getenv("FIRESTORE_DATABASE", "(default)"),
    )


def public_site_url() -> str:
    return os.getenv("PUBLIC_SITE_URL", DEFAULT_SITE_URL).rstrip("/")


def appointment_timezone() -> tzinfo:
    """Zone that appointment dates and start times are written in."""
    name = os.getenv("APPOINTMENT_TIMEZONE", "Asia/Kolkata")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown APPOINTMENT_TIMEZONE: {name!r}") from exc


def cors_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


def load_env_file(path: Path) -> None:
    """Populate os.environ from a dotenv-style file without overriding."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid number for {name}: {raw!r}") from exc


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {raw!r}")
