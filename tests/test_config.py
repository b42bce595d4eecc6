from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from notifier import config
from notifier.errors import ConfigurationError

MAIL_ENV = {
    "MAILGUN_API_KEY": "key-123",
    "MAILGUN_DOMAIN": "mg.petzify.com",
    "MAILGUN_FROM_EMAIL": "Petzify <no-reply@mg.petzify.com>",
    "BUSINESS_EMAIL": "ops@petzify.com",
}


class ConfigTests(unittest.TestCase):
    @mock.patch.dict(
        os.environ, MAIL_ENV | {"MAILGUN_API_BASE_URL": "https://api.eu.mailgun.net/"}, clear=True
    )
    def test_load_mail_config(self) -> None:
        mail = config.load_mail_config()

        self.assertEqual(mail.domain, "mg.petzify.com")
        self.assertEqual(mail.business_email, "ops@petzify.com")
        self.assertEqual(mail.base_url, "https://api.eu.mailgun.net")
        self.assertEqual(mail.timeout_seconds, 10.0)

    def test_load_mail_config_requires_business_email(self) -> None:
        env = {key: value for key, value in MAIL_ENV.items() if key != "BUSINESS_EMAIL"}
        with mock.patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError) as ctx:
                config.load_mail_config()
        self.assertIn("BUSINESS_EMAIL", str(ctx.exception))

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_firestore_config_requires_project(self) -> None:
        with self.assertRaises(ConfigurationError):
            config.load_firestore_config()

    @mock.patch.dict(
        os.environ, {"FIRESTORE_PROJECT_ID": "petzify", "FIRESTORE_DATABASE": "staging"}, clear=True
    )
    def test_firestore_config(self) -> None:
        firestore = config.load_firestore_config()
        self.assertEqual(firestore.project_id, "petzify")
        self.assertEqual(firestore.database, "staging")

    @mock.patch.dict(
        os.environ,
        {"CORS_ALLOWED_ORIGINS": "https://petzify.com, https://admin.petzify.com"},
        clear=True,
    )
    def test_cors_allowed_origins(self) -> None:
        self.assertEqual(
            config.cors_allowed_origins(), ["https://petzify.com", "https://admin.petzify.com"]
        )

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        self.assertEqual(config.public_site_url(), "https://petzify.com")
        self.assertEqual(config.cors_allowed_origins(), ["*"])
        self.assertEqual(str(config.appointment_timezone()), "Asia/Kolkata")

    @mock.patch.dict(os.environ, {"KAFKA_DLQ_ENABLED": "maybe"}, clear=True)
    def test_env_bool_rejects_garbage(self) -> None:
        with self.assertRaises(ConfigurationError):
            config.env_bool("KAFKA_DLQ_ENABLED", True)

    def test_load_env_file_does_not_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".env"
            path.write_text("# comment\nMAILGUN_DOMAIN='from-file'\nPUBLIC_SITE_URL=https://x\n")
            with mock.patch.dict(os.environ, {"MAILGUN_DOMAIN": "from-env"}, clear=True):
                config.load_env_file(path)
                self.assertEqual(os.environ["MAILGUN_DOMAIN"], "from-env")
                self.assertEqual(os.environ["PUBLIC_SITE_URL"], "https://x")


if __name__ == "__main__":
    unittest.main()
