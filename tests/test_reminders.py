from __future__ import annotations

from datetime import UTC, datetime, time
import unittest

from notifier.adapters.document_store import InMemoryDocumentStore
from notifier.adapters.fake_senders import RecordingSender
from notifier.adapters.payload import parse_appointment
from notifier.application import reminders
from notifier.application.context import Dependencies
from notifier.errors import DocumentStoreError

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def make_appointment(start_time: str, **overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "status": "confirmed",
        "reminderSent": False,
        "patientEmail": "p@example.com",
        "patientName": "Asha",
        "doctorId": "d1",
        "appointmentDate": "2026-03-01",
        "startTime": start_time,
    }
    return base | overrides


class UnreliableDoctorStore(InMemoryDocumentStore):
    def get(self, collection: str, document_id: str) -> dict[str, object] | None:
        if collection == "doctors":
            raise DocumentStoreError("transient read failure")
        return super().get(collection, document_id)


class ReminderSweepTests(unittest.TestCase):
    def test_sends_patient_and_doctor_reminders_in_window(self) -> None:
        store = InMemoryDocumentStore(
            {
                "appointments": {
                    "due": make_appointment("09:30"),
                    "later": make_appointment("11:00"),
                    "pending": make_appointment("09:30", status="pending"),
                    "done": make_appointment("09:30", reminderSent=True),
                },
                "doctors": {"d1": {"email": "doc@example.com"}},
            }
        )
        sender = RecordingSender()
        deps = Dependencies(store=store, send_email=sender, business_email="ops@petzify.com")

        summary = reminders.send_appointment_reminders(deps, now=NOW)

        self.assertEqual(summary["due"], ["due"])
        self.assertEqual(summary["reminded"], ["due"])
        self.assertEqual(
            [m["subject"] for m in sender.sent],
            [
                "Reminder: Your Appointment in 30 Minutes - Petzify",
                "Reminder: Appointment with Asha in 30 Minutes",
            ],
        )
        self.assertTrue(store.get("appointments", "due")["reminderSent"])
        self.assertFalse(store.get("appointments", "later")["reminderSent"])

    def test_failed_patient_reminder_keeps_flag_clear(self) -> None:
        store = InMemoryDocumentStore({"appointments": {"a1": make_appointment("09:30")}})
        sender = RecordingSender(fail_for={"p@example.com"})
        deps = Dependencies(store=store, send_email=sender, business_email="ops@petzify.com")

        summary = reminders.send_appointment_reminders(deps, now=NOW)

        self.assertEqual(summary["reminded"], [])
        self.assertFalse(store.get("appointments", "a1")["reminderSent"])

    def test_failed_doctor_lookup_still_reminds_patient(self) -> None:
        store = UnreliableDoctorStore({"appointments": {"a1": make_appointment("09:30")}})
        sender = RecordingSender()
        deps = Dependencies(store=store, send_email=sender, business_email="ops@petzify.com")

        summary = reminders.send_appointment_reminders(deps, now=NOW)

        self.assertEqual(summary["reminded"], ["a1"])
        self.assertEqual([m["to_email"] for m in sender.sent], ["p@example.com"])
        self.assertTrue(store.get("appointments", "a1")["reminderSent"])

    def test_appointment_start_reads_twelve_hour_times(self) -> None:
        appointment = parse_appointment("a1", make_appointment("2:15 PM"))

        starts_at = reminders.appointment_start(appointment, UTC)

        self.assertEqual(starts_at, datetime(2026, 3, 1, 14, 15, tzinfo=UTC))

    def test_parse_clock(self) -> None:
        self.assertEqual(reminders._parse_clock("12:05am"), time(0, 5))
        self.assertEqual(reminders._parse_clock("17:45"), time(17, 45))
        self.assertIsNone(reminders._parse_clock("noon"))
        self.assertIsNone(reminders._parse_clock("25:00"))


if __name__ == "__main__":
    unittest.main()
