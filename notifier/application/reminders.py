"""Reminder sweep for appointments starting in about half an hour.

Run every few minutes (see `scripts/run_reminder_sweep.py`). Each sweep
looks at confirmed appointments whose reminder has not gone out and emails
the patient and the doctor when the start time is 25-35 minutes away.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
from typing import Any, Mapping

from ..adapters.payload import parse_appointment
from ..domain import email
from ..domain.email import send_message
from ..domain.records import Appointment
from ..domain.transitions import APPOINTMENTS
from .context import Dependencies
from .triggers import doctor_email

logger = logging.getLogger(__name__)

REMINDER_WINDOW = (timedelta(minutes=25), timedelta(minutes=35))


def send_appointment_reminders(deps: Dependencies, now: datetime | None = None) -> dict[str, Any]:
    now = now or deps.now()
    candidates = deps.store.query(APPOINTMENTS, {"status": "confirmed", "reminderSent": False})
    due = []
    for appointment_id, data in candidates:
        appointment = parse_appointment(appointment_id, data)
        starts_at = appointment_start(appointment, deps.local_timezone)
        if starts_at is None:
            logger.warning("Appointment %s has no usable start time", appointment_id)
            continue
        if REMINDER_WINDOW[0] <= starts_at - now <= REMINDER_WINDOW[1]:
            due.append(appointment)

    logger.info("%d of %d confirmed appointments due for a reminder", len(due), len(candidates))
    reminded: list[str] = []
    sends = []
    for appointment in due:
        patient = send_message(email.appointment_reminder_message(appointment), deps.send_email)
        sends.append(patient)

        doctor_address = doctor_email(deps, appointment.doctor_id)
        if doctor_address:
            sends.append(
                send_message(
                    email.appointment_reminder_message(appointment, doctor_email=doctor_address),
                    deps.send_email,
                )
            )

        if patient["success"]:
            deps.store.update(APPOINTMENTS, appointment.id, {"reminderSent": True})
            reminded.append(appointment.id)

    return {
        "checked": len(candidates),
        "due": [appointment.id for appointment in due],
        "reminded": reminded,
        "sends": sends,
    }


def appointment_start(appointment: Appointment, local_timezone: Any) -> datetime | None:
    """Combine `appointmentDate` and `startTime` into an aware datetime."""
    day = _local_date(appointment.appointment_date, local_timezone)
    start = _parse_clock(appointment.start_time)
    if day is None or start is None:
        return None
    return datetime.combine(day, start, tzinfo=local_timezone)


def _local_date(value: Any, local_timezone: Any) -> date | None:
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return None
        value = datetime.fromtimestamp(float(seconds), tz=local_timezone)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_timezone)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _parse_clock(value: str | None) -> time | None:
    """`"14:30"`, `"2:30 PM"` or `"02:30pm"` to a time."""
    if not value:
        return None
    text = value.strip().upper().replace(" ", "")
    meridiem = None
    if text.endswith(("AM", "PM")):
        meridiem, text = text[-2:], text[:-2]
    try:
        hour_text, minute_text = text.split(":")[:2]
        hour, minute = int(hour_text), int(minute_text)
    except ValueError:
        return None
    if meridiem == "PM" and hour < 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    return time(hour, minute)

