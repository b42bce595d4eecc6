"""Email message rules.

Mental model refresher:
- Domain modules hold notification/business rules.
- They decide what should be sent for a record:
  - who is the recipient?
  - what subject line matches this status?
  - which template renders the body?
- They do not read documents or talk to the mail provider directly; sending
  goes through an injected `send_email` callable.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from ..types import EmailMessage, SendEmailFn, SendResult
from . import templates
from .records import Appointment, Booking, Order, Prescription

logger = logging.getLogger(__name__)

ORDER_STATUS_SUBJECTS = {
    "confirmed": "Order Confirmed",
    "dispatched": "Order Dispatched",
    "delivered": "Order Delivered",
    "cancelled": "Order Cancelled",
}

APPOINTMENT_STATUS_SUBJECTS = {
    "confirmed": "Appointment Confirmed - Petzify",
    "completed": "Appointment Completed - Petzify",
    "cancelled": "Appointment Cancelled - Petzify",
}


def order_created_message(
    order: Order, resolved_items: Sequence[Mapping[str, Any]]
) -> EmailMessage:
    return _message(
        "order_created",
        to=order.contact_email,
        subject=f"Petzify Order Confirmation - #{order.id}",
        html=templates.render_order_created(order, resolved_items),
    )


def order_business_message(order: Order, business_email: str) -> EmailMessage:
    return _message(
        "order_business_notice",
        to=business_email,
        subject=f"New Petzify Order Received - #{order.id}",
        html=templates.render_order_business_notice(order),
    )


def order_status_message(order: Order) -> EmailMessage | None:
    """Status email for the order's current status, or None if it has none."""
    label = ORDER_STATUS_SUBJECTS.get(order.status or "")
    if label is None:
        return None
    return _message(
        f"order_{order.status}",
        to=order.contact_email,
        subject=f"{label} - #{templates.short_id(order.id)}",
        html=templates.render_order_status(order),
    )


def appointment_booked_message(appointment: Appointment) -> EmailMessage:
    return _message(
        "appointment_booked",
        to=appointment.contact_email,
        subject="Appointment Booked - Petzify",
        html=templates.render_appointment_booked(appointment),
    )


def appointment_doctor_message(appointment: Appointment, doctor_email: str) -> EmailMessage:
    return _message(
        "appointment_doctor_notice",
        to=doctor_email,
        subject=f"New Appointment Request - {appointment.patient_name or 'Patient'}",
        html=templates.render_appointment_doctor_notice(appointment),
    )


def appointment_status_message(appointment: Appointment) -> EmailMessage | None:
    status = appointment.status or ""
    subject = APPOINTMENT_STATUS_SUBJECTS.get(status)
    if subject is None:
        return None
    renderers = {
        "confirmed": templates.render_appointment_confirmed,
        "completed": templates.render_appointment_completed,
        "cancelled": templates.render_appointment_cancelled,
    }
    return _message(
        f"appointment_{status}",
        to=appointment.contact_email,
        subject=subject,
        html=renderers[status](appointment),
    )


def appointment_reminder_message(
    appointment: Appointment, *, doctor_email: str | None = None
) -> EmailMessage:
    if doctor_email:
        return _message(
            "appointment_reminder_doctor",
            to=doctor_email,
            subject=(
                f"Reminder: Appointment with {appointment.patient_name or 'Patient'} "
                "in 30 Minutes"
            ),
            html=templates.render_appointment_reminder(appointment, for_doctor=True),
        )
    return _message(
        "appointment_reminder",
        to=appointment.contact_email,
        subject="Reminder: Your Appointment in 30 Minutes - Petzify",
        html=templates.render_appointment_reminder(appointment),
    )


def prescription_message(appointment: Appointment, prescription: Prescription) -> EmailMessage:
    return _message(
        "prescription_available",
        to=appointment.contact_email,
        subject="Prescription Available - Petzify",
        html=templates.render_prescription_available(appointment, prescription),
    )


def booking_created_message(booking: Booking) -> EmailMessage:
    if booking.kind == "boarding":
        subject = "Pet Boarding Request Received - Petzify"
    else:
        subject = f"Grooming Booking Confirmation - #{templates.short_id(booking.id)}"
    return _message(
        f"{booking.kind}_booking_created",
        to=booking.contact_email,
        subject=subject,
        html=templates.render_booking_created(booking),
    )


def booking_center_message(booking: Booking, to_email: str) -> EmailMessage:
    if booking.kind == "boarding":
        subject = f"New Pet Boarding Request - {booking.pet_name or 'Pet'}"
    else:
        subject = f"New Grooming Booking - #{templates.short_id(booking.id)}"
    return _message(
        f"{booking.kind}_booking_center_notice",
        to=to_email,
        subject=subject,
        html=templates.render_booking_center_notice(booking),
    )


def booking_status_message(
    booking: Booking,
    previous_status: str | None,
    review_url: str | None = None,
) -> EmailMessage:
    return _message(
        f"{booking.kind}_booking_{booking.status or 'updated'}",
        to=booking.contact_email,
        subject=f"{booking.label} Booking Update - #{templates.short_id(booking.id)}",
        html=templates.render_booking_status(booking, previous_status, review_url),
    )


def send_message(message: EmailMessage, send_email: SendEmailFn) -> SendResult:
    """Attempt one send and return a plain result dictionary.

    Transport failures are logged with the recipient and returned as
    `success=False`; they never propagate to sibling sends.
    """
    notification = message.get("notification")
    to_email = message.get("to")
    if not to_email:
        logger.info("Skipping %s: no recipient address", notification)
        return {
            "notification": notification,
            "to": None,
            "success": False,
            "error": "missing recipient email",
        }

    try:
        send_email(
            to_email=to_email,
            subject=message["subject"],
            html=message["html"],
            cc=message.get("cc"),
        )
    except Exception as exc:
        logger.error("Email %s to %s failed: %s", notification, to_email, exc)
        return {"notification": notification, "to": to_email, "success": False, "error": str(exc)}

    logger.info("Email %s sent to %s", notification, to_email)
    return {"notification": notification, "to": to_email, "success": True, "error": None}


def _message(notification: str, *, to: str | None, subject: str, html: str) -> EmailMessage:
    return {"notification": notification, "to": to, "subject": subject, "html": html}
