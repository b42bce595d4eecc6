"""Notification trigger handlers.

Mental model refresher:
- One handler per (collection, change kind). The document store calls these
  (through `process.process_document_event`) after a document is created or
  updated.
- Handlers decide whether a notification is due, claim the matching guard
  field, send through the injected sender, and record the outcome on the
  document.
- A handler never raises. Every outcome, including unexpected errors, is
  returned as a trigger result dictionary:
  `{trigger, document_id, status, reason, sends}` with
  `status` in {"notified", "skipped", "failed"}.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from functools import wraps
import logging
from typing import Any, Callable, Mapping

from ..adapters.payload import parse_appointment, parse_booking, parse_order, parse_prescription
from ..domain import email
from ..domain.email import send_message
from ..domain.records import Booking, ReviewRequest
from ..domain.transitions import (
    APPOINTMENTS,
    BOARDING_CENTERS,
    DOCTORS,
    GROOMING_BOOKINGS,
    GROOMING_CENTERS,
    ORDERS,
    PRESCRIPTIONS,
    PRODUCTS,
    REVIEW_REQUESTS,
    SCHEDULED_EMAILS,
)
from ..errors import DocumentStoreError
from ..types import Document, EmailMessage, SendResult, TriggerResult
from .context import Dependencies

logger = logging.getLogger(__name__)

ORDER_NOTIFIED_STATUSES = ("confirmed", "dispatched", "delivered", "cancelled")
BOOKING_NOTIFIED_STATUSES = ("confirmed", "arrived", "completed", "cancelled")

APPOINTMENT_CREATED_GUARD = "appointmentCreatedEmailSent"
APPOINTMENT_STATUS_GUARDS = {
    "confirmed": "confirmationEmailSent",
    "completed": "completionEmailSent",
    "cancelled": "cancellationEmailSent",
}
PRESCRIPTION_GUARD = "notificationSent"
BOOKING_CREATED_GUARD = "emailSent"

RATING_EMAIL_DELAY = timedelta(hours=24)


def status_guard(status: str) -> str:
    """Guard field for the status email of an order or booking."""
    return f"{status}EmailSent"


def never_raises(trigger: str) -> Callable:
    """Turn any exception escaping a handler into a `failed` trigger result."""

    def decorator(handler: Callable[..., TriggerResult]) -> Callable[..., TriggerResult]:
        @wraps(handler)
        def wrapper(document_id: str, *args: Any, **kwargs: Any) -> TriggerResult:
            try:
                return handler(document_id, *args, **kwargs)
            except Exception as exc:
                logger.exception("Trigger %s failed for %s", trigger, document_id)
                return _result(trigger, document_id, "failed", f"unexpected error: {exc}")

        return wrapper

    return decorator


@never_raises("order_created")
def on_order_created(order_id: str, data: Document, deps: Dependencies) -> TriggerResult:
    """Customer confirmation plus operator notice for a new order."""
    trigger = "order_created"
    order = parse_order(order_id, data)
    if not order.contact_email:
        logger.info("Order %s has no contact email; skipping confirmation", order_id)
        return _result(trigger, order_id, "skipped", "missing contact email")
    if not isinstance(data.get("items"), list):
        logger.info("Order %s has no items list; skipping confirmation", order_id)
        return _result(trigger, order_id, "skipped", "missing items")

    resolved_items = _resolve_order_items(order_id, order.items, deps)
    sends = [
        send_message(email.order_created_message(order, resolved_items), deps.send_email),
        send_message(
            email.order_business_message(order, deps.business_email), deps.send_email
        ),
    ]
    return _outcome(trigger, order_id, sends)


@never_raises("order_updated")
def on_order_updated(
    order_id: str, before: Document, after: Document, deps: Dependencies
) -> TriggerResult:
    trigger = "order_updated"
    previous_status = before.get("status")
    status = after.get("status")
    if previous_status == status:
        return _result(trigger, order_id, "skipped", "status unchanged")

    order = parse_order(order_id, after)
    if not order.contact_email:
        logger.info("Order %s has no contact email; skipping %s email", order_id, status)
        return _result(trigger, order_id, "skipped", "missing contact email")
    message = email.order_status_message(order)
    if message is None or order.status not in ORDER_NOTIFIED_STATUSES:
        logger.info("Order %s moved to %r; no email for that status", order_id, status)
        return _result(trigger, order_id, "skipped", f"no email for status {status!r}")

    sent = _send_once(deps, ORDERS, order_id, status_guard(order.status), message)
    if sent is None:
        return _result(trigger, order_id, "skipped", "already sent")
    return _outcome(trigger, order_id, [sent])


@never_raises("appointment_created")
def on_appointment_created(
    appointment_id: str, data: Document, deps: Dependencies
) -> TriggerResult:
    trigger = "appointment_created"
    appointment = parse_appointment(appointment_id, data)
    if not appointment.contact_email:
        logger.info("Appointment %s has no patient email; skipping", appointment_id)
        return _result(trigger, appointment_id, "skipped", "missing contact email")

    deps.store.update(APPOINTMENTS, appointment_id, {"reminderSent": False})

    sent = _send_once(
        deps,
        APPOINTMENTS,
        appointment_id,
        APPOINTMENT_CREATED_GUARD,
        email.appointment_booked_message(appointment),
    )
    if sent is None:
        return _result(trigger, appointment_id, "skipped", "already sent")

    sends = [sent]
    doctor_address = doctor_email(deps, appointment.doctor_id)
    if doctor_address:
        sends.append(
            send_message(
                email.appointment_doctor_message(appointment, doctor_address), deps.send_email
            )
        )
    return _outcome(trigger, appointment_id, sends)


@never_raises("appointment_updated")
def on_appointment_updated(
    appointment_id: str, before: Document, after: Document, deps: Dependencies
) -> TriggerResult:
    trigger = "appointment_updated"
    appointment = parse_appointment(appointment_id, after)

    rescheduled = before.get("startTime") != after.get("startTime") or before.get(
        "appointmentDate"
    ) != after.get("appointmentDate")
    if rescheduled and after.get("reminderSent"):
        deps.store.update(APPOINTMENTS, appointment_id, {"reminderSent": False})
        logger.info("Appointment %s was rescheduled; reminder flag reset", appointment_id)

    previous_status = before.get("status")
    sends: list[SendResult] = []
    already_sent = False
    for status, guard in APPOINTMENT_STATUS_GUARDS.items():
        if previous_status == status or appointment.status != status:
            continue
        if not appointment.contact_email:
            logger.info("Appointment %s has no patient email; skipping", appointment_id)
            return _result(trigger, appointment_id, "skipped", "missing contact email")
        message = email.appointment_status_message(appointment)
        if message is None:
            continue
        sent = _send_once(deps, APPOINTMENTS, appointment_id, guard, message)
        if sent is None:
            already_sent = True
        else:
            sends.append(sent)

    if not sends:
        reason = "already sent" if already_sent else "no status email due"
        return _result(trigger, appointment_id, "skipped", reason)
    return _outcome(trigger, appointment_id, sends)


@never_raises("prescription_created")
def on_prescription_created(
    prescription_id: str, data: Document, deps: Dependencies
) -> TriggerResult:
    trigger = "prescription_created"
    prescription = parse_prescription(prescription_id, data)
    if not prescription.appointment_id:
        logger.info("Prescription %s has no appointment id; skipping", prescription_id)
        return _result(trigger, prescription_id, "skipped", "missing appointment id")

    appointment_data = deps.store.get(APPOINTMENTS, prescription.appointment_id)
    if appointment_data is None:
        logger.warning(
            "Appointment %s for prescription %s not found",
            prescription.appointment_id,
            prescription_id,
        )
        return _result(trigger, prescription_id, "skipped", "appointment not found")

    appointment = parse_appointment(prescription.appointment_id, appointment_data)
    if not appointment.contact_email:
        logger.info("Appointment %s has no patient email; skipping", appointment.id)
        return _result(trigger, prescription_id, "skipped", "missing contact email")

    sent = _send_once(
        deps,
        PRESCRIPTIONS,
        prescription_id,
        PRESCRIPTION_GUARD,
        email.prescription_message(appointment, prescription),
    )
    if sent is None:
        return _result(trigger, prescription_id, "skipped", "already sent")
    return _outcome(trigger, prescription_id, [sent])


@never_raises("booking_created")
def on_booking_created(
    booking_id: str,
    data: Document,
    deps: Dependencies,
    *,
    collection: str = GROOMING_BOOKINGS,
) -> TriggerResult:
    """Customer, center and operator emails for a new grooming/boarding booking.

    The three sends are independent; the `emailSent` guard is released only
    when none of them went out.
    """
    trigger = "booking_created"
    booking = parse_booking(collection, booking_id, data)
    if not deps.store.claim_guard(collection, booking_id, BOOKING_CREATED_GUARD):
        return _result(trigger, booking_id, "skipped", "already sent")

    sends: list[SendResult] = []
    if booking.contact_email:
        sends.append(send_message(email.booking_created_message(booking), deps.send_email))
    else:
        logger.info("Booking %s has no contact email; customer email skipped", booking_id)

    center_email = booking.center_email or _center_email(deps, booking)
    if center_email:
        sends.append(
            send_message(email.booking_center_message(booking, center_email), deps.send_email)
        )

    business_copy = email.booking_center_message(booking, deps.business_email)
    business_copy["notification"] = f"{booking.kind}_booking_business_notice"
    sends.append(send_message(business_copy, deps.send_email))

    if any(item["success"] for item in sends):
        deps.store.update(collection, booking_id, {f"{BOOKING_CREATED_GUARD}At": deps.now()})
    else:
        deps.store.release_guard(collection, booking_id, BOOKING_CREATED_GUARD)
    return _outcome(trigger, booking_id, sends)


@never_raises("booking_updated")
def on_booking_updated(
    booking_id: str,
    before: Document,
    after: Document,
    deps: Dependencies,
    *,
    collection: str = GROOMING_BOOKINGS,
) -> TriggerResult:
    """Status email for a booking; schedules the rating email and review request."""
    trigger = "booking_updated"
    previous_status = before.get("status")
    booking = parse_booking(collection, booking_id, after)
    if previous_status == booking.status:
        return _result(trigger, booking_id, "skipped", "status unchanged")
    if booking.status not in BOOKING_NOTIFIED_STATUSES:
        return _result(trigger, booking_id, "skipped", f"no email for status {booking.status!r}")

    if booking.status == "confirmed":
        _schedule_rating_email(deps, booking)

    if not booking.contact_email:
        logger.info("Booking %s has no contact email; skipping", booking_id)
        return _result(trigger, booking_id, "skipped", "missing contact email")

    review_url = deps.review_url(booking_id) if booking.status == "completed" else None
    message = email.booking_status_message(booking, previous_status, review_url)
    sent = _send_once(deps, collection, booking_id, status_guard(booking.status), message)
    if sent is None:
        return _result(trigger, booking_id, "skipped", "already sent")

    if booking.status == "completed" and sent["success"]:
        review = ReviewRequest(
            booking_id=booking_id,
            center_id=booking.center_id,
            user_email=booking.contact_email,
            sent_at=deps.now(),
        )
        try:
            created = deps.store.create(REVIEW_REQUESTS, booking_id, review.to_document())
        except DocumentStoreError as exc:
            logger.error("Review request for booking %s not recorded: %s", booking_id, exc)
        else:
            if not created:
                logger.info("Review request for booking %s already exists", booking_id)
    return _outcome(trigger, booking_id, [sent])


def _send_once(
    deps: Dependencies,
    collection: str,
    document_id: str,
    guard: str,
    message: EmailMessage,
) -> SendResult | None:
    """Claim `guard`, send, then stamp or release it. None if already claimed."""
    if not message.get("to"):
        return send_message(message, deps.send_email)
    if not deps.store.claim_guard(collection, document_id, guard):
        logger.info("%s/%s: %s already set; not sending again", collection, document_id, guard)
        return None

    result = send_message(message, deps.send_email)
    if result["success"]:
        deps.store.update(collection, document_id, {f"{guard}At": deps.now()})
    else:
        deps.store.release_guard(collection, document_id, guard)
    return result


def _resolve_order_items(
    order_id: str, items: Any, deps: Dependencies
) -> list[dict[str, Any]]:
    resolved = []
    for item in items:
        if not item.product_id:
            logger.warning("Order %s: item without a valid productId skipped", order_id)
            continue
        product = lookup_document(deps, PRODUCTS, item.product_id)
        if product is None:
            logger.warning("Order %s: product %s skipped", order_id, item.product_id)
            continue
        resolved.append({"item": item, "product": product})
    return resolved


def lookup_document(deps: Dependencies, collection: str, document_id: str) -> Document | None:
    """Read a related document; a missing document and a failed read are both misses."""
    try:
        data = deps.store.get(collection, document_id)
    except DocumentStoreError as exc:
        logger.warning("Lookup of %s/%s failed: %s", collection, document_id, exc)
        return None
    if data is None:
        logger.warning("%s/%s not found", collection, document_id)
    return data


def doctor_email(deps: Dependencies, doctor_id: str | None) -> str | None:
    if not doctor_id:
        return None
    doctor = lookup_document(deps, DOCTORS, doctor_id)
    if doctor is None:
        return None
    return _string_field(doctor, "email")


def _center_email(deps: Dependencies, booking: Booking) -> str | None:
    if not booking.center_id:
        return None
    centers = GROOMING_CENTERS if booking.kind == "grooming" else BOARDING_CENTERS
    center = lookup_document(deps, centers, booking.center_id)
    if center is None:
        return None
    return _string_field(center, "email")


def _schedule_rating_email(deps: Dependencies, booking: Booking) -> None:
    check_in = _parse_check_in(booking.date_from, deps)
    if check_in is None:
        logger.warning(
            "Booking %s has no usable check-in date; rating email not scheduled", booking.id
        )
        return
    try:
        created = deps.store.create(
            SCHEDULED_EMAILS,
            f"{booking.id}-rating",
            {
                "type": "rating_request",
                "bookingId": booking.id,
                "bookingCollection": booking.collection,
                "userEmail": booking.contact_email,
                "scheduledFor": check_in + RATING_EMAIL_DELAY,
                "createdAt": deps.now(),
                "sent": False,
            },
        )
    except DocumentStoreError as exc:
        logger.error("Rating email for booking %s not scheduled: %s", booking.id, exc)
        return
    if created:
        logger.info("Rating email scheduled for booking %s", booking.id)


def _parse_check_in(value: str | None, deps: Dependencies) -> datetime | None:
    if not value:
        return None
    try:
        check_in = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if check_in.tzinfo is None:
        check_in = check_in.replace(tzinfo=deps.local_timezone)
    return check_in


def _string_field(data: Mapping[str, Any], name: str) -> str | None:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _outcome(trigger: str, document_id: str, sends: list[SendResult]) -> TriggerResult:
    failed = [item for item in sends if not item["success"]]
    if failed:
        reason = f"{len(failed)} of {len(sends)} sends failed"
        return _result(trigger, document_id, "failed", reason, sends)
    return _result(trigger, document_id, "notified", None, sends)


def _result(
    trigger: str,
    document_id: str,
    status: str,
    reason: str | None,
    sends: list[SendResult] | None = None,
) -> TriggerResult:
    return {
        "trigger": trigger,
        "document_id": document_id,
        "status": status,
        "reason": reason,
        "sends": list(sends or []),
    }
