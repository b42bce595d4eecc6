"""Payload adapter functions.

Translates store-shaped documents (camelCase field names, loosely typed
values) into the record types used by application/domain code, and
validates the document-change event envelope delivered by the transport.
Parsing of documents is lenient: only the id is required.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..domain.records import (
    Appointment,
    Booking,
    CourierDetails,
    Order,
    OrderItem,
    Prescription,
)
from ..domain.transitions import BOARDING_BOOKINGS, GROOMING_BOOKINGS
from ..types import ChangeEvent, Document

CHANGE_KINDS = ("created", "updated")


def parse_change_event(payload: Document) -> ChangeEvent:
    """Normalize a document-change payload into a plain event dictionary.

    This is the first handoff from transport data to internal data.
    """
    kind = _as_required_str(payload.get("kind"), "kind")
    if kind not in CHANGE_KINDS:
        raise ValueError(f"Unsupported change kind: {kind}")

    before = payload.get("before")
    after = payload.get("after")
    if after is not None and not isinstance(after, Mapping):
        raise ValueError("after must be an object")
    if before is not None and not isinstance(before, Mapping):
        raise ValueError("before must be an object")
    if kind == "created" and after is None:
        raise ValueError("Missing required field: after")
    if kind == "updated" and (before is None or after is None):
        raise ValueError("updated events require both before and after")

    return {
        "event_id": _as_required_str(payload.get("event_id"), "event_id"),
        "collection": _as_required_str(payload.get("collection"), "collection"),
        "document_id": _as_required_str(payload.get("document_id"), "document_id"),
        "kind": kind,
        "before": dict(before) if before is not None else None,
        "after": dict(after) if after is not None else None,
    }


def parse_order(order_id: str, data: Document) -> Order:
    raw_items = data.get("items")
    items = tuple(
        parse_order_item(item) for item in raw_items or () if isinstance(item, Mapping)
    )
    return Order(
        id=_as_required_str(order_id, "order id"),
        status=_as_optional_str(data.get("status")),
        items=items,
        customer_email=_as_optional_str(data.get("customerEmail")),
        user_email=_as_optional_str(data.get("userEmail")),
        customer_name=_as_optional_str(data.get("customerName")),
        user_name=_as_optional_str(data.get("userName")),
        subtotal=_as_optional_float(data.get("subtotal")),
        total_amount=_as_optional_float(data.get("totalAmount")),
        shipping_cost=_as_optional_float(data.get("shippingCost")),
        tax_amount=_as_optional_float(data.get("taxAmount")),
        shipping_address=_as_address(data.get("shippingAddress")),
        payment_method=_as_optional_str(data.get("paymentMethod")),
        courier_details=parse_courier_details(data.get("courierDetails")),
        expected_delivery_date=_as_optional_str(data.get("expectedDeliveryDate")),
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt"),
        cancellation_date=data.get("cancellationDate"),
        raw=dict(data),
    )


def parse_order_item(item: Document) -> OrderItem:
    return OrderItem(
        product_id=_as_optional_str(item.get("productId")),
        name=_as_optional_str(item.get("name")),
        price=_as_optional_float(item.get("price")),
        quantity=_as_int(item.get("quantity")),
        image=_as_optional_str(item.get("image")),
    )


def parse_courier_details(value: Any) -> CourierDetails | None:
    """Return courier details only when both company and tracking number exist."""
    if not isinstance(value, Mapping):
        return None
    company = _as_optional_str(value.get("company"))
    tracking_number = _as_optional_str(value.get("trackingNumber"))
    if company is None or tracking_number is None:
        return None
    return CourierDetails(company=company, tracking_number=tracking_number)


def parse_appointment(appointment_id: str, data: Document) -> Appointment:
    return Appointment(
        id=_as_required_str(appointment_id, "appointment id"),
        status=_as_optional_str(data.get("status")),
        patient_email=_as_optional_str(data.get("patientEmail")),
        patient_name=_as_optional_str(data.get("patientName")),
        doctor_id=_as_optional_str(data.get("doctorId")),
        doctor_name=_as_optional_str(data.get("doctorName")),
        pet_name=_as_optional_str(data.get("petName")),
        pet_type=_as_optional_str(data.get("petType")),
        appointment_date=data.get("appointmentDate"),
        start_time=_as_optional_str(data.get("startTime")),
        end_time=_as_optional_str(data.get("endTime")),
        reason=_as_optional_str(data.get("reason")),
        raw=dict(data),
    )


def parse_prescription(prescription_id: str, data: Document) -> Prescription:
    medications = data.get("medications") or ()
    if isinstance(medications, str):
        medications = (medications,)
    return Prescription(
        id=_as_required_str(prescription_id, "prescription id"),
        appointment_id=_as_optional_str(data.get("appointmentId")),
        medications=tuple(_describe_medication(item) for item in medications),
        notes=_as_optional_str(data.get("notes") or data.get("instructions")),
        raw=dict(data),
    )


def parse_booking(collection: str, booking_id: str, data: Document) -> Booking:
    if collection == GROOMING_BOOKINGS:
        kind = "grooming"
    elif collection == BOARDING_BOOKINGS:
        kind = "boarding"
    else:
        raise ValueError(f"Not a booking collection: {collection}")

    services = data.get("selectedServices") or ()
    if isinstance(services, str):
        services = (services,)
    return Booking(
        id=_as_required_str(booking_id, "booking id"),
        kind=kind,
        status=_as_optional_str(data.get("status")),
        user_email=_as_optional_str(data.get("userEmail")),
        customer_email=_as_optional_str(data.get("customerEmail")),
        user_name=_as_optional_str(data.get("userName")),
        customer_name=_as_optional_str(data.get("customerName")),
        center_id=_as_optional_str(data.get("centerId")),
        center_name=_as_optional_str(data.get("centerName")),
        center_email=_as_optional_str(data.get("centerEmail")),
        date_from=_as_optional_str(data.get("dateFrom") or data.get("date")),
        date_to=_as_optional_str(data.get("dateTo") or data.get("time")),
        pet_name=_as_optional_str(data.get("petName")),
        pet_type=_as_optional_str(data.get("petType")),
        pet_breed=_as_optional_str(data.get("petBreed")),
        pet_age=_as_optional_str(data.get("petAge")),
        pet_weight=_as_optional_str(data.get("petWeight")),
        selected_services=tuple(str(item) for item in services if item),
        special_instructions=_as_optional_str(data.get("specialInstructions")),
        total_cost=_as_optional_float(data.get("totalCost")),
        raw=dict(data),
    )


def _describe_medication(item: Any) -> str:
    if isinstance(item, Mapping):
        parts = [str(item.get(key)) for key in ("name", "dosage", "frequency") if item.get(key)]
        return " - ".join(parts) or "Unnamed medication"
    return str(item)


def _as_address(value: Any) -> str | None:
    if isinstance(value, Mapping):
        parts = [
            str(value.get(key)).strip()
            for key in ("name", "line1", "street", "line2", "city", "state", "pincode", "zip")
            if value.get(key)
        ]
        return ", ".join(part for part in parts if part) or None
    return _as_optional_str(value)


def _as_required_str(value: Any, field_name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError(f"Missing required field: {field_name}")
    return text


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0
