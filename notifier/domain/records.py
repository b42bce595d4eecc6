"""Record types for the watched collections.

One type per collection, each with an explicit `contact_email` accessor, so
callers never probe `userEmail` vs `customerEmail` themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .transitions import BOARDING_BOOKINGS, GROOMING_BOOKINGS


@dataclass(frozen=True)
class OrderItem:
    product_id: str | None
    name: str | None
    price: float | None
    quantity: int
    image: str | None = None

    @property
    def line_total(self) -> float:
        return (self.price or 0.0) * self.quantity


@dataclass(frozen=True)
class CourierDetails:
    company: str
    tracking_number: str


@dataclass(frozen=True)
class Order:
    id: str
    status: str | None
    items: tuple[OrderItem, ...] = ()
    customer_email: str | None = None
    user_email: str | None = None
    customer_name: str | None = None
    user_name: str | None = None
    subtotal: float | None = None
    total_amount: float | None = None
    shipping_cost: float | None = None
    tax_amount: float | None = None
    shipping_address: str | None = None
    payment_method: str | None = None
    courier_details: CourierDetails | None = None
    expected_delivery_date: str | None = None
    created_at: Any = None
    updated_at: Any = None
    cancellation_date: Any = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def contact_email(self) -> str | None:
        return self.customer_email or self.user_email

    @property
    def contact_name(self) -> str | None:
        return self.user_name or self.customer_name

    @property
    def amount_due(self) -> float | None:
        """`totalAmount`, or `subtotal` for orders written without a total."""
        return self.total_amount if self.total_amount is not None else self.subtotal


@dataclass(frozen=True)
class Appointment:
    id: str
    status: str | None
    patient_email: str | None = None
    patient_name: str | None = None
    doctor_id: str | None = None
    doctor_name: str | None = None
    pet_name: str | None = None
    pet_type: str | None = None
    appointment_date: Any = None
    start_time: str | None = None
    end_time: str | None = None
    reason: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def contact_email(self) -> str | None:
        return self.patient_email


@dataclass(frozen=True)
class Prescription:
    id: str
    appointment_id: str | None
    medications: tuple[str, ...] = ()
    notes: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Booking:
    id: str
    kind: str
    status: str | None
    user_email: str | None = None
    customer_email: str | None = None
    user_name: str | None = None
    customer_name: str | None = None
    center_id: str | None = None
    center_name: str | None = None
    center_email: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    pet_name: str | None = None
    pet_type: str | None = None
    pet_breed: str | None = None
    pet_age: str | None = None
    pet_weight: str | None = None
    selected_services: tuple[str, ...] = ()
    special_instructions: str | None = None
    total_cost: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def contact_email(self) -> str | None:
        return self.user_email or self.customer_email

    @property
    def contact_name(self) -> str | None:
        return self.user_name or self.customer_name

    @property
    def collection(self) -> str:
        return GROOMING_BOOKINGS if self.kind == "grooming" else BOARDING_BOOKINGS

    @property
    def label(self) -> str:
        return "Grooming" if self.kind == "grooming" else "Pet Boarding"


@dataclass(frozen=True)
class ReviewRequest:
    booking_id: str
    center_id: str | None
    user_email: str
    sent_at: Any
    responded: bool = False

    def to_document(self) -> dict[str, Any]:
        return {
            "bookingId": self.booking_id,
            "centerId": self.center_id,
            "userEmail": self.user_email,
            "sentAt": self.sent_at,
            "responded": self.responded,
        }
