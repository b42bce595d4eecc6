"""Domain layer: records, status rules, templates and message content."""

from .email import send_message
from .records import (
    Appointment,
    Booking,
    CourierDetails,
    Order,
    OrderItem,
    Prescription,
    ReviewRequest,
)
from .transitions import allowed_statuses, can_transition, next_status

__all__ = [
    "Appointment",
    "Booking",
    "CourierDetails",
    "Order",
    "OrderItem",
    "Prescription",
    "ReviewRequest",
    "allowed_statuses",
    "can_transition",
    "next_status",
    "send_message",
]
