"""HTML email templates.

Pure functions: each takes record values and returns an HTML string. Every
interpolated value is escaped, and missing optional values render as
neutral placeholders instead of raising.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from html import escape
from typing import Any, Iterable, Mapping, Sequence

from .records import Appointment, Booking, Order, OrderItem, Prescription

NOT_AVAILABLE = "N/A"
NOT_PROVIDED = "Not provided"
VALUED_CUSTOMER = "Valued Customer"

LOGO_URL = (
    "https://firebasestorage.googleapis.com/v0/b/petzify-49ed4.appspot.com/o/"
    "logo%2FPetzify%20Logo-05.png?alt=media"
)
SUPPORT_EMAIL = "support@petzify.com"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/80"

THEME = {
    "primary": "#14cca4",
    "danger": "#f44336",
    "info": "#2196f3",
    "success": "#4caf50",
    "text": "#333333",
    "muted": "#777777",
    "border": "#e0e0e0",
}

_ORDER_STATUS_COPY: dict[str, dict[str, str]] = {
    "confirmed": {
        "title": "ORDER CONFIRMATION",
        "accent": THEME["primary"],
        "intro": (
            "Thank you for your order. We're pleased to confirm that your order has been "
            "received and is now being processed."
        ),
        "next": (
            "Our team is preparing your order for shipment. You will receive another email "
            "when your order has been dispatched with tracking information."
        ),
    },
    "dispatched": {
        "title": "YOUR PACKAGE WAS SHIPPED",
        "accent": THEME["info"],
        "intro": "Good news! Your order is on its way.",
        "next": "Use the tracking number below to follow your package with the courier.",
    },
    "delivered": {
        "title": "ORDER DELIVERED",
        "accent": THEME["success"],
        "intro": "Your order has been delivered. We hope you and your pet enjoy it!",
        "next": "If anything is wrong with your order, reply within 7 days for a return.",
    },
    "cancelled": {
        "title": "ORDER CANCELLED",
        "accent": THEME["danger"],
        "intro": (
            "Your order has been cancelled. If you did not request this cancellation, "
            "please contact our support team immediately."
        ),
        "next": "If you have already paid, a refund will be initiated within 5-7 business days.",
    },
}

_BOOKING_STATUS_COPY: dict[str, tuple[str, str]] = {
    "confirmed": (
        "Your booking has been confirmed by the center.",
        "Please arrive on time and make sure your pet is ready.",
    ),
    "arrived": (
        "Your pet has been checked in at the center.",
        "You will receive another notification when the service is completed.",
    ),
    "completed": (
        "Your pet's service has been completed.",
        "You can now pick up your pet. We would love to hear your feedback!",
    ),
    "cancelled": (
        "Your booking has been cancelled.",
        "If you have any questions about the cancellation, please contact the center directly.",
    ),
}


def format_price(amount: float | None) -> str:
    if amount is None:
        return "0.00"
    return f"{amount:.2f}"


def short_id(record_id: str | None) -> str:
    return record_id[-6:] if record_id else NOT_AVAILABLE


def format_date(value: Any) -> str:
    """Render datetimes, ISO strings and `{seconds: ...}` timestamps as text."""
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return NOT_AVAILABLE
        try:
            value = datetime.fromtimestamp(float(seconds), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return NOT_AVAILABLE
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return f"{value:%B} {value.day}, {value.year}"
    return NOT_AVAILABLE


def render_order_created(order: Order, resolved_items: Sequence[Mapping[str, Any]]) -> str:
    """Customer confirmation sent when an order document is created.

    `resolved_items` pairs each valid order item with its product document:
    `{"item": OrderItem, "product": {...}}`.
    """
    rows = []
    for entry in resolved_items:
        item: OrderItem = entry["item"]
        product = entry.get("product") or {}
        images = product.get("images") or []
        image = (images[0] if images else None) or item.image or PLACEHOLDER_IMAGE
        name = product.get("name") or item.name or "Product Name"
        rows.append(
            f"""
            <div class="item">
              <img src="{_attr(image)}" alt="{_attr(name)}" width="80" height="80">
              <div class="item-details">
                <p><strong>{_text(name)}</strong></p>
                <p>Quantity: {item.quantity}</p>
                <p>Price: ₹{format_price(item.price)}</p>
              </div>
            </div>"""
        )
    items_html = "".join(rows) or "<p>No items found</p>"

    body = f"""
      <p>Hi {_text(order.contact_name, "Customer")},</p>
      <p>Thank you for your order! Your order number is <strong>#{_text(order.id)}</strong>.</p>
      <h3>Order Details:</h3>
      {items_html}
      <p class="total"><strong>Subtotal: {_rupees(order.subtotal)}</strong></p>
      <p>We will notify you when your order has shipped.</p>"""
    return _page("Order Confirmation", "ORDER RECEIVED", THEME["primary"], body)


def render_order_business_notice(order: Order) -> str:
    lines = [
        "A new order has been placed:",
        "",
        f"Order ID: {order.id}",
        f"Customer Name: {order.contact_name or NOT_AVAILABLE}",
        f"Customer Email: {order.contact_email or NOT_PROVIDED}",
        f"Items: {len(order.items)}",
        f"Subtotal: ₹{format_price(order.subtotal) if order.subtotal is not None else NOT_AVAILABLE}",
        "",
        "Please process the order via the admin portal.",
    ]
    return "<p>" + "<br>".join(escape(line) for line in lines) + "</p>"


def render_order_status(order: Order) -> str:
    """Status update for an order; unknown statuses get a generic update."""
    status = order.status or ""
    copy = _ORDER_STATUS_COPY.get(status) or {
        "title": "ORDER UPDATE",
        "accent": THEME["primary"],
        "intro": f"Your order status has been updated to {status or NOT_AVAILABLE}.",
        "next": "If you have any questions about this update, please contact our support team.",
    }

    status_label = (status or NOT_AVAILABLE).title()
    amount_label = "Refund Amount" if status == "cancelled" else "Order Total"
    details = [
        ("Order Number", f"#{short_id(order.id)}"),
        ("Order Date", format_date(order.created_at)),
        ("Payment Method", order.payment_method or "Online Payment"),
        ("Shipping Address", order.shipping_address or NOT_PROVIDED),
    ]
    if status == "dispatched":
        courier = order.courier_details
        details.extend(
            [
                ("Courier", courier.company if courier else NOT_PROVIDED),
                ("Tracking Number", courier.tracking_number if courier else NOT_PROVIDED),
                ("Arriving", order.expected_delivery_date or "soon"),
            ]
        )
    if status == "cancelled":
        details.append(("Cancellation Date", format_date(order.cancellation_date)))

    body = f"""
      <div class="status-bar" style="background-color: {copy['accent']};">Status: {escape(status_label)}</div>
      <p>Dear {_text(order.contact_name, VALUED_CUSTOMER)},</p>
      <p>{escape(copy['intro'])}</p>
      {_info_block("ORDER INFORMATION", details)}
      <h3>ORDER SUMMARY</h3>
      {_order_items_table(order)}
      <div class="status-message">
        <h3>What's Next?</h3>
        <p>{escape(copy['next'])}</p>
        <p>{escape(amount_label)}: {_rupees(order.amount_due)}</p>
      </div>"""
    return _page(f"Order {status_label}", copy["title"], copy["accent"], body)


def render_appointment_booked(appointment: Appointment) -> str:
    body = f"""
      <div class="status-bar">Status: Pending Confirmation</div>
      <p>Dear {_text(appointment.patient_name, VALUED_CUSTOMER)},</p>
      <p>Thank you for booking an appointment with Petzify. Your appointment has been received
      and is awaiting confirmation from the veterinarian.</p>
      {_appointment_details(appointment)}
      <p>You will receive another email once it's confirmed. If you need to cancel or
      reschedule, please contact us as soon as possible.</p>"""
    return _page("Appointment Booked", "APPOINTMENT BOOKED", THEME["primary"], body)


def render_appointment_confirmed(appointment: Appointment) -> str:
    body = f"""
      <div class="status-bar">Status: Confirmed</div>
      <p>Dear {_text(appointment.patient_name, VALUED_CUSTOMER)},</p>
      <p>Your appointment has been confirmed by the veterinarian.</p>
      {_appointment_details(appointment)}
      <p>Please arrive 10 minutes early and bring any previous medical records for your pet.</p>"""
    return _page("Appointment Confirmed", "APPOINTMENT CONFIRMED", THEME["success"], body)


def render_appointment_completed(appointment: Appointment) -> str:
    body = f"""
      <div class="status-bar">Status: Completed</div>
      <p>Dear {_text(appointment.patient_name, VALUED_CUSTOMER)},</p>
      <p>Thank you for visiting. Your appointment has been completed.</p>
      {_appointment_details(appointment)}
      <p>Any prescription from this visit will be shared with you by email.</p>"""
    return _page("Appointment Completed", "APPOINTMENT COMPLETED", THEME["info"], body)


def render_appointment_cancelled(appointment: Appointment) -> str:
    body = f"""
      <div class="status-bar">Status: Cancelled</div>
      <p>Dear {_text(appointment.patient_name, VALUED_CUSTOMER)},</p>
      <p>Your appointment with Dr. {_text(appointment.doctor_name)} scheduled for
      {escape(format_date(appointment.appointment_date))} at {_text(appointment.start_time)}
      has been cancelled.</p>
      <p>If you did not request this cancellation, please contact our support team.</p>"""
    return _page("Appointment Cancelled", "APPOINTMENT CANCELLED", THEME["danger"], body)


def render_appointment_doctor_notice(appointment: Appointment) -> str:
    details = [
        ("Appointment ID", appointment.id),
        ("Patient", appointment.patient_name or NOT_AVAILABLE),
        ("Pet", f"{appointment.pet_name or NOT_AVAILABLE} ({appointment.pet_type or NOT_AVAILABLE})"),
        ("Date", format_date(appointment.appointment_date)),
        ("Time", _time_range(appointment)),
        ("Reason", appointment.reason or "Not specified"),
    ]
    body = f"""
      {_info_block("New Appointment Request", details)}
      <p>Please review this appointment request in your dashboard.</p>"""
    return _page("New Appointment Request", "NEW APPOINTMENT", THEME["primary"], body)


def render_appointment_reminder(appointment: Appointment, *, for_doctor: bool = False) -> str:
    if for_doctor:
        greeting = f"Dr. {_text(appointment.doctor_name)}"
        intro = f"You have an appointment with {_text(appointment.patient_name)} in 30 minutes."
    else:
        greeting = _text(appointment.patient_name, VALUED_CUSTOMER)
        intro = "This is a reminder that your appointment starts in 30 minutes."
    body = f"""
      <p>Dear {greeting},</p>
      <p>{intro}</p>
      {_appointment_details(appointment)}"""
    return _page("Appointment Reminder", "APPOINTMENT REMINDER", THEME["info"], body)


def render_prescription_available(appointment: Appointment, prescription: Prescription) -> str:
    if prescription.medications:
        items = "".join(f"<li>{escape(item)}</li>" for item in prescription.medications)
        medications = f"<ul>{items}</ul>"
    else:
        medications = f"<p>{NOT_PROVIDED}</p>"
    body = f"""
      <p>Dear {_text(appointment.patient_name, VALUED_CUSTOMER)},</p>
      <p>Dr. {_text(appointment.doctor_name)} has uploaded a prescription for
      {_text(appointment.pet_name, "your pet")}.</p>
      {_appointment_details(appointment)}
      <h3>Prescription</h3>
      {medications}
      <p><strong>Notes:</strong> {_text(prescription.notes, NOT_PROVIDED)}</p>
      <p>You can view and download the prescription from your Petzify account.</p>"""
    return _page("Prescription Available", "PRESCRIPTION AVAILABLE", THEME["primary"], body)


def render_booking_created(booking: Booking) -> str:
    body = f"""
      <p>Dear {_text(booking.contact_name, VALUED_CUSTOMER)},</p>
      <p>We have received your {escape(booking.label.lower())} request.
      Booking ID: <strong>#{escape(short_id(booking.id))}</strong></p>
      {_booking_details(booking)}
      <p>The center will review your booking and you will be notified once it's confirmed.</p>"""
    return _page(f"{booking.label} Booking", "BOOKING RECEIVED", THEME["primary"], body)


def render_booking_center_notice(booking: Booking) -> str:
    customer = _info_block(
        "Customer",
        [
            ("Name", booking.contact_name or NOT_AVAILABLE),
            ("Email", booking.contact_email or NOT_PROVIDED),
        ],
    )
    body = f"""
      <p>A new {escape(booking.label.lower())} booking has been placed.</p>
      {_booking_details(booking)}
      {customer}
      <p>Please confirm the booking from your dashboard.</p>"""
    return _page(f"New {booking.label} Booking", "NEW BOOKING", THEME["primary"], body)


def render_booking_status(
    booking: Booking,
    previous_status: str | None,
    review_url: str | None = None,
) -> str:
    """Status-change email; the completed variant carries the review link."""
    status = booking.status or ""
    message, next_steps = _BOOKING_STATUS_COPY.get(
        status,
        (
            f"Your booking status has been updated to {status or NOT_AVAILABLE}.",
            "If you have any questions about this update, please contact the center.",
        ),
    )
    accent = THEME["danger"] if status == "cancelled" else THEME["primary"]
    if status == "completed" and review_url:
        call_to_action = f"""
      <div class="rating-section">
        <h3>How was your experience?</h3>
        <p>We'd love to hear your feedback. Please rate your experience:</p>
        <a href="{_attr(review_url)}" class="cta-button">Rate Now</a>
      </div>"""
    else:
        call_to_action = ""

    status_info = _info_block(
        "Status Information",
        [
            ("Previous Status", (previous_status or NOT_AVAILABLE).title()),
            ("New Status", (status or NOT_AVAILABLE).title()),
        ],
    )
    body = f"""
      <div class="status-bar" style="background-color: {accent};">{escape(message)}</div>
      <p>Booking ID: <strong>#{escape(short_id(booking.id))}</strong></p>
      {status_info}
      {_booking_details(booking)}
      <h4>Next Steps:</h4>
      <p>{escape(next_steps)}</p>
      {call_to_action}"""
    return _page("Booking Status Update", "BOOKING UPDATE", accent, body)


def _appointment_details(appointment: Appointment) -> str:
    return _info_block(
        "Appointment Details",
        [
            ("Doctor", f"Dr. {appointment.doctor_name}" if appointment.doctor_name else NOT_AVAILABLE),
            ("Pet", appointment.pet_name or NOT_AVAILABLE),
            ("Date", format_date(appointment.appointment_date)),
            ("Time", _time_range(appointment)),
        ],
    )


def _booking_details(booking: Booking) -> str:
    if booking.kind == "boarding":
        when = [
            ("Check-in", booking.date_from or NOT_AVAILABLE),
            ("Check-out", booking.date_to or NOT_AVAILABLE),
        ]
    else:
        when = [
            ("Date", booking.date_from or NOT_AVAILABLE),
            ("Time", booking.date_to or NOT_AVAILABLE),
        ]
    rows = when + [
        ("Center", booking.center_name or NOT_AVAILABLE),
        ("Pet", booking.pet_name or NOT_AVAILABLE),
        ("Breed", booking.pet_breed or booking.pet_type or NOT_AVAILABLE),
        ("Services", ", ".join(booking.selected_services) or NOT_PROVIDED),
        ("Special Instructions", booking.special_instructions or NOT_PROVIDED),
        ("Total Cost", f"₹{format_price(booking.total_cost)}" if booking.total_cost is not None else NOT_AVAILABLE),
    ]
    return _info_block("Booking Details", rows)


def _order_items_table(order: Order) -> str:
    if not order.items:
        rows = '<tr><td colspan="4">No items found</td></tr>'
    else:
        rows = "".join(
            f"""
          <tr>
            <td>{_text(item.name, "Unnamed Product")}</td>
            <td class="text-center">{item.quantity}</td>
            <td class="text-right">₹{format_price(item.price)}</td>
            <td class="text-right">₹{format_price(item.line_total)}</td>
          </tr>"""
            for item in order.items
        )
    totals = [
        ("Subtotal", order.subtotal),
        ("Shipping", order.shipping_cost),
        ("Tax", order.tax_amount),
        ("Total", order.amount_due),
    ]
    total_rows = "".join(
        f'<tr><td colspan="3" class="text-right">{label}:</td>'
        f'<td class="text-right">{_rupees(amount)}</td></tr>'
        for label, amount in totals
    )
    return f"""
      <table class="items-table">
        <thead><tr><th>Item</th><th>Quantity</th><th>Price</th><th>Total</th></tr></thead>
        <tbody>{rows}{total_rows}</tbody>
      </table>"""


def _info_block(title: str, rows: Iterable[tuple[str, str]]) -> str:
    lines = "".join(
        f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>" for label, value in rows
    )
    return f'<div class="info-block"><h3>{escape(title)}</h3>{lines}</div>'


def _time_range(appointment: Appointment) -> str:
    if appointment.start_time and appointment.end_time:
        return f"{appointment.start_time} - {appointment.end_time}"
    return appointment.start_time or NOT_AVAILABLE


def _rupees(amount: float | None) -> str:
    return "₹" + format_price(amount) if amount is not None else NOT_AVAILABLE


def _text(value: Any, placeholder: str = NOT_AVAILABLE) -> str:
    if value is None or value == "":
        return escape(placeholder)
    return escape(str(value))


def _attr(value: str) -> str:
    return escape(value, quote=True)


def _page(title: str, heading: str, accent: str, body: str) -> str:
    year = datetime.now(tz=timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Petzify - {escape(title)}</title>
  <style>
    body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; color: {THEME['text']}; line-height: 1.6; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid {THEME['border']}; }}
    .header {{ text-align: center; padding-bottom: 15px; border-bottom: 2px solid {accent}; }}
    .title {{ font-size: 24px; font-weight: bold; color: {accent}; }}
    .status-bar {{ background-color: {accent}; color: #ffffff; padding: 10px 15px; text-align: center; border-radius: 5px; }}
    .text-right {{ text-align: right; }}
    .text-center {{ text-align: center; }}
    .cta-button {{ background-color: {accent}; color: #ffffff; padding: 12px 24px; border-radius: 5px; text-decoration: none; }}
    .footer {{ text-align: center; margin-top: 30px; color: {THEME['muted']}; font-size: 13px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <img src="{_attr(LOGO_URL)}" alt="Petzify Logo" width="180">
      <div class="title">{escape(heading)}</div>
    </div>
    {body}
    <div class="footer">
      <p>If you have any questions, please contact our support team at
      <a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a>.</p>
      <p>&copy; {year} Petzify. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""
