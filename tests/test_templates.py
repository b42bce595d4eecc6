from __future__ import annotations

from datetime import datetime
import unittest

from notifier.domain import email, templates
from notifier.domain.records import (
    Appointment,
    Booking,
    CourierDetails,
    Order,
    OrderItem,
    Prescription,
)


class FormattingHelperTests(unittest.TestCase):
    def test_format_price(self) -> None:
        self.assertEqual(templates.format_price(None), "0.00")
        self.assertEqual(templates.format_price(12.5), "12.50")

    def test_short_id(self) -> None:
        self.assertEqual(templates.short_id("order-0001abcdef"), "abcdef")
        self.assertEqual(templates.short_id(None), "N/A")

    def test_format_date_accepts_several_shapes(self) -> None:
        self.assertEqual(templates.format_date(datetime(2026, 3, 5, 10, 0)), "March 5, 2026")
        self.assertEqual(templates.format_date("2026-03-05T10:00:00Z"), "March 5, 2026")
        self.assertEqual(templates.format_date({"seconds": 1772668800}), "March 5, 2026")
        self.assertEqual(templates.format_date(None), "N/A")
        self.assertEqual(templates.format_date(object()), "N/A")


class PlaceholderTests(unittest.TestCase):
    """Records with only an id render without raising and show placeholders."""

    def test_order_templates(self) -> None:
        for status in ("confirmed", "dispatched", "delivered", "cancelled"):
            html = templates.render_order_status(Order(id="o1", status=status))
            self.assertIn("N/A", html)
            self.assertIn("Not provided", html)
        self.assertIn("No items found", templates.render_order_created(Order("o1", None), []))
        self.assertIn("Not provided", templates.render_order_business_notice(Order("o1", None)))

    def test_appointment_templates(self) -> None:
        appointment = Appointment(id="a1", status=None)
        renderers = [
            templates.render_appointment_booked,
            templates.render_appointment_confirmed,
            templates.render_appointment_completed,
            templates.render_appointment_cancelled,
            templates.render_appointment_doctor_notice,
            templates.render_appointment_reminder,
        ]
        for render in renderers:
            self.assertIn("N/A", render(appointment))
        prescription = Prescription(id="rx1", appointment_id=None)
        self.assertIn(
            "Not provided", templates.render_prescription_available(appointment, prescription)
        )

    def test_booking_templates(self) -> None:
        for kind in ("grooming", "boarding"):
            booking = Booking(id="b1", kind=kind, status=None)
            for html in (
                templates.render_booking_created(booking),
                templates.render_booking_center_notice(booking),
                templates.render_booking_status(booking, None),
            ):
                self.assertIn("N/A", html)
                self.assertIn("Not provided", html)


class TemplateContentTests(unittest.TestCase):
    def test_values_are_escaped(self) -> None:
        order = Order(id="o1", status="confirmed", user_name="<script>alert(1)</script>")

        html = templates.render_order_status(order)

        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)

    def test_dispatched_shows_courier(self) -> None:
        order = Order(
            id="o1",
            status="dispatched",
            courier_details=CourierDetails(company="BlueDart", tracking_number="BD42"),
            items=(OrderItem(product_id="p1", name="Treats", price=150.0, quantity=2),),
        )

        html = templates.render_order_status(order)

        self.assertIn("BlueDart", html)
        self.assertIn("BD42", html)
        self.assertIn("₹300.00", html)

    def test_unknown_or_missing_order_status_renders_generic_update(self) -> None:
        returned = templates.render_order_status(Order(id="o1", status="returned"))
        missing = templates.render_order_status(Order(id="o1", status=None))

        self.assertIn("ORDER UPDATE", returned)
        self.assertIn("updated to returned", returned)
        self.assertIn("Status: N/A", missing)

    def test_order_total_falls_back_to_subtotal(self) -> None:
        order = Order(id="o1", status="confirmed", subtotal=600.0)

        html = templates.render_order_status(order)

        self.assertIn("Order Total: ₹600.00", html)
        self.assertNotIn("Order Total: N/A", html)
        self.assertEqual(order.amount_due, 600.0)
        with_total = Order(id="o2", status=None, subtotal=5.0, total_amount=7.5)
        self.assertEqual(with_total.amount_due, 7.5)

    def test_completed_booking_carries_review_link(self) -> None:
        booking = Booking(id="bk1", kind="grooming", status="completed")

        html = templates.render_booking_status(
            booking, "arrived", "https://petzify.com/bookings/rate/bk1"
        )

        self.assertIn('href="https://petzify.com/bookings/rate/bk1"', html)


class MessageTests(unittest.TestCase):
    def test_order_status_subjects(self) -> None:
        for status, label in email.ORDER_STATUS_SUBJECTS.items():
            message = email.order_status_message(
                Order(id="order-xyz123", status=status, user_email="a@b.com")
            )
            self.assertEqual(message["subject"], f"{label} - #xyz123")
            self.assertEqual(message["to"], "a@b.com")

    def test_order_status_message_ignores_unknown_status(self) -> None:
        self.assertIsNone(email.order_status_message(Order(id="o1", status="pending")))

    def test_contact_email_prefers_customer_email_on_orders(self) -> None:
        order = Order(id="o1", status=None, customer_email="c@x.com", user_email="u@x.com")
        self.assertEqual(order.contact_email, "c@x.com")

    def test_contact_email_prefers_user_email_on_bookings(self) -> None:
        booking = Booking(
            id="b1", kind="grooming", status=None, customer_email="c@x.com", user_email="u@x.com"
        )
        self.assertEqual(booking.contact_email, "u@x.com")

    def test_send_message_without_recipient_is_a_logged_no_op(self) -> None:
        calls: list[str] = []

        def send_email(**kwargs: object) -> None:
            calls.append(str(kwargs["to_email"]))

        message = email.order_status_message(Order(id="o1", status="confirmed"))
        result = email.send_message(message, send_email)

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "missing recipient email")
        self.assertEqual(calls, [])

    def test_send_message_reports_transport_failure(self) -> None:
        def send_email(**_kwargs: object) -> None:
            raise RuntimeError("mailgun down")

        message = email.appointment_booked_message(
            Appointment(id="a1", status=None, patient_email="p@example.com")
        )
        result = email.send_message(message, send_email)

        self.assertEqual(
            result,
            {
                "notification": "appointment_booked",
                "to": "p@example.com",
                "success": False,
                "error": "mailgun down",
            },
        )


if __name__ == "__main__":
    unittest.main()
