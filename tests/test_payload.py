from __future__ import annotations

import unittest
from typing import Any

from notifier.adapters.payload import (
    parse_booking,
    parse_change_event,
    parse_courier_details,
    parse_order,
    parse_prescription,
)


def make_event(**overrides: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "event_id": "evt-1",
        "collection": "orders",
        "document_id": "o1",
        "kind": "updated",
        "before": {"status": "pending"},
        "after": {"status": "confirmed"},
    }
    return base | overrides


class ChangeEventParsingTests(unittest.TestCase):
    def test_parse_change_event_normalizes_fields(self) -> None:
        event = parse_change_event(make_event(document_id=" o1 "))

        self.assertEqual(event["document_id"], "o1")
        self.assertEqual(event["before"], {"status": "pending"})
        self.assertEqual(event["after"], {"status": "confirmed"})

    def test_created_event_needs_after_image(self) -> None:
        with self.assertRaises(ValueError):
            parse_change_event(make_event(kind="created", before=None, after=None))

    def test_updated_event_needs_both_images(self) -> None:
        with self.assertRaises(ValueError):
            parse_change_event(make_event(before=None))

    def test_rejects_unknown_kind(self) -> None:
        with self.assertRaises(ValueError):
            parse_change_event(make_event(kind="deleted"))

    def test_rejects_missing_collection(self) -> None:
        with self.assertRaises(ValueError):
            parse_change_event(make_event(collection=""))


class RecordParsingTests(unittest.TestCase):
    def test_parse_order_is_lenient_about_numbers(self) -> None:
        order = parse_order(
            "o1",
            {
                "status": "pending",
                "userEmail": "a@b.com",
                "items": [
                    {"productId": "p1", "price": "150", "quantity": "2"},
                    "not-an-item",
                    {"productId": "p2", "price": None},
                ],
                "totalAmount": "600.5",
                "shippingAddress": {"line1": "12 MG Road", "city": "Pune", "pincode": "411001"},
            },
        )

        self.assertEqual(len(order.items), 2)
        self.assertEqual(order.items[0].line_total, 300.0)
        self.assertEqual(order.items[1].quantity, 0)
        self.assertEqual(order.total_amount, 600.5)
        self.assertEqual(order.shipping_address, "12 MG Road, Pune, 411001")
        self.assertEqual(order.contact_email, "a@b.com")

    def test_courier_details_need_both_fields(self) -> None:
        self.assertIsNone(parse_courier_details({"company": "DTDC"}))
        self.assertIsNone(parse_courier_details("DTDC"))
        details = parse_courier_details({"company": "DTDC", "trackingNumber": "D1"})
        self.assertEqual((details.company, details.tracking_number), ("DTDC", "D1"))

    def test_parse_booking_reads_grooming_date_and_time(self) -> None:
        booking = parse_booking(
            "groomingBookings",
            "b1",
            {"date": "2026-03-05", "time": "10:00", "selectedServices": "Bath"},
        )

        self.assertEqual(booking.kind, "grooming")
        self.assertEqual((booking.date_from, booking.date_to), ("2026-03-05", "10:00"))
        self.assertEqual(booking.selected_services, ("Bath",))

    def test_parse_booking_rejects_other_collections(self) -> None:
        with self.assertRaises(ValueError):
            parse_booking("orders", "b1", {})

    def test_parse_prescription_describes_medications(self) -> None:
        prescription = parse_prescription(
            "rx1",
            {
                "appointmentId": "ap1",
                "medications": [{"name": "Amoxicillin", "dosage": "50mg", "frequency": "2x"}],
                "instructions": "With food",
            },
        )

        self.assertEqual(prescription.medications, ("Amoxicillin - 50mg - 2x",))
        self.assertEqual(prescription.notes, "With food")


if __name__ == "__main__":
    unittest.main()
