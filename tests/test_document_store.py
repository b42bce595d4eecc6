from __future__ import annotations

import unittest
from typing import Any
from unittest import mock

from google.api_core import exceptions as google_exceptions

from notifier.adapters import document_store
from notifier.adapters.document_store import FirestoreStore, InMemoryDocumentStore
from notifier.config import FirestoreConfig
from notifier.errors import DocumentStoreError


def snapshot(document_id: str, data: dict[str, Any] | None) -> mock.Mock:
    result = mock.Mock()
    result.id = document_id
    result.exists = data is not None
    result.to_dict.return_value = data
    return result


class InMemoryDocumentStoreTests(unittest.TestCase):
    def test_listeners_see_before_and_after_images(self) -> None:
        store = InMemoryDocumentStore()
        events: list[tuple[str, str, Any, Any]] = []
        store.add_listener(lambda *args: events.append(args))

        store.set("orders", "o1", {"status": "pending"})
        store.update("orders", "o1", {"status": "confirmed"})

        self.assertEqual(
            events,
            [
                ("orders", "o1", None, {"status": "pending"}),
                ("orders", "o1", {"status": "pending"}, {"status": "confirmed"}),
            ],
        )

    def test_returned_documents_are_copies(self) -> None:
        store = InMemoryDocumentStore({"orders": {"o1": {"items": [1]}}})

        store.get("orders", "o1")["items"].append(2)

        self.assertEqual(store.get("orders", "o1")["items"], [1])

    def test_update_of_missing_document_raises(self) -> None:
        with self.assertRaises(DocumentStoreError):
            InMemoryDocumentStore().update("orders", "nope", {"status": "x"})

    def test_create_is_create_if_absent(self) -> None:
        store = InMemoryDocumentStore()

        self.assertTrue(store.create("reviewRequests", "b1", {"responded": False}))
        self.assertFalse(store.create("reviewRequests", "b1", {"responded": True}))
        self.assertEqual(store.get("reviewRequests", "b1"), {"responded": False})

    def test_guard_can_be_claimed_once_until_released(self) -> None:
        store = InMemoryDocumentStore({"orders": {"o1": {}}})

        self.assertTrue(store.claim_guard("orders", "o1", "confirmedEmailSent"))
        self.assertFalse(store.claim_guard("orders", "o1", "confirmedEmailSent"))
        store.release_guard("orders", "o1", "confirmedEmailSent")
        self.assertTrue(store.claim_guard("orders", "o1", "confirmedEmailSent"))
        self.assertFalse(store.claim_guard("orders", "missing", "confirmedEmailSent"))

    def test_query_matches_every_filter(self) -> None:
        store = InMemoryDocumentStore(
            {
                "appointments": {
                    "a1": {"status": "confirmed", "reminderSent": False},
                    "a2": {"status": "confirmed", "reminderSent": True},
                    "a3": {"status": "pending", "reminderSent": False},
                }
            }
        )

        matches = store.query("appointments", {"status": "confirmed", "reminderSent": False})

        self.assertEqual([document_id for document_id, _data in matches], ["a1"])

    def test_add_generates_an_id(self) -> None:
        store = InMemoryDocumentStore()

        document_id = store.add("scheduledEmails", {"type": "rating_request"})

        self.assertEqual(store.get("scheduledEmails", document_id), {"type": "rating_request"})


class FirestoreStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = mock.Mock()
        self.document = self.client.collection.return_value.document.return_value
        self.store = FirestoreStore(self.client)

    def test_get_returns_document_data(self) -> None:
        self.document.get.return_value = snapshot("o1", {"status": "pending"})

        data = self.store.get("orders", "o1")

        self.assertEqual(data, {"status": "pending"})
        self.client.collection.assert_called_with("orders")
        self.client.collection.return_value.document.assert_called_with("o1")

    def test_get_missing_document_returns_none(self) -> None:
        self.document.get.return_value = snapshot("nope", None)

        self.assertIsNone(self.store.get("orders", "nope"))

    def test_sdk_errors_become_document_store_errors(self) -> None:
        self.document.get.side_effect = google_exceptions.ServiceUnavailable("down")

        with self.assertRaises(DocumentStoreError):
            self.store.get("orders", "o1")

    def test_update_of_missing_document_raises(self) -> None:
        self.document.update.side_effect = google_exceptions.NotFound("no document")

        with self.assertRaises(DocumentStoreError):
            self.store.update("orders", "o1", {"status": "confirmed"})
        self.document.update.assert_called_once_with({"status": "confirmed"})

    def test_create_reports_existing_document(self) -> None:
        self.document.create.side_effect = google_exceptions.AlreadyExists("exists")

        self.assertFalse(self.store.create("reviewRequests", "b1", {"responded": False}))

    def test_create_new_document(self) -> None:
        self.assertTrue(self.store.create("reviewRequests", "b1", {"responded": False}))
        self.document.create.assert_called_once_with({"responded": False})

    def test_add_returns_generated_id(self) -> None:
        reference = mock.Mock(id="generated-1")
        self.client.collection.return_value.add.return_value = (object(), reference)

        self.assertEqual(self.store.add("scheduledEmails", {"sent": False}), "generated-1")

    def test_query_chains_equality_filters(self) -> None:
        first = self.client.collection.return_value.where.return_value
        first.where.return_value.stream.return_value = [snapshot("a1", {"status": "confirmed"})]

        results = self.store.query("appointments", {"status": "confirmed", "reminderSent": False})

        self.assertEqual(results, [("a1", {"status": "confirmed"})])
        applied = [
            self.client.collection.return_value.where.call_args.kwargs["filter"],
            first.where.call_args.kwargs["filter"],
        ]
        self.assertEqual(
            [(item.field_path, item.op_string, item.value) for item in applied],
            [("status", "==", "confirmed"), ("reminderSent", "==", False)],
        )

    def test_claim_guard_runs_in_a_transaction(self) -> None:
        with mock.patch.object(
            document_store, "_claim_guard_transactionally", return_value=True
        ) as claim_mock:
            claimed = self.store.claim_guard("orders", "o1", "confirmedEmailSent")

        self.assertTrue(claimed)
        claim_mock.assert_called_once_with(
            self.client.transaction.return_value, self.document, "confirmedEmailSent"
        )

    def test_release_guard_clears_the_field(self) -> None:
        self.store.release_guard("orders", "o1", "confirmedEmailSent")

        self.document.update.assert_called_once_with({"confirmedEmailSent": False})


class GuardTransactionTests(unittest.TestCase):
    def test_sets_unclaimed_guard(self) -> None:
        transaction = mock.Mock()
        reference = mock.Mock()
        reference.get.return_value = snapshot("o1", {"status": "confirmed"})

        self.assertTrue(document_store._claim_guard(transaction, reference, "confirmedEmailSent"))
        reference.get.assert_called_once_with(transaction=transaction)
        transaction.update.assert_called_once_with(reference, {"confirmedEmailSent": True})

    def test_claimed_guard_is_left_alone(self) -> None:
        transaction = mock.Mock()
        reference = mock.Mock()
        reference.get.return_value = snapshot("o1", {"confirmedEmailSent": True})

        self.assertFalse(document_store._claim_guard(transaction, reference, "confirmedEmailSent"))
        transaction.update.assert_not_called()

    def test_missing_document_is_not_claimed(self) -> None:
        transaction = mock.Mock()
        reference = mock.Mock()
        reference.get.return_value = snapshot("o1", None)

        self.assertFalse(document_store._claim_guard(transaction, reference, "confirmedEmailSent"))
        transaction.update.assert_not_called()


class FirestoreClientTests(unittest.TestCase):
    @mock.patch("notifier.adapters.document_store.firestore.client")
    @mock.patch("notifier.adapters.document_store.credentials.ApplicationDefault")
    @mock.patch("notifier.adapters.document_store.firebase_admin.initialize_app")
    @mock.patch(
        "notifier.adapters.document_store.firebase_admin.get_app", side_effect=ValueError
    )
    def test_initializes_app_with_default_credentials(
        self,
        _get_app_mock: mock.Mock,
        initialize_app_mock: mock.Mock,
        application_default_mock: mock.Mock,
        client_mock: mock.Mock,
    ) -> None:
        document_store.firestore_client(FirestoreConfig(project_id="petzify"))

        initialize_app_mock.assert_called_once_with(
            application_default_mock.return_value, {"projectId": "petzify"}
        )
        client_mock.assert_called_once_with(
            initialize_app_mock.return_value, database_id="(default)"
        )

    @mock.patch("notifier.adapters.document_store.firestore.client")
    @mock.patch("notifier.adapters.document_store.firebase_admin.initialize_app")
    @mock.patch("notifier.adapters.document_store.firebase_admin.get_app")
    def test_reuses_existing_app(
        self,
        get_app_mock: mock.Mock,
        initialize_app_mock: mock.Mock,
        client_mock: mock.Mock,
    ) -> None:
        document_store.firestore_client(FirestoreConfig(project_id="petzify", database="staging"))

        initialize_app_mock.assert_not_called()
        client_mock.assert_called_once_with(get_app_mock.return_value, database_id="staging")


if __name__ == "__main__":
    unittest.main()
