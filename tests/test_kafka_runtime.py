from __future__ import annotations

from datetime import UTC, datetime
import json
import unittest
from unittest import mock

from notifier.adapters import kafka_runtime
from notifier.errors import ConfigurationError


class KafkaRuntimeHelperTests(unittest.TestCase):
    def test_deserialize_json_object_accepts_bytes(self) -> None:
        payload = kafka_runtime._deserialize_json_object(
            b'{"event_id":"evt-1","collection":"orders","kind":"created"}'
        )
        self.assertEqual(payload["event_id"], "evt-1")
        self.assertEqual(payload["collection"], "orders")

    def test_deserialize_json_object_rejects_non_object_json(self) -> None:
        with self.assertRaises(ValueError):
            kafka_runtime._deserialize_json_object(b'["not","an","object"]')

    def test_deserialize_json_object_rejects_invalid_utf8(self) -> None:
        with self.assertRaises(ValueError):
            kafka_runtime._deserialize_json_object(b"\xff\xfe")

    def test_build_change_event_serializes_timestamps(self) -> None:
        event = kafka_runtime.build_change_event(
            "orders",
            "o1",
            "updated",
            before={"status": "pending"},
            after={"status": "confirmed", "updatedAt": datetime(2026, 3, 1, tzinfo=UTC)},
        )

        self.assertTrue(event["event_id"].startswith("evt_"))
        self.assertEqual(event["after"]["updatedAt"], "2026-03-01T00:00:00+00:00")
        json.dumps(event)

    def test_topic_defaults_to_document_changes(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            self.assertEqual(kafka_runtime._topic_from_env(), "documents.changes")

    def test_bootstrap_servers_from_env_parses_csv(self) -> None:
        env = {"KAFKA_BOOTSTRAP_SERVERS": "localhost:9092, kafka:29092 "}
        with mock.patch.dict("os.environ", env, clear=True):
            servers = kafka_runtime._bootstrap_servers_from_env()
        self.assertEqual(servers, ["localhost:9092", "kafka:29092"])

    def test_bootstrap_servers_from_env_requires_value(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(ConfigurationError):
                kafka_runtime._bootstrap_servers_from_env()

    def test_offset_and_metadata_prefers_three_arg_signature(self) -> None:
        calls: list[tuple[int, str, object | None]] = []

        def factory(offset: int, metadata: str, leader_epoch: object | None) -> tuple[int, str]:
            calls.append((offset, metadata, leader_epoch))
            return (offset, metadata)

        built = kafka_runtime._offset_and_metadata(factory, 99)
        self.assertEqual(built, (99, ""))
        self.assertEqual(calls, [(99, "", -1)])

    def test_offset_and_metadata_falls_back_to_two_arg_signature(self) -> None:
        def factory(offset: int, metadata: str) -> tuple[int, str]:
            return (offset, metadata)

        self.assertEqual(kafka_runtime._offset_and_metadata(factory, 42), (42, ""))

    def test_build_dlq_payload_includes_source_metadata_and_event_id(self) -> None:
        dlq_payload = kafka_runtime._build_dlq_payload(
            source_topic="documents.changes",
            source_partition=0,
            source_offset=42,
            source_payload={"event_id": "evt-abc", "kind": "deleted"},
            failure_reason="parse_failed: Unsupported change kind: deleted",
        )

        self.assertEqual(dlq_payload["event_type"], "documents.changes.dlq")
        self.assertEqual(dlq_payload["source"]["offset"], 42)
        self.assertEqual(dlq_payload["source_event_id"], "evt-abc")
        self.assertIn("failed_at", dlq_payload)

    def test_publish_to_dlq_without_producer_reports_failure(self) -> None:
        published = kafka_runtime._publish_to_dlq(
            None,
            "documents.changes.dlq",
            position=("documents.changes", 0, 1),
            reason="decode_failed",
            source_payload=b"{",
            timeout_seconds=1.0,
        )
        self.assertFalse(published)

    def test_publish_to_dlq_sends_payload(self) -> None:
        producer = mock.Mock()
        metadata = producer.send.return_value.get.return_value
        metadata.topic, metadata.partition, metadata.offset = "documents.changes.dlq", 0, 7

        with mock.patch("builtins.print"):
            published = kafka_runtime._publish_to_dlq(
                producer,
                "documents.changes.dlq",
                position=("documents.changes", 0, 1),
                reason="decode_failed",
                source_payload=b"{",
                timeout_seconds=1.0,
            )

        self.assertTrue(published)
        topic = producer.send.call_args.args[0]
        value = producer.send.call_args.kwargs["value"]
        self.assertEqual(topic, "documents.changes.dlq")
        self.assertEqual(value["payload"], "{")


if __name__ == "__main__":
    unittest.main()
