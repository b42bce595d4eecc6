"""Kafka transport adapters for document-change events.

Mental model refresher:
- This module is transport glue to Kafka itself.
- A change-data-capture publisher (or `publish_document_change_event` for
  local testing) puts one JSON object per document write on the topic.
- The worker maps Kafka records into the consumer-handler flow; trigger rules
  still live in the application/domain layers.
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
import os
from typing import Any, Mapping
import uuid

from ..application.context import Dependencies
from ..config import env_bool
from ..errors import ConfigurationError
from .consumer_handler import handle_message

DEFAULT_TOPIC = "documents.changes"


def publish_document_change_event(
    collection: str,
    document_id: str,
    kind: str,
    *,
    before: Mapping[str, Any] | None = None,
    after: Mapping[str, Any] | None = None,
    topic: str | None = None,
) -> dict[str, Any]:
    """Publish one document-change event to Kafka; returns the record position."""
    _KafkaConsumer, KafkaProducer, _TopicPartition, _OffsetAndMetadata = _import_kafka_python()
    bootstrap_servers = _bootstrap_servers_from_env()
    topic_name = topic or _topic_from_env()
    send_timeout_seconds = float(os.getenv("KAFKA_SEND_TIMEOUT_SECONDS", "10"))

    event = build_change_event(collection, document_id, kind, before=before, after=after)
    producer = KafkaProducer(
        bootstrap_servers=bootstrap_servers,
        value_serializer=_serialize_json_object,
        key_serializer=lambda key: key.encode("utf-8"),
        acks=os.getenv("KAFKA_PRODUCER_ACKS", "all"),
    )
    try:
        # keyed by document so every change to one document stays ordered
        future = producer.send(topic_name, key=f"{collection}/{document_id}", value=event)
        metadata = future.get(timeout=send_timeout_seconds)
        producer.flush(timeout=send_timeout_seconds)
    finally:
        producer.close()

    return {
        "event_id": event["event_id"],
        "topic": metadata.topic,
        "partition": metadata.partition,
        "offset": metadata.offset,
    }


def build_change_event(
    collection: str,
    document_id: str,
    kind: str,
    *,
    before: Mapping[str, Any] | None = None,
    after: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "event_id": f"evt_{uuid.uuid4().hex[:12]}",
        "collection": collection,
        "document_id": document_id,
        "kind": kind,
        "before": _to_json_compatible(before) if before is not None else None,
        "after": _to_json_compatible(after) if after is not None else None,
    }


def run_trigger_worker_forever(deps: Dependencies) -> int:
    """Run the Kafka consumer loop that feeds the trigger layer."""
    KafkaConsumer, KafkaProducer, TopicPartition, OffsetAndMetadata = _import_kafka_python()
    bootstrap_servers = _bootstrap_servers_from_env()
    topic_name = _topic_from_env()
    dlq_enabled = env_bool("KAFKA_DLQ_ENABLED", default=True)
    dlq_topic = os.getenv("KAFKA_TOPIC_DOCUMENT_CHANGES_DLQ", f"{topic_name}.dlq")
    group_id = os.getenv("KAFKA_GROUP_ID", "petzify-notification-triggers")
    auto_offset_reset = os.getenv("KAFKA_AUTO_OFFSET_RESET", "earliest")
    poll_timeout_ms = _poll_timeout_ms_from_env()
    max_records = int(os.getenv("KAFKA_MAX_RECORDS_PER_POLL", "50"))
    dlq_send_timeout_seconds = float(
        os.getenv(
            "KAFKA_DLQ_SEND_TIMEOUT_SECONDS",
            os.getenv("KAFKA_SEND_TIMEOUT_SECONDS", "10"),
        )
    )

    consumer = KafkaConsumer(
        topic_name,
        bootstrap_servers=bootstrap_servers,
        group_id=group_id,
        enable_auto_commit=False,
        auto_offset_reset=auto_offset_reset,
    )
    dlq_producer = (
        KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            value_serializer=_serialize_json_object,
            acks=os.getenv("KAFKA_PRODUCER_ACKS", "all"),
        )
        if dlq_enabled
        else None
    )
    print(
        f"[WORKER START] topic={topic_name} group_id={group_id} "
        f"dlq_enabled={dlq_enabled} dlq_topic={dlq_topic}"
    )

    try:
        while True:
            batches = consumer.poll(timeout_ms=poll_timeout_ms, max_records=max_records)
            if not batches:
                continue

            for _topic_partition, records in batches.items():
                for message in records:
                    position = (message.topic, int(message.partition), int(message.offset))

                    def commit_current_offset(position: tuple[str, int, int] = position) -> None:
                        topic, partition, offset = position
                        offsets = {
                            TopicPartition(topic, partition): _offset_and_metadata(
                                OffsetAndMetadata, offset + 1
                            )
                        }
                        consumer.commit(offsets=offsets)
                        print(f"[COMMIT] topic={topic} partition={partition} offset={offset}")

                    def dead_letter(
                        reason: str,
                        source_payload: Any,
                        position: tuple[str, int, int] = position,
                        commit_current_offset=commit_current_offset,
                    ) -> None:
                        topic, partition, offset = position
                        if _publish_to_dlq(
                            dlq_producer,
                            dlq_topic,
                            position=position,
                            reason=reason,
                            source_payload=source_payload,
                            timeout_seconds=dlq_send_timeout_seconds,
                        ):
                            commit_current_offset()
                        else:
                            print(
                                f"[NO-COMMIT] topic={topic} partition={partition} "
                                f"offset={offset} reason={reason}"
                            )

                    try:
                        payload = _deserialize_json_object(message.value)
                    except ValueError as exc:
                        dead_letter(f"decode_failed: {exc}", message.value)
                        continue

                    internal_record = {
                        "topic": position[0],
                        "partition": position[1],
                        "offset": position[2],
                        "value": payload,
                    }
                    result = handle_message(
                        internal_record,
                        deps=deps,
                        commit=lambda _record, commit=commit_current_offset: commit(),
                        reject=lambda record, reason, dead_letter=dead_letter: dead_letter(
                            reason, record.get("value")
                        ),
                    )
                    print(
                        f"[RESULT] topic={position[0]} partition={position[1]} "
                        f"offset={position[2]} status={result['status']} "
                        f"should_commit={result['should_commit']} error={result['error']}"
                    )
    except KeyboardInterrupt:
        print("[WORKER STOP] received keyboard interrupt")
        return 0
    except Exception as exc:
        print(f"[WORKER ERROR] {exc}")
        return 1
    finally:
        _close_quietly(consumer, dlq_producer, dlq_send_timeout_seconds)


def _publish_to_dlq(
    producer: Any,
    dlq_topic: str,
    *,
    position: tuple[str, int, int],
    reason: str,
    source_payload: Any,
    timeout_seconds: float,
) -> bool:
    if producer is None:
        return False

    topic, partition, offset = position
    dlq_payload = _build_dlq_payload(
        source_topic=topic,
        source_partition=partition,
        source_offset=offset,
        source_payload=source_payload,
        failure_reason=reason,
    )
    try:
        metadata = producer.send(dlq_topic, value=dlq_payload).get(timeout=timeout_seconds)
    except Exception as exc:
        print(
            f"[DLQ ERROR] source_topic={topic} source_partition={partition} "
            f"source_offset={offset} reason={reason} error={exc}"
        )
        return False

    print(
        f"[DLQ] source_topic={topic} source_partition={partition} "
        f"source_offset={offset} dlq_topic={metadata.topic} "
        f"dlq_partition={metadata.partition} dlq_offset={metadata.offset} reason={reason}"
    )
    return True


def _close_quietly(consumer: Any, producer: Any, timeout_seconds: float) -> None:
    try:
        consumer.close()
    except Exception as exc:
        print(f"[WORKER WARN] consumer close failed: {exc}")
    if producer is None:
        return
    try:
        producer.flush(timeout=timeout_seconds)
        producer.close()
    except Exception as exc:
        print(f"[WORKER WARN] DLQ producer close failed: {exc}")


def _import_kafka_python() -> tuple[Any, Any, Any, Any]:
    from kafka import KafkaConsumer, KafkaProducer, TopicPartition
    from kafka.structs import OffsetAndMetadata

    return KafkaConsumer, KafkaProducer, TopicPartition, OffsetAndMetadata


def _topic_from_env() -> str:
    return os.getenv("KAFKA_TOPIC_DOCUMENT_CHANGES", DEFAULT_TOPIC)


def _bootstrap_servers_from_env() -> list[str]:
    raw = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "")
    servers = [item.strip() for item in raw.split(",") if item.strip()]
    if not servers:
        raise ConfigurationError("KAFKA_BOOTSTRAP_SERVERS must include at least one host:port")
    return servers


def _poll_timeout_ms_from_env() -> int:
    timeout_seconds = float(os.getenv("KAFKA_POLL_TIMEOUT_SECONDS", "1.0"))
    timeout_ms = int(timeout_seconds * 1000)
    if timeout_ms <= 0:
        raise ConfigurationError("KAFKA_POLL_TIMEOUT_SECONDS must be > 0")
    return timeout_ms


def _serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(_to_json_compatible(payload), separators=(",", ":")).encode("utf-8")


def _deserialize_json_object(raw: bytes | str | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)

    if isinstance(raw, bytes):
        text = raw.decode("utf-8")
    elif isinstance(raw, str):
        text = raw
    else:
        raise ValueError(f"Unsupported Kafka payload type: {type(raw).__name__}")

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("Kafka payload must decode to a JSON object")
    return parsed


def _build_dlq_payload(
    *,
    source_topic: str,
    source_partition: int,
    source_offset: int,
    source_payload: Any,
    failure_reason: str,
) -> dict[str, Any]:
    payload = {
        "event_type": f"{source_topic}.dlq",
        "failed_at": datetime.now(tz=UTC).isoformat(),
        "failure_reason": failure_reason,
        "source": {
            "topic": source_topic,
            "partition": source_partition,
            "offset": source_offset,
        },
        "payload": _to_json_compatible(source_payload),
    }

    if isinstance(source_payload, Mapping):
        event_id = source_payload.get("event_id")
        if isinstance(event_id, str) and event_id.strip():
            payload["source_event_id"] = event_id.strip()

    return payload


def _to_json_compatible(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_json_compatible(item) for item in value]
    return repr(value)


def _offset_and_metadata(offset_and_metadata_type: Any, offset: int) -> Any:
    """Build kafka-python OffsetAndMetadata across version signatures."""
    try:
        return offset_and_metadata_type(offset, "", -1)
    except TypeError:
        return offset_and_metadata_type(offset, "")
