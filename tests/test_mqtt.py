import json
import logging

import pytest

from tests.helpers import at
from sentinel_activity.types import ActivityEvent
from sentinel_mqtt import ActivityEventPublisher, ObservationSubscriber, create_logger
from sentinel_mqtt.logging import LogEvent, StructuredLogger
from sentinel_mqtt.logging.events import ACTIVITY_EVENTS, ERROR_EVENTS, MQTT_EVENTS
from sentinel_mqtt.schemas import (
    SCHEMA_VERSION,
    ActivityEventMessage,
    BodyStatusMessage,
    ObservationMessage,
    Timestamp,
    TrackingLostMessage,
)

OBSERVATION_TOPIC = "sentinel/data/observations/test"
TRACKING_LOST_TOPIC = "sentinel/data/tracking_lost/test"

FRAME = {
    "timestamp": "2026-03-02T07:40:00",
    "frame_id": 1,
    "bodies": [{"body_id": 0, "tracking_id": 42, "gestures": []}],
}


@pytest.fixture
def logger():
    return create_logger("test")


@pytest.fixture
def publisher(logger):
    return ActivityEventPublisher(
        broker_host="localhost",
        topic="sentinel/data/activities/test",
        logger=logger,
        client_id="test_publisher",
    )


def _activity_message():
    return ActivityEventMessage.from_activity(
        ActivityEvent(name="EatingMeal", timestamp=at(100)), service_id="test"
    )


class TestActivityEventPublisher:
    def test_format_activity(self, publisher):
        data = publisher.format_message(_activity_message())
        assert data["activity"] == "EatingMeal"
        assert data["schema_version"] == SCHEMA_VERSION
        json.dumps(data)

    def test_format_rejects_other_types(self, publisher):
        with pytest.raises(ValueError):
            publisher.format_message({"activity": "EatingMeal"})

    def test_publish_while_disconnected(self, publisher):
        assert not publisher.is_connected()
        assert publisher.publish_activity(_activity_message()) is False

        stats = publisher.get_stats()
        assert stats["failed_count"] == 1
        assert stats["message_count"] == 0
        assert stats["broker"] == "localhost:1883"

    def test_body_status_needs_status_topic(self, publisher):
        message = BodyStatusMessage(
            schema_version=SCHEMA_VERSION,
            timestamp=Timestamp.now(),
            service_id="test",
            frame_id=1,
        )
        assert publisher.publish_body_status(message) is False
        assert publisher.get_stats()["failed_count"] == 0


class TestObservationSubscriber:
    @pytest.fixture
    def received(self):
        return {"observations": [], "tracking_lost": []}

    @pytest.fixture
    def subscriber(self, logger, received):
        return ObservationSubscriber(
            broker_host="localhost",
            observation_topic=OBSERVATION_TOPIC,
            tracking_lost_topic=TRACKING_LOST_TOPIC,
            on_observation=received["observations"].append,
            on_tracking_lost=received["tracking_lost"].append,
            logger=logger,
            client_id="test_subscriber",
        )

    def test_observation_dispatched(self, subscriber, received):
        assert subscriber.handle_payload(OBSERVATION_TOPIC, json.dumps(FRAME).encode())

        message = received["observations"][0]
        assert isinstance(message, ObservationMessage)
        assert message.bodies[0].tracking_id == 42
        assert subscriber.get_stats()["observations_received"] == 1

    def test_tracking_lost_dispatched(self, subscriber, received):
        payload = json.dumps({"timestamp": "2026-03-02T07:40:00", "tracking_id": 42}).encode()
        assert subscriber.handle_payload(TRACKING_LOST_TOPIC, payload)
        assert received["tracking_lost"] == [
            TrackingLostMessage(SCHEMA_VERSION, Timestamp("2026-03-02T07:40:00"), 42)
        ]

    @pytest.mark.parametrize("payload", [b"{oops", b"{\"frame_id\": 1}", b"42"])
    def test_invalid_payload_rejected(self, subscriber, received, payload):
        assert not subscriber.handle_payload(OBSERVATION_TOPIC, payload)
        assert received["observations"] == []
        assert subscriber.get_stats()["rejected"] == 1

    def test_unknown_topic(self, subscriber, received):
        assert not subscriber.handle_payload("elsewhere", json.dumps(FRAME).encode())
        assert received["observations"] == []

    def test_tracking_lost_without_callback(self, logger):
        subscriber = ObservationSubscriber(
            broker_host="localhost",
            observation_topic=OBSERVATION_TOPIC,
            tracking_lost_topic=TRACKING_LOST_TOPIC,
            on_observation=lambda message: None,
            logger=logger,
        )
        payload = json.dumps({"timestamp": "2026-03-02T07:40:00", "tracking_id": 42}).encode()
        assert not subscriber.handle_payload(TRACKING_LOST_TOPIC, payload)


class TestStructuredLogger:
    def test_build_entry(self):
        logger = StructuredLogger("test_entry")
        entry = logger.build_entry(
            "ERROR",
            LogEvent.SCHEMA_VALIDATION_ERROR,
            "bad frame",
            metadata={"topic": OBSERVATION_TOPIC},
            exc_info=ValueError("frame_id missing"),
        )

        assert entry["event"] == "error.schema_validation"
        assert entry["component"] == "test_entry"
        assert entry["metadata"] == {"topic": OBSERVATION_TOPIC}
        assert entry["exception"] == {"type": "ValueError", "message": "frame_id missing"}

    def test_emits_json_lines(self, caplog):
        logger = StructuredLogger("test_json")
        logger.logger.propagate = True

        with caplog.at_level(logging.INFO, logger="sentinel_mqtt.test_json"):
            logger.info(LogEvent.ACTIVITY_DETECTED, "EatingMeal", {"service_id": "test"})

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["event"] == "activity.detected"
        assert entry["metadata"]["service_id"] == "test"

    def test_debug_suppressed_at_info(self, caplog):
        logger = StructuredLogger("test_level")
        logger.logger.propagate = True

        with caplog.at_level(logging.INFO, logger="sentinel_mqtt.test_level"):
            logger.debug(LogEvent.MQTT_PUBLISH_SUCCESS, "published")

        assert caplog.records == []


class TestLogEventCategories:
    def test_categories_match_prefixes(self):
        assert all(event.value.startswith("mqtt.") for event in MQTT_EVENTS)
        assert all(event.value.startswith("activity.") for event in ACTIVITY_EVENTS)
        assert all(event.value.startswith("error.") for event in ERROR_EVENTS)
