"""
Structured Log Event Types
==========================

Typed event names for the activity service's structured logs.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, observation, activity, body, error

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, metadata.activity
    | filter event = "activity.detected"
    | stats count() by metadata.activity, bin(1h)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names.

    Categories:
    - mqtt.*: Broker interactions
    - observation.*: Inbound gesture/joint frames
    - activity.*: Inferred activities
    - body.*: Per-body tracking state
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    MQTT_DISCONNECTED = "mqtt.disconnected"
    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    MQTT_SUBSCRIBED = "mqtt.subscribed"

    # ========== Observation Events ==========
    OBSERVATION_RECEIVED = "observation.received"
    """Observation frame received and deserialized."""

    # ========== Activity Events ==========
    ACTIVITY_DETECTED = "activity.detected"
    """A rule fired and emitted an activity."""

    # ========== Body Events ==========
    BODY_TRACKING_LOST = "body.tracking_lost"
    BODY_STATUS_PUBLISHED = "body.status_published"

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    DESERIALIZATION_ERROR = "error.deserialization"
    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    MQTT_CONNECTION_ERROR = "error.mqtt_connection"


MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
    LogEvent.MQTT_SUBSCRIBED,
}

ACTIVITY_EVENTS = {
    LogEvent.ACTIVITY_DETECTED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.SCHEMA_VALIDATION_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
}
