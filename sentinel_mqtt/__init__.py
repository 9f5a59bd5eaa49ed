"""
Sentinel MQTT Communication Package
===================================

Bounded Context: Communication Protocol for Activity Inference

MQTT messaging between the body tracker / gesture engine (producers of
observation frames), the activity processor, and downstream consumers of
activity events.

Architecture:
- schemas/: Immutable message types (observation in, activity/status out)
- publishers/: Message producers (ActivityEventPublisher)
- subscriber.py: Observation consumer (ObservationSubscriber)
- logging/: Structured JSON logging for observability

Example (Processor):
    >>> from sentinel_mqtt import ActivityEventPublisher, create_logger
    >>> from sentinel_mqtt.schemas import ActivityEventMessage
    >>>
    >>> logger = create_logger("processor")
    >>> publisher = ActivityEventPublisher(
    ...     broker_host="localhost",
    ...     topic="sentinel/data/activities/kitchen-1",
    ...     logger=logger
    ... )
    >>> publisher.connect()
    >>> publisher.publish_activity(ActivityEventMessage.from_activity(event, "kitchen-1"))
"""

__version__ = "1.0.0"

from .schemas import (
    SCHEMA_VERSION,
    FloorVector,
    Timestamp,
    Vector3,
    BodyObservation,
    GestureResult,
    ObservationMessage,
    TrackingLostMessage,
    ActivityEventMessage,
    BodyStatus,
    BodyStatusMessage,
)

from .publishers import (
    BasePublisher,
    ActivityEventPublisher,
)

from .subscriber import ObservationSubscriber

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    'SCHEMA_VERSION',
    'FloorVector',
    'Timestamp',
    'Vector3',
    'BodyObservation',
    'GestureResult',
    'ObservationMessage',
    'TrackingLostMessage',
    'ActivityEventMessage',
    'BodyStatus',
    'BodyStatusMessage',
    'BasePublisher',
    'ActivityEventPublisher',
    'ObservationSubscriber',
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
