"""
Sentinel MQTT Schemas
=====================

Bounded Context: Data Structures

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization, from_dict() for deserialization
- from_dict() reports every malformed payload as ValueError
- Schema versioning for evolution

Inbound:
    ObservationMessage (BodyObservation, GestureResult), TrackingLostMessage

Outbound:
    ActivityEventMessage, BodyStatusMessage (BodyStatus)
"""

from .common import SCHEMA_VERSION, FloorVector, Timestamp, Vector3
from .observation import (
    BodyObservation,
    GestureResult,
    ObservationMessage,
    TrackingLostMessage,
)
from .activity_event import ActivityEventMessage, BodyStatus, BodyStatusMessage

__all__ = [
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
]
