"""
Activity Event Message Schema
=============================

Bounded Context: Outbound activity stream and per-body debug surface

Message Flow:
    ActivityRuleEngine -> ActivityEvent -> ActivityEventPublisher -> MQTT
    BodyRegistry snapshot -> BodyStatusMessage -> ActivityEventPublisher -> MQTT
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sentinel_activity.analytics.bodies import BodyState
from sentinel_activity.types import ActivityEvent

from .common import SCHEMA_VERSION, Timestamp


@dataclass(frozen=True)
class ActivityEventMessage:
    """
    One inferred activity.

    Attributes:
        schema_version: Message schema version
        timestamp: When the message was created
        service_id: Emitting processor
        activity: Activity name (e.g. "MedicationTaken")
        occurred_at: Timestamp of the triggering gesture

    Example:
        >>> msg = ActivityEventMessage.from_activity(event, service_id="kitchen-1")
        >>> msg.to_dict()['activity']
        'MedicationTaken'
    """
    schema_version: str
    timestamp: Timestamp
    service_id: str
    activity: str
    occurred_at: Timestamp

    def __post_init__(self):
        if not self.activity:
            raise ValueError("activity cannot be empty")

    @classmethod
    def from_activity(cls, event: ActivityEvent, service_id: str) -> 'ActivityEventMessage':
        return cls(
            schema_version=SCHEMA_VERSION,
            timestamp=Timestamp.now(),
            service_id=service_id,
            activity=event.name,
            occurred_at=Timestamp.from_datetime(event.timestamp),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'service_id': self.service_id,
            'activity': self.activity,
            'occurred_at': self.occurred_at.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActivityEventMessage':
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=str(data['timestamp'])),
                service_id=str(data['service_id']),
                activity=str(data['activity']),
                occurred_at=Timestamp(value=str(data['occurred_at'])),
            )
        except KeyError as e:
            raise ValueError(f"Missing required ActivityEventMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ActivityEventMessage data: {e}")


@dataclass(frozen=True)
class BodyStatus:
    """Debug view of one body: zone and resolved label this frame."""
    tracking_id: int
    body_id: int
    tracked: bool
    label: str
    zone: str
    confidence: float = 0.0

    @classmethod
    def from_state(cls, state: BodyState) -> 'BodyStatus':
        return cls(
            tracking_id=state.tracking_id,
            body_id=state.body_id,
            tracked=state.tracked,
            label=state.label,
            zone=state.zone,
            confidence=state.confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tracking_id': self.tracking_id,
            'body_id': self.body_id,
            'tracked': self.tracked,
            'label': self.label,
            'zone': self.zone,
            'confidence': self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BodyStatus':
        try:
            return cls(
                tracking_id=int(data['tracking_id']),
                body_id=int(data['body_id']),
                tracked=bool(data['tracked']),
                label=str(data['label']),
                zone=str(data['zone']),
                confidence=float(data.get('confidence', 0.0)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required BodyStatus field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid BodyStatus data: {e}")


@dataclass(frozen=True)
class BodyStatusMessage:
    """Per-frame debug surface: every body plus history sizes."""
    schema_version: str
    timestamp: Timestamp
    service_id: str
    frame_id: int
    bodies: List[BodyStatus] = field(default_factory=list)
    logs: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'service_id': self.service_id,
            'frame_id': self.frame_id,
            'bodies': [body.to_dict() for body in self.bodies],
            'logs': dict(self.logs),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BodyStatusMessage':
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=str(data['timestamp'])),
                service_id=str(data['service_id']),
                frame_id=int(data['frame_id']),
                bodies=[BodyStatus.from_dict(b) for b in data.get('bodies', [])],
                logs={str(k): int(v) for k, v in data.get('logs', {}).items()},
            )
        except KeyError as e:
            raise ValueError(f"Missing required BodyStatusMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid BodyStatusMessage data: {e}")

    def get_body(self, tracking_id: int) -> Optional[BodyStatus]:
        for body in self.bodies:
            if body.tracking_id == tracking_id:
                return body
        return None
