"""
Observation Message Schema
==========================

Bounded Context: Inbound frames from the body tracker + gesture engine

One ObservationMessage per sensor frame: the floor plane and, per body slot,
the tracking state, the three joints used for zone classification, and the
gesture engine's per-kind results.

Message Flow:
    Body tracker + gesture engine -> MQTT -> ObservationSubscriber
        -> ActivityProcessorService -> ActivityPipeline.process_frame
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sentinel_activity.geometry.floor import FloorPlane
from sentinel_activity.types import BodyFrame, GestureKind, GestureObservation

from .common import SCHEMA_VERSION, FloorVector, Timestamp, Vector3


def _optional_vector(data: Dict[str, Any], key: str) -> Optional[Vector3]:
    value = data.get(key)
    return Vector3.from_dict(value) if value is not None else None


@dataclass(frozen=True)
class GestureResult:
    """One gesture engine result (one kind) for one body."""
    kind: GestureKind
    confidence: float
    detected: bool = False

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be in [0.0, 1.0], got {self.confidence}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'confidence': self.confidence,
            'detected': self.detected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GestureResult':
        try:
            return cls(
                kind=GestureKind.parse(data['kind']),
                confidence=float(data['confidence']),
                detected=bool(data.get('detected', False)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required GestureResult field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid GestureResult data: {e}")


@dataclass(frozen=True)
class BodyObservation:
    """
    One body slot in one frame.

    Attributes:
        body_id: Sensor slot index
        tracking_id: Stable body handle (0 / None = untracked)
        tracking_valid: Tracker's validity flag for this frame
        hand_left: Left fingertip (None if not inferred)
        hand_right: Right fingertip (None if not inferred)
        spine_mid: Spine midpoint (None if not inferred)
        gestures: Gesture engine results for this body
    """
    body_id: int
    tracking_id: Optional[int] = None
    tracking_valid: bool = True
    hand_left: Optional[Vector3] = None
    hand_right: Optional[Vector3] = None
    spine_mid: Optional[Vector3] = None
    gestures: List[GestureResult] = field(default_factory=list)

    def __post_init__(self):
        if self.body_id < 0:
            raise ValueError(f"Body ID must be >= 0, got {self.body_id}")
        kinds = [g.kind for g in self.gestures]
        if len(kinds) != len(set(kinds)):
            raise ValueError(
                f"Body {self.body_id} reports a gesture kind more than once: "
                f"{[k.value for k in kinds]}"
            )

    def to_frame(self) -> BodyFrame:
        return BodyFrame(
            body_id=self.body_id,
            tracking_id=self.tracking_id,
            tracking_valid=self.tracking_valid,
            hand_left=self.hand_left.as_tuple() if self.hand_left else None,
            hand_right=self.hand_right.as_tuple() if self.hand_right else None,
            spine_mid=self.spine_mid.as_tuple() if self.spine_mid else None,
        )

    def to_observations(self, timestamp) -> List[GestureObservation]:
        """Gesture results as core observations (empty when untracked)."""
        if not self.tracking_id:
            return []
        return [
            GestureObservation(
                body_id=self.tracking_id,
                kind=g.kind,
                confidence=g.confidence,
                detected=g.detected,
                timestamp=timestamp,
            )
            for g in self.gestures
        ]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'body_id': self.body_id,
            'tracking_id': self.tracking_id,
            'tracking_valid': self.tracking_valid,
            'gestures': [g.to_dict() for g in self.gestures],
        }
        for key in ('hand_left', 'hand_right', 'spine_mid'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BodyObservation':
        try:
            tracking_id = data.get('tracking_id')
            return cls(
                body_id=int(data['body_id']),
                tracking_id=int(tracking_id) if tracking_id is not None else None,
                tracking_valid=bool(data.get('tracking_valid', True)),
                hand_left=_optional_vector(data, 'hand_left'),
                hand_right=_optional_vector(data, 'hand_right'),
                spine_mid=_optional_vector(data, 'spine_mid'),
                gestures=[GestureResult.from_dict(g) for g in data.get('gestures', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required BodyObservation field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid BodyObservation data: {e}")


@dataclass(frozen=True)
class ObservationMessage:
    """
    One sensor frame.

    Example:
        >>> msg = ObservationMessage(
        ...     schema_version="1.0",
        ...     timestamp=Timestamp.now(),
        ...     frame_id=981,
        ...     source_id=0,
        ...     floor=FloorVector(x=0.0, y=0.97, z=0.24, w=0.9),
        ...     bodies=[body]
        ... )
    """
    schema_version: str
    timestamp: Timestamp
    frame_id: int
    source_id: int = 0
    floor: Optional[FloorVector] = None
    bodies: List[BodyObservation] = field(default_factory=list)

    def __post_init__(self):
        if self.frame_id < 0:
            raise ValueError(f"Frame ID must be >= 0, got {self.frame_id}")
        if self.source_id < 0:
            raise ValueError(f"Source ID must be >= 0, got {self.source_id}")

    def floor_plane(self) -> Optional[FloorPlane]:
        if self.floor is None:
            return None
        return FloorPlane(x=self.floor.x, y=self.floor.y, z=self.floor.z, w=self.floor.w)

    def body_frames(self) -> List[BodyFrame]:
        return [body.to_frame() for body in self.bodies]

    def gesture_observations(self) -> List[GestureObservation]:
        """All bodies' gesture results stamped with the frame's timestamp."""
        timestamp = self.timestamp.to_datetime()
        observations: List[GestureObservation] = []
        for body in self.bodies:
            observations.extend(body.to_observations(timestamp))
        return observations

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'frame_id': self.frame_id,
            'source_id': self.source_id,
            'bodies': [body.to_dict() for body in self.bodies],
        }
        if self.floor is not None:
            result['floor'] = self.floor.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObservationMessage':
        """
        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            timestamp = Timestamp(value=str(data['timestamp']))
            timestamp.to_datetime()
            floor = data.get('floor')
            return cls(
                schema_version=str(data.get('schema_version', SCHEMA_VERSION)),
                timestamp=timestamp,
                frame_id=int(data['frame_id']),
                source_id=int(data.get('source_id', 0)),
                floor=FloorVector.from_dict(floor) if floor is not None else None,
                bodies=[BodyObservation.from_dict(b) for b in data.get('bodies', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required ObservationMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ObservationMessage data: {e}")

    @classmethod
    def from_json(cls, payload) -> 'ObservationMessage':
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Observation payload is not JSON: {e}")
        if not isinstance(data, dict):
            raise ValueError("Observation payload must be a JSON object")
        return cls.from_dict(data)

    @property
    def body_count(self) -> int:
        return len(self.bodies)


@dataclass(frozen=True)
class TrackingLostMessage:
    """Gesture engine lost a body: stop generating events for it."""
    schema_version: str
    timestamp: Timestamp
    tracking_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'tracking_id': self.tracking_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackingLostMessage':
        try:
            return cls(
                schema_version=str(data.get('schema_version', SCHEMA_VERSION)),
                timestamp=Timestamp(value=str(data['timestamp'])),
                tracking_id=int(data['tracking_id']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required TrackingLostMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid TrackingLostMessage data: {e}")

    @classmethod
    def from_json(cls, payload) -> 'TrackingLostMessage':
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Tracking-lost payload is not JSON: {e}")
        if not isinstance(data, dict):
            raise ValueError("Tracking-lost payload must be a JSON object")
        return cls.from_dict(data)
