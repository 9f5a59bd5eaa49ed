"""
Domain Types
============

Bounded Context: Values flowing through the activity inference core.

Design:
- Frozen dataclasses (value objects, safe to hand across threads)
- GestureKind declaration order is the canonical iteration order
- Timestamps are datetime instants; ages are computed in seconds

Flow:
    GestureObservation (per kind) ─┐
                                   ├─► ResolvedEvent ─► ActivityEvent
    BodyFrame (joints) ────────────┘
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

# (x, y, z) in metres
Point3 = Tuple[float, float, float]

NO_ZONE = "None"
NO_GESTURE = "No Gesture"


class GestureKind(str, Enum):
    """Discrete gestures recognised by the upstream gesture engine."""

    PICK_UP = "PickUp"
    PUT_DOWN = "PutDown"
    OPEN_DOOR = "OpenDoor"
    HAND_TO_MOUTH = "HandToMouth"
    POUR = "Pour"

    @classmethod
    def parse(cls, value: "str | GestureKind") -> "GestureKind":
        """
        Accept either the wire name ("PickUp") or the member name ("PICK_UP").

        Raises:
            ValueError: If the value names no gesture kind
        """
        if isinstance(value, GestureKind):
            return value
        for kind in cls:
            if value in (kind.value, kind.name):
                return kind
        raise ValueError(
            f"Unknown gesture kind: {value!r}. "
            f"Must be one of {[k.value for k in cls]}"
        )


def validate_point(point: Point3, label: str = "point") -> Point3:
    """Coerce a 3-sequence to a float tuple, rejecting non-finite values."""
    if len(point) != 3:
        raise ValueError(f"{label} must have 3 coordinates, got {len(point)}")
    coords = tuple(float(c) for c in point)
    if not all(math.isfinite(c) for c in coords):
        raise ValueError(f"{label} must be finite, got {coords}")
    return coords


@dataclass(frozen=True)
class GestureObservation:
    """
    One gesture engine result for one body in one frame.

    Attributes:
        body_id: Tracking identifier of the body
        kind: Gesture kind this score refers to
        confidence: Classifier confidence in [0, 1]
        detected: Classifier's own detection flag
        timestamp: Frame arrival time
    """

    body_id: int
    kind: GestureKind
    confidence: float
    detected: bool
    timestamp: datetime

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be in [0.0, 1.0], got {self.confidence}"
            )


@dataclass(frozen=True)
class BodyFrame:
    """
    Raw (camera-space) joints of one body for one frame.

    Any joint may be missing when the tracker could not infer it. body_id is
    the sensor slot; tracking_id is the stable handle of whoever occupies it.
    """

    body_id: int
    tracking_id: Optional[int]
    tracking_valid: bool = True
    hand_left: Optional[Point3] = None
    hand_right: Optional[Point3] = None
    spine_mid: Optional[Point3] = None

    @property
    def is_tracked(self) -> bool:
        """Zero and missing identifiers mean "untracked"."""
        return bool(self.tracking_id) and self.tracking_valid

    @property
    def has_joints(self) -> bool:
        return any(
            joint is not None
            for joint in (self.hand_left, self.hand_right, self.spine_mid)
        )


@dataclass(frozen=True)
class ResolvedEvent:
    """A (gesture kind, zone, timestamp) fact for one body in one frame."""

    body_id: int
    kind: GestureKind
    zone: str
    timestamp: datetime
    confidence: float = 1.0

    @property
    def has_zone(self) -> bool:
        return self.zone != NO_ZONE

    def __str__(self) -> str:
        return f"{self.kind.value}@{self.zone} (body={self.body_id})"


@dataclass(frozen=True)
class ActivityEvent:
    """Composite activity inferred from correlated gesture histories."""

    name: str
    timestamp: datetime

    def __str__(self) -> str:
        return f"{self.name} at {self.timestamp.isoformat()}"
