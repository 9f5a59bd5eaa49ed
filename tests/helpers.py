"""Shared test data: a fixed start instant and event/frame builders."""

from datetime import datetime, timedelta

from sentinel_activity.types import (
    BodyFrame,
    GestureKind,
    GestureObservation,
    NO_ZONE,
    ResolvedEvent,
)

T0 = datetime(2026, 3, 2, 7, 40, 0)

TRACKING_ID = 72057594037927936

MEDICATION_HAND = (1.12, 0.87, 1.69)
DINING_SPINE = (-0.31, 0.78, 1.98)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def resolved(kind: GestureKind, zone: str = NO_ZONE, seconds: float = 0.0,
             confidence: float = 0.9, body_id: int = 1) -> ResolvedEvent:
    return ResolvedEvent(
        body_id=body_id,
        kind=kind,
        zone=zone,
        timestamp=at(seconds),
        confidence=confidence,
    )


def observation(kind: GestureKind, confidence: float, seconds: float = 0.0,
                body_id: int = TRACKING_ID, detected: bool = True) -> GestureObservation:
    return GestureObservation(
        body_id=body_id,
        kind=kind,
        confidence=confidence,
        detected=detected,
        timestamp=at(seconds),
    )


def body(hand_left=None, hand_right=None, spine_mid=None,
         tracking_id=TRACKING_ID, body_id=2, tracking_valid=True) -> BodyFrame:
    return BodyFrame(
        body_id=body_id,
        tracking_id=tracking_id,
        tracking_valid=tracking_valid,
        hand_left=hand_left,
        hand_right=hand_right,
        spine_mid=spine_mid,
    )


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
