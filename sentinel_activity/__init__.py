"""
Sentinel Activity
=================

Bounded Context: Activity-event inference from gesture observations.

Turns low-confidence "gesture at a moment" observations of tracked bodies
into spatially qualified activity events (medication taken, meal eaten).

Architecture:

    sentinel_activity/
    ├── types.py           # Value objects (GestureKind, ResolvedEvent, ...)
    ├── geometry/          # Pure spatial queries (immutable, stateless)
    │   ├── shapes.py      # Zone, ZoneCandidate
    │   ├── floor.py       # FloorPlane, FloorCorrector
    │   ├── detector.py    # ZoneClassifier
    │   └── layout.py      # Default kitchen zone table
    │
    ├── analytics/         # Stateful inference
    │   ├── resolver.py    # GestureLabelResolver
    │   ├── history.py     # TemporalEventLog, EventLogStore
    │   ├── rules.py       # ActivityRule, ActivityRuleEngine
    │   └── bodies.py      # BodyRegistry
    │
    └── pipeline.py        # Per-frame orchestration

Usage:

    from sentinel_activity import (
        ActivityPipeline, ActivityRuleEngine, GestureLabelResolver,
        ZoneClassifier, DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES,
    )

    pipeline = ActivityPipeline(
        classifier=ZoneClassifier(DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES),
        resolver=GestureLabelResolver(),
        engine=ActivityRuleEngine(),
    )
    for activity in pipeline.process_frame(bodies, observations, floor=plane):
        print(activity)
"""

from sentinel_activity.types import (
    NO_GESTURE,
    NO_ZONE,
    ActivityEvent,
    BodyFrame,
    GestureKind,
    GestureObservation,
    ResolvedEvent,
)
from sentinel_activity.geometry import (
    DEFAULT_ZONE_PRIORITIES,
    DEFAULT_ZONES,
    FloorCorrector,
    FloorPlane,
    JointProbe,
    Zone,
    ZoneCandidate,
    ZoneClassifier,
)
from sentinel_activity.analytics import (
    DEFAULT_RULES,
    ActivityRule,
    ActivityRuleEngine,
    AgeRequirement,
    BodyRegistry,
    BodyState,
    EventLogStore,
    GestureLabelResolver,
    OrderingConstraint,
    TemporalEventLog,
    WinnerPolicy,
)
from sentinel_activity.pipeline import ActivityPipeline

__all__ = [
    "NO_GESTURE",
    "NO_ZONE",
    "ActivityEvent",
    "BodyFrame",
    "GestureKind",
    "GestureObservation",
    "ResolvedEvent",
    "DEFAULT_ZONE_PRIORITIES",
    "DEFAULT_ZONES",
    "FloorCorrector",
    "FloorPlane",
    "JointProbe",
    "Zone",
    "ZoneCandidate",
    "ZoneClassifier",
    "DEFAULT_RULES",
    "ActivityRule",
    "ActivityRuleEngine",
    "AgeRequirement",
    "BodyRegistry",
    "BodyState",
    "EventLogStore",
    "GestureLabelResolver",
    "OrderingConstraint",
    "TemporalEventLog",
    "WinnerPolicy",
    "ActivityPipeline",
]

__version__ = "1.0.0"
