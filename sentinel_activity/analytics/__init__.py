"""
Analytics Layer
===============

Bounded Context: Stateful inference over resolved gestures.

Responsibilities:
- Resolve one winning gesture per body per frame
- Keep bounded per-(kind, zone) history
- Correlate histories into activity events
- Track per-body debug state

Design Philosophy:
- Mutable state lives in a few owned objects (store, engine, registry)
- Immutable outputs (ResolvedEvent, ActivityEvent, BodyState)
- Single-writer: fed from one evaluation loop
"""

from sentinel_activity.analytics.history import (
    DEFAULT_CAPACITY,
    EventLogStore,
    LogKey,
    TemporalEventLog,
    format_key,
)
from sentinel_activity.analytics.resolver import (
    DEFAULT_THRESHOLD,
    DEFAULT_THRESHOLDS,
    GestureLabelResolver,
    WinnerPolicy,
)
from sentinel_activity.analytics.rules import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_RULES,
    ActivityRule,
    ActivityRuleEngine,
    AgeRequirement,
    OrderingConstraint,
)
from sentinel_activity.analytics.bodies import BodyRegistry, BodyState

__all__ = [
    "DEFAULT_CAPACITY",
    "EventLogStore",
    "LogKey",
    "TemporalEventLog",
    "format_key",
    "DEFAULT_THRESHOLD",
    "DEFAULT_THRESHOLDS",
    "GestureLabelResolver",
    "WinnerPolicy",
    "DEFAULT_MIN_CONFIDENCE",
    "DEFAULT_RULES",
    "ActivityRule",
    "ActivityRuleEngine",
    "AgeRequirement",
    "OrderingConstraint",
    "BodyRegistry",
    "BodyState",
]
