"""
Activity Rule Engine Module
===========================

Correlates (kind, zone) histories into composite activity events.

Design:
- Rules are data (ActivityRule): trigger, age windows, ordering, consumed logs
- Only kinds that trigger some rule cause evaluation; the rest only record
- Guards short-circuit on the first unmet precondition
- Every peek is checked: an empty log fails the guard, it never faults
- Firing clears every consumed log, so the same observations fire once
- The engine owns its EventLogStore; no module-level state

Rule state is implicit in the log contents. Rules never complete: after a
clear they are re-armed by the next observations.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sentinel_activity.analytics.history import EventLogStore, LogKey, format_key
from sentinel_activity.types import ActivityEvent, GestureKind, ResolvedEvent

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.4

ActivitySink = Callable[[ActivityEvent], object]


@dataclass(frozen=True)
class AgeRequirement:
    """Log must be non-empty and its latest entry younger than max_age seconds."""

    key: LogKey
    max_age: float

    def __post_init__(self):
        if self.max_age <= 0:
            raise ValueError(f"max_age for {format_key(self.key)} must be positive, got {self.max_age}")


@dataclass(frozen=True)
class OrderingConstraint:
    """age(newer) < age(older): newer's latest entry is more recent than older's."""

    newer: LogKey
    older: LogKey


@dataclass(frozen=True)
class ActivityRule:
    """
    Composite activity definition.

    Attributes:
        name: Activity name emitted when the rule fires
        trigger_kind: Gesture kind whose arrival evaluates the rule
        trigger_zone: Required zone of the trigger (None = any zone)
        requirements: Age windows, checked in order
        ordering: Relative recency constraints between required logs
        consumes: Logs cleared on firing (default: required logs, plus the
                  trigger's own log when trigger_zone is set)
    """

    name: str
    trigger_kind: GestureKind
    trigger_zone: Optional[str] = None
    requirements: Tuple[AgeRequirement, ...] = ()
    ordering: Tuple[OrderingConstraint, ...] = ()
    consumes: Tuple[LogKey, ...] = field(default=())

    def __post_init__(self):
        if not self.name:
            raise ValueError("Rule name cannot be empty")

        object.__setattr__(self, "requirements", tuple(self.requirements))
        object.__setattr__(self, "ordering", tuple(self.ordering))

        required = {req.key for req in self.requirements}
        for constraint in self.ordering:
            for key in (constraint.newer, constraint.older):
                if key not in required:
                    raise ValueError(
                        f"Rule '{self.name}' orders {format_key(key)} "
                        f"which has no age requirement"
                    )

        if not self.consumes:
            consumed = [req.key for req in self.requirements]
            if self.trigger_zone is not None:
                consumed.append((self.trigger_kind, self.trigger_zone))
            object.__setattr__(self, "consumes", tuple(consumed))
        else:
            object.__setattr__(self, "consumes", tuple(self.consumes))

    def is_triggered_by(self, event: ResolvedEvent) -> bool:
        if event.kind != self.trigger_kind:
            return False
        return self.trigger_zone is None or event.zone == self.trigger_zone

    def guard(self, store: EventLogStore, now: datetime) -> bool:
        """
        Evaluate the rule's preconditions against the logs.

        Args:
            store: History to read (never mutated here)
            now: Evaluation instant (the trigger's timestamp)

        Returns:
            True if every requirement and ordering constraint holds
        """
        ages: Dict[LogKey, float] = {}

        for requirement in self.requirements:
            latest, ok = store.peek(requirement.key)
            if not ok:
                return False
            age = (now - latest).total_seconds()
            if not age < requirement.max_age:
                return False
            ages[requirement.key] = age

        for constraint in self.ordering:
            if not ages[constraint.newer] < ages[constraint.older]:
                return False

        return True


def _key(kind: GestureKind, zone: str) -> LogKey:
    return (kind, zone)


MEDICATION_TAKEN = ActivityRule(
    name="MedicationTaken",
    trigger_kind=GestureKind.HAND_TO_MOUTH,
    requirements=(
        AgeRequirement(_key(GestureKind.PICK_UP, "Medication"), 120.0),
    ),
)

EATING_MEAL = ActivityRule(
    name="EatingMeal",
    trigger_kind=GestureKind.HAND_TO_MOUTH,
    trigger_zone="Dining",
    requirements=(
        AgeRequirement(_key(GestureKind.OPEN_DOOR, "Pantry"), 150.0),
        AgeRequirement(_key(GestureKind.PUT_DOWN, "FoodPrep"), 120.0),
        AgeRequirement(_key(GestureKind.POUR, "FoodPrep"), 100.0),
        AgeRequirement(_key(GestureKind.PICK_UP, "FoodPrep"), 60.0),
    ),
    ordering=(
        OrderingConstraint(
            newer=_key(GestureKind.OPEN_DOOR, "Pantry"),
            older=_key(GestureKind.PUT_DOWN, "FoodPrep"),
        ),
        OrderingConstraint(
            newer=_key(GestureKind.PICK_UP, "FoodPrep"),
            older=_key(GestureKind.POUR, "FoodPrep"),
        ),
    ),
)

DEFAULT_RULES: Tuple[ActivityRule, ...] = (MEDICATION_TAKEN, EATING_MEAL)


class ActivityRuleEngine:
    """
    Records resolved gestures and fires activity rules.

    Usage:
        engine = ActivityRuleEngine()
        engine.add_sink(lambda activity: print(activity))

        resolver.subscribe(engine)          # or call directly:
        fired = engine.on_resolved_event(event)

    Thread Safety:
        NOT thread-safe. Feed it from a single evaluation loop.
    """

    def __init__(
        self,
        rules: Sequence[ActivityRule] = DEFAULT_RULES,
        store: Optional[EventLogStore] = None,
        clock: Callable[[], datetime] = datetime.now,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ):
        """
        Args:
            rules: Rules evaluated in order on every trigger
            store: History owned by this engine (new store if None)
            clock: Wall clock for debug ages (rules use the trigger's timestamp)
            min_confidence: Events at or above this confidence are recorded
        """
        names = [rule.name for rule in rules]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate rule names: {names}")
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0.0, 1.0], got {min_confidence}")

        self.rules: Tuple[ActivityRule, ...] = tuple(rules)
        self.store = store if store is not None else EventLogStore()
        self.clock = clock
        self.min_confidence = min_confidence

        self._sinks: List[ActivitySink] = []
        self._fired: Dict[str, int] = defaultdict(int)
        self._recorded = 0

    @property
    def trigger_kinds(self) -> frozenset:
        return frozenset(rule.trigger_kind for rule in self.rules)

    def add_sink(self, sink: ActivitySink) -> None:
        """Register a consumer of emitted ActivityEvents."""
        self._sinks.append(sink)

    def record(self, event: ResolvedEvent) -> bool:
        """
        Push the event's timestamp into its (kind, zone) log.

        Events without a zone are not recorded.

        Returns:
            True if recorded
        """
        if not event.has_zone:
            return False

        key = (event.kind, event.zone)
        try:
            self.store.push(key, event.timestamp)
        except ValueError as e:
            logger.warning(f"Dropped {event}: {e}")
            return False

        self._recorded += 1
        return True

    def evaluate(self, event: ResolvedEvent) -> List[ActivityEvent]:
        """
        Evaluate every rule triggered by the event.

        Returns:
            Activities fired by this event (possibly empty)
        """
        if event.kind not in self.trigger_kinds:
            return []

        now = event.timestamp
        fired: List[ActivityEvent] = []

        for rule in self.rules:
            if not rule.is_triggered_by(event):
                continue
            if not rule.guard(self.store, now):
                continue

            for key in rule.consumes:
                self.store.clear(key)

            activity = ActivityEvent(name=rule.name, timestamp=now)
            self._fired[rule.name] += 1
            fired.append(activity)
            logger.info(f"Activity {activity} (trigger={event})")

        return fired

    def on_resolved_event(self, event: ResolvedEvent) -> List[ActivityEvent]:
        """
        Observer entry point: record, evaluate, dispatch to sinks.

        Events below min_confidence are ignored entirely.
        """
        if event.confidence < self.min_confidence:
            logger.debug(
                f"Ignored {event}: confidence {event.confidence:.2f} < {self.min_confidence:.2f}"
            )
            return []

        self.record(event)
        fired = self.evaluate(event)

        for activity in fired:
            for sink in list(self._sinks):
                sink(activity)

        return fired

    def log_ages(self) -> Dict[str, Optional[float]]:
        """Seconds since the latest entry of every known log (None if empty)."""
        now = self.clock()
        ages: Dict[str, Optional[float]] = {}
        for key in self.store.keys():
            latest, ok = self.store.peek(key)
            ages[format_key(key)] = (now - latest).total_seconds() if ok else None
        return ages

    def reset(self) -> None:
        """Clear all history (rules stay armed)."""
        self.store.clear_all()

    def get_stats(self) -> Dict[str, object]:
        return {
            "recorded": self._recorded,
            "fired": dict(self._fired),
            "logs": self.store.snapshot(),
        }
