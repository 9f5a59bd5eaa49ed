"""
Gesture Label Resolver Module
=============================

Collapses a frame's per-kind confidences for one body into one winning label.

Design:
- Per-kind thresholds are data; kinds without a threshold never win
- Deterministic winner policy (never depends on collection iteration order):
    highest_confidence: best passing score, ties -> earlier GestureKind
    last_declared:      last passing kind in GestureKind declaration order
- Observers are notified with the ResolvedEvent instead of polling
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from sentinel_activity.types import (
    GestureKind,
    GestureObservation,
    NO_GESTURE,
    ResolvedEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.05

DEFAULT_THRESHOLDS: Dict[GestureKind, float] = {kind: DEFAULT_THRESHOLD for kind in GestureKind}

_DECLARATION_ORDER = {kind: index for index, kind in enumerate(GestureKind)}


class WinnerPolicy(str, Enum):
    HIGHEST_CONFIDENCE = "highest_confidence"
    LAST_DECLARED = "last_declared"


class ResolvedEventObserver(Protocol):
    """Anything reacting to resolved gestures (the rule engine, a debug tap)."""

    def on_resolved_event(self, event: ResolvedEvent) -> object:
        ...


Observer = Union[ResolvedEventObserver, Callable[[ResolvedEvent], object]]


class GestureLabelResolver:
    """
    Resolves the single winning gesture for one body per frame.

    Usage:
        resolver = GestureLabelResolver()
        resolver.subscribe(engine)

        event = resolver.resolve_event(
            body_id=7,
            observations=frame_results,
            locate=lambda kind: classifier.classify(kind, hands, body),
        )
    """

    def __init__(
        self,
        thresholds: Optional[Mapping[GestureKind, float]] = None,
        policy: WinnerPolicy = WinnerPolicy.HIGHEST_CONFIDENCE,
        require_detected: bool = False,
    ):
        """
        Args:
            thresholds: Confidence cut-off per kind (strictly greater wins)
            policy: Winner selection when several kinds pass
            require_detected: Also require the engine's own detected flag
        """
        self.thresholds: Dict[GestureKind, float] = dict(
            DEFAULT_THRESHOLDS if thresholds is None else thresholds
        )
        for kind, threshold in self.thresholds.items():
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(
                    f"Threshold for {kind.value} must be in [0.0, 1.0], got {threshold}"
                )
        self.policy = WinnerPolicy(policy)
        self.require_detected = require_detected
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> None:
        """Register an observer (object with on_resolved_event, or a callable)."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def passes(self, observation: GestureObservation) -> bool:
        threshold = self.thresholds.get(observation.kind)
        if threshold is None:
            return False
        if self.require_detected and not observation.detected:
            return False
        return observation.confidence > threshold

    def resolve(self, observations: Iterable[GestureObservation]) -> Optional[GestureObservation]:
        """
        Pick the winning observation of a frame.

        Returns:
            The winning observation, or None when no kind passes its threshold
        """
        passing = [obs for obs in observations if self.passes(obs)]
        if not passing:
            return None

        if self.policy == WinnerPolicy.LAST_DECLARED:
            return max(passing, key=lambda obs: _DECLARATION_ORDER[obs.kind])

        # max() keeps the first of equal keys, so sort by declaration order first
        passing.sort(key=lambda obs: _DECLARATION_ORDER[obs.kind])
        return max(passing, key=lambda obs: obs.confidence)

    def label(self, observations: Iterable[GestureObservation]) -> str:
        """Winning kind's wire name, or "No Gesture"."""
        winner = self.resolve(observations)
        return winner.kind.value if winner is not None else NO_GESTURE

    def resolve_event(
        self,
        body_id: int,
        observations: Iterable[GestureObservation],
        locate: Callable[[GestureKind], str],
    ) -> Optional[ResolvedEvent]:
        """
        Resolve the frame and notify observers when a winner exists.

        Args:
            body_id: Tracking identifier of the body
            observations: This frame's results for that body
            locate: Zone lookup for the winning kind

        Returns:
            The ResolvedEvent, or None when nothing passed
        """
        winner = self.resolve(observations)
        if winner is None:
            return None

        event = ResolvedEvent(
            body_id=body_id,
            kind=winner.kind,
            zone=locate(winner.kind),
            timestamp=winner.timestamp,
            confidence=winner.confidence,
        )
        logger.debug(f"Resolved {event} confidence={winner.confidence:.2f}")

        for observer in list(self._observers):
            if hasattr(observer, "on_resolved_event"):
                observer.on_resolved_event(event)
            else:
                observer(event)

        return event
