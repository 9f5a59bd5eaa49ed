"""
Activity Pipeline Module
========================

Bounded Context: Per-frame orchestration of the inference core.

Design:
- Orchestrator only: geometry, resolution and rules live in their own modules
- Dependencies injected (classifier, resolver, engine, registry)
- Resolver -> engine wiring through the observer interface
- One call per frame; NOT thread-safe (the service serialises frames)
- Bodies cleared or absent since the previous frame are forgotten at the next
  frame, keeping the registry bounded by the sensor slot count

Per body, per frame:
    untracked / missing joints  -> clear or skip, no event
    joints -> FloorCorrector -> floor-relative hands + spine
    observations -> GestureLabelResolver -> winner
    winner + joints -> ZoneClassifier -> ResolvedEvent -> ActivityRuleEngine
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from sentinel_activity.analytics.bodies import BodyRegistry, BodyState
from sentinel_activity.analytics.resolver import GestureLabelResolver
from sentinel_activity.analytics.rules import ActivityRuleEngine
from sentinel_activity.geometry.detector import ZoneClassifier
from sentinel_activity.geometry.floor import FloorCorrector, FloorPlane
from sentinel_activity.types import (
    ActivityEvent,
    BodyFrame,
    GestureKind,
    GestureObservation,
    NO_GESTURE,
    NO_ZONE,
)

logger = logging.getLogger(__name__)


class ActivityPipeline:
    """
    Turns body frames and gesture observations into activity events.

    Usage:
        pipeline = ActivityPipeline(
            classifier=ZoneClassifier(DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES),
            resolver=GestureLabelResolver(),
            engine=ActivityRuleEngine(),
        )

        fired = pipeline.process_frame(bodies, observations, floor=plane)
        pipeline.tracking_lost(tracking_id)
    """

    def __init__(
        self,
        classifier: ZoneClassifier,
        resolver: GestureLabelResolver,
        engine: ActivityRuleEngine,
        registry: Optional[BodyRegistry] = None,
        floor: Optional[FloorPlane] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.classifier = classifier
        self.resolver = resolver
        self.engine = engine
        self.registry = registry if registry is not None else BodyRegistry()
        self.clock = clock

        self._corrector = FloorCorrector(floor if floor is not None else FloorPlane.identity())
        self._fired: List[ActivityEvent] = []
        self._seen: Set[int] = set()

        self.resolver.subscribe(self.engine)
        self.engine.add_sink(self._fired.append)

    @property
    def floor(self) -> FloorPlane:
        return self._corrector.plane

    def update_floor(self, plane: FloorPlane) -> FloorCorrector:
        """Install a new floor plane (no-op when unchanged)."""
        if plane != self._corrector.plane:
            self._corrector = FloorCorrector(plane)
        return self._corrector

    def process_frame(
        self,
        bodies: Sequence[BodyFrame],
        observations: Iterable[GestureObservation],
        floor: Optional[FloorPlane] = None,
    ) -> List[ActivityEvent]:
        """
        Run one frame through the core.

        Args:
            bodies: Joint frames of every body slot reported this frame
            observations: Gesture engine results, keyed by tracking id
            floor: Floor plane for this frame (previous plane kept if None)

        Returns:
            Activities fired during this frame
        """
        if floor is not None:
            self.update_floor(floor)

        by_body: Dict[int, List[GestureObservation]] = defaultdict(list)
        for observation in observations:
            by_body[observation.body_id].append(observation)

        forgotten = self.registry.prune(self._seen, drop_untracked=True)
        if forgotten:
            logger.debug(f"Forgot {forgotten} bodies no longer tracked")
        self._seen = {frame.tracking_id for frame in bodies if frame.tracking_id}

        self._fired.clear()
        for frame in bodies:
            self._process_body(frame, by_body.get(frame.tracking_id, []))

        fired = list(self._fired)
        self._fired.clear()
        return fired

    def _process_body(self, frame: BodyFrame, observations: List[GestureObservation]) -> None:
        if not frame.is_tracked:
            if frame.tracking_id:
                self.registry.mark_untracked(frame.tracking_id)
            else:
                self.registry.mark_slot_untracked(frame.body_id)
            return

        if not frame.has_joints:
            logger.debug(f"Body slot {frame.body_id} has no joints this frame, skipped")
            return

        hands, body = self._correct_joints(frame)

        def locate(kind: GestureKind) -> str:
            return self.classifier.classify(kind, hands=hands, body=body)

        event = self.resolver.resolve_event(frame.tracking_id, observations, locate)

        if event is None:
            self.registry.update(
                frame.tracking_id,
                frame.body_id,
                label=NO_GESTURE,
                zone=NO_ZONE,
                timestamp=self.clock(),
            )
        else:
            self.registry.update(
                frame.tracking_id,
                frame.body_id,
                label=event.kind.value,
                zone=event.zone,
                confidence=event.confidence,
                timestamp=event.timestamp,
            )

    def _correct_joints(self, frame: BodyFrame):
        raw = [frame.hand_left, frame.hand_right, frame.spine_mid]
        present = [point for point in raw if point is not None]
        corrected = iter(self._corrector.correct_many(present))
        left, right, spine = (next(corrected) if point is not None else None for point in raw)
        return [left, right], spine

    def tracking_lost(self, tracking_id: int) -> Optional[BodyState]:
        """Stop event generation for a body until it is tracked again."""
        state = self.registry.mark_untracked(tracking_id)
        logger.info(f"Tracking lost for body {tracking_id}")
        return state

    def reset_history(self) -> None:
        self.engine.reset()

    def debug_snapshot(self) -> dict:
        """Per-body zone + label, log sizes and ages."""
        return {
            "bodies": {
                tracking_id: state.to_dict()
                for tracking_id, state in self.registry.snapshot().items()
            },
            "logs": self.engine.store.snapshot(),
            "ages": self.engine.log_ages(),
        }
