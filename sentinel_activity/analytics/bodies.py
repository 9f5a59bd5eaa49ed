"""
Body Registry Module
====================

Per-body state keyed by tracking identifier.

Design:
- One BodyState bundle per tracking id (replaces parallel per-slot arrays)
- Slot index -> tracking id map, so an untracked slot clears its last occupant
- Clearing a body touches its winning-gesture state only, never history
- Lock + snapshot: written by the evaluation loop, read by status commands
"""

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Optional

from sentinel_activity.types import NO_GESTURE, NO_ZONE


@dataclass(frozen=True)
class BodyState:
    """Debug view of one body: current zone and resolved label."""

    tracking_id: int
    body_id: int
    tracked: bool = True
    label: str = NO_GESTURE
    zone: str = NO_ZONE
    confidence: float = 0.0
    last_seen: Optional[datetime] = None

    def cleared(self) -> "BodyState":
        return replace(self, tracked=False, label=NO_GESTURE, zone=NO_ZONE, confidence=0.0)

    def to_dict(self) -> dict:
        return {
            "tracking_id": self.tracking_id,
            "body_id": self.body_id,
            "tracked": self.tracked,
            "label": self.label,
            "zone": self.zone,
            "confidence": self.confidence,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
        }


class BodyRegistry:
    """
    Thread-safe map of tracking id -> BodyState.

    Usage:
        registry = BodyRegistry()
        registry.update(tracking_id=72057594037, body_id=2, label="PickUp",
                        zone="Pantry", confidence=0.8, timestamp=now)
        registry.mark_slot_untracked(2)     # tracking id 0 arrived on slot 2
        registry.snapshot()
    """

    def __init__(self):
        self._bodies: Dict[int, BodyState] = {}
        self._slots: Dict[int, int] = {}
        self._lock = threading.Lock()

    def update(
        self,
        tracking_id: int,
        body_id: int,
        label: str = NO_GESTURE,
        zone: str = NO_ZONE,
        confidence: float = 0.0,
        timestamp: Optional[datetime] = None,
    ) -> BodyState:
        """Record this frame's result for a tracked body."""
        state = BodyState(
            tracking_id=tracking_id,
            body_id=body_id,
            tracked=True,
            label=label,
            zone=zone,
            confidence=confidence,
            last_seen=timestamp,
        )
        with self._lock:
            self._bodies[tracking_id] = state
            self._slots[body_id] = tracking_id
        return state

    def mark_untracked(self, tracking_id: int) -> Optional[BodyState]:
        """
        Clear the winning-gesture state of one body.

        Returns:
            The cleared state, or None for an unknown tracking id
        """
        with self._lock:
            state = self._bodies.get(tracking_id)
            if state is None:
                return None
            state = state.cleared()
            self._bodies[tracking_id] = state
            return state

    def mark_slot_untracked(self, body_id: int) -> Optional[BodyState]:
        """Clear whichever body last occupied a sensor slot."""
        with self._lock:
            tracking_id = self._slots.get(body_id)
        if tracking_id is None:
            return None
        return self.mark_untracked(tracking_id)

    def is_tracked(self, tracking_id: int) -> bool:
        with self._lock:
            state = self._bodies.get(tracking_id)
            return state is not None and state.tracked

    def get(self, tracking_id: int) -> Optional[BodyState]:
        with self._lock:
            return self._bodies.get(tracking_id)

    def snapshot(self) -> Dict[int, BodyState]:
        """Copy of all body states (safe to iterate without the lock)."""
        with self._lock:
            return dict(self._bodies)

    def prune(self, active_tracking_ids: set, drop_untracked: bool = False) -> int:
        """
        Forget bodies not in the active set.

        Args:
            active_tracking_ids: Tracking ids to keep
            drop_untracked: Also forget cleared bodies in the active set

        Returns:
            Number of bodies forgotten
        """
        with self._lock:
            stale = {
                tracking_id
                for tracking_id, state in self._bodies.items()
                if tracking_id not in active_tracking_ids
                or (drop_untracked and not state.tracked)
            }
            for tracking_id in stale:
                del self._bodies[tracking_id]
            self._slots = {
                slot: tid for slot, tid in self._slots.items() if tid not in stale
            }
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._bodies.clear()
            self._slots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._bodies)
