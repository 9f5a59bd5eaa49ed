"""
Zone Classifier Module
======================

Stateless classification - applies the zone table to a body's joints.

Design:
- Zone table and per-kind priority lists are data, injected at construction
- First matching candidate in the kind's list wins (overlaps resolved by order)
- Candidate boxes (with per-kind overrides) resolved once, at construction
- Thread-safe (no mutations after __init__)
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from sentinel_activity.geometry.shapes import JointProbe, Zone, ZoneCandidate
from sentinel_activity.types import GestureKind, NO_ZONE, Point3


class ZoneClassifier:
    """
    Maps a gesture kind and a body's floor-relative joints to a zone name.

    Usage:
        classifier = ZoneClassifier(DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES)
        zone = classifier.classify(
            GestureKind.PICK_UP,
            hands=[left_tip, right_tip],
            body=spine_mid,
        )
    """

    def __init__(
        self,
        zones: Mapping[str, Zone],
        priorities: Mapping[GestureKind, Sequence[ZoneCandidate]],
    ):
        """
        Args:
            zones: Zone table keyed by name
            priorities: Ordered candidate list per gesture kind

        Raises:
            ValueError: If a candidate references an unknown zone
        """
        self.zones: Dict[str, Zone] = dict(zones)
        for name, zone in self.zones.items():
            if name != zone.name:
                raise ValueError(f"Zone table key '{name}' does not match zone name '{zone.name}'")

        self._resolved: Dict[GestureKind, List[Tuple[ZoneCandidate, Zone]]] = {}
        for kind, candidates in priorities.items():
            resolved = []
            for candidate in candidates:
                if candidate.zone not in self.zones:
                    raise ValueError(
                        f"Priority list for {kind.value} references unknown zone "
                        f"'{candidate.zone}'. Known zones: {sorted(self.zones)}"
                    )
                resolved.append((candidate, candidate.resolve(self.zones[candidate.zone])))
            self._resolved[kind] = resolved

    def candidates_for(self, kind: GestureKind) -> List[ZoneCandidate]:
        """Priority list configured for a kind (empty if none)."""
        return [candidate for candidate, _ in self._resolved.get(kind, [])]

    def classify(
        self,
        kind: GestureKind,
        hands: Sequence[Optional[Point3]] = (),
        body: Optional[Point3] = None,
    ) -> str:
        """
        Return the first zone of the kind's priority list that contains a probed joint.

        Args:
            kind: Resolved gesture kind
            hands: Candidate hand points (e.g. left and right fingertips);
                   missing joints may be passed as None
            body: Body-centre point (spine midpoint), optional

        Returns:
            Zone name, or "None" if no candidate zone matches
        """
        hand_points = [p for p in hands if p is not None]
        body_points = [body] if body is not None else []

        for candidate, zone in self._resolved.get(kind, []):
            points = hand_points if candidate.probe == JointProbe.HANDS else body_points
            if any(zone.contains_point(point) for point in points):
                return zone.name

        return NO_ZONE

    def __repr__(self) -> str:
        return f"ZoneClassifier(zones={len(self.zones)}, kinds={len(self._resolved)})"
