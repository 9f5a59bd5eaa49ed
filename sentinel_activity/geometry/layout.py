"""
Default kitchen layout used when no zone table is configured.

Anchors are floor-relative metres measured in the reference kitchen;
retune through the processor YAML rather than editing this file.
"""

from typing import Dict, List

from sentinel_activity.geometry.shapes import JointProbe, Zone, ZoneCandidate
from sentinel_activity.types import GestureKind

DEFAULT_ZONES: Dict[str, Zone] = {
    zone.name: zone
    for zone in (
        # Medication shelf is small and at hand height: fingertips, all three axes
        Zone("Medication", (1.11, 0.86, 1.68), 0.1, 0.1, uses_y=True, tolerance_y=0.1),
        Zone("Pantry", (-0.45, 1.25, 1.40), 0.15, 0.3),
        Zone("Fridge", (1.75, 1.15, 4.40), 0.5, 0.5),
        Zone("BowlCupboard", (0.75, 1.10, 2.50), 0.15, 0.3),
        Zone("FoodPrep", (-0.10, 1.22, 2.83), 0.15, 0.3),
        Zone("Dining", (-0.31, 0.78, 1.98), 0.15, 0.3),
    )
}

DEFAULT_ZONE_PRIORITIES: Dict[GestureKind, List[ZoneCandidate]] = {
    GestureKind.PICK_UP: [
        ZoneCandidate("Medication", probe=JointProbe.HANDS),
        ZoneCandidate("Pantry"),
        ZoneCandidate("Fridge"),
        ZoneCandidate("BowlCupboard"),
        ZoneCandidate("FoodPrep"),
    ],
    GestureKind.PUT_DOWN: [
        ZoneCandidate("FoodPrep", tolerance_x=0.4, tolerance_z=0.4),
    ],
    GestureKind.OPEN_DOOR: [
        ZoneCandidate("Pantry"),
        ZoneCandidate("Fridge"),
        ZoneCandidate("BowlCupboard"),
    ],
    GestureKind.HAND_TO_MOUTH: [
        ZoneCandidate("Dining"),
    ],
    GestureKind.POUR: [
        ZoneCandidate("FoodPrep"),
    ],
}
