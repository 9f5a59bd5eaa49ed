"""
Zone Shapes Module
==================

Pure spatial representations - NO state, NO side effects.

Design:
- Immutable zones (frozen dataclass pattern)
- Axis-aligned tolerance box around an anchor, each axis tested independently
- Y axis optional (most zones are floor footprints, some are shelf-height boxes)
- Thread-safe by design (immutability)
"""

import numpy as np
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from sentinel_activity.types import Point3, validate_point


class JointProbe(str, Enum):
    """Which joints of a body are tested against a zone."""

    HANDS = "hands"   # left/right fingertips
    BODY = "body"     # spine midpoint


@dataclass(frozen=True)
class Zone:
    """
    Named 3D region defined by a tolerance box around an anchor point.

    Coordinates are floor-relative (see FloorCorrector): origin on the floor
    beneath the sensor, Y normal to the floor.

    Attributes:
        name: Zone label used as the history key (e.g. "FoodPrep")
        anchor: (x, y, z) centre of the box in metres
        tolerance_x: Half-width along X
        tolerance_z: Half-depth along Z
        uses_y: Whether the Y axis is tested at all
        tolerance_y: Half-height along Y (only when uses_y)

    Example:
        >>> shelf = Zone("Medication", (1.11, 0.86, 1.68), 0.1, 0.1,
        ...              uses_y=True, tolerance_y=0.1)
        >>> shelf.contains_point((1.15, 0.9, 1.7))
        True
    """

    name: str
    anchor: Point3
    tolerance_x: float
    tolerance_z: float
    uses_y: bool = False
    tolerance_y: float = 0.0

    def __post_init__(self):
        """Validate tolerances and precompute the box as arrays."""
        if not self.name:
            raise ValueError("Zone name cannot be empty")

        object.__setattr__(self, "anchor", validate_point(self.anchor, f"Zone '{self.name}' anchor"))

        if self.tolerance_x <= 0 or self.tolerance_z <= 0:
            raise ValueError(
                f"Zone '{self.name}' tolerances must be positive, "
                f"got x={self.tolerance_x}, z={self.tolerance_z}"
            )
        if self.uses_y and self.tolerance_y <= 0:
            raise ValueError(
                f"Zone '{self.name}' tests Y but tolerance_y={self.tolerance_y}"
            )

        # Untested axis gets an infinite tolerance so one comparison covers all axes
        half_extent = np.array([
            self.tolerance_x,
            self.tolerance_y if self.uses_y else np.inf,
            self.tolerance_z,
        ])
        object.__setattr__(self, "_anchor", np.array(self.anchor, dtype=float))
        object.__setattr__(self, "_half_extent", half_extent)

    def contains_point(self, point: Point3) -> bool:
        """
        Check whether a point lies inside the box on every tested axis.

        Bounds are inclusive.

        Args:
            point: (x, y, z) floor-relative coordinates

        Returns:
            True if inside, False otherwise
        """
        offset = np.abs(np.asarray(point, dtype=float) - self._anchor)
        return bool(np.all(offset <= self._half_extent))

    def with_tolerances(
        self,
        tolerance_x: Optional[float] = None,
        tolerance_z: Optional[float] = None,
        tolerance_y: Optional[float] = None,
    ) -> "Zone":
        """Return a copy with some tolerances overridden (None keeps the original)."""
        if tolerance_x is None and tolerance_z is None and tolerance_y is None:
            return self
        return replace(
            self,
            tolerance_x=self.tolerance_x if tolerance_x is None else tolerance_x,
            tolerance_z=self.tolerance_z if tolerance_z is None else tolerance_z,
            tolerance_y=self.tolerance_y if tolerance_y is None else tolerance_y,
        )


@dataclass(frozen=True)
class ZoneCandidate:
    """
    One entry of a gesture kind's zone priority list.

    Attributes:
        zone: Name of a Zone in the zone table
        probe: Joints tested against the zone
        tolerance_x, tolerance_z, tolerance_y: Per-kind overrides (None = zone's own)
    """

    zone: str
    probe: JointProbe = JointProbe.BODY
    tolerance_x: Optional[float] = None
    tolerance_z: Optional[float] = None
    tolerance_y: Optional[float] = None

    def resolve(self, zone: Zone) -> Zone:
        """Apply this candidate's overrides to the referenced zone."""
        return zone.with_tolerances(
            tolerance_x=self.tolerance_x,
            tolerance_z=self.tolerance_z,
            tolerance_y=self.tolerance_y,
        )
