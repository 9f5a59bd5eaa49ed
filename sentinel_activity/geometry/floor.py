"""
Floor Correction Module
=======================

Rewrites camera-space joint positions into floor-relative coordinates.

The body tracker reports a floor plane (unit normal fx, fy, fz plus offset fw)
every frame. Rotating the Y/Z plane by the camera tilt and lifting by the
offset puts the origin on the floor beneath the sensor with Y normal to the
floor, so zone boxes stay put regardless of how the sensor is mounted.

    θ  = atan2(fz, fy)
    x' = x
    y' = y·cosθ + z·sinθ + fw
    z' = z·cosθ − y·sinθ

Design:
- Immutable plane + corrector (one corrector per plane refresh)
- Vectorised over several joints at once (numpy)
- fy == 0 leaves the tilt undefined: positions pass through uncorrected
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from sentinel_activity.types import Point3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FloorPlane:
    """Floor plane as reported by the body tracker: unit normal + offset."""

    x: float
    y: float
    z: float
    w: float

    @classmethod
    def identity(cls) -> "FloorPlane":
        """Level sensor at floor height (no rotation, no offset)."""
        return cls(x=0.0, y=1.0, z=0.0, w=0.0)

    @property
    def tilt_defined(self) -> bool:
        if not all(math.isfinite(v) for v in (self.x, self.y, self.z, self.w)):
            return False
        return self.y != 0.0

    @property
    def tilt_radians(self) -> Optional[float]:
        """Camera tilt about the X axis, None when undefined."""
        if not self.tilt_defined:
            return None
        return math.atan2(self.z, self.y)


class FloorCorrector:
    """
    Applies a floor-plane correction to joint positions.

    Usage:
        corrector = FloorCorrector(FloorPlane(x=0.0, y=0.97, z=0.24, w=0.9))
        spine = corrector.correct((0.1, -0.2, 2.5))
    """

    def __init__(self, plane: FloorPlane):
        self.plane = plane
        theta = plane.tilt_radians

        if theta is None:
            logger.warning(
                f"Floor plane tilt undefined ({plane}); "
                f"joint positions will not be floor-corrected"
            )
            self._rotation = None
            self._offset = None
        else:
            cos_t, sin_t = math.cos(theta), math.sin(theta)
            # Row vectors: corrected = raw @ rotation.T + offset
            self._rotation = np.array([
                [1.0, 0.0, 0.0],
                [0.0, cos_t, sin_t],
                [0.0, -sin_t, cos_t],
            ])
            self._offset = np.array([0.0, plane.w, 0.0])

    @property
    def is_passthrough(self) -> bool:
        """True when the plane could not be used and positions are returned raw."""
        return self._rotation is None

    def correct(self, point: Point3) -> Point3:
        """Correct a single position."""
        return self.correct_many([point])[0]

    def correct_many(self, points: Sequence[Point3]) -> List[Point3]:
        """
        Correct several positions in one pass.

        Args:
            points: Raw (x, y, z) camera-space positions

        Returns:
            Floor-relative positions, same order
        """
        if len(points) == 0:
            return []

        raw = np.asarray(points, dtype=float).reshape(-1, 3)
        if self.is_passthrough:
            corrected = raw
        else:
            corrected = raw @ self._rotation.T + self._offset

        return [tuple(float(c) for c in row) for row in corrected]

    def __repr__(self) -> str:
        return f"FloorCorrector(plane={self.plane}, passthrough={self.is_passthrough})"
