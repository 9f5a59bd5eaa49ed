"""
Geometry Layer
==============

Bounded Context: Spatial queries over floor-relative joint positions.

Responsibilities:
- Zone representation (immutable tolerance boxes)
- Floor-plane correction of raw joints
- Per-kind zone classification
- NO state, NO history, NO rules

Design Philosophy:
- Pure functions where possible
- Immutable data structures
- Fail-fast validation
- Zero side effects
"""

from sentinel_activity.geometry.shapes import JointProbe, Zone, ZoneCandidate
from sentinel_activity.geometry.floor import FloorCorrector, FloorPlane
from sentinel_activity.geometry.detector import ZoneClassifier
from sentinel_activity.geometry.layout import DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES

__all__ = [
    "JointProbe",
    "Zone",
    "ZoneCandidate",
    "FloorCorrector",
    "FloorPlane",
    "ZoneClassifier",
    "DEFAULT_ZONES",
    "DEFAULT_ZONE_PRIORITIES",
]
