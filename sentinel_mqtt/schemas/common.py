"""
Common Schema Types
===================

Bounded Context: Shared Data Structures

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() / from_dict() for JSON
- Validation: constructors validate invariants, from_dict raises ValueError

Types:
- Vector3: Joint position in metres
- FloorVector: Floor plane (unit normal + offset)
- Timestamp: ISO 8601 timestamp wrapper
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Tuple

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class Vector3:
    """
    Camera-space joint position (metres).

    Example:
        >>> Vector3(x=1.11, y=0.86, z=1.68).to_dict()
        {'x': 1.11, 'y': 0.86, 'z': 1.68}
    """
    x: float
    y: float
    z: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in (self.x, self.y, self.z)):
            raise ValueError(f"Vector3 must be finite, got ({self.x}, {self.y}, {self.z})")

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Vector3':
        try:
            return cls(x=float(data['x']), y=float(data['y']), z=float(data['z']))
        except KeyError as e:
            raise ValueError(f"Missing required Vector3 field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Vector3 data: {e}")


@dataclass(frozen=True)
class FloorVector:
    """Floor plane from the body tracker: normal (x, y, z) and offset w."""
    x: float
    y: float
    z: float
    w: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z, 'w': self.w}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FloorVector':
        try:
            return cls(
                x=float(data['x']),
                y=float(data['y']),
                z=float(data['z']),
                w=float(data['w'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required FloorVector field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid FloorVector data: {e}")


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Timestamps with a UTC offset are converted to naive local time so a
    stream may mix both forms.

    Example:
        >>> Timestamp.from_datetime(datetime(2026, 3, 2, 7, 41, 12)).value
        '2026-03-02T07:41:12'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        return cls(value=datetime.now().isoformat())

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        return cls(value=dt.isoformat())

    def to_datetime(self) -> datetime:
        """
        Naive local datetime for this timestamp.

        Raises:
            ValueError: If timestamp format invalid
        """
        try:
            dt = datetime.fromisoformat(self.value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e
        if dt.utcoffset() is not None:
            dt = dt.astimezone().replace(tzinfo=None)
        return dt

    def to_dict(self) -> str:
        return self.value
