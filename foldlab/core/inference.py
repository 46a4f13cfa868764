"""Small deductions on triangles: third angle, label correspondences, samples."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .constants import STRAIGHT_ANGLE_DEG
from .geometry import Point, Triangle

__all__ = [
    'ThirdAngleResult', 'calculate_third_angle',
    'find_corresponding_parts', 'create_right_triangles_pair',
]


@dataclass(frozen=True)
class ThirdAngleResult:
    ok: bool
    angle: Optional[float] = None
    error: Optional[str] = None


def calculate_third_angle(angle_a: float, angle_b: float) -> ThirdAngleResult:
    """Third interior angle from two known ones (degrees).

    Invalid inputs (negative angles, or a sum of at least 180) produce a
    failed result carrying a message rather than an exception.
    """
    if angle_a < 0 or angle_b < 0:
        return ThirdAngleResult(ok=False, error='angles must be non-negative')
    if angle_a + angle_b >= STRAIGHT_ANGLE_DEG:
        return ThirdAngleResult(ok=False, error='the two angles must sum to less than 180 degrees')
    return ThirdAngleResult(ok=True, angle=STRAIGHT_ANGLE_DEG - angle_a - angle_b)


_VERTEX_MAP = {'A': 'D', 'B': 'E', 'C': 'F'}


def find_corresponding_parts(congruence_type: str) -> Dict[str, Dict[str, str]]:
    """Correspondence between triangle ABC and DEF for a congruence result.

    The evaluator only compares like-labelled parts, so every criterion
    implies the same mapping A<->D, B<->E, C<->F.
    """
    from .congruence import CongruenceType
    CongruenceType(congruence_type)  # raises ValueError for unknown criteria
    sides = {}
    for first, second in (('A', 'B'), ('B', 'C'), ('C', 'A')):
        sides[first + second] = _VERTEX_MAP[first] + _VERTEX_MAP[second]
    return {
        'vertices': dict(_VERTEX_MAP),
        'sides': sides,
        'angles': dict(_VERTEX_MAP),
    }


def create_right_triangles_pair() -> Tuple[Triangle, Triangle]:
    """Two congruent right triangles (right angle at A), translated apart."""
    t1 = Triangle(Point(1.0, 1.0), Point(1.0, 2.5), Point(3.0, 1.0))
    t2 = Triangle(Point(5.0, 1.0), Point(5.0, 2.5), Point(7.0, 1.0))
    return t1, t2
