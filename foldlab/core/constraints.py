"""Named geometric constraints over a triangle and a small manager for them."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import EPS_DEFAULT
from .geometry import (
    Point, Triangle, measure_triangle, is_equal, is_angle_equal,
    distance_point_to_segment,
)

__all__ = [
    'ConstraintType', 'GeometricConstraint', 'create_constraint',
    'check_equal_sides', 'check_equal_angles', 'check_angle_bisector',
    'check_perpendicular', 'check_perpendicular_bisector', 'validate_constraint',
    'ConstraintManager', 'CONSTRAINT_TEMPLATES',
]

PointPair = Tuple[Point, Point]


class ConstraintType(str, Enum):
    EQUAL_SIDES = 'equal_sides'
    EQUAL_ANGLES = 'equal_angles'
    ANGLE_BISECTOR = 'angle_bisector'
    PERPENDICULAR_BISECTOR = 'perpendicular_bisector'


@dataclass
class GeometricConstraint:
    id: str
    type: ConstraintType
    elements: List[str] = field(default_factory=list)
    satisfied: bool = False
    tolerance: float = EPS_DEFAULT


def create_constraint(id: str, type: ConstraintType, elements: Sequence[str],
                      tolerance: float = EPS_DEFAULT) -> GeometricConstraint:
    return GeometricConstraint(id=id, type=ConstraintType(type), elements=list(elements),
                               tolerance=tolerance)


def check_equal_sides(triangle: Triangle, sides: Tuple[str, str], tolerance: float = EPS_DEFAULT) -> bool:
    values = measure_triangle(triangle).sides
    return is_equal(values[sides[0]], values[sides[1]], tolerance)


def check_equal_angles(triangle: Triangle, angles: Tuple[str, str], tolerance: float = EPS_DEFAULT) -> bool:
    values = measure_triangle(triangle).angles
    return is_angle_equal(values[angles[0]], values[angles[1]], tolerance)


def check_angle_bisector(triangle: Triangle, vertex: str, bisector_point: Point,
                         tolerance: float = EPS_DEFAULT) -> bool:
    """True when A-bisector_point splits the apex angle into two equal halves.

    Only the apex ``A`` is supported; any other vertex label is rejected.
    """
    if vertex != 'A':
        return False
    left = Triangle(triangle.A, triangle.B, bisector_point)
    right = Triangle(triangle.A, bisector_point, triangle.C)
    return is_angle_equal(measure_triangle(left).angles['A'],
                          measure_triangle(right).angles['A'], tolerance)


def check_perpendicular(line1: PointPair, line2: PointPair, tolerance: float = EPS_DEFAULT) -> bool:
    v1 = line1[1].as_array() - line1[0].as_array()
    v2 = line2[1].as_array() - line2[0].as_array()
    return abs(float(np.dot(v1, v2))) < tolerance


def check_perpendicular_bisector(segment: PointPair, bisector: PointPair,
                                 tolerance: float = EPS_DEFAULT) -> bool:
    start, end = segment
    midpoint = Point((start.x + end.x) / 2.0, (start.y + end.y) / 2.0)
    through_midpoint = distance_point_to_segment(midpoint, bisector[0], bisector[1]) < tolerance
    return check_perpendicular(segment, bisector, tolerance) and through_midpoint


def validate_constraint(constraint: GeometricConstraint, triangle: Triangle, *,
                        bisector_point: Optional[Point] = None,
                        segment: Optional[PointPair] = None,
                        bisector: Optional[PointPair] = None) -> bool:
    """Evaluate one constraint; missing auxiliary data makes it unsatisfied."""
    tol = constraint.tolerance
    elems = constraint.elements
    if constraint.type is ConstraintType.EQUAL_SIDES:
        return len(elems) >= 2 and check_equal_sides(triangle, (elems[0], elems[1]), tol)
    if constraint.type is ConstraintType.EQUAL_ANGLES:
        return len(elems) >= 2 and check_equal_angles(triangle, (elems[0], elems[1]), tol)
    if constraint.type is ConstraintType.ANGLE_BISECTOR:
        if not elems or bisector_point is None:
            return False
        return check_angle_bisector(triangle, elems[0], bisector_point, tol)
    if constraint.type is ConstraintType.PERPENDICULAR_BISECTOR:
        if segment is None or bisector is None:
            return False
        return check_perpendicular_bisector(segment, bisector, tol)
    raise ValueError(f"Unknown constraint type: {constraint.type}")


class ConstraintManager:
    """Keeps constraints by id and records whether each held at the last validation."""

    def __init__(self) -> None:
        self._constraints: Dict[str, GeometricConstraint] = {}

    def add_constraint(self, constraint: GeometricConstraint) -> None:
        self._constraints[constraint.id] = constraint

    def remove_constraint(self, constraint_id: str) -> None:
        self._constraints.pop(constraint_id, None)

    def get_constraint(self, constraint_id: str) -> Optional[GeometricConstraint]:
        return self._constraints.get(constraint_id)

    def get_all_constraints(self) -> List[GeometricConstraint]:
        return list(self._constraints.values())

    def validate_all(self, triangle: Triangle, **extra) -> Dict[str, bool]:
        results: Dict[str, bool] = {}
        for cid, constraint in self._constraints.items():
            ok = validate_constraint(constraint, triangle, **extra)
            constraint.satisfied = ok
            results[cid] = ok
        return results

    def get_satisfied_constraints(self) -> List[GeometricConstraint]:
        return [c for c in self._constraints.values() if c.satisfied]

    def get_unsatisfied_constraints(self) -> List[GeometricConstraint]:
        return [c for c in self._constraints.values() if not c.satisfied]

    def clear(self) -> None:
        self._constraints.clear()

    def __len__(self) -> int:
        return len(self._constraints)


_TEMPLATES = {
    'ISOSCELES_EQUAL_SIDES': GeometricConstraint(
        'isosceles-equal-sides', ConstraintType.EQUAL_SIDES, ['AB', 'AC']),
    'ISOSCELES_EQUAL_BASE_ANGLES': GeometricConstraint(
        'isosceles-equal-base-angles', ConstraintType.EQUAL_ANGLES, ['B', 'C']),
    'APEX_ANGLE_BISECTOR': GeometricConstraint(
        'apex-angle-bisector', ConstraintType.ANGLE_BISECTOR, ['A']),
    'PERPENDICULAR_BISECTOR_BASE': GeometricConstraint(
        'perpendicular-bisector-base', ConstraintType.PERPENDICULAR_BISECTOR, ['BC', 'AD']),
}


def _template(name: str):
    def build(tolerance: float = EPS_DEFAULT) -> GeometricConstraint:
        base = _TEMPLATES[name]
        return replace(base, elements=list(base.elements), tolerance=tolerance)
    build.__name__ = name.lower()
    return build


# Fresh constraint per call so managers never share mutable records
CONSTRAINT_TEMPLATES = {name: _template(name) for name in _TEMPLATES}
