"""Geometry primitives and tolerance comparisons for triangles in the plane.

Points are plain frozen records in abstract plane units; rendering scales are
applied by the host. Every function here is pure. Numerically degenerate
inputs get documented fallbacks instead of exceptions:

  * ``reflect_point`` with a zero-length line returns the input point;
  * ``get_angle_bisector_intersection`` falls back to the midpoint of BC when
    the bisector at A is (numerically) parallel to BC.

Angles follow a bearing-difference convention: ``angle(vertex, p1, p2)`` is
the raw difference of the ``atan2`` bearings vertex->p2 and vertex->p1, and
``measure_triangle`` reports its absolute value in degrees. The result is not
folded back into [0, 180], so some vertex orderings report the reflex angle.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict

import numpy as np

from .constants import EPS_DEFAULT, EPS_PARALLEL, EPS_ON_SEGMENT
from .logging_utils import get_logger

logger = get_logger('foldlab.geometry')

__all__ = [
    'Point', 'Segment', 'Triangle', 'TriangleMeasurements',
    'distance', 'angle', 'to_degrees', 'to_radians', 'measure_triangle',
    'is_equal', 'is_angle_equal', 'is_isosceles', 'is_valid_triangle',
    'get_area', 'get_centroid', 'is_point_in_triangle',
    'get_angle_bisector_intersection', 'reflect_point',
    'create_isosceles_triangle', 'is_point_on_segment', 'distance_point_to_segment',
]


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, arr) -> 'Point':
        return cls(float(arr[0]), float(arr[1]))

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, d: Dict[str, float]) -> 'Point':
        return cls(float(d['x']), float(d['y']))


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point

    @property
    def length(self) -> float:
        return distance(self.start, self.end)

    def midpoint(self) -> Point:
        return Point((self.start.x + self.end.x) / 2, (self.start.y + self.end.y) / 2)


@dataclass(frozen=True)
class Triangle:
    """Three labelled vertices; ``A`` is the apex / reference vertex."""
    A: Point
    B: Point
    C: Point

    def vertices(self) -> Dict[str, Point]:
        return {'A': self.A, 'B': self.B, 'C': self.C}

    def as_array(self) -> np.ndarray:
        return np.array([[self.A.x, self.A.y], [self.B.x, self.B.y], [self.C.x, self.C.y]],
                        dtype=np.float64)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {k: p.to_dict() for k, p in self.vertices().items()}

    @classmethod
    def from_dict(cls, d) -> 'Triangle':
        return cls(Point.from_dict(d['A']), Point.from_dict(d['B']), Point.from_dict(d['C']))


@dataclass(frozen=True)
class TriangleMeasurements:
    """Derived sides ``AB, AC, BC`` and angles ``A, B, C`` (degrees).

    Always recomputed from the triangle; never cached.
    """
    sides: Dict[str, float]
    angles: Dict[str, float]


def distance(p1: Point, p2: Point) -> float:
    return float(math.hypot(p2.x - p1.x, p2.y - p1.y))


def angle(vertex: Point, p1: Point, p2: Point) -> float:
    """Signed bearing difference (radians) from vertex->p1 to vertex->p2.

    Not normalized: the value lies in (-2*pi, 2*pi).
    """
    v1 = p1.as_array() - vertex.as_array()
    v2 = p2.as_array() - vertex.as_array()
    return float(np.arctan2(v2[1], v2[0]) - np.arctan2(v1[1], v1[0]))


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def measure_triangle(triangle: Triangle) -> TriangleMeasurements:
    A, B, C = triangle.A, triangle.B, triangle.C
    sides = {
        'AB': distance(A, B),
        'AC': distance(A, C),
        'BC': distance(B, C),
    }
    angles = {
        'A': abs(to_degrees(angle(A, B, C))),
        'B': abs(to_degrees(angle(B, A, C))),
        'C': abs(to_degrees(angle(C, A, B))),
    }
    return TriangleMeasurements(sides=sides, angles=angles)


def is_equal(value1: float, value2: float, tolerance: float = EPS_DEFAULT) -> bool:
    """Strictly within ``tolerance``; identical values are always equal."""
    return value1 == value2 or abs(value1 - value2) < tolerance


def is_angle_equal(angle1: float, angle2: float, tolerance: float = EPS_DEFAULT) -> bool:
    return angle1 == angle2 or abs(angle1 - angle2) < tolerance


def is_isosceles(triangle: Triangle, tolerance: float = EPS_DEFAULT) -> bool:
    """True when the two sides meeting at the apex (AB, AC) are equal."""
    sides = measure_triangle(triangle).sides
    return is_equal(sides['AB'], sides['AC'], tolerance)


def is_valid_triangle(triangle: Triangle) -> bool:
    """Strict triangle inequality on all three pairs."""
    s = measure_triangle(triangle).sides
    ab, ac, bc = s['AB'], s['AC'], s['BC']
    return (ab + ac > bc) and (ab + bc > ac) and (ac + bc > ab)


def get_area(triangle: Triangle) -> float:
    A, B, C = triangle.A, triangle.B, triangle.C
    return abs((B.x - A.x) * (C.y - A.y) - (C.x - A.x) * (B.y - A.y)) / 2.0


def get_centroid(triangle: Triangle) -> Point:
    return Point.from_array(triangle.as_array().mean(axis=0))


def is_point_in_triangle(point: Point, triangle: Triangle, tolerance: float = EPS_DEFAULT) -> bool:
    """Area-sum test: the three sub-triangles through ``point`` cover the triangle exactly."""
    A, B, C = triangle.A, triangle.B, triangle.C
    total = (get_area(Triangle(point, B, C))
             + get_area(Triangle(A, point, C))
             + get_area(Triangle(A, B, point)))
    return abs(total - get_area(triangle)) < tolerance


def get_angle_bisector_intersection(triangle: Triangle) -> Point:
    """Foot D of the bisector of angle A on line BC.

    The bisector direction is the sum of the unit vectors A->B and A->C; it is
    intersected with BC parametrically. When the two are parallel within
    ``EPS_PARALLEL`` the midpoint of BC is returned instead.
    """
    a = triangle.A.as_array()
    b = triangle.B.as_array()
    c = triangle.C.as_array()

    ab = b - a
    ac = c - a
    # zero-length sides give nan here; the parallel test below then fails and we fall back
    with np.errstate(invalid='ignore', divide='ignore'):
        bisector_dir = ab / np.linalg.norm(ab) + ac / np.linalg.norm(ac)

    bc = c - b
    b_to_a = a - b
    denominator = bc[0] * bisector_dir[1] - bc[1] * bisector_dir[0]
    if not abs(denominator) >= EPS_PARALLEL:
        logger.debug('bisector parallel to BC (denominator=%s); using midpoint of BC', denominator)
        return Point.from_array((b + c) / 2.0)

    t = (b_to_a[0] * bisector_dir[1] - b_to_a[1] * bisector_dir[0]) / denominator
    return Point.from_array(b + t * bc)


def reflect_point(point: Point, line_start: Point, line_end: Point) -> Point:
    """Mirror ``point`` across the line through ``line_start`` and ``line_end``.

    A zero-length line leaves the point unchanged.
    """
    s = line_start.as_array()
    direction = line_end.as_array() - s
    length_sq = float(np.dot(direction, direction))
    if length_sq == 0.0:
        logger.debug('reflect_point: degenerate line at %s, point returned unchanged', line_start)
        return Point(point.x, point.y)
    p = point.as_array()
    projection = float(np.dot(p - s, direction)) / length_sq
    closest = s + projection * direction
    return Point.from_array(2.0 * closest - p)


def create_isosceles_triangle(base_width: float, height: float, center_x: float = 0.0) -> Triangle:
    return Triangle(
        A=Point(center_x, height),
        B=Point(center_x - base_width / 2.0, 0.0),
        C=Point(center_x + base_width / 2.0, 0.0),
    )


def is_point_on_segment(p: Point, a: Point, b: Point, tolerance: float = EPS_ON_SEGMENT) -> bool:
    return abs(distance(a, p) + distance(p, b) - distance(a, b)) < tolerance


def distance_point_to_segment(point: Point, start: Point, end: Point) -> float:
    """Distance from ``point`` to the closed segment start-end."""
    length = distance(start, end)
    if length == 0.0:
        return distance(point, start)
    s = start.as_array()
    d = end.as_array() - s
    t = float(np.clip(np.dot(point.as_array() - s, d) / (length * length), 0.0, 1.0))
    return distance(point, Point.from_array(s + t * d))
