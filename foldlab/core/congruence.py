"""Triangle congruence criteria (SAS, ASA, SSS, RHS, RHA).

Each ``check_*`` compares two triangles through a fixed list of like-labelled
correspondences (ABC against DEF, i.e. A<->D, B<->E, C<->F) and returns the
first one whose measurements agree within ``tolerance``. The search is
first-match, not best-match: near-equal inputs can resolve differently under
floating point noise. ``check_congruence`` tries the criteria in the fixed
priority order SAS, ASA, SSS, RHS, RHA.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .constants import EPS_DEFAULT, RIGHT_ANGLE_DEG, ACUTE_ANGLE_LIMIT_DEG
from .geometry import (
    Point, Triangle, TriangleMeasurements, distance, measure_triangle,
    is_equal, is_angle_equal,
)
from .logging_utils import get_logger

logger = get_logger('foldlab.congruence')

__all__ = [
    'CongruenceType', 'CongruenceCondition',
    'check_sas', 'check_asa', 'check_sss', 'check_rhs', 'check_rha',
    'check_congruence', 'check_folded_triangle_congruence', 'CHECK_ORDER',
]


class CongruenceType(str, Enum):
    SSS = 'SSS'
    SAS = 'SAS'
    ASA = 'ASA'
    RHS = 'RHS'
    RHA = 'RHA'


@dataclass(frozen=True)
class CongruenceCondition:
    type: CongruenceType
    elements: Tuple[str, ...]
    is_valid: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {'type': self.type.value, 'elements': list(self.elements), 'isValid': self.is_valid}


# (side, side, included angle) -> matched labels
_SAS_PATTERNS: Sequence[Tuple[str, str, str, Tuple[str, ...]]] = (
    ('AB', 'AC', 'A', ('AB', 'AC', 'angle A')),
    ('AB', 'BC', 'B', ('AB', 'BC', 'angle B')),
    ('AC', 'BC', 'C', ('AC', 'BC', 'angle C')),
)

# (angle, angle, included side) -> matched labels
_ASA_PATTERNS: Sequence[Tuple[str, str, str, Tuple[str, ...]]] = (
    ('A', 'B', 'AB', ('angle A', 'AB', 'angle B')),
    ('B', 'C', 'BC', ('angle B', 'BC', 'angle C')),
    ('A', 'C', 'AC', ('angle A', 'AC', 'angle C')),
)


def check_sas(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    m1, m2 = measure_triangle(t1), measure_triangle(t2)
    for s1, s2, ang, elements in _SAS_PATTERNS:
        if (is_equal(m1.sides[s1], m2.sides[s1], tolerance)
                and is_equal(m1.sides[s2], m2.sides[s2], tolerance)
                and is_angle_equal(m1.angles[ang], m2.angles[ang], tolerance)):
            return CongruenceCondition(CongruenceType.SAS, elements)
    return None


def check_asa(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    m1, m2 = measure_triangle(t1), measure_triangle(t2)
    for a1, a2, side, elements in _ASA_PATTERNS:
        if (is_angle_equal(m1.angles[a1], m2.angles[a1], tolerance)
                and is_angle_equal(m1.angles[a2], m2.angles[a2], tolerance)
                and is_equal(m1.sides[side], m2.sides[side], tolerance)):
            return CongruenceCondition(CongruenceType.ASA, elements)
    return None


def check_sss(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    s1, s2 = measure_triangle(t1).sides, measure_triangle(t2).sides
    if all(is_equal(s1[k], s2[k], tolerance) for k in ('AB', 'AC', 'BC')):
        return CongruenceCondition(CongruenceType.SSS, ('AB', 'AC', 'BC'))
    return None


def _has_right_angle(m: TriangleMeasurements, tolerance: float) -> bool:
    return any(is_angle_equal(a, RIGHT_ANGLE_DEG, tolerance) for a in m.angles.values())


def _hypotenuse(m: TriangleMeasurements) -> Tuple[float, List[float]]:
    """Longest side and the remaining sides.

    Sides exactly equal to the maximum are all dropped from the remainder.
    """
    sides = [m.sides['AB'], m.sides['AC'], m.sides['BC']]
    hyp = max(sides)
    return hyp, [s for s in sides if s != hyp]


def _first_match(values1: Sequence[float], values2: Sequence[float],
                 same: Callable[[float, float, float], bool], tolerance: float) -> bool:
    for v1 in values1:
        for v2 in values2:
            if same(v1, v2, tolerance):
                return True
    return False


def _right_triangles_with_equal_hypotenuse(t1: Triangle, t2: Triangle, tolerance: float):
    m1, m2 = measure_triangle(t1), measure_triangle(t2)
    if not (_has_right_angle(m1, tolerance) and _has_right_angle(m2, tolerance)):
        return None
    hyp1, rest1 = _hypotenuse(m1)
    hyp2, rest2 = _hypotenuse(m2)
    if not is_equal(hyp1, hyp2, tolerance):
        return None
    return m1, m2, rest1, rest2


def check_rhs(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    found = _right_triangles_with_equal_hypotenuse(t1, t2, tolerance)
    if found is None:
        return None
    _, _, legs1, legs2 = found
    if _first_match(legs1, legs2, is_equal, tolerance):
        return CongruenceCondition(CongruenceType.RHS, ('right angle', 'hypotenuse', 'one side'))
    return None


def check_rha(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    found = _right_triangles_with_equal_hypotenuse(t1, t2, tolerance)
    if found is None:
        return None
    m1, m2, _, _ = found
    acute1 = [a for a in m1.angles.values() if a < ACUTE_ANGLE_LIMIT_DEG]
    acute2 = [a for a in m2.angles.values() if a < ACUTE_ANGLE_LIMIT_DEG]
    if _first_match(acute1, acute2, is_angle_equal, tolerance):
        return CongruenceCondition(CongruenceType.RHA, ('right angle', 'hypotenuse', 'one acute angle'))
    return None


CHECK_ORDER = (check_sas, check_asa, check_sss, check_rhs, check_rha)


def check_congruence(t1: Triangle, t2: Triangle, tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    """First criterion (SAS, ASA, SSS, RHS, RHA order) that proves t1 and t2 congruent."""
    for check in CHECK_ORDER:
        result = check(t1, t2, tolerance)
        if result is not None:
            logger.debug('check_congruence: %s matched on %s', result.type.value, result.elements)
            return result
    return None


def check_folded_triangle_congruence(original: Triangle, fold_point: Point,
                                     tolerance: float = EPS_DEFAULT) -> Optional[CongruenceCondition]:
    """SAS argument for the two halves ABD and ADC of a folded isosceles triangle.

    AB = AC is the given, AD is common to both halves and the fold along the
    bisector makes angle BAD equal angle CAD.
    """
    left = Triangle(original.A, original.B, fold_point)
    right = Triangle(original.A, fold_point, original.C)
    ab = distance(original.A, original.B)
    ac = distance(original.A, original.C)
    angle_bad = measure_triangle(left).angles['A']
    angle_cad = measure_triangle(right).angles['A']
    if is_equal(ab, ac, tolerance) and is_angle_equal(angle_bad, angle_cad, tolerance):
        return CongruenceCondition(
            CongruenceType.SAS,
            ('AB=AC (given)', 'AD=AD (common)', '∠BAD=∠CAD (fold line)'),
        )
    return None
