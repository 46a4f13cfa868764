"""Paper-fold model: folding an isosceles triangle along the apex bisector.

The fold angle is a slider value in degrees, 0 (flat) to 180 (folded over).
Overlap figures here are pedagogical heuristics driven by the thresholds in
``FoldConfig``; they are not exact polygon intersections.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .config import FoldConfig
from .constants import FOLD_ANGLE_MAX
from .geometry import (
    Point, Segment, Triangle, distance, get_area, get_angle_bisector_intersection,
    reflect_point, to_radians,
)

__all__ = [
    'FoldResult', 'OverlapReport', 'FeedbackIntensity', 'FoldRotation',
    'fold_triangle_along_bisector', 'detect_overlap', 'calculate_feedback_intensity',
    'generate_fold_keyframes', 'ease_in_out_cubic', 'validate_fold',
    'calculate_fold_rotation', 'reflect_point',
]


@dataclass(frozen=True)
class FoldResult:
    fold_line: Segment
    left_triangle: Triangle
    right_triangle: Triangle
    overlap_area: float
    is_valid: bool = True
    reflected_b: Optional[Point] = None
    reflected_c: Optional[Point] = None


@dataclass(frozen=True)
class OverlapReport:
    is_overlapping: bool
    overlap_percentage: float
    overlapping_elements: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedbackIntensity:
    intensity: float
    color: str
    message: str


@dataclass(frozen=True)
class FoldRotation:
    left_angle: float
    right_angle: float
    center: Point


def fold_triangle_along_bisector(triangle: Triangle, fold_angle: float = 0.0,
                                 config: Optional[FoldConfig] = None) -> FoldResult:
    """Split ``triangle`` along A-D (D the bisector foot) and estimate the overlap.

    Past ``overlap_area_min_fold`` the overlap area is approximated as
    ``min(area(ABD), area(ADC)) * sin(fold_angle) * overlap_area_factor``.
    """
    cfg = config or FoldConfig()
    d = get_angle_bisector_intersection(triangle)
    left = Triangle(triangle.A, triangle.B, d)
    right = Triangle(triangle.A, d, triangle.C)

    overlap_area = 0.0
    reflected_b = reflected_c = None
    if fold_angle > cfg.overlap_area_min_fold:
        reflected_b = reflect_point(triangle.B, triangle.A, d)
        reflected_c = reflect_point(triangle.C, triangle.A, d)
        overlap_area = (min(get_area(left), get_area(right))
                        * math.sin(to_radians(min(fold_angle, FOLD_ANGLE_MAX)))
                        * cfg.overlap_area_factor)

    return FoldResult(
        fold_line=Segment(triangle.A, d),
        left_triangle=left,
        right_triangle=right,
        overlap_area=overlap_area,
        is_valid=True,
        reflected_b=reflected_b,
        reflected_c=reflected_c,
    )


def detect_overlap(triangle: Triangle, fold_angle: float,
                   config: Optional[FoldConfig] = None) -> OverlapReport:
    cfg = config or FoldConfig()
    if fold_angle < cfg.overlap_start:
        return OverlapReport(False, 0.0, [])

    fraction = (fold_angle - cfg.overlap_start) / (FOLD_ANGLE_MAX - cfg.overlap_start)
    percentage = float(np.clip(fraction, 0.0, 1.0)) * 100.0

    elements: List[str] = []
    if fold_angle >= cfg.overlap_angles:
        elements.extend(['angle-B', 'angle-C'])
    if fold_angle >= cfg.overlap_base_segments:
        elements.append('side-BC-segments')
    return OverlapReport(True, percentage, elements)


_INTENSITY_TIERS: Tuple[Tuple[float, str, str], ...] = (
    (0.2, '#3b82f6', 'Start folding the triangle!'),
    (0.5, '#f59e0b', 'Keep folding...'),
    (0.8, '#ef4444', 'The two angles are almost on top of each other!'),
    (1.0, '#22c55e', 'They overlap completely!'),
)


def calculate_feedback_intensity(fold_angle: float,
                                 config: Optional[FoldConfig] = None) -> FeedbackIntensity:
    """Step function over the fold angle with breakpoints from ``FoldConfig``."""
    cfg = config or FoldConfig()
    breakpoints = (cfg.feedback_start, cfg.feedback_progress, cfg.feedback_almost)
    tier = len(breakpoints)
    for i, limit in enumerate(breakpoints):
        if fold_angle < limit:
            tier = i
            break
    return FeedbackIntensity(*_INTENSITY_TIERS[tier])


def ease_in_out_cubic(t):
    t = np.asarray(t, dtype=np.float64)
    return np.where(t < 0.5, 4.0 * t ** 3, 1.0 - (-2.0 * t + 2.0) ** 3 / 2.0)


def generate_fold_keyframes(start_angle: float, end_angle: float, steps: Optional[int] = None,
                            config: Optional[FoldConfig] = None) -> List[float]:
    """``steps + 1`` eased angles from ``start_angle`` to ``end_angle`` inclusive.

    ``steps`` defaults to ``FoldConfig.keyframe_steps``.
    """
    if steps is None:
        steps = (config or FoldConfig()).keyframe_steps
    if steps <= 0:
        return [float(end_angle)]
    progress = ease_in_out_cubic(np.linspace(0.0, 1.0, steps + 1))
    return [float(a) for a in start_angle + (end_angle - start_angle) * progress]


def validate_fold(triangle: Triangle, fold_line: Segment, tolerance: Optional[float] = None,
                  config: Optional[FoldConfig] = None) -> bool:
    """A valid fold starts at the apex A.

    An explicit ``tolerance`` wins over ``FoldConfig.tolerance``.
    """
    tol = tolerance if tolerance is not None else (config or FoldConfig()).tolerance
    return distance(fold_line.start, triangle.A) < tol


def calculate_fold_rotation(fold_angle: float, fold_line: Segment) -> FoldRotation:
    """Each half turns by half the fold angle, in opposite senses, about the fold line's end."""
    half = fold_angle * 0.5
    return FoldRotation(left_angle=-half, right_angle=half, center=fold_line.end)
