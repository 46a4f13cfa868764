"""Tests for the paper-fold model and its heuristics."""
import math

import pytest

from foldlab.core.config import FoldConfig
from foldlab.core.fold import (
    calculate_feedback_intensity, calculate_fold_rotation, detect_overlap,
    fold_triangle_along_bisector, generate_fold_keyframes, validate_fold,
)
from foldlab.core.geometry import Point, Segment, create_isosceles_triangle, get_area


@pytest.fixture
def iso():
    return create_isosceles_triangle(2.0, 2.0)


class TestFoldAlongBisector:
    def test_halves_share_fold_line(self, iso):
        result = fold_triangle_along_bisector(iso, 0.0)
        assert result.is_valid
        assert result.fold_line.start == iso.A
        assert (result.fold_line.end.x, result.fold_line.end.y) == pytest.approx((0.0, 0.0))
        assert result.left_triangle.B == iso.B
        assert result.right_triangle.C == iso.C

    def test_halves_cover_triangle(self, iso):
        result = fold_triangle_along_bisector(iso)
        total = get_area(result.left_triangle) + get_area(result.right_triangle)
        assert total == pytest.approx(get_area(iso))

    @pytest.mark.parametrize("angle", [0.0, 45.0, 90.0])
    def test_no_overlap_area_up_to_90(self, iso, angle):
        assert fold_triangle_along_bisector(iso, angle).overlap_area == 0.0

    def test_overlap_area_heuristic(self, iso):
        result = fold_triangle_along_bisector(iso, 120.0)
        expected = 1.0 * math.sin(math.radians(120.0)) * 0.5
        assert result.overlap_area == pytest.approx(expected)
        assert (result.reflected_b.x, result.reflected_b.y) == pytest.approx((1.0, 0.0))

    def test_fold_angle_capped_at_180(self, iso):
        assert fold_triangle_along_bisector(iso, 250.0).overlap_area == pytest.approx(
            fold_triangle_along_bisector(iso, 180.0).overlap_area)


class TestDetectOverlap:
    def test_below_threshold(self, iso):
        report = detect_overlap(iso, 84)
        assert report.is_overlapping is False
        assert report.overlap_percentage == 0
        assert report.overlapping_elements == []

    def test_between_85_and_90(self, iso):
        report = detect_overlap(iso, 87)
        assert report.is_overlapping
        assert report.overlap_percentage == pytest.approx(2 / 95 * 100)
        assert report.overlapping_elements == []

    def test_base_angles_from_90(self, iso):
        assert detect_overlap(iso, 90).overlapping_elements == ['angle-B', 'angle-C']

    def test_base_segments_from_170(self, iso):
        report = detect_overlap(iso, 170)
        assert 'side-BC-segments' in report.overlapping_elements
        assert report.overlapping_elements[:2] == ['angle-B', 'angle-C']

    def test_percentage_is_clamped(self, iso):
        assert detect_overlap(iso, 180).overlap_percentage == pytest.approx(100.0)
        assert detect_overlap(iso, 400).overlap_percentage == pytest.approx(100.0)

    def test_thresholds_are_configurable(self, iso):
        cfg = FoldConfig(overlap_start=40.0, overlap_angles=50.0, overlap_base_segments=60.0)
        report = detect_overlap(iso, 60, cfg)
        assert report.is_overlapping
        assert report.overlapping_elements == ['angle-B', 'angle-C', 'side-BC-segments']


class TestFeedbackIntensity:
    @pytest.mark.parametrize("angle,intensity,color", [
        (0, 0.2, '#3b82f6'),
        (29.9, 0.2, '#3b82f6'),
        (30, 0.5, '#f59e0b'),
        (79.9, 0.5, '#f59e0b'),
        (80, 0.8, '#ef4444'),
        (94.9, 0.8, '#ef4444'),
        (95, 1.0, '#22c55e'),
        (180, 1.0, '#22c55e'),
    ])
    def test_tiers(self, angle, intensity, color):
        result = calculate_feedback_intensity(angle)
        assert result.intensity == intensity
        assert result.color == color
        assert result.message

    def test_step_function_not_interpolated(self):
        assert calculate_feedback_intensity(31) == calculate_feedback_intensity(79)


class TestKeyframes:
    def test_length_and_endpoints(self):
        frames = generate_fold_keyframes(0.0, 180.0)
        assert len(frames) == 31
        assert frames[0] == pytest.approx(0.0)
        assert frames[-1] == pytest.approx(180.0)

    def test_eased_midpoint_and_monotonic(self):
        frames = generate_fold_keyframes(0.0, 100.0, steps=10)
        assert frames[5] == pytest.approx(50.0)
        assert frames[1] == pytest.approx(100.0 * 4 * 0.1 ** 3)
        assert all(a <= b for a, b in zip(frames, frames[1:]))

    def test_reverse_direction(self):
        frames = generate_fold_keyframes(180.0, 0.0, steps=4)
        assert frames[0] == pytest.approx(180.0)
        assert frames[-1] == pytest.approx(0.0)

    def test_restartable(self):
        assert generate_fold_keyframes(0, 90, 6) == generate_fold_keyframes(0, 90, 6)


class TestValidateFold:
    def test_from_apex(self, iso):
        assert validate_fold(iso, Segment(iso.A, Point(0.0, 0.0)))

    def test_from_base_vertex(self, iso):
        assert not validate_fold(iso, Segment(iso.B, Point(0.0, 2.0)))


def test_fold_rotation_is_symmetric():
    rot = calculate_fold_rotation(120.0, Segment(Point(0, 2), Point(0, 0)))
    assert rot.left_angle == pytest.approx(-60.0)
    assert rot.right_angle == pytest.approx(60.0)
    assert rot.center == Point(0, 0)


class TestFoldConfigUsage:
    def test_keyframe_steps_default_from_config(self):
        assert len(generate_fold_keyframes(0, 90, config=FoldConfig(keyframe_steps=8))) == 9
        assert len(generate_fold_keyframes(0, 90, 4, FoldConfig(keyframe_steps=8))) == 5

    def test_validate_fold_tolerance_from_config(self, iso):
        line = Segment(Point(0.1, 2.0), Point(0.0, 0.0))
        assert validate_fold(iso, line, config=FoldConfig(tolerance=0.5))
        assert not validate_fold(iso, line)
        assert not validate_fold(iso, line, tolerance=0.01, config=FoldConfig(tolerance=0.5))
