"""Central numerical tolerances and pedagogical tuning constants.

This module centralizes every threshold used across the package so they can
be tuned consistently and referenced without scattering literals.
"""
from __future__ import annotations

# Geometry tolerances
EPS_DEFAULT: float = 0.001        # default equality slack (plane units / degrees)
EPS_PARALLEL: float = 1e-4        # bisector vs. BC parallel test (cross-product magnitude)
EPS_ON_SEGMENT: float = 1e-9      # point-on-segment distance slack

# Angle landmarks (degrees)
RIGHT_ANGLE_DEG: float = 90.0
ACUTE_ANGLE_LIMIT_DEG: float = 89.0   # RHA only compares angles strictly below this
STRAIGHT_ANGLE_DEG: float = 180.0

# Fold angle bounds (degrees)
FOLD_ANGLE_MIN: float = 0.0
FOLD_ANGLE_MAX: float = 180.0

# Overlap heuristics
OVERLAP_AREA_MIN_FOLD_DEG: float = 90.0   # overlap area only estimated above this
OVERLAP_AREA_FACTOR: float = 0.5
OVERLAP_START_DEG: float = 85.0           # below this nothing overlaps
OVERLAP_ANGLES_DEG: float = 90.0          # base angles start to coincide
OVERLAP_BASE_SEGMENTS_DEG: float = 170.0  # BD and CD lie on top of each other

# Feedback intensity breakpoints
FEEDBACK_START_DEG: float = 30.0
FEEDBACK_PROGRESS_DEG: float = 80.0
FEEDBACK_ALMOST_DEG: float = 95.0

# Keyframes
KEYFRAME_STEPS: int = 30

# Activity flow
ACTION_GENTLE_FOLD_DEG: float = 30.0     # feedback: below this the fold has barely started
ACTION_PROGRESS_FOLD_DEG: float = 70.0   # feedback: below this the angles are still apart
ACTION_MIN_FOLD_DEG: float = 90.0
CORRECT_INQUIRY_ANSWER: str = 'congruence'
SAS_COMPLETION_DENOMINATOR: int = 4

# Feedback timing (seconds)
SLOW_STEP_SECONDS: float = 30.0
STUCK_STEP_SECONDS: float = 120.0

__all__ = [
    'EPS_DEFAULT', 'EPS_PARALLEL', 'EPS_ON_SEGMENT',
    'RIGHT_ANGLE_DEG', 'ACUTE_ANGLE_LIMIT_DEG', 'STRAIGHT_ANGLE_DEG',
    'FOLD_ANGLE_MIN', 'FOLD_ANGLE_MAX',
    'OVERLAP_AREA_MIN_FOLD_DEG', 'OVERLAP_AREA_FACTOR',
    'OVERLAP_START_DEG', 'OVERLAP_ANGLES_DEG', 'OVERLAP_BASE_SEGMENTS_DEG',
    'FEEDBACK_START_DEG', 'FEEDBACK_PROGRESS_DEG', 'FEEDBACK_ALMOST_DEG',
    'KEYFRAME_STEPS',
    'ACTION_GENTLE_FOLD_DEG', 'ACTION_PROGRESS_FOLD_DEG', 'ACTION_MIN_FOLD_DEG',
    'CORRECT_INQUIRY_ANSWER', 'SAS_COMPLETION_DENOMINATOR',
    'SLOW_STEP_SECONDS', 'STUCK_STEP_SECONDS',
]
