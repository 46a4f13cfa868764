"""Configuration objects for folding, congruence checks and the activity flow."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .constants import (
    EPS_DEFAULT, FOLD_ANGLE_MIN, FOLD_ANGLE_MAX,
    OVERLAP_AREA_MIN_FOLD_DEG, OVERLAP_AREA_FACTOR,
    OVERLAP_START_DEG, OVERLAP_ANGLES_DEG, OVERLAP_BASE_SEGMENTS_DEG,
    FEEDBACK_START_DEG, FEEDBACK_PROGRESS_DEG, FEEDBACK_ALMOST_DEG,
    KEYFRAME_STEPS, ACTION_GENTLE_FOLD_DEG, ACTION_PROGRESS_FOLD_DEG, ACTION_MIN_FOLD_DEG,
    CORRECT_INQUIRY_ANSWER,
    SLOW_STEP_SECONDS, STUCK_STEP_SECONDS,
)


@dataclass
class FoldConfig:
    overlap_area_min_fold: float = OVERLAP_AREA_MIN_FOLD_DEG
    overlap_area_factor: float = OVERLAP_AREA_FACTOR
    overlap_start: float = OVERLAP_START_DEG
    overlap_angles: float = OVERLAP_ANGLES_DEG
    overlap_base_segments: float = OVERLAP_BASE_SEGMENTS_DEG
    feedback_start: float = FEEDBACK_START_DEG
    feedback_progress: float = FEEDBACK_PROGRESS_DEG
    feedback_almost: float = FEEDBACK_ALMOST_DEG
    keyframe_steps: int = KEYFRAME_STEPS
    tolerance: float = EPS_DEFAULT


@dataclass
class CongruenceConfig:
    tolerance: float = EPS_DEFAULT


@dataclass
class ActivityConfig:
    min_fold_angle: float = FOLD_ANGLE_MIN
    max_fold_angle: float = FOLD_ANGLE_MAX
    action_gentle_fold: float = ACTION_GENTLE_FOLD_DEG
    action_progress_fold: float = ACTION_PROGRESS_FOLD_DEG
    action_min_fold: float = ACTION_MIN_FOLD_DEG
    correct_answer: str = CORRECT_INQUIRY_ANSWER
    slow_step_seconds: float = SLOW_STEP_SECONDS
    stuck_step_seconds: float = STUCK_STEP_SECONDS


@dataclass
class FoldlabConfig:
    """Unified configuration.

    Attributes
    ----------
    fold : FoldConfig
        Overlap and feedback thresholds for the paper-fold model.
    congruence : CongruenceConfig
        Tolerance used by the congruence evaluator and chip rules.
    activity : ActivityConfig
        Guard thresholds for the pedagogical state machine.
    base_width, height : float
        Default isosceles triangle built by a new learning session.
    extras : dict
        Free-form dictionary for host-specific settings.
    """
    fold: FoldConfig = field(default_factory=FoldConfig)
    congruence: CongruenceConfig = field(default_factory=CongruenceConfig)
    activity: ActivityConfig = field(default_factory=ActivityConfig)
    base_width: float = 2.0
    height: float = 2.0
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def with_tolerance(cls, tolerance: float) -> 'FoldlabConfig':
        return cls(
            fold=FoldConfig(tolerance=tolerance),
            congruence=CongruenceConfig(tolerance=tolerance),
        )


__all__ = ['FoldConfig', 'CongruenceConfig', 'ActivityConfig', 'FoldlabConfig']
