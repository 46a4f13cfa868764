"""Public package API for foldlab.

Tolerance-based triangle geometry, the five classical congruence criteria,
a paper-fold model of an isosceles triangle, collectible evidence chips and
the guarded state machine that sequences the folding activity.

This facade provides a stable, flat import surface on top of the internal
implementation package ``foldlab.core``.

Example
-------
    from foldlab import LearningSession, check_congruence, create_isosceles_triangle

Nothing here configures logging; call ``configure_logging()`` to see output.
"""
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("foldlab")
except Exception:  # pragma: no cover - editable / unknown state
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

from .core import constants
from .core.config import ActivityConfig, CongruenceConfig, FoldConfig, FoldlabConfig
from .core.logging_utils import configure_logging, get_logger
from .core.geometry import (
    Point, Segment, Triangle, TriangleMeasurements,
    distance, angle, to_degrees, to_radians, measure_triangle,
    is_equal, is_angle_equal, is_isosceles, is_valid_triangle,
    get_area, get_centroid, is_point_in_triangle,
    get_angle_bisector_intersection, reflect_point, create_isosceles_triangle,
    is_point_on_segment, distance_point_to_segment,
)
from .core.inference import (
    ThirdAngleResult, calculate_third_angle, find_corresponding_parts, create_right_triangles_pair,
)
from .core.constraints import (
    ConstraintType, GeometricConstraint, ConstraintManager, CONSTRAINT_TEMPLATES,
    create_constraint, validate_constraint,
)
from .core.congruence import (
    CongruenceType, CongruenceCondition,
    check_sas, check_asa, check_sss, check_rhs, check_rha,
    check_congruence, check_folded_triangle_congruence,
)
from .core.fold import (
    FoldResult, OverlapReport, FeedbackIntensity, FoldRotation,
    fold_triangle_along_bisector, detect_overlap, calculate_feedback_intensity,
    generate_fold_keyframes, validate_fold, calculate_fold_rotation,
)
from .core.chips import (
    ChipType, Chip, ChipValidationResult, ChipProgress, ConditionChipRegistry,
    CHIP_DEFINITIONS, SAS_REQUIRED_CHIPS, SAS_PATTERNS, SAS_UI_TO_CHIP,
    is_sas_chip_set_complete,
)
from .core.activity import (
    ActivityState, EventType, ActivityEvent, ActivityContext, StateMeta,
    ActivityStateMachine, initial_context, STATE_METADATA,
)
from .core.feedback import FeedbackManager, FeedbackMessage, FeedbackContext, FeedbackType, FeedbackPriority
from .core.session import LearningSession, create_learning_session

__all__ = [
    '__version__', 'constants',
    # config / logging
    'ActivityConfig', 'CongruenceConfig', 'FoldConfig', 'FoldlabConfig',
    'configure_logging', 'get_logger',
    # geometry
    'Point', 'Segment', 'Triangle', 'TriangleMeasurements',
    'distance', 'angle', 'to_degrees', 'to_radians', 'measure_triangle',
    'is_equal', 'is_angle_equal', 'is_isosceles', 'is_valid_triangle',
    'get_area', 'get_centroid', 'is_point_in_triangle',
    'get_angle_bisector_intersection', 'reflect_point', 'create_isosceles_triangle',
    'is_point_on_segment', 'distance_point_to_segment',
    'ThirdAngleResult', 'calculate_third_angle', 'find_corresponding_parts', 'create_right_triangles_pair',
    'ConstraintType', 'GeometricConstraint', 'ConstraintManager', 'CONSTRAINT_TEMPLATES',
    'create_constraint', 'validate_constraint',
    # congruence
    'CongruenceType', 'CongruenceCondition',
    'check_sas', 'check_asa', 'check_sss', 'check_rhs', 'check_rha',
    'check_congruence', 'check_folded_triangle_congruence',
    # folding
    'FoldResult', 'OverlapReport', 'FeedbackIntensity', 'FoldRotation',
    'fold_triangle_along_bisector', 'detect_overlap', 'calculate_feedback_intensity',
    'generate_fold_keyframes', 'validate_fold', 'calculate_fold_rotation',
    # chips
    'ChipType', 'Chip', 'ChipValidationResult', 'ChipProgress', 'ConditionChipRegistry',
    'CHIP_DEFINITIONS', 'SAS_REQUIRED_CHIPS', 'SAS_PATTERNS', 'SAS_UI_TO_CHIP',
    'is_sas_chip_set_complete',
    # activity
    'ActivityState', 'EventType', 'ActivityEvent', 'ActivityContext', 'StateMeta',
    'ActivityStateMachine', 'initial_context', 'STATE_METADATA',
    'FeedbackManager', 'FeedbackMessage', 'FeedbackContext', 'FeedbackType', 'FeedbackPriority',
    'LearningSession', 'create_learning_session',
]
