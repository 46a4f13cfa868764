"""Caller-owned learning session tying the registry, the state machine and feedback together.

A session is the single logical owner of one chip registry and one activity
machine. Chip collection always goes through it so that every id held by
the machine is also collected in the registry:

  1. the registry decides (availability and rule re-checked at call time);
  2. the machine records the id (``COLLECT_CHIP``, guarded by its step);
  3. if the machine refuses, the registry collection is rolled back.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .activity import ActivityContext, ActivityEvent, ActivityState, ActivityStateMachine, EventType, StateMeta
from .chips import SAS_UI_TO_CHIP, ChipProgress, ChipValidationResult, ConditionChipRegistry
from .config import FoldlabConfig
from .congruence import CongruenceCondition, check_folded_triangle_congruence
from .feedback import FeedbackContext, FeedbackManager, FeedbackMessage
from .fold import (
    FeedbackIntensity, FoldResult, OverlapReport,
    calculate_feedback_intensity, detect_overlap, fold_triangle_along_bisector,
    generate_fold_keyframes, validate_fold,
)
from .geometry import Point, Segment, Triangle, create_isosceles_triangle, get_angle_bisector_intersection
from .logging_utils import get_logger

logger = get_logger('foldlab.session')

__all__ = ['LearningSession', 'create_learning_session']


class LearningSession:
    """Owner of one triangle, chip registry, activity machine and feedback manager.

    ``registry`` and ``machine`` are exposed read-only for queries. Events must
    go through the session methods; sending to the machine directly bypasses
    the registry and breaks the shared collected-chip view.
    """

    def __init__(self, config: Optional[FoldlabConfig] = None, triangle: Optional[Triangle] = None,
                 clock: Optional[Callable[[], datetime]] = None) -> None:
        self.config = config or FoldlabConfig()
        self._registry = ConditionChipRegistry(tolerance=self.config.congruence.tolerance)
        self._machine = ActivityStateMachine(self.config.activity, clock=clock)
        self.feedback_manager = FeedbackManager(self._registry, self.config.activity, self.config.fold)
        self._triangle = triangle or create_isosceles_triangle(self.config.base_width, self.config.height)
        self._registry.update_availability(self._triangle, self.fold_point)

    @property
    def registry(self) -> ConditionChipRegistry:
        return self._registry

    @property
    def machine(self) -> ActivityStateMachine:
        return self._machine

    # --- Geometry ---

    @property
    def triangle(self) -> Triangle:
        return self._triangle

    @property
    def fold_point(self) -> Point:
        return get_angle_bisector_intersection(self._triangle)

    def set_triangle(self, triangle: Triangle) -> None:
        """Replace the working triangle and refresh chip availability.

        Already collected chips stay collected; the availability check only
        gates future collections.
        """
        self._triangle = triangle
        self._registry.update_availability(triangle, self.fold_point)

    @property
    def state(self) -> ActivityState:
        return self._machine.state

    @property
    def context(self) -> ActivityContext:
        return self._machine.context

    @property
    def meta(self) -> StateMeta:
        return self._machine.meta

    def fold(self) -> FoldResult:
        return fold_triangle_along_bisector(self._triangle, self._machine.context.fold_angle, self.config.fold)

    def overlap(self) -> OverlapReport:
        return detect_overlap(self._triangle, self._machine.context.fold_angle, self.config.fold)

    def intensity(self) -> FeedbackIntensity:
        return calculate_feedback_intensity(self._machine.context.fold_angle, self.config.fold)

    def check_fold_congruence(self) -> Optional[CongruenceCondition]:
        return check_folded_triangle_congruence(self._triangle, self.fold_point,
                                                self.config.congruence.tolerance)

    def validate_fold_line(self, fold_line: Segment) -> bool:
        return validate_fold(self._triangle, fold_line, config=self.config.fold)

    def keyframes(self, end_angle: float, steps: Optional[int] = None) -> List[float]:
        """Eased angles from the current fold angle to ``end_angle``."""
        return generate_fold_keyframes(self._machine.context.fold_angle, end_angle, steps, self.config.fold)

    # --- Events ---

    def send(self, event: ActivityEvent) -> ActivityState:
        if event.type in (EventType.COLLECT_CHIP, EventType.UNCOLLECT_CHIP):
            raise ValueError('chip events must go through collect_chip/uncollect_chip')
        if event.type is EventType.RESET_MODULE:
            self.reset()
            return self._machine.state
        return self._machine.send(event)

    def set_fold_angle(self, angle: float) -> float:
        self._machine.send(ActivityEvent.set_fold_angle(angle))
        return self._machine.context.fold_angle

    def select_answer(self, answer: str) -> ActivityState:
        return self._machine.send(ActivityEvent.select_answer(answer))

    def highlight(self, elements: Iterable[str]) -> ActivityState:
        return self._machine.send(ActivityEvent.highlight(elements))

    def complete_step(self) -> ActivityState:
        return self._machine.send(ActivityEvent.of(EventType.COMPLETE_STEP))

    def proceed_to_next(self) -> ActivityState:
        return self._machine.send(ActivityEvent.of(EventType.PROCEED_TO_NEXT))

    def proceed_to_prev(self) -> ActivityState:
        return self._machine.send(ActivityEvent.of(EventType.PROCEED_TO_PREV))

    def skip_discovery(self) -> ActivityState:
        return self._machine.send(ActivityEvent.of(EventType.SKIP_DISCOVERY))

    def back_to_discovery(self) -> ActivityState:
        return self._machine.send(ActivityEvent.of(EventType.BACK_TO_DISCOVERY))

    def collect_chip(self, chip_id: str) -> bool:
        event = ActivityEvent.collect_chip(chip_id)
        if not self._machine.can(event):
            return False
        if not self._registry.collect_chip(chip_id, self._triangle, self.fold_point):
            return False
        self._machine.send(event)
        if chip_id not in self._machine.context.collected_chips:
            # machine refused after all; keep both views identical
            self._registry.uncollect_chip(chip_id)
            return False
        logger.debug('collected %s', chip_id)
        return True

    def collect_ui_element(self, element_id: str) -> bool:
        chip_id = SAS_UI_TO_CHIP.get(element_id)
        if chip_id is None:
            return False
        return self.collect_chip(chip_id)

    def uncollect_chip(self, chip_id: str) -> bool:
        event = ActivityEvent.uncollect_chip(chip_id)
        if not self._machine.can(event) or not self._registry.uncollect_chip(chip_id):
            return False
        self._machine.send(event)
        return True

    def reset(self) -> None:
        self._registry.reset()
        self._registry.update_availability(self._triangle, self.fold_point)
        self._machine.send(ActivityEvent.of(EventType.RESET_MODULE))
        self.feedback_manager.clear_messages()
        logger.info('session reset')

    # --- Evidence queries ---

    def validate(self) -> ChipValidationResult:
        return self._registry.validate_collection(self._triangle, self.fold_point)

    def next_hint(self) -> str:
        return self._registry.get_next_hint(self._triangle, self.fold_point)

    def progress(self) -> ChipProgress:
        return self._registry.get_progress()

    def is_synchronized(self) -> bool:
        """Every id the machine holds is collected in the registry, and vice versa."""
        return self._machine.context.collected_chips == self._registry.collected_ids

    def feedback(self, time_on_step: Optional[float] = None, attempts: int = 0) -> List[FeedbackMessage]:
        ctx = self._machine.context
        return self.feedback_manager.generate_feedback(FeedbackContext(
            step=self._machine.state,
            fold_angle=ctx.fold_angle,
            collected_chips=ctx.collected_chips,
            selected_answer=ctx.selected_answer,
            triangle=self._triangle,
            fold_point=self.fold_point,
            error=ctx.error,
            time_on_step=time_on_step,
            attempts=attempts,
        ))

    # --- Persistence ---

    def export_state(self) -> Dict[str, Any]:
        record = self._machine.snapshot()
        record['triangle'] = self._triangle.to_dict()
        record['registry'] = self._registry.export_state()
        return record

    def import_state(self, record: Mapping[str, Any]) -> None:
        """Replace the session from an ``export_state`` record.

        The record is parsed and checked in full before anything is assigned;
        a rejected record leaves the session untouched.
        """
        triangle = Triangle.from_dict(record['triangle']) if 'triangle' in record else self._triangle
        state = ActivityState(record.get('state', ActivityState.ACTION.value))
        context = ActivityContext.from_dict(record.get('context', {}))
        registry_record = record.get('registry', {})
        staged = ConditionChipRegistry(tolerance=self._registry.tolerance)
        staged.import_state(registry_record)
        if context.collected_chips != staged.collected_ids:
            raise ValueError('imported machine and registry disagree on collected chips')

        self._triangle = triangle
        self._registry.import_state(registry_record)
        self._machine.restore(state, context.to_dict())


def create_learning_session(config: Optional[FoldlabConfig] = None, **kwargs) -> LearningSession:
    return LearningSession(config, **kwargs)
