"""Step-aware feedback messages for the folding activity.

Messages are plain records; display timing (``duration`` is a hint in ms) and
styling belong to the host.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .activity import ActivityState
from .chips import ConditionChipRegistry
from .config import ActivityConfig, FoldConfig
from .fold import detect_overlap
from .geometry import Point, Triangle

__all__ = [
    'FeedbackType', 'FeedbackPriority', 'FeedbackMessage', 'FeedbackContext',
    'FeedbackManager', 'STEP_HINTS',
]


class FeedbackType(str, Enum):
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'
    HINT = 'hint'
    ENCOURAGEMENT = 'encouragement'
    INSTRUCTION = 'instruction'
    DISCOVERY = 'discovery'


class FeedbackPriority(int, Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


@dataclass(frozen=True)
class FeedbackMessage:
    id: str
    type: FeedbackType
    content: str
    priority: FeedbackPriority = FeedbackPriority.MEDIUM
    duration: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FeedbackContext:
    step: ActivityState
    fold_angle: float
    collected_chips: Sequence[str]
    selected_answer: Optional[str]
    triangle: Triangle
    fold_point: Optional[Point] = None
    error: Optional[str] = None
    time_on_step: Optional[float] = None
    attempts: int = 0


STEP_HINTS: Dict[ActivityState, str] = {
    ActivityState.ACTION: 'Move the slider to the right to fold the triangle.',
    ActivityState.INQUIRY: 'Think about the two triangles made by the fold.',
    ActivityState.DISCOVERY: 'Look at sides and angles: AB=AC, AD is shared, and the bisector splits angle A equally.',
    ActivityState.MISCONCEPTION: 'BD=CD is a consequence of the congruence, not a reason for it.',
    ActivityState.JUSTIFICATION: 'Corresponding angles of congruent triangles are equal.',
}


class FeedbackManager:
    """Builds feedback for the current step and keeps the active messages by id."""

    def __init__(self, registry: ConditionChipRegistry, config: Optional[ActivityConfig] = None,
                 fold_config: Optional[FoldConfig] = None) -> None:
        self.registry = registry
        self.config = config or ActivityConfig()
        self.fold_config = fold_config or FoldConfig()
        self._messages: Dict[str, FeedbackMessage] = {}
        self._history: List[FeedbackMessage] = []

    def generate_feedback(self, context: FeedbackContext) -> List[FeedbackMessage]:
        builders = {
            ActivityState.ACTION: self._action_feedback,
            ActivityState.INQUIRY: self._inquiry_feedback,
            ActivityState.DISCOVERY: self._discovery_feedback,
            ActivityState.MISCONCEPTION: self._misconception_feedback,
            ActivityState.JUSTIFICATION: self._justification_feedback,
        }
        build = builders.get(ActivityState(context.step))
        messages = build(context) if build is not None else []

        if context.error:
            messages.append(FeedbackMessage('step-error', FeedbackType.ERROR, context.error,
                                            FeedbackPriority.CRITICAL))
        if context.time_on_step is not None and context.time_on_step > self.config.slow_step_seconds:
            messages.append(self._time_feedback(context))

        for msg in messages:
            self.add_message(msg)
        return sorted(messages, key=lambda m: m.priority, reverse=True)

    # --- Per-step builders ---

    def _action_feedback(self, ctx: FeedbackContext) -> List[FeedbackMessage]:
        angle = ctx.fold_angle
        if angle == 0:
            return [FeedbackMessage('action-start', FeedbackType.INSTRUCTION,
                                    'Move the slider to fold the triangle!', FeedbackPriority.MEDIUM,
                                    metadata={'step': 'action', 'phase': 'start'})]
        if angle < self.config.action_gentle_fold:
            return [FeedbackMessage('action-gentle-fold', FeedbackType.ENCOURAGEMENT,
                                    'Good start! Keep folding.', FeedbackPriority.LOW, 3000)]
        if angle < self.config.action_progress_fold:
            return [FeedbackMessage('action-progress', FeedbackType.HINT,
                                    'The two angles are getting closer. Fold some more!',
                                    FeedbackPriority.MEDIUM, 3000)]
        if angle < self.config.action_min_fold:
            return [FeedbackMessage('action-almost-overlap', FeedbackType.HINT,
                                    'Nearly there! The two angles almost overlap.',
                                    FeedbackPriority.MEDIUM, 2000)]
        messages = [FeedbackMessage('action-success', FeedbackType.SUCCESS,
                                    'You showed that the two base angles are the same size!',
                                    FeedbackPriority.HIGH, 4000)]
        overlap = detect_overlap(ctx.triangle, angle, self.fold_config)
        if overlap.is_overlapping:
            messages.append(FeedbackMessage(
                'action-overlap-detected', FeedbackType.DISCOVERY,
                f"The base angles overlap {overlap.overlap_percentage:.0f}%. Is that a coincidence?",
                FeedbackPriority.MEDIUM, 5000,
                metadata={'elements': list(overlap.overlapping_elements)},
            ))
        return messages

    def _inquiry_feedback(self, ctx: FeedbackContext) -> List[FeedbackMessage]:
        messages: List[FeedbackMessage] = []
        if not ctx.selected_answer:
            messages.append(FeedbackMessage(
                'inquiry-prompt', FeedbackType.INSTRUCTION,
                'Why do the two angles overlap? Coincidence, or is there a reason?'))
        elif ctx.selected_answer == self.config.correct_answer:
            messages.append(FeedbackMessage(
                'inquiry-correct-answer', FeedbackType.SUCCESS,
                'Correct! Congruence is the key. Now let us find out why they are congruent.',
                FeedbackPriority.HIGH, 4000))
        else:
            messages.append(FeedbackMessage(
                'inquiry-wrong-answer', FeedbackType.HINT,
                'Hmm, is it really a coincidence? Look at the triangle before and after folding.',
                FeedbackPriority.MEDIUM, 4000))
        if ctx.attempts > 1:
            messages.append(FeedbackMessage(
                'inquiry-multiple-attempts', FeedbackType.ENCOURAGEMENT,
                'That is fine! Think again and focus on the two triangles made by the fold.',
                FeedbackPriority.LOW))
        return messages

    def _discovery_feedback(self, ctx: FeedbackContext) -> List[FeedbackMessage]:
        result = self.registry.validate_collection(ctx.triangle, ctx.fold_point)
        count = len(ctx.collected_chips)
        if count == 0:
            main = FeedbackMessage('discovery-start', FeedbackType.INSTRUCTION,
                                   'Click the sides and angles of the triangle to find the congruence conditions!')
        elif count == 1:
            main = FeedbackMessage('discovery-first-chip', FeedbackType.ENCOURAGEMENT,
                                   'Good start! Keep looking.', FeedbackPriority.LOW, 2000)
        elif count == 2:
            main = FeedbackMessage('discovery-second-chip', FeedbackType.HINT,
                                   'Nice! SAS needs a side, the included angle and another side.',
                                   FeedbackPriority.MEDIUM, 3000)
        elif result.is_valid:
            main = FeedbackMessage('discovery-complete', FeedbackType.SUCCESS,
                                   f"Great! You completed the {result.congruence_type.value} congruence conditions!",
                                   FeedbackPriority.HIGH, 5000)
        else:
            main = FeedbackMessage('discovery-progress', FeedbackType.HINT, result.feedback,
                                   FeedbackPriority.MEDIUM, 3000)
        messages = [main]
        if result.missing_chips:
            messages.append(FeedbackMessage(
                'discovery-next-hint', FeedbackType.HINT,
                self.registry.get_next_hint(ctx.triangle, ctx.fold_point), FeedbackPriority.LOW))
        return messages

    def _misconception_feedback(self, ctx: FeedbackContext) -> List[FeedbackMessage]:
        return [FeedbackMessage(
            'misconception-check', FeedbackType.WARNING,
            'Careful: BD=CD follows from the congruence, so it cannot be used to prove it.',
            FeedbackPriority.MEDIUM)]

    def _justification_feedback(self, ctx: FeedbackContext) -> List[FeedbackMessage]:
        return [
            FeedbackMessage('justification-summary', FeedbackType.SUCCESS,
                            'Congratulations! You found that the base angles of an isosceles triangle are equal!',
                            FeedbackPriority.HIGH, 6000,
                            metadata={'achievement': 'base-angles-theorem'}),
            FeedbackMessage('justification-understanding', FeedbackType.INSTRUCTION,
                            'SAS congruence proves angle B = angle C. That is a mathematical proof!'),
        ]

    def _time_feedback(self, ctx: FeedbackContext) -> FeedbackMessage:
        if ctx.time_on_step >= self.config.stuck_step_seconds:
            return FeedbackMessage('time-based-help', FeedbackType.HINT,
                                   'Need help? Press the hint button!', FeedbackPriority.MEDIUM,
                                   metadata={'suggested_hint': STEP_HINTS.get(ActivityState(ctx.step))})
        return FeedbackMessage('time-based-encouragement', FeedbackType.ENCOURAGEMENT,
                               'Take your time. Go step by step!', FeedbackPriority.LOW)

    # --- Message store ---

    def show_step_hint(self, step) -> Optional[FeedbackMessage]:
        step = ActivityState(step)
        hint = STEP_HINTS.get(step)
        if hint is None:
            return None
        msg = FeedbackMessage(f"hint-{step.value}", FeedbackType.HINT, hint, FeedbackPriority.HIGH, 8000)
        self.add_message(msg)
        return msg

    def add_message(self, message: FeedbackMessage) -> None:
        self._messages[message.id] = message
        self._history.append(message)

    def remove_message(self, message_id: str) -> None:
        self._messages.pop(message_id, None)

    def get_message(self, message_id: str) -> Optional[FeedbackMessage]:
        return self._messages.get(message_id)

    def get_active_messages(self) -> List[FeedbackMessage]:
        return sorted(self._messages.values(), key=lambda m: m.priority, reverse=True)

    def clear_messages(self) -> None:
        self._messages.clear()

    def get_history(self) -> List[FeedbackMessage]:
        return list(self._history)
