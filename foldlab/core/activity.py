"""Guarded state machine sequencing the steps of the folding activity.

States run ``action -> inquiry -> discovery -> misconception ->
justification -> completed``. ``SKIP_DISCOVERY`` jumps from discovery to
justification, ``BACK_TO_DISCOVERY`` returns from justification, and
``PROCEED_TO_PREV`` steps back from any state but the first.

``SET_FOLD_ANGLE``, ``RESET_MODULE`` and ``ERROR`` are handled in every
state. Events a state does not list are ignored. A failing guard on
``COMPLETE_STEP`` / ``PROCEED_TO_NEXT`` keeps the state and stores a message
in ``context.error``; every successful move to another state clears it.

The machine keeps only chip *ids*; whether a chip may be collected is the
business of ``ConditionChipRegistry`` (see ``foldlab.core.session``).
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .chips import CHIP_IDS, matches_sas_pattern
from .config import ActivityConfig
from .logging_utils import get_logger

logger = get_logger('foldlab.activity')

__all__ = [
    'ActivityState', 'LEARNING_STEPS', 'EventType', 'ActivityEvent', 'ActivityContext',
    'AnswerOption', 'StateMeta', 'STATE_METADATA', 'Transition', 'STATE_TRANSITIONS',
    'GUARDS', 'initial_context', 'ActivityStateMachine',
    'can_proceed_from_action', 'can_proceed_from_inquiry', 'can_proceed_from_discovery',
    'has_valid_chip',
]


class ActivityState(str, Enum):
    ACTION = 'action'
    INQUIRY = 'inquiry'
    DISCOVERY = 'discovery'
    MISCONCEPTION = 'misconception'
    JUSTIFICATION = 'justification'
    COMPLETED = 'completed'


LEARNING_STEPS: Tuple[ActivityState, ...] = (
    ActivityState.ACTION, ActivityState.INQUIRY, ActivityState.DISCOVERY,
    ActivityState.MISCONCEPTION, ActivityState.JUSTIFICATION,
)


class EventType(str, Enum):
    SET_FOLD_ANGLE = 'SET_FOLD_ANGLE'
    COLLECT_CHIP = 'COLLECT_CHIP'
    UNCOLLECT_CHIP = 'UNCOLLECT_CHIP'
    SELECT_ANSWER = 'SELECT_ANSWER'
    HIGHLIGHT_ELEMENTS = 'HIGHLIGHT_ELEMENTS'
    COMPLETE_STEP = 'COMPLETE_STEP'
    PROCEED_TO_NEXT = 'PROCEED_TO_NEXT'
    PROCEED_TO_PREV = 'PROCEED_TO_PREV'
    RESET_MODULE = 'RESET_MODULE'
    SKIP_DISCOVERY = 'SKIP_DISCOVERY'
    BACK_TO_DISCOVERY = 'BACK_TO_DISCOVERY'
    ERROR = 'ERROR'


# payload field each event type must carry
_REQUIRED_PAYLOAD: Dict[EventType, str] = {
    EventType.SET_FOLD_ANGLE: 'angle',
    EventType.COLLECT_CHIP: 'chip_id',
    EventType.UNCOLLECT_CHIP: 'chip_id',
    EventType.SELECT_ANSWER: 'answer',
    EventType.ERROR: 'error',
}


@dataclass(frozen=True)
class ActivityEvent:
    type: EventType
    angle: Optional[float] = None
    chip_id: Optional[str] = None
    answer: Optional[str] = None
    elements: Tuple[str, ...] = ()
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'type', EventType(self.type))
        object.__setattr__(self, 'elements', tuple(self.elements))
        needed = _REQUIRED_PAYLOAD.get(self.type)
        if needed is not None and getattr(self, needed) is None:
            raise ValueError(f"{self.type.value} event requires '{needed}'")

    @classmethod
    def set_fold_angle(cls, angle: float) -> 'ActivityEvent':
        return cls(EventType.SET_FOLD_ANGLE, angle=angle)

    @classmethod
    def collect_chip(cls, chip_id: str) -> 'ActivityEvent':
        return cls(EventType.COLLECT_CHIP, chip_id=chip_id)

    @classmethod
    def uncollect_chip(cls, chip_id: str) -> 'ActivityEvent':
        return cls(EventType.UNCOLLECT_CHIP, chip_id=chip_id)

    @classmethod
    def select_answer(cls, answer: str) -> 'ActivityEvent':
        return cls(EventType.SELECT_ANSWER, answer=answer)

    @classmethod
    def highlight(cls, elements) -> 'ActivityEvent':
        return cls(EventType.HIGHLIGHT_ELEMENTS, elements=tuple(elements))

    @classmethod
    def fail(cls, error: str) -> 'ActivityEvent':
        return cls(EventType.ERROR, error=error)

    @classmethod
    def of(cls, event_type) -> 'ActivityEvent':
        """Payload-free event (COMPLETE_STEP, PROCEED_TO_NEXT, RESET_MODULE, ...)."""
        return cls(EventType(event_type))


@dataclass
class ActivityContext:
    fold_angle: float = 0.0
    collected_chips: List[str] = field(default_factory=list)
    selected_answer: Optional[str] = None
    highlighted_elements: List[str] = field(default_factory=list)
    step_completion: Dict[str, bool] = field(
        default_factory=lambda: {step.value: False for step in LEARNING_STEPS})
    error: Optional[str] = None
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'foldAngle': self.fold_angle,
            'collectedChips': list(self.collected_chips),
            'selectedAnswer': self.selected_answer,
            'highlightedElements': list(self.highlighted_elements),
            'stepCompletion': dict(self.step_completion),
            'error': self.error,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'ActivityContext':
        ctx = cls()
        ctx.fold_angle = float(d.get('foldAngle', 0.0))
        ctx.collected_chips = list(d.get('collectedChips', []))
        ctx.selected_answer = d.get('selectedAnswer')
        ctx.highlighted_elements = list(d.get('highlightedElements', []))
        ctx.step_completion.update({k: bool(v) for k, v in d.get('stepCompletion', {}).items()})
        ctx.error = d.get('error')
        completed = d.get('completedAt')
        ctx.completed_at = _parse_timestamp(completed) if completed else None
        return ctx


def _parse_timestamp(text: str) -> datetime:
    # hosts may write UTC as a trailing Z
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def initial_context() -> ActivityContext:
    """Fresh copy of the fixed starting snapshot."""
    return ActivityContext()


# --- Static display metadata ---

@dataclass(frozen=True)
class AnswerOption:
    id: str
    label: str


@dataclass(frozen=True)
class StateMeta:
    title: str
    instruction: str
    hint: Optional[str] = None
    options: Tuple[AnswerOption, ...] = ()


STATE_METADATA: Dict[ActivityState, StateMeta] = {
    ActivityState.ACTION: StateMeta(
        'Fold the triangle',
        'Fold the apex angle A in half so that it meets the base BC.',
        'Move the slider to fold the triangle!',
    ),
    ActivityState.INQUIRY: StateMeta(
        'Ask why',
        'Why do the two base angles overlap exactly?',
        options=(
            AnswerOption('coincidence', 'They just happened to be equal'),
            AnswerOption('congruence', 'The two triangles made by the fold are identical (congruent)'),
        ),
    ),
    ActivityState.DISCOVERY: StateMeta(
        'Discover the conditions',
        'Why are triangles ABD and ACD congruent? Find the congruence conditions!',
        'Click the sides and angles of the triangle to find the SAS conditions.',
    ),
    ActivityState.MISCONCEPTION: StateMeta(
        'Check a misconception',
        'Think about why claiming SSS congruence from the lengths of BD and CD is not justified.',
    ),
    ActivityState.JUSTIFICATION: StateMeta(
        'Draw the conclusion',
        'So the corresponding angles B and C of the two congruent triangles are equal.',
    ),
    ActivityState.COMPLETED: StateMeta(
        'Done!',
        'You have completed every step.',
        'Press reset to try again.',
    ),
}


# --- Guards ---

def can_proceed_from_action(context: ActivityContext, event: ActivityEvent, config: ActivityConfig) -> bool:
    return context.fold_angle >= config.action_min_fold


def can_proceed_from_inquiry(context: ActivityContext, event: ActivityEvent, config: ActivityConfig) -> bool:
    return context.selected_answer == config.correct_answer


def can_proceed_from_discovery(context: ActivityContext, event: ActivityEvent, config: ActivityConfig) -> bool:
    return matches_sas_pattern(context.collected_chips)


def has_valid_chip(context: ActivityContext, event: ActivityEvent, config: ActivityConfig) -> bool:
    return event.chip_id in CHIP_IDS and event.chip_id not in context.collected_chips


GuardFn = Callable[[ActivityContext, ActivityEvent, ActivityConfig], bool]

GUARDS: Dict[str, GuardFn] = {
    'can_proceed_from_action': can_proceed_from_action,
    'can_proceed_from_inquiry': can_proceed_from_inquiry,
    'can_proceed_from_discovery': can_proceed_from_discovery,
    'has_valid_chip': has_valid_chip,
}

GUARD_ERRORS: Dict[str, str] = {
    'can_proceed_from_action': 'Fold the triangle further so the base angles meet.',
    'can_proceed_from_inquiry': 'Choose the answer that explains why the angles overlap.',
    'can_proceed_from_discovery': 'Collect the conditions that prove the two triangles congruent first.',
}


# --- Transition table ---

@dataclass(frozen=True)
class Transition:
    target: Optional[ActivityState] = None
    guard: Optional[str] = None
    actions: Tuple[str, ...] = ()
    report_failure: bool = True


def _forward(target: ActivityState, guard: Optional[str], *actions: str) -> Transition:
    return Transition(target, guard, tuple(actions))


_S = ActivityState
_E = EventType

STATE_TRANSITIONS: Dict[ActivityState, Dict[EventType, Transition]] = {
    _S.ACTION: {
        _E.COMPLETE_STEP: _forward(_S.INQUIRY, 'can_proceed_from_action', 'mark_step'),
        _E.PROCEED_TO_NEXT: _forward(_S.INQUIRY, 'can_proceed_from_action', 'mark_step'),
        _E.HIGHLIGHT_ELEMENTS: Transition(actions=('highlight_elements',)),
    },
    _S.INQUIRY: {
        _E.SELECT_ANSWER: Transition(actions=('select_answer',)),
        _E.COMPLETE_STEP: _forward(_S.DISCOVERY, 'can_proceed_from_inquiry', 'mark_step'),
        _E.PROCEED_TO_NEXT: _forward(_S.DISCOVERY, 'can_proceed_from_inquiry', 'mark_step'),
        _E.PROCEED_TO_PREV: Transition(_S.ACTION),
    },
    _S.DISCOVERY: {
        _E.COLLECT_CHIP: Transition(guard='has_valid_chip', actions=('collect_chip',), report_failure=False),
        _E.UNCOLLECT_CHIP: Transition(actions=('uncollect_chip',)),
        _E.COMPLETE_STEP: _forward(_S.MISCONCEPTION, 'can_proceed_from_discovery', 'mark_step'),
        _E.PROCEED_TO_NEXT: _forward(_S.MISCONCEPTION, 'can_proceed_from_discovery', 'mark_step'),
        _E.SKIP_DISCOVERY: _forward(_S.JUSTIFICATION, None, 'mark_step'),
        _E.HIGHLIGHT_ELEMENTS: Transition(actions=('highlight_elements',)),
        _E.PROCEED_TO_PREV: Transition(_S.INQUIRY),
    },
    _S.MISCONCEPTION: {
        _E.SELECT_ANSWER: Transition(actions=('select_answer',)),
        _E.PROCEED_TO_NEXT: _forward(_S.JUSTIFICATION, None, 'mark_step'),
        _E.PROCEED_TO_PREV: Transition(_S.DISCOVERY),
    },
    _S.JUSTIFICATION: {
        _E.COMPLETE_STEP: _forward(_S.COMPLETED, None, 'mark_step', 'mark_completed'),
        _E.BACK_TO_DISCOVERY: Transition(_S.DISCOVERY),
        _E.PROCEED_TO_PREV: Transition(_S.MISCONCEPTION),
    },
    _S.COMPLETED: {
        _E.PROCEED_TO_PREV: Transition(_S.JUSTIFICATION),
    },
}

GLOBAL_TRANSITIONS: Dict[EventType, Transition] = {
    _E.SET_FOLD_ANGLE: Transition(actions=('set_fold_angle',)),
    _E.RESET_MODULE: Transition(_S.ACTION, actions=('reset_context',)),
    _E.ERROR: Transition(actions=('set_error',)),
}


class ActivityStateMachine:
    """Single-owner pedagogical state machine.

    Parameters
    ----------
    config : ActivityConfig, optional
        Guard thresholds (fold angle needed to leave ``action``, correct
        inquiry answer) and fold-angle clamp range.
    clock : callable, optional
        Returns the timestamp stamped into ``completed_at``.
    """

    def __init__(self, config: Optional[ActivityConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None) -> None:
        self.config = config or ActivityConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = ActivityState.ACTION
        self._context = initial_context()
        self._listeners: List[Callable[[ActivityState, ActivityContext], None]] = []
        self._actions: Dict[str, Callable[[ActivityEvent], None]] = {
            'set_fold_angle': self._set_fold_angle,
            'collect_chip': self._collect_chip,
            'uncollect_chip': self._uncollect_chip,
            'select_answer': self._select_answer,
            'highlight_elements': self._highlight_elements,
            'mark_step': self._mark_step,
            'mark_completed': self._mark_completed,
            'set_error': self._set_error,
            'reset_context': self._reset_context,
        }

    # --- Queries ---

    @property
    def state(self) -> ActivityState:
        return self._state

    @property
    def context(self) -> ActivityContext:
        """Deep copy of the context; mutate only by sending events."""
        return copy.deepcopy(self._context)

    def snapshot(self) -> Dict[str, Any]:
        return {'state': self._state.value, 'context': self._context.to_dict()}

    @staticmethod
    def get_meta(state) -> StateMeta:
        return STATE_METADATA[ActivityState(state)]

    @property
    def meta(self) -> StateMeta:
        return STATE_METADATA[self._state]

    def _lookup(self, event: ActivityEvent) -> Optional[Transition]:
        transition = STATE_TRANSITIONS[self._state].get(event.type)
        if transition is None:
            transition = GLOBAL_TRANSITIONS.get(event.type)
        return transition

    def can(self, event: ActivityEvent) -> bool:
        """Whether ``event`` would be handled now with its guard passing."""
        transition = self._lookup(event)
        if transition is None:
            return False
        return transition.guard is None or GUARDS[transition.guard](self._context, event, self.config)

    # --- Dispatch ---

    def send(self, event: ActivityEvent) -> ActivityState:
        transition = self._lookup(event)
        if transition is None:
            logger.debug('ignored %s in state %s', event.type.value, self._state.value)
            return self._state

        if transition.guard is not None and not GUARDS[transition.guard](self._context, event, self.config):
            if transition.report_failure:
                self._context.error = GUARD_ERRORS.get(transition.guard, 'This step is not complete yet.')
                logger.debug('guard %s failed in %s', transition.guard, self._state.value)
            self._notify()
            return self._state

        source = self._state
        for name in transition.actions:
            self._actions[name](event)
        if transition.target is not None:
            self._state = transition.target
            self._context.error = None
            logger.info('transition %s -> %s on %s', source.value, self._state.value, event.type.value)
        self._notify()
        return self._state

    def send_all(self, events) -> ActivityState:
        for event in events:
            self.send(event)
        return self._state

    def subscribe(self, listener: Callable[[ActivityState, ActivityContext], None]) -> Callable[[], None]:
        """Register a callback run after every handled event; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        ctx = self.context
        for listener in list(self._listeners):
            listener(self._state, ctx)

    def restore(self, state, context: Mapping[str, Any]) -> None:
        """Rehydrate from a ``snapshot()`` record."""
        self._state = ActivityState(state)
        self._context = ActivityContext.from_dict(context)

    # --- Actions ---

    def _set_fold_angle(self, event: ActivityEvent) -> None:
        self._context.fold_angle = float(np.clip(event.angle, self.config.min_fold_angle,
                                                 self.config.max_fold_angle))

    def _collect_chip(self, event: ActivityEvent) -> None:
        if event.chip_id not in self._context.collected_chips:
            self._context.collected_chips.append(event.chip_id)

    def _uncollect_chip(self, event: ActivityEvent) -> None:
        if event.chip_id in self._context.collected_chips:
            self._context.collected_chips.remove(event.chip_id)

    def _select_answer(self, event: ActivityEvent) -> None:
        self._context.selected_answer = event.answer

    def _highlight_elements(self, event: ActivityEvent) -> None:
        current = self._context.highlighted_elements
        for element in event.elements:
            if element not in current:
                current.append(element)

    def _mark_step(self, event: ActivityEvent) -> None:
        self._context.step_completion[self._state.value] = True

    def _mark_completed(self, event: ActivityEvent) -> None:
        self._context.completed_at = self._clock()

    def _set_error(self, event: ActivityEvent) -> None:
        self._context.error = event.error

    def _reset_context(self, event: ActivityEvent) -> None:
        self._context = initial_context()
