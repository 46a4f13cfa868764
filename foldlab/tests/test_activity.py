"""Tests for the activity state machine: guards, navigation, reset and events."""
from datetime import datetime, timezone

import pytest

from foldlab.core.activity import (
    STATE_METADATA, ActivityContext, ActivityEvent, ActivityState, ActivityStateMachine,
    EventType, initial_context,
)
from foldlab.core.config import ActivityConfig

S = ActivityState
FIXED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _machine(**kwargs):
    return ActivityStateMachine(clock=lambda: FIXED, **kwargs)


def _to_discovery(m):
    m.send(ActivityEvent.set_fold_angle(120))
    m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
    m.send(ActivityEvent.select_answer('congruence'))
    m.send(ActivityEvent.of(EventType.PROCEED_TO_NEXT))
    assert m.state is S.DISCOVERY
    return m


def _collect(m, *ids):
    for cid in ids:
        m.send(ActivityEvent.collect_chip(cid))


def _to_state(target):
    m = _machine()
    if target is S.ACTION:
        return m
    m.send(ActivityEvent.set_fold_angle(120))
    m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
    if target is S.INQUIRY:
        return m
    m.send(ActivityEvent.select_answer('congruence'))
    m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
    if target is S.DISCOVERY:
        return m
    _collect(m, 'side-AB', 'side-AC', 'common-AD')
    m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
    if target is S.MISCONCEPTION:
        return m
    m.send(ActivityEvent.of(EventType.PROCEED_TO_NEXT))
    if target is S.JUSTIFICATION:
        return m
    m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
    return m


class TestInitial:
    def test_starts_in_action(self):
        m = _machine()
        assert m.state is S.ACTION
        assert m.context == initial_context()

    def test_initial_context_is_fresh_copy(self):
        a = initial_context()
        a.collected_chips.append('side-AB')
        a.step_completion['action'] = True
        assert initial_context().collected_chips == []
        assert initial_context().step_completion['action'] is False

    def test_context_property_is_a_copy(self):
        m = _machine()
        m.context.collected_chips.append('side-AB')
        assert m.context.collected_chips == []


class TestActionStep:
    def test_guard_blocks_shallow_fold(self):
        m = _machine()
        m.send(ActivityEvent.set_fold_angle(45))
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.ACTION
        assert m.context.error

    def test_advances_at_threshold(self):
        m = _machine()
        m.send(ActivityEvent.set_fold_angle(95))
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.INQUIRY
        ctx = m.context
        assert ctx.step_completion['action'] is True
        assert ctx.error is None

    def test_exactly_90_passes(self):
        m = _machine()
        m.send(ActivityEvent.set_fold_angle(90))
        assert m.send(ActivityEvent.of(EventType.PROCEED_TO_NEXT)) is S.INQUIRY

    @pytest.mark.parametrize("angle,expected", [(-10, 0.0), (0, 0.0), (200, 180.0), (73.5, 73.5)])
    def test_fold_angle_clamped(self, angle, expected):
        m = _machine()
        m.send(ActivityEvent.set_fold_angle(angle))
        assert m.context.fold_angle == expected

    def test_fold_angle_handled_in_every_state(self):
        m = _to_state(S.JUSTIFICATION)
        m.send(ActivityEvent.set_fold_angle(10))
        assert m.state is S.JUSTIFICATION
        assert m.context.fold_angle == 10.0

    def test_custom_threshold(self):
        m = _machine(config=ActivityConfig(action_min_fold=30))
        m.send(ActivityEvent.set_fold_angle(45))
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.INQUIRY


class TestInquiryStep:
    def test_wrong_answer_blocks(self):
        m = _to_state(S.INQUIRY)
        m.send(ActivityEvent.select_answer('coincidence'))
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.INQUIRY
        assert m.context.error

    def test_error_cleared_on_success(self):
        m = _to_state(S.INQUIRY)
        m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
        assert m.context.error
        m.send(ActivityEvent.select_answer('congruence'))
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.DISCOVERY
        assert m.context.error is None
        assert m.context.step_completion['inquiry'] is True


class TestDiscoveryStep:
    def test_collect_and_guard(self):
        m = _to_state(S.DISCOVERY)
        _collect(m, 'side-AB', 'side-AB', 'nope')
        assert m.context.collected_chips == ['side-AB']
        assert m.context.error is None

    def test_blocked_without_pattern(self):
        m = _to_state(S.DISCOVERY)
        _collect(m, 'side-AB', 'angle-BAD')
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.DISCOVERY
        assert m.context.error

    def test_uncollect(self):
        m = _to_state(S.DISCOVERY)
        _collect(m, 'side-AB', 'side-AC')
        m.send(ActivityEvent.uncollect_chip('side-AB'))
        assert m.context.collected_chips == ['side-AC']

    def test_collect_ignored_outside_discovery(self):
        m = _to_state(S.INQUIRY)
        _collect(m, 'side-AB')
        assert m.context.collected_chips == []
        assert not m.can(ActivityEvent.collect_chip('side-AB'))

    def test_advances_with_pattern(self):
        m = _to_state(S.MISCONCEPTION)
        assert m.state is S.MISCONCEPTION
        assert m.context.step_completion['discovery'] is True

    def test_skip_and_back(self):
        m = _to_state(S.DISCOVERY)
        assert m.send(ActivityEvent.of(EventType.SKIP_DISCOVERY)) is S.JUSTIFICATION
        assert m.context.step_completion['discovery'] is True
        assert m.send(ActivityEvent.of(EventType.BACK_TO_DISCOVERY)) is S.DISCOVERY

    def test_highlight_merges(self):
        m = _to_state(S.DISCOVERY)
        m.send(ActivityEvent.highlight(['side-AB', 'angle-B']))
        m.send(ActivityEvent.highlight(['angle-B', 'angle-C']))
        assert m.context.highlighted_elements == ['side-AB', 'angle-B', 'angle-C']


class TestLaterSteps:
    def test_misconception_marked_on_next(self):
        m = _to_state(S.JUSTIFICATION)
        assert m.context.step_completion['misconception'] is True

    def test_completion_stamps_clock(self):
        m = _to_state(S.COMPLETED)
        assert m.state is S.COMPLETED
        assert m.context.completed_at == FIXED
        assert all(m.context.step_completion.values())

    def test_completed_ignores_forward_events(self):
        m = _to_state(S.COMPLETED)
        assert m.send(ActivityEvent.of(EventType.COMPLETE_STEP)) is S.COMPLETED
        assert m.send(ActivityEvent.of(EventType.PROCEED_TO_NEXT)) is S.COMPLETED
        assert m.context.error is None


class TestNavigation:
    @pytest.mark.parametrize("start,previous", [
        (S.INQUIRY, S.ACTION),
        (S.DISCOVERY, S.INQUIRY),
        (S.MISCONCEPTION, S.DISCOVERY),
        (S.JUSTIFICATION, S.MISCONCEPTION),
        (S.COMPLETED, S.JUSTIFICATION),
    ])
    def test_prev(self, start, previous):
        m = _to_state(start)
        assert m.send(ActivityEvent.of(EventType.PROCEED_TO_PREV)) is previous

    def test_prev_from_action_ignored(self):
        m = _machine()
        assert m.send(ActivityEvent.of(EventType.PROCEED_TO_PREV)) is S.ACTION

    def test_prev_keeps_collected_chips(self):
        m = _to_state(S.MISCONCEPTION)
        m.send(ActivityEvent.of(EventType.PROCEED_TO_PREV))
        assert m.context.collected_chips == ['side-AB', 'side-AC', 'common-AD']


class TestReset:
    @pytest.mark.parametrize("state", list(S))
    def test_reset_from_every_state(self, state):
        m = _to_state(state)
        m.send(ActivityEvent.fail('boom'))
        assert m.send(ActivityEvent.of(EventType.RESET_MODULE)) is S.ACTION
        assert m.context == initial_context()


class TestEventsAndListeners:
    def test_error_event_in_any_state(self):
        m = _to_state(S.MISCONCEPTION)
        m.send(ActivityEvent.fail('network down'))
        assert m.state is S.MISCONCEPTION
        assert m.context.error == 'network down'

    def test_missing_payload_rejected(self):
        with pytest.raises(ValueError):
            ActivityEvent(EventType.SET_FOLD_ANGLE)
        with pytest.raises(ValueError):
            ActivityEvent(EventType.COLLECT_CHIP)

    def test_string_event_types_coerced(self):
        assert ActivityEvent.of('COMPLETE_STEP').type is EventType.COMPLETE_STEP

    def test_subscribe_and_unsubscribe(self):
        m = _machine()
        seen = []
        unsubscribe = m.subscribe(lambda state, ctx: seen.append((state, ctx.fold_angle)))
        m.send(ActivityEvent.set_fold_angle(100))
        m.send(ActivityEvent.of(EventType.COMPLETE_STEP))
        unsubscribe()
        m.send(ActivityEvent.of(EventType.PROCEED_TO_PREV))
        assert seen == [(S.ACTION, 100.0), (S.INQUIRY, 100.0)]

    def test_send_all(self):
        m = _machine()
        events = [ActivityEvent.set_fold_angle(100), ActivityEvent.of(EventType.PROCEED_TO_NEXT)]
        assert m.send_all(events) is S.INQUIRY


class TestSnapshot:
    def test_round_trip(self):
        m = _to_state(S.COMPLETED)
        record = m.snapshot()
        assert record['state'] == 'completed'
        assert record['context']['completedAt'] == FIXED.isoformat()

        other = _machine()
        other.restore(record['state'], record['context'])
        assert other.state is S.COMPLETED
        assert other.context == m.context

    def test_context_from_dict_defaults(self):
        assert ActivityContext.from_dict({}) == initial_context()


def test_metadata_for_every_state():
    assert set(STATE_METADATA) == set(S)
    inquiry = ActivityStateMachine.get_meta('inquiry')
    assert 'congruence' in {o.id for o in inquiry.options}


def test_context_accepts_z_suffixed_timestamp():
    ctx = ActivityContext.from_dict({'completedAt': '2024-05-01T12:00:00Z'})
    assert ctx.completed_at == FIXED
