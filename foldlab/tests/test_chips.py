"""Tests for the condition chip registry and SAS chip helpers."""
import pytest

from foldlab.core.chips import (
    CHIP_DEFINITIONS, CHIP_IDS, SAS_REQUIRED_CHIPS, SAS_UI_TO_CHIP, ChipType,
    ConditionChipRegistry, is_sas_chip_set_complete, matches_sas_pattern,
)
from foldlab.core.congruence import CongruenceType
from foldlab.core.geometry import Point, Triangle, create_isosceles_triangle, get_angle_bisector_intersection


@pytest.fixture
def iso():
    return create_isosceles_triangle(2.0, 2.0)


@pytest.fixture
def registry(iso):
    reg = ConditionChipRegistry()
    reg.update_availability(iso, get_angle_bisector_intersection(iso))
    return reg


@pytest.fixture
def scalene():
    return Triangle(Point(0, 0), Point(4, 0), Point(1, 3))


class TestDefinitions:
    def test_ten_chips_unique_ids(self):
        assert len(CHIP_DEFINITIONS) == 10
        assert len(set(CHIP_IDS)) == 10

    def test_required_chips_are_defined(self):
        assert set(SAS_REQUIRED_CHIPS) <= set(CHIP_IDS)

    def test_ui_map_targets_known_chips(self):
        assert set(SAS_UI_TO_CHIP.values()) <= set(CHIP_IDS)
        assert SAS_UI_TO_CHIP['fold-line'] == 'common-AD'

    def test_given_sides_use_isosceles_rule(self):
        given = [c for c in CHIP_DEFINITIONS if c.type is ChipType.GIVEN]
        assert {c.id for c in given} == {'side-AB', 'side-AC'}
        assert all(c.rule == 'isosceles' for c in given)


class TestCollection:
    def test_nothing_available_before_update(self):
        reg = ConditionChipRegistry()
        assert reg.get_available_chips() == []
        assert reg.collect_chip('common-AD', create_isosceles_triangle(2, 2)) is False

    def test_collect_twice(self, registry, iso):
        assert registry.collect_chip('side-AB', iso) is True
        assert registry.collect_chip('side-AB', iso) is False
        assert registry.collected_ids == ['side-AB']

    def test_unknown_chip(self, registry, iso):
        assert registry.collect_chip('side-XY', iso) is False

    def test_collected_never_exceeds_total(self, registry, iso):
        for cid in CHIP_IDS:
            registry.collect_chip(cid, iso)
        progress = registry.get_progress()
        assert progress.collected == progress.total == 10
        assert progress.percentage == 100

    def test_non_isosceles_hides_given_sides(self, scalene):
        reg = ConditionChipRegistry()
        reg.update_availability(scalene)
        assert not reg.get_chip('side-AB').is_available
        assert reg.get_chip('common-AD').is_available
        assert reg.collect_chip('side-AB', scalene) is False

    def test_rule_rechecked_at_collection(self, registry, scalene):
        # availability computed for the isosceles triangle, geometry changed since
        assert registry.get_chip('side-AC').is_available
        assert registry.collect_chip('side-AC', scalene) is False

    def test_uncollect(self, registry, iso):
        registry.collect_chip('angle-BAD', iso)
        assert registry.uncollect_chip('angle-BAD') is True
        assert registry.uncollect_chip('angle-BAD') is False
        assert not registry.is_collected('angle-BAD')

    def test_collected_chips_sorted_by_order(self, registry, iso):
        for cid in ('common-AD', 'side-AB', 'angle-BAD'):
            registry.collect_chip(cid, iso)
        assert [c.id for c in registry.get_collected_chips()] == ['side-AB', 'common-AD', 'angle-BAD']
        assert registry.collected_ids == ['common-AD', 'side-AB', 'angle-BAD']

    def test_reset(self, registry, iso):
        registry.collect_chip('side-AB', iso)
        registry.reset()
        assert registry.collected_ids == []
        assert registry.get_available_chips() == []


class TestSasCompleteness:
    def test_sides_only_is_incomplete(self):
        assert not is_sas_chip_set_complete(['side-AB', 'side-AC', 'common-AD'])

    def test_with_both_angles_is_complete(self):
        ids = ['side-AB', 'side-AC', 'common-AD', 'angle-BAD', 'angle-CAD']
        assert is_sas_chip_set_complete(ids)
        assert is_sas_chip_set_complete(ids + ['side-BC'])

    def test_pattern_match_is_looser(self):
        assert matches_sas_pattern(['side-AB', 'side-AC', 'common-AD'])
        assert not matches_sas_pattern(['side-AB', 'common-AD', 'angle-BAD'])


class TestValidation:
    def test_empty(self, registry):
        result = registry.validate_collection()
        assert not result.is_valid
        assert result.missing_chips == list(SAS_REQUIRED_CHIPS)
        assert result.completion_percentage == 0
        assert result.feedback == 'Look for more conditions!'

    def test_two_missing(self, registry, iso):
        for cid in ('side-AB', 'side-AC', 'common-AD'):
            registry.collect_chip(cid, iso)
        result = registry.validate_collection(iso)
        assert result.missing_chips == ['angle-BAD', 'angle-CAD']
        assert result.completion_percentage == 75
        assert result.feedback.startswith('Good start! 2')

    def test_one_missing_names_label(self, registry, iso):
        for cid in ('side-AB', 'side-AC', 'common-AD', 'angle-BAD'):
            registry.collect_chip(cid, iso)
        result = registry.validate_collection(iso)
        assert result.missing_chips == ['angle-CAD']
        assert result.completion_percentage == 100
        assert '∠CAD' in result.feedback

    def test_complete(self, registry, iso):
        for cid in SAS_REQUIRED_CHIPS:
            registry.collect_chip(cid, iso)
        result = registry.validate_collection(iso)
        assert result.is_valid
        assert result.congruence_type is CongruenceType.SAS
        assert result.completion_percentage == 100
        assert registry.check_sas_completion()

    def test_percentage_clamped_with_extra_chips(self, registry, iso):
        for cid in ('side-BC', 'side-BD', 'side-CD', 'angle-B', 'angle-C', 'side-AB'):
            registry.collect_chip(cid, iso)
        assert registry.validate_collection().completion_percentage == 100


class TestHints:
    def test_first_missing_in_required_order(self, registry, iso):
        angle_bad = registry.get_chip('angle-BAD')
        assert registry.get_next_hint(iso) == angle_bad.hint

    def test_complete_hint(self, registry, iso):
        for cid in SAS_REQUIRED_CHIPS:
            registry.collect_chip(cid, iso)
        assert 'All conditions found' in registry.get_next_hint(iso)


class TestPersistence:
    def test_round_trip(self, registry, iso):
        for cid in ('common-AD', 'side-AB'):
            registry.collect_chip(cid, iso)
        state = registry.export_state()

        other = ConditionChipRegistry()
        other.import_state(state)
        assert other.collected_ids == ['common-AD', 'side-AB']
        assert other.get_chip('side-AB').collected
        assert other.get_chip('side-AC').is_available
        assert other.get_chip('side-AC').rule == 'isosceles'

    def test_unknown_ids_ignored(self):
        reg = ConditionChipRegistry()
        reg.import_state({
            'collectedChips': ['bogus', 'angle-B'],
            'chipStates': {'bogus': {'collected': True, 'isAvailable': True},
                           'angle-B': {'collected': True, 'isAvailable': True}},
        })
        assert reg.collected_ids == ['angle-B']
        assert reg.get_chip('bogus') is None
        assert len(reg) == 10

    def test_flags_and_list_agree_after_import(self):
        reg = ConditionChipRegistry()
        reg.import_state({'collectedChips': ['side-BC'],
                          'chipStates': {'angle-C': {'collected': True, 'isAvailable': True}}})
        assert set(reg.collected_ids) == {'side-BC', 'angle-C'}
        assert {c.id for c in reg.get_collected_chips()} == {'side-BC', 'angle-C'}


class TestPercentRounding:
    def test_halves_round_up(self):
        reg = ConditionChipRegistry(CHIP_DEFINITIONS[:8])
        tri = create_isosceles_triangle(2.0, 2.0)
        reg.update_availability(tri)
        assert reg.collect_chip('side-AB', tri)
        assert reg.get_progress().percentage == 13

    def test_three_of_eight(self):
        reg = ConditionChipRegistry(CHIP_DEFINITIONS[:8])
        tri = create_isosceles_triangle(2.0, 2.0)
        reg.update_availability(tri)
        for cid in ('side-AB', 'side-AC', 'common-AD'):
            reg.collect_chip(cid, tri)
        assert reg.get_progress().percentage == 38
