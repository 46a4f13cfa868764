"""Condition chips: collectible pieces of evidence for the SAS argument.

A chip is plain data. Its availability rule is referenced by name and looked
up in ``VALIDATION_RULES`` at evaluation time, so chip records (and exported
registry state) stay serialisable and rules are re-attached automatically.

``ConditionChipRegistry`` owns the chip map for one learning session. Every
mutation goes through its methods; rejected operations return ``False``
instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .congruence import CongruenceType
from .constants import EPS_DEFAULT, SAS_COMPLETION_DENOMINATOR
from .geometry import Point, Triangle, is_isosceles
from .logging_utils import get_logger

logger = get_logger('foldlab.chips')

__all__ = [
    'ChipType', 'Chip', 'ChipValidationResult', 'ChipProgress', 'SasPattern',
    'VALIDATION_RULES', 'CHIP_DEFINITIONS', 'CHIP_IDS', 'SAS_REQUIRED_CHIPS',
    'SAS_PATTERNS', 'SAS_UI_TO_CHIP',
    'ConditionChipRegistry', 'is_sas_chip_set_complete', 'matches_sas_pattern',
]


class ChipType(str, Enum):
    SIDE = 'side'
    ANGLE = 'angle'
    COMMON = 'common'
    GIVEN = 'given'


@dataclass(frozen=True)
class Chip:
    id: str
    label: str
    type: ChipType
    description: str = ''
    hint: str = ''
    order: int = 0
    rule: Optional[str] = None
    collected: bool = False
    is_available: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            'id': self.id, 'label': self.label, 'type': self.type.value,
            'description': self.description, 'hint': self.hint, 'order': self.order,
            'rule': self.rule, 'collected': self.collected, 'isAvailable': self.is_available,
        }


RuleFn = Callable[[Triangle, Optional[Point], float], bool]


def _always(triangle: Triangle, fold_point: Optional[Point], tolerance: float) -> bool:
    return True


def _isosceles(triangle: Triangle, fold_point: Optional[Point], tolerance: float) -> bool:
    return is_isosceles(triangle, tolerance)


VALIDATION_RULES: Dict[str, RuleFn] = {
    'always': _always,
    'isosceles': _isosceles,
}


CHIP_DEFINITIONS: Tuple[Chip, ...] = (
    Chip('side-AB', 'AB', ChipType.GIVEN, 'Given: the triangle is isosceles',
         'One of the two equal sides of the isosceles triangle', 1, 'isosceles'),
    Chip('side-AC', 'AC', ChipType.GIVEN, 'Given: the triangle is isosceles',
         'One of the two equal sides of the isosceles triangle', 2, 'isosceles'),
    Chip('common-AD', 'AD (common)', ChipType.COMMON, 'Side shared by both halves',
         'The side both folded triangles have in common', 3, 'always'),
    Chip('angle-BAD', '∠BAD', ChipType.ANGLE, 'Angle made by the fold line',
         'One of the two angles made by the angle bisector', 4, 'always'),
    Chip('angle-CAD', '∠CAD', ChipType.ANGLE, 'Angle made by the fold line (bisector)',
         'One of the two angles made by the angle bisector', 5, 'always'),
    Chip('side-BC', 'BC', ChipType.SIDE, 'The base; not part of SAS',
         'The base itself is not used directly in SAS', 6, 'always'),
    Chip('angle-B', '∠B', ChipType.ANGLE, 'Base angle B; for corresponding angles',
         'Base angles help with the idea of corresponding angles', 7, 'always'),
    Chip('angle-C', '∠C', ChipType.ANGLE, 'Base angle C; for corresponding angles',
         'Base angles help with the idea of corresponding angles', 8, 'always'),
    Chip('side-BD', 'BD', ChipType.SIDE, 'Auxiliary side BD; not part of SAS',
         'The segment joining B to the fold point D', 9, 'always'),
    Chip('side-CD', 'CD', ChipType.SIDE, 'Auxiliary side CD; not part of SAS',
         'The segment joining C to the fold point D', 10, 'always'),
)

CHIP_IDS: Tuple[str, ...] = tuple(c.id for c in CHIP_DEFINITIONS)

# Order matters: hints walk this sequence
SAS_REQUIRED_CHIPS: Tuple[str, ...] = ('angle-BAD', 'angle-CAD', 'side-AB', 'side-AC', 'common-AD')


@dataclass(frozen=True)
class SasPattern:
    name: str
    required_chips: Tuple[str, ...]
    description: str = ''


SAS_PATTERNS: Tuple[SasPattern, ...] = (
    SasPattern('standard', ('side-AB', 'side-AC', 'common-AD'),
               'The two equal sides together with the common side'),
    SasPattern('complete', SAS_REQUIRED_CHIPS,
               'Both equal sides, the common side and both halves of the apex angle'),
)

SAS_UI_TO_CHIP: Mapping[str, str] = {
    'side-AB': 'side-AB',
    'side-AC': 'side-AC',
    'side-BC': 'side-BC',
    'fold-line': 'common-AD',
    'angle-A': 'angle-BAD',
    'angle-A-left': 'angle-BAD',
    'angle-A-right': 'angle-CAD',
    'angle-B': 'angle-B',
    'angle-C': 'angle-C',
    'side-BD': 'side-BD',
    'side-CD': 'side-CD',
}


@dataclass(frozen=True)
class ChipValidationResult:
    is_valid: bool
    congruence_type: Optional[CongruenceType]
    missing_chips: List[str]
    completion_percentage: int
    feedback: str


@dataclass(frozen=True)
class ChipProgress:
    collected: int
    available: int
    total: int
    percentage: int


def is_sas_chip_set_complete(chip_ids: Iterable[str]) -> bool:
    """True iff ``chip_ids`` contains every chip the SAS argument needs."""
    return set(SAS_REQUIRED_CHIPS).issubset(chip_ids)


def matches_sas_pattern(chip_ids: Iterable[str], patterns: Sequence[SasPattern] = SAS_PATTERNS) -> bool:
    ids = set(chip_ids)
    return any(ids.issuperset(p.required_chips) for p in patterns)


def _percent(part: int, whole: int) -> int:
    """Whole percentage with halves rounded up."""
    return int(part / whole * 100 + 0.5) if whole else 0


COMPLETE_HINT = 'All conditions found! Move on to the next step.'
GENERIC_HINT = 'Click the sides and angles of the triangle to find the conditions!'


class ConditionChipRegistry:
    """Chip map plus the ordered set of collected ids."""

    def __init__(self, definitions: Sequence[Chip] = CHIP_DEFINITIONS,
                 tolerance: float = EPS_DEFAULT) -> None:
        self.tolerance = tolerance
        self._definitions = tuple(definitions)
        self._chips: Dict[str, Chip] = {}
        # dict keys as an insertion-ordered set
        self._collected: Dict[str, None] = {}
        self.reset()

    # --- Rule evaluation ---

    def _rule_holds(self, chip: Chip, triangle: Triangle, fold_point: Optional[Point]) -> bool:
        if chip.rule is None:
            return True
        return VALIDATION_RULES[chip.rule](triangle, fold_point, self.tolerance)

    # --- Mutations ---

    def reset(self) -> None:
        self._collected.clear()
        self._chips = {d.id: replace(d, collected=False, is_available=False) for d in self._definitions}

    def update_availability(self, triangle: Triangle, fold_point: Optional[Point] = None) -> None:
        for cid, chip in self._chips.items():
            self._chips[cid] = replace(chip, is_available=self._rule_holds(chip, triangle, fold_point))

    def collect_chip(self, chip_id: str, triangle: Triangle, fold_point: Optional[Point] = None) -> bool:
        chip = self._chips.get(chip_id)
        if chip is None or chip.collected or not chip.is_available:
            logger.debug('collect_chip(%s) rejected: unknown, collected or unavailable', chip_id)
            return False
        if not self._rule_holds(chip, triangle, fold_point):
            logger.debug('collect_chip(%s) rejected: rule %s no longer holds', chip_id, chip.rule)
            return False
        self._chips[chip_id] = replace(chip, collected=True)
        self._collected[chip_id] = None
        return True

    def uncollect_chip(self, chip_id: str) -> bool:
        chip = self._chips.get(chip_id)
        if chip is None or not chip.collected:
            return False
        self._chips[chip_id] = replace(chip, collected=False)
        self._collected.pop(chip_id, None)
        return True

    # --- Queries ---

    def get_chip(self, chip_id: str) -> Optional[Chip]:
        return self._chips.get(chip_id)

    def get_available_chips(self) -> List[Chip]:
        return sorted((c for c in self._chips.values() if c.is_available), key=lambda c: c.order)

    def get_collected_chips(self) -> List[Chip]:
        return sorted((c for c in self._chips.values() if c.collected), key=lambda c: c.order)

    @property
    def collected_ids(self) -> List[str]:
        return list(self._collected)

    def is_collected(self, chip_id: str) -> bool:
        return chip_id in self._collected

    def get_progress(self) -> ChipProgress:
        total = len(self._chips)
        collected = len(self._collected)
        return ChipProgress(
            collected=collected,
            available=len(self.get_available_chips()),
            total=total,
            percentage=_percent(collected, total),
        )

    def _label(self, chip_id: str) -> str:
        chip = self._chips.get(chip_id)
        return chip.label if chip is not None else chip_id

    def validate_collection(self, triangle: Optional[Triangle] = None,
                            fold_point: Optional[Point] = None) -> ChipValidationResult:
        """Check the collected set against the SAS requirement.

        The geometry arguments are accepted for symmetry with the other
        operations; the verdict depends on the collected ids only.
        """
        collected = self._collected
        missing = [cid for cid in SAS_REQUIRED_CHIPS if cid not in collected]
        if not missing:
            return ChipValidationResult(
                True, CongruenceType.SAS, [], 100,
                f"Perfect! You found every condition for {CongruenceType.SAS.value} congruence.",
            )

        percentage = min(100, _percent(len(collected), SAS_COMPLETION_DENOMINATOR))
        if len(missing) == 1:
            feedback = f"Almost there! You still need {self._label(missing[0])}."
        elif len(missing) <= 2:
            feedback = f"Good start! {len(missing)} more conditions are needed."
        else:
            feedback = 'Look for more conditions!'
        return ChipValidationResult(False, None, missing, percentage, feedback)

    def get_next_hint(self, triangle: Optional[Triangle] = None,
                      fold_point: Optional[Point] = None) -> str:
        result = self.validate_collection(triangle, fold_point)
        if result.is_valid:
            return COMPLETE_HINT
        if result.missing_chips:
            chip = self._chips.get(result.missing_chips[0])
            if chip is not None:
                return chip.hint or f"Look for {chip.label}."
        return GENERIC_HINT

    def check_sas_completion(self) -> bool:
        return is_sas_chip_set_complete(self._collected)

    # --- Persistence ---

    def export_state(self) -> Dict[str, object]:
        return {
            'collectedChips': list(self._collected),
            'chipStates': {
                cid: {'collected': c.collected, 'isAvailable': c.is_available}
                for cid, c in self._chips.items()
            },
        }

    def import_state(self, state: Mapping[str, object]) -> None:
        """Restore collected ids and per-chip flags; unknown ids are ignored.

        Rules are not part of the record: they come back from the static
        definitions through their names.
        """
        chip_states = state.get('chipStates', {}) or {}
        collected_ids = state.get('collectedChips', []) or []
        self.reset()
        for cid, flags in chip_states.items():
            chip = self._chips.get(cid)
            if chip is None:
                logger.debug('import_state: ignoring unknown chip %s', cid)
                continue
            self._chips[cid] = replace(chip, collected=bool(flags.get('collected', False)),
                                       is_available=bool(flags.get('isAvailable', False)))
        for cid in collected_ids:
            if cid in self._chips:
                self._collected[cid] = None
                if not self._chips[cid].collected:
                    self._chips[cid] = replace(self._chips[cid], collected=True)
        for cid, chip in self._chips.items():
            if chip.collected and cid not in self._collected:
                self._collected[cid] = None

    def __iter__(self):
        return iter(sorted(self._chips.values(), key=lambda c: c.order))

    def __len__(self) -> int:
        return len(self._chips)
