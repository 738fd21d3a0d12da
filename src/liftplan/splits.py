"""
Split / pattern resolution.

Maps the split type and rotation position (or a forced day) to the legacy target
patterns for today, the single day-tag the session is planned for, and the pattern
set candidates may come from.
"""

from typing import Dict, List, Optional, Sequence, Union

from .biomechanics import (
    DayTag,
    LegacyPattern,
    SplitType,
    get_movement_patterns_for_legacy,
)
from .errors import ConfigurationError
from .history import get_split_day_index
from .models import ExerciseCatalogEntry

P = LegacyPattern

SPLIT_PATTERNS: Dict[SplitType, List[List[LegacyPattern]]] = {
    SplitType.PPL: [
        [P.PUSH],
        [P.PULL],
        [P.SQUAT, P.HINGE],
        [P.PUSH],
        [P.PULL],
    ],
    SplitType.UPPER_LOWER: [
        [P.PUSH, P.PULL],
        [P.SQUAT, P.HINGE],
        [P.PUSH, P.PULL],
        [P.SQUAT, P.HINGE],
    ],
    SplitType.FULL_BODY: [
        [P.PUSH, P.PULL, P.SQUAT, P.HINGE, P.ROTATE],
        [P.PUSH, P.PULL, P.LUNGE, P.HINGE, P.ROTATE],
        [P.PUSH, P.PULL, P.SQUAT, P.HINGE, P.CARRY],
    ],
    SplitType.CUSTOM: [
        [P.PUSH, P.PULL, P.SQUAT, P.HINGE],
    ],
}

FORCED_DAY_PATTERNS: Dict[DayTag, List[LegacyPattern]] = {
    DayTag.PUSH: [P.PUSH],
    DayTag.PULL: [P.PULL],
    DayTag.LEGS: [P.SQUAT, P.HINGE],
    DayTag.UPPER: [P.PUSH, P.PULL],
    DayTag.LOWER: [P.SQUAT, P.HINGE],
    DayTag.FULL_BODY: [P.PUSH, P.PULL, P.SQUAT, P.HINGE, P.ROTATE],
}

LEG_PATTERNS = [P.SQUAT, P.HINGE, P.LUNGE, P.CARRY, P.ROTATE]

__all__ = [
    "SPLIT_PATTERNS",
    "get_split_day_index",
    "get_rotation",
    "resolve_target_patterns",
    "resolve_ppl_day_tag",
    "resolve_non_ppl_day_tag",
    "resolve_day_tag",
    "resolve_allowed_patterns",
    "matches_legacy_pattern",
    "parse_day_tag",
]


def get_rotation(split_type: SplitType) -> List[List[LegacyPattern]]:
    return SPLIT_PATTERNS.get(split_type, SPLIT_PATTERNS[SplitType.FULL_BODY])


def parse_day_tag(value: Union[str, DayTag, None]) -> Optional[DayTag]:
    """
    Accept 'Push', 'full-body', DayTag.PULL, or None.

    Raises:
        ConfigurationError: Non-empty text that names no day
    """
    if value is None or isinstance(value, DayTag):
        return value
    normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
    if not normalized:
        return None
    try:
        return DayTag(normalized)
    except ValueError:
        choices = ", ".join(tag.value for tag in DayTag)
        raise ConfigurationError(f"Unknown day '{value}' (expected one of: {choices})") from None


def resolve_target_patterns(
    split_type: SplitType,
    day_index: int,
    forced_split: Union[str, DayTag, None] = None,
) -> List[LegacyPattern]:
    """
    Legacy patterns for today's session.

    Args:
        split_type: Athlete's split
        day_index: Position in the rotation (wrapped to its length)
        forced_split: Optional day override (push/pull/legs/upper/lower/full_body)

    Returns:
        List of legacy patterns
    """
    forced = parse_day_tag(forced_split)
    if forced is not None:
        return list(FORCED_DAY_PATTERNS[forced])

    rotation = get_rotation(split_type)
    return list(rotation[day_index % len(rotation)])


def resolve_ppl_day_tag(patterns: Sequence[LegacyPattern]) -> DayTag:
    if P.PUSH in patterns:
        return DayTag.PUSH
    if P.PULL in patterns:
        return DayTag.PULL
    return DayTag.LEGS


def resolve_non_ppl_day_tag(split_type: SplitType, patterns: Sequence[LegacyPattern]) -> DayTag:
    if split_type == SplitType.UPPER_LOWER:
        if P.PUSH in patterns or P.PULL in patterns:
            return DayTag.UPPER
        return DayTag.LOWER
    return DayTag.FULL_BODY


def resolve_day_tag(split_type: SplitType, patterns: Sequence[LegacyPattern]) -> DayTag:
    if split_type == SplitType.PPL:
        return resolve_ppl_day_tag(patterns)
    return resolve_non_ppl_day_tag(split_type, patterns)


def resolve_allowed_patterns(
    split_type: SplitType,
    patterns: Sequence[LegacyPattern],
) -> List[LegacyPattern]:
    """
    Patterns candidates may come from.

    Strict ppl narrows: push day allows push and push_pull, pull day allows pull,
    leg day allows squat, hinge, lunge, carry and rotate. Other splits use the
    target patterns unchanged.
    """
    if split_type != SplitType.PPL:
        return list(patterns)
    if P.PUSH in patterns:
        return [P.PUSH, P.PUSH_PULL]
    if P.PULL in patterns:
        return [P.PULL]
    if P.SQUAT in patterns or P.HINGE in patterns:
        return list(LEG_PATTERNS)
    return list(patterns)


def matches_legacy_pattern(exercise: ExerciseCatalogEntry, legacy: LegacyPattern) -> bool:
    """True when the exercise carries any movement pattern behind the legacy name."""
    return bool(exercise.movement_patterns & get_movement_patterns_for_legacy(legacy))
