"""
Biomechanical Vocabulary

Closed vocabularies for exercise catalog data: movement patterns, split tags,
joint stress, equipment, and the goal/training-age/split enums the engine keys on.

Catalog loaders are expected to hand the engine values from these enums only.
"""

from typing import Dict, FrozenSet
from enum import Enum


class MovementPattern(Enum):
    """Fundamental movement patterns (plane-specific)."""
    HORIZONTAL_PUSH = "horizontal_push"
    VERTICAL_PUSH = "vertical_push"
    HORIZONTAL_PULL = "horizontal_pull"
    VERTICAL_PULL = "vertical_pull"
    SQUAT = "squat"
    HINGE = "hinge"
    LUNGE = "lunge"
    CARRY = "carry"
    ROTATION = "rotation"
    ANTI_ROTATION = "anti_rotation"
    FLEXION = "flexion"
    EXTENSION = "extension"
    ABDUCTION = "abduction"
    ADDUCTION = "adduction"
    ISOLATION = "isolation"


class LegacyPattern(Enum):
    """Single-axis patterns used by older plans and split rotations."""
    PUSH = "push"
    PULL = "pull"
    PUSH_PULL = "push_pull"
    SQUAT = "squat"
    HINGE = "hinge"
    LUNGE = "lunge"
    CARRY = "carry"
    ROTATE = "rotate"


class SplitTag(Enum):
    """Split membership tags carried by catalog entries."""
    PUSH = "push"
    PULL = "pull"
    LEGS = "legs"
    CORE = "core"
    MOBILITY = "mobility"
    PREHAB = "prehab"
    CONDITIONING = "conditioning"


class DayTag(Enum):
    """The single label a generated session is planned for."""
    PUSH = "push"
    PULL = "pull"
    LEGS = "legs"
    UPPER = "upper"
    LOWER = "lower"
    FULL_BODY = "full_body"


class JointStress(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Equipment(Enum):
    BARBELL = "barbell"
    DUMBBELL = "dumbbell"
    MACHINE = "machine"
    CABLE = "cable"
    BODYWEIGHT = "bodyweight"
    KETTLEBELL = "kettlebell"
    BAND = "band"
    SLED = "sled"
    BENCH = "bench"
    RACK = "rack"
    EZ_BAR = "ez_bar"
    TRAP_BAR = "trap_bar"
    OTHER = "other"


class SplitType(Enum):
    PPL = "ppl"
    UPPER_LOWER = "upper_lower"
    FULL_BODY = "full_body"
    CUSTOM = "custom"


class TrainingAge(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PrimaryGoal(Enum):
    HYPERTROPHY = "hypertrophy"
    STRENGTH = "strength"
    FAT_LOSS = "fat_loss"
    ATHLETICISM = "athleticism"
    GENERAL_HEALTH = "general_health"


class SecondaryGoal(Enum):
    CONDITIONING = "conditioning"
    STRENGTH = "strength"
    INJURY_PREVENTION = "injury_prevention"
    POSTURE = "posture"
    NONE = "none"


# Legacy single-axis names -> plane-specific movement patterns
LEGACY_PATTERN_MAP: Dict[LegacyPattern, FrozenSet[MovementPattern]] = {
    LegacyPattern.PUSH: frozenset({MovementPattern.HORIZONTAL_PUSH, MovementPattern.VERTICAL_PUSH}),
    LegacyPattern.PULL: frozenset({MovementPattern.HORIZONTAL_PULL, MovementPattern.VERTICAL_PULL}),
    LegacyPattern.SQUAT: frozenset({MovementPattern.SQUAT}),
    LegacyPattern.HINGE: frozenset({MovementPattern.HINGE}),
    LegacyPattern.LUNGE: frozenset({MovementPattern.LUNGE}),
    LegacyPattern.CARRY: frozenset({MovementPattern.CARRY}),
    LegacyPattern.ROTATE: frozenset({MovementPattern.ROTATION, MovementPattern.ANTI_ROTATION}),
    LegacyPattern.PUSH_PULL: frozenset({
        MovementPattern.HORIZONTAL_PUSH,
        MovementPattern.VERTICAL_PUSH,
        MovementPattern.HORIZONTAL_PULL,
        MovementPattern.VERTICAL_PULL,
    }),
}

# Tags that keep an exercise out of the main/accessory pools
BLOCKED_TAGS = frozenset({SplitTag.CORE, SplitTag.MOBILITY, SplitTag.PREHAB, SplitTag.CONDITIONING})
WARMUP_TAGS = frozenset({SplitTag.MOBILITY, SplitTag.PREHAB})
CORE_TAGS = frozenset({SplitTag.CORE})
CONDITIONING_TAGS = frozenset({SplitTag.CONDITIONING})

# Patterns used for non-ppl warmup / prep work
PREP_PATTERNS = frozenset({MovementPattern.ROTATION, MovementPattern.ANTI_ROTATION, MovementPattern.CARRY})


def get_movement_patterns_for_legacy(pattern: LegacyPattern) -> FrozenSet[MovementPattern]:
    """
    Get plane-specific movement patterns for a legacy single-axis pattern.

    Args:
        pattern: LegacyPattern enum

    Returns:
        Frozenset of MovementPattern enums (empty when unmapped)
    """
    return LEGACY_PATTERN_MAP.get(pattern, frozenset())

