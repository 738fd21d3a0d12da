"""
Goal tables.

Rep ranges, base RPE, set modifiers, and back-off multipliers keyed by primary goal and training age.
"""

import math
from typing import Dict

from .biomechanics import PrimaryGoal, TrainingAge
from .models import RepRange

REP_RANGES_BY_GOAL: Dict[PrimaryGoal, Dict[str, RepRange]] = {
    PrimaryGoal.HYPERTROPHY: {"main": RepRange(6, 10), "accessory": RepRange(10, 15)},
    PrimaryGoal.STRENGTH: {"main": RepRange(3, 6), "accessory": RepRange(6, 10)},
    PrimaryGoal.FAT_LOSS: {"main": RepRange(6, 10), "accessory": RepRange(12, 20)},
    PrimaryGoal.ATHLETICISM: {"main": RepRange(4, 8), "accessory": RepRange(8, 12)},
    PrimaryGoal.GENERAL_HEALTH: {"main": RepRange(8, 12), "accessory": RepRange(10, 15)},
}

TARGET_RPE_BY_GOAL: Dict[PrimaryGoal, float] = {
    PrimaryGoal.HYPERTROPHY: 7.5,
    PrimaryGoal.STRENGTH: 8.0,
    PrimaryGoal.FAT_LOSS: 7.5,
    PrimaryGoal.ATHLETICISM: 7.5,
    PrimaryGoal.GENERAL_HEALTH: 7.0,
}

HYPERTROPHY_RPE_BY_TRAINING_AGE: Dict[TrainingAge, float] = {
    TrainingAge.BEGINNER: 7.0,
    TrainingAge.INTERMEDIATE: 8.0,
    TrainingAge.ADVANCED: 8.5,
}

TRAINING_AGE_SET_MODIFIER: Dict[TrainingAge, float] = {
    TrainingAge.BEGINNER: 0.85,
    TrainingAge.INTERMEDIATE: 1.0,
    TrainingAge.ADVANCED: 1.15,
}

BACK_OFF_MULTIPLIER_BY_GOAL: Dict[PrimaryGoal, float] = {
    PrimaryGoal.STRENGTH: 0.9,
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def get_rep_range(goal: PrimaryGoal, is_main_lift: bool) -> RepRange:
    return REP_RANGES_BY_GOAL[goal]["main" if is_main_lift else "accessory"]


def get_base_target_rpe(goal: PrimaryGoal, training_age: TrainingAge) -> float:
    if goal == PrimaryGoal.HYPERTROPHY:
        return HYPERTROPHY_RPE_BY_TRAINING_AGE.get(training_age, 8.0)
    return TARGET_RPE_BY_GOAL[goal]


def get_back_off_multiplier(goal: PrimaryGoal) -> float:
    return BACK_OFF_MULTIPLIER_BY_GOAL.get(goal, 0.85)
