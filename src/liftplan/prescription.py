"""
Prescription Calculator

Turns goal, training age, fatigue, periodization and the exercise's own rep-range
hint into concrete sets: reps, RPE and rest.
"""

import logging
from typing import List, Optional

from .biomechanics import Equipment, PrimaryGoal, TrainingAge
from .config import EngineConfig
from .models import (
    NEUTRAL_PERIODIZATION,
    ExerciseCatalogEntry,
    FatigueState,
    Goals,
    PeriodizationModifiers,
    RepRange,
    UserPreferences,
    WorkoutSet,
)
from .rules import (
    TRAINING_AGE_SET_MODIFIER,
    get_base_target_rpe,
    get_rep_range,
    round_half_up,
)

logger = logging.getLogger(__name__)

MIN_SETS = 2
MAIN_BASE_SETS = 4
ACCESSORY_BASE_SETS = 3

WARMUP_REST_SECONDS = 45
WARMUP_EXERCISE_REPS = 10

# (percent of top-set load, reps, rest seconds)
BEGINNER_RAMP = [(0.6, 8, 60), (0.8, 3, 90)]
STANDARD_RAMP = [(0.5, 8, 60), (0.7, 5, 60), (0.85, 3, 90)]

BODYWEIGHT_ONLY_EQUIPMENT = frozenset({Equipment.BODYWEIGHT, Equipment.BENCH, Equipment.RACK})


def clamp_rep_range(goal_range: RepRange, exercise_range: Optional[RepRange]) -> RepRange:
    """Intersect the goal range with the exercise's hint; empty falls back to the hint."""
    if exercise_range is None:
        return goal_range
    low = max(goal_range.min, exercise_range.min)
    high = min(goal_range.max, exercise_range.max)
    if low > high:
        return exercise_range
    return RepRange(low, high)


def widen_accessory_range(
    rep_range: RepRange,
    exercise_range: Optional[RepRange],
    minimum_span: int = 2,
) -> RepRange:
    """
    Give an accessory range at least `minimum_span` reps of headroom.

    Widens upward first within the exercise's range; only widens downward when
    upward room runs out. {10,10} inside {10,20} becomes {10,12}.
    """
    if exercise_range is None or rep_range.span >= minimum_span:
        return rep_range

    low, high = rep_range.min, rep_range.max
    high = max(high, min(exercise_range.max, low + minimum_span))
    if high - low >= minimum_span:
        return RepRange(low, high)

    low = min(low, max(exercise_range.min, high - minimum_span))
    return RepRange(low, high)


def resolve_set_count(
    is_main_lift: bool,
    training_age: TrainingAge,
    fatigue_state: FatigueState,
    set_multiplier: float = 1.0,
    goal: Optional[PrimaryGoal] = None,
    config: Optional[EngineConfig] = None,
) -> int:
    """
    Working set count.

    Base 4 (main) or 3 (accessory) scaled by training age, then a single -1 when
    readiness is low or the last session was missed (never -2), then the
    periodization multiplier. Never below 2.
    """
    config = config or EngineConfig()
    base = MAIN_BASE_SETS if is_main_lift else ACCESSORY_BASE_SETS
    modifier = TRAINING_AGE_SET_MODIFIER.get(training_age, 1.0)
    sets = max(MIN_SETS, round_half_up(base * modifier))

    if fatigue_state.readiness_score <= 2 or fatigue_state.missed_last_session:
        sets = max(MIN_SETS, sets - 1)

    sets = max(MIN_SETS, round_half_up(sets * set_multiplier))

    if config.revised_fat_loss_set_policy and goal == PrimaryGoal.FAT_LOSS:
        sets = max(MIN_SETS, round_half_up(sets * config.fat_loss_set_multiplier))
    return sets


def resolve_target_rpe(
    target_reps: int,
    training_age: TrainingAge,
    goals: Goals,
    fatigue_state: FatigueState,
    preferences: Optional[UserPreferences] = None,
    periodization: PeriodizationModifiers = NEUTRAL_PERIODIZATION,
    is_isolation_accessory: bool = False,
    config: Optional[EngineConfig] = None,
) -> float:
    config = config or EngineConfig()
    rpe = get_base_target_rpe(goals.primary, training_age)
    if fatigue_state.readiness_score <= 2:
        rpe -= 0.5
    if goals.primary == PrimaryGoal.HYPERTROPHY and is_isolation_accessory:
        rpe += 0.5

    if preferences is not None:
        for row in preferences.rpe_targets:
            if row.min_reps <= target_reps <= row.max_reps:
                rpe = row.target_rpe
                break

    rpe += periodization.rpe_offset
    if periodization.is_deload:
        rpe = min(rpe, config.deload_rpe_cap)
    return round(rpe, 2)


def get_rest_seconds(exercise: ExerciseCatalogEntry, is_main_lift: bool, target_reps: Optional[int] = None) -> int:
    """
    Rest between working sets.

    Main lifts: 240s at 5 reps or fewer (300s when fatigue cost >= 4), otherwise
    150s (180s). Compound accessories: 150s at 8 reps or fewer, else 120s.
    Isolation: 90s when fatigue cost >= 3, else 75s.
    """
    fatigue = exercise.fatigue_cost
    reps = target_reps if target_reps is not None else (5 if is_main_lift else 10)

    if is_main_lift and reps <= 5:
        return 300 if fatigue >= 4 else 240
    if is_main_lift:
        return 180 if fatigue >= 4 else 150
    if exercise.is_compound:
        return 150 if reps <= 8 else 120
    return 90 if fatigue >= 3 else 75


def prescribe_sets(
    exercise: ExerciseCatalogEntry,
    is_main_lift: bool,
    training_age: TrainingAge,
    goals: Goals,
    fatigue_state: FatigueState,
    preferences: Optional[UserPreferences] = None,
    periodization: Optional[PeriodizationModifiers] = None,
    config: Optional[EngineConfig] = None,
) -> List[WorkoutSet]:
    """
    Working sets for one exercise.

    Main lifts keep every set at the top-set reps (flat back-offs, and identical
    reps/RPE under deload). Accessories carry the widened rep range with the
    target at its minimum.

    Args:
        exercise: Catalog entry
        is_main_lift: Main lift or accessory
        training_age: Athlete training age
        goals: Primary/secondary goal
        fatigue_state: Readiness, missed session
        preferences: Optional reps-to-RPE overrides
        periodization: Mesocycle snapshot (neutral when None)
        config: Engine config

    Returns:
        List of WorkoutSet
    """
    config = config or EngineConfig()
    periodization = periodization or NEUTRAL_PERIODIZATION
    goal_range = get_rep_range(goals.primary, is_main_lift)
    clamped = clamp_rep_range(goal_range, exercise.rep_range)

    set_count = resolve_set_count(
        is_main_lift, training_age, fatigue_state, periodization.set_multiplier, goals.primary, config,
    )

    if is_main_lift:
        top_reps = clamped.min
        rpe = resolve_target_rpe(
            top_reps, training_age, goals, fatigue_state, preferences, periodization, False, config,
        )
        rest = get_rest_seconds(exercise, True, top_reps)
        return [
            WorkoutSet(
                set_index=i + 1,
                target_reps=top_reps,
                target_rpe=rpe,
                rest_seconds=rest,
                role="main",
            )
            for i in range(set_count)
        ]

    effective = widen_accessory_range(clamped, exercise.rep_range, config.minimum_accessory_span)
    reps = effective.min
    rpe = resolve_target_rpe(
        reps, training_age, goals, fatigue_state, preferences, periodization,
        not exercise.is_compound, config,
    )
    rest = get_rest_seconds(exercise, False, reps)
    return [
        WorkoutSet(
            set_index=i + 1,
            target_reps=reps,
            target_rep_range=effective,
            target_rpe=rpe,
            rest_seconds=rest,
            role="accessory",
        )
        for i in range(set_count)
    ]


def build_warmup_exercise_sets(exercise: ExerciseCatalogEntry) -> List[WorkoutSet]:
    """Single prep set for warmup-list exercises (timed when there is no rep hint)."""
    reps = WARMUP_EXERCISE_REPS
    if exercise.time_per_set_sec and exercise.rep_range is None:
        reps = None
    elif exercise.rep_range is not None and not exercise.rep_range.contains(reps):
        reps = exercise.rep_range.min
    return [WorkoutSet(set_index=1, target_reps=reps, rest_seconds=WARMUP_REST_SECONDS, role="warmup")]


# =============================================================================
# Warmup ramps for main lifts
# =============================================================================

def get_warmup_ramp_scheme(training_age: TrainingAge):
    return BEGINNER_RAMP if training_age == TrainingAge.BEGINNER else STANDARD_RAMP


def build_projected_warmup_sets(training_age: TrainingAge) -> List[WorkoutSet]:
    """Ramp sets without loads (used when no top-set load is known)."""
    return [
        WorkoutSet(set_index=i + 1, target_reps=reps, rest_seconds=rest, role="warmup")
        for i, (_, reps, rest) in enumerate(get_warmup_ramp_scheme(training_age))
    ]


def round_load(value: float) -> float:
    """Nearest 0.5."""
    return round_half_up(value * 2) / 2


def build_warmup_sets_from_top_set(top_set_load: float, training_age: TrainingAge) -> List[WorkoutSet]:
    return [
        WorkoutSet(
            set_index=i + 1,
            target_reps=reps,
            target_load=round_load(top_set_load * percent),
            rest_seconds=rest,
            role="warmup",
        )
        for i, (percent, reps, rest) in enumerate(get_warmup_ramp_scheme(training_age))
    ]


def can_resolve_load_for_warmup_ramp(exercise: ExerciseCatalogEntry) -> bool:
    """False for bodyweight-only movements, where a percentage ramp is meaningless."""
    if not exercise.equipment:
        return True
    return not exercise.equipment <= BODYWEIGHT_ONLY_EQUIPMENT
