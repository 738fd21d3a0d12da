"""
Time Budget Enforcer

Estimates session length (sharing rest inside superset pairs) and trims the
least valuable accessories one at a time until the session fits. Main lifts are
never trimmed.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .biomechanics import TrainingAge
from .config import EngineConfig
from .models import WorkoutExercise, WorkoutPlan, WorkoutSet
from .prescription import build_projected_warmup_sets, get_rest_seconds
from .rules import round_half_up

logger = logging.getLogger(__name__)

MIN_WORK_SECONDS = 20
MAX_WORK_SECONDS = 90
MAIN_FALLBACK_WORK_SECONDS = 60
ACCESSORY_FALLBACK_WORK_SECONDS = 40


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def estimate_work_seconds(reps: Optional[int], fallback: int) -> int:
    """reps × 2 + 10 clamped to [20, 90]; timed sets use the exercise's estimate."""
    if reps is None:
        return fallback
    return int(_clamp(reps * 2 + 10, MIN_WORK_SECONDS, MAX_WORK_SECONDS))


def resolve_set_timing(
    working_set: WorkoutSet,
    item: WorkoutExercise,
    is_warmup_set: bool,
    config: EngineConfig,
) -> Tuple[int, int]:
    """(work seconds, rest seconds) for one set."""
    reps = working_set.resolved_reps
    rest = working_set.rest_seconds
    if rest is None:
        rest = config.warmup_rest_sec if is_warmup_set else get_rest_seconds(item.exercise, item.is_main_lift, reps)

    fallback = item.exercise.time_per_set_sec or (
        MAIN_FALLBACK_WORK_SECONDS if item.is_main_lift else ACCESSORY_FALLBACK_WORK_SECONDS
    )
    work = estimate_work_seconds(reps, fallback)
    if is_warmup_set:
        work = min(config.warmup_work_cap_sec, work)
    return work, rest


def _sets_seconds(sets: Iterable[WorkoutSet], item: WorkoutExercise, is_warmup: bool, config: EngineConfig) -> int:
    total = 0
    for working_set in sets:
        work, rest = resolve_set_timing(working_set, item, is_warmup, config)
        total += work + rest
    return total


def _warmup_seconds(item: WorkoutExercise, config: EngineConfig) -> int:
    if item.warmup_sets:
        return _sets_seconds(item.warmup_sets, item, True, config)
    if item.is_main_lift:
        projected = build_projected_warmup_sets(TrainingAge.INTERMEDIATE)[:config.projected_warmup_sets]
        return _sets_seconds(projected, item, True, config)
    return 0


def superset_shared_rest(standalone_rests: Sequence[int], config: Optional[EngineConfig] = None) -> int:
    """max(floor, round(multiplier × longest standalone rest))."""
    config = config or EngineConfig()
    return max(
        config.superset_rest_floor_sec,
        round_half_up(max(standalone_rests) * config.superset_rest_multiplier),
    )


def superset_pair_seconds(first: WorkoutExercise, second: WorkoutExercise, config: EngineConfig) -> int:
    """Both members' work per round plus one shared rest."""
    seconds = 0
    for index in range(max(len(first.sets), len(second.sets))):
        rests = []
        for item in (first, second):
            if index < len(item.sets):
                work, rest = resolve_set_timing(item.sets[index], item, False, config)
                seconds += work
                rests.append(rest)
        if rests:
            seconds += superset_shared_rest(rests, config)
    return seconds


def find_superset_pairs(exercises: Sequence[WorkoutExercise]) -> List[Tuple[WorkoutExercise, WorkoutExercise]]:
    """Groups with exactly two non-main members, in first-seen order."""
    groups: Dict[int, List[WorkoutExercise]] = {}
    for item in exercises:
        if item.superset_group is None or item.is_main_lift:
            continue
        groups.setdefault(item.superset_group, []).append(item)
    return [(members[0], members[1]) for members in groups.values() if len(members) == 2]


def estimate_workout_seconds(exercises: Sequence[WorkoutExercise], config: Optional[EngineConfig] = None) -> int:
    config = config or EngineConfig()
    total = sum(_warmup_seconds(item, config) for item in exercises)

    pairs = find_superset_pairs(exercises)
    paired_ids = {item.id for pair in pairs for item in pair}
    for first, second in pairs:
        total += superset_pair_seconds(first, second, config)

    for item in exercises:
        if item.id not in paired_ids:
            total += _sets_seconds(item.sets, item, False, config)
    return total


def estimate_workout_minutes(exercises: Sequence[WorkoutExercise], config: Optional[EngineConfig] = None) -> int:
    """
    Estimated session length in whole minutes.

    Args:
        exercises: Every exercise in the session (warmup, main, accessories)
        config: Engine config (warmup rest, superset constants)

    Returns:
        Minutes, rounded half up
    """
    return round_half_up(estimate_workout_seconds(exercises, config) / 60)


# =============================================================================
# Retention scoring
# =============================================================================

def normalize_score(value: float) -> float:
    """Score around its midpoint of 3, clamped to [-2, 2], scaled to [-1, 1]."""
    return _clamp(value - 3, -2, 2) / 2


def normalize_fatigue_above_mid(value: float) -> float:
    return _clamp(value - 3, 0, 2) / 2


def _lower(muscles: Iterable[str]) -> List[str]:
    return [m.strip().lower() for m in muscles]


def build_accessory_muscle_counts(accessories: Sequence[WorkoutExercise]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for item in accessories:
        for muscle in _lower(item.exercise.primary_muscles):
            counts[muscle] = counts.get(muscle, 0) + 1
    return counts


def score_accessory_retention(
    accessory: WorkoutExercise,
    covered_muscles: Set[str],
    muscle_counts: Dict[str, int],
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Value of keeping an accessory (higher = keep).

    3.0 × uncovered + 1.2 × norm(SFR) + 0.8 × norm(length) - 1.0 × redundancy
    - 1.3 × fatigue above midpoint. Weights come from config.
    """
    config = config or EngineConfig()
    exercise = accessory.exercise
    primary = _lower(exercise.primary_muscles)
    secondary = _lower(exercise.secondary_muscles)

    uncovered = sum(1.0 for m in primary if m not in covered_muscles)
    uncovered += sum(config.retention_secondary_muscle_weight for m in secondary if m not in covered_muscles)
    redundancy = sum(max(0, muscle_counts.get(m, 0) - 1) for m in primary)

    return (
        config.retention_uncovered_weight * uncovered
        + config.retention_sfr_weight * normalize_score(exercise.sfr_score)
        + config.retention_length_weight * normalize_score(exercise.length_position_score)
        - config.retention_redundancy_weight * redundancy
        - config.retention_fatigue_weight * normalize_fatigue_above_mid(exercise.fatigue_cost)
    )


def trim_accessories_by_priority(
    accessories: Sequence[WorkoutExercise],
    main_lifts: Sequence[WorkoutExercise],
    count: int = 1,
    config: Optional[EngineConfig] = None,
) -> List[WorkoutExercise]:
    """
    Remove the `count` lowest-retention accessories.

    Ties go to the higher fatigue cost first, then alphabetical name.
    """
    trimmed = list(accessories)
    if not trimmed or count <= 0:
        return trimmed

    covered = {m for item in main_lifts for m in _lower(item.exercise.primary_muscles)}
    counts = build_accessory_muscle_counts(trimmed)
    ranked = sorted(
        trimmed,
        key=lambda item: (
            score_accessory_retention(item, covered, counts, config),
            -item.exercise.fatigue_cost,
            item.exercise.name,
        ),
    )
    removed = {item.id for item in ranked[:count]}
    for item in ranked[:count]:
        logger.debug("Time budget: trimming %s", item.exercise.name)
    return [item for item in trimmed if item.id not in removed]


def enforce_time_budget(
    plan: WorkoutPlan,
    budget_minutes: int,
    config: Optional[EngineConfig] = None,
) -> Tuple[WorkoutPlan, Optional[str]]:
    """
    Trim accessories until the plan fits the budget.

    Args:
        plan: Fully prescribed plan
        budget_minutes: Session budget (0 or less disables trimming)
        config: Engine config

    Returns:
        (plan, notice): the fitted plan and a degradation notice when the budget
        could not be fully met
    """
    config = config or EngineConfig()
    estimated = estimate_workout_minutes(plan.all_exercises, config)
    if budget_minutes <= 0 or estimated <= budget_minutes:
        return replace(plan, estimated_minutes=estimated), None

    core_minutes = estimate_workout_minutes([*plan.warmup, *plan.main_lifts], config)
    if core_minutes > budget_minutes:
        notice = (
            f"Main lifts alone need about {core_minutes} min, over the "
            f"{budget_minutes} min budget; the plan was left unchanged."
        )
        logger.warning(notice)
        return replace(plan, estimated_minutes=estimated), notice

    accessories = list(plan.accessories)
    while accessories and estimated > budget_minutes:
        accessories = trim_accessories_by_priority(accessories, plan.main_lifts, 1, config)
        estimated = estimate_workout_minutes([*plan.warmup, *plan.main_lifts, *accessories], config)

    removed = len(plan.accessories) - len(accessories)
    notice = None
    if estimated > budget_minutes:
        notice = f"Could not fit the {budget_minutes} min budget; estimated {estimated} min."
        logger.warning(notice)
    elif removed:
        logger.info("Time budget: removed %d accessories to fit %d min", removed, budget_minutes)

    return replace(plan, accessories=accessories, estimated_minutes=estimated), notice
