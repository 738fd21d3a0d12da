"""
Load progression from the last completed performance of an exercise.
"""

import logging
from typing import Optional, Sequence

from .biomechanics import TrainingAge
from .history import filter_completed, sort_desc
from .models import RepRange, SetLog, WorkoutExercise, WorkoutHistoryEntry
from .prescription import (
    build_projected_warmup_sets,
    build_warmup_sets_from_top_set,
    can_resolve_load_for_warmup_ramp,
    round_load,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCREASE = 0.07
STEP_UP = 0.025
EASY_STEP_UP = 0.03
STEP_DOWN = -0.03


def compute_next_load(
    last_sets: Sequence[SetLog],
    rep_range: RepRange,
    target_rpe: float,
    max_increase: float = DEFAULT_MAX_INCREASE,
) -> Optional[float]:
    """
    Next working load from the previous session's sets.

    - an early set (first two) at target_rpe + 1 or harder: -3%
    - every set at target_rpe - 2 or easier: +3%
    - every set at the top of the range without overshooting RPE: +2.5%
    - any set below the range: -3%
    - otherwise hold

    Changes are capped at `max_increase` either way and rounded to 0.5.

    Args:
        last_sets: Logged sets from the most recent completed session
        rep_range: Target rep range
        target_rpe: Target RPE for this exercise
        max_increase: Largest fractional change allowed

    Returns:
        Next load, or None when no set recorded a load
    """
    last_load = next((s.load for s in last_sets if s.load), None)
    if last_load is None:
        return None

    def change(pct: float) -> float:
        capped = min(abs(pct), max_increase)
        return round_load(last_load * (1 + (capped if pct >= 0 else -capped)))

    if any(s.rpe is not None and s.rpe >= target_rpe + 1 for s in last_sets[:2]):
        return change(STEP_DOWN)

    if all(s.rpe is not None and s.rpe <= target_rpe - 2 for s in last_sets):
        return change(EASY_STEP_UP)

    at_top = all(s.reps >= rep_range.max for s in last_sets)
    rpe_ok = all(s.rpe is None or s.rpe <= target_rpe for s in last_sets)
    if at_top and rpe_ok:
        return change(STEP_UP)

    if any(s.reps < rep_range.min for s in last_sets):
        return change(STEP_DOWN)

    return round_load(last_load)


def find_last_sets(exercise_id: str, history: Sequence[WorkoutHistoryEntry]) -> Sequence[SetLog]:
    for entry in sort_desc(filter_completed(history)):
        for logged in entry.exercises:
            if logged.exercise_id == exercise_id and logged.sets:
                return logged.sets
    return ()


def assign_target_loads(
    item: WorkoutExercise,
    history: Sequence[WorkoutHistoryEntry],
    training_age: TrainingAge = TrainingAge.INTERMEDIATE,
    back_off_multiplier: float = 1.0,
    is_deload: bool = False,
) -> WorkoutExercise:
    """
    Fill target_load on every working set and build the main-lift warmup ramp.

    Main lifts keep the projected load on the top set and take
    `back_off_multiplier` of it on the remaining sets. A deload applies the
    multiplier to every main-lift set. Main lifts with a known load get a
    load-based ramp; main lifts without one get the projected (unloaded) ramp so
    time estimates stay honest.

    Args:
        item: Prescribed exercise (mutated in place)
        history: Workout history, any status
        training_age: Drives the warmup ramp length
        back_off_multiplier: Fraction of the top-set load for back-off sets
        is_deload: Deload week flag

    Returns:
        The same item
    """
    top_load = None
    if item.sets:
        first = item.sets[0]
        rep_range = first.target_rep_range or RepRange(first.target_reps or 1, first.target_reps or 1)
        target_rpe = first.target_rpe if first.target_rpe is not None else 8.0
        next_load = compute_next_load(find_last_sets(item.exercise.id, history), rep_range, target_rpe)
        if next_load is not None:
            back_off = round_load(next_load * back_off_multiplier)
            if not item.is_main_lift:
                top_load = next_load
                for working_set in item.sets:
                    working_set.target_load = next_load
            elif is_deload:
                top_load = back_off
                for working_set in item.sets:
                    working_set.target_load = back_off
            else:
                top_load = next_load
                for index, working_set in enumerate(item.sets):
                    working_set.target_load = next_load if index == 0 else back_off
            logger.debug("%s: next load %.1f (back-off %.1f)", item.exercise.name, next_load, back_off)

    if item.is_main_lift and not item.warmup_sets:
        if top_load and can_resolve_load_for_warmup_ramp(item.exercise):
            item.warmup_sets = build_warmup_sets_from_top_set(top_load, training_age)
        else:
            item.warmup_sets = build_projected_warmup_sets(training_age)
    return item
