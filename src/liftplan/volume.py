"""
Weekly volume tracking.

Counts working sets per primary muscle for the last 7 days and the 7 days before
that, and caps planned volume at a ratio of the previous week.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .history import as_utc, filter_completed
from .models import ExerciseCatalogEntry, WorkoutExercise, WorkoutHistoryEntry

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)
DEFAULT_CAP_RATIO = 1.2


@dataclass
class VolumeContext:
    """Sets per muscle (lowercase) for this week and last week."""
    recent: Dict[str, int] = field(default_factory=dict)
    previous: Dict[str, int] = field(default_factory=dict)


def muscle_key(muscle: str) -> str:
    return muscle.strip().lower()


def add_sets(volume: Dict[str, int], muscles: Iterable[str], sets: int) -> None:
    if sets <= 0:
        return
    for muscle in muscles:
        key = muscle_key(muscle)
        volume[key] = volume.get(key, 0) + sets


def build_volume_context(
    history: Sequence[WorkoutHistoryEntry],
    catalog: Sequence[ExerciseCatalogEntry],
    now: datetime,
) -> VolumeContext:
    """
    Bucket completed sets per primary muscle into this week / last week.

    Args:
        history: Workout history
        catalog: Exercise catalog (primary muscles come from here)
        now: Reference time

    Returns:
        VolumeContext
    """
    by_id = {exercise.id: exercise for exercise in catalog}
    context = VolumeContext()

    for entry in filter_completed(history):
        delta = as_utc(now) - as_utc(entry.date)
        if delta <= WEEK:
            target = context.recent
        elif delta <= WEEK * 2:
            target = context.previous
        else:
            continue
        for logged in entry.exercises:
            exercise = by_id.get(logged.exercise_id)
            if exercise is None:
                continue
            add_sets(target, exercise.primary_muscles, len(logged.sets))

    return context


def exceeds_cap(
    planned: Dict[str, int],
    previous: Dict[str, int],
    cap_ratio: float = DEFAULT_CAP_RATIO,
    muscles: Optional[Iterable[str]] = None,
    extra_sets: int = 0,
) -> bool:
    """True when any muscle (optionally restricted to `muscles`) would pass the cap."""
    keys = [muscle_key(m) for m in muscles] if muscles is not None else list(planned)
    for key in keys:
        baseline = previous.get(key, 0)
        if baseline <= 0:
            continue
        if planned.get(key, 0) + extra_sets > baseline * cap_ratio:
            return True
    return False


def planned_volume(context: VolumeContext, exercises: Iterable[WorkoutExercise]) -> Dict[str, int]:
    planned = dict(context.recent)
    for item in exercises:
        add_sets(planned, item.exercise.primary_muscles, len(item.sets))
    return planned


def enforce_volume_caps(
    accessories: List[WorkoutExercise],
    main_lifts: Sequence[WorkoutExercise],
    context: Optional[VolumeContext],
    cap_ratio: float = DEFAULT_CAP_RATIO,
) -> List[WorkoutExercise]:
    """
    Drop trailing accessories while any muscle's planned weekly sets exceed the cap.

    Main lifts are never dropped.
    """
    if context is None or not accessories:
        return list(accessories)

    adjusted = list(accessories)
    while adjusted:
        planned = planned_volume(context, [*main_lifts, *adjusted])
        if not exceeds_cap(planned, context.previous, cap_ratio):
            break
        dropped = adjusted.pop()
        logger.info("Volume cap: dropped %s", dropped.exercise.name)
    return adjusted
