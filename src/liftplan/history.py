"""
Workout history helpers.

Only completed sessions count toward recency, stall detection, split rotation and
recovery timing. Sorting is by date, most recent first.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .models import FatigueState, HistoryExercise, SessionCheckIn, WorkoutHistoryEntry

logger = logging.getLogger(__name__)

STALL_WINDOW = 3

# Index of the completed session an exercise last appeared in -> weight multiplier
RECENCY_MULTIPLIERS = {0: 0.3, 1: 0.5, 2: 0.7}
NOVELTY_MULTIPLIER = 1.5


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def filter_completed(history: Iterable[WorkoutHistoryEntry]) -> List[WorkoutHistoryEntry]:
    return [entry for entry in history if entry.is_completed]


def sort_desc(history: Iterable[WorkoutHistoryEntry]) -> List[WorkoutHistoryEntry]:
    """Most recent first. Stable for entries sharing a timestamp."""
    return sorted(history, key=lambda entry: as_utc(entry.date), reverse=True)


def most_recent(history: Sequence[WorkoutHistoryEntry]) -> Optional[WorkoutHistoryEntry]:
    ordered = sort_desc(history)
    return ordered[0] if ordered else None


def build_recency_index(history: Iterable[WorkoutHistoryEntry]) -> Dict[str, int]:
    """
    Map exercise id -> index of the most recent completed session containing it.

    0 is the latest completed session, 1 the one before, and so on.
    """
    index: Dict[str, int] = {}
    for position, entry in enumerate(sort_desc(filter_completed(history))):
        for exercise in entry.exercises:
            index.setdefault(exercise.exercise_id, position)
    return index


def get_recency_multiplier(exercise_id: str, recency_index: Dict[str, int]) -> float:
    last_seen = recency_index.get(exercise_id)
    if last_seen is None:
        return 1.0
    return RECENCY_MULTIPLIERS.get(last_seen, 1.0)


def get_novelty_multiplier(exercise_id: str, recency_index: Dict[str, int]) -> float:
    return 1.0 if exercise_id in recency_index else NOVELTY_MULTIPLIER


def session_volume(exercise: HistoryExercise) -> float:
    """Σ reps × max(load, 1) over the logged sets."""
    return sum(s.reps * max(s.load or 0, 1) for s in exercise.sets)


def find_stalled_exercises(history: Iterable[WorkoutHistoryEntry]) -> Set[str]:
    """
    Find exercises whose last three completed sessions show no volume increase.

    An exercise is stalled when neither latest > middle nor middle > oldest.
    Exercises with fewer than three completed sessions are never stalled.

    Args:
        history: Full workout history (incomplete entries are ignored)

    Returns:
        Set of stalled exercise ids
    """
    volumes: Dict[str, List[float]] = {}
    for entry in sort_desc(filter_completed(history)):
        for exercise in entry.exercises:
            volumes.setdefault(exercise.exercise_id, []).append(session_volume(exercise))

    stalled = set()
    for exercise_id, series in volumes.items():
        if len(series) < STALL_WINDOW:
            continue
        latest, mid, oldest = series[:STALL_WINDOW]
        if not (latest > mid or mid > oldest):
            stalled.add(exercise_id)

    if stalled:
        logger.debug("Stalled exercises: %s", sorted(stalled))
    return stalled


def get_split_day_index(history: Iterable[WorkoutHistoryEntry], rotation_length: int) -> int:
    """Position in the split rotation: completed sessions that advance the split."""
    advancing = [e for e in history if e.is_completed and e.advances_split]
    return len(advancing) % max(1, rotation_length)


def derive_fatigue_state(
    history: Sequence[WorkoutHistoryEntry],
    check_in: Optional[SessionCheckIn] = None,
) -> FatigueState:
    """
    Combine the pre-session check-in with the most recent history entry.

    Check-in values win; otherwise the last session's readiness and pain flags carry
    over. A skipped last session sets missed_last_session.
    """
    last = most_recent(history)

    readiness = 3
    if check_in is not None:
        readiness = check_in.readiness
    elif last is not None and last.readiness_score is not None:
        readiness = last.readiness_score

    pain_flags = {}
    if check_in is not None and check_in.pain_flags:
        pain_flags = dict(check_in.pain_flags)
    elif last is not None and last.pain_flags:
        pain_flags = dict(last.pain_flags)

    missed = last is not None and (last.status or "").lower() == "skipped"

    return FatigueState(
        readiness_score=readiness,
        missed_last_session=missed,
        pain_flags=pain_flags,
    )
