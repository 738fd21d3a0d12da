"""
Recovery (SRA) Model

Stimulus-recovery-adaptation windows per muscle. A muscle trained 24h ago with a
60h window is 40% recovered. Warnings are advisory and never block selection.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .history import as_utc, filter_completed
from .models import ExerciseCatalogEntry, SraWarning, WorkoutHistoryEntry


@dataclass(frozen=True)
class VolumeLandmarks:
    """Weekly set landmarks (MV/MEV/MAV/MRV) plus the SRA window in hours."""
    mv: int
    mev: int
    mav: int
    mrv: int
    sra_hours: float


VOLUME_LANDMARKS: Dict[str, VolumeLandmarks] = {
    "Chest":       VolumeLandmarks(6, 10, 16, 22, 60),
    "Lats":        VolumeLandmarks(6, 8, 16, 24, 60),
    "Upper Back":  VolumeLandmarks(6, 6, 14, 22, 48),
    "Front Delts": VolumeLandmarks(0, 0, 7, 14, 48),
    "Side Delts":  VolumeLandmarks(6, 8, 19, 26, 36),
    "Rear Delts":  VolumeLandmarks(6, 4, 12, 20, 36),
    "Quads":       VolumeLandmarks(6, 8, 18, 26, 72),
    "Hamstrings":  VolumeLandmarks(6, 6, 16, 24, 72),
    "Glutes":      VolumeLandmarks(0, 0, 8, 16, 72),
    "Biceps":      VolumeLandmarks(6, 8, 17, 26, 36),
    "Triceps":     VolumeLandmarks(4, 6, 12, 20, 48),
    "Calves":      VolumeLandmarks(6, 8, 14, 20, 36),
    "Core":        VolumeLandmarks(0, 0, 12, 20, 36),
    "Lower Back":  VolumeLandmarks(0, 0, 4, 10, 72),
    "Forearms":    VolumeLandmarks(0, 0, 6, 12, 36),
    "Adductors":   VolumeLandmarks(0, 0, 8, 16, 48),
    "Abductors":   VolumeLandmarks(0, 0, 6, 12, 36),
    "Abs":         VolumeLandmarks(0, 0, 10, 16, 36),
}

_CANONICAL = {name.lower(): name for name in VOLUME_LANDMARKS}


@dataclass(frozen=True)
class MuscleRecoveryState:
    muscle: str
    last_trained_hours_ago: Optional[int]
    sra_window_hours: float
    recovery_percent: int

    @property
    def is_recovered(self) -> bool:
        return self.recovery_percent >= 100


def canonical_muscle(name: str) -> Optional[str]:
    """Landmark-table spelling of a muscle name, matched case-insensitively."""
    return _CANONICAL.get(name.strip().lower())


def _window_override(overrides: Mapping[str, float], muscle: str) -> Optional[float]:
    for name, hours in overrides.items():
        if name.strip().lower() == muscle.lower() and hours and hours > 0:
            return float(hours)
    return None


def compute_recovery_percent(hours_since: float, window_hours: float) -> int:
    """min(100, round(hours / window × 100)), rounding half up."""
    if window_hours <= 0:
        return 100
    return min(100, int(hours_since / window_hours * 100 + 0.5))


def build_muscle_recovery_map(
    history: Sequence[WorkoutHistoryEntry],
    catalog: Sequence[ExerciseCatalogEntry],
    now: datetime,
) -> Dict[str, MuscleRecoveryState]:
    """
    Recovery state for every muscle in VOLUME_LANDMARKS.

    Muscles touched by an exercise are the catalog entry's primary muscles plus any
    listed on the history record itself. The window is the training exercise's
    muscle_sra_hours override when it has one, else the landmark hours.

    Args:
        history: Workout history (only completed entries count)
        catalog: Exercise catalog
        now: Reference time

    Returns:
        Dict keyed by canonical muscle name
    """
    by_id = {exercise.id: exercise for exercise in catalog}
    last_trained: Dict[str, datetime] = {}
    windows: Dict[str, float] = {}

    for entry in filter_completed(history):
        trained_at = as_utc(entry.date)
        for logged in entry.exercises:
            exercise = by_id.get(logged.exercise_id)
            if exercise is None:
                continue
            names = [*exercise.primary_muscles, *logged.primary_muscles]
            for muscle in {canonical_muscle(n) for n in names} - {None}:
                previous = last_trained.get(muscle)
                if previous is not None and trained_at <= previous:
                    continue
                last_trained[muscle] = trained_at
                override = _window_override(exercise.muscle_sra_hours, muscle)
                if override is not None:
                    windows[muscle] = override
                else:
                    windows.pop(muscle, None)

    recovery = {}
    for muscle, landmark in VOLUME_LANDMARKS.items():
        window = windows.get(muscle, landmark.sra_hours)
        last = last_trained.get(muscle)
        if last is None:
            recovery[muscle] = MuscleRecoveryState(muscle, None, window, 100)
            continue
        hours = max(0.0, (as_utc(now) - last).total_seconds() / 3600)
        recovery[muscle] = MuscleRecoveryState(
            muscle=muscle,
            last_trained_hours_ago=int(hours + 0.5),
            sra_window_hours=window,
            recovery_percent=compute_recovery_percent(hours, window),
        )
    return recovery


def generate_sra_warnings(
    recovery_map: Mapping[str, MuscleRecoveryState],
    target_muscles: Iterable[str],
) -> List[SraWarning]:
    """Every targeted muscle below 100% recovery, in target order (deduplicated)."""
    warnings = []
    seen = set()
    for name in target_muscles:
        muscle = canonical_muscle(name)
        if muscle is None or muscle in seen:
            continue
        seen.add(muscle)
        state = recovery_map.get(muscle)
        if state is None or state.is_recovered or state.last_trained_hours_ago is None:
            continue
        warnings.append(SraWarning(
            muscle=state.muscle,
            last_trained_hours_ago=state.last_trained_hours_ago,
            sra_window_hours=state.sra_window_hours,
            recovery_percent=state.recovery_percent,
        ))
    return warnings
