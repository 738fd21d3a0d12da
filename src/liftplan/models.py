"""
Engine Data Model

Immutable input records (catalog, constraints, fatigue, goals, preferences,
history, periodization snapshot) and the WorkoutPlan the engine hands back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from .biomechanics import (
    Equipment,
    JointStress,
    MovementPattern,
    PrimaryGoal,
    SecondaryGoal,
    SplitTag,
    SplitType,
    TrainingAge,
)


@dataclass(frozen=True)
class RepRange:
    """Inclusive rep range."""
    min: int
    max: int

    @property
    def span(self) -> int:
        return self.max - self.min

    def contains(self, reps: int) -> bool:
        return self.min <= reps <= self.max


@dataclass(frozen=True)
class ExerciseCatalogEntry:
    """One exercise from the reference catalog (read-only per call)."""
    id: str
    name: str
    movement_patterns: FrozenSet[MovementPattern] = frozenset()
    split_tags: FrozenSet[SplitTag] = frozenset()
    joint_stress: JointStress = JointStress.MEDIUM
    equipment: FrozenSet[Equipment] = frozenset()
    primary_muscles: Tuple[str, ...] = ()
    secondary_muscles: Tuple[str, ...] = ()
    fatigue_cost: int = 3
    sfr_score: int = 3
    length_position_score: int = 3
    is_main_lift_eligible: bool = False
    is_compound: bool = False
    rep_range: Optional[RepRange] = None
    time_per_set_sec: Optional[int] = None
    muscle_sra_hours: Mapping[str, float] = field(default_factory=dict, hash=False)
    contraindications: Mapping[str, bool] = field(default_factory=dict, hash=False)
    stimulus_bias: Tuple[str, ...] = ()

    def has_pattern(self, pattern: MovementPattern) -> bool:
        return pattern in self.movement_patterns

    def has_tag(self, tag: SplitTag) -> bool:
        return tag in self.split_tags

    def blocks(self, body_part: str) -> bool:
        """True when the contraindication map blocks this body part."""
        return bool(self.contraindications.get(body_part, False))


@dataclass(frozen=True)
class Constraints:
    available_equipment: FrozenSet[Equipment]
    split_type: SplitType = SplitType.PPL
    session_minutes: int = 0
    days_per_week: int = 3


@dataclass(frozen=True)
class InjuryFlag:
    body_part: str
    severity: int
    is_active: bool = True


@dataclass(frozen=True)
class UserProfile:
    training_age: TrainingAge = TrainingAge.INTERMEDIATE
    injuries: Tuple[InjuryFlag, ...] = ()


@dataclass(frozen=True)
class FatigueState:
    """Readiness (1-5), missed-session flag, and pain flags (0-3 per body part)."""
    readiness_score: int = 3
    missed_last_session: bool = False
    pain_flags: Mapping[str, int] = field(default_factory=dict, hash=False)

    def pain(self, body_part: str) -> int:
        return self.pain_flags.get(body_part, 0)


@dataclass(frozen=True)
class SessionCheckIn:
    readiness: int
    pain_flags: Mapping[str, int] = field(default_factory=dict, hash=False)
    notes: Optional[str] = None


@dataclass(frozen=True)
class Goals:
    primary: PrimaryGoal = PrimaryGoal.HYPERTROPHY
    secondary: SecondaryGoal = SecondaryGoal.NONE


@dataclass(frozen=True)
class RpeTarget:
    """Reps-to-RPE override row: reps within [min_reps, max_reps] use target_rpe."""
    min_reps: int
    max_reps: int
    target_rpe: float


@dataclass(frozen=True)
class UserPreferences:
    favorite_exercises: Tuple[str, ...] = ()
    avoid_exercises: Tuple[str, ...] = ()
    favorite_exercise_ids: Tuple[str, ...] = ()
    avoid_exercise_ids: Tuple[str, ...] = ()
    rpe_targets: Tuple[RpeTarget, ...] = ()
    optional_conditioning: bool = True


@dataclass(frozen=True)
class SetLog:
    reps: int
    load: Optional[float] = None
    rpe: Optional[float] = None


@dataclass(frozen=True)
class HistoryExercise:
    exercise_id: str
    sets: Tuple[SetLog, ...] = ()
    primary_muscles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WorkoutHistoryEntry:
    """One past session. Only completed entries feed stall/recency/recovery."""
    date: datetime
    completed: bool = False
    status: Optional[str] = None  # planned | in_progress | completed | skipped
    exercises: Tuple[HistoryExercise, ...] = ()
    advances_split: bool = True
    readiness_score: Optional[int] = None
    pain_flags: Optional[Mapping[str, int]] = field(default=None, hash=False)

    @property
    def is_completed(self) -> bool:
        return self.completed or (self.status or "").lower() == "completed"


@dataclass(frozen=True)
class PeriodizationModifiers:
    """Snapshot produced by the external mesocycle state machine."""
    rpe_offset: float = 0.0
    set_multiplier: float = 1.0
    back_off_multiplier: float = 0.85
    is_deload: bool = False
    week_in_block: Optional[int] = None


NEUTRAL_PERIODIZATION = PeriodizationModifiers()


# =============================================================================
# Output
# =============================================================================

@dataclass
class WorkoutSet:
    set_index: int
    target_reps: Optional[int] = None
    target_rep_range: Optional[RepRange] = None
    target_rpe: Optional[float] = None
    target_load: Optional[float] = None
    rest_seconds: Optional[int] = None
    role: str = "main"

    @property
    def resolved_reps(self) -> Optional[int]:
        if self.target_reps is not None:
            return self.target_reps
        if self.target_rep_range is not None:
            return self.target_rep_range.min
        return None


@dataclass
class WorkoutExercise:
    id: str
    exercise: ExerciseCatalogEntry
    order_index: int
    is_main_lift: bool
    role: str
    sets: List[WorkoutSet] = field(default_factory=list)
    warmup_sets: List[WorkoutSet] = field(default_factory=list)
    superset_group: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class SraWarning:
    muscle: str
    last_trained_hours_ago: int
    sra_window_hours: float
    recovery_percent: int


@dataclass
class FilteredExerciseSummary:
    exercise_id: str
    exercise_name: str
    reason: str
    user_friendly_message: str


@dataclass
class WorkoutPlan:
    id: str
    seed: int
    day_tag: Optional[str] = None
    warmup: List[WorkoutExercise] = field(default_factory=list)
    main_lifts: List[WorkoutExercise] = field(default_factory=list)
    accessories: List[WorkoutExercise] = field(default_factory=list)
    estimated_minutes: int = 0
    notes: List[str] = field(default_factory=list)
    sra_warnings: List[SraWarning] = field(default_factory=list)
    filtered_exercises: List[FilteredExerciseSummary] = field(default_factory=list)
    degradation_notice: Optional[str] = None

    @property
    def all_exercises(self) -> List[WorkoutExercise]:
        return [*self.warmup, *self.main_lifts, *self.accessories]

    def to_dict(self) -> Dict:
        """Plain-data view for JSON output."""
        def set_dict(s: WorkoutSet) -> Dict:
            return {
                "set_index": s.set_index,
                "role": s.role,
                "target_reps": s.target_reps,
                "target_rep_range": (
                    [s.target_rep_range.min, s.target_rep_range.max]
                    if s.target_rep_range else None
                ),
                "target_rpe": s.target_rpe,
                "target_load": s.target_load,
                "rest_seconds": s.rest_seconds,
            }

        def exercise_dict(e: WorkoutExercise) -> Dict:
            return {
                "id": e.id,
                "exercise_id": e.exercise.id,
                "name": e.exercise.name,
                "order_index": e.order_index,
                "is_main_lift": e.is_main_lift,
                "role": e.role,
                "superset_group": e.superset_group,
                "notes": e.notes,
                "warmup_sets": [set_dict(s) for s in e.warmup_sets],
                "sets": [set_dict(s) for s in e.sets],
            }

        return {
            "id": self.id,
            "seed": self.seed,
            "day_tag": self.day_tag,
            "estimated_minutes": self.estimated_minutes,
            "warmup": [exercise_dict(e) for e in self.warmup],
            "main_lifts": [exercise_dict(e) for e in self.main_lifts],
            "accessories": [exercise_dict(e) for e in self.accessories],
            "notes": list(self.notes),
            "degradation_notice": self.degradation_notice,
            "sra_warnings": [
                {
                    "muscle": w.muscle,
                    "last_trained_hours_ago": w.last_trained_hours_ago,
                    "sra_window_hours": w.sra_window_hours,
                    "recovery_percent": w.recovery_percent,
                }
                for w in self.sra_warnings
            ],
            "filtered_exercises": [
                {
                    "exercise_id": f.exercise_id,
                    "exercise_name": f.exercise_name,
                    "reason": f.reason,
                    "user_friendly_message": f.user_friendly_message,
                }
                for f in self.filtered_exercises
            ],
        }
