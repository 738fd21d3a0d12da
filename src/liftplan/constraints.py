"""
Constraint Filter

Narrows the exercise catalog to what this athlete can safely do today: equipment,
avoided exercises, injuries, pain flags, readiness, and split-tag data integrity.
Every exercise that leaves the pool is recorded with the stage that removed it.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set

from .biomechanics import JointStress, MovementPattern, SplitTag
from .diagnostics import DUAL_TAGGED_SPLIT, DiagnosticEvent, DiagnosticHook, log_diagnostic
from .history import find_stalled_exercises
from .models import (
    Constraints,
    ExerciseCatalogEntry,
    FatigueState,
    FilteredExerciseSummary,
    UserPreferences,
    UserProfile,
    WorkoutHistoryEntry,
)
from .normalizer import build_name_set, normalize_name

logger = logging.getLogger(__name__)

# Rejection reasons
EQUIPMENT_UNAVAILABLE = "equipment_unavailable"
USER_AVOIDED = "user_avoided"
INJURY_CONFLICT = "injury_conflict"
PAIN_CONFLICT = "pain_conflict"
LOW_READINESS = "low_readiness"
DATA_INTEGRITY = "data_integrity"

PAIN_THRESHOLD = 2
INJURY_SEVERITY_THRESHOLD = 3
LOW_READINESS_THRESHOLD = 2
LOW_BACK = "low_back"

FRIENDLY_MESSAGES = {
    EQUIPMENT_UNAVAILABLE: "Equipment not available",
    USER_AVOIDED: "Avoided per your preferences",
    INJURY_CONFLICT: "Excluded to protect an active injury",
    PAIN_CONFLICT: "Excluded due to recent pain signals",
    LOW_READINESS: "Skipped today to match your readiness",
    DATA_INTEGRITY: "Excluded pending a catalog data fix",
}


@dataclass(frozen=True)
class RejectedExercise:
    exercise: ExerciseCatalogEntry
    reason: str


@dataclass
class FilterResult:
    """
    Output of ConstraintFilter.apply.

    `exercises` is the pool after every hard constraint. Stall exclusion is applied
    per selection pool with apply_stall_filter, using `stalled_ids`.
    """
    exercises: List[ExerciseCatalogEntry]
    stalled_ids: FrozenSet[str] = frozenset()
    rejected: List[RejectedExercise] = field(default_factory=list)

    @property
    def exercise_ids(self) -> Set[str]:
        return {exercise.id for exercise in self.exercises}


def _partition(
    exercises: Sequence[ExerciseCatalogEntry],
    keep: Callable[[ExerciseCatalogEntry], bool],
    reason: str,
    rejected: List[RejectedExercise],
) -> List[ExerciseCatalogEntry]:
    kept = []
    for exercise in exercises:
        if keep(exercise):
            kept.append(exercise)
        else:
            rejected.append(RejectedExercise(exercise, reason))
    return kept


def is_pain_blocked(exercise: ExerciseCatalogEntry, pain_flags: Optional[Mapping[str, int]]) -> bool:
    """True when any pain flag at or above threshold rules this exercise out."""
    if not pain_flags:
        return False
    for body_part, severity in pain_flags.items():
        if severity < PAIN_THRESHOLD:
            continue
        if exercise.blocks(body_part):
            return True
        if body_part == LOW_BACK and exercise.has_pattern(MovementPattern.HINGE):
            return True
    return False


def apply_pain_constraints(
    exercises: Iterable[ExerciseCatalogEntry],
    pain_flags: Optional[Mapping[str, int]],
) -> List[ExerciseCatalogEntry]:
    """
    Drop exercises contraindicated by pain flags of severity 2 or more.

    Low-back pain additionally removes every hinge-pattern exercise regardless of
    its contraindication map.
    """
    return [exercise for exercise in exercises if not is_pain_blocked(exercise, pain_flags)]


def apply_stall_filter(
    exercises: Sequence[ExerciseCatalogEntry],
    stalled_ids: Iterable[str],
) -> List[ExerciseCatalogEntry]:
    """
    Exclude stalled exercises unless that would empty the pool.

    Returns:
        The filtered pool, or the unfiltered pool when every candidate is stalled
    """
    stalled = set(stalled_ids)
    if not stalled:
        return list(exercises)
    filtered = [exercise for exercise in exercises if exercise.id not in stalled]
    return filtered if filtered else list(exercises)


def is_dual_tagged(exercise: ExerciseCatalogEntry) -> bool:
    return exercise.has_tag(SplitTag.PUSH) and exercise.has_tag(SplitTag.PULL)


class ConstraintFilter:
    """
    Applies the hard constraints for one generation call.

    Stages run in a fixed order, each producing a smaller or equal pool:
    equipment, preferences, injury, pain, fatigue, split-tag integrity. Stalled
    exercises are detected here and excluded later, per pool.
    """

    def __init__(
        self,
        constraints: Constraints,
        fatigue_state: FatigueState,
        preferences: Optional[UserPreferences] = None,
        profile: Optional[UserProfile] = None,
        history: Sequence[WorkoutHistoryEntry] = (),
        diagnostics: Optional[DiagnosticHook] = None,
    ):
        """
        Initialize the filter.

        Args:
            constraints: Equipment and split settings
            fatigue_state: Readiness and pain flags for today
            preferences: Avoided names/ids (optional)
            profile: Training age and injuries (optional)
            history: Workout history used for stall detection
            diagnostics: Hook receiving data-integrity events; defaults to logging
        """
        self.constraints = constraints
        self.fatigue_state = fatigue_state
        self.preferences = preferences or UserPreferences()
        self.avoid_names = build_name_set(self.preferences.avoid_exercises)
        self.profile = profile or UserProfile()
        self.history = history
        self.diagnostics = diagnostics or log_diagnostic

    def apply(self, catalog: Sequence[ExerciseCatalogEntry]) -> FilterResult:
        """
        Run every stage over the catalog.

        Args:
            catalog: Full exercise catalog

        Returns:
            FilterResult with the surviving pool, stalled ids and rejections
        """
        rejected: List[RejectedExercise] = []

        pool = _partition(catalog, self._has_equipment, EQUIPMENT_UNAVAILABLE, rejected)
        pool = _partition(pool, self._not_avoided, USER_AVOIDED, rejected)

        if self._has_serious_injury():
            pool = _partition(pool, _not_high_stress, INJURY_CONFLICT, rejected)

        pain_flags = self.fatigue_state.pain_flags
        pool = _partition(pool, lambda e: not is_pain_blocked(e, pain_flags), PAIN_CONFLICT, rejected)

        if self.fatigue_state.readiness_score <= LOW_READINESS_THRESHOLD:
            pool = _partition(pool, _not_high_stress, LOW_READINESS, rejected)

        pool = self._check_split_tag_integrity(pool, rejected)

        stalled = frozenset(find_stalled_exercises(self.history))

        logger.debug(
            "Constraint filter kept %d of %d exercises (%d rejected, %d stalled)",
            len(pool), len(catalog), len(rejected), len(stalled),
        )
        return FilterResult(exercises=pool, stalled_ids=stalled, rejected=rejected)

    def _has_equipment(self, exercise: ExerciseCatalogEntry) -> bool:
        return bool(exercise.equipment & self.constraints.available_equipment)

    def _not_avoided(self, exercise: ExerciseCatalogEntry) -> bool:
        if normalize_name(exercise.name) in self.avoid_names:
            return False
        return exercise.id not in self.preferences.avoid_exercise_ids

    def _has_serious_injury(self) -> bool:
        return any(
            injury.is_active and injury.severity >= INJURY_SEVERITY_THRESHOLD
            for injury in self.profile.injuries
        )

    def _check_split_tag_integrity(
        self,
        pool: List[ExerciseCatalogEntry],
        rejected: List[RejectedExercise],
    ) -> List[ExerciseCatalogEntry]:
        invalid = [exercise for exercise in pool if is_dual_tagged(exercise)]
        if not invalid:
            return pool

        names = ", ".join(exercise.name for exercise in invalid)
        self.diagnostics(DiagnosticEvent(
            code=DUAL_TAGGED_SPLIT,
            message=f"Exercises must not be dual-tagged push/pull: {names}",
            context={"exercise_ids": [exercise.id for exercise in invalid]},
        ))
        return _partition(pool, lambda e: not is_dual_tagged(e), DATA_INTEGRITY, rejected)


def _not_high_stress(exercise: ExerciseCatalogEntry) -> bool:
    return exercise.joint_stress != JointStress.HIGH


def summarize_filtered_exercises(
    rejected: Iterable[RejectedExercise],
    reasons: Optional[Iterable[str]] = None,
) -> List[FilteredExerciseSummary]:
    """
    User-facing summary of rejected exercises.

    Args:
        rejected: Rejections from a FilterResult
        reasons: Only include these reasons (default: all but equipment_unavailable)

    Returns:
        One summary per exercise, in rejection order
    """
    wanted = set(reasons) if reasons is not None else set(FRIENDLY_MESSAGES) - {EQUIPMENT_UNAVAILABLE}
    summaries = []
    seen: Set[str] = set()
    for item in rejected:
        if item.reason not in wanted or item.exercise.id in seen:
            continue
        seen.add(item.exercise.id)
        summaries.append(FilteredExerciseSummary(
            exercise_id=item.exercise.id,
            exercise_name=item.exercise.name,
            reason=item.reason,
            user_friendly_message=FRIENDLY_MESSAGES.get(item.reason, f"Filtered ({item.reason})"),
        ))
    return summaries
