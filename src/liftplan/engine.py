"""
Session generation.

generate() runs the full pipeline: split resolution, constraint filtering, main
lift and accessory selection, prescription, load progression, SRA warnings,
time budget and volume caps. WorkoutPlanner binds a config and adds a text
renderer.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from .biomechanics import DayTag
from .config import EngineConfig
from .constraints import summarize_filtered_exercises
from .diagnostics import TIME_BUDGET_UNMET, VOLUME_CAP_TRIMMED, DiagnosticEvent, DiagnosticHook, log_diagnostic
from .errors import ConfigurationError
from .history import derive_fatigue_state
from .models import (
    NEUTRAL_PERIODIZATION,
    Constraints,
    ExerciseCatalogEntry,
    FatigueState,
    Goals,
    PeriodizationModifiers,
    SessionCheckIn,
    UserPreferences,
    UserProfile,
    WorkoutExercise,
    WorkoutHistoryEntry,
    WorkoutPlan,
)
from .prescription import build_warmup_exercise_sets, prescribe_sets
from .progression import assign_target_loads
from .recovery import MuscleRecoveryState, build_muscle_recovery_map, generate_sra_warnings
from .rng import create_rng
from .rules import get_back_off_multiplier
from .selection import select_exercises
from .splits import get_rotation, get_split_day_index, resolve_target_patterns
from .substitution import suggest_substitutes
from .timebudget import enforce_time_budget, estimate_workout_minutes
from .volume import build_volume_context, enforce_volume_caps

logger = logging.getLogger(__name__)

LOW_READINESS_NOTE = "Autoregulated for recovery"
DELOAD_NOTE = "Deload week: keep every set comfortably short of failure"


def _exercise_id(section: str, index: int, exercise: ExerciseCatalogEntry) -> str:
    return f"{section}-{index}-{exercise.id}"


def _plan_id(seed: int, day_tag: DayTag, exercises: Sequence[WorkoutExercise]) -> str:
    digest = hashlib.sha1(
        "|".join([str(seed), day_tag.value, *(e.id for e in exercises)]).encode()
    ).hexdigest()
    return f"plan-{digest[:12]}"


def generate(
    catalog: Sequence[ExerciseCatalogEntry],
    constraints: Constraints,
    goals: Optional[Goals] = None,
    profile: Optional[UserProfile] = None,
    history: Sequence[WorkoutHistoryEntry] = (),
    preferences: Optional[UserPreferences] = None,
    periodization: Optional[PeriodizationModifiers] = None,
    fatigue_state: Optional[FatigueState] = None,
    check_in: Optional[SessionCheckIn] = None,
    seed: Optional[int] = None,
    forced_split: Union[str, DayTag, None] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
    diagnostics: Optional[DiagnosticHook] = None,
) -> WorkoutPlan:
    """
    Generate one workout session.

    The result depends only on the arguments: identical inputs, seed and `now`
    produce an identical plan.

    Args:
        catalog: Exercise catalog
        constraints: Equipment, split type, session budget
        goals: Primary/secondary goal (default hypertrophy)
        profile: Training age and injuries
        history: Past sessions
        preferences: Favorites, avoids, RPE overrides, extras toggle
        periodization: Mesocycle snapshot (neutral when None)
        fatigue_state: Today's readiness; derived from history and check_in when None
        check_in: Pre-session readiness/pain check-in
        seed: RNG seed; drawn from the OS and recorded on the plan when None
        forced_split: Override the rotation (push/pull/legs/upper/lower/full_body)
        now: Reference time for recovery and weekly volume (default: current UTC time)
        config: Engine config
        diagnostics: Hook for diagnostic events (default: log a warning)

    Returns:
        WorkoutPlan

    Raises:
        ConfigurationError: Empty catalog, or no main lift and no accessory survive
            every fallback
    """
    if not catalog:
        raise ConfigurationError("Exercise catalog is empty")

    config = config or EngineConfig()
    goals = goals or Goals()
    profile = profile or UserProfile()
    preferences = preferences or UserPreferences()
    back_off_multiplier = (
        periodization.back_off_multiplier if periodization else get_back_off_multiplier(goals.primary)
    )
    periodization = periodization or NEUTRAL_PERIODIZATION
    diagnostics = diagnostics or log_diagnostic
    now = now or datetime.now(timezone.utc)

    rng = create_rng(seed)
    rotation = get_rotation(constraints.split_type)
    day_index = get_split_day_index(history, len(rotation))
    target_patterns = resolve_target_patterns(constraints.split_type, day_index, forced_split)

    if fatigue_state is None:
        fatigue_state = derive_fatigue_state(history, check_in)

    volume_context = build_volume_context(history, catalog, now)
    selection = select_exercises(
        catalog,
        constraints,
        target_patterns,
        fatigue_state,
        profile,
        goals,
        rng,
        preferences=preferences,
        history=history,
        config=config,
        volume_context=volume_context,
        diagnostics=diagnostics,
    )

    if not selection.main_lifts and not selection.accessories:
        raise ConfigurationError(
            f"No eligible exercises for a {selection.day_tag.value} day "
            f"on a {constraints.split_type.value} split"
        )

    def build(section: str, exercises: Sequence[ExerciseCatalogEntry], is_main: bool) -> List[WorkoutExercise]:
        built = []
        for index, exercise in enumerate(exercises):
            item = WorkoutExercise(
                id=_exercise_id(section, index, exercise),
                exercise=exercise,
                order_index=index,
                is_main_lift=is_main,
                role="main" if is_main else "accessory",
                sets=prescribe_sets(
                    exercise, is_main, profile.training_age, goals, fatigue_state,
                    preferences, periodization, config,
                ),
                notes="Primary movement" if is_main else None,
            )
            built.append(assign_target_loads(
                item, history, profile.training_age,
                back_off_multiplier=back_off_multiplier,
                is_deload=periodization.is_deload,
            ))
        return built

    main_lifts = build("main", selection.main_lifts, True)
    accessories = build("accessory", selection.accessories, False)
    warmup = [
        WorkoutExercise(
            id=_exercise_id("warmup", index, exercise),
            exercise=exercise,
            order_index=index,
            is_main_lift=False,
            role="warmup",
            sets=build_warmup_exercise_sets(exercise),
            notes="Warmup / prep / finisher",
        )
        for index, exercise in enumerate(selection.warmup)
    ]

    notes = []
    if fatigue_state.readiness_score <= 2:
        notes.append(LOW_READINESS_NOTE)
    if periodization.is_deload:
        notes.append(DELOAD_NOTE)

    plan = WorkoutPlan(
        id=_plan_id(rng.seed, selection.day_tag, [*warmup, *main_lifts, *accessories]),
        seed=rng.seed,
        day_tag=selection.day_tag.value,
        warmup=warmup,
        main_lifts=main_lifts,
        accessories=accessories,
        notes=notes,
    )

    plan, notice = enforce_time_budget(plan, constraints.session_minutes, config)
    if notice:
        diagnostics(DiagnosticEvent(
            code=TIME_BUDGET_UNMET,
            message=notice,
            context={"budget_minutes": constraints.session_minutes, "estimated_minutes": plan.estimated_minutes},
        ))

    if config.enforce_volume_caps:
        capped = enforce_volume_caps(plan.accessories, plan.main_lifts, volume_context, config.volume_cap_ratio)
        if len(capped) < len(plan.accessories):
            dropped = [a.exercise.name for a in plan.accessories[len(capped):]]
            diagnostics(DiagnosticEvent(
                code=VOLUME_CAP_TRIMMED,
                message=f"Dropped accessories over the weekly volume cap: {', '.join(dropped)}",
                context={"dropped": dropped},
            ))
            plan.accessories = capped
            plan.estimated_minutes = estimate_workout_minutes(plan.all_exercises, config)

    recovery_map = build_muscle_recovery_map(history, catalog, now)
    target_muscles = [m for item in [*plan.main_lifts, *plan.accessories] for m in item.exercise.primary_muscles]
    plan.sra_warnings = generate_sra_warnings(recovery_map, target_muscles)
    for warning in plan.sra_warnings:
        plan.notes.append(
            f"{warning.muscle} is {warning.recovery_percent}% recovered "
            f"(trained {warning.last_trained_hours_ago}h ago, {warning.sra_window_hours:g}h window)"
        )

    plan.filtered_exercises = summarize_filtered_exercises(selection.filter_result.rejected)
    plan.degradation_notice = notice

    logger.info(
        "Generated %s (%s day, seed %d): %d main, %d accessories, ~%d min",
        plan.id, plan.day_tag, plan.seed, len(plan.main_lifts), len(plan.accessories), plan.estimated_minutes,
    )
    return plan


class WorkoutPlanner:
    """
    Planner facade with a bound config and diagnostics hook.

    Wraps generate() and the standalone preview utilities (recovery map, duration
    estimate, substitutes) and renders plans as text.
    """

    def __init__(self, config: Optional[EngineConfig] = None, diagnostics: Optional[DiagnosticHook] = None):
        """
        Initialize workout planner.

        Args:
            config: Engine config (defaults when None)
            diagnostics: Hook for diagnostic events
        """
        self.config = config or EngineConfig()
        self.diagnostics = diagnostics

    def generate(self, catalog: Sequence[ExerciseCatalogEntry], constraints: Constraints, **kwargs) -> WorkoutPlan:
        kwargs.setdefault("config", self.config)
        kwargs.setdefault("diagnostics", self.diagnostics)
        return generate(catalog, constraints, **kwargs)

    def recovery(
        self,
        history: Sequence[WorkoutHistoryEntry],
        catalog: Sequence[ExerciseCatalogEntry],
        now: Optional[datetime] = None,
    ) -> Dict[str, MuscleRecoveryState]:
        return build_muscle_recovery_map(history, catalog, now or datetime.now(timezone.utc))

    def estimate_minutes(self, plan: WorkoutPlan) -> int:
        return estimate_workout_minutes(plan.all_exercises, self.config)

    def substitutes(self, target, catalog, constraints, pain_flags=None, limit: int = 3):
        return suggest_substitutes(target, catalog, constraints, pain_flags, limit)

    def format_plan_text(self, plan: WorkoutPlan) -> str:
        """
        Format workout plan as readable text.

        Args:
            plan: Generated plan

        Returns:
            Formatted text string
        """
        lines = []

        lines.append("=" * 60)
        lines.append(f"Workout Plan: {(plan.day_tag or 'session').replace('_', ' ').title()} Day")
        lines.append("=" * 60)
        lines.append(f"\nPlan: {plan.id}")
        lines.append(f"Seed: {plan.seed}")
        lines.append(f"Estimated: {plan.estimated_minutes} min")

        sections = [
            ("WARMUP", plan.warmup),
            ("MAIN LIFTS", plan.main_lifts),
            ("ACCESSORIES", plan.accessories),
        ]
        for title, items in sections:
            if not items:
                continue
            lines.append(f"\n{'─' * 60}")
            lines.append(title)
            lines.append('─' * 60)
            for i, item in enumerate(items, 1):
                lines.append(f"\n{i}. {item.exercise.name}")
                lines.append(f"   {_describe_sets(item)}")
                if item.warmup_sets:
                    ramp = ", ".join(
                        f"{s.target_reps}@{s.target_load:g}" if s.target_load else f"{s.target_reps}"
                        for s in item.warmup_sets
                    )
                    lines.append(f"   Ramp: {ramp}")
                if item.notes:
                    lines.append(f"   Notes: {item.notes}")

        if plan.notes or plan.degradation_notice:
            lines.append(f"\n{'─' * 60}")
            lines.append("NOTES")
            lines.append('─' * 60)
            for note in plan.notes:
                lines.append(f"  • {note}")
            if plan.degradation_notice:
                lines.append(f"  • {plan.degradation_notice}")

        if plan.filtered_exercises:
            lines.append("\nFiltered: " + ", ".join(
                f"{f.exercise_name} ({f.user_friendly_message})" for f in plan.filtered_exercises
            ))

        lines.append(f"\n{'=' * 60}")
        return '\n'.join(lines)


def _describe_sets(item: WorkoutExercise) -> str:
    if not item.sets:
        return "No sets"
    first = item.sets[0]
    if first.target_rep_range is not None:
        reps = f"{first.target_rep_range.min}-{first.target_rep_range.max}"
    elif first.target_reps is not None:
        reps = str(first.target_reps)
    else:
        reps = f"{item.exercise.time_per_set_sec or 30}s"
    parts = [f"{len(item.sets)} x {reps}"]
    if first.target_rpe is not None:
        parts.append(f"RPE {first.target_rpe:g}")
    if first.target_load is not None:
        parts.append(f"{first.target_load:g} load")
        back_off = item.sets[-1].target_load
        if back_off is not None and back_off != first.target_load:
            parts.append(f"back-off {back_off:g}")
    if first.rest_seconds is not None:
        parts.append(f"rest {first.rest_seconds}s")
    return " | ".join(parts)
