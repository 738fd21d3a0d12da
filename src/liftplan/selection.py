"""
Exercise selection.

Runs the constraint filter, then picks main lifts, accessories and the warmup list
for the resolved day-tag.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .accessories import AccessorySlotter, bias_favorites, pick_optional_extras, pick_warmup
from .biomechanics import BLOCKED_TAGS, PREP_PATTERNS, DayTag, LegacyPattern, SplitTag, SplitType
from .config import EngineConfig
from .constraints import ConstraintFilter, FilterResult, apply_stall_filter
from .diagnostics import DiagnosticHook
from .history import build_recency_index
from .main_lifts import MainLiftSelector
from .models import (
    Constraints,
    ExerciseCatalogEntry,
    FatigueState,
    Goals,
    UserPreferences,
    UserProfile,
    WorkoutHistoryEntry,
)
from .normalizer import Favorites
from .prescription import resolve_set_count
from .rng import SeededRandom
from .splits import matches_legacy_pattern, resolve_allowed_patterns, resolve_day_tag
from .volume import VolumeContext

logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    day_tag: DayTag
    target_patterns: List[LegacyPattern]
    main_lifts: List[ExerciseCatalogEntry] = field(default_factory=list)
    accessories: List[ExerciseCatalogEntry] = field(default_factory=list)
    warmup: List[ExerciseCatalogEntry] = field(default_factory=list)
    filter_result: Optional[FilterResult] = None


def has_blocked_tag(exercise: ExerciseCatalogEntry) -> bool:
    return bool(exercise.split_tags & BLOCKED_TAGS)


def select_exercises(
    catalog: Sequence[ExerciseCatalogEntry],
    constraints: Constraints,
    target_patterns: Sequence[LegacyPattern],
    fatigue_state: FatigueState,
    profile: UserProfile,
    goals: Goals,
    rng: SeededRandom,
    preferences: Optional[UserPreferences] = None,
    history: Sequence[WorkoutHistoryEntry] = (),
    config: Optional[EngineConfig] = None,
    volume_context: Optional[VolumeContext] = None,
    diagnostics: Optional[DiagnosticHook] = None,
) -> SelectionResult:
    """
    Pick today's exercises.

    Args:
        catalog: Full exercise catalog
        constraints: Equipment and split
        target_patterns: Legacy patterns resolved for today
        fatigue_state: Readiness and pain flags
        profile: Training age and injuries
        goals: Primary and secondary goal
        rng: The call's SeededRandom (shared by every weighted pick)
        preferences: Favorites, avoids and extras toggle
        history: Workout history
        config: Selection counts
        volume_context: Weekly volume used to damp accessory picks
        diagnostics: Hook for data-integrity events

    Returns:
        SelectionResult
    """
    config = config or EngineConfig()
    preferences = preferences or UserPreferences()

    filter_result = ConstraintFilter(
        constraints, fatigue_state, preferences, profile, history, diagnostics,
    ).apply(catalog)
    pool = filter_result.exercises

    favorites = Favorites(preferences.favorite_exercises, preferences.favorite_exercise_ids)
    favorites = bias_favorites(favorites, pool, goals.secondary)
    recency_index = build_recency_index(history)

    day_tag = resolve_day_tag(constraints.split_type, target_patterns)
    lift_selector = MainLiftSelector(favorites, recency_index, rng, fatigue_state.pain_flags)
    slotter = AccessorySlotter(
        favorites, recency_index, rng, volume_context, config.volume_cap_ratio,
    )

    if constraints.split_type == SplitType.PPL:
        day_split_tag = SplitTag(day_tag.value)
        candidates = [e for e in pool if e.has_tag(day_split_tag) and not has_blocked_tag(e)]
    else:
        allowed = resolve_allowed_patterns(constraints.split_type, target_patterns)
        candidates = [
            e for e in pool
            if not has_blocked_tag(e) and any(matches_legacy_pattern(e, p) for p in allowed)
        ]

    main_pool = apply_stall_filter([e for e in candidates if e.is_main_lift_eligible], filter_result.stalled_ids)
    accessory_pool = apply_stall_filter([e for e in candidates if not e.is_main_lift_eligible], filter_result.stalled_ids)

    if constraints.split_type == SplitType.PPL:
        main_lifts = lift_selector.pick_for_ppl(day_tag, main_pool, fallback_pool=accessory_pool)
    else:
        main_lifts = lift_selector.pick_for_patterns(
            target_patterns, main_pool, limit=config.max_non_ppl_main_lifts,
        )
    main_lifts = lift_selector.backfill(main_lifts, main_pool, config.min_main_lifts)

    main_ids = {e.id for e in main_lifts}
    accessory_pool = [e for e in accessory_pool if e.id not in main_ids]

    main_sets = resolve_set_count(True, profile.training_age, fatigue_state, goal=goals.primary, config=config)
    accessory_sets = resolve_set_count(False, profile.training_age, fatigue_state, goal=goals.primary, config=config)

    accessories = slotter.pick_by_slot(
        day_tag, accessory_pool, main_lifts, config.max_accessories, main_sets, accessory_sets,
    )
    accessories = slotter.fill(
        accessories, accessory_pool, main_lifts, config.min_accessories, config.max_accessories,
    )

    warmup = pick_warmup(pool, favorites, config.warmup_count)
    if len(warmup) < config.warmup_count and constraints.split_type != SplitType.PPL:
        taken = {e.id for e in [*warmup, *main_lifts, *accessories]}
        prep = [
            e for e in candidates
            if e.id not in taken and e.movement_patterns & PREP_PATTERNS
        ]
        warmup.extend(prep[:config.warmup_count - len(warmup)])

    if preferences.optional_conditioning:
        warmup.extend(pick_optional_extras(
            pool,
            day_tag,
            goals.secondary,
            constraints.available_equipment,
            already=[*warmup, *main_lifts, *accessories],
        ))

    logger.info(
        "Selected %s day: %d main, %d accessories, %d warmup",
        day_tag.value, len(main_lifts), len(accessories), len(warmup),
    )
    return SelectionResult(
        day_tag=day_tag,
        target_patterns=list(target_patterns),
        main_lifts=main_lifts,
        accessories=accessories,
        warmup=warmup,
        filter_result=filter_result,
    )
