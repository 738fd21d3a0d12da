"""
Accessory Slotter

Walks a day-specific list of accessory slots (chest isolation, side delts, ...)
and fills each with a weighted pick scored for muscle match, stimulus quality and
coverage. Also picks the warmup list and the optional core / conditioning extras.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Set

from .biomechanics import (
    CONDITIONING_TAGS,
    CORE_TAGS,
    WARMUP_TAGS,
    DayTag,
    Equipment,
    MovementPattern,
    SecondaryGoal,
)
from .history import get_novelty_multiplier, get_recency_multiplier
from .models import ExerciseCatalogEntry
from .normalizer import Favorites
from .rng import SeededRandom
from .volume import VolumeContext, add_sets, exceeds_cap, muscle_key

logger = logging.getLogger(__name__)

FILL = "fill"

SLOTS_BY_DAY: Dict[DayTag, List[str]] = {
    DayTag.PUSH: ["chest_isolation", "side_delt", "triceps_isolation"],
    DayTag.PULL: ["rear_delt_or_upper_back", "biceps", "pull_variant"],
    DayTag.LEGS: ["quad_isolation", "hamstring_isolation", "glute_or_unilateral", "calf"],
    DayTag.LOWER: ["quad_isolation", "hamstring_isolation", "glute_or_unilateral", "calf"],
    DayTag.UPPER: ["chest_isolation", "side_delt", "back_compound", "biceps", "triceps_isolation"],
    DayTag.FULL_BODY: ["chest_isolation", "back_compound", "quad_isolation", "hamstring_isolation"],
}

ISOLATION_PREFERRED = {"quad_isolation", "hamstring_isolation"}
PULL_PATTERNS = {MovementPattern.VERTICAL_PULL, MovementPattern.HORIZONTAL_PULL}

VOLUME_EXCEEDED_MULTIPLIER = 0.2
INDIRECT_OVERLAP_PENALTY = 0.7

CARRY_NAME = re.compile(r"farmer|suitcase", re.IGNORECASE)


def _muscles(exercise: ExerciseCatalogEntry) -> Set[str]:
    return {muscle_key(m) for m in exercise.primary_muscles}


def _stimulus(exercise: ExerciseCatalogEntry) -> Set[str]:
    return {s.lower() for s in exercise.stimulus_bias}


def build_slots(day_tag: DayTag, max_accessories: int) -> List[str]:
    """Day slots truncated or padded with fill slots to max_accessories."""
    slots = list(SLOTS_BY_DAY.get(day_tag, []))[:max(0, max_accessories)]
    slots.extend([FILL] * (max_accessories - len(slots)))
    return slots


def matches_slot(slot: str, exercise: ExerciseCatalogEntry) -> bool:
    if slot == FILL:
        return True
    muscles = _muscles(exercise)
    has_pull = bool(exercise.movement_patterns & PULL_PATTERNS)

    if slot == "chest_isolation":
        return "chest" in muscles
    if slot == "side_delt":
        return "side delts" in muscles
    if slot == "triceps_isolation":
        return "triceps" in muscles
    if slot == "rear_delt_or_upper_back":
        return bool(muscles & {"rear delts", "upper back"})
    if slot == "biceps":
        return "biceps" in muscles
    if slot == "pull_variant":
        return has_pull and bool(muscles & {"back", "lats", "upper back", "rear delts"})
    if slot == "quad_isolation":
        return "quads" in muscles
    if slot == "hamstring_isolation":
        return "hamstrings" in muscles
    if slot == "glute_or_unilateral":
        return "glutes" in muscles or exercise.has_pattern(MovementPattern.LUNGE)
    if slot == "calf":
        return "calves" in muscles
    if slot == "back_compound":
        return has_pull and bool(muscles & {"back", "lats", "upper back"})
    return True


def score_slot(
    slot: str,
    exercise: ExerciseCatalogEntry,
    main_patterns: Set[MovementPattern],
    covered_muscles: Set[str],
    favorites: Favorites,
) -> float:
    """
    Desirability of an exercise for a slot.

    Muscle match and isolation bonuses per slot, -1 for repeating a main-lift
    pattern, SFR × 0.5, length position × 0.3, +3 for favorites, +1 per muscle the
    session does not cover yet.
    """
    muscles = _muscles(exercise)
    stimulus = _stimulus(exercise)
    isolation = not exercise.is_compound
    patterns = exercise.movement_patterns
    has_pull = bool(patterns & PULL_PATTERNS)
    uncovered = len(muscles - covered_muscles)

    score = 0.0
    if slot == "chest_isolation":
        score += 6 if "chest" in muscles else 0
        score += 2 if isolation else 0
        score += 2 if stimulus & {"stretch", "metabolic"} else 0
    elif slot == "side_delt":
        score += 6 if "side delts" in muscles else 0
        score += 2 if isolation else 0
        score += 1 if "metabolic" in stimulus else 0
    elif slot == "triceps_isolation":
        score += 6 if "triceps" in muscles else 0
        score += 2 if isolation else 0
        score += 1 if "metabolic" in stimulus else 0
    elif slot == "rear_delt_or_upper_back":
        score += 6 if "rear delts" in muscles else 0
        score += 4 if "upper back" in muscles else 0
        score += 2 if muscles & {"back", "lats"} else 0
        score += 1 if "metabolic" in stimulus else 0
    elif slot == "biceps":
        score += 6 if "biceps" in muscles else 0
        score += 2 if isolation else 0
    elif slot == "pull_variant":
        score += 4 if has_pull else 0
        score += 4 if patterns - main_patterns else -1
        score += 2 if muscles & {"back", "lats", "upper back"} else 0
    elif slot == "quad_isolation":
        score += 6 if "quads" in muscles else 0
        score += 2 if isolation else 0
    elif slot == "hamstring_isolation":
        score += 6 if "hamstrings" in muscles else 0
        score += 2 if isolation else 0
    elif slot == "glute_or_unilateral":
        score += 6 if "glutes" in muscles else 0
        score += 3 if exercise.has_pattern(MovementPattern.LUNGE) else 0
        score += 1 if "stretch" in stimulus else 0
    elif slot == "calf":
        score += 6 if "calves" in muscles else 0
        score += 2 if isolation else 0
    elif slot == "back_compound":
        score += 4 if has_pull else 0
        score += 6 if muscles & {"back", "lats", "upper back"} else 0
        score += 2 if exercise.is_compound else 0
    elif slot == FILL:
        score += uncovered * 3

    if slot != "pull_variant" and patterns & main_patterns:
        score -= 1

    score += exercise.sfr_score * 0.5
    score += exercise.length_position_score * 0.3
    if exercise in favorites:
        score += 3
    score += uncovered
    return score


class AccessorySlotter:
    """
    Fills accessory slots for one session.

    Args:
        favorites: Favorite exercises
        recency_index: Output of history.build_recency_index
        rng: The call's SeededRandom
        volume_context: Weekly volume (optional)
        volume_cap_ratio: Planned/previous week ratio past which picks are damped
    """

    def __init__(
        self,
        favorites: Favorites,
        recency_index: Dict[str, int],
        rng: SeededRandom,
        volume_context: Optional[VolumeContext] = None,
        volume_cap_ratio: float = 1.2,
    ):
        self.favorites = favorites
        self.recency_index = recency_index
        self.rng = rng
        self.volume_context = volume_context
        self.volume_cap_ratio = volume_cap_ratio

    def pick_by_slot(
        self,
        day_tag: DayTag,
        accessory_pool: Sequence[ExerciseCatalogEntry],
        main_lifts: Sequence[ExerciseCatalogEntry],
        max_accessories: int,
        main_lift_sets: int = 4,
        accessory_sets: int = 3,
    ) -> List[ExerciseCatalogEntry]:
        """
        One weighted pick per slot, in slot order.

        Args:
            day_tag: Today's day-tag
            accessory_pool: Candidate accessories (already stall-filtered)
            main_lifts: Chosen main lifts
            max_accessories: Number of slots
            main_lift_sets: Projected sets per main lift (volume damping)
            accessory_sets: Projected sets per accessory (volume damping)

        Returns:
            Picked accessories, at most max_accessories
        """
        remaining = list(accessory_pool)
        selected: List[ExerciseCatalogEntry] = []
        main_patterns = set().union(*(e.movement_patterns for e in main_lifts)) if main_lifts else set()
        covered = set().union(*(_muscles(e) for e in main_lifts)) if main_lifts else set()
        main_secondary = {muscle_key(m) for e in main_lifts for m in e.secondary_muscles}

        planned: Dict[str, int] = dict(self.volume_context.recent) if self.volume_context else {}
        for exercise in main_lifts:
            add_sets(planned, exercise.primary_muscles, main_lift_sets)

        for slot in build_slots(day_tag, max_accessories):
            if not remaining:
                break
            candidates = [e for e in remaining if matches_slot(slot, e)]
            if slot in ISOLATION_PREFERRED:
                isolation = [e for e in candidates if not e.is_compound]
                if isolation:
                    candidates = isolation
            if not candidates:
                continue

            scored = []
            for exercise in candidates:
                score = score_slot(slot, exercise, main_patterns, covered, self.favorites)
                weight = (
                    max(0.1, score)
                    * get_recency_multiplier(exercise.id, self.recency_index)
                    * get_novelty_multiplier(exercise.id, self.recency_index)
                    * self._volume_multiplier(exercise, planned, accessory_sets)
                )
                if _muscles(exercise) & main_secondary:
                    weight *= INDIRECT_OVERLAP_PENALTY
                scored.append((score, exercise, weight))

            scored.sort(key=lambda item: (-item[0], item[1].name))
            pick = self.rng.weighted_pick([(exercise, weight) for _, exercise, weight in scored])
            if pick is None:
                continue

            logger.debug("Slot %s -> %s", slot, pick.name)
            selected.append(pick)
            covered |= _muscles(pick)
            add_sets(planned, pick.primary_muscles, accessory_sets)
            remaining = [e for e in remaining if e.id != pick.id]

        return selected

    def _volume_multiplier(
        self,
        exercise: ExerciseCatalogEntry,
        planned: Dict[str, int],
        accessory_sets: int,
    ) -> float:
        if self.volume_context is None or not exercise.primary_muscles:
            return 1.0
        if exceeds_cap(
            planned,
            self.volume_context.previous,
            self.volume_cap_ratio,
            muscles=exercise.primary_muscles,
            extra_sets=accessory_sets,
        ):
            return VOLUME_EXCEEDED_MULTIPLIER
        return 1.0

    def fill(
        self,
        selected: List[ExerciseCatalogEntry],
        accessory_pool: Sequence[ExerciseCatalogEntry],
        main_lifts: Sequence[ExerciseCatalogEntry],
        min_accessories: int,
        max_accessories: int,
    ) -> List[ExerciseCatalogEntry]:
        """Backfill to min_accessories favorites-first, then top up to max_accessories."""
        result = list(selected)
        taken = {e.id for e in result} | {e.id for e in main_lifts}
        remaining = self.favorites.sort_first(e for e in accessory_pool if e.id not in taken)

        while len(result) < min_accessories and remaining:
            result.append(remaining.pop(0))
        while len(result) < max_accessories and remaining:
            result.append(remaining.pop(0))
        return result


def _first_with_tags(pool: Sequence[ExerciseCatalogEntry], tags) -> Optional[ExerciseCatalogEntry]:
    for exercise in pool:
        if exercise.split_tags & tags:
            return exercise
    return None


def pick_warmup(
    pool: Sequence[ExerciseCatalogEntry],
    favorites: Favorites,
    count: int = 2,
) -> List[ExerciseCatalogEntry]:
    """First `count` mobility/prehab-tagged exercises, favorites first."""
    warmup_pool = [e for e in pool if e.split_tags & WARMUP_TAGS]
    return favorites.sort_first(warmup_pool)[:count]


def pick_optional_extras(
    pool: Sequence[ExerciseCatalogEntry],
    day_tag: DayTag,
    secondary_goal: SecondaryGoal,
    available_equipment: Set[Equipment],
    already: Sequence[ExerciseCatalogEntry] = (),
) -> List[ExerciseCatalogEntry]:
    """
    Core and conditioning additions appended after the warmup.

    One core-tagged exercise always; one conditioning exercise on leg days or when
    the secondary goal is conditioning, in which case a farmer/suitcase carry the
    athlete has equipment for wins over the first conditioning-tagged entry.
    """
    taken = {e.id for e in already}
    candidates = [e for e in pool if e.id not in taken]
    extras: List[ExerciseCatalogEntry] = []

    core = _first_with_tags(candidates, CORE_TAGS)
    if core:
        extras.append(core)
        taken.add(core.id)

    wants_conditioning = day_tag in (DayTag.LEGS, DayTag.LOWER) or secondary_goal == SecondaryGoal.CONDITIONING
    if not wants_conditioning:
        return extras

    conditioning = None
    if secondary_goal == SecondaryGoal.CONDITIONING:
        for exercise in candidates:
            if (
                exercise.id not in taken
                and exercise.has_pattern(MovementPattern.CARRY)
                and CARRY_NAME.search(exercise.name)
                and exercise.equipment & available_equipment
            ):
                conditioning = exercise
                break
    if conditioning is None:
        conditioning = _first_with_tags([e for e in candidates if e.id not in taken], CONDITIONING_TAGS)
    if conditioning:
        extras.append(conditioning)
    return extras


def bias_favorites(
    favorites: Favorites,
    pool: Sequence[ExerciseCatalogEntry],
    secondary_goal: SecondaryGoal,
) -> Favorites:
    """Secondary goal widens the favorite set (conditioning work or main compounds)."""
    predicate: Optional[Callable[[ExerciseCatalogEntry], bool]] = None
    if secondary_goal == SecondaryGoal.CONDITIONING:
        predicate = lambda e: bool(e.split_tags & CONDITIONING_TAGS)
    elif secondary_goal == SecondaryGoal.STRENGTH:
        predicate = lambda e: e.is_main_lift_eligible and e.is_compound
    if predicate is None:
        return favorites
    for exercise in pool:
        if predicate(exercise):
            favorites.add(exercise)
    return favorites
