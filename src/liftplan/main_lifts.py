"""
Main Lift Selector

Picks the primary compound lifts that anchor a session. Strict ppl days fill
pattern slots (push: horizontal then vertical; pull: vertical then horizontal;
legs: squat/lunge then hinge) by weighted random choice; other splits take the
first favorite-sorted main-eligible match per target pattern.
"""

import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence

from .biomechanics import DayTag, LegacyPattern, MovementPattern
from .history import get_novelty_multiplier, get_recency_multiplier
from .models import ExerciseCatalogEntry
from .normalizer import Favorites
from .rng import SeededRandom
from .splits import matches_legacy_pattern

logger = logging.getLogger(__name__)

FAVORITE_BIAS = 3.0
MIN_WEIGHT = 0.1
CHEST_SUPPORTED = re.compile(r"chest[- ]?supported", re.IGNORECASE)


def main_lift_weight(
    exercise: ExerciseCatalogEntry,
    favorites: Favorites,
    recency_index: Dict[str, int],
) -> float:
    """max(0.1, favorite bias) × recency multiplier × novelty multiplier."""
    bias = FAVORITE_BIAS if exercise in favorites else 1.0
    return (
        max(MIN_WEIGHT, bias)
        * get_recency_multiplier(exercise.id, recency_index)
        * get_novelty_multiplier(exercise.id, recency_index)
    )


def _fallback_sorted(pool: Sequence[ExerciseCatalogEntry], favorites: Favorites) -> List[ExerciseCatalogEntry]:
    # fatigue cost descending, then favorites
    return sorted(pool, key=lambda e: (-e.fatigue_cost, 0 if e in favorites else 1))


class MainLiftSelector:
    """
    Slot-based main lift selection for one session.

    Args:
        favorites: Favorite exercises
        recency_index: Output of history.build_recency_index
        rng: The call's SeededRandom
        pain_flags: Today's pain flags (low-back pain changes the row preference)
    """

    def __init__(
        self,
        favorites: Favorites,
        recency_index: Dict[str, int],
        rng: SeededRandom,
        pain_flags: Optional[Mapping[str, int]] = None,
    ):
        self.favorites = favorites
        self.recency_index = recency_index
        self.rng = rng
        self.pain_flags = pain_flags or {}

    def pick_slot(
        self,
        pool: Sequence[ExerciseCatalogEntry],
        chosen: Sequence[ExerciseCatalogEntry],
    ) -> Optional[ExerciseCatalogEntry]:
        """Weighted pick from pool, skipping anything already chosen."""
        chosen_ids = {e.id for e in chosen}
        candidates = self.favorites.sort_first(e for e in pool if e.id not in chosen_ids)
        weighted = [(e, main_lift_weight(e, self.favorites, self.recency_index)) for e in candidates]
        return self.rng.weighted_pick(weighted)

    def _fallback(
        self,
        fallback_pool: Optional[Sequence[ExerciseCatalogEntry]],
        pattern: MovementPattern,
        chosen: Sequence[ExerciseCatalogEntry],
    ) -> Optional[ExerciseCatalogEntry]:
        """Weighted pick over the fatigue-sorted accessory pool for one pattern."""
        if not fallback_pool:
            return None
        chosen_ids = {e.id for e in chosen}
        candidates = [
            e for e in _fallback_sorted([e for e in fallback_pool if e.has_pattern(pattern)], self.favorites)
            if e.id not in chosen_ids
        ]
        weighted = [(e, main_lift_weight(e, self.favorites, self.recency_index)) for e in candidates]
        exercise = self.rng.weighted_pick(weighted) or next(iter(candidates), None)
        if exercise:
            logger.debug("Main lift fallback for %s: %s", pattern.value, exercise.name)
        return exercise

    def pick_for_ppl(
        self,
        day_tag: DayTag,
        main_pool: Sequence[ExerciseCatalogEntry],
        fallback_pool: Optional[Sequence[ExerciseCatalogEntry]] = None,
    ) -> List[ExerciseCatalogEntry]:
        """
        Fill the day's two pattern slots.

        The fallback cascades are deliberately asymmetric: push falls back for the
        vertical slot whenever it is empty; pull falls back only when no main lift
        was picked at all; legs never fall back.

        Args:
            day_tag: push, pull or legs
            main_pool: Stall-filtered main-lift-eligible candidates
            fallback_pool: Accessory pool searched when a slot comes up empty

        Returns:
            Zero to two main lifts
        """
        picked: List[ExerciseCatalogEntry] = []

        def with_pattern(*patterns: MovementPattern) -> List[ExerciseCatalogEntry]:
            return [e for e in main_pool if any(e.has_pattern(p) for p in patterns)]

        if day_tag == DayTag.PUSH:
            horizontal = self.pick_slot(with_pattern(MovementPattern.HORIZONTAL_PUSH), picked)
            if horizontal:
                picked.append(horizontal)
            vertical = self.pick_slot(with_pattern(MovementPattern.VERTICAL_PUSH), picked)
            if vertical is None:
                vertical = self._fallback(fallback_pool, MovementPattern.VERTICAL_PUSH, picked)
            if vertical:
                picked.append(vertical)

        elif day_tag == DayTag.PULL:
            vertical = self.pick_slot(with_pattern(MovementPattern.VERTICAL_PULL), picked)
            if vertical:
                picked.append(vertical)
            if not picked:
                fallback = self._fallback(fallback_pool, MovementPattern.VERTICAL_PULL, picked)
                if fallback:
                    picked.append(fallback)

            horizontal_pool = with_pattern(MovementPattern.HORIZONTAL_PULL)
            if self.pain_flags.get("low_back", 0) >= 2:
                supported = [e for e in horizontal_pool if CHEST_SUPPORTED.search(e.name)]
                if supported:
                    horizontal_pool = supported
            horizontal = self.pick_slot(horizontal_pool, picked)
            if horizontal:
                picked.append(horizontal)

        else:
            squat = self.pick_slot(with_pattern(MovementPattern.SQUAT, MovementPattern.LUNGE), picked)
            if squat:
                picked.append(squat)
            hinge = self.pick_slot(with_pattern(MovementPattern.HINGE), picked)
            if hinge:
                picked.append(hinge)

        return picked

    def pick_for_patterns(
        self,
        target_patterns: Sequence[LegacyPattern],
        pool: Sequence[ExerciseCatalogEntry],
        limit: int = 3,
    ) -> List[ExerciseCatalogEntry]:
        """First favorite-sorted main-eligible match per target pattern (non-ppl splits)."""
        picked: List[ExerciseCatalogEntry] = []
        for pattern in target_patterns:
            if len(picked) >= limit:
                break
            matches = self.favorites.sort_first(
                e for e in pool if matches_legacy_pattern(e, pattern) and e.is_main_lift_eligible
            )
            for exercise in matches:
                if exercise not in picked:
                    picked.append(exercise)
                    break
        return picked

    def backfill(
        self,
        picked: List[ExerciseCatalogEntry],
        pool: Sequence[ExerciseCatalogEntry],
        minimum: int,
    ) -> List[ExerciseCatalogEntry]:
        """Top up to `minimum` from remaining main-eligible candidates, favorites first."""
        if len(picked) >= minimum:
            return picked
        chosen_ids = {e.id for e in picked}
        remaining = self.favorites.sort_first(
            e for e in pool if e.is_main_lift_eligible and e.id not in chosen_ids
        )
        return picked + remaining[:minimum - len(picked)]
