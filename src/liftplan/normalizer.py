"""
Normalization utilities for exercise names.

Preference lists arrive as free text ("Barbell  Bench-Press!"); catalog names are
canonical. Both sides are normalized before comparison.
"""

import re
from typing import Iterable, Optional, Set


def normalize_name(name: str) -> str:
    """
    Normalize an exercise name for matching.

    Lowercases, collapses whitespace, and strips punctuation other than
    parentheses and hyphens.

    Args:
        name: Raw exercise name

    Returns:
        Normalized name
    """
    name = name.lower()
    name = re.sub(r'\s+', ' ', name)
    name = re.sub(r'[^\w\s()-]', '', name)
    return name.strip()


def build_name_set(items: Optional[Iterable[str]]) -> Set[str]:
    """Normalized set of names (empty for None)."""
    if not items:
        return set()
    return {normalize_name(item) for item in items}


class Favorites:
    """Favorite exercises by normalized name or by id."""

    def __init__(self, names: Optional[Iterable[str]] = None, ids: Optional[Iterable[str]] = None):
        self.names = build_name_set(names)
        self.ids = set(ids or ())

    def __contains__(self, exercise) -> bool:
        return exercise.id in self.ids or normalize_name(exercise.name) in self.names

    def add(self, exercise) -> None:
        self.ids.add(exercise.id)

    def sort_first(self, exercises):
        """Stable sort with favorites ahead of everything else."""
        return sorted(exercises, key=lambda exercise: 0 if exercise in self else 1)
