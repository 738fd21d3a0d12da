"""
Substitute suggestions for a planned exercise.
"""

from typing import List, Mapping, Optional, Sequence

from .constraints import apply_pain_constraints
from .models import Constraints, ExerciseCatalogEntry
from .selection import has_blocked_tag


def score_substitute(candidate: ExerciseCatalogEntry, target: ExerciseCatalogEntry) -> int:
    """
    Similarity to the exercise being replaced.

    4 per shared movement pattern, 3 per shared primary muscle, 2 per shared
    stimulus bias, plus one point per unit of fatigue cost saved.
    """
    target_muscles = {m.lower() for m in target.primary_muscles}
    target_bias = {b.lower() for b in target.stimulus_bias}

    pattern_overlap = len(candidate.movement_patterns & target.movement_patterns)
    muscle_overlap = sum(1 for m in candidate.primary_muscles if m.lower() in target_muscles)
    stimulus_overlap = sum(1 for b in candidate.stimulus_bias if b.lower() in target_bias)
    fatigue_saved = max(0, target.fatigue_cost - candidate.fatigue_cost)

    return pattern_overlap * 4 + muscle_overlap * 3 + stimulus_overlap * 2 + fatigue_saved


def suggest_substitutes(
    target: ExerciseCatalogEntry,
    catalog: Sequence[ExerciseCatalogEntry],
    constraints: Constraints,
    pain_flags: Optional[Mapping[str, int]] = None,
    limit: int = 3,
) -> List[ExerciseCatalogEntry]:
    """
    Best replacements for `target` the athlete can do right now.

    Candidates need available equipment, a shared split tag, no blocked tag and no
    pain contraindication. Ties keep catalog order.

    Args:
        target: Exercise to replace
        catalog: Exercise catalog
        constraints: Equipment available
        pain_flags: Current pain flags
        limit: Maximum suggestions

    Returns:
        Up to `limit` exercises, best first
    """
    candidates = [
        e for e in apply_pain_constraints((e for e in catalog if e.id != target.id), pain_flags)
        if e.equipment & constraints.available_equipment
        and e.split_tags & target.split_tags
        and not has_blocked_tag(e)
    ]
    ranked = sorted(candidates, key=lambda e: -score_substitute(e, target))
    return ranked[:limit]
