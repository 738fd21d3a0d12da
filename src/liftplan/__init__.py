"""
liftplan - deterministic strength session planner.
"""

from .config import EngineConfig
from .engine import WorkoutPlanner, generate
from .errors import CatalogValidationError, ConfigurationError, LiftplanError
from .models import (
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
    WorkoutSet,
)
from .recovery import build_muscle_recovery_map, generate_sra_warnings
from .substitution import suggest_substitutes
from .timebudget import estimate_workout_minutes

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "WorkoutPlanner",
    "generate",
    "LiftplanError",
    "ConfigurationError",
    "CatalogValidationError",
    "Constraints",
    "ExerciseCatalogEntry",
    "FatigueState",
    "Goals",
    "PeriodizationModifiers",
    "SessionCheckIn",
    "UserPreferences",
    "UserProfile",
    "WorkoutExercise",
    "WorkoutHistoryEntry",
    "WorkoutPlan",
    "WorkoutSet",
    "build_muscle_recovery_map",
    "generate_sra_warnings",
    "suggest_substitutes",
    "estimate_workout_minutes",
]
