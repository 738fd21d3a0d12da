"""
YAML loaders for the exercise catalog and athlete context.

This is the only place reference data is validated: unknown pattern, tag,
equipment or enum values raise CatalogValidationError. The engine itself assumes
valid input.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml

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
from .errors import CatalogValidationError
from .models import (
    Constraints,
    ExerciseCatalogEntry,
    FatigueState,
    Goals,
    HistoryExercise,
    InjuryFlag,
    PeriodizationModifiers,
    RepRange,
    RpeTarget,
    SessionCheckIn,
    SetLog,
    UserPreferences,
    UserProfile,
    WorkoutHistoryEntry,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
PathLike = Union[str, Path]


@dataclass
class AthleteContext:
    """Everything about the athlete the engine needs besides the catalog."""
    constraints: Constraints
    profile: UserProfile = field(default_factory=UserProfile)
    goals: Goals = field(default_factory=Goals)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    periodization: Optional[PeriodizationModifiers] = None
    fatigue_state: Optional[FatigueState] = None
    check_in: Optional[SessionCheckIn] = None
    history: List[WorkoutHistoryEntry] = field(default_factory=list)


def _read_yaml(path: PathLike) -> Any:
    with open(path) as f:
        return yaml.safe_load(f)


def _enum(enum_type: Type[E], value: Any, entry_id: Optional[str], field_name: str) -> E:
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise CatalogValidationError(
            f"{entry_id or 'athlete'}: unknown {field_name} {value!r} (allowed: {allowed})",
            entry_id=entry_id,
            field=field_name,
        ) from None


def _enum_set(enum_type: Type[E], values: Any, entry_id: Optional[str], field_name: str) -> frozenset:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(_enum(enum_type, v, entry_id, field_name) for v in values)


def _score(raw: Dict, key: str, entry_id: str) -> int:
    value = raw.get(key, 3)
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise CatalogValidationError(f"{entry_id}: {key} must be an integer 1-5, got {value!r}", entry_id, key)
    return value


def _rep_range(value: Any, entry_id: Optional[str]) -> Optional[RepRange]:
    if value is None:
        return None
    try:
        if isinstance(value, dict):
            low, high = int(value["min"]), int(value["max"])
        else:
            low, high = (int(bound) for bound in value)
    except (KeyError, TypeError, ValueError):
        raise CatalogValidationError(f"{entry_id}: invalid rep_range {value!r}", entry_id, "rep_range") from None
    if low > high or low < 1:
        raise CatalogValidationError(f"{entry_id}: invalid rep_range {value!r}", entry_id, "rep_range")
    return RepRange(low, high)


def parse_exercise(raw: Dict[str, Any]) -> ExerciseCatalogEntry:
    """
    Build one catalog entry from its YAML mapping.

    Args:
        raw: Mapping with at least id and name

    Returns:
        ExerciseCatalogEntry

    Raises:
        CatalogValidationError: Missing id/name or values outside the vocabularies
    """
    entry_id = raw.get("id")
    if not entry_id or not raw.get("name"):
        raise CatalogValidationError(f"Catalog entry needs id and name: {raw!r}", entry_id, "id")
    entry_id = str(entry_id)

    return ExerciseCatalogEntry(
        id=entry_id,
        name=str(raw["name"]),
        movement_patterns=_enum_set(MovementPattern, raw.get("movement_patterns"), entry_id, "movement_pattern"),
        split_tags=_enum_set(SplitTag, raw.get("split_tags"), entry_id, "split_tag"),
        joint_stress=_enum(JointStress, raw.get("joint_stress", "medium"), entry_id, "joint_stress"),
        equipment=_enum_set(Equipment, raw.get("equipment"), entry_id, "equipment"),
        primary_muscles=tuple(raw.get("primary_muscles") or ()),
        secondary_muscles=tuple(raw.get("secondary_muscles") or ()),
        fatigue_cost=_score(raw, "fatigue_cost", entry_id),
        sfr_score=_score(raw, "sfr_score", entry_id),
        length_position_score=_score(raw, "length_position_score", entry_id),
        is_main_lift_eligible=bool(raw.get("main_lift", raw.get("is_main_lift_eligible", False))),
        is_compound=bool(raw.get("compound", raw.get("is_compound", False))),
        rep_range=_rep_range(raw.get("rep_range"), entry_id),
        time_per_set_sec=raw.get("time_per_set_sec"),
        muscle_sra_hours=dict(raw.get("muscle_sra_hours") or {}),
        contraindications={str(k): bool(v) for k, v in (raw.get("contraindications") or {}).items()},
        stimulus_bias=tuple(raw.get("stimulus_bias") or ()),
    )


def load_catalog(path: PathLike) -> List[ExerciseCatalogEntry]:
    """
    Load and validate an exercise catalog YAML file.

    Accepts either a top-level list or a mapping with an `exercises` list.
    Duplicate ids are rejected.
    """
    data = _read_yaml(path)
    raw_entries = data.get("exercises", []) if isinstance(data, dict) else (data or [])

    catalog = []
    seen = set()
    for raw in raw_entries:
        entry = parse_exercise(raw)
        if entry.id in seen:
            raise CatalogValidationError(f"Duplicate exercise id {entry.id!r}", entry.id, "id")
        seen.add(entry.id)
        catalog.append(entry)

    logger.info("Loaded %d exercises from %s", len(catalog), path)
    return catalog


def parse_datetime(value: Any) -> datetime:
    """YAML timestamps, dates or ISO strings -> aware datetime (UTC when naive)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise CatalogValidationError(f"Invalid date {value!r}", field="date") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _pain_flags(raw: Optional[Dict]) -> Dict[str, int]:
    flags = {}
    for body_part, severity in (raw or {}).items():
        if not isinstance(severity, int) or not 0 <= severity <= 3:
            raise CatalogValidationError(f"Pain flag {body_part} must be 0-3, got {severity!r}", field="pain")
        flags[str(body_part)] = severity
    return flags


def _history_entry(raw: Dict[str, Any]) -> WorkoutHistoryEntry:
    exercises = []
    for item in raw.get("exercises") or ():
        sets = tuple(
            SetLog(reps=int(s["reps"]), load=s.get("load"), rpe=s.get("rpe"))
            for s in item.get("sets") or ()
        )
        exercises.append(HistoryExercise(
            exercise_id=str(item.get("id") or item.get("exercise_id")),
            sets=sets,
            primary_muscles=tuple(item.get("muscles") or item.get("primary_muscles") or ()),
        ))
    status = raw.get("status")
    return WorkoutHistoryEntry(
        date=parse_datetime(raw["date"]),
        completed=bool(raw.get("completed", False)),
        status=str(status).lower() if status else None,
        exercises=tuple(exercises),
        advances_split=bool(raw.get("advances_split", True)),
        readiness_score=raw.get("readiness"),
        pain_flags=_pain_flags(raw.get("pain")) if raw.get("pain") else None,
    )


def parse_athlete(data: Dict[str, Any]) -> AthleteContext:
    """Build an AthleteContext from its YAML mapping."""
    raw_constraints = data.get("constraints") or {}
    constraints = Constraints(
        available_equipment=_enum_set(Equipment, raw_constraints.get("equipment"), None, "equipment"),
        split_type=_enum(SplitType, raw_constraints.get("split_type", "ppl"), None, "split_type"),
        session_minutes=int(raw_constraints.get("session_minutes", 0) or 0),
        days_per_week=int(raw_constraints.get("days_per_week", 3)),
    )

    raw_profile = data.get("profile") or {}
    profile = UserProfile(
        training_age=_enum(TrainingAge, raw_profile.get("training_age", "intermediate"), None, "training_age"),
        injuries=tuple(
            InjuryFlag(str(i["body_part"]), int(i.get("severity", 1)), bool(i.get("active", True)))
            for i in raw_profile.get("injuries") or ()
        ),
    )

    raw_goals = data.get("goals") or {}
    goals = Goals(
        primary=_enum(PrimaryGoal, raw_goals.get("primary", "hypertrophy"), None, "primary_goal"),
        secondary=_enum(SecondaryGoal, raw_goals.get("secondary", "none"), None, "secondary_goal"),
    )

    raw_prefs = data.get("preferences") or {}
    preferences = UserPreferences(
        favorite_exercises=tuple(raw_prefs.get("favorites") or ()),
        avoid_exercises=tuple(raw_prefs.get("avoid") or ()),
        favorite_exercise_ids=tuple(raw_prefs.get("favorite_ids") or ()),
        avoid_exercise_ids=tuple(raw_prefs.get("avoid_ids") or ()),
        rpe_targets=tuple(
            RpeTarget(int(r["min"]), int(r["max"]), float(r["rpe"]))
            for r in raw_prefs.get("rpe_targets") or ()
        ),
        optional_conditioning=bool(raw_prefs.get("optional_conditioning", True)),
    )

    periodization = None
    if data.get("periodization"):
        raw_period = data["periodization"]
        periodization = PeriodizationModifiers(
            rpe_offset=float(raw_period.get("rpe_offset", 0.0)),
            set_multiplier=float(raw_period.get("set_multiplier", 1.0)),
            back_off_multiplier=float(raw_period.get("back_off_multiplier", 0.85)),
            is_deload=bool(raw_period.get("deload", False)),
            week_in_block=raw_period.get("week"),
        )

    fatigue_state = None
    if data.get("fatigue"):
        raw_fatigue = data["fatigue"]
        fatigue_state = FatigueState(
            readiness_score=int(raw_fatigue.get("readiness", 3)),
            missed_last_session=bool(raw_fatigue.get("missed_last_session", False)),
            pain_flags=_pain_flags(raw_fatigue.get("pain")),
        )

    check_in = None
    if data.get("check_in"):
        raw_check_in = data["check_in"]
        check_in = SessionCheckIn(
            readiness=int(raw_check_in.get("readiness", 3)),
            pain_flags=_pain_flags(raw_check_in.get("pain")),
            notes=raw_check_in.get("notes"),
        )

    history = [_history_entry(raw) for raw in data.get("history") or ()]

    return AthleteContext(
        constraints=constraints,
        profile=profile,
        goals=goals,
        preferences=preferences,
        periodization=periodization,
        fatigue_state=fatigue_state,
        check_in=check_in,
        history=history,
    )


def load_athlete(path: PathLike) -> AthleteContext:
    """Load and validate an athlete context YAML file."""
    data = _read_yaml(path) or {}
    if not isinstance(data, dict):
        raise CatalogValidationError(f"Athlete file must hold a mapping: {path}")
    return parse_athlete(data)
