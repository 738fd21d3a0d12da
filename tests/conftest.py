"""Shared fixtures for the liftplan test suite."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from liftplan.biomechanics import Equipment, SplitType
from liftplan.catalog import load_athlete, load_catalog
from liftplan.models import (
    Constraints,
    ExerciseCatalogEntry,
    HistoryExercise,
    SetLog,
    WorkoutExercise,
    WorkoutHistoryEntry,
    WorkoutSet,
)

DATA_DIR = Path(__file__).parent.parent / "data"
CATALOG_PATH = DATA_DIR / "sample_catalog.yaml"
ATHLETE_PATH = DATA_DIR / "sample_athlete.yaml"

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
FULL_GYM = frozenset(Equipment)


def _make_exercise(exercise_id="ex", name=None, patterns=(), tags=(), equipment=(Equipment.DUMBBELL,),
                   muscles=(), **kwargs):
    return ExerciseCatalogEntry(
        id=exercise_id,
        name=name or exercise_id.replace("-", " ").title(),
        movement_patterns=frozenset(patterns),
        split_tags=frozenset(tags),
        equipment=frozenset(equipment),
        primary_muscles=tuple(muscles),
        **kwargs,
    )


def _make_entry(days_ago=1, exercises=(), status="completed", now=NOW, **kwargs):
    logged = []
    for item in exercises:
        exercise_id, sets = item[0], item[1]
        logged.append(HistoryExercise(
            exercise_id=exercise_id,
            sets=tuple(SetLog(*s) if isinstance(s, tuple) else SetLog(reps=s) for s in sets),
        ))
    return WorkoutHistoryEntry(
        date=now - timedelta(days=days_ago),
        status=status,
        exercises=tuple(logged),
        **kwargs,
    )


def _make_item(exercise, is_main=False, sets=3, reps=10, rest=90, item_id=None, superset_group=None):
    return WorkoutExercise(
        id=item_id or f"{'main' if is_main else 'accessory'}-{exercise.id}",
        exercise=exercise,
        order_index=0,
        is_main_lift=is_main,
        role="main" if is_main else "accessory",
        sets=[WorkoutSet(set_index=i + 1, target_reps=reps, rest_seconds=rest) for i in range(sets)],
        superset_group=superset_group,
    )


@pytest.fixture
def make_exercise():
    """Factory for catalog entries: make_exercise("id", patterns=..., tags=..., **fields)."""
    return _make_exercise


@pytest.fixture
def make_entry():
    """Factory for history entries: make_entry(days_ago, [("id", [(reps, load, rpe), ...])])."""
    return _make_entry


@pytest.fixture
def make_item():
    """Factory for planned WorkoutExercise rows with flat sets."""
    return _make_item


@pytest.fixture
def now():
    return NOW


@pytest.fixture(scope="session")
def sample_catalog():
    return load_catalog(CATALOG_PATH)


@pytest.fixture
def sample_athlete():
    return load_athlete(ATHLETE_PATH)


@pytest.fixture
def full_gym():
    return Constraints(available_equipment=FULL_GYM, split_type=SplitType.PPL, session_minutes=0)
