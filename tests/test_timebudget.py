"""Tests for session time estimation and accessory trimming."""

import pytest

from liftplan.config import EngineConfig
from liftplan.models import WorkoutPlan
from liftplan.timebudget import (
    enforce_time_budget,
    estimate_work_seconds,
    estimate_workout_minutes,
    estimate_workout_seconds,
    superset_pair_seconds,
    superset_shared_rest,
    trim_accessories_by_priority,
)


@pytest.fixture
def plan(make_exercise, make_item):
    """One 1-set main lift (~9 min with its ramp) and three 6-minute accessories."""
    main = make_item(make_exercise("bench", muscles=["Chest"]), is_main=True, sets=1, reps=5, rest=240)
    accessories = [
        make_item(make_exercise("curl", muscles=["Biceps"], sfr_score=5)),
        make_item(make_exercise("pushdown", muscles=["Triceps"], sfr_score=3)),
        make_item(make_exercise("calf-raise", muscles=["Calves"], sfr_score=1)),
    ]
    return WorkoutPlan(id="plan-test", seed=1, main_lifts=[main], accessories=accessories)


class TestEstimation:

    @pytest.mark.parametrize("reps,expected", [(1, 20), (10, 30), (50, 90), (None, 45)])
    def test_work_seconds(self, reps, expected):
        assert estimate_work_seconds(reps, 45) == expected

    def test_superset_shared_rest(self):
        assert superset_shared_rest([90, 120]) == 72
        assert superset_shared_rest([60, 45]) == 60

    def test_superset_pair_timed_jointly(self, make_exercise, make_item):
        first = make_item(make_exercise("curl"), sets=1, rest=90, superset_group=1)
        second = make_item(make_exercise("pushdown"), sets=1, rest=120, superset_group=1)

        assert superset_pair_seconds(first, second, EngineConfig()) == 30 + 30 + 72
        assert estimate_workout_seconds([first, second]) == 132

    def test_sequential_without_group(self, make_exercise, make_item):
        first = make_item(make_exercise("curl"), sets=1, rest=90)
        second = make_item(make_exercise("pushdown"), sets=1, rest=120)
        assert estimate_workout_seconds([first, second]) == 30 + 90 + 30 + 120

    def test_groups_of_three_are_not_supersets(self, make_exercise, make_item):
        items = [make_item(make_exercise(f"acc-{i}"), sets=1, rest=90, superset_group=1) for i in range(3)]
        assert estimate_workout_seconds(items) == 3 * (30 + 90)

    def test_main_lift_counts_projected_ramp(self, plan):
        # ramp 8/5/3 reps: (26+60) + (20+60) + (20+90), then one 5-rep set
        assert estimate_workout_seconds(plan.main_lifts) == 276 + 260

    def test_minutes_round_half_up(self, plan):
        assert estimate_workout_minutes(plan.all_exercises) == 27


class TestRetentionTrimming:

    def test_lowest_score_removed_first(self, plan):
        kept = trim_accessories_by_priority(plan.accessories, plan.main_lifts, 1)
        assert [a.exercise.id for a in kept] == ["curl", "pushdown"]

    def test_tie_goes_to_higher_fatigue(self, make_exercise, make_item):
        accessories = [
            make_item(make_exercise("easy", muscles=["Biceps"], fatigue_cost=2)),
            make_item(make_exercise("hard", muscles=["Biceps"], fatigue_cost=3)),
        ]
        kept = trim_accessories_by_priority(accessories, [], 1)
        assert [a.exercise.id for a in kept] == ["easy"]

    def test_tie_then_alphabetical(self, make_exercise, make_item):
        accessories = [
            make_item(make_exercise("beta", name="Beta Curl", muscles=["Biceps"])),
            make_item(make_exercise("alpha", name="Alpha Curl", muscles=["Biceps"])),
        ]
        kept = trim_accessories_by_priority(accessories, [], 1)
        assert [a.exercise.id for a in kept] == ["beta"]

    def test_weights_come_from_config(self, plan):
        # a negative SFR weight flips the order
        config = EngineConfig(retention_sfr_weight=-1.0)
        kept = trim_accessories_by_priority(plan.accessories, plan.main_lifts, 1, config)
        assert [a.exercise.id for a in kept] == ["pushdown", "calf-raise"]


class TestEnforceTimeBudget:

    def test_fits_without_trimming(self, plan):
        fitted, notice = enforce_time_budget(plan, 60)
        assert len(fitted.accessories) == 3
        assert fitted.estimated_minutes == 27
        assert notice is None

    def test_zero_budget_disables(self, plan):
        fitted, notice = enforce_time_budget(plan, 0)
        assert len(fitted.accessories) == 3
        assert notice is None

    def test_trims_one_at_a_time_until_it_fits(self, plan):
        fitted, notice = enforce_time_budget(plan, 20)
        assert [a.exercise.id for a in fitted.accessories] == ["curl"]
        assert fitted.estimated_minutes == 15
        assert notice is None

    def test_main_lifts_over_budget_leaves_plan_unchanged(self, plan):
        fitted, notice = enforce_time_budget(plan, 5)
        assert fitted.main_lifts == plan.main_lifts
        assert len(fitted.accessories) == 3
        assert "Main lifts alone" in notice

    @pytest.mark.parametrize("budget", range(1, 30))
    def test_main_lifts_never_trimmed(self, plan, budget):
        fitted, _ = enforce_time_budget(plan, budget)
        assert [m.id for m in fitted.main_lifts] == [m.id for m in plan.main_lifts]

    def test_input_plan_not_mutated(self, plan):
        enforce_time_budget(plan, 20)
        assert len(plan.accessories) == 3
