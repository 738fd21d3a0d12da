"""Tests for set counts, rep ranges, RPE and rest."""

import pytest

from liftplan.biomechanics import Equipment, PrimaryGoal, TrainingAge
from liftplan.config import EngineConfig
from liftplan.models import FatigueState, Goals, PeriodizationModifiers, RepRange, RpeTarget, UserPreferences
from liftplan.prescription import (
    build_projected_warmup_sets,
    build_warmup_exercise_sets,
    build_warmup_sets_from_top_set,
    can_resolve_load_for_warmup_ramp,
    clamp_rep_range,
    get_rest_seconds,
    prescribe_sets,
    resolve_set_count,
    resolve_target_rpe,
    round_load,
    widen_accessory_range,
)

FRESH = FatigueState()
HYPERTROPHY = Goals(primary=PrimaryGoal.HYPERTROPHY)
STRENGTH = Goals(primary=PrimaryGoal.STRENGTH)


class TestSetCount:

    def test_base_counts(self):
        assert resolve_set_count(True, TrainingAge.INTERMEDIATE, FRESH) == 4
        assert resolve_set_count(False, TrainingAge.INTERMEDIATE, FRESH) == 3

    def test_low_readiness_and_missed_session_subtract_once(self):
        fatigue = FatigueState(readiness_score=1, missed_last_session=True)
        # advanced: round(4 × 1.15) = 5, then a single -1
        assert resolve_set_count(True, TrainingAge.ADVANCED, fatigue) == 4

    @pytest.mark.parametrize("training_age", list(TrainingAge))
    @pytest.mark.parametrize("multiplier", [0.1, 0.5, 1.0])
    def test_never_below_two(self, training_age, multiplier):
        fatigue = FatigueState(readiness_score=1, missed_last_session=True)
        for is_main in (True, False):
            assert resolve_set_count(is_main, training_age, fatigue, multiplier) >= 2

    def test_periodization_multiplier(self):
        assert resolve_set_count(True, TrainingAge.INTERMEDIATE, FRESH, 1.5) == 6

    def test_fat_loss_policy_is_opt_in(self):
        revised = EngineConfig(revised_fat_loss_set_policy=True)
        assert resolve_set_count(True, TrainingAge.INTERMEDIATE, FRESH, goal=PrimaryGoal.FAT_LOSS) == 4
        assert resolve_set_count(
            True, TrainingAge.INTERMEDIATE, FRESH, goal=PrimaryGoal.FAT_LOSS, config=revised,
        ) == 3
        assert resolve_set_count(
            False, TrainingAge.INTERMEDIATE, FRESH, goal=PrimaryGoal.FAT_LOSS, config=revised,
        ) == 2

    def test_fat_loss_policy_ignores_other_goals(self):
        revised = EngineConfig(revised_fat_loss_set_policy=True)
        assert resolve_set_count(
            True, TrainingAge.INTERMEDIATE, FRESH, goal=PrimaryGoal.STRENGTH, config=revised,
        ) == 4


class TestRepRanges:

    def test_clamp_intersects(self):
        assert clamp_rep_range(RepRange(6, 10), RepRange(8, 15)) == RepRange(8, 10)

    def test_clamp_disjoint_uses_exercise_range(self):
        assert clamp_rep_range(RepRange(3, 6), RepRange(10, 20)) == RepRange(10, 20)

    def test_clamp_without_hint(self):
        assert clamp_rep_range(RepRange(6, 10), None) == RepRange(6, 10)

    def test_widen_upward_first(self):
        assert widen_accessory_range(RepRange(10, 10), RepRange(10, 20)) == RepRange(10, 12)

    def test_widen_downward_only_when_needed(self):
        assert widen_accessory_range(RepRange(10, 10), RepRange(5, 10)) == RepRange(8, 10)

    def test_wide_range_untouched(self):
        assert widen_accessory_range(RepRange(10, 15), RepRange(10, 20)) == RepRange(10, 15)

    def test_single_point_accessory_gets_progression_room(self, make_exercise):
        # strength accessory 6-10 meets a 10-20 hint at a single point
        exercise = make_exercise("raise", rep_range=RepRange(10, 20))
        sets = prescribe_sets(exercise, False, TrainingAge.INTERMEDIATE, STRENGTH, FRESH)

        assert sets[0].target_reps == 10
        assert sets[0].target_rep_range == RepRange(10, 12)

    def test_hypertrophy_accessory_keeps_goal_range(self, make_exercise):
        exercise = make_exercise("raise", rep_range=RepRange(10, 20))
        sets = prescribe_sets(exercise, False, TrainingAge.INTERMEDIATE, HYPERTROPHY, FRESH)
        assert sets[0].target_rep_range == RepRange(10, 15)

    @pytest.mark.parametrize("goal", list(PrimaryGoal))
    @pytest.mark.parametrize("is_main", [True, False])
    def test_reps_stay_inside_exercise_hint(self, make_exercise, goal, is_main):
        hint = RepRange(5, 8)
        exercise = make_exercise("ex", rep_range=hint)
        for working_set in prescribe_sets(exercise, is_main, TrainingAge.INTERMEDIATE, Goals(primary=goal), FRESH):
            assert hint.contains(working_set.target_reps)
            if working_set.target_rep_range is not None:
                assert hint.min <= working_set.target_rep_range.min <= working_set.target_rep_range.max <= hint.max


class TestRpe:

    def test_hypertrophy_by_training_age(self):
        assert resolve_target_rpe(8, TrainingAge.BEGINNER, HYPERTROPHY, FRESH) == 7.0
        assert resolve_target_rpe(8, TrainingAge.ADVANCED, HYPERTROPHY, FRESH) == 8.5

    def test_isolation_bonus_and_low_readiness(self):
        low = FatigueState(readiness_score=2)
        assert resolve_target_rpe(12, TrainingAge.INTERMEDIATE, HYPERTROPHY, FRESH, is_isolation_accessory=True) == 8.5
        assert resolve_target_rpe(12, TrainingAge.INTERMEDIATE, HYPERTROPHY, low) == 7.5

    def test_preference_row_then_offset(self):
        preferences = UserPreferences(rpe_targets=(RpeTarget(8, 12, 7.0),))
        periodization = PeriodizationModifiers(rpe_offset=0.5)
        rpe = resolve_target_rpe(
            10, TrainingAge.INTERMEDIATE, HYPERTROPHY, FRESH, preferences, periodization,
        )
        assert rpe == 7.5

    def test_deload_cap(self, make_exercise):
        deload = PeriodizationModifiers(rpe_offset=1.0, is_deload=True)
        exercise = make_exercise("bench", rep_range=RepRange(3, 10))
        for is_main in (True, False):
            sets = prescribe_sets(exercise, is_main, TrainingAge.ADVANCED, STRENGTH, FRESH, periodization=deload)
            assert all(s.target_rpe <= 6.0 for s in sets)

    def test_deload_main_sets_identical(self, make_exercise):
        deload = PeriodizationModifiers(is_deload=True)
        sets = prescribe_sets(make_exercise("squat"), True, TrainingAge.INTERMEDIATE, HYPERTROPHY, FRESH,
                              periodization=deload)
        assert len({(s.target_reps, s.target_rpe) for s in sets}) == 1


class TestRest:

    @pytest.mark.parametrize("is_main,compound,fatigue,reps,expected", [
        (True, True, 4, 5, 300),
        (True, True, 3, 5, 240),
        (True, True, 4, 8, 180),
        (True, True, 3, 8, 150),
        (False, True, 3, 8, 150),
        (False, True, 3, 12, 120),
        (False, False, 3, 12, 90),
        (False, False, 1, 12, 75),
    ])
    def test_rest_table(self, make_exercise, is_main, compound, fatigue, reps, expected):
        exercise = make_exercise("ex", is_compound=compound, fatigue_cost=fatigue)
        assert get_rest_seconds(exercise, is_main, reps) == expected


class TestWarmups:

    def test_round_load_half_up(self):
        assert round_load(51.25) == 51.5
        assert round_load(51.2) == 51.0

    def test_ramp_from_top_set(self):
        sets = build_warmup_sets_from_top_set(100.0, TrainingAge.INTERMEDIATE)
        assert [s.target_load for s in sets] == [50.0, 70.0, 85.0]
        assert [s.target_reps for s in sets] == [8, 5, 3]

    def test_beginner_ramp_is_shorter(self):
        assert len(build_projected_warmup_sets(TrainingAge.BEGINNER)) == 2
        assert all(s.target_load is None for s in build_projected_warmup_sets(TrainingAge.ADVANCED))

    def test_bodyweight_cannot_ramp(self, make_exercise):
        assert not can_resolve_load_for_warmup_ramp(make_exercise("pull-up", equipment=[Equipment.BODYWEIGHT]))
        assert can_resolve_load_for_warmup_ramp(make_exercise("bench", equipment=[Equipment.BARBELL, Equipment.BENCH]))

    def test_timed_warmup_exercise(self, make_exercise):
        sets = build_warmup_exercise_sets(make_exercise("plank", time_per_set_sec=45))
        assert sets[0].target_reps is None
        assert build_warmup_exercise_sets(make_exercise("band", rep_range=RepRange(15, 25)))[0].target_reps == 15
