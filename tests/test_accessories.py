"""Tests for accessory slotting, warmup and optional extras."""

from liftplan.accessories import (
    FILL,
    AccessorySlotter,
    bias_favorites,
    build_slots,
    matches_slot,
    pick_optional_extras,
    pick_warmup,
    score_slot,
)
from liftplan.biomechanics import DayTag, Equipment, MovementPattern as MP, SecondaryGoal, SplitTag
from liftplan.normalizer import Favorites
from liftplan.rng import SeededRandom
from liftplan.volume import VolumeContext


def _slotter(favorites=None, volume_context=None, seed=3):
    return AccessorySlotter(favorites or Favorites(), {}, SeededRandom(seed), volume_context)


class TestSlots:

    def test_push_slots_padded_with_fill(self):
        assert build_slots(DayTag.PUSH, 5) == ["chest_isolation", "side_delt", "triceps_isolation", FILL, FILL]

    def test_slots_truncated(self):
        assert build_slots(DayTag.LEGS, 2) == ["quad_isolation", "hamstring_isolation"]

    def test_matches_slot_by_muscle(self, make_exercise):
        raise_ = make_exercise("raise", muscles=["Side Delts"])
        assert matches_slot("side_delt", raise_)
        assert not matches_slot("chest_isolation", raise_)
        assert matches_slot(FILL, raise_)

    def test_pull_variant_needs_pull_pattern(self, make_exercise):
        row = make_exercise("row", patterns=[MP.HORIZONTAL_PULL], muscles=["Upper Back"])
        shrug = make_exercise("shrug", patterns=[MP.ISOLATION], muscles=["Upper Back"])
        assert matches_slot("pull_variant", row)
        assert not matches_slot("pull_variant", shrug)

    def test_isolation_scores_higher_for_isolation_slot(self, make_exercise):
        fly = make_exercise("fly", muscles=["Chest"])
        press = make_exercise("press", muscles=["Chest"], is_compound=True)
        args = (set(), set(), Favorites())
        assert score_slot("chest_isolation", fly, *args) > score_slot("chest_isolation", press, *args)

    def test_repeating_main_pattern_costs_a_point(self, make_exercise):
        fly = make_exercise("fly", patterns=[MP.HORIZONTAL_PUSH], muscles=["Chest"])
        fresh = score_slot("chest_isolation", fly, set(), set(), Favorites())
        repeated = score_slot("chest_isolation", fly, {MP.HORIZONTAL_PUSH}, set(), Favorites())
        assert fresh - repeated == 1


class TestPickBySlot:

    def test_one_pick_per_slot_in_order(self, make_exercise):
        pool = [
            make_exercise("pushdown", muscles=["Triceps"]),
            make_exercise("raise", muscles=["Side Delts"]),
            make_exercise("fly", muscles=["Chest"]),
        ]
        picked = _slotter().pick_by_slot(DayTag.PUSH, pool, [], max_accessories=3)
        assert [e.id for e in picked] == ["fly", "raise", "pushdown"]

    def test_never_exceeds_max(self, make_exercise):
        pool = [make_exercise(f"fly-{i}", muscles=["Chest"]) for i in range(8)]
        picked = _slotter().pick_by_slot(DayTag.PUSH, pool, [], max_accessories=4)
        assert len(picked) <= 4
        assert len({e.id for e in picked}) == len(picked)

    def test_isolation_preferred_for_quad_slot(self, make_exercise):
        pool = [
            make_exercise("hack-squat", muscles=["Quads"], is_compound=True, sfr_score=5),
            make_exercise("leg-extension", muscles=["Quads"]),
        ]
        picked = _slotter().pick_by_slot(DayTag.LEGS, pool, [], max_accessories=1)
        assert [e.id for e in picked] == ["leg-extension"]

    def test_deterministic_for_seed(self, make_exercise):
        pool = [make_exercise(f"acc-{i}", muscles=["Chest" if i % 2 else "Triceps"]) for i in range(10)]
        first = _slotter(seed=9).pick_by_slot(DayTag.PUSH, pool, [], max_accessories=5)
        second = _slotter(seed=9).pick_by_slot(DayTag.PUSH, pool, [], max_accessories=5)
        assert first == second

    def test_volume_multiplier_damps_capped_muscles(self, make_exercise):
        fly = make_exercise("fly", muscles=["Chest"])
        curl = make_exercise("curl", muscles=["Biceps"])
        context = VolumeContext(recent={"chest": 10}, previous={"chest": 10})
        slotter = _slotter(volume_context=context)

        assert slotter._volume_multiplier(fly, dict(context.recent), 3) == 0.2
        assert slotter._volume_multiplier(curl, dict(context.recent), 3) == 1.0


class TestFill:

    def test_backfills_favorites_first_up_to_max(self, make_exercise):
        pool = [make_exercise("a"), make_exercise("b"), make_exercise("c"), make_exercise("d")]
        slotter = _slotter(favorites=Favorites(ids=["c"]))
        result = slotter.fill([pool[0]], pool, [], min_accessories=2, max_accessories=3)
        assert [e.id for e in result] == ["a", "c", "b"]

    def test_skips_main_lifts(self, make_exercise):
        main = make_exercise("main")
        pool = [main, make_exercise("x")]
        result = _slotter().fill([], pool, [main], 1, 2)
        assert [e.id for e in result] == ["x"]


class TestWarmupAndExtras:

    def test_warmup_prefers_favorites(self, make_exercise):
        pool = [
            make_exercise("cat-cow", tags=[SplitTag.MOBILITY]),
            make_exercise("bench", tags=[SplitTag.PUSH]),
            make_exercise("band", tags=[SplitTag.PREHAB]),
            make_exercise("hips", tags=[SplitTag.MOBILITY]),
        ]
        assert [e.id for e in pick_warmup(pool, Favorites(ids=["hips"]), 2)] == ["hips", "cat-cow"]

    def test_core_always_conditioning_on_leg_day(self, make_exercise):
        pool = [
            make_exercise("plank", tags=[SplitTag.CORE]),
            make_exercise("bike", tags=[SplitTag.CONDITIONING]),
        ]
        push = pick_optional_extras(pool, DayTag.PUSH, SecondaryGoal.NONE, {Equipment.DUMBBELL})
        legs = pick_optional_extras(pool, DayTag.LEGS, SecondaryGoal.NONE, {Equipment.DUMBBELL})

        assert [e.id for e in push] == ["plank"]
        assert [e.id for e in legs] == ["plank", "bike"]

    def test_conditioning_goal_prefers_carries(self, make_exercise):
        pool = [
            make_exercise("bike", tags=[SplitTag.CONDITIONING]),
            make_exercise("farmer", name="Farmer Carry", patterns=[MP.CARRY], equipment=[Equipment.DUMBBELL]),
        ]
        extras = pick_optional_extras(pool, DayTag.PUSH, SecondaryGoal.CONDITIONING, {Equipment.DUMBBELL})
        assert [e.id for e in extras] == ["farmer"]

    def test_carry_needs_equipment(self, make_exercise):
        pool = [
            make_exercise("bike", tags=[SplitTag.CONDITIONING]),
            make_exercise("farmer", name="Farmer Carry", patterns=[MP.CARRY], equipment=[Equipment.TRAP_BAR]),
        ]
        extras = pick_optional_extras(pool, DayTag.PUSH, SecondaryGoal.CONDITIONING, {Equipment.DUMBBELL})
        assert [e.id for e in extras] == ["bike"]

    def test_skips_already_selected(self, make_exercise):
        plank = make_exercise("plank", tags=[SplitTag.CORE])
        assert pick_optional_extras([plank], DayTag.PUSH, SecondaryGoal.NONE, set(), already=[plank]) == []

    def test_strength_goal_favors_main_compounds(self, make_exercise):
        squat = make_exercise("squat", is_main_lift_eligible=True, is_compound=True)
        curl = make_exercise("curl")
        favorites = bias_favorites(Favorites(), [squat, curl], SecondaryGoal.STRENGTH)
        assert squat in favorites
        assert curl not in favorites
