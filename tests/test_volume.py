"""Tests for weekly volume tracking and caps."""

from liftplan.volume import VolumeContext, build_volume_context, enforce_volume_caps, exceeds_cap


class TestVolumeContext:

    def test_buckets_by_week(self, make_exercise, make_entry, now):
        bench = make_exercise("bench", muscles=["Chest", "Triceps"])
        history = [
            make_entry(2, [("bench", [8, 8, 8])]),
            make_entry(10, [("bench", [8, 8])]),
            make_entry(20, [("bench", [8] * 5)]),
            make_entry(1, [("bench", [8] * 4)], status="planned"),
        ]
        context = build_volume_context(history, [bench], now)

        assert context.recent == {"chest": 3, "triceps": 3}
        assert context.previous == {"chest": 2, "triceps": 2}

    def test_unknown_exercises_ignored(self, make_entry, now):
        context = build_volume_context([make_entry(1, [("ghost", [8])])], [], now)
        assert context.recent == {}


class TestCaps:

    def test_exceeds_cap(self):
        previous = {"chest": 10}
        assert exceeds_cap({"chest": 13}, previous)
        assert not exceeds_cap({"chest": 12}, previous)

    def test_no_baseline_no_cap(self):
        assert not exceeds_cap({"biceps": 40}, {})

    def test_extra_sets_for_selected_muscles(self):
        assert exceeds_cap({"chest": 10}, {"chest": 10}, muscles=["Chest"], extra_sets=3)
        assert not exceeds_cap({"chest": 10}, {"chest": 10}, muscles=["Biceps"], extra_sets=3)

    def test_drops_trailing_accessories(self, make_exercise, make_item):
        main = make_item(make_exercise("bench", muscles=["Chest"]), is_main=True, sets=3)
        curl = make_item(make_exercise("curl", muscles=["Biceps"]))
        fly = make_item(make_exercise("fly", muscles=["Chest"]))
        context = VolumeContext(recent={}, previous={"chest": 4})

        kept = enforce_volume_caps([curl, fly], [main], context)
        assert [a.exercise.id for a in kept] == ["curl"]

    def test_without_context_keeps_all(self, make_exercise, make_item):
        accessories = [make_item(make_exercise("curl"))]
        assert enforce_volume_caps(accessories, [], None) == accessories
