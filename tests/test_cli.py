"""Tests for the liftplan command-line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from liftplan.cli.coach import cli

DATA_DIR = Path(__file__).parent.parent / "data"
CATALOG_PATH = DATA_DIR / "sample_catalog.yaml"
ATHLETE_PATH = DATA_DIR / "sample_athlete.yaml"
NOW = "2026-10-18T12:00:00Z"
FILES = ["--catalog", str(CATALOG_PATH), "--athlete", str(ATHLETE_PATH)]


@pytest.fixture
def runner():
    return CliRunner()


class TestPlanCommand:

    def test_text_output(self, runner):
        result = runner.invoke(cli, ["plan", *FILES, "--seed", "7", "--now", NOW])
        assert result.exit_code == 0, result.output
        assert "MAIN LIFTS" in result.output
        assert "Seed: 7" in result.output

    def test_json_output_is_deterministic(self, runner):
        args = ["plan", *FILES, "--seed", "7", "--now", NOW, "--json"]
        first = json.loads(runner.invoke(cli, args).stdout)
        second = json.loads(runner.invoke(cli, args).stdout)
        assert first == second
        assert first["seed"] == 7

    def test_focus_and_minutes(self, runner):
        args = ["plan", *FILES, "--seed", "3", "--focus", "legs", "--minutes", "90", "--now", NOW, "--json"]
        plan = json.loads(runner.invoke(cli, args).stdout)
        assert plan["day_tag"] == "legs"

    def test_unknown_focus(self, runner):
        result = runner.invoke(cli, ["plan", *FILES, "--seed", "3", "--focus", "chest"])
        assert result.exit_code == 1
        assert "Unknown day" in result.output

    def test_bad_catalog(self, runner, tmp_path):
        bad = tmp_path / "catalog.yaml"
        bad.write_text("- {id: x, name: X, movement_patterns: [twist]}\n")
        result = runner.invoke(cli, ["plan", "--catalog", str(bad), "--athlete", str(ATHLETE_PATH)])
        assert result.exit_code == 1

    def test_bad_config(self, runner, tmp_path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "plan", *FILES])
        assert result.exit_code == 1


class TestOtherCommands:

    def test_recovery(self, runner):
        result = runner.invoke(cli, ["recovery", *FILES, "--now", NOW, "--muscle", "Quads"])
        assert result.exit_code == 0, result.output
        assert "MUSCLE RECOVERY" in result.output
        assert "Quads" in result.output

    def test_estimate(self, runner):
        result = runner.invoke(cli, ["estimate", *FILES, "--seed", "7", "--now", NOW])
        assert result.exit_code == 0, result.output
        assert "min" in result.output

    def test_estimate_requires_seed(self, runner):
        result = runner.invoke(cli, ["estimate", *FILES])
        assert result.exit_code == 2

    def test_substitutes(self, runner):
        result = runner.invoke(cli, ["substitutes", *FILES, "--exercise", "bb-bench"])
        assert result.exit_code == 0, result.output
        assert "Substitutes for Barbell Bench Press" in result.output

    def test_unknown_exercise(self, runner):
        result = runner.invoke(cli, ["substitutes", *FILES, "--exercise", "nope"])
        assert result.exit_code == 1
