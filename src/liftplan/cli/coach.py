#!/usr/bin/env python3
"""
liftplan CLI

Command-line planning interface.

Usage:
    liftplan plan --catalog FILE --athlete FILE [--seed N] [--minutes M] [--focus DAY] [--json]
    liftplan recovery --catalog FILE --athlete FILE [--muscle NAME ...]
    liftplan estimate --catalog FILE --athlete FILE --seed N
    liftplan substitutes --catalog FILE --athlete FILE --exercise ID
"""

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from typing import Optional, Tuple

import click

from liftplan.catalog import load_athlete, load_catalog, parse_datetime
from liftplan.config import EngineConfig
from liftplan.engine import WorkoutPlanner
from liftplan.errors import LiftplanError
from liftplan.recovery import generate_sra_warnings

logger = logging.getLogger(__name__)

catalog_option = click.option(
    '--catalog', 'catalog_path', required=True, type=click.Path(exists=True, dir_okay=False),
    help='Exercise catalog YAML',
)
athlete_option = click.option(
    '--athlete', 'athlete_path', required=True, type=click.Path(exists=True, dir_okay=False),
    help='Athlete context YAML (constraints, goals, history, ...)',
)
now_option = click.option('--now', 'now_str', type=str, help='Reference time (ISO 8601), default: now')


def _fail(message: str):
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _now(now_str: Optional[str]) -> Optional[datetime]:
    return parse_datetime(now_str) if now_str else None


def _generate(ctx, catalog_path, athlete_path, seed, minutes=None, focus=None, now_str=None):
    catalog = load_catalog(catalog_path)
    athlete = load_athlete(athlete_path)
    constraints = athlete.constraints
    if minutes is not None:
        constraints = replace(constraints, session_minutes=minutes)
    logger.debug("Loaded %d exercises and %d history entries", len(catalog), len(athlete.history))

    planner: WorkoutPlanner = ctx.obj['planner']
    return planner, planner.generate(
        catalog,
        constraints,
        goals=athlete.goals,
        profile=athlete.profile,
        history=athlete.history,
        preferences=athlete.preferences,
        periodization=athlete.periodization,
        fatigue_state=athlete.fatigue_state,
        check_in=athlete.check_in,
        seed=seed,
        forced_split=focus,
        now=_now(now_str),
    )


@click.group()
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Engine config YAML')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """
    liftplan - workout session planner

    Builds one session at a time from your catalog, constraints and history.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )
    try:
        config = EngineConfig.load(config_path)
    except LiftplanError as e:
        _fail(f"Bad config: {e}")
    ctx.ensure_object(dict)
    ctx.obj['planner'] = WorkoutPlanner(config)


@cli.command()
@catalog_option
@athlete_option
@click.option('--seed', type=int, help='RNG seed (same seed, same plan)')
@click.option('--minutes', type=int, help='Session time budget, overrides the athlete file')
@click.option('--focus', type=str, help='Force the day (push/pull/legs/upper/lower/full_body)')
@now_option
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON instead of text')
@click.pass_context
def plan(ctx, catalog_path, athlete_path, seed, minutes, focus, now_str, as_json):
    """Generate a workout plan."""
    try:
        planner, workout_plan = _generate(ctx, catalog_path, athlete_path, seed, minutes, focus, now_str)
    except LiftplanError as e:
        _fail(f"Error generating plan: {e}")

    if as_json:
        click.echo(json.dumps(workout_plan.to_dict(), indent=2))
    else:
        click.echo(planner.format_plan_text(workout_plan))


@cli.command()
@catalog_option
@athlete_option
@click.option('--muscle', 'muscles', multiple=True, help='Only warn for these muscles (repeatable)')
@now_option
@click.pass_context
def recovery(ctx, catalog_path, athlete_path, muscles: Tuple[str, ...], now_str):
    """Show per-muscle recovery (SRA) status."""
    try:
        catalog = load_catalog(catalog_path)
        athlete = load_athlete(athlete_path)
    except LiftplanError as e:
        _fail(str(e))

    planner: WorkoutPlanner = ctx.obj['planner']
    recovery_map = planner.recovery(athlete.history, catalog, _now(now_str))

    click.echo("=" * 60)
    click.echo("MUSCLE RECOVERY")
    click.echo("=" * 60)
    click.echo(f"{'Muscle':<14} {'Recovered':>9} {'Last (h)':>9} {'Window (h)':>11}")
    click.echo('─' * 60)
    for state in recovery_map.values():
        last = "-" if state.last_trained_hours_ago is None else str(state.last_trained_hours_ago)
        click.echo(f"{state.muscle:<14} {state.recovery_percent:>8}% {last:>9} {state.sra_window_hours:>11g}")

    targets = list(muscles) or list(recovery_map)
    warnings = generate_sra_warnings(recovery_map, targets)
    if warnings:
        click.echo(f"\n{'─' * 60}")
        click.echo("WARNINGS")
        click.echo('─' * 60)
        for w in warnings:
            click.echo(f"  • {w.muscle}: {w.recovery_percent}% ({w.last_trained_hours_ago}h of {w.sra_window_hours:g}h)")


@cli.command()
@catalog_option
@athlete_option
@click.option('--seed', type=int, required=True, help='RNG seed of the plan to estimate')
@click.option('--minutes', type=int, help='Session time budget, overrides the athlete file')
@now_option
@click.pass_context
def estimate(ctx, catalog_path, athlete_path, seed, minutes, now_str):
    """Estimate how long a generated session takes."""
    try:
        planner, workout_plan = _generate(ctx, catalog_path, athlete_path, seed, minutes, None, now_str)
    except LiftplanError as e:
        _fail(str(e))

    click.echo(f"{workout_plan.day_tag} day (seed {workout_plan.seed}): ~{planner.estimate_minutes(workout_plan)} min")
    if workout_plan.degradation_notice:
        click.echo(f"⚠️  {workout_plan.degradation_notice}")


@cli.command()
@catalog_option
@athlete_option
@click.option('--exercise', 'exercise_id', required=True, help='Exercise id to replace')
@click.option('--limit', default=3, help='Number of suggestions')
@click.pass_context
def substitutes(ctx, catalog_path, athlete_path, exercise_id: str, limit: int):
    """Suggest substitutes for an exercise."""
    try:
        catalog = load_catalog(catalog_path)
        athlete = load_athlete(athlete_path)
    except LiftplanError as e:
        _fail(str(e))

    target = next((e for e in catalog if e.id == exercise_id), None)
    if target is None:
        _fail(f"Unknown exercise id: {exercise_id}")

    pain_flags = {}
    if athlete.check_in is not None:
        pain_flags = dict(athlete.check_in.pain_flags)
    elif athlete.fatigue_state is not None:
        pain_flags = dict(athlete.fatigue_state.pain_flags)

    planner: WorkoutPlanner = ctx.obj['planner']
    suggestions = planner.substitutes(target, catalog, athlete.constraints, pain_flags, limit)

    click.echo(f"\nSubstitutes for {target.name}:")
    if not suggestions:
        click.echo("  (none available with your equipment and constraints)")
    for i, exercise in enumerate(suggestions, 1):
        click.echo(f"  {i}. {exercise.name} [{exercise.id}]")


if __name__ == '__main__':
    cli()
