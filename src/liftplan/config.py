"""
Engine configuration.

Every tunable constant the planner uses lives on EngineConfig. The engine only
receives an explicit config object; YAML files and LIFTPLAN_* environment variables
are read here and nowhere else.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "engine.yaml"
ENV_PREFIX = "LIFTPLAN_"


@dataclass(frozen=True)
class EngineConfig:
    """Tunable constants and feature toggles for session generation."""

    # Selection
    min_main_lifts: int = 2
    max_non_ppl_main_lifts: int = 3
    min_accessories: int = 3
    max_accessories: int = 5
    warmup_count: int = 2

    # Prescription
    revised_fat_loss_set_policy: bool = False
    fat_loss_set_multiplier: float = 0.75
    deload_rpe_cap: float = 6.0
    minimum_accessory_span: int = 2

    # Time budget / retention score
    retention_uncovered_weight: float = 3.0
    retention_sfr_weight: float = 1.2
    retention_length_weight: float = 0.8
    retention_redundancy_weight: float = 1.0
    retention_fatigue_weight: float = 1.3
    retention_secondary_muscle_weight: float = 0.3
    superset_rest_multiplier: float = 0.6
    superset_rest_floor_sec: int = 60
    warmup_rest_sec: int = 45
    warmup_work_cap_sec: int = 30
    projected_warmup_sets: int = 3

    # Volume
    volume_cap_ratio: float = 1.2
    enforce_volume_caps: bool = True

    def __post_init__(self):
        if self.min_accessories > self.max_accessories:
            raise ConfigurationError(
                f"min_accessories ({self.min_accessories}) exceeds "
                f"max_accessories ({self.max_accessories})"
            )
        if self.min_main_lifts < 1:
            raise ConfigurationError("min_main_lifts must be at least 1")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EngineConfig':
        """Build a config from a flat or sectioned mapping, ignoring unknown keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in _flatten(data or {}).items():
            if key in known:
                kwargs[key] = value
            else:
                logger.debug("Ignoring unknown config key %s", key)
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path, None] = None) -> 'EngineConfig':
        """
        Load config from a YAML file.

        Args:
            path: YAML file. Defaults to config/engine.yaml; a missing default
                file yields the built-in defaults.

        Returns:
            EngineConfig
        """
        config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        if not config_path.exists():
            if path is not None:
                raise ConfigurationError(f"Config file not found: {config_path}")
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must hold a mapping: {config_path}")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, base: Optional['EngineConfig'] = None) -> 'EngineConfig':
        """Apply LIFTPLAN_* environment overrides (after loading .env) on top of base."""
        load_dotenv()
        base = base if base is not None else cls()

        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            overrides[f.name] = _coerce(raw, type(getattr(base, f.name)), f.name)
        return replace(base, **overrides) if overrides else base

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> 'EngineConfig':
        """YAML file first, then environment overrides."""
        return cls.from_env(cls.from_yaml(path))


def _flatten(data: Dict[str, Any]) -> Dict[str, Any]:
    # engine.yaml groups keys under sections (selection:, time_budget:, ...)
    flat = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value
    return flat


def _coerce(raw: str, target: type, name: str) -> Any:
    if target is bool:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
    try:
        return target(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name.upper()}: {e}") from e
