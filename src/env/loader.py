from __future__ import annotations

import math
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .schema import NavigationConfig


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "navigation.yaml"

# Overrides the `profile:` key of the YAML file when set.
PROFILE_ENV_VAR = "NAV_PROFILE"

VALID_MODES = ("manual", "automatic")
VALID_DEAD_END_POLICIES = ("stall", "reroute")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from disk."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(cfg: Dict[str, Any], override: Optional[str]) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = override or os.getenv(PROFILE_ENV_VAR) or cfg.get("profile")
    if not profile_name:
        raise ValueError("navigation.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("navigation.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in navigation.yaml profiles.")
    return profile_name, profiles[profile_name] or {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_navigation_config(
    path: Optional[Path] = None,
    profile: Optional[str] = None,
) -> NavigationConfig:
    """
    Resolve one profile of navigation.yaml into a NavigationConfig.

    Keys under `defaults:` apply to every profile; the selected profile
    overrides them. Unknown keys are rejected so typos do not pass silently.
    """
    cfg = _load_yaml(Path(path) if path is not None else DEFAULT_CONFIG_PATH)
    name, profile_raw = _select_profile(cfg, profile)

    merged: Dict[str, Any] = {}
    merged.update(cfg.get("defaults") or {})
    merged.update(profile_raw)

    known = {f.name for f in fields(NavigationConfig)} - {"name"}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ValueError(f"Unknown navigation config keys in profile '{name}': {unknown}")

    config = NavigationConfig(name=name, **merged)
    _validate_config(config)
    return config


def _validate_config(cfg: NavigationConfig) -> None:
    """Range checks; raises ValueError on the first problem found."""
    if cfg.mode not in VALID_MODES:
        raise ValueError(f"Invalid mode: {cfg.mode}")
    if cfg.dead_end_policy not in VALID_DEAD_END_POLICIES:
        raise ValueError(f"Invalid dead_end_policy: {cfg.dead_end_policy}")

    if cfg.tick_period_ms <= 0:
        raise ValueError(f"tick_period_ms must be positive, got {cfg.tick_period_ms}")
    for key in ("speed_per_tick", "turn_threshold_rad", "epsilon", "snap_radius"):
        value = getattr(cfg, key)
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"{key} must be a positive number, got {value}")
    if cfg.turn_threshold_rad >= math.pi:
        raise ValueError("turn_threshold_rad must be below pi")
    if not math.isfinite(cfg.connector_cost) or cfg.connector_cost < 0:
        raise ValueError(f"connector_cost must be >= 0, got {cfg.connector_cost}")
    if cfg.max_connector_hops < 1 or cfg.max_segment_hops < 1:
        raise ValueError("max_connector_hops and max_segment_hops must be >= 1")
