from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_DISTRIBUTION_MODES = {"one-per-participant", "round-robin", "random", "exclude-own"}
_MISMATCH_HANDLING = {"auto", "manual", "strict"}

_DEFAULT_DISTRIBUTION = {
    "mode": "one-per-participant",
    "mismatch_handling": "auto",
    "allow_multiple_per_participant": True,
    "allow_empty_assignments": True,
}
_DEFAULT_PREVIEW = {
    "mock_participant_count": 3,
}
_DEFAULT_DISPLAY = {
    "bullet": "•",
    "json_indent": 2,
}


def _config_path() -> Path:
    override = os.getenv("PLAYFIELD_CONFIG_PATH")
    if override:
        return Path(override).expanduser()
    return _CONFIG_PATH


def load_config() -> Dict[str, Any]:
    """Load the engine config from YAML, returning an empty mapping on error."""
    path = _config_path()
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
            if isinstance(data, dict):
                return data
            logging.warning("Config file %s is not a mapping; using defaults.", path)
            return {}
    except FileNotFoundError:
        logging.warning("Configuration file %s not found; using defaults.", path)
        return {}
    except Exception as exc:  # noqa: BLE001
        logging.error("Failed to load configuration from %s: %s", path, exc)
        return {}


def _coerce_positive_int(value: Any, fallback: int) -> int:
    try:
        candidate = int(value)
        return candidate if candidate > 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _coerce_choice(value: Any, choices: set, fallback: str) -> str:
    candidate = str(value or "").strip().lower()
    return candidate if candidate in choices else fallback


def get_distribution_defaults() -> Dict[str, Any]:
    """Return the default distribution policy sourced from config with safe defaults."""
    config = load_config()
    section = config.get("distribution") or {}
    defaults = dict(_DEFAULT_DISTRIBUTION)
    return {
        "mode": _coerce_choice(
            section.get("mode"), _DISTRIBUTION_MODES, defaults["mode"]
        ),
        "mismatch_handling": _coerce_choice(
            section.get("mismatch_handling"),
            _MISMATCH_HANDLING,
            defaults["mismatch_handling"],
        ),
        "allow_multiple_per_participant": _coerce_bool(
            section.get("allow_multiple_per_participant"),
            defaults["allow_multiple_per_participant"],
        ),
        "allow_empty_assignments": _coerce_bool(
            section.get("allow_empty_assignments"),
            defaults["allow_empty_assignments"],
        ),
    }


def get_preview_settings() -> Dict[str, Any]:
    """Return preview session settings sourced from config with safe defaults."""
    config = load_config()
    section = config.get("preview") or {}
    defaults = dict(_DEFAULT_PREVIEW)
    return {
        "mock_participant_count": _coerce_positive_int(
            section.get("mock_participant_count"),
            defaults["mock_participant_count"],
        ),
    }


def get_display_settings() -> Dict[str, Any]:
    """Return display formatting settings sourced from config with safe defaults."""
    config = load_config()
    section = config.get("display") or {}
    defaults = dict(_DEFAULT_DISPLAY)

    bullet = section.get("bullet")
    if not isinstance(bullet, str) or not bullet.strip():
        bullet = defaults["bullet"]

    try:
        indent = int(section.get("json_indent", defaults["json_indent"]))
    except (TypeError, ValueError):
        indent = defaults["json_indent"]

    return {
        "bullet": bullet.strip(),
        "json_indent": max(0, min(8, indent)),
    }
