"""Runtime configuration loaded from config.toml."""
from __future__ import annotations

import logging
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent.parent.parent / "config.toml"

DEFAULTS: dict[str, dict[str, Any]] = {
    "combat": {
        "player_crit_chance": 5,
        "enemy_crit_chance": 10,
        "unarmed_damage": 10,
        "default_potion_amount": 35,
    },
    "ledger": {
        "max_age_minutes": 30,
    },
    "logging": {
        "level": "WARNING",
    },
}


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load config.toml, falling back to defaults for anything missing."""
    config_path = path or CONFIG_PATH
    loaded: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            loaded = tomllib.load(f)
    else:
        logger.debug("No config file at %s, using defaults", config_path)

    merged: dict[str, Any] = {}
    for section, values in DEFAULTS.items():
        merged[section] = {**values, **loaded.get(section, {})}
    return merged


@lru_cache(maxsize=1)
def get_config() -> dict[str, Any]:
    return load_config()


def combat_setting(key: str) -> Any:
    return get_config()["combat"][key]
