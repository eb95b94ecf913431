from __future__ import annotations

import logging
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from frostfall.errors import ContentError
from frostfall.models.enemy import EnemyTemplate

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent


def load_toml(filepath: Path) -> dict[str, Any]:
    try:
        with open(filepath, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ContentError(f"Could not read {filepath.name}: {exc}") from exc


def load_enemy_templates(enemy_dir: Path | None = None) -> dict[str, EnemyTemplate]:
    """Load every ``[[templates]]`` entry under content/enemies/*.toml."""
    templates: dict[str, EnemyTemplate] = {}
    directory = enemy_dir or CONTENT_DIR / "enemies"
    for f in sorted(directory.glob("*.toml")):
        data = load_toml(f)
        for raw in data.get("templates", []):
            try:
                template = EnemyTemplate.model_validate(raw)
            except ValidationError as exc:
                raise ContentError(f"Invalid enemy template in {f.name}: {exc}") from exc
            if template.id in templates:
                raise ContentError(f"Duplicate enemy template id: {template.id}")
            templates[template.id] = template
    logger.debug("Loaded %d enemy templates", len(templates))
    return templates


@lru_cache(maxsize=1)
def get_enemy_templates() -> dict[str, EnemyTemplate]:
    """Process-wide template registry, loaded once."""
    return load_enemy_templates()


@lru_cache(maxsize=1)
def load_name_prefixes() -> dict[str, list[str]]:
    """Prefix pools keyed by enemy category, plus a ``generic`` fallback."""
    data = load_toml(CONTENT_DIR / "name_prefixes.toml")
    pools = {k: list(v) for k, v in data.get("categories", {}).items()}
    pools["generic"] = list(data.get("generic", []))
    return pools


@lru_cache(maxsize=1)
def load_nutrition() -> dict[str, dict[str, dict[str, int]]]:
    """Food and drink nutrition tables: ``{"food": {keyword: {...}}, "drink": {...}}``."""
    nutrition_file = CONTENT_DIR / "nutrition.toml"
    if not nutrition_file.exists():
        return {"food": {}, "drink": {}}
    data = load_toml(nutrition_file)
    return {"food": data.get("food", {}), "drink": data.get("drink", {})}
