from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from frostfall.models.combat import Ability, EnemyCategory
from frostfall.models.item import LootPoolEntry


class EnemyTemplate(BaseModel):
    """Static description of a class of enemy. Read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: EnemyCategory
    level: int = Field(ge=1)
    health: int = Field(ge=1)
    armor: int = Field(default=0, ge=0)
    damage: int = Field(ge=0)
    behaviors: tuple[str, ...] = Field(min_length=1)
    abilities: tuple[Ability, ...] = ()
    weaknesses: tuple[str, ...] = ()
    resistances: tuple[str, ...] = ()
    xp_reward: int = Field(default=0, ge=0)
    gold_reward: Optional[int] = Field(default=None, ge=0)
    loot: tuple[LootPoolEntry, ...] = ()
    is_boss: bool = False
