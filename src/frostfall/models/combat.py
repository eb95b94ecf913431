from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from frostfall.models.effect import ActiveEffect, Effect
from frostfall.models.item import LootDrop, LootPoolEntry

PLAYER_ID = "player"
SYSTEM_ACTOR = "system"


class AbilityCategory(str, Enum):
    MELEE = "melee"
    RANGED = "ranged"
    MAGIC = "magic"
    SHOUT = "shout"


class EnemyCategory(str, Enum):
    HUMANOID = "humanoid"
    BEAST = "beast"
    UNDEAD = "undead"
    DAEDRA = "daedra"
    AUTOMATON = "automaton"
    DRAGON = "dragon"


class CombatResult(str, Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"
    SURRENDERED = "surrendered"


class PlayerAction(str, Enum):
    ATTACK = "attack"
    POWER_ATTACK = "power_attack"
    MAGIC = "magic"
    SHOUT = "shout"
    DEFEND = "defend"
    FLEE = "flee"
    SURRENDER = "surrender"
    ITEM = "item"


ATTACK_ACTIONS = frozenset({
    PlayerAction.ATTACK,
    PlayerAction.POWER_ATTACK,
    PlayerAction.MAGIC,
    PlayerAction.SHOUT,
})


class Ability(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: AbilityCategory = AbilityCategory.MELEE
    damage: int = Field(default=0, ge=0)
    cost: int = Field(default=0, ge=0)
    cooldown: Optional[int] = Field(default=None, ge=1)
    effects: tuple[Effect, ...] = ()
    damage_type: Optional[str] = None
    description: str = ""

    @property
    def resource(self) -> str:
        """Vital the ability is paid from."""
        return "magicka" if self.category == AbilityCategory.MAGIC else "stamina"

    @property
    def resolved_damage_type(self) -> Optional[str]:
        if self.damage_type:
            return self.damage_type
        return "magic" if self.category == AbilityCategory.MAGIC else None


class Enemy(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = ""
    template_id: str = ""
    name: str
    category: EnemyCategory = EnemyCategory.HUMANOID
    level: int = Field(default=1, ge=1)
    max_health: int = Field(ge=1)
    current_health: int = 0
    max_magicka: Optional[int] = None
    current_magicka: Optional[int] = None
    max_stamina: Optional[int] = None
    current_stamina: Optional[int] = None
    armor: int = Field(default=0, ge=0)
    damage: int = Field(default=5, ge=0)
    crit_chance: int = 10
    dodge_chance: int = 0
    behavior: str = "aggressive"
    abilities: list[Ability] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    resistances: list[str] = Field(default_factory=list)
    xp_reward: int = 0
    gold_reward: Optional[int] = None
    loot: list[LootPoolEntry] = Field(default_factory=list)
    active_effects: list[ActiveEffect] = Field(default_factory=list)
    cooldowns: dict[str, int] = Field(default_factory=dict)
    is_elite: bool = False
    is_boss: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_to_full_health(cls, data):
        if isinstance(data, dict) and "current_health" not in data:
            data = {**data, "current_health": data.get("max_health", 0)}
        return data

    @model_validator(mode="after")
    def _clamp_health(self) -> "Enemy":
        self.current_health = max(0, min(self.current_health, self.max_health))
        return self

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0


class PlayerCombatStats(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: int = Field(default=1, ge=1)
    max_health: int = Field(default=100, ge=1)
    current_health: int = 100
    max_magicka: int = 100
    current_magicka: int = 100
    max_stamina: int = 100
    current_stamina: int = 100
    armor: int = 0
    weapon_damage: int = 10
    crit_chance: int = 5
    dodge_chance: int = 0
    magic_resist: int = 0
    abilities: list[Ability] = Field(default_factory=list)

    @model_validator(mode="after")
    def _clamp_vitals(self) -> "PlayerCombatStats":
        self.current_health = max(0, min(self.current_health, self.max_health))
        self.current_magicka = max(0, min(self.current_magicka, self.max_magicka))
        self.current_stamina = max(0, min(self.current_stamina, self.max_stamina))
        return self


class CombatLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    turn: int
    actor: str
    action: str
    target: Optional[str] = None
    damage: Optional[int] = None
    narrative: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Rewards(BaseModel):
    xp: int = 0
    gold: int = 0
    items: list[LootDrop] = Field(default_factory=list)
    transaction_id: Optional[str] = None


class PendingRewards(BaseModel):
    xp: int = 0
    gold: int = 0


class PendingLoot(BaseModel):
    enemy_id: str
    enemy_name: str
    loot: list[LootDrop] = Field(default_factory=list)


class CombatState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    active: bool = True
    turn: int = 1
    current_turn_actor: str = PLAYER_ID
    turn_order: list[str] = Field(default_factory=list)
    enemies: list[Enemy] = Field(default_factory=list)
    location: str = ""
    flee_allowed: bool = True
    surrender_allowed: bool = False
    combat_log: list[CombatLogEntry] = Field(default_factory=list)
    result: Optional[CombatResult] = None
    player_defending: bool = False
    player_active_effects: list[ActiveEffect] = Field(default_factory=list)
    ability_cooldowns: dict[str, int] = Field(default_factory=dict)
    rewards: Optional[Rewards] = None
    pending_loot: Optional[list[PendingLoot]] = None
    pending_rewards: Optional[PendingRewards] = None

    def find_enemy(self, enemy_id: str) -> Optional[Enemy]:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def living_enemies(self) -> list[Enemy]:
        return [e for e in self.enemies if e.is_alive]

    @property
    def is_over(self) -> bool:
        return self.result is not None
