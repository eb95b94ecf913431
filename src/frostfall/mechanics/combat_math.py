"""Combat math — pure functions, no I/O."""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from frostfall.mechanics.dice import choose, get_rng, roll_percent
from frostfall.models.combat import Ability, AbilityCategory

ARMOR_CURVE_CONSTANT = 100
CRIT_MULTIPLIER = 1.5
WEAKNESS_MULTIPLIER = 1.5


@dataclass
class DamageResult:
    damage: int
    is_crit: bool = False
    resisted: bool = False


def armor_reduction(armor: int) -> float:
    """Fraction of damage absorbed by armor. Approaches but never reaches 1."""
    armor = max(0, armor)
    return armor / (armor + ARMOR_CURVE_CONSTANT)


def resolve_damage(
    base_damage: int,
    attacker_level: int,
    target_armor: int,
    target_resistances: Iterable[str] = (),
    damage_type: Optional[str] = None,
    crit_chance: float = 0,
    *,
    target_weaknesses: Iterable[str] = (),
    rng: random.Random | None = None,
) -> DamageResult:
    """Resolve the damage of one connecting hit.

    Level bonus first, then armor on a diminishing-returns curve, then
    resistance (half) or weakness (x1.5), then the crit roll. A hit that
    connects always deals at least 1.
    """
    resisted = damage_type is not None and damage_type in set(target_resistances)
    weak = (
        damage_type is not None
        and not resisted
        and damage_type in set(target_weaknesses)
    )

    damage = base_damage + math.floor(attacker_level * 0.5)
    damage = math.floor(damage * (1 - armor_reduction(target_armor)))

    if resisted:
        damage = math.floor(damage * 0.5)
    elif weak:
        damage = math.floor(damage * WEAKNESS_MULTIPLIER)

    is_crit = roll_percent(crit_chance, rng)
    if is_crit:
        damage = math.floor(damage * CRIT_MULTIPLIER)

    return DamageResult(damage=max(1, damage), is_crit=is_crit, resisted=resisted)


def flee_chance(dodge_chance: int) -> int:
    """Percent chance to escape: 50 + dodge."""
    return 50 + dodge_chance


def choose_enemy_ability(
    behavior: str,
    candidates: list[Ability],
    rng: random.Random | None = None,
) -> Ability | None:
    """Pick an ability for an enemy from the ones it can use right now.

    - aggressive / berserker: highest damage
    - defensive: lowest cost
    - tactical: an ability with effects half the time, otherwise random
    - anything else: random
    """
    if not candidates:
        return None

    if behavior in ("aggressive", "berserker"):
        return max(candidates, key=lambda a: a.damage)
    if behavior == "defensive":
        return min(candidates, key=lambda a: a.cost)
    if behavior == "tactical":
        with_effects = [a for a in candidates if a.effects]
        if with_effects and get_rng(rng).random() > 0.5:
            return choose(with_effects, rng)
        return choose(candidates, rng)
    return choose(candidates, rng)


def basic_enemy_attack(damage: int) -> Ability:
    """Fallback attack used when an enemy cannot afford any ability."""
    return Ability(
        id="basic",
        name="Attack",
        category=AbilityCategory.MELEE,
        damage=damage,
        cost=0,
        description="Basic attack",
    )
