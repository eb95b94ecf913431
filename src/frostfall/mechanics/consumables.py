"""Potion and consumable resolution — pure lookups, no I/O.

A potion restores whatever vital its explicit ``subtype`` names. Without one,
the display name is checked against three disjoint keyword sets; exactly one
set must match or nothing is restored. Food and drink restore health by a
smaller amount derived from nutrition data.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from frostfall.config import combat_setting
from frostfall.models.item import InventoryItem, ItemType

logger = logging.getLogger(__name__)

POTION_STATS = ("health", "magicka", "stamina")

POTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "health": ("health", "heal", "healing", "vitality", "hp"),
    "magicka": ("magicka", "mana", "magick", "spell"),
    "stamina": ("stamina", "endurance", "energy", "fatigue"),
}

FLAT_FOOD_HEAL = 10
MIN_FOOD_HEAL = 5

EXPLICIT_SUBTYPE = "explicit_subtype"
INFERRED_FROM_NAME = "inferred_from_name"
NO_INFERENCE = "no_inference"
AMBIGUOUS_INFERENCE = "ambiguous_inference"
NOT_A_POTION = "not_a_potion"


@dataclass
class PotionEffect:
    reason: str
    stat: Optional[str] = None
    amount: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.stat is not None


def _potion_amount(item: InventoryItem) -> int:
    return item.amount if item.amount else combat_setting("default_potion_amount")


def resolve_potion_effect(
    item: InventoryItem,
    keywords: dict[str, tuple[str, ...]] | None = None,
) -> PotionEffect:
    """Decide which vital a potion restores. Never guesses under ambiguity.

    ``keywords`` overrides the stat keyword sets; they must stay disjoint.
    """
    if item.type != ItemType.POTION:
        return PotionEffect(reason=NOT_A_POTION)

    if item.subtype in POTION_STATS:
        return PotionEffect(stat=item.subtype, amount=_potion_amount(item), reason=EXPLICIT_SUBTYPE)

    name = (item.name or "").lower()
    matches = [
        stat for stat, words in (keywords or POTION_KEYWORDS).items()
        if any(kw in name for kw in words)
    ]

    if len(matches) == 1:
        return PotionEffect(stat=matches[0], amount=_potion_amount(item), reason=INFERRED_FROM_NAME)

    reason = AMBIGUOUS_INFERENCE if matches else NO_INFERENCE
    logger.warning("Could not resolve potion %r: %s (%s)", item.name, reason, ", ".join(matches) or "no match")
    return PotionEffect(reason=reason)


def _best_nutrition_match(name: str, table: dict[str, dict[str, int]]) -> dict[str, int] | None:
    lowered = name.lower()
    hits = [kw for kw in table if kw in lowered]
    if not hits:
        return None
    return table[max(hits, key=len)]


def consumable_heal_amount(item: InventoryItem, nutrition: dict[str, dict[str, dict[str, int]]]) -> int:
    """Health restored by eating or drinking ``item`` mid-combat."""
    if item.amount:
        return item.amount
    table = nutrition.get(item.type.value, {})
    values = _best_nutrition_match(item.name, table)
    if values is None:
        return FLAT_FOOD_HEAL
    total = values.get("hunger", 0) + values.get("thirst", 0)
    return max(MIN_FOOD_HEAL, math.floor(total * 0.5))
