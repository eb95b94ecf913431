from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemType(str, Enum):
    WEAPON = "weapon"
    APPAREL = "apparel"
    POTION = "potion"
    INGREDIENT = "ingredient"
    FOOD = "food"
    DRINK = "drink"
    MISC = "misc"
    KEY = "key"


class EquipSlot(str, Enum):
    WEAPON = "weapon"
    OFFHAND = "offhand"
    HEAD = "head"
    CHEST = "chest"
    HANDS = "hands"
    FEET = "feet"
    RING = "ring"
    AMULET = "amulet"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class InventoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    character_id: str
    name: str
    type: ItemType = ItemType.MISC
    description: str = ""
    quantity: int = Field(default=1, ge=0)
    equipped: bool = False
    slot: Optional[EquipSlot] = None
    armor: Optional[int] = None
    damage: Optional[int] = None
    subtype: Optional[str] = None
    amount: Optional[int] = None


class LootPoolEntry(BaseModel):
    """One line of an enemy's loot table."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ItemType = ItemType.MISC
    description: str = ""
    quantity_min: int = Field(default=1, ge=1)
    quantity_max: int = Field(default=1, ge=1)
    drop_chance: int = Field(default=100, ge=0, le=100)
    rarity: Rarity = Rarity.COMMON


class LootDrop(BaseModel):
    """A rolled loot item: what actually fell out of a loot table."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ItemType = ItemType.MISC
    description: str = ""
    quantity: int = 1
    rarity: Rarity = Rarity.COMMON


class LootSelection(BaseModel):
    name: str
    quantity: int = 1
