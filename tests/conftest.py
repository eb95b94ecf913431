"""Shared fixtures for the Frostfall combat test suite."""
from __future__ import annotations

import random

import pytest

from frostfall.models.character import Character, Skill
from frostfall.models.combat import Ability, AbilityCategory, Enemy, PlayerCombatStats
from frostfall.models.enemy import EnemyTemplate
from frostfall.models.item import EquipSlot, InventoryItem, ItemType, LootPoolEntry
from frostfall.storage.transaction_ledger import TransactionLedger

CHARACTER_ID = "char-1"


class FakeClock:
    """Manually advanced clock for ledger expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def seeded_rng():
    """A seeded generator so rolls are reproducible."""
    return random.Random(42)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger(clock) -> TransactionLedger:
    return TransactionLedger(character_id=CHARACTER_ID, clock=clock)


@pytest.fixture
def warrior() -> Character:
    return Character(
        id=CHARACTER_ID,
        name="Hrolfdir",
        level=10,
        gold=50,
        skills=[
            Skill(name="One-Handed", level=40),
            Skill(name="Heavy Armor", level=30),
            Skill(name="Restoration", level=25),
        ],
    )


@pytest.fixture
def sword() -> InventoryItem:
    return InventoryItem(
        character_id=CHARACTER_ID, name="Iron Sword", type=ItemType.WEAPON,
        equipped=True, slot=EquipSlot.WEAPON, damage=12,
    )


@pytest.fixture
def shield() -> InventoryItem:
    return InventoryItem(
        character_id=CHARACTER_ID, name="Iron Shield", type=ItemType.APPAREL,
        equipped=True, slot=EquipSlot.OFFHAND, armor=20,
    )


@pytest.fixture
def health_potion() -> InventoryItem:
    return InventoryItem(
        character_id=CHARACTER_ID, name="Minor Health Potion", type=ItemType.POTION,
        quantity=2, amount=30,
    )


@pytest.fixture
def strike() -> Ability:
    return Ability(id="strike", name="Strike", category=AbilityCategory.MELEE, damage=20, cost=10)


@pytest.fixture
def player_stats(strike) -> PlayerCombatStats:
    """A plain combat sheet with no dodge and no crits, so hits are predictable."""
    return PlayerCombatStats(
        level=10,
        max_health=100,
        current_health=100,
        max_magicka=100,
        current_magicka=100,
        max_stamina=100,
        current_stamina=100,
        armor=0,
        weapon_damage=10,
        crit_chance=0,
        dodge_chance=0,
        abilities=[strike],
    )


def make_enemy(enemy_id: str = "wolf_1", **overrides) -> Enemy:
    data = dict(
        id=enemy_id,
        template_id="wolf",
        name="Wolf",
        level=3,
        max_health=30,
        armor=0,
        damage=8,
        crit_chance=0,
        behavior="aggressive",
        xp_reward=10,
        gold_reward=5,
    )
    data.update(overrides)
    return Enemy(**data)


@pytest.fixture
def wolf() -> Enemy:
    return make_enemy()


@pytest.fixture
def bandit_template() -> EnemyTemplate:
    return EnemyTemplate(
        id="test_bandit",
        name="Bandit",
        category="humanoid",
        level=5,
        health=50,
        armor=15,
        damage=12,
        behaviors=("aggressive", "tactical"),
        abilities=(
            Ability(id="slash", name="Slash", damage=12, cost=10),
            Ability(id="bash", name="Bash", damage=8, cost=5),
            Ability(id="kick", name="Kick", damage=6, cost=5),
        ),
        xp_reward=25,
        gold_reward=15,
        loot=(
            LootPoolEntry(name="Iron Sword", type=ItemType.WEAPON, drop_chance=20),
            LootPoolEntry(name="Lockpick", quantity_min=1, quantity_max=3, drop_chance=95),
        ),
    )


@pytest.fixture
def template_registry(bandit_template) -> dict[str, EnemyTemplate]:
    wolf_template = EnemyTemplate(
        id="test_wolf",
        name="Wolf",
        category="beast",
        level=3,
        health=30,
        armor=5,
        damage=8,
        behaviors=("aggressive",),
        abilities=(Ability(id="bite", name="Bite", damage=8, cost=5),),
        xp_reward=10,
    )
    thug_template = bandit_template.model_copy(update={"id": "test_thug", "name": "Thug"})
    return {t.id: t for t in (bandit_template, wolf_template, thug_template)}


@pytest.fixture
def enemy_factory():
    return make_enemy
