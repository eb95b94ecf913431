"""Tests for src/frostfall/mechanics/consumables.py."""
from __future__ import annotations

import pytest

from frostfall.mechanics.consumables import (
    AMBIGUOUS_INFERENCE,
    EXPLICIT_SUBTYPE,
    INFERRED_FROM_NAME,
    NO_INFERENCE,
    NOT_A_POTION,
    consumable_heal_amount,
    resolve_potion_effect,
)
from frostfall.models.item import InventoryItem, ItemType


def _potion(name: str, **kwargs) -> InventoryItem:
    return InventoryItem(character_id="c", name=name, type=ItemType.POTION, **kwargs)


class TestResolvePotionEffect:
    def test_not_a_potion(self):
        bread = InventoryItem(character_id="c", name="Bread", type=ItemType.FOOD)
        effect = resolve_potion_effect(bread)
        assert effect.reason == NOT_A_POTION
        assert effect.stat is None

    def test_explicit_subtype_wins(self):
        effect = resolve_potion_effect(_potion("Strange Brew", subtype="magicka"))
        assert effect.stat == "magicka"
        assert effect.amount == 35
        assert effect.reason == EXPLICIT_SUBTYPE

    def test_explicit_subtype_beats_misleading_name(self):
        effect = resolve_potion_effect(_potion("Health Potion", subtype="stamina", amount=50))
        assert effect.stat == "stamina"
        assert effect.amount == 50

    @pytest.mark.parametrize("name,stat", [
        ("Minor Health Potion", "health"),
        ("Potion of Vitality", "health"),
        ("Draught of Mana", "magicka"),
        ("SPELL Tonic", "magicka"),
        ("Endurance Elixir", "stamina"),
        ("Potion of Fatigue Relief", "stamina"),
    ])
    def test_inferred_from_name(self, name, stat):
        effect = resolve_potion_effect(_potion(name))
        assert effect.stat == stat
        assert effect.reason == INFERRED_FROM_NAME
        assert effect.resolved is True

    def test_item_amount_used(self):
        assert resolve_potion_effect(_potion("Health Potion", amount=75)).amount == 75

    def test_no_inference(self):
        effect = resolve_potion_effect(_potion("Potion of Vigor"))
        assert effect.reason == NO_INFERENCE
        assert effect.stat is None
        assert effect.amount is None
        assert effect.resolved is False

    def test_ambiguous_name_restores_nothing(self):
        effect = resolve_potion_effect(_potion("Health and Stamina Draught"))
        assert effect.reason == AMBIGUOUS_INFERENCE
        assert effect.stat is None

    def test_ambiguous_with_custom_keywords(self):
        keywords = {
            "health": ("tonic",),
            "magicka": ("mana",),
            "stamina": ("mixed",),
        }
        effect = resolve_potion_effect(_potion("Mixed Tonic"), keywords=keywords)
        assert effect.reason == AMBIGUOUS_INFERENCE
        assert effect.stat is None


class TestConsumableHealAmount:
    @pytest.fixture
    def nutrition(self):
        return {
            "food": {
                "apple": {"hunger": 10, "thirst": 2},
                "apple pie": {"hunger": 30, "thirst": 0},
                "berry": {"hunger": 2},
            },
            "drink": {
                "mead": {"hunger": 5, "thirst": 25},
            },
        }

    def _item(self, name: str, item_type: ItemType = ItemType.FOOD, **kwargs) -> InventoryItem:
        return InventoryItem(character_id="c", name=name, type=item_type, **kwargs)

    def test_explicit_amount(self, nutrition):
        assert consumable_heal_amount(self._item("Apple", amount=20), nutrition) == 20

    def test_from_nutrition(self, nutrition):
        assert consumable_heal_amount(self._item("Red Apple"), nutrition) == 6

    def test_longest_keyword_wins(self, nutrition):
        assert consumable_heal_amount(self._item("Apple Pie"), nutrition) == 15

    def test_minimum_heal(self, nutrition):
        assert consumable_heal_amount(self._item("Snow Berry"), nutrition) == 5

    def test_drink_table(self, nutrition):
        assert consumable_heal_amount(self._item("Honningbrew Mead", ItemType.DRINK), nutrition) == 15

    def test_unknown_falls_back_to_flat(self, nutrition):
        assert consumable_heal_amount(self._item("Mystery Meat"), nutrition) == 10
