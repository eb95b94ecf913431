"""Tests for src/frostfall/mechanics/abilities.py."""
from __future__ import annotations

import pytest

from frostfall.mechanics.abilities import calculate_player_combat_stats, generate_player_abilities
from frostfall.models.character import Character, Skill, Vitals
from frostfall.models.combat import AbilityCategory
from frostfall.models.effect import DamageOverTime, Debuff, Drain, Heal, Stun
from frostfall.models.item import EquipSlot, InventoryItem, ItemType


def _hero(skills: dict[str, int] | None = None) -> Character:
    return Character(
        id="hero",
        name="Hero",
        level=5,
        skills=[Skill(name=name, level=level) for name, level in (skills or {}).items()],
    )


def _ids(abilities) -> list[str]:
    return [a.id for a in abilities]


class TestBasicAttack:
    def test_unarmed_default(self):
        abilities = generate_player_abilities(_hero(), [])
        assert _ids(abilities) == ["basic_attack"]
        assert abilities[0].damage == 10
        assert abilities[0].cost == 10
        assert abilities[0].name == "Unarmed Strike"

    def test_weapon_damage_used(self, sword):
        basic = generate_player_abilities(_hero(), [sword])[0]
        assert basic.id == "basic_attack"
        assert basic.damage == 12
        assert "Iron Sword" in basic.name

    def test_unequipped_weapon_ignored(self, sword):
        sword = sword.model_copy(update={"equipped": False})
        assert generate_player_abilities(_hero(), [sword])[0].damage == 10


class TestSkillThresholds:
    @pytest.mark.parametrize("level,expected", [(19, False), (20, True)])
    def test_power_attack(self, sword, level, expected):
        abilities = generate_player_abilities(_hero({"One-Handed": level}), [sword])
        assert ("power_attack" in _ids(abilities)) is expected

    def test_power_attack_from_two_handed(self, sword):
        abilities = generate_player_abilities(_hero({"Two-Handed": 25}), [sword])
        power = next(a for a in abilities if a.id == "power_attack")
        assert power.damage == 18
        assert power.cost == 25
        assert power.cooldown == 2
        assert power.effects == (Stun(duration=1, chance=25),)

    @pytest.mark.parametrize("level,expected", [
        (19, []),
        (20, ["flames"]),
        (34, ["flames"]),
        (35, ["flames", "ice_spike"]),
        (49, ["flames", "ice_spike"]),
        (50, ["flames", "ice_spike", "lightning_bolt"]),
    ])
    def test_destruction_spells(self, level, expected):
        abilities = generate_player_abilities(_hero({"Destruction": level}), [])
        spells = [a.id for a in abilities if a.category == AbilityCategory.MAGIC]
        assert spells == expected

    def test_destruction_damage_scales(self):
        abilities = {a.id: a for a in generate_player_abilities(_hero({"Destruction": 50}), [])}
        assert abilities["flames"].damage == 30
        assert abilities["ice_spike"].damage == 45
        assert abilities["lightning_bolt"].damage == 60
        assert isinstance(abilities["flames"].effects[0], DamageOverTime)
        assert isinstance(abilities["ice_spike"].effects[0], Debuff)
        assert isinstance(abilities["lightning_bolt"].effects[0], Drain)
        assert abilities["lightning_bolt"].resolved_damage_type == "shock"

    @pytest.mark.parametrize("level,expected", [(19, False), (20, True)])
    def test_healing(self, level, expected):
        abilities = generate_player_abilities(_hero({"Restoration": level}), [])
        assert ("healing" in _ids(abilities)) is expected

    def test_healing_scales_with_restoration(self):
        heal = next(a for a in generate_player_abilities(_hero({"Restoration": 40}), []) if a.id == "healing")
        assert heal.damage == 0
        assert heal.effects == (Heal(stat="health", value=45),)

    @pytest.mark.parametrize("level,expected", [(29, False), (30, True)])
    def test_bound_weapon(self, level, expected):
        abilities = generate_player_abilities(_hero({"Conjuration": level}), [])
        assert ("bound_weapon" in _ids(abilities)) is expected

    def test_bound_weapon_damage(self):
        bound = next(a for a in generate_player_abilities(_hero({"Conjuration": 30}), []) if a.id == "bound_weapon")
        assert bound.damage == 39
        assert bound.cooldown == 3


class TestEquipmentAbilities:
    def test_shield_bash_needs_armored_offhand(self, shield):
        abilities = generate_player_abilities(_hero(), [shield])
        bash = next(a for a in abilities if a.id == "shield_bash")
        assert bash.damage == 10
        assert bash.effects == (Stun(duration=1, chance=50),)

    def test_no_shield_bash_without_armor(self, shield):
        torch = shield.model_copy(update={"name": "Torch", "armor": None})
        assert "shield_bash" not in _ids(generate_player_abilities(_hero(), [torch]))

    def test_aimed_shot_with_bow(self):
        bow = InventoryItem(
            character_id="hero", name="Hunting Bow", type=ItemType.WEAPON,
            equipped=True, slot=EquipSlot.WEAPON, damage=10,
        )
        shot = next(a for a in generate_player_abilities(_hero(), [bow]) if a.id == "aimed_shot")
        # floor(10 * 1.3) + floor(15 * 0.2)
        assert shot.damage == 16
        assert shot.category == AbilityCategory.RANGED

    def test_aimed_shot_default_bow_damage(self):
        bow = InventoryItem(
            character_id="hero", name="Elven Bow", type=ItemType.WEAPON,
            equipped=True, slot=EquipSlot.WEAPON,
        )
        shot = next(a for a in generate_player_abilities(_hero({"Archery": 50}), [bow]) if a.id == "aimed_shot")
        assert shot.damage == 29

    def test_no_aimed_shot_with_sword(self, sword):
        assert "aimed_shot" not in _ids(generate_player_abilities(_hero({"Archery": 80}), [sword]))


class TestCalculatePlayerCombatStats:
    def test_weapon_skill_bonus(self, warrior, sword):
        stats = calculate_player_combat_stats(warrior, [sword])
        # floor(12 * 1.2)
        assert stats.weapon_damage == 14
        assert stats.level == 10
        assert stats.crit_chance == 5

    def test_armor_skill_bonus(self, shield):
        character = _hero({"Heavy Armor": 50})
        plate = InventoryItem(
            character_id="hero", name="Plate", type=ItemType.APPAREL,
            equipped=True, slot=EquipSlot.CHEST, armor=20,
        )
        stats = calculate_player_combat_stats(character, [plate, shield])
        assert stats.armor == 50

    def test_dodge_and_magic_resist_from_skills(self):
        stats = calculate_player_combat_stats(_hero({"Sneak": 50, "Alteration": 40}), [])
        assert stats.dodge_chance == 15
        assert stats.magic_resist == 8

    def test_vitals_default_to_max(self, warrior):
        stats = calculate_player_combat_stats(warrior, [])
        assert stats.current_health == stats.max_health == 100
        assert stats.current_stamina == 100

    def test_current_vitals_carried_over(self, warrior):
        hurt = warrior.model_copy(update={"current_vitals": Vitals(current_health=40, current_magicka=10)})
        stats = calculate_player_combat_stats(hurt, [])
        assert stats.current_health == 40
        assert stats.current_magicka == 10
        assert stats.current_stamina == 100

    def test_abilities_included(self, warrior, sword):
        stats = calculate_player_combat_stats(warrior, [sword])
        ids = _ids(stats.abilities)
        assert ids[0] == "basic_attack"
        assert "power_attack" in ids
        assert "healing" in ids
