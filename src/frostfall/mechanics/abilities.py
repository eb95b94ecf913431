"""Player ability generation and combat stat derivation — pure functions, no I/O.

Thresholds:
- Power Attack: One-Handed or Two-Handed >= 20
- Shield Bash: off-hand item with an armor rating equipped
- Flames / Ice Spike / Lightning Bolt: Destruction >= 20 / 35 / 50
- Healing: Restoration >= 20
- Bound Weapon: Conjuration >= 30
- Aimed Shot: a bow in the weapon slot
Skills the character has never trained count as level 15.
"""
from __future__ import annotations

import math

from frostfall.config import combat_setting
from frostfall.models.character import Character
from frostfall.models.combat import Ability, AbilityCategory, PlayerCombatStats
from frostfall.models.effect import DamageOverTime, Debuff, Drain, Heal, Stun
from frostfall.models.item import EquipSlot, InventoryItem

DEFAULT_BOW_DAMAGE = 15

POWER_ATTACK_SKILL = 20
FLAMES_SKILL = 20
ICE_SPIKE_SKILL = 35
LIGHTNING_BOLT_SKILL = 50
HEALING_SKILL = 20
BOUND_WEAPON_SKILL = 30


def _equipped(equipment: list[InventoryItem]) -> list[InventoryItem]:
    return [item for item in equipment if item.equipped]


def _find_slot(equipment: list[InventoryItem], slot: EquipSlot) -> InventoryItem | None:
    for item in equipment:
        if item.equipped and item.slot == slot:
            return item
    return None


def _find_bow(equipment: list[InventoryItem]) -> InventoryItem | None:
    for item in equipment:
        if item.equipped and item.slot == EquipSlot.WEAPON and "bow" in item.name.lower():
            return item
    return None


def generate_player_abilities(character: Character, equipment: list[InventoryItem]) -> list[Ability]:
    """Derive the ability list from skills and equipped gear.

    The basic attack is always first, so it doubles as the default ability.
    """
    abilities: list[Ability] = []
    weapon = _find_slot(equipment, EquipSlot.WEAPON)
    base_damage = (weapon.damage if weapon and weapon.damage else None) or combat_setting("unarmed_damage")

    abilities.append(Ability(
        id="basic_attack",
        name=f"Strike with {weapon.name}" if weapon else "Unarmed Strike",
        category=AbilityCategory.MELEE,
        damage=base_damage,
        cost=10,
        description="A basic attack with your equipped weapon.",
    ))

    weapon_skill = max(character.skill_level("One-Handed"), character.skill_level("Two-Handed"))
    if weapon_skill >= POWER_ATTACK_SKILL:
        abilities.append(Ability(
            id="power_attack",
            name="Power Attack",
            category=AbilityCategory.MELEE,
            damage=math.floor(base_damage * 1.5),
            cost=25,
            cooldown=2,
            effects=(Stun(duration=1, chance=25),),
            description="A powerful strike that deals 50% more damage.",
        ))

    shield = _find_slot(equipment, EquipSlot.OFFHAND)
    if shield and shield.armor:
        abilities.append(Ability(
            id="shield_bash",
            name="Shield Bash",
            category=AbilityCategory.MELEE,
            damage=math.floor(shield.armor * 0.5),
            cost=15,
            cooldown=2,
            effects=(Stun(duration=1, chance=50),),
            description="Bash with your shield, potentially stunning the enemy.",
        ))

    destruction = character.skill_level("Destruction")
    if destruction >= FLAMES_SKILL:
        abilities.append(Ability(
            id="flames",
            name="Flames",
            category=AbilityCategory.MAGIC,
            damage=15 + math.floor(destruction * 0.3),
            cost=15,
            damage_type="fire",
            effects=(DamageOverTime(stat="health", per_turn=3, duration=2, chance=30),),
            description="A stream of fire that damages enemies.",
        ))
    if destruction >= ICE_SPIKE_SKILL:
        abilities.append(Ability(
            id="ice_spike",
            name="Ice Spike",
            category=AbilityCategory.MAGIC,
            damage=25 + math.floor(destruction * 0.4),
            cost=25,
            cooldown=1,
            damage_type="frost",
            effects=(Debuff(stat="stamina", delta=-20, duration=2),),
            description="A spike of ice that slows enemies.",
        ))
    if destruction >= LIGHTNING_BOLT_SKILL:
        abilities.append(Ability(
            id="lightning_bolt",
            name="Lightning Bolt",
            category=AbilityCategory.MAGIC,
            damage=35 + math.floor(destruction * 0.5),
            cost=35,
            cooldown=2,
            damage_type="shock",
            effects=(Drain(stat="magicka", value=15),),
            description="A bolt of lightning that drains magicka.",
        ))

    restoration = character.skill_level("Restoration")
    if restoration >= HEALING_SKILL:
        abilities.append(Ability(
            id="healing",
            name="Healing",
            category=AbilityCategory.MAGIC,
            damage=0,
            cost=20,
            effects=(Heal(stat="health", value=25 + math.floor(restoration * 0.5)),),
            description="Restore your health.",
        ))

    conjuration = character.skill_level("Conjuration")
    if conjuration >= BOUND_WEAPON_SKILL:
        abilities.append(Ability(
            id="bound_weapon",
            name="Bound Weapon",
            category=AbilityCategory.MAGIC,
            damage=30 + math.floor(conjuration * 0.3),
            cost=30,
            cooldown=3,
            description="Conjure a spectral weapon to strike your foe.",
        ))

    bow = _find_bow(equipment)
    if bow:
        archery = character.skill_level("Archery")
        abilities.append(Ability(
            id="aimed_shot",
            name="Aimed Shot",
            category=AbilityCategory.RANGED,
            damage=math.floor((bow.damage or DEFAULT_BOW_DAMAGE) * 1.3) + math.floor(archery * 0.2),
            cost=20,
            cooldown=1,
            description="A carefully aimed arrow for extra damage.",
        ))

    return abilities


def calculate_player_combat_stats(character: Character, equipment: list[InventoryItem]) -> PlayerCombatStats:
    """Build the player's combat sheet from the character and their gear."""
    equipped = _equipped(equipment)

    armor = sum(item.armor or 0 for item in equipped)
    weapon_damage = combat_setting("unarmed_damage")
    for item in equipped:
        if item.damage:
            weapon_damage = max(weapon_damage, item.damage)

    armor_skill = max(character.skill_level("Light Armor"), character.skill_level("Heavy Armor"))
    armor = math.floor(armor * (1 + armor_skill * 0.5 / 100))

    weapon_skill = max(
        character.skill_level("One-Handed"),
        character.skill_level("Two-Handed"),
        character.skill_level("Archery"),
    )
    weapon_damage = math.floor(weapon_damage * (1 + weapon_skill * 0.5 / 100))

    vitals = character.current_vitals
    stats = character.stats

    def _current(name: str, maximum: int) -> int:
        value = getattr(vitals, f"current_{name}", None) if vitals else None
        return maximum if value is None else value

    return PlayerCombatStats(
        level=max(1, character.level),
        max_health=stats.health,
        current_health=_current("health", stats.health),
        max_magicka=stats.magicka,
        current_magicka=_current("magicka", stats.magicka),
        max_stamina=stats.stamina,
        current_stamina=_current("stamina", stats.stamina),
        armor=armor,
        weapon_damage=weapon_damage,
        crit_chance=combat_setting("player_crit_chance"),
        dodge_chance=math.floor(character.skill_level("Sneak") * 0.3),
        magic_resist=math.floor(character.skill_level("Alteration") * 0.2),
        abilities=generate_player_abilities(character, equipment),
    )
