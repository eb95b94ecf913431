"""Combat state machine — turn-based combat between the player and enemies.

Every transition takes the current ``CombatState`` (plus player stats where
relevant), deep-copies it, and returns the new value. Nothing passed in is
mutated. Once ``result`` is set the state is terminal and every transition
hands it back unchanged.
"""
from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from frostfall.content.loader import load_nutrition
from frostfall.mechanics.combat_math import (
    basic_enemy_attack,
    choose_enemy_ability,
    flee_chance,
    resolve_damage,
)
from frostfall.mechanics.consumables import consumable_heal_amount, resolve_potion_effect
from frostfall.mechanics.dice import roll_percent
from frostfall.mechanics.effects import (
    Participant,
    adjust_vital,
    roll_and_apply_effects,
    stat_modifier,
    tick_effects,
)
from frostfall.mechanics.loot import roll_loot, total_rewards
from frostfall.models.combat import (
    ATTACK_ACTIONS,
    PLAYER_ID,
    SYSTEM_ACTOR,
    Ability,
    AbilityCategory,
    CombatLogEntry,
    CombatResult,
    CombatState,
    Enemy,
    PlayerAction,
    PlayerCombatStats,
    Rewards,
)
from frostfall.models.effect import SELF_EFFECTS
from frostfall.models.item import InventoryItem, ItemType

logger = logging.getLogger(__name__)

MELEE_WEAPON_BONUS = 0.5
DEFEND_MULTIPLIER = 0.5


@dataclass
class TurnStart:
    state: CombatState
    player_stats: PlayerCombatStats
    skip_turn: bool = False
    narrative: str = ""


@dataclass
class PlayerActionOutcome:
    state: CombatState
    player_stats: PlayerCombatStats
    narrative: str
    used_item: Optional[InventoryItem] = None
    inventory: Optional[list[InventoryItem]] = None
    refused: bool = False


@dataclass
class EnemyTurnOutcome:
    state: CombatState
    player_stats: PlayerCombatStats
    narrative: str = ""


def _log(
    state: CombatState,
    actor: str,
    action: str,
    narrative: str,
    target: str | None = None,
    damage: int | None = None,
    turn: int | None = None,
) -> None:
    state.combat_log.append(CombatLogEntry(
        turn=state.turn if turn is None else turn,
        actor=actor,
        action=action,
        target=target,
        damage=damage,
        narrative=narrative,
    ))


def _finish(state: CombatState, result: CombatResult) -> None:
    state.result = result
    state.active = False
    logger.info("Combat ended: %s on turn %d", result.value, state.turn)


def _player(stats: PlayerCombatStats, state: CombatState) -> Participant:
    return Participant(name="You", stats=stats, effects=state.player_active_effects, is_player=True)


def _enemy(enemy: Enemy) -> Participant:
    return Participant(name=enemy.name, stats=enemy, effects=enemy.active_effects)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def initialize_combat(
    enemies: Iterable[Enemy],
    location: str,
    ambush: bool = False,
    flee_allowed: bool = True,
    surrender_allowed: bool = False,
) -> CombatState:
    """Create a fresh combat state against ``enemies``.

    Enemies are copied, restored to full vitals and stripped of leftover
    effects and cooldowns. The player acts first unless ambushed.
    """
    prepared: list[Enemy] = []
    seen: set[str] = set()
    for original in enemies:
        enemy = original.model_copy(deep=True)
        if not enemy.id or enemy.id in seen:
            enemy.id = f"{enemy.template_id or 'enemy'}_{uuid.uuid4().hex[:12]}"
        seen.add(enemy.id)
        enemy.current_health = enemy.max_health
        if enemy.max_magicka is not None:
            enemy.current_magicka = enemy.max_magicka
        if enemy.max_stamina is not None:
            enemy.current_stamina = enemy.max_stamina
        enemy.active_effects = []
        enemy.cooldowns = {}
        prepared.append(enemy)

    enemy_ids = [e.id for e in prepared]
    turn_order = [*enemy_ids, PLAYER_ID] if ambush else [PLAYER_ID, *enemy_ids]

    state = CombatState(
        turn=1,
        current_turn_actor=turn_order[0],
        turn_order=turn_order,
        enemies=prepared,
        location=location,
        flee_allowed=flee_allowed,
        surrender_allowed=surrender_allowed,
    )

    names = ", ".join(e.name for e in prepared) or "nobody"
    narrative = f"Combat begins at {location} against {names}."
    if ambush:
        narrative += " You have been ambushed!"
    _log(state, SYSTEM_ACTOR, "combat_start", narrative, turn=0)
    logger.info("Combat started at %s: %d enemies%s", location, len(prepared), " (ambush)" if ambush else "")
    return state


# ---------------------------------------------------------------------------
# Player turn
# ---------------------------------------------------------------------------

def start_player_turn(state: CombatState, player_stats: PlayerCombatStats) -> TurnStart:
    """Tick the player's effects at the start of their turn.

    Damage over time can end the fight in defeat. A stunned player gets
    ``skip_turn=True`` and should not act.
    """
    new_state = state.model_copy(deep=True)
    stats = player_stats.model_copy(deep=True)
    if new_state.is_over or not new_state.player_active_effects:
        return TurnStart(state=new_state, player_stats=stats)

    holder = _player(stats, new_state)
    tick = tick_effects(holder)
    new_state.player_active_effects = tick.effects

    narratives = list(tick.narratives)
    if tick.damage_taken:
        _log(new_state, PLAYER_ID, "effect_tick", " ".join(tick.narratives),
             target=PLAYER_ID, damage=tick.damage_taken)

    if stats.current_health <= 0:
        text = "You succumb to your wounds..."
        _log(new_state, SYSTEM_ACTOR, "defeat", text)
        _finish(new_state, CombatResult.DEFEAT)
        return TurnStart(new_state, stats, skip_turn=True, narrative=" ".join([*narratives, text]))

    if tick.stunned:
        text = "You are stunned and cannot act!"
        _log(new_state, PLAYER_ID, "stunned", text)
        return TurnStart(new_state, stats, skip_turn=True, narrative=" ".join([*narratives, text]))

    return TurnStart(new_state, stats, narrative=" ".join(narratives))


def _refuse(
    state: CombatState,
    stats: PlayerCombatStats,
    narrative: str,
    inventory: list[InventoryItem] | None,
) -> PlayerActionOutcome:
    logger.debug("Player action refused: %s", narrative)
    return PlayerActionOutcome(
        state=state,
        player_stats=stats,
        narrative=narrative,
        inventory=list(inventory) if inventory is not None else None,
        refused=True,
    )


def _default_ability(abilities: list[Ability], action: PlayerAction) -> Ability | None:
    """First ability matching the action's flavour, else the first ability."""
    if not abilities:
        return None
    if action == PlayerAction.POWER_ATTACK:
        match = next((a for a in abilities if a.id == "power_attack"), None)
    elif action == PlayerAction.MAGIC:
        match = next((a for a in abilities if a.category == AbilityCategory.MAGIC), None)
    elif action == PlayerAction.SHOUT:
        match = next((a for a in abilities if a.category == AbilityCategory.SHOUT), None)
    else:
        match = None
    return match or abilities[0]


def _use_ability(
    state: CombatState,
    stats: PlayerCombatStats,
    action: PlayerAction,
    target_id: str | None,
    ability_id: str | None,
    inventory: list[InventoryItem] | None,
    rng: random.Random | None,
) -> PlayerActionOutcome:
    if ability_id:
        ability = next((a for a in stats.abilities if a.id == ability_id), None)
        if ability is None:
            return _refuse(state, stats, f"You don't know an ability called {ability_id}.", inventory)
    else:
        ability = _default_ability(stats.abilities, action)
        if ability is None:
            return _refuse(state, stats, "You have no abilities to use.", inventory)

    remaining = state.ability_cooldowns.get(ability.id, 0)
    if remaining > 0:
        return _refuse(state, stats, f"{ability.name} is on cooldown for {remaining} more turn(s).", inventory)

    resource = ability.resource
    available = getattr(stats, f"current_{resource}") + stat_modifier(state.player_active_effects, resource)
    if ability.cost > available:
        return _refuse(
            state, stats,
            f"Not enough {resource} for {ability.name} (need {ability.cost}, have {available}).",
            inventory,
        )

    target: Enemy | None = None
    offensive = ability.damage > 0 or any(not isinstance(e, SELF_EFFECTS) for e in ability.effects)
    if offensive:
        if target_id:
            target = state.find_enemy(target_id)
        else:
            living = state.living_enemies()
            target = living[0] if living else None
        if target is None or not target.is_alive:
            return _refuse(state, stats, "There is no living target to attack.", inventory)

    adjust_vital(stats, resource, -ability.cost)
    if ability.cooldown:
        state.ability_cooldowns[ability.id] = ability.cooldown

    parts: list[str] = []
    dealt: int | None = None
    if target is not None and ability.damage > 0:
        base = ability.damage + stat_modifier(state.player_active_effects, "damage")
        if ability.category == AbilityCategory.MELEE:
            base += math.floor(stats.weapon_damage * MELEE_WEAPON_BONUS)
        armor = target.armor + stat_modifier(target.active_effects, "armor")
        result = resolve_damage(
            max(0, base),
            stats.level,
            max(0, armor),
            target.resistances,
            ability.resolved_damage_type,
            stats.crit_chance,
            target_weaknesses=target.weaknesses,
            rng=rng,
        )
        dealt = result.damage
        target.current_health = max(0, target.current_health - dealt)

        if result.is_crit:
            parts.append(f"Critical hit! Your {ability.name} strikes {target.name} for {dealt} damage.")
        else:
            parts.append(f"You use {ability.name} on {target.name} for {dealt} damage.")
        if result.resisted:
            parts.append(f"{target.name} resists some of the blow.")
        if not target.is_alive:
            parts.append(f"{target.name} falls!")
    elif target is not None:
        parts.append(f"You use {ability.name} on {target.name}.")
    else:
        parts.append(f"You use {ability.name}.")

    user = _player(stats, state)
    victim = _enemy(target) if target is not None and target.is_alive else None
    parts.extend(roll_and_apply_effects(ability.effects, user, victim, rng))
    state.player_active_effects = user.effects
    if victim is not None:
        target.active_effects = victim.effects

    narrative = " ".join(parts)
    _log(state, PLAYER_ID, action.value, narrative,
         target=target.id if target is not None else None, damage=dealt)
    return PlayerActionOutcome(
        state=state,
        player_stats=stats,
        narrative=narrative,
        inventory=list(inventory) if inventory is not None else None,
    )


def _use_item(
    state: CombatState,
    stats: PlayerCombatStats,
    item_id: str | None,
    inventory: list[InventoryItem] | None,
) -> PlayerActionOutcome:
    if inventory is None or not item_id:
        return _refuse(state, stats, "You have nothing to use.", inventory)

    item = next((i for i in inventory if i.id == item_id and i.quantity > 0), None)
    if item is None:
        return _refuse(state, stats, "You don't have that item.", inventory)

    if item.type == ItemType.POTION:
        effect = resolve_potion_effect(item)
        if not effect.resolved:
            return _refuse(
                state, stats,
                f"You can't tell what {item.name} does, so you keep it for later.",
                inventory,
            )
        stat, amount = effect.stat, effect.amount
    elif item.type in (ItemType.FOOD, ItemType.DRINK):
        stat, amount = "health", consumable_heal_amount(item, load_nutrition())
    else:
        return _refuse(state, stats, f"{item.name} can't be used in combat.", inventory)

    restored = adjust_vital(stats, stat, amount)
    verb = "drink" if item.type in (ItemType.POTION, ItemType.DRINK) else "eat"
    narrative = f"You {verb} {item.name} and recover {restored} {stat}."

    updated: list[InventoryItem] = []
    for entry in inventory:
        if entry.id != item.id:
            updated.append(entry)
        elif entry.quantity > 1:
            updated.append(entry.model_copy(update={"quantity": entry.quantity - 1}))

    _log(state, PLAYER_ID, PlayerAction.ITEM.value, narrative, target=PLAYER_ID)
    return PlayerActionOutcome(
        state=state,
        player_stats=stats,
        narrative=narrative,
        used_item=item.model_copy(),
        inventory=updated,
    )


def apply_player_action(
    state: CombatState,
    player_stats: PlayerCombatStats,
    action: PlayerAction | str,
    target_id: str | None = None,
    ability_id: str | None = None,
    item_id: str | None = None,
    *,
    inventory: list[InventoryItem] | None = None,
    rng: random.Random | None = None,
) -> PlayerActionOutcome:
    """Resolve one player action.

    Refused actions (unknown ability, cooldown, cost, no target, flee or
    surrender not allowed, unusable item) come back with ``refused=True``,
    a narrative, and the state and vitals untouched.
    """
    new_state = state.model_copy(deep=True)
    stats = player_stats.model_copy(deep=True)

    if new_state.is_over:
        return _refuse(new_state, stats, "The fight is already over.", inventory)

    try:
        action = PlayerAction(action)
    except ValueError:
        return _refuse(new_state, stats, f"Unknown action: {action}.", inventory)

    if action in ATTACK_ACTIONS:
        return _use_ability(new_state, stats, action, target_id, ability_id, inventory, rng)

    if action == PlayerAction.ITEM:
        return _use_item(new_state, stats, item_id, inventory)

    if action == PlayerAction.DEFEND:
        new_state.player_defending = True
        narrative = "You raise your guard, ready to absorb the next blows."
        _log(new_state, PLAYER_ID, action.value, narrative)

    elif action == PlayerAction.FLEE:
        if not new_state.flee_allowed:
            return _refuse(new_state, stats, "There is no escape from this fight!", inventory)
        if roll_percent(flee_chance(stats.dodge_chance), rng):
            narrative = "You break away and flee the battle!"
            _log(new_state, PLAYER_ID, action.value, narrative)
            _finish(new_state, CombatResult.FLED)
        else:
            narrative = "You try to flee but cannot get away!"
            _log(new_state, PLAYER_ID, action.value, narrative)

    else:
        if not new_state.surrender_allowed:
            return _refuse(new_state, stats, "Your enemies will not accept a surrender.", inventory)
        narrative = "You lower your weapon and surrender."
        _log(new_state, PLAYER_ID, action.value, narrative)
        _finish(new_state, CombatResult.SURRENDERED)

    return PlayerActionOutcome(
        state=new_state,
        player_stats=stats,
        narrative=narrative,
        inventory=list(inventory) if inventory is not None else None,
    )


# ---------------------------------------------------------------------------
# Enemy turn
# ---------------------------------------------------------------------------

def _enemy_can_afford(enemy: Enemy, ability: Ability) -> bool:
    pool = getattr(enemy, f"current_{ability.resource}")
    if pool is None:
        return True
    return ability.cost <= pool + stat_modifier(enemy.active_effects, ability.resource)


def apply_enemy_turn(
    state: CombatState,
    enemy_id: str,
    player_stats: PlayerCombatStats,
    *,
    rng: random.Random | None = None,
) -> EnemyTurnOutcome:
    """Run one enemy's turn: tick its effects, pick an ability, attack."""
    new_state = state.model_copy(deep=True)
    stats = player_stats.model_copy(deep=True)
    if new_state.is_over:
        return EnemyTurnOutcome(new_state, stats)

    enemy = new_state.find_enemy(enemy_id)
    if enemy is None or not enemy.is_alive:
        return EnemyTurnOutcome(new_state, stats)

    holder = _enemy(enemy)
    tick = tick_effects(holder)
    enemy.active_effects = tick.effects
    if tick.narratives:
        _log(new_state, enemy.name, "effect_tick", " ".join(tick.narratives),
             target=enemy.id, damage=tick.damage_taken or None)
    if not enemy.is_alive:
        text = f"{enemy.name} succumbs to its wounds."
        _log(new_state, enemy.name, "defeated", text, target=enemy.id)
        return EnemyTurnOutcome(new_state, stats, " ".join([*tick.narratives, text]))
    if tick.stunned:
        text = f"{enemy.name} is stunned and cannot act!"
        _log(new_state, enemy.name, "stunned", text)
        return EnemyTurnOutcome(new_state, stats, text)

    candidates = [
        a for a in enemy.abilities
        if enemy.cooldowns.get(a.id, 0) <= 0 and _enemy_can_afford(enemy, a)
    ]
    ability = choose_enemy_ability(enemy.behavior, candidates, rng) or basic_enemy_attack(enemy.damage)
    logger.debug("%s (%s) chose %s", enemy.name, enemy.behavior, ability.name)

    adjust_vital(enemy, ability.resource, -ability.cost)
    if ability.cooldown:
        enemy.cooldowns[ability.id] = ability.cooldown

    dealt: int | None = None
    dodged = False
    if ability.damage > 0:
        base = ability.damage + stat_modifier(enemy.active_effects, "damage")
        armor = stats.armor + stat_modifier(new_state.player_active_effects, "armor")
        result = resolve_damage(
            max(0, base),
            enemy.level,
            max(0, armor),
            damage_type=ability.resolved_damage_type,
            crit_chance=enemy.crit_chance,
            rng=rng,
        )
        dodged = roll_percent(stats.dodge_chance, rng)
        dealt = 0 if dodged else result.damage
        if new_state.player_defending:
            dealt = math.floor(dealt * DEFEND_MULTIPLIER)
        stats.current_health = max(0, stats.current_health - dealt)

        if dodged:
            narrative = f"{enemy.name} uses {ability.name} but you dodge the attack!"
        elif result.is_crit:
            narrative = f"{enemy.name} lands a critical hit with {ability.name} for {dealt} damage!"
        else:
            narrative = f"{enemy.name} uses {ability.name} and deals {dealt} damage."
    else:
        narrative = f"{enemy.name} uses {ability.name}."

    user = _enemy(enemy)
    victim = None if dodged else _player(stats, new_state)
    effect_texts = roll_and_apply_effects(ability.effects, user, victim, rng)
    enemy.active_effects = user.effects
    if victim is not None:
        new_state.player_active_effects = victim.effects
    if effect_texts:
        narrative = " ".join([narrative, *effect_texts])

    if stats.current_health <= 0:
        narrative += " You have been defeated..."
        _finish(new_state, CombatResult.DEFEAT)

    _log(new_state, enemy.name, ability.name, narrative, target=PLAYER_ID, damage=dealt)
    return EnemyTurnOutcome(new_state, stats, narrative)


# ---------------------------------------------------------------------------
# Turn order and end conditions
# ---------------------------------------------------------------------------

def _is_ready(state: CombatState, actor: str) -> bool:
    if actor == PLAYER_ID:
        return True
    enemy = state.find_enemy(actor)
    return enemy is not None and enemy.is_alive


def advance_turn(state: CombatState) -> CombatState:
    """Move to the next living actor; wrapping around starts a new round."""
    new_state = state.model_copy(deep=True)
    order = new_state.turn_order
    if new_state.is_over or not order:
        return new_state

    current = order.index(new_state.current_turn_actor) if new_state.current_turn_actor in order else -1
    index = current
    wrapped = False
    for _ in range(len(order)):
        index += 1
        if index >= len(order):
            index = 0
            wrapped = True
        if _is_ready(new_state, order[index]):
            break

    new_state.current_turn_actor = order[index]
    if wrapped:
        new_state.turn += 1
        new_state.ability_cooldowns = {
            k: v - 1 if v > 0 else v for k, v in new_state.ability_cooldowns.items()
        }
        for enemy in new_state.enemies:
            enemy.cooldowns = {k: v - 1 if v > 0 else v for k, v in enemy.cooldowns.items()}
        new_state.player_defending = False
        logger.debug("Round %d begins", new_state.turn)
    return new_state


def check_combat_end(
    state: CombatState,
    player_stats: PlayerCombatStats,
    *,
    rng: random.Random | None = None,
) -> CombatState:
    """Set Victory when every enemy is dead, else Defeat at zero health."""
    new_state = state.model_copy(deep=True)
    if new_state.is_over:
        return new_state

    if new_state.enemies and not new_state.living_enemies():
        totals = total_rewards(new_state.enemies)
        items = [drop for enemy in new_state.enemies for drop in roll_loot(enemy.loot, rng)]
        new_state.rewards = Rewards(xp=totals.xp, gold=totals.gold, items=items)
        new_state.pending_rewards = totals

        narrative = f"Victory! You have defeated all enemies and earned {totals.xp} XP"
        if totals.gold > 0:
            narrative += f" and {totals.gold} gold"
        narrative += "!"
        _log(new_state, SYSTEM_ACTOR, "victory", narrative)
        _finish(new_state, CombatResult.VICTORY)
        return new_state

    if player_stats.current_health <= 0:
        _log(new_state, SYSTEM_ACTOR, "defeat", "You have been defeated...")
        _finish(new_state, CombatResult.DEFEAT)
    return new_state
