"""Combat session — drives the state machine for one fight.

The session owns the current ``CombatState``, the player's combat stats, the
inventory and the ``TransactionLedger`` rewards are granted through. Callers
only pick player actions; enemy turns, turn advancement and end checks run
automatically in between.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Iterable, Optional

from frostfall.config import get_config
from frostfall.engine.combat import (
    PlayerActionOutcome,
    advance_turn,
    apply_enemy_turn,
    apply_player_action,
    check_combat_end,
    initialize_combat,
    start_player_turn,
)
from frostfall.mechanics.abilities import calculate_player_combat_stats
from frostfall.mechanics.consumables import resolve_potion_effect
from frostfall.mechanics.effects import stat_modifier
from frostfall.mechanics.loot import LootResolution, finalize_loot, populate_pending_loot
from frostfall.models.character import Character
from frostfall.models.combat import (
    PLAYER_ID,
    CombatResult,
    CombatState,
    Enemy,
    PlayerAction,
    PlayerCombatStats,
)
from frostfall.models.item import InventoryItem, ItemType, LootSelection
from frostfall.storage.transaction_ledger import TransactionLedger

logger = logging.getLogger(__name__)

LOW_HEALTH_RATIO = 0.35


class CombatSession:
    def __init__(
        self,
        character: Character,
        enemies: Iterable[Enemy],
        *,
        equipment: list[InventoryItem] | None = None,
        inventory: list[InventoryItem] | None = None,
        location: str = "the wilds",
        ambush: bool = False,
        flee_allowed: bool = True,
        surrender_allowed: bool = False,
        ledger: TransactionLedger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.character = character
        self.inventory: list[InventoryItem] = list(inventory or [])
        self.player_stats: PlayerCombatStats = calculate_player_combat_stats(character, equipment or [])
        if ledger is None:
            minutes = get_config()["ledger"]["max_age_minutes"]
            ledger = TransactionLedger(character_id=character.id, max_age=timedelta(minutes=minutes))
        else:
            ledger.set_character(character.id)
        self.ledger = ledger
        self.rng = rng
        self.state: CombatState = initialize_combat(
            enemies, location,
            ambush=ambush,
            flee_allowed=flee_allowed,
            surrender_allowed=surrender_allowed,
        )
        self.messages: list[str] = []

    @property
    def is_over(self) -> bool:
        return self.state.is_over

    @property
    def result(self) -> Optional[CombatResult]:
        return self.state.result

    # -- Turn flow --

    def _end_check(self) -> None:
        self.state = check_combat_end(self.state, self.player_stats, rng=self.rng)

    def _run_until_player(self) -> list[str]:
        """Play enemy turns until the player may act or the fight ends."""
        narratives: list[str] = []
        while not self.is_over:
            actor = self.state.current_turn_actor
            if actor != PLAYER_ID:
                outcome = apply_enemy_turn(self.state, actor, self.player_stats, rng=self.rng)
                self.state, self.player_stats = outcome.state, outcome.player_stats
                if outcome.narrative:
                    narratives.append(outcome.narrative)
                self._end_check()
                if not self.is_over:
                    self.state = advance_turn(self.state)
                continue

            turn = start_player_turn(self.state, self.player_stats)
            self.state, self.player_stats = turn.state, turn.player_stats
            if turn.narrative:
                narratives.append(turn.narrative)
            if self.is_over or not turn.skip_turn:
                break
            self.state = advance_turn(self.state)
        self.messages.extend(narratives)
        return narratives

    def start(self) -> list[str]:
        """Bring the fight to the player's first decision."""
        return self._run_until_player()

    def act(
        self,
        action: PlayerAction | str,
        target_id: str | None = None,
        ability_id: str | None = None,
        item_id: str | None = None,
    ) -> PlayerActionOutcome:
        """Take a player action, then play out enemy turns until the player is up again."""
        outcome = apply_player_action(
            self.state, self.player_stats, action,
            target_id=target_id,
            ability_id=ability_id,
            item_id=item_id,
            inventory=self.inventory,
            rng=self.rng,
        )
        self.messages.append(outcome.narrative)
        if outcome.refused:
            logger.debug("Player action %s refused: %s", action, outcome.narrative)
            return outcome

        self.state, self.player_stats = outcome.state, outcome.player_stats
        if outcome.inventory is not None:
            self.inventory = outcome.inventory
        self._end_check()
        if not self.is_over:
            self.state = advance_turn(self.state)
            self._run_until_player()
        return outcome

    # -- Rewards --

    def claim_loot(
        self,
        selections: list[LootSelection] | None = None,
        *,
        take_all: bool = False,
        transaction_id: str | None = None,
    ) -> LootResolution:
        """Stage loot if needed, then grant it through the ledger.

        ``take_all`` selects every staged drop. The character's gold and
        experience are updated from what was actually granted.
        """
        self.state = populate_pending_loot(self.state, rng=self.rng)
        if take_all:
            selections = [
                LootSelection(name=drop.name, quantity=drop.quantity)
                for pending in self.state.pending_loot or []
                for drop in pending.loot
            ]
        resolution = finalize_loot(
            self.state, selections, self.inventory,
            ledger=self.ledger,
            character_id=self.character.id,
            transaction_id=transaction_id,
        )
        if resolution.applied:
            self.state = resolution.state
            self.inventory = resolution.inventory
            self.character = self.character.model_copy(update={
                "gold": self.character.gold + resolution.granted_gold,
                "experience": self.character.experience + resolution.granted_xp,
            })
        else:
            logger.debug("Loot claim skipped, rewards already granted")
        return resolution


def choose_auto_action(
    state: CombatState,
    stats: PlayerCombatStats,
    inventory: list[InventoryItem],
) -> dict:
    """A simple scripted player for simulations.

    Drinks a health potion when badly hurt, heals with magic when it can,
    otherwise hits the weakest living enemy with the hardest affordable
    ability. Defends when nothing is affordable.
    """
    living = state.living_enemies()
    if not living:
        return {"action": PlayerAction.DEFEND}

    hurt = stats.current_health < stats.max_health * LOW_HEALTH_RATIO
    if hurt:
        for item in inventory:
            if item.type != ItemType.POTION or item.quantity <= 0:
                continue
            effect = resolve_potion_effect(item)
            if effect.stat == "health":
                return {"action": PlayerAction.ITEM, "item_id": item.id}

    def affordable(ability) -> bool:
        if state.ability_cooldowns.get(ability.id, 0) > 0:
            return False
        pool = getattr(stats, f"current_{ability.resource}")
        return ability.cost <= pool + stat_modifier(state.player_active_effects, ability.resource)

    usable = [a for a in stats.abilities if affordable(a)]
    if hurt:
        heal = next((a for a in usable if a.id == "healing"), None)
        if heal is not None:
            return {"action": PlayerAction.MAGIC, "ability_id": heal.id}

    attacks = [a for a in usable if a.damage > 0]
    if not attacks:
        return {"action": PlayerAction.DEFEND}

    best = max(attacks, key=lambda a: a.damage)
    target = min(living, key=lambda e: e.current_health)
    action = {
        "power_attack": PlayerAction.POWER_ATTACK,
    }.get(best.id, PlayerAction.MAGIC if best.resource == "magicka" else PlayerAction.ATTACK)
    return {"action": action, "ability_id": best.id, "target_id": target.id}
