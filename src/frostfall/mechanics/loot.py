"""Loot rolls, staging and finalisation.

Rolling is pure. Finalisation merges the player's picks into a copy of the
inventory and grants the staged XP/gold exactly once, gated by the
``TransactionLedger`` the caller owns.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, Optional

from frostfall.mechanics.dice import roll_percent, roll_range
from frostfall.models.combat import CombatState, Enemy, PendingLoot, PendingRewards, Rewards
from frostfall.models.item import InventoryItem, LootDrop, LootPoolEntry, LootSelection
from frostfall.storage.transaction_ledger import ItemGrant, TransactionLedger

logger = logging.getLogger(__name__)


@dataclass
class LootResolution:
    state: CombatState
    inventory: list[InventoryItem]
    granted_xp: int = 0
    granted_gold: int = 0
    granted_items: list[LootDrop] = field(default_factory=list)
    transaction_id: Optional[str] = None
    applied: bool = True


def roll_loot(loot_pool: Iterable[LootPoolEntry], rng: random.Random | None = None) -> list[LootDrop]:
    """Roll every entry independently against its drop chance."""
    drops: list[LootDrop] = []
    for entry in loot_pool:
        if not roll_percent(entry.drop_chance, rng):
            continue
        drops.append(LootDrop(
            name=entry.name,
            type=entry.type,
            description=entry.description,
            quantity=roll_range(entry.quantity_min, entry.quantity_max, rng),
            rarity=entry.rarity,
        ))
    return drops


def compute_enemy_xp(enemy: Enemy) -> int:
    """Flat XP estimate from level alone: 3 per level, doubled for bosses."""
    base = max(1, enemy.level * 3)
    return base * 2 if enemy.is_boss else base


def total_rewards(enemies: Iterable[Enemy]) -> PendingRewards:
    xp = 0
    gold = 0
    for enemy in enemies:
        xp += enemy.xp_reward
        gold += enemy.gold_reward or 0
    return PendingRewards(xp=xp, gold=gold)


def _already_claimed(state: CombatState) -> bool:
    return (
        state.rewards is not None
        and state.rewards.transaction_id is not None
        and state.pending_loot is None
        and state.pending_rewards is None
    )


def populate_pending_loot(state: CombatState, rng: random.Random | None = None) -> CombatState:
    """Stage a selectable loot list for every dead enemy.

    Rolls happen once: a state that already has staged loot, or whose loot
    was already claimed, comes back unchanged.
    """
    new_state = state.model_copy(deep=True)
    if new_state.pending_loot is not None or _already_claimed(new_state):
        return new_state

    dead = [e for e in new_state.enemies if not e.is_alive]
    new_state.pending_loot = [
        PendingLoot(enemy_id=e.id, enemy_name=e.name, loot=roll_loot(e.loot, rng))
        for e in dead
    ]
    if new_state.pending_rewards is None:
        new_state.pending_rewards = total_rewards(dead)

    staged = sum(len(p.loot) for p in new_state.pending_loot)
    logger.debug("Staged %d loot drops from %d enemies", staged, len(dead))
    return new_state


def _staged_index(pending: list[PendingLoot] | None) -> dict[str, tuple[LootDrop, int]]:
    """Staged drops keyed by name, quantities summed across enemies."""
    index: dict[str, tuple[LootDrop, int]] = {}
    for entry in pending or []:
        for drop in entry.loot:
            if drop.name in index:
                meta, qty = index[drop.name]
                index[drop.name] = (meta, qty + drop.quantity)
            else:
                index[drop.name] = (drop, drop.quantity)
    return index


def merge_into_inventory(
    inventory: list[InventoryItem],
    drop: LootDrop,
    character_id: str,
) -> list[InventoryItem]:
    """Return a new inventory with ``drop`` added, stacking by name."""
    updated = list(inventory)
    for idx, item in enumerate(updated):
        if item.name == drop.name:
            updated[idx] = item.model_copy(update={"quantity": item.quantity + drop.quantity})
            return updated
    updated.append(InventoryItem(
        character_id=character_id,
        name=drop.name,
        type=drop.type,
        description=drop.description,
        quantity=drop.quantity,
    ))
    return updated


def finalize_loot(
    state: CombatState,
    selected_items: list[LootSelection] | None,
    inventory: list[InventoryItem],
    *,
    ledger: TransactionLedger,
    character_id: str,
    transaction_id: Optional[str] = None,
) -> LootResolution:
    """Grant the staged rewards and the selected loot, then clear staging.

    ``selected_items=None`` means the player skipped looting: XP and gold are
    still granted. Selections that do not match staged loot are ignored, and
    quantities are capped at what was staged. A ``transaction_id`` the ledger
    has already seen grants nothing.
    """
    if _already_claimed(state):
        logger.warning("Loot for this fight was already claimed (%s)", state.rewards.transaction_id)
        return LootResolution(
            state=state.model_copy(deep=True),
            inventory=list(inventory),
            transaction_id=state.rewards.transaction_id,
            applied=False,
        )

    new_state = state.model_copy(deep=True)
    updated_inventory = list(inventory)
    granted_items: list[LootDrop] = []

    available = _staged_index(new_state.pending_loot)
    for selection in selected_items or []:
        staged = available.get(selection.name)
        if staged is None:
            logger.warning("Ignoring loot selection %r: not in staged loot", selection.name)
            continue
        meta, remaining = staged
        quantity = min(selection.quantity or 1, remaining)
        if quantity <= 0:
            continue
        available[selection.name] = (meta, remaining - quantity)
        drop = meta.model_copy(update={"quantity": quantity})
        granted_items.append(drop)
        updated_inventory = merge_into_inventory(updated_inventory, drop, character_id)

    pending = new_state.pending_rewards or PendingRewards()
    granted_xp = max(0, pending.xp)
    granted_gold = max(0, pending.gold)

    txn_id = transaction_id or ledger.generate_transaction_id()
    claimed = ledger.claim(
        txn_id,
        gold_amount=granted_gold or None,
        items=[ItemGrant(name=d.name, quantity=d.quantity) for d in granted_items],
        xp_amount=granted_xp or None,
    )
    if claimed is None:
        logger.warning("Loot transaction %s already applied", txn_id)
        return LootResolution(
            state=state.model_copy(deep=True),
            inventory=list(inventory),
            transaction_id=txn_id,
            applied=False,
        )

    new_state.rewards = Rewards(
        xp=granted_xp,
        gold=granted_gold,
        items=granted_items,
        transaction_id=txn_id,
    )
    new_state.pending_loot = None
    new_state.pending_rewards = None

    logger.info(
        "Loot finalised (%s): %d XP, %d gold, %d item stacks",
        txn_id, granted_xp, granted_gold, len(granted_items),
    )
    return LootResolution(
        state=new_state,
        inventory=updated_inventory,
        granted_xp=granted_xp,
        granted_gold=granted_gold,
        granted_items=granted_items,
        transaction_id=txn_id,
    )
