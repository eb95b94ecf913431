from __future__ import annotations

from frostfall.engine.combat import (
    EnemyTurnOutcome,
    PlayerActionOutcome,
    TurnStart,
    advance_turn,
    apply_enemy_turn,
    apply_player_action,
    check_combat_end,
    initialize_combat,
    start_player_turn,
)
from frostfall.engine.session import CombatSession, choose_auto_action
from frostfall.mechanics.abilities import calculate_player_combat_stats, generate_player_abilities
from frostfall.mechanics.consumables import resolve_potion_effect
from frostfall.mechanics.enemy_generation import (
    create_enemy,
    create_enemy_from_template,
    generate_enemy_group,
    generate_mixed_encounter,
)
from frostfall.mechanics.loot import finalize_loot, populate_pending_loot
from frostfall.storage.transaction_ledger import TransactionLedger

__all__ = [
    "CombatSession",
    "EnemyTurnOutcome",
    "PlayerActionOutcome",
    "TransactionLedger",
    "TurnStart",
    "advance_turn",
    "apply_enemy_turn",
    "apply_player_action",
    "calculate_player_combat_stats",
    "check_combat_end",
    "choose_auto_action",
    "create_enemy",
    "create_enemy_from_template",
    "finalize_loot",
    "generate_enemy_group",
    "generate_mixed_encounter",
    "generate_player_abilities",
    "initialize_combat",
    "populate_pending_loot",
    "resolve_potion_effect",
    "start_player_turn",
]
