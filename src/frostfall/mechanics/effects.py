"""Effect application and ticking — pure rules over combatant copies.

Each effect variant has exactly one application function, registered in
``_APPLIERS``. The callers (the combat state machine) own the objects passed
in here and have already copied them.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable

from frostfall.mechanics.dice import roll_percent
from frostfall.models.effect import (
    SELF_EFFECTS,
    ActiveEffect,
    Buff,
    DamageOverTime,
    Debuff,
    Drain,
    Heal,
    Stun,
)

logger = logging.getLogger(__name__)

VITALS = ("health", "magicka", "stamina")


@dataclass
class Participant:
    """One side of an effect exchange: a vitals holder plus its effect list."""

    name: str
    stats: Any
    effects: list[ActiveEffect]
    is_player: bool = False

    def says(self, singular: str, plural: str) -> str:
        if self.is_player:
            return f"You {plural}"
        return f"{self.name} {singular}"


@dataclass
class TickOutcome:
    effects: list[ActiveEffect]
    stunned: bool = False
    damage_taken: int = 0
    narratives: list[str] = field(default_factory=list)


# -- Vitals helpers --

def adjust_vital(stats: Any, stat: str, delta: int) -> int:
    """Shift ``current_<stat>`` by ``delta`` clamped to ``[0, max]``.

    Returns the amount actually changed. Holders without that pool (``None``)
    are left untouched.
    """
    if stat not in VITALS:
        return 0
    current = getattr(stats, f"current_{stat}", None)
    maximum = getattr(stats, f"max_{stat}", None)
    if current is None or maximum is None:
        return 0
    new_value = max(0, min(maximum, current + delta))
    setattr(stats, f"current_{stat}", new_value)
    return new_value - current


def stat_modifier(effects: list[ActiveEffect], stat: str) -> int:
    """Net shift applied to ``stat`` by active buffs and debuffs."""
    total = 0
    for active in effects:
        if isinstance(active.effect, (Buff, Debuff)) and active.effect.stat == stat:
            total += active.effect.delta
    return total


def is_stunned(effects: list[ActiveEffect]) -> bool:
    return any(isinstance(a.effect, Stun) and a.turns_remaining > 0 for a in effects)


def _attach(holder: Participant, effect: Any, duration: int) -> None:
    holder.effects.append(ActiveEffect(effect=effect, turns_remaining=duration))


# -- Per-variant application --

def _apply_stun(effect: Stun, user: Participant, target: Participant) -> str:
    _attach(target, effect, effect.duration)
    return target.says("is stunned!", "are stunned!")


def _apply_dot(effect: DamageOverTime, user: Participant, target: Participant) -> str:
    _attach(target, effect, effect.duration)
    return target.says(
        f"will lose {effect.per_turn} {effect.stat} each turn for {effect.duration} turns.",
        f"will lose {effect.per_turn} {effect.stat} each turn for {effect.duration} turns.",
    )


def _apply_heal(effect: Heal, user: Participant, target: Participant) -> str:
    restored = adjust_vital(user.stats, effect.stat, effect.value)
    return user.says(f"recovers {restored} {effect.stat}.", f"recover {restored} {effect.stat}.")


def _apply_debuff(effect: Debuff, user: Participant, target: Participant) -> str:
    _attach(target, effect, effect.duration)
    return target.says(
        f"is weakened ({effect.stat} {effect.delta:+d}).",
        f"are weakened ({effect.stat} {effect.delta:+d}).",
    )


def _apply_buff(effect: Buff, user: Participant, target: Participant) -> str:
    _attach(user, effect, effect.duration)
    return user.says(
        f"is empowered ({effect.stat} {effect.delta:+d}).",
        f"are empowered ({effect.stat} {effect.delta:+d}).",
    )


def _apply_drain(effect: Drain, user: Participant, target: Participant) -> str:
    drained = -adjust_vital(target.stats, effect.stat, -effect.value)
    return target.says(f"loses {drained} {effect.stat}.", f"lose {drained} {effect.stat}.")


_APPLIERS: dict[type, Callable[[Any, Participant, Participant], str]] = {
    Stun: _apply_stun,
    DamageOverTime: _apply_dot,
    Heal: _apply_heal,
    Debuff: _apply_debuff,
    Buff: _apply_buff,
    Drain: _apply_drain,
}


def apply_effect(effect: Any, user: Participant, target: Participant | None) -> str:
    """Apply one effect that already passed its chance roll."""
    applier = _APPLIERS[type(effect)]
    if target is None and not isinstance(effect, SELF_EFFECTS):
        return ""
    return applier(effect, user, target)


def roll_and_apply_effects(
    effects: tuple,
    user: Participant,
    target: Participant | None,
    rng: random.Random | None = None,
) -> list[str]:
    """Roll every effect independently against its own chance and apply hits."""
    narratives: list[str] = []
    for effect in effects:
        if not roll_percent(effect.chance, rng):
            logger.debug("Effect %s missed its %s%% roll", effect.kind, effect.chance)
            continue
        text = apply_effect(effect, user, target)
        if text:
            narratives.append(text)
    return narratives


# -- Start-of-turn ticking --

def tick_effects(holder: Participant) -> TickOutcome:
    """Resolve damage-over-time, note stuns, then count every effect down.

    Effects whose counter reaches zero are dropped.
    """
    outcome = TickOutcome(effects=[])
    for active in holder.effects:
        effect = active.effect
        if isinstance(effect, DamageOverTime):
            lost = -adjust_vital(holder.stats, effect.stat, -effect.per_turn)
            if effect.stat == "health":
                outcome.damage_taken += lost
            outcome.narratives.append(
                holder.says(f"takes {lost} {effect.stat} damage over time.",
                            f"take {lost} {effect.stat} damage over time.")
            )
        elif isinstance(effect, Stun) and active.turns_remaining > 0:
            outcome.stunned = True

    for active in holder.effects:
        remaining = active.turns_remaining - 1
        if remaining > 0:
            outcome.effects.append(active.model_copy(update={"turns_remaining": remaining}))
    holder.effects = outcome.effects
    return outcome
