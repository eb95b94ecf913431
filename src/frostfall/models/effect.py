"""Combat effects as a closed set of tagged variants."""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

VitalStat = Literal["health", "magicka", "stamina"]
ModifiableStat = Literal["health", "magicka", "stamina", "damage", "armor"]


class _EffectBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Stun(_EffectBase):
    kind: Literal["stun"] = "stun"
    duration: int = Field(default=1, ge=1)
    chance: int = Field(default=100, ge=0, le=100)


class DamageOverTime(_EffectBase):
    kind: Literal["dot"] = "dot"
    stat: VitalStat = "health"
    per_turn: int = Field(ge=0)
    duration: int = Field(default=1, ge=1)
    chance: int = Field(default=100, ge=0, le=100)


class Heal(_EffectBase):
    kind: Literal["heal"] = "heal"
    stat: VitalStat = "health"
    value: int = Field(ge=0)
    chance: int = Field(default=100, ge=0, le=100)


class Debuff(_EffectBase):
    kind: Literal["debuff"] = "debuff"
    stat: ModifiableStat
    delta: int
    duration: int = Field(default=1, ge=1)
    chance: int = Field(default=100, ge=0, le=100)


class Buff(_EffectBase):
    kind: Literal["buff"] = "buff"
    stat: ModifiableStat
    delta: int
    duration: int = Field(default=1, ge=1)
    chance: int = Field(default=100, ge=0, le=100)


class Drain(_EffectBase):
    kind: Literal["drain"] = "drain"
    stat: VitalStat
    value: int = Field(ge=0)
    chance: int = Field(default=100, ge=0, le=100)


Effect = Annotated[
    Union[Stun, DamageOverTime, Heal, Debuff, Buff, Drain],
    Field(discriminator="kind"),
]

# Variants that benefit the user rather than the opponent.
SELF_EFFECTS = (Heal, Buff)


class ActiveEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    effect: Effect
    turns_remaining: int = Field(ge=0)
