from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Stats(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    health: int = 100
    magicka: int = 100
    stamina: int = 100


class Vitals(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_health: Optional[int] = None
    current_magicka: Optional[int] = None
    current_stamina: Optional[int] = None


class Skill(BaseModel):
    name: str
    level: int = 15


class Character(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    level: int = 1
    gold: int = 0
    experience: int = 0
    stats: Stats = Field(default_factory=Stats)
    current_vitals: Optional[Vitals] = None
    skills: list[Skill] = Field(default_factory=list)

    def skill_level(self, name: str, default: int = 15) -> int:
        """Level of a named skill; untrained skills count as the default."""
        for skill in self.skills:
            if skill.name == name:
                return skill.level or default
        return default
