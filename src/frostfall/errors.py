"""Exceptions raised by the combat engine.

Only programming or configuration mistakes raise. Refused player choices
(cooldowns, costs, missing targets) come back as narrative results instead.
"""
from __future__ import annotations


class CombatError(Exception):
    """Base class for engine errors."""


class UnknownTemplate(CombatError, KeyError):
    """Raised when an enemy template id is not registered."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Unknown enemy template: {template_id}")

    def __str__(self) -> str:
        return self.args[0]


class ContentError(CombatError):
    """Raised when bundled TOML content is missing or malformed."""
