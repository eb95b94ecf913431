"""Random rolls — pure math, no I/O.

Every helper takes an optional ``random.Random``. Passing a seeded instance
makes a whole encounter replayable.
"""
from __future__ import annotations

import math
import random
from typing import Any, Sequence, TypeVar

T = TypeVar("T")


def get_rng(rng: random.Random | None = None) -> Any:
    """Return the given generator, or the ``random`` module's shared one."""
    if rng is not None:
        return rng
    return random


def roll_percent(chance: float, rng: random.Random | None = None) -> bool:
    """True with ``chance`` percent probability: ``random() * 100 < chance``."""
    return get_rng(rng).random() * 100 < chance


def random_variation(value: float, variance: float, rng: random.Random | None = None) -> int:
    """Jitter ``value`` by up to ``±variance`` (0.15 = ±15%), floored."""
    factor = get_rng(rng).uniform(1 - variance, 1 + variance)
    return math.floor(value * factor)


def roll_range(low: int, high: int, rng: random.Random | None = None) -> int:
    """Uniform integer in ``[low, high]``; bounds may arrive in either order."""
    if low > high:
        low, high = high, low
    return get_rng(rng).randint(low, high)


def choose(options: Sequence[T], rng: random.Random | None = None) -> T:
    return get_rng(rng).choice(options)


def shuffled(options: Sequence[T], rng: random.Random | None = None) -> list[T]:
    pool = list(options)
    get_rng(rng).shuffle(pool)
    return pool
