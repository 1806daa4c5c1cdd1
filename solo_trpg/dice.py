"""Dice engine — uniform die rolls, dice pools, and d100.

Every call is independent. The only state is the uniform random source,
which can be injected for deterministic tests:

    dice = Dice(random.Random(42))
    dice.roll_pool(3, 6)        # 3d6
    dice.roll_pool(2, 6, 6)     # 2d6+6
    dice.roll_percentile()      # 1–100
"""

from __future__ import annotations

import random


class Dice:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def roll_die(self, sides: int) -> int:
        """Roll one die with faces 1..sides."""
        if sides <= 0:
            raise ValueError(f"A die needs at least one side, got {sides}")
        return self._rng.randint(1, sides)

    def roll_pool(self, count: int, sides: int, modifier: int = 0) -> int:
        """Roll count × d(sides) and add modifier."""
        total = modifier
        for _ in range(count):
            total += self.roll_die(sides)
        return total

    def roll_percentile(self) -> int:
        return self.roll_die(100)


_default = Dice()


def roll_die(sides: int) -> int:
    return _default.roll_die(sides)


def roll_pool(count: int, sides: int, modifier: int = 0) -> int:
    return _default.roll_pool(count, sides, modifier)


def roll_percentile() -> int:
    return _default.roll_percentile()
