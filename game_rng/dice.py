# game_rng/dice.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

import structlog

from game_rng.streams import Stream

if TYPE_CHECKING:
    from game_rng.core import GameRNG

log = structlog.get_logger(__name__)

DICE_PATTERN = re.compile(r"^\s*(\d+)?d(\d+)(?:\s*([+-])\s*(\d+))?\s*$")


@dataclass(frozen=True)
class DiceDef:
    """``num`` dice with ``size`` faces each, summed.

    Dice with no faces (or no dice) always roll 0.
    """

    num: int = 0
    size: int = 0

    def roll(self, rng: "GameRNG", stream: Optional[Stream] = None) -> int:
        if rng is None:
            log.error("Dice roll attempted without RNG instance!", dice=str(self))
            raise ValueError("RNG instance is required for DiceDef.roll.")
        return rng.roll_dice(self.num, self.size, stream=stream)

    @property
    def empty(self) -> bool:
        return self.num <= 0 or self.size <= 0

    @property
    def min_roll(self) -> int:
        return 0 if self.empty else self.num

    @property
    def max_roll(self) -> int:
        return 0 if self.empty else self.num * self.size

    @property
    def average(self) -> float:
        return 0.0 if self.empty else self.num * (self.size + 1) / 2

    def __str__(self) -> str:
        return f"{self.num}d{self.size}"


# Large count of one-sided dice: never rolls zero, barely varies.
CONVENIENT_NONZERO_DAMAGE = DiceDef(42, 1)


def calc_dice(
    num_dice: int, max_damage: int, rng: "GameRNG", stream: Optional[Stream] = None
) -> DiceDef:
    """Dice whose maximum roll lands on (or next to) ``max_damage``.

    The damage is split evenly over the dice; the leftover is made up by
    occasionally adding one face, with chance remainder/num_dice, so the
    expected maximum is exactly ``max_damage``.
    """
    if num_dice <= 1:
        return DiceDef(1, max_damage)
    if max_damage <= num_dice:
        return DiceDef(max_damage, 1)
    size, remainder = divmod(max_damage, num_dice)
    if rng.x_chance_in_y_int(remainder, num_dice, stream=stream):
        size += 1
    return DiceDef(num_dice, size)


def parse_dice(dice_str: str) -> Tuple[DiceDef, int]:
    """Parse ``"2d6"``, ``"d8"``, ``"3d4+2"``, ``"1d10-1"`` or ``"5"``.

    Returns the dice and the flat bonus.
    """
    match = DICE_PATTERN.match(dice_str)
    if match:
        num_str, size_str, operator, bonus_str = match.groups()
        num = int(num_str) if num_str else 1
        bonus = int(f"{operator}{bonus_str}") if operator and bonus_str else 0
        return DiceDef(num, int(size_str)), bonus
    try:
        return DiceDef(), int(dice_str)
    except ValueError:
        log.error("Invalid dice string format", dice_str=dice_str)
        raise ValueError(f"Invalid dice string: {dice_str!r}") from None


def roll_dice_str(
    dice_str: Optional[str], rng: Optional["GameRNG"], stream: Optional[Stream] = None
) -> int:
    """Roll a dice string such as ``"2d4+1"``; empty strings roll 0."""
    if not dice_str:
        return 0
    if rng is None:
        log.error("Dice roll attempted without RNG instance!")
        raise ValueError("RNG instance is required for roll_dice_str.")
    dice, bonus = parse_dice(dice_str)
    return dice.roll(rng, stream=stream) + bonus


__all__ = [
    "DiceDef",
    "CONVENIENT_NONZERO_DAMAGE",
    "calc_dice",
    "parse_dice",
    "roll_dice_str",
]
