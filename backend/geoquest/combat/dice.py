"""
Dice system

Parses standard "NdM+K" notation and rolls against an injected random source
so encounters are reproducible when seeded.
"""
import logging
import math
import random
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DICE_PATTERN = re.compile(r"^(\d+)d(\d+)([+-]\d+)?$")

# Larger rolls are treated as malformed
MAX_DICE_COUNT = 100
MAX_DICE_SIDES = 1000


@dataclass
class DiceResult:
    """Outcome of one notation roll"""

    notation: str
    total: int = 0
    rolls: List[int] = field(default_factory=list)
    modifier: int = 0
    valid: bool = True


def parse_notation(notation: str) -> Optional[Tuple[int, int, int]]:
    """
    Parse dice notation.

    Args:
        notation: e.g. "1d20", "2d6", "3d8+2", "1d4-1"

    Returns:
        (count, sides, modifier), or None when malformed
    """
    if not isinstance(notation, str):
        return None
    match = DICE_PATTERN.match(notation.lower().replace(" ", ""))
    if not match:
        return None
    count = int(match.group(1))
    sides = int(match.group(2))
    if count > MAX_DICE_COUNT or sides < 1 or sides > MAX_DICE_SIDES:
        return None
    modifier = int(match.group(3)) if match.group(3) else 0
    return count, sides, modifier


class DiceRoller:
    """
    Dice roller bound to one random source

    The source only needs random() and randint(); tests pass a scripted stub.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "DiceRoller":
        return cls(random.Random(seed))

    def roll_die(self, sides: int) -> int:
        """
        Roll a single die.

        Args:
            sides: number of faces (20 for a d20)

        Returns:
            int: 1..sides
        """
        if sides < 1:
            raise ValueError(f"die needs at least one side: {sides}")
        return self.rng.randint(1, sides)

    def roll_dice(self, notation: str) -> DiceResult:
        """
        Roll dice notation.

        Malformed notation rolls to 0 with valid=False; it is logged and never
        raised, callers treat it as "no effect".

        Examples:
            >>> roller.roll_dice("2d6+3").total
            11  # 4+4+3
        """
        parsed = parse_notation(notation)
        if parsed is None:
            logger.warning("Invalid dice notation: %r", notation)
            return DiceResult(notation=str(notation), valid=False)

        count, sides, modifier = parsed
        rolls = [self.roll_die(sides) for _ in range(count)]
        total = sum(rolls) + modifier
        logger.debug("Rolled %s -> %s (%s)", notation, total, rolls)
        return DiceResult(notation=notation, total=total, rolls=rolls, modifier=modifier)

    def d20(self) -> int:
        return self.roll_die(20)

    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        return self.rng.random()


def ability_modifier(score: int) -> int:
    """floor((score - 10) / 2), negative for low scores."""
    return math.floor((score - 10) / 2)
