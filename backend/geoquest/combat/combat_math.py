"""
Combat math

Attack rolls, hit and flee probabilities, damage, and level/tier scaling for
monsters and rewards.
"""
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .dice import DiceRoller
from .models.action import AttackRollResult
from .models.combat_result import RewardRecord
from .models.combatant import MonsterTier
from .rules import (
    DEFAULT_REWARDS_BY_TIER,
    FLEE_CHANCE_BASE,
    FLEE_CHANCE_MAX,
    FLEE_CHANCE_MIN,
    FLEE_CHANCE_PER_DEX_POINT,
    FLEE_CHANCE_PER_LEVEL_GAP,
    HIT_CHANCE_BASE,
    HIT_CHANCE_MAX,
    HIT_CHANCE_MIN,
    HIT_CHANCE_PER_AC_POINT,
    HIT_CHANCE_PER_DEX_POINT,
    LEVEL_XP_REQUIREMENTS,
    MAX_LEVEL,
    MONSTER_ARMOR_PER_LEVEL,
    MONSTER_SCALE_PER_LEVEL,
    REWARD_SCALE_PER_MONSTER_LEVEL,
    TIER_MULTIPLIERS,
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _floor(value: float) -> int:
    # float products like 10 * 1.1 * 3.0 land a hair under the integer
    return math.floor(round(value, 9))


def _tier(tier) -> MonsterTier:
    return tier if isinstance(tier, MonsterTier) else MonsterTier(str(tier).lower())


def resolve_attack_roll(roller: DiceRoller) -> AttackRollResult:
    """Roll 1d20 and flag natural 20 / natural 1."""
    natural = roller.d20()
    return AttackRollResult(
        natural=natural,
        is_critical=natural == 20,
        is_critical_miss=natural == 1,
    )


def hit_chance(attacker_dex: int, target_ac: int) -> float:
    """
    Probability that a non-critical attack lands.

    Linear in both stats, strictly increasing in dexterity inside the clamp
    band [HIT_CHANCE_MIN, HIT_CHANCE_MAX].
    """
    chance = (
        HIT_CHANCE_BASE
        + (attacker_dex - 10) * HIT_CHANCE_PER_DEX_POINT
        - (target_ac - 10) * HIT_CHANCE_PER_AC_POINT
    )
    return _clamp(chance, HIT_CHANCE_MIN, HIT_CHANCE_MAX)


def resolve_hit(roll: AttackRollResult, chance: float, roller: DiceRoller) -> bool:
    """Natural 20 always hits, natural 1 always misses, otherwise a fresh draw."""
    if roll.is_critical:
        return True
    if roll.is_critical_miss:
        return False
    return roller.random() < chance


def compute_damage(base_damage: int, modifier: int, is_critical: bool) -> int:
    """max(1, base + modifier), doubled before the floor on a critical."""
    damage = base_damage + modifier
    if is_critical:
        damage *= 2
    return max(1, damage)


@dataclass
class StrikeResult:
    """One weapon-style attack"""

    roll: AttackRollResult
    chance: float
    hit: bool
    damage: int = 0
    dice_valid: bool = True


def resolve_strike(
    roller: DiceRoller,
    attacker_dex: int,
    target_ac: int,
    modifier: int,
    base_damage: int = 0,
    damage_dice: Optional[str] = None,
) -> StrikeResult:
    """
    Roll to hit, then roll damage on a hit.

    Args:
        roller: session dice roller
        attacker_dex: attacker dexterity (monsters use 10 + level)
        target_ac: defender armor class
        modifier: flat damage modifier
        base_damage: fixed base damage, used when damage_dice is None
        damage_dice: weapon dice, rolled only when the attack hits
    """
    roll = resolve_attack_roll(roller)
    chance = hit_chance(attacker_dex, target_ac)
    hit = resolve_hit(roll, chance, roller)
    result = StrikeResult(roll=roll, chance=chance, hit=hit)
    if not hit:
        return result
    if damage_dice is not None:
        dice = roller.roll_dice(damage_dice)
        base_damage = dice.total
        result.dice_valid = dice.valid
    result.damage = compute_damage(base_damage, modifier, roll.is_critical)
    return result


def flee_chance(dexterity: int, monster_level: int, character_level: int) -> float:
    """Better with dexterity, worse the more the monster out-levels the character."""
    chance = (
        FLEE_CHANCE_BASE
        + max(0, dexterity - 10) * FLEE_CHANCE_PER_DEX_POINT
        - max(0, monster_level - character_level) * FLEE_CHANCE_PER_LEVEL_GAP
    )
    return _clamp(chance, FLEE_CHANCE_MIN, FLEE_CHANCE_MAX)


def apply_resistance(damage: int) -> int:
    """Resistance halves damage, rounding down."""
    return max(0, int(damage)) // 2


def scale_monster(
    base_health: int,
    base_damage: int,
    base_armor: int,
    monster_base_level: int,
    character_level: int,
    tier,
) -> Dict[str, int]:
    """
    Scale a catalogue monster to the character's level and its tier.

    Returns:
        {"health", "damage", "armor", "level"}
    """
    multipliers = TIER_MULTIPLIERS[_tier(tier)]
    level_diff = max(0, character_level - monster_base_level)
    scale = 1 + level_diff * MONSTER_SCALE_PER_LEVEL
    return {
        "health": max(1, _floor(base_health * scale * multipliers["health"])),
        "damage": _floor(base_damage * scale * multipliers["damage"]),
        "armor": _floor((base_armor + level_diff * MONSTER_ARMOR_PER_LEVEL) * multipliers["armor"]),
        "level": monster_base_level + level_diff,
    }


def xp_threshold(level: int) -> Optional[int]:
    """Total XP needed to advance past `level`; None at the cap."""
    if level < 1 or level >= MAX_LEVEL:
        return None
    return LEVEL_XP_REQUIREMENTS[level]


def level_from_xp(total_xp: int) -> int:
    level = 1
    while level < MAX_LEVEL and total_xp >= LEVEL_XP_REQUIREMENTS[level]:
        level += 1
    return level


def default_base_rewards(monster_level: int, tier) -> Dict[str, int]:
    """Base XP/gold for monsters the catalogue left without rewards."""
    table = DEFAULT_REWARDS_BY_TIER[_tier(tier)]
    return {
        "experience": table["xp_per_level"] * monster_level + table["xp_flat"],
        "gold": (monster_level * 8 + 5) * table["gold_factor"],
    }


def scale_rewards(
    base_xp: int,
    base_gold: int,
    monster_level: int,
    tier,
    current_level: int = 1,
    current_xp: int = 0,
    thresholds: Optional[Callable[[int], Optional[int]]] = None,
) -> RewardRecord:
    """
    Scale rewards by monster level and tier, then check for level-up.

    A single reward may cross several thresholds; the check loops until the
    next threshold is out of reach.

    Args:
        thresholds: level -> total XP needed to advance, None at the cap;
            defaults to the built-in table
    """
    thresholds = thresholds or xp_threshold
    multiplier = (1 + monster_level * REWARD_SCALE_PER_MONSTER_LEVEL) * TIER_MULTIPLIERS[_tier(tier)]["reward"]
    experience = max(0, _floor(base_xp * multiplier))
    gold = max(0, _floor(base_gold * multiplier))

    total_xp = current_xp + experience
    new_level = current_level
    while True:
        threshold = thresholds(new_level)
        if threshold is None or total_xp < threshold:
            break
        new_level += 1

    leveled_up = new_level > current_level
    return RewardRecord(
        experience=experience,
        gold=gold,
        leveled_up=leveled_up,
        new_level=new_level if leveled_up else None,
    )
