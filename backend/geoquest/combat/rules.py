"""
Combat rule tables

Every tunable number the rules use lives here so the resolution paths cannot
drift apart.
"""
from typing import Dict, List

from .models.combatant import MonsterTier

# ============================================
# Hit / flee probabilities
# ============================================

HIT_CHANCE_BASE = 0.65
HIT_CHANCE_PER_DEX_POINT = 0.01
HIT_CHANCE_PER_AC_POINT = 0.02
HIT_CHANCE_MIN = 0.05
HIT_CHANCE_MAX = 0.95

FLEE_CHANCE_BASE = 0.4
FLEE_CHANCE_PER_DEX_POINT = 0.02
FLEE_CHANCE_PER_LEVEL_GAP = 0.05
FLEE_CHANCE_MIN = 0.1
FLEE_CHANCE_MAX = 0.8

# Monsters attack as if their dexterity were 10 + level.
MONSTER_ATTACK_DEX_BASE = 10

# Failed flee: the monster's free swing at this fraction of its damage.
FLEE_COUNTER_DAMAGE_FACTOR = 0.5

# ============================================
# Scaling
# ============================================

MONSTER_SCALE_PER_LEVEL = 0.1
MONSTER_ARMOR_PER_LEVEL = 0.5
REWARD_SCALE_PER_MONSTER_LEVEL = 0.1

TIER_MULTIPLIERS: Dict[MonsterTier, Dict[str, float]] = {
    MonsterTier.COMMON: {"health": 1.0, "damage": 1.0, "armor": 1.0, "reward": 1.0},
    MonsterTier.ELITE: {"health": 1.5, "damage": 1.3, "armor": 1.2, "reward": 1.5},
    MonsterTier.BOSS: {"health": 2.5, "damage": 2.0, "armor": 1.5, "reward": 2.5},
    MonsterTier.LEGENDARY: {"health": 4.0, "damage": 3.0, "armor": 1.8, "reward": 4.0},
}

# Base rewards when the monster catalogue leaves them empty:
# xp = per_level * level + flat, gold = (8 * level + 5) * gold_factor
DEFAULT_REWARDS_BY_TIER: Dict[MonsterTier, Dict[str, int]] = {
    MonsterTier.COMMON: {"xp_per_level": 25, "xp_flat": 10, "gold_factor": 1},
    MonsterTier.ELITE: {"xp_per_level": 50, "xp_flat": 30, "gold_factor": 2},
    MonsterTier.BOSS: {"xp_per_level": 100, "xp_flat": 75, "gold_factor": 3},
    MonsterTier.LEGENDARY: {"xp_per_level": 200, "xp_flat": 150, "gold_factor": 5},
}

# ============================================
# Progression
# ============================================

MAX_LEVEL = 20

# Total XP needed to reach level index + 1.
LEVEL_XP_REQUIREMENTS: List[int] = [
    0,
    300,
    900,
    2700,
    6500,
    14000,
    23000,
    34000,
    48000,
    64000,
    85000,
    100000,
    120000,
    140000,
    165000,
    195000,
    225000,
    265000,
    305000,
    355000,
]

# Full-caster slots per character level, index 0 = spell level 1.
SPELL_SLOTS_BY_LEVEL: Dict[int, List[int]] = {
    1: [2],
    2: [3],
    3: [4, 2],
    4: [4, 3],
    5: [4, 3, 2],
    6: [4, 3, 3],
    7: [4, 3, 3, 1],
    8: [4, 3, 3, 2],
    9: [4, 3, 3, 3, 1],
    10: [4, 3, 3, 3, 2],
    11: [4, 3, 3, 3, 2, 1],
    12: [4, 3, 3, 3, 2, 1],
    13: [4, 3, 3, 3, 2, 1, 1],
    14: [4, 3, 3, 3, 2, 1, 1],
    15: [4, 3, 3, 3, 2, 1, 1, 1],
    16: [4, 3, 3, 3, 2, 1, 1, 1],
    17: [4, 3, 3, 3, 2, 1, 1, 1, 1],
    18: [4, 3, 3, 3, 3, 1, 1, 1, 1],
    19: [4, 3, 3, 3, 3, 2, 1, 1, 1],
    20: [4, 3, 3, 3, 3, 2, 2, 1, 1],
}

# Rage: flat weapon damage bonus, halving applies to these damage types.
RAGE_DAMAGE_BONUS = 2
PHYSICAL_DAMAGE_TYPES = frozenset({"physical", "bludgeoning", "piercing", "slashing"})

# Monster types turn_undead affects.
UNDEAD_KEYWORDS = ("skeleton", "zombie", "ghoul", "ghost", "lich", "wraith", "vampire", "esqueleto", "zumbi")
