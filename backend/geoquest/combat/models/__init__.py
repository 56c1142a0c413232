"""
Combat data models.
"""
from .ability import Ability, AbilityCategory, ClassAbility, DamageSpec, EffectSpec, HealingSpec
from .action import AttackRollResult, Intent, IntentType, SubResolution
from .combat_result import RewardRecord, ResolutionRecord
from .combat_session import CombatLogEntry, CombatOutcome, CombatSession
from .combatant import CharacterClass, CombatantStats, MonsterStats, MonsterTier
from .errors import CombatError, CombatErrorKind, CombatRuleError

__all__ = [
    "Ability",
    "AbilityCategory",
    "AttackRollResult",
    "CharacterClass",
    "ClassAbility",
    "CombatError",
    "CombatErrorKind",
    "CombatLogEntry",
    "CombatOutcome",
    "CombatRuleError",
    "CombatSession",
    "CombatantStats",
    "DamageSpec",
    "EffectSpec",
    "HealingSpec",
    "Intent",
    "IntentType",
    "MonsterStats",
    "MonsterTier",
    "ResolutionRecord",
    "RewardRecord",
    "SubResolution",
]
