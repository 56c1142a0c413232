"""
Resolution and reward records returned to callers.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .action import Intent, SubResolution
from .combat_session import CombatLogEntry, CombatOutcome


@dataclass
class RewardRecord:
    """Victory rewards"""

    experience: int = 0
    gold: int = 0
    leveled_up: bool = False
    new_level: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "experience": self.experience,
            "gold": self.gold,
            "leveled_up": self.leveled_up,
            "new_level": self.new_level,
        }


@dataclass
class ResolutionRecord:
    """
    Full result of one submit_intent call

    monster is only set when the round passed to the monster during the call
    (or when a failed flee drew a counter-attack).
    """

    combat_id: str
    intent: Intent
    player: SubResolution
    monster: Optional[SubResolution]
    character_health: int
    character_max_health: int
    character_mana: Optional[int]
    monster_health: int
    monster_max_health: int
    round: int
    action_used: bool
    bonus_action_used: bool
    outcome: CombatOutcome = CombatOutcome.NONE
    reward: Optional[RewardRecord] = None
    log: List[CombatLogEntry] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.outcome != CombatOutcome.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "combat_id": self.combat_id,
            "intent": self.intent.to_dict(),
            "player": self.player.to_dict(),
            "monster": self.monster.to_dict() if self.monster else None,
            "character_health": self.character_health,
            "character_max_health": self.character_max_health,
            "character_mana": self.character_mana,
            "monster_health": self.monster_health,
            "monster_max_health": self.monster_max_health,
            "round": self.round,
            "action_used": self.action_used,
            "bonus_action_used": self.bonus_action_used,
            "outcome": self.outcome.value,
            "reward": self.reward.to_dict() if self.reward else None,
            "log": [entry.to_dict() for entry in self.log],
        }
