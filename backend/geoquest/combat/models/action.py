"""
Intent and per-actor resolution models.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class IntentType(str, Enum):
    """Player intent type"""

    ATTACK = "attack"
    CAST_SPELL = "cast_spell"
    USE_ABILITY = "use_ability"
    FLEE = "flee"
    END_TURN = "end_turn"


@dataclass
class Intent:
    """One player intent, submitted per call"""

    intent_type: IntentType
    spell_id: Optional[str] = None
    ability_id: Optional[str] = None

    @classmethod
    def attack(cls) -> "Intent":
        return cls(IntentType.ATTACK)

    @classmethod
    def cast_spell(cls, spell_id: str) -> "Intent":
        return cls(IntentType.CAST_SPELL, spell_id=spell_id)

    @classmethod
    def use_ability(cls, ability_id: str) -> "Intent":
        return cls(IntentType.USE_ABILITY, ability_id=ability_id)

    @classmethod
    def flee(cls) -> "Intent":
        return cls(IntentType.FLEE)

    @classmethod
    def end_turn(cls) -> "Intent":
        return cls(IntentType.END_TURN)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Intent":
        """
        Raises:
            ValueError: unknown intent type
        """
        return cls(
            intent_type=IntentType(str(data.get("type") or data.get("intent_type"))),
            spell_id=data.get("spell_id"),
            ability_id=data.get("ability_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.intent_type.value,
            "spell_id": self.spell_id,
            "ability_id": self.ability_id,
        }


@dataclass
class AttackRollResult:
    """d20 attack roll"""

    natural: int
    is_critical: bool
    is_critical_miss: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "natural": self.natural,
            "is_critical": self.is_critical,
            "is_critical_miss": self.is_critical_miss,
        }


@dataclass
class SubResolution:
    """
    What one side did during a call

    action is the intent type for the player and "attack" / ability id for
    the monster.
    """

    actor: str
    action: str
    attack_roll: Optional[AttackRollResult] = None
    hit: Optional[bool] = None
    damage: int = 0
    damage_type: Optional[str] = None
    healing: int = 0
    ability_id: Optional[str] = None
    spell_id: Optional[str] = None
    success: bool = True
    chance: Optional[float] = None
    messages: List[str] = field(default_factory=list)
    # non-fatal problems, e.g. invalid_dice_notation
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actor": self.actor,
            "action": self.action,
            "attack_roll": self.attack_roll.to_dict() if self.attack_roll else None,
            "hit": self.hit,
            "damage": self.damage,
            "damage_type": self.damage_type,
            "healing": self.healing,
            "ability_id": self.ability_id,
            "spell_id": self.spell_id,
            "success": self.success,
            "chance": self.chance,
            "messages": list(self.messages),
            "warnings": list(self.warnings),
        }
