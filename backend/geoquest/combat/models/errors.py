"""
Combat error taxonomy.

Subsystems raise CombatRuleError before mutating anything; the engine turns it
into a CombatError result at the submit_intent boundary.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class CombatErrorKind(str, Enum):
    """Rejected intent kind"""

    ACTION_ALREADY_USED = "action_already_used"
    BONUS_ACTION_ALREADY_USED = "bonus_action_already_used"
    ABILITY_EXHAUSTED = "ability_exhausted"
    NO_SPELL_SLOTS = "no_spell_slots"
    SPELL_NOT_AVAILABLE = "spell_not_available"
    UNKNOWN_ABILITY_OR_SPELL = "unknown_ability_or_spell"
    INVALID_DICE_NOTATION = "invalid_dice_notation"
    SESSION_BUSY = "session_busy"
    SESSION_TERMINATED = "session_terminated"


class CombatRuleError(Exception):
    """Raised by rule subsystems when an intent must be rejected"""

    def __init__(self, kind: CombatErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)


@dataclass
class CombatError:
    """Typed rejection returned from submit_intent"""

    kind: CombatErrorKind
    message: str
    combat_id: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: CombatRuleError, combat_id: Optional[str] = None) -> "CombatError":
        return cls(kind=exc.kind, message=exc.message, combat_id=combat_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind.value,
            "message": self.message,
            "combat_id": self.combat_id,
        }
