"""Combat resolution package."""

from .combat_engine import CombatEngine
from .models.action import Intent, IntentType
from .models.errors import CombatError, CombatErrorKind

__all__ = ["CombatEngine", "CombatError", "CombatErrorKind", "Intent", "IntentType"]
