"""Combat HTTP API models."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from geoquest.combat.models.action import Intent, IntentType
from geoquest.combat.models.combatant import CombatantStats, MonsterStats


class CombatSessionCreateRequest(BaseModel):
    """Start an encounter"""

    character: CombatantStats
    monster: MonsterStats
    seed: Optional[int] = None
    scale_monster: bool = False


class CombatIntentRequest(BaseModel):
    """One player intent"""

    type: IntentType
    spell_id: Optional[str] = Field(default=None, min_length=1)
    ability_id: Optional[str] = Field(default=None, min_length=1)

    def to_intent(self) -> Intent:
        return Intent(self.type, spell_id=self.spell_id, ability_id=self.ability_id)


class CombatSessionResponse(BaseModel):
    """Session snapshot"""

    combat_id: str
    state: Dict[str, Any] = Field(default_factory=dict)
