"""
Combat session data model
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .ability import Ability, ClassAbility
from .combatant import CombatantStats, MonsterStats

if TYPE_CHECKING:
    from ..action_economy import ActionEconomy
    from ..dice import DiceRoller
    from ..effects import ActiveEffect
    from ..spells import SpellBook
    from .combat_result import RewardRecord


class CombatOutcome(str, Enum):
    """Terminal outcome"""

    NONE = "none"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"


@dataclass
class CombatLogEntry:
    """Structured combat log entry"""

    seq: int
    round: int
    actor: str
    event_type: str
    message: str
    payload: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "round": self.round,
            "actor": self.actor,
            "event_type": self.event_type,
            "message": self.message,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CombatSession:
    """
    One encounter between a character and a monster

    All mutable encounter state lives here; nothing is shared between
    sessions.
    """

    # ===== identity =====
    combat_id: str
    character: CombatantStats
    monster: MonsterStats

    # ===== rule subsystems =====
    roller: "DiceRoller"
    economy: "ActionEconomy"
    spellbook: "SpellBook"
    class_abilities: Dict[str, ClassAbility] = field(default_factory=dict)
    monster_abilities: List[Ability] = field(default_factory=list)
    monster_cooldowns: Dict[str, int] = field(default_factory=dict)

    # ===== per-encounter flags =====
    character_effects: List["ActiveEffect"] = field(default_factory=list)
    monster_effects: List["ActiveEffect"] = field(default_factory=list)
    raging: bool = False
    hunters_mark: bool = False
    # ability id -> bonus dice riding on this round's attack
    armed_riders: Dict[str, str] = field(default_factory=dict)

    # ===== progress =====
    current_round: int = 1
    outcome: CombatOutcome = CombatOutcome.NONE
    reward: Optional["RewardRecord"] = None

    # ===== log =====
    combat_log: List[CombatLogEntry] = field(default_factory=list)
    log_seq: int = 0

    # ===== concurrency / expiry =====
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    last_activity: float = field(default_factory=time.monotonic)

    # ===== helpers =====

    @property
    def is_ended(self) -> bool:
        return self.outcome != CombatOutcome.NONE

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def add_log(
        self,
        actor: str,
        message: str,
        event_type: str = "info",
        payload: Optional[Dict[str, Any]] = None,
    ) -> CombatLogEntry:
        self.log_seq += 1
        entry = CombatLogEntry(
            seq=self.log_seq,
            round=self.current_round,
            actor=actor,
            event_type=event_type,
            message=message,
            payload=payload,
        )
        self.combat_log.append(entry)
        return entry

    def damage_character(self, amount: int) -> int:
        """Apply damage to the character, clamped at 0. Returns damage taken."""
        amount = max(0, int(amount))
        before = self.character.current_health
        self.character.current_health = max(0, before - amount)
        return before - self.character.current_health

    def heal_character(self, amount: int) -> int:
        """Heal the character, clamped at max health. Returns healing applied."""
        amount = max(0, int(amount))
        before = self.character.current_health
        self.character.current_health = min(self.character.max_health, before + amount)
        return self.character.current_health - before

    def damage_monster(self, amount: int) -> int:
        amount = max(0, int(amount))
        before = self.monster.health
        self.monster.health = max(0, before - amount)
        return before - self.monster.health

    def heal_monster(self, amount: int) -> int:
        amount = max(0, int(amount))
        before = self.monster.health
        self.monster.health = min(self.monster.max_health, before + amount)
        return self.monster.health - before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "combat_id": self.combat_id,
            "round": self.current_round,
            "phase": self.economy.phase.value,
            "action_used": self.economy.action_used,
            "bonus_action_used": self.economy.bonus_action_used,
            "outcome": self.outcome.value,
            "character": {
                "name": self.character.name,
                "class": self.character.character_class.value,
                "level": self.character.level,
                "current_health": self.character.current_health,
                "max_health": self.character.max_health,
                "current_mana": self.character.current_mana,
                "armor_class": self.character.armor_class,
                "consumed_spell_slots_by_level": dict(self.spellbook.consumed),
                "raging": self.raging,
                "effects": [effect.to_dict() for effect in self.character_effects],
            },
            "monster": {
                "name": self.monster.name,
                "type": self.monster.monster_type,
                "tier": self.monster.tier.value,
                "level": self.monster.level,
                "health": self.monster.health,
                "max_health": self.monster.max_health,
                "armor": self.monster.armor,
                "cooldowns": dict(self.monster_cooldowns),
                "effects": [effect.to_dict() for effect in self.monster_effects],
            },
            "abilities": [ability.to_dict() for ability in self.class_abilities.values()],
            "spells": [spell.to_dict() for spell in self.spellbook.available_spells()],
            "spell_slots_remaining": self.spellbook.slots_remaining(),
            "reward": self.reward.to_dict() if self.reward else None,
        }
