"""
Combatant snapshot models.

Snapshots arrive from upstream (character sheet, monster catalogue) already
resolved; the session copies them by value and owns the copy.
"""
from enum import Enum
from typing import Dict, Optional, Set

from pydantic import BaseModel, Field, field_validator, model_validator

from ..dice import parse_notation


class CharacterClass(str, Enum):
    """Playable classes"""

    BARBARIAN = "barbarian"
    BARD = "bard"
    CLERIC = "cleric"
    DRUID = "druid"
    FIGHTER = "fighter"
    MONK = "monk"
    PALADIN = "paladin"
    RANGER = "ranger"
    ROGUE = "rogue"
    SORCERER = "sorcerer"
    WARLOCK = "warlock"
    WIZARD = "wizard"


# Legacy class names still stored on older character rows.
CLASS_ALIASES: Dict[str, CharacterClass] = {
    "warrior": CharacterClass.FIGHTER,
    "guerreiro": CharacterClass.FIGHTER,
    "mage": CharacterClass.WIZARD,
    "mago": CharacterClass.WIZARD,
    "thief": CharacterClass.ROGUE,
    "ladino": CharacterClass.ROGUE,
    "priest": CharacterClass.CLERIC,
    "clerigo": CharacterClass.CLERIC,
    "archer": CharacterClass.RANGER,
    "patrulheiro": CharacterClass.RANGER,
    "barbaro": CharacterClass.BARBARIAN,
    "paladino": CharacterClass.PALADIN,
    "monge": CharacterClass.MONK,
    "bardo": CharacterClass.BARD,
    "druida": CharacterClass.DRUID,
    "feiticeiro": CharacterClass.SORCERER,
    "bruxo": CharacterClass.WARLOCK,
}


class MonsterTier(str, Enum):
    """Monster strength tier"""

    COMMON = "common"
    ELITE = "elite"
    BOSS = "boss"
    LEGENDARY = "legendary"


def resolve_character_class(value) -> CharacterClass:
    """
    Resolve a class name, accepting legacy aliases.

    Raises:
        ValueError: unknown class name
    """
    if isinstance(value, CharacterClass):
        return value
    key = str(value).strip().lower()
    if key in CLASS_ALIASES:
        return CLASS_ALIASES[key]
    return CharacterClass(key)


class CombatantStats(BaseModel):
    """Character side of an encounter"""

    name: str = "Adventurer"
    strength: int = Field(default=10, ge=1, le=30)
    dexterity: int = Field(default=10, ge=1, le=30)
    constitution: int = Field(default=10, ge=1, le=30)
    intelligence: int = Field(default=10, ge=1, le=30)
    wisdom: int = Field(default=10, ge=1, le=30)
    charisma: int = Field(default=10, ge=1, le=30)
    level: int = Field(default=1, ge=1, le=20)
    experience: int = Field(default=0, ge=0)
    current_health: int = Field(..., ge=0)
    max_health: int = Field(..., ge=1)
    current_mana: Optional[int] = Field(default=None, ge=0)
    max_mana: Optional[int] = Field(default=None, ge=0)
    armor_class: int = Field(default=10, ge=0)
    character_class: CharacterClass = CharacterClass.FIGHTER
    weapon_damage: str = "1d8"
    known_spell_ids: Set[str] = Field(default_factory=set)
    consumed_spell_slots_by_level: Dict[int, int] = Field(default_factory=dict)

    @field_validator("character_class", mode="before")
    @classmethod
    def _resolve_class(cls, value):
        return resolve_character_class(value)

    @field_validator("weapon_damage")
    @classmethod
    def _valid_weapon_dice(cls, value: str) -> str:
        text = value.strip().lower().replace(" ", "")
        if parse_notation(text) is None:
            raise ValueError(f"invalid weapon damage dice: {value!r}")
        return text

    @field_validator("consumed_spell_slots_by_level")
    @classmethod
    def _non_negative_slots(cls, value: Dict[int, int]) -> Dict[int, int]:
        for spell_level, used in value.items():
            if spell_level < 1 or used < 0:
                raise ValueError(f"invalid consumed slot entry: {spell_level}={used}")
        return value

    @model_validator(mode="after")
    def _clamp_resources(self):
        if self.current_health > self.max_health:
            self.current_health = self.max_health
        if self.max_mana is not None and self.current_mana is not None:
            self.current_mana = min(self.current_mana, self.max_mana)
        return self


class MonsterStats(BaseModel):
    """Monster side of an encounter"""

    name: str
    monster_type: Optional[str] = None
    tier: MonsterTier = MonsterTier.COMMON
    level: int = Field(default=1, ge=1)
    health: int = Field(..., ge=0)
    max_health: int = Field(..., ge=1)
    damage: int = Field(default=5, ge=0)
    armor: int = Field(default=10, ge=0)
    experience_reward: Optional[int] = Field(default=None, ge=0)
    gold_reward: Optional[int] = Field(default=None, ge=0)

    @field_validator("tier", mode="before")
    @classmethod
    def _normalize_tier(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _clamp_health(self):
        if self.health > self.max_health:
            self.health = self.max_health
        if not self.monster_type:
            self.monster_type = self.name
        return self

    @property
    def health_fraction(self) -> float:
        return self.health / self.max_health
