"""
Spell table and per-session spellcasting state.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .models.ability import DamageSpec, HealingSpec
from .models.combatant import CharacterClass
from .models.errors import CombatErrorKind, CombatRuleError
from .rules import SPELL_SLOTS_BY_LEVEL

_C = CharacterClass


@dataclass
class Spell:
    """Spell definition (damage and healing are mutually exclusive)"""

    id: str
    name: str
    level: int
    school: str
    classes: FrozenSet[CharacterClass]
    damage: Optional[DamageSpec] = None
    healing: Optional[HealingSpec] = None

    def __post_init__(self):
        if self.damage is not None and self.healing is not None:
            raise ValueError(f"spell {self.id} cannot both damage and heal")

    @property
    def is_cantrip(self) -> bool:
        return self.level == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "school": self.school,
            "classes": sorted(c.value for c in self.classes),
            "damage": self.damage.to_dict() if self.damage else None,
            "healing": self.healing.to_dict() if self.healing else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Spell":
        damage = data.get("damage")
        healing = data.get("healing")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            level=int(data.get("level", 0)),
            school=str(data.get("school", "evocation")),
            classes=frozenset(CharacterClass(str(c).lower()) for c in data.get("classes", [])),
            damage=DamageSpec(dice=damage["dice"], damage_type=damage.get("type", "force")) if damage else None,
            healing=HealingSpec(dice=healing["dice"]) if healing else None,
        )


def _spell(spell_id, name, level, school, classes, damage=None, damage_type="force", healing=None) -> Spell:
    return Spell(
        id=spell_id,
        name=name,
        level=level,
        school=school,
        classes=frozenset(classes),
        damage=DamageSpec(dice=damage, damage_type=damage_type) if damage else None,
        healing=HealingSpec(dice=healing) if healing else None,
    )


SPELL_TABLE: Dict[str, Spell] = {
    spell.id: spell
    for spell in [
        # Cantrips
        _spell("fire_bolt", "Fire Bolt", 0, "evocation", [_C.WIZARD, _C.SORCERER], "1d10", "fire"),
        _spell("ray_of_frost", "Ray of Frost", 0, "evocation", [_C.WIZARD, _C.SORCERER], "1d8", "cold"),
        _spell("sacred_flame", "Sacred Flame", 0, "evocation", [_C.CLERIC], "1d8", "radiant"),
        _spell("eldritch_blast", "Eldritch Blast", 0, "evocation", [_C.WARLOCK], "1d10", "force"),
        _spell("vicious_mockery", "Vicious Mockery", 0, "enchantment", [_C.BARD], "1d4", "psychic"),
        _spell("produce_flame", "Produce Flame", 0, "conjuration", [_C.DRUID], "1d8", "fire"),
        # Level 1
        _spell("magic_missile", "Magic Missile", 1, "evocation", [_C.WIZARD, _C.SORCERER], "3d4+3", "force"),
        _spell("burning_hands", "Burning Hands", 1, "evocation", [_C.WIZARD, _C.SORCERER], "3d6", "fire"),
        _spell("guiding_bolt", "Guiding Bolt", 1, "evocation", [_C.CLERIC], "4d6", "radiant"),
        _spell("hellish_rebuke", "Hellish Rebuke", 1, "evocation", [_C.WARLOCK], "2d10", "fire"),
        _spell("thunderwave", "Thunderwave", 1, "evocation", [_C.WIZARD, _C.BARD, _C.DRUID, _C.SORCERER], "2d8", "thunder"),
        _spell(
            "cure_wounds",
            "Cure Wounds",
            1,
            "evocation",
            [_C.CLERIC, _C.BARD, _C.DRUID, _C.PALADIN, _C.RANGER],
            healing="1d8+3",
        ),
        _spell("healing_word", "Healing Word", 1, "evocation", [_C.CLERIC, _C.BARD, _C.DRUID], healing="1d4+3"),
        # Level 2
        _spell("scorching_ray", "Scorching Ray", 2, "evocation", [_C.WIZARD, _C.SORCERER], "6d6", "fire"),
        _spell("shatter", "Shatter", 2, "evocation", [_C.WIZARD, _C.BARD, _C.SORCERER, _C.WARLOCK], "3d8", "thunder"),
        _spell("spiritual_weapon", "Spiritual Weapon", 2, "evocation", [_C.CLERIC], "1d8+3", "force"),
        _spell("moonbeam", "Moonbeam", 2, "evocation", [_C.DRUID], "2d10", "radiant"),
        _spell("prayer_of_healing", "Prayer of Healing", 2, "evocation", [_C.CLERIC], healing="2d8+3"),
        # Level 3
        _spell("fireball", "Fireball", 3, "evocation", [_C.WIZARD, _C.SORCERER], "8d6", "fire"),
        _spell("lightning_bolt", "Lightning Bolt", 3, "evocation", [_C.WIZARD, _C.SORCERER], "8d6", "lightning"),
        _spell("mass_healing_word", "Mass Healing Word", 3, "evocation", [_C.CLERIC, _C.BARD], healing="1d4+3"),
        # Level 4-5
        _spell("ice_storm", "Ice Storm", 4, "evocation", [_C.WIZARD, _C.SORCERER, _C.DRUID], "4d8", "cold"),
        _spell("cone_of_cold", "Cone of Cold", 5, "evocation", [_C.WIZARD, _C.SORCERER], "8d8", "cold"),
        _spell("mass_cure_wounds", "Mass Cure Wounds", 5, "evocation", [_C.CLERIC, _C.BARD, _C.DRUID], healing="3d8+3"),
    ]
}


def max_spell_level(character_level: int) -> int:
    """Highest spell level a character may learn: ceil(level / 2)."""
    return math.ceil(character_level / 2)


def eligible_spells(
    character_class: CharacterClass,
    level: int,
    known_spell_ids: Iterable[str],
    table: Optional[Dict[str, Spell]] = None,
) -> List[Spell]:
    """
    Spells castable this combat.

    A spell is eligible when its classes include the character's class, it is
    a cantrip or known, and its level is at most ceil(level / 2).
    """
    table = SPELL_TABLE if table is None else table
    known = set(known_spell_ids)
    ceiling = max_spell_level(level)
    return [
        spell
        for spell in table.values()
        if character_class in spell.classes
        and (spell.is_cantrip or spell.id in known)
        and spell.level <= ceiling
    ]


def max_slots(character_level: int, spell_level: int) -> Optional[int]:
    """
    Slots per spell level; None for cantrips (unlimited).
    """
    if spell_level <= 0:
        return None
    slots = SPELL_SLOTS_BY_LEVEL.get(max(1, min(character_level, 20)), [])
    if spell_level > len(slots):
        return 0
    return slots[spell_level - 1]


@dataclass
class SpellBook:
    """
    Per-session spellcasting state

    consumed only ever grows; recovered adds capacity on top of the table
    (Arcane Recovery) instead of giving slots back.
    """

    character_class: CharacterClass
    character_level: int
    known_spell_ids: FrozenSet[str] = frozenset()
    consumed: Dict[int, int] = field(default_factory=dict)
    recovered: Dict[int, int] = field(default_factory=dict)
    table: Dict[str, Spell] = field(default_factory=lambda: dict(SPELL_TABLE))

    def get(self, spell_id: str) -> Spell:
        spell = self.table.get(spell_id)
        if spell is None:
            raise CombatRuleError(CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL, f"unknown spell: {spell_id}")
        return spell

    def available_spells(self) -> List[Spell]:
        return eligible_spells(self.character_class, self.character_level, self.known_spell_ids, self.table)

    def capacity(self, spell_level: int) -> Optional[int]:
        base = max_slots(self.character_level, spell_level)
        if base is None:
            return None
        return base + self.recovered.get(spell_level, 0)

    def remaining(self, spell_level: int) -> Optional[int]:
        capacity = self.capacity(spell_level)
        if capacity is None:
            return None
        return max(0, capacity - self.consumed.get(spell_level, 0))

    def check_slot(self, spell: Spell) -> None:
        """
        Raises:
            CombatRuleError: NO_SPELL_SLOTS when the level is exhausted
        """
        if spell.is_cantrip:
            return
        if self.remaining(spell.level) == 0:
            raise CombatRuleError(
                CombatErrorKind.NO_SPELL_SLOTS,
                f"no level {spell.level} spell slots left",
            )

    def check_eligible(self, spell: Spell) -> None:
        """
        Raises:
            CombatRuleError: SPELL_NOT_AVAILABLE for another class, an unknown
                spell, or a spell above the character's level
        """
        if spell not in self.available_spells():
            raise CombatRuleError(
                CombatErrorKind.SPELL_NOT_AVAILABLE,
                f"{spell.name} is not available to this character",
            )

    def consume(self, spell: Spell) -> None:
        if spell.is_cantrip:
            return
        self.consumed[spell.level] = self.consumed.get(spell.level, 0) + 1

    def recover_slots(self, budget: int) -> Dict[int, int]:
        """
        Recover spent slot capacity, highest spent level first.

        Args:
            budget: total spell levels that may be recovered

        Returns:
            Dict[int, int]: spell level -> slots recovered
        """
        restored: Dict[int, int] = {}
        for spell_level in sorted(self.consumed, reverse=True):
            while budget >= spell_level and self._spent(spell_level) > 0:
                self.recovered[spell_level] = self.recovered.get(spell_level, 0) + 1
                restored[spell_level] = restored.get(spell_level, 0) + 1
                budget -= spell_level
        return restored

    def has_spent_slots(self) -> bool:
        return any(self._spent(spell_level) > 0 for spell_level in self.consumed)

    def _spent(self, spell_level: int) -> int:
        return (max_slots(self.character_level, spell_level) or 0) - (self.remaining(spell_level) or 0)

    def slots_remaining(self) -> Dict[int, int]:
        """Spell level -> slots left, for levels the character has slots in."""
        result: Dict[int, int] = {}
        for spell_level in range(1, 10):
            capacity = self.capacity(spell_level)
            if capacity:
                result[spell_level] = self.remaining(spell_level)
        return result
