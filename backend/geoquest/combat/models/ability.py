"""
Ability data models (class abilities and monster abilities share one shape).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..dice import parse_notation

# uses_remaining sentinel for abilities without a use limit
UNLIMITED_USES = 999


class AbilityCategory(str, Enum):
    """Ability category"""

    ATTACK = "attack"
    SPELL = "spell"
    BUFF = "buff"
    DEBUFF = "debuff"
    HEAL = "heal"
    SPECIAL = "special"


@dataclass
class DamageSpec:
    """Damage dealt by an ability or spell"""

    dice: str
    damage_type: str = "physical"

    def to_dict(self) -> Dict[str, Any]:
        return {"dice": self.dice, "type": self.damage_type}


@dataclass
class HealingSpec:
    """Healing granted by an ability or spell"""

    dice: str

    def to_dict(self) -> Dict[str, Any]:
        return {"dice": self.dice}


@dataclass
class EffectSpec:
    """Timed effect applied by an ability"""

    effect_type: str
    duration: int = 1
    magnitude: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.effect_type, "duration": self.duration, "value": self.magnitude}


@dataclass
class Ability:
    """
    Ability definition

    use_chance, min_health and max_health only matter for monsters;
    is_bonus_action only matters for class abilities.
    """

    id: str
    name: str
    category: AbilityCategory
    cooldown: int = 0
    use_chance: float = 1.0
    damage: Optional[DamageSpec] = None
    healing: Optional[HealingSpec] = None
    effect: Optional[EffectSpec] = None
    min_health: float = 0.0
    max_health: float = 1.0
    is_bonus_action: bool = False
    description: str = ""

    def in_health_window(self, fraction: float) -> bool:
        """Both window edges are inclusive."""
        return self.min_health <= fraction <= self.max_health

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "cooldown": self.cooldown,
            "use_chance": self.use_chance,
            "damage": self.damage.to_dict() if self.damage else None,
            "healing": self.healing.to_dict() if self.healing else None,
            "effect": self.effect.to_dict() if self.effect else None,
            "min_health": self.min_health,
            "max_health": self.max_health,
            "is_bonus_action": self.is_bonus_action,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ability":
        """
        Build an ability from a plain dict (data files, MCP payloads).

        Raises:
            ValueError: missing id/name, unknown category, malformed dice,
                out-of-range chance or health window, negative durations
        """
        ability_id = str(data.get("id") or "").strip()
        name = str(data.get("name") or "").strip()
        if not ability_id or not name:
            raise ValueError("ability requires id and name")

        category = AbilityCategory(str(data.get("category") or data.get("type") or "attack"))

        damage = None
        raw_damage = data.get("damage")
        if raw_damage:
            if isinstance(raw_damage, str):
                raw_damage = {"dice": raw_damage}
            damage = DamageSpec(
                dice=_checked_dice(raw_damage.get("dice"), ability_id),
                damage_type=str(raw_damage.get("type") or raw_damage.get("damage_type") or "physical"),
            )

        healing = None
        raw_healing = data.get("healing")
        if raw_healing:
            if isinstance(raw_healing, str):
                raw_healing = {"dice": raw_healing}
            healing = HealingSpec(dice=_checked_dice(raw_healing.get("dice"), ability_id))

        effect = None
        raw_effect = data.get("effect")
        if raw_effect:
            duration = int(raw_effect.get("duration", 1))
            if duration < 0:
                raise ValueError(f"{ability_id}: effect duration must be >= 0")
            effect = EffectSpec(
                effect_type=str(raw_effect.get("type") or raw_effect.get("effect_type")),
                duration=duration,
                magnitude=float(raw_effect.get("value", raw_effect.get("magnitude", 0))),
            )

        cooldown = int(data.get("cooldown", 0))
        use_chance = float(data.get("use_chance", data.get("useChance", 1.0)))
        min_health = _fraction(data.get("min_health", data.get("minHealth", 0.0)))
        max_health = _fraction(data.get("max_health", data.get("maxHealth", 1.0)))
        if cooldown < 0:
            raise ValueError(f"{ability_id}: cooldown must be >= 0")
        if not 0.0 <= use_chance <= 1.0:
            raise ValueError(f"{ability_id}: use_chance must be within [0, 1]")
        if not 0.0 <= min_health <= max_health <= 1.0:
            raise ValueError(f"{ability_id}: invalid health window")

        return cls(
            id=ability_id,
            name=name,
            category=category,
            cooldown=cooldown,
            use_chance=use_chance,
            damage=damage,
            healing=healing,
            effect=effect,
            min_health=min_health,
            max_health=max_health,
            is_bonus_action=bool(data.get("is_bonus_action", False)),
            description=str(data.get("description") or ""),
        )


@dataclass
class ClassAbility(Ability):
    """Class ability with a use counter"""

    uses_remaining: int = UNLIMITED_USES
    max_uses: int = UNLIMITED_USES
    # Rides on the attack action: consumes neither slot.
    is_free: bool = False

    @property
    def is_unlimited(self) -> bool:
        return self.max_uses == UNLIMITED_USES

    @property
    def has_uses(self) -> bool:
        return self.is_unlimited or self.uses_remaining > 0

    def consume_use(self) -> None:
        if not self.is_unlimited:
            self.uses_remaining = max(0, self.uses_remaining - 1)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "uses_remaining": self.uses_remaining,
                "max_uses": self.max_uses,
                "is_free": self.is_free,
                "is_unlimited": self.is_unlimited,
            }
        )
        return data


def _fraction(value: Any) -> float:
    # older roster files store the health window in percent
    number = float(value)
    return number / 100 if number > 1 else number


def _checked_dice(notation: Any, ability_id: str) -> str:
    text = str(notation or "").strip().lower().replace(" ", "")
    if parse_notation(text) is None:
        raise ValueError(f"{ability_id}: invalid dice notation {notation!r}")
    return text
