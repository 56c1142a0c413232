"""Timed status effect helpers."""
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .models.ability import EffectSpec

DAMAGE_OVER_TIME = {"poison": "poison", "burn": "fire", "bleed": "physical"}
SKIP_TURN = {"stun", "turned"}


@dataclass
class ActiveEffect:
    """An effect currently on a combatant"""

    effect_type: str
    remaining: int
    magnitude: float = 0
    source: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.effect_type,
            "remaining": self.remaining,
            "value": self.magnitude,
            "source": self.source,
        }


def apply_effect(effects: List[ActiveEffect], spec: EffectSpec, source: str) -> ActiveEffect:
    """Add an effect, refreshing duration and magnitude if it is already present."""
    for effect in effects:
        if effect.effect_type == spec.effect_type:
            effect.remaining = max(effect.remaining, spec.duration)
            effect.magnitude = max(effect.magnitude, spec.magnitude)
            effect.source = source
            return effect
    effect = ActiveEffect(effect_type=spec.effect_type, remaining=spec.duration, magnitude=spec.magnitude, source=source)
    effects.append(effect)
    return effect


def effect_magnitude(effects: List[ActiveEffect], effect_type: str) -> float:
    return sum(e.magnitude for e in effects if e.effect_type == effect_type and e.remaining > 0)


def is_incapacitated(effects: List[ActiveEffect]) -> bool:
    """Stunned or turned monsters lose their action."""
    return any(e.effect_type in SKIP_TURN and e.remaining > 0 for e in effects)


def damage_over_time(effects: List[ActiveEffect]) -> List[Tuple[str, int, str]]:
    """Returns list of (effect type, damage, damage type)."""
    results: List[Tuple[str, int, str]] = []
    for effect in effects:
        if effect.remaining > 0 and effect.effect_type in DAMAGE_OVER_TIME:
            results.append((effect.effect_type, max(0, int(effect.magnitude)), DAMAGE_OVER_TIME[effect.effect_type]))
    return results


def tick_effects(effects: List[ActiveEffect]) -> List[str]:
    """Count every effect down one round. Returns the types that expired."""
    expired = []
    for effect in effects:
        effect.remaining -= 1
        if effect.remaining <= 0:
            expired.append(effect.effect_type)
    effects[:] = [e for e in effects if e.remaining > 0]
    return expired
