"""
Class ability subsystem

Builds each class's level-derived abilities at session start and resolves
UseAbility intents: slot check, use check, effect, use decrement, economy
advance, in that order.
"""
import logging
import math
from typing import Callable, Dict, Tuple

from .action_economy import SlotType
from .combat_math import resolve_strike
from .dice import ability_modifier
from .effects import apply_effect
from .models.ability import (
    AbilityCategory,
    ClassAbility,
    DamageSpec,
    EffectSpec,
    HealingSpec,
)
from .models.action import IntentType, SubResolution
from .models.combat_session import CombatSession
from .models.combatant import CharacterClass
from .models.errors import CombatErrorKind, CombatRuleError
from .rules import RAGE_DAMAGE_BONUS, UNDEAD_KEYWORDS

logger = logging.getLogger(__name__)

FLURRY_STRIKES = 2
FLURRY_DICE = "1d4"
HUNTERS_MARK_DICE = "1d6"
DIVINE_SMITE_DICE = "2d8"


def build_class_abilities(character_class: CharacterClass, level: int) -> Dict[str, ClassAbility]:
    """
    Abilities a character of this class and level starts the encounter with.

    Returns:
        Dict[str, ClassAbility]: keyed by ability id, in menu order
    """
    abilities = []
    if character_class == CharacterClass.BARBARIAN:
        uses = max(2, level // 4 + 2)
        abilities.append(
            ClassAbility(
                id="rage",
                name="Rage",
                category=AbilityCategory.BUFF,
                is_bonus_action=True,
                uses_remaining=uses,
                max_uses=uses,
                description=f"+{RAGE_DAMAGE_BONUS} weapon damage and resistance to physical damage",
            )
        )
    elif character_class == CharacterClass.ROGUE:
        abilities.append(
            ClassAbility(
                id="sneak_attack",
                name="Sneak Attack",
                category=AbilityCategory.ATTACK,
                damage=DamageSpec(dice=f"{math.ceil(level / 2)}d6", damage_type="piercing"),
                is_free=True,
                description="Extra damage on this round's attack",
            )
        )
    elif character_class == CharacterClass.PALADIN:
        abilities.append(
            ClassAbility(
                id="divine_smite",
                name="Divine Smite",
                category=AbilityCategory.ATTACK,
                damage=DamageSpec(dice=DIVINE_SMITE_DICE, damage_type="radiant"),
                is_free=True,
                description="Radiant damage on this round's attack",
            )
        )
    elif character_class == CharacterClass.FIGHTER:
        abilities.append(
            ClassAbility(
                id="action_surge",
                name="Action Surge",
                category=AbilityCategory.SPECIAL,
                is_bonus_action=True,
                uses_remaining=1,
                max_uses=1,
                description="Take one more action this round",
            )
        )
        abilities.append(
            ClassAbility(
                id="second_wind",
                name="Second Wind",
                category=AbilityCategory.HEAL,
                healing=HealingSpec(dice=f"1d10+{level}"),
                is_bonus_action=True,
                uses_remaining=1,
                max_uses=1,
                description="Recover 1d10 + level health",
            )
        )
    elif character_class == CharacterClass.RANGER:
        abilities.append(
            ClassAbility(
                id="hunters_mark",
                name="Hunter's Mark",
                category=AbilityCategory.DEBUFF,
                damage=DamageSpec(dice=HUNTERS_MARK_DICE, damage_type="physical"),
                is_bonus_action=True,
                description="+1d6 damage on every hit against the marked target",
            )
        )
    elif character_class == CharacterClass.MONK:
        uses = max(2, level)
        abilities.append(
            ClassAbility(
                id="flurry_of_blows",
                name="Flurry of Blows",
                category=AbilityCategory.ATTACK,
                damage=DamageSpec(dice=FLURRY_DICE, damage_type="bludgeoning"),
                is_bonus_action=True,
                uses_remaining=uses,
                max_uses=uses,
                description="Two extra unarmed strikes",
            )
        )
    elif character_class == CharacterClass.CLERIC:
        uses = max(1, (level - 1) // 4 + 1)
        abilities.append(
            ClassAbility(
                id="turn_undead",
                name="Turn Undead",
                category=AbilityCategory.SPECIAL,
                effect=EffectSpec(effect_type="turned", duration=1),
                uses_remaining=uses,
                max_uses=uses,
                description="An undead foe loses its next turn",
            )
        )
    elif character_class == CharacterClass.WIZARD:
        abilities.append(
            ClassAbility(
                id="arcane_recovery",
                name="Arcane Recovery",
                category=AbilityCategory.SPECIAL,
                is_bonus_action=True,
                uses_remaining=1,
                max_uses=1,
                description="Recover spent spell slots",
            )
        )
    return {ability.id: ability for ability in abilities}


def slot_for(ability: ClassAbility) -> SlotType:
    if ability.is_free:
        return SlotType.FREE
    if ability.is_bonus_action:
        return SlotType.BONUS_ACTION
    return SlotType.ACTION


def is_useful(session: CombatSession, ability: ClassAbility) -> bool:
    """Whether invoking the ability now would change anything."""
    if ability.id == "rage":
        return not session.raging
    if ability.id == "hunters_mark":
        return not session.hunters_mark
    if ability.id == "arcane_recovery":
        return session.spellbook.has_spent_slots()
    return True


def has_bonus_option(session: CombatSession) -> bool:
    """Any bonus-action ability still worth spending the bonus slot on."""
    return any(
        ability.is_bonus_action and ability.has_uses and is_useful(session, ability)
        for ability in session.class_abilities.values()
    )


def is_undead(session: CombatSession) -> bool:
    tag = f"{session.monster.monster_type} {session.monster.name}".lower()
    return any(keyword in tag for keyword in UNDEAD_KEYWORDS)


def use_ability(session: CombatSession, ability_id: str) -> Tuple[SubResolution, bool]:
    """
    Resolve a UseAbility intent.

    Returns:
        (player sub-resolution, whether the round passed to the monster)

    Raises:
        CombatRuleError: unknown id, slot already used, or no uses left;
            raised before any state changes
    """
    ability = session.class_abilities.get(ability_id)
    if ability is None:
        raise CombatRuleError(CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL, f"unknown ability: {ability_id}")

    slot = slot_for(ability)
    session.economy.require(slot)
    if slot == SlotType.FREE and ability.id in session.armed_riders:
        raise CombatRuleError(CombatErrorKind.ACTION_ALREADY_USED, f"{ability.name} already readied this round")
    if not ability.has_uses:
        raise CombatRuleError(CombatErrorKind.ABILITY_EXHAUSTED, f"{ability.name} has no uses left")

    resolution = SubResolution(
        actor="player",
        action=IntentType.USE_ABILITY.value,
        ability_id=ability.id,
    )
    handler = _HANDLERS[ability.id]
    handler(session, ability, resolution)

    ability.consume_use()
    advanced = session.economy.spend(slot)
    session.add_log(
        "player",
        " ".join(resolution.messages) or f"{ability.name} used",
        event_type="ability",
        payload={"ability_id": ability.id, "uses_remaining": ability.uses_remaining},
    )
    logger.debug("[%s] ability %s used, advanced=%s", session.combat_id, ability.id, advanced)
    return resolution, advanced


# ============================================
# Effect handlers
# ============================================


def _apply_rage(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    session.raging = True
    resolution.messages.append(f"Rage! +{RAGE_DAMAGE_BONUS} damage and physical resistance.")


def _apply_rider(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    session.armed_riders[ability.id] = ability.damage.dice
    resolution.damage_type = ability.damage.damage_type
    resolution.messages.append(f"{ability.name} readied: +{ability.damage.dice} on this round's attack.")


def _apply_action_surge(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    session.economy.reopen_action()
    resolution.messages.append("Action Surge! The action is available again.")


def _apply_second_wind(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    rolled = session.roller.roll_dice(ability.healing.dice)
    resolution.healing = session.heal_character(rolled.total)
    resolution.messages.append(f"Second Wind restores {resolution.healing} health.")


def _apply_hunters_mark(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    session.hunters_mark = True
    resolution.messages.append(f"{session.monster.name} is marked.")


def _apply_flurry(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    character = session.character
    dex_mod = ability_modifier(character.dexterity)
    resolution.damage_type = ability.damage.damage_type
    resolution.hit = False
    for strike_no in range(1, FLURRY_STRIKES + 1):
        if session.monster.health <= 0:
            break
        strike = resolve_strike(
            session.roller,
            character.dexterity,
            session.monster.armor,
            dex_mod,
            damage_dice=ability.damage.dice,
        )
        if strike.hit:
            dealt = session.damage_monster(strike.damage)
            resolution.damage += dealt
            resolution.hit = True
            resolution.messages.append(f"Strike {strike_no} hits for {dealt}.")
        else:
            resolution.messages.append(f"Strike {strike_no} misses.")


def _apply_turn_undead(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    if not is_undead(session):
        resolution.success = False
        resolution.messages.append(f"{session.monster.name} is not undead; nothing happens.")
        return
    apply_effect(session.monster_effects, ability.effect, source=ability.id)
    resolution.messages.append(f"{session.monster.name} recoils from the holy light.")


def _apply_arcane_recovery(session: CombatSession, ability: ClassAbility, resolution: SubResolution) -> None:
    budget = math.ceil(session.character.level / 2)
    restored = session.spellbook.recover_slots(budget)
    if restored:
        detail = ", ".join(f"level {lvl} x{count}" for lvl, count in sorted(restored.items()))
        resolution.messages.append(f"Arcane Recovery restores {detail}.")
    else:
        resolution.success = False
        resolution.messages.append("Arcane Recovery: no spent slots to recover.")


_HANDLERS: Dict[str, Callable[[CombatSession, ClassAbility, SubResolution], None]] = {
    "rage": _apply_rage,
    "sneak_attack": _apply_rider,
    "divine_smite": _apply_rider,
    "action_surge": _apply_action_surge,
    "second_wind": _apply_second_wind,
    "hunters_mark": _apply_hunters_mark,
    "flurry_of_blows": _apply_flurry,
    "turn_undead": _apply_turn_undead,
    "arcane_recovery": _apply_arcane_recovery,
}