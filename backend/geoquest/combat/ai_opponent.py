"""
Monster behaviour policy

Picks and resolves the monster's single decision for the round, then drains
cooldowns and ticks timed effects.
"""
import logging
from typing import List, Optional

from .combat_math import apply_resistance, resolve_strike
from .effects import (
    apply_effect,
    damage_over_time,
    effect_magnitude,
    is_incapacitated,
    tick_effects,
)
from .models.ability import Ability, AbilityCategory
from .models.action import SubResolution
from .models.combat_session import CombatSession
from .rules import MONSTER_ATTACK_DEX_BASE, PHYSICAL_DAMAGE_TYPES

logger = logging.getLogger(__name__)


class OpponentAI:
    """
    Monster decision making

    Design:
    - eligibility: cooldown 0 and the health fraction inside the window
    - one use_chance draw per eligible ability, first trigger in roster order
    - nothing eligible or nothing triggered: plain weapon attack
    """

    def __init__(self, session: CombatSession):
        """
        Args:
            session: the encounter the monster belongs to
        """
        self.session = session

    # ============================================
    # Decision
    # ============================================

    def eligible_abilities(self) -> List[Ability]:
        fraction = self.session.monster.health_fraction
        cooldowns = self.session.monster_cooldowns
        return [
            ability
            for ability in self.session.monster_abilities
            if cooldowns.get(ability.id, 0) == 0 and ability.in_health_window(fraction)
        ]

    def choose_ability(self) -> Optional[Ability]:
        """
        Returns:
            Optional[Ability]: the triggered ability, None for a plain attack
        """
        eligible = self.eligible_abilities()
        if not eligible:
            return None
        # One draw per eligible ability, taken in roster order.
        triggered = [ability for ability in eligible if self.session.roller.random() < ability.use_chance]
        return triggered[0] if triggered else None

    def drain_cooldowns(self, used: Optional[Ability]) -> None:
        """Set the used ability's cooldown, then count every cooldown down by one."""
        cooldowns = self.session.monster_cooldowns
        if used is not None:
            cooldowns[used.id] = used.cooldown
        for ability_id, remaining in list(cooldowns.items()):
            cooldowns[ability_id] = max(0, remaining - 1)

    # ============================================
    # Turn
    # ============================================

    def take_turn(self) -> SubResolution:
        """
        Run the monster's turn.

        Returns:
            SubResolution: what the monster did, including end-of-round
                damage over time
        """
        session = self.session
        monster = session.monster

        if is_incapacitated(session.monster_effects):
            resolution = SubResolution(actor="monster", action="skip", success=False)
            resolution.messages.append(f"{monster.name} cannot act this turn.")
            self.drain_cooldowns(None)
        else:
            ability = self.choose_ability()
            if ability is None or (ability.category == AbilityCategory.ATTACK and ability.damage is None):
                resolution = self._plain_attack(ability)
            else:
                resolution = self._use_ability(ability)
            self.drain_cooldowns(ability)

        self._end_of_round(resolution)
        session.add_log(
            "monster",
            " ".join(resolution.messages),
            event_type=resolution.action,
            payload={"damage": resolution.damage, "healing": resolution.healing},
        )
        return resolution

    # ===== private =====

    def _plain_attack(self, ability: Optional[Ability]) -> SubResolution:
        session = self.session
        monster = session.monster
        bonus = int(effect_magnitude(session.monster_effects, "enrage"))
        strike = resolve_strike(
            session.roller,
            MONSTER_ATTACK_DEX_BASE + monster.level,
            session.character.armor_class,
            monster.level // 2,
            base_damage=monster.damage + bonus,
        )
        resolution = SubResolution(
            actor="monster",
            action="attack",
            ability_id=ability.id if ability else None,
            attack_roll=strike.roll,
            hit=strike.hit,
            chance=strike.chance,
            damage_type="physical",
        )
        if strike.hit:
            resolution.damage = self._hurt_character(strike.damage, "physical")
            crit = " Critical hit!" if strike.roll.is_critical else ""
            resolution.messages.append(f"{monster.name} hits for {resolution.damage}.{crit}")
        else:
            resolution.messages.append(f"{monster.name} misses.")
        return resolution

    def _use_ability(self, ability: Ability) -> SubResolution:
        session = self.session
        monster = session.monster
        resolution = SubResolution(actor="monster", action=ability.id, ability_id=ability.id)
        resolution.messages.append(f"{monster.name} uses {ability.name}.")
        landed = True

        if ability.damage is not None:
            resolution.damage_type = ability.damage.damage_type
            if ability.category == AbilityCategory.ATTACK:
                strike = resolve_strike(
                    session.roller,
                    MONSTER_ATTACK_DEX_BASE + monster.level,
                    session.character.armor_class,
                    0,
                    damage_dice=ability.damage.dice,
                )
                resolution.attack_roll = strike.roll
                resolution.chance = strike.chance
                resolution.hit = landed = strike.hit
                raw = strike.damage
            else:
                raw = session.roller.roll_dice(ability.damage.dice).total
            if landed:
                resolution.damage = self._hurt_character(raw, ability.damage.damage_type)
                resolution.messages.append(f"{session.character.name} takes {resolution.damage} damage.")
            else:
                resolution.messages.append("It misses.")

        if ability.healing is not None:
            healed = session.heal_monster(session.roller.roll_dice(ability.healing.dice).total)
            resolution.healing = healed
            resolution.messages.append(f"{monster.name} recovers {healed} health.")

        if ability.effect is not None and landed:
            if ability.category in (AbilityCategory.BUFF, AbilityCategory.HEAL, AbilityCategory.SPECIAL):
                apply_effect(session.monster_effects, ability.effect, source=ability.id)
            else:
                apply_effect(session.character_effects, ability.effect, source=ability.id)
            resolution.messages.append(f"Effect: {ability.effect.effect_type}.")

        resolution.success = landed
        return resolution

    def _hurt_character(self, amount: int, damage_type: str) -> int:
        session = self.session
        if session.raging and damage_type in PHYSICAL_DAMAGE_TYPES:
            amount = apply_resistance(amount)
        return session.damage_character(amount)

    def _end_of_round(self, resolution: SubResolution) -> None:
        session = self.session
        for effect_type, amount, damage_type in damage_over_time(session.character_effects):
            dealt = self._hurt_character(amount, damage_type)
            if dealt:
                resolution.messages.append(f"{session.character.name} suffers {dealt} {effect_type} damage.")
        for effect_type, amount, _ in damage_over_time(session.monster_effects):
            dealt = session.damage_monster(amount)
            if dealt:
                resolution.messages.append(f"{session.monster.name} suffers {dealt} {effect_type} damage.")
        for expired in tick_effects(session.character_effects):
            logger.debug("[%s] character effect %s expired", session.combat_id, expired)
        for expired in tick_effects(session.monster_effects):
            logger.debug("[%s] monster effect %s expired", session.combat_id, expired)
