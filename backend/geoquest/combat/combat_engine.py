"""
Combat engine

Session registry and intent resolution. One intent is resolved per
submit_intent call; when the round passes to the monster its turn is folded
into the same record.
"""
import logging
import math
import random
import threading
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from geoquest.config import settings

from .action_economy import ActionEconomy, SlotType
from .ai_opponent import OpponentAI
from .class_abilities import has_bonus_option, use_ability
from .combat_math import (
    default_base_rewards,
    flee_chance,
    resolve_strike,
    scale_monster,
    scale_rewards,
)
from .data_repository import CombatDataRepository
from .dice import DiceRoller, ability_modifier
from .models.action import Intent, IntentType, SubResolution
from .models.combat_result import ResolutionRecord, RewardRecord
from .models.combat_session import CombatOutcome, CombatSession
from .models.combatant import CombatantStats, MonsterStats
from .models.errors import CombatError, CombatErrorKind, CombatRuleError
from .rules import FLEE_COUNTER_DAMAGE_FACTOR, RAGE_DAMAGE_BONUS
from .spells import SpellBook

logger = logging.getLogger(__name__)

SubmitResult = Union[ResolutionRecord, CombatError]


class CombatEngine:
    """
    Combat engine

    Responsibilities:
    - create and own sessions
    - resolve one player intent at a time
    - run the monster turn when the round passes to it
    - detect victory / defeat / flight and grant rewards
    """

    def __init__(
        self,
        data: Optional[CombatDataRepository] = None,
        session_ttl_seconds: Optional[int] = None,
        default_seed: Optional[int] = None,
    ):
        self.sessions: Dict[str, CombatSession] = {}
        self.data = data or CombatDataRepository(settings.combat_data_dir or None)
        self.session_ttl_seconds = (
            session_ttl_seconds if session_ttl_seconds is not None else settings.combat_session_ttl_seconds
        )
        self.default_seed = default_seed if default_seed is not None else settings.combat_rng_seed
        self._registry_lock = threading.Lock()

    # ============================================
    # Public interface
    # ============================================

    def new_session(
        self,
        character: Union[CombatantStats, Dict[str, Any]],
        monster: Union[MonsterStats, Dict[str, Any]],
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        scale: bool = False,
    ) -> CombatSession:
        """
        Start an encounter.

        Args:
            character: character snapshot, copied by value
            monster: monster snapshot, copied by value
            rng: random source for this session (tests pass a scripted stub)
            seed: seed for a fresh random.Random when rng is not given
            scale: scale the monster to the character's level and its tier

        Returns:
            CombatSession: the new session; its combat_id is the handle

        Raises:
            ValueError: invalid snapshot, or a combatant already at 0 health
        """
        self.expire_idle_sessions()
        character = CombatantStats.model_validate(character).model_copy(deep=True)
        monster = MonsterStats.model_validate(monster).model_copy(deep=True)
        if character.current_health <= 0:
            raise ValueError(f"{character.name} has no health left to fight")
        if monster.health <= 0:
            raise ValueError(f"{monster.name} is already defeated")

        if scale:
            scaled = scale_monster(
                monster.max_health,
                monster.damage,
                monster.armor,
                monster.level,
                character.level,
                monster.tier,
            )
            monster.max_health = scaled["health"]
            monster.health = scaled["health"]
            monster.damage = scaled["damage"]
            monster.armor = scaled["armor"]
            monster.level = scaled["level"]

        if rng is not None:
            roller = DiceRoller(rng)
        else:
            roller = DiceRoller.seeded(seed if seed is not None else self.default_seed)

        spellbook = SpellBook(
            character_class=character.character_class,
            character_level=character.level,
            known_spell_ids=frozenset(character.known_spell_ids),
            consumed=dict(character.consumed_spell_slots_by_level),
            table=self.data.spell_table(),
        )
        # The snapshot and the spell book share one counter map.
        character.consumed_spell_slots_by_level = spellbook.consumed

        monster_abilities = self.data.monster_abilities(monster.monster_type or monster.name)
        session = CombatSession(
            combat_id=f"combat_{uuid.uuid4().hex[:8]}",
            character=character,
            monster=monster,
            roller=roller,
            economy=ActionEconomy(),
            spellbook=spellbook,
            class_abilities=self.data.class_abilities(character.character_class, character.level),
            monster_abilities=monster_abilities,
            monster_cooldowns={ability.id: 0 for ability in monster_abilities},
        )
        session.economy.bonus_option_check = lambda: has_bonus_option(session)
        session.add_log(
            "system",
            f"{character.name} faces {monster.name} (level {monster.level} {monster.tier.value}).",
            event_type="combat_start",
        )

        with self._registry_lock:
            self.sessions[session.combat_id] = session
        logger.info(
            "[%s] combat started: %s (lv%d %s) vs %s (lv%d %s)",
            session.combat_id,
            character.name,
            character.level,
            character.character_class.value,
            monster.name,
            monster.level,
            monster.tier.value,
        )
        return session

    def submit_intent(self, combat_id: str, intent: Union[Intent, Dict[str, Any]]) -> SubmitResult:
        """
        Resolve one player intent.

        Args:
            combat_id: session handle
            intent: Intent or {"type": ..., "spell_id": ..., "ability_id": ...}

        Returns:
            ResolutionRecord on success, CombatError when rejected; a rejected
            intent leaves the session unchanged

        Raises:
            ValueError: unknown combat_id or malformed intent payload
        """
        self.expire_idle_sessions()
        session = self.get_session(combat_id)
        if not isinstance(intent, Intent):
            intent = Intent.from_dict(intent)

        if not session.lock.acquire(blocking=False):
            return CombatError(CombatErrorKind.SESSION_BUSY, "another intent is being resolved", combat_id)
        try:
            session.touch()
            if session.is_ended:
                return CombatError(
                    CombatErrorKind.SESSION_TERMINATED,
                    f"combat already ended: {session.outcome.value}",
                    combat_id,
                )
            log_start = len(session.combat_log)
            try:
                record = self._resolve(session, intent)
            except CombatRuleError as exc:
                logger.info("[%s] intent %s rejected: %s", combat_id, intent.intent_type.value, exc.kind.value)
                return CombatError.from_exception(exc, combat_id)
            record.log = session.combat_log[log_start:]
            return record
        finally:
            session.lock.release()

    def get_session(self, combat_id: str) -> CombatSession:
        session = self.sessions.get(combat_id)
        if session is None:
            raise ValueError(f"Combat session not found: {combat_id}")
        return session

    def discard_session(self, combat_id: str) -> bool:
        with self._registry_lock:
            return self.sessions.pop(combat_id, None) is not None

    def expire_idle_sessions(self, now: Optional[float] = None) -> List[str]:
        """
        Drop sessions with no intents for session_ttl_seconds.

        Runs on every new_session and submit_intent call.

        Returns:
            List[str]: expired combat ids
        """
        now = time.monotonic() if now is None else now
        with self._registry_lock:
            expired = [
                combat_id
                for combat_id, session in self.sessions.items()
                if now - session.last_activity >= self.session_ttl_seconds
            ]
            for combat_id in expired:
                del self.sessions[combat_id]
        if expired:
            logger.info("Expired %d idle combat sessions", len(expired))
        return expired

    # ============================================
    # Resolution
    # ============================================

    def _resolve(self, session: CombatSession, intent: Intent) -> ResolutionRecord:
        monster_resolution: Optional[SubResolution] = None
        intent_type = intent.intent_type

        if intent_type == IntentType.ATTACK:
            player, advanced = self._execute_attack(session)
        elif intent_type == IntentType.CAST_SPELL:
            player, advanced = self._execute_spell(session, intent.spell_id)
        elif intent_type == IntentType.USE_ABILITY:
            if not intent.ability_id:
                raise CombatRuleError(CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL, "ability_id is required")
            player, advanced = use_ability(session, intent.ability_id)
        elif intent_type == IntentType.FLEE:
            player, monster_resolution = self._execute_flee(session)
            advanced = False
        else:
            player, advanced = self._execute_end_turn(session)

        self._check_combat_end(session, monster_acted=monster_resolution is not None)

        if advanced and not session.is_ended:
            monster_resolution = OpponentAI(session).take_turn()
            self._check_combat_end(session, monster_acted=True)
            if not session.is_ended:
                self._start_next_round(session)

        return ResolutionRecord(
            combat_id=session.combat_id,
            intent=intent,
            player=player,
            monster=monster_resolution,
            character_health=session.character.current_health,
            character_max_health=session.character.max_health,
            character_mana=session.character.current_mana,
            monster_health=session.monster.health,
            monster_max_health=session.monster.max_health,
            round=session.current_round,
            action_used=session.economy.action_used,
            bonus_action_used=session.economy.bonus_action_used,
            outcome=session.outcome,
            reward=session.reward,
        )

    def _execute_attack(self, session: CombatSession) -> Tuple[SubResolution, bool]:
        session.economy.require(SlotType.ACTION)
        character = session.character
        monster = session.monster

        modifier = ability_modifier(character.strength)
        if session.raging:
            modifier += RAGE_DAMAGE_BONUS
        strike = resolve_strike(
            session.roller,
            character.dexterity,
            monster.armor,
            modifier,
            damage_dice=character.weapon_damage,
        )
        resolution = SubResolution(
            actor="player",
            action=IntentType.ATTACK.value,
            attack_roll=strike.roll,
            hit=strike.hit,
            chance=strike.chance,
            damage_type="physical",
        )
        if not strike.dice_valid:
            resolution.warnings.append(CombatErrorKind.INVALID_DICE_NOTATION.value)

        if strike.hit:
            damage = strike.damage
            riders = dict(session.armed_riders)
            if session.hunters_mark:
                riders["hunters_mark"] = session.class_abilities["hunters_mark"].damage.dice
            for ability_id, dice in riders.items():
                extra = session.roller.roll_dice(dice)
                if not extra.valid:
                    resolution.warnings.append(CombatErrorKind.INVALID_DICE_NOTATION.value)
                damage += extra.total
                resolution.messages.append(f"{ability_id} adds {extra.total}.")
            resolution.damage = session.damage_monster(damage)
            crit = " Critical hit!" if strike.roll.is_critical else ""
            resolution.messages.insert(0, f"{character.name} hits {monster.name} for {resolution.damage}.{crit}")
        elif strike.roll.is_critical_miss:
            resolution.messages.append(f"{character.name} fumbles the attack.")
        else:
            resolution.messages.append(f"{character.name} misses.")
        session.armed_riders.clear()

        advanced = session.economy.spend(SlotType.ACTION)
        session.add_log(
            "player",
            " ".join(resolution.messages),
            event_type="attack",
            payload={"roll": strike.roll.natural, "hit": strike.hit, "damage": resolution.damage},
        )
        return resolution, advanced

    def _execute_spell(self, session: CombatSession, spell_id: Optional[str]) -> Tuple[SubResolution, bool]:
        if not spell_id:
            raise CombatRuleError(CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL, "spell_id is required")
        spellbook = session.spellbook
        spell = spellbook.get(spell_id)
        session.economy.require(SlotType.ACTION)
        spellbook.check_slot(spell)
        spellbook.check_eligible(spell)

        spellbook.consume(spell)
        resolution = SubResolution(
            actor="player",
            action=IntentType.CAST_SPELL.value,
            spell_id=spell.id,
            hit=True,
        )
        if spell.damage is not None:
            rolled = session.roller.roll_dice(spell.damage.dice)
            if not rolled.valid:
                resolution.warnings.append(CombatErrorKind.INVALID_DICE_NOTATION.value)
            resolution.damage = session.damage_monster(rolled.total)
            resolution.damage_type = spell.damage.damage_type
            resolution.messages.append(f"{spell.name} deals {resolution.damage} {spell.damage.damage_type} damage.")
        elif spell.healing is not None:
            rolled = session.roller.roll_dice(spell.healing.dice)
            if not rolled.valid:
                resolution.warnings.append(CombatErrorKind.INVALID_DICE_NOTATION.value)
            resolution.healing = session.heal_character(rolled.total)
            resolution.messages.append(f"{spell.name} restores {resolution.healing} health.")

        advanced = session.economy.spend(SlotType.ACTION)
        session.add_log(
            "player",
            " ".join(resolution.messages) or f"{spell.name} cast",
            event_type="spell",
            payload={"spell_id": spell.id, "level": spell.level, "slots_remaining": spellbook.remaining(spell.level)},
        )
        return resolution, advanced

    def _execute_flee(self, session: CombatSession) -> Tuple[SubResolution, Optional[SubResolution]]:
        # Fleeing needs the action, but a failed attempt does not spend it.
        session.economy.require(SlotType.ACTION)
        character = session.character
        monster = session.monster
        chance = flee_chance(character.dexterity, monster.level, character.level)
        escaped = session.roller.random() < chance

        resolution = SubResolution(
            actor="player",
            action=IntentType.FLEE.value,
            success=escaped,
            chance=chance,
        )
        if escaped:
            resolution.messages.append(f"{character.name} escapes!")
            session.add_log("player", resolution.messages[-1], event_type="flee", payload={"chance": chance})
            self._end_combat(session, CombatOutcome.FLED)
            return resolution, None

        resolution.messages.append(f"{character.name} fails to escape.")
        session.add_log("player", resolution.messages[-1], event_type="flee", payload={"chance": chance})

        # Free swing, no roll and no resistance.
        counter_damage = math.floor(monster.damage * FLEE_COUNTER_DAMAGE_FACTOR)
        counter = SubResolution(
            actor="monster",
            action="counter_attack",
            hit=True,
            damage=session.damage_character(counter_damage),
            damage_type="physical",
        )
        counter.messages.append(f"{monster.name} strikes as you turn for {counter.damage}.")
        session.add_log("monster", counter.messages[-1], event_type="counter_attack", payload={"damage": counter.damage})
        return resolution, counter

    def _execute_end_turn(self, session: CombatSession) -> Tuple[SubResolution, bool]:
        advanced = session.economy.end_turn()
        resolution = SubResolution(actor="player", action=IntentType.END_TURN.value)
        resolution.messages.append(f"{session.character.name} ends the turn.")
        session.add_log("player", resolution.messages[-1], event_type="end_turn")
        return resolution, advanced

    # ============================================
    # Round / end handling
    # ============================================

    def _start_next_round(self, session: CombatSession) -> None:
        session.economy.start_player_turn()
        session.armed_riders.clear()
        session.current_round += 1

    def _check_combat_end(self, session: CombatSession, monster_acted: bool) -> None:
        if session.is_ended:
            return
        character_down = session.character.current_health <= 0
        monster_down = session.monster.health <= 0
        if monster_acted and character_down:
            self._end_combat(session, CombatOutcome.DEFEAT)
        elif monster_down:
            self._end_combat(session, CombatOutcome.VICTORY)
        elif character_down:
            self._end_combat(session, CombatOutcome.DEFEAT)

    def _end_combat(self, session: CombatSession, outcome: CombatOutcome) -> None:
        session.outcome = outcome
        session.economy.end(outcome)
        if outcome == CombatOutcome.VICTORY:
            session.reward = self._calculate_rewards(session)
        session.add_log(
            "system",
            f"Combat ended: {outcome.value}",
            event_type="combat_end",
            payload={"reward": session.reward.to_dict() if session.reward else None},
        )
        logger.info("[%s] combat ended: %s after %d rounds", session.combat_id, outcome.value, session.current_round)

    def _calculate_rewards(self, session: CombatSession) -> RewardRecord:
        monster = session.monster
        defaults = default_base_rewards(monster.level, monster.tier)
        base_xp = monster.experience_reward if monster.experience_reward is not None else defaults["experience"]
        base_gold = monster.gold_reward if monster.gold_reward is not None else defaults["gold"]
        return scale_rewards(
            base_xp,
            base_gold,
            monster.level,
            monster.tier,
            current_level=session.character.level,
            current_xp=session.character.experience,
            thresholds=self.data.xp_threshold,
        )
