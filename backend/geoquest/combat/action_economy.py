"""
Action economy state machine

PLAYER_TURN(action_used, bonus_action_used) -> MONSTER_TURN -> PLAYER_TURN ...
and ENDED once an outcome is reached. Rejections raise CombatRuleError and
never change state.
"""
from enum import Enum
from typing import Callable, Optional

from .models.combat_session import CombatOutcome
from .models.errors import CombatErrorKind, CombatRuleError


class TurnPhase(str, Enum):
    """Whose turn it is"""

    PLAYER_TURN = "player_turn"
    MONSTER_TURN = "monster_turn"
    ENDED = "ended"


class SlotType(str, Enum):
    """Which per-round slot an intent spends"""

    ACTION = "action"
    BONUS_ACTION = "bonus_action"
    FREE = "free"


class ActionEconomy:
    """
    Per-round action / bonus action bookkeeping

    bonus_option_check is asked after each action to decide whether the round
    can still continue; the engine wires it to the session's class abilities.
    """

    def __init__(self, has_bonus_option: Optional[Callable[[], bool]] = None):
        self.phase = TurnPhase.PLAYER_TURN
        self.action_used = False
        self.bonus_action_used = False
        self.outcome = CombatOutcome.NONE
        self.bonus_option_check = has_bonus_option or (lambda: False)

    # ============================================
    # Queries
    # ============================================

    @property
    def is_player_turn(self) -> bool:
        return self.phase == TurnPhase.PLAYER_TURN

    def require(self, slot: SlotType) -> None:
        """
        Check a slot is free without spending it.

        Raises:
            CombatRuleError: ACTION_ALREADY_USED / BONUS_ACTION_ALREADY_USED,
                or SESSION_TERMINATED after the encounter ended
        """
        if self.phase == TurnPhase.ENDED:
            raise CombatRuleError(CombatErrorKind.SESSION_TERMINATED, "combat already ended")
        if slot == SlotType.BONUS_ACTION:
            if self.bonus_action_used:
                raise CombatRuleError(
                    CombatErrorKind.BONUS_ACTION_ALREADY_USED,
                    "bonus action already used this round",
                )
            return
        # FREE riders still need the action that carries them.
        if self.action_used:
            raise CombatRuleError(CombatErrorKind.ACTION_ALREADY_USED, "action already used this round")

    # ============================================
    # Transitions
    # ============================================

    def spend(self, slot: SlotType) -> bool:
        """
        Spend a slot and advance if the round is over.

        Returns:
            bool: True when the phase moved to MONSTER_TURN
        """
        self.require(slot)
        if slot == SlotType.ACTION:
            self.action_used = True
            if not self.bonus_action_used and self.bonus_option_check():
                return False
            return self._to_monster_turn()
        if slot == SlotType.BONUS_ACTION:
            self.bonus_action_used = True
            if self.action_used:
                return self._to_monster_turn()
        return False

    def reopen_action(self) -> None:
        """Action Surge: re-open the action slot within the current round."""
        if self.phase != TurnPhase.PLAYER_TURN:
            raise CombatRuleError(CombatErrorKind.SESSION_TERMINATED, "not the player's turn")
        self.action_used = False

    def end_turn(self) -> bool:
        """Explicit end turn, always legal during the player's turn."""
        if self.phase == TurnPhase.ENDED:
            raise CombatRuleError(CombatErrorKind.SESSION_TERMINATED, "combat already ended")
        return self._to_monster_turn()

    def start_player_turn(self) -> None:
        """Called after the single monster decision of the round."""
        if self.phase == TurnPhase.ENDED:
            return
        self.phase = TurnPhase.PLAYER_TURN
        self.action_used = False
        self.bonus_action_used = False

    def end(self, outcome: CombatOutcome) -> None:
        self.phase = TurnPhase.ENDED
        self.outcome = outcome

    def _to_monster_turn(self) -> bool:
        self.phase = TurnPhase.MONSTER_TURN
        return True
