"""
Combat API routes.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from geoquest.combat.combat_engine import CombatEngine
from geoquest.combat.models.errors import CombatError, CombatErrorKind
from geoquest.dependencies import get_combat_engine
from geoquest.models.combat_api import (
    CombatIntentRequest,
    CombatSessionCreateRequest,
    CombatSessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/combat", tags=["Combat"])

_ERROR_STATUS: Dict[CombatErrorKind, int] = {
    CombatErrorKind.ACTION_ALREADY_USED: 409,
    CombatErrorKind.BONUS_ACTION_ALREADY_USED: 409,
    CombatErrorKind.ABILITY_EXHAUSTED: 409,
    CombatErrorKind.NO_SPELL_SLOTS: 409,
    CombatErrorKind.SPELL_NOT_AVAILABLE: 409,
    CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL: 422,
    CombatErrorKind.INVALID_DICE_NOTATION: 422,
    CombatErrorKind.SESSION_BUSY: 429,
    CombatErrorKind.SESSION_TERMINATED: 410,
}


def _map_combat_error_to_http(error: CombatError) -> HTTPException:
    return HTTPException(
        status_code=_ERROR_STATUS.get(error.kind, 400),
        detail=error.to_dict(),
    )


@router.post("/sessions")
async def create_combat_session(
    payload: CombatSessionCreateRequest,
    engine: CombatEngine = Depends(get_combat_engine),
) -> CombatSessionResponse:
    """Start an encounter"""
    try:
        session = engine.new_session(
            payload.character,
            payload.monster,
            seed=payload.seed,
            scale=payload.scale_monster,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return CombatSessionResponse(combat_id=session.combat_id, state=session.to_dict())


@router.post("/sessions/{combat_id}/intents")
async def submit_combat_intent(
    combat_id: str,
    payload: CombatIntentRequest,
    engine: CombatEngine = Depends(get_combat_engine),
) -> Dict[str, Any]:
    """Resolve one player intent"""
    try:
        result = engine.submit_intent(combat_id, payload.to_intent())
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(result, CombatError):
        logger.debug("[%s] intent rejected: %s", combat_id, result.kind.value)
        raise _map_combat_error_to_http(result)
    return result.to_dict()


@router.get("/sessions/{combat_id}")
async def get_combat_session(
    combat_id: str,
    engine: CombatEngine = Depends(get_combat_engine),
) -> CombatSessionResponse:
    """Current session state"""
    try:
        session = engine.get_session(combat_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return CombatSessionResponse(combat_id=session.combat_id, state=session.to_dict())


@router.delete("/sessions/{combat_id}")
async def discard_combat_session(
    combat_id: str,
    engine: CombatEngine = Depends(get_combat_engine),
) -> Dict[str, Any]:
    """Discard a session once its result is persisted"""
    if not engine.discard_session(combat_id):
        raise HTTPException(status_code=404, detail=f"Combat session not found: {combat_id}")
    return {"combat_id": combat_id, "discarded": True}
