"""
Combat MCP server

Exposes the combat engine as MCP tools.
"""
import argparse
import json
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from geoquest.config import configure_logging, settings

from .combat_engine import CombatEngine
from .models.action import Intent, IntentType
from .monster_abilities import get_monster_abilities, list_rosters, register_roster

combat_mcp = FastMCP(
    name="GeoQuest Combat MCP",
    instructions="""
GeoQuest combat resolution server

Turn-based, dice driven, no LLM in the loop.

Flow:
1. start_combat - create a session from a character and a monster snapshot
2. submit_intent - attack / cast_spell / use_ability / flee / end_turn
3. repeat 2 until outcome is victory, defeat or fled
4. end_combat - discard the session once the result is persisted
""",
)

# Global combat engine
combat_engine = CombatEngine()


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


# ============================================
# MCP tools
# ============================================


@combat_mcp.tool()
async def start_combat(
    character: Dict[str, Any],
    monster: Dict[str, Any],
    seed: Optional[int] = None,
    scale_monster: bool = False,
) -> str:
    """
    Start an encounter.

    Args:
        character: character snapshot (attributes, level, health, armor_class,
            character_class, known_spell_ids, weapon_damage, ...)
        monster: monster snapshot (name, monster_type, tier, level, health,
            max_health, damage, armor)
        seed: optional RNG seed for a reproducible encounter
        scale_monster: scale the monster to the character's level and tier

    Returns:
        str: JSON with combat_id and the initial state
    """
    try:
        session = combat_engine.new_session(character, monster, seed=seed, scale=scale_monster)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    return _dumps({"combat_id": session.combat_id, "state": session.to_dict()})


@combat_mcp.tool()
async def submit_intent(
    combat_id: str,
    intent_type: str,
    spell_id: Optional[str] = None,
    ability_id: Optional[str] = None,
) -> str:
    """
    Resolve one player intent.

    Args:
        combat_id: session id from start_combat
        intent_type: attack | cast_spell | use_ability | flee | end_turn
        spell_id: required for cast_spell
        ability_id: required for use_ability

    Returns:
        str: JSON resolution record, or {"error": kind, "message": ...}
    """
    try:
        intent = Intent(IntentType(intent_type), spell_id=spell_id, ability_id=ability_id)
        result = combat_engine.submit_intent(combat_id, intent)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    # ResolutionRecord and CombatError both serialize through to_dict()
    return _dumps(result.to_dict())


@combat_mcp.tool()
async def get_combat_state(combat_id: str) -> str:
    """
    Current state of a session, including usable spells and abilities.
    """
    try:
        session = combat_engine.get_session(combat_id)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    return _dumps(session.to_dict())


@combat_mcp.tool()
async def end_combat(combat_id: str) -> str:
    """
    Discard a session after its result has been persisted.
    """
    removed = combat_engine.discard_session(combat_id)
    if not removed:
        return _dumps({"error": f"Combat session not found: {combat_id}"})
    return _dumps({"combat_id": combat_id, "discarded": True})


@combat_mcp.tool()
async def list_monster_abilities(monster: Optional[str] = None) -> str:
    """
    List rosters, or the resolved roster for one monster name/type.
    """
    if monster:
        abilities = get_monster_abilities(monster)
        return _dumps({"monster": monster, "abilities": [a.to_dict() for a in abilities]})
    return _dumps({"rosters": list_rosters()})


@combat_mcp.tool()
async def register_monster_roster(monster_type: str, abilities: List[Dict[str, Any]]) -> str:
    """
    Register or replace a monster ability roster at runtime.
    """
    try:
        parsed = register_roster(monster_type, abilities)
    except ValueError as exc:
        return _dumps({"error": str(exc)})
    return _dumps({"monster_type": monster_type, "abilities": [a.id for a in parsed]})


# ============================================
# Server startup
# ============================================


def run_combat_mcp_server(transport: str = "stdio"):
    """
    Start the combat MCP server.

    Args:
        transport: stdio / streamable-http / sse
    """
    combat_mcp.run(transport=transport)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Combat MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default=settings.mcp_transport,
        help="Transport protocol",
    )
    parser.add_argument("--host", default=settings.mcp_host, help="Bind host for HTTP transports")
    parser.add_argument("--port", type=int, default=settings.mcp_port, help="Bind port for HTTP transports")
    args = parser.parse_args()

    configure_logging()
    combat_mcp.settings.host = args.host
    combat_mcp.settings.port = args.port
    run_combat_mcp_server(args.transport)
