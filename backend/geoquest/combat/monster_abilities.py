"""
Monster ability rosters

Rosters are plain dicts keyed by monster type, validated into Ability objects
on lookup. Roster order is the tie-break order of the behaviour policy.
"""
import logging
import re
import unicodedata
from typing import Any, Dict, List

from .models.ability import Ability

logger = logging.getLogger(__name__)

BASIC_ATTACK: Dict[str, Any] = {
    "id": "basic_attack",
    "name": "Attack",
    "description": "A plain strike",
    "type": "attack",
    "cooldown": 0,
    "use_chance": 1.0,
}

MONSTER_ABILITIES: Dict[str, List[Dict[str, Any]]] = {
    "goblin": [
        {
            "id": "goblin_retreat",
            "name": "Cowardly Retreat",
            "description": "Falls back and patches itself up",
            "type": "heal",
            "cooldown": 4,
            "use_chance": 0.6,
            "max_health": 0.5,
            "healing": {"dice": "1d6"},
        },
        {
            "id": "sneaky_stab",
            "name": "Sneaky Stab",
            "description": "A quick stab at an exposed spot",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.4,
            "damage": {"dice": "1d6+2", "type": "piercing"},
        },
    ],
    "skeleton": [
        {
            "id": "bone_shield",
            "name": "Bone Shield",
            "description": "Raises a shield of rattling bones",
            "type": "buff",
            "cooldown": 4,
            "use_chance": 0.3,
            "max_health": 0.6,
            "effect": {"type": "shield", "duration": 2, "value": 2},
        },
        {
            "id": "rusty_slash",
            "name": "Rusty Slash",
            "description": "A jagged cut that keeps bleeding",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.4,
            "damage": {"dice": "1d8", "type": "slashing"},
            "effect": {"type": "bleed", "duration": 2, "value": 1},
        },
    ],
    "wolf": [
        {
            "id": "pack_howl",
            "name": "Pack Howl",
            "description": "Howls itself into a frenzy",
            "type": "buff",
            "cooldown": 5,
            "use_chance": 0.3,
            "effect": {"type": "enrage", "duration": 3, "value": 2},
        },
        {
            "id": "savage_bite",
            "name": "Savage Bite",
            "description": "Sinks its fangs in",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.5,
            "damage": {"dice": "2d4+1", "type": "piercing"},
        },
    ],
    "rat": [
        {
            "id": "diseased_bite",
            "name": "Diseased Bite",
            "description": "A filthy bite",
            "type": "attack",
            "cooldown": 3,
            "use_chance": 0.4,
            "damage": {"dice": "1d4", "type": "piercing"},
            "effect": {"type": "poison", "duration": 2, "value": 1},
        },
        {
            "id": "scurry",
            "name": "Scurry",
            "description": "Darts around, hard to pin down",
            "type": "buff",
            "cooldown": 3,
            "use_chance": 0.3,
            "max_health": 0.5,
            "effect": {"type": "evasion", "duration": 1, "value": 2},
        },
    ],
    "zombie": [
        {
            "id": "undead_fortitude",
            "name": "Undead Fortitude",
            "description": "Refuses to stay down",
            "type": "heal",
            "cooldown": 5,
            "use_chance": 0.5,
            "max_health": 0.3,
            "healing": {"dice": "2d6"},
        },
        {
            "id": "grab",
            "name": "Rotting Grab",
            "description": "Grabs and squeezes",
            "type": "debuff",
            "cooldown": 3,
            "use_chance": 0.35,
            "damage": {"dice": "1d6", "type": "bludgeoning"},
            "effect": {"type": "restrained", "duration": 1, "value": 0},
        },
    ],
    "spider": [
        {
            "id": "web",
            "name": "Web",
            "description": "Spits a sticky web",
            "type": "debuff",
            "cooldown": 4,
            "use_chance": 0.3,
            "effect": {"type": "restrained", "duration": 2, "value": 0},
        },
        {
            "id": "venom_bite",
            "name": "Venom Bite",
            "description": "A venomous bite",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.4,
            "damage": {"dice": "1d6", "type": "poison"},
        },
    ],
    "spider_giant": [
        {
            "id": "poison_bite",
            "name": "Poison Bite",
            "description": "Venom that burns in the veins",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.5,
            "damage": {"dice": "1d8+2", "type": "piercing"},
            "effect": {"type": "poison", "duration": 3, "value": 2},
        },
        {
            "id": "web_spray",
            "name": "Web Spray",
            "description": "Covers the area in webbing",
            "type": "debuff",
            "cooldown": 4,
            "use_chance": 0.3,
            "effect": {"type": "restrained", "duration": 2, "value": 0},
        },
    ],
    "troll": [
        {
            "id": "regeneration",
            "name": "Regeneration",
            "description": "Wounds knit shut before your eyes",
            "type": "heal",
            "cooldown": 2,
            "use_chance": 0.7,
            "max_health": 0.7,
            "healing": {"dice": "2d8+5"},
        },
        {
            "id": "crushing_blow",
            "name": "Crushing Blow",
            "description": "Two-handed overhead smash",
            "type": "attack",
            "cooldown": 3,
            "use_chance": 0.4,
            "damage": {"dice": "2d10+4", "type": "bludgeoning"},
            "effect": {"type": "dazed", "duration": 1, "value": 0},
        },
    ],
    "dragon_young": [
        {
            "id": "fire_breath",
            "name": "Fire Breath",
            "description": "A cone of roaring flame",
            "type": "spell",
            "cooldown": 4,
            "use_chance": 0.6,
            "damage": {"dice": "6d6", "type": "fire"},
            "effect": {"type": "burn", "duration": 2, "value": 3},
        },
        {
            "id": "tail_swipe",
            "name": "Tail Swipe",
            "description": "A sweeping tail strike",
            "type": "attack",
            "cooldown": 1,
            "use_chance": 0.4,
            "damage": {"dice": "2d8+3", "type": "bludgeoning"},
        },
        {
            "id": "frightful_presence",
            "name": "Frightful Presence",
            "description": "A terrifying roar",
            "type": "debuff",
            "cooldown": 5,
            "use_chance": 0.3,
            "effect": {"type": "frightened", "duration": 2, "value": 0},
        },
    ],
    "orc": [
        {
            "id": "aggressive_charge",
            "name": "Aggressive Charge",
            "description": "Charges headlong",
            "type": "attack",
            "cooldown": 3,
            "use_chance": 0.4,
            "damage": {"dice": "1d12+3", "type": "slashing"},
        },
        {
            "id": "war_cry",
            "name": "War Cry",
            "description": "Bellows and fights harder",
            "type": "buff",
            "cooldown": 5,
            "use_chance": 0.3,
            "max_health": 0.5,
            "effect": {"type": "enrage", "duration": 3, "value": 3},
        },
    ],
    "bandit": [
        {
            "id": "dirty_trick",
            "name": "Dirty Trick",
            "description": "Sand in the eyes",
            "type": "debuff",
            "cooldown": 3,
            "use_chance": 0.35,
            "effect": {"type": "blinded", "duration": 1, "value": 0},
        },
        {
            "id": "dual_strike",
            "name": "Dual Strike",
            "description": "Two quick blade strikes",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.4,
            "damage": {"dice": "2d4+2", "type": "slashing"},
        },
    ],
    "slime": [
        {
            "id": "acid_splash",
            "name": "Acid Splash",
            "description": "Sprays corrosive goo",
            "type": "spell",
            "cooldown": 2,
            "use_chance": 0.4,
            "damage": {"dice": "1d6", "type": "acid"},
        },
        {
            "id": "split",
            "name": "Split",
            "description": "Splits off a piece of itself",
            "type": "special",
            "cooldown": 6,
            "use_chance": 0.5,
            "max_health": 0.5,
            "healing": {"dice": "1d8"},
            "effect": {"type": "split", "duration": 0, "value": 1},
        },
    ],
    "ghost": [
        {
            "id": "life_drain",
            "name": "Life Drain",
            "description": "Drains the warmth from the living",
            "type": "spell",
            "cooldown": 3,
            "use_chance": 0.5,
            "damage": {"dice": "2d6", "type": "necrotic"},
        },
        {
            "id": "horrifying_visage",
            "name": "Horrifying Visage",
            "description": "Reveals its true face",
            "type": "debuff",
            "cooldown": 4,
            "use_chance": 0.3,
            "effect": {"type": "frightened", "duration": 2, "value": 0},
        },
    ],
    "bat": [
        {
            "id": "blood_drain",
            "name": "Blood Drain",
            "description": "Feeds on the wound it opens",
            "type": "attack",
            "cooldown": 2,
            "use_chance": 0.5,
            "damage": {"dice": "1d4+1", "type": "piercing"},
            "effect": {"type": "bleed", "duration": 2, "value": 1},
        },
    ],
}

# Catalogue names in the Portuguese locale.
MONSTER_ALIASES: Dict[str, str] = {
    "esqueleto": "skeleton",
    "lobo": "wolf",
    "rato": "rat",
    "ratazana": "rat",
    "zumbi": "zombie",
    "aranha_gigante": "spider_giant",
    "giant_spider": "spider_giant",
    "aranha": "spider",
    "dragao_jovem": "dragon_young",
    "young_dragon": "dragon_young",
    "dragao": "dragon_young",
    "dragon": "dragon_young",
    "orque": "orc",
    "bandido": "bandit",
    "gosma": "slime",
    "fantasma": "ghost",
    "morcego": "bat",
}


def normalize_monster_key(name: str) -> str:
    """'Dragão Jovem' -> 'dragao_jovem'"""
    text = unicodedata.normalize("NFKD", str(name or ""))
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower().strip()
    return re.sub(r"[^a-z0-9]+", "_", text).strip("_")


def resolve_monster_type(name: str) -> str:
    """
    Map a monster name or type to a roster key.

    Tries the exact key, then aliases, then the longest roster key or alias
    found as whole words in the name ("Cave Spider" but not "Pirate").
    Returns "" when nothing matches.
    """
    key = normalize_monster_key(name)
    if not key:
        return ""
    if key in MONSTER_ABILITIES:
        return key
    if key in MONSTER_ALIASES:
        return MONSTER_ALIASES[key]

    padded = f"_{key}_"
    candidates = [(k, k) for k in MONSTER_ABILITIES] + list(MONSTER_ALIASES.items())
    for fragment, roster_key in sorted(candidates, key=lambda item: len(item[0]), reverse=True):
        if f"_{fragment}_" in padded:
            return roster_key
    return ""


def get_monster_abilities(name_or_type: str) -> List[Ability]:
    """
    Roster for a monster, falling back to a single basic_attack.

    Returns:
        List[Ability]: fresh objects in roster order
    """
    roster_key = resolve_monster_type(name_or_type)
    if not roster_key:
        logger.debug("No roster for %r, using basic_attack", name_or_type)
        return [Ability.from_dict(BASIC_ATTACK)]
    return [Ability.from_dict(raw) for raw in MONSTER_ABILITIES[roster_key]]


def register_roster(monster_type: str, abilities: List[Dict[str, Any]]) -> List[Ability]:
    """
    Add or replace a roster at runtime.

    Raises:
        ValueError: empty key, empty roster, duplicate ids or an invalid
            ability; the registry is left untouched
    """
    key = normalize_monster_key(monster_type)
    if not key:
        raise ValueError("monster_type is required")
    if not abilities:
        raise ValueError(f"roster for {key} is empty")

    parsed = [Ability.from_dict(raw) for raw in abilities]
    ids = [ability.id for ability in parsed]
    if len(set(ids)) != len(ids):
        raise ValueError(f"roster for {key} has duplicate ability ids")

    MONSTER_ABILITIES[key] = [ability.to_dict() for ability in parsed]
    logger.info("Registered monster roster %s (%d abilities)", key, len(parsed))
    return parsed


def list_rosters() -> Dict[str, List[str]]:
    return {key: [raw["id"] for raw in roster] for key, roster in MONSTER_ABILITIES.items()}
