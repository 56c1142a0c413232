"""
FastAPI dependencies.
"""
from functools import lru_cache

from geoquest.combat.combat_engine import CombatEngine


@lru_cache()
def get_combat_engine() -> CombatEngine:
    return CombatEngine()
