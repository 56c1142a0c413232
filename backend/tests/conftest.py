from typing import Iterable, Optional

import pytest

from geoquest.combat.combat_engine import CombatEngine
from geoquest.combat.data_repository import CombatDataRepository


class ScriptedRng:
    """Random source that replays fixed draws; falls back to defaults when set."""

    def __init__(
        self,
        ints: Iterable[int] = (),
        floats: Iterable[float] = (),
        default_int: Optional[int] = None,
        default_float: Optional[float] = None,
    ) -> None:
        self.ints = list(ints)
        self.floats = list(floats)
        self.default_int = default_int
        self.default_float = default_float
        self.int_calls = 0
        self.float_calls = 0

    def randint(self, a: int, b: int) -> int:
        self.int_calls += 1
        if self.ints:
            value = self.ints.pop(0)
        elif self.default_int is not None:
            value = self.default_int
        else:
            raise AssertionError(f"unexpected randint({a}, {b})")
        assert a <= value <= b, f"scripted {value} outside {a}..{b}"
        return value

    def random(self) -> float:
        self.float_calls += 1
        if self.floats:
            return self.floats.pop(0)
        if self.default_float is not None:
            return self.default_float
        raise AssertionError("unexpected random()")


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture
def engine():
    return CombatEngine(data=CombatDataRepository(), session_ttl_seconds=60, default_seed=7)


@pytest.fixture
def character_factory():
    def _build(**overrides):
        data = {
            "name": "Aria",
            "strength": 10,
            "dexterity": 10,
            "level": 1,
            "current_health": 30,
            "max_health": 30,
            "armor_class": 12,
            "character_class": "warlock",
        }
        data.update(overrides)
        return data

    return _build


@pytest.fixture
def monster_factory():
    def _build(**overrides):
        data = {
            "name": "Dummy",
            "tier": "common",
            "level": 1,
            "health": 30,
            "max_health": 30,
            "damage": 5,
            "armor": 10,
        }
        data.update(overrides)
        return data

    return _build
