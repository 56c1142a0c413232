import pytest

from geoquest.combat import monster_abilities
from geoquest.combat.monster_abilities import (
    MONSTER_ABILITIES,
    get_monster_abilities,
    list_rosters,
    normalize_monster_key,
    register_roster,
    resolve_monster_type,
)


@pytest.fixture
def isolated_rosters(monkeypatch):
    monkeypatch.setattr(monster_abilities, "MONSTER_ABILITIES", dict(MONSTER_ABILITIES))


def test_normalize_monster_key_strips_accents():
    assert normalize_monster_key("Dragão Jovem") == "dragao_jovem"
    assert normalize_monster_key("  Goblin-Chief ") == "goblin_chief"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("goblin", "goblin"),
        ("Goblin Chief", "goblin"),
        ("Esqueleto", "skeleton"),
        ("Esqueleto Guerreiro", "skeleton"),
        ("Giant Spider", "spider_giant"),
        ("Aranha Gigante", "spider_giant"),
        ("Cave Spider", "spider"),
        ("Dragão Jovem", "dragon_young"),
        ("Beholder", ""),
        ("Pirate", ""),
        ("Dark Sorcerer", ""),
        ("Combat Dummy", ""),
        ("Acrobat", ""),
        ("Vampire Bat", "bat"),
    ],
)
def test_resolve_monster_type(name, expected):
    assert resolve_monster_type(name) == expected


def test_unknown_monster_gets_basic_attack():
    abilities = get_monster_abilities("Beholder")

    assert [a.id for a in abilities] == ["basic_attack"]
    assert abilities[0].damage is None


def test_every_builtin_roster_is_valid():
    for monster_type in MONSTER_ABILITIES:
        abilities = get_monster_abilities(monster_type)
        ids = [a.id for a in abilities]
        assert abilities, monster_type
        assert len(ids) == len(set(ids)), monster_type


def test_rosters_are_returned_as_fresh_objects():
    first = get_monster_abilities("troll")
    first[0].cooldown = 99

    assert get_monster_abilities("troll")[0].cooldown != 99


def test_roster_order_is_preserved():
    assert [a.id for a in get_monster_abilities("goblin")] == ["goblin_retreat", "sneaky_stab"]


def test_register_roster(isolated_rosters):
    parsed = register_roster(
        "Mimic",
        [{"id": "adhesive_grab", "name": "Adhesive Grab", "type": "attack", "damage": "2d6"}],
    )

    assert [a.id for a in parsed] == ["adhesive_grab"]
    assert list_rosters()["mimic"] == ["adhesive_grab"]
    assert [a.id for a in get_monster_abilities("Treasure Mimic")] == ["adhesive_grab"]


@pytest.mark.parametrize(
    "monster_type, abilities",
    [
        ("", [{"id": "a", "name": "A"}]),
        ("mimic", []),
        ("mimic", [{"id": "a", "name": "A"}, {"id": "a", "name": "Again"}]),
        ("mimic", [{"id": "a", "name": "A", "damage": "lots"}]),
    ],
)
def test_register_roster_rejects_invalid(isolated_rosters, monster_type, abilities):
    with pytest.raises(ValueError):
        register_roster(monster_type, abilities)
    assert "mimic" not in list_rosters()
