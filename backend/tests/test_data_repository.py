import json

from geoquest.combat.data_repository import CombatDataRepository
from geoquest.combat.models.combatant import CharacterClass


def test_builtin_tables_without_data_dir():
    repo = CombatDataRepository()

    assert "fireball" in repo.spell_table()
    assert [a.id for a in repo.monster_abilities("goblin")] == ["goblin_retreat", "sneaky_stab"]
    assert list(repo.class_abilities(CharacterClass.FIGHTER, 1)) == ["action_surge", "second_wind"]
    assert repo.xp_threshold(1) == 300


def test_overrides_extend_tables_and_skip_invalid_entries(tmp_path):
    (tmp_path / "spells.json").write_text(
        json.dumps(
            [
                {"id": "frost_lance", "name": "Frost Lance", "level": 1, "classes": ["wizard"], "damage": {"dice": "2d6", "type": "cold"}},
                {"id": "broken", "name": "Broken", "classes": ["jester"]},
            ]
        ),
        encoding="utf-8",
    )
    (tmp_path / "monster_abilities.json").write_text(
        json.dumps(
            {
                "Goblin": [{"id": "war_cry", "name": "War Cry", "type": "buff", "effect": {"type": "enrage", "duration": 2, "value": 1}}],
                "imp": [{"id": "bad", "name": "Bad", "damage": "many"}],
            }
        ),
        encoding="utf-8",
    )

    repo = CombatDataRepository(str(tmp_path))

    assert "frost_lance" in repo.spell_table()
    assert "broken" not in repo.spell_table()
    assert [a.id for a in repo.monster_abilities("goblin")] == ["war_cry"]
    assert "imp" not in repo.monster_rosters
    # roster overrides come back as fresh objects
    repo.monster_abilities("goblin")[0].cooldown = 9
    assert repo.monster_abilities("goblin")[0].cooldown == 0


def test_unreadable_override_file_is_ignored(tmp_path):
    (tmp_path / "spells.json").write_text("{not json", encoding="utf-8")

    repo = CombatDataRepository(str(tmp_path))

    assert repo.spell_table().keys() == CombatDataRepository().spell_table().keys()


def test_engine_uses_repository_overrides(tmp_path, character_factory, monster_factory, scripted_rng):
    from geoquest.combat.combat_engine import CombatEngine

    (tmp_path / "monster_abilities.json").write_text(
        json.dumps({"dummy": [{"id": "slam", "name": "Slam", "type": "attack", "damage": "1d4"}]}),
        encoding="utf-8",
    )
    engine = CombatEngine(data=CombatDataRepository(str(tmp_path)))

    session = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())

    assert [a.id for a in session.monster_abilities] == ["slam"]
    assert session.monster_cooldowns == {"slam": 0}


def test_injected_xp_thresholds():
    repo = CombatDataRepository(xp_thresholds={1: 100, 2: 250})

    assert repo.xp_threshold(1) == 100
    assert repo.xp_threshold(2) == 250
    assert repo.xp_threshold(3) is None


def test_rewards_level_up_against_injected_thresholds(character_factory, monster_factory, scripted_rng):
    from geoquest.combat.combat_engine import CombatEngine
    from geoquest.combat.models.action import Intent

    engine = CombatEngine(data=CombatDataRepository(xp_thresholds={1: 100, 2: 200, 3: 1000}))
    session = engine.new_session(
        character_factory(strength=16),
        monster_factory(health=5, experience_reward=300),
        rng=scripted_rng(ints=[20, 8]),
    )

    record = engine.submit_intent(session.combat_id, Intent.attack())

    # 330 xp clears the injected level 1 and 2 thresholds but not level 3
    assert record.reward.experience == 330
    assert record.reward.new_level == 3
