import pytest

from geoquest.combat.class_abilities import build_class_abilities, has_bonus_option, is_undead
from geoquest.combat.models.action import Intent
from geoquest.combat.models.combatant import CharacterClass
from geoquest.combat.models.errors import CombatError, CombatErrorKind


@pytest.mark.parametrize(
    "character_class, level, ability_id, uses",
    [
        (CharacterClass.BARBARIAN, 1, "rage", 2),
        (CharacterClass.BARBARIAN, 8, "rage", 4),
        (CharacterClass.MONK, 1, "flurry_of_blows", 2),
        (CharacterClass.MONK, 6, "flurry_of_blows", 6),
        (CharacterClass.CLERIC, 1, "turn_undead", 1),
        (CharacterClass.CLERIC, 5, "turn_undead", 2),
        (CharacterClass.FIGHTER, 3, "action_surge", 1),
        (CharacterClass.WIZARD, 3, "arcane_recovery", 1),
    ],
)
def test_use_counts_scale_with_level(character_class, level, ability_id, uses):
    abilities = build_class_abilities(character_class, level)

    assert abilities[ability_id].max_uses == uses
    assert abilities[ability_id].uses_remaining == uses


def test_level_derived_dice():
    assert build_class_abilities(CharacterClass.ROGUE, 5)["sneak_attack"].damage.dice == "3d6"
    assert build_class_abilities(CharacterClass.FIGHTER, 4)["second_wind"].healing.dice == "1d10+4"
    assert build_class_abilities(CharacterClass.RANGER, 1)["hunters_mark"].is_unlimited


def test_classes_without_abilities():
    for character_class in (CharacterClass.BARD, CharacterClass.DRUID, CharacterClass.SORCERER, CharacterClass.WARLOCK):
        assert build_class_abilities(character_class, 10) == {}


def test_rage_adds_damage_and_closes_bonus_option(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[15, 5], floats=[0.0], default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(character_class="barbarian"), monster_factory(), rng=rng)

    rage = engine.submit_intent(session.combat_id, Intent.use_ability("rage"))
    assert session.raging is True
    assert has_bonus_option(session) is False
    assert rage.monster is None

    attack = engine.submit_intent(session.combat_id, Intent.attack())
    assert attack.player.damage == 5 + 2
    assert attack.monster is not None
    assert session.class_abilities["rage"].uses_remaining == 1


def test_sneak_attack_rides_on_the_next_hit(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[15, 5, 3], floats=[0.0], default_int=1, default_float=0.0)
    session = engine.new_session(character_factory(character_class="rogue"), monster_factory(), rng=rng)
    combat_id = session.combat_id

    armed = engine.submit_intent(combat_id, Intent.use_ability("sneak_attack"))
    assert armed.action_used is False
    again = engine.submit_intent(combat_id, Intent.use_ability("sneak_attack"))
    assert isinstance(again, CombatError)
    assert again.kind == CombatErrorKind.ACTION_ALREADY_USED

    attack = engine.submit_intent(combat_id, Intent.attack())
    assert attack.player.damage == 8
    assert attack.monster_health == 22
    assert session.armed_riders == {}


def test_divine_smite_dice_are_not_doubled_on_critical(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[20, 6, 4, 5], default_int=1, default_float=0.0)
    session = engine.new_session(character_factory(character_class="paladin"), monster_factory(), rng=rng)

    engine.submit_intent(session.combat_id, Intent.use_ability("divine_smite"))
    attack = engine.submit_intent(session.combat_id, Intent.attack())

    assert attack.player.damage == 12 + 9
    assert attack.monster_health == 9


def test_missed_attack_wastes_armed_rider(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[1], default_int=1, default_float=0.0)
    session = engine.new_session(character_factory(character_class="rogue"), monster_factory(), rng=rng)

    engine.submit_intent(session.combat_id, Intent.use_ability("sneak_attack"))
    attack = engine.submit_intent(session.combat_id, Intent.attack())

    assert attack.player.hit is False
    assert attack.monster_health == 30
    assert session.armed_riders == {}


def test_hunters_mark_adds_damage_to_every_hit(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[15, 4, 6, 1, 15, 2, 3], floats=[0.0, 0.0, 0.0], default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(character_class="ranger"), monster_factory(), rng=rng)
    combat_id = session.combat_id

    engine.submit_intent(combat_id, Intent.use_ability("hunters_mark"))
    first = engine.submit_intent(combat_id, Intent.attack())
    assert first.player.damage == 10
    assert first.monster is not None

    # mark is already up, so the attack alone ends the round
    second = engine.submit_intent(combat_id, Intent.attack())
    assert second.player.damage == 5
    assert second.monster is not None


def test_flurry_of_blows_makes_two_strikes(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[15, 3, 15, 2], floats=[0.0, 0.0])
    session = engine.new_session(character_factory(character_class="monk", dexterity=14), monster_factory(), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.use_ability("flurry_of_blows"))

    assert record.player.damage == (3 + 2) + (2 + 2)
    assert record.monster_health == 21
    assert record.bonus_action_used is True
    assert record.action_used is False
    assert session.class_abilities["flurry_of_blows"].uses_remaining == 1


def test_second_wind_heals(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[7])
    character = character_factory(character_class="fighter", level=2, current_health=5, max_health=20)
    session = engine.new_session(character, monster_factory(), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.use_ability("second_wind"))

    assert record.player.healing == 9
    assert record.character_health == 14


def test_turn_undead_skips_the_monster_turn(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng()
    session = engine.new_session(character_factory(character_class="cleric"), monster_factory(name="Skeleton"), rng=rng)
    assert is_undead(session)

    record = engine.submit_intent(session.combat_id, Intent.use_ability("turn_undead"))

    assert record.player.success is True
    assert record.monster.action == "skip"
    assert session.monster_effects == []
    assert rng.int_calls == 0 and rng.float_calls == 0

    exhausted = engine.submit_intent(session.combat_id, Intent.use_ability("turn_undead"))
    assert exhausted.kind == CombatErrorKind.ABILITY_EXHAUSTED


def test_turn_undead_on_living_monster_does_nothing(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.99)
    session = engine.new_session(character_factory(character_class="cleric"), monster_factory(name="Goblin"), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.use_ability("turn_undead"))

    assert record.player.success is False
    assert record.monster.action == "attack"


def test_arcane_recovery_restores_spent_slot(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    character = character_factory(character_class="wizard", level=3, known_spell_ids=["magic_missile"])
    session = engine.new_session(character, monster_factory(health=100, max_health=100), rng=rng)
    combat_id = session.combat_id

    cast = engine.submit_intent(combat_id, Intent.cast_spell("magic_missile"))
    assert cast.monster is None
    assert session.spellbook.remaining(1) == 3

    recovery = engine.submit_intent(combat_id, Intent.use_ability("arcane_recovery"))
    assert recovery.monster is not None
    assert session.spellbook.remaining(1) == 4
    assert session.spellbook.consumed == {1: 1}

    again = engine.submit_intent(combat_id, Intent.use_ability("arcane_recovery"))
    assert again.kind == CombatErrorKind.ABILITY_EXHAUSTED


def test_cantrip_without_spent_slots_passes_the_round(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    character = character_factory(character_class="wizard", level=3, known_spell_ids=["fire_bolt"])
    session = engine.new_session(character, monster_factory(health=100, max_health=100), rng=rng)

    assert has_bonus_option(session) is False

    record = engine.submit_intent(session.combat_id, Intent.cast_spell("fire_bolt"))

    assert record.monster is not None
    assert session.class_abilities["arcane_recovery"].uses_remaining == 1


def test_arcane_recovery_stops_being_an_option_once_slots_are_back(
    engine, character_factory, monster_factory, scripted_rng
):
    rng = scripted_rng(default_int=1, default_float=0.5)
    character = character_factory(character_class="wizard", level=5, known_spell_ids=["magic_missile"])
    session = engine.new_session(character, monster_factory(health=100, max_health=100), rng=rng)

    engine.submit_intent(session.combat_id, Intent.cast_spell("magic_missile"))
    assert has_bonus_option(session) is True

    session.spellbook.recover_slots(3)
    assert session.spellbook.consumed == {1: 1}
    assert has_bonus_option(session) is False
