import pytest

from geoquest.combat.action_economy import TurnPhase
from geoquest.combat.models.action import Intent
from geoquest.combat.models.combat_result import ResolutionRecord
from geoquest.combat.models.combat_session import CombatOutcome
from geoquest.combat.models.combatant import CombatantStats
from geoquest.combat.models.errors import CombatError, CombatErrorKind


def _assert_error(result, kind: CombatErrorKind):
    assert isinstance(result, CombatError), result
    assert result.kind == kind


def test_attack_until_victory(engine, character_factory, monster_factory, scripted_rng):
    # 20+8 crit for 22, monster fumbles, 20+8 crit again
    rng = scripted_rng(ints=[20, 8, 1, 20, 8], floats=[0.5])
    character = character_factory(strength=16, dexterity=14, armor_class=12)
    session = engine.new_session(character, monster_factory(), rng=rng)

    first = engine.submit_intent(session.combat_id, Intent.attack())
    assert isinstance(first, ResolutionRecord)
    assert first.player.damage == 22
    assert first.monster is not None and first.monster.hit is False
    assert first.monster_health == 8
    assert first.round == 2
    assert first.outcome == CombatOutcome.NONE

    second = engine.submit_intent(session.combat_id, Intent.attack())
    assert second.outcome == CombatOutcome.VICTORY
    assert second.monster is None
    assert second.monster_health == 0
    # common level 1 defaults: 35 xp / 13 gold, times 1.1
    assert second.reward.experience == 38
    assert second.reward.gold == 14
    assert second.reward.leveled_up is False
    assert second.is_terminal

    after = engine.submit_intent(session.combat_id, Intent.attack())
    _assert_error(after, CombatErrorKind.SESSION_TERMINATED)


def test_catalogue_rewards_override_defaults(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[20, 8])
    session = engine.new_session(
        character_factory(strength=16),
        monster_factory(health=5, experience_reward=300, gold_reward=10),
        rng=rng,
    )

    record = engine.submit_intent(session.combat_id, Intent.attack())

    assert record.outcome == CombatOutcome.VICTORY
    assert record.reward.experience == 330
    assert record.reward.gold == 11
    assert record.reward.leveled_up is True
    assert record.reward.new_level == 2


def test_spell_slots_run_out(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    character = character_factory(character_class="sorcerer", known_spell_ids=["magic_missile"])
    session = engine.new_session(character, monster_factory(health=100, max_health=100), rng=rng)

    for _ in range(2):
        record = engine.submit_intent(session.combat_id, Intent.cast_spell("magic_missile"))
        assert isinstance(record, ResolutionRecord)
        assert record.player.damage == 6

    health_before = session.monster.health
    rejected = engine.submit_intent(session.combat_id, Intent.cast_spell("magic_missile"))

    _assert_error(rejected, CombatErrorKind.NO_SPELL_SLOTS)
    assert session.spellbook.consumed == {1: 2}
    assert session.character.consumed_spell_slots_by_level == {1: 2}
    assert session.monster.health == health_before
    assert session.economy.action_used is False


def test_cantrip_is_always_castable(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(character_class="warlock"), monster_factory(health=100, max_health=100), rng=rng)

    for _ in range(4):
        assert isinstance(engine.submit_intent(session.combat_id, Intent.cast_spell("eldritch_blast")), ResolutionRecord)


def test_spell_rejections(engine, character_factory, monster_factory, scripted_rng):
    session = engine.new_session(character_factory(character_class="fighter"), monster_factory(), rng=scripted_rng())

    _assert_error(engine.submit_intent(session.combat_id, Intent.cast_spell("wish")), CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL)
    _assert_error(engine.submit_intent(session.combat_id, Intent.cast_spell("fire_bolt")), CombatErrorKind.SPELL_NOT_AVAILABLE)
    _assert_error(engine.submit_intent(session.combat_id, {"type": "cast_spell"}), CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL)
    _assert_error(engine.submit_intent(session.combat_id, Intent.use_ability("fireball")), CombatErrorKind.UNKNOWN_ABILITY_OR_SPELL)
    assert session.combat_log[-1].event_type == "combat_start"


def test_failed_flee_draws_one_counter_attack(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(floats=[0.99])
    session = engine.new_session(character_factory(), monster_factory(damage=7), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.flee())

    assert record.player.success is False
    assert record.player.chance == pytest.approx(0.4)
    assert record.monster.action == "counter_attack"
    assert record.monster.damage == 3
    assert record.character_health == 27
    assert record.action_used is False
    assert record.bonus_action_used is False
    assert record.round == 1
    assert session.economy.phase == TurnPhase.PLAYER_TURN
    assert rng.int_calls == 0


def test_successful_flee_ends_combat_without_reward(engine, character_factory, monster_factory, scripted_rng):
    session = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng(floats=[0.0]))

    record = engine.submit_intent(session.combat_id, Intent.flee())

    assert record.outcome == CombatOutcome.FLED
    assert record.reward is None
    assert record.monster is None


def test_defeat(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(ints=[1, 20], floats=[0.5])
    session = engine.new_session(character_factory(current_health=1), monster_factory(damage=10), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.attack())

    assert record.outcome == CombatOutcome.DEFEAT
    assert record.character_health == 0
    assert record.reward is None
    assert session.economy.phase == TurnPhase.ENDED


def test_action_surge_grants_second_attack(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(character_class="fighter"), monster_factory(), rng=rng)
    combat_id = session.combat_id

    first = engine.submit_intent(combat_id, Intent.attack())
    assert first.action_used is True
    assert first.monster is None
    _assert_error(engine.submit_intent(combat_id, Intent.attack()), CombatErrorKind.ACTION_ALREADY_USED)

    surge = engine.submit_intent(combat_id, Intent.use_ability("action_surge"))
    assert surge.action_used is False
    assert surge.bonus_action_used is True

    second = engine.submit_intent(combat_id, Intent.attack())
    assert second.monster is not None
    assert second.round == 2

    _assert_error(engine.submit_intent(combat_id, Intent.use_ability("action_surge")), CombatErrorKind.ABILITY_EXHAUSTED)


def test_end_turn_hands_round_to_monster(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(character_class="fighter"), monster_factory(), rng=rng)

    engine.submit_intent(session.combat_id, Intent.attack())
    record = engine.submit_intent(session.combat_id, Intent.end_turn())

    assert record.monster is not None
    assert record.round == 2
    assert record.action_used is False


def test_busy_session_is_rejected(engine, character_factory, monster_factory, scripted_rng):
    session = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())
    session.lock.acquire()
    try:
        result = engine.submit_intent(session.combat_id, Intent.attack())
    finally:
        session.lock.release()

    _assert_error(result, CombatErrorKind.SESSION_BUSY)
    assert session.economy.action_used is False


def test_unknown_session_raises(engine):
    with pytest.raises(ValueError, match="Combat session not found"):
        engine.submit_intent("combat_missing", Intent.attack())


def test_malformed_intent_payload_raises(engine, character_factory, monster_factory, scripted_rng):
    session = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())

    with pytest.raises(ValueError):
        engine.submit_intent(session.combat_id, {"type": "dance"})


def test_downed_character_cannot_start_combat(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng()

    with pytest.raises(ValueError, match="no health left"):
        engine.new_session(character_factory(current_health=0), monster_factory(health=5), rng=rng)
    assert engine.sessions == {}
    assert rng.int_calls == 0


def test_defeated_monster_cannot_start_combat(engine, character_factory, monster_factory, scripted_rng):
    with pytest.raises(ValueError, match="already defeated"):
        engine.new_session(character_factory(), monster_factory(health=0), rng=scripted_rng())
    assert engine.sessions == {}


def test_snapshots_are_copied_by_value(engine, character_factory, monster_factory, scripted_rng):
    character = CombatantStats.model_validate(character_factory())
    session = engine.new_session(character, monster_factory(), rng=scripted_rng())

    session.character.current_health = 1

    assert character.current_health == 30
    assert session.character is not character


def test_scaled_monster(engine, character_factory, monster_factory, scripted_rng):
    session = engine.new_session(
        character_factory(level=3),
        monster_factory(health=10, max_health=10, damage=4, tier="elite"),
        rng=scripted_rng(),
        scale=True,
    )

    assert (session.monster.max_health, session.monster.health) == (18, 18)
    assert session.monster.damage == 6
    assert session.monster.armor == 13
    assert session.monster.level == 3


def test_seeded_sessions_replay(engine, character_factory, monster_factory):
    def play(seed):
        session = engine.new_session(
            character_factory(current_health=200, max_health=200),
            monster_factory(health=200, max_health=200),
            seed=seed,
        )
        return [engine.submit_intent(session.combat_id, Intent.attack()).to_dict()["monster_health"] for _ in range(5)]

    assert play(11) == play(11)


def test_log_entries_are_returned_per_call(engine, character_factory, monster_factory, scripted_rng):
    rng = scripted_rng(default_int=1, default_float=0.5)
    session = engine.new_session(character_factory(), monster_factory(), rng=rng)

    record = engine.submit_intent(session.combat_id, Intent.attack())

    assert [entry.actor for entry in record.log] == ["player", "monster"]
    assert [entry.seq for entry in session.combat_log] == [1, 2, 3]


def test_discard_and_expire(engine, character_factory, monster_factory, scripted_rng):
    kept = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())
    idle = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())
    kept.last_activity = idle.last_activity + 30

    expired = engine.expire_idle_sessions(now=idle.last_activity + 60)

    assert expired == [idle.combat_id]
    assert engine.discard_session(kept.combat_id) is True
    assert engine.discard_session(kept.combat_id) is False
    assert engine.sessions == {}


def test_idle_sessions_expire_on_new_traffic(engine, character_factory, monster_factory, scripted_rng):
    stale = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())
    stale.last_activity -= engine.session_ttl_seconds + 1

    fresh = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())

    assert list(engine.sessions) == [fresh.combat_id]
    with pytest.raises(ValueError, match="Combat session not found"):
        engine.submit_intent(stale.combat_id, Intent.attack())


def test_submit_intent_expires_other_idle_sessions(engine, character_factory, monster_factory, scripted_rng):
    stale = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng())
    active = engine.new_session(character_factory(), monster_factory(), rng=scripted_rng(default_int=1, default_float=0.5))
    stale.last_activity -= engine.session_ttl_seconds + 1

    engine.submit_intent(active.combat_id, Intent.end_turn())

    assert stale.combat_id not in engine.sessions
    assert active.combat_id in engine.sessions


@pytest.mark.parametrize("seed", range(10))
def test_attack_loop_always_terminates(engine, character_factory, monster_factory, seed):
    session = engine.new_session(
        character_factory(strength=12, current_health=25, max_health=25),
        monster_factory(health=40, max_health=40, damage=6, armor=13),
        seed=seed,
    )
    outcomes = []
    for _ in range(500):
        record = engine.submit_intent(session.combat_id, Intent.attack())
        outcomes.append(record.outcome)
        if record.is_terminal:
            break

    assert outcomes[-1] in (CombatOutcome.VICTORY, CombatOutcome.DEFEAT)
    assert all(outcome == CombatOutcome.NONE for outcome in outcomes[:-1])
    assert (session.character.current_health == 0) or (session.monster.health == 0)


def test_spell_above_available_slots_is_rejected(engine, character_factory, monster_factory, scripted_rng):
    character = character_factory(character_class="wizard", known_spell_ids=["scorching_ray"])
    session = engine.new_session(character, monster_factory(), rng=scripted_rng())

    result = engine.submit_intent(session.combat_id, Intent.cast_spell("scorching_ray"))

    _assert_error(result, CombatErrorKind.NO_SPELL_SLOTS)
    assert session.character.consumed_spell_slots_by_level == {}
