from vaultclash.engine import effects
from vaultclash.engine.dice import rng_for
from vaultclash.engine.models import EffectTemplate, Guard

from conftest import make_participant


def test_success_chance_extremes():
    target = make_participant("t")
    for seed in range(50):
        assert effects.apply_effect(target, EffectTemplate("burn", 2, 100, damage_per_turn=3), rng_for(seed))
        assert not effects.apply_effect(target, EffectTemplate("stun", 1, 0), rng_for(seed))
    assert effects.active_types(target) == ["burn"]


def test_cleanse_clears_everything_and_never_persists():
    target = make_participant("t")
    r = rng_for(1)
    effects.apply_effect(target, EffectTemplate("burn", 3, 100, damage_per_turn=2), r)
    effects.apply_effect(target, EffectTemplate("poison", 3, 100, damage_per_turn=2), r)
    effects.apply_effect(target, EffectTemplate("cleanse", 0, 100), r)
    assert target.effects == []


def test_non_poison_effect_replaces_previous_instance():
    target = make_participant("t")
    r = rng_for(1)
    effects.apply_effect(target, EffectTemplate("burn", 3, 100, damage_per_turn=2), r)
    effects.apply_effect(target, EffectTemplate("burn", 2, 100, damage_per_turn=7), r)
    burns = [e for e in target.effects if e.type == "burn"]
    assert len(burns) == 1
    assert burns[0].damage_per_turn == 7
    assert burns[0].remaining == 2


def test_poison_stacks():
    target = make_participant("t")
    r = rng_for(1)
    effects.apply_effect(target, EffectTemplate("poison", 3, 100, damage_per_turn=2), r)
    effects.apply_effect(target, EffectTemplate("poison", 3, 100, damage_per_turn=2), r)
    assert effects.active_types(target) == ["poison", "poison"]


def test_burn_ticks_through_shield_then_wears_off():
    owner = make_participant("t", hp=50, hp_max=100, shield=3, shield_max=50)
    effects.apply_effect(owner, EffectTemplate("burn", 3, 100, damage_per_turn=5), rng_for(1))

    seen = []
    for _ in range(3):
        result = effects.tick_turn_start(owner)
        seen.append((owner.shield, owner.hp, [e.remaining for e in owner.effects]))
    assert seen == [(0, 48, [2]), (0, 43, [1]), (0, 38, [])]
    assert any("wore off" in line for line in result.log)


def test_stun_skips_turn_and_expires():
    owner = make_participant("t")
    effects.apply_effect(owner, EffectTemplate("stun", 1, 100), rng_for(1))
    result = effects.tick_turn_start(owner)
    assert result.skip_turn
    assert not effects.has_effect(owner, "stun")
    assert not effects.tick_turn_start(owner).skip_turn


def test_bleed_bypasses_shield():
    owner = make_participant("t", hp=50, shield=50)
    effects.apply_effect(owner, EffectTemplate("bleed", 2, 100, loss_per_turn=5), rng_for(1))
    result = effects.tick_turn_start(owner)
    assert (owner.shield, owner.hp) == (50, 45)
    assert result.deltas == {"t": {"shield": 0, "primary": -5}}


def test_bleed_is_bounded_by_current_hp():
    owner = make_participant("t", hp=3)
    effects.apply_effect(owner, EffectTemplate("bleed", 2, 100, loss_per_turn=5), rng_for(1))
    effects.tick_turn_start(owner)
    assert owner.hp == 0


def test_drain_heals_the_participant_that_applied_it():
    owner = make_participant("t", hp=50)
    source = make_participant("s", hp=40)
    effects.apply_effect(
        owner, EffectTemplate("drain", 3, 100, steal_per_turn=3, heal_per_turn=3), rng_for(1), source_id="s"
    )
    result = effects.tick_turn_start(owner, {"t": owner, "s": source})
    assert owner.hp == 47
    assert source.hp == 43
    assert result.stolen == 3


def test_reduce_and_confuse_do_nothing_periodic():
    owner = make_participant("t", hp=50, shield=10)
    r = rng_for(1)
    effects.apply_effect(owner, EffectTemplate("reduce", 2, 100, reduction_pct=30), r)
    effects.apply_effect(owner, EffectTemplate("confuse", 2, 100, trigger_chance=50), r)
    assert effects.reduction_percent(owner) == 30
    result = effects.tick_turn_start(owner)
    assert (owner.shield, owner.hp) == (10, 50)
    assert not result.skip_turn
    effects.tick_turn_start(owner)
    assert effects.reduction_percent(owner) == 0


def test_flat_heal_is_applied_in_the_same_pass():
    owner = make_participant("t", hp=50)
    effects.tick_turn_start(owner, flat_heal=5)
    assert owner.hp == 55


def test_guards_tick_down_with_effects():
    owner = make_participant("t")
    owner.guards.append(Guard(source_move="Rhythm Guard", amount=3, remaining=1))
    result = effects.tick_turn_start(owner)
    assert owner.guards == []
    assert any("Rhythm Guard fades" in line for line in result.log)
