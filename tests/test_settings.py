"""
Tests for SimulationSettings, variant presets and the CLI settings layer.
"""

import pytest

from particlescape.main import build_parser, settings_from_args
from particlescape.sim import (
    SimulationSettings, BoundaryPolicy, CollisionPolicy, ConnectionRounding,
)
from particlescape.sim.prng import XorShift32


class TestDefaults:

    def test_default_policies(self):
        s = SimulationSettings()
        assert s.boundary_policy == BoundaryPolicy.BOUNCE
        assert s.collision_policy == CollisionPolicy.REPEL
        assert s.connection_rounding == ConnectionRounding.FLOOR
        assert s.spawn_on_first_hit
        assert s.removal_hit_threshold == 3
        assert s.num_particles == 100
        assert s.min_particles == 10

    def test_strings_coerced(self):
        s = SimulationSettings(boundary_policy='wrap', collision_policy='despawn')
        assert s.boundary_policy is BoundaryPolicy.WRAP
        assert s.collision_policy is CollisionPolicy.DESPAWN

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            SimulationSettings(boundary_policy='teleport')

    def test_min_above_num(self):
        with pytest.raises(ValueError):
            SimulationSettings(num_particles=5, min_particles=10)


class TestDict:

    def test_round_trip(self):
        s = SimulationSettings(boundary_policy='wrap', seed=9, num_particles=50)
        assert SimulationSettings.from_dict(s.to_dict()) == s

    def test_from_dict_unknown_policy(self):
        with pytest.raises(ValueError):
            SimulationSettings.from_dict({'collision_policy': 'explode'})

    def test_from_dict_defaults(self):
        assert SimulationSettings.from_dict({}) == SimulationSettings()


class TestPresets:

    def test_swarm(self):
        s = SimulationSettings()
        assert s.apply_variant_preset('swarm')
        assert s.boundary_policy == BoundaryPolicy.WRAP
        assert s.connection_rounding == ConnectionRounding.MIN_ONE
        assert s.removal_hit_threshold == 0
        assert s.variant_preset == 'swarm'

    def test_erosion(self):
        s = SimulationSettings()
        s.apply_variant_preset('erosion')
        assert s.collision_policy == CollisionPolicy.DESPAWN
        assert s.removal_hit_threshold == 2

    def test_unknown_preset(self):
        s = SimulationSettings()
        assert s.apply_variant_preset('nope') is False
        assert s.variant_preset == 'custom'

    def test_names(self):
        assert SimulationSettings().get_preset_names() == ['custom', 'classic', 'swarm', 'erosion']


class TestSeed:

    def test_locked(self):
        s = SimulationSettings(seed=11, seed_locked=True)
        assert s.get_active_seed() == 11

    def test_unlocked_stores_new_seed(self):
        s = SimulationSettings(seed=11, seed_locked=False)
        seed = s.get_active_seed()
        assert s.seed == seed

    def test_prng_deterministic(self):
        a, b = XorShift32(5), XorShift32(5)
        assert [a.next_uint32() for _ in range(10)] == [b.next_uint32() for _ in range(10)]

    def test_prng_zero_seed(self):
        assert XorShift32(0).next_uint32() != 0

    def test_prng_ranges(self):
        rng = XorShift32(123)
        for _ in range(1000):
            assert 0.0 <= rng.next_float() < 1.0
            assert 0 <= rng.next_int(7) < 7


class TestCli:

    def test_defaults(self):
        s = settings_from_args(build_parser().parse_args([]))
        assert s.boundary_policy == BoundaryPolicy.BOUNCE
        assert not s.seed_locked

    def test_seed_locks(self):
        s = settings_from_args(build_parser().parse_args(['--seed', '7']))
        assert s.seed == 7
        assert s.seed_locked

    def test_preset_then_override(self):
        args = build_parser().parse_args(['--preset', 'swarm', '--boundary', 'bounce'])
        s = settings_from_args(args)
        assert s.boundary_policy == BoundaryPolicy.BOUNCE
        assert s.connection_rounding == ConnectionRounding.MIN_ONE

    def test_small_particle_budget(self):
        s = settings_from_args(build_parser().parse_args(['--particles', '4']))
        assert s.num_particles == 4
        assert s.min_particles == 4

    def test_bad_policy_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--collision', 'explode'])
