# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for numerical propagation (fixed-step integrators + pluggable force models)."""

import ast
import math

import pytest

from astroprop import (
    OrbitalConstants,
    kepler_to_cartesian,
    orbital_period,
    specific_energy,
)
from astroprop.domain.errors import ConfigurationError, NumericalFailure
from astroprop.domain.numerical_propagation import (
    ForceModel,
    IntegratorConfig,
    TwoBodyGravity,
    J2Perturbation,
    NumericalPropagator,
    rk4_step,
    stormer_verlet_step,
    yoshida4_step,
)
from astroprop.domain.state import Body, CartesianState


LEO_A = OrbitalConstants.R_EARTH + 500_000


@pytest.fixture
def leo_state():
    """Circular LEO state at 500 km, 53 deg inclination."""
    return kepler_to_cartesian(
        a=LEO_A,
        e=0.0,
        i_rad=math.radians(53.0),
        omega_big_rad=0.0,
        omega_small_rad=0.0,
        nu_rad=0.0,
    )


@pytest.fixture
def leo_period():
    return orbital_period(LEO_A)


def _propagate(state, duration, config=None, force_models=None, interval=None):
    body = Body("sat")
    prop = NumericalPropagator(force_models=force_models, config=config)
    prop.set_propagation_interval_start(0.0)
    prop.set_propagation_interval_end(duration)
    if interval is not None:
        prop.set_fixed_output_interval(interval)
    prop.add_body(body)
    prop.set_initial_state(body, state)
    prop.propagate()
    return prop, body


def _distance(p, q):
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(p, q)))


class NanForce:
    def acceleration(self, t_s, position, velocity):
        return (float("nan"), 0.0, 0.0)


# --- Config ---

class TestIntegratorConfig:

    def test_defaults(self):
        cfg = IntegratorConfig()
        assert cfg.step_s == 10.0
        assert cfg.method == "rk4"

    def test_frozen(self):
        cfg = IntegratorConfig()
        with pytest.raises(AttributeError):
            cfg.step_s = 5.0

    @pytest.mark.parametrize("step", [0.0, -1.0, float("inf"), float("nan")])
    def test_invalid_step(self, step):
        with pytest.raises(ConfigurationError, match="step_s"):
            IntegratorConfig(step_s=step)

    def test_unknown_integrator(self):
        with pytest.raises(ConfigurationError, match="Unknown integrator"):
            IntegratorConfig(method="euler")

    def test_invalid_max_steps(self):
        with pytest.raises(ConfigurationError, match="max_steps"):
            IntegratorConfig(max_steps=0)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            IntegratorConfig(step_s=-5.0)


# --- Force models ---

class TestTwoBodyGravity:

    def test_magnitude(self, leo_state):
        """Acceleration magnitude should be mu/r^2."""
        acc = TwoBodyGravity().acceleration(0.0, leo_state.position, leo_state.velocity)
        a_mag = math.sqrt(sum(a ** 2 for a in acc))
        expected = OrbitalConstants.MU_EARTH / leo_state.radius ** 2
        assert abs(a_mag - expected) / expected < 1e-12

    def test_direction(self, leo_state):
        """Acceleration points toward the origin."""
        acc = TwoBodyGravity().acceleration(0.0, leo_state.position, leo_state.velocity)
        assert sum(a * p for a, p in zip(acc, leo_state.position)) < 0

    def test_inverse_square(self):
        """2x distance → 1/4 acceleration."""
        gravity = TwoBodyGravity()
        vel = (0.0, 7500.0, 0.0)
        acc1 = gravity.acceleration(0.0, (LEO_A, 0.0, 0.0), vel)
        acc2 = gravity.acceleration(0.0, (2 * LEO_A, 0.0, 0.0), vel)
        assert abs(acc1[0] / acc2[0] - 4.0) < 1e-12

    def test_origin_raises(self):
        with pytest.raises(NumericalFailure):
            TwoBodyGravity().acceleration(0.0, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))

    def test_custom_mu(self):
        acc = TwoBodyGravity(mu=1.0).acceleration(0.0, (2.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        assert acc == pytest.approx((-0.25, 0.0, 0.0))


class TestJ2Perturbation:

    def test_magnitude_relative(self, leo_state):
        """J2 acceleration should be ~1e-3 of two-body."""
        pos, vel = leo_state.position, leo_state.velocity
        acc_grav = TwoBodyGravity().acceleration(0.0, pos, vel)
        acc_j2 = J2Perturbation().acceleration(0.0, pos, vel)
        ratio = (
            math.sqrt(sum(a ** 2 for a in acc_j2))
            / math.sqrt(sum(a ** 2 for a in acc_grav))
        )
        assert 1e-4 < ratio < 1e-2

    def test_z_asymmetry(self):
        j2 = J2Perturbation()
        vel = (0.0, 7500.0, 0.0)
        acc_eq = j2.acceleration(0.0, (LEO_A, 0.0, 0.0), vel)
        acc_z = j2.acceleration(0.0, (LEO_A * 0.8, 0.0, LEO_A * 0.6), vel)
        assert acc_eq != acc_z

    def test_equatorial_has_no_z_component(self):
        acc = J2Perturbation().acceleration(0.0, (LEO_A, 0.0, 0.0), (0.0, 7500.0, 0.0))
        assert acc[2] == 0.0

    def test_force_models_satisfy_port(self):
        assert isinstance(TwoBodyGravity(), ForceModel)
        assert isinstance(J2Perturbation(), ForceModel)


# --- Steppers ---

class TestSteppers:

    def test_rk4_linear(self):
        """dy/dt = 1 → exact step."""
        t_new, state_new = rk4_step(0.0, (0.0,), 1.0, lambda t, s: (1.0,))
        assert abs(t_new - 1.0) < 1e-12
        assert abs(state_new[0] - 1.0) < 1e-12

    def test_rk4_quadratic(self):
        """dy/dt = 2t → y = t². RK4 is exact for low-degree polynomials."""
        _, state_new = rk4_step(0.0, (0.0,), 1.0, lambda t, s: (2.0 * t,))
        assert abs(state_new[0] - 1.0) < 1e-10

    def test_verlet_free_particle(self):
        """No force → straight line at constant velocity."""
        t_new, sv = stormer_verlet_step(
            0.0, (0.0, 0.0, 0.0, 1.0, 2.0, 3.0), 2.0, lambda t, p, v: (0.0, 0.0, 0.0),
        )
        assert t_new == 2.0
        assert sv == pytest.approx((2.0, 4.0, 6.0, 1.0, 2.0, 3.0))

    def test_yoshida_constant_acceleration(self):
        """Constant acceleration is integrated exactly."""
        _, sv = yoshida4_step(
            0.0, (0.0, 0.0, 0.0, 0.0, 0.0, 0.0), 1.0, lambda t, p, v: (2.0, 0.0, 0.0),
        )
        assert sv[0] == pytest.approx(1.0)
        assert sv[3] == pytest.approx(2.0)


# --- Propagator ---

class TestNumericalPropagator:

    def test_default_force_model(self):
        assert NumericalPropagator().force_model_names == ("TwoBodyGravity",)

    def test_rejects_non_force_model(self):
        with pytest.raises(ConfigurationError, match="not a force model"):
            NumericalPropagator(force_models=[object()])

    @pytest.mark.parametrize("method", ["rk4", "verlet", "yoshida"])
    def test_one_orbit_returns_near_start(self, leo_state, leo_period, method):
        prop, body = _propagate(leo_state, leo_period, IntegratorConfig(step_s=10.0, method=method))
        final = prop.get_final_state(body)
        assert _distance(final.position, leo_state.position) / leo_state.radius < 1e-2

    def test_rk4_energy_conservation(self, leo_state, leo_period):
        """Specific orbital energy drift < 1e-8 over one orbit."""
        prop, body = _propagate(leo_state, leo_period)
        e0 = specific_energy(leo_state)
        e1 = specific_energy(prop.get_final_state(body))
        assert abs(e1 - e0) / abs(e0) < 1e-8

    def test_yoshida_energy_bounded_at_samples(self, leo_state, leo_period):
        prop, body = _propagate(
            leo_state, leo_period, IntegratorConfig(step_s=30.0, method="yoshida"),
            interval=600.0,
        )
        e0 = specific_energy(leo_state)
        history = prop.get_propagation_history_at_fixed_output_intervals(body)
        max_drift = max(abs(specific_energy(s) - e0) / abs(e0) for s in history.values())
        assert max_drift < 1e-8

    def test_history_keys_hit_exactly(self, leo_state):
        prop, body = _propagate(leo_state, 1000.0, IntegratorConfig(step_s=30.0), interval=100.0)
        history = prop.get_propagation_history_at_fixed_output_intervals(body)
        assert list(history) == [100.0 * k for k in range(11)]
        assert history[0.0] == leo_state
        assert prop.get_final_time(body) == 1000.0
        assert history[1000.0] == prop.get_final_state(body)

    def test_sampling_does_not_change_final_state(self, leo_state):
        """Segments that split into the same steps give the same result."""
        cfg = IntegratorConfig(step_s=10.0)
        sampled, body_a = _propagate(leo_state, 1000.0, cfg, interval=100.0)
        plain, body_b = _propagate(leo_state, 1000.0, cfg)
        assert sampled.get_final_state(body_a) == plain.get_final_state(body_b)

    def test_end_not_on_grid(self, leo_state):
        prop, body = _propagate(leo_state, 250.0, IntegratorConfig(step_s=7.0), interval=100.0)
        assert list(prop.get_propagation_history_at_fixed_output_intervals(body)) == [0.0, 100.0, 200.0]
        assert prop.get_final_time(body) == 250.0

    def test_zero_length_interval(self, leo_state):
        prop, body = _propagate(leo_state, 0.0)
        assert prop.get_final_state(body) == leo_state

    def test_j2_changes_trajectory(self, leo_state, leo_period):
        plain, b1 = _propagate(leo_state, leo_period)
        perturbed, b2 = _propagate(
            leo_state, leo_period, force_models=[TwoBodyGravity(), J2Perturbation()],
        )
        diff = _distance(
            plain.get_final_state(b1).position,
            perturbed.get_final_state(b2).position,
        )
        assert diff > 100.0

    def test_non_cartesian_state_rejected(self):
        body = Body("sat")
        prop = NumericalPropagator()
        prop.set_propagation_interval_start(0.0)
        prop.set_propagation_interval_end(10.0)
        prop.add_body(body)
        prop.set_initial_state(body, (1.0, 2.0, 3.0))
        with pytest.raises(ConfigurationError, match="CartesianState"):
            prop.propagate()

    def test_non_finite_initial_state(self):
        state = CartesianState((float("nan"), 0.0, 0.0), (0.0, 0.0, 0.0))
        with pytest.raises(NumericalFailure, match="not finite"):
            _propagate(state, 10.0)

    def test_non_finite_acceleration(self, leo_state):
        with pytest.raises(NumericalFailure, match="non-finite"):
            _propagate(leo_state, 100.0, force_models=[NanForce()])

    def test_max_steps_exceeded(self, leo_state):
        with pytest.raises(NumericalFailure, match="exceeded 10 steps"):
            _propagate(leo_state, 100.0, IntegratorConfig(step_s=1.0, max_steps=10))

    def test_failure_leaves_no_result(self, leo_state):
        body = Body("sat")
        prop = NumericalPropagator(force_models=[NanForce()])
        prop.set_propagation_interval_start(0.0)
        prop.set_propagation_interval_end(100.0)
        prop.add_body(body)
        prop.set_initial_state(body, leo_state)
        with pytest.raises(NumericalFailure):
            prop.propagate()
        assert not prop.is_propagated
        assert prop.get_propagation_history_at_fixed_output_intervals(body) == {}


# --- Domain purity ---

class TestDomainPurity:

    def test_domain_purity(self):
        """numerical_propagation.py must only import from stdlib, numpy and domain."""
        import astroprop.domain.numerical_propagation as mod

        with open(mod.__file__) as f:
            tree = ast.parse(f.read())

        allowed_top = {"logging", "math", "numpy", "dataclasses", "typing"}
        allowed_internal_prefix = "astroprop"

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    top = alias.name.split(".")[0]
                    assert top in allowed_top or alias.name.startswith(allowed_internal_prefix), \
                        f"Forbidden import: {alias.name}"
            elif isinstance(node, ast.ImportFrom):
                if node.module and node.level == 0:
                    top = node.module.split(".")[0]
                    assert top in allowed_top or node.module.startswith(allowed_internal_prefix), \
                        f"Forbidden import from: {node.module}"
