# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Numerical propagation with fixed-step integrators and pluggable force models.

RK4, Stormer-Verlet and 4th-order Yoshida steppers advance a Cartesian
state under the sum of the configured force-model accelerations. Steps are
shortened so that every fixed-output instant and the interval end are hit
exactly; sampling never changes where the integrator is evaluated between
those instants beyond splitting a segment into equal steps.

No external dependencies: only stdlib math/dataclasses/typing + numpy
+ domain imports.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Protocol, runtime_checkable

import numpy as np

from astroprop.domain.errors import ConfigurationError, NumericalFailure
from astroprop.domain.orbital_mechanics import OrbitalConstants
from astroprop.domain.propagator import BodyPropagator
from astroprop.domain.state import CartesianState

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]
StepFn = Callable[[float, tuple[float, ...], float], tuple[float, tuple[float, ...]]]


# --- Types ---

@runtime_checkable
class ForceModel(Protocol):
    """Structural typing port for pluggable force models."""

    def acceleration(
        self,
        t_s: float,
        position: Vector3,
        velocity: Vector3,
    ) -> Vector3: ...


@dataclass(frozen=True)
class IntegratorConfig:
    """Configuration for fixed-step integration."""
    step_s: float = 10.0
    method: str = "rk4"
    max_steps: int = 1_000_000

    def __post_init__(self) -> None:
        if not (self.step_s > 0.0 and math.isfinite(self.step_s)):
            raise ConfigurationError(f"step_s must be positive, got {self.step_s}")
        if self.method not in _STEPPERS:
            raise ConfigurationError(
                f"Unknown integrator: {self.method!r}. Use 'rk4', 'verlet', or 'yoshida'."
            )
        if self.max_steps < 1:
            raise ConfigurationError(f"max_steps must be >= 1, got {self.max_steps}")


# --- Force models ---

class TwoBodyGravity:
    """Central body gravitational acceleration: a = -mu * r / |r|^3."""

    def __init__(self, mu: float = OrbitalConstants.MU_EARTH) -> None:
        self.mu = mu

    def acceleration(
        self,
        t_s: float,
        position: Vector3,
        velocity: Vector3,
    ) -> Vector3:
        pos = np.array(position)
        r = float(np.linalg.norm(pos))
        if r == 0.0:
            raise NumericalFailure(f"position at the central body's centre at t={t_s}")
        coeff = -self.mu / (r * r * r)
        a = coeff * pos
        return (float(a[0]), float(a[1]), float(a[2]))


class J2Perturbation:
    """J2 zonal harmonic perturbation acceleration."""

    def __init__(
        self,
        mu: float = OrbitalConstants.MU_EARTH,
        j2: float = OrbitalConstants.J2_EARTH,
        radius_m: float = OrbitalConstants.R_EARTH_EQUATORIAL,
    ) -> None:
        self.mu = mu
        self.j2 = j2
        self.radius_m = radius_m

    def acceleration(
        self,
        t_s: float,
        position: Vector3,
        velocity: Vector3,
    ) -> Vector3:
        pos = np.array(position)
        r2 = float(np.dot(pos, pos))
        if r2 == 0.0:
            raise NumericalFailure(f"position at the central body's centre at t={t_s}")
        r = math.sqrt(r2)
        r5 = r2 * r2 * r

        coeff = -1.5 * self.j2 * self.mu * self.radius_m * self.radius_m / r5
        z = position[2]
        z2_r2 = z * z / r2

        ax = coeff * pos[0] * (1.0 - 5.0 * z2_r2)
        ay = coeff * pos[1] * (1.0 - 5.0 * z2_r2)
        az = coeff * z * (3.0 - 5.0 * z2_r2)
        return (float(ax), float(ay), float(az))


# --- Steppers ---

def rk4_step(
    t_s: float,
    state: tuple[float, ...],
    h: float,
    deriv_fn: Callable[[float, tuple[float, ...]], tuple[float, ...]],
) -> tuple[float, tuple[float, ...]]:
    """Single 4th-order Runge-Kutta integration step.

    Args:
        t_s: Current time (seconds).
        state: Current state vector.
        h: Step size (seconds).
        deriv_fn: Derivative function f(t, state) -> d(state)/dt.

    Returns:
        (t_new, state_new)
    """
    sv = np.array(state)
    k1 = np.array(deriv_fn(t_s, state))
    k2 = np.array(deriv_fn(t_s + 0.5 * h, tuple((sv + 0.5 * h * k1).tolist())))
    k3 = np.array(deriv_fn(t_s + 0.5 * h, tuple((sv + 0.5 * h * k2).tolist())))
    k4 = np.array(deriv_fn(t_s + h, tuple((sv + h * k3).tolist())))

    state_new = sv + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
    return (t_s + h, tuple(float(x) for x in state_new))


def stormer_verlet_step(
    t_s: float,
    state: tuple[float, ...],
    h: float,
    accel_fn: Callable[[float, Vector3, Vector3], Vector3],
) -> tuple[float, tuple[float, ...]]:
    """Single Stormer-Verlet (kick-drift-kick) step, 2nd order symplectic."""
    pos = np.array(state[0:3])
    vel = np.array(state[3:6])

    v_half = vel + 0.5 * h * np.array(accel_fn(t_s, _vec3(pos), _vec3(vel)))
    pos_new = pos + h * v_half
    acc_new = np.array(accel_fn(t_s + h, _vec3(pos_new), _vec3(v_half)))
    vel_new = v_half + 0.5 * h * acc_new

    return (t_s + h, _vec3(pos_new) + _vec3(vel_new))


# Yoshida 4th-order composition weights
_CBRT2 = 2.0 ** (1.0 / 3.0)
_YOSHIDA_W1 = 1.0 / (2.0 - _CBRT2)
_YOSHIDA_W0 = -_CBRT2 / (2.0 - _CBRT2)
_YOSHIDA_D = (_YOSHIDA_W1, _YOSHIDA_W0, _YOSHIDA_W1)
_YOSHIDA_C = (
    _YOSHIDA_W1 / 2.0,
    (_YOSHIDA_W0 + _YOSHIDA_W1) / 2.0,
    (_YOSHIDA_W0 + _YOSHIDA_W1) / 2.0,
    _YOSHIDA_W1 / 2.0,
)


def yoshida4_step(
    t_s: float,
    state: tuple[float, ...],
    h: float,
    accel_fn: Callable[[float, Vector3, Vector3], Vector3],
) -> tuple[float, tuple[float, ...]]:
    """Single 4th-order Yoshida step: three drift-kick stages plus a final drift."""
    pos = np.array(state[0:3])
    vel = np.array(state[3:6])
    t = t_s

    for i in range(3):
        pos = pos + _YOSHIDA_C[i] * h * vel
        t += _YOSHIDA_C[i] * h
        vel = vel + _YOSHIDA_D[i] * h * np.array(accel_fn(t, _vec3(pos), _vec3(vel)))
    pos = pos + _YOSHIDA_C[3] * h * vel

    return (t_s + h, _vec3(pos) + _vec3(vel))


def _vec3(arr: np.ndarray) -> Vector3:
    return (float(arr[0]), float(arr[1]), float(arr[2]))


_STEPPERS = ("rk4", "verlet", "yoshida")


# --- Propagator ---

class NumericalPropagator(BodyPropagator):
    """Integrates Cartesian states under the sum of its force models.

    Each segment between consecutive output instants is split into the
    smallest number of equal steps no longer than config.step_s. A
    non-finite state, or exceeding config.max_steps for one body, raises
    NumericalFailure.
    """

    def __init__(
        self,
        force_models: list[ForceModel] | None = None,
        config: IntegratorConfig | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name)
        self.force_models = list(force_models) if force_models is not None else [TwoBodyGravity()]
        for fm in self.force_models:
            if not isinstance(fm, ForceModel):
                raise ConfigurationError(f"{type(fm).__name__} is not a force model")
        self.config = config if config is not None else IntegratorConfig()

    @property
    def force_model_names(self) -> tuple[str, ...]:
        return tuple(type(fm).__name__ for fm in self.force_models)

    def _acceleration(self, t_s: float, p: Vector3, v: Vector3) -> Vector3:
        ax_total, ay_total, az_total = 0.0, 0.0, 0.0
        for fm in self.force_models:
            ax, ay, az = fm.acceleration(t_s, p, v)
            ax_total += ax
            ay_total += ay
            az_total += az
        return (ax_total, ay_total, az_total)

    def _derivative(self, t_s: float, sv: tuple[float, ...]) -> tuple[float, ...]:
        p = (sv[0], sv[1], sv[2])
        v = (sv[3], sv[4], sv[5])
        return v + self._acceleration(t_s, p, v)

    def _stepper(self) -> StepFn:
        method = self.config.method
        if method == "rk4":
            def step_fn(t: float, sv: tuple[float, ...], h: float) -> tuple[float, tuple[float, ...]]:
                return rk4_step(t, sv, h, self._derivative)
        elif method == "verlet":
            def step_fn(t: float, sv: tuple[float, ...], h: float) -> tuple[float, tuple[float, ...]]:
                return stormer_verlet_step(t, sv, h, self._acceleration)
        else:  # yoshida
            def step_fn(t: float, sv: tuple[float, ...], h: float) -> tuple[float, tuple[float, ...]]:
                return yoshida4_step(t, sv, h, self._acceleration)
        return step_fn

    def _advance(
        self,
        body: Hashable,
        initial_state: Any,
        start: float,
        targets: tuple[float, ...],
    ) -> list[CartesianState]:
        if not isinstance(initial_state, CartesianState):
            raise ConfigurationError(
                f"{self.name}: body {body!r} needs a CartesianState, "
                f"got {type(initial_state).__name__}"
            )
        if not initial_state.is_finite():
            raise NumericalFailure(f"{self.name}: initial state of {body!r} is not finite")

        step_fn = self._stepper()
        step_s = self.config.step_s
        state_vec = initial_state.as_tuple()
        t_current = start
        steps_taken = 0
        states: list[CartesianState] = []

        for target in targets:
            span = target - t_current
            if span > 0.0:
                # Tolerance keeps an exact multiple of step_s from gaining a step
                num_steps = max(1, math.ceil(span / step_s - 1e-9))
                h = span / num_steps
                steps_taken += num_steps
                if steps_taken > self.config.max_steps:
                    raise NumericalFailure(
                        f"{self.name}: body {body!r} exceeded {self.config.max_steps} steps"
                    )
                t = t_current
                for _ in range(num_steps):
                    t, state_vec = step_fn(t, state_vec, h)
                    if not all(math.isfinite(x) for x in state_vec):
                        raise NumericalFailure(
                            f"{self.name}: non-finite state for body {body!r} at t={t:g}"
                        )
                t_current = target
            states.append(CartesianState.from_vector(state_vec))

        logger.debug(
            "%s: body %r advanced in %d %s steps", self.name, body, steps_taken, self.config.method,
        )
        return states
