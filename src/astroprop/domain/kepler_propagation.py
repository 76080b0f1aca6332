# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Analytic two-body (Keplerian) propagation.

Uses Lagrange f and g coefficients with Kepler's equation written in terms
of the eccentric anomaly change, which stays well defined for circular and
equatorial orbits where classical elements degenerate. Only bound
(elliptic) orbits are supported.

No external dependencies: only stdlib math/dataclasses + numpy.
"""
import math
from dataclasses import dataclass
from typing import Any, Hashable

import numpy as np

from astroprop.domain.errors import ConfigurationError, NumericalFailure
from astroprop.domain.orbital_mechanics import OrbitalConstants
from astroprop.domain.propagator import BodyPropagator
from astroprop.domain.state import CartesianState


@dataclass(frozen=True)
class KeplerConfig:
    """Central body and solver settings for analytic propagation."""
    mu: float = OrbitalConstants.MU_EARTH
    tolerance: float = 1e-12
    max_iterations: int = 50

    def __post_init__(self) -> None:
        if not self.mu > 0.0:
            raise ConfigurationError(f"mu must be positive, got {self.mu}")
        if not self.tolerance > 0.0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations}")


def _solve_delta_e(
    mean_motion_dt: float,
    c: float,
    s: float,
    tolerance: float,
    max_iterations: int,
) -> float:
    """Solve dM = dE + s (1 - cos dE) - c sin dE for dE by Newton iteration.

    c = e cos E0 and s = e sin E0. Whole revolutions are split off first so
    the iteration always starts within one orbit.
    """
    revolutions = math.floor((mean_motion_dt + math.pi) / (2.0 * math.pi))
    m = mean_motion_dt - 2.0 * math.pi * revolutions

    x = m
    for _ in range(max_iterations):
        f = x + s * (1.0 - math.cos(x)) - c * math.sin(x) - m
        f_prime = 1.0 + s * math.sin(x) - c * math.cos(x)
        delta = f / f_prime
        x -= delta
        if abs(delta) < tolerance:
            return x + 2.0 * math.pi * revolutions
    raise NumericalFailure(
        f"Kepler's equation did not converge in {max_iterations} iterations"
    )


def propagate_kepler(
    state: CartesianState,
    dt: float,
    config: KeplerConfig | None = None,
) -> CartesianState:
    """
    Advance a Cartesian state by dt seconds along its two-body orbit.

    Args:
        state: Inertial state at the reference time.
        dt: Elapsed time (s), may be negative.
        config: Central body and solver settings.

    Returns:
        CartesianState dt seconds later.

    Raises:
        NumericalFailure: state is not finite, orbit is not elliptic or the
            solver diverged.
    """
    cfg = config if config is not None else KeplerConfig()
    if not state.is_finite():
        raise NumericalFailure("initial state is not finite")
    if dt == 0.0:
        return state

    mu = cfg.mu
    r0_vec = np.array(state.position, dtype=np.float64)
    v0_vec = np.array(state.velocity, dtype=np.float64)
    r0 = float(np.linalg.norm(r0_vec))
    if r0 == 0.0:
        raise NumericalFailure("position vector has zero magnitude")

    energy = float(np.dot(v0_vec, v0_vec)) / 2.0 - mu / r0
    if energy >= 0.0:
        raise NumericalFailure(f"orbit is not elliptic (specific energy {energy:.6g} J/kg)")
    a = -mu / (2.0 * energy)

    sqrt_a = math.sqrt(a)
    sigma0 = float(np.dot(r0_vec, v0_vec)) / math.sqrt(mu)
    c = 1.0 - r0 / a
    s = sigma0 / sqrt_a
    n = math.sqrt(mu / a**3)

    delta_e = _solve_delta_e(n * dt, c, s, cfg.tolerance, cfg.max_iterations)
    cos_de = math.cos(delta_e)
    sin_de = math.sin(delta_e)

    r = a + (r0 - a) * cos_de + sigma0 * sqrt_a * sin_de
    f = 1.0 - a / r0 * (1.0 - cos_de)
    g = dt - (delta_e - sin_de) / n
    f_dot = -math.sqrt(mu * a) * sin_de / (r * r0)
    g_dot = 1.0 - a / r * (1.0 - cos_de)

    pos = f * r0_vec + g * v0_vec
    vel = f_dot * r0_vec + g_dot * v0_vec
    result = CartesianState(
        position=(float(pos[0]), float(pos[1]), float(pos[2])),
        velocity=(float(vel[0]), float(vel[1]), float(vel[2])),
    )
    if not result.is_finite():
        raise NumericalFailure(f"non-finite state after {dt:g} s of Kepler propagation")
    return result


class KeplerPropagator(BodyPropagator):
    """Propagates each body analytically along its osculating two-body orbit."""

    def __init__(self, config: KeplerConfig | None = None, name: str | None = None) -> None:
        super().__init__(name=name)
        self.config = config if config is not None else KeplerConfig()

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
        return [propagate_kepler(initial_state, t - start, self.config) for t in targets]
