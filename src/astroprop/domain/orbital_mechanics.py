# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Orbital mechanics functions.

Element-to-state conversion and two-body invariants used to build initial
states and to check propagated ones.
No external dependencies: only stdlib math + numpy.
"""
import math
from dataclasses import dataclass

import numpy as np

from astroprop.domain.state import CartesianState


@dataclass(frozen=True)
class _OrbitalConstants:
    """Standard orbital constants (IAU/WGS84 values)."""
    MU_EARTH: float = 3.986004418e14   # m³/s², gravitational parameter
    R_EARTH: float = 6_371_000          # m, mean radius
    J2_EARTH: float = 1.08263e-3        # J2 perturbation coefficient
    R_EARTH_EQUATORIAL: float = 6_378_137.0       # m, WGS84 semi-major axis


OrbitalConstants: _OrbitalConstants = _OrbitalConstants()


def kepler_to_cartesian(
    a: float,
    e: float,
    i_rad: float,
    omega_big_rad: float,
    omega_small_rad: float,
    nu_rad: float,
    mu: float = OrbitalConstants.MU_EARTH,
) -> CartesianState:
    """
    Convert Keplerian orbital elements to an inertial Cartesian state.

    Args:
        a: Semi-major axis (m)
        e: Eccentricity (0 <= e < 1)
        i_rad: Inclination (radians)
        omega_big_rad: RAAN / longitude of ascending node (radians)
        omega_small_rad: Argument of perigee (radians)
        nu_rad: True anomaly (radians)
        mu: Gravitational parameter of the central body (m³/s²)

    Returns:
        CartesianState with position in m and velocity in m/s.
    """
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")
    if not 0.0 <= e < 1.0:
        raise ValueError(f"eccentricity must be in [0, 1), got {e}")

    cos_nu = float(np.cos(nu_rad))
    sin_nu = float(np.sin(nu_rad))

    r = a * (1 - e**2) / (1 + e * cos_nu)

    p_factor = float(np.sqrt(mu / (a * (1 - e**2))))
    pos_pqw = np.array([r * cos_nu, r * sin_nu, 0.0])
    vel_pqw = np.array([
        -p_factor * sin_nu,
        p_factor * (e + cos_nu),
        0.0,
    ])

    cO = float(np.cos(omega_big_rad))
    sO = float(np.sin(omega_big_rad))
    co = float(np.cos(omega_small_rad))
    so = float(np.sin(omega_small_rad))
    ci = float(np.cos(i_rad))
    si = float(np.sin(i_rad))

    rotation = np.array([
        [cO * co - sO * so * ci, -cO * so - sO * co * ci, sO * si],
        [sO * co + cO * so * ci, -sO * so + cO * co * ci, -cO * si],
        [so * si, co * si, ci],
    ])

    pos_eci = rotation @ pos_pqw
    vel_eci = rotation @ vel_pqw

    return CartesianState(
        position=(float(pos_eci[0]), float(pos_eci[1]), float(pos_eci[2])),
        velocity=(float(vel_eci[0]), float(vel_eci[1]), float(vel_eci[2])),
    )


def specific_energy(state: CartesianState, mu: float = OrbitalConstants.MU_EARTH) -> float:
    """Specific orbital energy v²/2 - mu/r (J/kg)."""
    return state.speed**2 / 2.0 - mu / state.radius


def angular_momentum(state: CartesianState) -> tuple[float, float, float]:
    """Specific angular momentum vector h = r × v (m²/s)."""
    h = np.cross(np.array(state.position), np.array(state.velocity))
    return (float(h[0]), float(h[1]), float(h[2]))


def orbital_period(a: float, mu: float = OrbitalConstants.MU_EARTH) -> float:
    """Keplerian period 2π sqrt(a³/mu) in seconds."""
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got {a}")
    return 2.0 * math.pi * math.sqrt(a**3 / mu)
