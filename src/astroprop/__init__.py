# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
astroprop

Propagator orchestration for physical bodies: register bodies with initial
states, advance them across an interval with a chosen strategy (fixed-step
numerical integration, analytic Kepler propagation) or delegate individual
bodies to nested propagators, and read back final states and fixed-interval
histories.
"""

from astroprop.domain.errors import (
    PropagationError,
    ConfigurationError,
    CompositionError,
    NotYetComputedError,
    NumericalFailure,
)
from astroprop.domain.state import (
    Body,
    CartesianState,
    TimeValue,
)
from astroprop.domain.propagator import (
    PropagatorPort,
    PropagationRecord,
    Propagator,
    BodyPropagator,
    fixed_output_times,
)
from astroprop.domain.composite import CompositePropagator
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
from astroprop.domain.kepler_propagation import (
    KeplerConfig,
    KeplerPropagator,
    propagate_kepler,
)
from astroprop.domain.orbital_mechanics import (
    OrbitalConstants,
    kepler_to_cartesian,
    specific_energy,
    angular_momentum,
    orbital_period,
)
from astroprop.domain.diagnostics import (
    format_propagator,
    write_summary,
)
from astroprop.domain.scenario import (
    Scenario,
    build_scenario,
    build_propagator,
)

__all__ = [
    "PropagationError",
    "ConfigurationError",
    "CompositionError",
    "NotYetComputedError",
    "NumericalFailure",
    "Body",
    "CartesianState",
    "TimeValue",
    "PropagatorPort",
    "PropagationRecord",
    "Propagator",
    "BodyPropagator",
    "fixed_output_times",
    "CompositePropagator",
    "ForceModel",
    "IntegratorConfig",
    "TwoBodyGravity",
    "J2Perturbation",
    "NumericalPropagator",
    "rk4_step",
    "stormer_verlet_step",
    "yoshida4_step",
    "KeplerConfig",
    "KeplerPropagator",
    "propagate_kepler",
    "OrbitalConstants",
    "kepler_to_cartesian",
    "specific_energy",
    "angular_momentum",
    "orbital_period",
    "format_propagator",
    "write_summary",
    "Scenario",
    "build_scenario",
    "build_propagator",
]
