# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Scenario configuration: JSON-compatible dict -> propagator tree.

A scenario names its propagators, picks one as the root, and lists the
bodies registered with the root. A body entry may name another propagator
to delegate to; that propagator's own interval and sampling then govern
the body.

    {
      "propagators": {
        "main": {"type": "numerical", "interval": [0, 5400],
                 "fixed_output_interval": 600, "step_s": 10,
                 "method": "rk4", "force_models": ["two_body", "j2"]},
        "half": {"type": "kepler", "interval": [0, 2700]}
      },
      "root": "main",
      "bodies": [
        {"name": "sat-a", "state": [6878137.0, 0, 0, 0, 7612.6, 0]},
        {"name": "sat-b", "propagator": "half",
         "elements": {"a_m": 7000000.0, "e": 0.001, "i_deg": 53.0,
                      "raan_deg": 0.0, "argp_deg": 0.0, "nu_deg": 0.0}}
      ]
    }

Malformed input raises ConfigurationError.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from astroprop.domain.composite import CompositePropagator
from astroprop.domain.errors import ConfigurationError
from astroprop.domain.kepler_propagation import KeplerConfig, KeplerPropagator
from astroprop.domain.numerical_propagation import (
    IntegratorConfig,
    J2Perturbation,
    NumericalPropagator,
    TwoBodyGravity,
)
from astroprop.domain.orbital_mechanics import OrbitalConstants, kepler_to_cartesian
from astroprop.domain.propagator import Propagator
from astroprop.domain.state import Body, CartesianState

logger = logging.getLogger(__name__)

PROPAGATOR_TYPES = ("numerical", "kepler", "composite")
FORCE_MODEL_NAMES = ("two_body", "j2")


@dataclass(frozen=True)
class Scenario:
    """A configured propagator tree, ready for propagate()."""
    root: Propagator
    propagators: dict[str, Propagator] = field(default_factory=dict)
    bodies: dict[str, Body] = field(default_factory=dict)


def _require(mapping: dict, key: str, context: str) -> Any:
    if key not in mapping:
        raise ConfigurationError(f"{context}: missing required key {key!r}")
    return mapping[key]


def _as_float(value: Any, context: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{context}: expected a number, got {value!r}") from None
    if not math.isfinite(result):
        raise ConfigurationError(f"{context}: expected a finite number, got {value!r}")
    return result


def _build_force_models(names: list, mu: float, context: str) -> list:
    if not isinstance(names, list):
        raise ConfigurationError(f"{context}: force_models must be a list of names")
    models = []
    for name in names:
        if name == "two_body":
            models.append(TwoBodyGravity(mu=mu))
        elif name == "j2":
            models.append(J2Perturbation(mu=mu))
        else:
            raise ConfigurationError(
                f"{context}: unknown force model {name!r}, use one of {FORCE_MODEL_NAMES}"
            )
    return models


def build_propagator(name: str, settings: dict) -> Propagator:
    """Build one propagator from its scenario entry (bodies not included)."""
    context = f"propagator {name!r}"
    if not isinstance(settings, dict):
        raise ConfigurationError(f"{context}: expected an object, got {type(settings).__name__}")
    kind = _require(settings, "type", context)
    mu = _as_float(settings.get("mu", OrbitalConstants.MU_EARTH), f"{context} mu")

    if kind == "numerical":
        force_models = _build_force_models(settings.get("force_models", ["two_body"]), mu, context)
        config = IntegratorConfig(
            step_s=_as_float(settings.get("step_s", 10.0), f"{context} step_s"),
            method=settings.get("method", "rk4"),
            max_steps=int(_as_float(settings.get("max_steps", 1_000_000), f"{context} max_steps")),
        )
        propagator: Propagator = NumericalPropagator(force_models, config=config, name=name)
    elif kind == "kepler":
        propagator = KeplerPropagator(KeplerConfig(mu=mu), name=name)
    elif kind == "composite":
        propagator = CompositePropagator(name=name)
    else:
        raise ConfigurationError(
            f"{context}: unknown type {kind!r}, use one of {PROPAGATOR_TYPES}"
        )

    interval = settings.get("interval")
    if interval is not None:
        if not isinstance(interval, (list, tuple)) or len(interval) != 2:
            raise ConfigurationError(f"{context}: interval must be [start, end]")
        propagator.set_propagation_interval_start(_as_float(interval[0], f"{context} interval"))
        propagator.set_propagation_interval_end(_as_float(interval[1], f"{context} interval"))
    if "fixed_output_interval" in settings:
        propagator.set_fixed_output_interval(
            _as_float(settings["fixed_output_interval"], f"{context} fixed_output_interval")
        )
    return propagator


def _initial_state(entry: dict, mu: float, context: str) -> CartesianState | None:
    if "state" in entry and "elements" in entry:
        raise ConfigurationError(f"{context}: give either 'state' or 'elements', not both")
    if "state" in entry:
        try:
            return CartesianState.from_vector(entry["state"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{context}: invalid state: {exc}") from exc
    if "elements" in entry:
        el = entry["elements"]
        try:
            return kepler_to_cartesian(
                a=_as_float(el["a_m"], f"{context} a_m"),
                e=_as_float(el.get("e", 0.0), f"{context} e"),
                i_rad=math.radians(_as_float(el.get("i_deg", 0.0), f"{context} i_deg")),
                omega_big_rad=math.radians(_as_float(el.get("raan_deg", 0.0), f"{context} raan_deg")),
                omega_small_rad=math.radians(_as_float(el.get("argp_deg", 0.0), f"{context} argp_deg")),
                nu_rad=math.radians(_as_float(el.get("nu_deg", 0.0), f"{context} nu_deg")),
                mu=mu,
            )
        except ConfigurationError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"{context}: invalid elements: {exc}") from exc
    return None


def build_scenario(data: dict) -> Scenario:
    """
    Build the propagator tree described by a scenario dict.

    Args:
        data: Parsed scenario (see module docstring).

    Returns:
        Scenario whose root has every body registered, initial states set and
        delegates assigned.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("scenario must be a JSON object")
    settings_by_name = _require(data, "propagators", "scenario")
    if not isinstance(settings_by_name, dict) or not settings_by_name:
        raise ConfigurationError("scenario: 'propagators' must be a non-empty object")

    propagators = {
        name: build_propagator(name, settings)
        for name, settings in settings_by_name.items()
    }
    root_name = data.get("root", next(iter(settings_by_name)))
    if not isinstance(root_name, str):
        raise ConfigurationError(f"scenario: root must be a propagator name, got {root_name!r}")
    if root_name not in propagators:
        raise ConfigurationError(f"scenario: root propagator {root_name!r} is not defined")
    root = propagators[root_name]

    entries = data.get("bodies", [])
    if not isinstance(entries, list):
        raise ConfigurationError("scenario: 'bodies' must be a list")

    bodies: dict[str, Body] = {}
    for index, entry in enumerate(entries):
        context = f"body #{index}"
        if not isinstance(entry, dict):
            raise ConfigurationError(f"{context}: expected an object")
        name = _require(entry, "name", context)
        if not isinstance(name, str):
            raise ConfigurationError(f"{context}: name must be a string, got {name!r}")
        context = f"body {name!r}"
        if name in bodies:
            raise ConfigurationError(f"{context}: duplicate body name")
        body = Body(name=name, mass_kg=entry.get("mass_kg"))
        bodies[name] = body
        root.add_body(body)

        delegate_name = entry.get("propagator")
        mu = OrbitalConstants.MU_EARTH
        if delegate_name is not None:
            if not isinstance(delegate_name, str):
                raise ConfigurationError(
                    f"{context}: propagator must be a name, got {delegate_name!r}"
                )
            if delegate_name not in propagators:
                raise ConfigurationError(f"{context}: unknown propagator {delegate_name!r}")
            mu = _as_float(settings_by_name[delegate_name].get("mu", mu), f"{context} mu")
            root.set_propagator(body, propagators[delegate_name])
        else:
            mu = _as_float(settings_by_name[root_name].get("mu", mu), f"{context} mu")

        state = _initial_state(entry, mu, context)
        if state is not None:
            root.set_initial_state(body, state)

    logger.info(
        "Scenario built: root %s, %d propagators, %d bodies",
        root_name, len(propagators), len(bodies),
    )
    return Scenario(root=root, propagators=propagators, bodies=bodies)
