# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Command-line interface for running propagation scenarios.

Usage:
    # Show the configured propagator tree without running it
    astroprop scenario.json --summary-only

    # Run the scenario and print each body's final state
    astroprop scenario.json
    astroprop scenario.json --log-level DEBUG
"""
import argparse
import logging
import sys

from astroprop.adapters.json_io import JsonScenarioReader
from astroprop.domain.diagnostics import write_summary
from astroprop.domain.errors import NumericalFailure, PropagationError
from astroprop.domain.scenario import Scenario, build_scenario
from astroprop.domain.state import CartesianState


def _format_final(name: str, scenario: Scenario) -> str:
    body = scenario.bodies[name]
    root = scenario.root
    state = root.get_final_state(body)
    t = root.get_final_time(body)
    samples = len(root.get_propagation_history_at_fixed_output_intervals(body))
    if isinstance(state, CartesianState):
        x, y, z = state.position
        vx, vy, vz = state.velocity
        values = (
            f"r=[{x:.3f}, {y:.3f}, {z:.3f}] m "
            f"v=[{vx:.6f}, {vy:.6f}, {vz:.6f}] m/s"
        )
    else:
        values = repr(state)
    return f"{name}: t={t:g} {values} ({samples} samples)"


def run(scenario_path: str, summary_only: bool = False) -> Scenario:
    """
    Load a scenario, print its summary and optionally propagate it.

    Returns:
        The built Scenario (propagated unless summary_only).
    """
    data = JsonScenarioReader().read_scenario(scenario_path)
    scenario = build_scenario(data)

    write_summary(scenario.root, sys.stdout)
    if summary_only:
        return scenario

    scenario.root.propagate()
    print()
    for name in scenario.bodies:
        print(_format_final(name, scenario))
    return scenario


def main():
    parser = argparse.ArgumentParser(
        description="Propagate the bodies of a scenario file and report final states"
    )
    parser.add_argument(
        'scenario',
        help="Path to scenario JSON (propagators, root, bodies)"
    )
    parser.add_argument(
        '--summary-only', action='store_true', default=False,
        help="Print the propagator configuration without propagating"
    )
    parser.add_argument(
        '--log-level', default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help="Logging verbosity (default: WARNING)"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args.scenario, summary_only=args.summary_only)
    except FileNotFoundError:
        print(f"Error: scenario file not found: {args.scenario}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: cannot read {args.scenario}: {e}", file=sys.stderr)
        sys.exit(1)
    except NumericalFailure as e:
        print(f"Propagation failed: {e}", file=sys.stderr)
        sys.exit(1)
    except PropagationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
