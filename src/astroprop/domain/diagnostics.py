# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Human-readable configuration summaries for propagators.

Read-only: formatting never touches a propagator's configuration or its
results, it only calls public getters.
"""
from typing import TextIO

from astroprop.domain.propagator import Propagator


def _fmt_time(value: float | None) -> str:
    return "unset" if value is None else f"{value:g}"


def _body_label(body) -> str:
    return getattr(body, "name", None) or repr(body)


def format_propagator(propagator: Propagator, detailed: bool = True) -> str:
    """
    Summarize a propagator's configuration.

    The first line carries the class, interval bounds, fixed output interval
    and registered body count. With detailed=True one indented line per
    body follows, naming its delegate (if any) and whether a result exists.
    """
    interval = propagator.get_fixed_output_interval()
    sampling = f"fixed output interval {interval:g}" if interval else "fixed output interval disabled"
    count = len(propagator.bodies())
    lines = [
        f"{propagator.name} ({type(propagator).__name__}): "
        f"interval [{_fmt_time(propagator.get_propagation_interval_start())}, "
        f"{_fmt_time(propagator.get_propagation_interval_end())}], "
        f"{sampling}, {count} {'body' if count == 1 else 'bodies'}",
    ]

    if detailed:
        for record in propagator.records():
            delegate = record.propagator
            if delegate is not None:
                via = f"delegated to {getattr(delegate, 'name', type(delegate).__name__)}"
            else:
                via = "self"
            state = "initial state set" if record.initial_state is not None else "no initial state"
            result = f"final at t={record.final_time:g}" if record.has_result else "not propagated"
            lines.append(f"  - {_body_label(record.body)}: {via}, {state}, {result}")
    return "\n".join(lines)


def write_summary(propagator: Propagator, stream: TextIO, detailed: bool = True) -> None:
    """Write format_propagator() output, newline terminated, to a text sink."""
    stream.write(format_propagator(propagator, detailed=detailed))
    stream.write("\n")
