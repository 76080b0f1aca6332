# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagator base class and per-body bookkeeping.

A Propagator owns the propagation interval, an optional fixed output
interval, and one PropagationRecord per registered body. Bodies and nested
propagators are referenced, never owned: a record keeps the body handle as
its key and the nested propagator as a plain reference supplied by whoever
builds the composite.

Concrete strategies subclass BodyPropagator (advance a body themselves,
delegating where a nested propagator was assigned) or use
CompositePropagator (delegate every body).

No external dependencies: only stdlib abc/dataclasses/logging/math/typing.
"""
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator, Protocol, runtime_checkable

from astroprop.domain.errors import (
    CompositionError,
    ConfigurationError,
    NotYetComputedError,
    NumericalFailure,
)

logger = logging.getLogger(__name__)

# Absorbs floating-point error in (end - start) / interval so an end time
# that is an exact multiple of the interval is still sampled, at end itself.
_SAMPLE_TOLERANCE = 1e-9


# --- Types ---

@runtime_checkable
class PropagatorPort(Protocol):
    """Structural contract a nested propagator must satisfy."""

    def set_propagation_interval_start(self, value: float) -> None: ...

    def set_propagation_interval_end(self, value: float) -> None: ...

    def get_propagation_interval_end(self) -> float | None: ...

    def add_body(self, body: Hashable) -> Any: ...

    def has_body(self, body: Hashable) -> bool: ...

    def set_initial_state(self, body: Hashable, state: Any) -> None: ...

    def propagate(self) -> None: ...

    def get_final_state(self, body: Hashable) -> Any: ...

    def get_final_time(self, body: Hashable) -> float: ...

    def get_propagation_history_at_fixed_output_intervals(
        self, body: Hashable,
    ) -> dict[float, Any]: ...

    def nested_propagators(self) -> tuple["PropagatorPort", ...]: ...


@dataclass(eq=False)
class PropagationRecord:
    """Everything a propagator keeps about one registered body.

    final_time is None until a run completes; it is the marker for
    "result available" since a state value itself may be anything.
    """
    body: Hashable
    initial_state: Any = None
    propagator: PropagatorPort | None = None
    final_state: Any = None
    final_time: float | None = None
    history: dict[float, Any] = field(default_factory=dict)

    @property
    def has_result(self) -> bool:
        return self.final_time is not None

    def clear_result(self) -> None:
        self.final_state = None
        self.final_time = None
        self.history = {}


@dataclass(frozen=True)
class BodyResult:
    """Outcome of one run for one body, committed into its record."""
    final_state: Any
    final_time: float
    history: dict[float, Any]


# --- Sampling ---

def fixed_output_times(
    start: float,
    end: float,
    interval: float | None,
) -> tuple[float, ...]:
    """
    Sampling instants start, start + dt, start + 2 dt, ... not exceeding end.

    Each instant is computed as start + k * dt rather than accumulated, so
    long runs do not drift off the grid. An instant within rounding error of
    end is reported as end itself.

    Args:
        start: Start of the propagation interval.
        end: End of the propagation interval (end >= start).
        interval: Fixed output interval; None or 0 disables sampling.

    Returns:
        Strictly ascending tuple of times, empty when sampling is disabled.
    """
    if not interval:
        return ()
    if interval < 0.0 or not math.isfinite(interval):
        raise ConfigurationError(f"fixed output interval must be >= 0, got {interval}")
    if end < start:
        return ()

    count = int(math.floor((end - start) / interval + _SAMPLE_TOLERANCE))
    times = []
    for k in range(count + 1):
        t = start + k * interval
        if t > end or end - t <= _SAMPLE_TOLERANCE * interval:
            t = end
        times.append(t)
    return tuple(times)


# --- Base class ---

class Propagator(ABC):
    """
    Base class for all propagators.

    Configure the interval, register bodies, set their initial states
    (optionally assigning a nested propagator per body), optionally set a
    fixed output interval, then call propagate(). Results of the most
    recent run are read back with get_final_state() and
    get_propagation_history_at_fixed_output_intervals().
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name if name is not None else type(self).__name__
        self._interval_start: float | None = None
        self._interval_end: float | None = None
        self._fixed_output_interval: float = 0.0
        self._records: dict[Hashable, PropagationRecord] = {}
        self._propagated = False

    # --- Interval and sampling ---

    def set_propagation_interval_start(self, value: float) -> None:
        self._interval_start = float(value)

    def set_propagation_interval_end(self, value: float) -> None:
        self._interval_end = float(value)

    def get_propagation_interval_start(self) -> float | None:
        return self._interval_start

    def get_propagation_interval_end(self) -> float | None:
        return self._interval_end

    def set_fixed_output_interval(self, value: float | None) -> None:
        """Sample history every `value` time units; None or 0 disables."""
        interval = 0.0 if value is None else float(value)
        if interval < 0.0 or not math.isfinite(interval):
            raise ConfigurationError(
                f"fixed output interval must be a finite value >= 0, got {value!r}"
            )
        self._fixed_output_interval = interval

    def get_fixed_output_interval(self) -> float:
        return self._fixed_output_interval

    # --- Body registry ---

    def add_body(self, body: Hashable) -> PropagationRecord:
        """Register a body. Adding a registered body keeps its record."""
        record = self._records.get(body)
        if record is not None:
            logger.debug("%s: body %r already registered", self.name, body)
            return record
        record = PropagationRecord(body=body)
        self._records[body] = record
        logger.debug("%s: registered body %r", self.name, body)
        return record

    def remove_body(self, body: Hashable) -> None:
        """Drop a body together with its initial state and results."""
        self._record(body)
        del self._records[body]
        logger.debug("%s: removed body %r", self.name, body)

    def has_body(self, body: Hashable) -> bool:
        return body in self._records

    def bodies(self) -> tuple[Hashable, ...]:
        """Registered bodies in registration order."""
        return tuple(self._records)

    def records(self) -> Iterator[PropagationRecord]:
        return iter(self._records.values())

    def set_initial_state(self, body: Hashable, state: Any) -> None:
        self._record(body).initial_state = state

    def get_initial_state(self, body: Hashable) -> Any:
        return self._record(body).initial_state

    def set_propagator(
        self,
        body: Hashable,
        sub_propagator: PropagatorPort | None,
    ) -> None:
        """
        Assign the nested propagator that advances `body`.

        Passing None removes an existing assignment. Raises CompositionError
        when the assignment would make this propagator reachable from
        itself.
        """
        record = self._record(body)
        if sub_propagator is None:
            record.propagator = None
            return
        if not isinstance(sub_propagator, PropagatorPort):
            raise ConfigurationError(
                f"{type(sub_propagator).__name__} does not implement the propagator contract"
            )
        if sub_propagator is self or _reaches(sub_propagator, self):
            raise CompositionError(
                f"assigning {_label(sub_propagator)} to body {body!r} of "
                f"{self.name} creates a delegation cycle"
            )
        record.propagator = sub_propagator
        logger.debug("%s: body %r delegated to %s", self.name, body, _label(sub_propagator))

    def get_propagator(self, body: Hashable) -> PropagatorPort | None:
        return self._record(body).propagator

    def nested_propagators(self) -> tuple[PropagatorPort, ...]:
        """Distinct nested propagators, in order of first assignment."""
        seen: dict[int, PropagatorPort] = {}
        for record in self._records.values():
            if record.propagator is not None:
                seen.setdefault(id(record.propagator), record.propagator)
        return tuple(seen.values())

    # --- Results ---

    @property
    def is_propagated(self) -> bool:
        """True once a run has completed successfully."""
        return self._propagated

    def get_final_state(self, body: Hashable) -> Any:
        """State of `body` at the end of the most recent run."""
        record = self._record(body)
        if not record.has_result:
            raise NotYetComputedError(
                f"no final state for body {body!r}: {self.name} has not propagated it"
            )
        return record.final_state

    def get_final_time(self, body: Hashable) -> float:
        """Time the final state of `body` refers to."""
        record = self._record(body)
        if not record.has_result:
            raise NotYetComputedError(
                f"no final time for body {body!r}: {self.name} has not propagated it"
            )
        return record.final_time

    def get_propagation_history_at_fixed_output_intervals(
        self,
        body: Hashable,
    ) -> dict[float, Any]:
        """Copy of the sampled time -> state history, ascending by time."""
        return dict(self._record(body).history)

    @abstractmethod
    def propagate(self) -> None:
        """Advance every registered body across the configured interval."""

    def __str__(self) -> str:
        # Import here to avoid circular import at module level
        from astroprop.domain.diagnostics import format_propagator
        return format_propagator(self)

    # --- Helpers for subclasses ---

    def _record(self, body: Hashable) -> PropagationRecord:
        try:
            return self._records[body]
        except (KeyError, TypeError):
            raise ConfigurationError(
                f"body {body!r} is not registered with {self.name}"
            ) from None

    def _validated_interval(self) -> tuple[float, float]:
        start, end = self._interval_start, self._interval_end
        if start is None or end is None:
            raise ConfigurationError(f"{self.name}: propagation interval is not set")
        if not (math.isfinite(start) and math.isfinite(end)):
            raise ConfigurationError(f"{self.name}: propagation interval must be finite")
        if end < start:
            raise ConfigurationError(
                f"{self.name}: interval end {end} precedes start {start}"
            )
        return start, end

    def _check_acyclic(self) -> None:
        """Reject delegation cycles introduced behind this propagator's back."""
        path: list[int] = []
        on_path: set[int] = set()
        done: set[int] = set()

        def visit(node: PropagatorPort) -> None:
            key = id(node)
            if key in on_path:
                raise CompositionError(f"{self.name}: delegation cycle through {_label(node)}")
            if key in done:
                return
            path.append(key)
            on_path.add(key)
            for child in node.nested_propagators():
                visit(child)
            on_path.discard(path.pop())
            done.add(key)

        visit(self)

    def _begin_run(self) -> None:
        """Discard results of the previous run before computing new ones."""
        self._propagated = False
        for record in self._records.values():
            record.clear_result()

    def _run_delegates(self) -> dict[Hashable, BodyResult]:
        """
        Run every nested propagator once and collect delegated results.

        Each delegate first receives its bodies (registration plus this
        propagator's initial state, when one is set), then runs with its own
        interval and sampling, in order of first assignment.
        """
        delegated = [r for r in self._records.values() if r.propagator is not None]
        for record in delegated:
            delegate = record.propagator
            if not delegate.has_body(record.body):
                delegate.add_body(record.body)
            if record.initial_state is not None:
                delegate.set_initial_state(record.body, record.initial_state)

        for delegate in self.nested_propagators():
            logger.debug("%s: running delegate %s", self.name, _label(delegate))
            delegate.propagate()

        results: dict[Hashable, BodyResult] = {}
        for record in delegated:
            delegate = record.propagator
            results[record.body] = BodyResult(
                final_state=delegate.get_final_state(record.body),
                final_time=delegate.get_final_time(record.body),
                history=dict(
                    delegate.get_propagation_history_at_fixed_output_intervals(record.body)
                ),
            )
        return results

    def _commit(self, results: dict[Hashable, BodyResult]) -> None:
        for body, result in results.items():
            record = self._records[body]
            record.final_state = result.final_state
            record.final_time = result.final_time
            record.history = dict(sorted(result.history.items()))
        self._propagated = True


class BodyPropagator(Propagator):
    """
    Propagator that advances bodies itself unless they are delegated.

    Subclasses implement _advance(). Every run recomputes all bodies from
    their initial states and replaces the previous results; if any body
    fails, no body keeps a result from the failed run.
    """

    def propagate(self) -> None:
        start, end = self._validated_interval()
        self._check_acyclic()
        self._begin_run()

        sample_times = fixed_output_times(start, end, self._fixed_output_interval)
        if 0.0 < end - start < self._fixed_output_interval:
            logger.warning(
                "%s: fixed output interval %g exceeds interval length %g; "
                "only the start is sampled",
                self.name, self._fixed_output_interval, end - start,
            )
        targets = sample_times
        if not targets or targets[-1] != end:
            targets = targets + (end,)

        logger.info(
            "%s: propagating %d bodies over [%g, %g]",
            self.name, len(self._records), start, end,
        )

        own = [r for r in self._records.values() if r.propagator is None]
        for record in own:
            if record.initial_state is None:
                raise ConfigurationError(
                    f"{self.name}: body {record.body!r} has no initial state"
                )

        results = self._run_delegates()
        for record in own:
            states = list(self._advance(record.body, record.initial_state, start, targets))
            if len(states) != len(targets):
                raise NumericalFailure(
                    f"{self.name}: expected {len(targets)} states for body "
                    f"{record.body!r}, strategy returned {len(states)}"
                )
            results[record.body] = BodyResult(
                final_state=states[-1],
                final_time=end,
                history=dict(zip(sample_times, states)),
            )

        self._commit(results)
        logger.info("%s: propagation complete", self.name)

    @abstractmethod
    def _advance(
        self,
        body: Hashable,
        initial_state: Any,
        start: float,
        targets: tuple[float, ...],
    ) -> list[Any]:
        """
        Advance `initial_state` (valid at `start`) to each time in `targets`.

        targets is ascending, every entry >= start, and its last entry is
        the end of the interval. Returns one state per target.
        """


def _label(propagator: Any) -> str:
    return getattr(propagator, "name", type(propagator).__name__)


def _reaches(origin: PropagatorPort, target: Any) -> bool:
    """True when `target` is `origin` or reachable through its delegates."""
    stack = [origin]
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if node is target:
            return True
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend(node.nested_propagators())
    return False
