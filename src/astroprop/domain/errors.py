# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Propagation error taxonomy.

Configuration and not-yet-computed errors are local conditions the caller
is expected to handle. Numerical failures come from a concrete strategy
during propagate() and never leave a fabricated result behind.
"""


class PropagationError(Exception):
    """Base class for every error raised by astroprop."""


class ConfigurationError(PropagationError, ValueError):
    """Operation referenced an unregistered body or invalid configuration."""


class CompositionError(ConfigurationError):
    """Nested propagator assignment would create a delegation cycle."""


class NotYetComputedError(PropagationError, LookupError):
    """Result queried before a successful propagate() for that body."""


class NumericalFailure(PropagationError, ArithmeticError):
    """Strategy-specific failure while advancing a state."""
