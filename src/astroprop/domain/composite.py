# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Pure orchestrating propagator.

Every registered body is advanced by its own nested propagator, so one run
can mix strategies (e.g. one body integrated numerically, another
propagated analytically). Interior nodes of a propagator tree are usually
CompositePropagators; leaves are concrete strategies.
"""
import logging

from astroprop.domain.errors import ConfigurationError
from astroprop.domain.propagator import Propagator

logger = logging.getLogger(__name__)


class CompositePropagator(Propagator):
    """Delegates every body to the nested propagator assigned to it.

    The composite's own interval is informational: each delegate's interval
    and fixed output interval govern the bodies it advances.
    """

    def propagate(self) -> None:
        undelegated = [r.body for r in self.records() if r.propagator is None]
        if undelegated:
            raise ConfigurationError(
                f"{self.name}: no nested propagator assigned to "
                + ", ".join(repr(b) for b in undelegated)
            )
        self._check_acyclic()
        self._begin_run()

        if self.get_fixed_output_interval():
            logger.warning(
                "%s: fixed output interval is ignored; delegates sample on their own",
                self.name,
            )
        logger.info(
            "%s: delegating %d bodies to %d propagators",
            self.name, len(self.bodies()), len(self.nested_propagators()),
        )
        self._commit(self._run_delegates())
