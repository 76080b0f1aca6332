# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interfaces for scenario file I/O.

Adapters implement these to handle different file formats.
"""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ScenarioReader(Protocol):
    """Port for reading scenario configuration data."""

    def read_scenario(self, path: str) -> dict[str, Any]:
        """Read and parse a scenario file."""
        ...
