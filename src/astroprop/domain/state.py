# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Body and state value types.

A Body is an identity handle: two bodies with the same name are still
distinct lookup keys. CartesianState is the numeric state used by the
bundled strategies; the propagator core accepts any state value.

No external dependencies: only stdlib dataclasses/math + numpy.
"""
import math
from dataclasses import dataclass

import numpy as np


TimeValue = float


@dataclass(frozen=True, eq=False)
class Body:
    """Physical object being propagated, compared by identity."""
    name: str
    mass_kg: float | None = None


@dataclass(frozen=True)
class CartesianState:
    """Inertial position (m) and velocity (m/s) of a body."""
    position: tuple[float, float, float]
    velocity: tuple[float, float, float]

    @classmethod
    def from_vector(cls, vector) -> "CartesianState":
        """Build from a 6-element sequence (x, y, z, vx, vy, vz)."""
        values = tuple(float(v) for v in vector)
        if len(values) != 6:
            raise ValueError(f"state vector must have 6 elements, got {len(values)}")
        return cls(position=values[0:3], velocity=values[3:6])

    def as_tuple(self) -> tuple[float, ...]:
        return self.position + self.velocity

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.as_tuple())

    @property
    def radius(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))
