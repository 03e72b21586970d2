"""Central module containing constants, enums and settings shared by the spline modules."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Literal

###############################################################################
# Types
###############################################################################


IntegrationMethod = Literal[  # Type-Definition for the arc length integrators of BezierCurve
    # 12-point Gauss-Legendre quadrature (fixed sample count, default)
    "gauss",
    # Composite trapezoid rule with integration_steps intervals
    "trapezoid",
    # Composite Simpson rule, integration_steps rounded down to an even number
    "simpson",
    # Composite Simpson 3/8 rule, integration_steps rounded down to a multiple of 3
    "simpson38",
]

INTEGRATION_METHODS = ("gauss", "trapezoid", "simpson", "simpson38")

# Smallest integration_steps each composite rule can work with
MIN_INTEGRATION_STEPS = {"gauss": 1, "trapezoid": 1, "simpson": 2, "simpson38": 3}


###############################################################################
# Enums and Consts
###############################################################################


class KnotMode(Enum):
    """Constraint between the two handles adjacent to a knot."""

    # The handles sizes and positions are free.
    FREE = 0
    # The handles directions are linked (anti-parallel), the handles sizes are free.
    TANGENT_DIRECTION_LINKED = 1
    # The handles directions and sizes are linked.
    TANGENT_LINKED = 2

    # Aliases used by editing tools
    CORNER = 0
    ALIGNED = 1
    SMOOTH = 2


class WalkMode(Enum):
    """Enum to define how a walker behaves when it reaches the end of its range."""

    ONCE = 0  # walk from start to end and stop
    LOOP = 1  # jump back to the start and walk again
    PING_PONG = 2  # reverse direction at each end


DEFAULT_INTEGRATION_STEPS: int = 12
DEFAULT_EPSILON: float = 1.0e-4
DEFAULT_MAX_ITERATIONS: int = 10
DEFAULT_SAMPLE_SPACING: float = 1.0


###############################################################################
# SplineSettings
###############################################################################


@dataclass(frozen=True)
class SplineSettings:
    """Numerical settings of a spline.

    Attributes:
        integration_steps: Number of intervals used by the trapezoid and Simpson integrators.
            Higher is more accurate and linearly more expensive.
        integration_method: Integrator used for lengths and arc length inversion.
        epsilon: Convergence tolerance (in length units) of the arc length inversion.
        max_iterations: Maximum number of root-finding iterations of the arc length inversion.
        sample_spacing: Distance between two samples of the approximate inversion table.
    """

    integration_steps: int = DEFAULT_INTEGRATION_STEPS
    integration_method: IntegrationMethod = "gauss"
    epsilon: float = DEFAULT_EPSILON
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    sample_spacing: float = DEFAULT_SAMPLE_SPACING

    def __post_init__(self):
        if self.integration_steps < 1:
            raise ValueError(f"integration_steps must be >= 1, got {self.integration_steps}")
        if self.integration_method not in INTEGRATION_METHODS:
            raise ValueError(
                f"Unknown integration_method '{self.integration_method}', expected one of {INTEGRATION_METHODS}"
            )
        min_steps = MIN_INTEGRATION_STEPS[self.integration_method]
        if self.integration_steps < min_steps:
            raise ValueError(
                f"integration_method '{self.integration_method}' requires integration_steps >= {min_steps}, "
                f"got {self.integration_steps}"
            )
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not self.sample_spacing > 0.0:
            raise ValueError(f"sample_spacing must be positive, got {self.sample_spacing}")

    def replace(self, **changes) -> SplineSettings:
        """Return a copy of these settings with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert settings to a dictionary for serialization."""
        return {
            "integration_steps": self.integration_steps,
            "integration_method": self.integration_method,
            "epsilon": self.epsilon,
            "max_iterations": self.max_iterations,
            "sample_spacing": self.sample_spacing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SplineSettings:
        """Create SplineSettings from a dictionary."""
        return cls(
            integration_steps=data.get("integration_steps", DEFAULT_INTEGRATION_STEPS),
            integration_method=data.get("integration_method", "gauss"),
            epsilon=data.get("epsilon", DEFAULT_EPSILON),
            max_iterations=data.get("max_iterations", DEFAULT_MAX_ITERATIONS),
            sample_spacing=data.get("sample_spacing", DEFAULT_SAMPLE_SPACING),
        )


DEFAULT_SETTINGS = SplineSettings()
