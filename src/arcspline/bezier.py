"""Cubic Bezier curve evaluation, arc length integration and arc length reparameterization."""

from __future__ import annotations

import logging
from typing import Callable, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from arcspline.common import DEFAULT_INTEGRATION_STEPS, DEFAULT_MAX_ITERATIONS, IntegrationMethod
from arcspline.geom import ZERO_LENGTH_EPS, GeomMath

logger = logging.getLogger(__name__)

ControlPoints = Union[Sequence[Sequence[float]], NDArray[np.float64]]
Integrator = Callable[..., float]
Parameters = Union[Sequence[float], NDArray[np.float64]]

# Legendre-Gauss weights with n=12
_GAUSS_WEIGHTS: NDArray[np.float64] = np.array(
    [
        0.2491470458134028,
        0.2491470458134028,
        0.2334925365383548,
        0.2334925365383548,
        0.2031674267230659,
        0.2031674267230659,
        0.1600783285433462,
        0.1600783285433462,
        0.1069393259953184,
        0.1069393259953184,
        0.0471753363865118,
        0.0471753363865118,
    ],
    dtype=np.float64,
)

# Legendre-Gauss abscissae with n=12 (roots of the 12th order Legendre polynomial)
_GAUSS_ABSCISSAE: NDArray[np.float64] = np.array(
    [
        -0.1252334085114689,
        0.1252334085114689,
        -0.3678314989981802,
        0.3678314989981802,
        -0.5873179542866175,
        0.5873179542866175,
        -0.7699026741943047,
        0.7699026741943047,
        -0.9041172563704749,
        0.9041172563704749,
        -0.9815606342467192,
        0.9815606342467192,
    ],
    dtype=np.float64,
)

_INTEGRATOR_NAMES = {
    "gauss": "integrate",
    "trapezoid": "integrate_trapezoid",
    "simpson": "integrate_simpson",
    "simpson38": "integrate_simpson38",
}


class BezierCurve:
    """Class to handle a single cubic Bezier curve.

    Provides the curve point and its first and second derivative, four numerical
    integrators of the curve speed (trapezoid, Simpson, Simpson 3/8 and
    Gauss-Legendre) and the inversion of the arc length into a curve parameter.
    All methods take the four control points (start, control1, control2, end)
    as a sequence or array of 2D or 3D points.
    """

    @staticmethod
    def control_points(points: ControlPoints) -> NDArray[np.float64]:
        """Return the four control points as float array of shape (4, dim).

        Raises:
            ValueError: If not exactly four points are given.
        """
        if isinstance(points, np.ndarray) and points.dtype == np.float64:
            arr = points
        else:
            arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[0] != 4:
            raise ValueError(f"A cubic Bezier curve requires 4 control points, got shape {arr.shape}")
        return arr

    ###########################################################################
    # Evaluation
    ###########################################################################

    @classmethod
    def point(cls, points: ControlPoints, t: float) -> NDArray[np.float64]:
        """
        Curve point at parameter t.

        B(t) = (1-t)^3*P0 + 3*(1-t)^2*t*P1 + 3*(1-t)*t^2*P2 + t^3*P3

        Args:
            points: The four control points.
            t: Curve parameter, clamped into [0, 1].

        Returns:
            NDArray[np.float64]: the point
        """
        p0, p1, p2, p3 = cls.control_points(points)
        t = GeomMath.clamp01(t)
        omt = 1.0 - t
        return omt * omt * omt * p0 + 3.0 * omt * omt * t * p1 + 3.0 * omt * t * t * p2 + t * t * t * p3

    @classmethod
    def velocity(cls, points: ControlPoints, t: float) -> NDArray[np.float64]:
        """
        First derivative of the curve at parameter t.

        B'(t) = 3*(1-t)^2*(P1-P0) + 6*(1-t)*t*(P2-P1) + 3*t^2*(P3-P2)

        Args:
            points: The four control points.
            t: Curve parameter, clamped into [0, 1].

        Returns:
            NDArray[np.float64]: the velocity vector
        """
        p0, p1, p2, p3 = cls.control_points(points)
        t = GeomMath.clamp01(t)
        omt = 1.0 - t
        return 3.0 * omt * omt * (p1 - p0) + 6.0 * omt * t * (p2 - p1) + 3.0 * t * t * (p3 - p2)

    @classmethod
    def acceleration(cls, points: ControlPoints, t: float) -> NDArray[np.float64]:
        """
        Second derivative of the curve at parameter t.

        B''(t) = 6*(1-t)*(P2-2*P1+P0) + 6*t*(P3-2*P2+P1)

        Args:
            points: The four control points.
            t: Curve parameter, clamped into [0, 1].

        Returns:
            NDArray[np.float64]: the acceleration vector
        """
        p0, p1, p2, p3 = cls.control_points(points)
        t = GeomMath.clamp01(t)
        return 6.0 * (1.0 - t) * (p2 - 2.0 * p1 + p0) + 6.0 * t * (p3 - 2.0 * p2 + p1)

    @classmethod
    def velocities(cls, points: ControlPoints, t_values: Parameters) -> NDArray[np.float64]:
        """Vectorized first derivative, returns an array of shape (len(t_values), dim)."""
        p0, p1, p2, p3 = cls.control_points(points)
        t = np.clip(np.asarray(t_values, dtype=np.float64), 0.0, 1.0)[:, np.newaxis]
        omt = 1.0 - t
        return 3.0 * omt * omt * (p1 - p0) + 6.0 * omt * t * (p2 - p1) + 3.0 * t * t * (p3 - p2)

    @classmethod
    def speeds(cls, points: ControlPoints, t_values: Parameters) -> NDArray[np.float64]:
        """Magnitude of the first derivative at each of the given parameters."""
        return np.linalg.norm(cls.velocities(points, t_values), axis=1)

    @classmethod
    def polygonize(cls, points: ControlPoints, steps: int) -> NDArray[np.float64]:
        """
        Polygonize the curve into line segments.

        Args:
            points: The four control points.
            steps: Number of segments to divide the curve into.

        Returns:
            NDArray[np.float64] of shape (steps+1, dim) with the curve points at uniform parameter steps.
        """
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")
        p0, p1, p2, p3 = cls.control_points(points)

        t = np.linspace(0.0, 1.0, steps + 1, dtype=np.float64)[:, np.newaxis]
        omt = 1.0 - t
        omt2 = omt * omt
        t2 = t * t
        return omt2 * omt * p0 + 3.0 * omt2 * t * p1 + 3.0 * omt * t2 * p2 + t2 * t * p3

    ###########################################################################
    # Integration
    ###########################################################################

    @classmethod
    def integrate_trapezoid(
        cls, points: ControlPoints, t0: float, t1: float, steps: int = DEFAULT_INTEGRATION_STEPS
    ) -> float:
        """
        Arc length in [t0, t1] by integrating the curve speed with the composite trapezoid rule.

        Args:
            points: The four control points.
            t0: Left parameter in [0, 1].
            t1: Right parameter in [0, 1].
            steps: Number of intervals.

        Returns:
            float: the arc length (negative if t1 < t0)
        """
        if steps < 1:
            raise ValueError(f"Trapezoid rule requires at least 1 step, got {steps}")
        h = (t1 - t0) / steps
        speeds = cls.speeds(points, t0 + h * np.arange(steps + 1, dtype=np.float64))

        weights = np.ones(steps + 1, dtype=np.float64)
        weights[0] = weights[-1] = 0.5
        return float(np.dot(weights, speeds) * h)

    @classmethod
    def integrate_simpson(
        cls, points: ControlPoints, t0: float, t1: float, steps: int = DEFAULT_INTEGRATION_STEPS
    ) -> float:
        """
        Arc length in [t0, t1] by integrating the curve speed with the composite Simpson rule.

        The number of intervals is _steps_ rounded down to an even number.

        Raises:
            ValueError: If fewer than 2 intervals remain.
        """
        steps = steps - steps % 2
        if steps < 2:
            raise ValueError("Simpson rule requires at least 2 steps")
        h = (t1 - t0) / steps
        speeds = cls.speeds(points, t0 + h * np.arange(steps + 1, dtype=np.float64))

        # 1, 4, 2, 4, ..., 2, 4, 1
        weights = np.ones(steps + 1, dtype=np.float64)
        weights[1:steps:2] = 4.0
        weights[2:steps:2] = 2.0
        return float(np.dot(weights, speeds) * h / 3.0)

    @classmethod
    def integrate_simpson38(
        cls, points: ControlPoints, t0: float, t1: float, steps: int = DEFAULT_INTEGRATION_STEPS
    ) -> float:
        """
        Arc length in [t0, t1] by integrating the curve speed with the composite Simpson 3/8 rule.

        The number of intervals is _steps_ rounded down to a multiple of 3.

        Raises:
            ValueError: If fewer than 3 intervals remain.
        """
        steps = steps - steps % 3
        if steps < 3:
            raise ValueError("Simpson 3/8 rule requires at least 3 steps")
        h = (t1 - t0) / steps
        speeds = cls.speeds(points, t0 + h * np.arange(steps + 1, dtype=np.float64))

        # 1, 3, 3, 2, 3, 3, 2, ..., 3, 3, 1
        weights = np.full(steps + 1, 3.0, dtype=np.float64)
        weights[0] = weights[-1] = 1.0
        weights[3:steps:3] = 2.0
        return float(np.dot(weights, speeds) * 3.0 * h / 8.0)

    @classmethod
    def integrate(
        cls,
        points: ControlPoints,
        t0: float,
        t1: float,
        steps: int = DEFAULT_INTEGRATION_STEPS,  # pylint: disable=unused-argument
    ) -> float:
        """
        Arc length in [t0, t1] by integrating the curve speed with 12-point Gauss-Legendre quadrature.

        This is the default integrator. The sample count is fixed; _steps_ is
        accepted so that all integrators share one signature.

        Args:
            points: The four control points.
            t0: Left parameter in [0, 1].
            t1: Right parameter in [0, 1].
            steps: Ignored.

        Returns:
            float: the arc length (negative if t1 < t0)
        """
        half_span = (t1 - t0) / 2.0
        center = (t0 + t1) / 2.0
        speeds = cls.speeds(points, half_span * _GAUSS_ABSCISSAE + center)
        return float(half_span * np.dot(_GAUSS_WEIGHTS, speeds))

    @classmethod
    def integrator(cls, method: IntegrationMethod = "gauss") -> Integrator:
        """Return the integrator classmethod for the given method name.

        Raises:
            ValueError: If the method is unknown.
        """
        try:
            return getattr(cls, _INTEGRATOR_NAMES[method])
        except KeyError as e:
            raise ValueError(
                f"Unknown integration method '{method}', expected one of {tuple(_INTEGRATOR_NAMES)}"
            ) from e

    ###########################################################################
    # Reparameterization
    ###########################################################################

    @classmethod
    def arc_length_parameter(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: ControlPoints,
        s: float,
        t0: float,
        epsilon: float,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        method: IntegrationMethod = "gauss",
        steps: int = DEFAULT_INTEGRATION_STEPS,
    ) -> float:
        """
        Curve parameter t at which the arc length from the curve start equals _s_.

        Finds the root of F(t) = integrate(0, t) - s with Newton's method
        safeguarded by bisection. F'(t) is the curve speed. The root-bounding
        interval starts as [0, 1]; a Newton candidate outside the interval is
        replaced by the interval midpoint.

        If |F(t)| does not drop below _epsilon_ within _max_iterations_ the last
        computed t is returned. This is no error: near convergence the iterates
        oscillate within the precision of the integration.

        Args:
            points: The four control points.
            s: The desired arc length in [0, curve length].
            t0: Initial candidate for t.
            epsilon: Maximum error of the arc length.
            max_iterations: Maximum number of root-finding iterations.
            method: Integrator used to evaluate F.
            steps: Step count passed to the integrator.

        Returns:
            float: the curve parameter in [0, 1]
        """
        integrate = cls.integrator(method)
        ctrl = cls.control_points(points)

        t = GeomMath.clamp01(t0)
        lower, upper = 0.0, 1.0

        for _ in range(max_iterations):
            f_value = integrate(ctrl, 0.0, t, steps) - s
            if abs(f_value) < epsilon:
                return t

            # Newton candidate, undefined where the curve stands still
            speed = GeomMath.magnitude(cls.velocity(ctrl, t))
            candidate = t - f_value / speed if speed > ZERO_LENGTH_EPS else None

            if f_value > 0.0:
                upper = t
                # slope is positive, so the candidate can only leave the interval to the left
                if candidate is None or candidate <= lower:
                    t = 0.5 * (upper + lower)
                else:
                    t = candidate
            else:
                lower = t
                if candidate is None or candidate >= upper:
                    t = 0.5 * (upper + lower)
                else:
                    t = candidate

        logger.debug("Arc length %s not reached within %d iterations, using t=%s", s, max_iterations, t)
        return t
