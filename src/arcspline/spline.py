"""Piecewise cubic Bezier splines with cached arc lengths and arc length reparameterization."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from arcspline.bezier import BezierCurve
from arcspline.common import DEFAULT_SETTINGS, KnotMode, SplineSettings
from arcspline.geom import ZERO_LENGTH_EPS, BoundingBox, GeomMath

logger = logging.getLogger(__name__)

PointLike = Union[Sequence[float], NDArray[np.float64]]


class SplineError(Exception):
    """Base exception for spline-related errors."""


class SplineStructureError(SplineError, ValueError):
    """Raised when control points or modes do not describe a valid spline."""


###############################################################################
# BezierSpline
###############################################################################


class BezierSpline:
    """Sequence of cubic Bezier curves sharing their end points (knots).

    The control points are stored as one array of shape (n, 3) with n = 3 * curve_count + 1.
    Curve i uses the points 3i .. 3i+3; every point with an index divisible by 3 is a knot,
    the others are handles. Each knot has a KnotMode constraining its two adjacent handles.

    The whole spline is parameterized by t in [0, 1], each curve covering an equal
    share 1 / curve_count of the parameter range regardless of its length.
    Curve lengths and the approximate reparameterization table are computed lazily
    and invalidated by every edit.

    Attributes:
        _points: Array of control points (shape: n_points, 3)
        _modes: Mode of each knot (curve_count + 1 entries)
        _loop: True if the first and the last knot are welded together
        _settings: Numerical settings (integration, inversion, sampling)
        _curve_lengths: Cached length of each curve
        _arc_lengths: Cached arc length from the spline start to each knot
        _t_samples: Cached parameters at multiples of the sample spacing
        _ts_slopes: Cached slopes between consecutive parameter samples
    """

    _points: NDArray[np.float64]
    _modes: List[KnotMode]
    _loop: bool
    _settings: SplineSettings
    _curve_lengths: Optional[NDArray[np.float64]]
    _arc_lengths: Optional[NDArray[np.float64]]
    _t_samples: Optional[NDArray[np.float64]]
    _ts_slopes: Optional[NDArray[np.float64]]

    def __init__(
        self,
        points: Optional[Union[Sequence[PointLike], NDArray[np.float64]]] = None,
        modes: Optional[Sequence[KnotMode]] = None,
        loop: bool = False,
        settings: Optional[SplineSettings] = None,
    ):
        """
        Initialize a spline from its control points.

        Args:
            points: a sequence of (x, y) or (x, y, z). Defaults to the straight
                curve created by reset().
            modes: mode of each knot. Defaults to FREE for every knot.
            loop: True to weld the last knot onto the first.
            settings: numerical settings. Defaults to DEFAULT_SETTINGS.

        Raises:
            SplineStructureError: If points or modes do not describe a valid spline.
        """
        self._settings = settings if settings is not None else DEFAULT_SETTINGS
        self._loop = False
        self.set_dirty()

        if points is None:
            self.reset()
        else:
            self._points = self._validated_points(points)
            if modes is None:
                self._modes = [KnotMode.FREE] * (self.curve_count + 1)
            else:
                self._modes = [KnotMode(mode) for mode in modes]
                if len(self._modes) != self.curve_count + 1:
                    raise SplineStructureError(
                        f"Spline with {self.curve_count} curves needs {self.curve_count + 1} modes, "
                        f"got {len(self._modes)}"
                    )

        if loop:
            self.loop = True

    @staticmethod
    def _validated_points(points: Union[Sequence[PointLike], NDArray[np.float64]]) -> NDArray[np.float64]:
        arr = np.array(points, dtype=np.float64)
        if arr.ndim != 2:
            raise SplineStructureError(f"points must have 2 dimensions, got {arr.ndim}")
        if arr.shape[1] == 2:
            arr = np.column_stack([arr, np.zeros(arr.shape[0], dtype=np.float64)])
        elif arr.shape[1] != 3:
            raise SplineStructureError(f"points must have shape (n, 2) or (n, 3), got {arr.shape}")

        num_points = arr.shape[0]
        if num_points < 4:
            raise SplineStructureError(f"A spline needs at least 4 control points, got {num_points}")
        if num_points % 3 != 1:
            raise SplineStructureError(f"Number of control points must be 3 * curves + 1, got {num_points}")
        return arr

    def reset(self) -> None:
        """Replace the spline by a single straight curve with two SMOOTH knots."""
        self._points = np.array(
            [
                [1.0, 2.0, 2.0],
                [2.0, 2.0, 2.0],
                [3.0, 2.0, 2.0],
                [4.0, 2.0, 2.0],
            ],
            dtype=np.float64,
        )
        self._modes = [KnotMode.SMOOTH, KnotMode.SMOOTH]
        self._loop = False
        self.set_dirty()

    ###########################################################################
    # Properties
    ###########################################################################

    @property
    def points(self) -> NDArray[np.float64]:
        """
        The control points as read-only numpy array of shape (n_points, 3).
        """
        view = self._points.view()
        view.flags.writeable = False
        return view

    @property
    def modes(self) -> Tuple[KnotMode, ...]:
        """The mode of each knot."""
        return tuple(self._modes)

    @property
    def point_count(self) -> int:
        """Number of control points."""
        return self._points.shape[0]

    @property
    def curve_count(self) -> int:
        """Number of cubic curves."""
        return (self._points.shape[0] - 1) // 3

    @property
    def settings(self) -> SplineSettings:
        """The numerical settings of this spline."""
        return self._settings

    @settings.setter
    def settings(self, settings: SplineSettings) -> None:
        previous = self._settings
        self._settings = settings
        lengths_changed = (
            previous.integration_method != settings.integration_method
            or previous.integration_steps != settings.integration_steps
        )
        # the exact inversion feeds the sample table, so any change invalidates it
        self.set_dirty(lengths=lengths_changed, samples=True)

    @property
    def sample_spacing(self) -> float:
        """Distance between two samples of the approximate reparameterization table."""
        return self._settings.sample_spacing

    @sample_spacing.setter
    def sample_spacing(self, spacing: float) -> None:
        self.settings = self._settings.replace(sample_spacing=spacing)

    @property
    def loop(self) -> bool:
        """True if the last knot is welded onto the first one."""
        return self._loop

    @loop.setter
    def loop(self, value: bool) -> None:
        self._loop = bool(value)
        if self._loop:
            self._modes[-1] = self._modes[0]
            self.set_control_point(0, self._points[0])

    def set_dirty(self, lengths: bool = True, samples: bool = True) -> None:
        """
        Invalidate cached values.

        The sample table is derived from the curve lengths, so invalidating the
        lengths always invalidates the samples too.

        Args:
            lengths: Invalidate curve and arc lengths.
            samples: Invalidate the approximate reparameterization table.
        """
        if lengths:
            self._curve_lengths = None
            self._arc_lengths = None
            samples = True
        if samples:
            self._t_samples = None
            self._ts_slopes = None

    ###########################################################################
    # Evaluation
    ###########################################################################

    def curve_points(self, curve_index: int) -> NDArray[np.float64]:
        """The four control points of the given curve as array of shape (4, 3)."""
        i = curve_index * 3
        return self._points[i : i + 4]

    def _locate(self, t: float, start_knot: Optional[int] = None, end_knot: Optional[int] = None) -> Tuple[int, float]:
        """Map a parameter of the spline (or of the knot range) to (curve index, curve parameter).

        Raises:
            ValueError: If only one of start_knot and end_knot is given.
        """
        if start_knot is None and end_knot is None:
            start_knot, end_knot = 0, self.curve_count
        elif start_knot is None or end_knot is None:
            raise ValueError(f"A knot range needs both knots, got start_knot={start_knot}, end_knot={end_knot}")

        if t >= 1.0:
            return end_knot - 1, 1.0

        t = GeomMath.clamp01(t) * (end_knot - start_knot)
        i = int(t)
        return start_knot + i, t - i

    def point(self, t: float, start_knot: Optional[int] = None, end_knot: Optional[int] = None) -> NDArray[np.float64]:
        """
        Point of the spline at parameter t.

        Args:
            t: Parameter in [0, 1], clamped.
            start_knot: Optional first knot of a sub-range the parameter refers to.
            end_knot: Optional last knot of a sub-range the parameter refers to.

        Returns:
            NDArray[np.float64]: the point
        """
        curve_index, local_t = self._locate(t, start_knot, end_knot)
        return BezierCurve.point(self.curve_points(curve_index), local_t)

    def velocity(
        self, t: float, start_knot: Optional[int] = None, end_knot: Optional[int] = None
    ) -> NDArray[np.float64]:
        """First derivative at parameter t, with respect to the parameter of the curve containing t."""
        curve_index, local_t = self._locate(t, start_knot, end_knot)
        return BezierCurve.velocity(self.curve_points(curve_index), local_t)

    def acceleration(
        self, t: float, start_knot: Optional[int] = None, end_knot: Optional[int] = None
    ) -> NDArray[np.float64]:
        """Second derivative at parameter t, with respect to the parameter of the curve containing t."""
        curve_index, local_t = self._locate(t, start_knot, end_knot)
        return BezierCurve.acceleration(self.curve_points(curve_index), local_t)

    def direction(
        self, t: float, start_knot: Optional[int] = None, end_knot: Optional[int] = None
    ) -> NDArray[np.float64]:
        """
        Unit tangent at parameter t.

        Where the velocity vanishes (a handle on top of its knot) the tangent is
        the direction of the acceleration; a curve collapsed into a point has
        the zero vector as direction.
        """
        curve_index, local_t = self._locate(t, start_knot, end_knot)
        ctrl = self.curve_points(curve_index)

        velocity = BezierCurve.velocity(ctrl, local_t)
        if GeomMath.magnitude(velocity) >= ZERO_LENGTH_EPS:
            return GeomMath.normalize(velocity)

        # sign flips at the curve end: the curve arrives from the side opposite to B''(1)
        acceleration = BezierCurve.acceleration(ctrl, local_t)
        return GeomMath.normalize(acceleration if local_t < 0.5 else -acceleration)

    def knot(self, knot_index: int) -> NDArray[np.float64]:
        """Position of the given knot."""
        return self._points[knot_index * 3].copy()

    def polygonize(self, steps_per_curve: int = 20) -> NDArray[np.float64]:
        """
        Polygonize the whole spline.

        Args:
            steps_per_curve: Number of line segments per curve.

        Returns:
            NDArray[np.float64] of shape (curve_count * steps_per_curve + 1, 3)
        """
        parts = [BezierCurve.polygonize(self.curve_points(0), steps_per_curve)]
        for i in range(1, self.curve_count):
            # skip the shared knot
            parts.append(BezierCurve.polygonize(self.curve_points(i), steps_per_curve)[1:])
        return np.concatenate(parts)

    @property
    def bounding_box(self) -> BoundingBox:
        """Bounding box of the control polygon (always contains the curve)."""
        return BoundingBox.from_points(self._points)

    ###########################################################################
    # Lengths
    ###########################################################################

    def _integrate(self, curve_index: int, t0: float, t1: float) -> float:
        integrate = BezierCurve.integrator(self._settings.integration_method)
        return integrate(self.curve_points(curve_index), t0, t1, self._settings.integration_steps)

    def _update_lengths(self) -> None:
        if self._curve_lengths is not None:
            return

        count = self.curve_count
        curve_lengths = np.empty(count, dtype=np.float64)
        for i in range(count):
            curve_lengths[i] = self._integrate(i, 0.0, 1.0)

        arc_lengths = np.zeros(count + 1, dtype=np.float64)
        arc_lengths[1:] = np.cumsum(curve_lengths)

        self._curve_lengths = curve_lengths
        self._arc_lengths = arc_lengths
        logger.debug("Updated lengths of %d curves, total length %s", count, arc_lengths[-1])

    @property
    def length(self) -> float:
        """Total arc length of the spline."""
        self._update_lengths()
        return float(self._arc_lengths[-1])

    def curve_length(self, curve_index: int) -> float:
        """Arc length of the given curve."""
        self._update_lengths()
        return float(self._curve_lengths[curve_index])

    def arc_length(self, t0: float, t1: float) -> float:
        """
        Arc length between two spline parameters.

        Args:
            t0: First parameter in [0, 1], clamped.
            t1: Second parameter in [0, 1], clamped. May be smaller than t0.

        Returns:
            float: the (non-negative) arc length
        """
        self._update_lengths()

        t0, t1 = GeomMath.clamp01(t0), GeomMath.clamp01(t1)
        if t0 == t1:
            return 0.0
        if t0 > t1:
            t0, t1 = t1, t0

        count = self.curve_count
        curve0 = int(t0 * count)
        curve1 = count - 1 if t1 == 1.0 else int(t1 * count)
        local0 = t0 * count - curve0
        local1 = t1 * count - curve1

        if curve0 == curve1:
            return self._integrate(curve0, local0, local1)

        result = self._integrate(curve0, local0, 1.0)
        result += float(np.sum(self._curve_lengths[curve0 + 1 : curve1]))
        result += self._integrate(curve1, 0.0, local1)
        return result

    def arc_length_between_knots(self, start_knot: int, end_knot: int) -> float:
        """Arc length between two knots, from cached curve lengths."""
        self._update_lengths()

        if start_knot == end_knot:
            return 0.0
        if start_knot > end_knot:
            start_knot, end_knot = end_knot, start_knot
        return float(np.sum(self._curve_lengths[start_knot:end_knot]))

    ###########################################################################
    # Arc length reparameterization
    ###########################################################################

    def arc_length_parameter(self, s: float, epsilon: Optional[float] = None) -> float:
        """
        Spline parameter at which the arc length from the spline start equals _s_.

        The curve containing _s_ is found from the cached arc lengths, then the
        inversion runs on that curve only, starting from the linear guess.

        Args:
            s: Arc length, clamped into [0, length].
            epsilon: Maximum arc length error. Defaults to settings.epsilon.

        Returns:
            float: the spline parameter in [0, 1]
        """
        self._update_lengths()

        if s <= 0.0:
            return 0.0
        if s >= self.length:
            return 1.0

        count = self.curve_count
        curve_index = 0
        while curve_index < count - 1 and s >= self._arc_lengths[curve_index + 1]:
            curve_index += 1

        local_length = s - float(self._arc_lengths[curve_index])
        curve_length = float(self._curve_lengths[curve_index])
        t_guess = local_length / curve_length if curve_length > 0.0 else 0.0

        settings = self._settings
        local_t = BezierCurve.arc_length_parameter(
            self.curve_points(curve_index),
            local_length,
            t_guess,
            settings.epsilon if epsilon is None else epsilon,
            settings.max_iterations,
            settings.integration_method,
            settings.integration_steps,
        )
        return (curve_index + local_t) / count

    def _update_samples(self) -> None:
        if self._t_samples is not None:
            return

        self._update_lengths()
        spacing = self._settings.sample_spacing
        num_samples = int(self.length / spacing)

        # one sample at s=0 plus one beyond the last multiple of the spacing
        t_samples = np.zeros(num_samples + 2, dtype=np.float64)
        ts_slopes = np.zeros(num_samples + 2, dtype=np.float64)
        for i in range(1, num_samples + 2):
            t_samples[i] = self.arc_length_parameter(i * spacing)
            ts_slopes[i] = (t_samples[i] - t_samples[i - 1]) / spacing

        self._t_samples = t_samples
        self._ts_slopes = ts_slopes
        logger.debug("Updated %d reparameterization samples with spacing %s", num_samples + 2, spacing)

    def arc_length_parameter_approximate(self, s: float) -> float:
        """
        Fast approximation of arc_length_parameter().

        Interpolates linearly between parameters sampled at multiples of the
        sample spacing. The table is built once per edit in O(length / spacing)
        exact inversions; each lookup is O(1).

        Args:
            s: Arc length, clamped into [0, length].

        Returns:
            float: the spline parameter in [0, 1]
        """
        self._update_samples()

        if s <= 0.0:
            return 0.0
        if s >= self.length:
            return 1.0

        spacing = self._settings.sample_spacing
        sample_index = int(s / spacing)
        remainder = s - sample_index * spacing
        return float(self._t_samples[sample_index] + self._ts_slopes[sample_index + 1] * remainder)

    def subdivision(self, s0: float, s1: float) -> NDArray[np.float64]:
        """
        Cubic curve approximating the spline between two arc lengths.

        The end points and tangent directions are taken from the spline. Within a
        single curve the handles are scaled by the parameter span, which
        reproduces the spline exactly. Across curves they are scaled by the ratio
        of the arc length span to the length of each end's curve, which is only an
        approximation.

        Args:
            s0: Arc length of the start point.
            s1: Arc length of the end point.

        Returns:
            NDArray[np.float64]: the four control points, shape (4, 3)
        """
        t0 = self.arc_length_parameter(s0)
        t1 = self.arc_length_parameter(s1)

        v0 = self.velocity(t0)
        v1 = self.velocity(t1)

        result = np.empty((4, 3), dtype=np.float64)
        result[0] = self.point(t0)
        result[3] = self.point(t1)

        count = self.curve_count
        curve0, _ = self._locate(t0)
        curve1, _ = self._locate(t1)

        if curve0 == curve1:
            result[1] = result[0] + v0 * (t1 - t0) / 3.0 * count
            result[2] = result[3] - v1 * (t1 - t0) / 3.0 * count
        else:
            length0 = self.arc_length_between_knots(curve0, curve0 + 1)
            length1 = self.arc_length_between_knots(curve1, curve1 + 1)
            scale0 = (s1 - s0) / length0 if length0 > 0.0 else 0.0
            scale1 = (s1 - s0) / length1 if length1 > 0.0 else 0.0
            result[1] = result[0] + v0 / 3.0 * scale0
            result[2] = result[3] - v1 / 3.0 * scale1

        return result

    ###########################################################################
    # Walking
    ###########################################################################

    def _speed(self, curve_index: int, local_t: float) -> float:
        """Curve speed, or the mean speed of the curve (its length) where the curve stands still."""
        speed = GeomMath.magnitude(BezierCurve.velocity(self.curve_points(curve_index), local_t))
        if speed < ZERO_LENGTH_EPS:
            speed = self.curve_length(curve_index)
        return speed

    def progress_at_speed(self, progress: float, velocity: float, elapsed_time: float, direction: int = 1) -> float:
        """
        Advance a spline parameter so that the point moves at a given physical speed.

        The parameter step is elapsed_time * velocity / speed / curve_count, the
        speed being the magnitude of the curve derivative at _progress_. If the
        step crosses a knot it is split: the part up to the knot uses the current
        curve's speed, the remaining time uses the next curve's speed at the knot.

        Args:
            progress: Current spline parameter in [0, 1].
            velocity: Desired physical speed (length per time unit).
            elapsed_time: Time since the last step.
            direction: 1 to walk forward, -1 to walk backward.

        Returns:
            float: the new parameter, clamped into [0, 1]
        """
        count = self.curve_count
        step = 1.0 / count
        curve_index, local_t = self._locate(progress)
        if direction != 1 and local_t == 0.0 and curve_index > 0:
            # walking backward from a knot happens on the previous curve
            curve_index, local_t = curve_index - 1, 1.0

        speed = self._speed(curve_index, local_t)
        if speed < ZERO_LENGTH_EPS:
            # the curve is a single point, so the walk reaches its end knot at once
            return float(min(curve_index + 1, count) * step if direction == 1 else curve_index * step)

        next_t = progress + elapsed_time * velocity / speed * step * direction

        if direction == 1:
            if next_t > 1.0:
                next_t = 1.0

            # curve crossing
            if next_t != 1.0 and progress % step > next_t % step:
                next_curve = min(int(next_t / step), count - 1)
                knot_t = next_curve * step
                fraction = (knot_t - progress) / (next_t - progress)
                next_speed = self._speed(next_curve, 0.0)
                if next_speed < ZERO_LENGTH_EPS:
                    return knot_t
                next_t = knot_t + elapsed_time * (1.0 - fraction) * velocity / next_speed * step
            return next_t

        if next_t < 0.0:
            next_t = 0.0

        # curve crossing
        if next_t != 0.0 and progress % step < next_t % step:
            next_curve = max(int(progress / step), 1)
            knot_t = next_curve * step
            fraction = (progress - knot_t) / (progress - next_t)
            previous_speed = self._speed(next_curve - 1, 1.0)
            if previous_speed < ZERO_LENGTH_EPS:
                return knot_t
            next_t = knot_t - elapsed_time * (1.0 - fraction) * velocity / previous_speed * step
        return next_t

    ###########################################################################
    # Editing
    ###########################################################################

    @staticmethod
    def _as_point(point: PointLike) -> NDArray[np.float64]:
        """Copy of a 2D or 3D point as 3D array, 2D points get z = 0."""
        arr = np.array(point, dtype=np.float64)
        if arr.shape == (2,):
            return np.append(arr, 0.0)
        if arr.shape != (3,):
            raise ValueError(f"A point must have 2 or 3 coordinates, got shape {arr.shape}")
        return arr

    def control_point(self, index: int) -> NDArray[np.float64]:
        """Copy of the control point at the given index."""
        return self._points[index].copy()

    def set_control_point(self, index: int, point: PointLike) -> None:
        """
        Move a control point.

        Moving a knot moves its adjacent handles by the same offset, keeping the
        local shape. In loop mode the first and last knot are the same point, so
        moving either moves both along with the handles next to both. Afterwards
        the knot mode is enforced.

        Args:
            index: Index of the control point.
            point: New position.
        """
        point = self._as_point(point)
        points = self._points
        last = points.shape[0] - 1

        if index % 3 == 0:
            delta = point - points[index]
            if self._loop:
                if index == 0:
                    points[1] += delta
                    points[last - 1] += delta
                    points[last] = point
                elif index == last:
                    points[0] = point
                    points[1] += delta
                    points[index - 1] += delta
                else:
                    points[index - 1] += delta
                    points[index + 1] += delta
            else:
                if index > 0:
                    points[index - 1] += delta
                if index + 1 < points.shape[0]:
                    points[index + 1] += delta

        points[index] = point
        self._enforce_mode(index)
        self.set_dirty()

    def set_control_point_raw(self, index: int, point: PointLike) -> None:
        """Move a single control point, without moving handles or enforcing modes."""
        self._points[index] = self._as_point(point)
        self.set_dirty()

    def control_point_mode(self, index: int) -> KnotMode:
        """Mode of the knot the given control point belongs to."""
        return self._modes[(index + 1) // 3]

    def set_control_point_mode(self, index: int, mode: KnotMode) -> None:
        """
        Set the mode of the knot the given control point belongs to and enforce it.

        In loop mode the first and last knot share their mode.
        """
        mode_index = (index + 1) // 3
        self._modes[mode_index] = mode
        if self._loop:
            if mode_index == 0:
                self._modes[-1] = mode
            elif mode_index == len(self._modes) - 1:
                self._modes[0] = mode
        self._enforce_mode(index)
        self.set_dirty()

    def _enforce_mode(self, index: int) -> None:
        """
        Recompute one handle of a knot from the other to satisfy the knot mode.

        The handle on the side of _index_ is kept and the opposite one is enforced.
        Open end knots have only one handle and are left alone.
        """
        mode_index = (index + 1) // 3
        mode = self._modes[mode_index]
        if mode == KnotMode.FREE or not self._loop and mode_index in (0, len(self._modes) - 1):
            return

        points = self._points
        num_points = points.shape[0]
        middle_index = mode_index * 3

        # indices wrap around the welded knot of a loop
        before = middle_index - 1 if middle_index - 1 >= 0 else num_points - 2
        after = middle_index + 1 if middle_index + 1 < num_points else 1
        if index <= middle_index:
            fixed_index, enforced_index = before, after
        else:
            fixed_index, enforced_index = after, before

        middle = points[middle_index]
        enforced_tangent = middle - points[fixed_index]
        if mode == KnotMode.TANGENT_DIRECTION_LINKED:
            enforced_tangent = GeomMath.normalize(enforced_tangent) * GeomMath.distance(middle, points[enforced_index])
        points[enforced_index] = middle + enforced_tangent

    def add_point(self, selected_index: int = -1) -> None:
        """
        Add a curve to the spline.

        If _selected_index_ is -1, the last point or a handle, a straight curve of
        three unit steps is appended along the end tangent. If it is any other knot,
        the curve starting there is split at its arc length midpoint; the split
        keeps the shape of the curve.

        Args:
            selected_index: Index of the selected control point.
        """
        points = self._points
        last = points.shape[0] - 1

        if selected_index == -1 or selected_index == last or selected_index % 3 != 0:
            end_curve = self.curve_points(self.curve_count - 1)
            direction = GeomMath.normalize(BezierCurve.velocity(end_curve, 1.0))
            if not direction.any():
                direction = GeomMath.normalize(end_curve[3] - end_curve[0])

            end = points[last]
            appended = np.array([end + direction, end + 2.0 * direction, end + 3.0 * direction])
            self._points = np.concatenate([points, appended])

            self._modes.append(KnotMode.CORNER)
            self._modes[-2] = KnotMode.ALIGNED
            self._enforce_mode(self._points.shape[0] - 4)

            if self._loop:
                self._points[-1] = self._points[0]
                self._modes[-1] = self._modes[0]
                self._enforce_mode(0)
        else:
            curve_index = selected_index // 3
            self._update_lengths()
            s = float(self._arc_lengths[curve_index]) + float(self._curve_lengths[curve_index]) / 2.0
            t0 = self.arc_length_parameter(s) * self.curve_count - curve_index

            ctrl = self.curve_points(curve_index).copy()
            point = BezierCurve.point(ctrl, t0)
            velocity = BezierCurve.velocity(ctrl, t0)

            new_points = np.array(
                [
                    ctrl[0] + (ctrl[1] - ctrl[0]) * t0,
                    point - velocity * t0 / 3.0,
                    point,
                    point + velocity * (1.0 - t0) / 3.0,
                    ctrl[3] + (ctrl[2] - ctrl[3]) * (1.0 - t0),
                ]
            )
            self._points = np.concatenate(
                [points[: selected_index + 1], new_points, points[selected_index + 3 :]]
            )

            self._modes.insert(curve_index + 1, KnotMode.ALIGNED)
            self._modes[curve_index] = KnotMode.CORNER
            self._modes[curve_index + 2] = KnotMode.CORNER
            if self._loop:
                if curve_index == 0:
                    self._modes[-1] = self._modes[0]
                elif curve_index + 2 == len(self._modes) - 1:
                    self._modes[0] = self._modes[-1]

        self.set_dirty()

    def delete_point(self, index: int) -> None:
        """
        Remove a knot together with two adjacent handles.

        Nothing happens if the spline has a single curve.

        Args:
            index: Index of the control point to delete.
        """
        if self.curve_count < 2:
            logger.debug("Refusing to delete point %d of a single curve spline", index)
            return

        last = self._points.shape[0] - 1
        if index not in (0, last):
            first_removed = index - 1
        elif index == 0:
            first_removed = 0
        else:
            first_removed = index - 2

        self._points = np.delete(self._points, np.s_[first_removed : first_removed + 3], axis=0)
        del self._modes[(index + 1) // 3]

        if self._loop and index in (0, last):
            self._modes[-1] = self._modes[0]
            self.set_control_point(0, self._points[0])

        self.set_dirty()

    ###########################################################################
    # Conversion
    ###########################################################################

    def to_dict(self) -> dict:
        """Convert the spline to a dictionary of plain Python values."""
        return {
            "points": self._points.tolist(),
            "modes": [mode.name for mode in self._modes],
            "loop": self._loop,
            "settings": self._settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> BezierSpline:
        """Create a BezierSpline instance from a dictionary.

        Raises:
            SplineStructureError: If the dictionary does not describe a valid spline.
        """
        if "points" not in data:
            raise SplineStructureError("Spline data has no 'points'")
        modes = data.get("modes")
        try:
            parsed_modes = None if modes is None else [KnotMode[name] for name in modes]
        except KeyError as e:
            raise SplineStructureError(f"Unknown knot mode {e}") from e
        settings = data.get("settings")
        return cls(
            points=data["points"],
            modes=parsed_modes,
            loop=data.get("loop", False),
            settings=None if settings is None else SplineSettings.from_dict(settings),
        )

    def __str__(self):
        """Returns a string representation of the BezierSpline instance."""
        return f"BezierSpline(curves={self.curve_count}, loop={self._loop}, modes={[m.name for m in self._modes]})"
