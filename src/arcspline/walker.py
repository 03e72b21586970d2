"""Walking a spline (or a range of its curves) at constant physical speed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from arcspline.common import WalkMode
from arcspline.spline import BezierSpline

logger = logging.getLogger(__name__)

# Progress this close to the limit counts as having reached it
LIMIT_TOLERANCE: float = 1.0e-9


@dataclass
class WalkState:
    """Mutable state of a walk.

    Attributes:
        progress: Current spline parameter in [0, 1].
        direction: 1 while walking toward higher parameters, -1 otherwise.
        limit: Spline parameter at which the current leg ends.
        finished: True once a ONCE walk reached its end.
    """

    progress: float
    direction: int
    limit: float
    finished: bool = False


@dataclass(frozen=True)
class WalkSample:
    """Where the walker is after a step.

    Attributes:
        progress: Spline parameter.
        position: Point of the spline at _progress_.
        direction: Unit tangent of the spline at _progress_ (look-forward direction).
    """

    progress: float
    position: NDArray[np.float64]
    direction: NDArray[np.float64]


WalkUpdateFunction = Callable[[WalkSample], None]
WalkCompleteFunction = Callable[[], None]


class SplineWalker:
    """Moves a progress value along a spline from one knot to another.

    The walker does not keep time itself: the host calls step() once per tick
    with the elapsed time, and stops calling it to cancel the walk.
    """

    def __init__(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        spline: BezierSpline,
        start_knot: int,
        end_knot: int,
        speed: float,
        mode: WalkMode = WalkMode.ONCE,
        on_update: Optional[WalkUpdateFunction] = None,
        on_complete: Optional[WalkCompleteFunction] = None,
    ):
        """
        Initialize a walk between two knots.

        Args:
            spline: The spline to walk; it is only read.
            start_knot: Knot where the walk starts.
            end_knot: Knot where the walk ends. Lower than start_knot to walk backward.
            speed: Physical speed (length per time unit).
            mode: What happens at the end knot.
            on_update: Called with every sample produced by step().
            on_complete: Called once when a ONCE walk reaches its end.

        Raises:
            ValueError: If the knots are equal or out of range, or the speed is negative.
        """
        count = spline.curve_count
        for knot in (start_knot, end_knot):
            if not 0 <= knot <= count:
                raise ValueError(f"Knot {knot} out of range [0, {count}]")
        if start_knot == end_knot:
            raise ValueError(f"Start and end knot must differ, got {start_knot}")
        if speed < 0.0:
            raise ValueError(f"speed must not be negative, got {speed}")

        self.spline = spline
        self.start_knot = start_knot
        self.end_knot = end_knot
        self.speed = speed
        self.mode = mode
        self.on_update = on_update
        self.on_complete = on_complete
        self.state = WalkState(
            progress=start_knot / count,
            direction=1 if end_knot > start_knot else -1,
            limit=end_knot / count,
        )

    @classmethod
    def from_duration(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        spline: BezierSpline,
        start_knot: int,
        end_knot: int,
        duration: float,
        mode: WalkMode = WalkMode.ONCE,
        on_update: Optional[WalkUpdateFunction] = None,
        on_complete: Optional[WalkCompleteFunction] = None,
    ) -> SplineWalker:
        """Walker covering the arc between the two knots in _duration_ time units.

        Raises:
            ValueError: If the duration is not positive.
        """
        if not duration > 0.0:
            raise ValueError(f"duration must be positive, got {duration}")
        speed = spline.arc_length_between_knots(start_knot, end_knot) / duration
        return cls(spline, start_knot, end_knot, speed, mode, on_update, on_complete)

    @property
    def finished(self) -> bool:
        """True once a ONCE walk reached its end knot."""
        return self.state.finished

    def sample(self) -> WalkSample:
        """Sample of the spline at the current progress."""
        progress = self.state.progress
        return WalkSample(
            progress=progress,
            position=self.spline.point(progress),
            direction=self.spline.direction(progress),
        )

    def step(self, elapsed_time: float) -> Optional[WalkSample]:
        """
        Advance the walk by one tick.

        When the end of the current leg is reached:
            ONCE      -- progress stops at the end knot and the walk is finished
            LOOP      -- progress jumps back by the length of the knot range
            PING_PONG -- progress stops at the knot, the direction reverses and the leg ends at the other knot

        Args:
            elapsed_time: Time since the previous tick.

        Returns:
            The new sample, or None if the walk has already finished.
        """
        state = self.state
        if state.finished:
            return None

        count = self.spline.curve_count
        state.progress = self.spline.progress_at_speed(state.progress, self.speed, elapsed_time, state.direction)

        if state.direction == 1:
            reached = state.progress >= state.limit - LIMIT_TOLERANCE
        else:
            reached = state.progress <= state.limit + LIMIT_TOLERANCE
        if reached:
            if self.mode == WalkMode.ONCE:
                state.progress = state.limit
                state.finished = True
                logger.debug("Walk from knot %d to %d finished", self.start_knot, self.end_knot)
            elif self.mode == WalkMode.PING_PONG:
                state.progress = state.limit
                state.direction = -state.direction
                if state.direction * (self.end_knot - self.start_knot) > 0:
                    state.limit = self.end_knot / count
                else:
                    state.limit = self.start_knot / count
                logger.debug("Walk reversed at progress %s, new limit %s", state.progress, state.limit)
            else:
                state.progress -= state.limit - self.start_knot / count
                logger.debug("Walk looped back to progress %s", state.progress)

        sample = self.sample()
        if self.on_update is not None:
            self.on_update(sample)
        if state.finished and self.on_complete is not None:
            self.on_complete()
        return sample

    def walk(self, elapsed_times: Iterable[float]) -> Iterator[WalkSample]:
        """
        Generate the start sample and then one sample per tick.

        Stops when the walk finishes or _elapsed_times_ is exhausted.

        Args:
            elapsed_times: Elapsed time of each tick.
        """
        yield self.sample()
        for elapsed_time in elapsed_times:
            sample = self.step(elapsed_time)
            if sample is None:
                return
            yield sample
            if self.finished:
                return
