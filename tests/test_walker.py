"""Test module for arcspline.walker

The tests are run using pytest.
These tests ensure that walking a spline at constant speed, including the
ONCE, LOOP and PING_PONG modes, remains working correctly after changes and
refactoring.
"""

import numpy as np
import pytest

from arcspline.common import WalkMode
from arcspline.spline import BezierSpline
from arcspline.walker import SplineWalker


@pytest.fixture
def line():
    """Straight spline of two curves along x, each of length 3 with constant speed 3."""
    return BezierSpline([[float(i), 0.0, 0.0] for i in range(7)])


@pytest.fixture
def arch():
    """Curved spline of two curves with varying speed."""
    return BezierSpline(
        [
            [0.0, 0.0, 0.0],
            [1.0, 2.0, 0.0],
            [3.0, 2.0, 0.0],
            [4.0, 0.0, 0.0],
            [5.0, -2.0, 0.0],
            [9.0, -1.0, 0.0],
            [10.0, 0.0, 0.0],
        ]
    )


###############################################################################
# progress_at_speed Tests
###############################################################################


class TestProgressAtSpeed:
    """Test advancing a spline parameter at constant physical speed."""

    def test_constant_speed_line(self, line):
        """On a line of speed 3 per curve parameter the step is v * dt / 3 / curve_count."""
        assert line.progress_at_speed(0.0, 3.0, 0.25) == pytest.approx(0.125)
        assert line.progress_at_speed(0.5, 3.0, 0.25, direction=-1) == pytest.approx(0.375)

    def test_clamped(self, line):
        """Progress never leaves [0, 1]."""
        assert line.progress_at_speed(0.95, 3.0, 1.0) == 1.0
        assert line.progress_at_speed(0.05, 3.0, 1.0, direction=-1) == 0.0

    def test_crossing_knot(self, line):
        """A step crossing a knot continues on the next curve."""
        assert line.progress_at_speed(0.4, 3.0, 0.4) == pytest.approx(0.6)
        assert line.progress_at_speed(0.6, 3.0, 0.4, direction=-1) == pytest.approx(0.4)

    def test_crossing_knot_with_speed_change(self):
        """The time after the knot is spent at the speed of the next curve."""
        # first curve has speed 3, second curve speed 6
        spline = BezierSpline([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0], [5.0, 0.0], [7.0, 0.0], [9.0, 0.0]])

        # 0.4 time units reach the knot, the remaining 0.4 cover 1.2 length units of the second curve
        result = spline.progress_at_speed(0.3, 3.0, 0.8)

        assert result == pytest.approx(0.6)
        assert spline.arc_length(0.3, result) == pytest.approx(2.4)

    def test_arc_length_matches_speed(self, arch):
        """Small steps cover velocity * time of arc length."""
        progress = 0.1
        next_progress = arch.progress_at_speed(progress, 2.0, 0.01)

        assert arch.arc_length(progress, next_progress) == pytest.approx(0.02, rel=1e-2)

    def test_zero_length_curve(self):
        """A curve collapsed into a point is skipped at once."""
        spline = BezierSpline([[0.0, 0.0]] * 4 + [[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])

        assert spline.progress_at_speed(0.0, 1.0, 0.1) == 0.5


###############################################################################
# SplineWalker Tests
###############################################################################


class TestSplineWalker:
    """Test the walker modes."""

    def test_once(self, line):
        """A ONCE walk stops at the end knot and reports completion once."""
        completed = []
        walker = SplineWalker(line, 0, 2, speed=3.0, on_complete=lambda: completed.append(True))

        samples = list(walker.walk([0.25] * 20))

        assert len(samples) == 9
        assert samples[0].progress == 0.0
        assert samples[-1].progress == 1.0
        assert np.allclose(samples[-1].position, [6.0, 0.0, 0.0])
        assert walker.finished
        assert completed == [True]
        assert walker.step(0.25) is None

    def test_once_overshoot_is_clamped(self, line):
        """The last step stops exactly at the end knot."""
        walker = SplineWalker(line, 0, 1, speed=3.0)

        sample = walker.step(10.0)

        assert sample.progress == 0.5
        assert walker.finished

    def test_once_finishes_despite_rounding(self, line):
        """A walk ending a rounding error short of the end knot finishes on that tick."""
        walker = SplineWalker(line, 0, 2, speed=3.0 * (1.0 - 1e-12))

        samples = list(walker.walk([0.25] * 20))

        assert len(samples) == 9
        assert samples[-1].progress == 1.0
        assert walker.finished

    def test_once_backward(self, line):
        """Walking from a higher to a lower knot runs backward."""
        walker = SplineWalker(line, 2, 0, speed=3.0)

        samples = list(walker.walk([0.25] * 20))

        assert samples[0].progress == 1.0
        assert samples[-1].progress == 0.0
        assert all(a.progress >= b.progress for a, b in zip(samples, samples[1:]))

    def test_loop(self, line):
        """A LOOP walk jumps back to the start knot."""
        walker = SplineWalker(line, 0, 2, speed=3.0, mode=WalkMode.LOOP)

        progress = [walker.step(0.25).progress for _ in range(9)]

        assert progress[7] == pytest.approx(0.0)
        assert progress[8] == pytest.approx(0.125)
        assert not walker.finished

    def test_loop_sub_range(self, line):
        """A LOOP over a sub-range jumps back to its start knot."""
        walker = SplineWalker(line, 1, 2, speed=3.0, mode=WalkMode.LOOP)

        progress = [walker.step(0.25).progress for _ in range(5)]

        assert progress[3] == pytest.approx(0.5)
        assert progress[4] == pytest.approx(0.625)

    def test_ping_pong(self, line):
        """A PING_PONG walk reverses at both ends and stays within them."""
        walker = SplineWalker(line, 0, 2, speed=3.0, mode=WalkMode.PING_PONG)

        progress = [walker.step(0.25).progress for _ in range(20)]

        assert progress[7] == pytest.approx(1.0)
        assert progress[8] == pytest.approx(0.875)
        assert progress[15] == pytest.approx(0.0)
        assert progress[16] == pytest.approx(0.125)
        assert min(progress) >= 0.0
        assert max(progress) <= 1.0

    def test_ping_pong_sub_range(self):
        """A PING_PONG walk between inner knots turns at those knots."""
        spline = BezierSpline([[float(i), 0.0, 0.0] for i in range(10)])
        walker = SplineWalker(spline, 1, 2, speed=3.0, mode=WalkMode.PING_PONG)

        progress = [walker.step(0.5).progress for _ in range(12)]

        third = 1.0 / 3.0
        assert min(progress) >= third - 1e-12
        assert max(progress) <= 2 * third + 1e-12
        assert any(p == pytest.approx(2 * third) for p in progress)
        assert any(p == pytest.approx(third) for p in progress)

    def test_samples_follow_spline(self, arch):
        """Samples carry the spline point and unit tangent at their progress."""
        walker = SplineWalker(arch, 0, 2, speed=1.0)

        for sample in walker.walk([0.1] * 5):
            assert np.allclose(sample.position, arch.point(sample.progress))
            assert np.linalg.norm(sample.direction) == pytest.approx(1.0)

    def test_on_update(self, line):
        """Each step reports its sample."""
        received = []
        walker = SplineWalker(line, 0, 2, speed=3.0, on_update=received.append)

        walker.step(0.25)
        walker.step(0.25)

        assert [sample.progress for sample in received] == pytest.approx([0.125, 0.25])

    def test_from_duration(self, line):
        """The speed covers the knot range within the duration."""
        walker = SplineWalker.from_duration(line, 0, 2, duration=2.0)

        assert walker.speed == pytest.approx(3.0)
        samples = list(walker.walk([0.5] * 10))
        assert len(samples) == 5
        assert walker.finished

    def test_constant_speed_on_curve(self, arch):
        """Equal time steps cover equal arc lengths."""
        walker = SplineWalker(arch, 0, 2, speed=1.0)
        samples = list(walker.walk([0.05] * 40))

        lengths = [arch.arc_length(a.progress, b.progress) for a, b in zip(samples, samples[1:])]

        assert np.allclose(lengths, 0.05, rtol=5e-2)

    @pytest.mark.parametrize("start_knot, end_knot", [(0, 0), (-1, 1), (0, 3)])
    def test_invalid_knots(self, line, start_knot, end_knot):
        """Knots must differ and lie in range."""
        with pytest.raises(ValueError):
            SplineWalker(line, start_knot, end_knot, speed=1.0)

    def test_negative_speed(self, line):
        """Speeds must not be negative."""
        with pytest.raises(ValueError):
            SplineWalker(line, 0, 2, speed=-1.0)

    @pytest.mark.parametrize("duration", [0.0, -1.0])
    def test_invalid_duration(self, line, duration):
        """Durations must be positive."""
        with pytest.raises(ValueError):
            SplineWalker.from_duration(line, 0, 2, duration=duration)
