"""Test module for arcspline.geom

The tests are run using pytest.
These tests ensure that all functions and interfaces in src/arcspline/geom.py
remain working correctly after changes and refactoring.
"""

import numpy as np
import pytest

from arcspline.geom import ZERO_LENGTH_EPS, BoundingBox, GeomMath

###############################################################################
# GeomMath Tests
###############################################################################


class TestGeomMath:
    """Test class for GeomMath functionality."""

    def test_clamp01(self):
        """Values outside [0, 1] are clamped, values inside pass through."""
        assert GeomMath.clamp01(-0.5) == 0.0
        assert GeomMath.clamp01(0.25) == 0.25
        assert GeomMath.clamp01(1.5) == 1.0

    def test_magnitude_and_distance(self):
        """Euclidean length of a 3-4-5 triangle."""
        assert GeomMath.magnitude([3.0, 4.0, 0.0]) == pytest.approx(5.0)
        assert GeomMath.distance([1.0, 1.0, 1.0], [4.0, 5.0, 1.0]) == pytest.approx(5.0)

    def test_normalize(self):
        """Normalized vectors have unit length and keep their direction."""
        result = GeomMath.normalize([0.0, 3.0, 4.0])

        assert np.allclose(result, [0.0, 0.6, 0.8])

    def test_normalize_zero_vector(self):
        """Vectors without a usable direction normalize to the zero vector."""
        result = GeomMath.normalize([ZERO_LENGTH_EPS / 10, 0.0, 0.0])

        assert np.array_equal(result, np.zeros(3))


###############################################################################
# BoundingBox Tests
###############################################################################


class TestBoundingBox:
    """Test class for BoundingBox functionality."""

    def test_from_points(self):
        """The box spans the minimum and maximum of each axis."""
        box = BoundingBox.from_points([[1.0, 5.0, -1.0], [4.0, 2.0, 3.0], [2.0, 3.0, 0.0]])

        assert (box.xmin, box.ymin, box.zmin) == (1.0, 2.0, -1.0)
        assert (box.xmax, box.ymax, box.zmax) == (4.0, 5.0, 3.0)
        assert box.width == 3.0
        assert box.height == 3.0

    def test_swapped_coordinates_are_normalized(self):
        """Min and max are swapped when given in the wrong order."""
        box = BoundingBox(xmin=4.0, ymin=0.0, zmin=2.0, xmax=1.0, ymax=1.0, zmax=0.0)

        assert (box.xmin, box.xmax) == (1.0, 4.0)
        assert (box.zmin, box.zmax) == (0.0, 2.0)

    def test_from_points_empty(self):
        """An empty point set has no bounding box."""
        with pytest.raises(ValueError):
            BoundingBox.from_points(np.empty((0, 3)))

    def test_from_points_wrong_dimension(self):
        """Only 3D points are accepted."""
        with pytest.raises(ValueError):
            BoundingBox.from_points([[1.0, 2.0], [3.0, 4.0]])
