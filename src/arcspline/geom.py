"""Handling geometries"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

# Vectors shorter than this have no usable direction
ZERO_LENGTH_EPS: float = 1.0e-12


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to vector handling."""

    @staticmethod
    def clamp01(value: float) -> float:
        """Clamp a value into [0, 1]."""
        if value < 0.0:
            return 0.0
        if value > 1.0:
            return 1.0
        return float(value)

    @staticmethod
    def magnitude(vector: Union[Sequence[float], NDArray[np.float64]]) -> float:
        """Euclidean length of a vector."""
        return float(math.sqrt(float(np.dot(vector, vector))))

    @staticmethod
    def distance(
        point_a: Union[Sequence[float], NDArray[np.float64]], point_b: Union[Sequence[float], NDArray[np.float64]]
    ) -> float:
        """Euclidean distance between two points."""
        return GeomMath.magnitude(np.asarray(point_a, dtype=np.float64) - np.asarray(point_b, dtype=np.float64))

    @staticmethod
    def normalize(vector: Union[Sequence[float], NDArray[np.float64]]) -> NDArray[np.float64]:
        """
        Return the unit vector pointing in the direction of _vector_.

        Vectors shorter than ZERO_LENGTH_EPS have no direction; the zero vector
        is returned for them instead of dividing by (almost) zero.

        Args:
            vector (Sequence[float]): the vector to normalize

        Returns:
            NDArray[np.float64]: the unit vector or the zero vector
        """
        vec = np.asarray(vector, dtype=np.float64)
        length = GeomMath.magnitude(vec)
        if length < ZERO_LENGTH_EPS:
            return np.zeros_like(vec)
        return vec / length


###############################################################################
# BoundingBox
###############################################################################
@dataclass
class BoundingBox:
    """
    Axis aligned box in 3D space.

    Attributes:
        xmin (float): The minimum x-coordinate.
        ymin (float): The minimum y-coordinate.
        zmin (float): The minimum z-coordinate.
        xmax (float): The maximum x-coordinate.
        ymax (float): The maximum y-coordinate.
        zmax (float): The maximum z-coordinate.
    """

    xmin: float
    ymin: float
    zmin: float
    xmax: float
    ymax: float
    zmax: float

    def __post_init__(self):
        # Normalize coordinates to ensure min <= max on every axis
        if self.xmin > self.xmax:
            self.xmin, self.xmax = self.xmax, self.xmin
        if self.ymin > self.ymax:
            self.ymin, self.ymax = self.ymax, self.ymin
        if self.zmin > self.zmax:
            self.zmin, self.zmax = self.zmax, self.zmin

    @classmethod
    def from_points(cls, points: Union[Sequence[Sequence[float]], NDArray[np.float64]]) -> BoundingBox:
        """Smallest box containing all given 3D points.

        Raises:
            ValueError: If no points are given.
        """
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] != 3:
            raise ValueError(f"Bounding box requires a non-empty (n, 3) point array, got shape {arr.shape}")
        lower = arr.min(axis=0)
        upper = arr.max(axis=0)
        return cls(
            xmin=float(lower[0]),
            ymin=float(lower[1]),
            zmin=float(lower[2]),
            xmax=float(upper[0]),
            ymax=float(upper[1]),
            zmax=float(upper[2]),
        )

    @property
    def width(self) -> float:
        """float: Extent along x."""
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        """float: Extent along y."""
        return self.ymax - self.ymin
