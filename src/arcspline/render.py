"""Rendering splines for inspection: the renderer interface and an SVG implementation."""

from __future__ import annotations

import gzip
import io
import logging
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

import numpy as np
import svgwrite
import svgwrite.container
from numpy.typing import NDArray

from arcspline.geom import BoundingBox
from arcspline.spline import BezierSpline, PointLike

logger = logging.getLogger(__name__)


class SplineRenderer(ABC):
    """Capability of a front end that displays a spline and edits its control points."""

    @abstractmethod
    def render(self, spline: BezierSpline):
        """Display the spline."""

    def on_edit(self, spline: BezierSpline, index: int, point: PointLike) -> None:
        """Apply a control point edit made in the front end."""
        spline.set_control_point(index, point)


class SvgSplineRenderer(SplineRenderer):
    """Renders a spline projected onto the xy plane as SVG drawing.

    The drawing contains a root group flipping the y-axis, so the y-axis points
    up as in the spline coordinates. Inside are the groups:
        - curve         -- the polygonized spline
        - handles       -- lines from each knot to its handles
        - knots         -- a dot per knot
        - velocities    -- (optional) first derivative at sample points
        - accelerations -- (optional) second derivative at sample points
    """

    def __init__(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        steps_per_curve: int = 20,
        stroke_width: float = 0.02,
        show_handles: bool = True,
        show_velocities: bool = False,
        show_accelerations: bool = False,
        vector_scale: float = 0.1,
        color: str = "black",
        margin: float = 0.5,
    ):
        """
        Initialize the renderer.

        Args:
            steps_per_curve (int): Line segments per curve.
            stroke_width (float): Stroke width in spline units.
            show_handles (bool): Draw handles and knots.
            show_velocities (bool): Draw velocity vectors.
            show_accelerations (bool): Draw acceleration vectors.
            vector_scale (float): Scale applied to velocity and acceleration vectors.
            color (str): Stroke color of the curve.
            margin (float): Space around the spline in spline units.
        """
        self.steps_per_curve = steps_per_curve
        self.stroke_width = stroke_width
        self.show_handles = show_handles
        self.show_velocities = show_velocities
        self.show_accelerations = show_accelerations
        self.vector_scale = vector_scale
        self.color = color
        self.margin = margin

    @staticmethod
    def _xy(points: NDArray[np.float64]) -> List[Tuple[float, float]]:
        return [(float(x), float(y)) for x, y in points[:, :2]]

    @staticmethod
    def _xy_point(point: NDArray[np.float64]) -> Tuple[float, float]:
        return (float(point[0]), float(point[1]))

    def _vector_group(
        self, drawing: svgwrite.Drawing, group_id: str, origins: Sequence[NDArray[np.float64]], vectors, color: str
    ) -> svgwrite.container.Group:
        group = drawing.g(id=group_id, stroke=color, stroke_width=self.stroke_width)
        for origin, vector in zip(origins, vectors):
            tip = origin + vector * self.vector_scale
            group.add(drawing.line(start=self._xy_point(origin), end=self._xy_point(tip)))
        return group

    def render(self, spline: BezierSpline) -> svgwrite.Drawing:
        """
        Draw the spline.

        Args:
            spline (BezierSpline): The spline to draw.

        Returns:
            svgwrite.Drawing: the drawing
        """
        curve = spline.polygonize(self.steps_per_curve)
        box = BoundingBox.from_points(np.concatenate([curve, spline.points]))
        vb_x = box.xmin - self.margin
        vb_y = -box.ymax - self.margin
        vb_width = box.width + 2 * self.margin
        vb_height = box.height + 2 * self.margin

        # profile="full" to support numbers with more than 4 decimal digits
        drawing = svgwrite.Drawing(
            size=(f"{vb_width}", f"{vb_height}"),
            viewBox=f"{vb_x} {vb_y} {vb_width} {vb_height}",
            profile="full",
        )
        root_group = drawing.g(id="root", transform="scale(1,-1)")

        root_group.add(
            drawing.polyline(
                points=self._xy(curve),
                id="curve",
                fill="none",
                stroke=self.color,
                stroke_width=self.stroke_width,
            )
        )

        if self.show_handles:
            points = spline.points
            handles = drawing.g(id="handles", stroke="gray", stroke_width=self.stroke_width / 2)
            for i in range(spline.curve_count):
                k = 3 * i
                handles.add(drawing.line(start=self._xy_point(points[k]), end=self._xy_point(points[k + 1])))
                handles.add(drawing.line(start=self._xy_point(points[k + 2]), end=self._xy_point(points[k + 3])))
            root_group.add(handles)

            knots = drawing.g(id="knots", fill=self.color)
            for center in self._xy(points[::3]):
                knots.add(drawing.circle(center=center, r=self.stroke_width * 2))
            root_group.add(knots)

        if self.show_velocities or self.show_accelerations:
            t_values = np.linspace(0.0, 1.0, spline.curve_count * self.steps_per_curve + 1)
            origins = [spline.point(t) for t in t_values]
            if self.show_velocities:
                velocities = [spline.velocity(t) for t in t_values]
                root_group.add(self._vector_group(drawing, "velocities", origins, velocities, "green"))
            if self.show_accelerations:
                accelerations = [spline.acceleration(t) for t in t_values]
                root_group.add(self._vector_group(drawing, "accelerations", origins, accelerations, "red"))

        drawing.add(root_group)
        logger.debug("Rendered %s", spline)
        return drawing

    def to_string(self, spline: BezierSpline) -> str:
        """Render the spline and return the SVG document as string."""
        return self.render(spline).tostring()

    def save_as(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        spline: BezierSpline,
        filename: str,
        pretty: bool = False,
        indent: int = 2,
        compressed: bool = False,
    ) -> None:
        """Render the spline and save it as SVG file

        Args:
            spline (BezierSpline): The spline to draw.
            filename (str): path and filename
            pretty (bool, optional): True for easy readable output. Defaults to False.
            indent (int, optional): Indention if pretty is enabled. Defaults to 2 spaces.
            compressed (bool, optional): Save as compressed svgz-file. Defaults to False.
        """
        svg_buffer = io.StringIO()
        self.render(spline).write(svg_buffer, pretty=pretty, indent=indent)
        output_data = svg_buffer.getvalue().encode("utf-8")
        if compressed:
            output_data = gzip.compress(output_data)

        with open(filename, "wb") as svg_file:
            svg_file.write(output_data)
