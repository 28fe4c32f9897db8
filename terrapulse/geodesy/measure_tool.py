"""Interactive measurement tool state machine.

Driven by map clicks supplied by the map widget:

- **Distance mode**: points accumulate; on exactly two points the
  distance is emitted and the buffer is cleared, so a third click
  starts a new pair rather than extending a polyline.
- **Area mode**: points accumulate; from the third point on, every
  click emits a live area preview.  The buffer never clears on its own.
  ``finish()`` (double-click) emits the final area, after which the next
  click starts a fresh polygon.

Switching tools always clears the buffer.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from terrapulse.core.constants import MIN_POLYGON_POINTS
from terrapulse.geodesy.measurement import compute_area_acres, compute_distance_m
from terrapulse.models.geo import MeasurementResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from terrapulse.models.geo import GeoPoint

logger = logging.getLogger("terrapulse.geodesy.measure_tool")


class GeoTool(enum.Enum):
    """Active geoprocessing tool on the map toolbar."""

    NONE = "none"
    MEASURE_DISTANCE = "measure-distance"
    MEASURE_AREA = "measure-area"


class MeasureTool:
    """Click-driven distance/area measurement.

    Args:
        on_result: Optional hook called with every emitted result.
    """

    def __init__(
        self,
        on_result: Callable[[MeasurementResult], None] | None = None,
    ) -> None:
        self._on_result = on_result
        self._tool = GeoTool.NONE
        self._points: list[GeoPoint] = []
        self._finished = False

    @property
    def tool(self) -> GeoTool:
        return self._tool

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        """Snapshot of the current point buffer."""
        return tuple(self._points)

    def set_tool(self, tool: GeoTool) -> None:
        """Activate *tool* and clear any in-progress measurement."""
        self._tool = tool
        self.reset()
        logger.debug("Measurement tool selected | tool=%s", tool.value)

    def reset(self) -> None:
        """Clear the point buffer."""
        self._points = []
        self._finished = False

    def click(self, point: GeoPoint) -> MeasurementResult | None:
        """Handle a map click.

        Returns:
            The measurement emitted by this click, or ``None``.
        """
        if self._tool is GeoTool.MEASURE_DISTANCE:
            return self._click_distance(point)
        if self._tool is GeoTool.MEASURE_AREA:
            return self._click_area(point)
        return None

    def finish(self) -> MeasurementResult | None:
        """Close the current area polygon (double-click).

        Returns:
            The final area, or ``None`` outside area mode or with fewer
            than three points.
        """
        if self._tool is not GeoTool.MEASURE_AREA or len(self._points) < MIN_POLYGON_POINTS:
            return None
        result = MeasurementResult.area(compute_area_acres(self._points))
        self._finished = True
        logger.info(
            "Area measurement finished | vertices=%d | area=%.2f acres",
            len(self._points),
            result.acres,
        )
        return self._emit(result)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _click_distance(self, point: GeoPoint) -> MeasurementResult | None:
        self._points.append(point)
        if len(self._points) != 2:
            return None
        p1, p2 = self._points
        result = MeasurementResult.distance(compute_distance_m(p1, p2))
        self._points = []
        return self._emit(result)

    def _click_area(self, point: GeoPoint) -> MeasurementResult | None:
        if self._finished:
            self.reset()
        self._points.append(point)
        if len(self._points) < MIN_POLYGON_POINTS:
            return None
        return self._emit(MeasurementResult.area(compute_area_acres(self._points)))

    def _emit(self, result: MeasurementResult) -> MeasurementResult:
        if self._on_result is not None:
            self._on_result(result)
        return result
