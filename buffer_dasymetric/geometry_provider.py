#!/usr/bin/env python3
"""
Buffer Dasymetric - Geometry Provider

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Geometry capability consumed by the ring builder and the
interpolation engine. Wraps Shapely for set operations and pyproj for
reprojection and ellipsoidal area.

Key Features:
1. Buffer creation around a projected site point (linear unit -> metres)
2. Difference / intersection / union that return None instead of raising
3. ONE configured area function (planar or geodesic) for every area
4. Point reprojection (WGS84 -> working CRS)

Navigation Guide:
- ShapelyGeometryProvider: Main provider class
- area: The single area measure used for reference AND clipped areas

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Dict, Iterable, Optional
import logging
import math

from pyproj import CRS, Geod, Transformer
from pyproj.exceptions import CRSError, ProjError
from shapely.errors import GEOSException
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform, unary_union

from buffer_dasymetric.models.data_models import AreaMeasure
from buffer_dasymetric.models.errors import CollaboratorUnavailableError


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

# Coordinate reference systems
CRS_WGS84 = "EPSG:4326"  # GPS coordinates (lon, lat)
CRS_CONUS_ALBERS = "EPSG:5070"  # NAD83 / Conus Albers (metres, equal-area)

# Linear unit -> metres
LINEAR_UNIT_METRES: Dict[str, float] = {
    "miles": 1609.34,
    "kilometers": 1000.0,
    "meters": 1.0,
    "feet": 0.3048,
}

# Default buffer resolution (segments per quarter circle)
BUFFER_RESOLUTION = 64

# Logging
logger = logging.getLogger("BufferDasymetric.Geometry")


def _non_empty(geom: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
    """Normalize empty geometries to None."""
    if geom is None or geom.is_empty:
        return None
    return geom


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY PROVIDER
# ═══════════════════════════════════════════════════════════════════════════


class ShapelyGeometryProvider:
    """
    Geometry operations in a projected working CRS.

    All set operations return None for empty or degenerate results and never
    raise. Reprojection failures raise CollaboratorUnavailableError because
    without a projected site point no ring can be built.
    """

    def __init__(
        self,
        working_crs: str = CRS_CONUS_ALBERS,
        area_measure: AreaMeasure = AreaMeasure.PLANAR,
        buffer_resolution: int = BUFFER_RESOLUTION,
    ) -> None:
        """
        Initialize provider.

        Args:
            working_crs: Projected CRS with metre units for buffering.
            area_measure: PLANAR (shapely area in working_crs) or GEODESIC
                (ellipsoidal area on WGS84).
            buffer_resolution: Segments per quarter circle.
        """
        try:
            self.working_crs = CRS.from_user_input(working_crs)
        except CRSError as e:
            raise CollaboratorUnavailableError(
                f"Invalid working CRS '{working_crs}': {e}"
            ) from e

        if self.working_crs.is_geographic:
            raise CollaboratorUnavailableError(
                f"Working CRS {working_crs} is geographic; a projected CRS "
                "with linear units is required for buffering"
            )

        self.area_measure = area_measure
        self.buffer_resolution = buffer_resolution
        self._geod = Geod(ellps="WGS84")
        self._to_wgs84: Optional[Transformer] = None

    # -----------------------------------------------------------------------
    # Units
    # -----------------------------------------------------------------------

    @staticmethod
    def to_metres(distance: float, unit: str) -> float:
        """Convert a distance in a linear unit to metres."""
        try:
            return float(distance) * LINEAR_UNIT_METRES[unit]
        except KeyError:
            raise ValueError(
                f"Unknown unit '{unit}', expected one of {sorted(LINEAR_UNIT_METRES)}"
            ) from None

    # -----------------------------------------------------------------------
    # Set operations
    # -----------------------------------------------------------------------

    def buffer(
        self, point: BaseGeometry, distance: float, unit: str = "meters"
    ) -> Optional[BaseGeometry]:
        """Buffer a projected geometry by distance (in unit)."""
        if point is None or point.is_empty:
            return None
        radius = self.to_metres(distance, unit)
        if radius <= 0:
            return None
        try:
            return _non_empty(point.buffer(radius, quad_segs=self.buffer_resolution))
        except GEOSException as e:
            logger.debug(f"buffer failed at {distance} {unit}: {e}")
            return None

    def difference(
        self, a: Optional[BaseGeometry], b: Optional[BaseGeometry]
    ) -> Optional[BaseGeometry]:
        """a minus b; a with no b is returned unchanged."""
        if a is None or a.is_empty:
            return None
        if b is None or b.is_empty:
            return a
        try:
            return _non_empty(a.difference(b))
        except GEOSException as e:
            logger.debug(f"difference failed: {e}")
            return None

    def intersect(
        self, a: Optional[BaseGeometry], b: Optional[BaseGeometry]
    ) -> Optional[BaseGeometry]:
        """Intersection of a and b, repairing invalid inputs once."""
        if a is None or b is None or a.is_empty or b.is_empty:
            return None
        try:
            return _non_empty(a.intersection(b))
        except GEOSException:
            pass
        # Census polygons occasionally self-intersect
        try:
            a_fixed = a if a.is_valid else a.buffer(0)
            b_fixed = b if b.is_valid else b.buffer(0)
            return _non_empty(a_fixed.intersection(b_fixed))
        except GEOSException as e:
            logger.debug(f"intersection failed after repair: {e}")
            return None

    def union(self, polygons: Iterable[Optional[BaseGeometry]]) -> Optional[BaseGeometry]:
        """Union of all non-empty geometries."""
        geoms = [g for g in polygons if g is not None and not g.is_empty]
        if not geoms:
            return None
        try:
            return _non_empty(unary_union(geoms))
        except GEOSException as e:
            logger.debug(f"union failed: {e}")
            return None

    # -----------------------------------------------------------------------
    # Area
    # -----------------------------------------------------------------------

    def area(self, polygon: Optional[BaseGeometry]) -> float:
        """
        Area in square metres using the configured measure.

        This is the only area function used in a run: the data source uses
        it to derive reference areas and the engine uses it for clipped
        areas, so the ratio never mixes planar and geodesic values.
        """
        if polygon is None or polygon.is_empty:
            return 0.0
        if self.area_measure == AreaMeasure.GEODESIC:
            return self._geodesic_area(polygon)
        return float(polygon.area)

    def _geodesic_area(self, polygon: BaseGeometry) -> float:
        if self._to_wgs84 is None:
            self._to_wgs84 = Transformer.from_crs(
                self.working_crs, CRS_WGS84, always_xy=True
            )
        lonlat = transform(self._to_wgs84.transform, polygon)
        area, _ = self._geod.geometry_area_perimeter(lonlat)
        return abs(float(area))

    # -----------------------------------------------------------------------
    # Reprojection
    # -----------------------------------------------------------------------

    def reproject_point(
        self,
        point: Point,
        target_crs: Optional[str] = None,
        source_crs: str = CRS_WGS84,
    ) -> Point:
        """
        Reproject a point (x=lon, y=lat for WGS84) into target_crs.

        Raises:
            CollaboratorUnavailableError: If the transform cannot be built or
                yields non-finite coordinates.
        """
        target = target_crs if target_crs is not None else self.working_crs
        try:
            transformer = Transformer.from_crs(source_crs, target, always_xy=True)
            x, y = transformer.transform(point.x, point.y, errcheck=True)
        except (CRSError, ProjError) as e:
            raise CollaboratorUnavailableError(
                f"Failed to project point ({point.x}, {point.y}) to {target}: {e}"
            ) from e

        if not (math.isfinite(x) and math.isfinite(y)):
            raise CollaboratorUnavailableError(
                f"Projection of ({point.x}, {point.y}) returned non-finite coordinates"
            )
        return Point(x, y)
