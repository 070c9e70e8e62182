"""Shared fixtures for buffer dasymetric tests.

All geometry lives in EPSG:5070 (metres, equal-area). Most tests centre the
rings on the projected origin and use unit "meters" so that expected areas
can be written down by hand.
"""

import threading
from typing import List, Optional

import geopandas as gpd
import pytest
from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry

from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import AreaMeasure, SourcePolygon


# ============================================================================
# FAKE DATA SOURCES
# ============================================================================


class ListSource:
    """In-memory source that returns polygons whose geometry intersects."""

    def __init__(self, polygons: List[SourcePolygon]):
        self.polygons = polygons
        self.calls = 0

    def query(self, geometry: BaseGeometry, predicate: str = "intersects"):
        self.calls += 1
        return [p for p in self.polygons if p.geometry.intersects(geometry)]


class FailingSource(ListSource):
    """Raises for queries whose geometry covers fail_point."""

    def __init__(self, polygons: List[SourcePolygon], fail_point: Optional[Point] = None):
        super().__init__(polygons)
        self.fail_point = fail_point

    def query(self, geometry: BaseGeometry, predicate: str = "intersects"):
        if self.fail_point is None or geometry.covers(self.fail_point):
            raise ConnectionError("feature service unreachable")
        return super().query(geometry, predicate)


class BlockingSource(ListSource):
    """Blocks the first query until gate is set (for cancellation tests)."""

    def __init__(self, polygons: List[SourcePolygon]):
        super().__init__(polygons)
        self.block = True
        self.entered = threading.Event()
        self.gate = threading.Event()

    def query(self, geometry: BaseGeometry, predicate: str = "intersects"):
        if self.block:
            self.entered.set()
            self.gate.wait(timeout=10)
        return super().query(geometry, predicate)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def provider():
    """Planar provider in CONUS Albers."""
    return ShapelyGeometryProvider("EPSG:5070", AreaMeasure.PLANAR)


@pytest.fixture
def geodesic_provider():
    """Geodesic provider in CONUS Albers."""
    return ShapelyGeometryProvider("EPSG:5070", AreaMeasure.GEODESIC)


@pytest.fixture
def origin():
    return Point(0.0, 0.0)


@pytest.fixture
def square():
    """Factory: axis-aligned square SourcePolygon."""

    def _make(x0, y0, size, population, reference_area=None, feature_id="sq"):
        geom = box(x0, y0, x0 + size, y0 + size)
        return SourcePolygon(
            feature_id=feature_id,
            geometry=geom,
            reference_population=population,
            reference_area=geom.area if reference_area is None else reference_area,
        )

    return _make


@pytest.fixture
def list_source():
    return ListSource


@pytest.fixture
def failing_source():
    return FailingSource


@pytest.fixture
def blocking_source():
    return BlockingSource


@pytest.fixture
def census_gdf():
    """Four 500 m blocks around the origin plus one far away."""
    data = {
        "GEOID": ["A", "B", "C", "D", "FAR"],
        "POPULATION": [100, 200, 300, 400, 999],
        "geometry": [
            box(-500, -500, 0, 0),
            box(0, -500, 500, 0),
            box(-500, 0, 0, 500),
            box(0, 0, 500, 500),
            box(50_000, 50_000, 50_500, 50_500),
        ],
    }
    return gpd.GeoDataFrame(data, crs="EPSG:5070")
