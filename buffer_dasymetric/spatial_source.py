#!/usr/bin/env python3
"""
Buffer Dasymetric - Spatial Data Source

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Provide candidate census polygons for a query geometry.

The interpolation engine only depends on the SpatialDataSource protocol:
    query(geometry, predicate) -> List[SourcePolygon]

GeoDataFrameSource is the in-process implementation backed by a
GeoDataFrame and its spatial index. A remote feature service would
implement the same protocol; its latency, timeouts and retries stay
behind query().

Key Features:
1. CRS normalization to the provider's working CRS at load time
2. Reference areas derived ONCE with the provider's configured area
   function when the layer carries no area column
3. Spatial index query with a shapely binary predicate
"""

from pathlib import Path
from typing import Any, List, Optional, Protocol, Union
import logging

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry.base import BaseGeometry

from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import SourcePolygon
from buffer_dasymetric.models.errors import CollaboratorUnavailableError

logger = logging.getLogger("BufferDasymetric.Source")


class SpatialDataSource(Protocol):
    """Anything that can return candidate polygons for a query geometry."""

    def query(
        self, geometry: BaseGeometry, predicate: str = "intersects"
    ) -> List[SourcePolygon]:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ GEODATAFRAME SOURCE
# ═══════════════════════════════════════════════════════════════════════════


class GeoDataFrameSource:
    """
    Spatial data source over an in-memory GeoDataFrame.

    Usage:
        provider = ShapelyGeometryProvider("EPSG:5070")
        source = GeoDataFrameSource(census_gdf, "POPULATION", provider)
        candidates = source.query(ring.geometry)
    """

    REFERENCE_AREA_COLUMN = "_reference_area"

    def __init__(
        self,
        gdf: gpd.GeoDataFrame,
        population_field: str,
        geometry: ShapelyGeometryProvider,
        area_field: Optional[str] = None,
        id_field: Optional[str] = None,
    ) -> None:
        """
        Initialize source.

        Args:
            gdf: Census polygons with a population column
            population_field: Column holding the reference population
            geometry: Provider whose CRS and area measure are used
            area_field: Column holding a precomputed reference area in square
                metres. It MUST use the same measure as the provider; when
                None the area is derived from the geometry with the provider.
            id_field: Column used as feature id (index when None)

        Raises:
            CollaboratorUnavailableError: If required columns are missing
        """
        if gdf is None:
            raise CollaboratorUnavailableError("Census layer is not loaded")

        missing = [
            col
            for col in (population_field, area_field, id_field)
            if col is not None and col not in gdf.columns
        ]
        if missing:
            raise CollaboratorUnavailableError(
                f"Census layer is missing required columns: {missing}"
            )

        target_crs = geometry.working_crs
        if gdf.crs is None:
            logger.warning(f"Census layer has no CRS, assuming {target_crs.to_string()}")
            gdf = gdf.set_crs(target_crs)
        elif not gdf.crs.equals(target_crs):
            logger.info(f"Converting census layer from {gdf.crs} to {target_crs.to_string()}")
            gdf = gdf.to_crs(target_crs)

        gdf = gdf[gdf.geometry.notna() & ~gdf.geometry.is_empty].copy()

        if area_field is None:
            gdf[self.REFERENCE_AREA_COLUMN] = gdf.geometry.apply(geometry.area)
        else:
            gdf[self.REFERENCE_AREA_COLUMN] = pd.to_numeric(
                gdf[area_field], errors="coerce"
            )

        areas = gdf[self.REFERENCE_AREA_COLUMN].to_numpy(dtype=float)
        n_invalid = int(np.count_nonzero(~np.isfinite(areas) | (areas <= 0)))
        if n_invalid:
            logger.warning(
                f"   ⚠️ {n_invalid} census polygon(s) have no usable reference area "
                "and will be skipped during interpolation"
            )

        self._gdf = gdf
        self._population_field = population_field
        self._id_field = id_field
        self.measure = geometry.area_measure

        logger.info(
            f"   ✅ Census source ready: {len(self._gdf)} polygons, "
            f"area measure={self.measure.value}"
        )

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        population_field: str,
        geometry: ShapelyGeometryProvider,
        area_field: Optional[str] = None,
        id_field: Optional[str] = None,
        layer: Optional[str] = None,
    ) -> "GeoDataFrameSource":
        """Load a census layer from disk (shapefile, GeoPackage, GeoJSON)."""
        full_path = Path(path)
        logger.info(f"📂 Loading census layer: {full_path}")

        if not full_path.exists():
            raise CollaboratorUnavailableError(f"Census layer not found: {full_path}")

        try:
            gdf = gpd.read_file(full_path, layer=layer) if layer else gpd.read_file(full_path)
        except Exception as e:
            raise CollaboratorUnavailableError(
                f"Failed to read census layer {full_path}: {e}"
            ) from e

        return cls(gdf, population_field, geometry, area_field, id_field)

    def __len__(self) -> int:
        return len(self._gdf)

    def _feature_id(self, position: int) -> Any:
        if self._id_field is None:
            return self._gdf.index[position]
        return self._gdf[self._id_field].iloc[position]

    def query(
        self, geometry: BaseGeometry, predicate: str = "intersects"
    ) -> List[SourcePolygon]:
        """
        Return polygons satisfying predicate against geometry.

        Args:
            geometry: Query polygon in the working CRS
            predicate: Shapely binary predicate name ("intersects", ...)

        Returns:
            SourcePolygons in layer order
        """
        if geometry is None or geometry.is_empty:
            return []

        positions = sorted(int(p) for p in self._gdf.sindex.query(geometry, predicate=predicate))
        rows = self._gdf.iloc[positions]

        candidates = []
        for position, (_, row) in zip(positions, rows.iterrows()):
            candidates.append(
                SourcePolygon(
                    feature_id=self._feature_id(position),
                    geometry=row.geometry,
                    reference_population=row[self._population_field],
                    reference_area=row[self.REFERENCE_AREA_COLUMN],
                )
            )
        return candidates
