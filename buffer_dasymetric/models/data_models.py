"""
Typed data models for ring-buffer population redistribution.

Architectural Overview:
=======================
This module contains immutable dataclasses that replace Dict[str, Any]
between the ring builder, the interpolation engine and the summary
aggregator. Every per-ring result is frozen so that concurrent ring
computations cannot share or mutate a summary object.

Key Interactions:
-----------------
- Input: validation.validate_site_input() creates SiteInput
- Rings: ring_builder.build_rings() creates Ring instances
- Engine: interpolation.interpolate_ring() creates ClippedRecord / RingReport
- Output: summary.aggregate() creates the terminal SiteReport
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Data Flow:
----------
1. SiteInput is validated and its point reprojected once
2. Ring geometries are built in ascending distance order
3. Each ring produces one RingReport (optionally with ClippedRecords)
4. RingReports are folded by index into a SiteReport

MODIFICATION POINT: Add new RingStatus values here for future failure modes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

import pandas as pd
from shapely.geometry.base import BaseGeometry


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class AreaMeasure(Enum):
    """Which area measure is used for BOTH reference and clipped areas.

    Mixing measures breaks the area ratio, so one value is configured per run.
    """

    PLANAR = "planar"
    GEODESIC = "geodesic"

    @classmethod
    def from_string(cls, s: str) -> "AreaMeasure":
        """Convert string to AreaMeasure.

        An unknown measure is a configuration error, never a silent default.

        Raises:
            ValueError: If s is not a known measure
        """
        for member in cls:
            if member.value == str(s).strip().lower():
                return member
        raise ValueError(
            f"area measure must be one of {[m.value for m in cls]}, got '{s}'"
        )


class RingStatus(Enum):
    """Outcome of one ring's interpolation pass."""

    OK = "ok"
    QUERY_FAILED = "query_failed"  # Spatial data source raised for this ring
    PROCESSING_FAILED = "processing_failed"  # Clip or area computation raised
    CANCELLED = "cancelled"  # Site computation superseded before the query


# ═══════════════════════════════════════════════════════════════════════════
# 📥 INPUT DATACLASSES SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SiteInput:
    """Validated site request: WGS84 coordinates plus ascending distances."""

    latitude: float
    longitude: float
    site_name: str
    distances: Tuple[float, ...]
    unit: str = "miles"


@dataclass(frozen=True)
class SourcePolygon:
    """Areal unit returned by the spatial data source (read-only here).

    reference_area is expected in the same measure as the clipped areas
    computed by the geometry provider. It may be None/NaN/<=0 in dirty data,
    in which case the engine skips the polygon.
    """

    feature_id: Any
    geometry: BaseGeometry
    reference_population: Optional[float]
    reference_area: Optional[float]


# ═══════════════════════════════════════════════════════════════════════════
# ⭕ RING DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Ring:
    """Annular polygon between two concentric buffer distances.

    The first ring has inner_distance 0 and its geometry is the plain
    buffer disc.
    """

    index: int
    inner_distance: float
    outer_distance: float
    unit: str
    geometry: BaseGeometry

    @property
    def bounds_key(self) -> Tuple[float, float]:
        """(inner, outer) pair identifying this ring."""
        return (self.inner_distance, self.outer_distance)


# ═══════════════════════════════════════════════════════════════════════════
# 📊 RESULT DATACLASSES SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ClippedRecord:
    """Population reallocated from one source polygon to one ring."""

    ring_index: int
    feature_id: Any
    clipped_area: float
    reference_area: float
    area_ratio: float
    reference_population: float
    reallocated_population: int
    geometry: Optional[BaseGeometry] = field(default=None, compare=False)

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict with geometry as WKT (None when not retained)."""
        return {
            "ring_index": self.ring_index,
            "feature_id": self.feature_id,
            "clipped_area": self.clipped_area,
            "reference_area": self.reference_area,
            "area_ratio": self.area_ratio,
            "reference_population": self.reference_population,
            "reallocated_population": self.reallocated_population,
            "geometry": serialize_geometry(self.geometry),
        }


@dataclass(frozen=True)
class RingReport:
    """Immutable per-ring result.

    Failed or cancelled rings carry total_population 0 and an error message;
    they still appear in the SiteReport so the caller can see which distance
    band could not be attributed.
    """

    index: int
    inner_distance: float
    outer_distance: float
    unit: str
    label: str
    total_population: int
    feature_count: int = 0
    skipped_count: int = 0
    status: RingStatus = RingStatus.OK
    error: Optional[str] = None
    records: Tuple[ClippedRecord, ...] = ()

    @property
    def succeeded(self) -> bool:
        """True if the ring's data source query completed."""
        return self.status == RingStatus.OK

    def as_dict(self, include_records: bool = False) -> Dict[str, Any]:
        """Convert to dict, optionally including feature-level records."""
        result = {
            "index": self.index,
            "label": self.label,
            "inner_distance": self.inner_distance,
            "outer_distance": self.outer_distance,
            "unit": self.unit,
            "total_population": self.total_population,
            "feature_count": self.feature_count,
            "skipped_count": self.skipped_count,
            "status": self.status.value,
        }
        if self.error is not None:
            result["error"] = self.error
        if include_records:
            result["records"] = [r.as_dict() for r in self.records]
        return result


@dataclass(frozen=True)
class SiteReport:
    """Terminal output for one site: ordered ring reports plus grand total.

    Usage:
    ------
    ```python
    report = run_site_analysis(38.9, -77.03, "HQ")
    for ring, cumulative in zip(report.rings, report.cumulative_totals):
        print(ring.label, ring.total_population, cumulative)
    ```
    """

    site_name: str
    latitude: float
    longitude: float
    unit: str
    rings: Tuple[RingReport, ...]
    grand_total_population: int
    dropped_rings: Tuple[Tuple[float, float], ...] = ()

    @property
    def cumulative_totals(self) -> List[int]:
        """Running population total from the centre outwards."""
        running = 0
        totals = []
        for ring in self.rings:
            running += ring.total_population
            totals.append(running)
        return totals

    @property
    def failed_rings(self) -> List[RingReport]:
        """Rings whose population could not be attributed."""
        return [r for r in self.rings if not r.succeeded]

    @property
    def is_complete(self) -> bool:
        """True when every requested ring was built and queried successfully."""
        return not self.failed_rings and not self.dropped_rings

    def as_dict(self, include_records: bool = False) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict for a rendering or export layer."""
        return {
            "site_name": self.site_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "unit": self.unit,
            "grand_total_population": self.grand_total_population,
            "is_complete": self.is_complete,
            "dropped_rings": [list(d) for d in self.dropped_rings],
            "rings": [r.as_dict(include_records) for r in self.rings],
        }

    def to_frame(self) -> pd.DataFrame:
        """One row per ring with per-ring and cumulative totals."""
        rows = []
        for ring, cumulative in zip(self.rings, self.cumulative_totals):
            rows.append(
                {
                    "site_name": self.site_name,
                    "ring": ring.label,
                    "inner_distance": ring.inner_distance,
                    "outer_distance": ring.outer_distance,
                    "population": ring.total_population,
                    "cumulative_population": cumulative,
                    "status": ring.status.value,
                }
            )
        return pd.DataFrame(
            rows,
            columns=[
                "site_name",
                "ring",
                "inner_distance",
                "outer_distance",
                "population",
                "cumulative_population",
                "status",
            ],
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY SERIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def serialize_geometry(geom: Optional[BaseGeometry]) -> Optional[str]:
    """
    Serialize a single Shapely geometry to WKT string.

    Args:
        geom: Shapely geometry object (Polygon, MultiPolygon, etc.)

    Returns:
        WKT string representation, or None if geometry is empty/None
    """
    if geom is None or geom.is_empty:
        return None
    return geom.wkt
