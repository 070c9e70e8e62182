#!/usr/bin/env python3
"""
Site analysis pipeline.

Runs one validated site through the full chain:

    SiteInput -> reproject (once) -> build_rings -> interpolate_all_rings
              -> aggregate -> SiteReport

Inputs are already validated. Reprojection failure, or a data source that
fails for every ring, surfaces as CollaboratorUnavailableError; problems
confined to some rings surface on the report.
"""

import logging
from typing import Any, Dict, Optional, Union

from shapely.geometry import Point

from buffer_dasymetric.config_types import ParallelConfig
from buffer_dasymetric.geometry_provider import CRS_WGS84, ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import RingStatus, SiteInput, SiteReport
from buffer_dasymetric.models.errors import CollaboratorUnavailableError
from buffer_dasymetric.parallel.ring_orchestrator import interpolate_all_rings
from buffer_dasymetric.ring_builder import build_rings_with_drops
from buffer_dasymetric.spatial_source import SpatialDataSource
from buffer_dasymetric.summary import aggregate

logger = logging.getLogger("BufferDasymetric.Site")


def analyze_site(
    site: SiteInput,
    source: SpatialDataSource,
    geometry: ShapelyGeometryProvider,
    parallel_config: Union[Dict[str, Any], ParallelConfig, None] = None,
    retain_features: bool = False,
    cancel_token: Optional[Any] = None,
    input_crs: str = CRS_WGS84,
) -> SiteReport:
    """
    Compute the SiteReport for a validated site.

    Args:
        site: Validated site request
        source: Spatial data source in the provider's working CRS
        geometry: Geometry provider
        parallel_config: Per-ring dispatch settings
        retain_features: Keep ClippedRecords on the ring reports
        cancel_token: Optional token with is_cancelled()
        input_crs: CRS of site.latitude / site.longitude

    Returns:
        SiteReport (check is_complete for partial results)

    Raises:
        CollaboratorUnavailableError: If the site point cannot be projected
            or every ring query failed
    """
    if source is None:
        raise CollaboratorUnavailableError("No spatial data source configured")

    center = geometry.reproject_point(
        Point(site.longitude, site.latitude), source_crs=input_crs
    )
    logger.info(
        f"📍 Site '{site.site_name}' ({site.latitude:.5f}, {site.longitude:.5f}) "
        f"-> ({center.x:.1f}, {center.y:.1f})"
    )

    rings, dropped = build_rings_with_drops(center, site.distances, site.unit, geometry)

    reports = interpolate_all_rings(
        rings,
        source,
        geometry,
        config=parallel_config,
        retain_features=retain_features,
        cancel_token=cancel_token,
    )

    # Every ring failing to query means the source is down, not a partial result
    if reports and all(r.status == RingStatus.QUERY_FAILED for r in reports):
        raise CollaboratorUnavailableError(
            f"Spatial data source unavailable for site '{site.site_name}': "
            f"{reports[0].error}"
        )

    return aggregate(
        reports,
        site_name=site.site_name,
        latitude=site.latitude,
        longitude=site.longitude,
        unit=site.unit,
        dropped_rings=dropped,
    )
