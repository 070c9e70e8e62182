#!/usr/bin/env python3
"""
Ring Buffer Builder

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn a projected centre point and an ascending distance list
into non-overlapping ring polygons (buffer differences).

Key Features:
1. Ring i = buffer(d[i]) - buffer(d[i-1]); ring 0 = buffer(d[0])
2. Degenerate rings (empty buffer or difference) are dropped with a
   warning instead of aborting the site computation
3. Rings come back in ascending distance order

CONFIGURATION ARCHITECTURE:
- No CONFIG access - distances, unit and provider are explicit parameters
- The centre must already be in the provider's projected working CRS
"""

import logging
from typing import List, Optional, Sequence, Tuple

from shapely.geometry.base import BaseGeometry

from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import Ring

logger = logging.getLogger("BufferDasymetric.Rings")


def build_rings(
    center: BaseGeometry,
    distances: Sequence[float],
    unit: str,
    geometry: ShapelyGeometryProvider,
) -> List[Ring]:
    """
    Build concentric ring polygons around a projected point.

    Args:
        center: Site point in the provider's working CRS
        distances: Strictly increasing outer distances (already validated)
        unit: Linear unit of distances
        geometry: Geometry provider

    Returns:
        Rings in ascending order. May be shorter than distances if some
        rings degenerate; an empty distance list gives an empty list.
    """
    rings, _ = build_rings_with_drops(center, distances, unit, geometry)
    return rings


def build_rings_with_drops(
    center: BaseGeometry,
    distances: Sequence[float],
    unit: str,
    geometry: ShapelyGeometryProvider,
) -> Tuple[List[Ring], List[Tuple[float, float]]]:
    """
    Same as build_rings, also returning the (inner, outer) of dropped rings.

    Returns:
        Tuple of (rings, dropped) where dropped lists (inner, outer) pairs
    """
    rings: List[Ring] = []
    dropped: List[Tuple[float, float]] = []
    inner_buffer: Optional[BaseGeometry] = None
    inner_distance = 0.0

    for i, outer_distance in enumerate(distances):
        outer_buffer = geometry.buffer(center, outer_distance, unit)

        if outer_buffer is None:
            ring_geom = None
        elif i == 0:
            ring_geom = outer_buffer
        else:
            ring_geom = geometry.difference(outer_buffer, inner_buffer)

        if ring_geom is None:
            logger.warning(
                f"   ⚠️ Dropping ring {inner_distance:g}-{outer_distance:g} {unit}: "
                "empty buffer difference"
            )
            dropped.append((inner_distance, outer_distance))
        else:
            rings.append(
                Ring(
                    index=i,
                    inner_distance=inner_distance,
                    outer_distance=float(outer_distance),
                    unit=unit,
                    geometry=ring_geom,
                )
            )

        # The next ring is always cut against this distance, even if this
        # ring was dropped, so dropped area is never picked up twice
        if outer_buffer is not None:
            inner_buffer = outer_buffer
            inner_distance = float(outer_distance)

    logger.info(
        f"   ⭕ Built {len(rings)} ring(s) for {len(distances)} distance(s)"
        + (f", dropped {len(dropped)}" if dropped else "")
    )
    return rings, dropped
