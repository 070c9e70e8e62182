#!/usr/bin/env python3
"""
Areal Interpolation Engine

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Reallocate census population to one ring by area fraction.

This is a PURE COMPUTATION module: interpolate_ring() reads the ring and a
data source snapshot and returns a new immutable RingReport. It never
touches a shared summary, so rings can run concurrently.

Per candidate polygon:
1. clip = intersect(candidate, ring); empty -> no contribution
2. clipped_area = geometry.area(clip) (the single configured measure)
3. reference area must pass valid_area() else skip with a warning
4. ratio = clamp_ratio(clipped_area, reference_area) in [0, 1]
5. reallocated = round_half_up(ratio * population)

A data source failure marks only this ring as QUERY_FAILED; an exception
while clipping or measuring marks it PROCESSING_FAILED.

Navigation Guide:
- interpolate_ring: Core per-ring pass
- clip_candidate: Steps 1-5 for a single candidate
"""

import logging
import math
from typing import Any, List, Optional, Tuple

from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import (
    ClippedRecord,
    Ring,
    RingReport,
    RingStatus,
    SourcePolygon,
)
from buffer_dasymetric.spatial_source import SpatialDataSource
from buffer_dasymetric.summary import format_ring_label
from buffer_dasymetric.validation import (
    clamp_ratio,
    round_half_up,
    valid_area,
    valid_population,
)

logger = logging.getLogger("BufferDasymetric.Interpolation")

QUERY_PREDICATE = "intersects"


# ═══════════════════════════════════════════════════════════════════════════
# ✂️ SINGLE CANDIDATE
# ═══════════════════════════════════════════════════════════════════════════


def clip_candidate(
    ring: Ring,
    candidate: SourcePolygon,
    geometry: ShapelyGeometryProvider,
    retain_geometry: bool = False,
) -> Tuple[Optional[ClippedRecord], Optional[str]]:
    """
    Clip one candidate polygon to a ring and reallocate its population.

    Args:
        ring: Ring being processed
        candidate: Census polygon from the data source
        geometry: Geometry provider (area measure must match reference area)
        retain_geometry: Keep the clipped geometry on the record

    Returns:
        Tuple of (record, skip_reason):
        - (record, None): accepted
        - (None, None): no overlap with the ring (expected, not a skip)
        - (None, reason): rejected for bad attributes
    """
    clipped = geometry.intersect(candidate.geometry, ring.geometry)
    if clipped is None:
        return None, None

    if not valid_area(candidate.reference_area):
        return None, f"invalid reference area {candidate.reference_area!r}"
    if not valid_population(candidate.reference_population):
        return None, f"invalid reference population {candidate.reference_population!r}"

    reference_area = float(candidate.reference_area)
    population = float(candidate.reference_population)
    clipped_area = geometry.area(clipped)

    ratio = clamp_ratio(clipped_area, reference_area)
    # Fractional source populations must not round above themselves
    reallocated = min(round_half_up(ratio * population), math.floor(population))

    record = ClippedRecord(
        ring_index=ring.index,
        feature_id=candidate.feature_id,
        clipped_area=min(clipped_area, reference_area),
        reference_area=reference_area,
        area_ratio=ratio,
        reference_population=population,
        reallocated_population=reallocated,
        geometry=clipped if retain_geometry else None,
    )
    return record, None


# ═══════════════════════════════════════════════════════════════════════════
# ⭕ RING PASS
# ═══════════════════════════════════════════════════════════════════════════


def _empty_report(ring: Ring, status: RingStatus, error: str) -> RingReport:
    return RingReport(
        index=ring.index,
        inner_distance=ring.inner_distance,
        outer_distance=ring.outer_distance,
        unit=ring.unit,
        label=format_ring_label(ring.inner_distance, ring.outer_distance, ring.unit),
        total_population=0,
        status=status,
        error=error,
    )


def interpolate_ring(
    ring: Ring,
    source: SpatialDataSource,
    geometry: ShapelyGeometryProvider,
    retain_features: bool = False,
    cancel_token: Optional[Any] = None,
) -> RingReport:
    """
    Compute the reallocated population of one ring.

    Args:
        ring: Ring polygon in the working CRS
        source: Spatial data source
        geometry: Geometry provider
        retain_features: Keep ClippedRecords (with geometry) on the report
        cancel_token: Optional token with is_cancelled(); checked before the
            query and before folding

    Returns:
        RingReport. Query failures, processing failures and cancellation
        are reported on the report, never raised.
    """
    label = format_ring_label(ring.inner_distance, ring.outer_distance, ring.unit)

    if cancel_token is not None and cancel_token.is_cancelled():
        return _empty_report(ring, RingStatus.CANCELLED, "cancelled before query")

    try:
        candidates = source.query(ring.geometry, predicate=QUERY_PREDICATE)
    except Exception as e:
        logger.warning(f"   ⚠️ Ring {label}: data source query failed: {e}")
        return _empty_report(ring, RingStatus.QUERY_FAILED, str(e) or type(e).__name__)

    total = 0
    accepted: List[ClippedRecord] = []
    skipped = 0

    try:
        for candidate in candidates:
            record, reason = clip_candidate(ring, candidate, geometry, retain_features)
            if record is None:
                if reason is not None:
                    skipped += 1
                    logger.warning(
                        f"   ⚠️ Ring {label}: skipping feature {candidate.feature_id}: {reason}"
                    )
                continue
            total += record.reallocated_population
            accepted.append(record)
    except Exception as e:
        error = f"{type(e).__name__}: {str(e)}"
        logger.error(f"   ❌ Ring {label}: processing failed: {error}")
        return _empty_report(ring, RingStatus.PROCESSING_FAILED, error)

    if cancel_token is not None and cancel_token.is_cancelled():
        return _empty_report(ring, RingStatus.CANCELLED, "cancelled during processing")

    logger.debug(
        f"   Ring {label}: {len(accepted)}/{len(candidates)} features, "
        f"population={total}"
    )

    return RingReport(
        index=ring.index,
        inner_distance=ring.inner_distance,
        outer_distance=ring.outer_distance,
        unit=ring.unit,
        label=label,
        total_population=total,
        feature_count=len(accepted),
        skipped_count=skipped,
        records=tuple(accepted) if retain_features else (),
    )
