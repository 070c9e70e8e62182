"""
Summary Aggregator

Folds immutable RingReports into a SiteReport. Reports are ordered by ring
index, never by the order in which concurrent ring jobs finished, and
format_ring_label() is the only place a ring label is built.
"""

import logging
from typing import Iterable, Sequence, Tuple

from buffer_dasymetric.models.data_models import RingReport, SiteReport

logger = logging.getLogger("BufferDasymetric.Summary")


def format_distance(value: float) -> str:
    """Compact distance text: 0.25 -> '0.25', 1.0 -> '1'."""
    return f"{float(value):g}"


def format_ring_label(inner_distance: float, outer_distance: float, unit: str) -> str:
    """
    Label a ring as "<inner>-<outer> <unit>".

    Examples:
        >>> format_ring_label(0, 0.25, "miles")
        '0-0.25 miles'
        >>> format_ring_label(1.0, 2.0, "miles")
        '1-2 miles'
    """
    return f"{format_distance(inner_distance)}-{format_distance(outer_distance)} {unit}"


def aggregate(
    ring_reports: Iterable[RingReport],
    site_name: str,
    latitude: float,
    longitude: float,
    unit: str,
    dropped_rings: Sequence[Tuple[float, float]] = (),
) -> SiteReport:
    """
    Build the SiteReport from per-ring reports.

    Args:
        ring_reports: RingReports in any order
        site_name: Opaque site label
        latitude: Site latitude (WGS84)
        longitude: Site longitude (WGS84)
        unit: Distance unit shared by all rings
        dropped_rings: (inner, outer) pairs the ring builder dropped

    Returns:
        SiteReport with rings sorted by index

    Raises:
        ValueError: If two reports share a ring index
    """
    by_index = {}
    for report in ring_reports:
        if report.index in by_index:
            raise ValueError(f"Duplicate ring index {report.index} in ring reports")
        by_index[report.index] = report

    rings = tuple(by_index[i] for i in sorted(by_index))
    grand_total = sum(r.total_population for r in rings)

    failed = [r.label for r in rings if not r.succeeded]
    if failed:
        logger.warning(f"   ⚠️ {len(failed)} ring(s) not attributed: {', '.join(failed)}")

    return SiteReport(
        site_name=site_name,
        latitude=latitude,
        longitude=longitude,
        unit=unit,
        rings=rings,
        grand_total_population=grand_total,
        dropped_rings=tuple((float(a), float(b)) for a, b in dropped_rings),
    )
