#!/usr/bin/env python3
"""
Buffer Dasymetric - Main Entry Point

Ring-buffer population redistribution for a single site: concentric rings
around a point, census polygons clipped to each ring, population reallocated
by area fraction.

Usage:
    python -m buffer_dasymetric.main

    Or from Python:
    from buffer_dasymetric import run_site_analysis
    report = run_site_analysis(38.8977, -77.0365, "HQ", source=source)
"""

import sys
import logging
import time
from pathlib import Path
from datetime import datetime
from typing import Any, Optional, Sequence, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from buffer_dasymetric.config import CONFIG
from buffer_dasymetric.config_types import AppConfig
from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import SiteReport
from buffer_dasymetric.site_analysis import analyze_site
from buffer_dasymetric.spatial_source import GeoDataFrameSource, SpatialDataSource
from buffer_dasymetric.validation import validate_site_input

# Workspace root for resolving config paths
WORKSPACE_ROOT = Path.cwd()

logger = logging.getLogger("BufferDasymetric")


# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(app_config: Optional[AppConfig] = None) -> Tuple[logging.Logger, Path]:
    """Configure logging with file and console handlers.

    Returns:
        Tuple of (logger, run_log_folder).

    Folder naming convention:
        site_{MMDD}_{HHMM}, e.g. site_0129_1028
    """
    app_config = app_config or AppConfig.from_dict(CONFIG)
    log_dir = app_config.file_paths.log_dir_path(WORKSPACE_ROOT)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Compact timestamp: MMDD_HHMM
    timestamp = datetime.now().strftime("%m%d_%H%M")
    run_log_folder = log_dir / f"site_{timestamp}"
    run_log_folder.mkdir(parents=True, exist_ok=True)

    log_path = run_log_folder / "main.log"

    root = logging.getLogger("BufferDasymetric")
    root.setLevel(logging.INFO)
    root.handlers.clear()

    # File handler
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))

    root.addHandler(fh)
    root.addHandler(ch)

    return root, run_log_folder


# ═══════════════════════════════════════════════════════════════════════════
# 🏗️ COLLABORATOR CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════════


def build_geometry_provider(app_config: AppConfig) -> ShapelyGeometryProvider:
    """Geometry provider with the configured CRS, area measure and resolution."""
    return ShapelyGeometryProvider(
        working_crs=app_config.area.working_crs,
        area_measure=app_config.area.area_measure,
        buffer_resolution=app_config.rings.buffer_resolution,
    )


def load_census_source(
    app_config: AppConfig, geometry: ShapelyGeometryProvider
) -> GeoDataFrameSource:
    """Load the configured census layer as a spatial data source."""
    census_path = Path(app_config.file_paths.census_path)
    if not census_path.is_absolute():
        census_path = WORKSPACE_ROOT / census_path

    fields = app_config.source_fields
    return GeoDataFrameSource.from_file(
        census_path,
        population_field=fields.population_field,
        geometry=geometry,
        area_field=fields.area_field,
        id_field=fields.id_field,
        layer=app_config.file_paths.census_layer,
    )


# ═══════════════════════════════════════════════════════════════════════════
# 📊 SUMMARY LOGGING
# ═══════════════════════════════════════════════════════════════════════════


def _log_site_summary(report: SiteReport) -> None:
    """Log the per-ring population table."""
    logger.info("=" * 60)
    logger.info(f"📊 POPULATION BY RING: {report.site_name or '(unnamed site)'}")
    logger.info("=" * 60)
    for ring, cumulative in zip(report.rings, report.cumulative_totals):
        flag = "" if ring.succeeded else f"  ⚠️ {ring.status.value}: {ring.error}"
        logger.info(
            f"   {ring.label:<20} {ring.total_population:>12,d} "
            f"(cumulative {cumulative:>12,d}){flag}"
        )
    for inner, outer in report.dropped_rings:
        logger.info(f"   {inner:g}-{outer:g} {report.unit:<12} dropped (degenerate ring)")
    logger.info("-" * 60)
    logger.info(f"   Grand total: {report.grand_total_population:,d}")
    if not report.is_complete:
        logger.warning("   ⚠️ Result is partial: some area could not be attributed")


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN WORKFLOW
# ═══════════════════════════════════════════════════════════════════════════


def run_site_analysis(
    latitude: Any,
    longitude: Any,
    site_name: Optional[str] = None,
    source: Optional[SpatialDataSource] = None,
    distances: Optional[Sequence[float]] = None,
    unit: Optional[str] = None,
    app_config: Optional[AppConfig] = None,
    geometry: Optional[ShapelyGeometryProvider] = None,
    cancel_token: Optional[Any] = None,
) -> SiteReport:
    """
    Validate a site and compute its population per ring.

    Args:
        latitude: WGS84 latitude (number or numeric string)
        longitude: WGS84 longitude (number or numeric string)
        site_name: Opaque label for the report
        source: Spatial data source in the working CRS (loaded from
            file_paths.census_path when None)
        distances: Ring distances (config default when None)
        unit: Distance unit (config default when None)
        app_config: Typed config (built from CONFIG when None)
        geometry: Geometry provider (built from config when None)
        cancel_token: Optional token with is_cancelled()

    Returns:
        SiteReport

    Raises:
        InputValidationError: Bad coordinates, distances or unit
        CollaboratorUnavailableError: Reprojection or data source failure
    """
    app_config = app_config or AppConfig.from_dict(CONFIG)

    # Validation runs before any geometry or data source work
    site = validate_site_input(
        latitude,
        longitude,
        distances if distances is not None else app_config.rings.distances,
        unit if unit is not None else app_config.rings.unit,
        site_name,
    )

    start = time.perf_counter()
    geometry = geometry or build_geometry_provider(app_config)
    if source is None:
        source = load_census_source(app_config, geometry)

    report = analyze_site(
        site,
        source,
        geometry,
        parallel_config=app_config.parallel,
        retain_features=app_config.retain_features,
        cancel_token=cancel_token,
        input_crs=app_config.area.input_crs,
    )

    logger.info(f"   ⏱️ Site computed in {time.perf_counter() - start:.2f}s")
    _log_site_summary(report)
    return report


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


def main() -> SiteReport:
    """Run the configured default site."""
    app_config = AppConfig.from_dict(CONFIG)
    _, run_log_folder = setup_logging(app_config)
    logger.info("=" * 60)
    logger.info("🎯 Buffer Dasymetric Population Analysis")
    logger.info("=" * 60)
    logger.info(f"   Log folder: {run_log_folder}")
    logger.info(
        f"   Distances: {list(app_config.rings.distances)} {app_config.rings.unit}"
    )
    logger.info(
        f"   Area measure: {app_config.area.measure} ({app_config.area.working_crs})"
    )

    site = app_config.site
    try:
        return run_site_analysis(
            site.get("latitude"),
            site.get("longitude"),
            site.get("site_name"),
            app_config=app_config,
        )
    except Exception as e:
        logger.error(f"❌ Analysis failed: {str(e)}")
        raise


if __name__ == "__main__":
    main()
