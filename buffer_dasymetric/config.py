#!/usr/bin/env python3
"""
Buffer Dasymetric - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for ring-buffer population
redistribution. Single source of truth for distances, area measure,
data source fields, parallel dispatch and file paths.

Configuration Sections (ordered by importance for analysis tuning):
1. rings: Distance list and linear unit
2. area: Area measure and working CRS (must be consistent for all areas)
3. source_fields: Attribute columns on the census layer
4. parallel: Per-ring dispatch settings
5. site: Default site for `python -m buffer_dasymetric.main`
6. file_paths: Census layer and log locations (bottom - rarely changed)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "BD_AREA_MEASURE")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("BD_MAX_WORKERS", -1, int)
        -1  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# These settings can be overridden via environment variables:
#
# BD_AREA_MEASURE      - "planar" or "geodesic" (default: "planar")
# BD_WORKING_CRS       - projected CRS for buffering (default: "EPSG:5070")
# BD_MAX_WORKERS       - int, -1 = auto (default: -1)
# BD_PARALLEL_ENABLED  - "true" or "false" (default: "true")
# BD_RETAIN_FEATURES   - "true" or "false" (default: "false")
# BD_CENSUS_PATH       - path to the census polygon layer
#
# Example usage:
#   export BD_AREA_MEASURE=geodesic
#   export BD_MAX_WORKERS=4
#   python -m buffer_dasymetric.main
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # ⭕ RING DISTANCES
    # ═══════════════════════════════════════════════════════════════════════
    "rings": {
        # Ascending, strictly increasing; the first ring always starts at 0
        "distances": [0.25, 0.5, 1.0, 2.0, 3.0, 4.0],
        # "miles", "kilometers", "meters" or "feet"
        "unit": "miles",
        # Segments per quarter circle for buffer polygons
        "buffer_resolution": 64,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📐 AREA MEASURE (single choice for reference AND clipped areas)
    # ═══════════════════════════════════════════════════════════════════════
    "area": {
        # "planar": shapely area in working_crs (equal-area projection)
        # "geodesic": ellipsoidal area on WGS84 via pyproj.Geod
        "measure": _env_or_default("BD_AREA_MEASURE", "planar"),
        # CONUS Albers Equal Area - distances in metres, areas preserved
        "working_crs": _env_or_default("BD_WORKING_CRS", "EPSG:5070"),
        # CRS of the incoming site coordinates
        "input_crs": "EPSG:4326",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🏘️ CENSUS LAYER FIELDS
    # ═══════════════════════════════════════════════════════════════════════
    "source_fields": {
        "population_field": "POPULATION",
        # None = derive reference area from the geometry with the configured
        # area measure at load time
        "area_field": None,
        # Column holding the feature id (e.g. "GEOID");
        # None = use the GeoDataFrame index as feature id
        "id_field": None,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ⚡ PARALLEL PROCESSING (one job per ring)
    # ═══════════════════════════════════════════════════════════════════════
    "parallel": {
        "enabled": _env_bool("BD_PARALLEL_ENABLED", True),
        "max_workers": _env_or_default("BD_MAX_WORKERS", -1, int),
        "optimal_workers_default": 4,
        "min_rings_for_parallel": 2,
        "fallback_on_error": True,
        # Ring jobs are I/O bound on the data source and share its handle
        "backend": "threading",
        "verbose": 0,
    },
    # Keep per-feature ClippedRecords (with geometry) on each RingReport
    "retain_features": _env_bool("BD_RETAIN_FEATURES", False),
    # ═══════════════════════════════════════════════════════════════════════
    # 📍 DEFAULT SITE
    # ═══════════════════════════════════════════════════════════════════════
    "site": {
        "latitude": 38.8977,
        "longitude": -77.0365,
        "site_name": "Example Site",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📁 FILE PATHS
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "census_path": _env_or_default(
            "BD_CENSUS_PATH", "Data/census_block_groups.gpkg"
        ),
        "census_layer": None,
        "log_dir": "logs",
    },
}
