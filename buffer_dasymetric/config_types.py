"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for buffer dasymetric
analysis. Replaces scattered CONFIG dictionary access with typed, validated
config objects.

Usage:
    from buffer_dasymetric.config import CONFIG
    from buffer_dasymetric.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the application
    distances = app_config.rings.distances

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. FILE PATHS CONFIGURATION
# ═════ 2. RING CONFIGURATION
# ═════ 3. AREA CONFIGURATION
# ═════ 4. SOURCE FIELDS CONFIGURATION
# ═════ 5. PARALLEL PROCESSING CONFIGURATION
# ═════ 6. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from buffer_dasymetric.geometry_provider import LINEAR_UNIT_METRES
from buffer_dasymetric.models.data_models import AreaMeasure


# ═══════════════════════════════════════════════════════════════════════════════
# 📁 1. FILE PATHS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for inputs and logs.

    Attributes:
        census_path: Path to the census polygon layer (any OGR format).
        census_layer: Layer name inside a multi-layer file (GeoPackage).
        log_dir: Directory for log files.
    """

    census_path: str = ""
    census_layer: Optional[str] = None
    log_dir: str = "logs"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            census_path=d.get("census_path", ""),
            census_layer=d.get("census_layer"),
            log_dir=d.get("log_dir", "logs"),
        )

    def log_dir_path(self, workspace_root: Path) -> Path:
        """Get log directory resolved against workspace root."""
        return workspace_root / self.log_dir


# ═══════════════════════════════════════════════════════════════════════════════
# ⭕ 2. RING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RingConfig:
    """
    Ring distance configuration.

    Attributes:
        distances: Strictly increasing outer distances (first ring from 0).
        unit: Linear unit of the distances.
        buffer_resolution: Segments per quarter circle for buffer polygons.
    """

    distances: Tuple[float, ...] = (0.25, 0.5, 1.0, 2.0, 3.0, 4.0)
    unit: str = "miles"
    buffer_resolution: int = 64

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RingConfig":
        """Create RingConfig from CONFIG['rings'] dictionary."""
        return cls(
            distances=tuple(
                float(x) for x in d.get("distances", (0.25, 0.5, 1.0, 2.0, 3.0, 4.0))
            ),
            unit=d.get("unit", "miles"),
            buffer_resolution=d.get("buffer_resolution", 64),
        )

    def __post_init__(self) -> None:
        """Validate ring configuration."""
        if self.unit not in LINEAR_UNIT_METRES:
            raise ValueError(
                f"unit must be one of {sorted(LINEAR_UNIT_METRES)}, got '{self.unit}'"
            )
        if self.buffer_resolution < 1:
            raise ValueError(
                f"buffer_resolution must be >= 1, got {self.buffer_resolution}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 3. AREA CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AreaConfig:
    """
    Area measure and coordinate systems.

    Attributes:
        measure: "planar" or "geodesic" - used for every area in a run.
        working_crs: Projected CRS (metres) used for buffering and clipping.
        input_crs: CRS of incoming site coordinates.
    """

    measure: str = "planar"
    working_crs: str = "EPSG:5070"
    input_crs: str = "EPSG:4326"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AreaConfig":
        """Create AreaConfig from CONFIG['area'] dictionary."""
        return cls(
            measure=d.get("measure", "planar"),
            working_crs=d.get("working_crs", "EPSG:5070"),
            input_crs=d.get("input_crs", "EPSG:4326"),
        )

    def __post_init__(self) -> None:
        """Validate area measure."""
        AreaMeasure.from_string(self.measure)

    @property
    def area_measure(self) -> AreaMeasure:
        """Measure as enum."""
        return AreaMeasure.from_string(self.measure)


# ═══════════════════════════════════════════════════════════════════════════════
# 🏘️ 4. SOURCE FIELDS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SourceFieldsConfig:
    """Attribute columns read from the census layer."""

    population_field: str = "POPULATION"
    area_field: Optional[str] = None
    id_field: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceFieldsConfig":
        """Create SourceFieldsConfig from CONFIG['source_fields'] dictionary."""
        return cls(
            population_field=d.get("population_field", "POPULATION"),
            area_field=d.get("area_field"),
            id_field=d.get("id_field"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ⚡ 5. PARALLEL PROCESSING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParallelConfig:
    """
    Configuration for per-ring parallel dispatch.

    Attributes:
        enabled: Master toggle for parallel processing.
        max_workers: Concurrent ring jobs (-1 = auto). Bounds the load on
            the spatial data source.
        optimal_workers_default: Default worker count when auto-detecting.
        min_rings_for_parallel: Minimum ring count to justify parallel.
        fallback_on_error: Fall back to sequential on dispatch errors.
        backend: Joblib backend ("threading" shares the data source handle).
        verbose: Joblib verbosity level (0-10).
    """

    enabled: bool = True
    max_workers: int = -1
    optimal_workers_default: int = 4
    min_rings_for_parallel: int = 2
    fallback_on_error: bool = True
    backend: str = "threading"
    verbose: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParallelConfig":
        """Create ParallelConfig from CONFIG['parallel'] dictionary."""
        return cls(
            enabled=d.get("enabled", True),
            max_workers=d.get("max_workers", -1),
            optimal_workers_default=d.get("optimal_workers_default", 4),
            min_rings_for_parallel=d.get("min_rings_for_parallel", 2),
            fallback_on_error=d.get("fallback_on_error", True),
            backend=d.get("backend", "threading"),
            verbose=d.get("verbose", 0),
        )

    def __post_init__(self) -> None:
        """Validate worker settings."""
        if self.max_workers == 0 or self.max_workers < -1:
            raise ValueError(
                f"max_workers must be -1 (auto) or >= 1, got {self.max_workers}"
            )
        if self.optimal_workers_default < 1:
            raise ValueError(
                "optimal_workers_default must be >= 1, "
                f"got {self.optimal_workers_default}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 6. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for buffer dasymetric analysis.

    Create it once at application startup using AppConfig.from_dict(CONFIG)
    and pass it to all functions that need settings.

    Attributes:
        rings: Ring distance configuration.
        area: Area measure and CRS configuration.
        source_fields: Census layer attribute columns.
        parallel: Parallel processing configuration.
        file_paths: File path configuration.
        retain_features: Keep per-feature ClippedRecords on ring reports.
        site: Default site dict (latitude, longitude, site_name).

    Example:
        from buffer_dasymetric.config import CONFIG
        from buffer_dasymetric.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
    """

    rings: RingConfig = field(default_factory=RingConfig)
    area: AreaConfig = field(default_factory=AreaConfig)
    source_fields: SourceFieldsConfig = field(default_factory=SourceFieldsConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)
    retain_features: bool = False
    site: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py.

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            rings=RingConfig.from_dict(config_dict.get("rings", {})),
            area=AreaConfig.from_dict(config_dict.get("area", {})),
            source_fields=SourceFieldsConfig.from_dict(
                config_dict.get("source_fields", {})
            ),
            parallel=ParallelConfig.from_dict(config_dict.get("parallel", {})),
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
            retain_features=config_dict.get("retain_features", False),
            site=dict(config_dict.get("site", {})),
        )
