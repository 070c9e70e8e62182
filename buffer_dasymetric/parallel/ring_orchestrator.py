"""
Orchestrator for per-ring parallel interpolation.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Dispatch one interpolation job per ring and gather ALL
results before anything is aggregated.

Patterns:
- should_use_parallel() check for config and job count
- joblib Parallel with delayed; results come back in submission order,
  so the fold is by ring index, never by completion order
- Always uses parallel infrastructure (n_jobs=1 for sequential)
- Inline sequential fallback when dispatch itself fails
- Workers share no mutable state; each returns an immutable RingReport

Key Functions:
- interpolate_all_rings(): Main entry point
- get_effective_worker_count(): Bounded worker count (protects data source)

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from buffer_dasymetric.config_types import ParallelConfig
from buffer_dasymetric.geometry_provider import ShapelyGeometryProvider
from buffer_dasymetric.interpolation import interpolate_ring
from buffer_dasymetric.models.data_models import Ring, RingReport
from buffer_dasymetric.spatial_source import SpatialDataSource

logger = logging.getLogger("BufferDasymetric.Parallel.Orchestrator")


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ CONFIG NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def _normalize_config(
    config: Union[Dict[str, Any], ParallelConfig, None],
) -> ParallelConfig:
    """
    Normalize config to ParallelConfig for internal use.

    Accepts a raw CONFIG['parallel'] dict, a ParallelConfig, or None
    (defaults).
    """
    if config is None:
        return ParallelConfig()
    if isinstance(config, ParallelConfig):
        return config
    return ParallelConfig.from_dict(config)


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 PARALLEL DECISION LOGIC
# ═══════════════════════════════════════════════════════════════════════════


def should_use_parallel(
    n_rings: int,
    config: Union[Dict[str, Any], ParallelConfig, None],
) -> Tuple[bool, str]:
    """
    Determine if parallel processing should be used.

    Args:
        n_rings: Number of ring jobs.
        config: Parallel config.

    Returns:
        Tuple of (should_use: bool, reason: str).
    """
    parallel_config = _normalize_config(config)

    if not parallel_config.enabled:
        return False, "Parallel disabled in config"

    if n_rings < parallel_config.min_rings_for_parallel:
        return (
            False,
            f"Only {n_rings} ring(s) (< {parallel_config.min_rings_for_parallel} threshold)",
        )

    if parallel_config.max_workers == 1:
        return False, "max_workers=1"

    return True, f"OK ({n_rings} rings)"


def get_effective_worker_count(
    n_rings: int,
    config: Union[Dict[str, Any], ParallelConfig, None],
) -> int:
    """
    Calculate worker count from ring count and config.

    Args:
        n_rings: Number of jobs to process.
        config: Parallel config.

    Returns:
        Number of workers to use (at least 1, at most n_rings).
    """
    parallel_config = _normalize_config(config)
    max_workers = parallel_config.max_workers

    if max_workers == -1:
        # Auto-detect based on CPU cores
        cpu_count = os.cpu_count() or 4
        max_workers = min(cpu_count, parallel_config.optimal_workers_default)

    # Don't use more workers than rings
    return max(1, min(max_workers, n_rings))


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ORCHESTRATOR FUNCTION
# ═══════════════════════════════════════════════════════════════════════════


def interpolate_all_rings(
    rings: Sequence[Ring],
    source: SpatialDataSource,
    geometry: ShapelyGeometryProvider,
    config: Union[Dict[str, Any], ParallelConfig, None] = None,
    retain_features: bool = False,
    cancel_token: Optional[Any] = None,
) -> List[RingReport]:
    """
    Interpolate every ring and return the reports in ring order.

    Returns only after every ring job has finished (or been cancelled);
    a per-ring query failure is carried on that ring's report.

    Args:
        rings: Rings from the ring builder.
        source: Spatial data source shared (read-only) by all jobs.
        geometry: Geometry provider.
        config: Parallel config.
        retain_features: Keep ClippedRecords on each report.
        cancel_token: Optional token with is_cancelled().

    Returns:
        List of RingReport, same order as rings.
    """
    if not rings:
        return []

    start_time = time.time()
    parallel_config = _normalize_config(config)
    use_parallel, reason = should_use_parallel(len(rings), parallel_config)
    n_workers = get_effective_worker_count(len(rings), parallel_config) if use_parallel else 1

    if not use_parallel:
        reason = f"{reason} -> using n_jobs=1"
    logger.info(f"   ⚡ Ring dispatch: {len(rings)} ring(s), {n_workers} worker(s) ({reason})")

    results = _dispatch_rings(
        rings,
        source,
        geometry,
        parallel_config,
        n_workers,
        retain_features,
        cancel_token,
    )

    elapsed = time.time() - start_time
    failed = sum(1 for r in results if not r.succeeded)
    logger.info(
        f"   ⏱️ Rings complete in {elapsed:.2f}s "
        f"({len(results) - failed} ok, {failed} not attributed)"
    )
    return results


# ═══════════════════════════════════════════════════════════════════════════
# ⚡ PARALLEL DISPATCH
# ═══════════════════════════════════════════════════════════════════════════


def _dispatch_rings(
    rings: Sequence[Ring],
    source: SpatialDataSource,
    geometry: ShapelyGeometryProvider,
    parallel_config: ParallelConfig,
    n_workers: int,
    retain_features: bool,
    cancel_token: Optional[Any],
) -> List[RingReport]:
    """
    Run ring jobs through joblib and collect them in ring order.

    Falls back to inline sequential processing if joblib cannot dispatch
    and fallback_on_error is set.
    """
    # interpolate_ring reports its own failures, so only dispatch errors land here
    try:
        from joblib import Parallel, delayed

        results_list = list(
            Parallel(
                n_jobs=n_workers,
                backend=parallel_config.backend,
                verbose=parallel_config.verbose,
            )(
                delayed(interpolate_ring)(
                    ring,
                    source,
                    geometry,
                    retain_features=retain_features,
                    cancel_token=cancel_token,
                )
                for ring in rings
            )
        )
    except (ImportError, RuntimeError, OSError) as e:
        logger.warning(f"⚠️ Parallel ring dispatch failed: {e}")
        if not parallel_config.fallback_on_error:
            raise
        logger.info("📋 Falling back to inline sequential processing...")
        results_list = []
        for i, ring in enumerate(rings):
            logger.debug(f"📋 Processing ring {i + 1}/{len(rings)}")
            results_list.append(
                interpolate_ring(
                    ring,
                    source,
                    geometry,
                    retain_features=retain_features,
                    cancel_token=cancel_token,
                )
            )

    return _collect_results(rings, results_list)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 RESULT COLLECTION
# ═══════════════════════════════════════════════════════════════════════════


def _collect_results(
    rings: Sequence[Ring],
    results_list: List[RingReport],
) -> List[RingReport]:
    """
    Check that every ring produced exactly one report and order by index.

    Raises:
        RuntimeError: If a ring job returned no report
    """
    by_index = {r.index: r for r in results_list if r is not None}
    missing = [ring.index for ring in rings if ring.index not in by_index]
    if missing:
        raise RuntimeError(f"Ring jobs returned no report for ring(s) {missing}")
    return [by_index[ring.index] for ring in rings]


__all__ = [
    "interpolate_all_rings",
    "should_use_parallel",
    "get_effective_worker_count",
]
