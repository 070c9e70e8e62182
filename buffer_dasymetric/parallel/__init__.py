"""
Per-Ring Parallel Processing Module

Provides concurrent interpolation of independent rings and cancellation of
superseded site computations.

Module Structure:
- ring_orchestrator.py: joblib dispatch, worker count, gather in ring order
- site_session.py: CancelToken + SiteSession (stale results are discarded)
"""

from buffer_dasymetric.parallel.ring_orchestrator import (
    interpolate_all_rings,
    should_use_parallel,
    get_effective_worker_count,
)

from buffer_dasymetric.parallel.site_session import (
    CancelToken,
    SiteSession,
)

__all__ = [
    # Orchestrator
    "interpolate_all_rings",
    "should_use_parallel",
    "get_effective_worker_count",
    # Session
    "CancelToken",
    "SiteSession",
]
