"""
Cancellation and staleness control for repeated site submissions.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: When a user submits a new site before the previous one has
finished, the previous computation is cancelled and its result discarded.
A stale result can never overwrite a newer SiteReport.

- CancelToken: thread-safe flag checked by every ring job
- SiteSession.submit(): generation-numbered submission; only the latest
  generation publishes to latest_report
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple, Union

from buffer_dasymetric import site_analysis
from buffer_dasymetric.config_types import ParallelConfig
from buffer_dasymetric.geometry_provider import CRS_WGS84, ShapelyGeometryProvider
from buffer_dasymetric.models.data_models import SiteInput, SiteReport
from buffer_dasymetric.spatial_source import SpatialDataSource

logger = logging.getLogger("BufferDasymetric.Parallel.Session")


class CancelToken:
    """One-way cancellation flag shared by the ring jobs of one site."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


class SiteSession:
    """
    Serializes the visible result of repeated site computations.

    Submissions may run on different threads. Each gets a generation number;
    starting a new submission cancels the previous token, and a finished
    computation only publishes if its generation is still the newest.

    Usage:
        session = SiteSession(source, provider, app_config.parallel)
        report = session.submit(site_input)   # None if superseded
        latest = session.latest_report
    """

    def __init__(
        self,
        source: SpatialDataSource,
        geometry: ShapelyGeometryProvider,
        parallel_config: Union[Dict[str, Any], ParallelConfig, None] = None,
        retain_features: bool = False,
        input_crs: str = CRS_WGS84,
    ) -> None:
        self.source = source
        self.geometry = geometry
        self.parallel_config = parallel_config
        self.retain_features = retain_features
        self.input_crs = input_crs

        self._lock = threading.Lock()
        self._generation = 0
        self._token: Optional[CancelToken] = None
        self._latest_report: Optional[SiteReport] = None

    @property
    def latest_report(self) -> Optional[SiteReport]:
        """Most recent non-stale SiteReport."""
        with self._lock:
            return self._latest_report

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _begin(self) -> Tuple[int, "CancelToken"]:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._generation += 1
            self._token = CancelToken()
            return self._generation, self._token

    def cancel(self) -> None:
        """Cancel whatever computation is in flight."""
        with self._lock:
            if self._token is not None:
                self._token.cancel()

    def submit(self, site: SiteInput) -> Optional[SiteReport]:
        """
        Compute a site, superseding any computation in flight.

        Args:
            site: Validated site request

        Returns:
            The SiteReport, or None if a newer submission (or cancel())
            arrived before this one finished.

        Raises:
            CollaboratorUnavailableError: Propagated from the pipeline
        """
        generation, token = self._begin()

        report = site_analysis.analyze_site(
            site,
            self.source,
            self.geometry,
            parallel_config=self.parallel_config,
            retain_features=self.retain_features,
            cancel_token=token,
            input_crs=self.input_crs,
        )

        with self._lock:
            if generation != self._generation or token.is_cancelled():
                logger.info(
                    f"   🗑️ Discarding stale result for '{site.site_name}' "
                    f"(generation {generation}, current {self._generation})"
                )
                return None
            self._latest_report = report
            return report
