"""
Unit tests for per-ring dispatch.

Tests:
1. Parallel decision and worker count
2. Reports come back in ring order even when inner rings finish last
3. One failing ring does not affect the others, nor is it re-run
4. Sequential fallback when dispatch fails

Run with: python -m pytest buffer_dasymetric/_tests/test_ring_orchestrator.py -v
"""

import time

import joblib
import pytest
from pyproj.exceptions import ProjError
from shapely.geometry import Point

from buffer_dasymetric.config_types import ParallelConfig
from buffer_dasymetric.models.data_models import RingStatus
from buffer_dasymetric.parallel.ring_orchestrator import (
    _collect_results,
    get_effective_worker_count,
    interpolate_all_rings,
    should_use_parallel,
)
from buffer_dasymetric.ring_builder import build_rings


class TestParallelDecision:
    def test_disabled(self):
        use, reason = should_use_parallel(6, {"enabled": False})
        assert not use
        assert "disabled" in reason

    def test_too_few_rings(self):
        use, _ = should_use_parallel(1, ParallelConfig(min_rings_for_parallel=2))
        assert not use

    def test_single_worker(self):
        use, reason = should_use_parallel(6, ParallelConfig(max_workers=1))
        assert not use
        assert reason == "max_workers=1"

    def test_enabled(self):
        use, _ = should_use_parallel(6, None)
        assert use

    def test_worker_count_bounded_by_rings(self):
        assert get_effective_worker_count(2, ParallelConfig(max_workers=8)) == 2

    def test_auto_worker_count(self, monkeypatch):
        monkeypatch.setattr("os.cpu_count", lambda: 16)
        config = ParallelConfig(max_workers=-1, optimal_workers_default=4)
        assert get_effective_worker_count(10, config) == 4

    def test_worker_count_at_least_one(self):
        assert get_effective_worker_count(0, ParallelConfig(max_workers=3)) == 1


class TestInterpolateAllRings:
    """Gather all ring reports, then fold by index."""

    @pytest.fixture
    def rings(self, provider, origin):
        return build_rings(origin, [100.0, 200.0, 300.0, 400.0], "meters", provider)

    @pytest.fixture
    def polygons(self, square):
        # One 20 m square centred in each ring along the x axis
        return [
            square(x - 10, -10, 20, 100 * (i + 1), feature_id=f"p{i}")
            for i, x in enumerate([50, 150, 250, 350])
        ]

    def test_empty_rings(self, provider, list_source):
        assert interpolate_all_rings([], list_source([]), provider) == []

    def test_reports_in_ring_order(self, rings, polygons, provider, list_source):
        class SlowInnerSource(list_source):
            def query(self, geometry, predicate="intersects"):
                # Inner rings have smaller bounds and sleep longest
                time.sleep(max(0.0, 0.2 - geometry.bounds[2] / 2000.0))
                return super().query(geometry, predicate)

        reports = interpolate_all_rings(
            rings, SlowInnerSource(polygons), provider, ParallelConfig(max_workers=4)
        )

        assert [r.index for r in reports] == [0, 1, 2, 3]
        assert [r.total_population for r in reports] == [100, 200, 300, 400]

    def test_sequential_matches_parallel(self, rings, polygons, provider, list_source):
        parallel = interpolate_all_rings(
            rings, list_source(polygons), provider, ParallelConfig(max_workers=4)
        )
        sequential = interpolate_all_rings(
            rings, list_source(polygons), provider, {"enabled": False}
        )

        assert parallel == sequential

    def test_failed_ring_isolated(self, rings, polygons, provider, failing_source):
        source = failing_source(polygons, fail_point=Point(150.0, 0.0))

        reports = interpolate_all_rings(rings, source, provider, ParallelConfig(max_workers=4))

        assert [r.status for r in reports] == [
            RingStatus.OK,
            RingStatus.QUERY_FAILED,
            RingStatus.OK,
            RingStatus.OK,
        ]
        assert [r.total_population for r in reports] == [100, 0, 300, 400]

    def test_processing_error_stays_on_its_ring(
        self, rings, polygons, provider, list_source, monkeypatch
    ):
        real_area = provider.area

        def area(polygon):
            # Only the clip of the second ring's square (centred at x=150)
            if 100 < polygon.centroid.x < 200:
                raise ProjError("transformation failed")
            return real_area(polygon)

        monkeypatch.setattr(provider, "area", area)
        source = list_source(polygons)

        reports = interpolate_all_rings(rings, source, provider, ParallelConfig(max_workers=4))

        assert [r.status for r in reports] == [
            RingStatus.OK,
            RingStatus.PROCESSING_FAILED,
            RingStatus.OK,
            RingStatus.OK,
        ]
        assert [r.total_population for r in reports] == [100, 0, 300, 400]
        assert "transformation failed" in reports[1].error
        # No sequential re-run of the healthy rings
        assert source.calls == 4

    def test_fallback_on_dispatch_error(self, rings, polygons, provider, list_source, monkeypatch):
        def broken_parallel(*args, **kwargs):
            raise RuntimeError("pool unavailable")

        monkeypatch.setattr(joblib, "Parallel", broken_parallel)
        reports = interpolate_all_rings(rings, list_source(polygons), provider, None)

        assert [r.total_population for r in reports] == [100, 200, 300, 400]

    def test_no_fallback_reraises(self, rings, polygons, provider, list_source, monkeypatch):
        def broken_parallel(*args, **kwargs):
            raise RuntimeError("pool unavailable")

        monkeypatch.setattr(joblib, "Parallel", broken_parallel)
        with pytest.raises(RuntimeError, match="pool unavailable"):
            interpolate_all_rings(
                rings,
                list_source(polygons),
                provider,
                ParallelConfig(fallback_on_error=False),
            )

    def test_missing_report_detected(self, rings, polygons, provider, list_source):
        partial = interpolate_all_rings(rings[:3], list_source(polygons), provider, None)

        with pytest.raises(RuntimeError, match=r"no report for ring\(s\) \[3\]"):
            _collect_results(rings, partial + [None])
