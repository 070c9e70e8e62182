"""
Unit tests for the summary aggregator and report models.

Tests:
1. Ring labels
2. Fold by ring index regardless of completion order
3. Grand and cumulative totals
4. Failed and dropped rings flag the report as partial
5. Dict and DataFrame views

Run with: python -m pytest buffer_dasymetric/_tests/test_summary.py -v
"""

import pytest

from buffer_dasymetric.models.data_models import RingReport, RingStatus
from buffer_dasymetric.summary import aggregate, format_ring_label


def _report(index, inner, outer, population, status=RingStatus.OK, error=None):
    return RingReport(
        index=index,
        inner_distance=inner,
        outer_distance=outer,
        unit="miles",
        label=format_ring_label(inner, outer, "miles"),
        total_population=population,
        status=status,
        error=error,
    )


@pytest.fixture
def reports():
    return [
        _report(0, 0.0, 0.25, 120),
        _report(1, 0.25, 0.5, 340),
        _report(2, 0.5, 1.0, 1000),
    ]


class TestLabels:
    @pytest.mark.parametrize(
        "inner, outer, unit, expected",
        [
            (0, 0.25, "miles", "0-0.25 miles"),
            (0.25, 0.5, "miles", "0.25-0.5 miles"),
            (1.0, 2.0, "miles", "1-2 miles"),
            (0.0, 500.0, "meters", "0-500 meters"),
        ],
    )
    def test_format_ring_label(self, inner, outer, unit, expected):
        assert format_ring_label(inner, outer, unit) == expected


class TestAggregate:
    """Folding RingReports into a SiteReport."""

    def test_order_follows_ring_index(self, reports):
        shuffled = [reports[2], reports[0], reports[1]]

        site = aggregate(shuffled, "HQ", 38.9, -77.0, "miles")

        assert [r.index for r in site.rings] == [0, 1, 2]
        assert [r.label for r in site.rings] == [
            "0-0.25 miles",
            "0.25-0.5 miles",
            "0.5-1 miles",
        ]

    def test_grand_and_cumulative_totals(self, reports):
        site = aggregate(reports, "HQ", 38.9, -77.0, "miles")

        assert site.grand_total_population == 1460
        assert site.cumulative_totals == [120, 460, 1460]
        assert site.is_complete

    def test_duplicate_index_rejected(self, reports):
        with pytest.raises(ValueError, match="Duplicate ring index 1"):
            aggregate(reports + [_report(1, 0.25, 0.5, 1)], "HQ", 0.0, 0.0, "miles")

    def test_empty_reports(self):
        site = aggregate([], "", 0.0, 0.0, "miles")

        assert site.rings == ()
        assert site.grand_total_population == 0
        assert site.cumulative_totals == []

    def test_failed_ring_marks_partial(self, reports):
        failed = _report(1, 0.25, 0.5, 0, RingStatus.QUERY_FAILED, "timeout")

        site = aggregate([reports[0], failed, reports[2]], "HQ", 0.0, 0.0, "miles")

        assert site.grand_total_population == 1120
        assert [r.index for r in site.failed_rings] == [1]
        assert not site.is_complete

    def test_dropped_ring_marks_partial(self, reports):
        site = aggregate(reports, "HQ", 0.0, 0.0, "miles", dropped_rings=[(1, 2)])

        assert site.dropped_rings == ((1.0, 2.0),)
        assert not site.is_complete


class TestReportViews:
    """as_dict and to_frame."""

    def test_as_dict(self, reports):
        failed = _report(3, 1.0, 2.0, 0, RingStatus.CANCELLED, "cancelled before query")
        site = aggregate(reports + [failed], "HQ", 38.9, -77.0, "miles")

        d = site.as_dict()

        assert d["site_name"] == "HQ"
        assert d["grand_total_population"] == 1460
        assert d["is_complete"] is False
        assert d["rings"][3]["status"] == "cancelled"
        assert d["rings"][3]["error"] == "cancelled before query"
        assert "error" not in d["rings"][0]
        assert "records" not in d["rings"][0]

    def test_to_frame(self, reports):
        df = aggregate(reports, "HQ", 38.9, -77.0, "miles").to_frame()

        assert list(df["ring"]) == ["0-0.25 miles", "0.25-0.5 miles", "0.5-1 miles"]
        assert list(df["population"]) == [120, 340, 1000]
        assert list(df["cumulative_population"]) == [120, 460, 1460]
        assert set(df["site_name"]) == {"HQ"}

    def test_to_frame_empty_has_columns(self):
        df = aggregate([], "", 0.0, 0.0, "miles").to_frame()

        assert df.empty
        assert "cumulative_population" in df.columns
