"""Tests for the view-with-fallback resolver."""

from datetime import date

import pytest

from opsboard.exceptions import DataSourceUnavailable, UnexpectedQueryError
from opsboard.metrics.aggregator import aggregate_delivery_tickets, aggregate_service_jobs
from opsboard.metrics.records import normalize_delivery_rows, normalize_service_rows
from opsboard.metrics.resolver import ViewResolver, view_name
from opsboard.models.enums import Granularity, MetricSource
from tests.fakes import FakeRowSource


SERVICE_ROWS = [
    {"id": 1, "status": "completed", "job_amount": 500, "job_date": "2025-10-06"},
    {"id": 2, "status": "scheduled", "job_amount": 200, "job_date": "2025-10-08"},
    {"id": 3, "status": "deferred", "job_amount": 50, "job_date": "2025-10-15"},
    {"id": 4, "status": "completed", "job_amount": 120, "job_date": "2025-10-23"},
    {"id": 5, "status": "completed", "job_amount": 999, "job_date": "2025-11-03"},
]

DELIVERY_ROWS = [
    {"id": 1, "gallons_delivered": 100, "amount": 250, "status": "normal", "date": "2025-10-06"},
    {"id": 2, "qty": 50, "amount": 100, "status": "void", "date": "2025-10-07"},
    {"id": 3, "qty": 80, "amount": 210, "date": "2025-10-21"},
]


def test_view_name():
    assert view_name(MetricSource.SERVICE, Granularity.DAY) == "service_jobs_daily"
    assert view_name("delivery", "week") == "delivery_tickets_weekly"
    assert view_name(MetricSource.DELIVERY, Granularity.MONTH) == "delivery_tickets_monthly"


def test_reads_existing_view():
    rows = FakeRowSource({
        "service_jobs_weekly": [
            {"week_start": "2025-10-13T00:00:00+00:00", "completed_jobs": 1, "total_jobs": 1, "completed_revenue": 80},
            {"week_start": "2025-10-06T00:00:00+00:00", "completed_jobs": 2, "total_jobs": 3,
             "completed_revenue": "500", "pipeline_revenue": "200", "scheduled_jobs": 1},
        ]
    })
    series = ViewResolver(rows).resolve(MetricSource.SERVICE, Granularity.WEEK, date(2025, 10, 6), date(2025, 10, 19))

    assert not series.used_fallback
    assert series.view == "service_jobs_weekly"
    assert [b.key for b in series.buckets] == ["2025-10-06", "2025-10-13"]
    assert series.buckets[0].to_dict()["completedRevenue"] == 500
    assert series.debug()["usedView"] is True


def test_missing_view_falls_back_to_base_table():
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS})
    start, end = date(2025, 10, 6), date(2025, 10, 20)

    series = ViewResolver(rows).resolve(MetricSource.SERVICE, Granularity.WEEK, start, end)

    # Week of 10-20 is read through Sunday 10-26, so the 10-23 job counts
    direct = aggregate_service_jobs(normalize_service_rows(SERVICE_ROWS[:4]), Granularity.WEEK)
    assert [b.to_dict() for b in series.buckets] == [b.to_dict() for b in direct]
    assert series.used_fallback
    assert "service_jobs_weekly" in series.reason
    assert "001_create_metrics_views.sql" in series.hint
    assert ("select_range", "service_jobs", start, date(2025, 10, 26)) in rows.calls


def test_delivery_fallback_matches_direct_aggregation():
    rows = FakeRowSource({"delivery_tickets": DELIVERY_ROWS})
    series = ViewResolver(rows).resolve("delivery", "day", date(2025, 10, 1), date(2025, 10, 31))

    direct = aggregate_delivery_tickets(normalize_delivery_rows(DELIVERY_ROWS), Granularity.DAY)
    assert [b.to_dict() for b in series.buckets] == [b.to_dict() for b in direct]
    assert [b.key for b in series.buckets] == ["2025-10-06", "2025-10-21"]
    assert series.debug()["usedFallback"] is True


def test_permission_error_is_not_treated_as_missing_view():
    denied = UnexpectedQueryError("permission denied for view service_jobs_daily", code="42501")
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS}, error=denied)

    with pytest.raises(UnexpectedQueryError) as exc_info:
        ViewResolver(rows).resolve(MetricSource.SERVICE, Granularity.DAY, date(2025, 10, 1), date(2025, 10, 31))
    assert exc_info.value.code == "42501"


def test_unavailable_store_propagates():
    rows = FakeRowSource(error=DataSourceUnavailable("not configured"))
    with pytest.raises(DataSourceUnavailable):
        ViewResolver(rows).resolve(MetricSource.DELIVERY, Granularity.MONTH, date(2025, 1, 1), date(2025, 12, 31))
