"""Tests for the billboard summary composer."""

import asyncio
from datetime import datetime, timezone

import pytest

from opsboard.exceptions import DataSourceUnavailable, UnexpectedQueryError
from opsboard.metrics.billboard import BillboardComposer, percent_change, zero_summary
from tests.fakes import FakeRowSource


NOW = datetime(2025, 10, 22, 12, 0, tzinfo=timezone.utc)

SERVICE_ROWS = [
    # this week (2025-10-20 .. 2025-10-26)
    {"status": "completed", "job_amount": 500, "job_date": "2025-10-20"},
    {"status": "scheduled", "job_amount": 200, "job_date": "2025-10-21"},
    {"status": "deferred", "job_amount": 50, "job_date": "2025-10-26"},
    # last week
    {"status": "completed", "job_amount": 300, "job_date": "2025-10-14"},
    {"status": "Completed", "job_amount": "bad", "job_date": "2025-10-19"},
    # two weeks ago, ignored
    {"status": "completed", "job_amount": 1000, "job_date": "2025-10-12"},
]

DELIVERY_ROWS = [
    {"gallons_delivered": 100, "amount": 250, "status": "normal", "date": "2025-10-20"},
    {"qty": 50, "amount": 100, "status": "void", "date": "2025-10-21"},
    {"qty": 80, "amount": 200, "date": "2025-10-13"},
]


def _composer(rows):
    return BillboardComposer(rows, clock=lambda: NOW)


@pytest.mark.parametrize("this_week,last_week,expected", [
    (100, 0, 100.0),
    (0, 0, 0.0),
    (150, 100, 50.0),
    (0, 100, -100.0),
    (1, 3, -66.7),
])
def test_percent_change(this_week, last_week, expected):
    assert percent_change(this_week, last_week) == expected


def test_build_summary_this_week_vs_last_week():
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS, "delivery_tickets": DELIVERY_ROWS})
    summary = asyncio.run(_composer(rows).build())

    assert summary.service_tracking.completed == 1
    assert summary.service_tracking.scheduled == 1
    assert summary.service_tracking.deferred == 1
    assert summary.service_tracking.completed_revenue == 500
    assert summary.service_tracking.pipeline_revenue == 250
    assert summary.service_tracking.scheduled_revenue == 200

    assert summary.delivery_tickets.total_tickets == 1
    assert summary.delivery_tickets.total_gallons == 100
    assert summary.delivery_tickets.revenue == 250

    assert summary.week_compare.this_week_total_revenue == 750
    assert summary.week_compare.last_week_total_revenue == 500
    assert summary.week_compare.percent_change == 50.0


def test_four_reads_cover_both_weeks():
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS, "delivery_tickets": DELIVERY_ROWS})
    asyncio.run(_composer(rows).build())

    windows = sorted((call[1], call[2].isoformat(), call[3].isoformat()) for call in rows.calls)
    assert windows == [
        ("delivery_tickets", "2025-10-13", "2025-10-19"),
        ("delivery_tickets", "2025-10-20", "2025-10-26"),
        ("service_jobs", "2025-10-13", "2025-10-19"),
        ("service_jobs", "2025-10-20", "2025-10-26"),
    ]


def test_summary_payload_uses_camel_case_keys():
    rows = FakeRowSource({"service_jobs": [], "delivery_tickets": []})
    payload = asyncio.run(_composer(rows).build()).model_dump(by_alias=True)

    assert set(payload) == {"serviceTracking", "deliveryTickets", "weekCompare", "lastUpdated"}
    assert payload["weekCompare"] == {"thisWeekTotalRevenue": 0, "lastWeekTotalRevenue": 0, "percentChange": 0}


def test_unavailable_store_returns_zero_payload():
    rows = FakeRowSource(error=DataSourceUnavailable("SUPABASE_URL not set"))
    summary, degraded = asyncio.run(_composer(rows).compose())

    assert degraded is True
    assert summary is not None
    expected = zero_summary().model_dump(exclude={"last_updated"})
    assert summary.model_dump(exclude={"last_updated"}) == expected
    assert summary.last_updated


def test_permission_error_propagates():
    denied = UnexpectedQueryError("permission denied for table service_jobs", code="42501")
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS, "delivery_tickets": DELIVERY_ROWS}, error=denied)

    with pytest.raises(UnexpectedQueryError):
        asyncio.run(_composer(rows).compose())


def test_compose_not_degraded_on_success():
    rows = FakeRowSource({"service_jobs": SERVICE_ROWS, "delivery_tickets": DELIVERY_ROWS})
    summary, degraded = asyncio.run(_composer(rows).compose())
    assert degraded is False
    assert summary.week_compare.percent_change == 50.0
