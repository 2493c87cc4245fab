"""
Billboard Summary Composer

This week vs last week comparison for the ticker / TV billboard.

- Weeks run Monday-Sunday (see periods.week_windows)
- Four independent reads (service/delivery x this/last week) run concurrently
- Total revenue = completed service revenue + delivery revenue
- Store unconfigured or unreachable -> all-zero payload, never None
- Any other query error propagates to the caller
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from opsboard import config
from opsboard.exceptions import DataSourceUnavailable
from opsboard.metrics.aggregator import (
    DeliveryMetrics,
    ServiceMetrics,
    summarize_delivery_tickets,
    summarize_service_jobs,
)
from opsboard.metrics.periods import week_windows
from opsboard.metrics.records import normalize_delivery_rows, normalize_service_rows
from opsboard.metrics.resolver import default_base_tables
from opsboard.models.enums import MetricSource
from opsboard.models.schemas import (
    BillboardSummary,
    DeliveryTicketsSummary,
    ServiceTrackingSummary,
    WeekCompare,
)

logger = logging.getLogger(__name__)


def percent_change(this_week: float, last_week: float) -> float:
    """
    Week-over-week change in percent, rounded to one decimal.

    A zero baseline yields 100 when there is new activity, else 0.
    """
    if last_week == 0:
        return 100.0 if this_week > 0 else 0.0
    return round((this_week - last_week) / last_week * 100, 1)


def default_clock() -> datetime:
    tz_name = config.BILLBOARD_TIMEZONE
    return datetime.now(ZoneInfo(tz_name) if tz_name else timezone.utc)


def zero_summary(now: Optional[datetime] = None) -> BillboardSummary:
    """Valid-but-empty payload for degraded mode."""
    now = now or datetime.now(timezone.utc)
    return BillboardSummary(last_updated=now.isoformat())


def _money(value: Decimal) -> float:
    return float(round(value, 2))


class BillboardComposer:
    """Builds the billboard payload from base-table rows."""

    def __init__(
        self,
        row_source,
        base_tables: Optional[Dict[MetricSource, Tuple[str, str]]] = None,
        clock: Callable[[], datetime] = default_clock
    ):
        self.rows = row_source
        self.base_tables = base_tables or default_base_tables()
        self.clock = clock

    async def _fetch_service(self, start: date, end: date) -> ServiceMetrics:
        table, date_column = self.base_tables[MetricSource.SERVICE]
        rows = await asyncio.to_thread(self.rows.select_range, table, date_column, start, end)
        return summarize_service_jobs(normalize_service_rows(rows))

    async def _fetch_delivery(self, start: date, end: date) -> DeliveryMetrics:
        table, date_column = self.base_tables[MetricSource.DELIVERY]
        rows = await asyncio.to_thread(self.rows.select_range, table, date_column, start, end)
        return summarize_delivery_tickets(normalize_delivery_rows(rows))

    async def build(self, now: Optional[datetime] = None) -> BillboardSummary:
        """
        Compose the summary.

        Raises:
            DataSourceUnavailable: store unreachable or not configured
            UnexpectedQueryError: permissions, timeouts, bad queries
        """
        now = now or self.clock()
        (this_start, this_end), (last_start, last_end) = week_windows(now)

        this_service, last_service, this_delivery, last_delivery = await asyncio.gather(
            self._fetch_service(this_start, this_end),
            self._fetch_service(last_start, last_end),
            self._fetch_delivery(this_start, this_end),
            self._fetch_delivery(last_start, last_end),
        )

        this_week_total = this_service.completed_revenue + this_delivery.revenue
        last_week_total = last_service.completed_revenue + last_delivery.revenue

        return BillboardSummary(
            service_tracking=ServiceTrackingSummary(
                completed=this_service.completed,
                scheduled=this_service.scheduled,
                deferred=this_service.deferred,
                completed_revenue=_money(this_service.completed_revenue),
                pipeline_revenue=_money(this_service.pipeline_revenue),
                scheduled_revenue=_money(this_service.scheduled_revenue)
            ),
            delivery_tickets=DeliveryTicketsSummary(
                total_tickets=this_delivery.total_tickets,
                total_gallons=float(this_delivery.total_gallons),
                revenue=_money(this_delivery.revenue)
            ),
            week_compare=WeekCompare(
                this_week_total_revenue=_money(this_week_total),
                last_week_total_revenue=_money(last_week_total),
                percent_change=percent_change(float(this_week_total), float(last_week_total))
            ),
            last_updated=datetime.now(timezone.utc).isoformat()
        )

    async def compose(self, now: Optional[datetime] = None) -> Tuple[BillboardSummary, bool]:
        """
        Compose the summary, degrading to zeros when the store is unavailable.

        Returns:
            Tuple of (summary, degraded)
        """
        try:
            return await self.build(now), False
        except DataSourceUnavailable as e:
            logger.warning(f"[Billboard] Data source unavailable, serving zeros: {e}")
            return zero_summary(), True
