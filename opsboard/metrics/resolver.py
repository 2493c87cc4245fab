"""
View-with-Fallback Resolver

Reads precomputed rows from the `{source}_{granularity}` views. When a view
has not been created yet (the normal first-run state), recomputes the same
bucket shape from the base table with the row aggregator and flags the
result as degraded.

Only a missing relation triggers the fallback. Permission errors, timeouts
and malformed queries propagate unchanged.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from opsboard import config
from opsboard.exceptions import MissingAggregateView
from opsboard.metrics.aggregator import PeriodBucket, aggregate, metrics_class
from opsboard.metrics.periods import period_end, to_calendar_date
from opsboard.metrics.records import normalize_delivery_rows, normalize_service_rows
from opsboard.models.enums import Granularity, MetricSource

logger = logging.getLogger(__name__)


def view_name(source: MetricSource, granularity: Granularity) -> str:
    """e.g. service_jobs_daily, delivery_tickets_weekly"""
    return f"{MetricSource(source).view_prefix}_{Granularity(granularity).view_suffix}"


def default_base_tables() -> Dict[MetricSource, Tuple[str, str]]:
    return {
        MetricSource.SERVICE: (config.SERVICE_JOBS_TABLE, config.SERVICE_JOBS_DATE_COLUMN),
        MetricSource.DELIVERY: (config.DELIVERY_TICKETS_TABLE, config.DELIVERY_TICKETS_DATE_COLUMN),
    }


@dataclass
class ResolvedSeries:
    """Buckets plus how they were obtained"""
    source: MetricSource
    granularity: Granularity
    view: str
    buckets: List[PeriodBucket] = field(default_factory=list)
    used_fallback: bool = False
    reason: Optional[str] = None
    hint: Optional[str] = None

    def debug(self) -> Dict[str, Any]:
        return {
            "view": self.view,
            "usedView": not self.used_fallback,
            "usedFallback": self.used_fallback,
            "reason": self.reason,
            "hint": self.hint
        }


class ViewResolver:
    """Resolves bucketed metrics from views, falling back to base tables."""

    def __init__(self, row_source, base_tables: Optional[Dict[MetricSource, Tuple[str, str]]] = None):
        self.rows = row_source
        self.base_tables = base_tables or default_base_tables()

    def resolve(
        self,
        source: MetricSource,
        granularity: Granularity,
        start: date,
        end: date
    ) -> ResolvedSeries:
        """
        Bucketed metrics for buckets keyed within [start, end].

        Raises:
            UnexpectedQueryError: any failure other than a missing view
            DataSourceUnavailable: store not configured / unreachable
        """
        source = MetricSource(source)
        granularity = Granularity(granularity)
        view = view_name(source, granularity)

        try:
            rows = self.rows.select_view(view, granularity.date_column, start, end)
        except MissingAggregateView as e:
            logger.warning(f"[Resolver] View {view} missing, aggregating base table instead: {e}")
            return self._fallback(source, granularity, view, start, end, reason=str(e))

        return ResolvedSeries(
            source=source,
            granularity=granularity,
            view=view,
            buckets=self._buckets_from_view(rows, source, granularity)
        )

    def _buckets_from_view(
        self,
        rows: List[Dict[str, Any]],
        source: MetricSource,
        granularity: Granularity
    ) -> List[PeriodBucket]:
        factory = metrics_class(source)
        buckets = []
        for row in rows:
            # date_trunc() returns a timestamp; keys are plain dates
            key_date = to_calendar_date(row.get(granularity.date_column))
            if key_date is None:
                continue
            buckets.append(PeriodBucket(key=key_date.isoformat(), metrics=factory.from_view_row(row)))
        buckets.sort(key=lambda b: b.key)
        return buckets

    def _fallback(
        self,
        source: MetricSource,
        granularity: Granularity,
        view: str,
        start: date,
        end: date,
        reason: str
    ) -> ResolvedSeries:
        table, date_column = self.base_tables[source]

        # A view bucket keyed inside the range covers its whole period, so read to
        # the end of the last bucket and keep only keys inside [start, end].
        raw_rows = self.rows.select_range(table, date_column, start, period_end(end, granularity))

        if source == MetricSource.SERVICE:
            records = normalize_service_rows(raw_rows)
        else:
            records = normalize_delivery_rows(raw_rows)

        start_key, end_key = start.isoformat(), end.isoformat()
        buckets = [
            b for b in aggregate(source, records, granularity)
            if start_key <= b.key <= end_key
        ]

        return ResolvedSeries(
            source=source,
            granularity=granularity,
            view=view,
            buckets=buckets,
            used_fallback=True,
            reason=reason,
            hint=(
                f"Apply {config.METRICS_VIEWS_MIGRATION} to create {view}; "
                f"until then metrics are computed from {table} on every request (slower)."
            )
        )
