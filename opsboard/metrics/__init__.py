"""
Metrics Aggregation Core

Week boundaries, row aggregation, view-with-fallback resolution and the
billboard / timeseries composers built on them.
"""

from .periods import week_start, week_end, truncate, bucket_key, week_windows, previous_range
from .records import ServiceJobRecord, DeliveryTicketRecord
from .aggregator import (
    PeriodBucket,
    ServiceMetrics,
    DeliveryMetrics,
    classify_service_status,
    aggregate_service_jobs,
    aggregate_delivery_tickets,
)
from .resolver import ViewResolver, ResolvedSeries, view_name
from .billboard import BillboardComposer, percent_change, zero_summary
from .timeseries import TimeseriesComposer
from .cache import TTLCache

__all__ = [
    "week_start",
    "week_end",
    "truncate",
    "bucket_key",
    "week_windows",
    "previous_range",
    "ServiceJobRecord",
    "DeliveryTicketRecord",
    "PeriodBucket",
    "ServiceMetrics",
    "DeliveryMetrics",
    "classify_service_status",
    "aggregate_service_jobs",
    "aggregate_delivery_tickets",
    "ViewResolver",
    "ResolvedSeries",
    "view_name",
    "BillboardComposer",
    "percent_change",
    "zero_summary",
    "TimeseriesComposer",
    "TTLCache",
]
