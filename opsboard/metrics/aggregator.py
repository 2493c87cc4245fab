"""
Row Aggregator

Folds normalized service jobs and delivery tickets into per-period summary
metrics (counts, revenue sums, gallons sums).

Key rules:
- Buckets are keyed by day, ISO-week start or month start (see periods.py)
- Only keys present in the input produce buckets, sorted ascending
- Unknown service statuses land in pipeline revenue, never dropped
- Void / canceled delivery tickets are omitted entirely
- Pure functions: no I/O, no shared state
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from opsboard.metrics.periods import bucket_key
from opsboard.metrics.records import (
    ZERO,
    DeliveryTicketRecord,
    ServiceJobRecord,
    to_decimal,
)
from opsboard.models.enums import Granularity, MetricSource, ServiceJobStatus, StatusBucket


# Policy table for service job statuses. The source system disagrees with
# itself on some of these (in_progress in particular), so keep every rule here.
SERVICE_STATUS_POLICY: Dict[str, StatusBucket] = {
    ServiceJobStatus.COMPLETED.value: StatusBucket.COMPLETED,
    ServiceJobStatus.SCHEDULED.value: StatusBucket.SCHEDULED,
    ServiceJobStatus.ASSIGNED.value: StatusBucket.SCHEDULED,
    ServiceJobStatus.CONFIRMED.value: StatusBucket.SCHEDULED,
    ServiceJobStatus.DEFERRED.value: StatusBucket.DEFERRED,
    ServiceJobStatus.UNSCHEDULED.value: StatusBucket.SCHEDULED,
    ServiceJobStatus.IN_PROGRESS.value: StatusBucket.SCHEDULED,
}

# Statuses that also feed scheduledRevenue
SCHEDULED_REVENUE_STATUSES = frozenset({
    ServiceJobStatus.SCHEDULED.value,
    ServiceJobStatus.ASSIGNED.value,
    ServiceJobStatus.CONFIRMED.value,
})


def classify_service_status(status: Optional[str]) -> StatusBucket:
    """Map a raw status (any case) to its billboard bucket."""
    return SERVICE_STATUS_POLICY.get((status or "").strip().lower(), StatusBucket.PIPELINE)


def _money(value: Decimal) -> float:
    return float(round(value, 2))


@dataclass
class ServiceMetrics:
    """Service job counts and revenue for one period"""
    completed: int = 0
    scheduled: int = 0
    deferred: int = 0
    total_jobs: int = 0
    completed_revenue: Decimal = ZERO
    pipeline_revenue: Decimal = ZERO
    scheduled_revenue: Decimal = ZERO
    total_amount: Decimal = ZERO

    def add(self, record: ServiceJobRecord) -> None:
        status = (record.status or "").strip().lower()
        bucket = classify_service_status(status)
        amount = record.amount

        self.total_jobs += 1
        self.total_amount += amount

        if bucket == StatusBucket.COMPLETED:
            self.completed += 1
            self.completed_revenue += amount
            return

        self.pipeline_revenue += amount
        if bucket == StatusBucket.SCHEDULED:
            self.scheduled += 1
        elif bucket == StatusBucket.DEFERRED:
            self.deferred += 1
        if status in SCHEDULED_REVENUE_STATUSES:
            self.scheduled_revenue += amount

    def merge(self, other: "ServiceMetrics") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    @classmethod
    def from_view_row(cls, row: Dict[str, Any]) -> "ServiceMetrics":
        """Build from a precomputed service_jobs_* view row."""
        completed_revenue = to_decimal(row.get("completed_revenue"))
        pipeline_revenue = to_decimal(row.get("pipeline_revenue"))
        return cls(
            completed=int(to_decimal(row.get("completed_jobs"))),
            scheduled=int(to_decimal(row.get("scheduled_jobs"))),
            deferred=int(to_decimal(row.get("deferred_jobs"))),
            total_jobs=int(to_decimal(row.get("total_jobs"))),
            completed_revenue=completed_revenue,
            pipeline_revenue=pipeline_revenue,
            scheduled_revenue=to_decimal(row.get("scheduled_revenue")),
            total_amount=to_decimal(row.get("total_amount")) or completed_revenue + pipeline_revenue
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "scheduled": self.scheduled,
            "deferred": self.deferred,
            "totalJobs": self.total_jobs,
            "completedRevenue": _money(self.completed_revenue),
            "pipelineRevenue": _money(self.pipeline_revenue),
            "scheduledRevenue": _money(self.scheduled_revenue),
            "totalAmount": _money(self.total_amount)
        }


@dataclass
class DeliveryMetrics:
    """Delivery ticket counts, gallons and revenue for one period"""
    total_tickets: int = 0
    total_gallons: Decimal = ZERO
    revenue: Decimal = ZERO

    def add(self, record: DeliveryTicketRecord) -> None:
        if record.is_excluded:
            return
        self.total_tickets += 1
        self.total_gallons += record.quantity_gallons
        self.revenue += record.amount

    def merge(self, other: "DeliveryMetrics") -> None:
        self.total_tickets += other.total_tickets
        self.total_gallons += other.total_gallons
        self.revenue += other.revenue

    @classmethod
    def from_view_row(cls, row: Dict[str, Any]) -> "DeliveryMetrics":
        """Build from a precomputed delivery_tickets_* view row."""
        return cls(
            total_tickets=int(to_decimal(row.get("total_tickets"))),
            total_gallons=to_decimal(row.get("total_gallons")),
            revenue=to_decimal(row.get("revenue"))
        )

    @property
    def avg_ticket_amount(self) -> Decimal:
        return self.revenue / self.total_tickets if self.total_tickets else ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTickets": self.total_tickets,
            "totalGallons": float(round(self.total_gallons, 3)),
            "revenue": _money(self.revenue),
            "avgTicketAmount": _money(self.avg_ticket_amount)
        }


Metrics = Union[ServiceMetrics, DeliveryMetrics]
Record = Union[ServiceJobRecord, DeliveryTicketRecord]


@dataclass
class PeriodBucket:
    """Metrics for one day / week / month"""
    key: str
    metrics: Metrics = field(default_factory=ServiceMetrics)

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, **self.metrics.to_dict()}


def metrics_class(source: MetricSource):
    return ServiceMetrics if MetricSource(source) == MetricSource.SERVICE else DeliveryMetrics


def _bucketize(records: Iterable[Record], granularity: Granularity, factory) -> List[PeriodBucket]:
    buckets: Dict[str, PeriodBucket] = {}
    for record in records:
        # Rows without a usable date cannot be keyed
        if record.record_date is None:
            continue
        if isinstance(record, DeliveryTicketRecord) and record.is_excluded:
            continue
        key = bucket_key(record.record_date, granularity)
        if key not in buckets:
            buckets[key] = PeriodBucket(key=key, metrics=factory())
        buckets[key].metrics.add(record)

    return [buckets[key] for key in sorted(buckets)]


def aggregate_service_jobs(
    records: Iterable[ServiceJobRecord],
    granularity: Granularity
) -> List[PeriodBucket]:
    """Bucket service jobs by period, ascending by key."""
    return _bucketize(records, Granularity(granularity), ServiceMetrics)


def aggregate_delivery_tickets(
    records: Iterable[DeliveryTicketRecord],
    granularity: Granularity
) -> List[PeriodBucket]:
    """Bucket delivery tickets by period, ascending by key. Void/canceled omitted."""
    return _bucketize(records, Granularity(granularity), DeliveryMetrics)


def aggregate(
    source: MetricSource,
    records: Iterable[Record],
    granularity: Granularity
) -> List[PeriodBucket]:
    if MetricSource(source) == MetricSource.SERVICE:
        return aggregate_service_jobs(records, granularity)
    return aggregate_delivery_tickets(records, granularity)


def summarize_service_jobs(records: Iterable[ServiceJobRecord]) -> ServiceMetrics:
    """Single summary over all records (no bucketing)."""
    summary = ServiceMetrics()
    for record in records:
        summary.add(record)
    return summary


def summarize_delivery_tickets(records: Iterable[DeliveryTicketRecord]) -> DeliveryMetrics:
    """Single summary over all records (no bucketing)."""
    summary = DeliveryMetrics()
    for record in records:
        summary.add(record)
    return summary


def total_buckets(source: MetricSource, buckets: Iterable[PeriodBucket]) -> Metrics:
    """Sum a bucket sequence back into one metrics object."""
    totals = metrics_class(source)()
    for bucket in buckets:
        totals.merge(bucket.metrics)
    return totals
