"""
Operations Status Codes and Enums

Standardized constants for service job and delivery ticket values.
Status strings match what the import pipeline writes to Supabase.
"""

from enum import Enum


class ServiceJobStatus(str, Enum):
    """Normalized service job status"""
    COMPLETED = "completed"
    SCHEDULED = "scheduled"
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    DEFERRED = "deferred"
    UNSCHEDULED = "unscheduled"
    IN_PROGRESS = "in_progress"
    CANCELED = "canceled"


class StatusBucket(str, Enum):
    """Where a service job is counted on the billboard"""
    COMPLETED = "completed"
    SCHEDULED = "scheduled"
    DEFERRED = "deferred"
    PIPELINE = "pipeline"  # Revenue only, not counted


class DeliveryTicketStatus(str, Enum):
    """Delivery ticket status"""
    NORMAL = "normal"
    VOID = "void"
    CANCELED = "canceled"

    @classmethod
    def from_name(cls, name: str) -> "DeliveryTicketStatus":
        """Detect ticket status from a free-form status string"""
        name_lower = (name or "").strip().lower()
        if name_lower.startswith("void"):
            return cls.VOID
        elif name_lower.startswith("cancel"):
            return cls.CANCELED
        return cls.NORMAL


class Granularity(str, Enum):
    """Bucket granularity"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def view_suffix(self) -> str:
        suffixes = {
            "day": "daily",
            "week": "weekly",
            "month": "monthly"
        }
        return suffixes[self.value]

    @property
    def date_column(self) -> str:
        """Date column used by the aggregate views"""
        columns = {
            "day": "day",
            "week": "week_start",
            "month": "month_start"
        }
        return columns[self.value]


class MetricSource(str, Enum):
    """Transactional source backing a metric"""
    SERVICE = "service"
    DELIVERY = "delivery"

    @property
    def view_prefix(self) -> str:
        prefixes = {
            "service": "service_jobs",
            "delivery": "delivery_tickets"
        }
        return prefixes[self.value]


class CompareMode(str, Enum):
    """Timeseries comparison modes"""
    PREVIOUS = "previous"
    CUSTOM = "custom"


class RangeType(str, Enum):
    """Predefined date ranges"""
    DAY = "day"
    WEEK = "week"  # ISO week, Monday start
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"
