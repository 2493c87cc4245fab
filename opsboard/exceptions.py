"""
Metrics Exceptions

Error taxonomy for the aggregation core.

- MissingAggregateView: expected on first run, triggers base-table fallback
- DataSourceUnavailable: store unreachable or not configured, callers degrade to zeros
- UnexpectedQueryError: permissions, timeouts, bad queries; always propagated
"""

from typing import Optional


class MetricsError(Exception):
    """Base class for all metrics errors"""


class MissingAggregateView(MetricsError):
    """The requested view/relation does not exist in the database"""

    def __init__(self, relation: str, message: Optional[str] = None):
        self.relation = relation
        super().__init__(message or f"Relation '{relation}' does not exist")


class DataSourceUnavailable(MetricsError):
    """The row source is unreachable or not configured"""


class UnexpectedQueryError(MetricsError):
    """Any query failure that is not a missing relation"""

    def __init__(self, message: str, code: Optional[str] = None, relation: Optional[str] = None):
        self.code = code
        self.relation = relation
        super().__init__(message)
