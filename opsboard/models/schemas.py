"""
Pydantic Models for Request/Response Validation

Response keys are camelCase to match what the billboard and charts pages
read; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class CamelModel(BaseModel):
    """Serializes by alias, accepts either name"""
    model_config = ConfigDict(populate_by_name=True)


# Billboard Models
class ServiceTrackingSummary(CamelModel):
    """Service job counts and revenue for the current week"""
    completed: int = 0
    scheduled: int = 0
    deferred: int = 0
    completed_revenue: float = Field(default=0.0, alias="completedRevenue")
    pipeline_revenue: float = Field(default=0.0, alias="pipelineRevenue")
    scheduled_revenue: float = Field(default=0.0, alias="scheduledRevenue")


class DeliveryTicketsSummary(CamelModel):
    """Delivery totals for the current week (void/canceled excluded)"""
    total_tickets: int = Field(default=0, alias="totalTickets")
    total_gallons: float = Field(default=0.0, alias="totalGallons")
    revenue: float = 0.0


class WeekCompare(CamelModel):
    """This week vs last week revenue"""
    this_week_total_revenue: float = Field(default=0.0, alias="thisWeekTotalRevenue")
    last_week_total_revenue: float = Field(default=0.0, alias="lastWeekTotalRevenue")
    percent_change: float = Field(default=0.0, alias="percentChange", description="Rounded to 1 decimal")


class BillboardSummary(CamelModel):
    """Complete billboard payload"""
    service_tracking: ServiceTrackingSummary = Field(default_factory=ServiceTrackingSummary, alias="serviceTracking")
    delivery_tickets: DeliveryTicketsSummary = Field(default_factory=DeliveryTicketsSummary, alias="deliveryTickets")
    week_compare: WeekCompare = Field(default_factory=WeekCompare, alias="weekCompare")
    last_updated: str = Field(..., alias="lastUpdated", description="ISO 8601 timestamp")


class BillboardDebug(BaseModel):
    """Connectivity diagnostics; never includes secret values"""
    ok: bool
    env: Dict[str, bool]
    tables: Dict[str, Optional[bool]]
    errors: List[str] = []


# Timeseries Models
class TimeseriesResponse(BaseModel):
    """Bucketed metrics with optional comparison window"""
    source: str
    granularity: str
    period: Dict[str, str]
    primary: List[Dict[str, Any]] = []
    comparison: Optional[List[Dict[str, Any]]] = None
    comparison_period: Optional[Dict[str, str]] = Field(default=None, alias="comparisonPeriod")
    totals: Dict[str, Any] = {}
    debug: Dict[str, Any] = {}

    model_config = ConfigDict(populate_by_name=True)


# Service Job Models
class MarkCustomerCompletedRequest(BaseModel):
    """Mark every open job for a customer as completed"""
    customer: str = Field(..., min_length=1, description="Customer name as stored on the jobs")


class MarkCustomerCompletedResponse(CamelModel):
    success: bool
    updated_count: int = Field(..., alias="updatedCount")
    customer: str


class JobCompletedResponse(BaseModel):
    success: bool
    job: Dict[str, Any]
