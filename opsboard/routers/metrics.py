"""
Metrics Endpoints

GET /timeseries - Bucketed service/delivery metrics for charts
GET /range      - Resolve a range preset to dates (plus its previous range)

Timeseries reads the {source}_{granularity} views and transparently falls
back to base-table aggregation when a view is missing; `debug.usedFallback`
tells the charts page to show its "slow mode" notice.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from opsboard.dependencies import get_timeseries_composer
from opsboard.exceptions import UnexpectedQueryError
from opsboard.metrics.periods import previous_range, resolve_range
from opsboard.metrics.timeseries import TimeseriesComposer
from opsboard.models.enums import CompareMode, Granularity, MetricSource, RangeType
from opsboard.models.schemas import TimeseriesResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/timeseries", response_model=TimeseriesResponse)
async def get_metrics_timeseries(
    source: MetricSource = Query(..., description="service or delivery"),
    start: date = Query(..., description="Start date (YYYY-MM-DD)"),
    end: date = Query(..., description="End date (YYYY-MM-DD)"),
    granularity: Granularity = Query(default=Granularity.DAY, description="day, week or month"),
    compare: Optional[CompareMode] = Query(default=None, description="previous or custom"),
    compare_start: Optional[date] = Query(default=None, description="Custom comparison start"),
    compare_end: Optional[date] = Query(default=None, description="Custom comparison end"),
    composer: TimeseriesComposer = Depends(get_timeseries_composer)
):
    """
    Time series for one source at the requested granularity.

    Returns:
    - primary: buckets keyed by day / week start / month start, ascending
    - comparison: same shape for the comparison window, or null
    - totals: primary buckets summed
    - debug: view used, fallback flag, reason and remediation hint
    """
    try:
        return await composer.compose(
            source=source,
            granularity=granularity,
            start=start,
            end=end,
            compare=compare,
            compare_start=compare_start,
            compare_end=compare_end
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnexpectedQueryError as e:
        logger.error(f"[Metrics] Timeseries query failed: {e}")
        raise HTTPException(status_code=502, detail=f"Metrics query failed: {e}")


@router.get("/range")
def get_date_range(
    range_type: RangeType = Query(default=RangeType.WEEK, description="day, week, month, year, custom"),
    start: Optional[date] = Query(default=None, description="Custom start (YYYY-MM-DD)"),
    end: Optional[date] = Query(default=None, description="Custom end (YYYY-MM-DD)")
):
    """Resolve a range preset to inclusive dates and the matching previous range."""
    try:
        range_start, range_end = resolve_range(range_type, custom_start=start, custom_end=end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    prev_start, prev_end = previous_range(range_start, range_end)
    return {
        "range_type": range_type,
        "start": range_start.isoformat(),
        "end": range_end.isoformat(),
        "previous": {"start": prev_start.isoformat(), "end": prev_end.isoformat()}
    }
