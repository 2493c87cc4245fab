"""
Timeseries Composer

Bucketed service / delivery metrics for the charts page, with an optional
comparison window ("previous" same-length window or a custom range).
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional, Tuple

from opsboard.exceptions import DataSourceUnavailable, UnexpectedQueryError
from opsboard.metrics.aggregator import total_buckets
from opsboard.metrics.periods import previous_range
from opsboard.metrics.resolver import ResolvedSeries, ViewResolver
from opsboard.models.enums import CompareMode, Granularity, MetricSource
from opsboard.models.schemas import TimeseriesResponse

logger = logging.getLogger(__name__)


def comparison_window(
    start: date,
    end: date,
    compare: Optional[CompareMode],
    compare_start: Optional[date] = None,
    compare_end: Optional[date] = None
) -> Optional[Tuple[date, date]]:
    """
    Resolve the comparison window for a compare mode.

    Raises:
        ValueError: custom mode without both bounds, or bounds reversed
    """
    if compare is None:
        return None
    if CompareMode(compare) == CompareMode.PREVIOUS:
        return previous_range(start, end)
    if not compare_start or not compare_end:
        raise ValueError("compare_start and compare_end required for custom comparison")
    if compare_start > compare_end:
        raise ValueError("compare_start is after compare_end")
    return compare_start, compare_end


class TimeseriesComposer:
    """Primary + comparison series via the view-with-fallback resolver."""

    def __init__(self, resolver: ViewResolver):
        self.resolver = resolver

    async def _resolve(self, source, granularity, start, end) -> ResolvedSeries:
        return await asyncio.to_thread(self.resolver.resolve, source, granularity, start, end)

    async def _resolve_comparison(self, source, granularity, window) -> Dict[str, Any]:
        # Comparison is optional context; a failure there must not blank the chart
        try:
            return {"series": await self._resolve(source, granularity, *window), "error": None}
        except UnexpectedQueryError as e:
            logger.warning(f"[Timeseries] Comparison query failed: {e}")
            return {"series": None, "error": str(e)}

    async def compose(
        self,
        source: MetricSource,
        granularity: Granularity,
        start: date,
        end: date,
        compare: Optional[CompareMode] = None,
        compare_start: Optional[date] = None,
        compare_end: Optional[date] = None
    ) -> TimeseriesResponse:
        """
        Raises:
            ValueError: invalid range or compare parameters
            UnexpectedQueryError: primary series failed for a reason other than a missing view
        """
        source = MetricSource(source)
        granularity = Granularity(granularity)
        if start > end:
            raise ValueError(f"start ({start}) is after end ({end})")
        window = comparison_window(start, end, compare, compare_start, compare_end)

        period = {"start": start.isoformat(), "end": end.isoformat()}
        comparison_period = {"start": window[0].isoformat(), "end": window[1].isoformat()} if window else None

        try:
            if window:
                primary, comparison = await asyncio.gather(
                    self._resolve(source, granularity, start, end),
                    self._resolve_comparison(source, granularity, window),
                )
            else:
                primary, comparison = await self._resolve(source, granularity, start, end), None
        except DataSourceUnavailable as e:
            logger.warning(f"[Timeseries] Data source unavailable, returning empty series: {e}")
            return TimeseriesResponse(
                source=source.value,
                granularity=granularity.value,
                period=period,
                comparison_period=comparison_period,
                totals=total_buckets(source, []).to_dict(),
                debug={"degraded": True, "reason": str(e)}
            )

        debug: Dict[str, Any] = {"degraded": False, "primary": primary.debug()}
        comparison_buckets = None
        if comparison is not None:
            series = comparison["series"]
            if series is not None:
                comparison_buckets = [b.to_dict() for b in series.buckets]
                debug["comparison"] = series.debug()
            else:
                debug["comparisonError"] = comparison["error"]
        debug["usedFallback"] = primary.used_fallback or bool(
            comparison and comparison["series"] and comparison["series"].used_fallback
        )

        return TimeseriesResponse(
            source=source.value,
            granularity=granularity.value,
            period=period,
            primary=[b.to_dict() for b in primary.buckets],
            comparison=comparison_buckets,
            comparison_period=comparison_period,
            totals=total_buckets(source, primary.buckets).to_dict(),
            debug=debug
        )
