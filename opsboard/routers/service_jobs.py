"""
Service Job Endpoints

POST /{job_id}/complete          - Mark one service job completed
POST /mark-customer-completed    - Mark every open job for a customer completed

Both writes invalidate the billboard summary cache so the ticker reflects
the change on its next poll.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path

from opsboard import config
from opsboard.dependencies import get_billboard_cache, get_rows
from opsboard.exceptions import DataSourceUnavailable, MetricsError
from opsboard.metrics.cache import TTLCache
from opsboard.models.enums import ServiceJobStatus
from opsboard.models.schemas import (
    JobCompletedResponse,
    MarkCustomerCompletedRequest,
    MarkCustomerCompletedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_updated_count(data: Any) -> int:
    """RPC result -> number of updated rows ([{updated_count}], {updated_count} or a bare int)."""
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("updated_count")
    try:
        return int(data or 0)
    except (TypeError, ValueError):
        return 0


@router.post("/{job_id}/complete", response_model=JobCompletedResponse)
async def complete_service_job(
    job_id: str = Path(..., description="Service job id"),
    rows=Depends(get_rows),
    cache: TTLCache = Depends(get_billboard_cache)
):
    """Set a single service job's status to completed."""
    try:
        updated = await asyncio.to_thread(
            rows.update_by_id,
            config.SERVICE_JOBS_TABLE,
            job_id,
            {"status": ServiceJobStatus.COMPLETED.value}
        )
    except DataSourceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MetricsError as e:
        logger.error(f"[ServiceJobs] Failed to complete job {job_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Update failed: {e}")

    if not updated:
        raise HTTPException(status_code=404, detail=f"Service job not found: {job_id}")

    cache.invalidate()
    logger.info(f"[ServiceJobs] Job {job_id} marked completed")
    return JobCompletedResponse(success=True, job=updated[0])


@router.post("/mark-customer-completed", response_model=MarkCustomerCompletedResponse)
async def mark_customer_completed(
    request: MarkCustomerCompletedRequest,
    rows=Depends(get_rows),
    cache: TTLCache = Depends(get_billboard_cache)
):
    """Mark all of a customer's open service jobs completed via the database function."""
    customer = request.customer.strip()
    if not customer:
        raise HTTPException(status_code=400, detail="customer is required")

    try:
        data = await asyncio.to_thread(rows.rpc, "mark_customer_completed", {"customer_key": customer})
    except DataSourceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except MetricsError as e:
        logger.error(f"[ServiceJobs] mark_customer_completed failed for '{customer}': {e}")
        raise HTTPException(status_code=502, detail=f"Update failed: {e}")

    updated_count = parse_updated_count(data)
    cache.invalidate()
    logger.info(f"[ServiceJobs] Marked {updated_count} jobs completed for '{customer}'")
    return MarkCustomerCompletedResponse(success=True, updated_count=updated_count, customer=customer)
