"""
Billboard Endpoints

GET /summary - This week vs last week KPIs for the ticker / TV mode
GET /debug   - Supabase connectivity and table checks (no secrets)

The summary is cached for BILLBOARD_CACHE_TTL_SECONDS (15s by default) so
many TV screens polling at once cost one set of reads.

TV-mode access control is optional: when BILLBOARD_TV_TOKEN is set, callers
must send it as `x-tv-token`, `Authorization: Bearer <token>`, or `?token=`.
"""

import asyncio
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from opsboard import config
from opsboard.dependencies import (
    BILLBOARD_CACHE_KEY,
    get_billboard_cache,
    get_billboard_composer,
    get_rows,
)
from opsboard.exceptions import DataSourceUnavailable, MetricsError, UnexpectedQueryError
from opsboard.metrics.billboard import BillboardComposer
from opsboard.metrics.cache import TTLCache
from opsboard.models.schemas import BillboardDebug, BillboardSummary
from opsboard.services.supabase_client import get_supabase_credentials

logger = logging.getLogger(__name__)

router = APIRouter()


def extract_token(
    x_tv_token: Optional[str],
    authorization: Optional[str],
    token: Optional[str]
) -> Optional[str]:
    """Token from header, bearer auth, or query string (in that order)."""
    if x_tv_token:
        return x_tv_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return token


def verify_tv_token(provided: Optional[str]) -> bool:
    required = config.get_billboard_tv_token()
    # No token configured => open access
    if not required:
        return True
    return bool(provided) and hmac.compare_digest(provided, required)


@router.get("/summary", response_model=BillboardSummary)
async def get_billboard_summary(
    response: Response,
    refresh: bool = Query(default=False, description="Bypass the cache"),
    token: Optional[str] = Query(default=None, description="TV-mode token"),
    x_tv_token: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
    composer: BillboardComposer = Depends(get_billboard_composer),
    cache: TTLCache = Depends(get_billboard_cache)
):
    """
    Billboard summary: service tracking, delivery tickets and week compare.

    Returns an all-zero payload (with `X-Billboard-Degraded: true`) when
    Supabase is not configured or unreachable.
    """
    if not verify_tv_token(extract_token(x_tv_token, authorization, token)):
        raise HTTPException(status_code=401, detail="Invalid or missing TV token")

    computed = False

    async def compose():
        nonlocal computed
        computed = True
        return await composer.compose()

    try:
        summary, degraded = await cache.get_or_compute(BILLBOARD_CACHE_KEY, compose, force_refresh=refresh)
    except UnexpectedQueryError as e:
        logger.error(f"[Billboard] Summary query failed: {e}")
        raise HTTPException(status_code=502, detail=f"Billboard query failed: {e}")

    response.headers["X-Cache"] = "MISS" if computed else "HIT"
    if degraded:
        response.headers["X-Billboard-Degraded"] = "true"
    response.headers["Cache-Control"] = f"public, max-age={int(cache.ttl_seconds)}"
    return summary


@router.get("/debug", response_model=BillboardDebug)
async def get_billboard_debug(response: Response, rows=Depends(get_rows)):
    """
    Connectivity diagnostics for the billboard data sources.

    Reports which credentials are present (never their values) and whether
    each base table can be read.
    """
    supabase_url, supabase_key = get_supabase_credentials()
    result = BillboardDebug(
        ok=False,
        env={"hasSupabaseUrl": bool(supabase_url), "hasServiceRoleKey": bool(supabase_key)},
        tables={config.SERVICE_JOBS_TABLE: None, config.DELIVERY_TICKETS_TABLE: None},
        errors=[]
    )

    if not supabase_url or not supabase_key:
        result.errors.append("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY in server env.")
        response.status_code = 500
        return result

    for table in (config.SERVICE_JOBS_TABLE, config.DELIVERY_TICKETS_TABLE):
        try:
            await asyncio.to_thread(rows.probe, table)
            result.tables[table] = True
        except DataSourceUnavailable as e:
            result.tables[table] = False
            result.errors.append(f"{table} unreachable: {e}")
        except MetricsError as e:
            result.tables[table] = False
            result.errors.append(f"{table} check error: {e}")

    result.ok = all(v is not False for v in result.tables.values())
    if not result.ok:
        response.status_code = 500
    return result
