"""
Configuration

Environment-driven settings, read once at import.
"""

import os

# Base tables and their date columns
SERVICE_JOBS_TABLE = os.getenv("SERVICE_JOBS_TABLE", "service_jobs")
SERVICE_JOBS_DATE_COLUMN = os.getenv("SERVICE_JOBS_DATE_COLUMN", "job_date")
DELIVERY_TICKETS_TABLE = os.getenv("DELIVERY_TICKETS_TABLE", "delivery_tickets")
DELIVERY_TICKETS_DATE_COLUMN = os.getenv("DELIVERY_TICKETS_DATE_COLUMN", "date")

# Billboard
BILLBOARD_CACHE_TTL_SECONDS = float(os.getenv("BILLBOARD_CACHE_TTL_SECONDS", "15"))
BILLBOARD_WARM_ENABLED = os.getenv("BILLBOARD_WARM_ENABLED", "false").lower() == "true"
BILLBOARD_WARM_INTERVAL_SECONDS = int(os.getenv("BILLBOARD_WARM_INTERVAL_SECONDS", "60"))
# IANA name used to decide which week "now" falls in; empty means UTC
BILLBOARD_TIMEZONE = os.getenv("BILLBOARD_TIMEZONE", "")

# Migration that creates the *_daily / *_weekly / *_monthly views
METRICS_VIEWS_MIGRATION = "migrations/001_create_metrics_views.sql"


def get_billboard_tv_token() -> str:
    """TV-mode token; empty string means TV access is open."""
    return os.getenv("BILLBOARD_TV_TOKEN") or os.getenv("VERCEL_BILLBOARD_TV_TOKEN") or ""
