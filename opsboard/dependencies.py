"""
Shared Dependencies

Factories for the objects routers and the scheduler share. Routers take
them through FastAPI's Depends so tests can override them.
"""

from opsboard import config
from opsboard.metrics.billboard import BillboardComposer
from opsboard.metrics.cache import TTLCache
from opsboard.metrics.resolver import ViewResolver
from opsboard.metrics.timeseries import TimeseriesComposer
from opsboard.services.row_source import SupabaseRowSource, get_row_source

BILLBOARD_CACHE_KEY = "billboard-summary"

# One cache per process, shared by the summary route and the warmer job
_billboard_cache = TTLCache(config.BILLBOARD_CACHE_TTL_SECONDS)


def get_billboard_cache() -> TTLCache:
    return _billboard_cache


def get_rows() -> SupabaseRowSource:
    return get_row_source()


def get_billboard_composer() -> BillboardComposer:
    return BillboardComposer(get_row_source())


def get_timeseries_composer() -> TimeseriesComposer:
    return TimeseriesComposer(ViewResolver(get_row_source()))
