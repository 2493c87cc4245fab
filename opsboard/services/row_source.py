"""
Row Source for Supabase

Read (and the few write) operations the metrics core needs, with PostgREST
errors translated into the metrics error taxonomy:

- missing relation (42P01 / PGRST205)     -> MissingAggregateView
- unreachable host / client not configured -> DataSourceUnavailable
- everything else (RLS, timeouts, syntax)  -> UnexpectedQueryError
"""

import logging
import re
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from opsboard.exceptions import DataSourceUnavailable, MissingAggregateView, UnexpectedQueryError
from opsboard.services.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

# undefined_table (Postgres) and schema-cache miss (PostgREST)
MISSING_RELATION_CODES = frozenset({"42P01", "PGRST205"})

MISSING_RELATION_PATTERN = re.compile(
    r"relation \S+ does not exist|could not find the table",
    re.IGNORECASE
)

PAGE_SIZE = 1000


def is_missing_relation(code: Optional[str], message: Optional[str]) -> bool:
    """True only for "relation does not exist" style errors."""
    if code and str(code) in MISSING_RELATION_CODES:
        return True
    # "column x does not exist" (42703) is a malformed query, not a missing view
    if code:
        return False
    return bool(message and MISSING_RELATION_PATTERN.search(message))


def translate_error(exc: Exception, relation: str) -> Exception:
    """Map a client exception onto the metrics error taxonomy."""
    if isinstance(exc, APIError):
        code = getattr(exc, "code", None)
        message = getattr(exc, "message", None) or str(exc)
        if is_missing_relation(code, message):
            return MissingAggregateView(relation, message)
        return UnexpectedQueryError(message, code=code, relation=relation)

    if isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout)):
        return DataSourceUnavailable(f"Cannot reach Supabase: {exc}")

    if isinstance(exc, httpx.TimeoutException):
        return UnexpectedQueryError(f"Query on '{relation}' timed out: {exc}", relation=relation)

    return UnexpectedQueryError(str(exc) or exc.__class__.__name__, relation=relation)


class SupabaseRowSource:
    """Row source backed by the Supabase PostgREST client"""

    def __init__(self, client: Optional[Client] = None, client_factory: Callable[[], Client] = get_supabase_client):
        self._client = client
        self._client_factory = client_factory

    @property
    def client(self) -> Client:
        # Resolved lazily so an unconfigured store surfaces as DataSourceUnavailable per call
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _execute(self, relation: str, build: Callable[[Client], Any]) -> Any:
        try:
            return build(self.client).execute()
        except (DataSourceUnavailable, MissingAggregateView, UnexpectedQueryError):
            raise
        except Exception as e:
            raise translate_error(e, relation) from e

    # =========================================================================
    # Reads
    # =========================================================================

    def select_range(
        self,
        relation: str,
        date_column: str,
        start: date,
        end: date,
        columns: str = "*"
    ) -> List[Dict[str, Any]]:
        """
        Rows of `relation` with `start <= date_column <= end`, ascending.

        Pages through PostgREST's row limit so totals are never truncated.
        """
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page_start = offset
            result = self._execute(
                relation,
                lambda c: c.table(relation)
                .select(columns)
                .gte(date_column, start.isoformat())
                .lte(date_column, end.isoformat())
                .order(date_column, desc=False)
                .range(page_start, page_start + PAGE_SIZE - 1)
            )
            page = result.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE

        return rows

    def select_view(self, view: str, date_column: str, start: date, end: date) -> List[Dict[str, Any]]:
        """Precomputed aggregate rows from a metrics view."""
        return self.select_range(view, date_column, start, end)

    def probe(self, relation: str) -> None:
        """Cheap existence / permission check (select one id)."""
        self._execute(relation, lambda c: c.table(relation).select("id").limit(1))

    # =========================================================================
    # Writes
    # =========================================================================

    def update_by_id(self, table: str, record_id: Any, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Update a single row by primary key; returns updated rows (empty if no match)."""
        result = self._execute(table, lambda c: c.table(table).update(values).eq("id", record_id))
        return result.data or []

    def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        result = self._execute(function, lambda c: c.rpc(function, params))
        return result.data


# Singleton instance
_row_source: Optional[SupabaseRowSource] = None


def get_row_source() -> SupabaseRowSource:
    """Get or create the shared row source"""
    global _row_source
    if _row_source is None:
        _row_source = SupabaseRowSource()
    return _row_source
