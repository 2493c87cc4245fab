"""
Row Normalization

Maps heterogeneous Supabase rows into fixed record shapes once, at the
row-source boundary, so the aggregator never deals with optional columns.

Column fallbacks reflect the schemas seen across deployments:
- service_jobs: job_amount | amount | total, job_date | date
- delivery_tickets: gallons_delivered | qty | quantity | gallons,
  amount | total_amount | total, date | delivery_date
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence

from opsboard.metrics.periods import to_calendar_date
from opsboard.models.enums import DeliveryTicketStatus

ZERO = Decimal("0")

SERVICE_AMOUNT_FIELDS = ("job_amount", "amount", "total")
SERVICE_DATE_FIELDS = ("job_date", "date")

DELIVERY_GALLONS_FIELDS = ("gallons_delivered", "qty", "quantity", "gallons")
DELIVERY_AMOUNT_FIELDS = ("amount", "total_amount", "total")
DELIVERY_DATE_FIELDS = ("date", "delivery_date")


def to_decimal(value: Any) -> Decimal:
    """Safely convert value to Decimal; anything unparseable is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    text = str(value).replace(",", "").replace("$", "").strip()
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def first_present(row: Dict[str, Any], fields: Sequence[str]) -> Any:
    """First field that is present and not blank."""
    for field_name in fields:
        value = row.get(field_name)
        if value is not None and value != "":
            return value
    return None


@dataclass(frozen=True)
class ServiceJobRecord:
    """A service job as consumed by the aggregator"""
    status: str
    amount: Decimal
    record_date: Optional[date]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ServiceJobRecord":
        return cls(
            status=str(row.get("status") or "").strip().lower(),
            amount=to_decimal(first_present(row, SERVICE_AMOUNT_FIELDS)),
            record_date=to_calendar_date(first_present(row, SERVICE_DATE_FIELDS))
        )


@dataclass(frozen=True)
class DeliveryTicketRecord:
    """A delivery ticket as consumed by the aggregator"""
    quantity_gallons: Decimal
    amount: Decimal
    record_date: Optional[date]
    status: DeliveryTicketStatus = DeliveryTicketStatus.NORMAL

    @property
    def is_excluded(self) -> bool:
        """Void and canceled tickets never count toward totals."""
        return self.status in (DeliveryTicketStatus.VOID, DeliveryTicketStatus.CANCELED)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DeliveryTicketRecord":
        # gallons_delivered wins only when it holds a number; otherwise fall back to qty
        gallons = to_decimal(row.get("gallons_delivered"))
        if gallons == ZERO:
            gallons = to_decimal(first_present(row, DELIVERY_GALLONS_FIELDS[1:]))

        return cls(
            quantity_gallons=gallons,
            amount=to_decimal(first_present(row, DELIVERY_AMOUNT_FIELDS)),
            record_date=to_calendar_date(first_present(row, DELIVERY_DATE_FIELDS)),
            status=DeliveryTicketStatus.from_name(row.get("status") or "")
        )


def normalize_service_rows(rows: Optional[Iterable[Dict[str, Any]]]) -> List[ServiceJobRecord]:
    return [ServiceJobRecord.from_row(r) for r in (rows or [])]


def normalize_delivery_rows(rows: Optional[Iterable[Dict[str, Any]]]) -> List[DeliveryTicketRecord]:
    return [DeliveryTicketRecord.from_row(r) for r in (rows or [])]
