# Overview: Service-layer operations for reporting; aggregates sales over a date range.

from __future__ import annotations

from datetime import datetime, timedelta

from ..errors import ValidationError
from ..storage import StorageRouter
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from ..validation import from_cents

TOP_PRODUCTS_LIMIT = 10


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime]:
    """
    start defaults to the beginning of time, end to now. A date-only end
    ("2024-05-31") covers that whole day.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("startDate and endDate must be ISO-8601 dates")

    if end_dt is None:
        end_dt = utcnow()
    elif len(end.strip()) == 10:
        end_dt = end_dt + timedelta(days=1) - timedelta(microseconds=1)

    if start_dt is not None and start_dt > end_dt:
        raise ValidationError("startDate must be before endDate")
    return start_dt, end_dt


def sales_report(
    storage: StorageRouter,
    business_id: str,
    start: str | None = None,
    end: str | None = None,
) -> dict:
    start_dt, end_dt = _parse_range(start, end)
    summary = storage.run(
        lambda backend: backend.sales_summary(business_id, start=start_dt, end=end_dt, top_limit=TOP_PRODUCTS_LIMIT)
    )

    count = summary["count"]
    revenue_cents = summary["revenue_cents"]
    return {
        "start_date": to_utc_z(start_dt),
        "end_date": to_utc_z(end_dt),
        "total_sales": count,
        "total_revenue": from_cents(revenue_cents),
        "total_revenue_cents": revenue_cents,
        "average_ticket": from_cents(round(revenue_cents / count)) if count else 0.0,
        "top_products": [
            {
                "product_id": row["product_id"],
                "name": row["name"],
                "total_sold": row["total_sold"],
                "revenue": from_cents(row["revenue_cents"]),
            }
            for row in summary["top_products"]
        ],
        "by_payment_method": {
            method: {"count": row["count"], "revenue": from_cents(row["revenue_cents"])}
            for method, row in summary["by_payment_method"].items()
        },
    }
