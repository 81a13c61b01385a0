# Overview: Service-layer operations for reporting; sales summaries and end-of-day figures.

"""
Sales reporting over completed orders.

Figures are computed from orders, their lines and payments in the requested
window. Cost of goods uses the current menu cost_price of each line's menu
item; lines without a menu item or cost contribute no cost.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from ..extensions import db
from ..models import MenuItem
from ..time_utils import parse_iso_datetime, to_utc_z
from .order_service import STATUS_COMPLETED, list_orders_in_range
from .payment_service import PAYMENT_COMPLETED


TOP_ITEMS_LIMIT = 10


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _is_date_only(value: str) -> bool:
    return len(value.strip()) == 10


def parse_range(start: str | None, end: str | None) -> tuple[datetime, datetime]:
    """
    Parse an inclusive [start, end] window. A date-only end covers that whole
    day.
    """
    start_dt = parse_iso_datetime(start)
    end_dt = parse_iso_datetime(end)
    if start_dt is None or end_dt is None:
        raise ReportError("start and end must be ISO-8601 dates")
    if _is_date_only(end):
        end_dt = end_dt + timedelta(days=1) - timedelta(microseconds=1)
    if end_dt < start_dt:
        raise ReportError("end must not be before start")
    return start_dt, end_dt


def day_range(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))


def _menu_costs(menu_item_ids: set[int]) -> dict[int, Decimal]:
    if not menu_item_ids:
        return {}
    rows = db.session.query(MenuItem.id, MenuItem.cost_price).filter(
        MenuItem.id.in_(menu_item_ids),
        MenuItem.cost_price.isnot(None),
    ).all()
    return {row.id: Decimal(str(row.cost_price)) for row in rows}


def sales_summary(start: datetime, end: datetime, created_by: int | None = None) -> dict:
    orders = list_orders_in_range(start, end, status=STATUS_COMPLETED, created_by=created_by)

    total_sales = Decimal("0")
    items_sold = 0
    payment_breakdown: dict[str, Decimal] = defaultdict(Decimal)
    sales_by_type: dict[str, dict] = {}
    revenue_by_day: dict[str, dict] = {}
    item_totals: dict[str, dict] = {}

    menu_item_ids = {line.menu_item_id for order in orders for line in order.items if line.menu_item_id}
    costs = _menu_costs(menu_item_ids)
    total_cost = Decimal("0")

    for order in orders:
        amount = Decimal(str(order.total_amount or 0))
        total_sales += amount

        by_type = sales_by_type.setdefault(order.order_type, {"orders": 0, "total": Decimal("0")})
        by_type["orders"] += 1
        by_type["total"] += amount

        day = order.created_at.date().isoformat()
        by_day = revenue_by_day.setdefault(day, {"date": day, "orders": 0, "revenue": Decimal("0")})
        by_day["orders"] += 1
        by_day["revenue"] += amount

        for payment in order.payments:
            if payment.status == PAYMENT_COMPLETED:
                payment_breakdown[payment.payment_method] += Decimal(str(payment.amount))

        for line in order.items:
            items_sold += line.quantity
            entry = item_totals.setdefault(line.item_name, {"name": line.item_name, "quantity": 0, "revenue": Decimal("0")})
            entry["quantity"] += line.quantity
            entry["revenue"] += Decimal(str(line.total_price))
            if line.menu_item_id in costs:
                total_cost += costs[line.menu_item_id] * line.quantity

    count = len(orders)
    top_items = sorted(item_totals.values(), key=lambda e: (-e["quantity"], -e["revenue"], e["name"]))

    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "total_sales": _money(total_sales),
        "transaction_count": count,
        "average_transaction": _money(total_sales / count) if count else 0.0,
        "items_sold": items_sold,
        "total_cost": _money(total_cost),
        "gross_profit": _money(total_sales - total_cost),
        "payment_breakdown": {method: _money(amount) for method, amount in sorted(payment_breakdown.items())},
        "sales_by_type": {
            order_type: {"orders": entry["orders"], "total": _money(entry["total"])}
            for order_type, entry in sorted(sales_by_type.items())
        },
        "revenue_by_day": [
            {"date": entry["date"], "orders": entry["orders"], "revenue": _money(entry["revenue"])}
            for _day, entry in sorted(revenue_by_day.items())
        ],
        "top_items": [
            {"name": entry["name"], "quantity": entry["quantity"], "revenue": _money(entry["revenue"])}
            for entry in top_items[:TOP_ITEMS_LIMIT]
        ],
    }


def end_of_day(day: date, cashier_id: int | None = None) -> dict:
    """Completed-order figures for one UTC day, optionally for one cashier."""
    start, end = day_range(day)
    report = sales_summary(start, end, created_by=cashier_id)
    report["date"] = day.isoformat()
    report["cashier_id"] = cashier_id
    return report
