# Overview: Read-side aggregates for the dashboard and reports; pure functions over whole collections.

"""
Reporting Service

Everything here takes plain lists of records (as returned by the store) and
returns JSON-ready dicts. Nothing is cached or persisted: routes load the
collections they need and call these on every request.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..money import round_amount, percent_change, percentage
from erp.time_utils import parse_iso_date, utcnow
from .products_service import margin_percentage, stock_level
from .employee_service import performance_band
from .sales_service import customer_history, sale_units
from .bargaining_service import bargain_stats, discount_distribution, staff_breakdown
from .disposal_service import disposal_stats, breakdown, category_losses


GROUPINGS = ("day", "week", "month")
TREND_DAYS = 7
DASHBOARD_LIST_SIZE = 5


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def _sale_date(sale: dict) -> date | None:
    return parse_iso_date(sale.get("date"))


def _total(sales) -> float:
    return round_amount(sum(s.get("total") or 0 for s in sales))


def _parse_range(start: str | None, end: str | None) -> tuple[date | None, date | None]:
    start_d = parse_iso_date(start) if start else None
    end_d = parse_iso_date(end) if end else None
    if start and start_d is None:
        raise ReportError("start must be a YYYY-MM-DD date")
    if end and end_d is None:
        raise ReportError("end must be a YYYY-MM-DD date")
    if start_d and end_d and start_d > end_d:
        raise ReportError("start must be on or before end")
    return start_d, end_d


def _in_range(sales: list[dict], start_d: date | None, end_d: date | None) -> list[dict]:
    selected = []
    for sale in sales:
        when = _sale_date(sale)
        if when is None:
            continue
        if start_d and when < start_d:
            continue
        if end_d and when > end_d:
            continue
        selected.append(sale)
    return selected


def _period_key(when: date, group_by: str) -> str:
    if group_by == "day":
        return when.isoformat()
    if group_by == "week":
        year, week, _ = when.isocalendar()
        return f"{year}-W{week:02d}"
    return f"{when:%Y-%m}"


def _line_cost(item: dict, products_by_id: dict) -> float:
    product = products_by_id.get(item.get("id")) or {}
    return (product.get("purchaseCost") or 0) * (item.get("quantity") or 0)


def _month_bounds(today: date) -> tuple[date, date, date]:
    month_start = today.replace(day=1)
    last_month_end = month_start - timedelta(days=1)
    return month_start, last_month_end.replace(day=1), last_month_end


# ---------------------------------------------------------------- dashboard

def low_stock_products(products: list[dict]) -> list[dict]:
    rows = []
    for p in products:
        stock = p.get("stock") or 0
        if stock_level(stock) == "good" and stock > (p.get("minStock") or 0):
            continue
        rows.append({
            "id": p.get("id"),
            "name": p.get("name", ""),
            "code": p.get("code", ""),
            "stock": stock,
            "min_stock": p.get("minStock") or 0,
            "level": stock_level(stock),
        })
    return sorted(rows, key=lambda r: (r["stock"], r["name"]))


def top_products(sales: list[dict], limit: int = DASHBOARD_LIST_SIZE) -> list[dict]:
    """Best sellers by units sold, with the revenue they brought in."""
    grouped: dict[str, dict] = {}
    for sale in sales:
        for item in sale.get("items") or []:
            key = item.get("id") or item.get("name", "")
            row = grouped.setdefault(key, {"id": item.get("id"), "name": item.get("name", ""), "quantity": 0, "revenue": 0})
            row["quantity"] += item.get("quantity") or 0
            row["revenue"] = round_amount(row["revenue"] + (item.get("finalPrice") or 0) * (item.get("quantity") or 0))
    return sorted(grouped.values(), key=lambda r: (-r["quantity"], -r["revenue"]))[:limit]


def sales_trend(sales: list[dict], today: date, days: int = TREND_DAYS) -> list[dict]:
    """One point per day for the last `days` days, oldest first, zero-filled."""
    by_day: dict[date, list[dict]] = {}
    for sale in sales:
        when = _sale_date(sale)
        if when:
            by_day.setdefault(when, []).append(sale)

    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_sales = by_day.get(day, [])
        series.append({"date": day.isoformat(), "total": _total(day_sales), "transactions": len(day_sales)})
    return series


def dashboard(
    *,
    sales: list[dict],
    products: list[dict],
    employees: list[dict],
    credits: list[dict],
    bargains: list[dict],
    today: date | None = None,
) -> dict:
    today = today or utcnow().date()
    yesterday = today - timedelta(days=1)
    month_start, last_month_start, last_month_end = _month_bounds(today)

    today_sales = _in_range(sales, today, today)
    yesterday_sales = _in_range(sales, yesterday, yesterday)
    month_sales = _in_range(sales, month_start, today)
    last_month_sales = _in_range(sales, last_month_start, last_month_end)

    today_total, yesterday_total = _total(today_sales), _total(yesterday_sales)
    month_total, last_month_total = _total(month_sales), _total(last_month_sales)

    recent = sorted(
        sales,
        key=lambda s: (s.get("date", ""), s.get("time", ""), s.get("createdAt", "")),
        reverse=True,
    )[:DASHBOARD_LIST_SIZE]

    top_bargains = sorted(
        (b for b in bargains if b.get("status") == "approved"),
        key=lambda b: b.get("discountPercentage") or 0,
        reverse=True,
    )[:3]

    return {
        "sales": {
            "today": today_total,
            "yesterday": yesterday_total,
            "today_change": percent_change(today_total, yesterday_total),
            "month": month_total,
            "last_month": last_month_total,
            "month_change": percent_change(month_total, last_month_total),
            "today_transactions": len(today_sales),
            "month_transactions": len(month_sales),
        },
        "trend": sales_trend(sales, today),
        "low_stock": low_stock_products(products),
        "top_products": top_products(month_sales),
        "top_bargains": [
            {
                "name": b.get("productName", ""),
                "original_price": b.get("originalPrice") or 0,
                "final_price": b.get("finalPrice") or 0,
                "discount_percentage": b.get("discountPercentage") or 0,
            }
            for b in top_bargains
        ],
        "employee_sales": employee_performance([e for e in employees if e.get("status") == "active"]),
        "recent_sales": recent,
        "outstanding_credit": round_amount(sum(c.get("remainingAmount") or 0 for c in credits)),
    }


# ------------------------------------------------------------------ reports

def sales_report(
    sales: list[dict],
    products: list[dict] | None = None,
    *,
    start: str | None = None,
    end: str | None = None,
    group_by: str = "day",
) -> dict:
    if group_by not in GROUPINGS:
        raise ReportError(f"group_by must be one of: {', '.join(GROUPINGS)}")
    start_d, end_d = _parse_range(start, end)
    selected = _in_range(sales, start_d, end_d)
    products_by_id = {p.get("id"): p for p in products or []}

    periods: dict[str, dict] = {}
    for sale in selected:
        key = _period_key(_sale_date(sale), group_by)
        row = periods.setdefault(key, {
            "period": key, "total_sales": 0, "total_discount": 0,
            "transactions": 0, "units": 0, "profit": 0,
        })
        cost = sum(_line_cost(item, products_by_id) for item in sale.get("items") or [])
        row["total_sales"] = round_amount(row["total_sales"] + (sale.get("total") or 0))
        row["total_discount"] = round_amount(row["total_discount"] + (sale.get("discount") or 0))
        row["transactions"] += 1
        row["units"] += sale_units(sale)
        row["profit"] = round_amount(row["profit"] + (sale.get("total") or 0) - cost)

    rows = sorted(periods.values(), key=lambda r: r["period"])
    return {
        "group_by": group_by,
        "start": start_d.isoformat() if start_d else None,
        "end": end_d.isoformat() if end_d else None,
        "rows": rows,
        "totals": {
            "total_sales": _total(selected),
            "transactions": len(selected),
            "units": sum(r["units"] for r in rows),
            "profit": round_amount(sum(r["profit"] for r in rows)),
            "average_order": round_amount(_total(selected) / len(selected)) if selected else 0,
        },
    }


def category_report(sales: list[dict], products: list[dict]) -> list[dict]:
    """Revenue and units per product fabric type, with each category's share of revenue."""
    products_by_id = {p.get("id"): p for p in products}
    grouped: dict[str, dict] = {}
    for sale in sales:
        for item in sale.get("items") or []:
            product = products_by_id.get(item.get("id")) or {}
            name = product.get("fabricType") or "Other"
            row = grouped.setdefault(name, {"category": name, "sales": 0, "units": 0})
            row["sales"] = round_amount(row["sales"] + (item.get("finalPrice") or 0) * (item.get("quantity") or 0))
            row["units"] += item.get("quantity") or 0

    grand_total = sum(r["sales"] for r in grouped.values())
    for row in grouped.values():
        row["percentage"] = percentage(row["sales"], grand_total)
    return sorted(grouped.values(), key=lambda r: r["sales"], reverse=True)


def employee_performance(employees: list[dict]) -> list[dict]:
    rows = []
    for e in employees:
        monthly_sales = e.get("monthlySales") or 0
        target = e.get("monthlyTarget") or 0
        score = e.get("performanceScore") or 0
        rows.append({
            "id": e.get("id"),
            "name": e.get("name", ""),
            "sales": monthly_sales,
            "target": target,
            "achievement": percentage(monthly_sales, target),
            "commission": round_amount(monthly_sales * (e.get("commission") or 0) / 100),
            "performance_score": score,
            "band": performance_band(score),
        })
    return sorted(rows, key=lambda r: r["sales"], reverse=True)


def inventory_report(products: list[dict]) -> list[dict]:
    """Per fabric type: how many products are healthy, low or out of stock."""
    grouped: dict[str, dict] = {}
    for p in products:
        name = p.get("fabricType") or "Other"
        row = grouped.setdefault(name, {
            "category": name, "in_stock": 0, "low_stock": 0, "out_of_stock": 0, "stock_value": 0,
        })
        stock = p.get("stock") or 0
        if stock <= 0:
            row["out_of_stock"] += 1
        elif stock <= (p.get("minStock") or 0) or stock_level(stock) != "good":
            row["low_stock"] += 1
        else:
            row["in_stock"] += 1
        row["stock_value"] = round_amount(row["stock_value"] + stock * (p.get("currentPrice") or 0))
    return sorted(grouped.values(), key=lambda r: r["category"])


def customer_report(sales: list[dict]) -> dict:
    by_type: dict[str, dict] = {}
    for sale in sales:
        kind = sale.get("customerType") or "walk-in"
        row = by_type.setdefault(kind, {"type": kind, "transactions": 0, "total": 0})
        row["transactions"] += 1
        row["total"] = round_amount(row["total"] + (sale.get("total") or 0))
    for row in by_type.values():
        row["percentage"] = percentage(row["transactions"], len(sales))

    customers = customer_history(sales)
    return {
        "by_type": sorted(by_type.values(), key=lambda r: r["transactions"], reverse=True),
        "unique_customers": len(customers),
        "returning_customers": sum(1 for c in customers if c["total_purchases"] > 1),
        "top_customers": customers[:DASHBOARD_LIST_SIZE],
    }


def profit_margin_report(products: list[dict], sales: list[dict]) -> list[dict]:
    revenue: dict[str, float] = {}
    for sale in sales:
        for item in sale.get("items") or []:
            key = item.get("id")
            revenue[key] = revenue.get(key, 0) + (item.get("finalPrice") or 0) * (item.get("quantity") or 0)

    rows = [
        {
            "id": p.get("id"),
            "product": p.get("name", ""),
            "margin": margin_percentage(p),
            "sales": round_amount(revenue.get(p.get("id"), 0)),
        }
        for p in products
    ]
    return sorted(rows, key=lambda r: (-r["margin"], r["product"]))


def bargaining_report(records: list[dict]) -> dict:
    return {
        "stats": bargain_stats(records),
        "distribution": discount_distribution(records),
        "by_staff": staff_breakdown(records),
    }


def disposal_report(records: list[dict], today: date | None = None) -> dict:
    return {
        "stats": disposal_stats(records, today),
        "by_method": breakdown(records, "disposalMethod"),
        "by_reason": breakdown(records, "reason"),
        "by_condition": breakdown(records, "condition"),
        "by_category": category_losses(records),
    }
