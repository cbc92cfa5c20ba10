"""
Sales Service - sale records and the sales ledger views

Sale records are written once by POS checkout and afterwards only change
delivery/payment/return status. Everything else here is read-side
aggregation over the full `sales` collection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..schemas import SALES, SALE_POLICY
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount, round_half_up
from erp.time_utils import utcnow
from .document_store import Collection


SALE_STATUS_FIELDS = {"deliveryStatus", "paymentStatus", "returnStatus", "deliveryDate", "deliveryAddress", "notes"}


def sale_units(sale: dict) -> int:
    return sum(item.get("quantity") or 0 for item in sale.get("items") or [])


def filter_sales(
    sales: Iterable[dict],
    search: str | None = None,
    delivery_status: str | None = None,
    payment_status: str | None = None,
) -> list[dict]:
    term = (search or "").strip().lower()
    results = []
    for sale in sales:
        if term and not any(
            term in str(sale.get(f, "")).lower()
            for f in ("invoiceNumber", "customerName", "customerPhone")
        ):
            continue
        if delivery_status and delivery_status != "all" and sale.get("deliveryStatus") != delivery_status:
            continue
        if payment_status and payment_status != "all" and sale.get("paymentStatus") != payment_status:
            continue
        results.append(sale)
    return results


def sales_ledger_summary(sales: list[dict]) -> dict:
    return {
        "total_sales": round_amount(sum(s.get("total") or 0 for s in sales)),
        "total_discount": round_amount(sum(s.get("discount") or 0 for s in sales)),
        "transactions": len(sales),
        "pending_deliveries": sum(1 for s in sales if s.get("deliveryStatus") == "pending"),
        "pending_payments": sum(1 for s in sales if s.get("paymentStatus") == "pending"),
    }


def customer_history(sales: list[dict]) -> list[dict]:
    """Group sales by customer name with purchase count, spend and dates."""
    grouped: dict[str, dict] = {}
    for sale in sorted(sales, key=lambda s: (s.get("date", ""), s.get("time", ""))):
        name = sale.get("customerName") or "Walk-in Customer"
        entry = grouped.setdefault(name, {
            "customer_name": name,
            "customer_phone": sale.get("customerPhone", ""),
            "customer_type": sale.get("customerType", "walk-in"),
            "total_purchases": 0,
            "total_amount": 0,
            "first_purchase": sale.get("date"),
            "last_purchase": sale.get("date"),
        })
        entry["total_purchases"] += 1
        entry["total_amount"] = round_amount(entry["total_amount"] + (sale.get("total") or 0))
        if sale.get("date") and (entry["last_purchase"] or "") < sale["date"]:
            entry["last_purchase"] = sale["date"]

    for entry in grouped.values():
        entry["average_order"] = round_half_up(entry["total_amount"] / entry["total_purchases"])

    return sorted(grouped.values(), key=lambda e: e["total_amount"], reverse=True)


class SalesService:
    def __init__(self, store):
        self.sales = Collection(store, SALES, SALE_POLICY)

    @staticmethod
    def next_invoice_number(now: datetime | None = None) -> str:
        now = now or utcnow()
        return f"INV-{now:%Y%m%d%H%M%S}{now.microsecond // 1000:03d}"

    def create_sale(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=SALE_POLICY, partial=False)
        require_non_negative(patch, "subtotal", "discount", "tax", "total")
        sale_id = self.sales.create(patch)
        return {**patch, "id": sale_id}

    def list_sales(self, search=None, delivery_status=None, payment_status=None) -> list[dict]:
        sales = filter_sales(self.sales.all(), search, delivery_status, payment_status)
        return sorted(sales, key=lambda s: (s.get("date", ""), s.get("time", ""), s.get("createdAt", "")), reverse=True)

    def get_sale(self, sale_id: str) -> dict:
        return self.sales.require(sale_id)

    def update_status(self, sale_id: str, payload: dict) -> dict:
        """Status-only edits after the sale: delivery, payment, returns."""
        self.sales.require(sale_id)
        payload = payload or {}
        locked = sorted(set(payload) - SALE_STATUS_FIELDS)
        if locked:
            raise ValidationError(f"Field not allowed: {', '.join(locked)}")
        patch = validate_record(payload=payload, policy=SALE_POLICY, partial=True)
        if patch.get("deliveryStatus") == "delivered" and "deliveryDate" not in patch:
            patch["deliveryDate"] = utcnow().date().isoformat()
        self.sales.update(sale_id, patch)
        return self.sales.require(sale_id)

    def delete_sale(self, sale_id: str) -> None:
        self.sales.require(sale_id)
        self.sales.delete(sale_id)

    def subscribe(self, callback):
        return self.sales.subscribe(callback)
