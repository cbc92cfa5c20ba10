# Overview: Service-layer operations for bargaining records; encapsulates business logic and store work.

from __future__ import annotations

from ..schemas import BARGAIN_RECORDS, BARGAIN_POLICY
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount, percentage
from erp.time_utils import today_iso, utcnow
from .document_store import Collection


# Discounts above this percentage wait for a manager
APPROVAL_THRESHOLD = 20

DISCOUNT_RANGES = (
    ("0-10%", None, 10),
    ("10-20%", 10, 20),
    ("20-30%", 20, 30),
    ("30%+", 30, None),
)


def discount_fields(original_price: float, final_price: float) -> dict:
    amount = round_amount(original_price - final_price)
    pct = round_amount(amount / original_price * 100) if original_price else 0
    return {"discountAmount": amount, "discountPercentage": pct}


def profit_margin(final_price: float, cost: float) -> float:
    if not final_price:
        return 0
    return round_amount((final_price - cost) / final_price * 100)


def _is_approved(record: dict) -> bool:
    return record.get("status") == "approved"


def bargain_stats(records: list[dict]) -> dict:
    approved = [r for r in records if _is_approved(r)]
    return {
        "total_bargains": len(records),
        "average_discount": (
            round_amount(sum(r.get("discountPercentage") or 0 for r in approved) / len(approved))
            if approved else 0
        ),
        "total_discount_given": round_amount(sum(r.get("discountAmount") or 0 for r in approved)),
        "approval_rate": percentage(len(approved), len(records)),
        "pending_approvals": sum(1 for r in records if r.get("status") == "pending"),
    }


def discount_distribution(records: list[dict]) -> list[dict]:
    """Record counts per discount band; each band includes its upper bound."""
    rows = []
    for label, low, high in DISCOUNT_RANGES:
        count = 0
        for r in records:
            pct = r.get("discountPercentage") or 0
            if (low is None or pct > low) and (high is None or pct <= high):
                count += 1
        rows.append({"range": label, "count": count})
    return rows


def staff_breakdown(records: list[dict]) -> list[dict]:
    grouped: dict[str, dict] = {}
    for r in records:
        name = r.get("staffMember") or "Unassigned"
        row = grouped.setdefault(name, {"staff_member": name, "total": 0, "approved": 0, "total_discount": 0})
        row["total"] += 1
        if _is_approved(r):
            row["approved"] += 1
            row["total_discount"] = round_amount(row["total_discount"] + (r.get("discountAmount") or 0))
    for row in grouped.values():
        row["approval_rate"] = percentage(row["approved"], row["total"])
    return sorted(grouped.values(), key=lambda row: row["staff_member"].lower())


class BargainingService:
    def __init__(self, store):
        self.records = Collection(store, BARGAIN_RECORDS, BARGAIN_POLICY)

    def create_record(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=BARGAIN_POLICY, partial=False)
        require_non_negative(patch, "originalPrice", "finalPrice")
        if patch["originalPrice"] <= 0:
            raise ValidationError("originalPrice must be greater than zero")
        if patch["finalPrice"] > patch["originalPrice"]:
            raise ValidationError("finalPrice cannot exceed originalPrice")

        now = utcnow()
        patch.update(discount_fields(patch["originalPrice"], patch["finalPrice"]))
        patch["status"] = "pending" if patch["discountPercentage"] > APPROVAL_THRESHOLD else "approved"
        patch.setdefault("date", now.date().isoformat())
        patch.setdefault("time", now.strftime("%H:%M"))

        record_id = self.records.create(patch)
        return {**patch, "id": record_id}

    def record_sale_discount(self, *, sale: dict, item: dict, purchase_cost: float, category: str = "") -> dict:
        """Pre-approved record for a sale line that received part of the cart discount."""
        quantity = item.get("quantity") or 0
        line_value = (item.get("originalPrice") or 0) * quantity
        record = {
            "date": sale.get("date") or today_iso(),
            "time": sale.get("time", ""),
            "productName": item.get("name", ""),
            "productCode": item.get("code", ""),
            "quantity": quantity,
            "originalPrice": item.get("originalPrice") or 0,
            "finalPrice": round_amount(item.get("finalPrice") or 0),
            "discountAmount": item.get("discount") or 0,
            "discountPercentage": round_amount((item.get("discount") or 0) / line_value * 100) if line_value else 0,
            "customerName": sale.get("customerName", ""),
            "customerPhone": sale.get("customerPhone", ""),
            "staffMember": sale.get("staffMember", ""),
            "reason": "POS cart discount",
            "invoiceNumber": sale.get("invoiceNumber", ""),
            "category": category or "",
            "profitMargin": profit_margin(item.get("finalPrice") or 0, purchase_cost or 0),
            "status": "approved",
        }
        record_id = self.records.create(record)
        return {**record, "id": record_id}

    def list_records(self, status: str | None = None, search: str | None = None) -> list[dict]:
        records = self.records.all()
        if status and status != "all":
            records = [r for r in records if r.get("status") == status]
        term = (search or "").strip().lower()
        if term:
            records = [
                r for r in records
                if term in str(r.get("productName", "")).lower() or term in str(r.get("customerName", "")).lower()
            ]
        return sorted(records, key=lambda r: (r.get("date", ""), r.get("time", ""), r.get("createdAt", "")), reverse=True)

    def get_record(self, record_id: str) -> dict:
        return self.records.require(record_id)

    def _decide(self, record_id: str, approved: bool, approved_by: str | None) -> dict:
        record = self.records.require(record_id)
        if record.get("status") != "pending":
            raise ValidationError("Only pending bargains can be approved or rejected")
        self.records.update(record_id, {
            "status": "approved" if approved else "rejected",
            "approvedBy": approved_by or "Manager",
            "approvalDate": today_iso(),
        })
        return self.records.require(record_id)

    def approve(self, record_id: str, approved_by: str | None = None) -> dict:
        return self._decide(record_id, True, approved_by)

    def reject(self, record_id: str, approved_by: str | None = None) -> dict:
        return self._decide(record_id, False, approved_by)

    def delete_record(self, record_id: str) -> None:
        self.records.require(record_id)
        self.records.delete(record_id)

    def subscribe(self, callback):
        return self.records.subscribe(callback)
