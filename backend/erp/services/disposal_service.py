# Overview: Service-layer operations for stock disposal; encapsulates business logic and store work.

from __future__ import annotations

from datetime import date

from ..schemas import DISPOSAL_RECORDS, DISPOSAL_POLICY
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount, percentage
from erp.time_utils import parse_iso_date, today_iso, utcnow
from .document_store import Collection


def loss_amount(record: dict) -> float:
    """Stock value written off minus whatever the disposal recovered."""
    return round_amount(
        (record.get("originalPrice") or 0) * (record.get("quantity") or 0)
        - (record.get("disposalValue") or 0)
    )


def disposal_stats(records: list[dict], today: date | None = None) -> dict:
    today = today or utcnow().date()
    this_month = 0
    for r in records:
        when = parse_iso_date(r.get("disposalDate"))
        if when and (when.year, when.month) == (today.year, today.month):
            this_month += 1
    return {
        "total_records": len(records),
        "total_quantity": sum(r.get("quantity") or 0 for r in records),
        "total_loss": round_amount(sum(r.get("lossAmount") or 0 for r in records)),
        "recovered_value": round_amount(sum(r.get("disposalValue") or 0 for r in records)),
        "this_month": this_month,
    }


def breakdown(records: list[dict], field: str) -> list[dict]:
    """Record count and share of all records per value of `field`."""
    counts: dict[str, int] = {}
    for r in records:
        key = r.get(field) or "unspecified"
        counts[key] = counts.get(key, 0) + 1
    rows = [
        {"key": key, "count": count, "percentage": percentage(count, len(records))}
        for key, count in counts.items()
    ]
    return sorted(rows, key=lambda row: (-row["count"], row["key"]))


def category_losses(records: list[dict]) -> list[dict]:
    grouped: dict[str, dict] = {}
    for r in records:
        name = r.get("category") or "Uncategorized"
        row = grouped.setdefault(name, {"category": name, "total_value": 0, "recovered": 0, "quantity": 0})
        row["total_value"] = round_amount(row["total_value"] + (r.get("originalPrice") or 0) * (r.get("quantity") or 0))
        row["recovered"] = round_amount(row["recovered"] + (r.get("disposalValue") or 0))
        row["quantity"] += r.get("quantity") or 0
    for row in grouped.values():
        row["net_loss"] = round_amount(row["total_value"] - row["recovered"])
    return sorted(grouped.values(), key=lambda row: row["net_loss"], reverse=True)


class DisposalService:
    def __init__(self, store):
        self.records = Collection(store, DISPOSAL_RECORDS, DISPOSAL_POLICY)

    def create_record(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=DISPOSAL_POLICY, partial=False)
        require_non_negative(patch, "originalPrice", "disposalValue")
        if patch["quantity"] <= 0:
            raise ValidationError("quantity must be at least 1")

        patch.setdefault("disposalDate", today_iso())
        patch["lossAmount"] = loss_amount(patch)
        record_id = self.records.create(patch)
        return {**patch, "id": record_id}

    def update_record(self, record_id: str, payload: dict) -> dict:
        existing = self.records.require(record_id)
        patch = validate_record(payload=payload, policy=DISPOSAL_POLICY, partial=True)
        require_non_negative(patch, "originalPrice", "disposalValue")
        if "quantity" in patch and (patch["quantity"] or 0) <= 0:
            raise ValidationError("quantity must be at least 1")

        patch["lossAmount"] = loss_amount({**existing, **patch})
        self.records.update(record_id, patch)
        return self.records.require(record_id)

    def delete_record(self, record_id: str) -> None:
        self.records.require(record_id)
        self.records.delete(record_id)

    def get_record(self, record_id: str) -> dict:
        return self.records.require(record_id)

    def list_records(self, condition: str | None = None, method: str | None = None, search: str | None = None) -> list[dict]:
        records = self.records.all()
        if condition and condition != "all":
            records = [r for r in records if r.get("condition") == condition]
        if method and method != "all":
            records = [r for r in records if r.get("disposalMethod") == method]
        term = (search or "").strip().lower()
        if term:
            records = [
                r for r in records
                if term in str(r.get("itemName", "")).lower() or term in str(r.get("itemCode", "")).lower()
            ]
        return sorted(records, key=lambda r: (r.get("disposalDate", ""), r.get("createdAt", "")), reverse=True)

    def subscribe(self, callback):
        return self.records.subscribe(callback)
