# Overview: Service-layer operations for inventory; encapsulates business logic and store work.

"""
Inventory Service

Inventory items carry stock counters (current/min/max/reserved/available)
and a status derived from those counters when the item is written.
Nothing recomputes the status later; an item edited outside this service
keeps whatever status it was last written with.
"""
from __future__ import annotations

import time
from typing import Iterable

from ..schemas import INVENTORY, STOCK_MOVEMENTS, INVENTORY_POLICY, STOCK_MOVEMENT_POLICY
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount
from erp.time_utils import today_iso
from .document_store import Collection


def derive_stock_fields(item: dict) -> dict:
    """availableStock and status from the counters of a (merged) item."""
    current = item.get("currentStock") or 0
    reserved = item.get("reservedStock") or 0
    status = item.get("status")

    if current == 0:
        status = "out-of-stock"
    elif status not in ("reserved", "damaged"):
        status = "available"

    return {
        "availableStock": current - reserved,
        "status": status,
        "lastUpdated": today_iso(),
    }


def stock_level(item: dict) -> str:
    current = item.get("currentStock") or 0
    if current == 0:
        return "out-of-stock"
    if current <= (item.get("minStock") or 0):
        return "low"
    max_stock = item.get("maxStock") or 0
    if max_stock and current >= max_stock:
        return "overstock"
    return "good"


def stock_percentage(item: dict) -> float:
    max_stock = item.get("maxStock") or 0
    if not max_stock:
        return 0
    return min(round_amount((item.get("currentStock") or 0) / max_stock * 100), 100)


def filter_items(
    items: Iterable[dict],
    search: str | None = None,
    status: str | None = None,
    category: str | None = None,
) -> list[dict]:
    term = (search or "").strip().lower()
    results = []
    for item in items:
        if term and term not in str(item.get("name", "")).lower() and term not in str(item.get("code", "")).lower():
            continue
        if status and status != "all" and item.get("status") != status:
            continue
        if category and category != "all" and item.get("category") != category:
            continue
        results.append(item)
    return results


def inventory_summary(items: list[dict]) -> dict:
    low = [i for i in items if (i.get("currentStock") or 0) <= (i.get("minStock") or 0)]
    out = [i for i in items if (i.get("currentStock") or 0) == 0]
    return {
        "total_items": len(items),
        "low_stock_count": len(low),
        "out_of_stock_count": len(out),
        "total_value": round_amount(sum((i.get("currentStock") or 0) * (i.get("salePrice") or 0) for i in items)),
        "categories": sorted({i.get("category") for i in items if i.get("category")}),
    }


class InventoryService:
    def __init__(self, store):
        self.items = Collection(store, INVENTORY, INVENTORY_POLICY)
        self.movements = Collection(store, STOCK_MOVEMENTS, STOCK_MOVEMENT_POLICY)

    def create_item(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=INVENTORY_POLICY, partial=False)
        require_non_negative(patch, "currentStock", "minStock", "maxStock", "reservedStock", "purchasePrice", "salePrice")
        patch.update(derive_stock_fields(patch))
        item_id = self.items.create(patch)
        return {**patch, "id": item_id}

    def list_items(self, search=None, status=None, category=None) -> list[dict]:
        items = filter_items(self.items.all(), search=search, status=status, category=category)
        return sorted(items, key=lambda i: (str(i.get("name", "")).lower(), i.get("id", "")))

    def get_item(self, item_id: str) -> dict:
        return self.items.require(item_id)

    def update_item(self, item_id: str, payload: dict) -> dict:
        existing = self.items.require(item_id)
        patch = validate_record(payload=payload, policy=INVENTORY_POLICY, partial=True)
        require_non_negative(patch, "currentStock", "minStock", "maxStock", "reservedStock", "purchasePrice", "salePrice")
        patch.update(derive_stock_fields({**existing, **patch}))
        self.items.update(item_id, patch)
        return self.items.require(item_id)

    def delete_item(self, item_id: str) -> None:
        self.items.require(item_id)
        self.items.delete(item_id)

    def subscribe(self, callback):
        return self.items.subscribe(callback)

    def adjust_stock(self, item_id: str, quantity: int, reason: str | None = None, staff: str | None = None) -> dict:
        """
        Apply a signed stock adjustment and log it as an in/out movement.

        Stock never goes below zero; the movement records the requested
        quantity, not the clipped one.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity == 0:
            raise ValidationError("quantity must be a non-zero integer")

        item = self.items.require(item_id)
        new_stock = max(0, (item.get("currentStock") or 0) + quantity)

        patch = {"currentStock": new_stock}
        patch.update(derive_stock_fields({**item, **patch}))
        self.items.update(item_id, patch)

        self.movements.create({
            "itemId": item_id,
            "itemName": item.get("name", ""),
            "type": "in" if quantity > 0 else "out",
            "quantity": abs(quantity),
            "reason": reason or "Stock adjustment",
            "staff": staff or "",
            "date": today_iso(),
            "reference": f"ADJ-{int(time.time() * 1000)}",
        })

        return self.items.require(item_id)

    def list_movements(self, item_id: str | None = None) -> list[dict]:
        movements = self.movements.all()
        if item_id:
            movements = [m for m in movements if m.get("itemId") == item_id]
        return sorted(movements, key=lambda m: m.get("createdAt", ""), reverse=True)
