# Overview: Service-layer operations for products; encapsulates business logic and store work.

"""
Products Service

Products live in the `products` collection; every pricing change is also
appended to `products/<id>/history`. Stock movements recorded against
products (manual adjustments, POS sales) go to `stockMovements`.
"""
from __future__ import annotations

import csv
import io
import math
from typing import Iterable

from ..schemas import (
    PRODUCTS,
    STOCK_MOVEMENTS,
    PRICE_FIELDS,
    PRODUCT_POLICY,
    PRICE_HISTORY_POLICY,
    STOCK_MOVEMENT_POLICY,
    product_history_path,
)
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_half_up
from erp.time_utils import today_iso
from .document_store import Collection


CSV_COLUMNS = (
    "name", "code", "fabricType", "size", "color",
    "purchaseCost", "minSalePrice", "maxSalePrice", "currentPrice",
    "stock", "minStock", "supplier", "batchInfo",
)
CSV_NUMERIC_COLUMNS = {"purchaseCost", "minSalePrice", "maxSalePrice", "currentPrice"}
CSV_INTEGER_COLUMNS = {"stock", "minStock"}

CRITICAL_STOCK = 5
LOW_STOCK = 10


def enforce_rules_product(patch: dict, existing: dict | None = None) -> None:
    """
    Business rules that are not captured by the record policy alone.
    Keep these small and centralized.
    """
    require_non_negative(patch, *PRICE_FIELDS, "stock", "minStock", "maxStock")

    merged = {**(existing or {}), **patch}
    low, high = merged.get("minSalePrice"), merged.get("maxSalePrice")
    if low is not None and high is not None and high and low > high:
        raise ValidationError("minSalePrice cannot exceed maxSalePrice")


def margin_percentage(product: dict) -> int:
    """Markup over purchase cost, whole percent."""
    cost = product.get("purchaseCost") or 0
    if not cost:
        return 0
    return round_half_up((product.get("currentPrice", 0) - cost) / cost * 100)


def stock_level(stock: int) -> str:
    if stock <= CRITICAL_STOCK:
        return "critical"
    if stock <= LOW_STOCK:
        return "low"
    return "good"


def filter_products(products: Iterable[dict], search: str | None = None, status: str | None = None) -> list[dict]:
    term = (search or "").strip().lower()
    results = []
    for product in products:
        if status and status != "all" and product.get("status") != status:
            continue
        if term and term not in str(product.get("name", "")).lower() and term not in str(product.get("code", "")).lower():
            continue
        results.append(product)
    return results


def catalogue_summary(products: list[dict]) -> dict:
    margins = [margin_percentage(p) for p in products]
    return {
        "total_products": len(products),
        "active_products": sum(1 for p in products if p.get("status") == "active"),
        "average_margin": round_half_up(sum(margins) / len(margins)) if margins else 0,
        "stock_value": sum((p.get("currentPrice") or 0) * (p.get("stock") or 0) for p in products),
        "low_stock": sum(1 for p in products if stock_level(p.get("stock") or 0) != "good"),
    }


def _parse_csv_number(raw: str | None, *, integer: bool) -> float | int:
    # Unparseable cells are kept as NaN rather than rejected
    text = (raw or "").strip()
    try:
        value = float(text)
    except ValueError:
        return float("nan")
    if integer and math.isfinite(value):
        return int(value)
    return value


class ProductService:
    def __init__(self, store):
        self.store = store
        self.products = Collection(store, PRODUCTS, PRODUCT_POLICY)
        self.movements = Collection(store, STOCK_MOVEMENTS, STOCK_MOVEMENT_POLICY)

    def _history(self, product_id: str) -> Collection:
        return Collection(self.store, product_history_path(product_id), PRICE_HISTORY_POLICY)

    # ---------------------------------------------------------------- products

    def create_product(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        patch.setdefault("createdDate", today_iso())

        product_id = self.products.create(patch)
        if product_id:
            self.add_price_history(product_id, {"date": today_iso(), **{f: patch.get(f, 0) for f in PRICE_FIELDS}})
        return {**patch, "id": product_id}

    def list_products(self, search: str | None = None, status: str | None = None) -> list[dict]:
        products = filter_products(self.products.all(), search=search, status=status)
        return sorted(products, key=lambda p: (str(p.get("name", "")).lower(), p.get("id", "")))

    def get_product(self, product_id: str) -> dict:
        return self.products.require(product_id)

    def update_product(self, product_id: str, payload: dict) -> dict:
        existing = self.products.require(product_id)
        patch = validate_record(payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch, existing)

        self.products.update(product_id, patch)

        if any(f in patch and patch[f] != existing.get(f) for f in PRICE_FIELDS):
            merged = {**existing, **patch}
            self.add_price_history(product_id, {"date": today_iso(), **{f: merged.get(f, 0) for f in PRICE_FIELDS}})

        return self.products.require(product_id)

    def delete_product(self, product_id: str) -> None:
        self.products.require(product_id)
        self.products.delete(product_id)

    def subscribe(self, callback):
        return self.products.subscribe(callback)

    # ----------------------------------------------------------- price history

    def get_price_history(self, product_id: str) -> list[dict]:
        self.products.require(product_id)
        return sorted(self._history(product_id).all(), key=lambda e: (e.get("date", ""), e.get("createdAt", "")))

    def add_price_history(self, product_id: str, entry: dict) -> str | None:
        patch = validate_record(payload=entry, policy=PRICE_HISTORY_POLICY, partial=False)
        return self._history(product_id).create(patch)

    # --------------------------------------------------------- stock movements

    def list_stock_movements(self) -> list[dict]:
        return sorted(self.movements.all(), key=lambda m: m.get("createdAt", ""), reverse=True)

    def add_stock_movement(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=STOCK_MOVEMENT_POLICY, partial=False)
        require_non_negative(patch, "quantity")
        patch.setdefault("date", today_iso())
        movement_id = self.movements.create(patch)
        return {**patch, "id": movement_id}

    # -------------------------------------------------------------- csv import

    def import_csv(self, text: str) -> list[str]:
        """
        Bulk-create products from CSV text; returns the created ids.

        The header row must name every column in CSV_COLUMNS. Numeric cells
        that do not parse are stored as NaN.
        """
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        header = [h.strip() for h in (reader.fieldnames or [])]
        missing = [c for c in CSV_COLUMNS if c not in header]
        if missing:
            raise ValidationError(f"CSV is missing columns: {', '.join(missing)}")

        created = []
        for raw in reader:
            row = {(k or "").strip(): v for k, v in raw.items()}
            if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
                continue

            product = {**PRODUCT_POLICY.defaults}
            for column in CSV_COLUMNS:
                cell = row.get(column)
                if column in CSV_NUMERIC_COLUMNS:
                    product[column] = _parse_csv_number(cell, integer=False)
                elif column in CSV_INTEGER_COLUMNS:
                    product[column] = _parse_csv_number(cell, integer=True)
                else:
                    product[column] = (cell or "").strip()
            product["createdDate"] = today_iso()

            product_id = self.products.create(product)
            if product_id:
                created.append(product_id)
        return created
