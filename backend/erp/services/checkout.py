# Overview: POS checkout; turns a cart into a sale and applies its effects on stock, bargaining and staff metrics.

"""
POS checkout

A cart is a list of {product id, quantity, unit price} plus one cart-level
discount. Checkout runs these steps in order and stops at the first error:

1. validate the cart, payment method and staff member
2. re-check every line against the latest product stock (all-or-nothing)
3. subtotal / total
4. spread the cart discount over the lines in proportion to their value
5. persist the sale
6. decrement product stock line by line
7. log a pre-approved bargain record for every discounted line
8. update the staff member's running totals and performance score

Steps 5-8 are separate store writes. A failure half way leaves the earlier
writes in place; nothing is rolled back.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ..schemas import PAYMENT_METHODS, CUSTOMER_TYPES, DELIVERY_TYPES
from ..money import clamp, round_amount, round_half_up
from ..validation import NotFoundError
from erp.time_utils import utcnow


PERFORMANCE_WEIGHT_CURRENT = 0.7
PERFORMANCE_WEIGHT_ACHIEVEMENT = 0.3
CREDIT_TERM_DAYS = 30


class CheckoutError(Exception):
    """Raised when a cart cannot be checked out; nothing has been written."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CartLine:
    product_id: str
    quantity: int
    price: float | None = None
    name: str = ""
    code: str = ""

    @property
    def line_total(self) -> float:
        return (self.price or 0) * self.quantity


def _as_number(value: Any, field: str, *, integer: bool = False):
    if isinstance(value, bool):
        raise CheckoutError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise CheckoutError(f"{field} must be a number")
    if not math.isfinite(number):
        raise CheckoutError(f"{field} must be a finite number")
    if integer:
        if not number.is_integer():
            raise CheckoutError(f"{field} must be a whole number")
        return int(number)
    return int(number) if number.is_integer() else number


def parse_cart(raw_items: Any) -> list[CartLine]:
    """Normalize a JSON cart; repeated products are merged into one line."""
    if not isinstance(raw_items, list):
        raise CheckoutError("items must be a list")

    lines: dict[str, CartLine] = {}
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise CheckoutError(f"Cart line {index} is invalid")
        product_id = str(raw.get("product_id") or raw.get("productId") or raw.get("id") or "").strip()
        if not product_id:
            raise CheckoutError(f"Cart line {index} has no product")

        quantity = _as_number(raw.get("quantity"), f"Cart line {index} quantity", integer=True)
        if quantity <= 0:
            raise CheckoutError(f"Cart line {index} quantity must be at least 1")

        price = raw.get("price")
        if price is not None:
            price = _as_number(price, f"Cart line {index} price")
            if price < 0:
                raise CheckoutError(f"Cart line {index} price cannot be negative")

        if product_id in lines:
            lines[product_id].quantity += quantity
            if price is not None:
                lines[product_id].price = price
        else:
            lines[product_id] = CartLine(product_id=product_id, quantity=quantity, price=price)

    return list(lines.values())


def cart_subtotal(lines: list[CartLine]) -> float:
    return round_amount(sum(line.line_total for line in lines))


def distribute_discount(lines: list[CartLine], cart_discount: float) -> list[float]:
    """
    Split one cart-level discount across lines in proportion to line value.

    Every line but the last gets its share rounded to the nearest unit; the
    last line takes whatever remains, so the shares always add up to the
    cart discount exactly. A zero subtotal gives every line zero.
    """
    if not lines:
        return []

    subtotal = sum(line.line_total for line in lines)
    if subtotal == 0:
        return [0] * len(lines)

    shares: list[float] = []
    allocated = 0
    for line in lines[:-1]:
        share = round_half_up(line.line_total / subtotal * cart_discount)
        shares.append(share)
        allocated += share
    shares.append(round_amount(cart_discount - allocated))
    return shares


def find_stock_shortages(lines: list[CartLine], products: list[dict]) -> list[dict]:
    """Every line asking for more than the product currently has in stock."""
    by_id = {p.get("id"): p for p in products}
    shortages = []
    for line in lines:
        product = by_id.get(line.product_id)
        available = (product or {}).get("stock") or 0
        if line.quantity > available:
            shortages.append({
                "product_id": line.product_id,
                "name": (product or {}).get("name") or line.name or line.product_id,
                "code": (product or {}).get("code") or line.code,
                "requested_quantity": line.quantity,
                "available": available,
            })
    return shortages


def format_shortages(shortages: list[dict]) -> str:
    parts = [
        f"{s['name']}: requested {s['requested_quantity']}, available {s['available']}"
        for s in shortages
    ]
    return "Insufficient stock. " + "; ".join(parts)


def blend_performance_score(current_score: float, monthly_sales: float, monthly_target: float) -> int:
    """
    70% previous score, 30% target achievement (capped at 100%), clamped to
    0-100 and rounded. Without a monthly target the score is left as it was.
    """
    if not monthly_target or monthly_target <= 0:
        return round_half_up(clamp(current_score, 0, 100))

    achievement = monthly_sales / monthly_target * 100
    blended = (
        current_score * PERFORMANCE_WEIGHT_CURRENT
        + min(achievement, 100) * PERFORMANCE_WEIGHT_ACHIEVEMENT
    )
    return round_half_up(clamp(blended, 0, 100))


def _build_items(lines: list[CartLine], discounts: list[float]) -> list[dict]:
    items = []
    for line, discount in zip(lines, discounts):
        items.append({
            "id": line.product_id,
            "name": line.name,
            "code": line.code,
            "quantity": line.quantity,
            "originalPrice": line.price,
            "discount": discount,
            "finalPrice": line.price - discount / line.quantity,
        })
    return items


def checkout(
    services,
    *,
    items: Any,
    cart_discount: Any = 0,
    payment_method: str | None = None,
    staff_id: str | None = None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    customer_type: str | None = None,
    delivery_type: str | None = None,
    delivery_address: str | None = None,
    notes: str | None = None,
) -> dict:
    """Run a POS checkout and return the persisted sale record."""
    # 1. cart, payment method, staff member
    lines = parse_cart(items)
    if not lines:
        raise CheckoutError("Cart is empty")

    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError("Select a payment method", details={"allowed": list(PAYMENT_METHODS)})

    if not staff_id:
        raise CheckoutError("Select the staff member handling this sale")
    try:
        staff = services.employees.get_employee(staff_id)
    except NotFoundError:
        raise CheckoutError("Staff member not found")

    customer_type = customer_type or "walk-in"
    if customer_type not in CUSTOMER_TYPES:
        raise CheckoutError(f"customerType must be one of: {', '.join(CUSTOMER_TYPES)}")
    delivery_type = delivery_type or "pickup"
    if delivery_type not in DELIVERY_TYPES:
        raise CheckoutError(f"deliveryType must be one of: {', '.join(DELIVERY_TYPES)}")

    discount = _as_number(cart_discount or 0, "discount")
    if discount < 0:
        raise CheckoutError("Discount cannot be negative")

    if payment_method == "credit" and not (customer_name or "").strip():
        raise CheckoutError("Credit sales need a customer name")

    # 2. stock against the latest product list
    products = services.products.products.all()
    shortages = find_stock_shortages(lines, products)
    if shortages:
        raise CheckoutError(format_shortages(shortages), details={"items": shortages})

    by_id = {p["id"]: p for p in products}
    for line in lines:
        product = by_id[line.product_id]
        line.name = product.get("name", "")
        line.code = product.get("code", "")
        if line.price is None:
            line.price = product.get("currentPrice") or 0

    # 3. totals
    subtotal = cart_subtotal(lines)
    if discount > subtotal:
        raise CheckoutError("Discount cannot exceed the subtotal")
    total = round_amount(max(0, subtotal - discount))

    # 4. discount per line
    discounts = distribute_discount(lines, discount)

    # 5. sale record
    now = utcnow()
    sale = services.sales.create_sale({
        "invoiceNumber": services.sales.next_invoice_number(now),
        "date": now.date().isoformat(),
        "time": now.strftime("%H:%M"),
        "customerName": (customer_name or "").strip() or "Walk-in Customer",
        "customerPhone": (customer_phone or "").strip(),
        "customerType": customer_type,
        "items": _build_items(lines, discounts),
        "subtotal": subtotal,
        "discount": discount,
        "tax": 0,
        "total": total,
        "paymentMethod": payment_method,
        "paymentStatus": "pending" if payment_method == "credit" else "paid",
        "deliveryStatus": "pickup" if delivery_type == "pickup" else "pending",
        "deliveryType": delivery_type,
        "deliveryAddress": (delivery_address or "").strip(),
        "staffMember": staff.get("name", ""),
        "staffId": staff_id,
        "notes": (notes or "").strip(),
        "returnStatus": "none",
    })

    # 6. stock, one product at a time from the stock read in step 2
    for line in lines:
        remaining = (by_id[line.product_id].get("stock") or 0) - line.quantity
        services.products.products.update(line.product_id, {"stock": remaining})
        services.products.add_stock_movement({
            "itemId": line.product_id,
            "itemName": line.name,
            "type": "out",
            "quantity": line.quantity,
            "reason": "POS sale",
            "staff": staff.get("name", ""),
            "reference": sale["invoiceNumber"],
        })

    # 7. bargain records for discounted lines
    for item, line in zip(sale["items"], lines):
        if item["discount"] > 0:
            services.bargaining.record_sale_discount(
                sale=sale,
                item=item,
                purchase_cost=by_id[line.product_id].get("purchaseCost") or 0,
                category=by_id[line.product_id].get("fabricType", ""),
            )

    # 8. staff totals and score
    services.employees.record_sale(staff_id, total)

    if payment_method == "credit":
        services.ledger.create_credit_entry({
            "customerName": sale["customerName"],
            "customerPhone": sale["customerPhone"],
            "amount": total,
            "saleDate": sale["date"],
            "dueDate": (now + timedelta(days=CREDIT_TERM_DAYS)).date().isoformat(),
            "invoiceNumber": sale["invoiceNumber"],
            "notes": f"Credit sale {sale['invoiceNumber']}",
        })

    return sale
