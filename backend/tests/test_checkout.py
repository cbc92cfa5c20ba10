"""
POS checkout tests.

Covers discount distribution, the all-or-nothing stock check, the effects
of a completed sale on stock, bargaining and staff metrics, and credit sales.
"""

from datetime import datetime

import pytest

from erp.services.checkout import (
    CartLine,
    CheckoutError,
    blend_performance_score,
    checkout,
    distribute_discount,
    parse_cart,
)


def _lines(*pairs):
    return [CartLine(product_id=f"p{i}", quantity=q, price=p) for i, (p, q) in enumerate(pairs)]


class TestDistributeDiscount:
    def test_proportional_split(self):
        lines = _lines((1000, 2), (500, 1))
        assert distribute_discount(lines, 300) == [240, 60]

    @pytest.mark.parametrize("pairs, discount", [
        (((333, 1), (333, 1), (334, 1)), 100),
        (((199.99, 3), (49.5, 2), (10, 7)), 77),
        (((1, 1), (1, 1), (1, 1)), 2),
    ])
    def test_shares_add_up_to_cart_discount(self, pairs, discount):
        shares = distribute_discount(_lines(*pairs), discount)
        assert sum(shares) == pytest.approx(discount)
        assert len(shares) == len(pairs)

    def test_zero_subtotal_gives_zero_shares(self):
        assert distribute_discount(_lines((0, 1), (0, 2)), 50) == [0, 0]

    def test_empty_cart(self):
        assert distribute_discount([], 50) == []


class TestPerformanceScore:
    def test_blends_previous_score_with_achievement(self):
        assert blend_performance_score(75, 60000, 50000) == 83

    def test_no_target_keeps_score(self):
        assert blend_performance_score(75, 60000, 0) == 75


def test_parse_cart_merges_repeated_products():
    lines = parse_cart([
        {"product_id": "a", "quantity": 1},
        {"product_id": "a", "quantity": 2, "price": 900},
    ])
    assert len(lines) == 1
    assert lines[0].quantity == 3
    assert lines[0].price == 900


def test_parse_cart_rejects_zero_quantity():
    with pytest.raises(CheckoutError, match="at least 1"):
        parse_cart([{"product_id": "a", "quantity": 0}])


def test_shortage_lists_every_line_and_writes_nothing(services, product, second_product, employee):
    with pytest.raises(CheckoutError) as exc:
        checkout(
            services,
            items=[
                {"product_id": product["id"], "quantity": 11},
                {"product_id": second_product["id"], "quantity": 5},
            ],
            payment_method="cash",
            staff_id=employee["id"],
        )

    assert str(exc.value) == (
        "Insufficient stock. Cotton Kurta: requested 11, available 10; "
        "Silk Dupatta: requested 5, available 4"
    )
    assert len(exc.value.details["items"]) == 2
    assert services.sales.sales.all() == []
    assert services.products.get_product(product["id"])["stock"] == 10
    assert services.employees.get_employee(employee["id"])["monthlySales"] == 40000


def test_unknown_product_counts_as_unavailable(services, employee):
    with pytest.raises(CheckoutError, match="available 0"):
        checkout(
            services,
            items=[{"product_id": "ghost", "quantity": 1}],
            payment_method="cash",
            staff_id=employee["id"],
        )


def test_checkout_applies_discount_stock_bargains_and_staff(services, product, second_product, employee):
    sale = checkout(
        services,
        items=[
            {"product_id": product["id"], "quantity": 2},
            {"product_id": second_product["id"], "quantity": 1},
        ],
        cart_discount=300,
        payment_method="cash",
        staff_id=employee["id"],
        customer_name="Sara",
    )

    assert sale["subtotal"] == 2500
    assert sale["total"] == 2200
    assert sale["tax"] == 0
    assert sale["paymentStatus"] == "paid"
    assert sale["staffMember"] == "Ahmed Ali"
    assert sale["invoiceNumber"].startswith("INV-")

    items = sale["items"]
    assert [i["discount"] for i in items] == [240, 60]
    assert [i["finalPrice"] for i in items] == [880, 440]
    reconstructed = sum(i["finalPrice"] * i["quantity"] + i["discount"] for i in items)
    assert reconstructed == pytest.approx(sale["subtotal"])

    assert services.products.get_product(product["id"])["stock"] == 8
    assert services.products.get_product(second_product["id"])["stock"] == 3

    movements = services.products.list_stock_movements()
    assert len(movements) == 2
    assert {m["type"] for m in movements} == {"out"}

    bargains = services.bargaining.list_records()
    assert len(bargains) == 2
    assert {b["status"] for b in bargains} == {"approved"}
    kurta = next(b for b in bargains if b["productName"] == "Cotton Kurta")
    assert kurta["discountAmount"] == 240
    assert kurta["discountPercentage"] == 12
    assert kurta["invoiceNumber"] == sale["invoiceNumber"]

    staff = services.employees.get_employee(employee["id"])
    assert staff["monthlySales"] == 42200
    assert staff["totalSales"] == 2200
    assert staff["totalCommission"] == 55
    assert staff["performanceScore"] == 78


def test_price_override_drives_score(services, product, employee):
    sale = checkout(
        services,
        items=[{"product_id": product["id"], "quantity": 2, "price": 10000}],
        payment_method="card",
        staff_id=employee["id"],
    )

    assert sale["total"] == 20000
    assert services.bargaining.list_records() == []
    assert services.employees.get_employee(employee["id"])["performanceScore"] == 83


def test_non_finite_line_price_names_the_line(services, product, employee):
    with pytest.raises(CheckoutError, match="Cart line 1 price must be a finite number"):
        checkout(
            services,
            items=[{"product_id": product["id"], "quantity": 1, "price": "inf"}],
            payment_method="cash",
            staff_id=employee["id"],
        )

    assert services.sales.sales.all() == []


def test_negative_remainder_share_is_not_a_bargain(services, employee):
    products = [
        services.products.create_product({
            "name": f"Scarf {n}", "code": f"SC-{n}", "fabricType": "Chiffon",
            "purchaseCost": 50, "currentPrice": 100, "stock": 5,
        })
        for n in range(4)
    ]
    assert distribute_discount(_lines(*[(100, 1)] * 4), 2) == [1, 1, 1, -1]

    sale = checkout(
        services,
        items=[{"product_id": p["id"], "quantity": 1} for p in products],
        cart_discount=2,
        payment_method="cash",
        staff_id=employee["id"],
    )

    assert sale["total"] == 398
    bargains = services.bargaining.list_records()
    assert len(bargains) == 3
    assert all(b["discountAmount"] > 0 for b in bargains)


def test_invoice_number_carries_milliseconds(services):
    stamp = datetime(2026, 10, 17, 9, 5, 7, 42000)
    assert services.sales.next_invoice_number(stamp) == "INV-20261017090507042"


def test_credit_sale_needs_customer_name(services, product, employee):
    with pytest.raises(CheckoutError, match="customer name"):
        checkout(
            services,
            items=[{"product_id": product["id"], "quantity": 1}],
            payment_method="credit",
            staff_id=employee["id"],
        )


def test_credit_sale_opens_credit_entry(services, product, employee):
    sale = checkout(
        services,
        items=[{"product_id": product["id"], "quantity": 1}],
        payment_method="credit",
        staff_id=employee["id"],
        customer_name="Bilal",
        customer_phone="0300 1234567",
    )

    assert sale["paymentStatus"] == "pending"
    entries = services.ledger.list_entries("credit")
    assert len(entries) == 1
    assert entries[0]["amount"] == 1000
    assert entries[0]["remainingAmount"] == 1000
    assert entries[0]["invoiceNumber"] == sale["invoiceNumber"]
    assert entries[0]["dueDate"] > sale["date"]


@pytest.mark.parametrize("overrides, message", [
    ({"payment_method": None}, "payment method"),
    ({"payment_method": "cheque"}, "payment method"),
    ({"staff_id": None}, "staff member"),
    ({"staff_id": "nobody"}, "Staff member not found"),
    ({"cart_discount": 5000}, "exceed the subtotal"),
    ({"cart_discount": -1}, "cannot be negative"),
    ({"cart_discount": "nan"}, "discount must be a finite number"),
    ({"items": []}, "Cart is empty"),
])
def test_checkout_rejects_bad_input(services, product, employee, overrides, message):
    kwargs = {
        "items": [{"product_id": product["id"], "quantity": 1}],
        "payment_method": "cash",
        "staff_id": employee["id"],
    }
    kwargs.update(overrides)

    with pytest.raises(CheckoutError, match=message):
        checkout(services, **kwargs)

    assert services.sales.sales.all() == []
