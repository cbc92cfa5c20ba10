# Overview: Generated sale documents; printable HTML invoice, plain-text summary and messaging deep link.

from __future__ import annotations

import re
from urllib.parse import quote

from flask import current_app, render_template

from ..money import round_amount


WHATSAPP_BASE_URL = "https://wa.me/"


def format_money(amount, symbol: str | None = None) -> str:
    if symbol is None:
        symbol = current_app.config.get("CURRENCY_SYMBOL", "Rs")
    value = round_amount(amount or 0)
    if isinstance(value, int):
        return f"{symbol}{value:,}"
    return f"{symbol}{value:,.2f}"


def line_total(item: dict) -> float:
    """What the customer paid for one sale line after its share of the discount."""
    return round_amount((item.get("finalPrice") or 0) * (item.get("quantity") or 0))


def render_invoice_html(sale: dict) -> str:
    """Printable, inline-styled invoice page for one sale snapshot."""
    return render_template(
        "invoice.html",
        sale=sale,
        items=sale.get("items") or [],
        shop_name=current_app.config.get("SHOP_NAME", ""),
        money=format_money,
        line_total=line_total,
    )


def invoice_text(sale: dict) -> str:
    """Plain-text invoice summary, used as the body of the messaging link."""
    shop_name = current_app.config.get("SHOP_NAME", "")
    lines = [f"*{shop_name}*"] if shop_name else []
    lines += [
        f"Invoice: {sale.get('invoiceNumber', '')}",
        f"Date: {sale.get('date', '')} {sale.get('time', '')}".rstrip(),
        f"Customer: {sale.get('customerName') or 'Walk-in Customer'}",
        "",
        "Items:",
    ]
    for item in sale.get("items") or []:
        lines.append(
            f"- {item.get('name', '')} x{item.get('quantity', 0)} "
            f"@ {format_money(item.get('originalPrice'))} = {format_money(line_total(item))}"
        )
    lines.append("")
    lines.append(f"Subtotal: {format_money(sale.get('subtotal'))}")
    if sale.get("discount"):
        lines.append(f"Discount: -{format_money(sale.get('discount'))}")
    lines.append(f"Total: {format_money(sale.get('total'))}")
    lines.append(f"Payment: {sale.get('paymentMethod', '')}")
    lines.append("")
    lines.append("Thank you for shopping with us!")
    return "\n".join(lines)


def whatsapp_link(phone: str | None, message: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    return f"{WHATSAPP_BASE_URL}{digits}?text={quote(message, safe='')}"


def invoice_whatsapp_link(sale: dict) -> str:
    return whatsapp_link(sale.get("customerPhone"), invoice_text(sale))
