# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/erp/routes/sales.py
"""Sales API routes: POS checkout, the sales ledger and invoice delivery"""

from flask import Blueprint, request, jsonify, current_app, url_for

from ..services.registry import get_services
from ..services import checkout as checkout_service
from ..services.checkout import CheckoutError
from ..services.invoice_service import render_invoice_html, invoice_whatsapp_link
from ..services.sales_service import sales_ledger_summary, customer_history
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Turn a POS cart into a sale.

    Body:
    - items: [{"product_id", "quantity", "price"?}]
    - discount: cart-level discount amount
    - payment_method: cash | card | mobile | credit
    - staff_id: employee handling the sale
    - customer_name, customer_phone, customer_type, delivery_type,
      delivery_address, notes (optional)
    """
    data = request.get_json(silent=True) or {}
    try:
        sale = checkout_service.checkout(
            get_services(),
            items=data.get("items"),
            cart_discount=data.get("discount", 0),
            payment_method=data.get("payment_method"),
            staff_id=data.get("staff_id"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            customer_type=data.get("customer_type"),
            delivery_type=data.get("delivery_type"),
            delivery_address=data.get("delivery_address"),
            notes=data.get("notes"),
        )
        return jsonify({
            "sale": sale,
            "invoice_url": url_for("sales.invoice_route", sale_id=sale["id"]),
            "whatsapp_url": invoice_whatsapp_link(sale),
        }), 201

    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to complete checkout")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales ledger.

    Query params: search (invoice, customer name or phone), delivery_status,
    payment_status.
    """
    try:
        sales = get_services().sales.list_sales(
            search=request.args.get("search"),
            delivery_status=request.args.get("delivery_status"),
            payment_status=request.args.get("payment_status"),
        )
        return jsonify({"sales": sales, "summary": sales_ledger_summary(sales)}), 200
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/customers")
@require_auth
def customers_route():
    try:
        sales = get_services().sales.list_sales()
        return jsonify({"customers": customer_history(sales)}), 200
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    try:
        return jsonify({"sale": get_services().sales.get_sale(sale_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@sales_bp.patch("/<sale_id>")
@require_auth
def update_sale_status_route(sale_id: str):
    """Delivery, payment and return status edits; line items and totals are fixed."""
    payload = request.get_json(silent=True) or {}
    try:
        sale = get_services().sales.update_status(sale_id, payload)
        return jsonify({"sale": sale}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<sale_id>")
@require_auth
def delete_sale_route(sale_id: str):
    try:
        get_services().sales.delete_sale(sale_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<sale_id>/invoice")
@require_auth
def invoice_route(sale_id: str):
    """Printable HTML invoice."""
    try:
        sale = get_services().sales.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return render_invoice_html(sale), 200, {"Content-Type": "text/html; charset=utf-8"}


@sales_bp.get("/<sale_id>/whatsapp")
@require_auth
def whatsapp_route(sale_id: str):
    try:
        sale = get_services().sales.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"url": invoice_whatsapp_link(sale)}), 200
