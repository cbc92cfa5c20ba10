# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/erp/routes/products.py
"""
Product catalogue routes.

All routes require authentication. Price changes are recorded in the
product's price history by the service.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services.registry import get_services
from ..services.products_service import catalogue_summary, margin_percentage, stock_level
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _with_metrics(product: dict) -> dict:
    return {
        **product,
        "marginPercentage": margin_percentage(product),
        "stockLevel": stock_level(product.get("stock") or 0),
    }


@products_bp.get("")
@require_auth
def list_products_route():
    """
    List products.

    Query params:
    - search: substring of name or code
    - status: active | inactive | discontinued | all
    """
    try:
        products = get_services().products.list_products(
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return jsonify({
            "products": [_with_metrics(p) for p in products],
            "summary": catalogue_summary(products),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = get_services().products.create_product(payload)
        return jsonify({"product": product}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        product = get_services().products.get_product(product_id)
        return jsonify({"product": _with_metrics(product)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@products_bp.put("/<product_id>")
@products_bp.patch("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        product = get_services().products.update_product(product_id, payload)
        return jsonify({"product": product}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    try:
        get_services().products.delete_product(product_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>/history")
@require_auth
def price_history_route(product_id: str):
    try:
        history = get_services().products.get_price_history(product_id)
        return jsonify({"history": history}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@products_bp.get("/movements")
@require_auth
def list_movements_route():
    movements = get_services().products.list_stock_movements()
    return jsonify({"movements": movements}), 200


@products_bp.post("/movements")
@require_auth
def create_movement_route():
    payload = request.get_json(silent=True) or {}
    try:
        movement = get_services().products.add_stock_movement(payload)
        return jsonify({"movement": movement}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/import")
@require_auth
def import_products_route():
    """
    Bulk-create products from CSV.

    Accepts a multipart upload in the `file` field or the raw CSV as the
    request body.
    """
    upload = request.files.get("file")
    if upload is not None:
        raw = upload.read()
    else:
        raw = request.get_data()

    if not raw:
        return jsonify({"error": "CSV file required"}), 400

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return jsonify({"error": "CSV must be UTF-8 encoded"}), 400

    try:
        created = get_services().products.import_csv(text)
        return jsonify({"created": len(created), "ids": created}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to import products")
        return jsonify({"error": "Internal server error"}), 500
