# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services.registry import get_services
from ..services.inventory_service import inventory_summary, stock_level, stock_percentage
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _with_levels(item: dict) -> dict:
    return {**item, "stockLevel": stock_level(item), "stockPercentage": stock_percentage(item)}


@inventory_bp.get("")
@require_auth
def list_items_route():
    """
    List inventory items.

    Query params:
    - search: substring of name or code
    - status: available | reserved | damaged | out-of-stock | all
    - category: exact category | all
    """
    try:
        items = get_services().inventory.list_items(
            search=request.args.get("search"),
            status=request.args.get("status"),
            category=request.args.get("category"),
        )
        return jsonify({
            "items": [_with_levels(i) for i in items],
            "summary": inventory_summary(items),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("")
@require_auth
def create_item_route():
    payload = request.get_json(silent=True) or {}
    try:
        item = get_services().inventory.create_item(payload)
        return jsonify({"item": item}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<item_id>")
@require_auth
def get_item_route(item_id: str):
    try:
        item = get_services().inventory.get_item(item_id)
        return jsonify({"item": _with_levels(item)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@inventory_bp.put("/<item_id>")
@inventory_bp.patch("/<item_id>")
@require_auth
def update_item_route(item_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        item = get_services().inventory.update_item(item_id, payload)
        return jsonify({"item": item}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/<item_id>")
@require_auth
def delete_item_route(item_id: str):
    try:
        get_services().inventory.delete_item(item_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/<item_id>/adjust")
@require_auth
def adjust_stock_route(item_id: str):
    """
    Apply a signed stock adjustment.

    Body: {"quantity": int (negative removes stock), "reason": str, "staff": str}
    """
    data = request.get_json(silent=True) or {}
    try:
        item = get_services().inventory.adjust_stock(
            item_id,
            data.get("quantity"),
            reason=data.get("reason"),
            staff=data.get("staff") or g.current_user.display_name,
        )
        return jsonify({"item": item}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/movements")
@require_auth
def list_movements_route():
    movements = get_services().inventory.list_movements(item_id=request.args.get("item_id"))
    return jsonify({"movements": movements}), 200
