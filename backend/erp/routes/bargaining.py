# Overview: Flask API routes for bargaining records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services.registry import get_services
from ..services.bargaining_service import bargain_stats, discount_distribution
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


bargaining_bp = Blueprint("bargaining", __name__, url_prefix="/api/bargaining")


@bargaining_bp.get("")
@require_auth
def list_records_route():
    try:
        records = get_services().bargaining.list_records(
            status=request.args.get("status"),
            search=request.args.get("search"),
        )
        return jsonify({
            "records": records,
            "stats": bargain_stats(records),
            "distribution": discount_distribution(records),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list bargain records")
        return jsonify({"error": "Internal server error"}), 500


@bargaining_bp.post("")
@require_auth
def create_record_route():
    """Discounts above 20% are created pending manager approval."""
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().bargaining.create_record(payload)
        return jsonify({"record": record}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create bargain record")
        return jsonify({"error": "Internal server error"}), 500


@bargaining_bp.get("/<record_id>")
@require_auth
def get_record_route(record_id: str):
    try:
        return jsonify({"record": get_services().bargaining.get_record(record_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@bargaining_bp.post("/<record_id>/approve")
@require_auth
def approve_route(record_id: str):
    try:
        record = get_services().bargaining.approve(record_id, approved_by=g.current_user.display_name)
        return jsonify({"record": record}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to approve bargain")
        return jsonify({"error": "Internal server error"}), 500


@bargaining_bp.post("/<record_id>/reject")
@require_auth
def reject_route(record_id: str):
    try:
        record = get_services().bargaining.reject(record_id, approved_by=g.current_user.display_name)
        return jsonify({"record": record}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to reject bargain")
        return jsonify({"error": "Internal server error"}), 500


@bargaining_bp.delete("/<record_id>")
@require_auth
def delete_record_route(record_id: str):
    try:
        get_services().bargaining.delete_record(record_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete bargain record")
        return jsonify({"error": "Internal server error"}), 500
