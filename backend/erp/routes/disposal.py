# Overview: Flask API routes for stock disposal records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services.registry import get_services
from ..services.disposal_service import disposal_stats
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


disposal_bp = Blueprint("disposal", __name__, url_prefix="/api/disposal")


@disposal_bp.get("")
@require_auth
def list_records_route():
    try:
        records = get_services().disposal.list_records(
            condition=request.args.get("condition"),
            method=request.args.get("method"),
            search=request.args.get("search"),
        )
        return jsonify({"records": records, "stats": disposal_stats(records)}), 200
    except Exception:
        current_app.logger.exception("Failed to list disposal records")
        return jsonify({"error": "Internal server error"}), 500


@disposal_bp.post("")
@require_auth
def create_record_route():
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().disposal.create_record(payload)
        return jsonify({"record": record}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create disposal record")
        return jsonify({"error": "Internal server error"}), 500


@disposal_bp.get("/<record_id>")
@require_auth
def get_record_route(record_id: str):
    try:
        return jsonify({"record": get_services().disposal.get_record(record_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@disposal_bp.patch("/<record_id>")
@require_auth
def update_record_route(record_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().disposal.update_record(record_id, payload)
        return jsonify({"record": record}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update disposal record")
        return jsonify({"error": "Internal server error"}), 500


@disposal_bp.delete("/<record_id>")
@require_auth
def delete_record_route(record_id: str):
    try:
        get_services().disposal.delete_record(record_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete disposal record")
        return jsonify({"error": "Internal server error"}), 500
