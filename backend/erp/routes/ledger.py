# Overview: Flask API routes for the credit/debit ledger; parses input and returns JSON responses.

# backend/erp/routes/ledger.py
"""
Credit/debit ledger routes.

`<kind>` is `credit` (customer receivables) or `debit` (supplier payables).
"""

from flask import Blueprint, request, jsonify, current_app

from ..services.registry import get_services
from ..services.ledger_service import LedgerError, ledger_summary
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("/summary")
@require_auth
def summary_route():
    ledger = get_services().ledger
    try:
        return jsonify(ledger_summary(ledger.credits.all(), ledger.debits.all())), 200
    except Exception:
        current_app.logger.exception("Failed to build ledger summary")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.get("/<kind>")
@require_auth
def list_entries_route(kind: str):
    try:
        entries = get_services().ledger.list_entries(
            kind,
            status=request.args.get("status"),
            search=request.args.get("search"),
        )
        return jsonify({"entries": entries}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list ledger entries")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/<kind>")
@require_auth
def create_entry_route(kind: str):
    payload = request.get_json(silent=True) or {}
    ledger = get_services().ledger
    try:
        if kind == "credit":
            entry = ledger.create_credit_entry(payload)
        elif kind == "debit":
            entry = ledger.create_debit_entry(payload)
        else:
            return jsonify({"error": "Ledger kind must be credit or debit"}), 400
        return jsonify({"entry": entry}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create ledger entry")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.get("/<kind>/<entry_id>")
@require_auth
def get_entry_route(kind: str, entry_id: str):
    try:
        return jsonify({"entry": get_services().ledger.get_entry(kind, entry_id)}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@ledger_bp.patch("/<kind>/<entry_id>")
@require_auth
def update_entry_route(kind: str, entry_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        entry = get_services().ledger.update_entry(kind, entry_id, payload)
        return jsonify({"entry": entry}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update ledger entry")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.delete("/<kind>/<entry_id>")
@require_auth
def delete_entry_route(kind: str, entry_id: str):
    try:
        get_services().ledger.delete_entry(kind, entry_id)
        return jsonify({"ok": True}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete ledger entry")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/<kind>/<entry_id>/payments")
@require_auth
def record_payment_route(kind: str, entry_id: str):
    """
    Record a payment against an entry.

    Body: {"amount", "method"?, "reference"?, "notes"?, "date"?}
    Rejected when the amount is not positive or exceeds the remaining balance.
    """
    payload = request.get_json(silent=True) or {}
    try:
        entry = get_services().ledger.record_payment(kind, entry_id, payload)
        return jsonify({"entry": entry}), 200
    except LedgerError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.get("/credit/<entry_id>/reminder")
@require_auth
def reminder_route(entry_id: str):
    try:
        return jsonify(get_services().ledger.reminder(entry_id)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
