# Overview: Flask API routes for employee, attendance and payroll operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services.registry import get_services
from ..services.employee_service import performance_band, staff_summary
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _with_band(employee: dict) -> dict:
    return {**employee, "performanceBand": performance_band(employee.get("performanceScore") or 0)}


@employees_bp.get("")
@require_auth
def list_employees_route():
    try:
        employees = get_services().employees.list_employees(status=request.args.get("status"))
        return jsonify({
            "employees": [_with_band(e) for e in employees],
            "summary": staff_summary(employees),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list employees")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.post("")
@require_auth
def create_employee_route():
    payload = request.get_json(silent=True) or {}
    try:
        employee = get_services().employees.create_employee(payload)
        return jsonify({"employee": employee}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.get("/<employee_id>")
@require_auth
def get_employee_route(employee_id: str):
    try:
        employee = get_services().employees.get_employee(employee_id)
        return jsonify({"employee": _with_band(employee)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@employees_bp.put("/<employee_id>")
@employees_bp.patch("/<employee_id>")
@require_auth
def update_employee_route(employee_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        employee = get_services().employees.update_employee(employee_id, payload)
        return jsonify({"employee": employee}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.delete("/<employee_id>")
@require_auth
def delete_employee_route(employee_id: str):
    try:
        get_services().employees.delete_employee(employee_id)
        return jsonify({"ok": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete employee")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------- attendance

@employees_bp.get("/attendance")
@require_auth
def list_attendance_route():
    records = get_services().employees.list_attendance(
        employee_id=request.args.get("employee_id"),
        date=request.args.get("date"),
    )
    return jsonify({"attendance": records}), 200


@employees_bp.post("/attendance")
@require_auth
def record_attendance_route():
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().employees.record_attendance(payload)
        return jsonify({"attendance": record}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to record attendance")
        return jsonify({"error": "Internal server error"}), 500


# ------------------------------------------------------------------ payroll

@employees_bp.get("/salaries")
@require_auth
def list_salaries_route():
    records = get_services().employees.list_salary_records(
        month=request.args.get("month"),
        employee_id=request.args.get("employee_id"),
    )
    return jsonify({"salaries": records}), 200


@employees_bp.post("/salaries")
@require_auth
def create_salary_route():
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().employees.create_salary_record(payload)
        return jsonify({"salary": record}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create salary record")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.patch("/salaries/<record_id>")
@require_auth
def update_salary_route(record_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        record = get_services().employees.update_salary_record(record_id, payload)
        return jsonify({"salary": record}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update salary record")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.post("/salaries/<record_id>/pay")
@require_auth
def pay_salary_route(record_id: str):
    try:
        record = get_services().employees.mark_salary_paid(record_id)
        return jsonify({"salary": record}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to mark salary paid")
        return jsonify({"error": "Internal server error"}), 500
