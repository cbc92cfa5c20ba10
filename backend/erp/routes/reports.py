# Overview: Flask API routes for the dashboard and reports; parses input and returns JSON responses.

# backend/erp/routes/reports.py
"""
Dashboard and report endpoints.

Every endpoint loads the collections it needs in full and aggregates them
in memory on each request.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services.registry import get_services
from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    services = get_services()
    try:
        report = reporting_service.dashboard(
            sales=services.sales.sales.all(),
            products=services.products.products.all(),
            employees=services.employees.employees.all(),
            credits=services.ledger.credits.all(),
            bargains=services.bargaining.records.all(),
        )
        return jsonify(report), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales")
@require_auth
def sales_report_route():
    """
    Sales grouped by period.

    Query params:
    - start, end: YYYY-MM-DD (inclusive, optional)
    - group_by: day | week | month (default day)
    """
    services = get_services()
    try:
        report = reporting_service.sales_report(
            services.sales.sales.all(),
            services.products.products.all(),
            start=request.args.get("start"),
            end=request.args.get("end"),
            group_by=request.args.get("group_by", "day"),
        )
        return jsonify(report), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/categories")
@require_auth
def category_report_route():
    services = get_services()
    rows = reporting_service.category_report(services.sales.sales.all(), services.products.products.all())
    return jsonify({"categories": rows}), 200


@reports_bp.get("/employees")
@require_auth
def employee_report_route():
    rows = reporting_service.employee_performance(get_services().employees.employees.all())
    return jsonify({"employees": rows}), 200


@reports_bp.get("/inventory")
@require_auth
def inventory_report_route():
    rows = reporting_service.inventory_report(get_services().products.products.all())
    return jsonify({"categories": rows}), 200


@reports_bp.get("/customers")
@require_auth
def customer_report_route():
    return jsonify(reporting_service.customer_report(get_services().sales.sales.all())), 200


@reports_bp.get("/profit-margins")
@require_auth
def profit_margin_route():
    services = get_services()
    rows = reporting_service.profit_margin_report(services.products.products.all(), services.sales.sales.all())
    return jsonify({"products": rows}), 200


@reports_bp.get("/bargaining")
@require_auth
def bargaining_report_route():
    return jsonify(reporting_service.bargaining_report(get_services().bargaining.records.all())), 200


@reports_bp.get("/disposal")
@require_auth
def disposal_report_route():
    return jsonify(reporting_service.disposal_report(get_services().disposal.records.all())), 200
