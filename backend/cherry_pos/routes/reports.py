# Overview: Flask API routes for sales reports and end-of-day figures.

from datetime import date

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import CASHIER, EOD_ROLES, REPORT_ROLES
from ..services import report_service
from ..services.report_service import ReportError
from ..time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
@require_role(*REPORT_ROLES)
def sales_report_route():
    """
    Completed-order summary for a window.

    Query: start, end (ISO-8601; a date-only end covers the whole day).
    """
    try:
        start, end = report_service.parse_range(request.args.get("start"), request.args.get("end"))
        return jsonify({"report": report_service.sales_summary(start, end)}), 200

    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/eod")
@require_auth
@require_role(*EOD_ROLES)
def end_of_day_route():
    """
    End-of-day figures. Query: date (YYYY-MM-DD, default today UTC), cashier_id.

    Cashiers always get their own figures; cashier_id is ignored for them.
    """
    try:
        day = date.fromisoformat(request.args["date"]) if request.args.get("date") else None
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    identity = g.current_identity
    if identity.role == CASHIER:
        cashier_id = identity.id
    else:
        cashier_id = request.args.get("cashier_id", type=int)

    try:
        report = report_service.end_of_day(day or utcnow().date(), cashier_id=cashier_id)
        return jsonify({"report": report}), 200

    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build end-of-day report")
        return jsonify({"error": "Internal server error"}), 500
