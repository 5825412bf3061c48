"""Maintenance case blueprint."""

from typing import Any

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.orm import Session

from app.database.base import get_db
from app.services.case_service import CaseNotFound, CaseService
from app.services.session_context import SessionContext, SessionRequired

cases_bp = Blueprint("cases", __name__, url_prefix="/api")


@cases_bp.route("/cases/<int:case_id>", methods=["PATCH"])
def update_case(case_id: int) -> Any:
    """Change the status of a maintenance case.

    Args:
        case_id: ID of the case

    Returns:
        JSON response with the updated case and its previous status
    """
    try:
        context = SessionContext.from_headers(request.headers)
        data = request.get_json(silent=True) or {}
        status = data.get("status")
        if not isinstance(status, str) or not status:
            return jsonify({"error": "status is required"}), 400

        db: Session = next(get_db())
        service = CaseService(db, current_app.extensions["query_cache"])
        update = service.update_status(context, case_id, status)

        return jsonify(
            {
                "case": update.applied.model_dump(mode="json", by_alias=True),
                "previousStatus": update.previous.status if update.previous else None,
            }
        )

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except CaseNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error updating case {case_id}: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
