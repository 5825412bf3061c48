"""
Contractor blueprint.

List views of the contractor's requests, quotes and jobs with filtering,
sorting and advisor recommendations, a free-text advisor chat, and the
work queue of assigned cases.
"""

from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.database.base import get_db
from app.database.models import MaintenanceCase, Message, Quote
from app.models.advisor import answer_question, recommend
from app.models.work_items import (
    FilterSelection,
    FilterSelectionError,
    ItemType,
    WorkItem,
    apply_selection,
    derive_categories,
    lifecycle_counts,
    lifecycle_status_message,
)
from app.models.work_queue import WorkQueueQuery, filter_queue, queue_options, queue_stats
from app.services.session_context import SessionContext, SessionRequired

contractor_bp = Blueprint("contractor", __name__, url_prefix="/api/contractor")

# URL segment -> item type
ITEM_TYPES = {
    "requests": ItemType.REQUEST,
    "quotes": ItemType.QUOTE,
    "jobs": ItemType.JOB,
}

# Case statuses still waiting on the contractor to take the work on
REQUEST_STATUSES = {"New", "Assigned", "Pending", "Open"}


def _contractor() -> SessionContext:
    context = SessionContext.from_headers(request.headers)
    context.require_role("contractor")
    return context


def _load_items(db: Session, contractor_id: int, item_type: ItemType) -> List[WorkItem]:
    if item_type == ItemType.QUOTE:
        quotes = db.query(Quote).filter(Quote.contractor_id == contractor_id).all()
        return [q.to_work_item() for q in quotes]

    cases = (
        db.query(MaintenanceCase)
        .filter(MaintenanceCase.assigned_contractor_id == contractor_id)
        .all()
    )
    if item_type == ItemType.REQUEST:
        cases = [c for c in cases if c.status in REQUEST_STATUSES]
    else:
        cases = [c for c in cases if c.status not in REQUEST_STATUSES]
    return [c.to_work_item() for c in cases]


def _unread_by_case(db: Session, contractor_id: int) -> Dict[str, int]:
    rows = (
        db.query(Message.case_id, func.count(Message.id))
        .join(MaintenanceCase, Message.case_id == MaintenanceCase.id)
        .filter(
            MaintenanceCase.assigned_contractor_id == contractor_id,
            Message.read_at.is_(None),
            or_(Message.sender_id.is_(None), Message.sender_id != contractor_id),
        )
        .group_by(Message.case_id)
        .all()
    )
    return {str(case_id): count for case_id, count in rows}


def _selection() -> FilterSelection:
    return FilterSelection.model_validate(request.args.to_dict())


def _item_type(segment: str):
    return ITEM_TYPES.get(segment)


@contractor_bp.route("/<item_type>", methods=["GET"])
def list_items(item_type: str) -> Any:
    """List requests, quotes or jobs.

    Args:
        item_type: One of requests, quotes, jobs

    Returns:
        JSON response with the filtered items, lifecycle counts, categories
        and advisor recommendations
    """
    try:
        kind = _item_type(item_type)
        if kind is None:
            return jsonify({"error": f"Unknown item type: {item_type}"}), 404

        context = _contractor()
        selection = _selection()

        db: Session = next(get_db())
        items = _load_items(db, context.user_id, kind)
        shown = apply_selection(items, selection)
        counts = lifecycle_counts(items)

        recommendations = recommend(
            items,
            kind,
            unread_by_case=_unread_by_case(db, context.user_id),
            max_recommendations=current_app.config["ADVISOR_MAX_RECOMMENDATIONS"],
        )

        return jsonify(
            {
                "items": [i.model_dump(mode="json", by_alias=True) for i in shown],
                "total": len(items),
                "lifecycleCounts": counts,
                "statusMessage": (
                    lifecycle_status_message(selection.lifecycle, counts)
                    if selection.lifecycle_active
                    else ""
                ),
                "categories": derive_categories(items),
                "recommendations": [r.model_dump(mode="json") for r in recommendations],
            }
        )

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except (ValidationError, FilterSelectionError) as e:
        return jsonify({"error": "Invalid filter selection", "message": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error listing contractor {item_type}: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@contractor_bp.route("/<item_type>/ask", methods=["POST"])
def ask_advisor(item_type: str) -> Any:
    """Answer a question about the items currently shown."""
    try:
        kind = _item_type(item_type)
        if kind is None:
            return jsonify({"error": f"Unknown item type: {item_type}"}), 404

        context = _contractor()
        data = request.get_json(silent=True) or {}
        question = data.get("question")
        if not isinstance(question, str) or not question.strip():
            return jsonify({"error": "question is required"}), 400

        selection = _selection()
        db: Session = next(get_db())
        shown = apply_selection(_load_items(db, context.user_id, kind), selection)

        return jsonify({"question": question, "answer": answer_question(question, shown, kind)})

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except (ValidationError, FilterSelectionError) as e:
        return jsonify({"error": "Invalid filter selection", "message": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error answering advisor question: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@contractor_bp.route("/queue", methods=["GET"])
def work_queue() -> Any:
    """List the contractor's assigned cases with headline counts."""
    try:
        context = _contractor()
        query = WorkQueueQuery.model_validate(request.args.to_dict())

        db: Session = next(get_db())
        cases = [
            c.to_queue_case()
            for c in db.query(MaintenanceCase)
            .filter(MaintenanceCase.assigned_contractor_id == context.user_id)
            .all()
        ]

        return jsonify(
            {
                "cases": [
                    c.model_dump(mode="json", by_alias=True) for c in filter_queue(cases, query)
                ],
                "stats": queue_stats(cases).model_dump(mode="json", by_alias=True),
                "options": queue_options(cases),
            }
        )

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except ValidationError as e:
        return jsonify({"error": "Invalid queue filter", "message": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error loading work queue: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
