"""
Tax blueprint for landlords.

Endpoints for per-transaction amortization status, the Schedule E preview,
the 1099-NEC vendor report, and generating, downloading, listing and
deleting 1099-NEC documents.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy.orm import Session

from app.database.base import get_db
from app.database.models import Property, Transaction, User, Vendor
from app.models.amortization import (
    InvalidExpenseConfiguration,
    InvalidYear,
    amortization_status,
    deduction_schedule,
    validate_year,
)
from app.models.amortization_display import format_amortization_display
from app.models.schedule_e import build_schedule_e
from app.models.vendor_1099 import Form1099Generator, build_1099_report
from app.services.session_context import SessionContext, SessionRequired
from app.storage import StorageError, StorageNotFoundError, get_document_store

tax_bp = Blueprint("tax", __name__, url_prefix="/api")


def _landlord() -> SessionContext:
    context = SessionContext.from_headers(request.headers)
    context.require_role("landlord")
    return context


def _year_arg(default: Optional[int] = None) -> int:
    """Read the ?year= query parameter, defaulting to the current UTC year."""
    raw = request.args.get("year")
    if raw is None or raw == "":
        return default or datetime.now(timezone.utc).year
    try:
        year = int(raw)
    except ValueError:
        raise InvalidYear(f"Tax year must be an integer, got {raw!r}")
    return validate_year(year)


def _owned_transactions(db: Session, owner_id: int):
    return (
        db.query(Transaction)
        .join(Property, Transaction.property_id == Property.id)
        .filter(Property.owner_id == owner_id)
        .all()
    )


def _owned_vendor(db: Session, owner_id: int, vendor_id: int):
    return (
        db.query(Vendor)
        .filter(Vendor.id == vendor_id, Vendor.owner_id == owner_id)
        .first()
    )


def _build_report(db: Session, owner_id: int, year: int):
    vendors = db.query(Vendor).filter(Vendor.owner_id == owner_id).all()
    transactions = [t.to_tax_transaction() for t in _owned_transactions(db, owner_id)]
    return build_1099_report(
        [v.to_record() for v in vendors],
        transactions,
        year,
        threshold=current_app.config["FORM_1099_THRESHOLD"],
    )


def _entry_json(entry) -> dict:
    return {
        "vendorId": entry.vendor.id,
        "vendorName": entry.vendor.name,
        "vendorType": entry.vendor.vendor_type,
        "totalPayments": float(entry.total_payments),
        "qualifiesFor1099": entry.qualifies_for_1099,
        "w9OnFile": entry.w9_on_file,
        "missingW9": entry.missing_w9,
    }


@tax_bp.route("/tax/transactions/<int:transaction_id>/amortization", methods=["GET"])
def get_amortization(transaction_id: int) -> Any:
    """Get the deduction status of one transaction.

    Args:
        transaction_id: ID of the transaction

    Returns:
        JSON response with the status, display strings and yearly schedule
    """
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        transaction = (
            db.query(Transaction)
            .join(Property, Transaction.property_id == Property.id)
            .filter(Transaction.id == transaction_id, Property.owner_id == context.user_id)
            .first()
        )
        if not transaction:
            return jsonify({"error": "Transaction not found"}), 404

        expense = transaction.to_expense()
        status = amortization_status(expense, year)
        display = format_amortization_display(status)
        schedule = deduction_schedule(expense)

        return jsonify(
            {
                "transactionId": transaction.id,
                "status": status.model_dump(mode="json"),
                "display": display.model_dump(mode="json"),
                "schedule": {str(y): float(amount) for y, amount in schedule.items()},
            }
        )

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except (InvalidYear, InvalidExpenseConfiguration) as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error computing amortization: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/schedule-e", methods=["GET"])
def get_schedule_e() -> Any:
    """Get the Schedule E preview for the landlord's properties."""
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        properties = (
            db.query(Property)
            .filter(Property.owner_id == context.user_id)
            .order_by(Property.id)
            .all()
        )
        transactions = [t.to_tax_transaction() for t in _owned_transactions(db, context.user_id)]

        report = build_schedule_e(
            [p.to_rental_property() for p in properties], transactions, year
        )
        body = report.model_dump(mode="json")
        body["lines"] = report.lines()
        return jsonify(body)

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except (InvalidYear, InvalidExpenseConfiguration) as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error building Schedule E: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/1099-report", methods=["GET"])
def get_1099_report() -> Any:
    """Get vendor payment totals and 1099-NEC filing state."""
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        entries = _build_report(db, context.user_id, year)

        return jsonify(
            {
                "year": year,
                "threshold": float(current_app.config["FORM_1099_THRESHOLD"]),
                "vendors": [_entry_json(e) for e in entries],
                "requiring1099": sum(1 for e in entries if e.qualifies_for_1099),
                "missingW9": sum(1 for e in entries if e.missing_w9),
            }
        )

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except InvalidYear as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error building 1099 report: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/1099/<int:vendor_id>", methods=["POST"])
def generate_1099(vendor_id: int) -> Any:
    """Render and store the 1099-NEC for one vendor.

    Args:
        vendor_id: ID of the vendor

    Returns:
        JSON response with the storage key of the document
    """
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        entry = next(
            (e for e in _build_report(db, context.user_id, year) if e.vendor.id == vendor_id),
            None,
        )
        if entry is None:
            return jsonify({"error": "Vendor not found or not paid in this year"}), 404
        if not entry.qualifies_for_1099:
            return jsonify({"error": "Vendor does not require a 1099-NEC"}), 400
        if entry.missing_w9:
            return jsonify({"error": "W-9 must be on file before generating a 1099-NEC"}), 400

        payer = db.query(User).filter(User.id == context.user_id).first()
        generator = Form1099Generator(
            get_document_store(), payer_name=payer.name if payer else "Property owner"
        )
        key = generator.generate(entry, year)

        return jsonify({"vendorId": vendor_id, "year": year, "documentKey": key}), 201

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except InvalidYear as e:
        return jsonify({"error": str(e)}), 400
    except StorageError as e:
        current_app.logger.error(f"Error storing 1099-NEC: {str(e)}")
        return jsonify({"error": "Document storage failed"}), 500
    except Exception as e:
        current_app.logger.error(f"Error generating 1099-NEC: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/1099/<int:vendor_id>", methods=["GET"])
def download_1099(vendor_id: int) -> Any:
    """Return a previously generated 1099-NEC as an HTML document."""
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        if not _owned_vendor(db, context.user_id, vendor_id):
            return jsonify({"error": "Vendor not found"}), 404

        document = Form1099Generator(get_document_store()).fetch(year, vendor_id)
        return Response(document, mimetype="text/html")

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except InvalidYear as e:
        return jsonify({"error": str(e)}), 400
    except StorageNotFoundError:
        return jsonify({"error": "No 1099-NEC generated for this vendor and year"}), 404
    except StorageError as e:
        current_app.logger.error(f"Error reading 1099-NEC: {str(e)}")
        return jsonify({"error": "Document storage failed"}), 500
    except Exception as e:
        current_app.logger.error(f"Error downloading 1099-NEC: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/1099/<int:vendor_id>", methods=["DELETE"])
def delete_1099(vendor_id: int) -> Any:
    """Delete a generated 1099-NEC so it can be produced again."""
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        if not _owned_vendor(db, context.user_id, vendor_id):
            return jsonify({"error": "Vendor not found"}), 404

        if not Form1099Generator(get_document_store()).remove(year, vendor_id):
            return jsonify({"error": "No 1099-NEC generated for this vendor and year"}), 404

        return "", 204

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except InvalidYear as e:
        return jsonify({"error": str(e)}), 400
    except StorageError as e:
        current_app.logger.error(f"Error deleting 1099-NEC: {str(e)}")
        return jsonify({"error": "Document storage failed"}), 500
    except Exception as e:
        current_app.logger.error(f"Error deleting 1099-NEC: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/tax/1099-documents", methods=["GET"])
def list_1099_documents() -> Any:
    """List the vendors that have a generated 1099-NEC for the year."""
    try:
        context = _landlord()
        year = _year_arg()

        db: Session = next(get_db())
        owned = {
            v.id for v in db.query(Vendor).filter(Vendor.owner_id == context.user_id).all()
        }
        stored = Form1099Generator(get_document_store()).stored_vendor_ids(year)

        return jsonify({"year": year, "vendorIds": [v for v in stored if v in owned]})

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except InvalidYear as e:
        return jsonify({"error": str(e)}), 400
    except StorageError as e:
        current_app.logger.error(f"Error listing 1099-NEC documents: {str(e)}")
        return jsonify({"error": "Document storage failed"}), 500
    except Exception as e:
        current_app.logger.error(f"Error listing 1099-NEC documents: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@tax_bp.route("/vendors/<int:vendor_id>/w9", methods=["PATCH"])
def update_w9(vendor_id: int) -> Any:
    """Record whether a vendor's W-9 is on file."""
    try:
        context = _landlord()
        data = request.get_json(silent=True) or {}
        w9_on_file = data.get("w9OnFile")
        if not isinstance(w9_on_file, bool):
            return jsonify({"error": "w9OnFile must be a boolean"}), 400

        db: Session = next(get_db())
        vendor = _owned_vendor(db, context.user_id, vendor_id)
        if not vendor:
            return jsonify({"error": "Vendor not found"}), 404

        vendor.w9_on_file = w9_on_file  # type: ignore
        db.commit()
        current_app.logger.info(f"Vendor {vendor_id} W-9 on file set to {w9_on_file}")

        return jsonify({"vendorId": vendor.id, "w9OnFile": vendor.w9_on_file})

    except SessionRequired as e:
        return jsonify({"error": str(e)}), 401
    except Exception as e:
        current_app.logger.error(f"Error updating W-9 status: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
