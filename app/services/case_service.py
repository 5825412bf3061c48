"""Maintenance case mutations."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.database.models import MaintenanceCase
from app.models.work_items import WorkItem

from .optimistic import OptimisticUpdate, QueryCache, apply_optimistic
from .session_context import SessionContext

logger = logging.getLogger(__name__)

CASE_STATUSES = (
    "New",
    "Assigned",
    "Scheduled",
    "Confirmed",
    "In Review",
    "In Progress",
    "Completed",
    "Resolved",
    "Closed",
)

WRITER_ROLES = ("landlord", "contractor")


class CaseNotFound(LookupError):
    """Raised when a case does not exist or is not visible to the user."""


class CaseService:
    """Updates maintenance cases through the shared query cache."""

    def __init__(self, db: Session, cache: QueryCache):
        self.db = db
        self.cache = cache

    @staticmethod
    def cache_key(case_id: int) -> tuple:
        return ("case", case_id)

    def _load(self, context: SessionContext, case_id: int) -> MaintenanceCase:
        case = self.db.query(MaintenanceCase).filter(MaintenanceCase.id == case_id).first()
        if case is None:
            raise CaseNotFound(f"Case {case_id} not found")
        if context.role == "contractor" and case.assigned_contractor_id != context.user_id:
            raise CaseNotFound(f"Case {case_id} not found")
        return case

    def get(self, context: SessionContext, case_id: int) -> WorkItem:
        """Return a case, filling the cache on a miss."""
        key = self.cache_key(case_id)
        cached: Optional[WorkItem] = self.cache.get(key)
        if cached is not None:
            return cached
        item = self._load(context, case_id).to_work_item()
        self.cache.set(key, item)
        return item

    def update_status(
        self, context: SessionContext, case_id: int, status: str
    ) -> OptimisticUpdate:
        """
        Change the status of a case.

        The cached case shows the new status before the database write; a
        failed write restores the cached case and re-raises.

        Args:
            context: Acting user
            case_id: Case to update
            status: New status, one of CASE_STATUSES

        Returns:
            OptimisticUpdate whose ``applied`` value is the updated case

        Raises:
            SessionRequired: If the user may not change cases
            ValueError: If the status is unknown
            CaseNotFound: If the case does not exist for this user
        """
        context.require_role(*WRITER_ROLES)
        if status not in CASE_STATUSES:
            raise ValueError(f"Unknown case status: {status!r}")

        # Baseline is the stored row, not the cached copy
        key = self.cache_key(case_id)
        current = self._load(context, case_id).to_work_item()
        self.cache.set(key, current)
        optimistic = current.model_copy(update={"status": status})

        def write(item: WorkItem) -> WorkItem:
            case = self._load(context, case_id)
            case.status = item.status
            case.updated_at = datetime.utcnow()
            try:
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update case {case_id}: {str(e)}")
                raise
            self.db.refresh(case)
            return case.to_work_item()

        update = apply_optimistic(self.cache, key, optimistic, write)
        logger.info(
            f"User {context.user_id} changed case {case_id} status "
            f"{current.status!r} -> {status!r}"
        )
        return update
