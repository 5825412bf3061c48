"""Contractor work queue: filtering, ordering and headline counts of cases."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

URGENT_PRIORITIES = {"urgent", "critical", "emergency", "emergent"}
ACTIONABLE_STATUSES = {"New", "Assigned"}
CLOSED_STATUSES = {"Resolved", "Closed"}


class QueueSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"
    VALUE = "value"


class TimeFilter(str, Enum):
    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this_week"


class WorkQueueCase(BaseModel):
    """A maintenance case as listed in the work queue."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    title: str
    description: Optional[str] = None
    priority: Optional[str] = None
    status: str
    category: Optional[str] = None
    customer_name: Optional[str] = None
    location_text: Optional[str] = None
    estimated_cost: Optional[float] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class WorkQueueQuery(BaseModel):
    """Filter and sort choices for the work queue."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    search: str = ""
    status: str = "all"
    category: str = "all"
    time_filter: TimeFilter = TimeFilter.ALL
    sort: QueueSort = QueueSort.PRIORITY


class WorkQueueStats(BaseModel):
    actionable: int = Field(..., ge=0, description="New or assigned cases")
    in_progress: int = Field(..., ge=0, description="Cases being worked")
    urgent: int = Field(..., ge=0, description="Open cases with urgent priority")
    today: int = Field(..., ge=0, description="Cases created today")


def is_urgent_priority(priority: Optional[str]) -> bool:
    return (priority or "").lower() in URGENT_PRIORITIES


def _is_today(moment: datetime, now: datetime) -> bool:
    return moment.astimezone(timezone.utc).date() == now.astimezone(timezone.utc).date()


def _is_this_week(moment: datetime, now: datetime) -> bool:
    # Weeks start on Sunday
    today = now.astimezone(timezone.utc).date()
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    day = moment.astimezone(timezone.utc).date()
    return week_start <= day < week_start + timedelta(days=7)


def _matches_search(case: WorkQueueCase, query: str) -> bool:
    fields = (case.title, case.description, case.customer_name, case.location_text)
    return any(field and query in field.lower() for field in fields)


def filter_queue(
    cases: Iterable[WorkQueueCase],
    query: WorkQueueQuery,
    now: Optional[datetime] = None,
) -> List[WorkQueueCase]:
    """
    Filter and sort work queue cases.

    Args:
        cases: Cases assigned to the contractor
        query: Filter and sort choices
        now: Reference time for the time filter (defaults to current UTC time)

    Returns:
        Matching cases in sorted order
    """
    if now is None:
        now = datetime.now(timezone.utc)
    result = list(cases)

    search = query.search.lower()
    if search:
        result = [c for c in result if _matches_search(c, search)]

    if query.status != "all":
        result = [c for c in result if c.status == query.status]

    if query.category != "all":
        result = [c for c in result if c.category == query.category]

    if query.time_filter == TimeFilter.TODAY:
        result = [c for c in result if _is_today(c.created_at, now)]
    elif query.time_filter == TimeFilter.THIS_WEEK:
        result = [c for c in result if _is_this_week(c.created_at, now)]

    if query.sort == QueueSort.NEWEST:
        result.sort(key=lambda c: c.created_at, reverse=True)
    elif query.sort == QueueSort.OLDEST:
        result.sort(key=lambda c: c.created_at)
    elif query.sort == QueueSort.PRIORITY:
        result.sort(key=lambda c: 0 if is_urgent_priority(c.priority) else 1)
    else:
        result.sort(key=lambda c: c.estimated_cost or 0, reverse=True)

    return result


def queue_stats(
    cases: Iterable[WorkQueueCase], now: Optional[datetime] = None
) -> WorkQueueStats:
    """Headline counts shown above the work queue."""
    if now is None:
        now = datetime.now(timezone.utc)
    cases = list(cases)
    return WorkQueueStats(
        actionable=sum(1 for c in cases if c.status in ACTIONABLE_STATUSES),
        in_progress=sum(1 for c in cases if c.status == "In Progress"),
        urgent=sum(
            1
            for c in cases
            if is_urgent_priority(c.priority) and c.status not in CLOSED_STATUSES
        ),
        today=sum(1 for c in cases if _is_today(c.created_at, now)),
    )


def queue_options(cases: Iterable[WorkQueueCase]) -> dict:
    """Sorted distinct statuses and categories for the filter dropdowns."""
    cases = list(cases)
    return {
        "statuses": sorted({c.status for c in cases if c.status}),
        "categories": sorted({c.category for c in cases if c.category}),
    }
