"""
Filtering and sorting of contractor work items.

Requests, quotes and jobs are presented through the same list views. This
module narrows an in-memory list of items according to the user's filter
selections and orders the result by one of a fixed set of sort keys.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FilterSelectionError(ValueError):
    """Raised when a filter or sort selection is not recognised."""


class ItemType(str, Enum):
    REQUEST = "request"
    QUOTE = "quote"
    JOB = "job"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST = "highest"
    LOWEST = "lowest"
    PRIORITY = "priority"
    EXPIRY = "expiry"
    CUSTOMER = "customer"
    STATUS = "status"


class ReadStatus(str, Enum):
    NEW = "new"
    READ = "read"
    ALL = "all"


# Filter values that disable a filter stage
ALL = "all"
NO_LIFECYCLE = {"all", "none"}

SENT_STATUSES = {"sent", "awaiting_response"}
COMPLETED_STATUSES = {"completed", "resolved"}

# Lifecycle stage -> lower-cased statuses it shows
STAGE_STATUSES = {
    "new": {"new"},
    "draft": {"draft"},
    "sent": SENT_STATUSES,
    "awaiting": {"in review"},
    "scheduled": {"scheduled", "confirmed"},
    "in_progress": {"in progress"},
    "completed": COMPLETED_STATUSES,
}
UNREAD_STATUSES = {"new", "pending", "open"}

PRIORITY_RANK = {"urgent": 0, "high": 1, "normal": 2, "low": 3}
DEFAULT_PRIORITY_RANK = PRIORITY_RANK["normal"]

STATUS_RANK = {
    "in progress": 0,
    "scheduled": 1,
    "confirmed": 2,
    "new": 3,
    "pending": 4,
    "completed": 5,
}
DEFAULT_STATUS_RANK = STATUS_RANK["new"]

LIFECYCLE_STAGES = (
    "new",
    "draft",
    "sent",
    "awaiting",
    "scheduled",
    "in_progress",
    "completed",
)


class WorkItem(BaseModel):
    """A maintenance request, quote or job as shown in list views."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str = Field(..., description="Item identifier")
    title: str = Field(..., description="Short title")
    customer_name: str = Field(default="", description="Customer display name")
    description: Optional[str] = Field(default=None, description="Free-text details")
    status: str = Field(..., description="Stored status string")
    priority: Optional[str] = Field(default=None, description="Urgent/High/Normal/Low")
    estimated_value: Optional[float] = Field(default=None, description="Estimated value")
    total: Optional[float] = Field(default=None, description="Quote total")
    scheduled_date: Optional[str] = Field(default=None, description="ISO date/time")
    category: Optional[str] = Field(default=None, description="Work category")
    created_at: Optional[str] = Field(default=None, description="ISO creation time")
    expires_at: Optional[str] = Field(default=None, description="ISO expiry time")
    filter_group: Optional[str] = Field(
        default=None, description="Lifecycle group overriding the status"
    )


class FilterSelection(BaseModel):
    """The filter and sort choices made in a list view."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    lifecycle: str = ALL
    read_status: ReadStatus = ReadStatus.NEW
    category: str = ALL
    priority: str = ALL
    search: str = ""
    sort: SortKey = SortKey.NEWEST

    @property
    def lifecycle_active(self) -> bool:
        return self.lifecycle not in NO_LIFECYCLE


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or date-time string.

    Naive values are treated as UTC. Unparseable or empty values give None.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def number_text(value: Optional[float]) -> str:
    """Render a number the way it would appear in the UI, e.g. 250.0 -> "250"."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def status_group(item: WorkItem) -> str:
    """Lifecycle group of an item: its filter group, else its normalised status."""
    if item.filter_group:
        return item.filter_group.lower()
    return item.status.lower().replace(" ", "_")


def matches_lifecycle(item: WorkItem, lifecycle: str) -> bool:
    """Check an item against a lifecycle/status-group filter id."""
    if lifecycle in NO_LIFECYCLE:
        return True
    stage = lifecycle.lower()
    if item.status.lower() in STAGE_STATUSES.get(stage, ()):
        return True
    return status_group(item) == stage


def is_unread(item: WorkItem) -> bool:
    return item.status.lower() in UNREAD_STATUSES


def _matches_search(item: WorkItem, query: str) -> bool:
    return (
        query in item.title.lower()
        or query in item.customer_name.lower()
        or (item.description is not None and query in item.description.lower())
        or (bool(item.estimated_value) and query in number_text(item.estimated_value))
        or (bool(item.total) and query in number_text(item.total))
    )


def filter_items(items: Iterable[WorkItem], selection: FilterSelection) -> List[WorkItem]:
    """
    Narrow a list of items by the selection's filters.

    Stages run in order: lifecycle group, read status (only when no
    lifecycle filter is active), category, priority, then free-text search.

    Args:
        items: Items to filter
        selection: Filter choices

    Returns:
        Matching items in their original order
    """
    result = list(items)

    if selection.lifecycle_active:
        result = [i for i in result if matches_lifecycle(i, selection.lifecycle)]
    elif selection.read_status == ReadStatus.NEW:
        result = [i for i in result if is_unread(i)]
    elif selection.read_status == ReadStatus.READ:
        result = [i for i in result if not is_unread(i)]

    if selection.category != ALL:
        category = selection.category.lower()
        result = [i for i in result if i.category and i.category.lower() == category]

    if selection.priority != ALL:
        priority = selection.priority.lower()
        result = [i for i in result if i.priority and i.priority.lower() == priority]

    query = selection.search.strip().lower()
    if query:
        result = [i for i in result if _matches_search(i, query)]

    return result


def priority_rank(priority: Optional[str]) -> int:
    if not priority:
        return DEFAULT_PRIORITY_RANK
    return PRIORITY_RANK.get(priority.lower(), DEFAULT_PRIORITY_RANK)


def status_rank(status: str) -> int:
    return STATUS_RANK.get(status.lower(), DEFAULT_STATUS_RANK)


def _expiry_key(item: WorkItem):
    expires = parse_timestamp(item.expires_at)
    if expires is None:
        return (1, 0.0)
    return (0, expires.timestamp())


def sort_items(items: Sequence[WorkItem], sort_key) -> List[WorkItem]:
    """
    Order items by one of the fixed sort keys.

    Sorting is stable: items that compare equal keep their input order.

    Args:
        items: Items to sort
        sort_key: SortKey or its string value

    Returns:
        New sorted list

    Raises:
        FilterSelectionError: If the sort key is unknown
    """
    try:
        key = SortKey(sort_key)
    except ValueError:
        raise FilterSelectionError(f"Unknown sort key: {sort_key!r}")

    if key == SortKey.NEWEST:
        return sorted(items, key=lambda i: i.created_at or "", reverse=True)
    if key == SortKey.OLDEST:
        return sorted(items, key=lambda i: i.created_at or "")
    if key == SortKey.HIGHEST:
        return sorted(items, key=lambda i: i.estimated_value or 0, reverse=True)
    if key == SortKey.LOWEST:
        return sorted(items, key=lambda i: i.estimated_value or 0)
    if key == SortKey.PRIORITY:
        return sorted(items, key=lambda i: priority_rank(i.priority))
    if key == SortKey.EXPIRY:
        return sorted(items, key=_expiry_key)
    if key == SortKey.CUSTOMER:
        return sorted(items, key=lambda i: i.customer_name or "")
    return sorted(items, key=lambda i: status_rank(i.status))


def apply_selection(items: Iterable[WorkItem], selection: FilterSelection) -> List[WorkItem]:
    """Filter then sort items according to a selection."""
    return sort_items(filter_items(items, selection), selection.sort)


def derive_categories(items: Iterable[WorkItem]) -> List[str]:
    """Distinct categories present in the items, in first-seen order."""
    seen: Dict[str, None] = {}
    for item in items:
        if item.category:
            seen.setdefault(item.category, None)
    return list(seen)


def lifecycle_counts(items: Sequence[WorkItem]) -> Dict[str, int]:
    """Count the items that each lifecycle stage filter would show."""
    return {
        stage: sum(1 for item in items if matches_lifecycle(item, stage))
        for stage in LIFECYCLE_STAGES
    }


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def lifecycle_status_message(stage: str, counts: Dict[str, int]) -> str:
    """One-line summary for the selected lifecycle stage."""
    count = counts.get(stage, 0)
    messages = {
        "new": f"{_plural(count, 'new request')} waiting for your response",
        "draft": f"{_plural(count, 'draft quote')} to finalize",
        "sent": f"{_plural(count, 'quote')} sent - awaiting response",
        "awaiting": f"{_plural(count, 'job')} awaiting scheduling",
        "scheduled": f"{_plural(count, 'job')} scheduled",
        "in_progress": f"{_plural(count, 'job')} in progress",
        "completed": f"{_plural(count, 'job')} completed",
    }
    return messages.get(stage, "")
