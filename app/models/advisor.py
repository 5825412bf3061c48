"""
Heuristic advisor recommendations for contractor work lists.

The advisor ("Maya") looks at the aggregate state of a list of requests,
quotes or jobs and suggests what to do next. Each suggestion comes from an
independent rule made of a selector, which picks the items the rule is
about, and a builder, which turns a non-empty selection into a
recommendation. Rules are evaluated in a fixed priority order per item type.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .amortization_display import format_currency
from .work_items import ItemType, WorkItem, parse_timestamp

RecommendationType = Literal["prioritize", "schedule", "price", "followup"]

EXPIRY_WINDOW = timedelta(days=7)
FOLLOW_UP_AFTER_DAYS = 3
DEFAULT_MAX_RECOMMENDATIONS = 3

TERMINAL_QUOTE_STATUSES = {"approved", "declined", "expired"}
SENT_STATUSES = {"sent", "awaiting_response"}
SCHEDULED_STATUSES = {"scheduled", "confirmed"}
URGENT_PRIORITIES = {"urgent", "high"}


class Recommendation(BaseModel):
    """A single advisor suggestion."""

    type: RecommendationType = Field(..., description="Kind of suggestion")
    title: str = Field(..., description="Short heading")
    message: str = Field(..., description="Suggestion text")
    item_id: Optional[str] = Field(default=None, description="Item the suggestion is about")


Selector = Callable[[Sequence[WorkItem], datetime], List[WorkItem]]
Builder = Callable[[List[WorkItem], ItemType], Recommendation]


class AdvisorRule(BaseModel):
    """A selector/builder pair producing at most one recommendation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    select: Selector
    build: Builder

    def evaluate(
        self, items: Sequence[WorkItem], item_type: ItemType, now: datetime
    ) -> Optional[Recommendation]:
        selected = self.select(items, now)
        if not selected:
            return None
        return self.build(selected, item_type)


def _status(item: WorkItem) -> str:
    return item.status.lower()


def _value(item: WorkItem) -> float:
    return item.estimated_value or 0


def _total_value(items: Sequence[WorkItem]) -> float:
    return sum(_value(i) for i in items)


def _s(count: int, plural: str = "s", singular: str = "") -> str:
    return plural if count > 1 else singular


# Quote rules


def _select_expiring_soon(items, now):
    horizon = now + EXPIRY_WINDOW
    expiring = []
    for item in items:
        if _status(item) in TERMINAL_QUOTE_STATUSES:
            continue
        expires = parse_timestamp(item.expires_at)
        if expires is not None and now <= expires <= horizon:
            expiring.append(item)
    return sorted(expiring, key=lambda i: parse_timestamp(i.expires_at))


def _build_expiring_soon(selected, item_type):
    soonest = selected[0]
    count = len(selected)
    return Recommendation(
        type="followup",
        title="Expiring Soon",
        message=(
            f"{count} quote{_s(count, 's expire', ' expires')} within 7 days. "
            f'"{soonest.title}" expires first - consider following up with '
            f"{soonest.customer_name}."
        ),
        item_id=soonest.id,
    )


def _select_stale_sent(items, now):
    stale = []
    for item in items:
        if _status(item) not in SENT_STATUSES:
            continue
        created = parse_timestamp(item.created_at)
        if created is None:
            continue
        days_since = math.floor((now - created).total_seconds() / 86400)
        if days_since >= FOLLOW_UP_AFTER_DAYS:
            stale.append(item)
    return stale


def _build_stale_sent(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="followup",
        title="Follow Up Needed",
        message=(
            f"{count} sent quote{_s(count, 's have', ' has')} had no response for "
            f"{FOLLOW_UP_AFTER_DAYS}+ days. A quick follow-up can increase your "
            "approval rate."
        ),
        item_id=selected[0].id,
    )


def _select_drafts(items, now):
    return [i for i in items if _status(i) == "draft"]


def _build_drafts(selected, item_type):
    count = len(selected)
    highest = max(selected, key=_value)
    return Recommendation(
        type="price",
        title="Drafts Ready to Send",
        message=(
            f"You have {count} draft quote{_s(count)} worth "
            f'{format_currency(_total_value(selected))}. "{highest.title}" '
            f"({format_currency(_value(highest))}) is your highest - ready to send?"
        ),
        item_id=highest.id,
    )


def _select_approved(items, now):
    return [i for i in items if _status(i) == "approved"]


def _build_approved(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="prioritize",
        title="Revenue Ready",
        message=(
            f"{count} approved quote{_s(count)} worth "
            f"{format_currency(_total_value(selected))} - time to schedule the work "
            "and start earning."
        ),
    )


# Job rules


def _select_overdue(items, now):
    overdue = []
    for item in items:
        if _status(item) == "completed":
            continue
        scheduled = parse_timestamp(item.scheduled_date)
        if scheduled is not None and scheduled < now:
            overdue.append(item)
    return overdue


def _build_overdue(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="followup",
        title="Overdue Jobs",
        message=(
            f"{count} job{_s(count, 's are', ' is')} past the scheduled date. Review "
            "and update these to keep customers informed."
        ),
        item_id=selected[0].id,
    )


def _select_highest_value(items, now):
    if not items:
        return []
    highest = max(items, key=_value)
    return [highest] if _value(highest) > 0 else []


def _build_highest_value(selected, item_type):
    item = selected[0]
    value = format_currency(_value(item))
    if item_type == ItemType.JOB:
        message = (
            f'"{item.title}" is worth {value}. Prioritize completion to maximize '
            "revenue."
        )
    else:
        message = (
            f'"{item.title}" has the highest potential value at {value}. Consider '
            f"prioritizing this {item_type.value}."
        )
    return Recommendation(
        type="prioritize", title="Highest Value", message=message, item_id=item.id
    )


def _select_in_progress(items, now):
    return [i for i in items if _status(i) == "in progress"]


def _build_in_progress(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="price",
        title="Active Pipeline",
        message=(
            f"{count} job{_s(count)} in progress worth "
            f"{format_currency(_total_value(selected))}. Complete these to invoice "
            "and collect payment."
        ),
    )


def _select_scheduled(items, now):
    return [i for i in items if _status(i) in SCHEDULED_STATUSES]


def _build_scheduled(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="schedule",
        title="Coming Up",
        message=(
            f"{count} job{_s(count)} scheduled. Review your timeline to make sure "
            "you're prepared."
        ),
    )


# Request rules


def _select_urgent(items, now):
    return [i for i in items if (i.priority or "").lower() in URGENT_PRIORITIES]


def _build_urgent(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="followup",
        title="Urgent Attention",
        message=(
            f"You have {count} urgent {item_type.value}{_s(count)} that need "
            "immediate attention."
        ),
    )


def _select_unscheduled(items, now):
    return [
        i for i in items if not i.scheduled_date and _status(i) != "completed"
    ]


def _build_unscheduled(selected, item_type):
    count = len(selected)
    return Recommendation(
        type="schedule",
        title="Schedule Suggestion",
        message=(
            f"{count} {item_type.value}{_s(count, 's are', ' is')} not yet scheduled. "
            "Would you like me to suggest optimal times?"
        ),
    )


HIGHEST_VALUE_RULE = AdvisorRule(
    name="highest_value", select=_select_highest_value, build=_build_highest_value
)

RULES: Dict[ItemType, List[AdvisorRule]] = {
    ItemType.QUOTE: [
        AdvisorRule(
            name="expiring_soon", select=_select_expiring_soon, build=_build_expiring_soon
        ),
        AdvisorRule(name="stale_sent", select=_select_stale_sent, build=_build_stale_sent),
        AdvisorRule(name="drafts", select=_select_drafts, build=_build_drafts),
        AdvisorRule(name="approved", select=_select_approved, build=_build_approved),
    ],
    ItemType.JOB: [
        AdvisorRule(name="overdue", select=_select_overdue, build=_build_overdue),
        HIGHEST_VALUE_RULE,
        AdvisorRule(name="in_progress", select=_select_in_progress, build=_build_in_progress),
        AdvisorRule(name="scheduled", select=_select_scheduled, build=_build_scheduled),
    ],
    ItemType.REQUEST: [
        HIGHEST_VALUE_RULE,
        AdvisorRule(name="urgent", select=_select_urgent, build=_build_urgent),
        AdvisorRule(name="unscheduled", select=_select_unscheduled, build=_build_unscheduled),
    ],
}


def unread_messages_recommendation(
    unread_by_case: Dict[str, int]
) -> Optional[Recommendation]:
    """Build the "Messages Waiting" suggestion from unread counts per case."""
    total_unread = sum(unread_by_case.values())
    if total_unread <= 0:
        return None
    cases = len(unread_by_case)
    return Recommendation(
        type="followup",
        title="Messages Waiting",
        message=(
            f"{cases} homeowner{_s(cases, 's are', ' is')} waiting for your reply "
            f"({total_unread} unread message{_s(total_unread)}). Quick responses "
            "improve your ratings."
        ),
    )


def recommend(
    items: Sequence[WorkItem],
    item_type: ItemType,
    now: Optional[datetime] = None,
    unread_by_case: Optional[Dict[str, int]] = None,
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> List[Recommendation]:
    """
    Produce advisor recommendations for a list of items.

    Args:
        items: All items of the list (unfiltered)
        item_type: Whether the items are requests, quotes or jobs
        now: Reference time (defaults to the current UTC time)
        unread_by_case: Unread message counts keyed by case id
        max_recommendations: Maximum number of recommendations returned

    Returns:
        Recommendations in priority order, unread messages first
    """
    if not items:
        return []
    if now is None:
        now = datetime.now(timezone.utc)

    recommendations = []
    for rule in RULES[ItemType(item_type)]:
        recommendation = rule.evaluate(items, ItemType(item_type), now)
        if recommendation is not None:
            recommendations.append(recommendation)

    unread = unread_messages_recommendation(unread_by_case or {})
    if unread is not None:
        recommendations.insert(0, unread)

    return recommendations[:max_recommendations]


def _has_any(text: str, *words: str) -> bool:
    return any(word in text for word in words)


def _answer_quote_question(q, items, now):
    if _has_any(q, "expir", "deadline", "due"):
        expiring = []
        for item in items:
            expires = parse_timestamp(item.expires_at)
            if expires is not None and now <= expires <= now + EXPIRY_WINDOW:
                expiring.append(item)
        if expiring:
            count = len(expiring)
            return (
                f"{count} quote{_s(count, 's are', ' is')} expiring within the next "
                "week. I'd suggest reaching out to those customers soon to keep the "
                "deals moving forward."
            )
        return "None of your current quotes are expiring soon. You're in good shape!"

    if _has_any(q, "draft", "finish", "incomplete"):
        drafts = _select_drafts(items, now)
        if drafts:
            count = len(drafts)
            return (
                f"You have {count} draft quote{_s(count)} worth "
                f"{format_currency(_total_value(drafts))} total. Finishing and sending "
                "these could bring in significant revenue. Want me to help you "
                "prioritize which ones to complete first?"
            )
        return (
            "All your quotes have been sent - no drafts remaining. Great job staying "
            "on top of things!"
        )

    if _has_any(q, "follow", "response", "waiting", "pending"):
        sent = [i for i in items if _status(i) in SENT_STATUSES]
        if sent:
            count = len(sent)
            return (
                f"You have {count} quote{_s(count)} awaiting customer response. A "
                "friendly follow-up after 3-5 days can significantly improve your "
                "close rate. Consider calling rather than emailing for higher-value "
                "quotes."
            )
        return (
            "All your sent quotes have received responses. Check your approved "
            "quotes to schedule the work!"
        )

    if _has_any(q, "approved", "won", "accepted"):
        approved = _select_approved(items, now)
        count = len(approved)
        return (
            f"You have {count} approved quote{_s(count)} worth "
            f"{format_currency(_total_value(approved))}. These are ready to be "
            "scheduled and converted into active jobs. The sooner you start, the "
            "happier your customers will be."
        )

    if _has_any(q, "declined", "lost", "rejected"):
        declined = [i for i in items if _status(i) == "declined"]
        if declined:
            count = len(declined)
            return (
                f"{count} quote{_s(count, 's were', ' was')} declined. Common reasons "
                "include pricing, timing, or scope. Consider creating revised quotes "
                "with adjusted pricing or phased approaches for these customers."
            )
        return "No declined quotes - that's a great approval rate! Keep up the excellent work."

    return None


def _answer_job_question(q, items, now):
    if _has_any(q, "overdue", "late", "behind"):
        overdue = _select_overdue(items, now)
        if overdue:
            count = len(overdue)
            return (
                f"You have {count} overdue job{_s(count)}. I'd suggest contacting "
                "those customers to reschedule or provide an update."
            )
        return "No overdue jobs - you're on track! Keep up the great work."

    if _has_any(q, "complete", "finish", "done"):
        completed = [i for i in items if _status(i) == "completed"]
        count = len(completed)
        return (
            f"{count} completed job{_s(count)} worth "
            f"{format_currency(_total_value(completed))}. Make sure invoices are sent "
            "for any completed work to keep cash flowing."
        )

    if _has_any(q, "active", "progress", "current"):
        active = _select_in_progress(items, now)
        count = len(active)
        return (
            f"{count} job{_s(count)} currently in progress worth "
            f"{format_currency(_total_value(active))}. Focus on completing the "
            "highest-value ones first."
        )

    in_progress = len(_select_in_progress(items, now))
    scheduled = len(_select_scheduled(items, now))
    completed = sum(1 for i in items if _status(i) == "completed")
    return (
        f"You have {len(items)} jobs: {in_progress} in progress, {scheduled} "
        f"scheduled, and {completed} completed. Ask me about overdue jobs, active "
        "work, or your revenue."
    )


def answer_question(
    question: str,
    items: Sequence[WorkItem],
    item_type: ItemType,
    now: Optional[datetime] = None,
) -> str:
    """
    Answer a free-text question about the current list of items.

    Replies are keyword driven and computed from the items themselves.

    Args:
        question: The user's question
        items: Items currently shown (already filtered)
        item_type: Whether the items are requests, quotes or jobs
        now: Reference time (defaults to the current UTC time)

    Returns:
        Reply text
    """
    if now is None:
        now = datetime.now(timezone.utc)
    item_type = ItemType(item_type)
    noun = item_type.value
    q = question.lower()

    if item_type == ItemType.QUOTE:
        reply = _answer_quote_question(q, items, now)
        if reply is not None:
            return reply

    if item_type == ItemType.JOB:
        return _answer_job_question(q, items, now)

    if _has_any(q, "urgent", "priority"):
        urgent = len(_select_urgent(items, now))
        return (
            f"You have {urgent} high-priority {noun}s that need attention. I "
            "recommend focusing on these first to maintain customer satisfaction."
        )

    if _has_any(q, "value", "money", "revenue", "total", "worth"):
        total = format_currency(_total_value(items))
        if item_type == ItemType.QUOTE:
            by_status: Dict[str, float] = {}
            for item in items:
                by_status[item.status] = by_status.get(item.status, 0) + _value(item)
            breakdown = ", ".join(
                f"{status}: {format_currency(value)}" for status, value in by_status.items()
            )
            return (
                f"Your quotes total {total}. Breakdown by status - {breakdown}. Focus "
                "on getting drafts sent and following up on pending quotes to "
                "maximize revenue."
            )
        highest = max((_value(i) for i in items), default=0)
        return (
            f"Your current {noun}s represent a total potential value of {total}. The "
            f"highest value opportunity is worth {format_currency(highest)}."
        )

    if _has_any(q, "schedule", "time", "when"):
        unscheduled = sum(1 for i in items if not i.scheduled_date)
        return (
            f"You have {unscheduled} unscheduled {noun}s. I suggest scheduling them "
            "during your typical availability windows to optimize your workflow."
        )

    if _has_any(q, "category", "type") and items:
        counts: Dict[str, int] = {}
        for item in items:
            category = item.category or "General"
            counts[category] = counts.get(category, 0) + 1
        top_category, top_count = max(counts.items(), key=lambda kv: kv[1])
        return (
            f'Your most common category is "{top_category}" with {top_count} {noun}s. '
            "Consider specializing in this area or hiring help for it."
        )

    if item_type == ItemType.QUOTE:
        drafts = len(_select_drafts(items, now))
        sent = sum(1 for i in items if _status(i) in SENT_STATUSES)
        approved = len(_select_approved(items, now))
        return (
            f"You have {len(items)} quotes: {drafts} drafts, {sent} sent and awaiting "
            f"response, and {approved} approved. Try asking me about expiring quotes, "
            "follow-ups, drafts, or your revenue breakdown."
        )

    return (
        f"Based on your {len(items)} current {noun}s, I recommend prioritizing "
        "high-value opportunities and urgent requests. Would you like specific "
        "recommendations for scheduling or pricing?"
    )
