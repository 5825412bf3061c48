"""Human-readable labels for amortization status summaries."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field

from .amortization import AmortizationStatus

CENT = Decimal("0.01")


class AmortizationDisplay(BaseModel):
    """Display strings for an expense's deduction status."""

    badge: str = Field(..., description="Short badge text")
    description: str = Field(..., description="One-line expense description")
    progress: str = Field(..., description="Progress sentence")
    current_year: str = Field(..., description="Current-year deduction sentence")
    summary: Optional[str] = Field(
        default=None, description="Deducted-so-far sentence (amortized only)"
    )


def format_amount(value: Union[Decimal, int, float]) -> str:
    """
    Format a number with en-US thousands separators.

    Cents are shown only when the value is not a whole dollar amount.

    Args:
        value: Amount to format

    Returns:
        Formatted number, e.g. "1,200" or "333.33"
    """
    amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def format_currency(value: Union[Decimal, int, float]) -> str:
    """Format an amount as US dollars, e.g. "$1,200"."""
    return f"${format_amount(value)}"


def _current_year_text(status: AmortizationStatus) -> str:
    if status.current_year_deduction > 0:
        return f"{format_currency(status.current_year_deduction)} this year"
    return "Not deductible this year"


def format_amortization_display(status: AmortizationStatus) -> AmortizationDisplay:
    """
    Turn an amortization status into UI display strings.

    Args:
        status: Status from amortization_status()

    Returns:
        AmortizationDisplay with badge, description, progress and current-year text
    """
    total = format_currency(status.total_amount)

    if not status.is_deductible:
        return AmortizationDisplay(
            badge="Not Deductible",
            description=f"{total} - not tax deductible",
            progress="Not deductible for tax purposes",
            current_year="Not deductible this year",
        )

    if not status.is_amortized:
        return AmortizationDisplay(
            badge="Full Deduction",
            description=f"{total} deductible in {status.start_year}",
            progress=(
                "✓ Fully Deducted"
                if status.is_completed
                else f"Deductible in {status.start_year}"
            ),
            current_year=_current_year_text(status),
        )

    if status.is_completed:
        badge = "Amortization Complete"
        progress = "✓ Fully Amortized"
    else:
        badge = f"{status.years_remaining} Years Remaining"
        progress = (
            f"{format_currency(status.remaining_to_deduct)} remaining over "
            f"{status.years_remaining} years"
        )

    return AmortizationDisplay(
        badge=badge,
        description=(
            f"{total} over {status.amortization_years} years "
            f"({status.start_year}-{status.end_year})"
        ),
        progress=progress,
        current_year=_current_year_text(status),
        summary=f"{format_currency(status.total_deducted_so_far)} deducted so far",
    )
