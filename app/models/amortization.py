"""
Tax deduction amortization calculations for rental expenses.

This module computes how much of an expense is deductible in a given tax
year. Deductible expenses are either claimed in full in the year they were
incurred, or spread evenly across a number of consecutive calendar years
starting with the year of the amortization start date.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_TAX_YEAR = 1900
MAX_TAX_YEAR = 2100

ZERO = Decimal("0")


class TaxCalculationError(ValueError):
    """Base exception for tax calculation errors."""


class InvalidExpenseConfiguration(TaxCalculationError):
    """Raised when an expense's amortization parameters cannot be used."""


class InvalidYear(TaxCalculationError):
    """Raised when a tax year argument is not a usable calendar year."""


def _to_utc_date(value):
    """Coerce ISO strings and datetimes to the UTC calendar date."""
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


class Expense(BaseModel):
    """An expense record as consumed by the deduction calculator."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    amount: Decimal = Field(..., description="Total cost of the expense")
    expense_date: date = Field(
        ..., alias="date", description="Date the expense was incurred"
    )
    tax_deductible: bool = Field(
        default=False, alias="taxDeductible", description="Counts toward deductions"
    )
    is_amortized: bool = Field(
        default=False, alias="isAmortized", description="Spread across several years"
    )
    amortization_years: Optional[int] = Field(
        default=None,
        alias="amortizationYears",
        description="Number of years over which the deduction is spread",
    )
    amortization_start_date: Optional[date] = Field(
        default=None,
        alias="amortizationStartDate",
        description="First day of the amortization window",
    )

    @field_validator("expense_date", "amortization_start_date", mode="before")
    @classmethod
    def coerce_utc_date(cls, v):
        return _to_utc_date(v)

    @property
    def expense_year(self) -> int:
        return self.expense_date.year


class AmortizationStatus(BaseModel):
    """Progress summary of an expense's deductions as of a given year."""

    is_amortized: bool = Field(..., description="Deduction is spread over years")
    is_deductible: bool = Field(..., description="Expense is tax deductible")
    total_amount: Decimal = Field(..., description="Full expense amount")
    amortization_years: int = Field(..., ge=0, description="Years in the window")
    start_year: int = Field(..., description="First deduction year")
    end_year: int = Field(..., description="Last deduction year (inclusive)")
    current_year: int = Field(..., description="Year the status was computed for")
    current_year_deduction: Decimal = Field(
        ..., ge=0, description="Deduction attributed to the current year"
    )
    total_deducted_so_far: Decimal = Field(
        ..., ge=0, description="Deductions from start year through current year"
    )
    remaining_to_deduct: Decimal = Field(
        ..., ge=0, description="Amount not yet deducted"
    )
    years_remaining: int = Field(..., ge=0, description="Years left after current")
    is_completed: bool = Field(..., description="All deductions have been realized")
    annual_amount: Decimal = Field(..., ge=0, description="Deduction per covered year")


def validate_year(year) -> int:
    """
    Validate a tax year argument.

    Args:
        year: Calendar year

    Returns:
        The year, unchanged

    Raises:
        InvalidYear: If the year is not an integer between 1900 and 2100
    """
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidYear(f"Tax year must be an integer, got {year!r}")
    if not MIN_TAX_YEAR <= year <= MAX_TAX_YEAR:
        raise InvalidYear(
            f"Tax year {year} is outside {MIN_TAX_YEAR}-{MAX_TAX_YEAR}"
        )
    return year


def _amortization_window(expense: Expense) -> Optional[tuple]:
    """Return (start_year, end_year, years), or None when not amortized."""
    if (
        not expense.is_amortized
        or expense.amortization_years is None
        or expense.amortization_start_date is None
    ):
        return None

    years = expense.amortization_years
    if years <= 0:
        raise InvalidExpenseConfiguration(
            f"Amortization years must be positive, got {years}"
        )

    start_year = expense.amortization_start_date.year
    end_year = start_year + years - 1
    if start_year > end_year:
        raise InvalidExpenseConfiguration(
            f"Amortization start year {start_year} is after end year {end_year}"
        )
    return start_year, end_year, years


def _check_amount(expense: Expense) -> None:
    if expense.tax_deductible and expense.amount < 0:
        raise InvalidExpenseConfiguration(
            f"Deductible expense amount must not be negative, got {expense.amount}"
        )


def _deduction_in_year(expense: Expense, year: int) -> Decimal:
    if not expense.tax_deductible:
        return ZERO

    window = _amortization_window(expense)
    if window is None:
        return expense.amount if expense.expense_year == year else ZERO

    start_year, end_year, years = window
    if year < start_year or year > end_year:
        return ZERO

    # Flat split: no proration of the start year by months remaining
    return expense.amount / years


def deduction_for_year(expense: Expense, year: int) -> Decimal:
    """
    Calculate the deductible amount of an expense for one tax year.

    Args:
        expense: The expense record
        year: Tax year to calculate for

    Returns:
        Deductible amount for that year (zero when nothing applies)

    Raises:
        InvalidYear: If year is not a valid calendar year
        InvalidExpenseConfiguration: If a deductible amount is negative or
            amortization years are not positive
    """
    validate_year(year)
    _check_amount(expense)
    return _deduction_in_year(expense, year)


def amortization_status(
    expense: Expense, current_year: Optional[int] = None
) -> AmortizationStatus:
    """
    Summarize how much of an expense has been deducted as of a year.

    Args:
        expense: The expense record
        current_year: Tax year to evaluate (defaults to the current UTC year)

    Returns:
        AmortizationStatus for the expense
    """
    if current_year is None:
        current_year = datetime.now(timezone.utc).year
    validate_year(current_year)

    total_amount = expense.amount
    current_year_deduction = deduction_for_year(expense, current_year)
    expense_year = expense.expense_year

    if not expense.tax_deductible:
        return AmortizationStatus(
            is_amortized=False,
            is_deductible=False,
            total_amount=total_amount,
            amortization_years=0,
            start_year=expense_year,
            end_year=expense_year,
            current_year=current_year,
            current_year_deduction=ZERO,
            total_deducted_so_far=ZERO,
            remaining_to_deduct=ZERO,
            years_remaining=0,
            is_completed=False,
            annual_amount=ZERO,
        )

    window = _amortization_window(expense)
    if window is None:
        is_fully_deducted = current_year >= expense_year
        return AmortizationStatus(
            is_amortized=False,
            is_deductible=True,
            total_amount=total_amount,
            amortization_years=0,
            start_year=expense_year,
            end_year=expense_year,
            current_year=current_year,
            current_year_deduction=current_year_deduction,
            total_deducted_so_far=total_amount if is_fully_deducted else ZERO,
            remaining_to_deduct=ZERO if is_fully_deducted else total_amount,
            years_remaining=(
                0 if is_fully_deducted else max(0, expense_year - current_year)
            ),
            is_completed=is_fully_deducted,
            annual_amount=total_amount,
        )

    start_year, end_year, years = window

    # Sum year by year so the total always agrees with deduction_for_year
    total_deducted = ZERO
    for year in range(start_year, min(current_year, end_year) + 1):
        total_deducted += _deduction_in_year(expense, year)

    return AmortizationStatus(
        is_amortized=True,
        is_deductible=True,
        total_amount=total_amount,
        amortization_years=years,
        start_year=start_year,
        end_year=end_year,
        current_year=current_year,
        current_year_deduction=current_year_deduction,
        total_deducted_so_far=total_deducted,
        remaining_to_deduct=max(ZERO, total_amount - total_deducted),
        years_remaining=max(0, end_year - current_year),
        is_completed=current_year > end_year,
        annual_amount=total_amount / years,
    )


def deduction_schedule(expense: Expense) -> Dict[int, Decimal]:
    """
    Map every year with a non-zero deduction to its amount.

    Args:
        expense: The expense record

    Returns:
        Dictionary of year -> deduction, in ascending year order
    """
    _check_amount(expense)
    if not expense.tax_deductible:
        return {}

    window = _amortization_window(expense)
    if window is None:
        return {expense.expense_year: expense.amount}

    start_year, end_year, _ = window
    return {
        year: _deduction_in_year(expense, year)
        for year in range(start_year, end_year + 1)
    }


def total_deductions_for_year(expenses: Iterable[Expense], year: int) -> Decimal:
    """Sum the deductions of several expenses for one tax year."""
    return sum((deduction_for_year(e, year) for e in expenses), ZERO)
