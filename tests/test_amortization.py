"""
Tests for tax deduction amortization calculations.

This module tests per-year deductions, the status summary, deduction
schedules and the validation of years and amortization settings.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from app.models.amortization import (
    Expense,
    InvalidExpenseConfiguration,
    InvalidYear,
    TaxCalculationError,
    amortization_status,
    deduction_for_year,
    deduction_schedule,
    total_deductions_for_year,
    validate_year,
)

CENT = Decimal("0.01")


def make_expense(**overrides):
    fields = {
        "amount": Decimal("1200"),
        "date": date(2025, 9, 1),
        "taxDeductible": True,
    }
    fields.update(overrides)
    return Expense(**fields)


def amortized(amount="1200", years=2, start=date(2025, 9, 1)):
    return make_expense(
        amount=Decimal(amount),
        date=start,
        isAmortized=True,
        amortizationYears=years,
        amortizationStartDate=start,
    )


class TestExpense:
    """Test cases for the Expense record."""

    def test_accepts_camel_case_aliases(self):
        """Test that records in the client's camelCase shape validate."""
        expense = Expense(
            amount="99.50",
            date="2024-03-15",
            taxDeductible=True,
            isAmortized=False,
        )

        assert expense.amount == Decimal("99.50")
        assert expense.expense_date == date(2024, 3, 15)
        assert expense.tax_deductible is True

    def test_accepts_field_names(self):
        """Test populating by field name."""
        expense = Expense(amount=10, expense_date=date(2024, 1, 1), tax_deductible=True)

        assert expense.expense_year == 2024

    def test_timestamp_uses_utc_calendar_year(self):
        """Test that an offset timestamp is read in UTC."""
        # 23:30 on Dec 31 at UTC-05:00 is already Jan 1 in UTC
        expense = Expense(amount=10, date="2024-12-31T23:30:00-05:00")

        assert expense.expense_date == date(2025, 1, 1)
        assert expense.expense_year == 2025

    def test_naive_datetime_is_truncated(self):
        """Test that a naive datetime keeps its calendar date."""
        expense = Expense(amount=10, date=datetime(2024, 6, 30, 22, 0))

        assert expense.expense_date == date(2024, 6, 30)

    def test_defaults(self):
        """Test that omitted flags default to not deductible and not amortized."""
        expense = Expense(amount=10, date=date(2024, 1, 1))

        assert expense.tax_deductible is False
        assert expense.is_amortized is False
        assert expense.amortization_years is None
        assert expense.amortization_start_date is None


class TestValidateYear:
    """Test cases for tax year validation."""

    @pytest.mark.parametrize("year", [1900, 2024, 2100])
    def test_valid_years(self, year):
        assert validate_year(year) == year

    @pytest.mark.parametrize("year", [1899, 2101, -1])
    def test_out_of_range(self, year):
        with pytest.raises(InvalidYear):
            validate_year(year)

    @pytest.mark.parametrize("year", ["2024", 2024.0, None, True])
    def test_non_integer(self, year):
        with pytest.raises(InvalidYear):
            validate_year(year)

    def test_errors_share_a_base_class(self):
        """Test that calculator errors are ValueErrors."""
        assert issubclass(InvalidYear, TaxCalculationError)
        assert issubclass(InvalidExpenseConfiguration, TaxCalculationError)
        assert issubclass(TaxCalculationError, ValueError)


class TestDeductionForYear:
    """Test cases for deduction_for_year."""

    @pytest.mark.parametrize("year", range(2015, 2036))
    def test_non_deductible_is_always_zero(self, year):
        """Test that non-deductible expenses never produce a deduction."""
        expense = make_expense(taxDeductible=False, isAmortized=True,
                               amortizationYears=5, amortizationStartDate=date(2024, 1, 1))

        assert deduction_for_year(expense, year) == 0

    def test_non_amortized_sum_equals_amount(self):
        """Test that a one-off deduction lands entirely in its own year."""
        expense = make_expense(amount=Decimal("437.25"), date=date(2022, 11, 3))

        total = sum(deduction_for_year(expense, y) for y in range(1900, 2101))

        assert total == Decimal("437.25")
        assert deduction_for_year(expense, 2022) == Decimal("437.25")

    @pytest.mark.parametrize("amount,years", [("1200", 2), ("1000", 3), ("9999.99", 7), ("5", 1)])
    def test_amortized_sum_equals_amount(self, amount, years):
        """Test that amortized deductions add up to the amount within the window."""
        expense = amortized(amount=amount, years=years, start=date(2020, 4, 1))

        window = range(2020, 2020 + years)
        total = sum(deduction_for_year(expense, y) for y in window)

        assert total.quantize(CENT) == Decimal(amount)
        assert deduction_for_year(expense, 2019) == 0
        assert deduction_for_year(expense, 2020 + years) == 0

    def test_two_year_amortization(self):
        """Test $1,200 over 2 years from 2025-09-01."""
        expense = amortized()

        assert deduction_for_year(expense, 2025) == Decimal("600")
        assert deduction_for_year(expense, 2026) == Decimal("600")
        assert deduction_for_year(expense, 2027) == 0

    def test_one_off_expense(self):
        """Test a $500 non-amortized expense dated 2024-03-15."""
        expense = make_expense(amount=Decimal("500"), date=date(2024, 3, 15), isAmortized=False)

        assert deduction_for_year(expense, 2024) == Decimal("500")
        assert deduction_for_year(expense, 2023) == 0
        assert deduction_for_year(expense, 2025) == 0

    def test_start_year_is_not_prorated(self):
        """Test that a December start still gets a full annual share."""
        expense = amortized(amount="3000", years=3, start=date(2024, 12, 31))

        assert deduction_for_year(expense, 2024) == Decimal("1000")

    def test_partially_configured_amortization_is_one_off(self):
        """Test that missing amortization fields fall back to a one-off deduction."""
        expense = make_expense(isAmortized=True, amortizationYears=3)

        assert deduction_for_year(expense, 2025) == Decimal("1200")
        assert deduction_for_year(expense, 2026) == 0

    @pytest.mark.parametrize("years", [0, -2])
    def test_non_positive_years_raise(self, years):
        """Test that zero or negative amortization years are rejected."""
        expense = amortized(years=years)

        with pytest.raises(InvalidExpenseConfiguration):
            deduction_for_year(expense, 2025)

    def test_invalid_year_raises(self):
        with pytest.raises(InvalidYear):
            deduction_for_year(amortized(), 3000)

    def test_negative_amount_raises(self):
        expense = make_expense(amount=Decimal("-100"), date=date(2024, 1, 5))

        with pytest.raises(InvalidExpenseConfiguration):
            deduction_for_year(expense, 2024)
        with pytest.raises(InvalidExpenseConfiguration):
            amortization_status(expense, 2024)
        with pytest.raises(InvalidExpenseConfiguration):
            deduction_schedule(expense)

    def test_negative_non_deductible_amount_is_ignored(self):
        expense = make_expense(amount=Decimal("-100"), taxDeductible=False)

        assert deduction_for_year(expense, 2025) == 0
        assert amortization_status(expense, 2025).total_deducted_so_far == 0


class TestAmortizationStatus:
    """Test cases for amortization_status."""

    @pytest.mark.parametrize("current_year", [2024, 2025, 2026, 2027, 2030])
    def test_total_deducted_matches_yearly_sum(self, current_year):
        """Test that the running total agrees with the per-year function."""
        expense = amortized(amount="1000", years=3, start=date(2025, 1, 1))

        status = amortization_status(expense, current_year)

        expected = sum(
            (deduction_for_year(expense, y) for y in range(2025, min(current_year, 2027) + 1)),
            Decimal("0"),
        )
        assert status.total_deducted_so_far == expected

    @pytest.mark.parametrize("current_year,completed", [(2026, False), (2027, False), (2028, True)])
    def test_amortized_completion(self, current_year, completed):
        """Test that amortization completes after the end year."""
        status = amortization_status(amortized(years=3, start=date(2025, 1, 1)), current_year)

        assert status.end_year == 2027
        assert status.is_completed is completed

    @pytest.mark.parametrize("current_year,completed", [(2023, False), (2024, True), (2030, True)])
    def test_one_off_completion(self, current_year, completed):
        """Test that a one-off deduction completes in its own year."""
        expense = make_expense(amount=Decimal("500"), date=date(2024, 3, 15))

        status = amortization_status(expense, current_year)

        assert status.is_completed is completed

    def test_one_off_after_its_year(self):
        """Test the $500 expense as of 2025."""
        expense = make_expense(amount=Decimal("500"), date=date(2024, 3, 15))

        status = amortization_status(expense, 2025)

        assert status.is_completed is True
        assert status.total_deducted_so_far == Decimal("500")
        assert status.remaining_to_deduct == 0
        assert status.current_year_deduction == 0
        assert status.start_year == status.end_year == 2024

    def test_one_off_in_the_future(self):
        """Test a one-off expense dated after the current year."""
        expense = make_expense(amount=Decimal("500"), date=date(2027, 1, 1))

        status = amortization_status(expense, 2025)

        assert status.total_deducted_so_far == 0
        assert status.remaining_to_deduct == Decimal("500")
        assert status.years_remaining == 2
        assert status.annual_amount == Decimal("500")

    @pytest.mark.parametrize("current_year", [1990, 2024, 2099])
    def test_non_deductible_status(self, current_year):
        """Test that non-deductible expenses report nothing deducted or remaining."""
        expense = make_expense(amount=Decimal("750"), taxDeductible=False)

        status = amortization_status(expense, current_year)

        assert status.is_deductible is False
        assert status.total_deducted_so_far == 0
        assert status.remaining_to_deduct == 0
        assert status.is_completed is False
        assert status.total_amount == Decimal("750")

    def test_amortized_mid_window(self):
        """Test the full status of an amortized expense in its second year."""
        status = amortization_status(amortized(amount="3000", years=3, start=date(2024, 2, 1)), 2025)

        assert status.is_amortized is True
        assert status.amortization_years == 3
        assert status.start_year == 2024
        assert status.end_year == 2026
        assert status.current_year_deduction == Decimal("1000")
        assert status.total_deducted_so_far == Decimal("2000")
        assert status.remaining_to_deduct == Decimal("1000")
        assert status.years_remaining == 1
        assert status.annual_amount == Decimal("1000")

    def test_years_remaining_before_start(self):
        """Test years remaining counted from the current year to the end year."""
        status = amortization_status(amortized(years=2, start=date(2030, 1, 1)), 2025)

        assert status.years_remaining == 6
        assert status.total_deducted_so_far == 0
        assert status.remaining_to_deduct == Decimal("1200")

    def test_defaults_to_current_utc_year(self):
        """Test that the current year defaults to today's UTC year."""
        status = amortization_status(amortized())

        assert status.current_year == datetime.now(timezone.utc).year


class TestDeductionSchedule:
    """Test cases for deduction schedules and yearly totals."""

    def test_amortized_schedule(self):
        schedule = deduction_schedule(amortized(amount="900", years=3, start=date(2024, 5, 1)))

        assert schedule == {2024: Decimal("300"), 2025: Decimal("300"), 2026: Decimal("300")}

    def test_one_off_schedule(self):
        schedule = deduction_schedule(make_expense(amount=Decimal("80"), date=date(2023, 2, 2)))

        assert schedule == {2023: Decimal("80")}

    def test_non_deductible_schedule_is_empty(self):
        assert deduction_schedule(make_expense(taxDeductible=False)) == {}

    def test_window_past_last_valid_tax_year(self):
        """Test that a window running beyond 2100 still produces every year."""
        expense = amortized(amount="2700", years=27, start=date(2090, 3, 1))

        schedule = deduction_schedule(expense)

        assert amortization_status(expense, 2095).end_year == 2116
        assert list(schedule) == list(range(2090, 2117))
        assert schedule[2116] == Decimal("100")

    def test_total_deductions_for_year(self):
        """Test summing the deductions of several expenses."""
        expenses = [
            amortized(amount="1200", years=2, start=date(2025, 1, 1)),
            make_expense(amount=Decimal("75"), date=date(2025, 8, 8)),
            make_expense(amount=Decimal("40"), date=date(2025, 8, 8), taxDeductible=False),
        ]

        assert total_deductions_for_year(expenses, 2025) == Decimal("675")
        assert total_deductions_for_year(expenses, 2026) == Decimal("600")
        assert total_deductions_for_year([], 2026) == 0
