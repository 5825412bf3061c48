"""
Schedule E (Supplemental Income and Loss) preview for rental properties.

Rental income and deductible expenses are aggregated per property and per
Schedule E expense line for one tax year. Expenses contribute their
deduction for that year, so an amortized expense appears on every return
in its amortization window rather than only in the year it was paid.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from .amortization import deduction_for_year, validate_year
from .tax_records import RentalProperty, TaxTransaction

logger = logging.getLogger(__name__)

# Category key -> (Schedule E line, label)
SCHEDULE_E_CATEGORIES: Dict[str, tuple] = {
    "advertising": ("5", "Advertising"),
    "auto_travel": ("6", "Auto and travel"),
    "cleaning_maintenance": ("7", "Cleaning and maintenance"),
    "commissions": ("8", "Commissions"),
    "insurance": ("9", "Insurance"),
    "legal_professional": ("10", "Legal and other professional fees"),
    "management_fees": ("11", "Management fees"),
    "mortgage_interest": ("12", "Mortgage interest paid to banks, etc."),
    "other_interest": ("13", "Other interest"),
    "repairs": ("14", "Repairs"),
    "supplies": ("15", "Supplies"),
    "taxes": ("16", "Taxes"),
    "utilities": ("17", "Utilities"),
    "depreciation": ("18", "Depreciation expense or depletion"),
    "other_expenses": ("19", "Other (list)"),
}

CATEGORY_KEYS = list(SCHEDULE_E_CATEGORIES)


class PropertyScheduleE(BaseModel):
    """Schedule E figures for one property (or the all-property total)."""

    property_id: Optional[int] = Field(default=None, description="None for totals")
    property_name: str = Field(..., description="Property display name")
    income: float = Field(..., description="Rents received")
    expenses: Dict[str, float] = Field(..., description="Deductions by category key")
    total_expenses: float = Field(..., description="Sum of all categories")
    net_income: float = Field(..., description="Income less expenses")


class ScheduleEReport(BaseModel):
    """Schedule E preview for a tax year."""

    year: int
    properties: List[PropertyScheduleE]
    totals: PropertyScheduleE
    has_data: bool = Field(..., description="Any income or deductions in the year")
    uncategorized_expense_ids: List[int] = Field(
        default_factory=list,
        description="Deductible expenses missing a Schedule E category",
    )

    def lines(self) -> List[dict]:
        """Total deductions as Schedule E lines, in line order."""
        return [
            {
                "line": line,
                "category": key,
                "label": label,
                "amount": self.totals.expenses[key],
            }
            for key, (line, label) in SCHEDULE_E_CATEGORIES.items()
        ]


def _cents(value: float) -> float:
    return round(float(value), 2)


def build_schedule_e(
    properties: Iterable[RentalProperty],
    transactions: Iterable[TaxTransaction],
    year: int,
) -> ScheduleEReport:
    """
    Build the Schedule E preview for a tax year.

    Args:
        properties: Properties to report on
        transactions: Income and expense transactions for those properties
        year: Tax year

    Returns:
        ScheduleEReport with per-property figures and totals
    """
    validate_year(year)
    properties = list(properties)
    property_ids = [p.id for p in properties]
    known = set(property_ids)

    income_rows = []
    expense_rows = []
    uncategorized = []

    for txn in transactions:
        if txn.property_id not in known:
            continue

        if txn.type == "Income":
            if txn.expense_year == year and txn.payment_status != "Unpaid":
                income_rows.append(
                    {"property_id": txn.property_id, "amount": float(txn.amount_paid())}
                )
            continue

        if not txn.tax_deductible:
            continue

        deduction = deduction_for_year(txn, year)
        if not deduction:
            continue

        if txn.schedule_e_category not in SCHEDULE_E_CATEGORIES:
            uncategorized.append(txn.id)
            continue

        expense_rows.append(
            {
                "property_id": txn.property_id,
                "category": txn.schedule_e_category,
                "amount": float(deduction),
            }
        )

    income_df = pd.DataFrame(income_rows, columns=["property_id", "amount"])
    income_by_property = (
        income_df.groupby("property_id")["amount"].sum().reindex(property_ids, fill_value=0.0)
    )

    expense_df = pd.DataFrame(expense_rows, columns=["property_id", "category", "amount"])
    if expense_df.empty:
        expense_table = pd.DataFrame(0.0, index=property_ids, columns=CATEGORY_KEYS)
    else:
        expense_table = (
            expense_df.groupby(["property_id", "category"])["amount"]
            .sum()
            .unstack(fill_value=0.0)
            .reindex(index=property_ids, columns=CATEGORY_KEYS, fill_value=0.0)
        )

    property_reports = []
    for prop in properties:
        expenses = {key: _cents(expense_table.at[prop.id, key]) for key in CATEGORY_KEYS}
        income = _cents(income_by_property.at[prop.id])
        total_expenses = _cents(sum(expenses.values()))
        property_reports.append(
            PropertyScheduleE(
                property_id=prop.id,
                property_name=prop.name,
                income=income,
                expenses=expenses,
                total_expenses=total_expenses,
                net_income=_cents(income - total_expenses),
            )
        )

    total_income = _cents(sum(p.income for p in property_reports))
    total_by_category = {
        key: _cents(sum(p.expenses[key] for p in property_reports)) for key in CATEGORY_KEYS
    }
    total_expenses = _cents(sum(total_by_category.values()))
    totals = PropertyScheduleE(
        property_name="All properties",
        income=total_income,
        expenses=total_by_category,
        total_expenses=total_expenses,
        net_income=_cents(total_income - total_expenses),
    )

    if uncategorized:
        logger.info(
            f"Schedule E {year}: {len(uncategorized)} deductible expenses have no category"
        )

    return ScheduleEReport(
        year=year,
        properties=property_reports,
        totals=totals,
        has_data=total_income > 0 or total_expenses > 0,
        uncategorized_expense_ids=uncategorized,
    )
