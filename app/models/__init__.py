"""Domain models for rental tax reporting and contractor work lists."""

from .amortization import (
    AmortizationStatus,
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
from .amortization_display import (
    AmortizationDisplay,
    format_amortization_display,
    format_currency,
)
from .tax_records import RentalProperty, TaxTransaction, VendorRecord
from .schedule_e import ScheduleEReport, build_schedule_e
from .vendor_1099 import Form1099Generator, Vendor1099Entry, build_1099_report, render_1099_nec
from .work_items import (
    FilterSelection,
    FilterSelectionError,
    ItemType,
    ReadStatus,
    SortKey,
    WorkItem,
    apply_selection,
    filter_items,
    sort_items,
)
from .advisor import AdvisorRule, Recommendation, answer_question, recommend
from .work_queue import WorkQueueCase, WorkQueueQuery, filter_queue, queue_stats

__all__ = [
    # Amortization
    "Expense",
    "AmortizationStatus",
    "TaxCalculationError",
    "InvalidExpenseConfiguration",
    "InvalidYear",
    "validate_year",
    "deduction_for_year",
    "amortization_status",
    "deduction_schedule",
    "total_deductions_for_year",
    "AmortizationDisplay",
    "format_amortization_display",
    "format_currency",
    # Tax reports
    "RentalProperty",
    "TaxTransaction",
    "VendorRecord",
    "ScheduleEReport",
    "build_schedule_e",
    "Vendor1099Entry",
    "build_1099_report",
    "render_1099_nec",
    "Form1099Generator",
    # Work items
    "WorkItem",
    "ItemType",
    "SortKey",
    "ReadStatus",
    "FilterSelection",
    "FilterSelectionError",
    "filter_items",
    "sort_items",
    "apply_selection",
    "Recommendation",
    "AdvisorRule",
    "recommend",
    "answer_question",
    "WorkQueueCase",
    "WorkQueueQuery",
    "filter_queue",
    "queue_stats",
]
