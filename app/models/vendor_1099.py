"""
1099-NEC reporting for vendors paid by a landlord.

Payments to each vendor are totalled for a tax year. Individual
(non-corporate) vendors paid at least the reporting threshold need a
1099-NEC, which in turn requires a W-9 on file.
"""

import logging
from decimal import Decimal
from typing import Iterable, List

from jinja2 import Environment, PackageLoader, select_autoescape
from pydantic import BaseModel, Field

from .amortization import ZERO, validate_year
from .amortization_display import format_currency
from .tax_records import TaxTransaction, VendorRecord

logger = logging.getLogger(__name__)

DEFAULT_1099_THRESHOLD = Decimal("600")

templates = Environment(
    loader=PackageLoader("app", "templates"),
    autoescape=select_autoescape(["html"]),
)


class Vendor1099Entry(BaseModel):
    """Payment total and filing state of one vendor for a tax year."""

    vendor: VendorRecord
    total_payments: Decimal = Field(..., ge=0, description="Cash paid in the year")
    qualifies_for_1099: bool = Field(..., description="A 1099-NEC must be filed")
    w9_on_file: bool = Field(..., description="W-9 has been collected")
    missing_w9: bool = Field(..., description="Qualifies but no W-9 on file")


def build_1099_report(
    vendors: Iterable[VendorRecord],
    transactions: Iterable[TaxTransaction],
    year: int,
    threshold: Decimal = DEFAULT_1099_THRESHOLD,
) -> List[Vendor1099Entry]:
    """
    Total vendor payments for a tax year.

    Only Expense transactions dated in the year count, and only the cash
    actually paid on them.

    Args:
        vendors: Known vendors
        transactions: Transactions, some of which reference a vendor
        year: Tax year
        threshold: Payment total at which an individual vendor needs a 1099-NEC

    Returns:
        One entry per vendor paid in the year, largest total first
    """
    validate_year(year)

    totals = {}
    for txn in transactions:
        if txn.type != "Expense" or txn.vendor_id is None or txn.expense_year != year:
            continue
        totals[txn.vendor_id] = totals.get(txn.vendor_id, ZERO) + txn.amount_paid()

    entries = []
    for vendor in vendors:
        total = totals.get(vendor.id, ZERO)
        if total <= 0:
            continue
        qualifies = vendor.vendor_type == "individual" and total >= threshold
        entries.append(
            Vendor1099Entry(
                vendor=vendor,
                total_payments=total,
                qualifies_for_1099=qualifies,
                w9_on_file=vendor.w9_on_file,
                missing_w9=qualifies and not vendor.w9_on_file,
            )
        )

    entries.sort(key=lambda e: e.total_payments, reverse=True)
    return entries


def render_1099_nec(entry: Vendor1099Entry, year: int, payer_name: str) -> str:
    """Render a 1099-NEC worksheet for one vendor as an HTML document."""
    return templates.get_template("1099_nec.html").render(
        year=year,
        vendor=entry.vendor,
        payer_name=payer_name,
        compensation=format_currency(entry.total_payments),
    )


class Form1099Generator:
    """Renders 1099-NEC documents and saves them to a document store."""

    def __init__(self, store, payer_name: str = "Property owner"):
        """
        Args:
            store: DocumentStore the rendered forms are written to
            payer_name: Name printed in the payer box
        """
        self.store = store
        self.payer_name = payer_name

    @staticmethod
    def document_key(year: int, vendor_id: int) -> str:
        return f"1099/{year}/{vendor_id}.html"

    def generate(self, entry: Vendor1099Entry, year: int) -> str:
        """
        Render and store the form for one vendor.

        Returns:
            str: Storage key of the stored document

        Raises:
            ValueError: If the vendor does not qualify for a 1099-NEC
        """
        if not entry.qualifies_for_1099:
            raise ValueError(f"Vendor {entry.vendor.id} does not qualify for a 1099-NEC in {year}")

        document = render_1099_nec(entry, year, self.payer_name)
        key = self.store.put_text(
            self.document_key(year, entry.vendor.id),
            document,
            content_type="text/html",
            metadata={"vendor_id": entry.vendor.id, "tax_year": year},
        )
        logger.info(f"Stored 1099-NEC for vendor {entry.vendor.id} ({year}) at {key}")
        return key

    def fetch(self, year: int, vendor_id: int) -> str:
        """
        Read back a stored form.

        Raises:
            StorageNotFoundError: If no form was generated for the vendor and year
        """
        return self.store.get(self.document_key(year, vendor_id)).decode("utf-8")

    def stored_vendor_ids(self, year: int) -> List[int]:
        """IDs of the vendors with a stored form for the year."""
        prefix = f"1099/{year}/"
        ids = []
        for key in self.store.list_keys(prefix):
            name = key[len(prefix):]
            if name.endswith(".html") and name[:-5].isdigit():
                ids.append(int(name[:-5]))
        return sorted(ids)

    def remove(self, year: int, vendor_id: int) -> bool:
        """Delete a stored form. Returns False if there was none."""
        deleted = self.store.delete(self.document_key(year, vendor_id))
        if deleted:
            logger.info(f"Deleted 1099-NEC for vendor {vendor_id} ({year})")
        return deleted
