"""Records consumed by the tax reports (Schedule E and 1099-NEC)."""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .amortization import Expense

TransactionType = Literal["Income", "Expense"]
PaymentStatus = Literal["Paid", "Partial", "Unpaid"]
VendorType = Literal["individual", "business"]


class RentalProperty(BaseModel):
    """A rental property reported on Schedule E."""

    id: int = Field(..., description="Property identifier")
    name: str = Field(..., description="Display name")
    address: Optional[str] = Field(default=None, description="Street address")


class TaxTransaction(Expense):
    """An income or expense transaction with its tax attributes."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., description="Transaction identifier")
    property_id: int = Field(..., alias="propertyId", description="Owning property")
    vendor_id: Optional[int] = Field(
        default=None, alias="vendorId", description="Vendor paid, if any"
    )
    type: TransactionType = Field(..., description="Income or Expense")
    payment_status: PaymentStatus = Field(default="Paid", alias="paymentStatus")
    paid_amount: Optional[Decimal] = Field(
        default=None, alias="paidAmount", description="Amount paid when Partial"
    )
    schedule_e_category: Optional[str] = Field(
        default=None, alias="scheduleECategory", description="Schedule E category key"
    )

    def amount_paid(self) -> Decimal:
        """Cash actually paid: full amount, partial amount, or nothing."""
        if self.payment_status == "Paid":
            return self.amount
        if self.payment_status == "Partial":
            return self.paid_amount or Decimal("0")
        return Decimal("0")


class VendorRecord(BaseModel):
    """A vendor that may need a 1099-NEC."""

    id: int = Field(..., description="Vendor identifier")
    name: str = Field(..., description="Vendor legal name")
    vendor_type: VendorType = Field(default="business", description="individual or business")
    w9_on_file: bool = Field(default=False, description="W-9 has been collected")
    tax_id: Optional[str] = Field(default=None, description="TIN from the W-9")
    address: Optional[str] = Field(default=None, description="Mailing address")
