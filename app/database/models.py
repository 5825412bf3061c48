"""
SQLAlchemy database models for the property hub.

This module defines the database tables and relationships for users,
properties, vendors, transactions, maintenance cases, quotes and messages.
"""

from datetime import datetime
from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String,
    Text, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from app.models.amortization import Expense
from app.models.tax_records import RentalProperty, TaxTransaction, VendorRecord
from app.models.work_items import WorkItem
from app.models.work_queue import WorkQueueCase

from .base import Base


def _iso(value):
    return value.isoformat() if value is not None else None


def _number(value):
    return float(value) if value is not None else None


class User(Base):
    """User model for landlords, contractors and tenants."""

    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default='landlord')
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    properties = relationship("Property", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("role IN ('landlord', 'contractor', 'tenant')", name='ck_user_role'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Property(Base):
    """Rental property owned by a landlord."""

    __tablename__ = 'properties'

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    street = Column(String(255))
    city = Column(String(100))
    state = Column(String(50))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="properties")
    transactions = relationship("Transaction", back_populates="property", cascade="all, delete-orphan")
    cases = relationship("MaintenanceCase", back_populates="property")

    @property
    def address(self):
        parts = [p for p in (self.street, self.city, self.state) if p]
        return ", ".join(parts) or None

    def to_rental_property(self) -> RentalProperty:
        return RentalProperty(id=self.id, name=self.name, address=self.address)

    def __repr__(self):
        return f"<Property(id={self.id}, name='{self.name}')>"


class Vendor(Base):
    """Vendor or service provider paid by a landlord."""

    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    vendor_type = Column(String(50), nullable=False, default='business')
    tax_id = Column(String(50))
    address = Column(Text)
    w9_on_file = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="vendor")

    __table_args__ = (
        CheckConstraint("vendor_type IN ('individual', 'business')", name='ck_vendor_type'),
    )

    def to_record(self) -> VendorRecord:
        return VendorRecord(
            id=self.id,
            name=self.name,
            vendor_type=self.vendor_type,
            w9_on_file=bool(self.w9_on_file),
            tax_id=self.tax_id,
            address=self.address,
        )

    def __repr__(self):
        return f"<Vendor(id={self.id}, name='{self.name}', type='{self.vendor_type}')>"


class Transaction(Base):
    """Income or expense recorded against a property."""

    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id', ondelete='SET NULL'), index=True)
    type = Column(String(20), nullable=False, index=True)
    description = Column(Text)
    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    payment_status = Column(String(20), default='Paid')
    paid_amount = Column(Numeric(15, 2))
    tax_deductible = Column(Boolean, nullable=False, default=False)
    schedule_e_category = Column(String(50))
    is_amortized = Column(Boolean, nullable=False, default=False)
    amortization_years = Column(Integer)
    amortization_start_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    property = relationship("Property", back_populates="transactions")
    vendor = relationship("Vendor", back_populates="transactions")

    __table_args__ = (
        CheckConstraint("type IN ('Income', 'Expense')", name='ck_transaction_type'),
        CheckConstraint("payment_status IN ('Paid', 'Partial', 'Unpaid')", name='ck_payment_status'),
        CheckConstraint("amortization_years IS NULL OR amortization_years > 0", name='ck_amortization_years_positive'),
        Index('idx_transactions_property_date', 'property_id', 'date'),
    )

    def to_expense(self) -> Expense:
        """Convert this row to the deduction calculator's expense record."""
        return Expense(
            amount=self.amount,
            date=self.date,
            tax_deductible=bool(self.tax_deductible),
            is_amortized=bool(self.is_amortized),
            amortization_years=self.amortization_years,
            amortization_start_date=self.amortization_start_date,
        )

    def to_tax_transaction(self) -> TaxTransaction:
        """Convert this row to the record used by the Schedule E and 1099 reports."""
        return TaxTransaction(
            id=self.id,
            property_id=self.property_id,
            vendor_id=self.vendor_id,
            type=self.type,
            amount=self.amount,
            date=self.date,
            payment_status=self.payment_status or "Paid",
            paid_amount=self.paid_amount,
            tax_deductible=bool(self.tax_deductible),
            schedule_e_category=self.schedule_e_category,
            is_amortized=bool(self.is_amortized),
            amortization_years=self.amortization_years,
            amortization_start_date=self.amortization_start_date,
        )

    def __repr__(self):
        return f"<Transaction(id={self.id}, type='{self.type}', amount={self.amount}, date={self.date})>"


class MaintenanceCase(Base):
    """Maintenance request raised by a tenant and worked by a contractor."""

    __tablename__ = 'maintenance_cases'

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='SET NULL'), index=True)
    assigned_contractor_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), nullable=False, default='New', index=True)
    priority = Column(String(20), default='Normal')
    category = Column(String(100))
    customer_name = Column(String(255))
    location_text = Column(String(255))
    estimated_cost = Column(Numeric(15, 2))
    scheduled_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    property = relationship("Property", back_populates="cases")
    quotes = relationship("Quote", back_populates="case")
    messages = relationship("Message", back_populates="case", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_cases_status_created', 'status', 'created_at'),
    )

    def to_work_item(self) -> WorkItem:
        return WorkItem(
            id=str(self.id),
            title=self.title,
            customer_name=self.customer_name or "",
            description=self.description,
            status=self.status,
            priority=self.priority,
            category=self.category,
            estimated_value=_number(self.estimated_cost),
            scheduled_date=_iso(self.scheduled_date),
            created_at=_iso(self.created_at),
        )

    def to_queue_case(self) -> WorkQueueCase:
        return WorkQueueCase(
            id=str(self.id),
            title=self.title,
            description=self.description,
            priority=self.priority,
            status=self.status,
            category=self.category,
            customer_name=self.customer_name,
            location_text=self.location_text,
            estimated_cost=_number(self.estimated_cost),
            created_at=self.created_at,
        )

    def __repr__(self):
        return f"<MaintenanceCase(id={self.id}, title='{self.title}', status='{self.status}')>"


class Quote(Base):
    """Contractor quote for a maintenance case."""

    __tablename__ = 'quotes'

    id = Column(Integer, primary_key=True, index=True)
    case_id = Column(Integer, ForeignKey('maintenance_cases.id', ondelete='SET NULL'), index=True)
    contractor_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), index=True)
    title = Column(String(255), nullable=False)
    customer_name = Column(String(255))
    status = Column(String(50), nullable=False, default='Draft', index=True)
    estimated_value = Column(Numeric(15, 2))
    total = Column(Numeric(15, 2))
    expires_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    case = relationship("MaintenanceCase", back_populates="quotes")

    def to_work_item(self) -> WorkItem:
        return WorkItem(
            id=str(self.id),
            title=self.title,
            customer_name=self.customer_name or "",
            status=self.status,
            estimated_value=_number(self.estimated_value),
            total=_number(self.total),
            expires_at=_iso(self.expires_at),
            created_at=_iso(self.created_at),
        )

    def __repr__(self):
        return f"<Quote(id={self.id}, title='{self.title}', status='{self.status}')>"


class Message(Base):
    """Message in the thread attached to a maintenance case."""

    __tablename__ = 'messages'

    id = Column(Integer, primary_key=True, index=True)
    case_id = Column(Integer, ForeignKey('maintenance_cases.id', ondelete='CASCADE'), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), index=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    read_at = Column(DateTime)

    # Relationships
    case = relationship("MaintenanceCase", back_populates="messages")

    def __repr__(self):
        return f"<Message(id={self.id}, case_id={self.case_id}, read={self.read_at is not None})>"
