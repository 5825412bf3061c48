"""
Pytest configuration and shared fixtures for the property hub tests.
"""

import os
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import create_app
from app.config import reset_global_settings
from app.database.base import Base
from app.database.models import MaintenanceCase, Property, Transaction, User, Vendor

TEST_ENV = {
    "SECRET_KEY": "test-secret-key-123",
    "APP_ENV": "testing",
    "DB_URL": "sqlite://",
    "LOG_LEVEL": "WARNING",
}

LANDLORD_ID = 1
CONTRACTOR_ID = 2


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_env():
    """Patch the environment with a valid configuration."""
    reset_global_settings()
    with patch.dict(os.environ, TEST_ENV, clear=True):
        yield
    reset_global_settings()


@pytest.fixture
def app(test_env):
    return create_app("testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def patch_db(db_session):
    """Route every blueprint's get_db() to the test session."""

    def fake_get_db():
        return iter([db_session])

    with patch("app.blueprints.tax.get_db", side_effect=fake_get_db), patch(
        "app.blueprints.contractor.get_db", side_effect=fake_get_db
    ), patch("app.blueprints.cases.get_db", side_effect=fake_get_db), patch(
        "app.blueprints.health.get_db", side_effect=fake_get_db
    ):
        yield db_session


@pytest.fixture
def landlord_data(db_session):
    """A landlord with two properties, two vendors and a year of transactions."""
    landlord = User(id=LANDLORD_ID, email="owner@example.com", name="Pat Owner", role="landlord")
    contractor = User(
        id=CONTRACTOR_ID, email="fixer@example.com", name="Sam Fixer", role="contractor"
    )
    maple = Property(id=10, owner_id=LANDLORD_ID, name="Maple Duplex", street="1 Maple St")
    oak = Property(id=11, owner_id=LANDLORD_ID, name="Oak Cottage", city="Springfield")
    plumber = Vendor(
        id=20,
        owner_id=LANDLORD_ID,
        name="Jo Plumber",
        vendor_type="individual",
        w9_on_file=False,
    )
    roofing = Vendor(
        id=21, owner_id=LANDLORD_ID, name="Roofing LLC", vendor_type="business", w9_on_file=True
    )
    transactions = [
        Transaction(
            id=100,
            property_id=10,
            type="Income",
            amount=Decimal("1500.00"),
            date=date(2024, 1, 5),
            payment_status="Paid",
        ),
        Transaction(
            id=101,
            property_id=10,
            type="Income",
            amount=Decimal("1500.00"),
            date=date(2024, 2, 5),
            payment_status="Partial",
            paid_amount=Decimal("1000.00"),
        ),
        Transaction(
            id=102,
            property_id=10,
            vendor_id=20,
            type="Expense",
            amount=Decimal("800.00"),
            date=date(2024, 3, 10),
            tax_deductible=True,
            schedule_e_category="repairs",
        ),
        Transaction(
            id=103,
            property_id=11,
            vendor_id=21,
            type="Expense",
            amount=Decimal("12000.00"),
            date=date(2024, 6, 1),
            tax_deductible=True,
            schedule_e_category="other_expenses",
            is_amortized=True,
            amortization_years=3,
            amortization_start_date=date(2024, 6, 1),
        ),
        Transaction(
            id=104,
            property_id=11,
            type="Expense",
            amount=Decimal("50.00"),
            date=date(2024, 7, 1),
            tax_deductible=True,
        ),
    ]
    db_session.add_all([landlord, contractor, maple, oak, plumber, roofing, *transactions])
    db_session.commit()
    return landlord


@pytest.fixture
def contractor_cases(db_session):
    """Cases assigned to the test contractor."""
    contractor = User(
        id=CONTRACTOR_ID, email="fixer@example.com", name="Sam Fixer", role="contractor"
    )
    cases = [
        MaintenanceCase(
            id=1,
            assigned_contractor_id=CONTRACTOR_ID,
            title="Leaking faucet",
            status="New",
            priority="Urgent",
            category="Plumbing",
            customer_name="Alice",
            estimated_cost=Decimal("250"),
            created_at=datetime(2024, 5, 1, 9, 0),
        ),
        MaintenanceCase(
            id=2,
            assigned_contractor_id=CONTRACTOR_ID,
            title="Broken heater",
            status="Assigned",
            priority="Normal",
            category="HVAC",
            customer_name="Bob",
            estimated_cost=Decimal("900"),
            created_at=datetime(2024, 5, 2, 9, 0),
        ),
        MaintenanceCase(
            id=3,
            assigned_contractor_id=CONTRACTOR_ID,
            title="Replace panel",
            status="In Progress",
            priority="High",
            category="Electrical",
            customer_name="Carol",
            estimated_cost=Decimal("1200"),
            created_at=datetime(2024, 5, 3, 9, 0),
        ),
        MaintenanceCase(
            id=4,
            assigned_contractor_id=99,
            title="Someone else's job",
            status="New",
            created_at=datetime(2024, 5, 4, 9, 0),
        ),
    ]
    db_session.add_all([contractor, *cases])
    db_session.commit()
    return cases
