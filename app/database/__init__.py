"""Database models and configuration for the property hub."""

from .base import Base, get_engine, get_session
from .models import (
    MaintenanceCase,
    Message,
    Property,
    Quote,
    Transaction,
    User,
    Vendor,
)

__all__ = [
    "Base",
    "get_engine",
    "get_session",
    "User",
    "Property",
    "Vendor",
    "Transaction",
    "MaintenanceCase",
    "Quote",
    "Message",
]
