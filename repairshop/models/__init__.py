"""SQLAlchemy ORM models for the repair shop database."""

from repairshop.models.base import Base
from repairshop.models.user import User, UserSession
from repairshop.models.customer import Customer
from repairshop.models.job import Job, StatusHistory
from repairshop.models.quote import Quote, QuoteItem
from repairshop.models.invoice import Invoice, InvoiceItem, Payment
from repairshop.models.communication import Communication
from repairshop.models.email_log import EmailLog
from repairshop.models.shop_settings import ShopSettings
from repairshop.models.number_sequence import NumberSequence

__all__ = [
    "Base",
    "User", "UserSession",
    "Customer",
    "Job", "StatusHistory",
    "Quote", "QuoteItem",
    "Invoice", "InvoiceItem", "Payment",
    "Communication",
    "EmailLog",
    "ShopSettings",
    "NumberSequence",
]
