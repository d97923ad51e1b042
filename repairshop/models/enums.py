"""Closed value sets stored as plain strings in the database."""

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    TECHNICIAN = "TECHNICIAN"
    CUSTOMER = "CUSTOMER"


class JobStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_PARTS = "AWAITING_PARTS"
    AWAITING_CUSTOMER_APPROVAL = "AWAITING_CUSTOMER_APPROVAL"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"
    CUSTOMER_CANCELLED = "CUSTOMER_CANCELLED"


# Statuses that stamp Job.actual_completion.
CLOSED_STATUSES = frozenset({JobStatus.CLOSED})


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CONVERTED_TO_INVOICE = "CONVERTED_TO_INVOICE"
    EXPIRED = "EXPIRED"


class CustomerResponse(str, Enum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class ItemType(str, Enum):
    PART = "PART"
    LABOR = "LABOR"
    SERVICE_FEE = "SERVICE_FEE"
    TAX = "TAX"
    DISCOUNT = "DISCOUNT"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    OTHER = "OTHER"


class EmailStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"


class EmailType(str, Enum):
    STATUS_UPDATE = "STATUS_UPDATE"
    QUOTE_SENT = "QUOTE_SENT"
    TEST = "TEST"
    JOB_CONFIRMATION = "JOB_CONFIRMATION"
    QUOTE_REMINDER = "QUOTE_REMINDER"
    INVOICE = "INVOICE"
    COMMUNICATION = "COMMUNICATION"


class CommunicationDirection(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class CommunicationChannel(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    PHONE = "PHONE"
    IN_PERSON = "IN_PERSON"


class ContactMethod(str, Enum):
    EMAIL = "EMAIL"
    PHONE = "PHONE"
