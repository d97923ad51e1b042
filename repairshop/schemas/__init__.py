"""Pydantic request/response schemas."""

from repairshop.schemas.user import UserSummary, UserRead, UserCreate, LoginRequest
from repairshop.schemas.customer import CustomerCreate, CustomerUpdate, CustomerRead
from repairshop.schemas.job import (
    JobCreate, JobUpdate, JobRead, JobListResponse, StatusUpdate, StatusHistoryRead,
    CommunicationCreate, CommunicationRead,
)
from repairshop.schemas.quote import (
    LineItemIn, LineItemRead, SendQuoteRequest, RejectRequest, PublicQuoteRead, QuoteRead,
)
from repairshop.schemas.invoice import (
    InvoiceCreate, InvoiceRead, InvoiceListResponse, PaymentCreate, PaymentRead,
)
from repairshop.schemas.settings import (
    ShopSettingsRead, ShopSettingsUpdate, PublicSettings, EmailTestRequest,
)
from repairshop.schemas.public import (
    TrackedJob, TrackedHistoryEntry, JobSubmission, SubmissionResult,
)

__all__ = [
    "UserSummary", "UserRead", "UserCreate", "LoginRequest",
    "CustomerCreate", "CustomerUpdate", "CustomerRead",
    "JobCreate", "JobUpdate", "JobRead", "JobListResponse", "StatusUpdate", "StatusHistoryRead",
    "CommunicationCreate", "CommunicationRead",
    "LineItemIn", "LineItemRead", "SendQuoteRequest", "RejectRequest", "PublicQuoteRead", "QuoteRead",
    "InvoiceCreate", "InvoiceRead", "InvoiceListResponse", "PaymentCreate", "PaymentRead",
    "ShopSettingsRead", "ShopSettingsUpdate", "PublicSettings", "EmailTestRequest",
    "TrackedJob", "TrackedHistoryEntry", "JobSubmission", "SubmissionResult",
]
