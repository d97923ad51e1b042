"""Invoice and payment schemas."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairshop.models.enums import PaymentMethod
from repairshop.schemas.customer import CustomerRead
from repairshop.schemas.quote import LineItemIn, LineItemRead


class InvoiceCreate(BaseModel):
    job_id: str
    items: list[LineItemIn] = Field(min_length=1)
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    discount_amount: float = Field(default=0.0, ge=0)
    due_date: datetime | None = None
    notes: str = ""
    payment_terms: str | None = None


class PaymentCreate(BaseModel):
    amount: float = Field(gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: datetime | None = None
    reference_number: str = ""
    notes: str = ""


class PaymentRead(BaseModel):
    id: str
    amount: float
    payment_method: str
    payment_date: datetime
    reference_number: str = ""
    notes: str = ""

    model_config = {"from_attributes": True}


class InvoiceRead(BaseModel):
    id: str
    invoice_number: str
    job_id: str
    customer_id: str
    issued_by_id: str | None = None
    status: str
    issue_date: datetime
    due_date: datetime
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    paid_amount: float
    balance_amount: float
    notes: str = ""
    payment_terms: str = ""
    items: list[LineItemRead] = []
    payments: list[PaymentRead] = []
    customer: CustomerRead | None = None

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceRead]
    total: int
    page: int
    limit: int
