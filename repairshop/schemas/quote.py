"""Quote and line item schemas."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairshop.models.enums import ItemType
from repairshop.schemas.customer import CustomerRead


class LineItemIn(BaseModel):
    description: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit_price: float = Field(ge=0)
    item_type: ItemType = ItemType.PART


class LineItemRead(BaseModel):
    id: str
    description: str
    quantity: float
    unit_price: float
    total_price: float
    item_type: str

    model_config = {"from_attributes": True}


class SendQuoteRequest(BaseModel):
    items: list[LineItemIn] = Field(min_length=1)
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    discount_amount: float = Field(default=0.0, ge=0)
    notes: str = ""
    valid_days: int | None = Field(default=None, ge=1)


class RejectRequest(BaseModel):
    reason: str | None = None


class PublicQuoteRead(BaseModel):
    """Quote as shown to the customer answering it; no customer record."""

    id: str
    quote_number: str
    job_id: str
    customer_id: str
    issued_by_id: str | None = None
    status: str
    issue_date: datetime
    valid_until: datetime
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    notes: str = ""
    customer_response: str | None = None
    customer_response_date: datetime | None = None
    rejection_reason: str | None = None
    converted_to_invoice_id: str | None = None
    reminder_count: int = 0
    last_reminder_sent: datetime | None = None
    items: list[LineItemRead] = []

    model_config = {"from_attributes": True}


class QuoteRead(PublicQuoteRead):
    customer: CustomerRead | None = None
