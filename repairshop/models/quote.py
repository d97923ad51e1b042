"""Quotes sent to customers for approval, with their line items."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, ForeignKey, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairshop.models.base import Base, TimestampMixin, ULIDMixin, utcnow
from repairshop.models.enums import QuoteStatus, ItemType


class Quote(Base, TimestampMixin):
    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(String(40), index=True)
    job_id: Mapped[str] = mapped_column(String(26), ForeignKey("jobs.id"))
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"))
    issued_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=QuoteStatus.DRAFT.value)
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, default=0.0)
    tax_amount: Mapped[float] = mapped_column(Float, default=0.0)
    discount_amount: Mapped[float] = mapped_column(Float, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[str] = mapped_column(Text, default="")
    customer_response: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    customer_response_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    converted_to_invoice_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("invoices.id"), nullable=True, default=None
    )
    reminder_count: Mapped[int] = mapped_column(Integer, default=0)
    last_reminder_sent: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    job = relationship("Job", lazy="selectin")
    customer = relationship("Customer", lazy="selectin")
    items = relationship(
        "QuoteItem", back_populates="quote", cascade="all, delete-orphan",
        order_by="QuoteItem.position", lazy="selectin",
    )


class QuoteItem(Base, ULIDMixin):
    __tablename__ = "quote_items"

    quote_id: Mapped[str] = mapped_column(String(26), ForeignKey("quotes.id", ondelete="CASCADE"))
    position: Mapped[int] = mapped_column(default=0)
    description: Mapped[str] = mapped_column(String(500))
    quantity: Mapped[float] = mapped_column(Float, default=1.0)
    unit_price: Mapped[float] = mapped_column(Float, default=0.0)
    total_price: Mapped[float] = mapped_column(Float, default=0.0)
    item_type: Mapped[str] = mapped_column(String(20), default=ItemType.PART.value)

    quote = relationship("Quote", back_populates="items")
