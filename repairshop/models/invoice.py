"""Invoices, invoice line items and recorded payments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairshop.models.base import Base, TimestampMixin, ULIDMixin, utcnow
from repairshop.models.enums import InvoiceStatus, ItemType, PaymentMethod


class Invoice(Base, TimestampMixin):
    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    # One invoice per job.
    job_id: Mapped[str] = mapped_column(String(26), ForeignKey("jobs.id"), unique=True)
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"))
    issued_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=InvoiceStatus.DRAFT.value)
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, default=0.0)
    tax_amount: Mapped[float] = mapped_column(Float, default=0.0)
    discount_amount: Mapped[float] = mapped_column(Float, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, default=0.0)
    paid_amount: Mapped[float] = mapped_column(Float, default=0.0)
    balance_amount: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[str] = mapped_column(Text, default="")
    payment_terms: Mapped[str] = mapped_column(String(100), default="")

    customer = relationship("Customer", lazy="selectin")
    items = relationship(
        "InvoiceItem", back_populates="invoice", cascade="all, delete-orphan",
        order_by="InvoiceItem.position", lazy="selectin",
    )
    payments = relationship(
        "Payment", back_populates="invoice", cascade="all, delete-orphan",
        order_by="Payment.payment_date.desc()", lazy="selectin",
    )


class InvoiceItem(Base, ULIDMixin):
    __tablename__ = "invoice_items"

    invoice_id: Mapped[str] = mapped_column(String(26), ForeignKey("invoices.id", ondelete="CASCADE"))
    position: Mapped[int] = mapped_column(default=0)
    description: Mapped[str] = mapped_column(String(500))
    quantity: Mapped[float] = mapped_column(Float, default=1.0)
    unit_price: Mapped[float] = mapped_column(Float, default=0.0)
    total_price: Mapped[float] = mapped_column(Float, default=0.0)
    item_type: Mapped[str] = mapped_column(String(20), default=ItemType.PART.value)

    invoice = relationship("Invoice", back_populates="items")


class Payment(Base, ULIDMixin):
    __tablename__ = "payments"

    invoice_id: Mapped[str] = mapped_column(String(26), ForeignKey("invoices.id", ondelete="CASCADE"))
    amount: Mapped[float] = mapped_column(Float)
    payment_method: Mapped[str] = mapped_column(String(20), default=PaymentMethod.CASH.value)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    reference_number: Mapped[str] = mapped_column(String(100), default="")
    notes: Mapped[str] = mapped_column(Text, default="")

    invoice = relationship("Invoice", back_populates="payments")
