"""Repair job tickets and their append-only status history."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairshop.models.base import Base, TimestampMixin, ULIDMixin
from repairshop.models.enums import JobStatus, Priority


class Job(Base, TimestampMixin):
    __tablename__ = "jobs"

    job_number: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"))
    status: Mapped[str] = mapped_column(String(40), default=JobStatus.OPEN.value, index=True)
    priority: Mapped[str] = mapped_column(String(10), default=Priority.MEDIUM.value)
    appliance_type: Mapped[str] = mapped_column(String(100))
    appliance_brand: Mapped[str] = mapped_column(String(100))
    model_number: Mapped[str] = mapped_column(String(100), default="")
    serial_number: Mapped[str] = mapped_column(String(100), default="")
    issue_description: Mapped[str] = mapped_column(Text)
    customer_notes: Mapped[str] = mapped_column(Text, default="")
    diagnostic_results: Mapped[str] = mapped_column(Text, default="")
    technician_notes: Mapped[str] = mapped_column(Text, default="")
    labor_hours: Mapped[float] = mapped_column(Float, default=0.0)
    assigned_technician_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("users.id"), nullable=True, default=None
    )
    created_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
    estimated_completion: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_completion: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    quote_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_notification_sent: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer", lazy="selectin")
    assigned_technician = relationship("User", foreign_keys=[assigned_technician_id], lazy="selectin")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    status_history = relationship(
        "StatusHistory",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="[StatusHistory.created_at, StatusHistory.id]",
        lazy="selectin",
    )
    invoice = relationship("Invoice", uselist=False, viewonly=True, lazy="selectin")


class StatusHistory(Base, ULIDMixin):
    __tablename__ = "job_status_history"

    job_id: Mapped[str] = mapped_column(String(26), ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    status: Mapped[str] = mapped_column(String(40))
    notes: Mapped[str] = mapped_column(Text, default="")
    changed_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)

    job = relationship("Job", back_populates="status_history")
