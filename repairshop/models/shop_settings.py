"""Shop-wide settings — a single row holding contact details, numbering and SMTP."""

from __future__ import annotations

from sqlalchemy import String, Integer, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from repairshop.models.base import Base, TimestampMixin
from repairshop.models.encrypted_type import EncryptedString


class ShopSettings(Base, TimestampMixin):
    __tablename__ = "settings"

    company_name: Mapped[str] = mapped_column(String(200), default="E-Repair Shop")
    company_email: Mapped[str] = mapped_column(String(255), default="")
    company_phone: Mapped[str] = mapped_column(String(50), default="")
    company_address: Mapped[str] = mapped_column(String(500), default="")
    business_hours: Mapped[str] = mapped_column(String(200), default="")
    tax_rate: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    job_number_prefix: Mapped[str] = mapped_column(String(10), default="JOB-")
    invoice_number_prefix: Mapped[str] = mapped_column(String(10), default="INV-")
    quote_max_reminders: Mapped[int] = mapped_column(Integer, default=3)
    smtp_host: Mapped[str] = mapped_column(String(255), default="")
    smtp_port: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    smtp_user: Mapped[str] = mapped_column(String(255), default="")
    smtp_password: Mapped[str] = mapped_column(EncryptedString(500), default="")
    smtp_from_name: Mapped[str] = mapped_column(String(200), default="")
    smtp_from_email: Mapped[str] = mapped_column(String(255), default="")
    terms_and_conditions: Mapped[str] = mapped_column(Text, default="")
