"""Append-only record of every outbound email attempt."""

from __future__ import annotations

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from repairshop.models.base import Base, ULIDMixin


class EmailLog(Base, ULIDMixin):
    __tablename__ = "email_logs"

    recipient: Mapped[str] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(500))
    body: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(10))  # SENT | FAILED
    error_msg: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    email_type: Mapped[str] = mapped_column(String(30))
    related_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    sent_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)
