"""Customer contact log attached to a job (calls, emails, walk-ins)."""

from __future__ import annotations

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairshop.models.base import Base, ULIDMixin


class Communication(Base, ULIDMixin):
    __tablename__ = "communications"

    job_id: Mapped[str] = mapped_column(String(26), ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    direction: Mapped[str] = mapped_column(String(10))  # INBOUND | OUTBOUND
    channel: Mapped[str] = mapped_column(String(20))  # EMAIL | SMS | PHONE | IN_PERSON
    subject: Mapped[str] = mapped_column(String(500), default="")
    message: Mapped[str] = mapped_column(Text)
    created_by_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True)

    created_by = relationship("User", lazy="selectin")
