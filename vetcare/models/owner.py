from __future__ import annotations

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vetcare.models.base import Base, ClinicScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Owner(Base, UUIDPrimaryKeyMixin, ClinicScopedMixin, TimestampMixin):
    """Tutor responsible for one or more patients."""

    __tablename__ = "owners"
    __table_args__ = (Index("ix_owners_phone", "phone"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    whatsapp_opt_in: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
