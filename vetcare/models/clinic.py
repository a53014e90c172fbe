from __future__ import annotations

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetcare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from vetcare.models.user import User


class ClinicRole(str, enum.Enum):
    """Role a user holds inside one clinic."""

    CLINIC_ADMIN = "CLINIC_ADMIN"
    RECEPTIONIST = "RECEPTIONIST"
    VETERINARIAN = "VETERINARIAN"


class Clinic(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Tenant root. Deactivated instead of deleted."""

    __tablename__ = "clinics"
    __table_args__ = (Index("ix_clinics_active", "active"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    whatsapp_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    feedback_form_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    city: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address_line: Mapped[str | None] = mapped_column(String(255), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(20), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    owner_id: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class ClinicMembership(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Grants a user a role within a clinic."""

    __tablename__ = "clinic_memberships"
    __table_args__ = (
        Index("ix_clinic_memberships_user_role", "user_id", "role"),
        Index("ix_clinic_memberships_clinic_role", "clinic_id", "role"),
        Index(
            "uq_clinic_memberships_active_pair",
            "clinic_id",
            "user_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
    )

    clinic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clinics.id", ondelete="RESTRICT"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[ClinicRole] = mapped_column(
        Enum(ClinicRole, name="clinic_role"), nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    user: Mapped[User] = relationship(back_populates="memberships")
