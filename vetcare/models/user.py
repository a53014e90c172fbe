from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetcare.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from vetcare.models.clinic import ClinicMembership


class GlobalRole(str, enum.Enum):
    """System-wide role, independent of clinic memberships."""

    ADMIN_MASTER = "ADMIN_MASTER"
    USER = "USER"


class User(Base, TimestampMixin):
    """Authenticated person; the id is the identity provider subject."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    global_role: Mapped[GlobalRole] = mapped_column(
        Enum(GlobalRole, name="global_role"),
        default=GlobalRole.USER,
        nullable=False,
    )

    memberships: Mapped[list[ClinicMembership]] = relationship(
        back_populates="user", lazy="selectin"
    )
