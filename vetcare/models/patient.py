from __future__ import annotations

import enum
import uuid
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vetcare.models.base import Base, ClinicScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Species(str, enum.Enum):
    DOG = "DOG"
    CAT = "CAT"
    BIRD = "BIRD"
    RABBIT = "RABBIT"
    REPTILE = "REPTILE"
    OTHER = "OTHER"


class Sex(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class Patient(Base, UUIDPrimaryKeyMixin, ClinicScopedMixin, TimestampMixin):
    """Animal under care, always owned by a tutor of the same clinic."""

    __tablename__ = "patients"
    __table_args__ = (
        Index("ix_patients_clinic_owner", "clinic_id", "owner_id"),
        Index("ix_patients_name", "name"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("owners.id", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    species: Mapped[Species] = mapped_column(Enum(Species, name="species"), nullable=False)
    sex: Mapped[Sex] = mapped_column(
        Enum(Sex, name="sex"), default=Sex.UNKNOWN, nullable=False
    )
    breed: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    microchip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
