from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vetcare.models.base import (
    Base,
    ClinicScopedMixin,
    JSONDocument,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    utcnow,
)


class EncounterStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"


class Encounter(Base, UUIDPrimaryKeyMixin, ClinicScopedMixin, TimestampMixin):
    """Medical record entry. Immutable once signed."""

    __tablename__ = "encounters"
    __table_args__ = (
        Index("ix_encounters_clinic_patient", "clinic_id", "patient_id"),
        Index("ix_encounters_provider", "provider_id"),
        Index("ix_encounters_status", "status"),
    )

    appointment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="RESTRICT"), nullable=True
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("patients.id", ondelete="RESTRICT"), nullable=False
    )
    provider_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[EncounterStatus] = mapped_column(
        Enum(EncounterStatus, name="encounter_status"),
        default=EncounterStatus.DRAFT,
        nullable=False,
    )
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    chief_complaint: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    history_present: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    physical_exam: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    diagnosis: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    plan: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    vitals: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    raw_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class EncounterAddendum(Base, UUIDPrimaryKeyMixin, ClinicScopedMixin):
    """Append-only amendment to a signed encounter."""

    __tablename__ = "encounter_addenda"

    encounter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("encounters.id", ondelete="RESTRICT"), index=True, nullable=False
    )
    author_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    content: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
