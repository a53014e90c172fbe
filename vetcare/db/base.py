"""Import SQLAlchemy models for Alembic's autogenerate feature."""

from vetcare.models.base import Base
from vetcare.models import (  # noqa: F401
    Appointment,
    AuditLog,
    Clinic,
    ClinicMembership,
    Encounter,
    EncounterAddendum,
    MessageLog,
    Owner,
    Patient,
    Prescription,
    PrescriptionItem,
    User,
)

__all__ = [
    "Base",
    "Appointment",
    "AuditLog",
    "Clinic",
    "ClinicMembership",
    "Encounter",
    "EncounterAddendum",
    "MessageLog",
    "Owner",
    "Patient",
    "Prescription",
    "PrescriptionItem",
    "User",
]
