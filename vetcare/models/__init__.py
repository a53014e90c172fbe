"""SQLAlchemy models for the VetCare API."""

from vetcare.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from vetcare.models.audit_log import AuditLog
from vetcare.models.clinic import Clinic, ClinicMembership, ClinicRole
from vetcare.models.encounter import (
    Encounter,
    EncounterAddendum,
    EncounterStatus,
)
from vetcare.models.message_log import MessageDirection, MessageLog, MessageStatus
from vetcare.models.owner import Owner
from vetcare.models.patient import Patient, Sex, Species
from vetcare.models.prescription import Prescription, PrescriptionItem
from vetcare.models.user import GlobalRole, User

__all__ = [
    "Appointment",
    "AppointmentSource",
    "AppointmentStatus",
    "AuditLog",
    "Clinic",
    "ClinicMembership",
    "ClinicRole",
    "Encounter",
    "EncounterAddendum",
    "EncounterStatus",
    "GlobalRole",
    "MessageDirection",
    "MessageLog",
    "MessageStatus",
    "Owner",
    "Patient",
    "Prescription",
    "PrescriptionItem",
    "Sex",
    "Species",
    "User",
]
