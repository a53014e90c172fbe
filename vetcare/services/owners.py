"""Owners (tutors) and their patients."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from vetcare.errors import ConflictError, ValidationError
from vetcare.models import Appointment, Encounter, Owner, Patient, Prescription
from vetcare.services.crud import apply_patch, get_or_404, matches_any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------- owners


def create_owner(db: Session, data: dict[str, Any]) -> Owner:
    owner = Owner(**data)
    db.add(owner)
    db.flush()
    return owner


def get_owner(db: Session, owner_id: UUID) -> Owner:
    return get_or_404(db, Owner, owner_id, "Owner")


def list_owners(db: Session, clinic_id: UUID, search: str | None = None) -> Sequence[Owner]:
    """Owners of a clinic; ``search`` matches name, phone or e-mail."""

    stmt = select(Owner).where(Owner.clinic_id == clinic_id)
    if search and search.strip():
        stmt = stmt.where(matches_any(search, Owner.name, Owner.phone, Owner.email))
    return db.execute(stmt.order_by(Owner.name)).scalars().all()


def update_owner(db: Session, owner: Owner, changes: dict[str, Any]) -> Owner:
    apply_patch(owner, changes)
    db.flush()
    return owner


def delete_owner(db: Session, owner: Owner) -> None:
    """Hard delete, refused while patients or appointments still point at the owner."""

    referenced = db.execute(
        select(
            exists().where(Patient.owner_id == owner.id)
            | exists().where(Appointment.owner_id == owner.id)
        )
    ).scalar()
    if referenced:
        raise ConflictError("Owner still has patients or appointments")
    db.delete(owner)
    db.flush()
    logger.info("owner deleted", extra={"owner_id": str(owner.id)})


# ---------------------------------------------------------------- patients


def _owner_in_clinic(db: Session, owner_id: UUID, clinic_id: UUID) -> Owner:
    owner = db.get(Owner, owner_id)
    if owner is None:
        raise ValidationError.for_field("owner_id", "Owner not found")
    if owner.clinic_id != clinic_id:
        raise ValidationError.for_field("owner_id", "Owner belongs to another clinic")
    return owner


def create_patient(db: Session, data: dict[str, Any]) -> Patient:
    _owner_in_clinic(db, data["owner_id"], data["clinic_id"])
    patient = Patient(**data)
    db.add(patient)
    db.flush()
    return patient


def get_patient(db: Session, patient_id: UUID) -> Patient:
    return get_or_404(db, Patient, patient_id, "Patient")


def list_patients(db: Session, clinic_id: UUID, search: str | None = None) -> Sequence[Patient]:
    """Patients of a clinic; ``search`` matches name, breed or microchip."""

    stmt = select(Patient).where(Patient.clinic_id == clinic_id)
    if search and search.strip():
        stmt = stmt.where(
            matches_any(search, Patient.name, Patient.breed, Patient.microchip)
        )
    return db.execute(stmt.order_by(Patient.name)).scalars().all()


def list_owner_patients(db: Session, owner: Owner) -> Sequence[Patient]:
    stmt = select(Patient).where(Patient.owner_id == owner.id).order_by(Patient.name)
    return db.execute(stmt).scalars().all()


def update_patient(db: Session, patient: Patient, changes: dict[str, Any]) -> Patient:
    if "owner_id" in changes:
        if changes["owner_id"] is None:
            raise ValidationError.for_field("owner_id", "Owner is required")
        _owner_in_clinic(db, changes["owner_id"], patient.clinic_id)
    apply_patch(patient, changes)
    db.flush()
    return patient


def delete_patient(db: Session, patient: Patient) -> None:
    referenced = db.execute(
        select(
            exists().where(Appointment.patient_id == patient.id)
            | exists().where(Encounter.patient_id == patient.id)
            | exists().where(Prescription.patient_id == patient.id)
        )
    ).scalar()
    if referenced:
        raise ConflictError("Patient has clinical history and cannot be deleted")
    db.delete(patient)
    db.flush()
    logger.info("patient deleted", extra={"patient_id": str(patient.id)})


__all__ = [
    "create_owner",
    "create_patient",
    "delete_owner",
    "delete_patient",
    "get_owner",
    "get_patient",
    "list_owner_patients",
    "list_owners",
    "list_patients",
    "update_owner",
    "update_patient",
]
