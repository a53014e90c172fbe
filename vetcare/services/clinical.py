"""Encounters (medical record entries) and their addenda."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from vetcare.errors import ConflictError, ValidationError
from vetcare.models import (
    Appointment,
    Encounter,
    EncounterAddendum,
    EncounterStatus,
    Patient,
    Prescription,
    User,
)
from vetcare.services.audit import record_audit
from vetcare.services.crud import apply_patch, check_version, get_or_404
from vetcare.services.scheduling import resolve_provider
from vetcare.services.workflow import (
    ensure_addendum_allowed,
    ensure_encounter_editable,
    transition_encounter,
)

logger = logging.getLogger(__name__)


def _validate_patient(db: Session, clinic_id: UUID, patient_id: UUID) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None or patient.clinic_id != clinic_id:
        raise ValidationError.for_field("patient_id", "Patient not found in this clinic")
    return patient


def _validate_appointment(
    db: Session, *, clinic_id: UUID, patient_id: UUID, appointment_id: UUID
) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if appointment is None or appointment.clinic_id != clinic_id:
        raise ValidationError.for_field(
            "appointment_id", "Appointment not found in this clinic"
        )
    if appointment.patient_id != patient_id:
        raise ValidationError.for_field(
            "appointment_id", "Appointment belongs to another patient"
        )
    return appointment


def _record_signature(db: Session, *, actor: User, encounter: Encounter) -> None:
    record_audit(
        db,
        clinic_id=encounter.clinic_id,
        actor=actor.id,
        action="encounter.confirmed",
        resource=f"encounter:{encounter.id}",
        metadata={"signed_at": encounter.signed_at.isoformat()},
    )
    logger.info("encounter signed", extra={"encounter_id": str(encounter.id)})


def create_encounter(db: Session, *, actor: User, data: dict[str, Any]) -> Encounter:
    """Open an encounter; creating it as CONFIRMED signs it immediately."""

    fields = dict(data)
    clinic_id = fields["clinic_id"]
    status = fields.pop("status", None) or EncounterStatus.DRAFT

    _validate_patient(db, clinic_id, fields["patient_id"])
    if fields.get("appointment_id") is not None:
        _validate_appointment(
            db,
            clinic_id=clinic_id,
            patient_id=fields["patient_id"],
            appointment_id=fields["appointment_id"],
        )
    resolve_provider(db, clinic_id, fields["provider_id"])

    encounter = Encounter(**fields, status=EncounterStatus.DRAFT)
    transition_encounter(encounter, status)
    db.add(encounter)
    db.flush()
    if encounter.status == EncounterStatus.CONFIRMED:
        _record_signature(db, actor=actor, encounter=encounter)
    return encounter


def get_encounter(db: Session, encounter_id: UUID) -> Encounter:
    return get_or_404(db, Encounter, encounter_id, "Encounter")


def list_encounters(db: Session, clinic_id: UUID) -> Sequence[Encounter]:
    stmt = (
        select(Encounter)
        .where(Encounter.clinic_id == clinic_id)
        .order_by(Encounter.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def list_patient_encounters(db: Session, patient: Patient) -> Sequence[Encounter]:
    stmt = (
        select(Encounter)
        .where(Encounter.patient_id == patient.id)
        .order_by(Encounter.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def update_encounter(
    db: Session,
    *,
    actor: User,
    encounter: Encounter,
    changes: dict[str, Any],
) -> Encounter:
    """Edit a DRAFT encounter. A ``status`` of CONFIRMED signs it after the edit."""

    ensure_encounter_editable(encounter)
    check_version(encounter, changes.pop("version", None), "Encounter")
    target_status = changes.pop("status", None)

    if changes.get("appointment_id") is not None:
        _validate_appointment(
            db,
            clinic_id=encounter.clinic_id,
            patient_id=encounter.patient_id,
            appointment_id=changes["appointment_id"],
        )

    apply_patch(encounter, changes)
    signed = target_status is not None and transition_encounter(encounter, target_status)
    db.flush()
    if signed:
        _record_signature(db, actor=actor, encounter=encounter)
    return encounter


def confirm_encounter(
    db: Session, *, actor: User, encounter: Encounter, version: int | None = None
) -> Encounter:
    if encounter.status == EncounterStatus.CONFIRMED:
        raise ConflictError("Encounter is already signed")
    check_version(encounter, version, "Encounter")
    transition_encounter(encounter, EncounterStatus.CONFIRMED)
    db.flush()
    _record_signature(db, actor=actor, encounter=encounter)
    return encounter


def delete_encounter(db: Session, encounter: Encounter) -> None:
    """Only drafts can be discarded; signed records are permanent."""

    ensure_encounter_editable(encounter)
    has_prescriptions = db.execute(
        select(exists().where(Prescription.encounter_id == encounter.id))
    ).scalar()
    if has_prescriptions:
        raise ConflictError("Encounter has prescriptions and cannot be deleted")
    db.delete(encounter)
    db.flush()
    logger.info("draft encounter deleted", extra={"encounter_id": str(encounter.id)})


def add_addendum(
    db: Session,
    *,
    actor: User,
    encounter: Encounter,
    content: dict[str, Any] | None = None,
    note: str | None = None,
) -> EncounterAddendum:
    ensure_addendum_allowed(encounter)
    if not content and not (note and note.strip()):
        raise ValidationError.for_field("note", "An addendum needs a note or content")

    addendum = EncounterAddendum(
        encounter_id=encounter.id,
        clinic_id=encounter.clinic_id,
        author_id=actor.id,
        content=content,
        note=note,
    )
    db.add(addendum)
    db.flush()
    record_audit(
        db,
        clinic_id=encounter.clinic_id,
        actor=actor.id,
        action="encounter.addendum_added",
        resource=f"encounter:{encounter.id}",
        metadata={"addendum_id": str(addendum.id)},
    )
    return addendum


def list_addenda(db: Session, encounter: Encounter) -> Sequence[EncounterAddendum]:
    stmt = (
        select(EncounterAddendum)
        .where(EncounterAddendum.encounter_id == encounter.id)
        .order_by(EncounterAddendum.created_at)
    )
    return db.execute(stmt).scalars().all()


__all__ = [
    "add_addendum",
    "confirm_encounter",
    "create_encounter",
    "delete_encounter",
    "get_encounter",
    "list_addenda",
    "list_encounters",
    "list_patient_encounters",
    "update_encounter",
]
