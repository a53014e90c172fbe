"""Appointment booking, rescheduling and status changes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from vetcare.errors import ConflictError, ValidationError
from vetcare.models import (
    Appointment,
    AppointmentStatus,
    ClinicMembership,
    Owner,
    Patient,
    User,
)
from vetcare.services.access import PROVIDER_ROLES, is_admin_master
from vetcare.services.audit import record_audit
from vetcare.services.crud import apply_patch, check_version, get_or_404
from vetcare.services.workflow import (
    BLOCKING_APPOINTMENT_STATUSES,
    is_terminal,
    transition_appointment,
)

logger = logging.getLogger(__name__)

INITIAL_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})
_SCHEDULE_FIELDS = frozenset({"patient_id", "owner_id", "provider_id", "starts_at", "ends_at"})


def ensure_utc(value: datetime) -> datetime:
    """Coerce a datetime into UTC timezone-aware form."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_window(starts_at: datetime, ends_at: datetime) -> None:
    if ensure_utc(ends_at) <= ensure_utc(starts_at):
        raise ValidationError.for_field("ends_at", "ends_at must be after starts_at")


def resolve_provider(db: Session, clinic_id: UUID, provider_id: str) -> User:
    """Return the provider if they may attend patients in the clinic."""

    provider = db.get(User, provider_id)
    if provider is None:
        raise ValidationError.for_field("provider_id", "Provider not found")
    if is_admin_master(provider):
        return provider
    stmt = select(ClinicMembership.id).where(
        ClinicMembership.clinic_id == clinic_id,
        ClinicMembership.user_id == provider_id,
        ClinicMembership.active.is_(True),
        ClinicMembership.role.in_(PROVIDER_ROLES),
    )
    if db.execute(stmt).first() is None:
        raise ValidationError.for_field(
            "provider_id", "Provider is not a veterinarian of this clinic"
        )
    return provider


def validate_patient_and_owner(
    db: Session, *, clinic_id: UUID, patient_id: UUID, owner_id: UUID
) -> tuple[Patient, Owner]:
    """Patient and owner must exist in ``clinic_id`` and belong together."""

    patient = db.get(Patient, patient_id)
    if patient is None or patient.clinic_id != clinic_id:
        raise ValidationError.for_field("patient_id", "Patient not found in this clinic")
    owner = db.get(Owner, owner_id)
    if owner is None or owner.clinic_id != clinic_id:
        raise ValidationError.for_field("owner_id", "Owner not found in this clinic")
    if patient.owner_id != owner.id:
        raise ValidationError.for_field("owner_id", "Patient does not belong to this owner")
    return patient, owner


def find_overlap(
    db: Session,
    *,
    provider_id: str,
    starts_at: datetime,
    ends_at: datetime,
    exclude_id: UUID | None = None,
) -> Appointment | None:
    """Return an active appointment of the provider overlapping ``[starts_at, ends_at)``."""

    stmt = select(Appointment).where(
        Appointment.provider_id == provider_id,
        Appointment.status.in_(BLOCKING_APPOINTMENT_STATUSES),
        Appointment.starts_at < ensure_utc(ends_at),
        Appointment.ends_at > ensure_utc(starts_at),
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return db.execute(stmt.limit(1)).scalars().first()


def _ensure_free(
    db: Session,
    *,
    provider_id: str,
    starts_at: datetime,
    ends_at: datetime,
    exclude_id: UUID | None = None,
) -> None:
    clash = find_overlap(
        db,
        provider_id=provider_id,
        starts_at=starts_at,
        ends_at=ends_at,
        exclude_id=exclude_id,
    )
    if clash is not None:
        raise ConflictError("Provider already has an appointment in this time range")


def create_appointment(db: Session, *, actor: User, data: dict[str, Any]) -> Appointment:
    clinic_id = data["clinic_id"]
    starts_at = ensure_utc(data["starts_at"])
    ends_at = ensure_utc(data["ends_at"])
    validate_window(starts_at, ends_at)

    status = data.get("status") or AppointmentStatus.PENDING
    if status not in INITIAL_STATUSES:
        raise ValidationError.for_field(
            "status", "Appointments start as PENDING or CONFIRMED"
        )

    validate_patient_and_owner(
        db, clinic_id=clinic_id, patient_id=data["patient_id"], owner_id=data["owner_id"]
    )
    resolve_provider(db, clinic_id, data["provider_id"])
    _ensure_free(db, provider_id=data["provider_id"], starts_at=starts_at, ends_at=ends_at)

    appointment = Appointment(
        **{**data, "starts_at": starts_at, "ends_at": ends_at, "status": status},
        created_by_id=actor.id,
    )
    db.add(appointment)
    db.flush()
    logger.info(
        "appointment created",
        extra={"appointment_id": str(appointment.id), "status": status.value},
    )
    return appointment


def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
    return get_or_404(db, Appointment, appointment_id, "Appointment")


def list_appointments(db: Session, clinic_id: UUID) -> Sequence[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.clinic_id == clinic_id)
        .order_by(Appointment.starts_at.desc())
    )
    return db.execute(stmt).scalars().all()


def list_provider_appointments(
    db: Session, provider_id: str, clinic_ids: set[UUID] | None = None
) -> Sequence[Appointment]:
    """Appointments of a provider, restricted to ``clinic_ids`` when given."""

    stmt = select(Appointment).where(Appointment.provider_id == provider_id)
    if clinic_ids is not None:
        if not clinic_ids:
            return []
        stmt = stmt.where(Appointment.clinic_id.in_(clinic_ids))
    return db.execute(stmt.order_by(Appointment.starts_at.desc())).scalars().all()


def _change_status(
    db: Session, *, actor: User, appointment: Appointment, target: AppointmentStatus
) -> None:
    previous = appointment.status
    if transition_appointment(appointment, target):
        record_audit(
            db,
            clinic_id=appointment.clinic_id,
            actor=actor.id,
            action="appointment.status_changed",
            resource=f"appointment:{appointment.id}",
            metadata={"from": previous.value, "to": target.value},
        )


def update_appointment(
    db: Session,
    *,
    actor: User,
    appointment: Appointment,
    changes: dict[str, Any],
) -> Appointment:
    """Apply a partial update, guarding the status machine and the agenda."""

    check_version(appointment, changes.pop("version", None), "Appointment")
    target_status = changes.pop("status", None)

    schedule_changes = {
        field: value
        for field, value in changes.items()
        if field in _SCHEDULE_FIELDS and value is not None
    }
    if schedule_changes and is_terminal(appointment.status):
        raise ConflictError(
            f"Appointment is {appointment.status.value} and cannot be rescheduled"
        )

    starts_at = ensure_utc(schedule_changes.get("starts_at", appointment.starts_at))
    ends_at = ensure_utc(schedule_changes.get("ends_at", appointment.ends_at))
    patient_id = schedule_changes.get("patient_id", appointment.patient_id)
    owner_id = schedule_changes.get("owner_id", appointment.owner_id)
    provider_id = schedule_changes.get("provider_id", appointment.provider_id)

    if "starts_at" in schedule_changes or "ends_at" in schedule_changes:
        validate_window(starts_at, ends_at)
        schedule_changes["starts_at"] = starts_at
        schedule_changes["ends_at"] = ends_at
    if "patient_id" in schedule_changes or "owner_id" in schedule_changes:
        validate_patient_and_owner(
            db, clinic_id=appointment.clinic_id, patient_id=patient_id, owner_id=owner_id
        )
    if "provider_id" in schedule_changes:
        resolve_provider(db, appointment.clinic_id, provider_id)

    if target_status is not None:
        _change_status(db, actor=actor, appointment=appointment, target=target_status)

    if appointment.status in BLOCKING_APPOINTMENT_STATUSES and (
        {"starts_at", "ends_at", "provider_id"} & schedule_changes.keys()
    ):
        _ensure_free(
            db,
            provider_id=provider_id,
            starts_at=starts_at,
            ends_at=ends_at,
            exclude_id=appointment.id,
        )

    other_changes = {
        field: value
        for field, value in changes.items()
        if field not in _SCHEDULE_FIELDS
    }
    apply_patch(appointment, {**schedule_changes, **other_changes})
    db.flush()
    return appointment


def cancel_appointment(db: Session, *, actor: User, appointment: Appointment) -> Appointment:
    """Cancel instead of deleting; encounters may still reference the visit."""

    _change_status(
        db, actor=actor, appointment=appointment, target=AppointmentStatus.CANCELLED
    )
    db.flush()
    return appointment


__all__ = [
    "cancel_appointment",
    "create_appointment",
    "ensure_utc",
    "find_overlap",
    "get_appointment",
    "list_appointments",
    "list_provider_appointments",
    "resolve_provider",
    "update_appointment",
    "validate_patient_and_owner",
    "validate_window",
]
