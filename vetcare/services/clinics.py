"""Clinic (tenant) records and the memberships that grant access to them."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from vetcare.errors import ValidationError
from vetcare.logging_utils import set_clinic_context
from vetcare.models import Clinic, ClinicMembership, ClinicRole, User
from vetcare.services.audit import record_audit
from vetcare.services.crud import apply_patch, get_or_404

logger = logging.getLogger(__name__)


def _check_owner(db: Session, owner_id: str | None) -> None:
    if owner_id is not None and db.get(User, owner_id) is None:
        raise ValidationError.for_field("owner_id", "Owner user not found")


def create_clinic(db: Session, *, actor: User, data: dict[str, Any]) -> Clinic:
    _check_owner(db, data.get("owner_id"))
    clinic = Clinic(**data)
    db.add(clinic)
    db.flush()
    set_clinic_context(clinic.id)
    record_audit(
        db,
        clinic_id=clinic.id,
        actor=actor.id,
        action="clinic.created",
        resource=f"clinic:{clinic.id}",
    )
    return clinic


def get_clinic(db: Session, clinic_id: UUID) -> Clinic:
    """Fetch a clinic by id, active or not."""

    return get_or_404(db, Clinic, clinic_id, "Clinic")


def list_clinics(db: Session, clinic_ids: set[UUID] | None = None) -> Sequence[Clinic]:
    """Active clinics ordered by name, optionally restricted to ``clinic_ids``."""

    stmt = select(Clinic).where(Clinic.active.is_(True)).order_by(Clinic.name)
    if clinic_ids is not None:
        if not clinic_ids:
            return []
        stmt = stmt.where(Clinic.id.in_(clinic_ids))
    return db.execute(stmt).scalars().all()


def update_clinic(db: Session, *, clinic_id: UUID, changes: dict[str, Any]) -> Clinic:
    clinic = get_clinic(db, clinic_id)
    _check_owner(db, changes.get("owner_id"))
    apply_patch(clinic, changes)
    db.flush()
    return clinic


def deactivate_clinic(db: Session, *, actor: User, clinic_id: UUID) -> Clinic:
    """Soft-delete: historical appointments and encounters keep their reference."""

    clinic = get_clinic(db, clinic_id)
    if clinic.active:
        clinic.active = False
        db.flush()
        record_audit(
            db,
            clinic_id=clinic.id,
            actor=actor.id,
            action="clinic.deactivated",
            resource=f"clinic:{clinic.id}",
        )
        logger.info("clinic deactivated", extra={"target_clinic": str(clinic.id)})
    return clinic


# ---------------------------------------------------------------- memberships


def _find_membership(db: Session, clinic_id: UUID, user_id: str) -> ClinicMembership | None:
    """Return the membership row for the pair, preferring the active one."""

    stmt = (
        select(ClinicMembership)
        .where(
            ClinicMembership.clinic_id == clinic_id,
            ClinicMembership.user_id == user_id,
        )
        .order_by(ClinicMembership.active.desc(), ClinicMembership.updated_at.desc())
        .with_for_update()
    )
    return db.execute(stmt).scalars().first()


def add_membership(
    db: Session,
    *,
    actor: User,
    clinic_id: UUID,
    user_id: str,
    role: ClinicRole,
) -> tuple[ClinicMembership, bool]:
    """Grant ``role`` to a user in a clinic.

    Re-inviting a user reuses (and reactivates) the existing row so that at
    most one active membership exists per pair. Returns the membership and
    whether a new row was created.
    """

    clinic = get_clinic(db, clinic_id)
    if not clinic.active:
        raise ValidationError.for_field("clinic_id", "Clinic is inactive")
    get_or_404(db, User, user_id, "User")

    membership = _find_membership(db, clinic_id, user_id)
    created = membership is None
    if membership is None:
        membership = ClinicMembership(
            clinic_id=clinic_id, user_id=user_id, role=role, active=True
        )
        db.add(membership)
    else:
        membership.role = role
        membership.active = True
    db.flush()

    record_audit(
        db,
        clinic_id=clinic_id,
        actor=actor.id,
        action="membership.granted" if created else "membership.reactivated",
        resource=f"membership:{membership.id}",
        metadata={"user_id": user_id, "role": role.value},
    )
    return membership, created


def get_membership(db: Session, membership_id: UUID) -> ClinicMembership:
    return get_or_404(db, ClinicMembership, membership_id, "Membership")


def list_clinic_memberships(db: Session, clinic_id: UUID) -> Sequence[ClinicMembership]:
    stmt = (
        select(ClinicMembership)
        .where(
            ClinicMembership.clinic_id == clinic_id,
            ClinicMembership.active.is_(True),
        )
        .order_by(ClinicMembership.created_at)
    )
    return db.execute(stmt).scalars().all()


def list_user_memberships(db: Session, user_id: str) -> Sequence[ClinicMembership]:
    stmt = (
        select(ClinicMembership)
        .where(
            ClinicMembership.user_id == user_id,
            ClinicMembership.active.is_(True),
        )
        .order_by(ClinicMembership.created_at)
    )
    return db.execute(stmt).scalars().all()


def update_membership(
    db: Session,
    *,
    actor: User,
    membership: ClinicMembership,
    changes: dict[str, Any],
) -> ClinicMembership:
    if changes.get("active") and not membership.active:
        other = _find_membership(db, membership.clinic_id, membership.user_id)
        if other is not None and other.id != membership.id and other.active:
            raise ValidationError.for_field(
                "active", "User already has an active membership in this clinic"
            )
    changed = apply_patch(membership, changes)
    db.flush()
    if changed:
        record_audit(
            db,
            clinic_id=membership.clinic_id,
            actor=actor.id,
            action="membership.updated",
            resource=f"membership:{membership.id}",
            metadata={
                "user_id": membership.user_id,
                "role": membership.role.value,
                "active": membership.active,
            },
        )
    return membership


def deactivate_membership(
    db: Session, *, actor: User, membership: ClinicMembership
) -> ClinicMembership:
    if membership.active:
        membership.active = False
        db.flush()
        record_audit(
            db,
            clinic_id=membership.clinic_id,
            actor=actor.id,
            action="membership.revoked",
            resource=f"membership:{membership.id}",
            metadata={"user_id": membership.user_id},
        )
    return membership


__all__ = [
    "add_membership",
    "create_clinic",
    "deactivate_clinic",
    "deactivate_membership",
    "get_clinic",
    "get_membership",
    "list_clinic_memberships",
    "list_clinics",
    "list_user_memberships",
    "update_clinic",
]
