"""Role-based access control.

Every router consults this module before touching the database, so the
mapping of clinic roles to resources lives in exactly one place.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from vetcare.errors import ForbiddenError
from vetcare.models import ClinicRole, GlobalRole

logger = logging.getLogger(__name__)

ALL_CLINIC_ROLES = frozenset(ClinicRole)
CLINICAL_ROLES = frozenset({ClinicRole.CLINIC_ADMIN, ClinicRole.VETERINARIAN})
PROVIDER_ROLES = CLINICAL_ROLES


class Resource(str, enum.Enum):
    """Protected resource families."""

    CLINICS = "clinics"
    CLINIC_PROFILE = "clinic_profile"
    MEMBERSHIPS = "memberships"
    OWNERS = "owners"
    PATIENTS = "patients"
    APPOINTMENTS = "appointments"
    ENCOUNTERS = "encounters"
    PRESCRIPTIONS = "prescriptions"


PERMISSIONS: dict[Resource, frozenset[ClinicRole]] = {
    # Clinic management is reserved to ADMIN_MASTER.
    Resource.CLINICS: frozenset(),
    Resource.CLINIC_PROFILE: ALL_CLINIC_ROLES,
    Resource.MEMBERSHIPS: frozenset({ClinicRole.CLINIC_ADMIN}),
    Resource.OWNERS: ALL_CLINIC_ROLES,
    Resource.PATIENTS: ALL_CLINIC_ROLES,
    Resource.APPOINTMENTS: ALL_CLINIC_ROLES,
    Resource.ENCOUNTERS: CLINICAL_ROLES,
    Resource.PRESCRIPTIONS: CLINICAL_ROLES,
}


def is_admin_master(user: Any) -> bool:
    """Return whether the user escapes per-clinic scoping."""

    return user.global_role == GlobalRole.ADMIN_MASTER


def active_roles(user: Any, clinic_id: UUID) -> set[ClinicRole]:
    """Return the roles granted to the user by active memberships in a clinic."""

    return {
        membership.role
        for membership in user.memberships
        if membership.active and membership.clinic_id == clinic_id
    }


def authorize(user: Any, clinic_id: UUID | None, required_roles: Iterable[ClinicRole]) -> bool:
    """Return whether ``user`` may act inside ``clinic_id`` with one of ``required_roles``.

    ADMIN_MASTER is always authorized. Anyone else needs an active membership
    in the clinic whose role is listed; inactive memberships never count.
    """

    if is_admin_master(user):
        return True
    if clinic_id is None:
        return False
    return bool(active_roles(user, clinic_id) & set(required_roles))


def can_access(user: Any, clinic_id: UUID | None, resource: Resource) -> bool:
    return authorize(user, clinic_id, PERMISSIONS[resource])


def require_access(user: Any, clinic_id: UUID | None, resource: Resource) -> None:
    """Raise ``ForbiddenError`` unless the user may access the resource in the clinic."""

    if can_access(user, clinic_id, resource):
        return
    logger.warning(
        "access denied",
        extra={
            "actor": user.id,
            "resource": resource.value,
            "target_clinic": str(clinic_id) if clinic_id else None,
        },
    )
    raise ForbiddenError()


def require_admin_master(user: Any) -> None:
    if not is_admin_master(user):
        logger.warning("admin master required", extra={"actor": user.id})
        raise ForbiddenError()


def readable_clinic_ids(user: Any, resource: Resource) -> set[UUID] | None:
    """Return the clinics where the user may read ``resource``; ``None`` means all."""

    if is_admin_master(user):
        return None
    allowed = PERMISSIONS[resource]
    return {
        membership.clinic_id
        for membership in user.memberships
        if membership.active and membership.role in allowed
    }


__all__ = [
    "ALL_CLINIC_ROLES",
    "CLINICAL_ROLES",
    "PERMISSIONS",
    "PROVIDER_ROLES",
    "Resource",
    "active_roles",
    "authorize",
    "can_access",
    "is_admin_master",
    "readable_clinic_ids",
    "require_access",
    "require_admin_master",
]
