from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user
from vetcare.models import User
from vetcare.schemas import (
    AppointmentRead,
    ClinicCreate,
    ClinicRead,
    ClinicUpdate,
    EncounterRead,
    MembershipRead,
    OwnerRead,
    PatientRead,
    PrescriptionRead,
)
from vetcare.services import clinical, clinics, owners, prescriptions, scheduling
from vetcare.services.access import Resource, readable_clinic_ids, require_admin_master

router = APIRouter(prefix="/api/clinics", tags=["clinics"])


@router.post("", response_model=ClinicRead, status_code=status.HTTP_201_CREATED)
def create_clinic(
    payload: ClinicCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_admin_master(user)
    return clinics.create_clinic(db, actor=user, data=payload.model_dump())


@router.get("", response_model=List[ClinicRead])
def list_clinics(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Active clinics: all of them for administrators, member clinics otherwise."""

    return clinics.list_clinics(db, readable_clinic_ids(user, Resource.CLINIC_PROFILE))


@router.get("/{clinic_id}", response_model=ClinicRead)
def read_clinic(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    clinic = clinics.get_clinic(db, clinic_id)
    authorize_clinic(user, clinic.id, Resource.CLINIC_PROFILE)
    return clinic


@router.put("/{clinic_id}", response_model=ClinicRead)
@router.patch("/{clinic_id}", response_model=ClinicRead)
def update_clinic(
    clinic_id: UUID,
    payload: ClinicUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_admin_master(user)
    changes = changes_from(payload, "name", "active")
    return clinics.update_clinic(db, clinic_id=clinic_id, changes=changes)


@router.delete(
    "/{clinic_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def deactivate_clinic(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_admin_master(user)
    clinics.deactivate_clinic(db, actor=user, clinic_id=clinic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------- clinic scoped lists


def _scoped_clinic(db: Session, user: User, clinic_id: UUID, resource: Resource) -> None:
    clinics.get_clinic(db, clinic_id)
    authorize_clinic(user, clinic_id, resource)


@router.get("/{clinic_id}/owners", response_model=List[OwnerRead])
def list_clinic_owners(
    clinic_id: UUID,
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.OWNERS)
    return owners.list_owners(db, clinic_id, search)


@router.get("/{clinic_id}/patients", response_model=List[PatientRead])
def list_clinic_patients(
    clinic_id: UUID,
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.PATIENTS)
    return owners.list_patients(db, clinic_id, search)


@router.get("/{clinic_id}/appointments", response_model=List[AppointmentRead])
def list_clinic_appointments(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.APPOINTMENTS)
    return scheduling.list_appointments(db, clinic_id)


@router.get("/{clinic_id}/encounters", response_model=List[EncounterRead])
def list_clinic_encounters(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.ENCOUNTERS)
    return clinical.list_encounters(db, clinic_id)


@router.get("/{clinic_id}/prescriptions", response_model=List[PrescriptionRead])
def list_clinic_prescriptions(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.PRESCRIPTIONS)
    return prescriptions.list_prescriptions(db, clinic_id)


@router.get("/{clinic_id}/memberships", response_model=List[MembershipRead])
def list_clinic_memberships(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _scoped_clinic(db, user, clinic_id, Resource.MEMBERSHIPS)
    return clinics.list_clinic_memberships(db, clinic_id)
