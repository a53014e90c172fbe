from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import Patient, User
from vetcare.schemas import EncounterRead, PatientCreate, PatientRead, PatientUpdate
from vetcare.services import clinical, owners
from vetcare.services.access import Resource

router = APIRouter(prefix="/api/patients", tags=["patients"])


@router.post("", response_model=PatientRead, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, payload.clinic_id, Resource.PATIENTS)
    return owners.create_patient(db, payload.model_dump())


@router.get("", response_model=List[PatientRead])
def list_patients(
    clinic_id: UUID,
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, clinic_id, Resource.PATIENTS)
    return owners.list_patients(db, clinic_id, search)


@router.get("/{patient_id}", response_model=PatientRead)
def read_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return load_scoped(db, user, Patient, patient_id, Resource.PATIENTS, "Patient")


@router.get("/{patient_id}/encounters", response_model=List[EncounterRead])
def list_patient_encounters(
    patient_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Medical history of a patient, newest first."""

    patient = load_scoped(db, user, Patient, patient_id, Resource.ENCOUNTERS, "Patient")
    return clinical.list_patient_encounters(db, patient)


@router.put("/{patient_id}", response_model=PatientRead)
@router.patch("/{patient_id}", response_model=PatientRead)
def update_patient(
    patient_id: UUID,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    patient = load_scoped(db, user, Patient, patient_id, Resource.PATIENTS, "Patient")
    changes = changes_from(payload, "name", "species", "sex")
    return owners.update_patient(db, patient, changes)


@router.delete(
    "/{patient_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def delete_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    patient = load_scoped(db, user, Patient, patient_id, Resource.PATIENTS, "Patient")
    owners.delete_patient(db, patient)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
