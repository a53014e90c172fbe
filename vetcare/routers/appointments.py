from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import Appointment, User
from vetcare.schemas import AppointmentCreate, AppointmentRead, AppointmentUpdate
from vetcare.services import scheduling
from vetcare.services.access import Resource, readable_clinic_ids
from vetcare.services.crud import get_or_404

router = APIRouter(prefix="/api/appointments", tags=["appointments"])
provider_router = APIRouter(prefix="/api/providers", tags=["appointments"])


@router.post("", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, payload.clinic_id, Resource.APPOINTMENTS)
    return scheduling.create_appointment(db, actor=user, data=payload.model_dump())


@router.get("", response_model=List[AppointmentRead])
def list_appointments(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, clinic_id, Resource.APPOINTMENTS)
    return scheduling.list_appointments(db, clinic_id)


@router.get("/{appointment_id}", response_model=AppointmentRead)
def read_appointment(
    appointment_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return load_scoped(
        db, user, Appointment, appointment_id, Resource.APPOINTMENTS, "Appointment"
    )


@router.put("/{appointment_id}", response_model=AppointmentRead)
@router.patch("/{appointment_id}", response_model=AppointmentRead)
def update_appointment(
    appointment_id: UUID,
    payload: AppointmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Reschedule, reassign or move the appointment through its status flow."""

    appointment = load_scoped(
        db, user, Appointment, appointment_id, Resource.APPOINTMENTS, "Appointment"
    )
    changes = changes_from(
        payload,
        "patient_id",
        "owner_id",
        "provider_id",
        "starts_at",
        "ends_at",
        "status",
        "source",
    )
    return scheduling.update_appointment(
        db, actor=user, appointment=appointment, changes=changes
    )


@router.delete(
    "/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def cancel_appointment(
    appointment_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Cancel the appointment; the record is kept for the clinical history."""

    appointment = load_scoped(
        db, user, Appointment, appointment_id, Resource.APPOINTMENTS, "Appointment"
    )
    scheduling.cancel_appointment(db, actor=user, appointment=appointment)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@provider_router.get("/{provider_id}/appointments", response_model=List[AppointmentRead])
def list_provider_appointments(
    provider_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Agenda of a provider across the clinics the caller can see."""

    get_or_404(db, User, provider_id, "Provider")
    clinic_ids = readable_clinic_ids(user, Resource.APPOINTMENTS)
    return scheduling.list_provider_appointments(db, provider_id, clinic_ids)
