from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import Prescription, User
from vetcare.schemas import (
    MessageLogRead,
    PrescriptionCreate,
    PrescriptionItemCreate,
    PrescriptionItemFields,
    PrescriptionItemRead,
    PrescriptionRead,
    PrescriptionUpdate,
)
from vetcare.services import messaging, prescriptions
from vetcare.services.access import Resource

router = APIRouter(prefix="/api/prescriptions", tags=["prescriptions"])
item_router = APIRouter(prefix="/api/prescription-items", tags=["prescriptions"])


def _load(db: Session, user: User, prescription_id: UUID) -> Prescription:
    return load_scoped(
        db, user, Prescription, prescription_id, Resource.PRESCRIPTIONS, "Prescription"
    )


@router.post("", response_model=PrescriptionRead, status_code=status.HTTP_201_CREATED)
def create_prescription(
    payload: PrescriptionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Issue a prescription together with its items."""

    authorize_clinic(user, payload.clinic_id, Resource.PRESCRIPTIONS)
    return prescriptions.create_prescription(db, actor=user, data=payload.model_dump())


@router.get("", response_model=List[PrescriptionRead])
def list_prescriptions(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, clinic_id, Resource.PRESCRIPTIONS)
    return prescriptions.list_prescriptions(db, clinic_id)


@router.get("/{prescription_id}", response_model=PrescriptionRead)
def read_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _load(db, user, prescription_id)


@router.put("/{prescription_id}", response_model=PrescriptionRead)
@router.patch("/{prescription_id}", response_model=PrescriptionRead)
def update_prescription(
    prescription_id: UUID,
    payload: PrescriptionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    changes = changes_from(payload, "send_to_whatsapp")
    return prescriptions.update_prescription(db, prescription, changes)


@router.delete(
    "/{prescription_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def delete_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    prescriptions.delete_prescription(db, prescription)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{prescription_id}/items", response_model=List[PrescriptionItemRead])
def list_items(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    return prescriptions.list_items(db, prescription)


@router.post(
    "/{prescription_id}/items",
    response_model=PrescriptionItemRead,
    status_code=status.HTTP_201_CREATED,
)
def add_item(
    prescription_id: UUID,
    payload: PrescriptionItemFields,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    return prescriptions.add_item(db, prescription, payload.model_dump())


@router.post("/{prescription_id}/send", response_model=MessageLogRead)
def send_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Deliver the prescription to the owner over WhatsApp and report the outcome."""

    prescription = _load(db, user, prescription_id)
    return messaging.send_prescription(db, actor=user, prescription=prescription)


@router.get("/{prescription_id}/messages", response_model=List[MessageLogRead])
def list_messages(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    return messaging.list_prescription_messages(db, prescription)


@router.post("/{prescription_id}/document", response_model=PrescriptionRead)
def generate_document(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, prescription_id)
    return prescriptions.attach_document(db, prescription)


# ---------------------------------------------------------------- items


@item_router.post("", response_model=PrescriptionItemRead, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: PrescriptionItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    prescription = _load(db, user, payload.prescription_id)
    fields = payload.model_dump(exclude={"prescription_id"})
    return prescriptions.add_item(db, prescription, fields)


@item_router.get("/{item_id}", response_model=PrescriptionItemRead)
def read_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    item = prescriptions.get_item(db, item_id)
    authorize_clinic(user, item.prescription.clinic_id, Resource.PRESCRIPTIONS)
    return item


@item_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Remove a drug line; the last item of a prescription cannot be removed."""

    item = prescriptions.get_item(db, item_id)
    authorize_clinic(user, item.prescription.clinic_id, Resource.PRESCRIPTIONS)
    prescriptions.delete_item(db, item)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
