from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import Encounter, User
from vetcare.schemas import (
    AddendumCreate,
    AddendumRead,
    EncounterConfirm,
    EncounterCreate,
    EncounterRead,
    EncounterUpdate,
)
from vetcare.services import clinical
from vetcare.services.access import Resource

router = APIRouter(prefix="/api/encounters", tags=["encounters"])


def _load(db: Session, user: User, encounter_id: UUID) -> Encounter:
    return load_scoped(db, user, Encounter, encounter_id, Resource.ENCOUNTERS, "Encounter")


@router.post("", response_model=EncounterRead, status_code=status.HTTP_201_CREATED)
def create_encounter(
    payload: EncounterCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, payload.clinic_id, Resource.ENCOUNTERS)
    return clinical.create_encounter(db, actor=user, data=payload.model_dump())


@router.get("", response_model=List[EncounterRead])
def list_encounters(
    clinic_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, clinic_id, Resource.ENCOUNTERS)
    return clinical.list_encounters(db, clinic_id)


@router.get("/{encounter_id}", response_model=EncounterRead)
def read_encounter(
    encounter_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _load(db, user, encounter_id)


@router.put("/{encounter_id}", response_model=EncounterRead)
@router.patch("/{encounter_id}", response_model=EncounterRead)
def update_encounter(
    encounter_id: UUID,
    payload: EncounterUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    encounter = _load(db, user, encounter_id)
    changes = changes_from(payload, "status")
    return clinical.update_encounter(db, actor=user, encounter=encounter, changes=changes)


@router.post("/{encounter_id}/confirm", response_model=EncounterRead)
def confirm_encounter(
    encounter_id: UUID,
    payload: Optional[EncounterConfirm] = Body(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Sign the encounter. Signed encounters only accept addenda."""

    encounter = _load(db, user, encounter_id)
    version = payload.version if payload else None
    return clinical.confirm_encounter(db, actor=user, encounter=encounter, version=version)


@router.delete(
    "/{encounter_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def delete_encounter(
    encounter_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    encounter = _load(db, user, encounter_id)
    clinical.delete_encounter(db, encounter)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{encounter_id}/addenda",
    response_model=AddendumRead,
    status_code=status.HTTP_201_CREATED,
)
def add_addendum(
    encounter_id: UUID,
    payload: AddendumCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    encounter = _load(db, user, encounter_id)
    return clinical.add_addendum(
        db, actor=user, encounter=encounter, content=payload.content, note=payload.note
    )


@router.get("/{encounter_id}/addenda", response_model=List[AddendumRead])
def list_addenda(
    encounter_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    encounter = _load(db, user, encounter_id)
    return clinical.list_addenda(db, encounter)
