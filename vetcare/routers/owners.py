from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import Owner, User
from vetcare.schemas import OwnerCreate, OwnerRead, OwnerUpdate, PatientRead
from vetcare.services import owners
from vetcare.services.access import Resource

router = APIRouter(prefix="/api/owners", tags=["owners"])


@router.post("", response_model=OwnerRead, status_code=status.HTTP_201_CREATED)
def create_owner(
    payload: OwnerCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, payload.clinic_id, Resource.OWNERS)
    return owners.create_owner(db, payload.model_dump())


@router.get("", response_model=List[OwnerRead])
def list_owners(
    clinic_id: UUID,
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authorize_clinic(user, clinic_id, Resource.OWNERS)
    return owners.list_owners(db, clinic_id, search)


@router.get("/{owner_id}", response_model=OwnerRead)
def read_owner(
    owner_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return load_scoped(db, user, Owner, owner_id, Resource.OWNERS, "Owner")


@router.get("/{owner_id}/patients", response_model=List[PatientRead])
def list_owner_patients(
    owner_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    owner = load_scoped(db, user, Owner, owner_id, Resource.PATIENTS, "Owner")
    return owners.list_owner_patients(db, owner)


@router.put("/{owner_id}", response_model=OwnerRead)
@router.patch("/{owner_id}", response_model=OwnerRead)
def update_owner(
    owner_id: UUID,
    payload: OwnerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    owner = load_scoped(db, user, Owner, owner_id, Resource.OWNERS, "Owner")
    changes = changes_from(payload, "name", "whatsapp_opt_in")
    return owners.update_owner(db, owner, changes)


@router.delete("/{owner_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_owner(
    owner_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    owner = load_scoped(db, user, Owner, owner_id, Resource.OWNERS, "Owner")
    owners.delete_owner(db, owner)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
