from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import authorize_clinic, changes_from, get_current_user, load_scoped
from vetcare.models import ClinicMembership, User
from vetcare.schemas import MembershipCreate, MembershipRead, MembershipUpdate
from vetcare.services import clinics
from vetcare.services.access import Resource

router = APIRouter(prefix="/api/clinic-memberships", tags=["memberships"])


@router.post("", response_model=MembershipRead, status_code=status.HTTP_201_CREATED)
def grant_membership(
    payload: MembershipCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Invite a user to a clinic; re-inviting reactivates the existing membership."""

    authorize_clinic(user, payload.clinic_id, Resource.MEMBERSHIPS)
    membership, created = clinics.add_membership(
        db,
        actor=user,
        clinic_id=payload.clinic_id,
        user_id=payload.user_id,
        role=payload.role,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return membership


@router.get("/{membership_id}", response_model=MembershipRead)
def read_membership(
    membership_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return load_scoped(
        db, user, ClinicMembership, membership_id, Resource.MEMBERSHIPS, "Membership"
    )


@router.put("/{membership_id}", response_model=MembershipRead)
@router.patch("/{membership_id}", response_model=MembershipRead)
def update_membership(
    membership_id: UUID,
    payload: MembershipUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    membership = load_scoped(
        db, user, ClinicMembership, membership_id, Resource.MEMBERSHIPS, "Membership"
    )
    changes = changes_from(payload, "role", "active")
    return clinics.update_membership(db, actor=user, membership=membership, changes=changes)


@router.delete(
    "/{membership_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
def revoke_membership(
    membership_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    membership = load_scoped(
        db, user, ClinicMembership, membership_id, Resource.MEMBERSHIPS, "Membership"
    )
    clinics.deactivate_membership(db, actor=user, membership=membership)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
