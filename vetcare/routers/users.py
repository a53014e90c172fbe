from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vetcare.db.session import get_db
from vetcare.deps import get_current_user
from vetcare.errors import ForbiddenError
from vetcare.models import User
from vetcare.schemas import GlobalRoleUpdate, MembershipRead, UserRead
from vetcare.services.access import is_admin_master, require_admin_master
from vetcare.services.clinics import list_user_memberships
from vetcare.services.crud import get_or_404
from vetcare.services.users import list_users, set_global_role

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def read_users(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_admin_master(user)
    return list_users(db)


@router.put("/{user_id}/global-role", response_model=UserRead)
def update_global_role(
    user_id: str,
    payload: GlobalRoleUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    require_admin_master(user)
    return set_global_role(db, actor=user, user_id=user_id, role=payload.global_role)


@router.get("/{user_id}/memberships", response_model=List[MembershipRead])
def read_user_memberships(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Active memberships of a user; visible to the user and to administrators."""

    if user_id != user.id and not is_admin_master(user):
        raise ForbiddenError()
    get_or_404(db, User, user_id, "User")
    return list_user_memberships(db, user_id)
