from fastapi import APIRouter, Depends

from vetcare.deps import get_current_user
from vetcare.models import User
from vetcare.schemas import CurrentUserRead, MembershipRead, UserRead

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/user", response_model=CurrentUserRead)
def current_user(user: User = Depends(get_current_user)) -> CurrentUserRead:
    """Return the authenticated user with their active memberships."""

    profile = UserRead.model_validate(user).model_dump()
    return CurrentUserRead(
        **profile,
        memberships=[
            MembershipRead.model_validate(membership)
            for membership in user.memberships
            if membership.active
        ],
    )
