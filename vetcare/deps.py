"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Any, TypeVar
from uuid import UUID

from fastapi import Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from vetcare.core.config import settings
from vetcare.db.session import get_db
from vetcare.errors import UnauthorizedError, ValidationError
from vetcare.logging_utils import set_clinic_context, set_user_context
from vetcare.models import User
from vetcare.services.access import Resource, require_access
from vetcare.services.crud import get_or_404
from vetcare.services.users import Identity, upsert_user

ScopedT = TypeVar("ScopedT")


def _header(request: Request, name: str) -> str | None:
    value = request.headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_identity(request: Request) -> Identity:
    """Read the identity asserted by the authentication proxy."""

    subject = _header(request, settings.auth_subject_header)
    if not subject:
        raise UnauthorizedError(settings.login_url)
    return Identity(
        subject=subject,
        email=_header(request, settings.auth_email_header),
        name=_header(request, settings.auth_name_header),
        first_name=_header(request, settings.auth_first_name_header),
        last_name=_header(request, settings.auth_last_name_header),
        picture=_header(request, settings.auth_picture_header),
    )


def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> User:
    user = upsert_user(db, identity)
    set_user_context(user.id)
    return user


def authorize_clinic(user: User, clinic_id: UUID | None, resource: Resource) -> None:
    """Require access to ``resource`` in a clinic and bind it to the log context."""

    require_access(user, clinic_id, resource)
    set_clinic_context(clinic_id)


def changes_from(payload: BaseModel, *required: str) -> dict[str, Any]:
    """Fields explicitly sent in a partial update; ``required`` ones may not be null."""

    changes = payload.model_dump(exclude_unset=True)
    for field in required:
        if field in changes and changes[field] is None:
            raise ValidationError.for_field(field, f"{field} cannot be null")
    return changes


def load_scoped(
    db: Session,
    user: User,
    model: type[ScopedT],
    obj_id: UUID,
    resource: Resource,
    label: str,
) -> ScopedT:
    """Fetch a clinic-owned row and check the caller may access its clinic."""

    instance = get_or_404(db, model, obj_id, label)
    authorize_clinic(user, instance.clinic_id, resource)
    return instance


__all__ = [
    "authorize_clinic",
    "changes_from",
    "get_current_user",
    "get_identity",
    "load_scoped",
]
