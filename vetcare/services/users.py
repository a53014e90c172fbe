"""User records created from the identity supplied by the authentication proxy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from vetcare.core.config import settings
from vetcare.models import GlobalRole, User
from vetcare.services.audit import record_audit
from vetcare.services.crud import get_or_404

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """Verified identity claims forwarded by the authentication provider."""

    subject: str
    email: str | None = None
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    picture: str | None = None

    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.email or self.subject


def _bootstrap_role(email: str | None) -> GlobalRole:
    admins = {value.casefold() for value in settings.admin_master_emails}
    if email and email.casefold() in admins:
        return GlobalRole.ADMIN_MASTER
    return GlobalRole.USER


def upsert_user(db: Session, identity: Identity) -> User:
    """Return the user for ``identity``, creating it on first authentication.

    Profile fields follow the identity provider; the global role is only set
    on creation and afterwards changes through :func:`set_global_role`.
    """

    user = db.get(User, identity.subject)
    if user is None:
        user = User(
            id=identity.subject,
            email=identity.email,
            name=identity.display_name(),
            first_name=identity.first_name,
            last_name=identity.last_name,
            profile_image_url=identity.picture,
            global_role=_bootstrap_role(identity.email),
        )
        db.add(user)
        db.flush()
        logger.info(
            "created user on first authentication",
            extra={"subject": user.id, "global_role": user.global_role.value},
        )
        return user

    if identity.name or identity.first_name or identity.last_name:
        user.name = identity.display_name()
    user.email = identity.email or user.email
    user.first_name = identity.first_name or user.first_name
    user.last_name = identity.last_name or user.last_name
    user.profile_image_url = identity.picture or user.profile_image_url
    db.flush()
    return user


def list_users(db: Session) -> Sequence[User]:
    stmt = select(User).order_by(User.name)
    return db.execute(stmt).scalars().all()


def set_global_role(db: Session, *, actor: User, user_id: str, role: GlobalRole) -> User:
    """Administrative change of a user's global role."""

    user = get_or_404(db, User, user_id, "User")
    previous = user.global_role
    user.global_role = role
    db.flush()
    record_audit(
        db,
        clinic_id=None,
        actor=actor.id,
        action="user.global_role_changed",
        resource=f"user:{user.id}",
        metadata={"from": previous.value, "to": role.value},
    )
    return user


__all__ = ["Identity", "list_users", "set_global_role", "upsert_user"]
