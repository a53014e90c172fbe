"""Shared persistence helpers used by the per-entity services."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, or_
from sqlalchemy.orm import Session

from vetcare.errors import ConflictError, NotFoundError

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: type[ModelT], obj_id: UUID | str, resource: str) -> ModelT:
    """Return the row with ``obj_id`` or raise ``NotFoundError``."""

    instance = db.get(model, obj_id)
    if instance is None:
        raise NotFoundError(resource)
    return instance


def apply_patch(instance: Any, changes: Mapping[str, Any]) -> list[str]:
    """Copy the provided fields onto ``instance`` and return the names that changed."""

    changed: list[str] = []
    for field, value in changes.items():
        if getattr(instance, field) != value:
            setattr(instance, field, value)
            changed.append(field)
    return changed


def check_version(instance: Any, expected: int | None, resource: str) -> None:
    """Reject writes based on a stale copy of the record."""

    if expected is not None and expected != instance.version:
        raise ConflictError(
            f"{resource} was modified by another request (version {instance.version})"
        )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def matches_any(term: str, *columns: Any) -> ColumnElement[bool]:
    """Case-insensitive substring match OR'd across ``columns``."""

    pattern = f"%{_escape_like(term.strip())}%"
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))


__all__ = ["apply_patch", "check_version", "get_or_404", "matches_any"]
