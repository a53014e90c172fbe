"""Prescriptions and their drug items."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from uuid import UUID

import httpx
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vetcare.errors import ExternalServiceError, ValidationError
from vetcare.models import Encounter, Prescription, PrescriptionItem, User
from vetcare.services.crud import apply_patch, get_or_404
from vetcare.services.documents import generate_prescription_document
from vetcare.services.messaging import queue_prescription_message
from vetcare.services.scheduling import resolve_provider

logger = logging.getLogger(__name__)


def _clean_items(items: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    if not items:
        raise ValidationError.for_field("items", "A prescription needs at least one item")
    cleaned = []
    for index, item in enumerate(items):
        drug_name = (item.get("drug_name") or "").strip()
        if not drug_name:
            raise ValidationError.for_field(
                f"items.{index}.drug_name", "Drug name is required"
            )
        cleaned.append({**item, "drug_name": drug_name})
    return cleaned


def create_prescription(db: Session, *, actor: User, data: dict[str, Any]) -> Prescription:
    """Issue a prescription with its items in a single unit of work."""

    fields = dict(data)
    items = _clean_items(fields.pop("items", None) or [])
    clinic_id = fields["clinic_id"]

    encounter = db.get(Encounter, fields["encounter_id"])
    if encounter is None or encounter.clinic_id != clinic_id:
        raise ValidationError.for_field("encounter_id", "Encounter not found in this clinic")
    if encounter.patient_id != fields["patient_id"]:
        raise ValidationError.for_field(
            "patient_id", "Patient does not match the encounter"
        )
    fields["provider_id"] = fields.get("provider_id") or encounter.provider_id
    resolve_provider(db, clinic_id, fields["provider_id"])

    prescription = Prescription(
        **fields, items=[PrescriptionItem(**item) for item in items]
    )
    db.add(prescription)
    db.flush()
    logger.info(
        "prescription issued",
        extra={"prescription_id": str(prescription.id), "items": len(items)},
    )
    if prescription.send_to_whatsapp:
        queue_prescription_message(db, prescription)
    return prescription


def get_prescription(db: Session, prescription_id: UUID) -> Prescription:
    return get_or_404(db, Prescription, prescription_id, "Prescription")


def list_prescriptions(db: Session, clinic_id: UUID) -> Sequence[Prescription]:
    stmt = (
        select(Prescription)
        .where(Prescription.clinic_id == clinic_id)
        .order_by(Prescription.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def update_prescription(
    db: Session, prescription: Prescription, changes: dict[str, Any]
) -> Prescription:
    apply_patch(prescription, changes)
    db.flush()
    return prescription


def delete_prescription(db: Session, prescription: Prescription) -> None:
    db.delete(prescription)
    db.flush()
    logger.info("prescription deleted", extra={"prescription_id": str(prescription.id)})


def add_item(db: Session, prescription: Prescription, fields: dict[str, Any]) -> PrescriptionItem:
    (cleaned,) = _clean_items([fields])
    item = PrescriptionItem(**cleaned)
    prescription.items.append(item)
    db.flush()
    return item


def list_items(db: Session, prescription: Prescription) -> Sequence[PrescriptionItem]:
    stmt = (
        select(PrescriptionItem)
        .where(PrescriptionItem.prescription_id == prescription.id)
        .order_by(PrescriptionItem.drug_name)
    )
    return db.execute(stmt).scalars().all()


def get_item(db: Session, item_id: UUID) -> PrescriptionItem:
    return get_or_404(db, PrescriptionItem, item_id, "Prescription item")


def delete_item(db: Session, item: PrescriptionItem) -> None:
    remaining = db.execute(
        select(func.count())
        .select_from(PrescriptionItem)
        .where(PrescriptionItem.prescription_id == item.prescription_id)
    ).scalar_one()
    if remaining <= 1:
        raise ValidationError.for_field(
            "items", "A prescription must keep at least one item"
        )
    item.prescription.items.remove(item)
    db.flush()


def attach_document(db: Session, prescription: Prescription) -> Prescription:
    """Render the prescription through the document generator and store its URL."""

    try:
        prescription.pdf_url = generate_prescription_document(prescription)
    except (httpx.HTTPError, RuntimeError) as exc:
        logger.warning(
            "document generation failed",
            extra={"prescription_id": str(prescription.id), "error": str(exc)},
        )
        raise ExternalServiceError("Document generator is unavailable") from exc
    db.flush()
    return prescription


__all__ = [
    "add_item",
    "attach_document",
    "create_prescription",
    "delete_item",
    "delete_prescription",
    "get_item",
    "get_prescription",
    "list_items",
    "list_prescriptions",
    "update_prescription",
]
