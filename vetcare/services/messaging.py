"""Owner notifications for prescriptions, recorded in the message log."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetcare.errors import ValidationError
from vetcare.models import (
    Clinic,
    MessageDirection,
    MessageLog,
    MessageStatus,
    Owner,
    Patient,
    Prescription,
    User,
)
from vetcare.services import whatsapp_client
from vetcare.services.audit import record_audit
from vetcare.services.whatsapp_templates import PRESCRIPTION_TEMPLATE, render_template

logger = logging.getLogger(__name__)

CHANNEL_WHATSAPP = "whatsapp"
_RETRYABLE_STATUSES = (MessageStatus.QUEUED, MessageStatus.FAILED)


def _recipient_owner(db: Session, prescription: Prescription) -> Owner | None:
    patient = db.get(Patient, prescription.patient_id)
    if patient is None:
        return None
    return db.get(Owner, patient.owner_id)


def template_variables(db: Session, prescription: Prescription, owner: Owner) -> list[str]:
    """Values for the placeholders of the prescription template, in order."""

    patient = db.get(Patient, prescription.patient_id)
    clinic = db.get(Clinic, prescription.clinic_id)
    return [
        owner.name,
        patient.name if patient else "",
        clinic.name if clinic else "",
        ", ".join(item.drug_name for item in prescription.items),
    ]


def queue_prescription_message(db: Session, prescription: Prescription) -> MessageLog | None:
    """Record a QUEUED outbound message when the owner can receive WhatsApp.

    Returns ``None`` when the owner opted out or has no phone number.
    """

    owner = _recipient_owner(db, prescription)
    if owner is None or not owner.whatsapp_opt_in or not owner.phone:
        logger.info(
            "prescription notification skipped",
            extra={"prescription_id": str(prescription.id)},
        )
        return None

    variables = template_variables(db, prescription, owner)
    message = MessageLog(
        clinic_id=prescription.clinic_id,
        prescription_id=prescription.id,
        owner_id=owner.id,
        direction=MessageDirection.OUTBOUND,
        channel=CHANNEL_WHATSAPP,
        recipient=owner.phone,
        payload=render_template(PRESCRIPTION_TEMPLATE, variables),
        metadata_json={"template": PRESCRIPTION_TEMPLATE, "variables": variables},
        status=MessageStatus.QUEUED,
    )
    db.add(message)
    db.flush()
    return message


def _pending_message(db: Session, prescription: Prescription) -> MessageLog | None:
    stmt = (
        select(MessageLog)
        .where(
            MessageLog.prescription_id == prescription.id,
            MessageLog.direction == MessageDirection.OUTBOUND,
            MessageLog.status.in_(_RETRYABLE_STATUSES),
        )
        .order_by(MessageLog.created_at.desc())
    )
    return db.execute(stmt).scalars().first()


def send_prescription(db: Session, *, actor: User, prescription: Prescription) -> MessageLog:
    """Hand the prescription to the messaging collaborator.

    The outcome is stored on the message log; a delivery failure is recorded
    as FAILED and never propagates to the prescription.
    """

    if not prescription.send_to_whatsapp:
        raise ValidationError.for_field(
            "send_to_whatsapp", "Prescription is not marked for WhatsApp delivery"
        )
    message = _pending_message(db, prescription) or queue_prescription_message(
        db, prescription
    )
    if message is None:
        raise ValidationError.for_field(
            "owner", "Owner has not opted in to WhatsApp or has no phone number"
        )

    metadata = message.metadata_json or {}
    try:
        message_id, response, _ = whatsapp_client.send_template(
            to=message.recipient,
            template_name=metadata.get("template", PRESCRIPTION_TEMPLATE),
            variables=metadata.get("variables") or [],
        )
    except (httpx.HTTPError, RuntimeError) as exc:
        message.status = MessageStatus.FAILED
        message.error = str(exc)
        logger.warning(
            "prescription notification failed",
            extra={"prescription_id": str(prescription.id), "error": str(exc)},
        )
    else:
        message.status = MessageStatus.SENT
        message.sent_at = datetime.now(timezone.utc)
        message.error = None
        message.metadata_json = {
            **(message.metadata_json or {}),
            "message_id": message_id,
            "mocked": bool(response.get("mocked")),
        }
    db.flush()
    record_audit(
        db,
        clinic_id=prescription.clinic_id,
        actor=actor.id,
        action="prescription.sent",
        resource=f"prescription:{prescription.id}",
        metadata={"message_id": str(message.id), "status": message.status.value},
    )
    return message


def list_prescription_messages(db: Session, prescription: Prescription) -> Sequence[MessageLog]:
    stmt = (
        select(MessageLog)
        .where(MessageLog.prescription_id == prescription.id)
        .order_by(MessageLog.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


__all__ = [
    "list_prescription_messages",
    "queue_prescription_message",
    "send_prescription",
    "template_variables",
]
