"""Client for the document generator that renders prescription PDFs."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from vetcare.core.config import settings
from vetcare.models import Prescription

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(connect=5.0, read=30.0, write=15.0, pool=5.0)


def _prescription_payload(prescription: Prescription) -> dict[str, Any]:
    return {
        "prescription_id": str(prescription.id),
        "clinic_id": str(prescription.clinic_id),
        "patient_id": str(prescription.patient_id),
        "provider_id": prescription.provider_id,
        "notes": prescription.notes,
        "items": [
            {
                "drug_name": item.drug_name,
                "dosage": item.dosage,
                "frequency": item.frequency,
                "duration": item.duration,
                "route": item.route,
                "notes": item.notes,
            }
            for item in prescription.items
        ],
    }


def generate_prescription_document(prescription: Prescription) -> str:
    """Render the prescription and return the public URL of the document."""

    if settings.document_mock_mode:
        url = f"{settings.document_base_url.rstrip('/')}/{prescription.id}.pdf"
        logger.debug("Mocking document generation for %s", prescription.id)
        return url

    if not settings.document_service_url:
        raise RuntimeError("DOCUMENT_SERVICE_URL is not configured")

    with httpx.Client(timeout=_TIMEOUT) as client:
        response = client.post(
            settings.document_service_url, json=_prescription_payload(prescription)
        )
    response.raise_for_status()
    url = response.json().get("url")
    if not url:
        raise RuntimeError("Document service response did not include a url")
    return url


__all__ = ["generate_prescription_document"]
