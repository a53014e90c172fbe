"""Thin wrapper around the Evolution WhatsApp API."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Iterable
from urllib.parse import quote

import httpx

from vetcare.core.config import settings
from vetcare.services.whatsapp_templates import TEMPLATE_MOCKS

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(connect=5.0, read=15.0, write=15.0, pool=5.0)


def normalize_phone(phone: str | None) -> str:
    """Keep only the digits of a phone number."""

    return re.sub(r"\D", "", phone or "")


def _build_evolution_url(action: str) -> str:
    base_url = settings.evolution_api_base_url.rstrip("/")
    instance_name = settings.evolution_instance_name
    if not instance_name:
        raise RuntimeError("EVOLUTION_INSTANCE_NAME is not configured")
    return f"{base_url}/message/{action}/{quote(instance_name)}"


def _mock_send(action: str, payload: dict) -> tuple[str, dict]:
    message_id = f"mocked-{uuid.uuid4()}"
    logger.debug("Mocking Evolution send (%s) with payload: %s", action, payload)
    normalized_phone = normalize_phone(payload.get("number"))
    mock_response = {
        "key": {
            "id": message_id,
            "remoteJid": f"{normalized_phone or '00000000000'}@mock",
        },
        "messageType": action,
        "mocked": True,
        "payload": payload,
    }
    if action == "sendTemplate":
        mock_response["template"] = TEMPLATE_MOCKS.get(payload.get("name", ""))
    return message_id, mock_response


def _dispatch(action: str, payload: dict) -> tuple[str, dict]:
    if settings.whatsapp_mock_mode:
        return _mock_send(action, payload)

    api_key = settings.evolution_api_key
    if not api_key:
        raise RuntimeError("EVOLUTION_API_KEY is not configured")

    url = _build_evolution_url(action)
    headers = {
        "apikey": api_key,
        "Content-Type": "application/json",
    }

    with httpx.Client(timeout=_TIMEOUT) as client:
        response = client.post(url, headers=headers, json=payload)
    response.raise_for_status()
    data = response.json()
    message_id = (
        data.get("key", {}).get("id")
        or data.get("id")
        or data.get("message", {}).get("key", {}).get("id")
    )
    if not message_id:
        raise RuntimeError("Evolution API response did not include a message identifier")

    logger.debug("Evolution API responded with %s", data)
    return message_id, data


def send_template(
    to: str,
    template_name: str,
    variables: Iterable[str] | None = None,
    language_code: str = "pt_BR",
) -> tuple[str, dict, dict]:
    """Send a template-based WhatsApp message."""

    components = []
    if variables:
        components.append(
            {
                "type": "body",
                "parameters": [
                    {"type": "text", "text": str(value)} for value in variables
                ],
            }
        )

    payload = {
        "number": normalize_phone(to),
        "name": template_name,
        "language": language_code,
        "components": components,
    }
    message_id, response = _dispatch("sendTemplate", payload)
    return message_id, response, payload


__all__ = ["normalize_phone", "send_template"]
