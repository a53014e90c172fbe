"""Service layer of the VetCare API."""

from vetcare.services.whatsapp_client import send_template

__all__ = ["send_template"]
