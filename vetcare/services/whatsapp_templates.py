"""WhatsApp message templates used for owner notifications."""

from __future__ import annotations

import re
from typing import Any, Dict, Sequence

PRESCRIPTION_TEMPLATE = "receita_disponivel"

TEMPLATE_MOCKS: Dict[str, Dict[str, Any]] = {
    PRESCRIPTION_TEMPLATE: {
        "category": "UTILITY",
        "language": "pt_BR",
        "body": (
            "Olá {{1}}, a receita de {{2}} emitida pela {{3}} está disponível."
            " Medicamentos: {{4}}."
        ),
    },
}

_PLACEHOLDER = re.compile(r"\{\{(\d+)\}\}")


def render_template(name: str, variables: Sequence[str]) -> str:
    """Fill the ``{{n}}`` placeholders of a known template."""

    body = TEMPLATE_MOCKS[name]["body"]

    def _substitute(match: re.Match[str]) -> str:
        index = int(match.group(1)) - 1
        return str(variables[index]) if index < len(variables) else ""

    return _PLACEHOLDER.sub(_substitute, body)


__all__ = ["PRESCRIPTION_TEMPLATE", "TEMPLATE_MOCKS", "render_template"]
