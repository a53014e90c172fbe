"""Lifecycle rules for appointments and encounters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from vetcare.errors import ConflictError
from vetcare.models import AppointmentStatus, EncounterStatus

APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Appointments in these states occupy the provider's agenda.
BLOCKING_APPOINTMENT_STATUSES = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
)

ENCOUNTER_TRANSITIONS: dict[EncounterStatus, frozenset[EncounterStatus]] = {
    EncounterStatus.DRAFT: frozenset({EncounterStatus.CONFIRMED}),
    EncounterStatus.CONFIRMED: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not APPOINTMENT_TRANSITIONS[status]


def can_transition_appointment(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Return whether an appointment may move from ``current`` to ``target``.

    Re-applying the current status is accepted as a no-op.
    """

    return current == target or target in APPOINTMENT_TRANSITIONS[current]


def transition_appointment(appointment: Any, target: AppointmentStatus) -> bool:
    """Apply ``target`` to the appointment, returning whether the status changed."""

    current = appointment.status
    if not can_transition_appointment(current, target):
        raise ConflictError(
            f"Appointment cannot move from {current.value} to {target.value}"
        )
    if current == target:
        return False
    appointment.status = target
    return True


def ensure_encounter_editable(encounter: Any) -> None:
    """Signed encounters are legal documents and reject destructive edits."""

    if encounter.status == EncounterStatus.CONFIRMED:
        raise ConflictError(
            "Encounter is signed and can only be amended through an addendum"
        )


def transition_encounter(
    encounter: Any, target: EncounterStatus, *, now: datetime | None = None
) -> bool:
    """Move an encounter to ``target``; signing stamps ``signed_at``."""

    current = encounter.status
    if current == target:
        return False
    if target not in ENCOUNTER_TRANSITIONS[current]:
        raise ConflictError(
            f"Encounter cannot move from {current.value} to {target.value}"
        )
    encounter.status = target
    if target == EncounterStatus.CONFIRMED:
        encounter.signed_at = now or datetime.now(timezone.utc)
    return True


def ensure_addendum_allowed(encounter: Any) -> None:
    if encounter.status != EncounterStatus.CONFIRMED:
        raise ConflictError("Draft encounters are edited directly, not amended")


__all__ = [
    "APPOINTMENT_TRANSITIONS",
    "BLOCKING_APPOINTMENT_STATUSES",
    "ENCOUNTER_TRANSITIONS",
    "can_transition_appointment",
    "ensure_addendum_allowed",
    "ensure_encounter_editable",
    "is_terminal",
    "transition_appointment",
    "transition_encounter",
]
