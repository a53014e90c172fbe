from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from vetcare.errors import ConflictError
from vetcare.models import AppointmentStatus, EncounterStatus
from vetcare.services.workflow import (
    can_transition_appointment,
    ensure_addendum_allowed,
    ensure_encounter_editable,
    is_terminal,
    transition_appointment,
    transition_encounter,
)


@pytest.mark.parametrize(
    "current, target",
    [
        (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
        (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.NO_SHOW),
    ],
)
def test_allowed_appointment_transitions(current, target):
    appointment = SimpleNamespace(status=current)
    assert transition_appointment(appointment, target) is True
    assert appointment.status == target


@pytest.mark.parametrize(
    "current, target",
    [
        (AppointmentStatus.PENDING, AppointmentStatus.COMPLETED),
        (AppointmentStatus.PENDING, AppointmentStatus.NO_SHOW),
        (AppointmentStatus.CANCELLED, AppointmentStatus.CONFIRMED),
        (AppointmentStatus.COMPLETED, AppointmentStatus.PENDING),
        (AppointmentStatus.NO_SHOW, AppointmentStatus.CONFIRMED),
    ],
)
def test_rejected_appointment_transitions(current, target):
    appointment = SimpleNamespace(status=current)
    with pytest.raises(ConflictError):
        transition_appointment(appointment, target)
    assert appointment.status == current


def test_same_status_is_a_noop():
    appointment = SimpleNamespace(status=AppointmentStatus.CANCELLED)
    assert can_transition_appointment(AppointmentStatus.CANCELLED, AppointmentStatus.CANCELLED)
    assert transition_appointment(appointment, AppointmentStatus.CANCELLED) is False


def test_terminal_statuses():
    assert is_terminal(AppointmentStatus.COMPLETED)
    assert is_terminal(AppointmentStatus.NO_SHOW)
    assert not is_terminal(AppointmentStatus.CONFIRMED)


def test_signing_sets_signed_at():
    encounter = SimpleNamespace(status=EncounterStatus.DRAFT, signed_at=None)
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert transition_encounter(encounter, EncounterStatus.CONFIRMED, now=now)
    assert encounter.status == EncounterStatus.CONFIRMED
    assert encounter.signed_at == now


def test_signed_encounter_cannot_return_to_draft():
    encounter = SimpleNamespace(status=EncounterStatus.CONFIRMED, signed_at=None)
    with pytest.raises(ConflictError):
        transition_encounter(encounter, EncounterStatus.DRAFT)


def test_signed_encounter_is_not_editable():
    with pytest.raises(ConflictError):
        ensure_encounter_editable(SimpleNamespace(status=EncounterStatus.CONFIRMED))
    ensure_encounter_editable(SimpleNamespace(status=EncounterStatus.DRAFT))


def test_addenda_only_on_signed_encounters():
    with pytest.raises(ConflictError):
        ensure_addendum_allowed(SimpleNamespace(status=EncounterStatus.DRAFT))
    ensure_addendum_allowed(SimpleNamespace(status=EncounterStatus.CONFIRMED))
