from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import select

from vetcare.core.config import settings
from vetcare.db.session import SessionLocal
from vetcare.logging_utils import configure_logging, set_clinic_context
from vetcare.models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    ClinicMembership,
    ClinicRole,
    GlobalRole,
    Owner,
    Patient,
    Sex,
    Species,
    User,
)

logger = logging.getLogger(__name__)

CLINIC_NAME = "Clínica Veterinária VetCare Demo"

USERS: list[tuple[str, str, str, GlobalRole, ClinicRole | None]] = [
    ("demo-admin", "admin@vetcare.local", "Admin VetCare", GlobalRole.ADMIN_MASTER, None),
    ("demo-vet", "ana.costa@vetcare.local", "Dra. Ana Costa", GlobalRole.USER, ClinicRole.VETERINARIAN),
    ("demo-reception", "bruno.lima@vetcare.local", "Bruno Lima", GlobalRole.USER, ClinicRole.RECEPTIONIST),
]

OWNERS: list[tuple[str, str, str]] = [
    ("Maria Silva", "maria.silva@example.com", "+5585987654321"),
    ("João Pereira", "joao.pereira@example.com", "+558593334455"),
]

PATIENTS: list[tuple[str, str, Species, Sex, str, date]] = [
    ("Maria Silva", "Thor", Species.DOG, Sex.MALE, "Labrador", date(2019, 5, 12)),
    ("Maria Silva", "Mia", Species.CAT, Sex.FEMALE, "Siamês", date(2021, 2, 3)),
    ("João Pereira", "Paçoca", Species.DOG, Sex.FEMALE, "Vira-lata", date(2020, 9, 20)),
]


def ensure_clinic(session) -> Clinic:
    clinic = session.execute(
        select(Clinic).where(Clinic.name == CLINIC_NAME)
    ).scalar_one_or_none()
    if clinic:
        set_clinic_context(clinic.id)
        logger.info("clinic already present", extra={"target_clinic": str(clinic.id)})
        return clinic

    clinic = Clinic(
        name=CLINIC_NAME,
        legal_name="VetCare Serviços Veterinários Ltda",
        whatsapp_number="+5585999990000",
        country="BR",
        state="CE",
        city="Fortaleza",
    )
    session.add(clinic)
    session.flush()
    set_clinic_context(clinic.id)
    logger.info("created clinic", extra={"target_clinic": str(clinic.id)})
    return clinic


def ensure_users(session, clinic: Clinic) -> dict[str, User]:
    created = 0
    users: dict[str, User] = {}
    for subject, email, name, global_role, clinic_role in USERS:
        user = session.get(User, subject)
        if not user:
            user = User(id=subject, email=email, name=name, global_role=global_role)
            session.add(user)
            session.flush()
            created += 1
        if clinic_role is not None:
            membership = session.execute(
                select(ClinicMembership).where(
                    ClinicMembership.clinic_id == clinic.id,
                    ClinicMembership.user_id == user.id,
                    ClinicMembership.active.is_(True),
                )
            ).scalar_one_or_none()
            if not membership:
                session.add(
                    ClinicMembership(clinic_id=clinic.id, user_id=user.id, role=clinic_role)
                )
                session.flush()
        users[subject] = user

    logger.info("ensured users", extra={"created_count": created, "total": len(users)})
    return users


def ensure_owners(session, clinic: Clinic) -> dict[str, Owner]:
    created = 0
    owners: dict[str, Owner] = {}
    for name, email, phone in OWNERS:
        owner = session.execute(
            select(Owner).where(Owner.clinic_id == clinic.id, Owner.name == name)
        ).scalar_one_or_none()
        if not owner:
            owner = Owner(clinic_id=clinic.id, name=name, email=email, phone=phone)
            session.add(owner)
            session.flush()
            created += 1
        owners[name] = owner

    logger.info("ensured owners", extra={"created_count": created, "total": len(owners)})
    return owners


def ensure_patients(session, clinic: Clinic, owners: dict[str, Owner]) -> list[Patient]:
    created = 0
    patients: list[Patient] = []
    for owner_name, name, species, sex, breed, birth_date in PATIENTS:
        owner = owners[owner_name]
        patient = session.execute(
            select(Patient).where(Patient.owner_id == owner.id, Patient.name == name)
        ).scalar_one_or_none()
        if not patient:
            patient = Patient(
                clinic_id=clinic.id,
                owner_id=owner.id,
                name=name,
                species=species,
                sex=sex,
                breed=breed,
                birth_date=birth_date,
            )
            session.add(patient)
            session.flush()
            created += 1
        patients.append(patient)

    logger.info("ensured patients", extra={"created_count": created, "total": len(patients)})
    return patients


def ensure_appointments(
    session, clinic: Clinic, provider: User, patients: list[Patient]
) -> None:
    """Book tomorrow morning, one 30 minute visit per patient."""

    tz = ZoneInfo(settings.timezone)
    day = datetime.now(tz).date() + timedelta(days=1)
    created = 0
    for index, patient in enumerate(patients):
        local_start = datetime.combine(day, time(hour=9), tzinfo=tz) + timedelta(
            minutes=30 * index
        )
        starts_at = local_start.astimezone(timezone.utc)
        existing = session.execute(
            select(Appointment).where(
                Appointment.provider_id == provider.id,
                Appointment.starts_at == starts_at,
            )
        ).scalar_one_or_none()
        if existing:
            continue
        session.add(
            Appointment(
                clinic_id=clinic.id,
                patient_id=patient.id,
                owner_id=patient.owner_id,
                provider_id=provider.id,
                created_by_id=provider.id,
                starts_at=starts_at,
                ends_at=starts_at + timedelta(minutes=30),
                status=AppointmentStatus.CONFIRMED,
            )
        )
        created += 1

    logger.info("ensured appointments", extra={"created_count": created})


def seed() -> None:
    configure_logging()
    logger.info("starting seed process")

    session = SessionLocal()
    try:
        clinic = ensure_clinic(session)
        users = ensure_users(session, clinic)
        owners = ensure_owners(session, clinic)
        patients = ensure_patients(session, clinic, owners)
        ensure_appointments(session, clinic, users["demo-vet"], patients)
        session.commit()
        logger.info("seed complete", extra={"target_clinic": str(clinic.id)})
    except Exception:
        session.rollback()
        logger.exception("seed failed")
        raise
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    seed()
