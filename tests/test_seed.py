from sqlalchemy.orm import sessionmaker

from vetcare import seed
from vetcare.models import Appointment, ClinicMembership, Owner, Patient, User


def _run(db):
    clinic = seed.ensure_clinic(db)
    users = seed.ensure_users(db, clinic)
    owners = seed.ensure_owners(db, clinic)
    patients = seed.ensure_patients(db, clinic, owners)
    seed.ensure_appointments(db, clinic, users["demo-vet"], patients)
    db.commit()
    return clinic


def test_seed_is_idempotent(db):
    first = _run(db)
    second = _run(db)

    assert first.id == second.id
    assert db.query(User).count() == 3
    assert db.query(ClinicMembership).count() == 2
    assert db.query(Owner).count() == 2
    assert db.query(Patient).count() == 3
    assert db.query(Appointment).count() == 3


def test_seeded_data_is_usable_through_the_api(client, db):
    clinic = _run(db)
    response = client.get(
        f"/api/clinics/{clinic.id}/patients",
        params={"search": "thor"},
        headers={"X-Auth-Subject": "demo-reception"},
    )
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Thor"]


def test_seed_entrypoint_commits_demo_data(db, monkeypatch):
    monkeypatch.setattr(seed, "SessionLocal", sessionmaker(bind=db.get_bind()))
    seed.seed()
    seed.seed()

    assert db.query(User).count() == 3
    assert db.query(Appointment).count() == 3
