import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["WHATSAPP_MOCK_MODE"] = "true"
os.environ["DOCUMENT_MOCK_MODE"] = "true"
os.environ["ADMIN_MASTER_EMAILS"] = '["root@vetcare.test"]'

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vetcare.db.session import get_db
from vetcare.main import app
from vetcare.models import Clinic, ClinicMembership, ClinicRole, GlobalRole, User
from vetcare.db.base import Base

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


def auth_headers(user_id, email=None):
    headers = {"X-Auth-Subject": user_id}
    if email:
        headers["X-Auth-Email"] = email
    return headers


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(user_id, role=GlobalRole.USER, email=None, name=None):
        user = User(id=user_id, email=email, name=name or user_id, global_role=role)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_clinic(db):
    def _make(name="Clínica Central", active=True):
        clinic = Clinic(name=name, active=active)
        db.add(clinic)
        db.commit()
        return clinic

    return _make


@pytest.fixture
def grant(db):
    def _grant(user, clinic, role, active=True):
        membership = ClinicMembership(
            clinic_id=clinic.id, user_id=user.id, role=role, active=active
        )
        db.add(membership)
        db.commit()
        return membership

    return _grant


@pytest.fixture
def clinic(make_clinic):
    return make_clinic()


@pytest.fixture
def admin(make_user):
    return make_user("admin-1", role=GlobalRole.ADMIN_MASTER, email="admin@vetcare.test")


@pytest.fixture
def vet(make_user, grant, clinic):
    user = make_user("vet-1", name="Dra. Ana")
    grant(user, clinic, ClinicRole.VETERINARIAN)
    return user


@pytest.fixture
def receptionist(make_user, grant, clinic):
    user = make_user("reception-1", name="Bruno")
    grant(user, clinic, ClinicRole.RECEPTIONIST)
    return user


@pytest.fixture
def clinic_admin(make_user, grant, clinic):
    user = make_user("clinic-admin-1", name="Carla")
    grant(user, clinic, ClinicRole.CLINIC_ADMIN)
    return user


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def as_admin(admin):
    return auth_headers(admin.id)


@pytest.fixture
def as_vet(vet):
    return auth_headers(vet.id)


@pytest.fixture
def as_receptionist(receptionist):
    return auth_headers(receptionist.id)


@pytest.fixture
def as_clinic_admin(clinic_admin):
    return auth_headers(clinic_admin.id)


@pytest.fixture
def owner(client, clinic, as_receptionist):
    response = client.post(
        "/api/owners",
        json={
            "clinic_id": str(clinic.id),
            "name": "Maria Silva",
            "phone": "+55 85 98765-4321",
            "email": "maria@example.com",
        },
        headers=as_receptionist,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def patient(client, clinic, owner, as_receptionist):
    response = client.post(
        "/api/patients",
        json={
            "clinic_id": str(clinic.id),
            "owner_id": owner["id"],
            "name": "Thor",
            "species": "DOG",
            "breed": "Labrador",
        },
        headers=as_receptionist,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def appointment(client, clinic, owner, patient, vet, as_receptionist):
    response = client.post(
        "/api/appointments",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "owner_id": owner["id"],
            "provider_id": vet.id,
            "starts_at": "2026-10-20T10:00:00Z",
            "ends_at": "2026-10-20T10:30:00Z",
        },
        headers=as_receptionist,
    )
    assert response.status_code == 201
    return response.json()
