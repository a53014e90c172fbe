import pytest

from vetcare.models import AuditLog


@pytest.fixture
def encounter(client, clinic, patient, vet, as_vet):
    response = client.post(
        "/api/encounters",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "provider_id": vet.id,
            "chief_complaint": {"text": "Vômito há dois dias"},
        },
        headers=as_vet,
    )
    assert response.status_code == 201
    return response.json()


def _confirm(client, encounter, headers):
    return client.post(f"/api/encounters/{encounter['id']}/confirm", headers=headers)


def test_consultation_from_appointment_to_signed_record(
    client, clinic, patient, vet, appointment, db, as_receptionist, as_vet
):
    confirmed = client.patch(
        f"/api/appointments/{appointment['id']}",
        json={"status": "CONFIRMED"},
        headers=as_receptionist,
    )
    assert confirmed.status_code == 200

    created = client.post(
        "/api/encounters",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "provider_id": vet.id,
            "appointment_id": appointment["id"],
        },
        headers=as_vet,
    )
    assert created.status_code == 201
    encounter = created.json()
    assert encounter["status"] == "DRAFT"
    assert encounter["signed_at"] is None

    filled = client.patch(
        f"/api/encounters/{encounter['id']}",
        json={
            "physical_exam": {"temperature_c": 39.2, "heart_rate": 120},
            "diagnosis": {"text": "Gastroenterite"},
            "plan": {"text": "Dieta leve e hidratação"},
            "version": encounter["version"],
        },
        headers=as_vet,
    )
    assert filled.status_code == 200
    assert filled.json()["physical_exam"]["temperature_c"] == 39.2

    signed = _confirm(client, encounter, as_vet)
    assert signed.status_code == 200
    assert signed.json()["status"] == "CONFIRMED"
    assert signed.json()["signed_at"] is not None

    visit = client.get(f"/api/appointments/{appointment['id']}", headers=as_receptionist)
    assert visit.json()["status"] == "CONFIRMED"

    actions = [entry.action for entry in db.query(AuditLog).all()]
    assert "encounter.confirmed" in actions


def test_encounter_can_be_created_signed(client, clinic, patient, vet, as_vet):
    response = client.post(
        "/api/encounters",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "provider_id": vet.id,
            "status": "CONFIRMED",
            "diagnosis": {"text": "Saudável"},
        },
        headers=as_vet,
    )
    assert response.status_code == 201
    assert response.json()["signed_at"] is not None


def test_signed_encounter_is_read_only(client, encounter, as_vet):
    _confirm(client, encounter, as_vet)
    url = f"/api/encounters/{encounter['id']}"

    edit = client.patch(url, json={"diagnosis": {"text": "Outro"}}, headers=as_vet)
    assert edit.status_code == 409

    reopen = client.patch(url, json={"status": "DRAFT"}, headers=as_vet)
    assert reopen.status_code == 409

    again = _confirm(client, encounter, as_vet)
    assert again.status_code == 409
    assert again.json()["detail"] == "Encounter is already signed"


def test_sign_through_update(client, encounter, as_vet):
    response = client.put(
        f"/api/encounters/{encounter['id']}",
        json={"plan": {"text": "Retorno em 7 dias"}, "status": "CONFIRMED"},
        headers=as_vet,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"
    assert response.json()["plan"] == {"text": "Retorno em 7 dias"}


def test_addenda_only_on_signed_encounters(client, encounter, as_vet):
    url = f"/api/encounters/{encounter['id']}/addenda"
    draft = client.post(url, json={"note": "Esqueci o peso"}, headers=as_vet)
    assert draft.status_code == 409

    _confirm(client, encounter, as_vet)
    empty = client.post(url, json={}, headers=as_vet)
    assert empty.status_code == 400

    added = client.post(
        url, json={"note": "Peso aferido", "content": {"weight_kg": 31.5}}, headers=as_vet
    )
    assert added.status_code == 201
    assert added.json()["author_id"] == "vet-1"

    listed = client.get(url, headers=as_vet)
    assert [a["note"] for a in listed.json()] == ["Peso aferido"]


def test_draft_can_be_deleted_but_signed_cannot(
    client, clinic, patient, vet, encounter, as_vet
):
    assert client.delete(f"/api/encounters/{encounter['id']}", headers=as_vet).status_code == 204
    assert client.get(f"/api/encounters/{encounter['id']}", headers=as_vet).status_code == 404

    signed = client.post(
        "/api/encounters",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "provider_id": vet.id,
            "status": "CONFIRMED",
        },
        headers=as_vet,
    ).json()
    assert client.delete(f"/api/encounters/{signed['id']}", headers=as_vet).status_code == 409


def test_appointment_must_match_patient(
    client, clinic, owner, vet, appointment, as_receptionist, as_vet
):
    other_patient = client.post(
        "/api/patients",
        json={
            "clinic_id": str(clinic.id),
            "owner_id": owner["id"],
            "name": "Mia",
            "species": "CAT",
        },
        headers=as_receptionist,
    ).json()

    response = client.post(
        "/api/encounters",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": other_patient["id"],
            "provider_id": vet.id,
            "appointment_id": appointment["id"],
        },
        headers=as_vet,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "appointment_id"


def test_receptionist_cannot_touch_medical_records(
    client, clinic, patient, vet, encounter, as_receptionist
):
    create = client.post(
        "/api/encounters",
        json={"clinic_id": str(clinic.id), "patient_id": patient["id"], "provider_id": vet.id},
        headers=as_receptionist,
    )
    assert create.status_code == 403
    read = client.get(f"/api/encounters/{encounter['id']}", headers=as_receptionist)
    assert read.status_code == 403


def test_stale_encounter_version_is_rejected(client, encounter, as_vet):
    url = f"/api/encounters/{encounter['id']}"
    first = client.patch(url, json={"raw_text": "v1", "version": 1}, headers=as_vet)
    assert first.status_code == 200
    stale = client.patch(url, json={"raw_text": "v0", "version": 1}, headers=as_vet)
    assert stale.status_code == 409


def test_patient_history(client, patient, encounter, as_vet, as_receptionist):
    response = client.get(f"/api/patients/{patient['id']}/encounters", headers=as_vet)
    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == [encounter["id"]]

    denied = client.get(f"/api/patients/{patient['id']}/encounters", headers=as_receptionist)
    assert denied.status_code == 403
