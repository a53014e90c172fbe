from vetcare.models import ClinicRole, Owner


def _create_owner(client, clinic, name, headers, **extra):
    response = client.post(
        "/api/owners",
        json={"clinic_id": str(clinic.id), "name": name, **extra},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def test_owner_requires_name(client, clinic, as_receptionist):
    response = client.post(
        "/api/owners", json={"clinic_id": str(clinic.id), "name": ""}, headers=as_receptionist
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "name"


def test_owner_search_is_case_insensitive_and_clinic_scoped(
    client, clinic, make_clinic, make_user, grant, headers_for, as_receptionist
):
    _create_owner(client, clinic, "Maria Silva", as_receptionist)
    _create_owner(client, clinic, "João Pereira", as_receptionist, email="joao@silvamail.com")
    _create_owner(client, clinic, "Ana Souza", as_receptionist)

    other = make_clinic("Outra")
    other_user = make_user("other-reception")
    grant(other_user, other, ClinicRole.RECEPTIONIST)
    _create_owner(client, other, "Carlos Silva", headers_for(other_user.id))

    response = client.get(
        "/api/owners",
        params={"clinic_id": str(clinic.id), "search": "SILVA"},
        headers=as_receptionist,
    )
    assert response.status_code == 200
    assert [o["name"] for o in response.json()] == ["João Pereira", "Maria Silva"]


def test_search_treats_wildcards_literally(client, clinic, as_receptionist):
    _create_owner(client, clinic, "Maria Silva", as_receptionist)
    response = client.get(
        f"/api/clinics/{clinic.id}/owners", params={"search": "%"}, headers=as_receptionist
    )
    assert response.json() == []


def test_cross_tenant_owner_access_is_forbidden(
    client, owner, make_clinic, make_user, grant, headers_for
):
    other = make_clinic("Outra")
    stranger = make_user("stranger")
    grant(stranger, other, ClinicRole.CLINIC_ADMIN)

    response = client.get(f"/api/owners/{owner['id']}", headers=headers_for(stranger.id))
    assert response.status_code == 403


def test_update_and_delete_owner(client, clinic, as_receptionist):
    owner = _create_owner(client, clinic, "Temporário", as_receptionist)
    updated = client.patch(
        f"/api/owners/{owner['id']}",
        json={"phone": "+5585911112222", "whatsapp_opt_in": False},
        headers=as_receptionist,
    )
    assert updated.status_code == 200
    assert updated.json()["whatsapp_opt_in"] is False

    deleted = client.delete(f"/api/owners/{owner['id']}", headers=as_receptionist)
    assert deleted.status_code == 204
    missing = client.get(f"/api/owners/{owner['id']}", headers=as_receptionist)
    assert missing.status_code == 404


def test_owner_with_patients_cannot_be_deleted(client, owner, patient, as_receptionist):
    response = client.delete(f"/api/owners/{owner['id']}", headers=as_receptionist)
    assert response.status_code == 409


def test_patient_inherits_owner_clinic(client, owner, patient, clinic):
    assert patient["clinic_id"] == str(clinic.id)
    assert patient["owner_id"] == owner["id"]
    assert patient["sex"] == "UNKNOWN"


def test_patient_with_owner_from_other_clinic_is_rejected(
    client, owner, make_clinic, make_user, grant, headers_for
):
    other = make_clinic("Outra")
    user = make_user("other-admin")
    grant(user, other, ClinicRole.CLINIC_ADMIN)

    response = client.post(
        "/api/patients",
        json={
            "clinic_id": str(other.id),
            "owner_id": owner["id"],
            "name": "Intruso",
            "species": "CAT",
        },
        headers=headers_for(user.id),
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "owner_id"


def test_patient_requires_valid_species(client, clinic, owner, as_receptionist):
    response = client.post(
        "/api/patients",
        json={
            "clinic_id": str(clinic.id),
            "owner_id": owner["id"],
            "name": "Nemo",
            "species": "FISH",
        },
        headers=as_receptionist,
    )
    assert response.status_code == 400


def test_patient_search_and_owner_patients(client, clinic, owner, patient, as_receptionist):
    client.post(
        "/api/patients",
        json={
            "clinic_id": str(clinic.id),
            "owner_id": owner["id"],
            "name": "Mia",
            "species": "CAT",
            "microchip": "985112003456789",
        },
        headers=as_receptionist,
    )

    by_chip = client.get(
        "/api/patients",
        params={"clinic_id": str(clinic.id), "search": "0034"},
        headers=as_receptionist,
    )
    assert [p["name"] for p in by_chip.json()] == ["Mia"]

    by_breed = client.get(
        f"/api/clinics/{clinic.id}/patients", params={"search": "labr"}, headers=as_receptionist
    )
    assert [p["name"] for p in by_breed.json()] == ["Thor"]

    owned = client.get(f"/api/owners/{owner['id']}/patients", headers=as_receptionist)
    assert [p["name"] for p in owned.json()] == ["Mia", "Thor"]


def test_update_patient_owner_must_share_clinic(
    client, patient, make_clinic, db, as_receptionist
):
    other = make_clinic("Outra")
    foreign = Owner(clinic_id=other.id, name="Forasteiro")
    db.add(foreign)
    db.commit()

    response = client.patch(
        f"/api/patients/{patient['id']}",
        json={"owner_id": str(foreign.id)},
        headers=as_receptionist,
    )
    assert response.status_code == 400


def test_patient_with_appointments_cannot_be_deleted(
    client, patient, appointment, as_receptionist
):
    response = client.delete(f"/api/patients/{patient['id']}", headers=as_receptionist)
    assert response.status_code == 409


def test_delete_patient_without_history(client, patient, as_receptionist):
    response = client.delete(f"/api/patients/{patient['id']}", headers=as_receptionist)
    assert response.status_code == 204
