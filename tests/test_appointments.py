from vetcare.models import AuditLog, ClinicRole


def _book(client, clinic, owner, patient, provider_id, starts_at, ends_at, headers, **extra):
    return client.post(
        "/api/appointments",
        json={
            "clinic_id": str(clinic.id),
            "patient_id": patient["id"],
            "owner_id": owner["id"],
            "provider_id": provider_id,
            "starts_at": starts_at,
            "ends_at": ends_at,
            **extra,
        },
        headers=headers,
    )


def test_appointment_defaults(appointment, receptionist):
    assert appointment["status"] == "PENDING"
    assert appointment["source"] == "MANUAL"
    assert appointment["created_by_id"] == receptionist.id
    assert appointment["version"] == 1


def test_end_must_follow_start(client, clinic, owner, patient, vet, as_receptionist):
    response = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T10:30:00Z",
        "2026-10-20T10:30:00Z",
        as_receptionist,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "ends_at"


def test_patient_must_belong_to_owner(client, clinic, owner, patient, vet, as_receptionist):
    other_owner = client.post(
        "/api/owners",
        json={"clinic_id": str(clinic.id), "name": "Outro Tutor"},
        headers=as_receptionist,
    ).json()
    response = _book(
        client,
        clinic,
        other_owner,
        patient,
        vet.id,
        "2026-10-20T11:00:00Z",
        "2026-10-20T11:30:00Z",
        as_receptionist,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "owner_id"


def test_provider_must_be_clinical_member(
    client, clinic, owner, patient, receptionist, as_receptionist
):
    response = _book(
        client,
        clinic,
        owner,
        patient,
        receptionist.id,
        "2026-10-20T11:00:00Z",
        "2026-10-20T11:30:00Z",
        as_receptionist,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "provider_id"


def test_initial_status_must_be_open(client, clinic, owner, patient, vet, as_receptionist):
    response = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T11:00:00Z",
        "2026-10-20T11:30:00Z",
        as_receptionist,
        status="COMPLETED",
    )
    assert response.status_code == 400


def test_provider_cannot_be_double_booked(
    client, clinic, owner, patient, vet, appointment, as_receptionist
):
    overlapping = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T10:15:00Z",
        "2026-10-20T10:45:00Z",
        as_receptionist,
    )
    assert overlapping.status_code == 409

    adjacent = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T10:30:00Z",
        "2026-10-20T11:00:00Z",
        as_receptionist,
    )
    assert adjacent.status_code == 201


def test_cancelled_slot_can_be_rebooked(
    client, clinic, owner, patient, vet, appointment, as_receptionist
):
    client.delete(f"/api/appointments/{appointment['id']}", headers=as_receptionist)
    response = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T10:00:00Z",
        "2026-10-20T10:30:00Z",
        as_receptionist,
    )
    assert response.status_code == 201


def test_status_flow(client, appointment, db, as_receptionist):
    url = f"/api/appointments/{appointment['id']}"
    confirmed = client.patch(url, json={"status": "CONFIRMED"}, headers=as_receptionist)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "CONFIRMED"
    assert confirmed.json()["version"] == 2

    completed = client.patch(url, json={"status": "COMPLETED"}, headers=as_receptionist)
    assert completed.json()["status"] == "COMPLETED"

    reopened = client.patch(url, json={"status": "PENDING"}, headers=as_receptionist)
    assert reopened.status_code == 409

    actions = [entry.action for entry in db.query(AuditLog).all()]
    assert actions.count("appointment.status_changed") == 2


def test_pending_cannot_jump_to_completed(client, appointment, as_receptionist):
    response = client.put(
        f"/api/appointments/{appointment['id']}",
        json={"status": "COMPLETED"},
        headers=as_receptionist,
    )
    assert response.status_code == 409


def test_stale_version_is_rejected(client, appointment, as_receptionist):
    url = f"/api/appointments/{appointment['id']}"
    client.patch(url, json={"notes": "primeira edição", "version": 1}, headers=as_receptionist)
    response = client.patch(url, json={"notes": "edição atrasada", "version": 1}, headers=as_receptionist)
    assert response.status_code == 409


def test_reschedule_checks_window_and_agenda(
    client, clinic, owner, patient, vet, appointment, as_receptionist
):
    other = _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-20T14:00:00Z",
        "2026-10-20T14:30:00Z",
        as_receptionist,
    )
    assert other.status_code == 201
    url = f"/api/appointments/{appointment['id']}"

    inverted = client.patch(url, json={"ends_at": "2026-10-20T09:00:00Z"}, headers=as_receptionist)
    assert inverted.status_code == 400

    clash = client.patch(
        url,
        json={"starts_at": "2026-10-20T14:10:00Z", "ends_at": "2026-10-20T14:40:00Z"},
        headers=as_receptionist,
    )
    assert clash.status_code == 409

    moved = client.patch(
        url,
        json={"starts_at": "2026-10-20T16:00:00Z", "ends_at": "2026-10-20T16:30:00Z"},
        headers=as_receptionist,
    )
    assert moved.status_code == 200


def test_delete_cancels_and_keeps_record(client, appointment, as_receptionist):
    url = f"/api/appointments/{appointment['id']}"
    assert client.delete(url, headers=as_receptionist).status_code == 204
    assert client.delete(url, headers=as_receptionist).status_code == 204

    response = client.get(url, headers=as_receptionist)
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"


def test_completed_appointment_cannot_be_cancelled(client, appointment, as_receptionist):
    url = f"/api/appointments/{appointment['id']}"
    client.patch(url, json={"status": "CONFIRMED"}, headers=as_receptionist)
    client.patch(url, json={"status": "COMPLETED"}, headers=as_receptionist)
    assert client.delete(url, headers=as_receptionist).status_code == 409


def test_clinic_listing_orders_by_start_desc(
    client, clinic, owner, patient, vet, appointment, as_receptionist
):
    _book(
        client,
        clinic,
        owner,
        patient,
        vet.id,
        "2026-10-21T09:00:00Z",
        "2026-10-21T09:30:00Z",
        as_receptionist,
    )
    response = client.get(
        "/api/appointments", params={"clinic_id": str(clinic.id)}, headers=as_receptionist
    )
    assert response.status_code == 200
    ids = [a["id"] for a in response.json()]
    assert ids[-1] == appointment["id"]
    assert len(ids) == 2


def test_provider_agenda_is_filtered_by_caller_clinics(
    client, clinic, vet, appointment, make_clinic, make_user, grant, headers_for, as_admin
):
    outsider_clinic = make_clinic("Outra")
    outsider = make_user("outsider")
    grant(outsider, outsider_clinic, ClinicRole.RECEPTIONIST)

    own = client.get(f"/api/providers/{vet.id}/appointments", headers=headers_for(vet.id))
    assert [a["id"] for a in own.json()] == [appointment["id"]]

    admin_view = client.get(f"/api/providers/{vet.id}/appointments", headers=as_admin)
    assert len(admin_view.json()) == 1

    hidden = client.get(
        f"/api/providers/{vet.id}/appointments", headers=headers_for(outsider.id)
    )
    assert hidden.status_code == 200
    assert hidden.json() == []


def test_cross_tenant_appointment_is_forbidden(
    client, appointment, make_clinic, make_user, grant, headers_for
):
    other = make_clinic("Outra")
    stranger = make_user("stranger")
    grant(stranger, other, ClinicRole.CLINIC_ADMIN)
    response = client.get(
        f"/api/appointments/{appointment['id']}", headers=headers_for(stranger.id)
    )
    assert response.status_code == 403


def test_schedule_fields_cannot_be_nulled(client, appointment, as_receptionist):
    url = f"/api/appointments/{appointment['id']}"
    for field in ("starts_at", "ends_at", "patient_id", "owner_id", "provider_id"):
        response = client.patch(url, json={field: None}, headers=as_receptionist)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    unchanged = client.get(url, headers=as_receptionist).json()
    assert unchanged["version"] == 1
