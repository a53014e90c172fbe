from vetcare.models import ClinicMembership


def _invite(client, clinic, user_id, role, headers):
    return client.post(
        "/api/clinic-memberships",
        json={"clinic_id": str(clinic.id), "user_id": user_id, "role": role},
        headers=headers,
    )


def test_clinic_admin_invites_user(client, clinic, make_user, as_clinic_admin):
    make_user("new-vet")
    response = _invite(client, clinic, "new-vet", "VETERINARIAN", as_clinic_admin)
    assert response.status_code == 201
    assert response.json()["active"] is True


def test_non_admin_cannot_invite(client, clinic, make_user, as_vet):
    make_user("someone")
    response = _invite(client, clinic, "someone", "RECEPTIONIST", as_vet)
    assert response.status_code == 403


def test_invite_unknown_user_is_404(client, clinic, as_clinic_admin):
    response = _invite(client, clinic, "ghost", "RECEPTIONIST", as_clinic_admin)
    assert response.status_code == 404


def test_reinvite_reuses_single_active_membership(
    client, db, clinic, receptionist, as_clinic_admin
):
    response = _invite(client, clinic, receptionist.id, "VETERINARIAN", as_clinic_admin)
    assert response.status_code == 200
    assert response.json()["role"] == "VETERINARIAN"

    rows = (
        db.query(ClinicMembership)
        .filter_by(clinic_id=clinic.id, user_id=receptionist.id)
        .all()
    )
    assert len(rows) == 1
    assert rows[0].active is True


def test_revoke_then_reinvite_reactivates(client, db, clinic, receptionist, as_clinic_admin, headers_for):
    membership_id = db.query(ClinicMembership).filter_by(user_id=receptionist.id).one().id

    revoked = client.delete(f"/api/clinic-memberships/{membership_id}", headers=as_clinic_admin)
    assert revoked.status_code == 204
    denied = client.get(f"/api/clinics/{clinic.id}/owners", headers=headers_for(receptionist.id))
    assert denied.status_code == 403

    again = _invite(client, clinic, receptionist.id, "RECEPTIONIST", as_clinic_admin)
    assert again.status_code == 200
    assert again.json()["id"] == str(membership_id)
    allowed = client.get(f"/api/clinics/{clinic.id}/owners", headers=headers_for(receptionist.id))
    assert allowed.status_code == 200


def test_update_membership_role(client, db, receptionist, as_clinic_admin):
    membership_id = db.query(ClinicMembership).filter_by(user_id=receptionist.id).one().id
    response = client.patch(
        f"/api/clinic-memberships/{membership_id}",
        json={"role": "VETERINARIAN"},
        headers=as_clinic_admin,
    )
    assert response.status_code == 200
    assert response.json()["role"] == "VETERINARIAN"


def test_membership_role_cannot_be_null(client, db, receptionist, as_clinic_admin):
    membership_id = db.query(ClinicMembership).filter_by(user_id=receptionist.id).one().id
    response = client.put(
        f"/api/clinic-memberships/{membership_id}",
        json={"role": None},
        headers=as_clinic_admin,
    )
    assert response.status_code == 400


def test_inactive_clinic_rejects_invites(client, make_clinic, make_user, as_admin):
    closed = make_clinic("Fechada", active=False)
    make_user("late")
    response = _invite(client, closed, "late", "RECEPTIONIST", as_admin)
    assert response.status_code == 400
