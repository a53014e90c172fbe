from vetcare.models import ClinicRole


def test_missing_identity_returns_401_with_login_url(client):
    response = client.get("/api/auth/user")
    assert response.status_code == 401
    assert response.json() == {
        "detail": "Authentication required",
        "login_url": "/api/login",
    }


def test_blank_subject_is_treated_as_missing(client):
    response = client.get("/api/auth/user", headers={"X-Auth-Subject": "   "})
    assert response.status_code == 401


def test_first_authentication_creates_user_with_profile(client):
    response = client.get(
        "/api/auth/user",
        headers={
            "X-Auth-Subject": "sub-42",
            "X-Auth-Email": "lara@example.com",
            "X-Auth-First-Name": "Lara",
            "X-Auth-Last-Name": "Souza",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Lara Souza"
    assert body["email"] == "lara@example.com"
    assert body["memberships"] == []


def test_profile_is_refreshed_but_role_is_kept(client):
    headers = {"X-Auth-Subject": "sub-7", "X-Auth-Name": "Old Name"}
    client.get("/api/auth/user", headers=headers)
    response = client.get(
        "/api/auth/user", headers={"X-Auth-Subject": "sub-7", "X-Auth-Name": "New Name"}
    )
    assert response.json()["name"] == "New Name"
    assert response.json()["global_role"] == "USER"


def test_bootstrap_admin_email_gets_admin_master(client):
    response = client.get(
        "/api/auth/user",
        headers={"X-Auth-Subject": "root", "X-Auth-Email": "ROOT@vetcare.test"},
    )
    assert response.json()["global_role"] == "ADMIN_MASTER"


def test_current_user_lists_only_active_memberships(
    client, make_user, make_clinic, grant, headers_for
):
    user = make_user("multi")
    first = make_clinic("Primeira")
    second = make_clinic("Segunda")
    grant(user, first, ClinicRole.VETERINARIAN)
    grant(user, second, ClinicRole.RECEPTIONIST, active=False)

    response = client.get("/api/auth/user", headers=headers_for("multi"))
    memberships = response.json()["memberships"]
    assert [m["clinic_id"] for m in memberships] == [str(first.id)]


def test_user_listing_requires_admin_master(client, as_vet, as_admin):
    assert client.get("/api/users", headers=as_vet).status_code == 403
    response = client.get("/api/users", headers=as_admin)
    assert response.status_code == 200
    assert {"admin-1", "vet-1"} <= {user["id"] for user in response.json()}


def test_admin_changes_global_role(client, vet, as_admin, as_vet):
    response = client.put(
        f"/api/users/{vet.id}/global-role",
        json={"global_role": "ADMIN_MASTER"},
        headers=as_admin,
    )
    assert response.status_code == 200
    assert response.json()["global_role"] == "ADMIN_MASTER"
    assert client.get("/api/users", headers=as_vet).status_code == 200


def test_global_role_change_is_forbidden_for_users(client, vet, receptionist, as_vet):
    response = client.put(
        f"/api/users/{receptionist.id}/global-role",
        json={"global_role": "ADMIN_MASTER"},
        headers=as_vet,
    )
    assert response.status_code == 403


def test_user_memberships_visible_to_self_only(client, vet, receptionist, as_vet, as_admin):
    own = client.get(f"/api/users/{vet.id}/memberships", headers=as_vet)
    assert own.status_code == 200
    assert own.json()[0]["role"] == "VETERINARIAN"

    other = client.get(f"/api/users/{receptionist.id}/memberships", headers=as_vet)
    assert other.status_code == 403

    admin_view = client.get(f"/api/users/{receptionist.id}/memberships", headers=as_admin)
    assert admin_view.status_code == 200
