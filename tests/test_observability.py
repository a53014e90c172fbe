def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "vetcare_api_requests_total" in response.text
    assert response.headers["content-type"].startswith("text/plain")


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_domain_errors_are_json(client, as_admin):
    response = client.get(
        "/api/clinics/00000000-0000-0000-0000-000000000000", headers=as_admin
    )
    assert response.status_code == 404
    assert response.json() == {"detail": "Clinic not found"}


def test_malformed_payload_is_400_with_field_errors(client, as_admin):
    response = client.post("/api/clinics", json={"name": "  "}, headers=as_admin)
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Invalid request"
    assert body["errors"][0]["field"] == "name"


def test_unknown_identity_is_created_on_first_request(client):
    response = client.get("/api/auth/user", headers={"X-Auth-Subject": "new-user"})
    assert response.status_code == 200
    assert response.json()["id"] == "new-user"
    assert response.json()["global_role"] == "USER"
