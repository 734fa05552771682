"""
Tests for the admin endpoints.

Tests cover:
- POST /api/admin/login and GET /api/admin/me
- event catalog CRUD and seeded-event cleanup
- registrations listing, user profile lookup, upload signatures
"""

import re
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from vimarsh.core.container import Container
from vimarsh.main import create_app

EVENT = {
    "slug": "Rust-Meetup",
    "title": "Rust Meetup",
    "description": "Ownership, borrowing and lifetimes.",
    "date": "2024-04-01T10:00:00Z",
    "time": "10:00 AM",
    "mode": "Online",
    "location": "Discord",
    "image": "https://images.example.com/rust.png",
}


@pytest.fixture
def event(client: TestClient, admin_headers: dict) -> dict:
    return client.post("/api/admin/events", headers=admin_headers, json=EVENT).json()["data"]


class TestAdminSession:
    """Tests for admin login and token checks."""

    def test_login(self, client) -> None:
        response = client.post(
            "/api/admin/login",
            json={"email": "admin@codevimarsh.dev", "password": "correct horse battery staple"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["admin"] == {"email": "admin@codevimarsh.dev", "role": "admin", "name": "Site Admin"}

    def test_login_wrong_password(self, client) -> None:
        response = client.post(
            "/api/admin/login",
            json={"email": "admin@codevimarsh.dev", "password": "guess"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_login_missing_fields(self, client) -> None:
        response = client.post("/api/admin/login", json={"email": "admin@codevimarsh.dev"})
        assert response.status_code == 400

    def test_me(self, client, admin_headers) -> None:
        response = client.get("/api/admin/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["admin"]["role"] == "admin"

    def test_me_without_token(self, client) -> None:
        assert client.get("/api/admin/me").status_code == 401

    def test_member_session_token_forbidden(self, client, test_container) -> None:
        """Test a valid member session token is a 403 on admin routes."""
        signer = test_container.get_token_signer()
        token = signer.create({"sub": "u1", "type": "user", "role": "user"}, timedelta(minutes=5))

        response = client.get("/api/admin/events", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403

    def test_supabase_token_unauthorized(self, client, member_headers) -> None:
        response = client.get("/api/admin/events", headers=member_headers)
        assert response.status_code == 401


class TestAdminEvents:
    """Tests for the admin event catalog endpoints."""

    def test_create_event(self, client, admin_headers) -> None:
        response = client.post("/api/admin/events", headers=admin_headers, json=EVENT)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["slug"] == "rust-meetup"
        assert data["registeredCount"] == 0

    def test_create_duplicate_slug(self, client, admin_headers, event) -> None:
        response = client.post("/api/admin/events", headers=admin_headers, json=EVENT)

        assert response.status_code == 409
        assert response.json()["message"] == "Event slug already exists"

    def test_create_invalid(self, client, admin_headers) -> None:
        response = client.post(
            "/api/admin/events",
            headers=admin_headers,
            json={**EVENT, "mode": "Telepathic"},
        )

        assert response.status_code == 400
        assert "mode" in response.json()["errors"]

    def test_list_events(self, client, admin_headers, event) -> None:
        data = client.get("/api/admin/events", headers=admin_headers).json()["data"]
        assert [e["id"] for e in data] == [event["id"]]

    def test_update_event(self, client, admin_headers, event) -> None:
        response = client.put(
            f"/api/admin/events/{event['id']}",
            headers=admin_headers,
            json={"title": "Rust Meetup #2", "registeredCount": 500},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Rust Meetup #2"
        assert data["location"] == "Discord"
        assert data["registeredCount"] == 0

    def test_update_unknown_event(self, client, admin_headers) -> None:
        response = client.put("/api/admin/events/missing", headers=admin_headers, json={"title": "X"})
        assert response.status_code == 404

    def test_delete_event_cascades(self, client, admin_headers, member_headers, event, repositories) -> None:
        client.post(f"/api/events/{event['id']}/register", headers=member_headers)

        response = client.delete(f"/api/admin/events/{event['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get("/api/events").json()["data"] == []
        assert repositories.registrations.registration_count == 0

    def test_delete_seeded_events(self, test_settings, repositories) -> None:
        """Test only the default catalog is removed."""
        settings = test_settings.model_copy(
            update={"events": test_settings.events.model_copy(update={"seed_default_events": True})}
        )
        container = Container(settings=settings, repositories=repositories)
        token, _ = container.get_admin_authenticator().login(
            "admin@codevimarsh.dev", "correct horse battery staple"
        )
        admin_headers = {"Authorization": f"Bearer {token}"}

        with TestClient(create_app(container=container)) as client:
            client.post("/api/admin/events", headers=admin_headers, json=EVENT)
            response = client.delete("/api/admin/events/seeded", headers=admin_headers)
            remaining = client.get("/api/admin/events", headers=admin_headers).json()["data"]

        assert response.status_code == 200
        assert response.json()["data"] == {"deletedCount": 6}
        assert [e["slug"] for e in remaining] == ["rust-meetup"]

    def test_event_registrations(self, client, admin_headers, member_headers, event) -> None:
        client.post(f"/api/events/{event['id']}/register", headers=member_headers)

        response = client.get(f"/api/admin/events/{event['id']}/registrations", headers=admin_headers)

        assert response.status_code == 200
        rows = response.json()["data"]
        assert len(rows) == 1
        assert rows[0]["firstName"] == "Asha"
        assert rows[0]["lastName"] == "Patel"
        assert rows[0]["email"] == "asha.patel@example.com"
        assert rows[0]["registeredAt"]

    def test_registrations_unknown_event(self, client, admin_headers) -> None:
        response = client.get("/api/admin/events/missing/registrations", headers=admin_headers)
        assert response.status_code == 404


class TestAdminLookups:
    """Tests for user lookup and upload signatures."""

    def test_user_profile_lookup(self, client, admin_headers, member_headers) -> None:
        client.post("/api/auth/supabase-sync", headers=member_headers)

        response = client.get(
            "/api/admin/users/profile",
            headers=admin_headers,
            params={"email": "Asha.Patel@example.com"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "asha.patel@example.com"
        assert data["profile"] is None

    def test_user_profile_lookup_requires_email(self, client, admin_headers) -> None:
        response = client.get("/api/admin/users/profile", headers=admin_headers)
        assert response.status_code == 400

    def test_user_profile_lookup_unknown(self, client, admin_headers) -> None:
        response = client.get(
            "/api/admin/users/profile",
            headers=admin_headers,
            params={"email": "ghost@example.com"},
        )
        assert response.status_code == 404

    def test_cloudinary_signature(self, client, admin_headers) -> None:
        response = client.get("/api/admin/cloudinary/signature", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["apiKey"] == "123456"
        assert data["cloudName"] == "demo-cloud"
        assert data["folder"] == "codevimarsh"
        assert re.fullmatch(r"[0-9a-f]{40}", data["signature"])
        assert isinstance(data["timestamp"], int)

    def test_cloudinary_signature_unconfigured(self, client, admin_headers, test_container) -> None:
        test_container._settings = test_container.settings.model_copy(
            update={"cloudinary_api_secret": ""}
        )
        test_container._image_host = None

        response = client.get("/api/admin/cloudinary/signature", headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["message"] == "Cloudinary credentials are not configured on the server"
