import json

import pytest
from django.contrib.auth import get_user_model

from picce_app.protocols.models import Protocol

User = get_user_model()
TEST_PASSWORD = "test-pass-123"


@pytest.mark.django_db
class TestJWTEnforcement:
    def setup_data(self):
        owner = User.objects.create_user(username="owner2", password=TEST_PASSWORD, role=User.Role.PUBLISHER)
        protocol = Protocol.objects.create(
            title="Jwt P", creator=owner, visibility="PUBLIC", applicability="PUBLIC", answers_visibility="PUBLIC"
        )
        return owner, protocol

    def test_missing_token_behaviour(self, client):
        _, protocol = self.setup_data()

        resp = client.get("/api/protocols/")
        assert resp.status_code in (401, 403)

        resp = client.get(f"/api/protocols/{protocol.id}/")
        assert resp.status_code in (401, 403)

        resp = client.post("/api/protocols/", data=json.dumps({"title": "New"}), content_type="application/json")
        assert resp.status_code in (401, 403)

        resp = client.put(
            f"/api/protocols/{protocol.id}/",
            data=json.dumps({"title": "update"}),
            content_type="application/json",
        )
        assert resp.status_code in (401, 403)

    def test_invalid_token_returns_401(self, client):
        _, protocol = self.setup_data()
        invalid_hdrs = {"HTTP_AUTHORIZATION": "Bearer invalid.token.here"}

        resp = client.get("/api/protocols/", **invalid_hdrs)
        assert resp.status_code == 401
        assert "message" in resp.json()

        resp = client.get(f"/api/protocols/{protocol.id}/", **invalid_hdrs)
        assert resp.status_code == 401

    def test_refresh_flow(self, client):
        User.objects.create_user(username="jwtuser", password=TEST_PASSWORD)

        obtain = client.post(
            "/api/token",
            data=json.dumps({"username": "jwtuser", "password": TEST_PASSWORD}),
            content_type="application/json",
        )
        assert obtain.status_code == 200
        tokens = obtain.json()
        assert "access" in tokens and "refresh" in tokens

        hdrs = {"HTTP_AUTHORIZATION": f"Bearer {tokens['access']}"}
        resp = client.get("/api/protocols/", **hdrs)
        assert resp.status_code == 200

        refresh = client.post(
            "/api/token/refresh",
            data=json.dumps({"refresh": tokens["refresh"]}),
            content_type="application/json",
        )
        assert refresh.status_code == 200
        hdrs2 = {"HTTP_AUTHORIZATION": f"Bearer {refresh.json()['access']}"}
        assert client.get("/api/protocols/", **hdrs2).status_code == 200

    def test_token_wrong_credentials_returns_401(self, client):
        User.objects.create_user(username="baduser", password=TEST_PASSWORD)
        resp = client.post(
            "/api/token",
            data=json.dumps({"username": "baduser", "password": "wrong-password"}),
            content_type="application/json",
        )
        assert resp.status_code == 401

    def test_healthcheck_is_public(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
