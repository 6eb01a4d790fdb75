"""
Authentication tests.

Verifies:
- Login by username or email, with login history
- Deactivated accounts are refused
- Tokens are revoked on logout, idle timeout and deactivation
- Role checks return 403
"""

from datetime import timedelta

import pytest

from sundus.extensions import db
from sundus.models import LoginHistory, SessionToken
from sundus.services import auth_service, session_service
from sundus.services.auth_service import PasswordValidationError
from sundus.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token


class TestPasswords:

    @pytest.mark.parametrize("password", ["Short1!", "alllower123!", "ALLUPPER123!", "NoDigits!!", "NoSpecial123"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_hash_roundtrip(self, app):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Wrong123!", hashed)

    def test_malformed_hash(self):
        assert auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash") is False


class TestLogin:

    def test_login_with_username(self, client, admin_user):
        resp = client.post("/api/v1/auth/login", json={"username": "admin", "password": PASSWORD})
        assert resp.status_code == 200
        data = resp.json["data"]
        assert len(data["token"]) == 64
        assert data["user"]["role"] == "admin"
        assert "password_hash" not in data["user"]

        history = db.session.query(LoginHistory).one()
        assert history.status == "success"

    def test_login_with_email(self, client, admin_user):
        assert get_auth_token(client, "admin@sundus.test") is not None

    def test_token_is_stored_hashed(self, client, admin_user):
        token = get_auth_token(client, "admin")
        stored = db.session.query(SessionToken).one()
        assert stored.token_hash == session_service.hash_token(token)
        assert stored.token_hash != token

    def test_wrong_password_is_recorded(self, client, admin_user):
        resp = client.post("/api/v1/auth/login", json={"username": "admin", "password": "Wrong123!"})
        assert resp.status_code == 401
        assert db.session.query(LoginHistory).one().status == "failed"

    def test_unknown_user(self, client):
        resp = client.post("/api/v1/auth/login", json={"username": "ghost", "password": PASSWORD})
        assert resp.status_code == 401
        assert db.session.query(LoginHistory).count() == 0

    def test_missing_fields(self, client):
        assert client.post("/api/v1/auth/login", json={"username": "admin"}).status_code == 400

    def test_inactive_user(self, client, admin_user):
        admin_user.is_active = False
        db.session.commit()
        resp = client.post("/api/v1/auth/login", json={"username": "admin", "password": PASSWORD})
        assert resp.status_code == 403


class TestSessions:

    def test_me(self, client, admin_headers):
        resp = client.get("/api/v1/auth/me", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["username"] == "admin"

    def test_missing_and_garbage_tokens(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401
        assert client.get("/api/v1/auth/me", headers=auth_headers("garbage")).status_code == 401
        assert client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"}).status_code == 401

    def test_logout_revokes(self, client, admin_headers):
        assert client.post("/api/v1/auth/logout", headers=admin_headers).status_code == 200
        assert client.get("/api/v1/auth/me", headers=admin_headers).status_code == 401

    def test_idle_timeout(self, client, admin_headers):
        stored = db.session.query(SessionToken).one()
        stored.last_used_at = utcnow() - timedelta(hours=3)
        db.session.commit()

        assert client.get("/api/v1/auth/me", headers=admin_headers).status_code == 401
        db.session.refresh(stored)
        assert stored.is_revoked
        assert stored.revoked_reason == "Idle timeout"

    def test_absolute_timeout(self, client, admin_headers):
        stored = db.session.query(SessionToken).one()
        stored.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()
        assert client.get("/api/v1/auth/me", headers=admin_headers).status_code == 401

    def test_deactivated_user_loses_session(self, client, admin_user, admin_headers):
        admin_user.is_active = False
        db.session.commit()
        assert client.get("/api/v1/auth/me", headers=admin_headers).status_code == 401


class TestRoles:

    def test_cashier_cannot_manage_users(self, client, cashier_headers):
        assert client.get("/api/v1/users", headers=cashier_headers).status_code == 403

    def test_cashier_cannot_read_reports(self, client, cashier_headers):
        assert client.get("/api/v1/reports/sales", headers=cashier_headers).status_code == 403

    def test_only_admin_can_clear_data(self, client, cashier_headers, admin_headers):
        assert client.post("/api/v1/data/clear-all", headers=cashier_headers).status_code == 403
        resp = client.post("/api/v1/data/clear-all", headers=admin_headers)
        assert resp.status_code == 200
