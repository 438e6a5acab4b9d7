"""Tests for identity tokens, user mirroring, and login."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from internarea.auth.models import User
from internarea.auth.service import AuthServiceError, auth_service, is_email, is_phone
from internarea.config import settings


class TestIdentifiers:
    """Test email and phone identifier detection."""

    @pytest.mark.parametrize("value", ["a@b.co", "first.last@example.com"])
    def test_emails(self, value):
        assert is_email(value)
        assert not is_phone(value)

    @pytest.mark.parametrize("value", ["+919876543210", "9876543210", "14155552671"])
    def test_phones(self, value):
        assert is_phone(value)
        assert not is_email(value)

    @pytest.mark.parametrize("value", ["not-an-id", "12345", "+0123456789", "a@b", "a b@c.de"])
    def test_neither(self, value):
        assert not is_email(value)
        assert not is_phone(value)


class TestIdentityTokens:
    """Test token creation and verification."""

    def test_round_trip_claims(self):
        token, expire = auth_service.create_id_token(
            uid="abc", email="a@example.com", name="A", phone_number="+919876543210"
        )
        claims = auth_service.verify_id_token(token)

        assert claims.uid == "abc"
        assert claims.email == "a@example.com"
        assert claims.phone_number == "+919876543210"
        assert expire > datetime.utcnow()

    def test_expired_token(self):
        token, _ = auth_service.create_id_token(uid="abc", expires_delta=timedelta(seconds=-5))
        assert auth_service.verify_id_token(token) is None

    def test_wrong_secret(self, monkeypatch):
        token, _ = auth_service.create_id_token(uid="abc")
        monkeypatch.setattr(settings.auth, "id_token_secret", "another-secret")
        assert auth_service.verify_id_token(token) is None

    def test_issuer_is_checked_when_configured(self, monkeypatch):
        token, _ = auth_service.create_id_token(uid="abc")
        monkeypatch.setattr(settings.auth, "id_token_issuer", "https://id.example.com")
        assert auth_service.verify_id_token(token) is None

        signed, _ = auth_service.create_id_token(uid="abc")
        assert auth_service.verify_id_token(signed).uid == "abc"

    def test_garbage(self):
        assert auth_service.verify_id_token("garbage") is None


class TestMe:
    """Test GET /api/auth/me and user mirroring."""

    def test_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_upserts_new_user(self, client, db_session):
        token, _ = auth_service.create_id_token(uid="fresh", email="Fresh@Example.com", name="Fresh")

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        data = response.json()
        assert data["external_uid"] == "fresh"
        assert data["email"] == "fresh@example.com"
        assert data["friends_count"] == 0
        assert data["has_password"] is False

    def test_repeat_requests_do_not_duplicate(self, client, db_session):
        token, _ = auth_service.create_id_token(uid="repeat", email="r@example.com", name="R")
        headers = {"Authorization": f"Bearer {token}"}

        first = client.get("/api/auth/me", headers=headers).json()
        second = client.get("/api/auth/me", headers=headers).json()

        assert first["id"] == second["id"]
        db_session.expire_all()
        assert db_session.query(User).filter(User.external_uid == "repeat").count() == 1

    def test_profile_refreshed_but_friends_kept(self, client, create_user):
        create_user(external_uid="known", email="old@example.com", name="Old", friends_count=4)
        token, _ = auth_service.create_id_token(uid="known", email="new@example.com", name="New")

        data = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()

        assert data["email"] == "new@example.com"
        assert data["name"] == "New"
        assert data["friends_count"] == 4

    def test_name_defaults_to_email(self, client):
        token, _ = auth_service.create_id_token(uid="nameless", email="x@example.com")
        data = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert data["name"] == "x@example.com"

    def test_deactivated_user(self, client, create_user, auth_headers):
        user = create_user(is_active=False)
        response = client.get("/api/auth/me", headers=auth_headers(user))
        assert response.status_code == 403
        assert response.json()["detail"] == "Account is deactivated"


class TestLogin:
    """Test POST /api/auth/login."""

    def test_login_with_email(self, client, create_user):
        create_user(email="login@example.com", password="SecretPass")

        response = client.post(
            "/api/auth/login",
            json={"identifier": "LOGIN@example.com", "password": "SecretPass"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "login@example.com"
        assert data["token"]["token_type"] == "bearer"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']['access_token']}"})
        assert me.status_code == 200

    def test_login_with_phone(self, client, create_user):
        create_user(phone_number="+919876543210", password="PhonePass")

        response = client.post(
            "/api/auth/login",
            json={"identifier": "+919876543210", "password": "PhonePass"},
        )
        assert response.status_code == 200

    def test_wrong_password(self, client, create_user):
        create_user(email="login@example.com", password="SecretPass")

        response = client.post(
            "/api/auth/login",
            json={"identifier": "login@example.com", "password": "WrongPass"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email/phone or password"

    def test_user_without_password(self, client, create_user):
        create_user(email="nopass@example.com")

        response = client.post(
            "/api/auth/login",
            json={"identifier": "nopass@example.com", "password": "anything"},
        )
        assert response.status_code == 401


class TestResetWindow:
    """Test the once-per-UTC-day reset rule."""

    def test_never_reset(self):
        assert auth_service.can_reset_password(User(last_password_reset_at=None))

    def test_same_day(self):
        user = User(last_password_reset_at=datetime(2026, 2, 1, 0, 5))
        assert not auth_service.can_reset_password(user, now=datetime(2026, 2, 1, 23, 55))

    def test_next_day(self):
        user = User(last_password_reset_at=datetime(2026, 2, 1, 23, 55))
        assert auth_service.can_reset_password(user, now=datetime(2026, 2, 2, 0, 5))


class TestClaimPasswordReset:
    """Test the conditional reset write."""

    NOW = datetime(2026, 2, 1, 10, 0)

    def test_second_claim_same_day_is_refused(self, db_session, create_user):
        user = create_user()

        auth_service.claim_password_reset(user, "FirstPass", db_session, now=self.NOW)

        with pytest.raises(AuthServiceError):
            auth_service.claim_password_reset(user, "SecondPass", db_session, now=self.NOW + timedelta(hours=13))

        db_session.expire_all()
        assert auth_service.verify_password("FirstPass", user.hashed_password)

    def test_stale_object_cannot_bypass_daily_rule(self, db_session, create_user):
        """A caller holding a pre-reset copy of the user is still refused."""
        user = create_user()
        stale = SimpleNamespace(id=user.id, hashed_password=None, last_password_reset_at=None)

        auth_service.claim_password_reset(user, "FirstPass", db_session, now=self.NOW)

        with pytest.raises(AuthServiceError):
            auth_service.claim_password_reset(stale, "SecondPass", db_session, now=self.NOW)

    def test_claim_allowed_next_day(self, db_session, create_user):
        user = create_user()
        auth_service.claim_password_reset(user, "FirstPass", db_session, now=self.NOW)

        claim = auth_service.claim_password_reset(user, "NextDayPass", db_session, now=self.NOW + timedelta(days=1))

        assert claim.previous_reset_at == self.NOW

    def test_revert_restores_previous_state(self, db_session, create_user):
        user = create_user(password="OldPassword")
        claim = auth_service.claim_password_reset(user, "NewPassword", db_session, now=self.NOW)

        assert auth_service.revert_password_reset(claim, db_session) is True

        db_session.expire_all()
        assert auth_service.verify_password("OldPassword", user.hashed_password)
        assert user.last_password_reset_at is None

    def test_revert_skips_when_hash_changed(self, db_session, create_user):
        user = create_user()
        claim = auth_service.claim_password_reset(user, "NewPassword", db_session, now=self.NOW)
        user.hashed_password = auth_service.hash_password("SetByAdmin")
        db_session.commit()

        assert auth_service.revert_password_reset(claim, db_session) is False

        db_session.expire_all()
        assert auth_service.verify_password("SetByAdmin", user.hashed_password)
