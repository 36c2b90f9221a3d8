import pytest

from apps.accounts.models import Role, User
from apps.accounts.services import AuthService
from apps.core.exceptions import AuthorizationException
from apps.core.models import Status
from tests.conftest import make_user

pytestmark = pytest.mark.django_db


def register(client, **overrides):
    payload = {
        "full_name": "Ana Mora",
        "email": "ana@example.com",
        "password": "secret123",
        "phone": "8888-0000",
    }
    payload.update(overrides)
    return client.post("/auth/register", payload, format="json")


class TestRegister:

    def test_returns_user_and_token(self, api_client, config):
        response = register(api_client)

        assert response.status_code == 201
        assert response.data["email"] == "ana@example.com"
        assert response.data["role"] == Role.USER

        user = AuthService(config).resolve_token(response.data["access_token"])
        assert user.pk == response.data["id_user"]

    def test_password_is_stored_hashed(self, api_client):
        register(api_client)

        user = User.objects.get(email="ana@example.com")
        assert user.password_hash != "secret123"
        assert user.check_password("secret123")

    def test_duplicate_email_conflicts(self, api_client):
        register(api_client)

        response = register(api_client, email="ANA@example.com")

        assert response.status_code == 409
        assert response.data["code"] == "CONFLICT"

    def test_short_password(self, api_client):
        response = register(api_client, password="123")

        assert response.status_code == 400
        assert not User.objects.exists()

    def test_role_cannot_be_self_assigned(self, api_client):
        response = register(api_client, role="ADMIN")

        assert response.status_code == 201
        assert response.data["role"] == Role.USER


class TestLogin:

    def test_valid_credentials(self, api_client, user):
        response = api_client.post("/auth/login", {"email": user.email, "password": "secret123"}, format="json")

        assert response.status_code == 200
        assert response.data["id_user"] == user.pk
        assert response.data["access_token"]

    def test_missing_user_and_wrong_password_look_identical(self, api_client, user):
        wrong_password = api_client.post(
            "/auth/login", {"email": user.email, "password": "nope-nope"}, format="json"
        )
        missing_user = api_client.post(
            "/auth/login", {"email": "ghost@example.com", "password": "nope-nope"}, format="json"
        )

        assert wrong_password.status_code == missing_user.status_code == 401
        assert wrong_password.data == missing_user.data

    def test_inactive_user_cannot_log_in(self, config):
        make_user(email="off@example.com", status=Status.INACTIVE)

        with pytest.raises(AuthorizationException) as exc:
            AuthService(config).login("off@example.com", "secret123")

        assert exc.value.message == "Invalid credentials"

    def test_unknown_email_still_hashes(self, config, monkeypatch):
        hashed = []
        monkeypatch.setattr("apps.accounts.models.make_password", lambda raw: hashed.append(raw) or "x")

        with pytest.raises(AuthorizationException):
            AuthService(config).login("ghost@example.com", "nope-nope")

        assert hashed == ["nope-nope"]


class TestTokens:

    def test_garbage_token_is_rejected(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")

        response = api_client.get("/auth/profile")

        assert response.status_code == 401

    def test_token_signed_with_other_secret(self, api_client, user, config):
        token = AuthService(config.with_overrides(jwt_secret="elsewhere")).issue_token(user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/auth/profile").status_code == 401

    def test_expired_token(self, api_client, user, config):
        token = AuthService(config.with_overrides(jwt_expire_minutes=-1)).issue_token(user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/auth/profile").status_code == 401


class TestProfile:

    def test_read(self, user_client, user):
        response = user_client.get("/auth/profile")

        assert response.status_code == 200
        assert response.data["email"] == user.email
        assert "password_hash" not in response.data

    def test_update_only_touches_profile_fields(self, user_client, user):
        response = user_client.put("/auth/profile", {
            "full_name": "Ana M.",
            "phone": "7777-1111",
            "role": "ADMIN",
            "email": "hijack@example.com",
        }, format="json")

        assert response.status_code == 200
        user.refresh_from_db()
        assert user.full_name == "Ana M."
        assert user.phone == "7777-1111"
        assert user.role == Role.USER
        assert user.email == "ana@example.com"

    def test_change_password(self, user_client, user):
        response = user_client.post("/auth/change-password", {
            "currentPassword": "secret123",
            "newPassword": "better456",
        }, format="json")

        assert response.status_code == 200
        user.refresh_from_db()
        assert user.check_password("better456")

    def test_change_password_wrong_current(self, user_client, user):
        response = user_client.post("/auth/change-password", {
            "currentPassword": "wrong",
            "newPassword": "better456",
        }, format="json")

        assert response.status_code == 400
        user.refresh_from_db()
        assert user.check_password("secret123")

    def test_change_password_too_short(self, user_client, user):
        response = user_client.post("/auth/change-password", {
            "currentPassword": "secret123",
            "newPassword": "abc",
        }, format="json")

        assert response.status_code == 400
        assert response.data["details"] == {"field": "newPassword"}
