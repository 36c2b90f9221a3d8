"""
Authentication service: registration, login, token handling and profile edits.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from django.db import IntegrityError
from jose import JWTError, jwt

from apps.core.config import StoreConfig
from apps.core.exceptions import (
    AuthorizationException,
    ConflictException,
    ValidationException,
)
from .models import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class Registration:
    email: str
    password: str
    full_name: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class ProfileUpdate:
    """Fields a user may change on their own profile. ``None`` means untouched."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    user: User
    access_token: str


class AuthService:
    """
    Credential verification, token issuance and profile mutation.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user: User) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.config.jwt_expire_minutes)
        claims = {
            "sub": str(user.pk),
            "email": user.email,
            "role": user.role,
            "exp": expire,
        }
        return jwt.encode(claims, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def resolve_token(self, token: str) -> User:
        """
        Decode a bearer token and return the active user it names.
        """
        try:
            claims = jwt.decode(token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm])
        except JWTError:
            raise AuthorizationException("Invalid or expired token")

        user_id = claims.get("sub")
        if not user_id:
            raise AuthorizationException("Invalid or expired token")

        user = User.objects.filter(pk=user_id).first()
        if user is None or not user.is_active:
            raise AuthorizationException("User not found")
        return user

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, registration: Registration) -> AuthResult:
        email = registration.email.strip().lower()

        if User.objects.filter(email=email).exists():
            raise ConflictException("Email is already registered")

        self._check_password_rule(registration.password, field="password")

        user = User(
            email=email,
            full_name=registration.full_name,
            phone=registration.phone,
        )
        user.set_password(registration.password)
        try:
            user.save()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            raise ConflictException("Email is already registered")

        logger.info(f"Registered user {user.pk} ({email})")
        return AuthResult(user=user, access_token=self.issue_token(user))

    def login(self, email: str, password: str) -> AuthResult:
        """
        Missing user, inactive user and wrong password all raise the same error.
        """
        user = User.objects.filter(email=email.strip().lower()).first()

        if user is None:
            # Hash anyway so an unknown email costs the same as a wrong password
            User().set_password(password)
        if user is None or not user.check_password(password) or not user.is_active:
            logger.info("Rejected login attempt")
            raise AuthorizationException(INVALID_CREDENTIALS)

        return AuthResult(user=user, access_token=self.issue_token(user))

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_profile(self, user: User, update: ProfileUpdate) -> User:
        changed = []
        if update.full_name:
            user.full_name = update.full_name
            changed.append("full_name")
        if update.phone is not None:
            user.phone = update.phone
            changed.append("phone")
        if update.avatar is not None:
            user.avatar = update.avatar
            changed.append("avatar")

        if changed:
            user.save(update_fields=changed + ["updated_at"])
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.check_password(current_password):
            raise ValidationException("Current password is incorrect", field="currentPassword")

        self._check_password_rule(new_password, field="newPassword")

        user.set_password(new_password)
        user.save(update_fields=["password_hash", "updated_at"])
        logger.info(f"Password changed for user {user.pk}")

    def _check_password_rule(self, password: str, field: str) -> None:
        minimum = self.config.password_min_length
        if len(password or "") < minimum:
            raise ValidationException(
                f"Password must be at least {minimum} characters long",
                field=field,
            )
