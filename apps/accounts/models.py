"""
Account Models - storefront customers and administrators
Tables: users
"""
from django.contrib.auth.hashers import make_password, check_password
from django.db import models

from apps.core.models import BaseModel, Status


class Role(models.TextChoices):
    USER = 'USER', 'Customer'
    ADMIN = 'ADMIN', 'Administrator'


class User(BaseModel):
    """
    Storefront account. Authenticated with a bearer token, not a Django session.
    """
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255)
    password_hash = models.CharField(max_length=255)
    phone = models.CharField(max_length=30, blank=True, null=True)
    avatar = models.URLField(max_length=500, blank=True, null=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return f"{self.full_name} ({self.email})"

    # DRF permission checks look for these
    is_authenticated = True
    is_anonymous = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    def set_password(self, raw_password: str):
        self.password_hash = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password_hash)
