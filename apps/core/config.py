"""
Explicit runtime configuration for the storefront services.

A single ``StoreConfig`` is built from Django settings when the core app is
ready and handed to each service by parameter. Services never reach into
``django.conf.settings`` on their own.
"""
from dataclasses import dataclass, replace
from typing import Tuple

from django.apps import apps as django_apps

DEFAULT_IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


@dataclass(frozen=True)
class StoreConfig:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    image_backend: str = "apps.catalog.images.CloudinaryImageStore"
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    image_folder: str = "gazel"
    image_max_size_mb: int = 5
    image_mime_types: Tuple[str, ...] = DEFAULT_IMAGE_MIME_TYPES

    password_min_length: int = 6
    guest_payment_method: str = "CASH_ON_DELIVERY"
    guest_shipping_method: str = "STANDARD"
    guest_placeholder: str = "N/A"

    @property
    def image_max_bytes(self) -> int:
        return self.image_max_size_mb * 1024 * 1024

    @property
    def image_store_configured(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)

    @classmethod
    def from_settings(cls, settings) -> "StoreConfig":
        image = getattr(settings, "IMAGE_STORE", {})
        rules = getattr(settings, "STOREFRONT", {})
        return cls(
            jwt_secret=getattr(settings, "JWT_SECRET", settings.SECRET_KEY),
            jwt_algorithm=getattr(settings, "JWT_ALGORITHM", "HS256"),
            jwt_expire_minutes=getattr(settings, "JWT_EXPIRE_MINUTES", 60 * 24),
            image_backend=image.get("BACKEND", cls.image_backend),
            cloudinary_cloud_name=image.get("CLOUD_NAME", ""),
            cloudinary_api_key=image.get("API_KEY", ""),
            cloudinary_api_secret=image.get("API_SECRET", ""),
            image_folder=image.get("FOLDER", "gazel"),
            image_max_size_mb=image.get("MAX_SIZE_MB", 5),
            image_mime_types=tuple(image.get("ALLOWED_MIME_TYPES", DEFAULT_IMAGE_MIME_TYPES)),
            password_min_length=rules.get("PASSWORD_MIN_LENGTH", 6),
            guest_payment_method=rules.get("GUEST_PAYMENT_METHOD", "CASH_ON_DELIVERY"),
            guest_shipping_method=rules.get("GUEST_SHIPPING_METHOD", "STANDARD"),
            guest_placeholder=rules.get("GUEST_PLACEHOLDER", "N/A"),
        )

    def with_overrides(self, **changes) -> "StoreConfig":
        return replace(self, **changes)


def get_store_config() -> StoreConfig:
    """Return the configuration built at start-up."""
    return django_apps.get_app_config("core").store_config
