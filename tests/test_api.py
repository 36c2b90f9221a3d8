import pytest

from api.exceptions import custom_exception_handler
from apps.core.config import StoreConfig
from apps.core.exceptions import InsufficientStockException

pytestmark = pytest.mark.django_db


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.data["database"] == "healthy"
    assert response.data["image_store"] == "not configured"


def test_storefront_exception_envelope():
    response = custom_exception_handler(InsufficientStockException("Anillo", 3, 5), {})

    assert response.status_code == 400
    assert response.data == {
        "error": True,
        "message": "Insufficient stock for Anillo. Available: 3, requested: 5",
        "code": "VALIDATION_ERROR",
        "details": {"field": "items"},
        "status_code": 400,
    }


def test_unexpected_exception_hides_internals():
    response = custom_exception_handler(RuntimeError("db password is hunter2"), {})

    assert response.status_code == 500
    assert "hunter2" not in str(response.data)
    assert response.data["code"] == "INTERNAL_ERROR"


def test_config_from_settings(settings):
    settings.IMAGE_STORE = {**settings.IMAGE_STORE, "MAX_SIZE_MB": 2, "CLOUD_NAME": "demo"}
    settings.STOREFRONT = {**settings.STOREFRONT, "PASSWORD_MIN_LENGTH": 10}

    config = StoreConfig.from_settings(settings)

    assert config.image_max_bytes == 2 * 1024 * 1024
    assert config.password_min_length == 10
    assert config.cloudinary_cloud_name == "demo"
    assert config.image_store_configured is False
