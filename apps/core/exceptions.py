"""
Custom exceptions for the Gazel storefront
"""


class StorefrontException(Exception):
    """Base exception for all storefront errors"""
    status_code = 500

    def __init__(self, message: str, code: str = "STOREFRONT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationException(StorefrontException):
    """Malformed, missing or out-of-range input"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR"
        )


class InsufficientStockException(ValidationException):
    """Raised when a product cannot cover the requested quantity"""
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            message=(
                f"Insufficient stock for {product_name}. "
                f"Available: {available}, requested: {requested}"
            ),
            field="items"
        )


class AuthorizationException(StorefrontException):
    """Missing or invalid credentials, or access to a resource owned by someone else"""
    status_code = 401

    def __init__(self, message: str = "Invalid credentials", code: str = "AUTHORIZATION_ERROR"):
        super().__init__(
            message=message,
            code=code
        )


class ForbiddenException(AuthorizationException):
    """Authenticated caller lacks the required role"""
    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            code="FORBIDDEN"
        )


class NotFoundException(StorefrontException):
    """Exception raised for unknown ids"""
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND"
        )


class ConflictException(StorefrontException):
    """Exception raised when a write collides with existing state"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="CONFLICT"
        )


class UpstreamServiceException(StorefrontException):
    """Exception raised when an external collaborator (image store) fails"""
    status_code = 502

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(
            message=f"{service} error: {message}",
            code="UPSTREAM_ERROR"
        )
