"""Typed application errors raised by services and mapped to HTTP at the API boundary."""

from app.core import message_keys


class ConfigurationError(Exception):
    """Raised when the process is misconfigured (e.g. no JWT secret) and must not start."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AppError(Exception):
    """Base for errors that carry a client-safe message and a stable message_key."""

    status_code: int = 500
    default_key: str = message_keys.INTERNAL_ERROR

    def __init__(self, message: str, message_key: str | None = None) -> None:
        self.message = message
        self.message_key = message_key or self.default_key
        super().__init__(message)


class ValidationError(AppError):
    """Bad input, invalid date logic, or an invalid state transition."""

    status_code = 400
    default_key = message_keys.VALIDATION_ERROR


class AuthError(AppError):
    """Bad credentials, missing/invalid/expired token, or session mismatch."""

    status_code = 401
    default_key = message_keys.UNAUTHORIZED


class ForbiddenError(AppError):
    """Authenticated caller lacks the role required for the action."""

    status_code = 403
    default_key = message_keys.FORBIDDEN


class NotFoundError(AppError):
    status_code = 404
    default_key = message_keys.NOT_FOUND


class ConflictError(AppError):
    """Unique field (email, slug) already taken."""

    status_code = 409
    default_key = message_keys.CONFLICT


class InvalidTransitionError(ValidationError):
    """Order status change not allowed from the current status."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid status transition from {current} to {target}",
            message_keys.INVALID_ORDER_STATUS,
        )


class InsufficientInventoryError(ValidationError):
    """Requested quantity exceeds a product's available units."""

    def __init__(self, product_id: int, requested: int, product_name: str | None = None) -> None:
        self.product_id = product_id
        self.requested = requested
        label = product_name or str(product_id)
        super().__init__(
            f"Not enough inventory for product: {label}",
            message_keys.INVENTORY_INSUFFICIENT,
        )
