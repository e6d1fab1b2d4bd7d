"""Stable machine-readable message keys returned in every API envelope."""

# Common
ERROR = "error"
INTERNAL_ERROR = "error.internal"
UNKNOWN_ERROR = "error.unknown"
NOT_FOUND = "error.not_found"
FORBIDDEN = "error.forbidden"
UNAUTHORIZED = "error.unauthorized"
BAD_REQUEST = "error.bad_request"
CONFLICT = "error.conflict"
VALIDATION_ERROR = "error.validation"
SUCCESS = "success"
FETCH_SUCCESS = "success.fetch"

# Health
HEALTH_OK = "health.ok"
SERVICE_INFO = "health.service_info"

# Auth
LOGIN_SUCCESS = "auth.login.success"
INVALID_CREDENTIALS = "auth.login.invalid_credentials"
ACCOUNT_INACTIVE = "auth.login.account_inactive"
REGISTER_SUCCESS = "auth.register.success"
EMAIL_ALREADY_EXISTS = "auth.register.email_already_exists"
LOGOUT_SUCCESS = "auth.logout.success"
TOKEN_REFRESH_SUCCESS = "auth.token.refresh_success"
TOKEN_REFRESH_FAILURE = "auth.token.refresh_failure"
TOKEN_MISSING = "auth.token.missing"
TOKEN_INVALID = "auth.token.invalid"
ACCESS_DENIED = "auth.token.access_denied"
PASSWORD_REQUIRED = "auth.user.password_required"
PASSWORD_NOT_SET = "auth.user.password_not_set"
PROFILE_FETCHED = "auth.profile.fetched"
INSUFFICIENT_ROLE = "auth.role.insufficient"

# Users
USER_NOT_FOUND = "user.not_found"
USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"
USER_FETCH_SUCCESS = "user.fetch.success"
USER_FETCH_ALL_SUCCESS = "user.fetch.all.success"
USER_EMAIL_ALREADY_EXISTS = "user.email.already_exists"
USER_ROLE_FORBIDDEN = "user.role.forbidden"
USER_ACCESS_FORBIDDEN = "user.access.forbidden"
SUPER_ADMIN_PROTECTED = "user.super_admin.protected"
USER_HAS_ORDERS = "user.delete.has_orders"

# Products / inventory
PRODUCT_NOT_FOUND = "products.not_found"
PRODUCT_CREATED = "products.created"
PRODUCT_FETCH_SUCCESS = "products.fetch.success"
PRODUCT_RESTOCKED = "products.restocked"
PRODUCT_SLUG_EXISTS = "products.slug.already_exists"
INVENTORY_INSUFFICIENT = "products.inventory.insufficient"
INVENTORY_OVERFLOW = "products.inventory.exceeds_total"

# Orders
ORDER_NOT_FOUND = "orders.not_found"
ORDER_CREATED = "orders.created"
ORDER_FETCH_SUCCESS = "orders.fetch.success"
ORDER_FETCH_ALL_SUCCESS = "orders.fetch.all.success"
ORDER_STATUS_UPDATED = "orders.status.updated"
ORDER_CANCELLED = "orders.status.cancelled"
ORDER_PAYMENT_UPDATED = "orders.payment.updated"
INVALID_ORDER_STATUS = "orders.invalid_status"
INVALID_RENTAL_DATES = "orders.dates.invalid"
START_DATE_IN_PAST = "orders.dates.start_in_past"
PRODUCT_NOT_AVAILABLE = "orders.product_not_available"
ORDER_ITEMS_INVALID = "orders.items.invalid"
