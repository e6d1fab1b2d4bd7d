"""Role hierarchy: single lookup table plus numeric comparison."""

from enum import Enum


class Role(str, Enum):
    USER = "user"
    MOD = "mod"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


# Single source of truth for authorization gating and visibility filtering.
ROLE_LEVELS: dict[Role, int] = {
    Role.USER: 1,
    Role.MOD: 2,
    Role.ADMIN: 3,
    Role.SUPER_ADMIN: 4,
}


def role_level(role: Role | str) -> int:
    """Numeric level of a role; unknown roles rank below every real role (0)."""
    try:
        return ROLE_LEVELS[Role(role)]
    except ValueError:
        return 0


def has_at_least(role: Role | str, required: Role | str) -> bool:
    """True if role is at or above required in the hierarchy."""
    return role_level(role) >= role_level(required) > 0
