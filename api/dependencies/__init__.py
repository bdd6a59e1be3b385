"""FastAPI dependencies."""
from api.dependencies.auth import (
    get_current_user,
    get_optional_user,
    require_admin,
    require_role,
    require_staff,
)

__all__ = [
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "require_role",
    "require_staff",
]
