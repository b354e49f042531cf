from .models import Material, MaterialFields, User, UserFields, Principal, Session, DashboardSummary, SupplierTotals
from .roles import Role
from .errors import (
    AppError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    UnavailableError,
)

__all__ = [
    "Material",
    "MaterialFields",
    "User",
    "UserFields",
    "Principal",
    "Session",
    "DashboardSummary",
    "SupplierTotals",
    "Role",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "UnavailableError",
]
