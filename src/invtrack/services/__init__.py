from .auth_service import AuthService, PasswordPolicy
from .material_service import MaterialService
from .reporting_service import ReportingService
from .session_store import SessionStore
from .user_service import UserService

__all__ = [
    "AuthService",
    "PasswordPolicy",
    "MaterialService",
    "ReportingService",
    "SessionStore",
    "UserService",
]
