class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class AuthenticationError(AppError):
    """No session, expired session or bad credentials."""


class AuthorizationError(AppError):
    """Authenticated, but the role does not allow the action."""


class UnavailableError(AppError):
    """Persistence is busy or unreachable; the caller may retry."""
