from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import current_app, g, redirect, session, url_for

from invtrack.application.container import AppContainer
from invtrack.domain import policy
from invtrack.domain.errors import AuthenticationError, AuthorizationError
from invtrack.domain.models import Principal

SESSION_KEY = "sid"
EXTENSION_KEY = "invtrack"


def container() -> AppContainer:
    return current_app.extensions[EXTENSION_KEY]


def current_principal() -> Optional[Principal]:
    if "principal" not in g:
        principal = container().auth.resolve(session.get(SESSION_KEY))
        if principal is None and SESSION_KEY in session:
            # expired or revoked; drop the stale token
            session.pop(SESSION_KEY, None)
        g.principal = principal
    return g.principal


def require_principal() -> Principal:
    principal = current_principal()
    if principal is None:
        raise AuthenticationError("Not authenticated.")
    return principal


def login_required(f):
    """Page routes: anonymous visitors are sent to the login page."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        if current_principal() is None:
            return redirect(url_for("pages.login"))
        return f(*args, **kwargs)

    return wrapper


def api_login_required(f):
    """API routes: anonymous callers get 401 JSON."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        require_principal()
        return f(*args, **kwargs)

    return wrapper


def elevated_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        principal = current_principal()
        if principal is None:
            return redirect(url_for("pages.login"))
        if not policy.has_elevated_access(principal):
            raise AuthorizationError("You do not have permission to access this page.")
        return f(*args, **kwargs)

    return wrapper
