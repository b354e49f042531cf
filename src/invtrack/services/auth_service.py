from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Optional

from invtrack.domain.errors import AuthenticationError, ValidationError
from invtrack.domain.models import Principal, Session
from invtrack.services.session_store import SessionStore

audit = logging.getLogger("invtrack.audit")

INVALID_CREDENTIALS = "Invalid username or password."


@dataclass(frozen=True)
class PasswordPolicy:
    min_length: int = 8


def validate_password_strength(secret: str, policy: PasswordPolicy | None = None) -> None:
    policy = policy or PasswordPolicy()
    if len(secret) < policy.min_length:
        raise ValidationError(f"Password must have at least {policy.min_length} characters.")
    if not re.search(r"[^\W\d_]", secret):
        raise ValidationError("Password must include at least one letter.")
    if not re.search(r"\d", secret):
        raise ValidationError("Password must include at least one number.")


class AuthService:
    def __init__(self, repo, sessions: SessionStore, policy: PasswordPolicy | None = None):
        self.repo = repo
        self.sessions = sessions
        self.policy = policy or PasswordPolicy()

    def login(self, username: str, password: str) -> Session:
        username_clean = (username or "").strip()
        # unknown user and wrong password must be indistinguishable
        if not username_clean or not password:
            audit.info("login_failed username=%r reason=missing_fields", username_clean)
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = self.repo.authenticate_user(username_clean, password)
        if not user:
            audit.info("login_failed username=%r", username_clean)
            raise AuthenticationError(INVALID_CREDENTIALS)

        self.sessions.purge_expired()
        session = self.sessions.issue(Principal.from_user(user))
        audit.info("login_ok user_id=%s username=%s role=%s", user.id, user.username, user.role.value)
        return session

    def resolve(self, token: Optional[str]) -> Optional[Principal]:
        session = self.sessions.get(token)
        return session.principal if session else None

    def require_principal(self, token: Optional[str]) -> Principal:
        principal = self.resolve(token)
        if principal is None:
            raise AuthenticationError("Not authenticated.")
        return principal

    def logout(self, token: Optional[str]) -> None:
        session = self.sessions.get(token)
        if self.sessions.revoke(token) and session is not None:
            audit.info("logout user_id=%s username=%s", session.principal.id, session.principal.username)

    def change_password(
        self,
        actor: Principal,
        current_password: str,
        new_password: str,
        confirm_password: str,
        current_token: Optional[str] = None,
    ) -> None:
        """Self-service password change. Every other session of the user is signed out."""
        current_secret = current_password or ""
        new_secret = new_password or ""

        if not current_secret:
            raise ValidationError("Current password is required.")
        validate_password_strength(new_secret, self.policy)
        if new_secret != (confirm_password or ""):
            raise ValidationError("Password confirmation does not match.")
        if new_secret == current_secret:
            raise ValidationError("New password must be different from the current password.")

        if not self.repo.verify_user_password(actor.id, current_secret):
            raise ValidationError("Current password is incorrect.")
        self.repo.set_user_password(actor.id, new_secret)
        revoked = self.sessions.revoke_user(actor.id, keep=current_token)
        audit.info("password_changed user_id=%s sessions_revoked=%s", actor.id, revoked)
