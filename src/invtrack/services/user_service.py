from __future__ import annotations

import logging
from typing import Optional

from invtrack.domain import policy
from invtrack.domain.errors import AuthorizationError, NotFoundError, ValidationError
from invtrack.domain.models import INT_MAX, Principal, User, UserFields
from invtrack.domain.roles import Role

audit = logging.getLogger("invtrack.audit")


class UserService:
    """User CRUD. Every call passes through the role policy for ``actor``.

    The repository underneath enforces only storage rules (unique username).
    """

    def __init__(self, repo, sessions=None):
        self.repo = repo
        self.sessions = sessions

    def _require_user(self, user_id: int) -> User:
        user_id = int(user_id)
        user = self.repo.get_user(user_id) if 0 < user_id <= INT_MAX else None
        if not user:
            raise NotFoundError("User not found.")
        return user

    @staticmethod
    def _clean(fields: UserFields) -> tuple[str, str, Optional[str]]:
        username = (fields.username or "").strip()
        if not username:
            raise ValidationError("Username is required.")
        full_name = (fields.full_name or "").strip()
        phone = (fields.phone or "").strip() or None
        return username, full_name, phone

    @staticmethod
    def _require_assignable(actor: Principal, role: Role) -> None:
        if role not in policy.available_roles(actor):
            raise AuthorizationError(f"Role '{actor.role.value}' cannot assign role '{role.value}'.")

    def list_users(self, actor: Principal) -> list[User]:
        if not policy.has_elevated_access(actor):
            raise AuthorizationError("Only managers and admins can list users.")
        return self.repo.list_users()

    def get_user(self, actor: Principal, user_id: int) -> User:
        if actor.id != int(user_id) and not policy.has_elevated_access(actor):
            raise AuthorizationError("You can only view your own account.")
        return self._require_user(user_id)

    def available_roles(self, actor: Principal) -> list[Role]:
        return sorted(policy.available_roles(actor), key=lambda r: r.rank)

    def create_user(self, actor: Principal, fields: UserFields) -> User:
        if not policy.has_elevated_access(actor):
            raise AuthorizationError("Only managers and admins can add users.")

        username, full_name, phone = self._clean(fields)
        if not fields.password:
            raise ValidationError("Password is required.")
        role = fields.role or Role.EMPLOYEE
        self._require_assignable(actor, role)

        uid = self.repo.create_user(username, fields.password, full_name, role, phone)
        audit.info("user_created id=%s username=%s role=%s by=%s", uid, username, role.value, actor.username)
        return self._require_user(uid)

    def update_user(self, actor: Principal, user_id: int, fields: UserFields) -> User:
        target = self._require_user(user_id)
        if not policy.can_edit(actor, target):
            raise AuthorizationError("You are not allowed to edit this user.")

        if fields.password and actor.id == target.id:
            # own password goes through AuthService.change_password (current password + strength)
            raise ValidationError("Change your own password from the password form (POST /api/auth/password).")

        username, full_name, phone = self._clean(fields)
        role = fields.role or target.role
        if role is not target.role:
            self._require_assignable(actor, role)

        updated = self.repo.update_user(
            target.id, username, full_name, role, phone, password=(fields.password or None)
        )
        if not updated:
            raise NotFoundError("User not found.")
        audit.info(
            "user_updated id=%s role=%s password_changed=%s by=%s",
            target.id, role.value, bool(fields.password), actor.username,
        )

        user = self._require_user(target.id)
        if self.sessions is not None:
            self.sessions.refresh_principal(Principal.from_user(user))
        return user

    def delete_user(self, actor: Principal, user_id: int) -> None:
        target = self._require_user(user_id)
        if actor.id == target.id:
            raise AuthorizationError("You cannot delete your own account.")
        if not policy.can_delete(actor, target):
            raise AuthorizationError("You are not allowed to delete this user.")

        if not self.repo.delete_user(target.id):
            raise NotFoundError("User not found.")
        if self.sessions is not None:
            self.sessions.revoke_user(target.id)
        audit.info("user_deleted id=%s username=%s by=%s", target.id, target.username, actor.username)
