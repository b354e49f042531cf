from __future__ import annotations

from enum import Enum
import unicodedata

from invtrack.domain.errors import ValidationError


class Role(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: object) -> "Role":
        """Normalize free-text role input. Unknown values are rejected."""
        if isinstance(value, Role):
            return value
        key = unicodedata.normalize("NFC", str(value or "")).strip().lower()
        role = _SYNONYMS.get(key)
        if role is None:
            raise ValidationError(f"Unknown role: {value!r}.")
        return role

    @classmethod
    def parse_lenient(cls, value: object) -> "Role":
        """Read a stored role; anything unrecognised is the lowest rank."""
        try:
            return cls.parse(value)
        except ValidationError:
            return cls.EMPLOYEE


_RANKS = {
    Role.EMPLOYEE: 0,
    Role.MANAGER: 1,
    Role.ADMIN: 2,
}

_SYNONYMS: dict[str, Role] = {
    "employee": Role.EMPLOYEE,
    "staff": Role.EMPLOYEE,
    "nhân viên": Role.EMPLOYEE,
    "nhan vien": Role.EMPLOYEE,
    "manager": Role.MANAGER,
    "quản lý": Role.MANAGER,
    "quan ly": Role.MANAGER,
    "admin": Role.ADMIN,
    "administrator": Role.ADMIN,
}


def known_synonyms() -> dict[str, Role]:
    return dict(_SYNONYMS)
