from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from invtrack.domain.roles import Role

# SQLite INTEGER is a signed 64-bit value
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class Material:
    id: int
    packet_no: int
    part_name: str
    length: int
    width: int
    height: int
    quantity: int
    supplier: str
    updated_by: str
    last_updated: str
    created_at: str


@dataclass(frozen=True)
class MaterialFields:
    """Validated, mutable part of a material."""

    packet_no: int
    part_name: str
    length: int
    width: int
    height: int
    quantity: int
    supplier: str = ""


@dataclass(frozen=True)
class User:
    id: int
    username: str
    full_name: str
    role: Role
    phone: Optional[str] = None
    created_at: str = ""


@dataclass(frozen=True)
class UserFields:
    username: str
    full_name: str = ""
    role: Optional[Role] = None
    phone: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    full_name: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, username=user.username, full_name=user.full_name, role=user.role)


@dataclass(frozen=True)
class Session:
    token: str
    principal: Principal
    issued_at: float
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class DashboardSummary:
    total_materials: int
    total_suppliers: int
    total_quantity: int
    system_users: int
    recent_materials: list[Material]
    material_types: list[tuple[str, int]]


@dataclass(frozen=True)
class SupplierTotals:
    supplier: str
    materials: int
    quantity: int
