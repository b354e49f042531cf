"""camelCase JSON <-> domain records."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from invtrack.domain.errors import ValidationError
from invtrack.domain.models import (
    INT_MAX,
    INT_MIN,
    DashboardSummary,
    Material,
    MaterialFields,
    Principal,
    User,
    UserFields,
)
from invtrack.domain.roles import Role


def _as_int(value: Any, label: str) -> int:
    number = _parse_int(value)
    if number is None:
        raise ValidationError(f"{label} must be an integer.")
    if not INT_MIN <= number <= INT_MAX:
        raise ValidationError(f"{label} is out of range.")
    return number


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValidationError("Expected a text value.")
    return str(value)


def material_to_json(m: Material) -> dict:
    return {
        "id": m.id,
        "packetNo": m.packet_no,
        "partName": m.part_name,
        "length": m.length,
        "width": m.width,
        "height": m.height,
        "quantity": m.quantity,
        "supplier": m.supplier,
        "updatedBy": m.updated_by,
        "lastUpdated": m.last_updated,
        "createdAt": m.created_at,
    }


def material_fields_from_json(data: Mapping[str, Any]) -> MaterialFields:
    if not isinstance(data, Mapping):
        raise ValidationError("Expected a JSON object.")
    return MaterialFields(
        packet_no=_as_int(data.get("packetNo"), "packetNo"),
        part_name=_as_str(data.get("partName")),
        length=_as_int(data.get("length", 0), "length"),
        width=_as_int(data.get("width", 0), "width"),
        height=_as_int(data.get("height", 0), "height"),
        quantity=_as_int(data.get("quantity", 0), "quantity"),
        supplier=_as_str(data.get("supplier")),
    )


def user_to_json(u: User) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "fullName": u.full_name,
        "role": u.role.value,
        "phone": u.phone,
        "createdAt": u.created_at,
    }


def principal_to_json(p: Principal) -> dict:
    return {
        "id": p.id,
        "username": p.username,
        "fullName": p.full_name,
        "role": p.role.value,
    }


def user_fields_from_json(data: Mapping[str, Any]) -> UserFields:
    if not isinstance(data, Mapping):
        raise ValidationError("Expected a JSON object.")
    raw_role = data.get("role")
    phone = data.get("phone")
    password = data.get("password")
    return UserFields(
        username=_as_str(data.get("username")),
        full_name=_as_str(data.get("fullName")),
        role=Role.parse(raw_role) if raw_role not in (None, "") else None,
        phone=_as_str(phone) if phone is not None else None,
        password=_as_str(password) if password else None,
    )


def dashboard_to_json(d: DashboardSummary) -> dict:
    return {
        "totalMaterials": d.total_materials,
        "totalSuppliers": d.total_suppliers,
        "totalQuantity": d.total_quantity,
        "systemUsers": d.system_users,
        "recentMaterials": [material_to_json(m) for m in d.recent_materials],
        "materialTypeLabels": [name for name, _ in d.material_types],
        "materialTypeData": [count for _, count in d.material_types],
    }


def material_ids_from_form(values) -> list[int]:
    try:
        return [_as_int(v, "id") for v in values]
    except ValidationError:
        raise ValidationError("Invalid material IDs.") from None
