from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from invtrack.domain.errors import ValidationError, NotFoundError
from invtrack.domain.models import INT_MAX, Material, MaterialFields

audit = logging.getLogger("invtrack.audit")

DATE_FORMAT = "%d/%m/%Y"


def _valid_id(material_id) -> bool:
    return not isinstance(material_id, bool) and isinstance(material_id, int) and 0 < material_id <= INT_MAX


class MaterialService:
    def __init__(self, repo, today: Callable[[], date] = date.today):
        self.repo = repo
        self._today = today

    def _stamp(self) -> str:
        return self._today().strftime(DATE_FORMAT)

    @staticmethod
    def _validate(fields: MaterialFields) -> MaterialFields:
        part_name = (fields.part_name or "").strip()
        if not part_name:
            raise ValidationError("Part name is required.")
        for label, value in (
            ("Packet no", fields.packet_no),
            ("Length", fields.length),
            ("Width", fields.width),
            ("Height", fields.height),
            ("Quantity", fields.quantity),
        ):
            if value < 0:
                raise ValidationError(f"{label} must be >= 0.")
            if value > INT_MAX:
                raise ValidationError(f"{label} is too large.")
        return MaterialFields(
            packet_no=int(fields.packet_no),
            part_name=part_name,
            length=int(fields.length),
            width=int(fields.width),
            height=int(fields.height),
            quantity=int(fields.quantity),
            supplier=(fields.supplier or "").strip(),
        )

    def list_materials(self, search: Optional[str] = None) -> list[Material]:
        materials = self.repo.list_materials()
        term = (search or "").strip().casefold()
        if term:
            materials = [m for m in materials if term in m.part_name.casefold()]
        return materials

    def get_material(self, material_id: int) -> Material:
        m = self.repo.get_material(int(material_id)) if _valid_id(material_id) else None
        if not m:
            raise NotFoundError("Material not found.")
        return m

    def add_material(self, fields: MaterialFields, acting_username: str) -> Material:
        clean = self._validate(fields)
        mid = self.repo.add_material(clean, acting_username, self._stamp())
        audit.info("material_created id=%s part=%r by=%s", mid, clean.part_name, acting_username)
        return self.get_material(mid)

    def update_material(self, material_id: int, fields: MaterialFields, acting_username: str) -> None:
        clean = self._validate(fields)
        updated = _valid_id(material_id) and self.repo.update_material(
            int(material_id), clean, acting_username, self._stamp()
        )
        if not updated:
            raise NotFoundError("Material not found.")
        audit.info("material_updated id=%s by=%s", material_id, acting_username)

    def delete_material(self, material_id: int, acting_username: str = "") -> None:
        removed = _valid_id(material_id) and self.repo.delete_material(int(material_id))
        if not removed:
            raise NotFoundError("Material not found.")
        audit.info("material_deleted id=%s by=%s", material_id, acting_username)

    def delete_materials(self, material_ids, acting_username: str = "") -> int:
        """Batch delete. Ids that do not exist are ignored."""
        if not isinstance(material_ids, (list, tuple, set, frozenset)) or not material_ids:
            raise ValidationError("Invalid material IDs.")
        if any(isinstance(i, bool) or not isinstance(i, int) or abs(i) > INT_MAX for i in material_ids):
            raise ValidationError("Invalid material IDs.")

        removed = self.repo.delete_materials(sorted(set(material_ids)))
        audit.info("materials_deleted requested=%s removed=%s by=%s", len(material_ids), removed, acting_username)
        return removed
