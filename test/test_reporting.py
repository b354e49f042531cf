from pathlib import Path

from conftest import make_user
from openpyxl import load_workbook

from invtrack.domain.models import MaterialFields
from invtrack.services.material_service import MaterialService
from invtrack.services.reporting_service import ReportingService


def _add(svc: MaterialService, part: str, qty: int, supplier: str):
    return svc.add_material(
        MaterialFields(packet_no=1, part_name=part, length=10, width=5, height=2, quantity=qty, supplier=supplier),
        "alice",
    )


def test_dashboard_summary(repo):
    materials = MaterialService(repo)
    reporting = ReportingService(repo)
    make_user(repo, "alice", "employee")

    _add(materials, "Bolt", 10, "ACME")
    _add(materials, "Bolt", 5, "Globex")
    _add(materials, "Nut", 7, "ACME")
    last = _add(materials, "Washer", 1, "")

    d = reporting.dashboard()

    assert d.total_materials == 4
    assert d.total_suppliers == 2
    assert d.total_quantity == 23
    assert d.system_users == 2
    assert d.recent_materials[0].id == last.id
    assert dict(d.material_types) == {"Bolt": 2, "Nut": 1, "Washer": 1}
    assert d.material_types[0] == ("Bolt", 2)


def test_dashboard_on_empty_inventory(repo):
    d = ReportingService(repo).dashboard()
    assert (d.total_materials, d.total_suppliers, d.total_quantity) == (0, 0, 0)
    assert d.recent_materials == []
    assert d.material_types == []


def test_excel_export_lists_materials_and_groups_by_supplier(repo, tmp_path: Path):
    materials = MaterialService(repo)
    _add(materials, "Bolt", 10, "ACME")
    _add(materials, "Nut", 7, "ACME")
    _add(materials, "Washer", 3, "")

    path = tmp_path / "materials.xlsx"
    ReportingService(repo).export_materials_excel(path)

    wb = load_workbook(path)
    assert wb.sheetnames == ["Materials", "By Supplier"]

    ws = wb["Materials"]
    assert ws.cell(row=1, column=3).value == "Part Name"
    assert ws.max_row == 4
    assert {ws.cell(row=r, column=3).value for r in range(2, 5)} == {"Bolt", "Nut", "Washer"}

    ws2 = wb["By Supplier"]
    rows = {ws2.cell(row=r, column=1).value: (ws2.cell(row=r, column=2).value, ws2.cell(row=r, column=3).value)
            for r in range(4, ws2.max_row + 1)}
    assert rows == {"(none)": (1, 3), "ACME": (2, 17), "Total": (3, 20)}
