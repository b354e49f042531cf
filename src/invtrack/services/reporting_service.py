from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from invtrack.domain.models import DashboardSummary

NO_SUPPLIER = "(none)"


class ReportingService:
    def __init__(self, repo):
        self.repo = repo

    def dashboard(self, recent: int = 5) -> DashboardSummary:
        total_materials, total_suppliers, total_quantity = self.repo.material_totals()
        return DashboardSummary(
            total_materials=total_materials,
            total_suppliers=total_suppliers,
            total_quantity=total_quantity,
            system_users=self.repo.count_users(),
            recent_materials=self.repo.recent_materials(recent),
            material_types=self.repo.material_type_counts(),
        )

    def export_materials_excel(self, path: Path | str) -> None:
        wb = Workbook()

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Materials --------
        ws = wb.active
        ws.title = "Materials"
        ws.append([
            "ID", "Packet No", "Part Name",
            "Length", "Width", "Height", "Quantity",
            "Supplier", "Updated By", "Last Updated",
        ])
        bold_row(ws, 1)

        for m in self.repo.list_materials():
            ws.append([
                m.id, m.packet_no, m.part_name,
                m.length, m.width, m.height, m.quantity,
                m.supplier, m.updated_by, m.last_updated,
            ])

        ws.freeze_panes = "A2"
        set_widths(ws, {
            "A": 8, "B": 12, "C": 30,
            "D": 10, "E": 10, "F": 10, "G": 12,
            "H": 24, "I": 16, "J": 14,
        })
        if ws.max_row >= 2:
            add_table(ws, "MaterialsList", 1, 1, ws.max_row, 10)

        # -------- 2) By Supplier --------
        ws2 = wb.create_sheet("By Supplier")
        ws2["A1"] = "Materials by supplier"
        ws2["A1"].font = Font(bold=True, size=14)

        ws2.append([])
        ws2.append(["Supplier", "Materials", "Total Quantity"])
        bold_row(ws2, 3)

        totals = self.repo.supplier_totals()
        for t in totals:
            ws2.append([t.supplier or NO_SUPPLIER, t.materials, t.quantity])

        if totals:
            r = ws2.max_row + 1
            ws2[f"A{r}"] = "Total"
            ws2[f"B{r}"] = sum(t.materials for t in totals)
            ws2[f"C{r}"] = sum(t.quantity for t in totals)
            bold_row(ws2, r)

        ws2.freeze_panes = "A4"
        set_widths(ws2, {"A": 30, "B": 12, "C": 16})

        wb.save(str(path))
