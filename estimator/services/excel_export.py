"""
Excel export for project estimates.

Builds a workbook with a Summary sheet and a Tasks sheet listing every task
in sequence order followed by a TOTAL row.
"""
import io
import re
from datetime import datetime, timezone

import structlog
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from estimator.models import Project

logger = structlog.get_logger(__name__)

CURRENCY_FORMAT = '"$"#,##0.00'
SIZE_FORMAT = "#,##0.##"
DATE_FORMAT = "yyyy-mm-dd hh:mm"

TASK_HEADERS = ["Task Name", "Description", "Complexity", "Size Factor", "Calculated Cost"]
TASK_COLUMN_WIDTHS = {"A": 32, "B": 60, "C": 14, "D": 14, "E": 18}

HEADER_FONT = Font(bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
LABEL_FONT = Font(bold=True, size=10)
TOTAL_FONT = Font(bold=True, size=10)
TOTAL_BORDER = Border(
    top=Side(style="thin", color="000000"),
    bottom=Side(style="double", color="000000"),
)
WRAP = Alignment(wrap_text=True, vertical="top")


def _excel_datetime(value: datetime) -> datetime:
    # Excel has no timezone support.
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def estimate_filename(project: Project) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', project.name)}_estimate.xlsx"


def _write_summary(sheet: Worksheet, project: Project) -> None:
    rows = [
        ("Project Name", project.name, None),
        ("Description", project.description, None),
        ("Total Cost", project.total_cost, CURRENCY_FORMAT),
        ("Tasks Count", len(project.tasks), None),
        ("Created At", _excel_datetime(project.created_at), DATE_FORMAT),
        ("Updated At", _excel_datetime(project.updated_at), DATE_FORMAT),
    ]
    for row_index, (label, value, number_format) in enumerate(rows, start=1):
        label_cell = sheet.cell(row=row_index, column=1, value=label)
        label_cell.font = LABEL_FONT
        value_cell = sheet.cell(row=row_index, column=2, value=value)
        value_cell.alignment = WRAP
        if number_format:
            value_cell.number_format = number_format

    sheet.column_dimensions["A"].width = 16
    sheet.column_dimensions["B"].width = 60


def _write_tasks(sheet: Worksheet, project: Project) -> None:
    sheet.append(TASK_HEADERS)
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    for task in project.tasks:
        sheet.append([
            task.name,
            task.description,
            getattr(task.complexity, "value", task.complexity),
            task.size_factor,
            task.calculated_cost,
        ])
        row = sheet.max_row
        sheet.cell(row=row, column=2).alignment = WRAP
        sheet.cell(row=row, column=4).number_format = SIZE_FORMAT
        sheet.cell(row=row, column=5).number_format = CURRENCY_FORMAT

    total_row = sheet.max_row + 2
    sheet.cell(row=total_row, column=1, value="TOTAL").font = TOTAL_FONT
    total_cell = sheet.cell(row=total_row, column=5, value=project.total_cost)
    total_cell.font = TOTAL_FONT
    total_cell.number_format = CURRENCY_FORMAT
    for column in range(1, len(TASK_HEADERS) + 1):
        sheet.cell(row=total_row, column=column).border = TOTAL_BORDER

    for letter, width in TASK_COLUMN_WIDTHS.items():
        sheet.column_dimensions[letter].width = width
    sheet.freeze_panes = "A2"


def build_estimate_workbook(project: Project) -> Workbook:
    """Create the estimate workbook for ``project``."""
    workbook = Workbook()
    summary = workbook.active
    summary.title = "Summary"
    _write_summary(summary, project)

    tasks = workbook.create_sheet("Tasks")
    _write_tasks(tasks, project)
    return workbook


def export_estimate(project: Project) -> bytes:
    """Serialize the estimate workbook to xlsx bytes."""
    buffer = io.BytesIO()
    build_estimate_workbook(project).save(buffer)
    logger.info("estimate_exported", project_id=project.id, tasks=len(project.tasks))
    return buffer.getvalue()
