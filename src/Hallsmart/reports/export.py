import logging
from pathlib import Path

import openpyxl
import pandas as pd
from openpyxl.styles import Font

logger = logging.getLogger(__name__)

FINANCIAL_COLUMNS = [
    ("serial_number", "Serial"),
    ("student_name", "Student"),
    ("teacher_name", "Teacher"),
    ("hall_name", "Hall"),
    ("class_code", "Class"),
    ("registration_date", "Registered"),
    ("total_fees", "Fees"),
    ("paid_amount", "Paid"),
    ("remaining", "Remaining"),
    ("payment_status", "Status"),
]

SETTLEMENT_COLUMNS = {
    "settlement_date": "Date",
    "type": "Type",
    "amount": "Amount",
    "source_type": "Source type",
    "source_name": "Source",
    "category": "Category",
    "notes": "Notes",
}


def _autosize(ws):
    for column_cells in ws.columns:
        max_length = max((len(str(cell.value)) for cell in column_cells if cell.value is not None), default=0)
        ws.column_dimensions[column_cells[0].column_letter].width = max_length + 2


def export_financial_report(rows, file_path, title="Financial Report"):
    """Write monthly financial rows to an .xlsx file with a totals line."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title[:31]

    for col, (_, header) in enumerate(FINANCIAL_COLUMNS, start=1):
        ws.cell(row=1, column=col, value=header).font = Font(bold=True)

    for row_idx, row in enumerate(rows, start=2):
        for col, (key, _) in enumerate(FINANCIAL_COLUMNS, start=1):
            ws.cell(row=row_idx, column=col, value=row.get(key))

    if rows:
        total_row = len(rows) + 2
        ws.cell(row=total_row, column=1, value="Total").font = Font(bold=True)
        for key in ("total_fees", "paid_amount", "remaining"):
            col = [k for k, _ in FINANCIAL_COLUMNS].index(key) + 1
            ws.cell(row=total_row, column=col, value=sum(r.get(key) or 0 for r in rows))

    _autosize(ws)
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(file_path)
    logger.info("Financial report with %d rows written to %s", len(rows), file_path)
    return file_path


def export_settlements(rows, file_path):
    df = pd.DataFrame(rows, columns=list(SETTLEMENT_COLUMNS))
    df = df.rename(columns=SETTLEMENT_COLUMNS)
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_excel(file_path, index=False)
    logger.info("%d settlements written to %s", len(df), file_path)
    return file_path
