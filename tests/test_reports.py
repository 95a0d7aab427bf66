import openpyxl
import pandas as pd

from Hallsmart.core import payments
from Hallsmart.data.repos import reports_repo, settings_repo, settlements_repo
from Hallsmart.reports.export import export_financial_report, export_settlements
from Hallsmart.utils import format_currency, parse_amount


def _seed(space_manager, make_booking, make_student, register):
    booking = make_booking(class_fees=100)
    r1 = register(make_student("Ali"), booking, "2025-06-01", total_fees=100)
    register(make_student("Bita"), booking, "2025-06-01", total_fees=100)
    register(make_student("Cyrus"), booking, "2025-05-01", total_fees=100)
    payments.record_payment(space_manager, r1, 60)
    return booking


def test_monthly_financial_rows(space_manager, make_booking, make_student, register):
    _seed(space_manager, make_booking, make_student, register)

    rows = reports_repo.get_monthly_financial_rows("2025-06-01", "2025-06-30")

    assert [r["student_name"] for r in rows] == ["Ali", "Bita"]
    assert rows[0]["remaining"] == 40
    assert rows[0]["payment_status"] == "partial"
    assert rows[0]["teacher_name"] == "Sara Karimi"


def test_booking_summary(space_manager, make_booking, make_student, register):
    booking = _seed(space_manager, make_booking, make_student, register)

    summary = reports_repo.get_booking_summaries("2025-06-01", "2025-06-30")

    row = next(s for s in summary if s["booking_id"] == booking)
    assert row["registrations"] == 2
    assert row["total_fees"] == 200
    assert row["total_paid"] == 60
    assert row["outstanding"] == 140
    assert row["occupancy_percentage"] == 10.0


def test_financial_summary(space_manager, make_booking, make_student, register):
    _seed(space_manager, make_booking, make_student, register)
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-02", "income", 300, "teacher", "A")
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-03", "expense", 50, "supplier", "B")

    summary = reports_repo.get_financial_summary("2025-06-01", "2025-06-30")

    assert summary["net_amount"] == 250
    assert summary["student_payments"] == 60


def test_export_financial_report(tmp_path, space_manager, make_booking, make_student, register):
    _seed(space_manager, make_booking, make_student, register)
    rows = reports_repo.get_monthly_financial_rows("2025-06-01", "2025-06-30")

    path = export_financial_report(rows, tmp_path / "out" / "june.xlsx", title="2025-06")

    ws = openpyxl.load_workbook(path).active
    assert ws.title == "2025-06"
    assert ws.cell(row=1, column=2).value == "Student"
    assert ws.cell(row=2, column=2).value == "Ali"
    assert ws.cell(row=4, column=1).value == "Total"
    assert ws.cell(row=4, column=7).value == 200
    assert ws.column_dimensions["B"].width >= len("Student")


def test_export_settlements(tmp_path, space_manager):
    settlements_repo.create_settlement(space_manager.user_id, "2025-06-02", "income", 300, "teacher", "A", notes="June")
    rows = settlements_repo.list_settlements("2025-06-01", "2025-06-30")

    path = export_settlements(rows, tmp_path / "settlements.xlsx")

    df = pd.read_excel(path)
    assert list(df.columns)[:3] == ["Date", "Type", "Amount"]
    assert df.loc[0, "Source"] == "A"
    assert df.loc[0, "Amount"] == 300


def test_currency_formatting():
    assert format_currency(1250000) == "1,250,000 toman"
    settings_repo.set_setting("currency_unit", "rial")
    assert format_currency(1250) == "12,500 rial"
    assert parse_amount("12,500") == 1250
    assert format_currency(None) == "0 rial"
