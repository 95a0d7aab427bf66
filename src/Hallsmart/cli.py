"""Operator commands: ``hallsmart <command> --as USERNAME ...``."""
import argparse
import json
import logging
import os
import sys
from datetime import date

from Hallsmart.app_init import ensure_logging, initialize_database
from Hallsmart.core import approvals, fees, rollover
from Hallsmart.core.errors import HallsmartError
from Hallsmart.core.months import month_bounds_str
from Hallsmart.core.session import Session
from Hallsmart.data.repos import reports_repo, settlements_repo
from Hallsmart.reports.export import export_financial_report, export_settlements
from Hallsmart.services.identity import HttpIdentityProvider
from Hallsmart.services.user_admin import create_user
from Hallsmart.utils import format_currency

logger = logging.getLogger("hallsmart.cli")


def _print(result):
    data = result.to_dict() if hasattr(result, "to_dict") else result
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))
    return 0 if data.get("success", True) else 1


def _session(args):
    if not args.as_user:
        raise HallsmartError("--as USERNAME is required for this command")
    return Session.for_username(args.as_user, today=args.today)


def cmd_init_db(args):
    initialize_database()
    print("Database initialized.")
    return 0


def cmd_rollover(args):
    session = _session(args)
    session.require("manage_bookings")
    return _print(rollover.create_monthly_student_registrations(
        args.month, args.year, args.booking, reset_attendance=not args.keep_attendance,
        actor_id=session.user_id))


def cmd_rollover_all(args):
    session = _session(args)
    session.require("manage_bookings")
    return _print(rollover.reset_all_bookings_to_next_month(session.today, actor_id=session.user_id))


def cmd_set_booking_fee(args):
    return _print(fees.set_custom_fee_for_booking(_session(args), args.booking, args.fee))


def cmd_apply_teacher_fee(args):
    return _print(fees.apply_teacher_default_fee(
        _session(args), args.teacher, args.fee, booking_ids=args.bookings,
        apply_to_current_month=args.current_month))


def cmd_approve(args):
    return _print(approvals.approve_request(_session(args), args.request, apply_changes=not args.no_apply))


def cmd_reject(args):
    return _print(approvals.reject_request(_session(args), args.request))


def cmd_list_requests(args):
    session = _session(args)
    user_id = session.user_id if args.mine else None
    return _print(approvals.list_requests(session, date=args.date, user_id=user_id, status=args.status))


def cmd_daily_summary(args):
    result = approvals.get_daily_summary(_session(args), args.date)
    if not result.success:
        return _print(result)
    summary = result.data
    print(f"{summary['date']}")
    print(f"  income:   {format_currency(summary['total_income'])} ({summary['income_count']})")
    print(f"  expenses: {format_currency(summary['total_expenses'])} ({summary['expense_count']})")
    print(f"  net:      {format_currency(summary['net_amount'])}")
    return 0


def cmd_create_user(args):
    token = args.token or os.getenv("HALLSMART_ACCESS_TOKEN")
    body = {
        "username": args.username,
        "password": args.password,
        "user_role": args.role,
        "email": args.email,
        "full_name": args.full_name,
    }
    status, payload = create_user(HttpIdentityProvider(), token, body)
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0 if status == 200 else 1


def cmd_export_report(args):
    _session(args).require("view_reports")
    date_from, date_to = month_bounds_str(args.year, args.month)
    if args.settlements:
        path = export_settlements(settlements_repo.list_settlements(date_from, date_to), args.path)
    else:
        rows = reports_repo.get_monthly_financial_rows(date_from, date_to)
        path = export_financial_report(rows, args.path, title=f"{args.year}-{args.month:02d}")
    print(f"Report written to {path}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="hallsmart", description="Hall booking administration")
    parser.add_argument("--as", dest="as_user", metavar="USERNAME", help="profile to act as")
    parser.add_argument("--today", type=date.fromisoformat, default=None,
                        help="reference date (YYYY-MM-DD), defaults to the system date")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="create tables and default settings")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("rollover", help="roll one booking into a month")
    p.add_argument("--booking", type=int, required=True)
    p.add_argument("--month", type=int, required=True)
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--keep-attendance", action="store_true")
    p.set_defaults(func=cmd_rollover)

    p = sub.add_parser("rollover-all", help="roll every active booking into next month")
    p.set_defaults(func=cmd_rollover_all)

    p = sub.add_parser("set-booking-fee", help="set a custom fee on a booking")
    p.add_argument("booking", type=int)
    p.add_argument("fee", type=float)
    p.set_defaults(func=cmd_set_booking_fee)

    p = sub.add_parser("apply-teacher-fee", help="set a teacher's default fee")
    p.add_argument("teacher", type=int)
    p.add_argument("fee", type=float)
    p.add_argument("--bookings", type=int, nargs="+")
    p.add_argument("--current-month", action="store_true")
    p.set_defaults(func=cmd_apply_teacher_fee)

    p = sub.add_parser("approve", help="approve a settlement change request")
    p.add_argument("request", type=int)
    p.add_argument("--no-apply", action="store_true", help="only mark the request approved")
    p.set_defaults(func=cmd_approve)

    p = sub.add_parser("reject", help="reject a settlement change request")
    p.add_argument("request", type=int)
    p.set_defaults(func=cmd_reject)

    p = sub.add_parser("list-requests", help="list settlement change requests")
    p.add_argument("--date")
    p.add_argument("--status", default="pending", help="pending, approved, rejected or all")
    p.add_argument("--mine", action="store_true", help="only requests filed by --as")
    p.set_defaults(func=cmd_list_requests)

    p = sub.add_parser("daily-summary", help="settlement totals for one day")
    p.add_argument("date")
    p.set_defaults(func=cmd_daily_summary)

    p = sub.add_parser("export-report", help="export a month to Excel")
    p.add_argument("path")
    p.add_argument("--month", type=int, required=True)
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--settlements", action="store_true", help="export settlements instead of registrations")
    p.set_defaults(func=cmd_export_report)

    p = sub.add_parser("create-user", help="create a login account and profile")
    p.add_argument("username")
    p.add_argument("--password", required=True)
    p.add_argument("--role", required=True, help="owner, manager, space_manager, teacher or read_only")
    p.add_argument("--email")
    p.add_argument("--full-name")
    p.add_argument("--token", help="caller access token, defaults to HALLSMART_ACCESS_TOKEN")
    p.set_defaults(func=cmd_create_user)
    return parser


def main(argv=None):
    ensure_logging()
    args = build_parser().parse_args(argv)
    if args.command != "init-db":
        initialize_database()
    try:
        return args.func(args)
    except HallsmartError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
