"""
Monthly rollover: carry each student's latest registration of a booking
forward into a target month with payment reset to pending.

Re-running is safe: students already registered in the target month are
skipped. There is no uniqueness constraint behind that check, so two
concurrent runs for the same booking and month can still double-insert.
"""
import logging
import sqlite3
from datetime import date

from Hallsmart.core.months import month_bounds, next_month, window_overlaps
from Hallsmart.core.results import BatchRolloverResult, RolloverResult
from Hallsmart.data.repos import attendance_repo, bookings_repo, registrations_repo
from Hallsmart.data.repos.settings_repo import get_setting_bool

logger = logging.getLogger(__name__)

NOT_ACTIVE_MESSAGE = "Booking not active in target month"


def is_active_in_month(booking, month_start: date, month_end: date) -> bool:
    return booking["status"] == "active" and window_overlaps(
        booking["start_date"], booking.get("end_date"), month_start, month_end)


def latest_fee_per_student(registrations):
    """
    registrations must be ordered newest first; the first row seen per
    student wins.
    """
    fees = {}
    for reg in registrations:
        if reg["student_id"] not in fees:
            fees[reg["student_id"]] = reg["total_fees"]
    return fees


def create_monthly_student_registrations(target_month, target_year, booking_id,
                                         reset_attendance=True, actor_id=None) -> RolloverResult:
    try:
        booking = bookings_repo.get_booking_by_id(booking_id)
        if booking is None:
            return RolloverResult(success=False, error="Booking not found")

        month_start, month_end = month_bounds(target_year, target_month)
        if not is_active_in_month(booking, month_start, month_end):
            logger.info("Booking %s skipped for %04d-%02d: not active", booking_id, target_year, target_month)
            return RolloverResult(success=True, error=NOT_ACTIVE_MESSAGE)

        history = registrations_repo.fetch_registrations_by_booking(booking_id)
        if not history:
            return RolloverResult(success=True, error="No existing registrations found")
        templates = latest_fee_per_student(history)

        start_str, end_str = month_start.isoformat(), month_end.isoformat()
        already = {
            r["student_id"]
            for r in registrations_repo.fetch_registrations_in_range([booking_id], start_str, end_str)
        }

        new_rows = [
            {
                "student_id": student_id,
                "booking_id": booking_id,
                "registration_date": start_str,
                "total_fees": fee or booking["class_fees"] or 0,
                "paid_amount": 0,
                "payment_status": "pending",
                "created_by": actor_id,
            }
            for student_id, fee in templates.items()
            if student_id not in already
        ]
        if not new_rows:
            return RolloverResult(success=True, error="All students already registered for target month")
    except (sqlite3.Error, ValueError) as e:
        logger.exception("Rollover of booking %s failed before insert", booking_id)
        return RolloverResult(success=False, error=str(e))

    try:
        created = registrations_repo.insert_registrations(new_rows)
    except sqlite3.Error as e:
        logger.exception("Rollover insert failed for booking %s", booking_id)
        return RolloverResult(success=False, error=str(e))

    result = RolloverResult(success=True, registrations_created=created)
    logger.info("Booking %s: %d registrations rolled into %s", booking_id, created, start_str)

    if reset_attendance:
        try:
            month_reg_ids = [
                r["id"]
                for r in registrations_repo.fetch_registrations_in_range([booking_id], start_str, end_str)
            ]
            result.attendance_cleared = attendance_repo.delete_attendance_in_range(
                month_reg_ids, start_str, end_str)
        except sqlite3.Error as e:
            # registrations stay in place; a re-run will not duplicate them
            logger.exception("Attendance reset failed for booking %s", booking_id)
            result.success = False
            result.error = f"Attendance reset failed: {e}"
    return result


def reset_all_bookings_to_next_month(today: date, reset_attendance=None, actor_id=None) -> BatchRolloverResult:
    """
    Roll every active booking into the month after ``today``. Individual
    failures are collected, never abort the batch, and are not retried.
    """
    year, month = next_month(today)
    try:
        if reset_attendance is None:
            reset_attendance = get_setting_bool("rollover_reset_attendance", True)
        booking_ids = bookings_repo.fetch_active_booking_ids()
    except sqlite3.Error as e:
        logger.exception("Could not start rollover to %04d-%02d", year, month)
        return BatchRolloverResult(success=False, errors=[str(e)])

    batch = BatchRolloverResult(success=True, bookings_processed=len(booking_ids))
    for booking_id in booking_ids:
        res = create_monthly_student_registrations(month, year, booking_id, reset_attendance, actor_id)
        batch.total_registrations_created += res.registrations_created
        if not res.success and res.error:
            batch.errors.append(f"Booking {booking_id}: {res.error}")

    batch.success = not batch.errors
    logger.info("Rollover to %04d-%02d: %d bookings, %d registrations, %d errors",
                year, month, batch.bookings_processed, batch.total_registrations_created, len(batch.errors))
    return batch
