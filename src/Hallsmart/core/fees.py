"""
Fee propagation from bookings and teacher defaults onto registrations.

Every path that changes ``total_fees`` or ``paid_amount`` re-derives
``payment_status`` through :func:`compute_payment_status`; the stored status
is a cache and is never trusted on its own. Updates are issued row by row
without a surrounding transaction, so a failure part-way leaves earlier rows
updated. Re-running is safe because the recomputation only depends on
``(paid_amount, fee)``.
"""
import logging
import numbers
import sqlite3

from Hallsmart.core.errors import HallsmartError, ValidationError
from Hallsmart.core.months import month_bounds, to_date, window_overlaps
from Hallsmart.core.results import FeeUpdateResult
from Hallsmart.data.repos import bookings_repo, registrations_repo, teachers_repo
from Hallsmart.data.repos.audit_repo import log_action

logger = logging.getLogger(__name__)

PENDING = "pending"
PARTIAL = "partial"
PAID = "paid"


def compute_payment_status(paid_amount, total_fees) -> str:
    paid = paid_amount or 0
    total = total_fees or 0
    if paid == 0:
        return PENDING
    if paid >= total:
        return PAID
    return PARTIAL


def is_fee_window_open(booking, month_start, month_end) -> bool:
    """Booking overlaps the given month or starts after it."""
    if window_overlaps(booking["start_date"], booking.get("end_date"), month_start, month_end):
        return True
    return to_date(booking["start_date"]) > month_end


def is_amount(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _validate_fee(fee):
    if not is_amount(fee) or fee < 0:
        raise ValidationError("fee must be a non-negative amount")


def _refresh_registration_fee(registration, fee):
    status = compute_payment_status(registration["paid_amount"], fee)
    registrations_repo.update_registration_fees(registration["id"], fee, status)


def set_custom_fee_for_booking(session, booking_id, new_fee, mark_custom=True) -> FeeUpdateResult:
    """
    Set a booking's class fee and push it onto every registration of the
    booking, recomputing each payment status from its existing paid amount.
    """
    result = FeeUpdateResult(success=False)
    try:
        session.require("manage_fees")
        _validate_fee(new_fee)
        booking = bookings_repo.get_booking_by_id(booking_id)
        if booking is None:
            result.error = "Booking not found"
            return result

        bookings_repo.set_booking_fee(booking_id, new_fee, is_custom=True if mark_custom else None)
        result.bookings_updated = 1

        for reg in registrations_repo.fetch_registrations_by_booking(booking_id):
            _refresh_registration_fee(reg, new_fee)
            result.registrations_updated += 1

        result.success = True
        logger.info("Booking %s fee set to %s; %d registrations refreshed",
                    booking_id, new_fee, result.registrations_updated)
        log_action(session.user_id, "booking_fee_set", {
            "booking_id": booking_id, "fee": new_fee,
            "registrations_updated": result.registrations_updated,
        })
    except (HallsmartError, ValueError) as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to set fee for booking %s", booking_id)
        result.error = str(e)
    return result


def apply_teacher_default_fee(session, teacher_id, fee, booking_ids=None,
                              apply_to_current_month=False) -> FeeUpdateResult:
    """
    Store a teacher's default fee and copy it onto that teacher's eligible
    bookings. A booking is eligible when it is not custom-fee and its window
    overlaps the current month of ``session.today`` or starts later.
    """
    result = FeeUpdateResult(success=False)
    try:
        session.require("manage_fees")
        _validate_fee(fee)
        if not teachers_repo.set_teacher_default_fee(teacher_id, fee):
            result.error = "Teacher not found"
            return result

        if booking_ids is None:
            candidates = bookings_repo.fetch_bookings_by_teacher(teacher_id)
        else:
            candidates = [
                b for b in bookings_repo.fetch_bookings_by_ids(booking_ids)
                if b["teacher_id"] == teacher_id
            ]

        month_start, month_end = month_bounds(session.today.year, session.today.month)
        eligible_ids = []
        for booking in candidates:
            if booking["is_custom_fee"]:
                result.skipped_custom += 1
            elif not is_fee_window_open(booking, month_start, month_end):
                result.skipped_past += 1
            else:
                eligible_ids.append(booking["id"])

        result.bookings_updated = bookings_repo.update_fee_for_bookings(eligible_ids, fee)

        if apply_to_current_month and eligible_ids:
            regs = registrations_repo.fetch_registrations_in_range(
                eligible_ids, month_start.isoformat(), month_end.isoformat())
            for reg in regs:
                _refresh_registration_fee(reg, fee)
                result.registrations_updated += 1

        if result.skipped_custom or result.skipped_past:
            logger.warning("Teacher %s fee change skipped %d custom-fee and %d past bookings",
                           teacher_id, result.skipped_custom, result.skipped_past)
        logger.info("Teacher %s default fee set to %s on %d bookings", teacher_id, fee, result.bookings_updated)
        log_action(session.user_id, "teacher_default_fee_applied", {"teacher_id": teacher_id, **result.to_dict()})
        result.success = True
    except (HallsmartError, ValueError) as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to apply default fee for teacher %s", teacher_id)
        result.error = str(e)
    return result


def update_registration_fees(session, registration_id, new_fees) -> FeeUpdateResult:
    result = FeeUpdateResult(success=False)
    try:
        session.require("manage_fees")
        _validate_fee(new_fees)
        reg = registrations_repo.get_registration_by_id(registration_id)
        if reg is None:
            result.error = "Registration not found"
            return result
        _refresh_registration_fee(reg, new_fees)
        result.registrations_updated = 1
        result.success = True
    except (HallsmartError, ValueError) as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to update fees of registration %s", registration_id)
        result.error = str(e)
    return result


def clear_custom_fee(session, booking_id) -> FeeUpdateResult:
    """Let a booking follow teacher default-fee changes again."""
    result = FeeUpdateResult(success=False)
    try:
        session.require("manage_fees")
        if not bookings_repo.set_custom_fee_flag(booking_id, False):
            result.error = "Booking not found"
            return result
        result.bookings_updated = 1
        result.success = True
        log_action(session.user_id, "booking_custom_fee_cleared", {"booking_id": booking_id})
    except HallsmartError as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to clear custom fee on booking %s", booking_id)
        result.error = str(e)
    return result
