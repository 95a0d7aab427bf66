import logging
import sqlite3

from Hallsmart.core.errors import HallsmartError, ValidationError
from Hallsmart.core.fees import compute_payment_status, is_amount
from Hallsmart.core.results import PaymentResult
from Hallsmart.data.repos import payments_repo, registrations_repo

logger = logging.getLogger(__name__)


def _refresh_paid_amount(registration, result):
    paid = payments_repo.get_total_paid_for_registration(registration["id"])
    status = compute_payment_status(paid, registration["total_fees"])
    registrations_repo.update_registration_payment(registration["id"], paid, status)
    result.paid_amount = paid
    result.payment_status = status


def record_payment(session, registration_id, amount, payment_date=None, payment_method="cash",
                   reference_number=None, notes=None) -> PaymentResult:
    """Insert a payment and re-derive the registration's paid amount and status."""
    result = PaymentResult(success=False)
    try:
        session.require("record_payments")
        if not is_amount(amount) or amount <= 0:
            raise ValidationError("amount must be a positive number")
        reg = registrations_repo.get_registration_by_id(registration_id)
        if reg is None:
            result.error = "Registration not found"
            return result
        result.payment_id = payments_repo.insert_payment(
            registration_id, amount, payment_date or session.today.isoformat(),
            payment_method, reference_number, notes, session.user_id,
        )
        _refresh_paid_amount(reg, result)
        result.success = True
        logger.info("Payment %s of %s recorded on registration %s (%s)",
                    result.payment_id, amount, registration_id, result.payment_status)
    except (HallsmartError, ValueError) as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to record payment on registration %s", registration_id)
        result.error = str(e)
    return result


def remove_payment(session, payment_id) -> PaymentResult:
    result = PaymentResult(success=False, payment_id=payment_id)
    try:
        session.require("record_payments")
        payment = payments_repo.get_payment_by_id(payment_id)
        if payment is None:
            result.error = "Payment not found"
            return result
        payments_repo.delete_payment(payment_id)
        reg = registrations_repo.get_registration_by_id(payment["student_registration_id"])
        if reg is not None:
            _refresh_paid_amount(reg, result)
        result.success = True
    except HallsmartError as e:
        result.error = str(e)
    except sqlite3.Error as e:
        logger.exception("Failed to delete payment %s", payment_id)
        result.error = str(e)
    return result
