import pytest

from Hallsmart.core import fees
from Hallsmart.data.repos import bookings_repo, registrations_repo, teachers_repo


@pytest.mark.parametrize("paid,total,expected", [
    (0, 100, "pending"),
    (0, 0, "pending"),
    (40, 100, "partial"),
    (100, 100, "paid"),
    (120, 100, "paid"),
    (None, 100, "pending"),
])
def test_compute_payment_status(paid, total, expected):
    assert fees.compute_payment_status(paid, total) == expected


def test_custom_fee_recomputes_every_registration(owner, make_booking, make_student, register):
    booking = make_booking(class_fees=100)
    r1 = register(make_student(), booking, "2025-06-01", total_fees=100, paid_amount=100)
    r2 = register(make_student(), booking, "2025-06-01", total_fees=100, paid_amount=40)

    result = fees.set_custom_fee_for_booking(owner, booking, 150)

    assert result.success
    assert result.registrations_updated == 2
    b = bookings_repo.get_booking_by_id(booking)
    assert b["class_fees"] == 150
    assert b["is_custom_fee"] is True
    for reg_id in (r1, r2):
        reg = registrations_repo.get_registration_by_id(reg_id)
        assert reg["total_fees"] == 150
        assert reg["payment_status"] == "partial"


def test_custom_fee_lowered_marks_paid(owner, make_booking, make_student, register):
    booking = make_booking(class_fees=100)
    reg_id = register(make_student(), booking, "2025-05-01", total_fees=100, paid_amount=80)

    fees.set_custom_fee_for_booking(owner, booking, 80)

    assert registrations_repo.get_registration_by_id(reg_id)["payment_status"] == "paid"


def test_custom_fee_missing_booking_is_soft_failure(owner):
    result = fees.set_custom_fee_for_booking(owner, 999, 150)
    assert not result.success
    assert result.error == "Booking not found"


def test_custom_fee_rejects_negative(owner, make_booking):
    booking = make_booking()
    result = fees.set_custom_fee_for_booking(owner, booking, -5)
    assert not result.success
    assert bookings_repo.get_booking_by_id(booking)["class_fees"] == 100


def test_non_numeric_fees_are_soft_failures(owner, world, make_booking, make_student, register):
    booking = make_booking()
    reg_id = register(make_student(), booking, "2025-06-01", total_fees=100)

    assert not fees.set_custom_fee_for_booking(owner, booking, "150").success
    assert not fees.set_custom_fee_for_booking(owner, booking, True).success
    assert not fees.apply_teacher_default_fee(owner, world["teacher_id"], "200").success
    result = fees.update_registration_fees(owner, reg_id, "x")

    assert not result.success
    assert "non-negative amount" in result.error
    assert bookings_repo.get_booking_by_id(booking)["class_fees"] == 100
    assert teachers_repo.get_teacher_by_id(world["teacher_id"])["default_class_fee"] == 100
    assert registrations_repo.get_registration_by_id(reg_id)["total_fees"] == 100


def test_custom_fee_requires_permission(space_manager, make_booking):
    booking = make_booking()
    result = fees.set_custom_fee_for_booking(space_manager, booking, 150)
    assert not result.success
    assert "manage_fees" in result.error
    assert bookings_repo.get_booking_by_id(booking)["class_fees"] == 100


def test_teacher_fee_skips_custom_bookings(owner, world, make_booking):
    plain = make_booking()
    custom = make_booking()
    fees.set_custom_fee_for_booking(owner, custom, 130)

    result = fees.apply_teacher_default_fee(owner, world["teacher_id"], 200)

    assert result.success
    assert result.bookings_updated == 1
    assert result.skipped_custom == 1
    assert bookings_repo.get_booking_by_id(plain)["class_fees"] == 200
    assert bookings_repo.get_booking_by_id(custom)["class_fees"] == 130
    assert teachers_repo.get_teacher_by_id(world["teacher_id"])["default_class_fee"] == 200


@pytest.mark.parametrize("start,end,updated", [
    ("2025-01-01", "2025-05-31", False),  # ended on the last day of the previous month
    ("2025-01-01", "2025-06-01", True),   # ends on the first day of the current month
    ("2025-01-01", None, True),           # open ended
    ("2025-08-01", "2025-12-31", True),   # starts in the future
    ("2024-01-01", "2024-12-31", False),
])
def test_teacher_fee_window_edges(owner, world, make_booking, start, end, updated):
    booking = make_booking(start_date=start, end_date=end)

    result = fees.apply_teacher_default_fee(owner, world["teacher_id"], 175)

    assert result.success
    fee = bookings_repo.get_booking_by_id(booking)["class_fees"]
    assert (fee == 175) is updated
    assert result.skipped_past == (0 if updated else 1)


def test_teacher_fee_leaves_registrations_unless_asked(owner, world, make_booking, make_student, register):
    booking = make_booking()
    reg_id = register(make_student(), booking, "2025-06-01", total_fees=100, paid_amount=100)

    fees.apply_teacher_default_fee(owner, world["teacher_id"], 200)

    assert registrations_repo.get_registration_by_id(reg_id)["total_fees"] == 100


def test_teacher_fee_current_month_registrations(owner, world, make_booking, make_student, register):
    booking = make_booking()
    student = make_student()
    old = register(student, booking, "2025-05-01", total_fees=100, paid_amount=100)
    current = register(student, booking, "2025-06-01", total_fees=100, paid_amount=100)

    result = fees.apply_teacher_default_fee(owner, world["teacher_id"], 200, apply_to_current_month=True)

    assert result.registrations_updated == 1
    reg = registrations_repo.get_registration_by_id(current)
    assert reg["total_fees"] == 200
    assert reg["payment_status"] == "partial"
    assert registrations_repo.get_registration_by_id(old)["total_fees"] == 100


def test_teacher_fee_explicit_ids_limited_to_teacher(owner, world, make_booking):
    other_teacher = teachers_repo.insert_teacher("Other", default_class_fee=90)
    mine = make_booking()
    untouched = make_booking()
    theirs = make_booking(teacher_id=other_teacher, class_fees=90)

    result = fees.apply_teacher_default_fee(owner, world["teacher_id"], 210, booking_ids=[mine, theirs])

    assert result.bookings_updated == 1
    assert bookings_repo.get_booking_by_id(mine)["class_fees"] == 210
    assert bookings_repo.get_booking_by_id(untouched)["class_fees"] == 100
    assert bookings_repo.get_booking_by_id(theirs)["class_fees"] == 90


def test_teacher_fee_unknown_teacher(owner):
    result = fees.apply_teacher_default_fee(owner, 404, 200)
    assert not result.success
    assert result.error == "Teacher not found"


def test_clear_custom_fee_rejoins_propagation(owner, world, make_booking):
    booking = make_booking()
    fees.set_custom_fee_for_booking(owner, booking, 130)
    assert fees.clear_custom_fee(owner, booking).success

    fees.apply_teacher_default_fee(owner, world["teacher_id"], 220)

    assert bookings_repo.get_booking_by_id(booking)["class_fees"] == 220


def test_update_registration_fees(manager, make_booking, make_student, register):
    booking = make_booking()
    reg_id = register(make_student(), booking, "2025-06-01", total_fees=100, paid_amount=50)

    result = fees.update_registration_fees(manager, reg_id, 50)

    assert result.success
    assert registrations_repo.get_registration_by_id(reg_id)["payment_status"] == "paid"
