from Hallsmart.core import payments
from Hallsmart.data.repos import (
    attendance_repo, audit_repo, halls_repo, payments_repo, profiles_repo, stages_repo,
    students_repo, teachers_repo,
)


def test_halls_and_stages_crud():
    hall = halls_repo.insert_hall("Studio B", capacity=12)
    halls_repo.update_hall_by_id(hall, "Studio B2", 14)
    assert halls_repo.get_hall_by_id(hall)["capacity"] == 14
    halls_repo.delete_hall_by_id(hall)
    assert halls_repo.fetch_halls() == []

    stage = stages_repo.insert_stage("Beginner")
    stages_repo.rename_stage(stage, "Starter")
    assert [s["name"] for s in stages_repo.fetch_stages()] == ["Starter"]


def test_teacher_lookup_and_booked_flag(world, make_booking):
    teacher = world["teacher_id"]
    assert teachers_repo.get_teacher_id_by_code("PHY") == teacher
    assert not teachers_repo.is_teacher_booked(teacher)
    make_booking()
    assert teachers_repo.is_teacher_booked(teacher)


def test_search_students_prefers_serial(make_student):
    a = make_student("Nima")
    make_student("Nima Jr")
    serial = students_repo.get_student_by_id(a)["serial_number"]

    assert [s["id"] for s in students_repo.search_students(serial)] == [a]
    assert len(students_repo.search_students("nima")) == 2


def test_mark_present_is_upsert(make_booking, make_student, register):
    reg = register(make_student(), make_booking(), "2025-06-01")
    first = attendance_repo.insert_attendance(reg, "2025-06-02", status="absent")

    assert attendance_repo.mark_present_for_date(reg, "2025-06-02") == first
    attendance_repo.mark_present_for_date(reg, "2025-06-04")

    assert attendance_repo.count_attendance(reg, status="present") == 2
    assert [a["attendance_date"] for a in attendance_repo.fetch_attendance_by_registration(reg)] == [
        "2025-06-04", "2025-06-02"]


def test_payment_listing(space_manager, make_booking, make_student, register):
    reg = register(make_student("Dara"), make_booking(), "2025-06-01")
    payments.record_payment(space_manager, reg, 30, payment_date="2025-06-02")
    payments.record_payment(space_manager, reg, 20, payment_date="2025-07-01")

    june = payments_repo.fetch_payments(date_from="2025-06-01", date_to="2025-06-30")
    assert [(p["amount"], p["student_name"]) for p in june] == [(30, "Dara")]
    assert payments_repo.get_payments_sum("2025-06-01", "2025-07-31") == 50


def test_profile_role_change_and_audit(owner):
    pid = profiles_repo.insert_profile("kian", user_role="teacher")
    assert profiles_repo.update_profile_role(pid, "space_manager")
    assert profiles_repo.get_profile_by_id(pid)["user_role"] == "space_manager"
    assert profiles_repo.get_display_name(pid) == "kian"

    audit_repo.log_action(owner.user_id, "profile_role_changed", {"profile_id": pid})
    assert audit_repo.fetch_audit_logs()[0]["details"] == {"profile_id": pid}
