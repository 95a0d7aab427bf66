from datetime import date

import pytest

from Hallsmart import paths
from Hallsmart.core.session import Session
from Hallsmart.data.schema import create_tables
from Hallsmart.data.repos import (
    bookings_repo, halls_repo, profiles_repo, registrations_repo, stages_repo,
    students_repo, teachers_repo,
)

TODAY = date(2025, 6, 15)


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    """Every test gets its own SQLite file."""
    monkeypatch.setattr(paths, "DB_PATH", tmp_path / "hallsmart.db")
    monkeypatch.setattr(paths, "LOG_PATH", tmp_path / "hallsmart.log")
    create_tables()
    return paths.DB_PATH


def _session_for(username, role, **extra):
    profiles_repo.insert_profile(username, user_role=role, full_name=extra.pop("full_name", None), **extra)
    return Session.for_username(username, today=TODAY)


@pytest.fixture
def owner():
    return _session_for("owner", "owner", full_name="Olivia Owner")


@pytest.fixture
def manager():
    return _session_for("manager", "manager", full_name="Max Manager")


@pytest.fixture
def space_manager():
    return _session_for("desk", "space_manager")


@pytest.fixture
def teacher_user():
    return _session_for("teach", "teacher")


@pytest.fixture
def readonly():
    return _session_for("viewer", "read_only")


@pytest.fixture
def world():
    """A hall, a stage and a teacher to hang bookings on."""
    hall_id = halls_repo.insert_hall("Main Hall", capacity=20)
    stage_id = stages_repo.insert_stage("Grade 10")
    teacher_id = teachers_repo.insert_teacher("Sara Karimi", "09120000000", teacher_code="PHY", default_class_fee=100)
    return {"hall_id": hall_id, "stage_id": stage_id, "teacher_id": teacher_id}


@pytest.fixture
def make_booking(world):
    counter = {"n": 0}

    def _make(start_date="2025-01-01", end_date=None, class_fees=100, teacher_id=None,
              status="active", days="0,2", start_time=None):
        counter["n"] += 1
        return bookings_repo.create_booking(
            world["hall_id"], teacher_id or world["teacher_id"], world["stage_id"],
            start_time or f"{8 + counter['n']:02d}:00", days, start_date,
            end_date=end_date, class_fees=class_fees, status=status,
        )
    return _make


@pytest.fixture
def make_student():
    counter = {"n": 0}

    def _make(name=None):
        counter["n"] += 1
        return students_repo.insert_student(name or f"Student {counter['n']}", f"0912{counter['n']:07d}")
    return _make


@pytest.fixture
def register():
    def _register(student_id, booking_id, registration_date, total_fees=100, paid_amount=0, payment_status=None):
        status = payment_status or ("pending" if paid_amount == 0 else "partial" if paid_amount < total_fees else "paid")
        registrations_repo.insert_registrations([{
            "student_id": student_id,
            "booking_id": booking_id,
            "registration_date": registration_date,
            "total_fees": total_fees,
            "paid_amount": paid_amount,
            "payment_status": status,
        }])
        rows = registrations_repo.fetch_registrations_by_booking(booking_id)
        return max(r["id"] for r in rows)
    return _register
