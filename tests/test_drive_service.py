"""
Tests for open-drive listing and drive administration.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import event, insert

from app.core.clock import utcnow
from app.core.errors import InvalidStateError, NotFoundError, ValidationError
from app.db.models.application import Application, ApplicationStatus
from app.db.models.company import Company
from app.db.models.drive import DriveStatus
from app.db.models.user import UserRole
from app.schemas.drive import CompanyCreate, DriveCreate, DriveUpdate, EligibilityCriteriaSchema
from app.services import drive_service
from conftest import make_company, make_drive, make_staff, make_student


def _add_application(db, drive, student, status=ApplicationStatus.APPLIED):
    now = utcnow()
    application = Application(
        drive_id=drive.id,
        student_id=student.id,
        status=status.value,
        applied_at=now,
        last_updated=now,
    )
    db.add(application)
    db.commit()
    return application


def test_open_drives_ordered_by_deadline_then_id(db):
    student = make_student(db)
    now = utcnow()
    later = make_drive(db, application_deadline=now + timedelta(days=5))
    tie_a = make_drive(db, application_deadline=now + timedelta(days=2))
    tie_b = make_drive(db, application_deadline=tie_a.application_deadline)

    views = drive_service.list_open_drives_for(db, student.id, now=now)

    assert [v.drive.id for v in views] == [tie_a.id, tie_b.id, later.id]


def test_closed_and_expired_drives_excluded(db):
    student = make_student(db)
    now = utcnow()
    open_drive = make_drive(db)
    make_drive(db, application_deadline=now - timedelta(minutes=1))
    make_drive(db, status=DriveStatus.CLOSED.value)
    make_drive(db, status=DriveStatus.CANCELLED.value)

    views = drive_service.list_open_drives_for(db, student.id, now=now)

    assert [v.drive.id for v in views] == [open_drive.id]


def test_expired_drive_excluded_even_for_eligible_student(db):
    student = make_student(db, cgpa=Decimal("9.50"))
    now = utcnow()
    make_drive(db, min_cgpa=Decimal("0"), application_deadline=now - timedelta(seconds=1))

    assert drive_service.list_open_drives_for(db, student.id, now=now) == []


def test_views_carry_eligibility_and_applied_flags(db):
    student = make_student(db, cgpa=Decimal("6.50"), department="CS")
    low_bar = make_drive(db, min_cgpa=Decimal("6.00"))
    high_bar = make_drive(db, min_cgpa=Decimal("7.00"), allowed_departments=["CS"])
    withdrawn = make_drive(db, min_cgpa=Decimal("6.00"))
    _add_application(db, low_bar, student)
    _add_application(db, withdrawn, student, ApplicationStatus.WITHDRAWN)

    views = {v.drive.id: v for v in drive_service.list_open_drives_for(db, student.id)}

    assert views[low_bar.id].eligibility.eligible is True
    assert views[low_bar.id].has_applied is True
    assert views[high_bar.id].eligibility.reason_codes() == ["cgpa_too_low"]
    assert views[high_bar.id].has_applied is False
    assert views[withdrawn.id].has_applied is False


def test_listing_for_unknown_student(db):
    with pytest.raises(NotFoundError):
        drive_service.list_open_drives_for(db, 999)


def test_create_drive(db):
    tpo = make_staff(db, UserRole.TPO)
    company = make_company(db, "Acme")
    now = utcnow()
    payload = DriveCreate(
        company_id=company.id,
        job_role="Backend Engineer",
        package="18 LPA",
        application_deadline=now + timedelta(days=3),
        drive_date=now + timedelta(days=10),
        eligibility_criteria=EligibilityCriteriaSchema(
            min_cgpa=Decimal("7.5"),
            allowed_departments=["IT", "CS", "CS"],
            graduation_years=[2026],
        ),
    )

    drive = drive_service.create_drive(db, payload, tpo, now=now)

    assert drive.status == DriveStatus.ACTIVE.value
    assert drive.created_by == tpo.id
    assert drive.allowed_departments == ["CS", "IT"]
    assert Decimal(str(drive.min_cgpa)) == Decimal("7.5")
    assert drive.package == "18 LPA"


def test_create_drive_rejects_past_deadline(db):
    tpo = make_staff(db, UserRole.TPO)
    company = make_company(db)
    now = utcnow()
    payload = DriveCreate(
        company_id=company.id,
        job_role="Analyst",
        package="8 LPA",
        application_deadline=now - timedelta(hours=1),
        drive_date=now + timedelta(days=1),
    )

    with pytest.raises(ValidationError):
        drive_service.create_drive(db, payload, tpo, now=now)


def test_create_drive_rejects_deadline_after_drive_date(db):
    tpo = make_staff(db, UserRole.TPO)
    company = make_company(db)
    now = utcnow()
    payload = DriveCreate(
        company_id=company.id,
        job_role="Analyst",
        package="8 LPA",
        application_deadline=now + timedelta(days=5),
        drive_date=now + timedelta(days=1),
    )

    with pytest.raises(ValidationError):
        drive_service.create_drive(db, payload, tpo, now=now)


def test_create_drive_unknown_company(db):
    tpo = make_staff(db, UserRole.TPO)
    now = utcnow()
    payload = DriveCreate(
        company_id=404,
        job_role="Analyst",
        package="8 LPA",
        application_deadline=now + timedelta(days=1),
        drive_date=now + timedelta(days=2),
    )

    with pytest.raises(NotFoundError):
        drive_service.create_drive(db, payload, tpo, now=now)


def test_update_active_drive(db):
    tpo = make_staff(db, UserRole.TPO)
    drive = make_drive(db, location="Pune")
    now = utcnow()
    payload = DriveUpdate(
        package="20 LPA",
        application_deadline=now + timedelta(days=10),
        eligibility_criteria=EligibilityCriteriaSchema(min_cgpa=Decimal("8.0"), allowed_departments=["IT", "CS"]),
    )

    updated = drive_service.update_drive(db, drive.id, payload, tpo, now=now)

    assert updated.package == "20 LPA"
    assert updated.location == "Pune"
    assert updated.job_role == "Software Engineer"
    assert updated.allowed_departments == ["CS", "IT"]
    assert Decimal(str(updated.min_cgpa)) == Decimal("8.0")
    assert updated.application_deadline == payload.application_deadline
    assert updated.status == DriveStatus.ACTIVE.value


def test_update_drive_only_while_active(db):
    tpo = make_staff(db, UserRole.TPO)
    closed = make_drive(db, status=DriveStatus.CLOSED.value)
    cancelled = make_drive(db, status=DriveStatus.CANCELLED.value)

    for drive in (closed, cancelled):
        with pytest.raises(InvalidStateError):
            drive_service.update_drive(db, drive.id, DriveUpdate(package="1 LPA"), tpo)
        db.refresh(drive)
        assert drive.package == "12 LPA"
    with pytest.raises(NotFoundError):
        drive_service.update_drive(db, 404, DriveUpdate(package="1 LPA"), tpo)


def test_update_drive_rechecks_dates(db):
    tpo = make_staff(db, UserRole.TPO)
    drive = make_drive(db)
    now = utcnow()

    with pytest.raises(ValidationError):
        drive_service.update_drive(db, drive.id, DriveUpdate(application_deadline=now - timedelta(hours=1)), tpo, now=now)
    with pytest.raises(ValidationError):
        # Existing deadline is a week out
        drive_service.update_drive(db, drive.id, DriveUpdate(drive_date=now + timedelta(days=2)), tpo, now=now)
    with pytest.raises(ValidationError):
        drive_service.update_drive(db, drive.id, DriveUpdate(job_role=None), tpo, now=now)

    db.refresh(drive)
    assert drive.drive_date > drive.application_deadline > now
    assert drive.job_role == "Software Engineer"


def test_duplicate_company_name_case_insensitive(db):
    drive_service.create_company(db, CompanyCreate(name="Acme Corp"))

    with pytest.raises(ValidationError):
        drive_service.create_company(db, CompanyCreate(name="  acme corp "))


def test_company_name_race_lost_on_unique_constraint(db):
    def rival_insert(session, flush_context, instances):
        # Another request commits the same name between our check and insert
        session.connection().execute(insert(Company.__table__).values(name="Globex"))

    event.listen(db, "before_flush", rival_insert)
    try:
        with pytest.raises(ValidationError) as exc_info:
            drive_service.create_company(db, CompanyCreate(name="Globex"))
    finally:
        event.remove(db, "before_flush", rival_insert)

    assert "already exists" in exc_info.value.message
    assert db.query(Company).count() == 0
    assert drive_service.create_company(db, CompanyCreate(name="Globex")).id is not None


def test_close_and_cancel_only_from_active(db):
    tpo = make_staff(db, UserRole.TPO)
    drive = make_drive(db)
    other = make_drive(db)

    closed = drive_service.close_drive(db, drive.id, tpo)
    cancelled = drive_service.cancel_drive(db, other.id, tpo)

    assert closed.status == DriveStatus.CLOSED.value
    assert closed.closed_by == tpo.id
    assert cancelled.status == DriveStatus.CANCELLED.value
    with pytest.raises(InvalidStateError):
        drive_service.close_drive(db, drive.id, tpo)
    with pytest.raises(InvalidStateError):
        drive_service.cancel_drive(db, drive.id, tpo)


def test_close_expired_drives(db):
    now = utcnow()
    expired = make_drive(db, application_deadline=now - timedelta(hours=2))
    current = make_drive(db, application_deadline=now + timedelta(hours=2))
    make_drive(db, application_deadline=now - timedelta(hours=2), status=DriveStatus.CANCELLED.value)

    closed = drive_service.close_expired_drives(db, now=now)

    assert closed == 1
    db.expire_all()
    assert drive_service.get_drive(db, expired.id).status == DriveStatus.CLOSED.value
    assert drive_service.get_drive(db, expired.id).closed_by is None
    assert drive_service.get_drive(db, current.id).status == DriveStatus.ACTIVE.value
    assert drive_service.close_expired_drives(db, now=now) == 0
