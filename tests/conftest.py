"""
Shared fixtures: in-memory SQLite database and record factories.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.clock import utcnow
from app.core.security import create_access_token
from app.db.base import Base
from app.db.models.company import Company
from app.db.models.drive import Drive, DriveStatus, JobType
from app.db.models.user import User, UserRole, ProfileStatus
from app.services.notification_service import DispatchResult, NotificationDispatcher


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


class RecordingDispatcher(NotificationDispatcher):
    """Collects notifications instead of sending them."""

    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.sent = []
        self.fail = fail
        self.raise_error = raise_error

    def dispatch(self, notification):
        self.sent.append(notification)
        if self.raise_error:
            raise RuntimeError("SMTP relay unreachable")
        return DispatchResult(success=not self.fail, recipient=notification.recipient)


_counter = {"n": 0}


def _next():
    _counter["n"] += 1
    return _counter["n"]


def make_student(db, **overrides):
    n = _next()
    values = dict(
        full_name=f"Student {n}",
        email=f"student{n}@college.edu",
        role=UserRole.STUDENT.value,
        department="Computer Science",
        roll_number=f"CS{n:04d}",
        cgpa=Decimal("8.00"),
        backlogs=0,
        graduation_year=2026,
        profile_status=ProfileStatus.APPROVED.value,
    )
    values.update(overrides)
    user = User(**values)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_staff(db, role=UserRole.TPO, department=None):
    n = _next()
    user = User(
        full_name=f"{role.value} {n}",
        email=f"{role.value.lower()}{n}@college.edu",
        role=role.value,
        department=department,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_company(db, name=None):
    company = Company(name=name or f"Company {_next()}", industry="Software")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def make_drive(db, company=None, **overrides):
    company = company or make_company(db)
    now = utcnow()
    values = dict(
        company_id=company.id,
        job_role="Software Engineer",
        job_type=JobType.FULL_TIME.value,
        package="12 LPA",
        application_deadline=now + timedelta(days=7),
        drive_date=now + timedelta(days=14),
        min_cgpa=Decimal("7.00"),
        allowed_departments=[],
        max_backlogs=0,
        graduation_years=[],
        status=DriveStatus.ACTIVE.value,
    )
    values.update(overrides)
    drive = Drive(**values)
    db.add(drive)
    db.commit()
    db.refresh(drive)
    return drive


def auth_headers(user):
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}
