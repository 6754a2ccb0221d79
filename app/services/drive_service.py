"""
Drive visibility and drive administration.

list_open_drives_for() builds the student-facing list of open drives with
per-drive eligibility and applied flags. The remaining functions are the
TPO-side drive and company operations, including the deadline sweep that
closes drives whose application deadline has passed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.clock import utcnow
from app.core.errors import InvalidStateError, NotFoundError, ValidationError
from app.db.models.application import Application, ApplicationStatus
from app.db.models.company import Company
from app.db.models.drive import Drive, DriveStatus
from app.db.models.user import User
from app.db.session import transaction
from app.schemas.drive import CompanyCreate, DriveCreate, DriveUpdate
from app.services.eligibility_service import (
    EligibilityResult,
    attributes_from_student,
    criteria_from_drive,
    evaluate,
)
from app.services.user_service import get_student

logger = logging.getLogger(__name__)


@dataclass
class DriveView:
    """An open drive as seen by one student."""
    drive: Drive
    eligibility: EligibilityResult
    has_applied: bool


def is_drive_open(drive: Drive, now: Optional[datetime] = None) -> bool:
    """A drive accepts applications iff it is ACTIVE and its deadline has not passed."""
    now = now or utcnow()
    return drive.status == DriveStatus.ACTIVE.value and now < drive.application_deadline


def _open_drives(db: Session, now: datetime) -> List[Drive]:
    return (
        db.query(Drive)
        .options(joinedload(Drive.company))
        .filter(
            Drive.status == DriveStatus.ACTIVE.value,
            Drive.application_deadline > now,
        )
        .order_by(Drive.application_deadline.asc(), Drive.id.asc())
        .all()
    )


def _live_application_drive_ids(db: Session, student_id: int) -> set:
    rows = (
        db.query(Application.drive_id)
        .filter(
            Application.student_id == student_id,
            Application.status != ApplicationStatus.WITHDRAWN.value,
        )
        .all()
    )
    return {row[0] for row in rows}


def list_open_drives_for(db: Session, student_id: int, now: Optional[datetime] = None) -> List[DriveView]:
    """
    List open drives for a student, ordered by deadline then id.

    Read only. The result can be stale the moment it is returned; apply()
    re-checks everything it depends on.
    """
    now = now or utcnow()
    student = get_student(db, student_id)
    attributes = attributes_from_student(student)
    applied_drive_ids = _live_application_drive_ids(db, student_id)

    views = []
    for drive in _open_drives(db, now):
        views.append(DriveView(
            drive=drive,
            eligibility=evaluate(attributes, criteria_from_drive(drive)),
            has_applied=drive.id in applied_drive_ids,
        ))

    logger.debug(f"Open drives listed: student_id={student_id}, count={len(views)}")
    return views


def get_drive(db: Session, drive_id: int, for_update: bool = False) -> Drive:
    query = db.query(Drive).filter(Drive.id == drive_id)
    if for_update:
        # Row lock only; an outer-joined eager load cannot be locked on PostgreSQL
        query = query.with_for_update()
    else:
        query = query.options(joinedload(Drive.company))
    drive = query.first()
    if not drive:
        raise NotFoundError(f"Drive {drive_id} not found")
    return drive


def list_drives(db: Session, status: Optional[DriveStatus] = None) -> List[Drive]:
    """All drives for the TPO, newest deadline first."""
    query = db.query(Drive).options(joinedload(Drive.company))
    if status:
        query = query.filter(Drive.status == status.value)
    return query.order_by(Drive.application_deadline.desc(), Drive.id.desc()).all()


def check_eligibility(db: Session, student_id: int, drive_id: int) -> Tuple[Drive, User, EligibilityResult]:
    """Evaluate one student against one drive's criteria, regardless of the drive's status."""
    student = get_student(db, student_id)
    drive = get_drive(db, drive_id)
    result = evaluate(attributes_from_student(student), criteria_from_drive(drive))
    return drive, student, result


# ============ TPO OPERATIONS ============

def create_company(db: Session, data: CompanyCreate) -> Company:
    name = data.name.strip()
    existing = db.query(Company).filter(func.lower(Company.name) == name.lower()).first()
    if existing:
        raise ValidationError(f"Company '{name}' already exists", companyId=existing.id)

    company = Company(
        name=name,
        industry=data.industry,
        website=data.website,
        description=data.description,
    )
    # Concurrent creates with the same name lose on the unique constraint
    try:
        with transaction(db):
            db.add(company)
    except IntegrityError as e:
        logger.warning(f"Duplicate company rejected: name='{name}'")
        raise ValidationError(f"Company '{name}' already exists") from e
    db.refresh(company)

    logger.info(f"Company created: company_id={company.id}, name='{company.name}'")
    return company


def list_companies(db: Session) -> List[Company]:
    return db.query(Company).order_by(Company.name.asc()).all()


def create_drive(db: Session, data: DriveCreate, actor: User, now: Optional[datetime] = None) -> Drive:
    """
    Post a new ACTIVE drive.

    Raises:
        NotFoundError: company does not exist
        ValidationError: deadline already passed or after the drive date
    """
    now = now or utcnow()

    company = db.query(Company).filter(Company.id == data.company_id).first()
    if not company:
        raise NotFoundError(f"Company {data.company_id} not found. Please add the company first.")

    if data.application_deadline <= now:
        raise ValidationError("Application deadline must be in the future")
    if data.application_deadline > data.drive_date:
        raise ValidationError("Application deadline must not be after the drive date")

    criteria = data.eligibility_criteria
    drive = Drive(
        company_id=company.id,
        job_role=data.job_role,
        job_description=data.job_description,
        job_type=data.job_type.value,
        package=data.package,
        location=data.location,
        application_deadline=data.application_deadline,
        drive_date=data.drive_date,
        min_cgpa=criteria.min_cgpa,
        allowed_departments=sorted(set(criteria.allowed_departments)),
        max_backlogs=criteria.max_backlogs,
        graduation_years=sorted(set(criteria.graduation_years)),
        status=DriveStatus.ACTIVE.value,
        created_by=actor.id,
    )
    with transaction(db):
        db.add(drive)
    db.refresh(drive)

    logger.info(
        f"Drive created: drive_id={drive.id}, company_id={company.id}, "
        f"role='{drive.job_role}', deadline={drive.application_deadline.isoformat()}, actor_id={actor.id}"
    )
    return drive


# Drive columns that must keep a value
_REQUIRED_DRIVE_FIELDS = ("job_role", "job_type", "package", "application_deadline", "drive_date", "eligibility_criteria")


def update_drive(db: Session, drive_id: int, data: DriveUpdate, actor: User, now: Optional[datetime] = None) -> Drive:
    """
    Edit an ACTIVE drive in place.

    A changed deadline must still be in the future, and the resulting
    deadline must not be after the resulting drive date. Eligibility
    criteria, when given, replace the drive's criteria as a whole; existing
    applications are not re-evaluated.

    Raises:
        NotFoundError: drive does not exist
        InvalidStateError: drive is CLOSED or CANCELLED
        ValidationError: a required field cleared, or the dates are inconsistent
    """
    now = now or utcnow()
    changes = data.model_dump(exclude_unset=True)
    cleared = [name for name in _REQUIRED_DRIVE_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ValidationError("Required drive fields cannot be cleared", fields=cleared)

    with transaction(db):
        drive = get_drive(db, drive_id, for_update=True)
        if drive.status != DriveStatus.ACTIVE.value:
            raise InvalidStateError(
                f"Drive {drive_id} is {drive.status} and can no longer be edited",
                driveStatus=drive.status,
            )

        deadline = data.application_deadline or drive.application_deadline
        drive_date = data.drive_date or drive.drive_date
        if data.application_deadline is not None and deadline <= now:
            raise ValidationError("Application deadline must be in the future")
        if deadline > drive_date:
            raise ValidationError("Application deadline must not be after the drive date")

        for name in ("job_role", "job_description", "package", "location", "application_deadline", "drive_date"):
            if name in changes:
                setattr(drive, name, changes[name])
        if data.job_type is not None:
            drive.job_type = data.job_type.value
        if data.eligibility_criteria is not None:
            criteria = data.eligibility_criteria
            drive.min_cgpa = criteria.min_cgpa
            drive.allowed_departments = sorted(set(criteria.allowed_departments))
            drive.max_backlogs = criteria.max_backlogs
            drive.graduation_years = sorted(set(criteria.graduation_years))
    db.refresh(drive)

    logger.info(f"Drive updated: drive_id={drive_id}, fields={sorted(changes)}, actor_id={actor.id}")
    return drive


def _end_drive(db: Session, drive_id: int, new_status: DriveStatus, actor: User, now: Optional[datetime]) -> Drive:
    now = now or utcnow()
    with transaction(db):
        drive = get_drive(db, drive_id, for_update=True)
        if drive.status != DriveStatus.ACTIVE.value:
            raise InvalidStateError(
                f"Drive {drive_id} is already {drive.status}",
                driveStatus=drive.status,
            )
        drive.status = new_status.value
        drive.closed_at = now
        drive.closed_by = actor.id
    db.refresh(drive)

    logger.info(f"Drive {new_status.value.lower()}: drive_id={drive_id}, actor_id={actor.id}")
    return drive


def close_drive(db: Session, drive_id: int, actor: User, now: Optional[datetime] = None) -> Drive:
    return _end_drive(db, drive_id, DriveStatus.CLOSED, actor, now)


def cancel_drive(db: Session, drive_id: int, actor: User, now: Optional[datetime] = None) -> Drive:
    return _end_drive(db, drive_id, DriveStatus.CANCELLED, actor, now)


def close_expired_drives(db: Session, now: Optional[datetime] = None) -> int:
    """
    Deadline sweep: mark ACTIVE drives whose deadline has passed as CLOSED.

    Returns:
        Number of drives closed
    """
    now = now or utcnow()
    with transaction(db):
        closed = (
            db.query(Drive)
            .filter(
                Drive.status == DriveStatus.ACTIVE.value,
                Drive.application_deadline <= now,
            )
            .update(
                {Drive.status: DriveStatus.CLOSED.value, Drive.closed_at: now},
                synchronize_session=False,
            )
        )

    if closed:
        logger.info(f"Deadline sweep closed {closed} drive(s)")
    return closed
