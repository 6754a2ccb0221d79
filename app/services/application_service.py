"""
Application lifecycle: apply, status updates, bulk updates and withdrawal.

State machine:

    APPLIED     -> SHORTLISTED | REJECTED | WITHDRAWN
    SHORTLISTED -> SELECTED    | REJECTED | WITHDRAWN
    SELECTED, REJECTED, WITHDRAWN are terminal.

Uniqueness of the live application per (drive, student) is enforced by the
partial unique index uq_applications_active_pair, never by a read before
the insert. Status updates run read-validate-write in one transaction and
the write is a compare-and-set on the status that was read.

Notifications are sent only after commit and their outcome never affects
the transition.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.clock import utcnow
from app.core.errors import (
    AuthorizationError,
    DuplicateApplicationError,
    EligibilityError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PortalError,
    ValidationError,
)
from app.db.models.application import Application, ApplicationStatus, ApplicationStatusHistory
from app.db.models.user import User, UserRole
from app.db.session import transaction
from app.services.drive_service import get_drive, is_drive_open
from app.services.eligibility_service import attributes_from_student, criteria_from_drive, evaluate
from app.services.notification_service import (
    DispatchResult,
    Notification,
    NotificationDispatcher,
    NotificationKind,
    safe_dispatch,
)
from app.services.user_service import get_student

logger = logging.getLogger(__name__)


TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.APPLIED: frozenset({
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.SHORTLISTED: frozenset({
        ApplicationStatus.SELECTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }),
}

TERMINAL_STATUSES = frozenset({
    ApplicationStatus.SELECTED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})

# Targets reachable through update_status(); WITHDRAWN only through withdraw()
STAFF_TARGETS = frozenset({
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.SELECTED,
    ApplicationStatus.REJECTED,
})

WITHDRAWABLE_STATUSES = frozenset({ApplicationStatus.APPLIED, ApplicationStatus.SHORTLISTED})


@dataclass
class StatusUpdateResult:
    application: Application
    notification: Optional[DispatchResult] = None


@dataclass
class BulkItemResult:
    application_id: int
    success: bool
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    email_sent: Optional[bool] = None


@dataclass
class BulkUpdateResult:
    updated_count: int = 0
    failed_count: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    per_item: List[BulkItemResult] = field(default_factory=list)


def is_valid_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def _get_application(db: Session, application_id: int, for_update: bool = False) -> Application:
    query = db.query(Application).filter(Application.id == application_id)
    if for_update:
        query = query.with_for_update()
    application = query.first()
    if not application:
        raise NotFoundError(f"Application {application_id} not found")
    return application


def _record_transition(
    db: Session,
    application: Application,
    current: ApplicationStatus,
    new: ApplicationStatus,
    actor_id: int,
    actor_role: str,
    now: datetime,
    comment: Optional[str] = None,
    current_round: Optional[str] = None,
) -> None:
    """Compare-and-set the status and append the history entry (caller owns the transaction)."""
    values = {Application.status: new.value, Application.last_updated: now}
    if current_round is not None:
        values[Application.current_round] = current_round
    if comment is not None:
        values[Application.feedback] = comment

    updated = (
        db.query(Application)
        .filter(Application.id == application.id, Application.status == current.value)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        raise InvalidStateError(
            f"Application {application.id} was modified concurrently, please retry",
            applicationId=application.id,
        )

    db.add(ApplicationStatusHistory(
        application_id=application.id,
        status=new.value,
        actor_id=actor_id,
        actor_role=actor_role,
        comment=comment,
        created_at=now,
    ))


# ============ STUDENT OPERATIONS ============

def apply(db: Session, student_id: int, drive_id: int, now: Optional[datetime] = None) -> Application:
    """
    Create an APPLIED application for (drive, student).

    Raises:
        NotFoundError: unknown drive or student
        InvalidStateError: drive closed, cancelled or past its deadline
        EligibilityError: student fails the drive's criteria
        DuplicateApplicationError: a non-withdrawn application already exists
    """
    now = now or utcnow()

    drive = get_drive(db, drive_id)
    if not is_drive_open(drive, now):
        raise InvalidStateError(
            "This drive is not accepting applications",
            driveId=drive_id,
            driveStatus=drive.status,
        )

    student = get_student(db, student_id)
    result = evaluate(attributes_from_student(student), criteria_from_drive(drive))
    if not result.eligible:
        logger.warning(
            f"Apply rejected, not eligible: student_id={student_id}, drive_id={drive_id}, "
            f"reasons={result.reason_codes()}"
        )
        raise EligibilityError("You do not meet the eligibility criteria for this drive", result.reason_codes())

    application = Application(
        drive_id=drive_id,
        student_id=student_id,
        status=ApplicationStatus.APPLIED.value,
        applied_at=now,
        last_updated=now,
    )
    application.status_history.append(ApplicationStatusHistory(
        status=ApplicationStatus.APPLIED.value,
        actor_id=student_id,
        actor_role=UserRole.STUDENT.value,
        created_at=now,
    ))

    # The insert is the duplicate check: the partial unique index rejects a second live row
    try:
        with transaction(db):
            db.add(application)
            db.flush()
    except IntegrityError as e:
        logger.warning(f"Duplicate application rejected: student_id={student_id}, drive_id={drive_id}")
        raise DuplicateApplicationError(
            "You have already applied to this drive",
            driveId=drive_id,
        ) from e

    db.refresh(application)
    logger.info(f"Application created: application_id={application.id}, student_id={student_id}, drive_id={drive_id}")
    return application


def withdraw(db: Session, application_id: int, student_id: int, now: Optional[datetime] = None) -> Application:
    """
    Withdraw an application on behalf of its owner.

    Raises:
        NotFoundError: unknown application
        AuthorizationError: caller does not own the application
        InvalidStateError: application is not APPLIED or SHORTLISTED
    """
    now = now or utcnow()
    with transaction(db):
        application = _get_application(db, application_id, for_update=True)
        if application.student_id != student_id:
            raise AuthorizationError("You can only withdraw your own applications")

        current = ApplicationStatus(application.status)
        if current not in WITHDRAWABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot withdraw an application that is {current.value}",
                applicationStatus=current.value,
            )

        _record_transition(
            db, application, current, ApplicationStatus.WITHDRAWN,
            actor_id=student_id, actor_role=UserRole.STUDENT.value, now=now,
        )

    db.refresh(application)
    logger.info(f"Application withdrawn: application_id={application_id}, student_id={student_id}")
    return application


def list_student_applications(db: Session, student_id: int) -> List[Application]:
    return (
        db.query(Application)
        .options(joinedload(Application.drive))
        .filter(Application.student_id == student_id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )


# ============ STAFF OPERATIONS ============

def _status_notification(application: Application, comment: Optional[str]) -> Notification:
    student = application.student
    drive = application.drive
    return Notification(
        kind=NotificationKind.APPLICATION_STATUS_CHANGED,
        recipient=student.email,
        recipient_name=student.full_name,
        context={
            "application_id": application.id,
            "status": application.status,
            "job_role": drive.job_role,
            "company_name": drive.company.name if drive.company else "",
            "current_round": application.current_round,
            "comment": comment,
        },
    )


def update_status(
    db: Session,
    application_id: int,
    new_status: ApplicationStatus,
    actor: User,
    comment: Optional[str] = None,
    current_round: Optional[str] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> StatusUpdateResult:
    """
    Move one application along the state machine (TPO only).

    Validation order: target never reachable here -> InvalidTransitionError;
    current status terminal -> InvalidStateError; edge missing ->
    InvalidTransitionError.
    """
    try:
        new_status = ApplicationStatus(new_status)
    except ValueError:
        raise ValidationError(f"Unknown application status: {new_status}")
    if new_status not in STAFF_TARGETS:
        raise InvalidTransitionError(
            f"Applications cannot be moved to {new_status.value} by a status update",
            targetStatus=new_status.value,
        )
    if actor.role != UserRole.TPO.value:
        raise AuthorizationError("Only the placement office can update application status")

    now = now or utcnow()
    with transaction(db):
        application = _get_application(db, application_id, for_update=True)
        current = ApplicationStatus(application.status)
        if current in TERMINAL_STATUSES:
            raise InvalidStateError(
                f"Application {application_id} is {current.value} and can no longer change",
                applicationStatus=current.value,
            )
        if not is_valid_transition(current, new_status):
            raise InvalidTransitionError(
                f"Cannot move application from {current.value} to {new_status.value}",
                fromStatus=current.value,
                targetStatus=new_status.value,
            )

        _record_transition(
            db, application, current, new_status,
            actor_id=actor.id, actor_role=actor.role, now=now,
            comment=comment, current_round=current_round,
        )

    db.refresh(application)
    logger.info(
        f"Application status updated: application_id={application_id}, "
        f"{current.value} -> {new_status.value}, actor_id={actor.id}"
    )

    notification = safe_dispatch(dispatcher, lambda: _status_notification(application, comment))
    if notification is not None and not notification.success:
        logger.warning(f"Status email not delivered: application_id={application_id}, recipient={notification.recipient}")

    return StatusUpdateResult(application=application, notification=notification)


def bulk_update_status(
    db: Session,
    application_ids: Sequence[int],
    new_status: ApplicationStatus,
    actor: User,
    comment: Optional[str] = None,
    current_round: Optional[str] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> BulkUpdateResult:
    """
    Apply update_status() to each id independently, in input order.

    A failing id is recorded and skipped; earlier and later ids are not
    affected. Only malformed input for the whole call raises.
    """
    if not application_ids:
        raise ValidationError("Please provide application IDs")
    try:
        new_status = ApplicationStatus(new_status)
    except ValueError:
        raise ValidationError(f"Unknown application status: {new_status}")
    if actor.role != UserRole.TPO.value:
        raise AuthorizationError("Only the placement office can update application status")

    result = BulkUpdateResult()
    for application_id in application_ids:
        try:
            outcome = update_status(
                db, application_id, new_status, actor,
                comment=comment, current_round=current_round,
                dispatcher=dispatcher, now=now,
            )
        except PortalError as e:
            logger.warning(f"Bulk update item failed: application_id={application_id}, error={e.error_code}: {e.message}")
            result.failed_count += 1
            result.per_item.append(BulkItemResult(
                application_id=application_id,
                success=False,
                error=e.error_code,
                message=e.message,
            ))
            continue

        result.updated_count += 1
        email_sent = None
        if outcome.notification is not None:
            email_sent = outcome.notification.success
            if email_sent:
                result.emails_sent += 1
            else:
                result.emails_failed += 1
        result.per_item.append(BulkItemResult(
            application_id=application_id,
            success=True,
            status=outcome.application.status,
            email_sent=email_sent,
        ))

    logger.info(
        f"Bulk status update: target={new_status.value}, updated={result.updated_count}, "
        f"failed={result.failed_count}, emails_sent={result.emails_sent}, "
        f"emails_failed={result.emails_failed}, actor_id={actor.id}"
    )
    return result


def get_application(db: Session, application_id: int, actor: User) -> Application:
    """
    Fetch one application with its history.

    Students see their own applications, HODs those of their department,
    the TPO all of them.
    """
    application = _get_application(db, application_id)
    if actor.role == UserRole.TPO.value:
        return application
    if actor.role == UserRole.STUDENT.value and application.student_id == actor.id:
        return application
    if actor.role == UserRole.HOD.value and application.student.department == actor.department:
        return application
    raise AuthorizationError("You are not allowed to view this application")


def list_drive_applications(
    db: Session,
    drive_id: int,
    status: Optional[ApplicationStatus] = None,
) -> List[Application]:
    """Applications for one drive, oldest first (TPO view)."""
    get_drive(db, drive_id)
    query = (
        db.query(Application)
        .options(joinedload(Application.student))
        .filter(Application.drive_id == drive_id)
    )
    if status:
        query = query.filter(Application.status == ApplicationStatus(status).value)
    return query.order_by(Application.applied_at.asc(), Application.id.asc()).all()
