"""
HOD profile approval workflow.

    INCOMPLETE --submit--> PENDING --approve--> APPROVED
                                   --reject---> REJECTED

APPROVED and REJECTED are terminal. approve() on an APPROVED profile and
reject() on a REJECTED one are idempotent no-ops. This is the only module
that writes User.profile_status.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import AuthorizationError, InvalidStateError, ValidationError
from app.db.models.user import User, UserRole, ProfileStatus
from app.db.session import transaction
from app.services.notification_service import (
    DispatchResult,
    Notification,
    NotificationDispatcher,
    NotificationKind,
    safe_dispatch,
)
from app.services.user_service import get_student

logger = logging.getLogger(__name__)


@dataclass
class ApprovalResult:
    student: User
    changed: bool
    notification: Optional[DispatchResult] = None


def _ensure_reviewer(actor: User, student: User) -> None:
    """HODs review their own department only; the TPO may review any."""
    if actor.role == UserRole.TPO.value:
        return
    if actor.role != UserRole.HOD.value:
        raise AuthorizationError("Only an HOD or the placement office can review profiles")
    if not actor.department:
        raise AuthorizationError("Your HOD account has no department assigned")
    if actor.department != student.department:
        raise AuthorizationError("Student is not in your department")


def list_pending(db: Session, department: Optional[str] = None) -> List[User]:
    """PENDING student profiles, oldest submission first."""
    query = db.query(User).filter(
        User.role == UserRole.STUDENT.value,
        User.profile_status == ProfileStatus.PENDING.value,
    )
    if department is not None:
        query = query.filter(User.department == department)
    return query.order_by(User.submitted_at.asc(), User.id.asc()).all()


def submit_for_approval(db: Session, student_id: int, now: Optional[datetime] = None) -> ApprovalResult:
    """
    Send a completed profile to the HOD for review (INCOMPLETE -> PENDING).

    PENDING is a no-op. Reviewed profiles cannot be resubmitted.
    """
    now = now or utcnow()
    with transaction(db):
        student = get_student(db, student_id, for_update=True)
        status = ProfileStatus(student.profile_status)

        if status == ProfileStatus.PENDING:
            return ApprovalResult(student=student, changed=False)
        if status != ProfileStatus.INCOMPLETE:
            raise InvalidStateError(
                f"Profile is already {status.value}",
                profileStatus=status.value,
            )

        missing = [
            name for name, value in (
                ("department", student.department),
                ("cgpa", student.cgpa),
                ("graduationYear", student.graduation_year),
            )
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError("Profile is incomplete", missingFields=missing)

        student.profile_status = ProfileStatus.PENDING.value
        student.submitted_at = now

    db.refresh(student)
    logger.info(f"Profile submitted for approval: student_id={student_id}, department={student.department}")
    return ApprovalResult(student=student, changed=True)


def approve(
    db: Session,
    student_id: int,
    actor: User,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> ApprovalResult:
    """
    Approve a PENDING profile.

    Raises:
        NotFoundError: unknown student
        AuthorizationError: actor may not review this student
        InvalidStateError: profile is REJECTED or was never submitted
    """
    now = now or utcnow()
    with transaction(db):
        student = get_student(db, student_id, for_update=True)
        _ensure_reviewer(actor, student)
        status = ProfileStatus(student.profile_status)

        if status == ProfileStatus.APPROVED:
            logger.debug(f"Approve is a no-op, already approved: student_id={student_id}")
            return ApprovalResult(student=student, changed=False)
        if status != ProfileStatus.PENDING:
            raise InvalidStateError(
                f"Cannot approve a profile that is {status.value}",
                profileStatus=status.value,
            )

        student.profile_status = ProfileStatus.APPROVED.value
        student.reviewed_by = actor.id
        student.reviewed_at = now
        student.rejection_reason = None

    db.refresh(student)
    logger.info(f"Student approved: student_id={student_id}, actor_id={actor.id}")

    notification = safe_dispatch(dispatcher, lambda: Notification(
        kind=NotificationKind.PROFILE_APPROVED,
        recipient=student.email,
        recipient_name=student.full_name,
    ))
    return ApprovalResult(student=student, changed=True, notification=notification)


def reject(
    db: Session,
    student_id: int,
    actor: User,
    reason: str,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
) -> ApprovalResult:
    """
    Reject a PENDING profile, recording the reason.

    Raises:
        NotFoundError: unknown student
        AuthorizationError: actor may not review this student
        InvalidStateError: profile is APPROVED or was never submitted
    """
    if not reason or not reason.strip():
        raise ValidationError("A rejection reason is required")
    reason = reason.strip()
    now = now or utcnow()
    with transaction(db):
        student = get_student(db, student_id, for_update=True)
        _ensure_reviewer(actor, student)
        status = ProfileStatus(student.profile_status)

        if status == ProfileStatus.REJECTED:
            logger.debug(f"Reject is a no-op, already rejected: student_id={student_id}")
            return ApprovalResult(student=student, changed=False)
        if status != ProfileStatus.PENDING:
            raise InvalidStateError(
                f"Cannot reject a profile that is {status.value}",
                profileStatus=status.value,
            )

        student.profile_status = ProfileStatus.REJECTED.value
        student.reviewed_by = actor.id
        student.reviewed_at = now
        student.rejection_reason = reason

    db.refresh(student)
    logger.info(f"Student rejected: student_id={student_id}, actor_id={actor.id}")

    notification = safe_dispatch(dispatcher, lambda: Notification(
        kind=NotificationKind.PROFILE_REJECTED,
        recipient=student.email,
        recipient_name=student.full_name,
        context={"reason": reason},
    ))
    return ApprovalResult(student=student, changed=True, notification=notification)
