"""
HOD endpoints for reviewing student profiles.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models.user import User, UserRole
from app.core.auth_dependency import require_role
from app.core.errors import AuthorizationError
from app.schemas.approval import (
    ApprovalResponse,
    PendingApprovalsResponse,
    PendingStudentResponse,
    RejectRequest,
)
from app.services import approval_service
from app.services.notification_service import NotificationDispatcher, get_notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hod", tags=["HOD"])


@router.get("/approvals/pending", response_model=PendingApprovalsResponse)
def get_pending_approvals(
    user: User = Depends(require_role(UserRole.HOD, UserRole.TPO)),
    db: Session = Depends(get_db)
):
    """PENDING profiles; an HOD only sees their own department."""
    department = None
    if user.role == UserRole.HOD.value:
        if not user.department:
            raise AuthorizationError("Your HOD account has no department assigned")
        department = user.department
    students = approval_service.list_pending(db, department=department)
    return PendingApprovalsResponse(
        students=[PendingStudentResponse.model_validate(s) for s in students]
    )


@router.put("/approvals/{student_id}/approve", response_model=ApprovalResponse)
def approve_student(
    student_id: int,
    user: User = Depends(require_role(UserRole.HOD, UserRole.TPO)),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    result = approval_service.approve(db, student_id, user, dispatcher=dispatcher)
    return ApprovalResponse(
        student_id=result.student.id,
        profile_status=result.student.profile_status,
        changed=result.changed,
    )


@router.put("/approvals/{student_id}/reject", response_model=ApprovalResponse)
def reject_student(
    student_id: int,
    payload: RejectRequest,
    user: User = Depends(require_role(UserRole.HOD, UserRole.TPO)),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    result = approval_service.reject(db, student_id, user, payload.reason, dispatcher=dispatcher)
    return ApprovalResponse(
        student_id=result.student.id,
        profile_status=result.student.profile_status,
        changed=result.changed,
    )
