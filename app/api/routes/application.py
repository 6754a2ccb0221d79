"""
Application endpoints: student history and withdrawal, TPO status updates.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models.user import User, UserRole
from app.core.auth_dependency import get_current_user, require_role
from app.schemas.application import (
    ApplicationEnvelope,
    ApplicationResponse,
    BulkItemResponse,
    BulkStatusUpdateRequest,
    BulkUpdateResponse,
    StatusUpdateRequest,
    StudentApplicationListResponse,
    StudentApplicationResponse,
    WithdrawResponse,
)
from app.services import application_service
from app.services.notification_service import NotificationDispatcher, get_notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("/my", response_model=StudentApplicationListResponse)
def list_my_applications(
    user: User = Depends(require_role(UserRole.STUDENT)),
    db: Session = Depends(get_db)
):
    applications = application_service.list_student_applications(db, user.id)
    return StudentApplicationListResponse(
        applications=[StudentApplicationResponse.from_application(a) for a in applications]
    )


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_status(
    payload: BulkStatusUpdateRequest,
    user: User = Depends(require_role(UserRole.TPO)),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    """
    Update many applications to one status.

    Each id succeeds or fails on its own; the response carries per-item
    outcomes and email counters.
    """
    result = application_service.bulk_update_status(
        db,
        payload.application_ids,
        payload.status,
        user,
        comment=payload.comment,
        current_round=payload.current_round,
        dispatcher=dispatcher,
    )
    return BulkUpdateResponse(
        updated_count=result.updated_count,
        failed_count=result.failed_count,
        emails_sent=result.emails_sent,
        emails_failed=result.emails_failed,
        per_item=[BulkItemResponse.model_validate(item) for item in result.per_item],
    )


@router.get("/{application_id}", response_model=ApplicationEnvelope)
def get_application(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    application = application_service.get_application(db, application_id, user)
    return ApplicationEnvelope(application=ApplicationResponse.model_validate(application))


@router.delete("/{application_id}", response_model=WithdrawResponse)
def withdraw_application(
    application_id: int,
    user: User = Depends(require_role(UserRole.STUDENT)),
    db: Session = Depends(get_db)
):
    application = application_service.withdraw(db, application_id, user.id)
    return WithdrawResponse(success=True, application=ApplicationResponse.model_validate(application))


@router.put("/{application_id}/status", response_model=ApplicationEnvelope)
def update_application_status(
    application_id: int,
    payload: StatusUpdateRequest,
    user: User = Depends(require_role(UserRole.TPO)),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    result = application_service.update_status(
        db,
        application_id,
        payload.status,
        user,
        comment=payload.comment,
        current_round=payload.current_round,
        dispatcher=dispatcher,
    )
    return ApplicationEnvelope(application=ApplicationResponse.model_validate(result.application))
