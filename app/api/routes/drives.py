"""
Student-facing drive endpoints: open drive listing, drive detail,
eligibility check and apply.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models.user import User, UserRole
from app.core.auth_dependency import get_current_user, require_role, require_approved_student
from app.schemas.application import ApplicationEnvelope, ApplicationResponse
from app.schemas.drive import (
    DriveEnvelope,
    DriveResponse,
    DriveViewResponse,
    EligibilityCheckResponse,
    OpenDriveListResponse,
    StudentProfileSummary,
)
from app.services import application_service, drive_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drives", tags=["Drives"])


@router.get("/active", response_model=OpenDriveListResponse)
def list_active_drives(
    user: User = Depends(require_role(UserRole.STUDENT)),
    db: Session = Depends(get_db)
):
    """Open drives for the calling student, annotated with eligibility and applied flags."""
    views = drive_service.list_open_drives_for(db, user.id)
    return OpenDriveListResponse(drives=[
        DriveViewResponse.from_drive(
            view.drive,
            is_eligible=view.eligibility.eligible,
            failing_reasons=view.eligibility.reason_codes(),
            has_applied=view.has_applied,
        )
        for view in views
    ])


@router.get("/{drive_id}", response_model=DriveEnvelope)
def get_drive(
    drive_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    drive = drive_service.get_drive(db, drive_id)
    return DriveEnvelope(drive=DriveResponse.from_drive(drive))


@router.get("/{drive_id}/eligibility", response_model=EligibilityCheckResponse)
def check_eligibility(
    drive_id: int,
    user: User = Depends(require_role(UserRole.STUDENT)),
    db: Session = Depends(get_db)
):
    drive, student, result = drive_service.check_eligibility(db, user.id, drive_id)
    drive_view = DriveResponse.from_drive(drive)
    return EligibilityCheckResponse(
        drive_id=drive.id,
        is_eligible=result.eligible,
        failing_reasons=result.reason_codes(),
        is_open=drive_service.is_drive_open(drive),
        student_profile=StudentProfileSummary(
            cgpa=student.cgpa,
            department=student.department,
            backlogs=student.backlogs or 0,
            graduation_year=student.graduation_year,
        ),
        drive_requirements=drive_view.eligibility_criteria,
    )


@router.post("/{drive_id}/apply", status_code=status.HTTP_201_CREATED, response_model=ApplicationEnvelope)
def apply_to_drive(
    drive_id: int,
    user: User = Depends(require_approved_student),
    db: Session = Depends(get_db)
):
    application = application_service.apply(db, user.id, drive_id)
    return ApplicationEnvelope(application=ApplicationResponse.model_validate(application))
