"""
Pydantic schemas for application endpoints.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import Field

from app.db.models.application import Application, ApplicationStatus
from app.schemas.common import CamelModel


class StatusHistoryEntry(CamelModel):
    status: ApplicationStatus
    actor_id: int
    actor_role: str
    comment: Optional[str] = None
    created_at: datetime = Field(..., description="When the transition was committed")


class ApplicationResponse(CamelModel):
    id: int
    drive_id: int
    student_id: int
    status: ApplicationStatus
    current_round: Optional[str] = None
    feedback: Optional[str] = None
    applied_at: datetime
    last_updated: datetime
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "id": 12,
                "driveId": 3,
                "studentId": 41,
                "status": "SHORTLISTED",
                "currentRound": "Technical Interview",
                "feedback": None,
                "appliedAt": "2026-10-01T10:00:00",
                "lastUpdated": "2026-10-05T14:30:00",
                "statusHistory": [
                    {"status": "APPLIED", "actorId": 41, "actorRole": "STUDENT", "comment": None, "createdAt": "2026-10-01T10:00:00"},
                    {"status": "SHORTLISTED", "actorId": 2, "actorRole": "TPO", "comment": "Cleared the online test", "createdAt": "2026-10-05T14:30:00"}
                ]
            }
        }


class StudentApplicationResponse(ApplicationResponse):
    """Application with a short summary of its drive, for the student's list."""
    job_role: Optional[str] = None
    company_name: Optional[str] = None
    package: Optional[str] = None

    @classmethod
    def from_application(cls, application: Application) -> "StudentApplicationResponse":
        drive = application.drive
        base = ApplicationResponse.model_validate(application).model_dump()
        return cls(
            **base,
            job_role=drive.job_role if drive else None,
            company_name=drive.company.name if drive and drive.company else None,
            package=drive.package if drive else None,
        )


class ApplicationEnvelope(CamelModel):
    application: ApplicationResponse


class ApplicationListResponse(CamelModel):
    applications: List[ApplicationResponse]


class StudentApplicationListResponse(CamelModel):
    applications: List[StudentApplicationResponse]


class WithdrawResponse(CamelModel):
    success: bool = True
    application: ApplicationResponse


class StatusUpdateRequest(CamelModel):
    """Request body for PUT /applications/{id}/status."""
    status: ApplicationStatus
    comment: Optional[str] = Field(None, max_length=2000)
    current_round: Optional[str] = Field(None, max_length=255)


class BulkStatusUpdateRequest(CamelModel):
    """Request body for POST /applications/bulk-update."""
    application_ids: List[int] = Field(..., min_length=1, description="Application IDs, processed in order")
    status: ApplicationStatus
    comment: Optional[str] = Field(None, max_length=2000)
    current_round: Optional[str] = Field(None, max_length=255)


class BulkItemResponse(CamelModel):
    application_id: int
    success: bool
    status: Optional[ApplicationStatus] = None
    error: Optional[str] = None
    message: Optional[str] = None
    email_sent: Optional[bool] = None


class BulkUpdateResponse(CamelModel):
    updated_count: int
    failed_count: int
    emails_sent: int
    emails_failed: int
    per_item: List[BulkItemResponse]
