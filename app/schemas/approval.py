"""
Pydantic schemas for profile approval endpoints.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import Field, field_validator

from app.db.models.user import ProfileStatus
from app.schemas.common import CamelModel, CgpaValue


class PendingStudentResponse(CamelModel):
    id: int
    full_name: str
    email: str
    roll_number: Optional[str] = None
    department: Optional[str] = None
    cgpa: Optional[CgpaValue] = None
    backlogs: int = 0
    graduation_year: Optional[int] = None
    profile_status: ProfileStatus
    submitted_at: Optional[datetime] = None


class PendingApprovalsResponse(CamelModel):
    students: List[PendingStudentResponse]


class RejectRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=2000, description="Shown to the student")


class ApprovalResponse(CamelModel):
    success: bool = True
    student_id: int
    profile_status: ProfileStatus
    changed: bool = Field(..., description="False when the call was an idempotent no-op")


class StudentProfileResponse(PendingStudentResponse):
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class StudentProfileEnvelope(CamelModel):
    success: bool = True
    profile: StudentProfileResponse


class StudentProfileUpdate(CamelModel):
    """Editable academic fields. Omitted fields are left unchanged."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    roll_number: Optional[str] = Field(None, min_length=1, max_length=64)
    department: Optional[str] = Field(None, min_length=1, max_length=255)
    cgpa: Optional[CgpaValue] = Field(None, ge=0, le=10, decimal_places=2, description="0.00 - 10.00")
    backlogs: Optional[int] = Field(None, ge=0, description="Active backlogs")
    graduation_year: Optional[int] = Field(None, ge=1950, le=2100)

    @field_validator("full_name", "roll_number", "department")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Must not be blank")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "department": "Computer Science",
                "cgpa": 8.4,
                "backlogs": 0,
                "graduationYear": 2026
            }
        }
