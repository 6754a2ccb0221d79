"""
Pydantic schemas for drive and company endpoints.

Wire format is camelCase; attributes are snake_case.
"""
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import Field, field_validator

from app.core.clock import to_naive_utc
from app.db.models.drive import Drive, DriveStatus, JobType
from app.schemas.common import CamelModel, CgpaValue


class EligibilityCriteriaSchema(CamelModel):
    """Drive-side eligibility constraints. Empty lists mean no restriction."""
    min_cgpa: CgpaValue = Field(Decimal("0"), ge=0, le=10, alias="minCGPA", description="Minimum CGPA")
    allowed_departments: List[str] = Field(default_factory=list, description="Allowed departments (empty = all)")
    max_backlogs: int = Field(0, ge=0, description="Maximum active backlogs")
    graduation_years: List[int] = Field(default_factory=list, description="Allowed graduation years (empty = all)")

    @field_validator("allowed_departments")
    @classmethod
    def strip_departments(cls, v: List[str]) -> List[str]:
        cleaned = [department.strip() for department in v]
        if any(not department for department in cleaned):
            raise ValueError("Department names must not be blank")
        return cleaned


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, description="Company name")
    industry: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=512)
    description: Optional[str] = None


class CompanyResponse(CamelModel):
    id: int
    name: str
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


class CompanyEnvelope(CamelModel):
    company: CompanyResponse


class CompanyListResponse(CamelModel):
    companies: List[CompanyResponse]


class DriveCreate(CamelModel):
    """Request body for POST /tpo/drives."""
    company_id: int = Field(..., description="Existing company ID")
    job_role: str = Field(..., min_length=1, max_length=255)
    job_description: Optional[str] = None
    job_type: JobType = Field(JobType.FULL_TIME)
    package: str = Field(..., min_length=1, max_length=255, description="Display string, e.g. '12 LPA'")
    location: Optional[str] = Field(None, max_length=255)
    application_deadline: datetime
    drive_date: datetime
    eligibility_criteria: EligibilityCriteriaSchema = Field(default_factory=EligibilityCriteriaSchema)

    @field_validator("application_deadline", "drive_date")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    class Config:
        json_schema_extra = {
            "example": {
                "companyId": 1,
                "jobRole": "Software Engineer",
                "package": "25 LPA",
                "jobType": "FULL_TIME",
                "location": "Bangalore",
                "applicationDeadline": "2026-11-01T18:00:00Z",
                "driveDate": "2026-11-10T09:00:00Z",
                "eligibilityCriteria": {
                    "minCGPA": 7.0,
                    "allowedDepartments": ["Computer Science", "IT"],
                    "maxBacklogs": 0,
                    "graduationYears": [2026]
                }
            }
        }


class DriveUpdate(CamelModel):
    """Request body for PUT /tpo/drives/{id}. Omitted fields are left unchanged."""
    job_role: Optional[str] = Field(None, min_length=1, max_length=255)
    job_description: Optional[str] = None
    job_type: Optional[JobType] = None
    package: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    application_deadline: Optional[datetime] = None
    drive_date: Optional[datetime] = None
    eligibility_criteria: Optional[EligibilityCriteriaSchema] = None

    @field_validator("application_deadline", "drive_date")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v


class DriveResponse(CamelModel):
    id: int
    company_id: int
    company_name: Optional[str] = None
    job_role: str
    job_description: Optional[str] = None
    job_type: JobType
    package: str
    location: Optional[str] = None
    application_deadline: datetime
    drive_date: datetime
    status: DriveStatus
    eligibility_criteria: EligibilityCriteriaSchema
    closed_at: Optional[datetime] = None

    @classmethod
    def from_drive(cls, drive: Drive, **extra) -> "DriveResponse":
        return cls(
            id=drive.id,
            company_id=drive.company_id,
            company_name=drive.company.name if drive.company else None,
            job_role=drive.job_role,
            job_description=drive.job_description,
            job_type=drive.job_type,
            package=drive.package,
            location=drive.location,
            application_deadline=drive.application_deadline,
            drive_date=drive.drive_date,
            status=drive.status,
            eligibility_criteria=EligibilityCriteriaSchema(
                min_cgpa=drive.min_cgpa if drive.min_cgpa is not None else Decimal("0"),
                allowed_departments=drive.allowed_departments or [],
                max_backlogs=drive.max_backlogs or 0,
                graduation_years=drive.graduation_years or [],
            ),
            closed_at=drive.closed_at,
            **extra,
        )


class DriveEnvelope(CamelModel):
    drive: DriveResponse


class DriveViewResponse(DriveResponse):
    """An open drive annotated for the requesting student."""
    is_eligible: bool
    failing_reasons: List[str] = Field(default_factory=list)
    has_applied: bool


class DriveListResponse(CamelModel):
    drives: List[DriveResponse]


class OpenDriveListResponse(CamelModel):
    drives: List[DriveViewResponse]


class StudentProfileSummary(CamelModel):
    cgpa: Optional[CgpaValue] = None
    department: Optional[str] = None
    backlogs: int = 0
    graduation_year: Optional[int] = None


class EligibilityCheckResponse(CamelModel):
    drive_id: int
    is_eligible: bool
    failing_reasons: List[str]
    is_open: bool
    student_profile: StudentProfileSummary
    drive_requirements: EligibilityCriteriaSchema


class CloseExpiredResponse(CamelModel):
    closed_count: int
