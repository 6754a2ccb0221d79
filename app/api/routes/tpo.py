"""
Placement office endpoints: companies, drive administration and
per-drive application lists.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models.application import ApplicationStatus
from app.db.models.drive import DriveStatus
from app.db.models.user import User, UserRole
from app.core.auth_dependency import require_role
from app.schemas.application import ApplicationListResponse, ApplicationResponse
from app.schemas.drive import (
    CloseExpiredResponse,
    CompanyCreate,
    CompanyEnvelope,
    CompanyListResponse,
    CompanyResponse,
    DriveCreate,
    DriveEnvelope,
    DriveListResponse,
    DriveResponse,
    DriveUpdate,
)
from app.services import application_service, drive_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tpo", tags=["TPO"])

require_tpo = require_role(UserRole.TPO)


# ============ COMPANIES ============

@router.post("/companies", status_code=status.HTTP_201_CREATED, response_model=CompanyEnvelope)
def add_company(
    payload: CompanyCreate,
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    company = drive_service.create_company(db, payload)
    return CompanyEnvelope(company=CompanyResponse.model_validate(company))


@router.get("/companies", response_model=CompanyListResponse)
def list_companies(
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    companies = drive_service.list_companies(db)
    return CompanyListResponse(companies=[CompanyResponse.model_validate(c) for c in companies])


# ============ DRIVES ============

@router.post("/drives", status_code=status.HTTP_201_CREATED, response_model=DriveEnvelope)
def create_drive(
    payload: DriveCreate,
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    drive = drive_service.create_drive(db, payload, user)
    return DriveEnvelope(drive=DriveResponse.from_drive(drive))


@router.get("/drives", response_model=DriveListResponse)
def list_drives(
    drive_status: Optional[DriveStatus] = Query(None, alias="status", description="Filter by drive status"),
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    drives = drive_service.list_drives(db, status=drive_status)
    return DriveListResponse(drives=[DriveResponse.from_drive(d) for d in drives])


@router.put("/drives/{drive_id}", response_model=DriveEnvelope)
def update_drive(
    drive_id: int,
    payload: DriveUpdate,
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    """Edit an ACTIVE drive. Omitted fields are left unchanged."""
    drive = drive_service.update_drive(db, drive_id, payload, user)
    return DriveEnvelope(drive=DriveResponse.from_drive(drive))


@router.post("/drives/close-expired", response_model=CloseExpiredResponse)
def close_expired_drives(
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    """Close every ACTIVE drive whose application deadline has passed."""
    closed = drive_service.close_expired_drives(db)
    return CloseExpiredResponse(closed_count=closed)


@router.post("/drives/{drive_id}/close", response_model=DriveEnvelope)
def close_drive(
    drive_id: int,
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    drive = drive_service.close_drive(db, drive_id, user)
    return DriveEnvelope(drive=DriveResponse.from_drive(drive))


@router.post("/drives/{drive_id}/cancel", response_model=DriveEnvelope)
def cancel_drive(
    drive_id: int,
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    drive = drive_service.cancel_drive(db, drive_id, user)
    return DriveEnvelope(drive=DriveResponse.from_drive(drive))


@router.get("/drives/{drive_id}/applications", response_model=ApplicationListResponse)
def get_drive_applications(
    drive_id: int,
    application_status: Optional[ApplicationStatus] = Query(None, alias="status", description="Filter by application status"),
    user: User = Depends(require_tpo),
    db: Session = Depends(get_db)
):
    applications = application_service.list_drive_applications(db, drive_id, status=application_status)
    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in applications]
    )
