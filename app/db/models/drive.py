"""
Placement drive model.

A drive is one recruitment opportunity (company + role) posted by the TPO.
Drives are never deleted; they leave ACTIVE by being closed or cancelled.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class DriveStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class JobType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    INTERNSHIP = "INTERNSHIP"
    BOTH = "BOTH"


class Drive(Base):
    __tablename__ = "drives"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # ============ ROLE ============
    job_role = Column(String(255), nullable=False)
    job_description = Column(Text, nullable=True)
    job_type = Column(String(16), default=JobType.FULL_TIME.value, nullable=False)
    package = Column(String(255), nullable=False)  # display string, e.g. "12 LPA"
    location = Column(String(255), nullable=True)

    # ============ DATES ============
    application_deadline = Column(DateTime, nullable=False)
    drive_date = Column(DateTime, nullable=False)

    # ============ ELIGIBILITY ============
    min_cgpa = Column(Numeric(4, 2), default=0, nullable=False)
    allowed_departments = Column(JSON, default=list, nullable=False)  # [] = every department
    max_backlogs = Column(Integer, default=0, nullable=False)
    graduation_years = Column(JSON, default=list, nullable=False)  # [] = every year

    # ============ STATUS ============
    status = Column(String(16), default=DriveStatus.ACTIVE.value, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL when closed by the deadline sweep

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    company = relationship("Company")

    __table_args__ = (
        Index("idx_drives_status_deadline", "status", "application_deadline"),
    )

    def __repr__(self):
        return f"<Drive(id={self.id}, company_id={self.company_id}, role='{self.job_role}', status={self.status})>"
