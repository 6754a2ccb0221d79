"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.user import User, UserRole, ProfileStatus
from app.db.models.company import Company
from app.db.models.drive import Drive, DriveStatus, JobType
from app.db.models.application import Application, ApplicationStatus, ApplicationStatusHistory

# Explicitly export all models for clarity
__all__ = [
    "User",
    "UserRole",
    "ProfileStatus",
    "Company",
    "Drive",
    "DriveStatus",
    "JobType",
    "Application",
    "ApplicationStatus",
    "ApplicationStatusHistory",
]
