"""
Application model and its append-only status history.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.db.base import Base


class ApplicationStatus(str, enum.Enum):
    APPLIED = "APPLIED"
    SHORTLISTED = "SHORTLISTED"
    SELECTED = "SELECTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# Rows with any other status count towards the one-live-application-per-pair rule
ACTIVE_PAIR_PREDICATE = text("status != 'WITHDRAWN'")


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    drive_id = Column(Integer, ForeignKey("drives.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(16), default=ApplicationStatus.APPLIED.value, nullable=False, index=True)
    current_round = Column(String(255), nullable=True)
    feedback = Column(Text, nullable=True)
    applied_at = Column(DateTime, nullable=False)
    last_updated = Column(DateTime, nullable=False)

    drive = relationship("Drive")
    student = relationship("User")
    status_history = relationship(
        "ApplicationStatusHistory",
        back_populates="application",
        order_by="ApplicationStatusHistory.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # At most one non-withdrawn application per (drive, student)
        Index(
            "uq_applications_active_pair",
            "drive_id",
            "student_id",
            unique=True,
            postgresql_where=ACTIVE_PAIR_PREDICATE,
            sqlite_where=ACTIVE_PAIR_PREDICATE,
        ),
        Index("idx_applications_student_status", "student_id", "status"),
    )

    def __repr__(self):
        return f"<Application(id={self.id}, drive_id={self.drive_id}, student_id={self.student_id}, status={self.status})>"


class ApplicationStatusHistory(Base):
    __tablename__ = "application_status_history"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    actor_role = Column(String(16), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)

    application = relationship("Application", back_populates="status_history")
