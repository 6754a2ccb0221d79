import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Boolean, ForeignKey, Text, Index
from sqlalchemy.sql import func
from app.db.base import Base


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    HOD = "HOD"
    TPO = "TPO"


class ProfileStatus(str, enum.Enum):
    """HOD approval state of a student profile."""
    INCOMPLETE = "INCOMPLETE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(Base):
    """
    Portal account. Students, HODs and the TPO share this table; the
    academic columns are only meaningful for role STUDENT.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String(16), nullable=False, index=True)
    department = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Student academic profile
    roll_number = Column(String, unique=True, nullable=True)
    cgpa = Column(Numeric(4, 2), nullable=True)  # 0.00 - 10.00, NULL until filled
    backlogs = Column(Integer, default=0, nullable=False)
    graduation_year = Column(Integer, nullable=True)

    # Approval gate, mutated only by approval_service
    profile_status = Column(String(16), default=ProfileStatus.INCOMPLETE.value, nullable=False)
    submitted_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_users_role_department_status", "role", "department", "profile_status"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, role={self.role}, email='{self.email}')>"
