"""
Student lookups shared by the drive, application and approval services,
plus the student's own profile editing.
"""
import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import InvalidStateError, NotFoundError, ValidationError
from app.db.models.user import User, UserRole, ProfileStatus
from app.db.session import transaction

logger = logging.getLogger(__name__)

# Columns that may not be cleared once set
_REQUIRED_PROFILE_FIELDS = ("full_name", "backlogs")


def get_student(db: Session, student_id: int, for_update: bool = False) -> User:
    """Fetch a STUDENT row; any other role counts as not found."""
    query = db.query(User).filter(User.id == student_id, User.role == UserRole.STUDENT.value)
    if for_update:
        query = query.with_for_update()
    student = query.first()
    if not student:
        raise NotFoundError(f"Student {student_id} not found")
    return student


def update_profile(db: Session, student_id: int, changes: Dict[str, Any]) -> User:
    """
    Apply a student's edits to their own academic profile.

    Only an INCOMPLETE profile can be edited. profile_status itself is
    never touched here.

    Raises:
        InvalidStateError: profile already submitted or reviewed
        ValidationError: a required field cleared, or roll number taken
    """
    cleared = [name for name in _REQUIRED_PROFILE_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ValidationError("Required profile fields cannot be cleared", fields=cleared)

    try:
        with transaction(db):
            student = get_student(db, student_id, for_update=True)
            if student.profile_status != ProfileStatus.INCOMPLETE.value:
                raise InvalidStateError(
                    f"Profile is {student.profile_status} and can no longer be edited",
                    profileStatus=student.profile_status,
                )
            for name, value in changes.items():
                setattr(student, name, value)
    except IntegrityError as e:
        logger.warning(f"Profile update rejected: student_id={student_id}, roll_number taken")
        raise ValidationError("Roll number is already registered to another student") from e
    db.refresh(student)

    logger.info(f"Profile updated: student_id={student_id}, fields={sorted(changes)}")
    return student
