from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models.user import User, UserRole
from app.core.auth_dependency import require_role
from app.schemas.approval import (
    ApprovalResponse,
    StudentProfileEnvelope,
    StudentProfileResponse,
    StudentProfileUpdate,
)
from app.services import approval_service, user_service

router = APIRouter(prefix="/students", tags=["Students"])

require_student = require_role(UserRole.STUDENT)


# ✅ GET OWN PROFILE
@router.get("/me/profile", response_model=StudentProfileEnvelope)
def get_profile(
    user: User = Depends(require_student),
):
    return StudentProfileEnvelope(profile=StudentProfileResponse.model_validate(user))


# ✅ EDIT PROFILE (ONLY BEFORE SUBMISSION)
@router.put("/me/profile", response_model=StudentProfileEnvelope)
def update_profile(
    payload: StudentProfileUpdate,
    user: User = Depends(require_student),
    db: Session = Depends(get_db)
):
    student = user_service.update_profile(db, user.id, payload.model_dump(exclude_unset=True))
    return StudentProfileEnvelope(profile=StudentProfileResponse.model_validate(student))


# ✅ SEND PROFILE TO HOD FOR APPROVAL
@router.post("/me/submit", response_model=ApprovalResponse)
def submit_profile(
    user: User = Depends(require_student),
    db: Session = Depends(get_db)
):
    result = approval_service.submit_for_approval(db, user.id)
    return ApprovalResponse(
        student_id=result.student.id,
        profile_status=result.student.profile_status,
        changed=result.changed,
    )
