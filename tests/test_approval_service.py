"""
Tests for the HOD profile approval workflow.
"""
import pytest

from app.core.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from app.db.models.user import ProfileStatus, UserRole
from app.services import approval_service
from app.services.notification_service import NotificationKind
from conftest import RecordingDispatcher, make_staff, make_student


@pytest.fixture
def hod(db):
    return make_staff(db, UserRole.HOD, department="Computer Science")


def _pending_student(db, **overrides):
    return make_student(db, profile_status=ProfileStatus.PENDING.value, **overrides)


def test_approve_pending_profile(db, hod):
    student = _pending_student(db)
    dispatcher = RecordingDispatcher()

    result = approval_service.approve(db, student.id, hod, dispatcher=dispatcher)

    assert result.changed is True
    assert result.student.profile_status == ProfileStatus.APPROVED.value
    assert result.student.reviewed_by == hod.id
    assert result.student.reviewed_at is not None
    assert [n.kind for n in dispatcher.sent] == [NotificationKind.PROFILE_APPROVED]


def test_approve_is_idempotent(db, hod):
    student = _pending_student(db)
    approval_service.approve(db, student.id, hod)
    dispatcher = RecordingDispatcher()

    again = approval_service.approve(db, student.id, hod, dispatcher=dispatcher)

    assert again.changed is False
    assert again.student.profile_status == ProfileStatus.APPROVED.value
    assert dispatcher.sent == []


def test_reject_records_reason(db, hod):
    student = _pending_student(db)
    dispatcher = RecordingDispatcher()

    result = approval_service.reject(db, student.id, hod, "  Marksheet missing  ", dispatcher=dispatcher)

    assert result.changed is True
    assert result.student.profile_status == ProfileStatus.REJECTED.value
    assert result.student.rejection_reason == "Marksheet missing"
    assert dispatcher.sent[0].context == {"reason": "Marksheet missing"}


def test_reject_is_idempotent(db, hod):
    student = _pending_student(db)
    approval_service.reject(db, student.id, hod, "Marksheet missing")

    again = approval_service.reject(db, student.id, hod, "Different reason")

    assert again.changed is False
    assert again.student.rejection_reason == "Marksheet missing"


def test_reject_approved_profile_fails(db, hod):
    student = _pending_student(db)
    approval_service.approve(db, student.id, hod)

    with pytest.raises(InvalidStateError):
        approval_service.reject(db, student.id, hod, "Changed my mind")


def test_approve_rejected_profile_fails(db, hod):
    student = _pending_student(db)
    approval_service.reject(db, student.id, hod, "Duplicate account")

    with pytest.raises(InvalidStateError):
        approval_service.approve(db, student.id, hod)


def test_incomplete_profile_cannot_be_reviewed(db, hod):
    student = make_student(db, profile_status=ProfileStatus.INCOMPLETE.value)

    with pytest.raises(InvalidStateError):
        approval_service.approve(db, student.id, hod)
    with pytest.raises(InvalidStateError):
        approval_service.reject(db, student.id, hod, "Incomplete")


def test_blank_reason_rejected(db, hod):
    student = _pending_student(db)

    with pytest.raises(ValidationError):
        approval_service.reject(db, student.id, hod, "   ")


def test_hod_limited_to_own_department(db, hod):
    student = _pending_student(db, department="Mechanical")

    with pytest.raises(AuthorizationError):
        approval_service.approve(db, student.id, hod)


def test_hod_without_department_cannot_review(db):
    hod = make_staff(db, UserRole.HOD, department=None)
    student = _pending_student(db, department=None)

    with pytest.raises(AuthorizationError):
        approval_service.approve(db, student.id, hod)
    with pytest.raises(AuthorizationError):
        approval_service.reject(db, student.id, hod, "Missing documents")
    db.refresh(student)
    assert student.profile_status == ProfileStatus.PENDING.value


def test_tpo_may_review_any_department(db):
    tpo = make_staff(db, UserRole.TPO)
    student = _pending_student(db, department="Mechanical")

    assert approval_service.approve(db, student.id, tpo).changed is True


def test_students_cannot_review(db):
    reviewer = make_student(db)
    student = _pending_student(db)

    with pytest.raises(AuthorizationError):
        approval_service.approve(db, student.id, reviewer)


def test_unknown_student(db, hod):
    with pytest.raises(NotFoundError):
        approval_service.approve(db, 999, hod)
    with pytest.raises(NotFoundError):
        approval_service.approve(db, hod.id, hod)


def test_dispatch_failure_keeps_approval(db, hod):
    student = _pending_student(db)

    result = approval_service.approve(db, student.id, hod, dispatcher=RecordingDispatcher(raise_error=True))

    assert result.notification.success is False
    db.expire_all()
    assert result.student.profile_status == ProfileStatus.APPROVED.value


def test_list_pending_by_department(db):
    cs = _pending_student(db, department="Computer Science")
    mech = _pending_student(db, department="Mechanical")
    make_student(db, department="Computer Science")

    assert [s.id for s in approval_service.list_pending(db, "Computer Science")] == [cs.id]
    assert {s.id for s in approval_service.list_pending(db)} == {cs.id, mech.id}


def test_submit_for_approval(db):
    student = make_student(db, profile_status=ProfileStatus.INCOMPLETE.value)

    result = approval_service.submit_for_approval(db, student.id)
    again = approval_service.submit_for_approval(db, student.id)

    assert result.changed is True
    assert result.student.profile_status == ProfileStatus.PENDING.value
    assert result.student.submitted_at is not None
    assert again.changed is False


def test_submit_incomplete_profile(db):
    student = make_student(db, profile_status=ProfileStatus.INCOMPLETE.value, cgpa=None, graduation_year=None)

    with pytest.raises(ValidationError) as exc_info:
        approval_service.submit_for_approval(db, student.id)

    assert exc_info.value.extra["missingFields"] == ["cgpa", "graduationYear"]


def test_rejected_profile_cannot_resubmit(db, hod):
    student = _pending_student(db)
    approval_service.reject(db, student.id, hod, "Duplicate account")

    with pytest.raises(InvalidStateError):
        approval_service.submit_for_approval(db, student.id)
