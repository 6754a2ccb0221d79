"""
Eligibility evaluation for placement drives.

Pure predicate over a student's academic attributes and a drive's criteria.
No database access happens here; callers build the inputs with
attributes_from_student() / criteria_from_drive().
"""
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Iterable, Optional

from app.db.models.drive import Drive
from app.db.models.user import User


class IneligibilityReason(str, enum.Enum):
    CGPA_MISSING = "cgpa_missing"
    CGPA_TOO_LOW = "cgpa_too_low"
    DEPARTMENT_NOT_ALLOWED = "department_not_allowed"
    BACKLOGS_EXCEEDED = "backlogs_exceeded"
    GRADUATION_YEAR_NOT_ALLOWED = "graduation_year_not_allowed"


@dataclass(frozen=True)
class StudentAttributes:
    cgpa: Optional[Decimal]
    department: Optional[str]
    backlogs: int = 0
    graduation_year: Optional[int] = None


@dataclass(frozen=True)
class EligibilityCriteria:
    """Drive-side constraints. Empty sets mean "no restriction"."""
    min_cgpa: Decimal = Decimal("0")
    allowed_departments: FrozenSet[str] = field(default_factory=frozenset)
    max_backlogs: int = 0
    graduation_years: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    failing_reasons: FrozenSet[IneligibilityReason]

    def reason_codes(self) -> list[str]:
        """Failing reasons as sorted plain strings, for API responses."""
        return sorted(reason.value for reason in self.failing_reasons)


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    # str() keeps 7.1 as 7.1 instead of its binary float expansion
    return Decimal(str(value))


def evaluate(student: StudentAttributes, criteria: EligibilityCriteria) -> EligibilityResult:
    """
    Evaluate every rule independently so that all failures are reported.

    Args:
        student: Academic attributes of the student
        criteria: Drive eligibility criteria

    Returns:
        EligibilityResult; eligible is True iff no rule failed
    """
    reasons = set()

    cgpa = _to_decimal(student.cgpa)
    if cgpa is None:
        reasons.add(IneligibilityReason.CGPA_MISSING)
    elif cgpa < _to_decimal(criteria.min_cgpa):
        reasons.add(IneligibilityReason.CGPA_TOO_LOW)

    if criteria.allowed_departments and student.department not in criteria.allowed_departments:
        reasons.add(IneligibilityReason.DEPARTMENT_NOT_ALLOWED)

    if (student.backlogs or 0) > criteria.max_backlogs:
        reasons.add(IneligibilityReason.BACKLOGS_EXCEEDED)

    if criteria.graduation_years and student.graduation_year not in criteria.graduation_years:
        reasons.add(IneligibilityReason.GRADUATION_YEAR_NOT_ALLOWED)

    return EligibilityResult(eligible=not reasons, failing_reasons=frozenset(reasons))


def attributes_from_student(student: User) -> StudentAttributes:
    return StudentAttributes(
        cgpa=_to_decimal(student.cgpa),
        department=student.department,
        backlogs=student.backlogs or 0,
        graduation_year=student.graduation_year,
    )


def _as_frozenset(values: Optional[Iterable]) -> frozenset:
    return frozenset(values or [])


def criteria_from_drive(drive: Drive) -> EligibilityCriteria:
    return EligibilityCriteria(
        min_cgpa=_to_decimal(drive.min_cgpa) or Decimal("0"),
        allowed_departments=_as_frozenset(drive.allowed_departments),
        max_backlogs=drive.max_backlogs or 0,
        graduation_years=frozenset(int(year) for year in (drive.graduation_years or [])),
    )
