"""
Unit tests for the eligibility evaluator.
"""
from decimal import Decimal
from types import SimpleNamespace

from app.services.eligibility_service import (
    EligibilityCriteria,
    IneligibilityReason,
    StudentAttributes,
    attributes_from_student,
    criteria_from_drive,
    evaluate,
)


CS_DRIVE = EligibilityCriteria(
    min_cgpa=Decimal("7.0"),
    allowed_departments=frozenset({"CS"}),
)


def test_low_cgpa_is_only_failure():
    result = evaluate(StudentAttributes(cgpa=Decimal("6.5"), department="CS"), CS_DRIVE)

    assert result.eligible is False
    assert result.failing_reasons == {IneligibilityReason.CGPA_TOO_LOW}


def test_wrong_department_is_only_failure():
    result = evaluate(StudentAttributes(cgpa=Decimal("8.0"), department="IT"), CS_DRIVE)

    assert result.eligible is False
    assert result.failing_reasons == {IneligibilityReason.DEPARTMENT_NOT_ALLOWED}


def test_eligible_student():
    result = evaluate(StudentAttributes(cgpa=Decimal("7.0"), department="CS"), CS_DRIVE)

    assert result.eligible is True
    assert result.failing_reasons == frozenset()
    assert result.reason_codes() == []


def test_all_failures_reported():
    """Rules are evaluated independently, nothing short-circuits."""
    criteria = EligibilityCriteria(
        min_cgpa=Decimal("7.5"),
        allowed_departments=frozenset({"CS", "IT"}),
        max_backlogs=0,
        graduation_years=frozenset({2026}),
    )
    student = StudentAttributes(cgpa=Decimal("6.0"), department="Mechanical", backlogs=2, graduation_year=2025)

    result = evaluate(student, criteria)

    assert result.eligible is False
    assert result.reason_codes() == [
        "backlogs_exceeded",
        "cgpa_too_low",
        "department_not_allowed",
        "graduation_year_not_allowed",
    ]


def test_missing_cgpa_replaces_too_low():
    result = evaluate(StudentAttributes(cgpa=None, department="CS"), CS_DRIVE)

    assert result.failing_reasons == {IneligibilityReason.CGPA_MISSING}


def test_missing_cgpa_fails_even_without_minimum():
    result = evaluate(StudentAttributes(cgpa=None, department="CS"), EligibilityCriteria())

    assert result.failing_reasons == {IneligibilityReason.CGPA_MISSING}


def test_empty_sets_mean_no_restriction():
    student = StudentAttributes(cgpa=Decimal("5.0"), department="Civil", graduation_year=2031)

    result = evaluate(student, EligibilityCriteria(min_cgpa=Decimal("5.0")))

    assert result.eligible is True


def test_backlog_limit_is_inclusive():
    criteria = EligibilityCriteria(max_backlogs=2)

    assert evaluate(StudentAttributes(cgpa=Decimal("8"), department="CS", backlogs=2), criteria).eligible
    assert not evaluate(StudentAttributes(cgpa=Decimal("8"), department="CS", backlogs=3), criteria).eligible


def test_evaluation_is_deterministic():
    student = StudentAttributes(cgpa=Decimal("6.9"), department="IT", backlogs=1, graduation_year=2027)
    criteria = EligibilityCriteria(
        min_cgpa=Decimal("7.0"),
        allowed_departments=frozenset({"CS"}),
        graduation_years=frozenset({2026}),
    )

    first = evaluate(student, criteria)
    for _ in range(20):
        assert evaluate(student, criteria) == first


def test_builders_read_model_columns():
    """Floats and JSON lists from the ORM are normalised before comparison."""
    drive = SimpleNamespace(
        min_cgpa=7.1,
        allowed_departments=["CS"],
        max_backlogs=None,
        graduation_years=["2026"],
    )
    student = SimpleNamespace(cgpa=7.1, department="CS", backlogs=None, graduation_year=2026)

    criteria = criteria_from_drive(drive)
    attributes = attributes_from_student(student)

    assert criteria.min_cgpa == Decimal("7.1")
    assert criteria.graduation_years == frozenset({2026})
    assert criteria.max_backlogs == 0
    assert attributes.backlogs == 0
    assert evaluate(attributes, criteria).eligible is True
