"""
Tests for notification rendering and dispatch helpers.
"""
import smtplib

from app.services.notification_service import (
    LoggingNotificationDispatcher,
    Notification,
    NotificationKind,
    SmtpNotificationDispatcher,
    get_notification_dispatcher,
    render_notification,
    safe_dispatch,
)
from conftest import RecordingDispatcher


def _status_notification(status="SHORTLISTED", **context):
    return Notification(
        kind=NotificationKind.APPLICATION_STATUS_CHANGED,
        recipient="asha@college.edu",
        recipient_name="Asha",
        context={"status": status, "job_role": "Data Analyst", "company_name": "Acme", **context},
    )


def test_render_status_change():
    subject, body = render_notification(_status_notification(current_round="Technical Interview", comment="Well done"))

    assert subject == "Good news! You have been shortlisted"
    assert "Dear Asha," in body
    assert "Data Analyst at Acme is now shortlisted" in body
    assert "Current round: Technical Interview" in body
    assert "Well done" in body


def test_render_does_not_escape_plain_text():
    _, body = render_notification(_status_notification(company_name="Smith & Sons <Ltd>"))

    assert "Smith & Sons <Ltd>" in body


def test_render_profile_rejected_includes_reason():
    notification = Notification(
        kind=NotificationKind.PROFILE_REJECTED,
        recipient="ravi@college.edu",
        context={"reason": "Roll number mismatch"},
    )

    subject, body = render_notification(notification)

    assert subject.startswith("Registration status update")
    assert "Dear Student," in body
    assert "Reason: Roll number mismatch" in body


def test_safe_dispatch_without_dispatcher():
    assert safe_dispatch(None, _status_notification) is None


def test_safe_dispatch_converts_exception():
    result = safe_dispatch(RecordingDispatcher(raise_error=True), _status_notification)

    assert result.success is False
    assert result.recipient == "asha@college.edu"
    assert "unreachable" in result.error


def test_logging_dispatcher_succeeds():
    result = LoggingNotificationDispatcher().dispatch(_status_notification("SELECTED"))

    assert result.success is True


def test_smtp_failure_is_reported(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "Service not available")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    dispatcher = SmtpNotificationDispatcher(host="smtp.invalid")

    result = dispatcher.dispatch(_status_notification())

    assert result.success is False
    assert result.error


def test_dispatcher_selection(monkeypatch):
    from app.core import config

    monkeypatch.setattr(config, "SMTP_HOST", None)
    assert isinstance(get_notification_dispatcher(), LoggingNotificationDispatcher)

    monkeypatch.setattr(config, "SMTP_HOST", "smtp.college.edu")
    dispatcher = get_notification_dispatcher()
    assert isinstance(dispatcher, SmtpNotificationDispatcher)
    assert dispatcher.host == "smtp.college.edu"


def test_safe_dispatch_builds_only_with_dispatcher():
    built = []

    def build():
        built.append(True)
        return _status_notification()

    assert safe_dispatch(None, build) is None
    assert built == []

    dispatcher = RecordingDispatcher()
    result = safe_dispatch(dispatcher, build)

    assert built == [True]
    assert result.success is True
    assert dispatcher.sent[0].recipient == "asha@college.edu"


def test_safe_dispatch_converts_build_failure():
    def build():
        raise LookupError("drive has no company")

    dispatcher = RecordingDispatcher()
    result = safe_dispatch(dispatcher, build)

    assert result.success is False
    assert result.recipient == ""
    assert "no company" in result.error
    assert dispatcher.sent == []
