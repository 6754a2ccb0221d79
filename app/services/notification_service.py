"""
Notification dispatch for application and profile transitions.

The lifecycle and approval services call a NotificationDispatcher after a
transition has been committed. Dispatch is best effort: the outcome is only
counted and logged, it never decides whether a transition happens.
"""
import enum
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional

from jinja2 import Environment, DictLoader

from app.core import config

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    APPLICATION_STATUS_CHANGED = "application_status_changed"
    PROFILE_APPROVED = "profile_approved"
    PROFILE_REJECTED = "profile_rejected"


@dataclass
class Notification:
    kind: NotificationKind
    recipient: str
    recipient_name: str = ""
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DispatchResult:
    success: bool
    recipient: str
    error: Optional[str] = None


class NotificationDispatcher(ABC):
    """Abstract base class for notification senders."""

    @abstractmethod
    def dispatch(self, notification: Notification) -> DispatchResult:
        """
        Deliver a notification.

        Implementations may raise; callers treat an exception the same as
        DispatchResult(success=False).
        """
        pass


# Subject and body templates per notification kind
_SUBJECTS = {
    NotificationKind.APPLICATION_STATUS_CHANGED: {
        "SELECTED": "Congratulations! You have been selected",
        "SHORTLISTED": "Good news! You have been shortlisted",
        "REJECTED": "Application update - not selected",
    },
    NotificationKind.PROFILE_APPROVED: "Account approved - {{ portal_name }}",
    NotificationKind.PROFILE_REJECTED: "Registration status update - {{ portal_name }}",
}

_TEMPLATES = {
    NotificationKind.APPLICATION_STATUS_CHANGED.value: (
        "Dear {{ recipient_name or 'Student' }},\n\n"
        "Your application for {{ job_role }} at {{ company_name }} is now {{ status | lower }}.\n"
        "{% if current_round %}Current round: {{ current_round }}\n{% endif %}"
        "{% if comment %}\nComments from the placement office:\n{{ comment }}\n{% endif %}"
        "\nRegards,\n{{ portal_name }}\n"
    ),
    NotificationKind.PROFILE_APPROVED.value: (
        "Dear {{ recipient_name or 'Student' }},\n\n"
        "Your profile has been approved by your department. "
        "You can now view and apply to placement drives.\n"
        "\nRegards,\n{{ portal_name }}\n"
    ),
    NotificationKind.PROFILE_REJECTED.value: (
        "Dear {{ recipient_name or 'Student' }},\n\n"
        "Your registration was not approved by your department.\n"
        "{% if reason %}Reason: {{ reason }}\n{% endif %}"
        "\nRegards,\n{{ portal_name }}\n"
    ),
}

# Plain-text bodies, so no HTML escaping
_env = Environment(loader=DictLoader(_TEMPLATES), autoescape=False)


def render_notification(notification: Notification) -> tuple[str, str]:
    """Render (subject, body) for a notification."""
    context = {
        "portal_name": config.PORTAL_NAME,
        "recipient_name": notification.recipient_name,
        **notification.context,
    }

    subject_template = _SUBJECTS[notification.kind]
    if isinstance(subject_template, dict):
        status = str(context.get("status", ""))
        subject = subject_template.get(status, "Application status update")
    else:
        subject = _env.from_string(subject_template).render(**context)

    body = _env.get_template(notification.kind.value).render(**context)
    return subject, body


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Writes notifications to the log. Used when SMTP is not configured."""

    def dispatch(self, notification: Notification) -> DispatchResult:
        subject, _ = render_notification(notification)
        logger.info(
            f"Notification (log only): kind={notification.kind.value}, "
            f"recipient={notification.recipient}, subject='{subject}'"
        )
        return DispatchResult(success=True, recipient=notification.recipient)


class SmtpNotificationDispatcher(NotificationDispatcher):
    """Sends plain-text email through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: str = "placements@college.edu",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def _build_message(self, notification: Notification) -> EmailMessage:
        subject, body = render_notification(notification)
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = notification.recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def dispatch(self, notification: Notification) -> DispatchResult:
        message = self._build_message(notification)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Email delivery failed: recipient={notification.recipient}, error={e}")
            return DispatchResult(success=False, recipient=notification.recipient, error=str(e))

        logger.info(f"Email sent: kind={notification.kind.value}, recipient={notification.recipient}")
        return DispatchResult(success=True, recipient=notification.recipient)


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dispatcher dependency: SMTP when configured, log-only otherwise."""
    if config.SMTP_HOST:
        return SmtpNotificationDispatcher(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USER,
            password=config.SMTP_PASSWORD,
            use_tls=config.SMTP_USE_TLS,
            sender=config.EMAIL_SENDER,
        )
    return LoggingNotificationDispatcher()


def safe_dispatch(
    dispatcher: Optional[NotificationDispatcher],
    build_notification: Callable[[], Notification],
) -> Optional[DispatchResult]:
    """
    Build and dispatch a notification without letting a failure escape.

    The notification is only built when there is a dispatcher, so its
    lazy loads never run for callers that do not notify.

    Returns None when there is no dispatcher, otherwise the DispatchResult
    (an exception while building or dispatching becomes success=False).
    """
    if dispatcher is None:
        return None
    recipient = ""
    try:
        notification = build_notification()
        recipient = notification.recipient
        return dispatcher.dispatch(notification)
    except Exception as e:
        logger.warning(
            f"Notification dispatch failed: recipient={recipient or 'unknown'}, error={e}",
            exc_info=True,
        )
        return DispatchResult(success=False, recipient=recipient, error=str(e))
