"""Data models and exceptions for the notification path.

This module defines the rendered message type and the exceptions raised
while loading templates, rendering them and talking to the SMTP server.
"""

from dataclasses import dataclass
from typing import Optional

from email_handler.exceptions import EmailHandlerError

HTML_MARKER = "<html>"
CONTENT_TYPE_HTML = "text/html"
CONTENT_TYPE_TEXT = "text/plain"


class NotificationError(EmailHandlerError):
    """Base exception for notification-related errors."""

    pass


class TemplateLoadError(NotificationError):
    """Raised when a template file or URL cannot be fetched."""

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"failed to read specified template file {source}: {cause}")


class TemplateSyntaxError(NotificationError):
    """Raised when a template source cannot be compiled."""

    pass


class TemplateExecutionError(NotificationError):
    """Raised when a compiled template fails to render against an event."""

    pass


class ProtocolError(NotificationError):
    """Raised when any step of the SMTP session fails.

    Attributes:
        stage: Session step that failed (connect, starttls, auth, mail, rcpt, data, quit)
        smtp_code: Reply code from the server, when the server answered
    """

    def __init__(self, stage: str, message: str, smtp_code: Optional[int] = None):
        self.stage = stage
        self.smtp_code = smtp_code
        super().__init__(f"SMTP {stage} failed: {message}")


class UnrecognizedChallengeError(ProtocolError):
    """Raised when the server sends an authentication prompt we cannot answer."""

    def __init__(self, challenge: str):
        self.challenge = challenge
        super().__init__(
            "auth",
            f"unknown response ({challenge}) from server when attempting to use login auth",
        )


@dataclass(frozen=True)
class RenderedMessage:
    """Subject and body rendered for a single event.

    Attributes:
        subject: Rendered subject line
        body: Rendered body text
        content_type: text/html if the body contains an <html> marker, else text/plain
    """

    subject: str
    body: str
    content_type: str

    @classmethod
    def from_rendered(cls, subject: str, body: str) -> "RenderedMessage":
        return cls(subject=subject, body=body, content_type=detect_content_type(body))

    def is_html(self) -> bool:
        return self.content_type == CONTENT_TYPE_HTML


def detect_content_type(body: str) -> str:
    """Return the MIME type implied by the rendered body."""
    if HTML_MARKER in body:
        return CONTENT_TYPE_HTML
    return CONTENT_TYPE_TEXT
