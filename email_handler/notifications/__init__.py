"""Email delivery for monitoring events.

- NotificationService: render an event and send it
- TemplateRenderer: Jinja2 rendering of subject and body templates
- SMTPClient: SMTP session negotiation (STARTTLS, AUTH, envelope, DATA)
- PlainAuth / LoginAuth: authentication mechanisms
- load_template_file: template retrieval from files and URLs
"""

from .models import (
    NotificationError,
    ProtocolError,
    RenderedMessage,
    TemplateExecutionError,
    TemplateLoadError,
    TemplateSyntaxError,
    UnrecognizedChallengeError,
    detect_content_type,
)
from .payloads import build_template_context
from .service import NotificationService
from .smtp_client import SMTPClient, build_message, build_tls_context
from .auth import AuthMechanism, LoginAuth, PlainAuth, ServerInfo, build_auth_mechanism
from .templates import TemplateRenderer
from .template_loader import load_template_file

__all__ = [
    # Main service
    "NotificationService",
    # Models
    "RenderedMessage",
    "detect_content_type",
    # Exceptions
    "NotificationError",
    "ProtocolError",
    "TemplateExecutionError",
    "TemplateLoadError",
    "TemplateSyntaxError",
    "UnrecognizedChallengeError",
    # Components
    "TemplateRenderer",
    "SMTPClient",
    "AuthMechanism",
    "PlainAuth",
    "LoginAuth",
    "ServerInfo",
    # Utilities
    "build_auth_mechanism",
    "build_message",
    "build_template_context",
    "build_tls_context",
    "load_template_file",
]
