"""Notification service: renders an event and delivers it by email."""

import logging
from typing import Optional, Union

from email_handler.config.models import Settings
from email_handler.domain.models import Event
from email_handler.logging import get_logger
from email_handler.logging.context import log_context

from .models import RenderedMessage
from .smtp_client import SMTPClient
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")


class NotificationService:
    """Sends one notification per event.

    Rendering happens before any network activity, so a template error never
    opens a connection. Errors propagate unchanged; nothing is retried.
    """

    def __init__(
        self,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        logger_instance: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient()
        self.logger = logger_instance or logger

    def send(self, settings: Settings, event: Event) -> RenderedMessage:
        """Render subject and body for the event and send them.

        Args:
            settings: Validated delivery settings
            event: Event to notify about

        Returns:
            The message that was delivered

        Raises:
            TemplateSyntaxError: If a template cannot be parsed
            TemplateExecutionError: If a template fails to render
            ProtocolError: If the SMTP session fails
        """
        entity = event.entity.name if event.entity else ""
        check = event.check.name if event.check else ""

        with log_context(entity=entity, check=check):
            message = self.template_renderer.render_message(settings, event)
            self.smtp_client.send(settings, message)
            self.logger.info(
                f"Email notification sent for {entity}/{check}",
                extra={
                    "event": "notification.sent",
                    "to_email": settings.to_email,
                    "content_type": message.content_type,
                },
            )
            return message
