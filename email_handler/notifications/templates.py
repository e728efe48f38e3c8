"""Template rendering for notification subjects and bodies using Jinja2.

Templates are compiled with strict undefined checking so a reference to a
field the event does not provide fails loudly instead of rendering empty.
"""

from typing import Dict

from jinja2 import Environment, StrictUndefined, Template, TemplateError
from jinja2 import TemplateSyntaxError as JinjaTemplateSyntaxError

from email_handler.config.models import Settings
from email_handler.domain.models import Event
from email_handler.logging import get_logger

from .models import RenderedMessage, TemplateExecutionError, TemplateSyntaxError
from .payloads import build_template_context

logger = get_logger(__name__, component="template")


class TemplateRenderer:
    """Compiles template strings and renders them against events.

    Compiled templates are cached by source text.
    """

    def __init__(self):
        self.env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._cache: Dict[str, Template] = {}

    def compile(self, source: str) -> Template:
        """Compile a template source string.

        Raises:
            TemplateSyntaxError: If the source cannot be parsed
        """
        template = self._cache.get(source)
        if template is not None:
            return template

        try:
            template = self.env.from_string(source)
        except JinjaTemplateSyntaxError as e:
            error_msg = f"Template parsing failed at line {e.lineno}: {e.message}"
            logger.error(error_msg, extra={"event": "template.syntax_error"})
            raise TemplateSyntaxError(error_msg) from e

        self._cache[source] = template
        return template

    def render(self, source: str, event: Event) -> str:
        """Render a template source against an event.

        Args:
            source: Template text
            event: Event providing the field values

        Returns:
            Rendered text

        Raises:
            TemplateSyntaxError: If the source cannot be parsed
            TemplateExecutionError: If rendering fails, e.g. an unknown field
        """
        template = self.compile(source)
        try:
            return template.render(build_template_context(event))
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, extra={"event": "template.execution_error"})
            raise TemplateExecutionError(error_msg) from e
        except Exception as e:
            error_msg = f"Unexpected error during template rendering: {e}"
            logger.error(error_msg, exc_info=True, extra={"event": "template.execution_error"})
            raise TemplateExecutionError(error_msg) from e

    def render_message(self, settings: Settings, event: Event) -> RenderedMessage:
        """Render subject and body for an event using the configured templates."""
        subject = self.render(settings.subject_template, event)
        body = self.render(settings.body_template, event)
        message = RenderedMessage.from_rendered(subject, body)
        logger.debug(
            "Rendered notification",
            extra={"event": "template.rendered", "content_type": message.content_type},
        )
        return message
