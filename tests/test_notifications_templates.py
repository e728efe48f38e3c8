"""Unit tests for template rendering.

Tests the TemplateRenderer for:
- Field interpolation (flat and nested names)
- Iteration over hooks, including the built-in hook template
- Syntax and execution errors
- Content type detection on the rendered body
"""

import pytest

from email_handler.config.models import (
    DEFAULT_BODY_TEMPLATE,
    DEFAULT_SUBJECT_TEMPLATE,
    HOOK_BODY_TEMPLATE,
)
from email_handler.domain.models import Event
from email_handler.notifications.models import (
    CONTENT_TYPE_HTML,
    CONTENT_TYPE_TEXT,
    TemplateExecutionError,
    TemplateSyntaxError,
    detect_content_type,
)
from email_handler.notifications.templates import TemplateRenderer


@pytest.fixture
def renderer():
    return TemplateRenderer()


def test_subject_round_trip(renderer, event):
    """The documented subject template renders exactly."""
    subject = renderer.render("Alert - {{EntityName}}/{{CheckName}}: {{CheckState}}", event)

    assert subject == "Alert - web1/cpu: critical"


def test_default_subject_template(renderer, event):
    assert renderer.render(DEFAULT_SUBJECT_TEMPLATE, event) == "Sensu Alert - web1/cpu: critical"


def test_default_body_is_check_output(renderer, event):
    assert renderer.render(DEFAULT_BODY_TEMPLATE, event) == "CPU CRITICAL: 95%"


def test_nested_field_names(renderer, event):
    rendered = renderer.render(
        "{{Entity.Name}} {{Entity.Namespace}} {{Check.Name}} {{Check.Status}}", event
    )

    assert rendered == "web1 default cpu 2"


def test_hook_iteration(renderer, event):
    rendered = renderer.render(
        "{% for hook in Hooks %}[{{hook.Name}}: {{hook.Command}}]{% endfor %}", event
    )

    assert rendered == "[top-procs: ps aux --sort=-%cpu | head][uptime: uptime]"


def test_hook_body_template(renderer, event):
    rendered = renderer.render(HOOK_BODY_TEMPLATE, event)

    assert rendered == (
        "CPU CRITICAL: 95%\n"
        "Hook Name:  top-procs\n"
        "Hook Command:  ps aux --sort=-%cpu | head\n\n"
        "root 1 java\n\n"
        "Hook Name:  uptime\n"
        "Hook Command:  uptime\n\n"
        "load average: 9.00\n\n"
    )


def test_hook_body_template_without_hooks(renderer, event_payload):
    del event_payload["check"]["hooks"]
    event = Event.model_validate(event_payload)

    assert renderer.render(HOOK_BODY_TEMPLATE, event) == "CPU CRITICAL: 95%\n"


def test_trailing_newline_is_kept(renderer, event):
    assert renderer.render("{{CheckOutput}}\n", event) == "CPU CRITICAL: 95%\n"


def test_html_is_not_escaped(renderer, event_payload):
    event_payload["check"]["output"] = "<b>disk & cpu</b>"
    event = Event.model_validate(event_payload)

    assert renderer.render("{{CheckOutput}}", event) == "<b>disk & cpu</b>"


def test_syntax_error(renderer, event):
    with pytest.raises(TemplateSyntaxError) as exc_info:
        renderer.render("Alert {{ EntityName ", event)

    assert "parsing failed" in str(exc_info.value)


def test_unknown_field_is_execution_error(renderer, event):
    with pytest.raises(TemplateExecutionError) as exc_info:
        renderer.render("{{ Severity }}", event)

    assert "Severity" in str(exc_info.value)


def test_unknown_nested_field_is_execution_error(renderer, event):
    with pytest.raises(TemplateExecutionError):
        renderer.render("{{ Check.Interval }}", event)


def test_compiled_templates_are_cached(renderer):
    first = renderer.compile("{{CheckName}}")
    second = renderer.compile("{{CheckName}}")

    assert first is second


def test_render_is_deterministic(renderer, event):
    source = "{{EntityName}} {% for hook in Hooks %}{{hook.Output}};{% endfor %}"

    assert renderer.render(source, event) == renderer.render(source, event)


def test_render_message_plain_text(renderer, settings, event):
    message = renderer.render_message(settings, event)

    assert message.subject == "Alert - web1/cpu: critical"
    assert message.body == "CPU CRITICAL: 95%"
    assert message.content_type == CONTENT_TYPE_TEXT
    assert not message.is_html()


def test_render_message_html(renderer, settings, event):
    html_settings = settings.model_copy(
        update={"body_template": "<html><body>{{CheckOutput}}</body></html>"}
    )

    message = renderer.render_message(html_settings, event)

    assert message.content_type == CONTENT_TYPE_HTML
    assert message.is_html()


@pytest.mark.parametrize(
    "body, expected",
    [
        ("<html><p>down</p></html>", CONTENT_TYPE_HTML),
        ("prefix <html> suffix", CONTENT_TYPE_HTML),
        ("<HTML>upper case marker</HTML>", CONTENT_TYPE_TEXT),
        ("<html lang='en'>attribute breaks the marker", CONTENT_TYPE_TEXT),
        ("plain output", CONTENT_TYPE_TEXT),
        ("", CONTENT_TYPE_TEXT),
    ],
)
def test_detect_content_type(body, expected):
    assert detect_content_type(body) == expected
