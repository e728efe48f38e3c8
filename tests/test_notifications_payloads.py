"""Tests for the event to template context projection."""

from email_handler.domain.models import Event
from email_handler.notifications.payloads import build_template_context


def test_flat_fields(event):
    context = build_template_context(event)

    assert context["EntityName"] == "web1"
    assert context["EntityNamespace"] == "default"
    assert context["CheckName"] == "cpu"
    assert context["CheckState"] == "critical"
    assert context["CheckStatus"] == 2
    assert context["CheckOutput"] == "CPU CRITICAL: 95%"


def test_nested_fields_mirror_flat_fields(event):
    context = build_template_context(event)

    assert context["Entity"] == {"Name": "web1", "Namespace": "default"}
    assert context["Check"]["Name"] == "cpu"
    assert context["Check"]["Output"] == "CPU CRITICAL: 95%"
    assert context["Check"]["Hooks"] is context["Hooks"]


def test_hooks_keep_order(event):
    context = build_template_context(event)

    assert context["Hooks"] == [
        {"Name": "top-procs", "Command": "ps aux --sort=-%cpu | head", "Output": "root 1 java"},
        {"Name": "uptime", "Command": "uptime", "Output": "load average: 9.00"},
    ]


def test_missing_parts_project_to_empty_values():
    context = build_template_context(Event())

    assert context["EntityName"] == ""
    assert context["CheckName"] == ""
    assert context["Hooks"] == []
