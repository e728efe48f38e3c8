"""Shared fixtures for email handler tests."""

from unittest.mock import MagicMock

import pytest

from email_handler.config.models import AuthMethod, HandlerOptions, Settings
from email_handler.domain.models import Event
from email_handler.logging.context import clear_log_context

ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's environment out of option binding."""
    for variable in ENV_VARS:
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def event_payload():
    """Event JSON payload as sent by the monitoring backend."""
    return {
        "entity": {
            "entity_class": "agent",
            "metadata": {"name": "web1", "namespace": "default"},
        },
        "check": {
            "metadata": {"name": "cpu", "namespace": "default"},
            "state": "critical",
            "status": 2,
            "output": "CPU CRITICAL: 95%",
            "hooks": [
                {
                    "metadata": {"name": "top-procs"},
                    "command": "ps aux --sort=-%cpu | head",
                    "output": "root 1 java",
                    "status": 0,
                },
                {
                    "metadata": {"name": "uptime"},
                    "command": "uptime",
                    "output": "load average: 9.00",
                    "status": 0,
                },
            ],
        },
        "timestamp": 1700000000,
    }


@pytest.fixture
def event(event_payload):
    """Validated event for web1/cpu in critical state."""
    return Event.model_validate(event_payload)


@pytest.fixture
def options():
    """Raw options that validate with plain auth."""
    return HandlerOptions(
        smtp_host="smtp.example.com",
        smtp_username="user@example.com",
        smtp_password="secret123",
        to_email="oncall@example.com",
        from_email="Ops <ops@example.com>",
    )


@pytest.fixture
def settings():
    """Validated settings using plain auth on port 587."""
    return Settings(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_username="user@example.com",
        smtp_password="secret123",
        to_email="oncall@example.com",
        from_email="ops@example.com",
        from_header="Ops <ops@example.com>",
        auth_method=AuthMethod.PLAIN,
        subject_template="Alert - {{EntityName}}/{{CheckName}}: {{CheckState}}",
    )


@pytest.fixture
def make_smtp():
    """Factory for a MagicMock standing in for an smtplib.SMTP connection.

    The mock advertises the given extensions and answers every command
    with a success reply unless the test overrides it.
    """

    def _make(extensions=("starttls", "auth"), auth_mechanisms="PLAIN LOGIN", host="smtp.example.com"):
        smtp = MagicMock()
        smtp._host = host
        features = {name: "" for name in extensions}
        if "auth" in features:
            features["auth"] = auth_mechanisms
        smtp.esmtp_features = features
        smtp.has_extn.side_effect = lambda name: name.lower() in features
        smtp.docmd.return_value = (235, b"2.7.0 Authentication successful")
        smtp.mail.return_value = (250, b"2.1.0 Ok")
        smtp.rcpt.return_value = (250, b"2.1.5 Ok")
        smtp.data.return_value = (250, b"2.0.0 Ok: queued")
        smtp.quit.return_value = (221, b"2.0.0 Bye")
        return smtp

    return _make
