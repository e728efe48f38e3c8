"""Option and settings models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

DEFAULT_SMTP_PORT = 587
INSECURE_SMTP_PORT = 25
MAX_SMTP_PORT = 65535

DEFAULT_SUBJECT_TEMPLATE = "Sensu Alert - {{EntityName}}/{{CheckName}}: {{CheckState}}"
DEFAULT_BODY_TEMPLATE = "{{CheckOutput}}"
HOOK_BODY_TEMPLATE = (
    "{{CheckOutput}}\n"
    "{% for hook in Hooks %}"
    "Hook Name:  {{hook.Name}}\n"
    "Hook Command:  {{hook.Command}}\n\n"
    "{{hook.Output}}\n\n"
    "{% endfor %}"
)


class AuthMethod(str, Enum):
    """SMTP authentication methods."""

    NONE = "none"
    PLAIN = "plain"
    LOGIN = "login"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class HandlerOptions(BaseModel):
    """Raw handler options before validation.

    Field aliases are the option names used on the command line, in the YAML
    config file and in event annotations. Values are merged from several
    sources by the loader and checked by validate_settings().
    """

    smtp_host: str = Field("", alias="smtpHost", description="SMTP host to send email through")
    smtp_username: str = Field("", alias="smtpUsername", description="SMTP username")
    smtp_password: str = Field("", alias="smtpPassword", description="SMTP password", repr=False)
    smtp_port: int = Field(DEFAULT_SMTP_PORT, alias="smtpPort", description="SMTP server port")
    to_email: str = Field("", alias="toEmail", description="The 'to' email address")
    from_email: str = Field("", alias="fromEmail", description="The 'from' email address")
    tls_skip_verify: bool = Field(
        False, alias="tlsSkipVerify", description="Do not verify TLS certificates"
    )
    auth_method: str = Field(
        AuthMethod.PLAIN.value,
        alias="authMethod",
        description="SMTP authentication method, one of 'none', 'plain', or 'login'",
    )
    hookout: bool = Field(False, alias="hookout", description="Include output from check hooks")
    body_template_file: str = Field(
        "",
        alias="bodyTemplateFile",
        description="Body template as a fully qualified path or URL (file://, http://, https://)",
    )
    body_template: Optional[str] = Field(
        None, alias="bodyTemplate", description="Literal body template"
    )
    subject_template: str = Field(
        DEFAULT_SUBJECT_TEMPLATE, alias="subjectTemplate", description="Subject template"
    )
    timeout: float = Field(30.0, gt=0, alias="timeout", description="Network timeout in seconds")

    # deprecated options
    insecure: bool = Field(
        False,
        alias="insecure",
        description="[deprecated] Use an insecure connection (unauthenticated on port 25)",
    )
    enable_login_auth: bool = Field(
        False, alias="enableLoginAuth", description="[deprecated] Use the login auth mechanism"
    )

    model_config = {"populate_by_name": True, "extra": "forbid"}


class Settings(BaseModel):
    """Validated, immutable delivery settings.

    Produced once per invocation by validate_settings(). The selected body
    template text travels here so the send path needs no shared state.
    """

    smtp_host: str = Field(..., min_length=1)
    smtp_port: int = Field(..., ge=0, le=MAX_SMTP_PORT)
    smtp_username: str = ""
    smtp_password: str = Field("", repr=False)
    to_email: str = Field(..., min_length=1)
    from_email: str = Field(..., min_length=1, description="Bare sender address")
    from_header: str = Field(..., min_length=1, description="RFC 5322 From header value")
    auth_method: AuthMethod = AuthMethod.PLAIN
    tls_skip_verify: bool = False
    hookout: bool = False
    body_template_file: Optional[str] = None
    body_template: str = DEFAULT_BODY_TEMPLATE
    subject_template: str = DEFAULT_SUBJECT_TEMPLATE
    timeout: float = Field(30.0, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def require_credentials_for_auth(self):
        """Authenticated methods need both a username and a password."""
        if self.auth_method is not AuthMethod.NONE:
            if not self.smtp_username or not self.smtp_password:
                raise ValueError(
                    f"auth method '{self.auth_method.value}' requires smtp username and password"
                )
        return self

    @property
    def address(self) -> str:
        """host:port pair used for logging."""
        return f"{self.smtp_host}:{self.smtp_port}"
