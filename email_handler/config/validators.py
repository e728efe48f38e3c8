"""Validation of raw handler options into immutable delivery settings."""

from email.errors import HeaderParseError
from email.headerregistry import HeaderRegistry
from email.utils import formataddr
from typing import Callable, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic import ValidationError

from email_handler.logging import get_logger
from email_handler.notifications.models import TemplateLoadError
from email_handler.notifications.template_loader import load_template_file

from .exceptions import AddressParseError, ConfigurationError
from .models import (
    DEFAULT_BODY_TEMPLATE,
    HOOK_BODY_TEMPLATE,
    INSECURE_SMTP_PORT,
    MAX_SMTP_PORT,
    AuthMethod,
    HandlerOptions,
    Settings,
)

logger = get_logger(__name__, component="config")

TemplateFetcher = Callable[[str], bytes]


def validate_settings(
    options: HandlerOptions,
    fetch_template: TemplateFetcher = load_template_file,
) -> Settings:
    """Validate raw options and resolve them into Settings.

    Rules are applied in a fixed order and the first failure wins:

    1. smtp host, recipient and sender must be set
    2. the port must fit in 16 bits
    3. deprecated flags are translated (enableLoginAuth, then insecure)
    4. the auth method must be none, plain or login (empty means plain)
    5. authenticated methods need a username and a password
    6. hookout and bodyTemplateFile are mutually exclusive
    7. the effective body template is selected (and fetched if external)
    8. the sender is parsed as an RFC 5322 mailbox

    Args:
        options: Raw options as bound by the loader
        fetch_template: Callable returning the raw bytes of a template path/URL

    Returns:
        Frozen Settings

    Raises:
        ConfigurationError: If an option is missing, invalid or contradictory
        TemplateLoadError: If the body template file cannot be fetched
        AddressParseError: If the sender is not a valid mailbox
    """
    if not options.smtp_host:
        raise ConfigurationError("missing smtp host")
    if not options.to_email:
        raise ConfigurationError("missing destination email address")
    if not options.from_email:
        raise ConfigurationError("from email is empty")

    if options.smtp_port < 0 or options.smtp_port > MAX_SMTP_PORT:
        raise ConfigurationError(
            "smtp port is out of range",
            errors=[f"smtpPort {options.smtp_port} is not between 0 and {MAX_SMTP_PORT}"],
        )

    smtp_port = options.smtp_port
    auth_method = options.auth_method
    tls_skip_verify = options.tls_skip_verify

    # translate deprecated options to their replacements
    if options.enable_login_auth:
        auth_method = AuthMethod.LOGIN.value
    if options.insecure:
        smtp_port = INSECURE_SMTP_PORT
        auth_method = AuthMethod.NONE.value
        tls_skip_verify = True

    if auth_method == "":
        auth_method = AuthMethod.PLAIN.value
    try:
        method = AuthMethod(auth_method)
    except ValueError:
        raise ConfigurationError(
            f"{auth_method} is not a valid auth method",
            suggestions=["Use one of: " + ", ".join(m.value for m in AuthMethod)],
        )

    if method is not AuthMethod.NONE:
        if not options.smtp_username:
            raise ConfigurationError(
                "smtp username is empty",
                suggestions=["Set --smtpUsername or the SMTP_USERNAME environment variable"],
            )
        if not options.smtp_password:
            raise ConfigurationError(
                "smtp password is empty",
                suggestions=["Set --smtpPassword or the SMTP_PASSWORD environment variable"],
            )

    if options.hookout and options.body_template_file:
        raise ConfigurationError(
            "--hookout (-H) and --bodyTemplateFile (-T) are mutually exclusive"
        )

    body_template = select_body_template(options, fetch_template)
    from_email, from_header = parse_sender_address(options.from_email)

    try:
        settings = Settings(
            smtp_host=options.smtp_host,
            smtp_port=smtp_port,
            smtp_username=options.smtp_username,
            smtp_password=options.smtp_password,
            to_email=options.to_email,
            from_email=from_email,
            from_header=from_header,
            auth_method=method,
            tls_skip_verify=tls_skip_verify,
            hookout=options.hookout,
            body_template_file=options.body_template_file or None,
            body_template=body_template,
            subject_template=options.subject_template,
            timeout=options.timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(
            "settings validation failed",
            errors=[f"{' -> '.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e

    logger.debug(
        "Settings validated",
        extra={
            "event": "config.validated",
            "smtp_address": settings.address,
            "auth_method": settings.auth_method.value,
            "tls_skip_verify": settings.tls_skip_verify,
            "hookout": settings.hookout,
            "body_template_file": settings.body_template_file,
        },
    )
    return settings


def select_body_template(options: HandlerOptions, fetch_template: TemplateFetcher) -> str:
    """Pick the body template text.

    Priority: hook output template, external template file, literal body
    template, built-in default.
    """
    if options.hookout:
        return HOOK_BODY_TEMPLATE

    if options.body_template_file:
        source = options.body_template_file
        try:
            return fetch_template(source).decode("utf-8")
        except (ConfigurationError, TemplateLoadError):
            raise
        except Exception as e:
            raise TemplateLoadError(source, e) from e

    if options.body_template:
        return options.body_template

    return DEFAULT_BODY_TEMPLATE


def parse_sender_address(raw: str) -> Tuple[str, str]:
    """Parse a sender mailbox into its bare address and From header form.

    Args:
        raw: Sender such as "ops@example.com" or "Ops <ops@example.com>"

    Returns:
        Tuple of (bare address, header value)

    Raises:
        AddressParseError: If raw is not a single valid mailbox
    """
    value = raw.strip()
    if "<" in value and not value.endswith(">"):
        raise AddressParseError(raw, "unclosed angle-addr")

    try:
        header = HeaderRegistry()("from", value)
    except (HeaderParseError, ValueError, IndexError) as e:
        raise AddressParseError(raw, str(e)) from e

    if len(header.addresses) != 1:
        raise AddressParseError(raw, "expected exactly one mailbox")
    if header.defects:
        raise AddressParseError(raw, str(header.defects[0]))

    mailbox = header.addresses[0]
    name, address = mailbox.display_name, mailbox.addr_spec
    if not address or "@" not in address:
        raise AddressParseError(raw, "no valid mailbox found")

    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError as e:
        raise AddressParseError(raw, str(e)) from e

    if not name:
        return address, f"<{address}>"
    return address, formataddr((name, address))
