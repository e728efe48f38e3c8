"""Command line entry point for the email handler.

Reads one event as JSON from standard input, resolves options, renders the
notification and sends it. Exit codes: 0 sent, 1 configuration or event
error, 2 template or delivery error.
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from email_handler import __version__
from email_handler.config.environment import load_environment_config
from email_handler.config.exceptions import ConfigurationError
from email_handler.config.loader import load_options, option_names
from email_handler.config.models import DEFAULT_SMTP_PORT, AuthMethod, LogFormat, LogLevel
from email_handler.config.validators import validate_settings
from email_handler.domain.models import EventError, load_event
from email_handler.logging import get_logger
from email_handler.logging.config import configure_logging
from email_handler.notifications.models import NotificationError
from email_handler.notifications.service import NotificationService
from email_handler.notifications.template_loader import load_template_file

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_SEND_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Every option defaults to None so only flags actually given on the
    command line override the config file and environment.
    """
    parser = argparse.ArgumentParser(
        prog="email-handler",
        description="Send an email notification for a monitoring event read from stdin",
    )
    parser.add_argument("-s", "--smtpHost", dest="smtpHost", help="The SMTP host to use to send email")
    parser.add_argument(
        "-u", "--smtpUsername", dest="smtpUsername",
        help="The SMTP username, if not in env SMTP_USERNAME",
    )
    parser.add_argument(
        "-p", "--smtpPassword", dest="smtpPassword",
        help="The SMTP password, if not in env SMTP_PASSWORD",
    )
    parser.add_argument(
        "-P", "--smtpPort", dest="smtpPort", type=int,
        help=f"The SMTP server port (default: {DEFAULT_SMTP_PORT})",
    )
    parser.add_argument("-t", "--toEmail", dest="toEmail", help="The 'to' email address")
    parser.add_argument("-f", "--fromEmail", dest="fromEmail", help="The 'from' email address")
    parser.add_argument(
        "-k", "--tlsSkipVerify", dest="tlsSkipVerify", action="store_true", default=None,
        help="Do not verify TLS certificates",
    )
    parser.add_argument(
        "-a", "--authMethod", dest="authMethod",
        help="The SMTP authentication method, one of "
        + ", ".join(f"'{m.value}'" for m in AuthMethod)
        + " (default: plain)",
    )
    parser.add_argument(
        "-H", "--hookout", dest="hookout", action="store_true", default=None,
        help="Include output from check hook(s)",
    )
    parser.add_argument(
        "-T", "--bodyTemplateFile", dest="bodyTemplateFile",
        help="A template file to use for the body, specified as fully qualified path or URL "
        "(file://, http://, https://)",
    )
    parser.add_argument(
        "-S", "--subjectTemplate", dest="subjectTemplate", help="A template to use for the subject"
    )
    parser.add_argument(
        "--timeout", dest="timeout", type=float,
        help="Network timeout in seconds for SMTP and template fetches (default: 30)",
    )

    # deprecated options
    parser.add_argument(
        "-i", "--insecure", dest="insecure", action="store_true", default=None,
        help="[deprecated] Use an insecure connection (unauthenticated on port 25)",
    )
    parser.add_argument(
        "-l", "--enableLoginAuth", dest="enableLoginAuth", action="store_true", default=None,
        help='[deprecated] Use "login auth" mechanism',
    )

    parser.add_argument("--config", type=Path, default=None, help="Optional YAML file with option values")
    parser.add_argument(
        "--log-level", dest="log_level", default=None,
        choices=[level.value for level in LogLevel],
        help="Log level (overrides LOG_LEVEL, default: WARNING)",
    )
    parser.add_argument(
        "--log-format", dest="log_format", default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Log format (overrides LOG_FORMAT, default: key-value)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def cli_option_values(args: argparse.Namespace) -> Dict[str, object]:
    """Extract handler options from parsed arguments, dropping unset ones."""
    known = option_names()
    return {key: value for key, value in vars(args).items() if key in known and value is not None}


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """
    Run the handler once.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        stdin: Stream to read the event from (defaults to sys.stdin)

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        env_config = load_environment_config()
        configure_logging(
            level=args.log_level or env_config.log_level or LogLevel.WARNING.value,
            format_type=args.log_format or env_config.log_format or LogFormat.KEY_VALUE.value,
            environment=env_config.environment,
        )

        event = load_event(stdin if stdin is not None else sys.stdin)
        options = load_options(
            cli_values=cli_option_values(args),
            config_path=args.config,
            env_config=env_config,
            event=event,
        )
        settings = validate_settings(
            options, fetch_template=partial(load_template_file, timeout=options.timeout)
        )

        NotificationService().send(settings, event)
        return EXIT_OK

    except (ConfigurationError, EventError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"Invalid configuration or event: {e}",
            extra={"event": "handler.config_error", "error_type": type(e).__name__},
        )
        return EXIT_CONFIG_ERROR
    except NotificationError as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"Failed to send notification: {e}",
            extra={"event": "handler.send_failed", "error_type": type(e).__name__},
        )
        return EXIT_SEND_ERROR


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
