"""SMTP session negotiation and message delivery.

SMTPClient drives one session over smtplib in strict protocol order:
connect, EHLO, optional STARTTLS, optional AUTH, MAIL FROM, RCPT TO, DATA,
QUIT. Any failing step aborts the send and the connection is always closed.
"""

import base64
import binascii
import re
import smtplib
import ssl
from typing import Callable, Optional

from email_handler.config.models import Settings
from email_handler.logging import get_logger

from .auth import AuthMechanism, ServerInfo, build_auth_mechanism
from .models import ProtocolError, RenderedMessage

logger = get_logger(__name__, component="smtp")

CRLF = "\r\n"
LINE_BREAK = re.compile(r"\r\n|\r|\n")
MAX_AUTH_CHALLENGES = 5


def build_tls_context(settings: Settings) -> ssl.SSLContext:
    """Create the TLS context used for STARTTLS.

    Certificate and host name verification are disabled only when
    tls_skip_verify is set.
    """
    context = ssl.create_default_context()
    if settings.tls_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _header_value(value: str) -> str:
    return " ".join(value.splitlines())


def build_message(settings: Settings, message: RenderedMessage) -> bytes:
    """Serialize headers and body into the bytes sent during DATA.

    Line breaks inside header values are folded into spaces and every body
    line ending is sent as CRLF.
    """
    text = (
        f"From: {_header_value(settings.from_header)}{CRLF}"
        f"To: {_header_value(settings.to_email)}{CRLF}"
        f"Subject: {_header_value(message.subject)}{CRLF}"
        f"Content-Type: {message.content_type}{CRLF}"
        f"{CRLF}"
        f"{LINE_BREAK.sub(CRLF, message.body)}{CRLF}"
    )
    return text.encode("utf-8")


class SMTPClient:
    """Delivers a rendered message over one SMTP session.

    The transport and the auth mechanism selection are injectable so the
    session can be exercised against mocks.
    """

    def __init__(
        self,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
        auth_factory: Optional[Callable[[Settings], Optional[AuthMechanism]]] = None,
        tls_context_factory: Optional[Callable[[Settings], ssl.SSLContext]] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.auth_factory = auth_factory or build_auth_mechanism
        self.tls_context_factory = tls_context_factory or build_tls_context

    def send(self, settings: Settings, message: RenderedMessage) -> None:
        """Send a message to the configured recipient.

        Args:
            settings: Validated delivery settings
            message: Rendered subject, body and content type

        Raises:
            ProtocolError: If any session step fails; stage names the step
        """
        payload = build_message(settings, message)
        stage = "connect"
        smtp = None
        try:
            logger.debug(
                f"Connecting to {settings.address}",
                extra={"event": "smtp.connect", "smtp_address": settings.address},
            )
            smtp = self.smtp_factory(settings.smtp_host, settings.smtp_port, timeout=settings.timeout)
            smtp.ehlo_or_helo_if_needed()

            tls_active = False
            if smtp.has_extn("starttls"):
                stage = "starttls"
                logger.debug(
                    "Upgrading connection with STARTTLS",
                    extra={"event": "smtp.starttls", "tls_skip_verify": settings.tls_skip_verify},
                )
                smtp.starttls(context=self.tls_context_factory(settings))
                smtp.ehlo()
                tls_active = True

            mechanism = self.auth_factory(settings)
            if mechanism is not None and smtp.has_extn("auth"):
                stage = "auth"
                # host the transport actually connected to
                server = ServerInfo(
                    name=smtp._host,
                    tls=tls_active,
                    auth=tuple(smtp.esmtp_features.get("auth", "").upper().split()),
                )
                self._authenticate(smtp, mechanism, server)
            elif mechanism is not None:
                logger.warning(
                    "Server does not advertise AUTH, sending without authentication",
                    extra={"event": "smtp.auth.skipped", "auth_method": settings.auth_method.value},
                )

            stage = "mail"
            code, reply = smtp.mail(settings.from_email)
            if code != 250:
                raise ProtocolError(stage, _reply_text(reply), code)

            stage = "rcpt"
            code, reply = smtp.rcpt(settings.to_email)
            if code not in (250, 251):
                raise ProtocolError(stage, _reply_text(reply), code)

            stage = "data"
            smtp.data(payload)

            stage = "quit"
            code, reply = smtp.quit()
            if code != 221:
                raise ProtocolError(stage, _reply_text(reply), code)

            logger.info(
                f"Message sent to {settings.to_email}",
                extra={"event": "smtp.sent", "smtp_address": settings.address},
            )

        except ProtocolError as e:
            logger.error(str(e), extra={"event": "smtp.error", "stage": e.stage})
            raise
        except smtplib.SMTPResponseException as e:
            error = ProtocolError(stage, f"{e.smtp_code} {_reply_text(e.smtp_error)}", e.smtp_code)
            logger.error(str(error), extra={"event": "smtp.error", "stage": stage})
            raise error from e
        except (smtplib.SMTPException, OSError) as e:
            error = ProtocolError(stage, str(e) or type(e).__name__)
            logger.error(str(error), extra={"event": "smtp.error", "stage": stage})
            raise error from e
        finally:
            if smtp is not None:
                smtp.close()

    def _authenticate(self, smtp: smtplib.SMTP, mechanism: AuthMechanism, server: ServerInfo) -> None:
        """Run the AUTH challenge-response exchange.

        334 replies carry a base64 challenge answered with next(challenge, True);
        235 ends the exchange with next(reply, False). A mechanism error
        cancels the exchange with "*" before propagating.
        """
        name, initial = mechanism.start(server)
        logger.debug(
            f"Authenticating with {name}",
            extra={"event": "smtp.auth.start", "mechanism": name},
        )
        command = f"{name} {_b64(initial)}" if initial else name
        code, reply = smtp.docmd("AUTH", command)

        for _ in range(MAX_AUTH_CHALLENGES + 1):
            if code == 334:
                try:
                    challenge = base64.b64decode(reply, validate=True)
                except (binascii.Error, ValueError) as e:
                    self._cancel_auth(smtp)
                    raise ProtocolError("auth", f"malformed server challenge: {e}") from e
                more = True
            elif code == 235:
                challenge = reply
                more = False
            else:
                raise ProtocolError("auth", _reply_text(reply), code)

            try:
                response = mechanism.next(challenge, more)
            except ProtocolError:
                self._cancel_auth(smtp)
                raise

            if not more:
                logger.debug("Authentication succeeded", extra={"event": "smtp.auth.succeeded"})
                return
            code, reply = smtp.docmd(_b64(response or b""))

        self._cancel_auth(smtp)
        raise ProtocolError("auth", "server sent too many challenges")

    @staticmethod
    def _cancel_auth(smtp: smtplib.SMTP) -> None:
        try:
            smtp.docmd("*")
        except (smtplib.SMTPException, OSError) as e:
            logger.debug(
                f"Error cancelling authentication: {e}",
                extra={"event": "smtp.auth.cancel_failed"},
            )


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _reply_text(reply) -> str:
    if isinstance(reply, bytes):
        return reply.decode("utf-8", errors="replace")
    return str(reply)
