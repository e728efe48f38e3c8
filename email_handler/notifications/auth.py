"""SMTP authentication mechanisms.

The session negotiator only depends on AuthMechanism: start() produces the
mechanism name and initial response, next() answers each server challenge.
PlainAuth covers the standard PLAIN mechanism; LoginAuth implements the
LOGIN prompt exchange that smtplib offers no pluggable form of.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple

from email_handler.config.models import AuthMethod, Settings

from .models import ProtocolError, UnrecognizedChallengeError

LOCALHOST_NAMES = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True)
class ServerInfo:
    """What the client knows about the server when authentication starts.

    Attributes:
        name: Host name the client connected to
        tls: Whether the connection is encrypted
        auth: Mechanisms advertised by the AUTH extension
    """

    name: str
    tls: bool
    auth: Tuple[str, ...] = field(default_factory=tuple)


class AuthMechanism(ABC):
    """A SASL mechanism driven by the SMTP session."""

    @abstractmethod
    def start(self, server: ServerInfo) -> Tuple[str, Optional[bytes]]:
        """Begin authentication.

        Returns:
            Tuple of (mechanism name, initial response or None)

        Raises:
            ProtocolError: If the mechanism refuses to run against this server
        """

    @abstractmethod
    def next(self, challenge: bytes, more: bool) -> Optional[bytes]:
        """Answer a server challenge.

        Args:
            challenge: Decoded challenge text from the server
            more: True while the server expects another response

        Returns:
            Response bytes, or None when nothing more is to be sent
        """


class PlainAuth(AuthMechanism):
    """PLAIN mechanism (RFC 4616).

    Credentials are only sent over TLS, or to localhost, and only to the host
    the mechanism was configured for.
    """

    def __init__(self, identity: str, username: str, password: str, host: str):
        self.identity = identity
        self.username = username
        self.password = password
        self.host = host

    def start(self, server: ServerInfo) -> Tuple[str, Optional[bytes]]:
        if not server.tls and server.name not in LOCALHOST_NAMES:
            raise ProtocolError("auth", "unencrypted connection")
        if server.name != self.host:
            raise ProtocolError("auth", "wrong host name")
        response = f"{self.identity}\x00{self.username}\x00{self.password}"
        return "PLAIN", response.encode("utf-8")

    def next(self, challenge: bytes, more: bool) -> Optional[bytes]:
        if more:
            raise ProtocolError("auth", "unexpected server challenge")
        return None

    def __repr__(self) -> str:
        return f"PlainAuth(username={self.username!r}, host={self.host!r})"


class LoginAuth(AuthMechanism):
    """LOGIN mechanism.

    The username is sent as the initial response; afterwards the server
    prompts with "Username:" or "Password:" and any other prompt aborts.
    """

    USERNAME_PROMPT = "Username:"
    PASSWORD_PROMPT = "Password:"

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def start(self, server: ServerInfo) -> Tuple[str, Optional[bytes]]:
        return "LOGIN", self.username.encode("utf-8")

    def next(self, challenge: bytes, more: bool) -> Optional[bytes]:
        if not more:
            return None

        prompt = challenge.decode("utf-8", errors="replace")
        if prompt == self.USERNAME_PROMPT:
            return self.username.encode("utf-8")
        if prompt == self.PASSWORD_PROMPT:
            return self.password.encode("utf-8")
        raise UnrecognizedChallengeError(prompt)

    def __repr__(self) -> str:
        return f"LoginAuth(username={self.username!r})"


def build_auth_mechanism(settings: Settings) -> Optional[AuthMechanism]:
    """Return the mechanism for the configured auth method, None for 'none'."""
    if settings.auth_method is AuthMethod.PLAIN:
        return PlainAuth("", settings.smtp_username, settings.smtp_password, settings.smtp_host)
    if settings.auth_method is AuthMethod.LOGIN:
        return LoginAuth(settings.smtp_username, settings.smtp_password)
    return None
