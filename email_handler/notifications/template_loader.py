"""Fetch body templates from the local filesystem or over HTTP(S).

Templates may be given as a fully qualified local path or as a URL using
the file://, http:// or https:// scheme. Anything else is a configuration
error. Read failures always propagate as TemplateLoadError.
"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from email_handler.config.exceptions import ConfigurationError
from email_handler.logging import get_logger

from .models import TemplateLoadError

logger = get_logger(__name__, component="template")

SUPPORTED_SCHEMES = ("file", "http", "https")
DEFAULT_TIMEOUT = 30.0


def load_template_file(
    source: str,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    """Return the raw bytes of a template file or URL.

    Args:
        source: Absolute path or file/http/https URL
        timeout: HTTP request timeout in seconds
        session: Optional requests session (injected in tests)

    Returns:
        Raw template bytes

    Raises:
        ConfigurationError: If the source is relative or uses an unsupported scheme
        TemplateLoadError: If the file cannot be read or the HTTP request fails
    """
    if "://" not in source:
        if not Path(source).is_absolute():
            raise ConfigurationError(
                f"Not a fully qualified local file or URL: {source}",
                suggestions=["Use an absolute path or a file://, http:// or https:// URL"],
            )
        return _read_local_file(source)

    parsed = urlparse(source)
    scheme = parsed.scheme.lower()

    if scheme == "file":
        return _read_local_file(parsed.path)
    if scheme in ("http", "https"):
        return _fetch_url(source, timeout, session)

    raise ConfigurationError(
        f"Unsupported scheme {parsed.scheme}://",
        suggestions=[f"Supported schemes: {', '.join(SUPPORTED_SCHEMES)}"],
    )


def _read_local_file(path: str) -> bytes:
    logger.debug(
        f"Reading template file {path}",
        extra={"event": "template.load.file", "path": path},
    )
    try:
        return Path(path).read_bytes()
    except OSError as e:
        logger.error(
            f"Failed to read template file {path}: {e}",
            extra={"event": "template.load.error", "path": path},
        )
        raise TemplateLoadError(path, e) from e


def _fetch_url(url: str, timeout: float, session: Optional[requests.Session]) -> bytes:
    http = session or requests
    logger.debug(
        f"HTTP GET template from {url}",
        extra={"event": "template.load.request", "url": url, "timeout": timeout},
    )
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.error(
            f"Template request to {url} failed: {e}",
            extra={"event": "template.load.error", "url": url},
        )
        raise TemplateLoadError(url, e) from e

    if response.status_code >= 400:
        logger.error(
            f"HTTP {response.status_code} error from {url}",
            extra={"event": "template.load.error", "url": url, "status_code": response.status_code},
        )
        raise TemplateLoadError(url, RuntimeError(f"HTTP {response.status_code}: {response.reason}"))

    return response.content
