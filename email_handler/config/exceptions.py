"""Exceptions raised while binding and validating handler options."""

from typing import List, Optional

from email_handler.exceptions import EmailHandlerError


class ConfigurationError(EmailHandlerError):
    """Raised when handler options are missing, invalid or contradictory.

    Always raised before any network activity. Carries an optional list of
    individual problems and hints for fixing them, rendered on separate lines.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [self.message]

        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)


class AddressParseError(ConfigurationError):
    """Raised when the sender is not a valid RFC 5322 mailbox."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"invalid from email address '{address}': {reason}")
