"""Root of the email handler exception hierarchy."""


class EmailHandlerError(Exception):
    """Base exception for every error raised by the email handler.

    Catching this exception at the entry point covers configuration,
    event parsing, template and SMTP delivery failures.
    """

    pass
