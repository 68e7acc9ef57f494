"""
Exception types raised by the Tomekeeper import pipeline.

Every terminal failure of an import is one of these. Each carries a
``user_message`` suitable for a single status line.
"""

from typing import Optional


class TomekeeperError(Exception):
    """Base class for all import failures."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class ConnectivityError(TomekeeperError):
    """The model server, a source URL, or the document library is unreachable."""


class MalformedResponseError(TomekeeperError):
    """The model returned something that is not a usable JSON object."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(
            message,
            user_message or (
                f"{message}. The model did not return usable JSON; "
                "try a larger or different model."
            )
        )


class MissingRequiredFieldError(MalformedResponseError):
    """The model's JSON omits the field that names the document."""

    def __init__(self, field_name: str, domain: str = ""):
        self.field_name = field_name
        self.domain = domain
        label = f"{domain} " if domain else ""
        super().__init__(f"Missing required {label}field '{field_name}'")


class LibraryError(TomekeeperError):
    """A target collection is missing or a document write failed."""
