"""
services/exceptions.py – Structured custom exception hierarchy for netcon-metadata.

All service-level errors derive from NetconError so callers can catch broadly
or specifically depending on context.
"""


class NetconError(Exception):
    """Base class for all netcon-metadata exceptions."""


class CrawlError(NetconError):
    """Raised when a page cannot be fetched or a URL cannot be visited."""


class ParseError(NetconError):
    """Raised when a scraped field does not match the expected format."""


class ExportError(NetconError):
    """Raised when the spreadsheet rejects a write."""


class CredentialsError(ExportError):
    """
    Raised when the service-account key file is missing or malformed.

    Attributes
    ----------
    path : Path of the key file that could not be loaded.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Unable to load credentials from '{path}': {reason}")
