"""SkinSheet exception hierarchy."""

from __future__ import annotations

from typing import Any


class SkinSheetError(Exception):
    """Base class for all SkinSheet errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(SkinSheetError):
    """A required setting (e.g. the sheet URL) is missing. Fatal at startup."""


class FetchError(SkinSheetError):
    """The sheet or an upstream is unreachable or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class UpstreamError(FetchError):
    """A Steam Market call failed or returned a body we cannot read."""


class ParseError(SkinSheetError):
    """A sheet cell could not be parsed. Never leaves the normalizer."""
