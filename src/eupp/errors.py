"""Exception and warning types raised by eupp."""

from __future__ import annotations


class EuppError(Exception):
    """Base class for all eupp errors."""


class ConfigurationError(EuppError, ValueError):
    """Raised when a selection or download request is invalid or contradictory."""


class RetrievalError(EuppError):
    """Raised when an index or data resource cannot be fetched."""

    def __init__(
        self,
        url: str,
        *,
        status_code: int | None = None,
        byte_range: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.byte_range = byte_range
        message = f'Problems accessing "{url}"'
        if byte_range:
            message += f" ({byte_range})"
        if status_code is not None:
            message += f"; return code {status_code}"
        if reason:
            message += f"; {reason}"
        super().__init__(message + ".")


class ConversionError(EuppError):
    """Raised when the external GRIB to NetCDF converter is missing or fails."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class EmptyResultWarning(UserWarning):
    """Issued when a selection matches no fields in the inventory."""
