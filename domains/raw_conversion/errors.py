"""Exceptions raised by the raw conversion domain."""

from pathlib import Path
from typing import Optional

from app.utils.helpers import format_duration


class RawConversionError(Exception):
    """Base class for raw conversion errors."""


class ConfigurationError(RawConversionError, ValueError):
    """Provider configs that cannot be combined."""


class ConversionError(RawConversionError):
    """The injected converter failed for a single raw file."""

    def __init__(self, raw_file: Path, message: Optional[str] = None):
        self.raw_file = raw_file
        super().__init__(message or f"Unable to convert [{raw_file}]")


class ConversionTimeoutError(RawConversionError, TimeoutError):
    """Raw files were not converted within the given bound."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Timed out waiting for {format_duration(timeout)}")
