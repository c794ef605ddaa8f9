# soa_recon/errors.py

"""
Error types raised by the reconciliation engine.

Both are raised before any matching happens. Once matching starts the
engine always produces a complete report: an unmatched line is an outcome,
not an error.
"""

from typing import Optional


class ReconciliationError(Exception):
    """Base class for engine errors."""

    code: str = "RECONCILIATION_ERROR"


class MappingError(ReconciliationError):
    """A source record could not be turned into a canonical record."""

    code: str = "MAPPING_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        position: Optional[int] = None,
    ):
        self.field = field
        self.position = position
        if position is not None:
            message = f"Record {position}: {message}"
        super().__init__(message)


class ConfigurationError(ReconciliationError):
    """The matching configuration is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, setting: Optional[str] = None):
        self.setting = setting
        super().__init__(message)
