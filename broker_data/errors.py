"""
Package exceptions.

The validator itself never raises for malformed record data; these cover the
file I/O wrapped around it.
"""

from typing import Any, Optional


class BrokerDataError(Exception):
    """Base exception for broker data pipeline errors."""
    pass


class RecordSourceError(BrokerDataError):
    """Raised when an input file does not hold a list of broker records."""
    def __init__(self, message: str, path: Optional[str] = None, root_type: Optional[Any] = None):
        super().__init__(message)
        self.path = path
        self.root_type = root_type
