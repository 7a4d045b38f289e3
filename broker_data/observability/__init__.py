"""
Observability helpers for the validation pipeline

Structured logging setup shared by the engine and reporters
"""

from .logging_config import configure_logging

__all__ = [
    'configure_logging',
]
