"""
Recovery package - seed bruteforce and state inference for weak PRNGs
"""
from .errors import (
    ConfigurationError,
    InferenceMismatch,
    InputError,
    InsufficientWindow,
    UnsupportedOperation,
    UntwisterError,
)

__all__ = [
    'UntwisterError', 'ConfigurationError', 'InputError',
    'InsufficientWindow', 'InferenceMismatch', 'UnsupportedOperation',
]
