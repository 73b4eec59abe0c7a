"""
Recovery Errors
===============

Exception hierarchy for the seed/state recovery engine. Every error here is a
local, recoverable condition: the engine raises it to the caller and never
terminates the process.
"""

from typing import Optional


class UntwisterError(Exception):
    """Base class for all recovery engine errors."""


class ConfigurationError(UntwisterError):
    """Invalid depth, thread count, confidence bound or PRNG name."""


class InputError(UntwisterError):
    """Observed outputs missing or a prerequisite step was not run."""


class InsufficientWindow(UntwisterError):
    """Fewer observations than the variant needs to rebuild its state."""

    def __init__(self, prng: str, required: int, supplied: int):
        self.prng = prng
        self.required = required
        self.supplied = supplied
        super().__init__(
            f"{prng} needs {required} consecutive outputs to recover its state, "
            f"got {supplied}"
        )


class InferenceMismatch(UntwisterError):
    """Recovered state does not reproduce the held-out observations."""

    def __init__(self, prng: str, position: int, expected: Optional[int] = None,
                 actual: Optional[int] = None):
        self.prng = prng
        self.position = position
        self.expected = expected
        self.actual = actual
        message = f"{prng} state inference diverged at observation #{position}"
        if expected is not None:
            message += f" (observed {expected}, predicted {actual})"
        super().__init__(message)


class UnsupportedOperation(UntwisterError):
    """Operation not available for the selected variant."""
