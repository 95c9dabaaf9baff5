"""Domain errors raised by the roaskit engines.

Only malformed input raises. Infeasible economics are reported through
``math.inf`` thresholds and flags, and unusable calibration data through a
``None`` result plus validation messages.
"""

from __future__ import annotations

from typing import Optional


class RoasKitError(Exception):
    """Base class for roaskit errors."""


class InputValidationError(RoasKitError, ValueError):
    """An input field is missing, malformed or out of range."""

    def __init__(self, field: str, message: str, value: Optional[object] = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
