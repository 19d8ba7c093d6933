"""Exceptions raised by the scalar Kalman filter.

All of them derive from :class:`ValueError` so existing ``except ValueError``
handlers around bad input keep working.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Filter parameters that cannot describe a valid scalar model."""


class NumericDegeneracyError(ValueError):
    """Kalman gain is 0/0 because both prior and measurement variances vanish."""

    def __init__(self, step: int | None = None):
        self.step = step
        where = "" if step is None else f" at step {step}"
        super().__init__(
            f"Degenerate update{where}: a priori covariance and expected noise "
            "power are both zero, so the Kalman gain is undefined"
        )


class ValidationError(ValueError):
    """Malformed input handed to one of the batch filtering helpers."""
