# src/scalar_kalman/config.py
"""
Configuration for the scalar Kalman filter.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import numbers
from dataclasses import dataclass

from scalar_kalman.exceptions import ConfigurationError

# =============================================================================
# FILTER PARAMETERS
# =============================================================================

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KalmanParams:
    """Tuning of a linear scalar state-space model.

    The model is ``x_k = A x_{k-1} + B u_k + w`` with ``w ~ N(0, Q)`` and
    ``z_k = H x_k + v`` with ``v ~ N(0, R)``.

    Attributes:
        expected_noise_power: Assumed measurement-noise variance (R).
        desired_noise_power: Assumed process-noise variance (Q). Larger values
            follow the measurements more closely, smaller values smooth harder.
        state_factor: State-transition coefficient (A).
        control_factor: Weight applied to an external per-step noise/control
            estimate (B).
        measurement_factor: Coefficient relating the true state to the
            observed measurement (H). Must be non-zero.
    """

    expected_noise_power: float = 1.0
    desired_noise_power: float = 1.0
    state_factor: float = 1.0
    control_factor: float = 0.0
    measurement_factor: float = 1.0

    def __post_init__(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(
                    f"{field.name} must be a real number, got {value!r}"
                )
            if not math.isfinite(value):
                raise ConfigurationError(f"{field.name} must be finite, got {value}")

        if self.measurement_factor == 0:
            raise ConfigurationError(
                "measurement_factor must be non-zero, the seed estimate divides by it"
            )
        if self.expected_noise_power < 0 or self.desired_noise_power < 0:
            raise ConfigurationError(
                "Noise powers are variances and cannot be negative "
                f"(expected={self.expected_noise_power}, desired={self.desired_noise_power})"
            )
        if self.expected_noise_power == 0:
            logger.warning(
                "expected_noise_power is zero: measurements are treated as exact."
            )

    def replace(self, **changes: float) -> KalmanParams:
        """Return a validated copy with the given fields overridden."""
        return dataclasses.replace(self, **changes)


DEFAULT_PARAMS = KalmanParams(
    expected_noise_power=1.0,
    desired_noise_power=1.0,
    state_factor=1.0,
    control_factor=0.0,
    measurement_factor=1.0,
)


def resolve_params(params: KalmanParams | None) -> KalmanParams:
    return DEFAULT_PARAMS if params is None else params
