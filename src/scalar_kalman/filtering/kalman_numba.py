from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

from scalar_kalman.config import resolve_params
from scalar_kalman.exceptions import NumericDegeneracyError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scalar_kalman.config import KalmanParams

LOGGER = logging.getLogger(__name__)


def filter_array(
    signal: Sequence[float] | np.ndarray,
    params: KalmanParams | None = None,
    noise_estimates: Sequence[float] | np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    JIT-compiled batch filter over a whole signal.

    Follows the same seeding rule as
    :func:`scalar_kalman.filtering.kalman_filtering.filter_signal`: the first
    measurement seeds the estimate and each subsequent one runs a single
    predict/correct step.

    Args:
        signal: 1-D sequence of measurements.
        params: Filter parameters, defaults to ``DEFAULT_PARAMS``.
        noise_estimates: Optional per-step control/noise input of the same
            length as ``signal``. Absent means a zero control term.

    Returns:
        ``(predictions, covariances)``, each of shape ``(len(signal),)``.
    """
    params = resolve_params(params)
    meas = np.ascontiguousarray(signal, dtype=np.float64)
    if meas.ndim != 1:
        raise ValidationError(f"Expected a 1-D measurement array, got shape {meas.shape}")

    if noise_estimates is None:
        controls = np.zeros_like(meas)
    else:
        controls = np.ascontiguousarray(noise_estimates, dtype=np.float64)
        if controls.shape != meas.shape:
            raise ValidationError(
                f"noise_estimates shape {controls.shape} does not match signal shape {meas.shape}"
            )

    if meas.size == 0:
        return np.empty(0), np.empty(0)

    LOGGER.debug(f"Running JIT filter over {meas.size} samples")
    x_post, p_post, bad_step = _filter_flat_jit(
        meas,
        controls,
        params.state_factor,
        params.control_factor,
        params.measurement_factor,
        params.desired_noise_power,
        params.expected_noise_power,
    )
    if bad_step >= 0:
        raise NumericDegeneracyError(int(bad_step))
    return x_post, p_post


@njit(cache=True, nogil=True)
def _filter_flat_jit(meas, controls, a, b, h, q, r):
    """
    Scalar predict/correct recursion.

    Returns the a posteriori predictions and covariances, plus the index of
    the first degenerate step (-1 if none). On degeneracy the arrays are only
    filled up to that step.
    """
    n = meas.shape[0]
    x_post = np.empty(n)
    p_post = np.empty(n)

    # Seed from the first measurement
    inv_h = 1.0 / h
    x_post[0] = inv_h * meas[0]
    p_post[0] = inv_h * inv_h * r

    for k in range(1, n):
        x_pr = a * x_post[k - 1] + b * controls[k]
        p_pr = a * a * p_post[k - 1] + q

        s = h * h * p_pr + r
        if s == 0.0:
            return x_post, p_post, k
        gain = p_pr * h / s
        # P- R / S == P- - K H P-, never negative

        x_post[k] = x_pr + gain * (meas[k] - h * x_pr)
        p_post[k] = p_pr * r / s

    return x_post, p_post, -1
