from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from scalar_kalman.config import resolve_params
from scalar_kalman.exceptions import NumericDegeneracyError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from scalar_kalman.config import KalmanParams

LOGGER = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "measurement",
    "priori_estimate",
    "priori_covariance",
    "kalman_gain",
    "prediction",
    "covariance",
]


@dataclass(frozen=True)
class KalmanState:
    """Current estimate of the true value and its error variance."""

    prediction: float
    covariance: float


@dataclass(frozen=True)
class KalmanModel:
    """
    A scalar Kalman filter at one point in time.

    ``params`` stays fixed for the lifetime of a filter, ``state`` is swapped
    for a new snapshot on every step. Steps never mutate a model, they return
    a fresh one, so holding on to an old model keeps its history intact:

        model = from_measurement(z0, params)
        for z in stream:
            model = filter_measurement(model, z)
            display(model.state.prediction)
    """

    state: KalmanState
    params: KalmanParams


@dataclass(frozen=True)
class _Update:
    priori_covariance: float
    kalman_gain: float
    model: KalmanModel


def init_model(params: KalmanParams | None = None) -> KalmanModel:
    """Zero-knowledge start: prediction 0 with unit covariance."""
    return KalmanModel(
        state=KalmanState(prediction=0.0, covariance=1.0),
        params=resolve_params(params),
    )


def from_measurement(
    measurement: float, params: KalmanParams | None = None
) -> KalmanModel:
    """
    Seed a model from a first observation.

    The measurement is mapped back through the measurement model, so the
    starting estimate is ``z / H`` with variance ``R / H**2``. This converges
    much faster than starting from :func:`init_model`.
    """
    model = init_model(params)
    inverse_h = 1.0 / model.params.measurement_factor
    return replace(
        model,
        state=KalmanState(
            prediction=inverse_h * measurement,
            covariance=inverse_h**2 * model.params.expected_noise_power,
        ),
    )


def predict_next(model: KalmanModel, noise_estimate: float | None = None) -> float:
    """
    A priori projection of the next state, before the next measurement.

    Args:
        model: Current filter.
        noise_estimate: Optional external control/noise input for the step.
            Absent means no control contribution.

    Returns:
        ``A * prediction + B * noise_estimate``.
    """
    control = 0.0 if noise_estimate is None else noise_estimate
    params = model.params
    return params.state_factor * model.state.prediction + params.control_factor * control


def _correct(
    model: KalmanModel, measurement: float, priori_estimate: float, step: int | None
) -> _Update:
    params = model.params
    h = params.measurement_factor
    r = params.expected_noise_power

    priori_covariance = (
        params.state_factor**2 * model.state.covariance + params.desired_noise_power
    )
    denominator = h**2 * priori_covariance + r
    if denominator == 0:
        raise NumericDegeneracyError(step)

    gain = priori_covariance * h / denominator
    # Equals P- - K H P-, written so it cannot round below zero
    state = KalmanState(
        prediction=priori_estimate + gain * (measurement - h * priori_estimate),
        covariance=priori_covariance * r / denominator,
    )
    return _Update(priori_covariance, gain, replace(model, state=state))


def learn(model: KalmanModel, measurement: float, priori_estimate: float) -> KalmanModel:
    """
    Correction phase: blend the a priori estimate with a new measurement.

    Args:
        model: Filter whose state is the previous a posteriori estimate.
        measurement: Observation for the current step.
        priori_estimate: Output of :func:`predict_next` for the current step.

    Returns:
        A new model with the same params and the a posteriori state.

    Raises:
        NumericDegeneracyError: If the a priori covariance and the expected
            noise power are both zero.
    """
    return _correct(model, measurement, priori_estimate, None).model


def filter_measurement(
    model: KalmanModel, measurement: float, noise_estimate: float | None = None
) -> KalmanModel:
    """One predict-then-correct iteration."""
    return learn(model, measurement, predict_next(model, noise_estimate))


def _as_signal(signal: Iterable[float]) -> np.ndarray:
    if not isinstance(signal, np.ndarray):
        signal = list(signal)
    values = np.asarray(signal, dtype=float)
    if values.ndim != 1:
        raise ValidationError(f"Expected a 1-D measurement sequence, got shape {values.shape}")
    return values


def _as_pairs(pairs: Iterable[tuple[float, float]]) -> np.ndarray:
    values = np.asarray(list(pairs), dtype=float)
    if values.size == 0:
        return np.empty((0, 2))
    if values.ndim != 2 or values.shape[1] != 2:
        raise ValidationError(
            f"Expected (measurement, noise_estimate) pairs, got shape {values.shape}"
        )
    return values


def _fold(
    measurements: np.ndarray,
    noise_estimates: np.ndarray | None,
    params: KalmanParams | None,
) -> list[KalmanModel]:
    """Seed on the first measurement and filter the remaining ones in order."""
    if measurements.size == 0:
        return []

    model = from_measurement(float(measurements[0]), params)
    LOGGER.debug(f"Filtering {measurements.size} measurements with {model.params}")
    models = [model]
    for i in range(1, measurements.size):
        noise = None if noise_estimates is None else float(noise_estimates[i])
        priori = predict_next(model, noise)
        model = _correct(model, float(measurements[i]), priori, i).model
        models.append(model)
    return models


def filter_signal(
    signal: Sequence[float], params: KalmanParams | None = None
) -> np.ndarray:
    """
    Filter a whole measurement sequence.

    The first measurement seeds the filter via :func:`from_measurement` and is
    not filtered a second time, so the first output is the seed prediction.
    Every later output is the prediction after :func:`filter_measurement`
    with the corresponding measurement.

    Returns:
        Array of predictions, one per measurement, in input order. Empty for
        an empty input.
    """
    models = _fold(_as_signal(signal), None, params)
    return np.array([m.state.prediction for m in models], dtype=float)


def filter_with_noise_estimates(
    pairs: Iterable[tuple[float, float]], params: KalmanParams | None = None
) -> np.ndarray:
    """
    Like :func:`filter_signal`, with an external noise estimate per step.

    Each element is ``(measurement, noise_estimate)``; the estimate is always
    passed as present (use 0 where nothing meaningful is known). The estimate
    attached to the first pair is unused since that pair only seeds the
    filter.
    """
    values = _as_pairs(pairs)
    models = _fold(values[:, 0], values[:, 1], params)
    return np.array([m.state.prediction for m in models], dtype=float)


def pair_noise_estimates(
    measurements: Sequence[float], noise_estimates: Sequence[float]
) -> list[tuple[float, float]]:
    """Zip separate measurement and noise-estimate sequences into pairs."""
    if len(measurements) != len(noise_estimates):
        raise ValidationError(
            f"Got {len(measurements)} measurements but {len(noise_estimates)} noise estimates"
        )
    return [(float(z), float(u)) for z, u in zip(measurements, noise_estimates)]


def filter_history(
    signal: Sequence[float],
    params: KalmanParams | None = None,
    noise_estimates: Sequence[float] | None = None,
) -> pd.DataFrame:
    """
    Filter a signal and keep every intermediate quantity.

    Returns:
        DataFrame indexed by step with columns ``measurement``,
        ``priori_estimate``, ``priori_covariance``, ``kalman_gain``,
        ``prediction`` and ``covariance``. The seed row has NaN in the a
        priori and gain columns.
    """
    measurements = _as_signal(signal)
    if noise_estimates is not None:
        pairs = _as_pairs(pair_noise_estimates(measurements, noise_estimates))
        noise = pairs[:, 1]
    else:
        noise = None

    n_steps = measurements.size
    out = np.full((n_steps, len(HISTORY_COLUMNS)), np.nan)
    out[:, 0] = measurements
    if n_steps:
        model = from_measurement(float(measurements[0]), params)
        out[0, 4:] = model.state.prediction, model.state.covariance
        for i in range(1, n_steps):
            priori = predict_next(model, None if noise is None else float(noise[i]))
            update = _correct(model, float(measurements[i]), priori, i)
            model = update.model
            out[i, 1:] = (
                priori,
                update.priori_covariance,
                update.kalman_gain,
                model.state.prediction,
                model.state.covariance,
            )

    history = pd.DataFrame(out, columns=HISTORY_COLUMNS)
    history.index.name = "step"
    return history
