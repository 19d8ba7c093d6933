"""
Common pytest fixtures for the scalar Kalman filter tests.
"""

from __future__ import annotations

import numpy as np
import pytest

from scalar_kalman.config import DEFAULT_PARAMS, KalmanParams


@pytest.fixture
def default_params() -> KalmanParams:
    """The library defaults: R=Q=A=H=1, B=0."""
    return DEFAULT_PARAMS


@pytest.fixture
def smoothing_params() -> KalmanParams:
    """Parameters that trust the model more than the measurements."""
    return DEFAULT_PARAMS.replace(expected_noise_power=4.0, desired_noise_power=0.01)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def noisy_signal(rng: np.random.Generator) -> np.ndarray:
    """A slow sine with unit-variance Gaussian noise added."""
    t = np.linspace(0.0, 4 * np.pi, 200)
    return 5.0 * np.sin(t / 4) + rng.normal(0.0, 1.0, size=t.size)
