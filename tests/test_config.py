"""Tests for scalar_kalman.config."""

from __future__ import annotations

import dataclasses
import logging

import numpy as np
import pytest

from scalar_kalman.config import DEFAULT_PARAMS, KalmanParams, resolve_params
from scalar_kalman.exceptions import ConfigurationError


class TestKalmanParams:
    def test_default_values(self):
        assert DEFAULT_PARAMS.expected_noise_power == 1
        assert DEFAULT_PARAMS.desired_noise_power == 1
        assert DEFAULT_PARAMS.state_factor == 1
        assert DEFAULT_PARAMS.control_factor == 0
        assert DEFAULT_PARAMS.measurement_factor == 1

    def test_default_matches_bare_construction(self):
        assert KalmanParams() == DEFAULT_PARAMS

    def test_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_PARAMS.state_factor = 2.0  # type: ignore[misc]

    def test_replace_returns_new_instance(self):
        params = DEFAULT_PARAMS.replace(measurement_factor=2.0)
        assert params.measurement_factor == 2.0
        assert DEFAULT_PARAMS.measurement_factor == 1.0

    def test_replace_is_validated(self):
        with pytest.raises(ConfigurationError):
            DEFAULT_PARAMS.replace(measurement_factor=0.0)

    def test_zero_measurement_factor_rejected(self):
        with pytest.raises(ConfigurationError, match="measurement_factor"):
            KalmanParams(measurement_factor=0)

    @pytest.mark.parametrize("value", [np.inf, -np.inf, np.nan])
    @pytest.mark.parametrize(
        "field",
        [
            "expected_noise_power",
            "desired_noise_power",
            "state_factor",
            "control_factor",
            "measurement_factor",
        ],
    )
    def test_non_finite_rejected(self, field: str, value: float):
        with pytest.raises(ConfigurationError, match=field):
            KalmanParams(**{field: value})

    @pytest.mark.parametrize("value", ["1.0", None, True])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ConfigurationError):
            KalmanParams(state_factor=value)

    @pytest.mark.parametrize(
        "field", ["expected_noise_power", "desired_noise_power"]
    )
    def test_negative_noise_power_rejected(self, field: str):
        with pytest.raises(ConfigurationError, match="negative"):
            KalmanParams(**{field: -0.5})

    def test_numpy_scalars_accepted(self):
        params = KalmanParams(state_factor=np.float64(0.5), measurement_factor=np.int64(2))
        assert params.state_factor == 0.5
        assert params.measurement_factor == 2

    def test_zero_measurement_noise_warns(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="scalar_kalman.config"):
            KalmanParams(expected_noise_power=0.0)
        assert "exact" in caplog.text

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            KalmanParams(measurement_factor=0)


def test_resolve_params():
    custom = KalmanParams(state_factor=0.9)
    assert resolve_params(None) is DEFAULT_PARAMS
    assert resolve_params(custom) is custom
