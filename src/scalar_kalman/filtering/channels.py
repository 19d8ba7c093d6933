"""Filter many independent signals held in one long-format DataFrame.

Each channel (e.g. one sensor) is filtered on its own, in row order, so the
channels can be spread over worker processes while each individual signal is
still folded sequentially.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm

from scalar_kalman.exceptions import ValidationError
from scalar_kalman.filtering.kalman_numba import filter_array

if TYPE_CHECKING:
    import pandas as pd

    from scalar_kalman.config import KalmanParams

LOGGER = logging.getLogger(__name__)


def _filter_channel(
    values: np.ndarray,
    noise: np.ndarray | None,
    params: KalmanParams | None,
) -> tuple[np.ndarray, np.ndarray]:
    """Helper to filter a single channel, suitable for parallel execution."""
    return filter_array(values, params, noise)


def filter_channels(
    df: pd.DataFrame,
    value_col: str = "value",
    group_col: str = "name",
    noise_col: str | None = None,
    params: KalmanParams | None = None,
    n_jobs: int = 1,
    show_progress: bool = True,
) -> pd.DataFrame:
    """
    Run an independent scalar filter over every channel of ``df``.

    Args:
        df: Long-format frame with one row per sample.
        value_col: Column with the noisy measurements.
        group_col: Column identifying the channel each row belongs to. Rows
            of a channel are filtered in the order they appear.
        noise_col: Optional column with per-step noise/control estimates.
        params: Filter parameters shared by all channels.
        n_jobs: Worker count for joblib; 1 runs in-process.
        show_progress: Show a tqdm progress bar over channels.

    Returns:
        Copy of ``df`` with ``prediction`` and ``covariance`` columns added.
    """
    required = {value_col, group_col} | ({noise_col} if noise_col else set())
    missing = required.difference(df.columns)
    if missing:
        raise ValidationError(f"Missing required column(s): {sorted(missing)}")
    n_null = int(df[group_col].isna().sum())
    if n_null:
        raise ValidationError(f"{n_null} row(s) have no channel in column {group_col!r}")

    out = df.copy()
    out["prediction"] = np.nan
    out["covariance"] = np.nan
    if df.empty:
        return out

    groups = df.groupby(group_col, sort=False, observed=True).indices
    LOGGER.info(f"Filtering {len(df)} samples across {len(groups)} channels")

    names = list(groups)
    positions = [groups[name] for name in names]
    values = df[value_col].to_numpy(dtype=float)
    noise = df[noise_col].to_numpy(dtype=float) if noise_col else None

    results = Parallel(n_jobs=n_jobs, backend="loky")(
        delayed(_filter_channel)(
            values[pos],
            None if noise is None else noise[pos],
            params,
        )
        for pos in tqdm(positions, desc="Filtering channels", disable=not show_progress)
    )

    pred_col = out.columns.get_loc("prediction")
    cov_col = out.columns.get_loc("covariance")
    for name, pos, (pred, cov) in zip(names, positions, results):
        LOGGER.debug(f"Channel {name}: {pos.size} samples, final covariance {cov[-1]:.3e}")
        out.iloc[pos, pred_col] = pred
        out.iloc[pos, cov_col] = cov
    return out
