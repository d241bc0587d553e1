"""Percentile bands over an ensemble."""

import math
from dataclasses import asdict, dataclass
from typing import List

import numpy as np
import pandas as pd

from .config import InvalidRequestError
from .engine import Ensemble, round2

# Order statistics reported per year; index = floor(q * n) into the sorted column
QUANTILES = (
    ("p10", 0.10),
    ("p25", 0.25),
    ("median", 0.50),
    ("p75", 0.75),
    ("p90", 0.90),
)


@dataclass(frozen=True)
class PercentileRow:
    year: int
    p10: float
    p25: float
    median: float
    p75: float
    p90: float
    mean: float


def compute_percentiles(ensemble) -> List[PercentileRow]:
    """Reduce an Ensemble (or a list of trajectories) to one row per year.

    Quantiles are plain order statistics, not interpolated, so the same
    ensemble always yields the same band values.
    """
    paths = ensemble.paths if isinstance(ensemble, Ensemble) else list(ensemble)
    if not paths:
        raise InvalidRequestError("Cannot aggregate an empty ensemble.")
    length = len(paths[0])
    if any(len(path) != length for path in paths):
        raise InvalidRequestError("All trajectories must have the same length.")

    values = np.sort(
        np.array([[point.value for point in path] for path in paths], dtype=np.float64),
        axis=0,
    )
    n = values.shape[0]
    picks = {name: math.floor(n * q) for name, q in QUANTILES}

    rows = []
    for i, point in enumerate(paths[0]):
        column = values[:, i]
        # Left-to-right sum over the sorted column
        total = 0.0
        for v in column:
            total += float(v)
        rows.append(
            PercentileRow(
                year=point.year,
                mean=round2(total / n),
                **{name: float(column[k]) for name, k in picks.items()},
            )
        )
    return rows


def percentiles_frame(rows: List[PercentileRow]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in rows])
