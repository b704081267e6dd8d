from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class Summary:
    n: int
    vmin: float
    vmax: float
    unique: int
    mu: float
    sigma: float

    def __str__(self) -> str:
        return (
            f"N={self.n}  min={self.vmin:.6g}  max={self.vmax:.6g}  "
            f"unique={self.unique}  µ={self.mu:.6g}  σ={self.sigma:.6g}"
        )


def stddev_sample(xs: np.ndarray) -> float:
    if len(xs) < 2:
        return 0.0
    return float(np.std(xs, ddof=1))


def summarize(values: np.ndarray) -> Summary:
    if len(values) == 0:
        return Summary(0, math.nan, math.nan, 0, math.nan, math.nan)
    return Summary(
        n=len(values),
        vmin=float(np.min(values)),
        vmax=float(np.max(values)),
        unique=len(np.unique(values)),
        mu=float(np.mean(values)),
        sigma=stddev_sample(values),
    )
