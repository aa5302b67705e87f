"""Cell morphology as a function of oxygen.

Under aerobic conditions yeast cells stay round; below the anaerobic
threshold they elongate (pseudohyphal-like growth). Elongation is a scale
factor on one axis, interpolated linearly from 1.0 at the threshold to
max_length_ratio at 0 % oxygen:

    L(O2) = 1                                               O2 ≥ O_th
    L(O2) = min(1 + (O_th − O2)/O_th × (L_max − 1), L_max)   O2 < O_th

Existing cells do not snap to a new target: their ratio relaxes toward it
by exponential smoothing once per tick.
"""

from __future__ import annotations

from typing import Union

import numpy as np

ArrayOrFloat = Union[float, np.ndarray]


def cell_length(oxygen: ArrayOrFloat, max_length_ratio: float = 2.0,
                anaerobic_threshold: float = 20.0) -> ArrayOrFloat:
    """Target elongation ratio for a given oxygen level.

    Args:
        oxygen: Oxygen concentration (%), scalar or array.
        max_length_ratio: Elongation reached at 0 % oxygen.
        anaerobic_threshold: Oxygen level at and above which cells are round.

    Returns:
        Ratio ≥ 1.0, same shape as oxygen.
    """
    o2 = np.asarray(oxygen, dtype=np.float64)
    increase = (anaerobic_threshold - o2) / anaerobic_threshold * (max_length_ratio - 1.0)
    ratio = np.where(
        o2 >= anaerobic_threshold,
        1.0,
        np.minimum(1.0 + increase, max_length_ratio),
    )
    if ratio.ndim == 0:
        return float(ratio)
    return ratio


def relax_shape(current: ArrayOrFloat, target: ArrayOrFloat,
                rate: float = 0.1) -> ArrayOrFloat:
    """One smoothing step of shape ratio toward its target."""
    return current + (target - current) * rate
