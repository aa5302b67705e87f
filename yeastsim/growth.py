"""Instantaneous growth-rate model.

    rate(t, O2, T) = r0 × (1 + m(t)) × f_O2 × f_T × 100      [% per tick]

  m(t)  = min(t / t_scale, m_max)             culture acceleration, capped
  f_O2  = 0.8 if O2 < O_th else 1.0           anaerobic suppression
  f_T   = exp(−(T − T_opt)² / w)              Gaussian around the optimum

The rate depends on tick and environment, so callers recompute it every
tick. Values are returned at full precision; rounding to two decimals is
a display concern handled by stats.Statistics.rounded().
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from yeastsim.config import GrowthSection

ArrayOrFloat = Union[float, np.ndarray]

_DEFAULT_GROWTH = GrowthSection()


def time_multiplier(tick: ArrayOrFloat, time_scale: float = 200.0,
                    max_multiplier: float = 3.0) -> ArrayOrFloat:
    """Growth acceleration with elapsed ticks, capped at max_multiplier."""
    return np.minimum(np.asarray(tick, dtype=np.float64) / time_scale,
                      max_multiplier)


def oxygen_effect(oxygen: ArrayOrFloat, anaerobic_threshold: float = 20.0,
                  anaerobic_effect: float = 0.8) -> ArrayOrFloat:
    return np.where(np.asarray(oxygen) < anaerobic_threshold,
                    anaerobic_effect, 1.0)


def temperature_effect(temperature: ArrayOrFloat, optimal: float = 30.0,
                       width: float = 100.0) -> ArrayOrFloat:
    """Gaussian temperature penalty, 1.0 at the optimum."""
    dt = np.asarray(temperature, dtype=np.float64) - optimal
    return np.exp(-(dt ** 2) / width)


def growth_rate(tick: ArrayOrFloat, oxygen: ArrayOrFloat,
                temperature: ArrayOrFloat,
                cfg: Optional[GrowthSection] = None) -> ArrayOrFloat:
    """Growth rate in percent for the given tick and environment.

    Args:
        tick: Elapsed simulation ticks (≥ 0).
        oxygen: Oxygen concentration (%).
        temperature: Temperature (°C).
        cfg: Growth parameters; defaults to GrowthSection().

    Returns:
        Non-negative growth rate (%); float for scalar inputs, array
        otherwise (inputs broadcast).
    """
    if cfg is None:
        cfg = _DEFAULT_GROWTH
    rate = (
        cfg.base_rate
        * (1.0 + time_multiplier(tick, cfg.time_scale, cfg.max_time_multiplier))
        * oxygen_effect(oxygen, cfg.anaerobic_threshold, cfg.anaerobic_effect)
        * temperature_effect(temperature, cfg.optimal_temperature,
                             cfg.temperature_width)
        * 100.0
    )
    if np.ndim(rate) == 0:
        return float(rate)
    return rate


def stage_increment(rate: float, stage_divisor: float = 2000.0) -> float:
    """Growth-stage progress contributed by one tick at the given rate."""
    return rate / stage_divisor


def is_temperature_stressed(temperature: float,
                            cfg: Optional[GrowthSection] = None) -> bool:
    """True when temperature is far enough from the optimum to limit growth."""
    if cfg is None:
        cfg = _DEFAULT_GROWTH
    return abs(temperature - cfg.optimal_temperature) > cfg.stress_tolerance
