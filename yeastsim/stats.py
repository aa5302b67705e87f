"""Summary statistics of the current population.

Statistics are derived, never stored independently: compute_statistics()
is called after every tick and after reset. Values are kept at full
precision; Statistics.rounded() applies the two-decimal display rounding.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

import numpy as np

from yeastsim.config import GrowthSection
from yeastsim.growth import growth_rate, is_temperature_stressed
from yeastsim.population import Population
from yeastsim.types import Environment

TICKS_PER_MINUTE = 10        # one tick = 6 simulated seconds
SECONDS_PER_TICK = 6


@dataclass(frozen=True)
class Statistics:
    """Aggregate state of the culture at one tick."""
    total_cells: int = 1
    visible_cells: int = 0
    avg_length: float = 0.0
    growth_rate: float = 0.0
    tick: int = 0
    anaerobic: bool = False
    temperature_stressed: bool = False

    @property
    def elapsed(self) -> Tuple[int, int]:
        return format_elapsed(self.tick)

    def rounded(self, decimals: int = 2) -> 'Statistics':
        """Copy with avg_length and growth_rate rounded for display."""
        return replace(
            self,
            avg_length=round(self.avg_length, decimals),
            growth_rate=round(self.growth_rate, decimals),
        )

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['elapsed_minutes'], d['elapsed_seconds'] = self.elapsed
        return d


def format_elapsed(tick: int) -> Tuple[int, int]:
    """Simulated (minutes, seconds) after `tick` ticks."""
    return tick // TICKS_PER_MINUTE, (tick % TICKS_PER_MINUTE) * SECONDS_PER_TICK


def mean_length(population: Population) -> float:
    """Mean shape ratio; 0.0 for an empty population."""
    ratios = population.shape_ratios()
    if ratios.size == 0:
        return 0.0
    return float(np.mean(ratios))


def compute_statistics(population: Population, environment: Environment,
                       tick: int,
                       growth_cfg: Optional[GrowthSection] = None) -> Statistics:
    """Recompute Statistics from the current population and environment."""
    if growth_cfg is None:
        growth_cfg = GrowthSection()
    return Statistics(
        total_cells=population.total_cell_count,
        visible_cells=population.n_visible,
        avg_length=mean_length(population),
        growth_rate=growth_rate(tick, environment.oxygen,
                                environment.temperature, growth_cfg),
        tick=tick,
        anaerobic=environment.oxygen < growth_cfg.anaerobic_threshold,
        temperature_stressed=is_temperature_stressed(environment.temperature,
                                                     growth_cfg),
    )
