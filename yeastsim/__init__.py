"""YeastSim: growth and division engine for a budding-yeast culture.

A tick-driven, single-threaded model coupling:
  - Oxygen-dependent morphology (anaerobic elongation)
  - A time-, oxygen- and temperature-dependent growth rate
  - Per-cell growth stages and a division state machine
  - A bounded FIFO window of visible cells over an exponentially growing
    logical population
  - Aggregate statistics for external renderers and dashboards
"""

__version__ = "0.1.0"

from yeastsim.config import SimulationConfig, default_config, load_config
from yeastsim.simulation import Simulation, run_simulation
from yeastsim.types import Command, Environment

__all__ = [
    "Command",
    "Environment",
    "Simulation",
    "SimulationConfig",
    "default_config",
    "load_config",
    "run_simulation",
]
