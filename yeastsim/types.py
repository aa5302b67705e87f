"""Core data types for YeastSim.

This module is the single home for:
  - DivisionPhase, CommandKind, AdmissionPolicy enumerations
  - Environment value struct and its clamping ranges
  - Command: inbound control messages from the control surface
  - Outbound read-only DTOs (CellView, SimulationSnapshot)

The mutable Cell entity lives in cell.py; Statistics lives in stats.py.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from yeastsim.stats import Statistics


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class DivisionPhase(IntEnum):
    """Per-cell division state machine.

    IDLE      →  DIVIDING:  growth_stage ≥ 1 (division entry)
    DIVIDING  →  IDLE:      separation animation reaches progress ≥ 1
    """
    IDLE     = 0   # Growing; growth_stage accumulates each tick
    DIVIDING = 1   # Frozen growth; daughter separating


class CommandKind(Enum):
    """Inbound commands accepted by the simulation controller."""
    START           = 'start'
    PAUSE           = 'pause'
    TOGGLE          = 'toggle'
    RESET           = 'reset'
    SET_OXYGEN      = 'set_oxygen'
    SET_TEMPERATURE = 'set_temperature'


class AdmissionPolicy(str, Enum):
    """What happens to a daughter cell when the visible window is full."""
    EVICT_OLDEST = 'evict_oldest'   # admit; drop index 0 until under cap
    REJECT_NEW   = 'reject_new'     # do not admit; still counted in total


# ═══════════════════════════════════════════════════════════════════════
# ENVIRONMENT
# ═══════════════════════════════════════════════════════════════════════

OXYGEN_RANGE = (0.0, 100.0)         # percent
TEMPERATURE_RANGE = (20.0, 40.0)    # °C


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high].

    Raises:
        ValueError: If value is NaN.
    """
    value = float(value)
    if math.isnan(value):
        raise ValueError("cannot clamp NaN")
    return max(low, min(high, value))


@dataclass(frozen=True)
class Environment:
    """Oxygen concentration (%) and temperature (°C) seen by the engine."""
    oxygen: float = 80.0
    temperature: float = 30.0

    def clamped(self) -> 'Environment':
        """Return a copy with both fields forced into their valid ranges."""
        return Environment(
            oxygen=clamp(self.oxygen, *OXYGEN_RANGE),
            temperature=clamp(self.temperature, *TEMPERATURE_RANGE),
        )

    def with_oxygen(self, oxygen: float) -> 'Environment':
        return replace(self, oxygen=clamp(oxygen, *OXYGEN_RANGE))

    def with_temperature(self, temperature: float) -> 'Environment':
        return replace(self, temperature=clamp(temperature, *TEMPERATURE_RANGE))


# ═══════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Command:
    """A control-surface command. `value` is used by the SET_* kinds only."""
    kind: CommandKind
    value: Optional[float] = None

    @classmethod
    def start(cls) -> 'Command':
        return cls(CommandKind.START)

    @classmethod
    def pause(cls) -> 'Command':
        return cls(CommandKind.PAUSE)

    @classmethod
    def toggle(cls) -> 'Command':
        return cls(CommandKind.TOGGLE)

    @classmethod
    def reset(cls) -> 'Command':
        return cls(CommandKind.RESET)

    @classmethod
    def set_oxygen(cls, oxygen: float) -> 'Command':
        return cls(CommandKind.SET_OXYGEN, float(oxygen))

    @classmethod
    def set_temperature(cls, temperature: float) -> 'Command':
        return cls(CommandKind.SET_TEMPERATURE, float(temperature))


# ═══════════════════════════════════════════════════════════════════════
# OUTBOUND SNAPSHOT OBJECTS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CellView:
    """Read-only copy of one visible cell, as handed to a renderer."""
    cell_id: int
    position: np.ndarray       # (3,) float64, copy
    shape_ratio: float
    rotation: np.ndarray       # (3,) float64, copy; cosmetic
    dividing: bool = False


@dataclass(frozen=True)
class SimulationSnapshot:
    """Everything an external consumer may read after a tick."""
    tick: int
    paused: bool
    environment: Environment
    cells: Tuple[CellView, ...]
    statistics: 'Statistics'
    saturated: bool = False

    @property
    def n_cells(self) -> int:
        return len(self.cells)
