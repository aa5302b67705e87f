"""Cell entity, per-tick lifecycle, and the division protocol.

Each cell carries a growth-stage accumulator. While IDLE it advances by
rate / stage_divisor per tick; on reaching 1.0 the cell enters DIVIDING,
spawns a daughter, and stays frozen until the separation animation that
pushes the daughter away finishes. Completion returns the parent to IDLE
with growth_stage = 0.

    IDLE ──(growth_stage ≥ 1)──► DIVIDING ──(separation progress ≥ 1)──► IDLE

The separation is advanced by animation frames, not by simulation ticks.
Population owns the Separation records; a cell never schedules anything
itself.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from yeastsim.config import DivisionSection
from yeastsim.morphology import relax_shape
from yeastsim.types import CellView, DivisionPhase


class Cell:
    """A single yeast cell.

    Attributes:
        cell_id: Creation-order id (0 for the founding cell).
        position: (3,) float64 position; presentation only.
        shape_ratio: Current elongation (≥ 1.0).
        growth_stage: Progress toward the next division.
        dividing: True while a division is in progress.
        created_at_oxygen: Oxygen (%) when the cell was created.
        rotation: (3,) cosmetic orientation (radians).
        spin: (3,) cosmetic angular step per frame (radians).
        attached: False once evicted from the visible population.
    """

    __slots__ = ('cell_id', 'position', 'shape_ratio', 'growth_stage',
                 'dividing', 'created_at_oxygen', 'rotation', 'spin',
                 'attached')

    def __init__(self, cell_id: int, position: Sequence[float],
                 shape_ratio: float, created_at_oxygen: float,
                 rotation: Optional[Sequence[float]] = None,
                 spin: Optional[Sequence[float]] = None):
        self.cell_id = int(cell_id)
        self.position = np.array(position, dtype=np.float64)
        self.shape_ratio = float(shape_ratio)
        self.growth_stage = 0.0
        self.dividing = False
        self.created_at_oxygen = float(created_at_oxygen)
        self.rotation = (np.zeros(3) if rotation is None
                         else np.array(rotation, dtype=np.float64))
        self.spin = (np.zeros(3) if spin is None
                     else np.array(spin, dtype=np.float64))
        self.attached = True

    def __repr__(self) -> str:
        return (f"Cell(id={self.cell_id}, stage={self.growth_stage:.3f}, "
                f"shape={self.shape_ratio:.3f}, dividing={self.dividing})")

    @property
    def phase(self) -> DivisionPhase:
        return DivisionPhase.DIVIDING if self.dividing else DivisionPhase.IDLE

    @property
    def ready_to_divide(self) -> bool:
        return not self.dividing and self.growth_stage >= 1.0

    def grow(self, increment: float) -> bool:
        """Advance growth_stage unless dividing.

        Returns:
            True if the cell has reached the division threshold.
        """
        if self.dividing:
            return False
        self.growth_stage += increment
        return self.growth_stage >= 1.0

    def relax_shape(self, target: float, rate: float = 0.1) -> None:
        self.shape_ratio = relax_shape(self.shape_ratio, target, rate)

    def begin_division(self) -> bool:
        """Enter DIVIDING. Returns False (no-op) if already dividing."""
        if self.dividing:
            return False
        self.dividing = True
        return True

    def finish_division(self) -> None:
        self.dividing = False
        self.growth_stage = 0.0

    def advance_spin(self, frames: int = 1) -> None:
        self.rotation += self.spin * frames

    def view(self) -> CellView:
        """Immutable copy for external readers."""
        return CellView(
            cell_id=self.cell_id,
            position=self.position.copy(),
            shape_ratio=self.shape_ratio,
            rotation=self.rotation.copy(),
            dividing=self.dividing,
        )


# ═══════════════════════════════════════════════════════════════════════
# CELL CREATION
# ═══════════════════════════════════════════════════════════════════════

def random_position(rng: np.random.Generator,
                    extent: Sequence[float]) -> np.ndarray:
    """Uniform position in a box of the given extents centred on the origin."""
    return (rng.random(3) - 0.5) * np.asarray(extent, dtype=np.float64)


def make_cell(cell_id: int, shape_ratio: float, oxygen: float,
              position: Optional[Sequence[float]] = None,
              placement_rng: Optional[np.random.Generator] = None,
              cosmetic_rng: Optional[np.random.Generator] = None,
              div_cfg: Optional[DivisionSection] = None) -> Cell:
    """Create a fresh cell.

    With no explicit position the cell is dropped at a random point in the
    placement envelope. Rotation is uniform in [0, π) per axis and spin
    uniform in [0, max_spin) per axis when a cosmetic stream is given.
    """
    if div_cfg is None:
        div_cfg = DivisionSection()
    if position is None:
        if placement_rng is None:
            raise ValueError("placement_rng required when position is None")
        position = random_position(placement_rng, div_cfg.placement_extent)
    rotation = spin = None
    if cosmetic_rng is not None:
        rotation = cosmetic_rng.random(3) * math.pi
        spin = cosmetic_rng.random(3) * div_cfg.max_spin
    return Cell(cell_id, position, shape_ratio, oxygen,
                rotation=rotation, spin=spin)


# ═══════════════════════════════════════════════════════════════════════
# SEPARATION ANIMATION
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Separation:
    """In-flight division: moves the daughter away from its parent.

    Progress is tracked as an integer frame count so that completion
    happens after exactly ceil(1 / step) frames regardless of float
    accumulation.
    """
    parent: Cell
    daughter: Cell
    angle: float
    distance: float = 3.0
    step: float = 0.02
    frames: int = 0
    done: bool = field(default=False)

    @property
    def total_frames(self) -> int:
        return max(1, math.ceil(round(1.0 / self.step, 9)))

    @property
    def progress(self) -> float:
        return min(self.frames * self.step, 1.0)

    def direction(self) -> np.ndarray:
        return np.array([math.cos(self.angle), math.sin(self.angle), 0.0])

    def advance(self) -> bool:
        """Advance one animation frame.

        Returns:
            True when this frame completed the division.
        """
        if self.done:
            return False
        self.frames += 1
        if self.daughter.attached:
            self.daughter.position = (
                self.parent.position
                + self.direction() * self.distance * self.progress
            )
        if self.frames >= self.total_frames:
            self.parent.finish_division()
            self.done = True
            return True
        return False
