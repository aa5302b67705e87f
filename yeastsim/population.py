"""Population manager: the visible cell window and the logical total.

Two counts are tracked:
  - cells:             the ordered list of modelled/rendered cells,
                       capped at max_visible_cells (FIFO window)
  - total_cell_count:  the population size the culture would have without
                       the window, grown multiplicatively on every division
                       and capped at max_total_cells

Per tick (update):
  1. Every attached, non-dividing cell advances its growth stage; cells
     reaching 1.0 divide. Daughters born this tick are not grown.
  2. Every visible cell relaxes its shape toward the oxygen target.

Per animation frame (advance_separations / advance_spin):
  - In-flight separations move their daughters and release parents.
  - Cosmetic spin is applied.

Admission policy when the window is full:
  'evict_oldest': daughter admitted, index 0 evicted until under cap
  'reject_new':   daughter not admitted (still counted in the total)
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

import numpy as np

from yeastsim.cell import Cell, Separation, make_cell
from yeastsim.config import (
    DivisionSection,
    MorphologySection,
    PopulationSection,
)
from yeastsim.morphology import cell_length
from yeastsim.rng import create_rng_hierarchy
from yeastsim.types import AdmissionPolicy

logger = logging.getLogger(__name__)


class Population:
    """Owns the live cells, the logical total, and in-flight divisions."""

    def __init__(
        self,
        pop_cfg: Optional[PopulationSection] = None,
        morph_cfg: Optional[MorphologySection] = None,
        div_cfg: Optional[DivisionSection] = None,
        rngs: Optional[Dict[str, np.random.Generator]] = None,
        oxygen: float = 80.0,
        anaerobic_threshold: float = 20.0,
    ):
        self.pop_cfg = pop_cfg if pop_cfg is not None else PopulationSection()
        self.morph_cfg = morph_cfg if morph_cfg is not None else MorphologySection()
        self.div_cfg = div_cfg if div_cfg is not None else DivisionSection()
        self.rngs = rngs if rngs is not None else create_rng_hierarchy(42)
        self.policy = AdmissionPolicy(self.pop_cfg.admission_policy)
        # Same threshold as growth.oxygen_effect (GrowthSection)
        self.anaerobic_threshold = anaerobic_threshold

        self._cells: List[Cell] = []
        self._separations: List[Separation] = []
        self._next_id = 0
        self.total_cell_count = 1
        self.n_evicted = 0
        self.n_rejected = 0
        self.n_divisions = 0
        self.reset(oxygen)

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def cells(self) -> List[Cell]:
        """Live cells, oldest first. Callers must not mutate the list."""
        return self._cells

    @property
    def n_visible(self) -> int:
        return len(self._cells)

    @property
    def n_dividing(self) -> int:
        return sum(1 for c in self._cells if c.dividing)

    @property
    def n_separating(self) -> int:
        return len(self._separations)

    @property
    def saturated(self) -> bool:
        """Both ceilings reached: terminal growth."""
        return (self.total_cell_count >= self.pop_cfg.max_total_cells
                and self.n_visible >= self.pop_cfg.max_visible_cells)

    def shape_ratios(self) -> np.ndarray:
        return np.array([c.shape_ratio for c in self._cells], dtype=np.float64)

    def positions(self) -> np.ndarray:
        """(n_visible, 3) array of positions."""
        if not self._cells:
            return np.zeros((0, 3), dtype=np.float64)
        return np.stack([c.position for c in self._cells])

    def cell_ids(self) -> List[int]:
        return [c.cell_id for c in self._cells]

    def target_length(self, oxygen: float) -> float:
        return cell_length(oxygen, self.morph_cfg.max_length_ratio,
                           self.anaerobic_threshold)

    # ── Lifecycle ─────────────────────────────────────────────────────

    def reset(self, oxygen: float) -> None:
        """Discard everything and start over with one cell at the origin."""
        for cell in self._cells:
            cell.attached = False
        self._separations.clear()
        self._next_id = 0
        founder = self._new_cell(oxygen, position=(0.0, 0.0, 0.0))
        self._cells = [founder]
        self.total_cell_count = 1
        self.n_evicted = 0
        self.n_rejected = 0
        self.n_divisions = 0

    def _new_cell(self, oxygen: float, position=None) -> Cell:
        cell = make_cell(
            self._next_id,
            self.target_length(oxygen),
            oxygen,
            position=position,
            placement_rng=self.rngs['placement'],
            cosmetic_rng=self.rngs['cosmetic'],
            div_cfg=self.div_cfg,
        )
        self._next_id += 1
        return cell

    def admit(self, cell: Cell) -> bool:
        """Add a cell to the visible window according to the policy.

        Returns:
            True if the cell was admitted.
        """
        cap = self.pop_cfg.max_visible_cells
        if self.policy is AdmissionPolicy.REJECT_NEW and len(self._cells) >= cap:
            cell.attached = False
            self.n_rejected += 1
            return False
        self._cells.append(cell)
        self._evict_to_cap()
        return cell.attached

    def _evict_to_cap(self) -> None:
        cap = self.pop_cfg.max_visible_cells
        n_over = len(self._cells) - cap
        if n_over <= 0:
            return
        for evicted in self._cells[:n_over]:
            evicted.attached = False
        del self._cells[:n_over]
        self.n_evicted += n_over

    def grow_total(self, rate: float) -> int:
        """Multiplicative update of the logical total for one division."""
        grown = math.ceil(self.total_cell_count * (1.0 + rate / 100.0))
        self.total_cell_count = max(
            self.total_cell_count,
            min(grown, self.pop_cfg.max_total_cells),
        )
        return self.total_cell_count

    def divide(self, parent: Cell, rate: float,
               oxygen: float) -> Optional[Cell]:
        """Start a division of parent.

        Returns:
            The daughter cell (admitted or not), or None if parent was
            already dividing.
        """
        if not parent.begin_division():
            return None
        daughter = self._new_cell(oxygen)
        admitted = self.admit(daughter)
        self.grow_total(rate)
        angle = float(self.rngs['division'].random() * 2.0 * math.pi)
        self._separations.append(Separation(
            parent=parent,
            daughter=daughter,
            angle=angle,
            distance=self.div_cfg.separation_distance,
            step=self.div_cfg.separation_step,
        ))
        self.n_divisions += 1
        logger.debug(
            "cell %d divided -> %d (admitted=%s, total=%d)",
            parent.cell_id, daughter.cell_id, admitted, self.total_cell_count,
        )
        return daughter

    def update(self, rate: float, increment: float, oxygen: float) -> int:
        """Advance every cell by one simulation tick.

        Args:
            rate: Growth rate (%) for this tick.
            increment: Growth-stage increment for this tick.
            oxygen: Current oxygen (%), for daughter shape and relaxation.

        Returns:
            Number of divisions started this tick.
        """
        n_started = 0
        for cell in list(self._cells):
            if not cell.attached:
                continue
            if cell.grow(increment):
                if self.divide(cell, rate, oxygen) is not None:
                    n_started += 1

        target = self.target_length(oxygen)
        relaxation = self.morph_cfg.shape_relaxation
        for cell in self._cells:
            cell.relax_shape(target, relaxation)
        return n_started

    def advance_separations(self, frames: int = 1) -> int:
        """Advance all in-flight separations by the given number of frames.

        Returns:
            Number of divisions completed.
        """
        n_done = 0
        for _ in range(frames):
            if not self._separations:
                break
            for sep in self._separations:
                if sep.advance():
                    n_done += 1
            self._separations = [s for s in self._separations if not s.done]
        return n_done

    def advance_spin(self, frames: int = 1) -> None:
        for cell in self._cells:
            cell.advance_spin(frames)
