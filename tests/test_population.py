"""Tests for yeastsim.population — visible window, logical total, divisions."""

import numpy as np
import pytest

from yeastsim.config import MorphologySection, PopulationSection
from yeastsim.population import Population
from yeastsim.rng import create_rng_hierarchy


def _population(max_visible=100, max_total=450_000, policy='evict_oldest',
                oxygen=80.0, seed=42):
    return Population(
        pop_cfg=PopulationSection(max_visible_cells=max_visible,
                                  max_total_cells=max_total,
                                  admission_policy=policy),
        rngs=create_rng_hierarchy(seed),
        oxygen=oxygen,
    )


def _force_divisions(pop, n, rate=15.0, oxygen=80.0):
    """Divide the newest non-dividing cell n times."""
    for _ in range(n):
        parent = next(c for c in reversed(pop.cells) if not c.dividing)
        parent.growth_stage = 1.0
        pop.divide(parent, rate, oxygen)


# ── Initial state & reset ────────────────────────────────────────────

class TestInitialState:
    def test_single_founder_at_origin(self):
        pop = _population()
        assert pop.n_visible == 1
        assert pop.total_cell_count == 1
        founder = pop.cells[0]
        assert founder.cell_id == 0
        np.testing.assert_array_equal(founder.position, [0.0, 0.0, 0.0])
        assert founder.growth_stage == 0.0
        assert not founder.dividing

    def test_founder_shape_from_oxygen(self):
        assert _population(oxygen=10.0).cells[0].shape_ratio == pytest.approx(1.5)
        assert _population(oxygen=80.0).cells[0].shape_ratio == 1.0

    def test_reset_discards_everything(self):
        pop = _population(max_visible=5)
        _force_divisions(pop, 8)
        assert pop.n_separating > 0
        old_cells = list(pop.cells)

        pop.reset(80.0)
        assert pop.n_visible == 1
        assert pop.total_cell_count == 1
        assert pop.n_separating == 0
        assert pop.cell_ids() == [0]
        assert all(not c.attached for c in old_cells)

    def test_reset_is_idempotent(self):
        pop = _population()
        pop.reset(80.0)
        pop.reset(80.0)
        assert pop.cell_ids() == [0]
        assert pop.total_cell_count == 1


# ── Division bookkeeping ─────────────────────────────────────────────

class TestDivide:
    def test_division_creates_daughter(self):
        pop = _population()
        founder = pop.cells[0]
        founder.growth_stage = 1.0
        daughter = pop.divide(founder, 15.0, 80.0)
        assert daughter is not None
        assert daughter.cell_id == 1
        assert daughter.growth_stage == 0.0
        assert not daughter.dividing
        assert founder.dividing
        assert pop.n_visible == 2
        assert pop.n_separating == 1

    def test_divide_dividing_cell_is_noop(self):
        pop = _population()
        founder = pop.cells[0]
        pop.divide(founder, 15.0, 80.0)
        assert pop.divide(founder, 15.0, 80.0) is None
        assert pop.n_visible == 2
        assert pop.total_cell_count == 2

    def test_total_grows_multiplicatively(self):
        pop = _population()
        totals = []
        for _ in range(4):
            _force_divisions(pop, 1, rate=15.0)
            totals.append(pop.total_cell_count)
        # ceil(1 × 1.15)=2, ceil(2.3)=3, ceil(3.45)=4, ceil(4.6)=5
        assert totals == [2, 3, 4, 5]

    def test_total_capped_at_ceiling(self):
        pop = _population(max_visible=2, max_total=3)
        _force_divisions(pop, 6, rate=60.0)
        assert pop.total_cell_count == 3

    def test_daughter_shape_from_current_oxygen(self):
        pop = _population()
        founder = pop.cells[0]
        daughter = pop.divide(founder, 15.0, 0.0)
        assert daughter.shape_ratio == pytest.approx(2.0)
        assert daughter.created_at_oxygen == 0.0


# ── Eviction policy ──────────────────────────────────────────────────

class TestEviction:
    def test_fifo_survivors_are_most_recent(self):
        pop = _population(max_visible=3)
        _force_divisions(pop, 5)
        # ids 0..5 created; the window keeps the three newest
        assert pop.cell_ids() == [3, 4, 5]
        assert pop.n_evicted == 3

    def test_evicted_cells_detached_others_untouched(self):
        pop = _population(max_visible=2)
        founder = pop.cells[0]
        d1 = pop.divide(founder, 15.0, 80.0)
        pop.advance_separations(50)
        d1.growth_stage = 0.3
        pop.divide(founder, 15.0, 80.0)
        assert pop.cell_ids() == [1, 2]
        assert not founder.attached
        assert d1.attached
        assert d1.growth_stage == 0.3
        assert not d1.dividing

    def test_cap_never_exceeded(self):
        pop = _population(max_visible=4)
        for _ in range(20):
            _force_divisions(pop, 1)
            assert pop.n_visible <= 4
            assert pop.total_cell_count >= pop.n_visible

    def test_reject_new_policy(self):
        pop = _population(max_visible=2, policy='reject_new')
        _force_divisions(pop, 2)
        pop.advance_separations(50)
        _force_divisions(pop, 1)
        assert pop.cell_ids() == [0, 1]
        assert pop.n_rejected == 2
        assert pop.n_evicted == 0
        # Rejected daughters still count toward the logical total
        assert pop.total_cell_count == 4

    def test_separation_completes_after_parent_evicted(self):
        pop = _population(max_visible=1)
        founder = pop.cells[0]
        founder.growth_stage = 1.0
        daughter = pop.divide(founder, 15.0, 80.0)
        # Window of one: founder evicted, daughter kept
        assert pop.cell_ids() == [1]
        assert founder.dividing
        pop.advance_separations(50)
        assert not founder.dividing
        assert founder.growth_stage == 0.0
        assert pop.n_separating == 0
        assert daughter.attached


# ── Saturation ───────────────────────────────────────────────────────

class TestSaturation:
    def test_not_saturated_initially(self):
        assert not _population().saturated

    def test_saturated_when_both_caps_reached(self):
        pop = _population(max_visible=2, max_total=3)
        _force_divisions(pop, 1)
        assert not pop.saturated     # total 2, visible 2
        _force_divisions(pop, 1)
        assert pop.saturated         # total 3, visible 2

    def test_total_cap_alone_is_not_saturation(self):
        pop = _population(max_visible=10, max_total=10, policy='evict_oldest')
        _force_divisions(pop, 3, rate=400.0)
        assert pop.total_cell_count == 10
        assert pop.n_visible == 4
        assert not pop.saturated


# ── Per-tick update ──────────────────────────────────────────────────

class TestUpdate:
    def test_growth_and_relaxation(self):
        pop = _population(oxygen=50.0)
        n = pop.update(rate=15.0, increment=0.0075, oxygen=5.0)
        founder = pop.cells[0]
        assert n == 0
        assert founder.growth_stage == pytest.approx(0.0075)
        # target 1.75; moved 10 % of the way from 1.0
        assert founder.shape_ratio == pytest.approx(1.075)

    def test_division_on_threshold(self):
        pop = _population()
        pop.cells[0].growth_stage = 0.999
        n = pop.update(rate=15.0, increment=0.0075, oxygen=80.0)
        assert n == 1
        assert pop.n_visible == 2
        assert pop.cells[0].dividing
        # daughter born this tick did not grow
        assert pop.cells[1].growth_stage == 0.0

    def test_dividing_cells_frozen(self):
        pop = _population()
        pop.cells[0].growth_stage = 1.0
        pop.update(rate=15.0, increment=0.0075, oxygen=80.0)
        stage = pop.cells[0].growth_stage
        for _ in range(10):
            pop.update(rate=15.0, increment=0.0075, oxygen=80.0)
        assert pop.cells[0].growth_stage == stage
        assert pop.n_visible == 2

    def test_custom_relaxation(self):
        pop = Population(morph_cfg=MorphologySection(shape_relaxation=0.5),
                         rngs=create_rng_hierarchy(1), oxygen=80.0)
        pop.update(rate=15.0, increment=0.0, oxygen=0.0)
        assert pop.cells[0].shape_ratio == pytest.approx(1.5)

    def test_anaerobic_threshold_sets_target_length(self):
        pop = Population(rngs=create_rng_hierarchy(1), oxygen=80.0,
                         anaerobic_threshold=30.0)
        assert pop.target_length(25.0) == pytest.approx(1.0 + 5.0 / 30.0)
        assert pop.target_length(30.0) == 1.0

    def test_positions_and_ratios_arrays(self):
        pop = _population()
        _force_divisions(pop, 3)
        assert pop.positions().shape == (4, 3)
        assert pop.shape_ratios().shape == (4,)
