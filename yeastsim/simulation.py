"""Simulation clock and controller.

A Simulation is the single owner of all engine state: the clock, the
environment, the population, and the latest statistics. External code
talks to it through two kinds of entry points:

  Drivers
    tick()            one simulation tick (growth, division, shape, stats)
    advance_frame()   one render frame (separation animation, cosmetic spin)
    step(dt_ms)       scheduler: runs ticks and frames at their own cadences
                      from one elapsed-time source, in time order

  Commands
    start / pause / toggle / reset / set_oxygen / set_temperature,
    or apply_command(Command)

Readers pull snapshot(), an immutable copy refreshed from current state.

Pause semantics: pause() stops ticks only. Whether separations keep
animating while paused is clock.animate_while_paused (default True, so a
division in progress finishes visually); cosmetic spin always runs.
reset() discards in-flight divisions unconditionally.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from yeastsim.config import SimulationConfig, default_config
from yeastsim.growth import growth_rate, stage_increment
from yeastsim.population import Population
from yeastsim.rng import create_rng_hierarchy
from yeastsim.stats import Statistics, compute_statistics
from yeastsim.types import (
    Command,
    CommandKind,
    Environment,
    SimulationSnapshot,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationClock:
    """Discrete tick counter with a pause flag. Created at 0, paused."""
    tick: int = 0
    paused: bool = True

    def advance(self) -> None:
        self.tick += 1

    def reset(self) -> None:
        self.tick = 0
        self.paused = True


class Simulation:
    """Growth/division engine with pause/resume/reset control.

    Args:
        config: Engine configuration; default_config() if None.
        seed: Overrides config.simulation.seed when given.
        environment: Initial environment; taken from config if None.
    """

    def __init__(self, config: Optional[SimulationConfig] = None,
                 seed: Optional[int] = None,
                 environment: Optional[Environment] = None):
        self.config = config if config is not None else default_config()
        sim_cfg = self.config.simulation
        self.seed = sim_cfg.seed if seed is None else seed
        self.rngs = create_rng_hierarchy(self.seed)

        if environment is None:
            environment = Environment(sim_cfg.initial_oxygen,
                                      sim_cfg.initial_temperature)
        self.environment = environment.clamped()
        self.clock = SimulationClock()
        self.population = Population(
            pop_cfg=self.config.population,
            morph_cfg=self.config.morphology,
            div_cfg=self.config.division,
            rngs=self.rngs,
            oxygen=self.environment.oxygen,
            anaerobic_threshold=self.config.growth.anaerobic_threshold,
        )
        self.stats = self._compute_stats()

        # Scheduler state for step(); times in ms
        self._time_ms = 0.0
        self._next_tick_ms = math.inf
        self._next_frame_ms = self.config.clock.frame_interval_ms

    # ── Read side ────────────────────────────────────────────────────

    @property
    def tick_count(self) -> int:
        return self.clock.tick

    @property
    def paused(self) -> bool:
        return self.clock.paused

    @property
    def saturated(self) -> bool:
        return self.population.saturated

    def current_growth_rate(self) -> float:
        return growth_rate(self.clock.tick, self.environment.oxygen,
                           self.environment.temperature, self.config.growth)

    def _compute_stats(self) -> Statistics:
        return compute_statistics(self.population, self.environment,
                                  self.clock.tick, self.config.growth)

    def snapshot(self) -> SimulationSnapshot:
        """Immutable copy of everything a renderer or dashboard needs."""
        return SimulationSnapshot(
            tick=self.clock.tick,
            paused=self.clock.paused,
            environment=self.environment,
            cells=tuple(c.view() for c in self.population.cells),
            statistics=self.stats,
            saturated=self.population.saturated,
        )

    # ── Commands ─────────────────────────────────────────────────────

    def start(self) -> None:
        if self.clock.paused:
            self.clock.paused = False
            self._next_tick_ms = self._time_ms + self.config.clock.tick_interval_ms

    def pause(self) -> None:
        self.clock.paused = True
        self._next_tick_ms = math.inf

    def toggle(self) -> None:
        """Start if paused, pause if running."""
        if self.clock.paused:
            self.start()
        else:
            self.pause()

    def reset(self) -> None:
        """Back to one founding cell, total 1, tick 0, paused."""
        self.pause()
        self.clock.reset()
        self.population.reset(self.environment.oxygen)
        self.stats = self._compute_stats()
        logger.info("simulation reset")

    def set_environment(self, oxygen: Optional[float] = None,
                        temperature: Optional[float] = None) -> Environment:
        """Update oxygen and/or temperature, clamped to the valid ranges.

        Takes effect from the next tick.

        Raises:
            ValueError: If either value is NaN; the environment is unchanged.
        """
        env = self.environment
        if oxygen is not None:
            env = env.with_oxygen(oxygen)
            if env.oxygen != oxygen:
                logger.debug("oxygen %s clamped to %s", oxygen, env.oxygen)
        if temperature is not None:
            env = env.with_temperature(temperature)
            if env.temperature != temperature:
                logger.debug("temperature %s clamped to %s",
                             temperature, env.temperature)
        self.environment = env
        return env

    def set_oxygen(self, oxygen: float) -> Environment:
        return self.set_environment(oxygen=oxygen)

    def set_temperature(self, temperature: float) -> Environment:
        return self.set_environment(temperature=temperature)

    def apply_command(self, command: Command) -> None:
        """Dispatch one control-surface command.

        Raises:
            ValueError: Unknown command kind, or SET_* without a value.
        """
        kind = command.kind
        if kind is CommandKind.START:
            self.start()
        elif kind is CommandKind.PAUSE:
            self.pause()
        elif kind is CommandKind.TOGGLE:
            self.toggle()
        elif kind is CommandKind.RESET:
            self.reset()
        elif kind in (CommandKind.SET_OXYGEN, CommandKind.SET_TEMPERATURE):
            if command.value is None:
                raise ValueError(f"{kind.value} requires a value")
            if kind is CommandKind.SET_OXYGEN:
                self.set_oxygen(command.value)
            else:
                self.set_temperature(command.value)
        else:
            raise ValueError(f"Unknown command kind: {kind!r}")

    # ── Drivers ──────────────────────────────────────────────────────

    def tick(self) -> bool:
        """Process one simulation tick if running.

        Returns:
            True if a tick was processed, False if paused.
        """
        if self.clock.paused:
            return False
        env = self.environment
        rate = growth_rate(self.clock.tick, env.oxygen, env.temperature,
                           self.config.growth)
        increment = stage_increment(rate, self.config.growth.stage_divisor)
        self.population.update(rate, increment, env.oxygen)
        self.clock.advance()
        self.stats = self._compute_stats()

        if (self.population.saturated
                and self.config.simulation.auto_pause_on_saturation):
            logger.info(
                "population saturated at tick %d (total=%d, visible=%d); pausing",
                self.clock.tick, self.population.total_cell_count,
                self.population.n_visible,
            )
            self.pause()
        return True

    def run_ticks(self, n: int) -> int:
        """Call tick() up to n times, stopping early if paused."""
        done = 0
        for _ in range(n):
            if not self.tick():
                break
            done += 1
        return done

    def advance_frame(self, frames: int = 1) -> int:
        """Advance the render stream.

        Returns:
            Number of divisions completed.
        """
        self.population.advance_spin(frames)
        if self.clock.paused and not self.config.clock.animate_while_paused:
            return 0
        return self.population.advance_separations(frames)

    def step(self, dt_ms: float) -> int:
        """Advance wall time by dt_ms, firing ticks and frames when due.

        Ticks fire every clock.tick_interval_ms while running; frames every
        clock.frame_interval_ms always. Events are processed in time order
        within one call; a tick scheduled at the same instant as a frame
        runs first.

        Returns:
            Number of ticks processed.
        """
        if dt_ms < 0:
            raise ValueError(f"dt_ms must be non-negative, got {dt_ms}")
        clock_cfg = self.config.clock
        end = self._time_ms + dt_ms
        n_ticks = 0
        while True:
            due = min(self._next_tick_ms, self._next_frame_ms)
            if due > end:
                break
            self._time_ms = due
            if self._next_tick_ms <= self._next_frame_ms:
                self._next_tick_ms += clock_cfg.tick_interval_ms
                if self.tick():
                    n_ticks += 1
            else:
                self._next_frame_ms += clock_cfg.frame_interval_ms
                self.advance_frame()
        self._time_ms = end
        return n_ticks


# ═══════════════════════════════════════════════════════════════════════
# HEADLESS BATCH RUNS
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class GrowthRunResult:
    """Per-tick timeseries and summary of a headless growth run."""
    n_ticks: int = 0
    # Per-tick timeseries (length = n_ticks)
    total_cells: Optional[np.ndarray] = None
    visible_cells: Optional[np.ndarray] = None
    avg_length: Optional[np.ndarray] = None
    growth_rate: Optional[np.ndarray] = None
    dividing_cells: Optional[np.ndarray] = None

    # Summary
    final_stats: Statistics = field(default_factory=Statistics)
    n_divisions: int = 0
    n_evicted: int = 0
    n_rejected: int = 0
    saturated_at_tick: Optional[int] = None


def run_simulation(
    n_ticks: int = 1000,
    config: Optional[SimulationConfig] = None,
    seed: Optional[int] = None,
    oxygen: Optional[float] = None,
    temperature: Optional[float] = None,
    frames_per_tick: Optional[int] = None,
) -> GrowthRunResult:
    """Run the engine headless for up to n_ticks ticks.

    Each tick is followed by frames_per_tick render frames (default: the
    ratio of the two configured cadences, 3 for 50 ms / 60 fps), so
    divisions complete as they would on screen. The run ends early if the
    population saturates and auto-pause is enabled.

    Args:
        n_ticks: Maximum number of ticks.
        config: Engine configuration; default_config() if None.
        seed: RNG seed override.
        oxygen: Oxygen (%) override; clamped.
        temperature: Temperature (°C) override; clamped.
        frames_per_tick: Render frames per tick.

    Returns:
        GrowthRunResult truncated to the ticks actually run.
    """
    sim = Simulation(config=config, seed=seed)
    sim.set_environment(oxygen=oxygen, temperature=temperature)
    sim.reset()
    clock_cfg = sim.config.clock
    if frames_per_tick is None:
        frames_per_tick = max(1, round(clock_cfg.tick_interval_ms
                                       / clock_cfg.frame_interval_ms))

    total = np.zeros(n_ticks, dtype=np.int64)
    visible = np.zeros(n_ticks, dtype=np.int32)
    avg_length = np.zeros(n_ticks, dtype=np.float64)
    rate = np.zeros(n_ticks, dtype=np.float64)
    dividing = np.zeros(n_ticks, dtype=np.int32)

    saturated_at = None
    sim.start()
    ran = 0
    for t in range(n_ticks):
        if not sim.tick():
            break
        sim.advance_frame(frames_per_tick)
        st = sim.stats
        total[t] = st.total_cells
        visible[t] = st.visible_cells
        avg_length[t] = st.avg_length
        rate[t] = st.growth_rate
        dividing[t] = sim.population.n_dividing
        ran = t + 1
        if sim.saturated and saturated_at is None:
            saturated_at = st.tick

    return GrowthRunResult(
        n_ticks=ran,
        total_cells=total[:ran],
        visible_cells=visible[:ran],
        avg_length=avg_length[:ran],
        growth_rate=rate[:ran],
        dividing_cells=dividing[:ran],
        final_stats=sim.stats,
        n_divisions=sim.population.n_divisions,
        n_evicted=sim.population.n_evicted,
        n_rejected=sim.population.n_rejected,
        saturated_at_tick=saturated_at,
    )
