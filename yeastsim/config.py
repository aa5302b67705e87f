"""Configuration system for YeastSim.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → variant override → sweep overrides

Two parameter variants are in use:
  - default:        100 visible cells, 450 000 total ceiling, max elongation 2.0
  - dense culture:  800 visible cells, effectively unbounded total, max 1.8
                    (configs/dense_culture.yaml)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from yeastsim.types import AdmissionPolicy, OXYGEN_RANGE, TEMPERATURE_RANGE


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Top-level run control and initial environment."""
    seed: int = 42
    initial_oxygen: float = 80.0        # %
    initial_temperature: float = 30.0   # °C
    auto_pause_on_saturation: bool = True


@dataclass
class MorphologySection:
    """Oxygen → cell elongation. The threshold is growth.anaerobic_threshold."""
    max_length_ratio: float = 2.0       # Elongation at 0 % oxygen
    shape_relaxation: float = 0.1       # Fraction of gap closed per tick


@dataclass
class GrowthSection:
    """Growth-rate model parameters.

    rate = base_rate × (1 + min(tick / time_scale, max_time_multiplier))
                     × oxygen_effect × exp(−(T − T_opt)² / temperature_width) × 100
    """
    base_rate: float = 0.15
    time_scale: float = 200.0           # ticks per unit of time multiplier
    max_time_multiplier: float = 3.0
    anaerobic_threshold: float = 20.0   # %, also where elongation starts
    anaerobic_effect: float = 0.8       # Growth suppression below threshold
    optimal_temperature: float = 30.0   # °C
    temperature_width: float = 100.0    # °C², Gaussian denominator
    stage_divisor: float = 2000.0       # rate / divisor = growth_stage per tick
    stress_tolerance: float = 5.0       # |T − T_opt| above this is flagged


@dataclass
class PopulationSection:
    """Visible window and logical total."""
    max_visible_cells: int = 100
    max_total_cells: int = 450_000
    admission_policy: str = AdmissionPolicy.EVICT_OLDEST.value


@dataclass
class DivisionSection:
    """Daughter placement and the separation animation."""
    separation_step: float = 0.02       # Progress per animation frame
    separation_distance: float = 3.0    # Final parent–daughter distance
    placement_extent: List[float] = field(
        default_factory=lambda: [30.0, 30.0, 10.0]
    )                                   # Box (x, y, z) centred on origin
    max_spin: float = 0.016             # Cosmetic spin, rad per frame per axis


@dataclass
class ClockSection:
    """Cadences of the two update streams (milliseconds)."""
    tick_interval_ms: float = 50.0
    frame_interval_ms: float = 1000.0 / 60.0
    animate_while_paused: bool = True   # Separation keeps running when paused


@dataclass
class SimulationConfig:
    """Complete engine configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    morphology: MorphologySection = field(default_factory=MorphologySection)
    growth: GrowthSection = field(default_factory=GrowthSection)
    population: PopulationSection = field(default_factory=PopulationSection)
    division: DivisionSection = field(default_factory=DivisionSection)
    clock: ClockSection = field(default_factory=ClockSection)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


_SECTION_MAP = {
    'simulation': SimulationSection,
    'morphology': MorphologySection,
    'growth': GrowthSection,
    'population': PopulationSection,
    'division': DivisionSection,
    'clock': ClockSection,
}


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


def config_to_dict(config: SimulationConfig) -> Dict[str, Dict[str, Any]]:
    """Plain nested dict of a config, suitable for yaml.safe_dump."""
    return dataclasses.asdict(config)


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure.

    Checks:
      - Population caps are positive integers, ordered (visible ≤ total)
      - Admission policy is known
      - Elongation ratio is at least 1 (round)
      - Growth and clock parameters are positive
      - Initial environment lies in the valid ranges
    """
    pop = config.population
    for name in ('max_visible_cells', 'max_total_cells'):
        value = getattr(pop, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(
                f"population.{name} must be an integer, got {value!r}"
            )
    if pop.max_visible_cells < 1:
        raise ValueError(
            f"population.max_visible_cells must be >= 1, "
            f"got {pop.max_visible_cells}"
        )
    if pop.max_total_cells < pop.max_visible_cells:
        raise ValueError(
            f"population.max_total_cells ({pop.max_total_cells}) must be >= "
            f"max_visible_cells ({pop.max_visible_cells})"
        )
    valid_policies = {p.value for p in AdmissionPolicy}
    if pop.admission_policy not in valid_policies:
        raise ValueError(
            f"population.admission_policy must be one of {valid_policies}, "
            f"got '{pop.admission_policy}'"
        )

    morph = config.morphology
    if morph.max_length_ratio < 1.0:
        raise ValueError(
            f"morphology.max_length_ratio must be >= 1.0, "
            f"got {morph.max_length_ratio}"
        )
    if not (0.0 < morph.shape_relaxation <= 1.0):
        raise ValueError(
            f"morphology.shape_relaxation must be in (0, 1], "
            f"got {morph.shape_relaxation}"
        )

    g = config.growth
    if g.anaerobic_threshold <= 0:
        raise ValueError("growth.anaerobic_threshold must be positive")
    if g.base_rate < 0:
        raise ValueError(f"growth.base_rate must be >= 0, got {g.base_rate}")
    if g.time_scale <= 0:
        raise ValueError("growth.time_scale must be positive")
    if g.temperature_width <= 0:
        raise ValueError("growth.temperature_width must be positive")
    if g.stage_divisor <= 0:
        raise ValueError("growth.stage_divisor must be positive")
    if not (0.0 <= g.anaerobic_effect <= 1.0):
        raise ValueError(
            f"growth.anaerobic_effect must be in [0, 1], got {g.anaerobic_effect}"
        )

    d = config.division
    if not (0.0 < d.separation_step <= 1.0):
        raise ValueError(
            f"division.separation_step must be in (0, 1], "
            f"got {d.separation_step}"
        )
    if len(d.placement_extent) != 3 or any(e < 0 for e in d.placement_extent):
        raise ValueError(
            f"division.placement_extent must be 3 non-negative values, "
            f"got {d.placement_extent}"
        )

    c = config.clock
    if c.tick_interval_ms <= 0 or c.frame_interval_ms <= 0:
        raise ValueError("clock intervals must be positive")

    s = config.simulation
    if s.seed < 0:
        raise ValueError("simulation.seed must be non-negative")
    if not (OXYGEN_RANGE[0] <= s.initial_oxygen <= OXYGEN_RANGE[1]):
        raise ValueError(
            f"simulation.initial_oxygen must be in {OXYGEN_RANGE}, "
            f"got {s.initial_oxygen}"
        )
    if not (TEMPERATURE_RANGE[0] <= s.initial_temperature <= TEMPERATURE_RANGE[1]):
        raise ValueError(
            f"simulation.initial_temperature must be in {TEMPERATURE_RANGE}, "
            f"got {s.initial_temperature}"
        )


def load_config(
    base_path: Union[str, Path],
    variant_path: Optional[Union[str, Path]] = None,
    sweep_overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → variant → sweep overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        variant_path: Optional variant override YAML (skipped if missing).
        sweep_overrides: Optional dict of parameter overrides.

    Returns:
        Validated SimulationConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if variant_path is not None:
        variant_path = Path(variant_path)
        if variant_path.exists():
            with open(variant_path) as f:
                variant = yaml.safe_load(f) or {}
            deep_merge(config_dict, variant)

    if sweep_overrides is not None:
        deep_merge(config_dict, sweep_overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = SimulationConfig()
    validate_config(config)
    return config
