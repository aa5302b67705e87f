#!/usr/bin/env python3
"""Run a headless yeast growth simulation and print its progress.

Loads the base YAML configuration (optionally merged with a variant),
drives the engine for a fixed number of ticks with render frames
interleaved, and prints a statistics line every --report-every ticks.

Usage:
    python scripts/run_growth.py
    python scripts/run_growth.py --ticks 2000 --oxygen 5 --temperature 33
    python scripts/run_growth.py --variant configs/dense_culture.yaml

References:
    - yeastsim/config.py: load_config, SimulationConfig
    - yeastsim/simulation.py: Simulation, run_simulation
"""

import argparse
import sys
from pathlib import Path

# ── Project imports ──────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from yeastsim.config import load_config
from yeastsim.simulation import Simulation
from yeastsim.stats import format_elapsed


def run(config_path, variant_path, n_ticks, oxygen, temperature, seed,
        report_every):
    config = load_config(config_path, variant_path=variant_path)
    sim = Simulation(config=config, seed=seed)
    sim.set_environment(oxygen=oxygen, temperature=temperature)
    sim.reset()
    env = sim.environment
    print(f"  Oxygen: {env.oxygen:.0f}%   Temperature: {env.temperature:.0f}°C   "
          f"Seed: {sim.seed}")

    clock_cfg = config.clock
    frames_per_tick = max(1, round(clock_cfg.tick_interval_ms
                                   / clock_cfg.frame_interval_ms))
    sim.start()
    for _ in range(n_ticks):
        if not sim.tick():
            break
        sim.advance_frame(frames_per_tick)
        st = sim.stats
        if st.tick % report_every == 0:
            shown = st.rounded()
            minutes, seconds = format_elapsed(st.tick)
            print(f"  [{minutes:3d}m{seconds:02d}s] tick={st.tick:5d}  "
                  f"total={st.total_cells:>11,}  visible={st.visible_cells:4d}  "
                  f"avg_len={shown.avg_length:.2f}  rate={shown.growth_rate:.2f}%")

    st = sim.stats.rounded()
    print(f"\n  Final: {st.total_cells:,} cells ({st.visible_cells} visible) "
          f"after {st.tick} ticks")
    if st.anaerobic:
        print("  Anaerobic: new cells are elongated")
    if st.temperature_stressed:
        print("  Temperature off optimum: growth limited")
    if sim.saturated:
        print("  Population saturated; simulation auto-paused")
    return sim


def main():
    parser = argparse.ArgumentParser(
        description="Run a headless yeast growth simulation.",
        epilog="Example: python scripts/run_growth.py --ticks 2000 --oxygen 5",
    )
    parser.add_argument(
        "--config", type=str, default=str(PROJECT_ROOT / "configs" / "base.yaml"),
        help="Base config YAML (default: configs/base.yaml)",
    )
    parser.add_argument(
        "--variant", type=str, default=None,
        help="Variant YAML merged over the base config",
    )
    parser.add_argument("--ticks", type=int, default=1000,
                        help="Number of ticks to run (default: 1000)")
    parser.add_argument("--oxygen", type=float, default=None,
                        help="Oxygen %% (0-100), clamped")
    parser.add_argument("--temperature", type=float, default=None,
                        help="Temperature °C (20-40), clamped")
    parser.add_argument("--seed", type=int, default=None,
                        help="RNG seed override")
    parser.add_argument("--report-every", type=int, default=100,
                        help="Print statistics every N ticks (default: 100)")
    args = parser.parse_args()

    print("=" * 60)
    print("YeastSim Growth Runner")
    print("=" * 60)

    if not Path(args.config).exists():
        print(f"\n  ⚠️  File not found: {args.config}")
        sys.exit(1)

    run(args.config, args.variant, args.ticks, args.oxygen, args.temperature,
        args.seed, max(1, args.report_every))

    print("\n✅ Done.")


if __name__ == "__main__":
    main()
