"""Generate synthetic laser/radar fusion datasets.

Creates a measurement file in the L/R text format with ground truth on
every line:
    - CTRV ground truth with random longitudinal and yaw accelerations
    - Laser [px, py] and radar [rho, phi, rho_dot] draws with the
      configured sensor noise
    - Alternating, laser-only, radar-only or simultaneous sampling

Saves to: data/sim/laser_radar/
    measurements.txt  : measurement records (input of fusion_demo.run_fusion)
    config.json       : FilterConfig matching the simulated noise
    dataset.json      : generation parameters
"""

import argparse
import json
from pathlib import Path

import numpy as np

from sensor_fusion.config import FilterConfig
from sensor_fusion.fusion import format_measurement
from sensor_fusion.sim import PATTERNS, generate_records, simulate_ctrv_truth


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'baseline': {
        'description': 'Gentle curve at 5 m/s, laser and radar alternating at 20 Hz',
        'n_steps': 500,
        'dt': 0.05,
        'x0': [0.6, 0.6, 5.0, 0.0, 0.3],
        'std_a': 0.6,
        'std_yawdd': 0.4,
        'pattern': 'alternate',
    },
    'stationary': {
        'description': 'Object at rest, both sensors every sample',
        'n_steps': 200,
        'dt': 0.05,
        'x0': [5.0, 3.0, 0.0, 0.0, 0.0],
        'std_a': 0.0,
        'std_yawdd': 0.0,
        'pattern': 'both',
    },
    'sharp_turn': {
        'description': 'Tight turn at 8 m/s with strong yaw acceleration',
        'n_steps': 400,
        'dt': 0.05,
        'x0': [2.0, -1.0, 8.0, 0.5, 1.0],
        'std_a': 1.0,
        'std_yawdd': 0.8,
        'pattern': 'alternate',
    },
}


def generate_laser_radar_dataset(
    output_dir: str = "data/sim/laser_radar",
    seed: int = 42,
    n_steps: int = 500,
    dt: float = 0.05,
    x0=(0.6, 0.6, 5.0, 0.0, 0.3),
    std_a: float = 0.6,
    std_yawdd: float = 0.4,
    pattern: str = 'alternate',
    start_timestamp: int = 1477010443000000,
    description: str = "",
) -> Path:
    """Generate and save a laser/radar dataset.

    Args:
        output_dir: Output directory path
        seed: Random seed for reproducibility
        n_steps: Number of ground truth samples
        dt: Sample interval (seconds)
        x0: Initial CTRV state [px, py, v, yaw, yaw_rate]
        std_a: Longitudinal acceleration noise std (m/s²)
        std_yawdd: Yaw acceleration noise std (rad/s²)
        pattern: Sensor sampling pattern
        start_timestamp: First timestamp (microseconds)
        description: Free text stored in dataset.json

    Returns:
        Path of the measurement file.
    """
    print(f"\n{'='*70}")
    print(f"Generating Laser/Radar Fusion Dataset")
    print(f"{'='*70}")

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    # 1. Ground truth
    print(f"\n1. Generating CTRV trajectory...")
    print(f"   Samples: {n_steps} at {1/dt:.0f} Hz")
    print(f"   Initial state: {list(x0)}")
    print(f"   std_a={std_a} m/s², std_yawdd={std_yawdd} rad/s²")

    rng = np.random.default_rng(seed)
    timestamps, truth = simulate_ctrv_truth(
        n_steps,
        dt,
        x0=x0,
        std_a=std_a,
        std_yawdd=std_yawdd,
        rng=rng,
        start_timestamp=start_timestamp,
    )

    # 2. Measurements; the filter config carries the simulated sensor noise
    config = FilterConfig(
        std_a=std_a if std_a > 0 else FilterConfig.std_a,
        std_yawdd=std_yawdd if std_yawdd > 0 else FilterConfig.std_yawdd,
    )

    print(f"\n2. Generating measurements ({pattern})...")
    print(f"   Laser std: ({config.std_laspx}, {config.std_laspy}) m")
    print(f"   Radar std: {config.std_radr} m, {config.std_radphi} rad, {config.std_radrd} m/s")

    records = generate_records(truth, timestamps, config=config, pattern=pattern, seed=seed + 1)

    measurement_file = output_path / "measurements.txt"
    with open(measurement_file, "w") as f:
        for record in records:
            f.write(format_measurement(record) + "\n")

    n_laser = sum(1 for r in records if r.sensor.value == "L")
    print(f"   Generated {len(records)} records ({n_laser} laser, {len(records) - n_laser} radar)")
    print(f"   Saved: {measurement_file.name}")

    # 3. Configuration
    print(f"\n3. Saving configuration...")
    config.save_json(output_path / "config.json")

    dataset_info = {
        "description": description,
        "seed": seed,
        "n_steps": n_steps,
        "dt_sec": dt,
        "x0": list(x0),
        "std_a": std_a,
        "std_yawdd": std_yawdd,
        "pattern": pattern,
        "start_timestamp": start_timestamp,
        "n_records": len(records),
    }
    with open(output_path / "dataset.json", "w") as f:
        json.dump(dataset_info, f, indent=2)

    print(f"   Saved: config.json, dataset.json")

    print(f"\n{'='*70}")
    print(f"Dataset generation complete!")
    print(f"{'='*70}")
    print(f"Output directory: {output_path.absolute()}")
    print(f"Duration: {n_steps * dt:.1f} s\n")

    return measurement_file


# ============================================================================
# COMMAND-LINE INTERFACE
# ============================================================================

def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic laser/radar fusion datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate with default parameters
  python %(prog)s

  # Use a preset configuration
  python %(prog)s --preset sharp_turn --output data/sim/laser_radar_turn

  # Generate all presets
  python %(prog)s --all-variants

Available presets: """ + ", ".join(PRESETS.keys())
    )

    parser.add_argument(
        '--preset',
        type=str,
        choices=PRESETS.keys(),
        help='Use preset configuration (overrides individual parameters)'
    )
    parser.add_argument(
        '--all-variants',
        action='store_true',
        help='Generate every preset into <output>_<preset>'
    )
    parser.add_argument(
        '--output',
        type=str,
        default='data/sim/laser_radar',
        help='Output directory (default: data/sim/laser_radar)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for reproducibility (default: 42)'
    )

    sim_group = parser.add_argument_group('Simulation Parameters')
    sim_group.add_argument(
        '--n-steps',
        type=int,
        default=500,
        help='Number of ground truth samples (default: 500)'
    )
    sim_group.add_argument(
        '--dt',
        type=float,
        default=0.05,
        help='Sample interval in seconds (default: 0.05)'
    )
    sim_group.add_argument(
        '--std-a',
        type=float,
        default=0.6,
        help='Longitudinal acceleration noise std in m/s² (default: 0.6)'
    )
    sim_group.add_argument(
        '--std-yawdd',
        type=float,
        default=0.4,
        help='Yaw acceleration noise std in rad/s² (default: 0.4)'
    )
    sim_group.add_argument(
        '--pattern',
        type=str,
        default='alternate',
        choices=PATTERNS,
        help='Sensor sampling pattern (default: alternate)'
    )

    args = parser.parse_args()

    if args.all_variants:
        for name, preset in PRESETS.items():
            params = {k: v for k, v in preset.items() if k != 'description'}
            generate_laser_radar_dataset(
                output_dir=f"{args.output}_{name}",
                seed=args.seed,
                description=preset['description'],
                **params
            )
        return

    if args.preset:
        preset = PRESETS[args.preset]
        print(f"\nUsing preset: {args.preset}")
        print(f"  {preset['description']}")
        params = {k: v for k, v in preset.items() if k != 'description'}
        generate_laser_radar_dataset(
            output_dir=args.output,
            seed=args.seed,
            description=preset['description'],
            **params
        )
        return

    generate_laser_radar_dataset(
        output_dir=args.output,
        seed=args.seed,
        n_steps=args.n_steps,
        dt=args.dt,
        std_a=args.std_a,
        std_yawdd=args.std_yawdd,
        pattern=args.pattern,
    )


if __name__ == "__main__":
    main()
