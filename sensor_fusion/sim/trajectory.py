"""Synthetic trajectories and laser/radar draws.

Ground truth is generated with the same process models the filters assume,
so a correctly tuned filter should see NIS values close to their
chi-square distribution:

    - Constant velocity with piecewise constant accelerations (EKF model)
    - CTRV with piecewise constant longitudinal and yaw accelerations
      (UKF model)

Ground truth rows follow the measurement file layout
[px, py, vx, vy, yaw, yaw_rate].
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from sensor_fusion.config import FilterConfig
from sensor_fusion.fusion.types import MeasurementRecord, SensorKind
from sensor_fusion.models import CTRV, ConstantVelocity2D, RadarMeasurement
from sensor_fusion.utils import wrap_angle

PATTERNS = ("alternate", "laser", "radar", "both")


def _timestamps(n_steps: int, dt: float, start_timestamp: int) -> np.ndarray:
    return start_timestamp + np.round(np.arange(n_steps) * dt * 1e6).astype(np.int64)


def _check_steps(n_steps: int, dt: float) -> None:
    if n_steps < 1:
        raise ValueError(f"n_steps must be at least 1, got {n_steps}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")


def simulate_cv_truth(
    n_steps: int,
    dt: float,
    x0: Sequence[float] = (1.0, 1.0, 1.0, 0.5),
    accel_std: float = 0.0,
    rng: Optional[np.random.Generator] = None,
    start_timestamp: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Simulate a constant velocity trajectory.

        x_{k+1} = F(dt) x_k + G a_k,  G = [dt²/2, dt] per axis,
        a_k ~ N(0, accel_std² I)

    Args:
        n_steps: Number of samples.
        dt: Sample interval in seconds.
        x0: Initial [px, py, vx, vy].
        accel_std: Std of the white acceleration on each axis (m/s^2).
        rng: Random generator; a fresh default one if None.
        start_timestamp: Timestamp of the first sample (microseconds).

    Returns:
        Tuple of (timestamps (N,) int64 in microseconds, truth (N, 6)).
    """
    _check_steps(n_steps, dt)
    if rng is None:
        rng = np.random.default_rng()

    F = ConstantVelocity2D.F(dt)
    G = np.array([
        [0.5 * dt**2, 0.0],
        [0.0, 0.5 * dt**2],
        [dt, 0.0],
        [0.0, dt],
    ])

    states = np.zeros((n_steps, 4))
    states[0] = x0
    for k in range(1, n_steps):
        a = rng.normal(0.0, accel_std, size=2) if accel_std > 0 else np.zeros(2)
        states[k] = F @ states[k - 1] + G @ a

    yaw = np.arctan2(states[:, 3], states[:, 2])
    if n_steps > 1:
        yaw_rate = np.gradient(np.unwrap(yaw), dt)
    else:
        yaw_rate = np.zeros(1)

    truth = np.column_stack([states, yaw, yaw_rate])
    return _timestamps(n_steps, dt, start_timestamp), truth


def simulate_ctrv_truth(
    n_steps: int,
    dt: float,
    x0: Sequence[float] = (0.6, 0.6, 5.0, 0.0, 0.3),
    std_a: float = 0.0,
    std_yawdd: float = 0.0,
    rng: Optional[np.random.Generator] = None,
    start_timestamp: int = 0,
    yaw_rate_threshold: float = 1e-3,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Simulate a CTRV trajectory.

    Each step draws nu_a ~ N(0, std_a²) and nu_yawdd ~ N(0, std_yawdd²) and
    propagates the augmented state through the CTRV model.

    Args:
        n_steps: Number of samples.
        dt: Sample interval in seconds.
        x0: Initial [px, py, v, yaw, yaw_rate].
        std_a: Longitudinal acceleration noise std (m/s^2).
        std_yawdd: Yaw acceleration noise std (rad/s^2).
        rng: Random generator; a fresh default one if None.
        start_timestamp: Timestamp of the first sample (microseconds).
        yaw_rate_threshold: Straight-line threshold of the CTRV model.

    Returns:
        Tuple of (timestamps (N,) int64 in microseconds, truth (N, 6)).
    """
    _check_steps(n_steps, dt)
    if rng is None:
        rng = np.random.default_rng()

    model = CTRV(yaw_rate_threshold=yaw_rate_threshold)

    states = np.zeros((n_steps, 5))
    states[0] = x0
    for k in range(1, n_steps):
        nu_a = rng.normal(0.0, std_a) if std_a > 0 else 0.0
        nu_yawdd = rng.normal(0.0, std_yawdd) if std_yawdd > 0 else 0.0
        x_aug = np.concatenate([states[k - 1], [nu_a, nu_yawdd]])
        states[k] = model.f(x_aug, dt)

    truth = np.zeros((n_steps, 6))
    for k, x in enumerate(states):
        truth[k, :4] = CTRV.to_cartesian(x)
        truth[k, 4] = wrap_angle(x[3])
        truth[k, 5] = x[4]

    return _timestamps(n_steps, dt, start_timestamp), truth


def measure(
    truth_row: np.ndarray,
    kind: SensorKind,
    config: FilterConfig,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw one noisy measurement of a ground truth row.

    Args:
        truth_row: [px, py, vx, vy, ...]
        kind: Sensor to simulate.
        config: Supplies the sensor noise stds.
        rng: Random generator.

    Returns:
        Laser [px, py] or radar [rho, phi, rho_dot] with the bearing
        wrapped to (-π, π].
    """
    px, py, vx, vy = np.asarray(truth_row, dtype=float)[:4]

    if kind is SensorKind.LASER:
        noise = rng.normal(0.0, [config.std_laspx, config.std_laspy])
        return np.array([px, py]) + noise

    radar = RadarMeasurement(config.radar_noise_covariance(), range_threshold=config.range_threshold)
    z = radar.h_cv(np.array([px, py, vx, vy]))
    z = z + rng.normal(0.0, [config.std_radr, config.std_radphi, config.std_radrd])
    z[1] = wrap_angle(z[1])
    return z


def generate_records(
    truth: np.ndarray,
    timestamps: np.ndarray,
    config: Optional[FilterConfig] = None,
    pattern: str = "alternate",
    seed: Optional[int] = None,
) -> List[MeasurementRecord]:
    """
    Turn a ground truth trajectory into a measurement stream.

    Args:
        truth: Ground truth rows (N, 6).
        timestamps: Sample timestamps (N,) in microseconds.
        config: Sensor noise; defaults to FilterConfig().
        pattern: "alternate" (laser on even samples, radar on odd),
            "laser", "radar", or "both" (laser then radar at every sample).
        seed: Seed for the measurement noise.

    Returns:
        Records in time order, each carrying its ground truth row.
    """
    truth = np.asarray(truth, dtype=float)
    timestamps = np.asarray(timestamps)
    if truth.ndim != 2 or truth.shape[1] != 6:
        raise ValueError(f"Ground truth must have shape (N, 6), got {truth.shape}")
    if len(timestamps) != len(truth):
        raise ValueError(
            f"Length mismatch: {len(timestamps)} timestamps vs {len(truth)} truth rows"
        )
    if pattern not in PATTERNS:
        raise ValueError(f"Unknown pattern '{pattern}'. Available: {', '.join(PATTERNS)}")

    config = config if config is not None else FilterConfig()
    rng = np.random.default_rng(seed)

    records = []
    for k, (timestamp, row) in enumerate(zip(timestamps, truth)):
        if pattern == "alternate":
            kinds = [SensorKind.LASER if k % 2 == 0 else SensorKind.RADAR]
        elif pattern == "laser":
            kinds = [SensorKind.LASER]
        elif pattern == "radar":
            kinds = [SensorKind.RADAR]
        else:
            kinds = [SensorKind.LASER, SensorKind.RADAR]

        for kind in kinds:
            records.append(MeasurementRecord(
                sensor=kind,
                z=measure(row, kind, config, rng),
                timestamp=int(timestamp),
                ground_truth=row,
            ))

    return records
