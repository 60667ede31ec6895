"""Synthetic laser/radar scenarios for demos and tests."""

from sensor_fusion.sim.trajectory import (
    PATTERNS,
    generate_records,
    measure,
    simulate_ctrv_truth,
    simulate_cv_truth,
)

__all__ = [
    "PATTERNS",
    "simulate_cv_truth",
    "simulate_ctrv_truth",
    "measure",
    "generate_records",
]
