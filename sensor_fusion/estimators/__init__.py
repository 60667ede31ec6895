"""
State estimators for laser/radar fusion.

Available estimators:
    - Extended Kalman Filter (EKF), constant velocity model
    - Unscented Kalman Filter (UKF), CTRV model
"""

from typing import Dict, Optional, Type

from sensor_fusion.config import FilterConfig
from sensor_fusion.estimators.base import MAX_EXPECTED_DT, FusionFilter
from sensor_fusion.estimators.extended_kalman_filter import ExtendedKalmanFilter
from sensor_fusion.estimators.unscented_kalman_filter import UnscentedKalmanFilter

FILTERS: Dict[str, Type[FusionFilter]] = {
    ExtendedKalmanFilter.name: ExtendedKalmanFilter,
    UnscentedKalmanFilter.name: UnscentedKalmanFilter,
}


def create_filter(name: str, config: Optional[FilterConfig] = None) -> FusionFilter:
    """
    Build a filter by name.

    Args:
        name: "ekf" or "ukf" (case-insensitive).
        config: Filter configuration; defaults to FilterConfig().

    Returns:
        A fresh, uninitialized filter.

    Raises:
        ValueError: If the name is unknown.
    """
    key = str(name).strip().lower()
    if key not in FILTERS:
        raise ValueError(
            f"Unknown filter '{name}'. Available: {', '.join(sorted(FILTERS))}"
        )
    return FILTERS[key](config)


__all__ = [
    "FusionFilter",
    "MAX_EXPECTED_DT",
    # Kalman Filters
    "ExtendedKalmanFilter",
    "UnscentedKalmanFilter",
    # Factory
    "FILTERS",
    "create_filter",
]
