"""Innovation consistency checks for the fusion filters.

The Normalized Innovation Squared (NIS) of a well-tuned filter follows a
chi-square distribution with as many degrees of freedom as the measurement
has components. Counting how often NIS exceeds the 95% quantile tells
whether the configured process noise is plausible: about 5% of updates
should land above it (laser, 2 dof: 5.991; radar, 3 dof: 7.815).
"""

from typing import Dict, Optional

import numpy as np
from scipy import stats

from sensor_fusion.fusion.types import SensorKind


def normalized_innovation_squared(
    y: np.ndarray,
    S: np.ndarray
) -> float:
    """Compute the Normalized Innovation Squared of one update.

        NIS = y^T S^{-1} y

    Args:
        y: Innovation vector (m,).
        S: Innovation covariance matrix (m × m), positive definite.

    Returns:
        NIS value (scalar, non-negative for positive definite S).

    Raises:
        ValueError: If dimensions are incompatible.
        np.linalg.LinAlgError: If S is singular.

    Example:
        >>> y = np.array([3.0, 4.0])
        >>> S = np.diag([1.0, 1.0])
        >>> normalized_innovation_squared(y, S)
        25.0
    """
    y = np.asarray(y, dtype=float)
    S = np.asarray(S, dtype=float)

    if y.ndim != 1:
        raise ValueError(f"Innovation y must be 1D, got shape {y.shape}")
    if S.ndim != 2:
        raise ValueError(f"Covariance S must be 2D, got shape {S.shape}")

    m = len(y)
    if S.shape != (m, m):
        raise ValueError(
            f"Innovation dimension {m} incompatible with S shape {S.shape}"
        )

    # Solve instead of inverting: y^T S^{-1} y = y^T x with S x = y
    nis = float(y @ np.linalg.solve(S, y))

    # Round-off can push an exact zero slightly negative
    return max(nis, 0.0)


def chi_square_threshold(dof: int, confidence: float = 0.95) -> float:
    """Get chi-square critical value for a given confidence level.

    Args:
        dof: Degrees of freedom m (measurement dimension).
        confidence: Confidence level (default 0.95).

    Returns:
        Chi-square critical value χ²(m, confidence).

    Example:
        >>> round(chi_square_threshold(dof=2), 3)
        5.991
        >>> round(chi_square_threshold(dof=3), 3)
        7.815
    """
    if dof < 1:
        raise ValueError(f"Degrees of freedom must be positive, got {dof}")
    if not (0 < confidence < 1):
        raise ValueError(
            f"Confidence level must be in (0, 1), got {confidence}"
        )

    return float(stats.chi2.ppf(confidence, dof))


class ConsistencyTracker:
    """Accumulates NIS statistics per sensor kind.

    Usage:
        >>> tracker = ConsistencyTracker()
        >>> tracker.record(SensorKind.LASER, 0.8)
        False
        >>> tracker.record(SensorKind.LASER, 9.0)
        True
        >>> tracker.out_of_bound_percentage(SensorKind.LASER)
        50.0
    """

    def __init__(self, confidence: float = 0.95):
        """Initialize the tracker.

        Args:
            confidence: Quantile of the chi-square distribution used as the
                out-of-bound threshold.
        """
        self.confidence = confidence
        self.thresholds: Dict[SensorKind, float] = {
            kind: chi_square_threshold(kind.measurement_dim, confidence)
            for kind in SensorKind
        }
        self.update_counts: Dict[SensorKind, int] = {kind: 0 for kind in SensorKind}
        self.out_of_bound_counts: Dict[SensorKind, int] = {kind: 0 for kind in SensorKind}
        self.latest: Dict[SensorKind, Optional[float]] = {kind: None for kind in SensorKind}

    def record(self, kind: SensorKind, nis: float) -> bool:
        """Record one NIS value.

        Args:
            kind: Sensor that produced the update.
            nis: NIS value of the update.

        Returns:
            True if the value exceeded the sensor's threshold.
        """
        self.update_counts[kind] += 1
        self.latest[kind] = nis
        out_of_bound = nis > self.thresholds[kind]
        if out_of_bound:
            self.out_of_bound_counts[kind] += 1
        return out_of_bound

    def out_of_bound_percentage(self, kind: SensorKind) -> float:
        """Percentage of updates of this sensor above the threshold."""
        count = self.update_counts[kind]
        if count == 0:
            return 0.0
        return 100.0 * self.out_of_bound_counts[kind] / count

    @property
    def total_updates(self) -> int:
        """Number of recorded updates over all sensors."""
        return sum(self.update_counts.values())

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-sensor counters keyed by sensor name (e.g. 'laser')."""
        return {
            kind.name.lower(): {
                'updates': self.update_counts[kind],
                'out_of_bound': self.out_of_bound_counts[kind],
                'percentage': self.out_of_bound_percentage(kind),
                'threshold': self.thresholds[kind],
            }
            for kind in SensorKind
        }
