"""
Evaluation Metrics for laser/radar fusion.

This module computes the accumulated error between filter estimates and
ground truth. It is used for reporting only; the filters never read it.
"""

from typing import List, Sequence

import numpy as np


def compute_rmse(
    estimations: Sequence[np.ndarray], ground_truth: Sequence[np.ndarray]
) -> np.ndarray:
    """
    Compute per-component Root Mean Square Error.

        RMSE_j = sqrt( (1/N) * Σ_i (est_i[j] - truth_i[j])² )

    Args:
        estimations: Estimated vectors, sequence of N arrays of shape (d,)
        ground_truth: True vectors, sequence of N arrays of shape (d,)

    Returns:
        rmse: RMSE per component, shape (d,)

    Raises:
        ValueError: If inputs are empty or have incompatible shapes

    Example:
        >>> est = [np.array([1.0, 2.0]), np.array([3.0, 4.0])]
        >>> gt = [np.array([1.0, 2.0]), np.array([3.0, 2.0])]
        >>> compute_rmse(est, gt)
        array([0.        , 1.41421356])
    """
    if len(estimations) == 0:
        raise ValueError("Cannot compute RMSE of an empty sequence")
    if len(estimations) != len(ground_truth):
        raise ValueError(
            f"Length mismatch: {len(estimations)} estimations vs "
            f"{len(ground_truth)} ground truth vectors"
        )

    estimated = np.asarray(estimations, dtype=float)
    truth = np.asarray(ground_truth, dtype=float)

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )

    errors = estimated - truth
    return np.sqrt(np.mean(errors**2, axis=0))


class AccuracyTracker:
    """
    Accumulates estimate/ground-truth pairs and reports RMSE.

    Both histories grow in lockstep; RMSE is recomputed from the full
    history on each query.

    Example:
        >>> tracker = AccuracyTracker()
        >>> tracker.add(np.array([1.0, 1.0, 0.0, 0.0]),
        ...             np.array([1.0, 2.0, 0.0, 0.0, 0.0, 0.0]))
        >>> tracker.rmse()
        array([0., 1., 0., 0.])
    """

    dim = 4

    def __init__(self):
        self.estimations: List[np.ndarray] = []
        self.ground_truth: List[np.ndarray] = []

    def add(self, estimate: np.ndarray, truth: np.ndarray) -> None:
        """
        Append one pair.

        Args:
            estimate: [px, py, vx, vy]
            truth: [px, py, vx, vy, ...]; extra trailing components
                (yaw, yaw rate) are dropped.
        """
        estimate = np.asarray(estimate, dtype=float)
        truth = np.asarray(truth, dtype=float)
        if estimate.shape != (self.dim,):
            raise ValueError(f"Estimate must have shape ({self.dim},), got {estimate.shape}")
        if truth.ndim != 1 or len(truth) < self.dim:
            raise ValueError(f"Ground truth needs at least {self.dim} components, got {truth.shape}")
        self.estimations.append(estimate.copy())
        self.ground_truth.append(truth[:self.dim].copy())

    def rmse(self) -> np.ndarray:
        """RMSE over the full history, shape (4,)."""
        return compute_rmse(self.estimations, self.ground_truth)

    def __len__(self) -> int:
        return len(self.estimations)
