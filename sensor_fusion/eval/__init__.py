"""
Evaluation Module.

This module provides accuracy metrics for the fusion filters.

Modules:
    metrics: RMSE and the running accuracy tracker
"""

from .metrics import (
    AccuracyTracker,
    compute_rmse,
)

__all__ = [
    "compute_rmse",
    "AccuracyTracker",
]
