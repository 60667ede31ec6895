"""Laser/radar fusion demos.

This package runs recorded or synthetic measurement streams through the
fusion filters:
- Batch processing of an L/R measurement file with EKF or UKF
- NIS consistency and RMSE reporting
- Text table of estimates for offline analysis
"""

__all__ = []
