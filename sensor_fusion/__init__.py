"""Core modules for laser/radar sensor fusion.

This package contains the reusable components of the tracker:
- config: Filter configuration (noise parameters, sensor switches)
- models: Motion (CV, CTRV) and measurement (laser, radar) models
- estimators: Extended and Unscented Kalman filters
- fusion: Measurement records, parsing and NIS consistency checks
- eval: Accuracy metrics (RMSE)
- sim: Synthetic trajectories and sensor measurements
"""

__version__ = "0.1.0"
