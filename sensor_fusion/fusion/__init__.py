"""Measurement handling and consistency checks.

This package provides:
- Sensor kinds and the immutable measurement record
- Parsing of the L/R measurement text format
- NIS computation, chi-square thresholds and the consistency tracker
"""

from sensor_fusion.fusion.gating import (
    ConsistencyTracker,
    chi_square_threshold,
    normalized_innovation_squared,
)
from sensor_fusion.fusion.parsing import (
    format_measurement,
    iter_measurements,
    load_measurements,
    parse_measurement_line,
)
from sensor_fusion.fusion.types import MeasurementRecord, SensorKind

__all__ = [
    # Types
    "SensorKind",
    "MeasurementRecord",
    # Parsing
    "parse_measurement_line",
    "iter_measurements",
    "load_measurements",
    "format_measurement",
    # Consistency
    "normalized_innovation_squared",
    "chi_square_threshold",
    "ConsistencyTracker",
]
