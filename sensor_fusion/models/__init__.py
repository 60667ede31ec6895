"""
Motion and measurement models for laser/radar fusion.

This module provides the process models (CV, CTRV) and the sensor models
(laser, radar) shared by the estimators and the simulator.
"""

from .motion_models import (
    ConstantVelocity2D,
    CTRV,
)

from .measurement_models import (
    LaserMeasurement,
    RadarMeasurement,
)

__all__ = [
    # Motion models
    'ConstantVelocity2D',
    'CTRV',

    # Measurement models
    'LaserMeasurement',
    'RadarMeasurement',
]
