"""
Utility functions for the fusion filters.

This module provides angle operations shared by the measurement models
and the estimators.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
]
