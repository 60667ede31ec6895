"""
Angle wrapping and manipulation utilities.

Provides functions for keeping angular quantities inside the half-open
interval (-π, π].

Critical for:
- Radar bearing innovations in the EKF and UKF updates
- Yaw differences in the UKF covariance sums
"""

import numpy as np
from typing import Union


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to the (-π, π] range.

    Without wrapping, bearings near ±180° cause huge incorrect innovations
    (e.g. +179° vs -179° gives a 358° residual instead of 2°).

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range (-π, π]

    Example:
        >>> wrap_angle(3.5 * np.pi)  # 630° -> -90°
        -1.5707963267948966
        >>> wrap_angle(-np.pi)  # lower bound maps to +π
        3.141592653589793
    """
    wrapped = float(np.arctan2(np.sin(angle), np.cos(angle)))
    # arctan2 returns [-π, π]; fold the closed lower end onto +π
    if wrapped <= -np.pi:
        wrapped += 2.0 * np.pi
    return wrapped


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """
    Wrap array of angles to the (-π, π] range.

    Vectorized version of wrap_angle().

    Args:
        angles: Array of angles in radians

    Returns:
        Array of wrapped angles in range (-π, π]
    """
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    return np.where(wrapped <= -np.pi, wrapped + 2.0 * np.pi, wrapped)


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Compute the shortest angular difference between two angles.

    Returns angle1 - angle2, wrapped to (-π, π]. This is the bearing
    innovation for radar updates.

    Args:
        angle1: First angle in radians (measured)
        angle2: Second angle in radians (predicted)

    Returns:
        Shortest signed difference angle1 - angle2 in (-π, π]

    Example:
        >>> round(angle_diff(np.pi - 0.1, -np.pi + 0.1), 6)  # Nearly opposite
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    else:
        return wrap_angle(angle1 - angle2)
