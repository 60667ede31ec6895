"""Data types for laser/radar fusion.

This module defines the sensor kinds and the immutable measurement record
that feeds the filters.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class SensorKind(Enum):
    """Enumeration of sensor types.

    The value is the tag used in measurement text files.

    Attributes:
        LASER: Cartesian position sensor, z = [px, py].
        RADAR: Polar sensor, z = [rho, phi, rho_dot].
    """

    LASER = "L"
    RADAR = "R"

    @property
    def measurement_dim(self) -> int:
        """Number of components in a raw measurement of this sensor."""
        return 2 if self is SensorKind.LASER else 3


GROUND_TRUTH_DIM = 6


def _frozen_vector(value, name: str) -> np.ndarray:
    if not isinstance(value, np.ndarray):
        raise TypeError(f"{name} must be numpy array, got {type(value)}")
    if value.ndim != 1:
        raise ValueError(f"{name} must be 1D array, got shape {value.shape}")
    if not np.all(np.isfinite(value)):
        raise ValueError(f"{name} must be finite, got {value}")
    vector = np.array(value, dtype=float)
    vector.flags.writeable = False
    return vector


@dataclass(frozen=True)
class MeasurementRecord:
    """One sensor observation plus optional ground truth.

    The arrays are copied and made read-only on construction, so a record
    cannot be changed after it is handed to a filter.

    Attributes:
        sensor: Sensor kind.
        z: Raw measurement, (2,) for laser and (3,) for radar.
        timestamp: Sensor clock timestamp (integer, microseconds).
        ground_truth: Optional [px, py, vx, vy, yaw, yaw_rate].

    Example:
        >>> record = MeasurementRecord(
        ...     sensor=SensorKind.RADAR,
        ...     z=np.array([1.01, 0.39, 0.96]),
        ...     timestamp=1477010443050000,
        ... )
        >>> record.z.flags.writeable
        False
    """

    sensor: SensorKind
    z: np.ndarray
    timestamp: int
    ground_truth: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        """Validate the record structure."""
        if not isinstance(self.sensor, SensorKind):
            raise TypeError(f"Sensor must be a SensorKind, got {self.sensor!r}")

        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, (int, np.integer)):
            raise TypeError(f"Timestamp must be an integer, got {type(self.timestamp)}")
        if self.timestamp < 0:
            raise ValueError(f"Timestamp must be non-negative, got {self.timestamp}")
        object.__setattr__(self, "timestamp", int(self.timestamp))

        z = _frozen_vector(self.z, "Measurement z")
        expected = self.sensor.measurement_dim
        if len(z) != expected:
            raise ValueError(
                f"{self.sensor.name} measurement must have {expected} components, "
                f"got {len(z)}"
            )
        object.__setattr__(self, "z", z)

        if self.ground_truth is not None:
            gt = _frozen_vector(self.ground_truth, "Ground truth")
            if len(gt) != GROUND_TRUTH_DIM:
                raise ValueError(
                    f"Ground truth must have {GROUND_TRUTH_DIM} components, got {len(gt)}"
                )
            object.__setattr__(self, "ground_truth", gt)

    @property
    def has_ground_truth(self) -> bool:
        """True if the record carries a ground truth vector."""
        return self.ground_truth is not None
