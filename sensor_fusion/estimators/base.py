"""
Base class for the laser/radar fusion filters.

This module defines the contract shared by the Extended and Unscented
Kalman filters: initialization from the first measurement, the
predict/update cycle driven by measurement timestamps, and NIS bookkeeping.
The algorithms themselves live entirely in the subclasses.
"""

import warnings
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from sensor_fusion.config import FilterConfig
from sensor_fusion.fusion.gating import ConsistencyTracker, normalized_innovation_squared
from sensor_fusion.fusion.types import MeasurementRecord, SensorKind
from sensor_fusion.models import LaserMeasurement, RadarMeasurement


# Gaps longer than this usually mean a units or ordering problem upstream
MAX_EXPECTED_DT = 10.0


class FusionFilter(ABC):
    """Abstract base class for laser/radar fusion filters.

    Subclasses set `name`, `state_dim` and `DEFAULT_INITIAL_COVARIANCE` and
    implement `predict`, `_correct`, `_initial_state` and
    `cartesian_estimate`.

    Attributes:
        config: Filter configuration, fixed for the lifetime of the filter.
        laser_model: Laser measurement model.
        radar_model: Radar measurement model.
        consistency: NIS statistics per sensor.
        previous_timestamp: Timestamp of the last processed measurement.
    """

    name: str = ""
    state_dim: int = 0
    DEFAULT_INITIAL_COVARIANCE: Tuple[float, ...] = ()

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize the filter.

        Args:
            config: Filter configuration. Defaults to FilterConfig().
        """
        self.config = config if config is not None else FilterConfig()
        self.laser_model = LaserMeasurement(self.config.laser_noise_covariance())
        self.radar_model = RadarMeasurement(
            self.config.radar_noise_covariance(),
            range_threshold=self.config.range_threshold,
        )
        self.consistency = ConsistencyTracker()
        self.previous_timestamp: Optional[int] = None
        self._x: Optional[np.ndarray] = None
        self._P: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def process_measurement(self, record: MeasurementRecord) -> bool:
        """
        Run one full filter cycle for a measurement.

        The first measurement of an enabled sensor initializes the state.
        Every later one runs predict over the elapsed time, then update.

        Args:
            record: Measurement record.

        Returns:
            False if the record was ignored because its sensor is disabled,
            True otherwise.

        Raises:
            ValueError: If the timestamp is older than the previous one.
            numpy.linalg.LinAlgError: If the innovation covariance is
                singular. The filter is then left predicted to the record's
                timestamp without the update applied.
        """
        if not self.sensor_enabled(record.sensor):
            return False

        if not self.is_initialized:
            self.initialize(record)
            return True

        dt = self._elapsed_seconds(record.timestamp)
        self.predict(dt)
        # State is now at record.timestamp even if the update fails
        self.previous_timestamp = record.timestamp
        self.update(record)
        return True

    def sensor_enabled(self, sensor: SensorKind) -> bool:
        """True if measurements of this sensor are processed."""
        if sensor is SensorKind.LASER:
            return self.config.use_laser
        return self.config.use_radar

    def _elapsed_seconds(self, timestamp: int) -> float:
        if timestamp < self.previous_timestamp:
            raise ValueError(
                f"Measurement timestamp {timestamp} is older than the previous "
                f"one ({self.previous_timestamp})"
            )
        dt = (timestamp - self.previous_timestamp) * self.config.timestamp_scale
        if dt > MAX_EXPECTED_DT:
            warnings.warn(
                f"{self.name}: dt={dt:.3f}s between measurements is unusually large. "
                "Check timestamp units.",
                RuntimeWarning
            )
        return dt

    # ------------------------------------------------------------------
    # Filter steps
    # ------------------------------------------------------------------

    def initialize(self, record: MeasurementRecord) -> None:
        """
        Initialize state and covariance from a first measurement.

        Laser gives the position directly, radar through
        (rho*cos(phi), rho*sin(phi)). Velocity terms start at zero.

        Args:
            record: First measurement.
        """
        if record.sensor is SensorKind.LASER:
            px, py = record.z[0], record.z[1]
        else:
            px, py = RadarMeasurement.to_cartesian(record.z)

        self._x = self._initial_state(float(px), float(py))
        self._P = self.config.initial_covariance_matrix(self.DEFAULT_INITIAL_COVARIANCE)
        self.previous_timestamp = record.timestamp

    @abstractmethod
    def predict(self, dt: float) -> None:
        """
        Perform prediction step (time update).

        Args:
            dt: Elapsed time in seconds.
        """
        pass

    def update(self, record: MeasurementRecord) -> float:
        """
        Perform measurement update (correction step).

        Args:
            record: Measurement record.

        Returns:
            NIS of this update.

        Raises:
            RuntimeError: If the filter has not been initialized.
        """
        self._require_initialized("update")
        innovation, S = self._correct(record.sensor, record.z)
        nis = normalized_innovation_squared(innovation, S)
        self.consistency.record(record.sensor, nis)
        return nis

    @abstractmethod
    def _correct(self, sensor: SensorKind, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Apply the update; return (innovation, innovation covariance)."""
        pass

    @abstractmethod
    def _initial_state(self, px: float, py: float) -> np.ndarray:
        """State vector at rest at (px, py)."""
        pass

    @abstractmethod
    def cartesian_estimate(self) -> np.ndarray:
        """Current estimate as [px, py, vx, vy]."""
        pass

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._x is not None

    @property
    def state(self) -> np.ndarray:
        """Copy of the current state mean."""
        self._require_initialized("read state")
        return self._x.copy()

    @property
    def covariance(self) -> np.ndarray:
        """Copy of the current state covariance."""
        self._require_initialized("read covariance")
        return self._P.copy()

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get current state estimate and covariance.

        Returns:
            Tuple of (state_vector, covariance_matrix).
        """
        return self.state, self.covariance

    @property
    def nis_laser(self) -> Optional[float]:
        """NIS of the latest laser update (None before the first one)."""
        return self.consistency.latest[SensorKind.LASER]

    @property
    def nis_radar(self) -> Optional[float]:
        """NIS of the latest radar update (None before the first one)."""
        return self.consistency.latest[SensorKind.RADAR]

    @property
    def timestep(self) -> int:
        """Number of updates performed so far (both sensors)."""
        return self.consistency.total_updates

    def reset(self) -> None:
        """Forget the state and statistics; the configuration is kept."""
        self.consistency = ConsistencyTracker()
        self.previous_timestamp = None
        self._x = None
        self._P = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_initialized(self, operation: str) -> None:
        if self._x is None or self._P is None:
            raise RuntimeError(
                f"{self.name}: cannot {operation} before initialization. "
                "Call initialize() or process_measurement() first."
            )

    def measurement_model(self, sensor: SensorKind):
        """Measurement model for a sensor kind."""
        if sensor is SensorKind.LASER:
            return self.laser_model
        return self.radar_model

    @staticmethod
    def _symmetrize(P: np.ndarray) -> np.ndarray:
        return 0.5 * (P + P.T)
