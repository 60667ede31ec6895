"""
Extended Kalman Filter for laser/radar fusion.

State: x = [px, py, vx, vy] with a constant velocity motion model.

Implements:
    - Prediction with the exact linear transition
      x̂_k^- = F x̂_{k-1}
      P_k^- = F P_{k-1} F^T + Q(dt)
    - Laser update with the constant measurement matrix H
    - Radar update linearized with the Jacobian H_k = ∂h/∂x at x̂_k^-
"""

from typing import Optional, Tuple

import numpy as np

from sensor_fusion.config import FilterConfig
from sensor_fusion.estimators.base import FusionFilter
from sensor_fusion.fusion.types import SensorKind
from sensor_fusion.models import ConstantVelocity2D


class ExtendedKalmanFilter(FusionFilter):
    """
    Extended Kalman Filter with a constant velocity model.

    Prediction is exact (the CV model is linear). Only the radar update is
    linearized, around the predicted state.

    Attributes:
        motion_model: Constant velocity model.
        noise_ax: Acceleration variance along x used in Q.
        noise_ay: Acceleration variance along y used in Q.

    Example:
        >>> from sensor_fusion.fusion import parse_measurement_line
        >>> ekf = ExtendedKalmanFilter()
        >>> ekf.process_measurement(parse_measurement_line("L 1.0 2.0 0"))
        True
        >>> ekf.state
        array([1., 2., 0., 0.])
    """

    name = "ekf"
    state_dim = 4
    DEFAULT_INITIAL_COVARIANCE = (1.0, 1.0, 1000.0, 1000.0)

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize Extended Kalman Filter.

        Args:
            config: Filter configuration. The longitudinal acceleration std
                std_a is applied to both axes of the CV model.
        """
        super().__init__(config)
        self.motion_model = ConstantVelocity2D()
        self.noise_ax = self.config.std_a**2
        self.noise_ay = self.config.std_a**2

    def _initial_state(self, px: float, py: float) -> np.ndarray:
        return np.array([px, py, 0.0, 0.0])

    def predict(self, dt: float) -> None:
        """
        Perform prediction step (time update).

            x̂_k^- = F(dt) x̂_{k-1}
            P_k^- = F(dt) P_{k-1} F(dt)^T + Q(dt)

        Args:
            dt: Elapsed time in seconds.

        Raises:
            RuntimeError: If state or covariance not initialized.
        """
        self._require_initialized("predict")

        F = self.motion_model.F(dt)
        Q = self.motion_model.Q(dt, self.noise_ax, self.noise_ay)

        self._x = F @ self._x
        self._P = F @ self._P @ F.T + Q

    def _correct(self, sensor: SensorKind, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Perform measurement update (correction step).

        - Measurement prediction: ẑ = h(x̂_k^-)
        - Jacobian computation: H_k = ∂h/∂x|_{x̂_k^-} (radar only)
        - Innovation: ν = z - ẑ (bearing wrapped)
        - Kalman gain: K_k = P_k^- H_k^T (H_k P_k^- H_k^T + R_k)^{-1}
        - State update: x̂_k = x̂_k^- + K_k ν
        - Covariance update: P_k = (I - K_k H_k) P_k^-

        Args:
            sensor: Sensor kind of the measurement.
            z: Measurement vector.

        Returns:
            Tuple of (innovation, innovation_covariance).
        """
        model = self.measurement_model(sensor)

        if sensor is SensorKind.LASER:
            z_pred = model.h(self._x)
            H = model.H(self.state_dim)
        else:
            z_pred = model.h_cv(self._x)
            H = model.jacobian_cv(self._x)

        R = model.noise_covariance()

        innovation = model.residual(z, z_pred)

        # Innovation covariance: S = H P_k^- H^T + R
        S = H @ self._P @ H.T + R

        # Kalman gain: K_k = P_k^- H^T S^{-1}
        K = self._P @ H.T @ np.linalg.inv(S)

        self._x = self._x + K @ innovation

        # Joseph form, equal to (I - KH) P for the optimal gain
        I_KH = np.eye(self.state_dim) - K @ H
        self._P = self._symmetrize(I_KH @ self._P @ I_KH.T + K @ R @ K.T)

        return innovation, S

    def cartesian_estimate(self) -> np.ndarray:
        """Current estimate as [px, py, vx, vy] (the state itself)."""
        return self.state
