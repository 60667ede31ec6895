"""
Measurement models for laser and radar sensors.

Provides the two sensor models of the tracker:
- Laser: direct Cartesian position measurement (linear)
- Radar: range, bearing and range-rate (nonlinear)

The radar model is defined for both state layouts: [px, py, vx, vy] (EKF)
and [px, py, v, yaw, yaw_rate] (UKF). Near the sensor origin the range-rate
and Jacobian terms are replaced by zeros instead of dividing by ~0.
"""

import numpy as np
from typing import Optional

from sensor_fusion.utils import angle_diff


class LaserMeasurement:
    """
    Laser position measurement model.

    Measurement: z = [px, py] + noise

    Example:
        >>> model = LaserMeasurement(np.diag([0.0225, 0.0225]))
        >>> x = np.array([5.0, 7.0, 1.0, 0.5])  # [px, py, vx, vy]
        >>> model.h(x)
        array([5., 7.])
    """

    dim = 2
    angle_index: Optional[int] = None

    def __init__(self, R: np.ndarray):
        """
        Initialize laser measurement model.

        Args:
            R: Measurement noise covariance (2, 2)
        """
        self.R = np.asarray(R, dtype=float)
        if self.R.shape != (2, 2):
            raise ValueError(f"Laser R must be (2, 2), got shape {self.R.shape}")

    def h(self, x: np.ndarray) -> np.ndarray:
        """
        Measurement function: extract position from state.

        Valid for any state layout starting with [px, py].
        """
        return np.array([x[0], x[1]])

    def H(self, state_dim: int) -> np.ndarray:
        """
        Measurement matrix (constant for the linear model).

        Args:
            state_dim: Length of the state vector

        Returns:
            Matrix of shape (2, state_dim)
        """
        H = np.zeros((2, state_dim))
        H[0, 0] = 1.0
        H[1, 1] = 1.0
        return H

    def residual(self, z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
        """Innovation z - z_pred (no angular components)."""
        return z - z_pred

    def noise_covariance(self) -> np.ndarray:
        """Measurement noise covariance R."""
        return self.R.copy()


class RadarMeasurement:
    """
    Radar range/bearing/range-rate measurement model.

    Measurements:
    - Range: rho = sqrt(px² + py²)
    - Bearing: phi = atan2(py, px)
    - Range rate: rho_dot = (px*vx + py*vy) / rho

    Example:
        >>> model = RadarMeasurement(np.diag([0.09, 0.0009, 0.09]))
        >>> x = np.array([3.0, 4.0, 1.0, 0.0])  # [px, py, vx, vy]
        >>> model.h_cv(x)
        array([5.        , 0.92729522, 0.6       ])
    """

    dim = 3
    angle_index: Optional[int] = 1

    def __init__(self, R: np.ndarray, range_threshold: float = 1e-4):
        """
        Initialize radar measurement model.

        Args:
            R: Measurement noise covariance (3, 3)
            range_threshold: Range below which range-rate and Jacobian terms
                are treated as zero.
        """
        self.R = np.asarray(R, dtype=float)
        if self.R.shape != (3, 3):
            raise ValueError(f"Radar R must be (3, 3), got shape {self.R.shape}")
        self.range_threshold = range_threshold

    def _project(self, px: float, py: float, vx: float, vy: float) -> np.ndarray:
        rho = np.sqrt(px**2 + py**2)
        phi = np.arctan2(py, px)
        if rho < self.range_threshold:
            rho_dot = 0.0
        else:
            rho_dot = (px * vx + py * vy) / rho
        return np.array([rho, phi, rho_dot])

    def h_cv(self, x: np.ndarray) -> np.ndarray:
        """
        Measurement function for the constant velocity state.

        Args:
            x: State [px, py, vx, vy]

        Returns:
            Predicted [rho, phi, rho_dot]
        """
        px, py, vx, vy = x[:4]
        return self._project(px, py, vx, vy)

    def h_ctrv(self, x: np.ndarray) -> np.ndarray:
        """
        Measurement function for the CTRV state.

        Args:
            x: State [px, py, v, yaw, yaw_rate]

        Returns:
            Predicted [rho, phi, rho_dot]
        """
        px, py, v, yaw = x[:4]
        return self._project(px, py, v * np.cos(yaw), v * np.sin(yaw))

    def jacobian_cv(self, x: np.ndarray) -> np.ndarray:
        """
        Jacobian of h_cv with respect to [px, py, vx, vy].

        Returns a zero matrix when the range is below the threshold.

        Args:
            x: State [px, py, vx, vy]

        Returns:
            Jacobian matrix, shape (3, 4)
        """
        px, py, vx, vy = x[:4]
        c1 = px**2 + py**2
        c2 = np.sqrt(c1)
        c3 = c1 * c2

        if c2 < self.range_threshold:
            return np.zeros((3, 4))

        return np.array([
            [px / c2, py / c2, 0.0, 0.0],
            [-py / c1, px / c1, 0.0, 0.0],
            [py * (vx * py - vy * px) / c3, px * (px * vy - py * vx) / c3, px / c2, py / c2]
        ])

    def residual(self, z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
        """
        Innovation with the bearing component wrapped to (-π, π].

        Args:
            z: Measured [rho, phi, rho_dot]
            z_pred: Predicted [rho, phi, rho_dot]

        Returns:
            Innovation vector
        """
        innovation = np.asarray(z, dtype=float) - np.asarray(z_pred, dtype=float)
        innovation[1] = angle_diff(float(z[1]), float(z_pred[1]))
        return innovation

    def noise_covariance(self) -> np.ndarray:
        """Measurement noise covariance R."""
        return self.R.copy()

    @staticmethod
    def to_cartesian(z: np.ndarray) -> np.ndarray:
        """
        Position implied by a radar measurement.

        Args:
            z: [rho, phi, rho_dot]

        Returns:
            [px, py]
        """
        rho, phi = z[0], z[1]
        return np.array([rho * np.cos(phi), rho * np.sin(phi)])
