"""
Unscented Kalman Filter for laser/radar fusion.

State: x = [px, py, v, yaw, yaw_rate] with the CTRV motion model.

Process noise enters through an augmented state
x_aug = [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd], so the prediction needs
no additive Q and no Jacobian.

Implements:
    - Sigma point generation χ₀ = x̂, χᵢ = x̂ + δᵢ, χ_{i+n} = x̂ - δᵢ with
      δᵢ the columns of a square root of (λ + n) P_aug, λ = 3 - n
    - Sigma point propagation through the CTRV model
    - Update reusing the predicted sigma points, with cross-covariance
      T = Σ wᵢ (χᵢ - x̂)(Zᵢ - ẑ)^T and gain K = T S^{-1}
"""

from typing import Optional, Tuple

import numpy as np

from sensor_fusion.config import FilterConfig
from sensor_fusion.estimators.base import FusionFilter
from sensor_fusion.fusion.types import SensorKind
from sensor_fusion.models import CTRV
from sensor_fusion.utils import wrap_angle, wrap_angle_array


class UnscentedKalmanFilter(FusionFilter):
    """
    Unscented Kalman Filter with the CTRV motion model.

    Instead of linearizing, the UKF propagates a deterministic set of
    sigma points through the nonlinear motion and measurement models and
    recovers mean and covariance from weighted sums. Angular components
    (yaw in the state, bearing in radar measurements) are wrapped wherever
    differences enter those sums.

    Attributes:
        motion_model: CTRV model.
        n_aug: Augmented state dimension (7).
        lambda_: Sigma point spreading parameter, 3 - n_aug.
        weights: Sigma point weights (2 n_aug + 1,), shared by mean and
            covariance.
    """

    name = "ukf"
    state_dim = 5
    DEFAULT_INITIAL_COVARIANCE = (1.0, 1.0, 10.0, 1.0, 1.0)
    YAW_INDEX = 3

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize Unscented Kalman Filter.

        Args:
            config: Filter configuration. std_a and std_yawdd set the
                variances of the two augmented noise terms.
        """
        super().__init__(config)
        self.motion_model = CTRV(yaw_rate_threshold=self.config.yaw_rate_threshold)
        self.n_aug = CTRV.augmented_dim
        self.lambda_ = 3 - self.n_aug

        self._compute_weights()

        # Predicted sigma points (2 n_aug + 1, state_dim), kept for the update
        self._sigma_points_pred: Optional[np.ndarray] = None

    def _compute_weights(self) -> None:
        """
        Compute weights for mean and covariance of sigma points.

            w₀ = λ / (λ + n),  wᵢ = 1 / (2 (λ + n)),  i = 1..2n
        """
        n = self.n_aug
        self.weights = np.full(2 * n + 1, 1.0 / (2 * (n + self.lambda_)))
        self.weights[0] = self.lambda_ / (n + self.lambda_)

    def _initial_state(self, px: float, py: float) -> np.ndarray:
        return np.array([px, py, 0.0, 0.0, 0.0])

    def generate_sigma_points(self, x: np.ndarray, P: np.ndarray) -> np.ndarray:
        """
        Generate augmented sigma points.

            χ₀ = x̂
            χᵢ = x̂ + δᵢ      for i = 1, ..., n
            χ_{i+n} = x̂ - δᵢ for i = 1, ..., n

        Args:
            x: Augmented mean (n_aug,).
            P: Augmented covariance (n_aug, n_aug).

        Returns:
            Sigma points matrix (2 n_aug + 1, n_aug), one point per row.
        """
        n = self.n_aug
        if x.shape != (n,) or P.shape != (n, n):
            raise ValueError(
                f"Expected augmented mean ({n},) and covariance ({n}, {n}), "
                f"got {x.shape} and {P.shape}"
            )

        sigma_points = np.zeros((2 * n + 1, n))
        sigma_points[0] = x

        # Matrix square root: (λ + n) P = L L^T
        try:
            L = np.linalg.cholesky((n + self.lambda_) * P)
        except np.linalg.LinAlgError:
            # Positive semi-definite P: fall back to the symmetric eigen root
            eigenvalues, eigenvectors = np.linalg.eigh(P)
            L = eigenvectors @ np.diag(np.sqrt(np.maximum(eigenvalues, 0))) * np.sqrt(n + self.lambda_)

        for i in range(n):
            sigma_points[i + 1] = x + L[:, i]
            sigma_points[n + i + 1] = x - L[:, i]

        return sigma_points

    def sigma_point_moments(
        self, sigma_points: np.ndarray, angle_index: Optional[int] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute mean and covariance from sigma points using weighted sums.

        The angular component is averaged as offsets from the first sigma
        point, θ̄ = θ₀ + Σ wᵢ wrap(θᵢ - θ₀), so points straddling ±π do not
        average to the opposite direction.

        Args:
            sigma_points: Matrix of sigma points (2 n_aug + 1, d).
            angle_index: Component whose deviations are wrapped to
                (-π, π], or None.

        Returns:
            Tuple of (mean (d,), covariance (d, d)).
        """
        mean = self.weights @ sigma_points
        if angle_index is not None:
            reference = sigma_points[0, angle_index]
            offsets = wrap_angle_array(sigma_points[:, angle_index] - reference)
            mean[angle_index] = reference + self.weights @ offsets
        diff = self._deviations(sigma_points, mean, angle_index)
        covariance = (self.weights[:, np.newaxis, np.newaxis] * diff[:, :, np.newaxis] * diff[:, np.newaxis, :]).sum(axis=0)
        return mean, covariance

    @staticmethod
    def _deviations(
        points: np.ndarray, mean: np.ndarray, angle_index: Optional[int]
    ) -> np.ndarray:
        diff = points - mean
        if angle_index is not None:
            diff[:, angle_index] = wrap_angle_array(diff[:, angle_index])
        return diff

    def predict(self, dt: float) -> None:
        """
        Perform prediction step using the Unscented Transform.

        - Augment state and covariance with the two noise terms
        - Generate sigma points from the augmented distribution
        - Propagate them through the CTRV model
        - Compute predicted mean and covariance

        The predicted sigma points are stored for the next update.

        Args:
            dt: Elapsed time in seconds.

        Raises:
            RuntimeError: If state or covariance not initialized.
        """
        self._require_initialized("predict")

        x_aug, P_aug = CTRV.augment(self._x, self._P, self.config.std_a, self.config.std_yawdd)
        sigma_points = self.generate_sigma_points(x_aug, P_aug)

        sigma_points_pred = np.array([
            self.motion_model.f(sp, dt) for sp in sigma_points
        ])

        x_pred, P_pred = self.sigma_point_moments(sigma_points_pred, angle_index=self.YAW_INDEX)

        self._x = x_pred
        self._P = self._symmetrize(P_pred)
        self._sigma_points_pred = sigma_points_pred

    def _correct(self, sensor: SensorKind, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Perform measurement update with the predicted sigma points.

        - Transform predicted sigma points into measurement space
        - Predicted measurement mean ẑ and covariance S (+ R)
        - Cross-covariance T between state and measurement space
        - Kalman gain K = T S^{-1}
        - x̂ += K ν, P -= K S K^T

        Args:
            sensor: Sensor kind of the measurement.
            z: Measurement vector.

        Returns:
            Tuple of (innovation, innovation_covariance).

        Raises:
            RuntimeError: If no prediction precedes this update.
        """
        if self._sigma_points_pred is None:
            raise RuntimeError(f"{self.name}: update() requires a preceding predict()")

        model = self.measurement_model(sensor)
        h = model.h if sensor is SensorKind.LASER else model.h_ctrv

        sigma_points = self._sigma_points_pred
        sigma_points_meas = np.array([h(sp) for sp in sigma_points])

        z_pred, S = self.sigma_point_moments(sigma_points_meas, angle_index=model.angle_index)
        S = S + model.noise_covariance()

        # Cross-covariance between state and measurement
        diff_x = self._deviations(sigma_points, self._x, self.YAW_INDEX)
        diff_z = self._deviations(sigma_points_meas, z_pred, model.angle_index)
        T = (self.weights[:, np.newaxis, np.newaxis] * diff_x[:, :, np.newaxis] * diff_z[:, np.newaxis, :]).sum(axis=0)

        K = T @ np.linalg.inv(S)

        innovation = model.residual(z, z_pred)

        self._x = self._x + K @ innovation
        self._x[self.YAW_INDEX] = wrap_angle(self._x[self.YAW_INDEX])
        self._P = self._symmetrize(self._P - K @ S @ K.T)

        # Sigma points describe the prior, not the posterior
        self._sigma_points_pred = None

        return innovation, S

    def cartesian_estimate(self) -> np.ndarray:
        """Current estimate as [px, py, v cos(yaw), v sin(yaw)]."""
        return CTRV.to_cartesian(self.state)

    def reset(self) -> None:
        super().reset()
        self._sigma_points_pred = None
